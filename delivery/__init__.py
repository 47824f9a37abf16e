from delivery.dispatcher import Dispatcher
from delivery.payloads import (
    Notification,
    build_payloads,
    escape_markdown_v2,
    render_channel_post,
    render_thread,
)

__all__ = [
    "Dispatcher",
    "Notification",
    "build_payloads",
    "escape_markdown_v2",
    "render_channel_post",
    "render_thread",
]
