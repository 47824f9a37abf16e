from collectors.base import Collector
from collectors.nga import ThreadCollector, page_range, parse_threads_page
from collectors.telegram import PAGE_SIZE, ChannelCollector, parse_channel_page

__all__ = [
    "Collector",
    "ChannelCollector",
    "ThreadCollector",
    "PAGE_SIZE",
    "page_range",
    "parse_channel_page",
    "parse_threads_page",
]
