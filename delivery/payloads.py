"""
Push payloads. One item becomes one Notification, which becomes one payload
per configured provider (telegram, apple, bark). Providers without
credentials are skipped.
"""

import re
from dataclasses import dataclass
from urllib.parse import quote

from config.settings import Config
from filters.keywords import select_level
from models import CandidateItem, Provider, PushPayload

_MARKDOWN_V2_SPECIAL = re.compile(r"([_*\[\]()~>#+\-=|{}.!`])")


def escape_markdown_v2(text: str) -> str:
    """Escape Telegram MarkdownV2 special characters."""
    return _MARKDOWN_V2_SPECIAL.sub(r"\\\1", text)


@dataclass
class Notification:
    """Provider-neutral rendering of one item."""
    item: CandidateItem
    title: str
    body: str
    url: str | None
    group: str
    icon: str | None
    level: str
    telegram_text: str


def render_channel_post(item: CandidateItem, config: Config) -> Notification:
    title = item.author_or_channel or item.title
    body = item.push_body
    text = (
        f"*{escape_markdown_v2(title)}*\n\n{escape_markdown_v2(body)}\n\n"
        f"[{escape_markdown_v2('Open in Telegram')}]({item.source_url})"
    )
    return Notification(
        item=item,
        title=title,
        body=body,
        url=item.metadata.get("app_url") or item.source_url,
        group=config.group,
        icon=config.icon or item.icon_url,
        level=select_level(item.body, config.active_keywords, config.level),
        telegram_text=text,
    )


def render_thread(item: CandidateItem, config: Config) -> Notification:
    title = f"NGA {item.author_or_channel}: new thread"
    body = item.push_body
    text = f"{escape_markdown_v2(title)}\n[{escape_markdown_v2(item.title)}]({item.source_url})"
    app_url = item.metadata.get("app_url")
    if app_url:
        text += f"\n\n[{escape_markdown_v2('Open in app')}]({config.redirect_url}?url={quote(app_url, safe='')})"
    times = escape_markdown_v2(f"Posted: {item.created_at}\nReplied: {item.updated_at}")
    text += f"\n\n{times}"
    return Notification(
        item=item,
        title=title,
        body=body,
        url=item.source_url,
        group=(config.apple.group if config.apple and config.apple.group else config.nga_group),
        icon=item.icon_url,
        level=select_level(item.body, config.active_keywords, config.level),
        telegram_text=text,
    )


def build_payloads(note: Notification, config: Config) -> list[PushPayload]:
    payloads = []

    if config.telegram:
        payloads.append(PushPayload(Provider.TELEGRAM, {
            "bot_id": config.telegram.bot_id,
            "chat_id": config.telegram.chat_id,
            "message": {"text": note.telegram_text, "parse_mode": "MarkdownV2"},
        }))

    if config.apple:
        group = config.apple.group or note.group
        apple = {
            "group": group,
            "url": note.url,
            "device_token": config.apple.device_token,
            "aps": {
                "thread-id": group,
                "interruption-level": note.level,
                "alert": {"title": note.title, "body": note.body},
            },
        }
        if note.icon:
            apple["icon"] = note.icon
        payloads.append(PushPayload(Provider.APPLE, apple))

    if config.bark:
        payloads.append(PushPayload(Provider.BARK, {
            "device_key": config.bark.device_key,
            "title": note.title,
            "body": note.body,
            "level": note.level,
            "icon": note.icon,
            "group": note.group,
            "url": note.url,
            "endpoint": config.bark.endpoint,
        }))

    return payloads
