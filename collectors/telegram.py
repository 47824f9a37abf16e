"""
Telegram channel collector. Scrapes the public preview at t.me/s/<channel>.

Strategy (offset walk):
- Request ?after=<cursor>; the page holds up to 20 posts after that id
- Keep only posts newer than the cursor, advance to the highest id seen
- Stop on a short page, on reaching the per-run cap, or on a fetch error
  (earlier pages are still returned)
"""

import logging

from bs4 import BeautifulSoup

from collectors.base import Collector
from config.settings import Config
from errors import FetchFailure
from models import CandidateItem, DeliveryBatch, FALLBACK_TITLE
from transport import Transport

log = logging.getLogger(__name__)

PAGE_SIZE = 20


def _text_with_breaks(tag) -> str:
    """Like the browser's outerText: <br> becomes a newline."""
    for br in tag.find_all("br"):
        br.replace_with("\n")
    return tag.get_text().strip()


def parse_channel_page(html: str, channel: str) -> list[CandidateItem]:
    """
    Extract posts from a channel preview page, in page order.

    Never raises on malformed markup: posts that can't be read are skipped.
    """
    soup = BeautifulSoup(html or "", "html.parser")

    avatar = soup.select_one("header .tgme_header_info a.tgme_header_link i img")
    icon = avatar.get("src") if avatar else None
    name_tag = soup.select_one("header .tgme_header_info .tgme_header_title span")
    channel_name = name_tag.get_text().strip() if name_tag else channel

    items = []
    for post in soup.select("main section .tgme_widget_message"):
        data_post = post.get("data-post") or ""
        username, _, raw_id = data_post.partition("/")
        try:
            msg_id = int(raw_id)
        except ValueError:
            log.debug(f"[{channel}] skipping post with data-post={data_post!r}")
            continue

        title = ""
        text = ""
        text_tag = post.select_one(".js-message_text")
        if text_tag is not None:
            bold = text_tag.find("b", recursive=False)
            if bold is not None:
                title = bold.get_text().strip()
            text = _text_with_breaks(text_tag)
        else:
            title = FALLBACK_TITLE

        items.append(CandidateItem(
            feed_id=channel,
            item_id=msg_id,
            title=title,
            body=text,
            source_url=f"https://t.me/{username}/{msg_id}",
            author_or_channel=channel_name,
            icon_url=icon,
            metadata={
                "username": username,
                "app_url": f"tg://resolve?domain={username}&post={msg_id}&single",
            },
        ))
    return items


class ChannelCollector(Collector):
    def __init__(self, transport: Transport, config: Config):
        super().__init__(transport)
        self._base_url = config.channel_base_url.rstrip("/")
        self._max_items = config.once_max_size

    def name(self) -> str:
        return "telegram"

    def page_url(self, channel: str, cursor: int) -> str:
        url = f"{self._base_url}/{channel}"
        if cursor:
            url += f"?after={cursor}"
        return url

    async def collect(self, channel: str, cursor: int = 0, max_items: int | None = None) -> DeliveryBatch:
        """
        Fetch posts newer than `cursor`, oldest first, at most `max_items`.
        """
        max_items = max_items or self._max_items
        start = cursor
        batch: DeliveryBatch = []

        while True:
            url = self.page_url(channel, cursor)
            try:
                html = await self.fetch_page(channel, url)
            except FetchFailure as e:
                log.warning(f"[{channel}] abandoning page walk: {e}")
                break

            records = sorted(parse_channel_page(html, channel), key=lambda i: i.item_id)
            fresh = [i for i in records if i.item_id > cursor]
            batch.extend(fresh)
            if fresh:
                cursor = fresh[-1].item_id

            if len(fresh) < PAGE_SIZE or len(batch) >= max_items:
                break

        batch = batch[:max_items]
        log.info(f"[{channel}] {len(batch)} new posts after {start}")
        return batch
