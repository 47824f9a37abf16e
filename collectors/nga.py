"""
NGA thread collector. Walks an explicit page range of the thread-listing API.

The API answers {"data": [{"threads": [...]}, ...]}: one sub-group per
forum section. Threads without a `postdate` are incomplete and dropped.
Dedup is not done here; the pipeline checks each thread against the
per-item cache.
"""

import json
import logging
from collections.abc import AsyncIterator
from urllib.parse import urlencode

from collectors.base import Collector
from config.settings import Config
from errors import ParseFailure
from models import CandidateItem
from transport import Transport

log = logging.getLogger(__name__)


def page_range(start: int, end: int) -> list[int]:
    """Inclusive range, walked downwards when start > end."""
    step = -1 if start > end else 1
    return list(range(start, end + step, step))


def parse_threads_page(raw: str, feed_id: str, once_max: int = 0) -> list[CandidateItem]:
    """
    Turn one API page into candidate items. Raises ParseFailure when the
    body isn't the expected JSON shape; individual bad threads are skipped.
    """
    try:
        body = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ParseFailure(feed_id, f"invalid json: {e}") from e
    if not isinstance(body, dict) or not isinstance(body.get("data"), list):
        raise ParseFailure(feed_id, "missing data list")

    items = []
    for group in body["data"]:
        threads = group.get("threads") if isinstance(group, dict) else None
        if not isinstance(threads, list):
            continue
        if once_max:
            threads = threads[:once_max]
        for thread in threads:
            if not isinstance(thread, dict) or not thread.get("postdate"):
                continue
            try:
                tid = int(thread["tid"])
            except (KeyError, TypeError, ValueError):
                log.debug(f"[{feed_id}] skipping thread without tid: {thread!r}")
                continue
            subject = _text(thread, "subject")
            icon = _text(thread, "icon")
            items.append(CandidateItem(
                feed_id=feed_id,
                item_id=tid,
                title=subject or f"Thread {tid}",
                body=subject,
                source_url=_text(thread, "url"),
                author_or_channel=_text(thread, "fname"),
                icon_url=icon if icon.startswith("http") else None,
                created_at=_text(thread, "postdateStr"),
                updated_at=_text(thread, "lastpostStr"),
                metadata={"app_url": _text(thread, "ios_app_scheme_url")},
            ))
    return items


def _text(thread: dict, key: str) -> str:
    """String field of a thread record; anything else counts as missing."""
    value = thread.get(key)
    return value if isinstance(value, str) else ""


class ThreadCollector(Collector):
    def __init__(self, transport: Transport, config: Config):
        super().__init__(transport)
        self._api_url = config.nga_api_url
        self._fids = config.nga_fids
        self._uid = config.nga_uid
        self._cid = config.nga_cid
        self._once_max = config.nga_once_max
        self._from = config.nga_from_page
        self._to = config.nga_to_page

    def name(self) -> str:
        return "nga"

    @property
    def feed_id(self) -> str:
        return f"{self.name()}:{','.join(self._fids)}"

    def page_url(self, page: int) -> str:
        params = [("fid", fid) for fid in self._fids]
        params += [("order_by", "lastpostdesc"), ("page", page)]
        return f"{self._api_url}?{urlencode(params)}"

    async def pages(self) -> AsyncIterator[tuple[int, list[CandidateItem]]]:
        """
        Yield (page, items) for each page in range. A FetchFailure propagates
        and ends the walk; unparseable pages are logged and yield nothing.
        """
        headers = {"content-type": "application/json", "uid": self._uid, "cid": self._cid}
        for page in page_range(self._from, self._to):
            raw = await self.fetch_page(self.feed_id, self.page_url(page), headers=headers)
            try:
                items = parse_threads_page(raw, self.feed_id, self._once_max)
            except ParseFailure as e:
                log.warning(f"[{self.feed_id}] page {page}: {e}")
                items = []
            log.info(f"[{self.feed_id}] page {page}: {len(items)} threads")
            yield page, items
