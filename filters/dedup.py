"""
Per-item dedup for feeds without a numeric cursor.
"""

import logging

from models import CandidateItem
from storage.db import ItemCache

log = logging.getLogger(__name__)


def filter_delivered(items: list[CandidateItem], cache: ItemCache, force: bool = False) -> list[CandidateItem]:
    """Keep items with no delivered marker. `force` keeps everything."""
    if force:
        return list(items)
    fresh = []
    for item in items:
        if cache.contains(item.item_id):
            log.debug(f"[{item.feed_id}] skip cached {cache.key(item.item_id)}: {item.title}")
            continue
        fresh.append(item)
    return fresh
