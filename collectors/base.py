"""
Base collector interface. All collectors extend this.
"""

import logging
from abc import ABC, abstractmethod

from errors import FetchFailure
from transport import Transport

log = logging.getLogger(__name__)


class Collector(ABC):
    """
    A collector pulls candidate items from one feed type.

    Contract:
    - Pages of one feed are fetched strictly one after another.
    - Collectors never deliver and never write state. The pipeline
      commits cursors/markers only after delivery succeeds.
    - Malformed pages yield zero or partial records, never an exception.
    """

    def __init__(self, transport: Transport):
        self.transport = transport

    async def fetch_page(self, feed_id: str, url: str, headers: dict[str, str] | None = None) -> str:
        """GET one page. Raises FetchFailure on transport error or HTTP >= 400."""
        log.debug(f"[{self.name()}:{feed_id}] GET {url}")
        res = await self.transport.get(url, headers=headers)
        if res.failed:
            raise FetchFailure(feed_id, res.status, res.error, res.body)
        return res.body or ""

    @abstractmethod
    def name(self) -> str:
        """Collector name, used in logs and feed ids."""
        ...
