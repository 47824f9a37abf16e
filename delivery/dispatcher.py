"""
Push gateway delivery.

One POST of {"messages": [...]} per unit of work. A unit succeeds iff the
transport reports no error and the status is below 400.
"""

import json
import logging
from collections.abc import Callable

from config.settings import Config
from delivery.payloads import Notification, build_payloads
from errors import DispatchFailure
from models import CandidateItem, PushPayload
from transport import Transport

log = logging.getLogger(__name__)

Renderer = Callable[[CandidateItem, Config], Notification]


class Dispatcher:
    def __init__(self, transport: Transport, config: Config):
        self._transport = transport
        self._config = config

    def payloads_for(self, items: list[CandidateItem], render: Renderer) -> list[PushPayload]:
        payloads = []
        for item in items:
            payloads.extend(build_payloads(render(item, self._config), self._config))
        return payloads

    async def submit(self, feed_id: str, payloads: list[PushPayload]):
        """POST payloads in one request. Raises DispatchFailure."""
        if not payloads:
            return
        body = json.dumps({"messages": [p.to_dict() for p in payloads]}, ensure_ascii=False)
        log.debug(f"[{feed_id}] push body: {body}")

        res = await self._transport.post(
            self._config.push_url, body, headers={"content-type": "application/json"}
        )
        log.debug(f"[{feed_id}] push response: {res.status} {res.body}")
        if res.failed:
            raise DispatchFailure(feed_id, res.status, res.error, res.body)
        log.info(f"[{feed_id}] pushed {len(payloads)} messages")

    async def deliver(self, feed_id: str, items: list[CandidateItem], render: Renderer):
        """Render and push a whole batch as one request."""
        await self.submit(feed_id, self.payloads_for(items, render))
