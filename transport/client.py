"""
Transport interface. Every network call in the system goes through this.

A call never raises for network trouble: transport-level failures come back
in `Response.error`, and HTTP statuses >= 400 come back as-is. Callers check
both explicitly.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import requests

log = logging.getLogger(__name__)

USER_AGENT = "feed-relay/0.1"


@dataclass
class Response:
    """What comes back from any transport call."""
    error: str | None
    status: int
    body: str | None

    @property
    def failed(self) -> bool:
        return self.error is not None or self.status >= 400


class Transport(ABC):
    """
    Single interface for HTTP.

    Design notes:
    - One method: `call`. Method, URL, optional headers and text body.
    - Async so feed pipelines can interleave on one event loop.
    """

    @abstractmethod
    async def call(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        body: str | None = None,
    ) -> Response:
        ...

    async def get(self, url: str, headers: dict[str, str] | None = None) -> Response:
        return await self.call("GET", url, headers=headers)

    async def post(self, url: str, body: str, headers: dict[str, str] | None = None) -> Response:
        return await self.call("POST", url, headers=headers, body=body)


class RequestsTransport(Transport):
    """requests.Session behind the async interface; the blocking wait runs off-loop."""

    def __init__(self, timeout: float = 20):
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers["User-Agent"] = USER_AGENT

    def _send(self, method, url, headers, body) -> Response:
        try:
            resp = self._session.request(
                method,
                url,
                headers=headers,
                data=body.encode("utf-8") if body is not None else None,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            log.warning(f"{method} {url} failed: {e}")
            return Response(error=str(e), status=0, body=None)
        return Response(error=None, status=resp.status_code, body=resp.text)

    async def call(self, method, url, headers=None, body=None) -> Response:
        log.debug(f"{method} {url}")
        return await asyncio.to_thread(self._send, method, url, headers, body)

    def close(self):
        self._session.close()
