"""
Error types. A closed set, each carrying the fields needed to diagnose it.

- FetchFailure: a feed source returned a transport error or HTTP >= 400
- ParseFailure: a page body could not be parsed (always absorbed locally)
- DispatchFailure: the push gateway rejected the request or was unreachable
- ConfigurationError: a required run parameter is missing or invalid
"""

# Raw bodies can be whole HTML pages; keep enough to diagnose, not the lot.
BODY_FRAGMENT_CHARS = 300


def _fragment(body: str | None) -> str:
    if not body:
        return ""
    return body[:BODY_FRAGMENT_CHARS]


class RelayError(Exception):
    """Base for every error this package raises on purpose."""


class FetchFailure(RelayError):
    def __init__(self, feed_id: str, status: int, error: str | None = None, body: str | None = None):
        self.feed_id = feed_id
        self.status = status
        self.error = error
        self.body = _fragment(body)
        super().__init__(f"fetch failed for {feed_id}: error={error}, status={status}, body={self.body!r}")


class ParseFailure(RelayError):
    def __init__(self, feed_id: str, detail: str):
        self.feed_id = feed_id
        self.detail = detail
        super().__init__(f"unparseable page for {feed_id}: {detail}")


class DispatchFailure(RelayError):
    def __init__(self, feed_id: str, status: int, error: str | None = None, body: str | None = None):
        self.feed_id = feed_id
        self.status = status
        self.error = error
        self.body = _fragment(body)
        super().__init__(f"push failed for {feed_id}: error={error}, status={status}, body={self.body!r}")


class ConfigurationError(RelayError):
    pass
