"""
Core data types. No behavior, just shapes.
"""

from dataclasses import dataclass, field
from enum import Enum

# Push providers cap payload size; bodies are cut to stay inside it.
MAX_PUSH_BODY = 1024

FALLBACK_TITLE = "Please open Telegram to view this post"


class Provider(Enum):
    TELEGRAM = "telegram"
    APPLE = "apple"
    BARK = "bark"


def derive_title(title: str | None, body: str | None, fallback: str = FALLBACK_TITLE) -> str:
    """Explicit title, else the body's first non-blank line, else the fallback."""
    if isinstance(title, str) and title.strip():
        return title.strip()
    if not isinstance(body, str):
        body = ""
    for line in body.splitlines():
        if line.strip():
            return line.strip()
    return fallback


@dataclass
class CandidateItem:
    """A single item extracted from a feed page."""
    feed_id: str
    item_id: int            # dedup key, increasing within a feed
    title: str
    body: str               # plain text
    source_url: str
    author_or_channel: str  # channel display name or forum name
    icon_url: str | None = None
    created_at: str = ""    # opaque, as the source renders it
    updated_at: str = ""
    metadata: dict = field(default_factory=dict)  # feed-specific extras

    def __post_init__(self):
        self.title = derive_title(self.title, self.body)

    @property
    def push_body(self) -> str:
        """Body text as it goes out to push providers."""
        return (self.body or self.title)[:MAX_PUSH_BODY]

    def __repr__(self) -> str:
        return f"CandidateItem({self.feed_id}, {self.item_id}, {self.title[:40]})"


# Ordered items of one feed, capped per run.
DeliveryBatch = list[CandidateItem]


@dataclass
class FeedCursor:
    feed_id: str
    last_item_id: int


@dataclass
class PushPayload:
    """One provider-tagged message inside a push gateway request."""
    provider: Provider
    body: dict

    def to_dict(self) -> dict:
        return {self.provider.value: self.body}


@dataclass
class RunResult:
    """Outcome of one feed's pipeline."""
    feed_id: str
    delivered: int = 0
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RunReport:
    results: list[RunResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results)

    @property
    def delivered(self) -> int:
        return sum(r.delivered for r in self.results)

    @property
    def failed(self) -> list[RunResult]:
        return [r for r in self.results if not r.ok]
