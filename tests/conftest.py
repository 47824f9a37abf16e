"""
Shared fixtures: an in-memory Transport, a fake channel site and a fake
push gateway. No test touches the network.
"""

import json
import sys
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import parse_qs, urlparse

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import BarkCredentials, Config
from storage.db import Storage
from transport import Response, Transport

PUSH_URL = "https://push.test/api/notifications/push/v3"
CHANNEL_BASE = "https://t.me/s"
NGA_API = "https://nga.test/api/nga/threads/v2"


@dataclass
class Call:
    method: str
    url: str
    headers: dict | None
    body: str | None


class FakeTransport(Transport):
    """Routes by URL prefix. Handlers are Responses or callables(url, body)."""

    def __init__(self):
        self.calls: list[Call] = []
        self._routes = []
        self.closed = False

    def route(self, prefix, handler):
        self._routes.append((prefix, handler))
        return handler

    async def call(self, method, url, headers=None, body=None):
        self.calls.append(Call(method, url, headers, body))
        for prefix, handler in self._routes:
            if url.startswith(prefix):
                if isinstance(handler, Response):
                    return handler
                return handler(url, body)
        return Response(error="connection refused", status=0, body=None)

    def calls_to(self, prefix) -> list[Call]:
        return [c for c in self.calls if c.url.startswith(prefix)]

    def close(self):
        self.closed = True


def channel_page(channel, posts, name="Test Channel", avatar="https://cdn.test/avatar.jpg") -> str:
    """posts: list of (id, inner_html | None). None = media-only post."""
    header = (
        '<header><div><div class="tgme_header_info">'
        f'<a class="tgme_header_link"><i><img src="{avatar}"></i>'
        f'<div class="tgme_header_title_wrap"><div class="tgme_header_title"><span>{name}</span>'
        "</div></div></a></div></div></header>"
    )
    messages = []
    for post_id, text in posts:
        inner = "" if text is None else (
            f'<div class="tgme_widget_message_text js-message_text">{text}</div>'
        )
        messages.append(
            f'<div class="tgme_widget_message_wrap"><div class="tgme_widget_message" '
            f'data-post="{channel}/{post_id}">{inner}</div></div>'
        )
    return f"<html><body>{header}<main><div><section>{''.join(messages)}</section></div></main></body></html>"


class ChannelSite:
    """Serves ?after=N like t.me/s: the next 20 posts after N, oldest first."""

    def __init__(self, channel, ids, texts=None, name="Test Channel", page_size=20):
        self.channel = channel
        self.ids = sorted(ids)
        self.texts = texts or {}
        self.name = name
        self.page_size = page_size
        self.requests = 0

    def __call__(self, url, body=None):
        self.requests += 1
        after = int(parse_qs(urlparse(url).query).get("after", ["0"])[0])
        page = [i for i in self.ids if i > after][:self.page_size]
        posts = [(i, self.texts.get(i, f"post {i} from {self.channel}")) for i in page]
        return Response(None, 200, channel_page(self.channel, posts, name=self.name))


class PushGateway:
    """Records every message list; fails requests matching `fail_when`."""

    def __init__(self, fail_when=None, status=200):
        self.requests: list[list[dict]] = []
        self.fail_when = fail_when
        self.status = status

    def __call__(self, url, body):
        messages = json.loads(body)["messages"]
        self.requests.append(messages)
        if self.fail_when and self.fail_when(messages):
            return Response(None, 500, '{"detail": "internal error"}')
        return Response(None, self.status, '{"ok": true}')

    @property
    def messages(self) -> list[dict]:
        return [m for req in self.requests for m in req]

    def bark_bodies(self) -> list[str]:
        return [m["bark"]["body"] for m in self.messages if "bark" in m]


def make_config(tmp_path, **overrides) -> Config:
    base = dict(
        db_path=tmp_path / "relay.db",
        push_url=PUSH_URL,
        channel_base_url=CHANNEL_BASE,
        nga_api_url=NGA_API,
        channels=[],
        nga_fids=[],
        once_max_size=10,
        level="passive",
        group="Telegram",
        icon="",
        active_keywords=[],
        block_keywords=[],
        force=False,
        apple=None,
        bark=BarkCredentials("bark-key"),
        telegram=None,
    )
    base.update(overrides)
    return Config(**base)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def storage(tmp_path):
    s = Storage(tmp_path / "relay.db")
    yield s
    s.close()
