"""
Tests for the command line entry point:
- exit status 0 when every feed succeeds, 1 when any fails
- exit status 2 on a configuration error, before any feed is touched
"""

import json
import sys

import pytest

import main
from storage import CursorStore, Storage

from conftest import CHANNEL_BASE, NGA_API, PUSH_URL, ChannelSite, FakeTransport, PushGateway


def _write_config(tmp_path, **overrides):
    data = {
        "db_path": str(tmp_path / "relay.db"),
        "push_url": PUSH_URL,
        "channel_base_url": CHANNEL_BASE,
        "nga_api_url": NGA_API,
        "channels": ["alpha"],
        "nga_fids": [],
        "bark": {"device_key": "bark-key"},
        "apple": None,
        "telegram": None,
    }
    data.update(overrides)
    path = tmp_path / "relay.json"
    path.write_text(json.dumps(data))
    return path


@pytest.fixture
def fake(monkeypatch):
    transport = FakeTransport()
    created = []

    def factory(timeout):
        created.append(timeout)
        return transport

    monkeypatch.setattr(main, "RequestsTransport", factory)
    transport.created = created
    return transport


def _cli(monkeypatch, *argv) -> int | None:
    monkeypatch.setattr(sys, "argv", ["feed-relay", *argv])
    with pytest.raises(SystemExit) as exc:
        main.cli()
    return exc.value.code


def test_successful_run_exits_zero(monkeypatch, tmp_path, fake):
    fake.route(f"{CHANNEL_BASE}/alpha", ChannelSite("alpha", [1, 2, 3]))
    gateway = fake.route(PUSH_URL, PushGateway())
    path = _write_config(tmp_path)

    assert _cli(monkeypatch, "run", "--config", str(path)) == 0

    assert len(gateway.requests) == 1
    assert fake.closed
    storage = Storage(tmp_path / "relay.db")
    try:
        assert CursorStore(storage).read("alpha") == 3
    finally:
        storage.close()


def test_failed_feed_exits_one(monkeypatch, tmp_path, fake):
    fake.route(f"{CHANNEL_BASE}/alpha", ChannelSite("alpha", [1, 2, 3]))
    fake.route(PUSH_URL, PushGateway(status=500))
    path = _write_config(tmp_path)

    assert _cli(monkeypatch, "channels", "--config", str(path)) == 1
    assert fake.closed


def test_configuration_error_exits_two_without_fetching(monkeypatch, tmp_path, fake):
    path = _write_config(tmp_path, channels=[])

    assert _cli(monkeypatch, "run", "--config", str(path)) == 2

    assert fake.calls == []
    assert fake.created == []


def test_bad_config_value_exits_two(monkeypatch, tmp_path, fake):
    path = _write_config(tmp_path, force="sometimes")

    assert _cli(monkeypatch, "threads", "--config", str(path)) == 2
    assert fake.calls == []


def test_no_command_exits_one(monkeypatch):
    assert _cli(monkeypatch) == 1


def test_cursors_lists_stored_cursors(monkeypatch, tmp_path, fake, capsys):
    path = _write_config(tmp_path)
    storage = Storage(tmp_path / "relay.db")
    CursorStore(storage).write("alpha", 42)
    storage.close()

    monkeypatch.setattr(sys, "argv", ["feed-relay", "cursors", "--config", str(path)])
    main.cli()

    assert "alpha: 42" in capsys.readouterr().out
    assert fake.calls == []
