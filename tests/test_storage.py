"""
Tests for the key/value store and its cursor/cache views.
"""

from storage.db import CursorStore, ItemCache, Storage


def test_kv_read_write(storage):
    assert storage.read("missing") is None
    storage.write("k", "v1")
    storage.write("k", "v2")
    assert storage.read("k") == "v2"


def test_values_survive_reopen(tmp_path):
    path = tmp_path / "nested" / "relay.db"
    first = Storage(path)
    CursorStore(first).write("alpha", 42)
    ItemCache(first).mark(7)
    first.close()

    second = Storage(path)
    try:
        assert CursorStore(second).read("alpha") == 42
        assert ItemCache(second).contains(7)
    finally:
        second.close()


class TestCursorStore:
    def test_absent_cursor(self, storage):
        assert CursorStore(storage).read("alpha") is None

    def test_cursor_never_moves_backwards(self, storage):
        cursors = CursorStore(storage)
        assert cursors.write("alpha", 50) == 50
        assert cursors.write("alpha", 40) == 50
        assert cursors.read("alpha") == 50
        assert cursors.write("alpha", 60) == 60

    def test_feeds_are_independent(self, storage):
        cursors = CursorStore(storage)
        cursors.write("alpha", 5)
        cursors.write("bravo", 9)
        assert {(c.feed_id, c.last_item_id) for c in cursors.all()} == {("alpha", 5), ("bravo", 9)}

    def test_corrupt_cursor_reads_as_absent(self, storage):
        storage.write("TelegramLastMessageId-alpha", "not-a-number")
        assert CursorStore(storage).read("alpha") is None


class TestItemCache:
    def test_mark_and_contains(self, storage):
        cache = ItemCache(storage)
        assert not cache.contains(501)
        cache.mark(501)
        assert cache.contains(501)
        assert storage.read("nga-threads-501") == "nga-threads-501"

    def test_count_ignores_cursors(self, storage):
        cache = ItemCache(storage)
        cache.mark(1)
        cache.mark(2)
        CursorStore(storage).write("alpha", 3)
        assert cache.count() == 2
