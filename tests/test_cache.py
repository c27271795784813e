import json

from request_dashboard.cache import CACHE_KEY, CacheStore, is_fresh
from request_dashboard.models import CacheEntry

NOW = 1_700_000_000_000


def test_write_then_read_uses_local_storage_layout(tmp_path):
    path = tmp_path / "storage.json"
    store = CacheStore(path)

    store.write(CacheEntry(captured_at=NOW, rows=[{"ID": "a", "Status": "new"}]))

    storage = json.loads(path.read_text(encoding="utf-8"))
    stored = json.loads(storage[CACHE_KEY])
    assert stored == {"capturedAt": NOW, "rows": [{"ID": "a", "Status": "new"}]}

    entry = store.read()
    assert entry is not None
    assert entry.captured_at == NOW
    assert entry.rows == [{"ID": "a", "Status": "new"}]


def test_write_overwrites_entry_and_keeps_other_keys(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")
    store = CacheStore(path)

    store.write(CacheEntry(captured_at=1, rows=[{"ID": "old"}]))
    store.write(CacheEntry(captured_at=2, rows=[{"ID": "new"}]))

    storage = json.loads(path.read_text(encoding="utf-8"))
    assert set(storage) == {"theme", CACHE_KEY}
    assert store.read().rows == [{"ID": "new"}]


def test_read_missing_file_returns_none(tmp_path):
    assert CacheStore(tmp_path / "absent.json").read() is None


def test_read_corrupt_file_returns_none(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("{not json", encoding="utf-8")

    assert CacheStore(path).read() is None


def test_read_entry_with_wrong_shape_returns_none(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text(
        json.dumps({CACHE_KEY: json.dumps({"timestamp": NOW, "data": []})}),
        encoding="utf-8",
    )

    assert CacheStore(path).read() is None


def test_write_replaces_corrupt_storage(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("[1, 2", encoding="utf-8")
    store = CacheStore(path)

    store.write(CacheEntry(captured_at=NOW, rows=[]))

    assert store.read().captured_at == NOW


def test_clear_removes_entry(tmp_path):
    store = CacheStore(tmp_path / "storage.json")
    store.write(CacheEntry(captured_at=NOW, rows=[]))

    assert store.clear() is True
    assert store.read() is None
    assert store.clear() is False


def test_default_path_honours_env(tmp_path, monkeypatch):
    monkeypatch.setenv("DASHBOARD_CACHE_PATH", str(tmp_path / "custom.json"))
    assert CacheStore().path == tmp_path / "custom.json"


def test_freshness_boundary():
    five_minutes = 5 * 60 * 1000
    stale = CacheEntry(captured_at=NOW - five_minutes - 1, rows=[])
    fresh = CacheEntry(captured_at=NOW - (4 * 60 + 59) * 1000, rows=[])
    exactly = CacheEntry(captured_at=NOW - five_minutes, rows=[])

    assert not is_fresh(stale, NOW)
    assert is_fresh(fresh, NOW)
    assert not is_fresh(exactly, NOW)
