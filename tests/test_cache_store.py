from __future__ import annotations

from pathlib import Path

import pytest

from ai_scout.cache_store import CacheStorage
from ai_scout.models import Request, Response


def _ok(url: str, body: bytes = b"ok") -> Response:
    return Response(url=url, status=200, headers={"Content-Type": "text/html"}, body=body)


def test_match_ignores_fragment_and_returns_independent_copies() -> None:
    storage = CacheStorage()
    storage.open("v1").put(Request("https://a.example/index.html"), _ok("https://a.example/index.html"))

    first = storage.match("https://a.example/index.html#top")
    first.body = b"mutated"

    assert storage.match(Request("https://a.example/index.html")).body == b"ok"
    assert storage.match("https://a.example/other.html") is None


def test_add_all_stores_nothing_when_one_request_fails() -> None:
    storage = CacheStorage()
    cache = storage.open("v1")
    responses = {
        "https://a.example/index.html": _ok("https://a.example/index.html"),
        "https://a.example/manifest.json": Response(url="https://a.example/manifest.json", status=404),
    }

    with pytest.raises(ValueError, match="HTTP 404"):
        cache.add_all([Request(u) for u in responses], lambda r: responses[r.url])

    assert cache.keys() == []


def test_delete_and_keys() -> None:
    storage = CacheStorage()
    storage.open("old")
    storage.open("new")

    assert storage.keys() == ["old", "new"]
    assert storage.delete("old") is True
    assert storage.delete("old") is False
    assert storage.keys() == ["new"]


def test_snapshot_survives_a_new_storage_instance(tmp_path: Path) -> None:
    path = tmp_path / "sw" / "caches.json"
    storage = CacheStorage(str(path))
    storage.open("ai-scout-v1").put("https://a.example/index.html", _ok("https://a.example/index.html", "記事".encode()))
    storage.save()

    reloaded = CacheStorage(str(path))
    reloaded.load()

    cached = reloaded.match("https://a.example/index.html")
    assert cached.text() == "記事"
    assert cached.headers == {"Content-Type": "text/html"}
    assert not (tmp_path / "sw" / "caches.json.tmp").exists()


def test_load_without_snapshot_starts_empty(tmp_path: Path) -> None:
    storage = CacheStorage(str(tmp_path / "none.json"))
    storage.load()

    assert storage.keys() == []
