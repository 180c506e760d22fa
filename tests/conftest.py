from __future__ import annotations

from pathlib import Path

import pytest

HOST_DOCUMENT = """<!DOCTYPE html>
<html lang="ja">
<body>
  <p class="updated">最終更新: <!-- LAST_UPDATED -->2026/1/1 0:00:00<!-- /LAST_UPDATED --></p>
  <div class="news-list">
<!-- NEWS_CARDS_START -->
  <div class="news-card">old card</div>
<!-- NEWS_CARDS_END -->
  </div>
  <script>
// NEWS_DATA_START
const NEWS = { old: {} };
// NEWS_DATA_END
  function openModal(id) { return NEWS[id]; }
  </script>
</body>
</html>
"""


class FakeAPIResponse:
    def __init__(self, payload, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeNewsSession:
    """Stands in for requests.Session; answers by the `language` param."""

    def __init__(self, by_lang: dict) -> None:
        self.by_lang = by_lang
        self.calls: list[dict] = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": dict(params or {}), "timeout": timeout})
        result = self.by_lang[params["language"]]
        if isinstance(result, BaseException):
            raise result
        return result


def api_article(title, **overrides) -> dict:
    item = {
        "title": title,
        "description": f"About {title}",
        "content": None,
        "source": {"id": None, "name": "Example Wire"},
        "url": f"https://news.example/{abs(hash(title))}",
        "publishedAt": "2026-10-18T20:30:00Z",
    }
    item.update(overrides)
    return item


def ok_payload(*titles) -> FakeAPIResponse:
    return FakeAPIResponse({"status": "ok", "totalResults": len(titles), "articles": [api_article(t) for t in titles]})


def error_payload(message: str = "Your API key is missing.") -> FakeAPIResponse:
    return FakeAPIResponse({"status": "error", "code": "apiKeyMissing", "message": message}, status_code=401)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("NEWS_DRY_RUN", "NEWS_API_RETRIES", "NEWS_API_TIMEOUT", "NEWS_HTML_PATH", "NEWS_API_KEY"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def host_document(tmp_path: Path) -> Path:
    path = tmp_path / "index.html"
    path.write_text(HOST_DOCUMENT, encoding="utf-8")
    return path
