from __future__ import annotations

import pytest
import requests

from ai_scout import newsapi
from ai_scout.models import Article
from conftest import FakeAPIResponse, FakeNewsSession, error_payload, ok_payload


def test_fetch_news_sends_search_params_and_parses_articles() -> None:
    session = FakeNewsSession({"en": ok_payload("OpenAI ships a model", "Gemini update")})

    articles = newsapi.fetch_news("AI OpenAI", "en", "secret", session=session)

    assert [a.title for a in articles] == ["OpenAI ships a model", "Gemini update"]
    assert articles[0].source_name == "Example Wire"
    assert articles[0].published_at == "2026-10-18T20:30:00Z"
    call = session.calls[0]
    assert call["url"] == "https://newsapi.org/v2/everything"
    assert call["params"] == {
        "q": "AI OpenAI",
        "language": "en",
        "sortBy": "publishedAt",
        "pageSize": "5",
        "apiKey": "secret",
    }
    assert call["timeout"] == 20.0


def test_fetch_news_missing_key_is_sent_empty_and_fails_via_api_error() -> None:
    session = FakeNewsSession({"ja": error_payload("Your API key is missing.")})

    with pytest.raises(newsapi.NewsAPIError, match="API key is missing"):
        newsapi.fetch_news("AI 日本", "ja", None, session=session)

    assert session.calls[0]["params"]["apiKey"] == ""


def test_fetch_news_error_without_message_uses_generic_text() -> None:
    session = FakeNewsSession({"en": FakeAPIResponse({"status": "error"})})

    with pytest.raises(newsapi.NewsAPIError, match="API error"):
        newsapi.fetch_news("AI", "en", "k", session=session)


def test_fetch_news_wraps_transport_and_json_errors() -> None:
    offline = FakeNewsSession({"en": requests.ConnectionError("connection refused")})
    with pytest.raises(newsapi.NewsAPIError, match="connection refused"):
        newsapi.fetch_news("AI", "en", "k", session=offline)

    garbled = FakeNewsSession({"en": FakeAPIResponse(ValueError("not json"), status_code=502)})
    with pytest.raises(newsapi.NewsAPIError, match="HTTP 502"):
        newsapi.fetch_news("AI", "en", "k", session=garbled)


def test_fetch_news_honours_timeout_env(monkeypatch) -> None:
    monkeypatch.setenv("NEWS_API_TIMEOUT", "3.5")
    session = FakeNewsSession({"en": ok_payload()})

    assert newsapi.fetch_news("AI", "en", "k", session=session) == []
    assert session.calls[0]["timeout"] == 3.5


def test_article_from_api_tolerates_missing_source() -> None:
    article = Article.from_api({"title": "t", "source": None})

    assert article.source_name is None
    assert article.url is None
