import logging
import os
from typing import List, Optional

import requests

from .http_session import create_session
from .models import Article

EVERYTHING_URL = "https://newsapi.org/v2/everything"
PAGE_SIZE = 5


class NewsAPIError(RuntimeError):
    """Raised when a NewsAPI query fails at the transport or API level."""


def _timeout() -> float:
    raw = os.getenv("NEWS_API_TIMEOUT")
    if not raw:
        return 20.0
    return float(raw)


def fetch_news(
    query: str,
    lang: str,
    api_key: Optional[str],
    session: Optional[requests.Session] = None,
) -> List[Article]:
    """Run one search against the NewsAPI `everything` endpoint.

    NewsAPI answers errors (bad key, rate limit) with a JSON body whose
    status is not "ok", so the body is checked before the HTTP status.
    """
    session = session or create_session()
    params = {
        "q": query,
        "language": lang,
        "sortBy": "publishedAt",
        "pageSize": str(PAGE_SIZE),
        "apiKey": api_key or "",
    }
    try:
        resp = session.get(EVERYTHING_URL, params=params, timeout=_timeout())
    except requests.RequestException as e:
        raise NewsAPIError(str(e)) from e
    try:
        data = resp.json()
    except ValueError as e:
        raise NewsAPIError(f"Invalid JSON from NewsAPI (HTTP {resp.status_code})") from e

    if not isinstance(data, dict) or data.get("status") != "ok":
        message = data.get("message") if isinstance(data, dict) else None
        raise NewsAPIError(message or "API error")

    articles: List[Article] = []
    for item in data.get("articles") or []:
        if isinstance(item, dict):
            articles.append(Article.from_api(item))
    logging.debug("NewsAPI %r (%s) returned %d articles", query, lang, len(articles))
    return articles
