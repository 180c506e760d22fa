import logging
import os
from typing import Iterable, List, Optional

import requests

from .http_session import create_session
from .inject import format_timestamp, update_document
from .models import QUERIES, Article, Query
from .newsapi import NewsAPIError, fetch_news
from .render import build_cards_html, build_news_data_js, format_article

PER_QUERY_LIMIT = 3
MAX_ARTICLES = 5
DEFAULT_HTML_PATH = "index.html"


def _env_truthy(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def collect_articles(
    queries: Iterable[Query],
    api_key: Optional[str],
    session: Optional[requests.Session] = None,
) -> List[Article]:
    session = session or create_session()
    collected: List[Article] = []
    for query in queries:
        try:
            articles = fetch_news(query.q, query.lang, api_key, session=session)
        except NewsAPIError as e:
            logging.warning("%s: fetch failed: %s", query.id, e)
            continue
        logging.info("%s: %d articles fetched", query.id, len(articles))
        collected.extend(articles[:PER_QUERY_LIMIT])
    return collected


def dedupe_articles(articles: Iterable[Article], limit: int = MAX_ARTICLES) -> List[Article]:
    seen: set[Optional[str]] = set()
    unique: List[Article] = []
    for article in articles:
        if article.title in seen:
            continue
        seen.add(article.title)
        unique.append(article)
    return unique[:limit]


def run(html_path: str, api_key: Optional[str], session: Optional[requests.Session] = None) -> int:
    """Fetch, render and inject; returns the number of articles written."""
    logging.info("Fetching AI news from NewsAPI...")
    articles = dedupe_articles(collect_articles(QUERIES, api_key, session=session))
    if not articles:
        logging.info("No articles fetched; leaving %s untouched.", html_path)
        return 0

    formatted = [format_article(a, i) for i, a in enumerate(articles)]
    cards_html = build_cards_html(formatted)
    news_data_js = build_news_data_js(formatted)
    stamp = format_timestamp()

    if _env_truthy("NEWS_DRY_RUN"):
        logging.info("[DRY_RUN] Would update %s with %d articles:\n%s", html_path, len(formatted), cards_html)
        return len(formatted)

    update_document(html_path, cards_html, news_data_js, stamp)
    logging.info("Updated %s (%d articles)", html_path, len(formatted))
    logging.info("Last updated: %s", stamp)
    return len(formatted)


def main() -> int:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

    html_path = os.getenv("NEWS_HTML_PATH", DEFAULT_HTML_PATH)
    api_key = os.getenv("NEWS_API_KEY")
    try:
        run(html_path, api_key)
    except Exception:
        logging.exception("News update failed")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
