import logging
import re
from datetime import datetime
from zoneinfo import ZoneInfo

CARDS_START = "<!-- NEWS_CARDS_START -->"
CARDS_END = "<!-- NEWS_CARDS_END -->"
DATA_START = "// NEWS_DATA_START"
DATA_END = "// NEWS_DATA_END"
UPDATED_START = "<!-- LAST_UPDATED -->"
UPDATED_END = "<!-- /LAST_UPDATED -->"

CARDS_RE = re.compile(re.escape(CARDS_START) + r"[\s\S]*?" + re.escape(CARDS_END))
DATA_RE = re.compile(re.escape(DATA_START) + r"[\s\S]*?" + re.escape(DATA_END))
# Single line on purpose: the timestamp never spans lines.
UPDATED_RE = re.compile(re.escape(UPDATED_START) + r".*?" + re.escape(UPDATED_END))

STAMP_TZ = ZoneInfo("Asia/Tokyo")


def format_timestamp(now: datetime | None = None) -> str:
    """Render `now` in Tokyo time as e.g. 2026/10/19 9:05:03."""
    now = now or datetime.now(tz=STAMP_TZ)
    if now.tzinfo is None:
        now = now.replace(tzinfo=STAMP_TZ)
    local = now.astimezone(STAMP_TZ)
    return f"{local.year}/{local.month}/{local.day} {local.hour}:{local.minute:02d}:{local.second:02d}"


def _replace_region(document: str, pattern: re.Pattern, replacement: str, name: str) -> str:
    # A callable replacement keeps backslashes in the rendered text literal.
    updated, count = pattern.subn(lambda _m: replacement, document, count=1)
    if not count:
        logging.warning("Marker pair for %s not found; region left unchanged", name)
    return updated


def replace_cards(document: str, cards_html: str) -> str:
    return _replace_region(document, CARDS_RE, f"{CARDS_START}\n{cards_html}\n{CARDS_END}", "news cards")


def replace_news_data(document: str, news_data_js: str) -> str:
    return _replace_region(document, DATA_RE, f"{DATA_START}\n{news_data_js}\n{DATA_END}", "news data")


def replace_last_updated(document: str, stamp: str) -> str:
    return _replace_region(document, UPDATED_RE, f"{UPDATED_START}{stamp}{UPDATED_END}", "last updated")


def splice(document: str, cards_html: str, news_data_js: str, stamp: str) -> str:
    document = replace_cards(document, cards_html)
    document = replace_news_data(document, news_data_js)
    return replace_last_updated(document, stamp)


def update_document(path: str, cards_html: str, news_data_js: str, stamp: str) -> str:
    """Rewrite the three marker regions of the document at `path` in place.

    Line endings outside those regions are written back as they were read.
    """
    with open(path, "r", encoding="utf-8", newline="") as f:
        document = f.read()
    document = splice(document, cards_html, news_data_js, stamp)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(document)
    return document
