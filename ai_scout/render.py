import html
import logging
from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import urlparse
from zoneinfo import ZoneInfo

from bs4 import BeautifulSoup

from .models import Article, FormattedArticle

COLORS = ("#06b6d4", "#10b981", "#8b5cf6", "#ef4444", "#f59e0b")
BADGES = ("🌐 GLOBAL", "🤖 AI NEWS", "💡 TECH", "⚠️ RESEARCH", "🇯🇵 JAPAN")

TITLE_MAX = 60
DESC_MAX = 120

TITLE_FALLBACK = "タイトル不明"
DESC_FALLBACK = "詳細はソースをご確認ください。"
SOURCE_FALLBACK = "News Source"
DATE_FALLBACK = "最新"
URL_FALLBACK = "#"

DISPLAY_TZ = ZoneInfo("Asia/Tokyo")


def escape_html(text: str) -> str:
    return html.escape(text, quote=True)


def escape_js(text: str) -> str:
    """Escape text for a single-quoted JS string literal."""
    return (
        text.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\r", "\\r")
        .replace("\n", "\\n")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
        .replace("<", "\\x3C")
    )


def _strip_markup(text: str) -> str:
    # NewsAPI descriptions occasionally embed list/paragraph tags or entities
    if "<" not in text:
        return html.unescape(text)
    return BeautifulSoup(text, "html.parser").get_text()


def parse_published(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logging.debug("Unable to parse publishedAt: %s", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def safe_url(url: Optional[str]) -> str:
    """Only http(s) links reach the page; anything else becomes "#"."""
    url = (url or "").strip()
    try:
        scheme = urlparse(url).scheme.lower()
    except ValueError:
        return URL_FALLBACK
    if scheme not in ("http", "https"):
        return URL_FALLBACK
    return url


def format_pub_date(value: Optional[str]) -> str:
    parsed = parse_published(value)
    if parsed is None:
        return DATE_FALLBACK
    local = parsed.astimezone(DISPLAY_TZ)
    return f"{local.month}月{local.day}日"


def format_article(article: Article, index: int) -> FormattedArticle:
    """Turn an API article into the view used by both rendered fragments.

    Colour and badge depend only on ``index``, the position in the final
    list, and wrap around the palettes.
    """
    title = (article.title or TITLE_FALLBACK)[:TITLE_MAX]
    desc = _strip_markup(article.description or article.content or DESC_FALLBACK)[:DESC_MAX]
    return FormattedArticle(
        card_id=f"news_{index}",
        color=COLORS[index % len(COLORS)],
        badge=BADGES[index % len(BADGES)],
        title=escape_html(title),
        desc=escape_html(desc),
        source=escape_html(article.source_name or SOURCE_FALLBACK),
        url=safe_url(article.url),
        pub_date=format_pub_date(article.published_at),
    )


CARD_TEMPLATE = """<div class="news-card" onclick="openModal('{a.card_id}')">
    <div class="card-accent" style="background:{a.color}"></div>
    <div class="card-head">
      <div class="card-meta">
        <div class="card-badge" style="background:rgba(255,255,255,.08);color:{a.color}">{a.badge}</div>
        <span class="card-date">{a.pub_date}</span>
      </div>
      <div class="card-title">{a.title}</div>
      <div class="card-preview">{a.desc}</div>
    </div>
    <div class="card-foot">
      <div class="tags"><span class="tag">#AIニュース</span><span class="tag">#{a.source}</span></div>
      <div class="tap-hint">詳細<svg class="chev" viewBox="0 0 24 24" fill="none" stroke="currentColor" stroke-width="2.5"><path d="M9 18l6-6-6-6"/></svg></div>
    </div>
  </div>"""


def build_card_html(a: FormattedArticle) -> str:
    return CARD_TEMPLATE.format(a=a)


def build_cards_html(articles: List[FormattedArticle]) -> str:
    return "\n".join(build_card_html(a) for a in articles)


def _js_entry(a: FormattedArticle) -> str:
    desc = escape_js(a.desc)
    return (
        f"  {a.card_id}: {{\n"
        f"    color: '{a.color}',\n"
        f"    badge: '{a.badge}',\n"
        f"    date: '{escape_js(a.pub_date)}',\n"
        f"    title: '{escape_js(a.title)}',\n"
        f"    stats: [],\n"
        f"    highlight: '{desc}',\n"
        f"    body: '<p>{desc}</p>',\n"
        f"    source: '{escape_js(a.source)}',\n"
        f"    sourceUrl: '{escape_js(a.url)}',\n"
        f"    tags: ['#AIニュース'],\n"
        f"  }}"
    )


def build_news_data_js(articles: List[FormattedArticle]) -> str:
    entries = ",\n".join(_js_entry(a) for a in articles)
    return f"const NEWS = {{\n{entries}\n}};"
