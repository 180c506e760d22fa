from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Query:
    id: str
    q: str
    lang: str


QUERIES = (
    Query(id="global", q="AI artificial intelligence OpenAI Google Gemini Claude", lang="en"),
    Query(id="japan", q="AI 人工知能 生成AI 日本", lang="ja"),
)


@dataclass
class Article:
    title: Optional[str]
    description: Optional[str]
    content: Optional[str]
    source_name: Optional[str]
    url: Optional[str]
    published_at: Optional[str]  # ISO 8601 string as returned by the API

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "Article":
        source = item.get("source") or {}
        return cls(
            title=item.get("title"),
            description=item.get("description"),
            content=item.get("content"),
            source_name=source.get("name") if isinstance(source, dict) else None,
            url=item.get("url"),
            published_at=item.get("publishedAt"),
        )


@dataclass
class FormattedArticle:
    card_id: str
    color: str
    badge: str
    title: str
    desc: str
    source: str
    url: str
    pub_date: str


@dataclass(frozen=True)
class Request:
    url: str
    method: str = "GET"


@dataclass
class Response:
    url: str
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def clone(self) -> "Response":
        return Response(url=self.url, status=self.status, headers=dict(self.headers), body=self.body)

    def text(self) -> str:
        return self.body.decode("utf-8")
