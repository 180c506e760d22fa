import logging
from typing import Any, Callable, Dict, Optional
from urllib.parse import urljoin

import requests

from .cache_store import CacheStorage
from .events import (
    Clients,
    ExtendableEvent,
    FetchEvent,
    NotificationEvent,
    PushEvent,
    Registration,
    SyncEvent,
)
from .http_session import create_session
from .models import Request, Response

CACHE_NAME = "ai-scout-v1"
CACHE_URLS = ("./index.html", "./manifest.json")
DOCUMENT_URL = "./index.html"
START_URL = "./"

NEWS_SYNC_TAG = "news-sync"
PERIODIC_SYNC_TAG = "daily-news-update"

NOTIFICATION_DEFAULTS = {
    "title": "🤖 AI Scout",
    "body": "新しいAIニュースが届きました！",
    "tag": "ai-news",
}
NOTIFICATION_ICON = (
    'data:image/svg+xml,<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 192 192">'
    '<rect width="192" height="192" rx="40" fill="%23070b14"/>'
    '<text y="130" x="96" font-size="120" text-anchor="middle">🤖</text></svg>'
)
NOTIFICATION_BADGE = (
    'data:image/svg+xml,<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 96 96">'
    '<rect width="96" height="96" rx="20" fill="%233b82f6"/>'
    '<text y="68" x="48" font-size="60" text-anchor="middle">🤖</text></svg>'
)
NOTIFICATION_VIBRATE = [100, 50, 100]


class NetworkError(RuntimeError):
    """Raised when a request cannot reach the network at all."""


class WorkerStateError(RuntimeError):
    pass


def network_fetch(request: Request, session: Optional[requests.Session] = None) -> Response:
    """Plain network fetch. HTTP error statuses are responses, not failures."""
    session = session or create_session()
    try:
        resp = session.request(request.method, request.url, timeout=20)
    except requests.RequestException as e:
        raise NetworkError(f"{request.method} {request.url} failed: {e}") from e
    return Response(url=resp.url, status=resp.status_code, headers=dict(resp.headers), body=resp.content)


def background_news_sync() -> None:
    # Fresh news arrives by push from the scheduled fetch job, not from here.
    logging.info("[SW] background news sync")


class ServiceWorker:
    """Background agent for the static news page.

    Each handler runs to completion for one event; nothing but the cache
    storage carries over from one event to the next.
    """

    def __init__(
        self,
        scope: str,
        caches: Optional[CacheStorage] = None,
        fetch: Optional[Callable[[Request], Response]] = None,
        clients: Optional[Clients] = None,
        registration: Optional[Registration] = None,
    ) -> None:
        self.scope = scope
        self.caches = caches or CacheStorage()
        self.fetch = fetch or network_fetch
        self.clients = clients or Clients()
        self.registration = registration or Registration()
        self.state = "parsed"
        self.skipped_waiting = False
        self._handlers: Dict[str, Callable[[Any], None]] = {
            "install": self.on_install,
            "activate": self.on_activate,
            "fetch": self.on_fetch,
            "push": self.on_push,
            "notificationclick": self.on_notification_click,
            "sync": self.on_sync,
            "periodicsync": self.on_periodic_sync,
        }

    def resolve(self, url: str) -> Request:
        return Request(url=urljoin(self.scope, url))

    def skip_waiting(self) -> None:
        self.skipped_waiting = True

    def dispatch(self, event: ExtendableEvent) -> Optional[Response]:
        handler = self._handlers.get(event.type)
        if handler is None:
            raise ValueError(f"Unsupported worker event: {event.type}")
        if event.type == "fetch" and self.state != "activated":
            raise WorkerStateError(f"Cannot serve fetch while {self.state}")

        if event.type == "install":
            self.state = "installing"
        elif event.type == "activate":
            self.state = "activating"
        try:
            handler(event)
            self._drain(event)
        except Exception:
            if event.type == "install":
                self.state = "redundant"
            raise
        if event.type == "install":
            self.state = "installed"
        elif event.type == "activate":
            self.state = "activated"

        self.caches.save()
        if isinstance(event, FetchEvent):
            return event.response
        return None

    def _drain(self, event: ExtendableEvent) -> None:
        while event.pending:
            work = event.pending.pop(0)
            if isinstance(event, FetchEvent):
                # The response is already out; a failed write-back only gets reported.
                try:
                    work()
                except Exception:
                    logging.exception("[SW] Unhandled error after responding to %s", event.request.url)
            else:
                work()

    def on_install(self, event: ExtendableEvent) -> None:
        def precache() -> None:
            cache = self.caches.open(CACHE_NAME)
            cache.add_all([self.resolve(url) for url in CACHE_URLS], self.fetch)

        event.wait_until(precache)
        self.skip_waiting()

    def on_activate(self, event: ExtendableEvent) -> None:
        def drop_old_caches() -> None:
            for name in self.caches.keys():
                if name != CACHE_NAME:
                    logging.info("[SW] Deleting old cache %s", name)
                    self.caches.delete(name)

        event.wait_until(drop_old_caches)
        self.clients.claim()

    def on_fetch(self, event: FetchEvent) -> None:
        event.respond_with(self._cache_first(event))

    def _cache_first(self, event: FetchEvent) -> Response:
        request = event.request
        cached = self.caches.match(request)
        if cached is not None:
            return cached
        try:
            response = self.fetch(request)
        except NetworkError:
            fallback = self.caches.match(self.resolve(DOCUMENT_URL))
            if fallback is None:
                raise
            logging.info("[SW] Offline; serving cached document for %s", request.url)
            return fallback

        if "index.html" in request.url:
            clone = response.clone()
            event.wait_until(lambda: self.caches.open(CACHE_NAME).put(request, clone))
        return response

    def on_push(self, event: PushEvent) -> None:
        data = dict(NOTIFICATION_DEFAULTS)
        if event.data:
            try:
                payload = event.json()
            except ValueError:
                payload = None
            if isinstance(payload, dict):
                data.update(payload)

        event.wait_until(
            lambda: self.registration.show_notification(
                data["title"],
                body=data["body"],
                tag=data["tag"],
                icon=NOTIFICATION_ICON,
                badge=NOTIFICATION_BADGE,
                vibrate=list(NOTIFICATION_VIBRATE),
                require_interaction=False,
                data={"url": START_URL},
            )
        )

    def on_notification_click(self, event: NotificationEvent) -> None:
        if event.notification is not None:
            event.notification.close()

        def focus_or_open() -> None:
            windows = self.clients.match_all(include_uncontrolled=True)
            if windows:
                windows[0].focus()
                return
            self.clients.open_window(START_URL)

        event.wait_until(focus_or_open)

    def on_sync(self, event: SyncEvent) -> None:
        if event.tag == NEWS_SYNC_TAG:
            event.wait_until(background_news_sync)

    def on_periodic_sync(self, event: SyncEvent) -> None:
        if event.tag == PERIODIC_SYNC_TAG:
            event.wait_until(background_news_sync)
