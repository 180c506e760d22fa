import base64
import json
import logging
import os
from typing import Callable, Dict, Iterable, List, Optional, Union
from urllib.parse import urldefrag

from .models import Request, Response

RequestLike = Union[Request, str]


def cache_key(request: RequestLike) -> str:
    url = request.url if isinstance(request, Request) else request
    return urldefrag(url)[0]


class Cache:
    def __init__(self, name: str) -> None:
        self.name = name
        self._entries: Dict[str, Response] = {}

    def match(self, request: RequestLike) -> Optional[Response]:
        cached = self._entries.get(cache_key(request))
        return cached.clone() if cached is not None else None

    def put(self, request: RequestLike, response: Response) -> None:
        self._entries[cache_key(request)] = response.clone()

    def delete(self, request: RequestLike) -> bool:
        return self._entries.pop(cache_key(request), None) is not None

    def keys(self) -> List[str]:
        return list(self._entries)

    def add_all(self, requests: Iterable[Request], fetch: Callable[[Request], Response]) -> None:
        """Fetch every request and store them all, or store nothing."""
        fetched = []
        for request in requests:
            response = fetch(request)
            if not response.ok:
                raise ValueError(f"Cannot cache {request.url}: HTTP {response.status}")
            fetched.append((request, response))
        for request, response in fetched:
            self.put(request, response)


class CacheStorage:
    """Named caches shared by every worker event.

    With a path, the caches are also snapshotted to JSON so they survive
    between processes, like a browser's cache store survives worker restarts.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path
        self._caches: Dict[str, Cache] = {}

    def open(self, name: str) -> Cache:
        if name not in self._caches:
            self._caches[name] = Cache(name)
        return self._caches[name]

    def keys(self) -> List[str]:
        return list(self._caches)

    def delete(self, name: str) -> bool:
        return self._caches.pop(name, None) is not None

    def match(self, request: RequestLike) -> Optional[Response]:
        for cache in self._caches.values():
            cached = cache.match(request)
            if cached is not None:
                return cached
        return None

    def load(self) -> None:
        self._caches = {}
        if not self.path or not os.path.exists(self.path):
            return
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        for name, entries in data.items():
            cache = self.open(name)
            for url, item in entries.items():
                cache.put(
                    url,
                    Response(
                        url=item["url"],
                        status=int(item["status"]),
                        headers=dict(item.get("headers") or {}),
                        body=base64.b64decode(item.get("body") or ""),
                    ),
                )
        logging.debug("Loaded %d caches from %s", len(self._caches), self.path)

    def save(self) -> None:
        if not self.path:
            return
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        data = {
            name: {
                url: {
                    "url": response.url,
                    "status": response.status,
                    "headers": response.headers,
                    "body": base64.b64encode(response.body).decode("ascii"),
                }
                for url, response in cache._entries.items()
            }
            for name, cache in self._caches.items()
        }
        tmp_path = self.path + ".tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)
