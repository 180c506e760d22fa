import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .models import Request, Response


@dataclass
class ExtendableEvent:
    """An event whose pending work keeps the worker alive until it finishes.

    Handlers hand work to `wait_until`; the dispatcher runs it once the
    handler has returned.
    """

    type: str
    pending: List[Callable[[], Any]] = field(default_factory=list)

    def wait_until(self, work: Callable[[], Any]) -> None:
        self.pending.append(work)


@dataclass
class FetchEvent(ExtendableEvent):
    request: Request = field(default_factory=lambda: Request(url=""))
    response: Optional[Response] = None

    def respond_with(self, response: Response) -> None:
        if self.response is not None:
            raise RuntimeError("respond_with() already called for this fetch")
        self.response = response


@dataclass
class PushEvent(ExtendableEvent):
    data: Optional[bytes] = None

    def json(self) -> Any:
        if self.data is None:
            raise ValueError("Push message has no payload")
        return json.loads(self.data.decode("utf-8"))


@dataclass
class SyncEvent(ExtendableEvent):
    tag: str = ""


@dataclass
class Notification:
    title: str
    body: str = ""
    tag: str = ""
    icon: str = ""
    badge: str = ""
    vibrate: List[int] = field(default_factory=list)
    require_interaction: bool = False
    data: Dict[str, Any] = field(default_factory=dict)
    closed: bool = False

    def close(self) -> None:
        self.closed = True


@dataclass
class NotificationEvent(ExtendableEvent):
    notification: Optional[Notification] = None


@dataclass
class WindowClient:
    url: str
    focused: bool = False
    controlled: bool = False

    def focus(self) -> "WindowClient":
        self.focused = True
        return self


class Clients:
    def __init__(self, windows: Optional[List[WindowClient]] = None) -> None:
        self.windows: List[WindowClient] = list(windows or [])

    def match_all(self, include_uncontrolled: bool = False) -> List[WindowClient]:
        if include_uncontrolled:
            return list(self.windows)
        return [w for w in self.windows if w.controlled]

    def claim(self) -> None:
        for window in self.windows:
            window.controlled = True

    def open_window(self, url: str) -> WindowClient:
        window = WindowClient(url=url, focused=True, controlled=True)
        self.windows.append(window)
        return window


class Registration:
    def __init__(self) -> None:
        self.notifications: List[Notification] = []

    def show_notification(self, title: str, **options: Any) -> Notification:
        notification = Notification(title=title, **options)
        self.notifications.append(notification)
        return notification
