from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from branch_permissions.utils import get_logger


logger = get_logger(__name__)

T_co = TypeVar("T_co", covariant=True)

Subscriber = Callable[[T_co], None]


class EventHook(Generic[T_co]):
    """Synchronous observer list shared by services, sessions and the CLI.

    A subscriber that raises is logged and skipped; the remaining
    subscribers still receive the event.
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscriber[T_co]] = []

    def __len__(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: Subscriber[T_co]) -> Callable[[], None]:
        """Register ``callback``; call the returned function to unregister it."""

        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def emit(self, payload: T_co) -> None:
        for callback in tuple(self._subscribers):
            try:
                callback(payload)
            except Exception:
                logger.exception(
                    "Event subscriber failed",
                    subscriber=getattr(callback, "__qualname__", repr(callback)),
                )


@dataclass(slots=True)
class ServiceErrorEvent:
    """A service-level failure tied to one content object, when known."""

    object_type: str | None
    object_id: int | None
    error: Exception


__all__ = ["EventHook", "ServiceErrorEvent"]
