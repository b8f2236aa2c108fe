"""Ordered, dismissible user notifications."""

from __future__ import annotations

from collections.abc import Callable, Iterator

from compilepad.core.models import CompileMode, Notification

DEFAULT_DISMISS_AFTER_MS = 5000


class NotificationQueue:
    """Insertion-ordered notifications keyed by a monotonic counter.

    Pushing is a no-op while the session runs in AUTO mode. Removal is by
    key, so two entries with the same message never collide.
    """

    def __init__(
        self,
        mode: Callable[[], CompileMode],
        dismiss_after_ms: int = DEFAULT_DISMISS_AFTER_MS,
    ) -> None:
        """Initialize queue.

        Args:
            mode: Returns the session's active compile mode
            dismiss_after_ms: Auto-dismiss hint attached to every entry
        """
        self._mode = mode
        self._dismiss_after_ms = dismiss_after_ms
        self._items: list[Notification] = []
        self._count = 0

    def push(self, message: str) -> Notification | None:
        """Append a notification.

        Returns:
            The new notification, or None when notifications are suppressed
        """
        if self._mode() == CompileMode.AUTO:
            return None

        self._count += 1
        notification = Notification(
            id=len(self._items) + 1,
            key=self._count,
            message=message,
            dismiss_after_ms=self._dismiss_after_ms,
        )
        self._items.append(notification)
        return notification

    def dismiss(self, key: int) -> bool:
        """Remove the entry with ``key``. Returns whether one was removed."""
        before = len(self._items)
        self._items = [n for n in self._items if n.key != key]
        return len(self._items) != before

    def clear(self) -> None:
        self._items = []
        self._count = 0

    @property
    def count(self) -> int:
        return self._count

    @property
    def items(self) -> tuple[Notification, ...]:
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Notification]:
        return iter(list(self._items))
