"""Unit tests for core.notifications module."""

from compilepad.core.models import CompileMode
from compilepad.core.notifications import NotificationQueue


class _Mode:
    def __init__(self, mode: CompileMode) -> None:
        self.mode = mode

    def __call__(self) -> CompileMode:
        return self.mode


class TestNotificationQueue:
    """Tests for NotificationQueue."""

    def test_push_assigns_keys_and_ids(self):
        """Test monotonic keys and size-based ids."""
        queue = NotificationQueue(_Mode(CompileMode.MANUAL))

        first = queue.push("one")
        second = queue.push("two")

        assert first is not None and second is not None
        assert (first.id, first.key) == (1, 1)
        assert (second.id, second.key) == (2, 2)
        assert [n.message for n in queue] == ["one", "two"]
        assert queue.count == 2

    def test_auto_mode_suppresses(self):
        """Test that nothing is queued in AUTO mode."""
        mode = _Mode(CompileMode.AUTO)
        queue = NotificationQueue(mode)

        assert queue.push("hidden") is None
        assert len(queue) == 0
        assert queue.count == 0

        mode.mode = CompileMode.MANUAL
        assert queue.push("shown") is not None
        assert len(queue) == 1

    def test_dismiss_by_key_with_duplicate_messages(self):
        """Test that dismissing one of two identical messages keeps the other."""
        queue = NotificationQueue(_Mode(CompileMode.MANUAL))
        first = queue.push("same")
        second = queue.push("same")
        assert first is not None and second is not None

        assert queue.dismiss(first.key) is True

        assert [n.key for n in queue.items] == [second.key]

    def test_dismiss_missing_key(self):
        """Test that dismissing an unknown key is a no-op."""
        queue = NotificationQueue(_Mode(CompileMode.MANUAL))
        queue.push("one")

        assert queue.dismiss(42) is False
        assert len(queue) == 1

    def test_id_reused_after_dismiss_key_is_not(self):
        """Test that ids follow size while keys keep increasing."""
        queue = NotificationQueue(_Mode(CompileMode.MANUAL))
        first = queue.push("one")
        assert first is not None
        queue.dismiss(first.key)

        again = queue.push("two")

        assert again is not None
        assert again.id == 1
        assert again.key == 2

    def test_clear_resets_counter(self):
        """Test that clear() empties the queue and restarts keys."""
        queue = NotificationQueue(_Mode(CompileMode.MANUAL))
        queue.push("one")
        queue.push("two")

        queue.clear()
        fresh = queue.push("three")

        assert fresh is not None
        assert fresh.key == 1
        assert len(queue) == 1

    def test_dismiss_hint(self):
        """Test that the auto-dismiss hint is attached."""
        queue = NotificationQueue(_Mode(CompileMode.MANUAL), dismiss_after_ms=1234)
        notification = queue.push("one")

        assert notification is not None
        assert notification.to_dict() == {"id": 1, "key": 1, "message": "one", "dismiss_after_ms": 1234}
