from typing import Protocol, runtime_checkable


@runtime_checkable
class UsageCounterPort(Protocol):
    """Per-subscriber count of queries consumed in the current billing period."""

    def increment(self, subscriber_id: str, limit: int | None = None) -> int | None:
        """Atomically add one and return the new value.

        With a ``limit`` the add only happens while the stored value is below it;
        otherwise nothing changes and ``None`` is returned.
        """
        ...

    def current(self, subscriber_id: str) -> int: ...
