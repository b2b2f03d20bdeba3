from __future__ import annotations

from datetime import UTC, datetime

from summify_search.application.ports.clock_port import ClockPort


class SystemClock(ClockPort):
    """Wall-clock UTC time; tests inject a fake clock instead."""

    def now(self) -> datetime:  # pragma: no cover - trivial
        return datetime.now(UTC)
