from __future__ import annotations

import datetime as dt

START = dt.datetime(2026, 3, 1, 9, 0, 0, tzinfo=dt.timezone.utc)


class StepClock:
    """Deterministic clock that advances one millisecond per reading."""

    def __init__(self, start: dt.datetime = START, step: dt.timedelta | None = None) -> None:
        self.current = start
        self.step = step or dt.timedelta(milliseconds=1)

    def __call__(self) -> dt.datetime:
        value = self.current
        self.current = self.current + self.step
        return value

    def advance(self, delta: dt.timedelta) -> None:
        self.current = self.current + delta
