"""
Cancellable recurring tasks driven by an external loop.

Streamlit has no timer we can hand a callback to, so the script pumps the
scheduler on every rerun with the current wall-clock time. Tests pump it with
a fake clock instead.
"""

import time


class TickTask:
    def __init__(self, period, callback, due):
        self.period = period
        self.callback = callback
        self.due = due
        self.active = True

    def cancel(self):
        self.active = False


class PumpedScheduler:
    def __init__(self, now=time.monotonic):
        self._now = now
        self._tasks = []

    def now(self):
        return self._now()

    def call_every(self, period, callback) -> TickTask:
        if period <= 0:
            raise ValueError(f"period must be positive, got {period}")
        task = TickTask(period, callback, self._now() + period)
        self._tasks.append(task)
        return task

    @property
    def pending(self):
        return [t for t in self._tasks if t.active]

    def pump(self, now=None):
        """Fire every callback that has come due, catching up missed periods in order."""
        now = self._now() if now is None else now
        fired = 0
        for task in list(self._tasks):
            while task.active and task.due <= now:
                task.due += task.period
                task.callback()
                fired += 1
        self._tasks = [t for t in self._tasks if t.active]
        return fired
