import structlog

from orvitals.config import CONFIG
from orvitals.models import PlaybackState

logger = structlog.get_logger(__name__)


class PlaybackClock:
    """
    Owns the playback position and rate.

    States are Stopped and Running. At most one tick task is alive at a time;
    load, reset and pause always cancel it before touching the state, so a tick
    scheduled for a previous case can never fire against the next one.
    Every change of current_time calls on_change(current_time) synchronously.
    """

    def __init__(self, scheduler, on_change=None, window_size=CONFIG.WINDOW_SIZE,
                 tick_seconds=CONFIG.TICK_SECONDS, default_speed=CONFIG.DEFAULT_SPEED):
        self.scheduler = scheduler
        self.on_change = on_change
        self.window_size = window_size
        self.tick_seconds = tick_seconds
        self.default_speed = default_speed
        self._state = PlaybackState(speed=default_speed)
        self._task = None

    @property
    def state(self) -> PlaybackState:
        s = self._state
        return PlaybackState(s.current_time, s.duration, s.speed, s.running)

    @property
    def current_time(self):
        return self._state.current_time

    @property
    def running(self):
        return self._state.running

    @property
    def ceiling(self):
        return max(0.0, self._state.duration - self.window_size)

    def _clamp(self, t):
        return min(max(t, 0.0), self.ceiling)

    def _notify(self):
        if self.on_change is not None:
            self.on_change(self._state.current_time)

    def _stop(self):
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._state.running = False

    # --- operations ---
    def load(self, case):
        self._stop()
        self._state.current_time = 0.0
        self._state.duration = float(case.duration)
        logger.debug("clock_loaded", caseid=case.caseid, duration=self._state.duration)
        self._notify()

    def play(self):
        if self._state.running: return
        if self.ceiling == 0:
            # playback range is a single point
            return
        self._state.running = True
        self._task = self.scheduler.call_every(self.tick_seconds, self._tick)
        logger.debug("clock_started", at=self._state.current_time, speed=self._state.speed)

    def pause(self):
        if self._state.running:
            logger.debug("clock_paused", at=self._state.current_time)
        self._stop()

    def reset(self):
        self._stop()
        self._state.current_time = 0.0
        self._state.speed = self.default_speed
        self._notify()

    def set_speed_delta(self, delta):
        # no ceiling on speed; overshoot is absorbed by the clamp in _tick
        self._state.speed += delta

    def scrub_to(self, t):
        self._state.current_time = self._clamp(float(t))
        self._notify()

    def _tick(self):
        target = self._state.current_time + self._state.speed
        if target > self.ceiling:
            self._state.current_time = self.ceiling
            self._stop()
            logger.debug("clock_reached_end", at=self._state.current_time)
        else:
            self._state.current_time = max(0.0, target)
        self._notify()
