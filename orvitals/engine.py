import structlog

from orvitals.clock import PlaybackClock
from orvitals.config import CONFIG
from orvitals.scheduler import PumpedScheduler
from orvitals.sync import ViewSync, chart_scales

logger = structlog.get_logger(__name__)


class PlaybackEngine:
    """
    The playback controls the UI talks to.

    Holds the active case, the clock and the sync layer; renderers only ever
    receive what ViewSync pushes to them.
    """

    def __init__(self, store, sync: ViewSync, scheduler=None, **clock_kwargs):
        self.store = store
        self.sync = sync
        self.scheduler = scheduler or PumpedScheduler()
        self.clock = PlaybackClock(self.scheduler, on_change=self.sync.push,
                                   window_size=sync.projector.window_size, **clock_kwargs)
        self.case = None

    @property
    def state(self):
        return self.clock.state

    @property
    def caseid(self):
        return None if self.case is None else self.case.caseid

    def select_case(self, caseid):
        case = self.store.get(caseid)
        # bind before load so the push triggered by load draws the new case
        self.sync.bind(case, chart_scales(case))
        self.case = case
        self.clock.load(case)
        logger.info("case_selected", caseid=case.caseid, duration=case.duration,
                    vitals=len(case.vitals), interventions=len(case.interventions), samples=case.sample_count)
        return case

    def play(self):
        self.clock.play()

    def pause(self):
        self.clock.pause()

    def reset(self):
        self.clock.reset()

    def faster(self, step=CONFIG.SPEED_STEP):
        self.clock.set_speed_delta(step)

    def scrub_to(self, t):
        self.clock.scrub_to(t)

    def pump(self, now=None):
        return self.scheduler.pump(now)
