"""Shared pytest fixtures for ORVitals tests."""

import pytest

from orvitals.models import CaseSeries, ParameterSeries
from orvitals.scheduler import PumpedScheduler
from orvitals.store import TimeSeriesStore
from orvitals.sync import ViewSync


# ── Fake time ───────────────────────────────────────────────────────

class FakeTime:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_time() -> FakeTime:
    return FakeTime()


@pytest.fixture
def scheduler(fake_time: FakeTime) -> PumpedScheduler:
    return PumpedScheduler(now=fake_time)


# ── Series helpers ─────────────────────────────────────────────────

def series(name: str, pairs) -> ParameterSeries:
    return ParameterSeries(name, [t for t, _ in pairs], [v for _, v in pairs])


@pytest.fixture
def spaced_series() -> ParameterSeries:
    """Samples at t = 0, 100, 500, 700, 1200."""
    return series("HR", [(0, 60), (100, 62), (500, 65), (700, 70), (1200, 72)])


@pytest.fixture
def hr_case() -> CaseSeries:
    """HR sampled at 0 and 650 s only."""
    return CaseSeries(caseid=1, vitals={"HR": series("HR", [(0, 70), (650, 75)])})


@pytest.fixture
def long_case() -> CaseSeries:
    """One hour of vitals every 60 s plus a sparse propofol infusion."""
    return CaseSeries(
        caseid=2,
        vitals={
            "HR": series("HR", [(t, 70 + (t // 60) % 5) for t in range(0, 3601, 60)]),
            "MBP": series("MBP", [(t, 80.25) for t in range(0, 3601, 60)]),
        },
        interventions={
            "PPF20_RATE": series("PPF20_RATE", [(120, 20), (1500, 12.5), (3000, 0)]),
            "PEEP": ParameterSeries.empty("PEEP"),
        },
    )


@pytest.fixture
def store(hr_case: CaseSeries, long_case: CaseSeries) -> TimeSeriesStore:
    return TimeSeriesStore(
        vitals={1: hr_case.vitals, 2: long_case.vitals},
        interventions={2: long_case.interventions},
    )


# ── Recording render surfaces ──────────────────────────────────────

class Recorder:
    """Collects (surface, call, args) tuples in the order ViewSync makes them."""

    def __init__(self) -> None:
        self.calls: list = []


class RecordingChart:
    def __init__(self, name: str, rec: Recorder) -> None:
        self.name = name
        self.rec = rec
        self.paths = {}

    def set_x_domain(self, lo, hi):
        self.rec.calls.append((self.name, "x_domain", (lo, hi)))

    def draw_axes(self, x_domain, y_domain):
        self.rec.calls.append((self.name, "axes", (x_domain, y_domain)))

    def move_marker(self, t):
        self.rec.calls.append((self.name, "marker", t))

    def draw_paths(self, paths):
        self.paths = dict(paths)
        self.rec.calls.append((self.name, "paths", tuple(paths)))


class RecordingText:
    def __init__(self, name: str, rec: Recorder) -> None:
        self.name = name
        self.rec = rec
        self.value = None

    def show(self, value):
        self.value = value
        self.rec.calls.append((self.name, "show", value))


class RecordingScrub:
    def __init__(self, rec: Recorder) -> None:
        self.rec = rec
        self.position = None
        self.bounds = None

    def set_position(self, value, lo, hi):
        self.position = value
        self.bounds = (lo, hi)
        self.rec.calls.append(("scrub", "position", value))


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def sync(recorder: Recorder) -> ViewSync:
    charts = {
        "vitals": RecordingChart("vitals", recorder),
        "interventions": RecordingChart("interventions", recorder),
    }
    return ViewSync(charts, RecordingText("readouts", recorder), RecordingText("clock", recorder), RecordingScrub(recorder))
