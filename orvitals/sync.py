"""
ViewSync: the one place that fans a playback position out to the views.

Render surfaces are passive. They receive pushed values and never read the
clock or the store themselves.
"""

import math
from typing import Dict, Mapping, Optional, Protocol, Tuple

from orvitals.config import CONFIG
from orvitals.models import CaseSeries, ParameterSeries, Sample
from orvitals.projector import WindowProjector, y_domain


class ChartSurface(Protocol):
    def set_x_domain(self, lo: float, hi: float) -> None: ...
    def draw_axes(self, x_domain: Tuple[float, float], y_domain: Tuple[float, float]) -> None: ...
    def move_marker(self, t: float) -> None: ...
    def draw_paths(self, paths: Mapping[str, ParameterSeries]) -> None: ...


class ReadoutSurface(Protocol):
    def show(self, readouts: Dict[str, Dict[str, str]]) -> None: ...


class ClockDisplay(Protocol):
    def show(self, text: str) -> None: ...


class ScrubControl(Protocol):
    def set_position(self, value: float, lo: float, hi: float) -> None: ...


def format_clock(seconds):
    # HH:MM:SS, each field truncated
    total = int(max(seconds, 0))
    return f"{total // 3600:02d}:{total % 3600 // 60:02d}:{total % 60:02d}"


def _missing(sample):
    return sample is None or not math.isfinite(sample.value)


def format_vital(sample: Optional[Sample]):
    return CONFIG.NO_DATA if _missing(sample) else f"{sample.value:.1f}"


def format_intervention(sample: Optional[Sample]):
    if _missing(sample): return CONFIG.NO_DATA
    v = sample.value
    return str(int(v)) if float(v).is_integer() else repr(float(v))


def chart_scales(case: CaseSeries):
    return {
        CONFIG.VITALS: y_domain(case.vitals, CONFIG.VITALS),
        CONFIG.INTERVENTIONS: y_domain(case.interventions, CONFIG.INTERVENTIONS),
    }


class ViewSync:
    def __init__(self, charts, readouts, clock_display, scrub, projector=None):
        # charts: {"vitals": ChartSurface, "interventions": ChartSurface}
        self.charts = charts
        self.readouts = readouts
        self.clock_display = clock_display
        self.scrub = scrub
        self.projector = projector or WindowProjector()
        self.case = CaseSeries(caseid=None)
        self.scales = chart_scales(self.case)
        self.max_position = 0.0

    def bind(self, case: CaseSeries, scales=None):
        # replaced wholesale; a push never sees half of one case and half of another
        self.case = case
        self.scales = scales or chart_scales(case)
        self.max_position = max(0.0, case.duration - self.projector.window_size)

    def push(self, current_time):
        projections = {c: self.projector.project(self.case.category(c), current_time) for c in CONFIG.CATEGORIES}
        window = projections[CONFIG.VITALS].x_domain

        for chart in self.charts.values():
            chart.set_x_domain(*window)
        for c, chart in self.charts.items():
            chart.draw_axes(window, self.scales[c])
        for chart in self.charts.values():
            chart.move_marker(window[0])
        for c, chart in self.charts.items():
            chart.draw_paths(projections[c].windowed)

        # keyed by category first; a parameter name may appear in both
        self.readouts.show({
            CONFIG.VITALS: {name: format_vital(s) for name, s in projections[CONFIG.VITALS].latest.items()},
            CONFIG.INTERVENTIONS: {name: format_intervention(s) for name, s in projections[CONFIG.INTERVENTIONS].latest.items()},
        })
        self.clock_display.show(format_clock(current_time))
        self.scrub.set_position(current_time, 0.0, self.max_position)
        return projections
