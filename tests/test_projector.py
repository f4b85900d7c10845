"""Tests for orvitals.projector — window slicing, latest values, scales."""

import numpy as np
import pytest

from orvitals.models import ParameterSeries, Sample
from orvitals.projector import WindowProjector, smooth_path, y_domain


@pytest.fixture
def projector() -> WindowProjector:
    return WindowProjector(window_size=600)


def times(s: ParameterSeries) -> list:
    return s.times.tolist()


class TestProject:
    def test_window_is_inclusive_slice(self, projector, spaced_series) -> None:
        p = projector.project({"HR": spaced_series}, 300)
        assert times(p.windowed["HR"]) == [500, 700]
        assert p.latest["HR"] == Sample(700, 70)
        assert p.x_domain == (300, 900)

    def test_both_window_edges_included(self, projector, spaced_series) -> None:
        p = projector.project({"HR": spaced_series}, 100)
        assert times(p.windowed["HR"]) == [100, 500, 700]

    def test_hr_scenario_at_zero(self, projector, hr_case) -> None:
        p = projector.project(hr_case.vitals, 0)
        assert times(p.windowed["HR"]) == [0]
        assert p.latest["HR"].value == 70

    def test_hr_scenario_at_fifty(self, projector, hr_case) -> None:
        p = projector.project(hr_case.vitals, 50)
        assert times(p.windowed["HR"]) == [650]
        assert p.latest["HR"].value == 75

    def test_latest_can_precede_window(self, projector, long_case) -> None:
        """A dose set before the window is still the live value."""
        p = projector.project(long_case.interventions, 1600)
        assert len(p.windowed["PPF20_RATE"]) == 0
        assert p.latest["PPF20_RATE"] == Sample(1500, 12.5)

    def test_latest_none_before_first_sample(self, projector) -> None:
        s = ParameterSeries("FIO2", [900.0], [50.0])
        p = projector.project({"FIO2": s}, 0)
        assert p.latest["FIO2"] is None
        assert len(p.windowed["FIO2"]) == 0

    def test_empty_series(self, projector) -> None:
        p = projector.project({"PEEP": ParameterSeries.empty("PEEP")}, 0)
        assert len(p.windowed["PEEP"]) == 0
        assert p.latest["PEEP"] is None

    def test_no_parameters(self, projector) -> None:
        p = projector.project({}, 0)
        assert p.windowed == {}
        assert p.latest == {}

    def test_projection_does_not_touch_source(self, projector, spaced_series) -> None:
        before = spaced_series.times.copy()
        projector.project({"HR": spaced_series}, 300)
        assert np.array_equal(spaced_series.times, before)
        with pytest.raises(ValueError):
            spaced_series.times[0] = 99


class TestYDomain:
    def test_vitals_padding(self, long_case) -> None:
        lo, hi = y_domain(long_case.vitals, "vitals")
        assert lo == pytest.approx(70 * 0.9)
        assert hi == pytest.approx(80.25 * 1.1)

    def test_interventions_start_at_zero(self, long_case) -> None:
        lo, hi = y_domain(long_case.interventions, "interventions")
        assert lo == 0
        assert hi == pytest.approx(20 * 1.1)

    def test_empty_category(self) -> None:
        assert y_domain({}, "vitals") == (0.0, 1.0)
        assert y_domain({"PEEP": ParameterSeries.empty("PEEP")}, "interventions") == (0.0, 1.0)

    def test_ignores_non_finite_values(self) -> None:
        s = ParameterSeries("HR", [0.0, 60.0, 120.0], [70.0, np.nan, 90.0])
        lo, hi = y_domain({"HR": s}, "vitals")
        assert lo == pytest.approx(70 * 0.9)
        assert hi == pytest.approx(90 * 1.1)
        assert y_domain({"HR": ParameterSeries("HR", [0.0], [np.nan])}, "vitals") == (0.0, 1.0)


class TestSmoothPath:
    def test_passes_through_samples(self) -> None:
        t = np.array([0.0, 60.0, 120.0, 180.0])
        v = np.array([70.0, 90.0, 80.0, 80.0])
        xs, ys = smooth_path(t, v)
        assert xs[0] == 0 and xs[-1] == 180
        for ti, vi in zip(t, v):
            assert ys[np.argmin(np.abs(xs - ti))] == pytest.approx(vi)

    def test_monotone_between_samples(self) -> None:
        """PCHIP never overshoots the neighbouring samples."""
        t = np.array([0.0, 10.0, 20.0, 30.0])
        v = np.array([60.0, 60.0, 100.0, 100.0])
        _, ys = smooth_path(t, v)
        assert ys.min() >= 60 - 1e-9
        assert ys.max() <= 100 + 1e-9
        assert np.all(np.diff(ys) >= -1e-9)

    def test_short_series_returned_unchanged(self) -> None:
        xs, ys = smooth_path([0.0, 10.0], [1.0, 2.0])
        assert xs.tolist() == [0.0, 10.0]
        assert ys.tolist() == [1.0, 2.0]
