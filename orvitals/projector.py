import numpy as np
from scipy.interpolate import PchipInterpolator

from orvitals.config import CONFIG
from orvitals.models import Projection, Sample


class WindowProjector:
    def __init__(self, window_size=CONFIG.WINDOW_SIZE):
        self.window_size = window_size

    def project(self, series, current_time) -> Projection:
        """
        Visible samples and live values for one category of a case.

        windowed holds the samples with time in [t, t + window] (both ends
        inclusive). latest holds the last sample at or before the window end,
        which may lie before the window for sparse parameters, or None.
        """
        start = float(current_time)
        end = start + self.window_size
        windowed, latest = {}, {}
        for name, s in series.items():
            lo = np.searchsorted(s.times, start, side='left')
            hi = np.searchsorted(s.times, end, side='right')
            windowed[name] = s.slice(lo, hi)
            latest[name] = Sample(float(s.times[hi - 1]), float(s.values[hi - 1])) if hi > 0 else None
        return Projection(start, end, windowed, latest)


def y_domain(series, kind):
    # Fixed for the whole case so the vertical scale does not jitter during playback
    values = [s.values for s in series.values() if len(s)]
    allv = np.concatenate(values) if values else np.empty(0)
    allv = allv[np.isfinite(allv)]
    if not len(allv): return (0.0, 1.0)
    lo, hi = float(np.min(allv)), float(np.max(allv))
    if kind == CONFIG.INTERVENTIONS:
        return (0.0, hi * 1.1 if hi > 0 else 1.0)
    return (lo * 0.9, hi * 1.1)


def smooth_path(times, values, points_per_gap=8):
    """Monotone cubic (PCHIP) densification; no overshoot between samples."""
    times = np.asarray(times, dtype=float); values = np.asarray(values, dtype=float)
    if len(times) < 3 or np.any(np.diff(times) <= 0):
        return times, values
    xs = np.linspace(times[0], times[-1], (len(times) - 1) * points_per_gap + 1)
    return xs, PchipInterpolator(times, values)(xs)
