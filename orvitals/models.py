from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from orvitals.config import CONFIG


@dataclass(frozen=True)
class Sample:
    time: float
    value: float


@dataclass(frozen=True, eq=False)
class ParameterSeries:
    """Samples of one parameter, ascending by time. Never mutated after construction."""
    name: str
    times: np.ndarray
    values: np.ndarray

    def __post_init__(self):
        # read-only views so no consumer can edit a loaded series in place
        times = np.asarray(self.times, dtype=float); times.setflags(write=False)
        values = np.asarray(self.values, dtype=float); values.setflags(write=False)
        object.__setattr__(self, "times", times)
        object.__setattr__(self, "values", values)

    @classmethod
    def empty(cls, name):
        return cls(name, np.empty(0), np.empty(0))

    @classmethod
    def from_records(cls, name, records):
        """
        records: [{"time": t, "value": v}, ...] in ascending time order.

        Samples with a missing, null, non-numeric or non-finite time or value
        are dropped.
        """
        rows = [r for r in (records or []) if isinstance(r, dict)]
        frame = pd.DataFrame(rows, columns=["time", "value"]).apply(pd.to_numeric, errors="coerce")
        times = frame["time"].to_numpy(dtype=float)
        values = frame["value"].to_numpy(dtype=float)
        keep = np.isfinite(times) & np.isfinite(values)
        return cls(name, times[keep], values[keep])

    def __len__(self):
        return len(self.times)

    def __iter__(self):
        for t, v in zip(self.times, self.values):
            yield Sample(float(t), float(v))

    @property
    def last_time(self):
        return float(self.times[-1]) if len(self.times) else 0.0

    def slice(self, lo, hi):
        return ParameterSeries(self.name, self.times[lo:hi], self.values[lo:hi])


@dataclass(frozen=True)
class CaseSeries:
    caseid: object
    vitals: Mapping[str, ParameterSeries] = field(default_factory=dict)
    interventions: Mapping[str, ParameterSeries] = field(default_factory=dict)

    @property
    def duration(self) -> float:
        # last sample time across all vital parameters; 0 when the case has none
        return max((s.last_time for s in self.vitals.values() if len(s)), default=0.0)

    def category(self, name) -> Mapping[str, ParameterSeries]:
        return self.vitals if name == CONFIG.VITALS else self.interventions

    @property
    def sample_count(self):
        return sum(len(s) for s in self.vitals.values()) + sum(len(s) for s in self.interventions.values())


@dataclass
class PlaybackState:
    current_time: float = 0.0
    duration: float = 0.0
    speed: float = CONFIG.DEFAULT_SPEED
    running: bool = False


@dataclass(frozen=True)
class Projection:
    start: float
    end: float
    windowed: Dict[str, ParameterSeries]
    latest: Dict[str, Optional[Sample]]

    @property
    def x_domain(self) -> Tuple[float, float]:
        return (self.start, self.end)
