"""
Data providers: the case catalog and the per-case time-series store.

Both are loaded once and treated as read-only afterwards. Switching cases
hands out a fresh CaseSeries; nothing here is ever edited in place.
"""

import json
from pathlib import Path

import numpy as np
import pandas as pd
import structlog

from orvitals.config import CONFIG
from orvitals.models import CaseSeries, ParameterSeries

logger = structlog.get_logger(__name__)


def normalize_caseid(key):
    # JSON object keys arrive as strings; numeric ids are compared as ints
    try:
        return int(key)
    except (TypeError, ValueError):
        return key


class TimeSeriesStore:
    def __init__(self, vitals=None, interventions=None):
        self._data = {
            CONFIG.VITALS: {normalize_caseid(k): dict(v) for k, v in (vitals or {}).items()},
            CONFIG.INTERVENTIONS: {normalize_caseid(k): dict(v) for k, v in (interventions or {}).items()},
        }

    def case_ids(self):
        ids = set(self._data[CONFIG.VITALS]) | set(self._data[CONFIG.INTERVENTIONS])
        return sorted(ids, key=lambda k: (isinstance(k, str), k))

    def get(self, caseid) -> CaseSeries:
        """Series for one case. Unknown cases and missing categories come back empty."""
        key = normalize_caseid(caseid)
        return CaseSeries(
            caseid=key,
            vitals=dict(self._data[CONFIG.VITALS].get(key, {})),
            interventions=dict(self._data[CONFIG.INTERVENTIONS].get(key, {})),
        )

    def __contains__(self, caseid):
        key = normalize_caseid(caseid)
        return any(key in self._data[c] for c in CONFIG.CATEGORIES)

    @staticmethod
    def _decode(raw):
        # {caseid: {param: [{time, value}, ...]}}
        if not isinstance(raw, dict):
            raise ValueError(f"expected an object keyed by caseid, got {type(raw).__name__}")
        out = {}
        for caseid, params in raw.items():
            if not isinstance(params, dict):
                logger.warning("timeseries_case_skipped", caseid=caseid, reason="not an object")
                continue
            case = {}
            for name, recs in params.items():
                recs = recs if isinstance(recs, list) else []
                series = ParameterSeries.from_records(name, recs)
                if len(series) < len(recs):
                    logger.warning("timeseries_rows_dropped", caseid=caseid, parameter=name,
                                   count=len(recs) - len(series))
                case[name] = series
            out[caseid] = case
        return out

    @classmethod
    def from_json(cls, vitals_path, interventions_path=None):
        with open(vitals_path, encoding="utf-8") as fh:
            vitals = cls._decode(json.load(fh))
        interventions = {}
        if interventions_path is not None:
            with open(interventions_path, encoding="utf-8") as fh:
                interventions = cls._decode(json.load(fh))
        return cls(vitals, interventions)

    @classmethod
    def from_frame(cls, df):
        """Build from a long table with columns caseid, category, parameter, time, value."""
        df = df.copy()
        df["time"] = pd.to_numeric(df["time"], errors="coerce")
        df["value"] = pd.to_numeric(df["value"], errors="coerce")
        bad = ~(np.isfinite(df["time"].astype(float)) & np.isfinite(df["value"].astype(float)))
        if bad.any():
            logger.warning("timeseries_rows_dropped", count=int(bad.sum()))
            df = df[~bad]

        data = {c: {} for c in CONFIG.CATEGORIES}
        for (caseid, category, name), g in df.groupby(["caseid", "category", "parameter"], sort=False):
            if category not in data:
                logger.warning("unknown_category", category=category, parameter=name)
                continue
            # row order is the sample order; series are not re-sorted
            series = ParameterSeries(name, g["time"].to_numpy(), g["value"].to_numpy())
            data[category].setdefault(caseid, {})[name] = series
        return cls(data[CONFIG.VITALS], data[CONFIG.INTERVENTIONS])


class CaseCatalog:
    def __init__(self, df):
        self.df = df.reset_index(drop=True)

    def __len__(self):
        return len(self.df)

    def ids(self):
        return [normalize_caseid(c) for c in self.df["caseid"].tolist()]

    def get(self, caseid):
        if "caseid" not in self.df or caseid is None:
            return None
        key = normalize_caseid(caseid)
        hit = self.df[self.df["caseid"].map(normalize_caseid) == key]
        if hit.empty:
            return None
        rec = hit.iloc[0].to_dict()
        # NaN fields render as missing rather than "nan"
        return {k: (None if isinstance(v, float) and np.isnan(v) else v) for k, v in rec.items()}


def load_catalog(path) -> CaseCatalog:
    df = pd.read_csv(path)
    for col in CONFIG.NUMERIC_FIELDS:
        if col in df:
            df[col] = pd.to_numeric(df[col], errors="coerce")
    if "surgery_time" in df:
        keep = df["surgery_time"].notna()
        if (~keep).any():
            logger.warning("catalog_rows_dropped", count=int((~keep).sum()), reason="surgery_time")
        df = df[keep]
    return CaseCatalog(df)


def load_dataset(data_dir=None):
    """Catalog and store from data_dir, or the synthetic demo set when files are absent."""
    base = Path(data_dir or CONFIG.DATA_DIR)
    try:
        catalog = load_catalog(base / "data.csv")
        interventions = base / "interventions.json"
        store = TimeSeriesStore.from_json(base / "vitals.json", interventions if interventions.exists() else None)
    except (OSError, ValueError) as exc:
        logger.warning("dataset_fallback_to_demo", data_dir=str(base), error=str(exc))
        from orvitals.simulator import DemoDataset
        return DemoDataset(n_cases=CONFIG.DEMO_CASES, seed=CONFIG.DEMO_SEED).build()

    logger.info("dataset_loaded", data_dir=str(base), cases=len(catalog), series_cases=len(store.case_ids()))
    return catalog, store
