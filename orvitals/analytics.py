import numpy as np
import pandas as pd
from scipy.stats import pearsonr

from orvitals.config import CONFIG


class Cohort:
    @staticmethod
    def filter(df, x_var, y_var, emergency_only=False, show_male=True, show_female=True, optype=None):
        y = pd.to_numeric(df[y_var], errors='coerce')
        keep = y.notna() & df[x_var].notna() & df[x_var].astype(str).str.strip().ne("")
        if y_var == "icu_days":
            keep &= ~(y > CONFIG.ICU_DAYS_CAP)
        if emergency_only:
            keep &= pd.to_numeric(df["emop"], errors='coerce').eq(1)
        if "sex" in df:
            keep &= ~((df["sex"] == "M") & (not show_male))
            keep &= ~((df["sex"] == "F") & (not show_female))
        if optype and optype != "All":
            keep &= df["optype"] == optype
        return df[keep]

    @staticmethod
    def summary_text(df, y_var):
        avg = pd.to_numeric(df[y_var], errors='coerce').mean() if len(df) else np.nan
        if not len(df) or np.isnan(avg):
            return "No matching data."
        return f"{len(df)} patients | Avg {y_var.replace('_', ' ', 1)}: {avg:.1f}"

    @staticmethod
    def optypes(df):
        return ["All"] + sorted(df["optype"].dropna().unique().tolist()) if "optype" in df else ["All"]


class Correlation:
    @staticmethod
    def numeric_columns(df, exclude=("caseid",)):
        return [c for c in df.select_dtypes(include=[np.number]).columns if c not in exclude]

    @staticmethod
    def matrix(df, columns):
        return df[list(columns)].apply(pd.to_numeric, errors='coerce').corr(method='pearson')

    @staticmethod
    def pvalues(df, columns):
        columns = list(columns)
        data = df[columns].apply(pd.to_numeric, errors='coerce')
        out = pd.DataFrame(np.nan, index=columns, columns=columns)
        for i, a in enumerate(columns):
            col = data[a].dropna()
            if len(col) >= 3 and col.nunique() > 1:
                out.loc[a, a] = 0.0
            for b in columns[i + 1:]:
                pair = data[[a, b]].dropna()
                if len(pair) < 3 or pair[a].nunique() < 2 or pair[b].nunique() < 2:
                    continue
                out.loc[a, b] = out.loc[b, a] = pearsonr(pair[a], pair[b])[1]
        return out
