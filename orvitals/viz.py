import html

import numpy as np
import plotly.express as px
import plotly.graph_objects as go

from orvitals.config import CONFIG


def _pretty(name):
    return str(name).replace('_', ' ')


def _nice_ceiling(v):
    # round up to 1, 2 or 5 times a power of ten
    if not np.isfinite(v) or v <= 0: return 1.0
    mag = 10 ** np.floor(np.log10(v))
    for step in (1, 2, 5, 10):
        if v <= step * mag: return float(step * mag)
    return float(10 * mag)


class Viz:
    @staticmethod
    def cohort_scatter(df, x_var, y_var):
        fig = go.Figure()
        if len(df):
            x = df[x_var].astype(float); y = df[y_var].astype(float)
            fig.add_trace(go.Scatter(x=x, y=y, mode='markers', opacity=0.6,
                                     marker=dict(size=8, color=CONFIG.COLORS['point']),
                                     customdata=df["caseid"] if "caseid" in df else None,
                                     hovertemplate="Case %{customdata}<br>%{x}, %{y}<extra></extra>"))
            fig.update_yaxes(range=[0, _nice_ceiling(y.max())])
        fig.update_layout(xaxis_title=_pretty(x_var), yaxis_title=_pretty(y_var), height=420,
                          margin=dict(l=60, r=40, t=40, b=80), showlegend=False)
        return fig

    @staticmethod
    def correlation_heatmap(corr, pvalues=None):
        labels = [_pretty(c) for c in corr.columns]
        custom = None if pvalues is None else pvalues.reindex(index=corr.index, columns=corr.columns).values
        fig = go.Figure(go.Heatmap(z=corr.values, x=labels, y=labels, zmin=-1, zmax=1, colorscale="RdBu",
                                   text=np.round(corr.values, 2), texttemplate="%{text}", customdata=custom,
                                   hovertemplate="%{x} vs %{y}<br>r=%{z:.2f}" + ("<br>p=%{customdata:.3g}" if custom is not None else "") + "<extra></extra>"))
        fig.update_layout(title="Parameter Correlation (Pearson r)", height=480, margin=dict(l=20, r=20, t=40, b=20))
        return fig

    @staticmethod
    def cross_scatter(df, x_var, y_var, color=None):
        data = df[[c for c in (x_var, y_var, color) if c]].dropna(subset=[x_var, y_var])
        # OLS trendline is fitted by statsmodels under the hood
        trend = "ols" if len(data) >= 3 else None
        fig = px.scatter(data, x=x_var, y=y_var, color=color, trendline=trend, opacity=0.6,
                         labels={x_var: _pretty(x_var), y_var: _pretty(y_var)})
        fig.update_layout(title=f"{_pretty(y_var)} vs {_pretty(x_var)}", height=420, margin=dict(l=20, r=20, t=40, b=20))
        return fig

    @staticmethod
    def patient_card_html(record):
        if not record:
            return "<p>No surgery data available.</p>"
        def f(k, fallback=""):
            v = record.get(k)
            return html.escape(str(fallback if v in (None, "") else v))
        return f"""
        <div class="patient-card">
            <h2>PATIENT CARD</h2>
            <div class="surgery-section"><div class="surgery-section-title">Case Summary</div><p><strong>Case ID:</strong> {f('caseid')}</p><p><strong>Department:</strong> {f('department')}</p></div>
            <div class="surgery-section"><div class="surgery-section-title">Surgery Details</div><p><strong>Operation Name:</strong> {f('opname')}</p><p><strong>Operation Type:</strong> {f('optype')}</p><p><strong>Approach:</strong> {f('approach')}</p><p><strong>Patient Position:</strong> {f('position')}</p></div>
            <div class="surgery-section"><div class="surgery-section-title">Medical Context</div><p><strong>Emergency:</strong> {f('emop', 'N/A') if record.get('emop') else 'N/A'}</p><p><strong>Diagnosis:</strong> {f('dx')}</p><p><strong>ASA:</strong> {f('asa')}</p></div>
        </div>
        """

    @staticmethod
    def patient_tooltip(record):
        if not record: return ""
        return (f"Case {record.get('caseid')} | Age: {record.get('age')} | Sex: {record.get('sex')} | "
                f"BMI: {record.get('bmi')} | Height: {record.get('height')}")

    @staticmethod
    def table_image(record):
        # OR-table picture shown beside the card, chosen by patient sex
        if not record: return None
        sex = str(record.get("sex") or "").strip().lower()
        return "images/table-female.png" if sex == "f" else "images/table-male.png"
