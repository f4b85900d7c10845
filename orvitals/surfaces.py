import math

import numpy as np
import plotly.express as px
import plotly.graph_objects as go

from orvitals.config import CONFIG, label
from orvitals.projector import smooth_path
from orvitals.sync import format_clock


class PlotlyChartSurface:
    """Keeps one playback chart up to date; the app hands .figure to st.plotly_chart."""

    def __init__(self, kind, title, height=260):
        self.kind = kind
        self.figure = go.Figure()
        self.figure.update_layout(title=title, height=height, margin=dict(l=40, r=20, t=40, b=30),
                                  plot_bgcolor=CONFIG.COLORS['card'], legend=dict(orientation="h", y=-0.2),
                                  uirevision=kind)
        self._colors = {}

    def color(self, name):
        if name not in self._colors:
            palette = px.colors.qualitative.Plotly
            self._colors[name] = palette[len(self._colors) % len(palette)]
        return self._colors[name]

    def set_x_domain(self, lo, hi):
        self.figure.update_xaxes(range=[lo, hi])

    def draw_axes(self, x_domain, y_domain):
        lo, hi = x_domain
        # gridline every 2 minutes of surgery time
        ticks = np.arange(math.ceil(lo / 120) * 120, hi + 1e-9, 120)
        self.figure.update_xaxes(tickvals=ticks, ticktext=[format_clock(t) for t in ticks],
                                 showgrid=True, gridcolor="#e2e8f0", zeroline=False)
        self.figure.update_yaxes(range=list(y_domain), showgrid=True, gridcolor="#e2e8f0")

    def move_marker(self, t):
        self.figure.layout.shapes = ()
        self.figure.add_vline(x=t, line_color=CONFIG.COLORS['marker'], line_width=2, line_dash="dot")

    def draw_paths(self, paths):
        self.figure.data = []
        for name, s in paths.items():
            if self.kind == CONFIG.VITALS:
                xs, ys = smooth_path(s.times, s.values)
                trace = go.Scatter(x=xs, y=ys, mode='lines', line=dict(color=self.color(name), width=2))
            else:
                # dosing/settings hold their value until the next change
                trace = go.Scatter(x=s.times, y=s.values, mode='lines', line_shape='hv',
                                   line=dict(color=self.color(name), width=2))
            trace.name = label(name)
            self.figure.add_trace(trace)


class TextReadouts:
    def __init__(self):
        self.values = {}

    def show(self, readouts):
        self.values = {category: dict(values) for category, values in readouts.items()}


class ClockText:
    def __init__(self):
        self.text = format_clock(0)

    def show(self, text):
        self.text = text


class SessionScrubControl:
    """
    Slider position kept in a session-state mapping under `key`.

    Programmatic updates write the key directly; the change callback returned
    by on_user_change ignores anything written while a sync is in progress.
    """

    def __init__(self, state, key="scrub"):
        self.state = state
        self.key = key
        self.lo = 0.0
        self.hi = 0.0
        self._syncing = False

    @property
    def value(self):
        return float(self.state.get(self.key, 0.0))

    def set_position(self, value, lo, hi):
        self._syncing = True
        try:
            self.lo, self.hi = float(lo), float(hi)
            self.state[self.key] = float(value)
        finally:
            self._syncing = False

    def on_user_change(self, handler):
        def _changed():
            if self._syncing: return
            handler(self.value)
        return _changed
