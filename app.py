import time
from pathlib import Path

import streamlit as st
import structlog

from orvitals.analytics import Cohort, Correlation
from orvitals.config import CONFIG, label, unit
from orvitals.engine import PlaybackEngine
from orvitals.log import configure_logging
from orvitals.store import load_dataset
from orvitals.surfaces import ClockText, PlotlyChartSurface, SessionScrubControl, TextReadouts
from orvitals.sync import ViewSync
from orvitals.viz import Viz

# ==========================================
# 1. CONFIGURATION & MEDICAL THEME
# ==========================================
st.set_page_config(
    page_title="ORVitals | Surgical Case Explorer",
    layout="wide",
    initial_sidebar_state="expanded",
    page_icon="🩺"
)
configure_logging(CONFIG.LOG_LEVEL)
logger = structlog.get_logger("orvitals.app")

STYLING = f"""
<style>
    @import url('https://fonts.googleapis.com/css2?family=Inter:wght@400;600;800&family=Roboto+Mono:wght@500;700&display=swap');
    .stApp {{ background-color: {CONFIG.COLORS['bg']}; color: {CONFIG.COLORS['text']}; font-family: 'Inter', sans-serif; }}

    div[data-testid="stMetric"] {{ background-color: {CONFIG.COLORS['card']}; border-left: 4px solid {CONFIG.COLORS['info']}; border-radius: 6px; padding: 10px; box-shadow: 0 2px 4px rgba(0,0,0,0.05); }}
    div[data-testid="stMetric"] label {{ color: {CONFIG.COLORS['muted']}; font-size: 0.7rem; font-weight: 700; letter-spacing: 0.05em; }}
    div[data-testid="stMetric"] div[data-testid="stMetricValue"] {{ font-family: 'Roboto Mono', monospace; font-size: 1.4rem; font-weight: 800; }}

    .patient-card {{ background: {CONFIG.COLORS['card']}; border-radius: 8px; padding: 12px 20px; border-left: 6px solid {CONFIG.COLORS['hemo']}; box-shadow: 0 4px 6px -1px rgba(0,0,0,0.1); }}
    .surgery-section {{ margin-bottom: 10px; }}
    .surgery-section-title {{ font-weight: 800; text-transform: uppercase; color: {CONFIG.COLORS['info']}; font-size: 0.75rem; }}
    .surgery-section p {{ margin: 2px 0; font-size: 0.85rem; }}
    .play-clock {{ font-family: 'Roboto Mono', monospace; font-size: 2rem; font-weight: 800; color: {CONFIG.COLORS['text']}; }}
    .clinical-hint {{ font-size: 0.8rem; color: #334155; background: #f1f5f9; padding: 12px; border-radius: 6px; margin-top: 5px; border-left: 4px solid {CONFIG.COLORS['info']}; }}
</style>
"""


@st.cache_resource
def dataset(data_dir):
    # loaded once per server process; both halves are read-only
    return load_dataset(data_dir)


class Player:
    """Per-session playback engine plus the surfaces it pushes into."""

    def __init__(self, store):
        self.charts = {
            CONFIG.VITALS: PlotlyChartSurface(CONFIG.VITALS, "Vitals"),
            CONFIG.INTERVENTIONS: PlotlyChartSurface(CONFIG.INTERVENTIONS, "Interventions", height=220),
        }
        self.readouts = TextReadouts()
        self.clock_text = ClockText()
        self.scrub = SessionScrubControl(st.session_state, key="scrub")
        self.engine = PlaybackEngine(store, ViewSync(self.charts, self.readouts, self.clock_text, self.scrub))


def render_hint(title, body):
    st.markdown(f"""
    <div class="clinical-hint">
        <div style="font-weight:700; border-bottom:1px solid #cbd5e1; margin-bottom:5px;">{title}</div>
        <div style="font-size:0.8rem;">{body}</div>
    </div>
    """, unsafe_allow_html=True)


# ==========================================
# 2. MAIN APP LOGIC
# ==========================================
class App:
    def __init__(self):
        self.catalog, self.store = dataset(CONFIG.DATA_DIR)
        if 'player' not in st.session_state:
            st.session_state.player = Player(self.store)
        self.player = st.session_state.player
        self.engine = self.player.engine

    def _on_case_change(self):
        self.engine.select_case(st.session_state.caseid)

    def sidebar(self):
        with st.sidebar:
            st.title("ORVitals")
            st.caption("Intraoperative Case Explorer")

            ids = self.catalog.ids() or self.store.case_ids()
            if not ids:
                st.warning("No cases loaded.")
                return
            st.selectbox("Case", ids, key="caseid", format_func=lambda c: f"Case {c}", on_change=self._on_case_change)

            st.markdown("---")
            st.markdown("**Playback**")
            c1, c2 = st.columns(2)
            c1.button("▶ Play", on_click=self.engine.play, use_container_width=True)
            c2.button("⏸ Pause", on_click=self.engine.pause, use_container_width=True)
            c1.button("⟲ Reset", on_click=self.engine.reset, use_container_width=True)
            c2.button(f"⏩ +{CONFIG.SPEED_STEP:g}s", on_click=self.engine.faster, use_container_width=True)

            s = self.engine.state
            st.caption(f"{'Running' if s.running else 'Stopped'} · {s.speed:g} s per tick")

            scrub = self.player.scrub
            if scrub.hi > 0:
                st.slider("Position (s)", min_value=0.0, max_value=scrub.hi, step=1.0, key=scrub.key,
                          on_change=scrub.on_user_change(self.engine.scrub_to))
            else:
                st.caption("Not enough vitals to scrub this case.")

    def cohort_tab(self):
        df = self.catalog.df
        if df.empty:
            st.info("No catalog data.")
            return
        c1, c2, c3 = st.columns([1, 1, 2])
        y_var = c1.selectbox("Outcome (Y)", [c for c in CONFIG.Y_OPTIONS if c in df], format_func=lambda c: c.replace('_', ' '))
        x_var = c2.selectbox("Predictor (X)", [c for c in CONFIG.X_OPTIONS if c in df])
        with c3:
            optype = st.radio("Operation type", Cohort.optypes(df), horizontal=True)
            f1, f2, f3 = st.columns(3)
            emergency_only = f1.checkbox("Emergency only")
            show_male = f2.checkbox("Male", value=True)
            show_female = f3.checkbox("Female", value=True)

        filtered = Cohort.filter(df, x_var, y_var, emergency_only, show_male, show_female, optype)
        st.markdown(f"**{Cohort.summary_text(filtered, y_var)}**")
        st.plotly_chart(Viz.cohort_scatter(filtered, x_var, y_var), use_container_width=True)

    def playback_tab(self):
        rec = self.catalog.get(self.engine.caseid)
        left, right = st.columns([1, 3])
        with left:
            st.markdown(Viz.patient_card_html(rec), unsafe_allow_html=True)
            if rec:
                image = Path(CONFIG.DATA_DIR) / Viz.table_image(rec)
                if image.exists():
                    st.image(str(image), use_container_width=True)
                st.markdown("**OR table**", help=Viz.patient_tooltip(rec))
        with right:
            st.markdown(f'<div class="play-clock">{self.player.clock_text.text}</div>', unsafe_allow_html=True)
            readouts = self.player.readouts.values
            for c in CONFIG.CATEGORIES:
                values = readouts.get(c, {})
                if not values: continue
                cols = st.columns(len(values))
                for col, (name, v) in zip(cols, values.items()):
                    u = unit(name)
                    col.metric(label(name), v if v == CONFIG.NO_DATA or not u else f"{v} {u}")
            for c in CONFIG.CATEGORIES:
                st.plotly_chart(self.player.charts[c].figure, use_container_width=True, key=f"chart_{c}")
            render_hint("PLAYBACK",
                        f"Charts show a {CONFIG.WINDOW_SIZE / 60:.0f}-minute window starting at the clock time. "
                        "Live values are the most recent reading up to the right edge of the window, "
                        "so an infusion rate set earlier still shows while it is running.")

    def correlation_tab(self):
        df = self.catalog.df
        cols = Correlation.numeric_columns(df)
        if len(cols) < 2:
            st.info("Not enough numeric parameters to correlate.")
            return
        st.plotly_chart(Viz.correlation_heatmap(Correlation.matrix(df, cols), Correlation.pvalues(df, cols)),
                        use_container_width=True)
        c1, c2, c3 = st.columns(3)
        x_var = c1.selectbox("X parameter", cols, index=0, key="cross_x")
        y_var = c2.selectbox("Y parameter", cols, index=min(1, len(cols) - 1), key="cross_y")
        color = c3.selectbox("Colour by", [None, "sex", "optype", "department"],
                             format_func=lambda c: "None" if c is None else c, key="cross_color")
        color = color if color in df else None
        st.plotly_chart(Viz.cross_scatter(df, x_var, y_var, color), use_container_width=True)

    def run(self):
        st.markdown(STYLING, unsafe_allow_html=True)

        # engine mutations happen before any widget is drawn so the slider picks them up
        if self.engine.case is None:
            first = st.session_state.get("caseid") or next(iter(self.catalog.ids() or self.store.case_ids()), None)
            if first is not None:
                self.engine.select_case(first)
        fired = self.engine.pump()
        if fired:
            logger.debug("ticks_fired", count=fired, at=self.engine.state.current_time)

        self.sidebar()
        t1, t2, t3 = st.tabs(["📊 Cohort", "🩺 Patient & Playback", "🔬 Correlations"])
        with t1:
            self.cohort_tab()
        with t2:
            self.playback_tab()
        with t3:
            self.correlation_tab()

        # rerun loop stands in for the browser's interval timer
        if self.engine.state.running:
            time.sleep(CONFIG.TICK_SECONDS)
            st.rerun()


if __name__ == "__main__":
    app = App()
    app.run()
