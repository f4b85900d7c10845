import os


class CONFIG:
    # UI Colors
    COLORS = {
        "bg": "#f8fafc", "card": "#ffffff", "text": "#0f172a", "muted": "#64748b",
        "crit": "#dc2626", "warn": "#d97706", "ok": "#059669",
        "info": "#2563eb", "hemo": "#0891b2", "resp": "#7c3aed",
        "drug": "#4f46e5", "marker": "#be185d", "point": "steelblue"
    }

    # Playback
    WINDOW_SIZE = 600.0   # seconds visible in the playback charts
    TICK_SECONDS = 1.0    # wall-clock period of one tick
    DEFAULT_SPEED = 10.0  # seconds of data advanced per tick
    SPEED_STEP = 20.0
    NO_DATA = "–"

    # Series categories
    VITALS = "vitals"
    INTERVENTIONS = "interventions"
    CATEGORIES = (VITALS, INTERVENTIONS)

    # Parameter labels (units shown in live readouts)
    LABELS = {
        "HR": ("Heart Rate", "bpm"), "SBP": ("Systolic BP", "mmHg"), "DBP": ("Diastolic BP", "mmHg"),
        "MBP": ("Mean BP", "mmHg"), "SpO2": ("SpO2", "%"), "ETCO2": ("EtCO2", "mmHg"), "BT": ("Body Temp", "°C"),
        "PPF20_RATE": ("Propofol 2%", "mL/h"), "RFTN20_RATE": ("Remifentanil", "mL/h"),
        "FIO2": ("FiO2", "%"), "PEEP": ("PEEP", "cmH2O")
    }

    # Cohort view
    ICU_DAYS_CAP = 50
    NUMERIC_FIELDS = ("age", "height", "weight", "bmi", "asa", "emop", "surgery_time", "icu_days")
    Y_OPTIONS = ("surgery_time", "icu_days", "los_postop")
    X_OPTIONS = ("age", "bmi", "height", "weight", "asa")

    # Environment
    DATA_DIR = os.environ.get("ORVITALS_DATA_DIR", "data")
    LOG_LEVEL = os.environ.get("ORVITALS_LOG_LEVEL", "INFO")
    DEMO_CASES = int(os.environ.get("ORVITALS_DEMO_CASES", "40"))
    DEMO_SEED = 42


def label(name):
    return CONFIG.LABELS.get(name, (name, ""))[0]


def unit(name):
    return CONFIG.LABELS.get(name, (name, ""))[1]
