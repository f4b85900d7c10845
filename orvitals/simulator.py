import numpy as np
import pandas as pd
import structlog

from orvitals.models import ParameterSeries
from orvitals.store import CaseCatalog, TimeSeriesStore

logger = structlog.get_logger(__name__)

# ==========================================
# 1. NOISE & PHYSIOLOGY
# ==========================================
class Utils:
    def __init__(self, seed=42):
        self.rng = np.random.default_rng(seed)

    def pink_noise(self, n):
        # 1/f noise for physiological realism
        if n <= 1: return np.zeros(n)
        uneven = n % 2
        X = self.rng.standard_normal(n // 2 + 1 + uneven) + 1j * self.rng.standard_normal(n // 2 + 1 + uneven)
        S = np.sqrt(np.arange(len(X)) + 1.)
        y = (np.fft.irfft(X / S)).real
        if uneven: y = y[:-1]
        y = y[:n]
        return (y - np.mean(y)) / (np.std(y) + 1e-8)


class PKPD:
    # Ke0 sets the plasma -> effect-site lag; Emax effects are per 1 mL/h of infusion
    DRUGS = {
        'PPF20_RATE':  {'ke0': 0.02, 'ec50': 40.0, 'n': 1.5, 'emax': {'MBP': -22.0, 'HR': -8.0}},
        'RFTN20_RATE': {'ke0': 0.03, 'ec50': 15.0, 'n': 1.2, 'emax': {'MBP': -10.0, 'HR': -15.0}},
    }

    @staticmethod
    def hill_effect(ce, emax, ec50, n):
        # Sigmoidal Emax model
        return (emax * (ce**n)) / (ec50**n + ce**n)

    @staticmethod
    def step_drug(ce, rate, ke0):
        # First order transfer to effect site
        return ce + ke0 * (rate - ce)

    @staticmethod
    def baroreflex(current_map, current_hr, target_map=80, gain=0.8):
        error = target_map - current_map
        return np.clip(current_hr + error * gain * 0.1, 40, 160)


# ==========================================
# 2. CASE CATALOG
# ==========================================
OPERATIONS = [
    # department, opname, optype, approach, position, dx
    ("General surgery", "Laparoscopic cholecystectomy", "Biliary/Pancreas", "Videoscopic", "Supine", "Gallbladder stone"),
    ("General surgery", "Low anterior resection", "Colorectal", "Open", "Lithotomy", "Rectal cancer"),
    ("General surgery", "Distal gastrectomy", "Stomach", "Videoscopic", "Supine", "Early gastric cancer"),
    ("Thoracic surgery", "Lobectomy", "Thoracic", "Videoscopic", "Lateral decubitus", "Lung cancer"),
    ("Gynecology", "Total laparoscopic hysterectomy", "Gynecology", "Videoscopic", "Lithotomy", "Uterine myoma"),
    ("Urology", "Radical prostatectomy", "Urology", "Robotic", "Trendelenburg", "Prostate cancer"),
    ("General surgery", "Thyroidectomy", "Thyroid", "Open", "Supine", "Thyroid cancer"),
    ("General surgery", "Hepatectomy", "Hepatic", "Open", "Supine", "Hepatocellular carcinoma"),
]


class DemoDataset:
    VITAL_STEP = 10  # seconds between vital samples

    def __init__(self, n_cases=40, seed=42):
        self.n_cases = n_cases
        self.seed = seed
        self.utils = Utils(seed)

    def catalog_frame(self):
        rng = self.utils.rng
        rows = []
        for i in range(self.n_cases):
            dept, opname, optype, approach, position, dx = OPERATIONS[rng.integers(len(OPERATIONS))]
            sex = "F" if optype == "Gynecology" else ("M" if optype == "Urology" else rng.choice(["M", "F"]))
            height = round(float(rng.normal(172 if sex == "M" else 159, 6)), 1)
            weight = round(float(rng.normal(72 if sex == "M" else 58, 10)), 1)
            emop = int(rng.random() < 0.12)
            surgery_time = int(rng.integers(45, 300))  # minutes
            los = int(max(1, rng.poisson(4 + 3 * emop)))
            icu_days = int(rng.poisson(0.5 + 2 * emop))
            adm = 0
            rows.append({
                "caseid": i + 1, "sex": sex, "age": int(np.clip(rng.normal(58, 14), 18, 90)),
                "height": height, "weight": weight, "bmi": round(weight / (height / 100) ** 2, 1),
                "department": dept, "opname": opname, "optype": optype, "approach": approach,
                "position": position, "emop": emop, "dx": dx, "asa": int(rng.integers(1, 4)),
                "adm": adm, "dis": adm + (los + 1) * 86400, "los_postop": los, "icu_days": icu_days,
                "death_inhosp": int(rng.random() < 0.01 + 0.05 * emop), "surgery_time": surgery_time,
            })
        return pd.DataFrame(rows)

    def interventions(self, duration):
        # sparse dosing/settings events as (time, value) steps
        rng = self.utils.rng
        out = {}
        for name, base, spread in (("PPF20_RATE", 25, 10), ("RFTN20_RATE", 10, 5)):
            t, times, vals = 0.0, [], []
            while t < duration:
                times.append(t); vals.append(round(max(0.0, float(rng.normal(base, spread))), 1))
                t += float(rng.integers(5, 25)) * 60
            times.append(float(duration)); vals.append(0.0)  # infusion stops at end of surgery
            out[name] = (np.array(times), np.array(vals))
        fio2_t = np.array([0.0, 300.0, max(600.0, duration - 600)])
        out["FIO2"] = (fio2_t, np.array([100.0, 50.0, 80.0]))
        out["PEEP"] = (np.array([300.0]), np.array([5.0]))
        return out

    def vitals(self, duration, drugs, baseline):
        n = int(duration // self.VITAL_STEP) + 1
        t_arr = np.arange(n) * float(self.VITAL_STEP)
        noise_map = self.utils.pink_noise(n) * 3.0
        noise_hr = self.utils.pink_noise(n) * 2.0

        map_arr = np.zeros(n); hr_arr = np.zeros(n)
        curr_map = baseline['map']; curr_hr = baseline['hr']
        ce = {k: 0.0 for k in drugs}
        for i, t in enumerate(t_arr):
            eff = {'MBP': 0.0, 'HR': 0.0}
            for d, (times, rates) in drugs.items():
                pk = PKPD.DRUGS.get(d)
                if not pk: continue
                idx = np.searchsorted(times, t, side='right') - 1
                rate = rates[idx] if idx >= 0 else 0.0
                ce[d] = PKPD.step_drug(ce[d], rate, pk['ke0'])
                for k, emax in pk['emax'].items():
                    eff[k] += PKPD.hill_effect(ce[d], emax, pk['ec50'], pk['n'])
            # Lag in MAP change (arterial compliance)
            target_map = baseline['map'] + eff['MBP']
            curr_map = curr_map + 0.2 * (target_map - curr_map) + noise_map[i] * 0.3
            curr_hr = PKPD.baroreflex(curr_map, baseline['hr'] + eff['HR']) + noise_hr[i] * 0.5
            map_arr[i] = curr_map; hr_arr[i] = curr_hr

        pulse = 40 + self.utils.rng.normal(0, 2, n)
        sbp = map_arr + 2 * pulse / 3; dbp = map_arr - pulse / 3
        spo2 = np.clip(99 - np.abs(self.utils.pink_noise(n)) * 0.8, 88, 100)
        etco2 = 35 + self.utils.pink_noise(n) * 1.5
        bt = 36.4 - 0.6 * (1 - np.exp(-t_arr / 3600)) + self.utils.pink_noise(n) * 0.05
        cols = {"HR": hr_arr, "SBP": sbp, "DBP": dbp, "MBP": map_arr, "SpO2": spo2, "ETCO2": etco2, "BT": bt}
        return {k: (t_arr, np.round(v, 1)) for k, v in cols.items()}

    def build(self):
        catalog = self.catalog_frame()
        vitals, interventions = {}, {}
        for rec in catalog.to_dict("records"):
            duration = float(rec["surgery_time"] * 60)
            drugs = self.interventions(duration)
            baseline = {'map': 85 + 5 * (rec["age"] > 65), 'hr': 78 - 0.1 * (rec["age"] - 50)}
            vit = self.vitals(duration, drugs, baseline)
            vitals[rec["caseid"]] = {k: ParameterSeries(k, t, v) for k, (t, v) in vit.items()}
            interventions[rec["caseid"]] = {k: ParameterSeries(k, t, v) for k, (t, v) in drugs.items()}

        logger.info("demo_dataset_built", cases=len(catalog), seed=self.seed)
        return CaseCatalog(catalog), TimeSeriesStore(vitals, interventions)
