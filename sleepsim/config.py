"""
Sleep-Simulator Configuration.
All settings via environment variables with sensible defaults.
Domain constant tables (age keyframes, modifier calibrations) are fixed at design time.
"""

import os

# --- Service ---
API_URL = os.getenv("SLEEP_API_URL", "http://localhost:8000")
API_KEY = os.getenv("SLEEP_API_KEY", "")
LOG_LEVEL = os.getenv("SLEEP_LOG_LEVEL", "INFO")

# --- Calibration ---
# Which entry of CALIBRATIONS the engine uses when none is passed explicitly.
ACTIVE_CALIBRATION = os.getenv("SLEEP_CALIBRATION", "latest")

# --- Timeline ---
# Minutes are counted from an 18:00 origin; lights-out for a "normal" chronotype is 22:00.
TIMELINE_ORIGIN_HOUR = 18
TIMELINE_ANCHOR_MIN = 240
TIMELINE_SPAN_MIN = 1080   # 18:00 -> 12:00

# --- Sleep cycle ---
CYCLE_LENGTH_MIN = float(os.getenv("SLEEP_CYCLE_LENGTH_MIN", "90"))
NEGLIGIBLE_N3_SHARE = 0.05       # below this, a cycle's N3 share is folded into N2
LOCAL_N2_RESERVE = 0.10          # minimum N2 share kept in every cycle
N2_BRIDGE_PRE_SHARE = 0.4
N2_BRIDGE_POST_SHARE = 0.6

# --- Onset / transitions ---
INITIAL_N1_MIN = 5.0
INITIAL_N1_AGE_BONUS_MIN = 5.0       # age > 50
INITIAL_N1_PER_CAFFEINE_MIN = 5.0
POST_REM_N1_MIN = 2.0
POST_REM_N1_AGE_BONUS_MIN = 2.0      # age > 50
MIN_LATENCY_MIN = 5.0

# --- Caffeine half-life (hours) by metabolism ---
CAFFEINE_HALF_LIFE_H = {
    "fast": 4.0,
    "normal": 6.0,
    "slow": 8.0,
}
ACTIVE_CAFFEINE_THRESHOLD = 0.1   # cup-equivalents

# --- Start-time offsets (minutes) ---
CHRONOTYPE_OFFSET_MIN = {
    "lark": -120.0,
    "normal": 0.0,
    "owl": 180.0,
}
SOCIAL_JET_LAG_SHIFT_MIN = 180.0
ELDERLY_PHASE_START_AGE = 65
ELDERLY_PHASE_FULL_AGE = 85
ELDERLY_PHASE_MAX_MIN = -120.0
# Teenage phase delay: (age, minutes) ramp, 0 outside [13, 21]
TEEN_PHASE_DELAY_KEYFRAMES = [(13, 0.0), (17, 90.0), (19, 90.0), (21, 0.0)]

# --- Nocturia ---
NOCTURIA_EVENT_MIN = 10.0
NOCTURIA_JITTER_MIN = 15.0

# --- Age keyframes ---
# Ohayon et al. 2004 meta-analysis, National Sleep Foundation duration guidance,
# Roffwarg et al. 1966 (infant REM).
# Each table: list of (age_years, value), ascending by age.
TOTAL_SLEEP_KEYFRAMES = [
    (0, 960.0),    # 16h newborn
    (1, 780.0),
    (5, 660.0),    # 11h
    (12, 600.0),   # 10h
    (18, 510.0),   # 8.5h
    (20, 480.0),
    (40, 465.0),
    (60, 420.0),
    (80, 370.0),
    (90, 360.0),   # 6h floor
]
N3_KEYFRAMES = [
    (0, 0.20),
    (3, 0.30),
    (10, 0.28),
    (20, 0.24),
    (40, 0.20),
    (60, 0.16),
    (80, 0.12),
    (100, 0.10),
]
REM_KEYFRAMES = [
    (0, 0.50),
    (2, 0.30),
    (5, 0.25),
    (20, 0.23),
    (60, 0.20),
    (100, 0.18),
]
WASO_KEYFRAMES = [
    (0, 10.0),
    (20, 10.0),
    (40, 40.0),
    (60, 65.0),
    (80, 90.0),
    (100, 100.0),
]
N1_KEYFRAMES = [
    (0, 0.03),
    (20, 0.05),
    (40, 0.08),
    (60, 0.11),
    (80, 0.14),
    (100, 0.15),
]
PROFILE_FRACTION_CEILING = 0.95
PROFILE_N2_FLOOR = 0.05

# --- Modifier calibrations ---
# The historical engine variants disagree on these magnitudes; each variant is kept
# as a named table. "latest" is the continuous-loop engine with the full modifier set.
CALIBRATIONS = {
    "latest": {
        "blue_light_latency": 45.0,
        "blue_light_total_sleep": 30.0,
        "blue_light_n3_factor": 0.85,
        "blue_light_rem_factor": 0.9,
        "blue_light_n1_increase": 0.03,
        "caffeine_n3_per_cup": 0.15,
        "caffeine_n3_floor": 0.5,
        "caffeine_n1_per_cup": 0.03,
        "caffeine_total_sleep_per_cup": 15.0,
        "caffeine_waso_per_cup": 15.0,
        "caffeine_latency_per_cup": 20.0,
        "alcohol_waso_per_drink": 20.0,
        "alcohol_n3_per_drink": 0.05,
        "alcohol_n3_floor": 0.6,
        "alcohol_rem_per_drink": 0.1,
        "alcohol_rem_floor": 0.5,
        "alcohol_latency_per_drink": 5.0,
        "social_jet_lag_total_sleep": 60.0,
        "social_jet_lag_n3_factor": 0.9,
        "social_jet_lag_rem_factor": 0.8,
        "social_jet_lag_waso": 30.0,
        "male_min_age": 30,
        "male_n3_factor": 1.0,
        "male_waso_factor": 1.1,
        "menopause_waso_minutes": 40.0,
        "menopause_n3_factor": 0.85,
        "menopause_rem_factor": 0.9,
        "menopause_n1_increase": 0.05,
        "menopause_latency": 15.0,
        "sdb_n3_reduction": 0.8,
        "sdb_rem_reduction": 0.3,
        "sdb_waso_minutes": 60.0,
        "sdb_n1_increase": 0.2,
        "sdb_total_sleep_minutes": 0.0,
        "nocturia_waso_per_event": 10.0,
        "fraction_ceiling": 0.95,
        "base_latency": 15.0,
        "elderly_latency_age": 60,
        "elderly_latency": 10.0,
        "waso_chunk_minutes": 15.0,
        "local_n3_weight": 2.5,
        "local_rem_base": 0.5,
        "local_rem_growth": 1.5,
        "alcohol_early_cycles": 2,
        "alcohol_early_n3_per_drink": 0.1,
        "alcohol_early_rem_per_drink": 0.3,
        "alcohol_early_rem_floor": 0.1,
        "alcohol_late_rem_per_drink": 0.2,
        "alcohol_late_n3_factor": 0.5,
        "micro_arousals_base": 5,
        "micro_arousals_age_bonus": 5,
        "micro_arousals_per_sdb": 5,
        "micro_arousal_min_duration": 1.0,
        "micro_arousal_max_duration": 5.0,
    },
    "early": {
        "blue_light_latency": 45.0,
        "blue_light_total_sleep": 30.0,
        "blue_light_n3_factor": 0.85,
        "blue_light_rem_factor": 0.9,
        "blue_light_n1_increase": 0.03,
        "caffeine_n3_per_cup": 0.15,
        "caffeine_n3_floor": 0.5,
        "caffeine_n1_per_cup": 0.03,
        "caffeine_total_sleep_per_cup": 15.0,
        "caffeine_waso_per_cup": 15.0,
        "caffeine_latency_per_cup": 15.0,
        "alcohol_waso_per_drink": 25.0,
        "alcohol_n3_per_drink": 0.1,
        "alcohol_n3_floor": 0.6,
        "alcohol_rem_per_drink": 0.1,
        "alcohol_rem_floor": 0.4,
        "alcohol_latency_per_drink": 10.0,
        "social_jet_lag_total_sleep": 60.0,
        "social_jet_lag_n3_factor": 0.85,
        "social_jet_lag_rem_factor": 0.8,
        "social_jet_lag_waso": 30.0,
        "male_min_age": 30,
        "male_n3_factor": 0.7,
        "male_waso_factor": 1.3,
        "menopause_waso_minutes": 45.0,
        "menopause_n3_factor": 0.80,
        "menopause_rem_factor": 0.9,
        "menopause_n1_increase": 0.05,
        "menopause_latency": 15.0,
        "sdb_n3_reduction": 0.75,
        "sdb_rem_reduction": 0.3,
        "sdb_waso_minutes": 80.0,
        "sdb_n1_increase": 0.15,
        "sdb_total_sleep_minutes": 60.0,
        "nocturia_waso_per_event": 10.0,
        "fraction_ceiling": 0.9,
        "base_latency": 10.0,
        "elderly_latency_age": 60,
        "elderly_latency": 10.0,
        "waso_chunk_minutes": 15.0,
        "local_n3_weight": 2.0,
        "local_rem_base": 0.5,
        "local_rem_growth": 1.5,
        "alcohol_early_cycles": 2,
        "alcohol_early_n3_per_drink": 0.1,
        "alcohol_early_rem_per_drink": 0.4,
        "alcohol_early_rem_floor": 0.2,
        "alcohol_late_rem_per_drink": 0.2,
        "alcohol_late_n3_factor": 0.5,
        "micro_arousals_base": 5,
        "micro_arousals_age_bonus": 5,
        "micro_arousals_per_sdb": 15,
        "micro_arousal_min_duration": 2.0,
        "micro_arousal_max_duration": 13.0,
    },
}

# --- Two-process model (overlay only) ---
# Borbely 1982; Daan, Beersma & Borbely 1984
PROCESS_S_TAU_RISE_H = 18.2
PROCESS_S_TAU_DECAY_H = 4.2
PROCESS_S_HOURS_AWAKE_AT_ORIGIN = 11.0   # woke ~07:00
PROCESS_C_PEAK_MIN = 420.0               # 03:00
PROCESS_C_MEAN = 0.5
PROCESS_C_AMPLITUDE = 0.4
PROCESS_C_BLUE_LIGHT_DELAY_MIN = 60.0
CAFFEINE_BLOCK_PER_CUP = 0.1
CURVE_STEP_MIN = 5

# --- Ideal sleep window by chronotype (minutes from origin) ---
IDEAL_SLEEP_WINDOW_MIN = {
    "lark": (120, 600),
    "normal": (240, 720),
    "owl": (420, 900),
}


def get_calibration(name: str | None = None) -> dict:
    """Look up a calibration table by name (default: ACTIVE_CALIBRATION)."""
    key = name or ACTIVE_CALIBRATION
    try:
        return CALIBRATIONS[key]
    except KeyError:
        raise ValueError(
            f"Unknown calibration '{key}'. Available: {', '.join(sorted(CALIBRATIONS))}"
        ) from None
