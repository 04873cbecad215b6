"""
Modifier Pipeline: lifestyle factors -> adjusted sleep targets.

Factors are applied in a fixed order, since multiplicative and additive
steps do not commute:

  1. blue light        latency, -TST, N3/REM down, N1 up
  2. caffeine          first-order decay to bedtime, N3 down, N1/WASO up, -TST
  3. alcohol           WASO up, N3/REM down (floored)
  4. social jet lag    bedtime shift, -TST, N3/REM down, WASO up
  5. gender            male > 30: WASO fragmentation (N3 per calibration)
  6. menopause         WASO up, N3/REM down, N1 up, latency up
  7. age phase shift   start-time offset only (elderly advance, teen delay)
  8. SDB severity      N3/REM down, WASO/N1 up, -TST
  9. nocturia          WASO up

Then N3 + REM + N1 is rescaled under the calibration's fraction ceiling and
N2 takes the remainder.

Active caffeine (cup-equivalents at bedtime):
  dose_active = cups * 0.5^(hours_before_bed / t_half),  t_half in {4, 6, 8} h

Sources:
  - Drake et al., 2013 (caffeine 0/3/6h before bed)
  - Ebrahim et al., 2013 (alcohol and sleep architecture)
  - Chang et al., 2015 (evening light-emitting e-readers)
  - Wittmann et al., 2006 (social jet lag)
  - Carskadon, 2011 (adolescent phase delay); Duffy et al., 2015 (elderly advance)
  - Polo-Kantola, 2011 (menopause); Bianchi et al., 2010 (SDB)
"""

import logging

from sleepsim.config import (
    ACTIVE_CAFFEINE_THRESHOLD,
    CAFFEINE_HALF_LIFE_H,
    CHRONOTYPE_OFFSET_MIN,
    ELDERLY_PHASE_FULL_AGE,
    ELDERLY_PHASE_MAX_MIN,
    ELDERLY_PHASE_START_AGE,
    MIN_LATENCY_MIN,
    SOCIAL_JET_LAG_SHIFT_MIN,
    TEEN_PHASE_DELAY_KEYFRAMES,
    get_calibration,
)
from sleepsim.core.models import (
    AdjustedTargets,
    AgeProfile,
    CaffeineMetabolism,
    Gender,
    ModifierResult,
    SleepConfig,
)
from sleepsim.core.profile import interpolate_keyframes

log = logging.getLogger("sleepsim.engine")


# ── Caffeine pharmacokinetics ────────────────────────────────────────

def caffeine_half_life(metabolism: str) -> float:
    """Elimination half-life in hours for a metabolism class."""
    return CAFFEINE_HALF_LIFE_H[CaffeineMetabolism(metabolism).value]


def active_caffeine(cups: float, hours_before_bed: float, metabolism: str) -> float:
    """Cup-equivalents still active at bedtime (first-order elimination)."""
    if cups <= 0:
        return 0.0
    return cups * 0.5 ** (max(0.0, hours_before_bed) / caffeine_half_life(metabolism))


# ── Circadian phase ──────────────────────────────────────────────────

def elderly_phase_shift(age: float) -> float:
    """Phase advance after 65: linear to -120 min at 85, capped."""
    if age <= ELDERLY_PHASE_START_AGE:
        return 0.0
    span = ELDERLY_PHASE_FULL_AGE - ELDERLY_PHASE_START_AGE
    shift = ELDERLY_PHASE_MAX_MIN * (age - ELDERLY_PHASE_START_AGE) / span
    return max(ELDERLY_PHASE_MAX_MIN, shift)


def teen_phase_delay(age: float) -> float:
    """Adolescent phase delay: 0 at 13, ~90 min plateau at 17-19, 0 again by 21."""
    first_age = TEEN_PHASE_DELAY_KEYFRAMES[0][0]
    last_age = TEEN_PHASE_DELAY_KEYFRAMES[-1][0]
    if age <= first_age or age >= last_age:
        return 0.0
    return interpolate_keyframes(TEEN_PHASE_DELAY_KEYFRAMES, age)


def start_time_offset(config: SleepConfig) -> float:
    """Lights-out offset in minutes relative to 22:00."""
    offset = CHRONOTYPE_OFFSET_MIN.get(config.chronotype.value, 0.0)
    if config.social_jet_lag:
        offset += SOCIAL_JET_LAG_SHIFT_MIN
    offset += elderly_phase_shift(config.age)
    offset += teen_phase_delay(config.age)
    return offset


# ── Latency ──────────────────────────────────────────────────────────

def sleep_latency(
    config: SleepConfig,
    caffeine_active: float,
    blue_light_latency: float,
    calibration: dict,
) -> float:
    """Minutes from lights-out to sleep onset."""
    latency = calibration["base_latency"]
    if config.age > calibration["elderly_latency_age"]:
        latency += calibration["elderly_latency"]
    latency += caffeine_active * calibration["caffeine_latency_per_cup"]
    latency += blue_light_latency
    if config.alcohol > 0:
        latency = max(
            MIN_LATENCY_MIN,
            latency - config.alcohol * calibration["alcohol_latency_per_drink"],
        )
    if config.is_menopausal:
        latency += calibration["menopause_latency"]
    return max(MIN_LATENCY_MIN, latency)


# ── Pipeline ─────────────────────────────────────────────────────────

def apply_modifiers(
    profile: AgeProfile,
    config: SleepConfig,
    calibration: dict | None = None,
) -> ModifierResult:
    """Apply all lifestyle modifiers to a baseline profile."""
    cal = calibration if calibration is not None else get_calibration()

    tst = profile.total_sleep_target
    n3 = profile.n3_fraction
    rem = profile.rem_fraction
    n1 = profile.n1_fraction
    waso = profile.waso_target

    # 1. Blue light (evening screens)
    blue_light_latency = 0.0
    if config.blue_light:
        blue_light_latency = cal["blue_light_latency"]
        tst -= cal["blue_light_total_sleep"]
        n3 *= cal["blue_light_n3_factor"]
        rem *= cal["blue_light_rem_factor"]
        n1 += cal["blue_light_n1_increase"]

    # 2. Caffeine
    dose = active_caffeine(config.caffeine, config.caffeine_time, config.caffeine_metabolism)
    if dose > ACTIVE_CAFFEINE_THRESHOLD:
        n3 *= max(cal["caffeine_n3_floor"], 1 - dose * cal["caffeine_n3_per_cup"])
        n1 += dose * cal["caffeine_n1_per_cup"]
        tst -= dose * cal["caffeine_total_sleep_per_cup"]
        waso += dose * cal["caffeine_waso_per_cup"]

    # 3. Alcohol (whole-night share; biphasic per-cycle bias lives in the block generator)
    if config.alcohol > 0:
        waso += config.alcohol * cal["alcohol_waso_per_drink"]
        n3 *= max(cal["alcohol_n3_floor"], 1 - config.alcohol * cal["alcohol_n3_per_drink"])
        rem *= max(cal["alcohol_rem_floor"], 1 - config.alcohol * cal["alcohol_rem_per_drink"])

    # 4. Social jet lag
    if config.social_jet_lag:
        tst -= cal["social_jet_lag_total_sleep"]
        n3 *= cal["social_jet_lag_n3_factor"]
        rem *= cal["social_jet_lag_rem_factor"]
        waso += cal["social_jet_lag_waso"]

    # 5. Gender
    if config.gender == Gender.MALE and config.age > cal["male_min_age"]:
        waso *= cal["male_waso_factor"]
        n3 *= cal["male_n3_factor"]

    # 6. Menopause (accepted for any gender/age; gating is the caller's concern)
    if config.is_menopausal:
        waso += cal["menopause_waso_minutes"]
        n3 *= cal["menopause_n3_factor"]
        rem *= cal["menopause_rem_factor"]
        n1 += cal["menopause_n1_increase"]

    # 7. Age-related phase shift
    offset = start_time_offset(config)

    # 8. Sleep-disordered breathing
    if config.sdb_severity > 0:
        factor = config.sdb_severity / 10
        n3 *= 1 - factor * cal["sdb_n3_reduction"]
        rem *= 1 - factor * cal["sdb_rem_reduction"]
        waso += factor * cal["sdb_waso_minutes"]
        n1 += factor * cal["sdb_n1_increase"]
        tst -= factor * cal["sdb_total_sleep_minutes"]

    # 9. Nocturia
    if config.nocturia > 0:
        waso += config.nocturia * cal["nocturia_waso_per_event"]

    ceiling = cal["fraction_ceiling"]
    total = n3 + rem + n1
    if total > ceiling:
        scale = ceiling / total
        n3 *= scale
        rem *= scale
        n1 *= scale
    n2 = 1.0 - (n3 + rem + n1)

    latency = sleep_latency(config, dose, blue_light_latency, cal)

    adjusted = AdjustedTargets(
        total_sleep_target=max(0.0, tst),
        n3_fraction=n3,
        rem_fraction=rem,
        n1_fraction=n1,
        n2_fraction=n2,
        waso_target=max(0.0, waso),
    )
    log.debug(
        "Modifiers applied: tst=%.1f waso=%.1f n3=%.3f rem=%.3f n1=%.3f n2=%.3f "
        "latency=%.1f offset=%.0f caffeine=%.2f",
        adjusted.total_sleep_target, adjusted.waso_target, n3, rem, n1, n2,
        latency, offset, dose,
    )
    return ModifierResult(
        adjusted=adjusted,
        latency_minutes=latency,
        start_time_offset_minutes=offset,
        blue_light_latency=blue_light_latency,
        active_caffeine=dose,
    )
