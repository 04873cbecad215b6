"""
Two-process overlay (Borbely): homeostatic Process S and circadian Process C.

Purely presentational. Reads only summary outputs of a simulated night
(lights-out, time in bed, chronotype, caffeine timing) and never feeds back
into block generation.

Process S (sleep pressure, 0-1):
  awake:  S(t) = 1 - (1 - S0) * exp(-t / tau_r)          tau_r = 18.2 h
  asleep: S(t) = S_onset * exp(-(t - t_onset) / tau_d)   tau_d = 4.2 h

Effective sleep drive = max(0, S - caffeine_block),
  caffeine_block(t) = cups * 0.1 * 0.5^(hours_since_intake / t_half)

Process C (circadian sleep propensity):
  C(t) = 0.5 + 0.4 * cos(2 * pi * (t - peak) / 1440)
  peak at 03:00, shifted by chronotype, +60 min with evening blue light
"""

import math

from sleepsim.config import (
    CAFFEINE_BLOCK_PER_CUP,
    CHRONOTYPE_OFFSET_MIN,
    CURVE_STEP_MIN,
    PROCESS_C_AMPLITUDE,
    PROCESS_C_BLUE_LIGHT_DELAY_MIN,
    PROCESS_C_MEAN,
    PROCESS_C_PEAK_MIN,
    PROCESS_S_HOURS_AWAKE_AT_ORIGIN,
    PROCESS_S_TAU_DECAY_H,
    PROCESS_S_TAU_RISE_H,
    TIMELINE_SPAN_MIN,
)
from sleepsim.core.models import Chronotype, SimulationResult, SleepConfig
from sleepsim.core.modifiers import caffeine_half_life

TAU_RISE_MIN = PROCESS_S_TAU_RISE_H * 60
TAU_DECAY_MIN = PROCESS_S_TAU_DECAY_H * 60


def process_c_peak(chronotype: str, blue_light: bool = False) -> float:
    """Minute (from 18:00) of peak circadian sleep propensity."""
    peak = PROCESS_C_PEAK_MIN + CHRONOTYPE_OFFSET_MIN[Chronotype(chronotype).value]
    if blue_light:
        peak += PROCESS_C_BLUE_LIGHT_DELAY_MIN
    return peak


def process_c(t: float, peak: float) -> float:
    phase = (t - peak) / (24 * 60) * 2 * math.pi
    return PROCESS_C_MEAN + PROCESS_C_AMPLITUDE * math.cos(phase)


def process_s(t: float, sleep_start: float, sleep_end: float) -> float:
    """Homeostatic pressure at minute t for a night from sleep_start to sleep_end."""
    s_origin = 1 - math.exp(-(PROCESS_S_HOURS_AWAKE_AT_ORIGIN * 60) / TAU_RISE_MIN)
    s_onset = 1 - (1 - s_origin) * math.exp(-sleep_start / TAU_RISE_MIN)
    if t < sleep_start:
        return 1 - (1 - s_origin) * math.exp(-t / TAU_RISE_MIN)
    if t < sleep_end:
        return s_onset * math.exp(-(t - sleep_start) / TAU_DECAY_MIN)
    s_end = s_onset * math.exp(-(sleep_end - sleep_start) / TAU_DECAY_MIN)
    return 1 - (1 - s_end) * math.exp(-(t - sleep_end) / TAU_RISE_MIN)


def caffeine_block(t: float, intake_time: float, cups: float, half_life_h: float) -> float:
    """Adenosine-receptor block from caffeine taken at intake_time (minutes)."""
    if cups <= 0 or t < intake_time:
        return 0.0
    hours_since = (t - intake_time) / 60.0
    return cups * CAFFEINE_BLOCK_PER_CUP * 0.5 ** (hours_since / half_life_h)


def generate_overlay_curves(
    result: SimulationResult,
    config: SleepConfig,
    step_minutes: int = CURVE_STEP_MIN,
) -> list[dict]:
    """
    Sample S, effective S and C every step_minutes across the 18:00-12:00 window.
    Returns list of {t, process_s, effective_s, process_c}.
    """
    sleep_start = result.sleep_start
    sleep_end = sleep_start + result.params.time_in_bed
    intake_time = sleep_start - config.caffeine_time * 60
    half_life = caffeine_half_life(config.caffeine_metabolism)
    peak = process_c_peak(config.chronotype, config.blue_light)

    points = []
    for t in range(0, TIMELINE_SPAN_MIN + 1, step_minutes):
        s = process_s(t, sleep_start, sleep_end)
        block = caffeine_block(t, intake_time, config.caffeine, half_life)
        points.append({
            "t": t,
            "process_s": round(s, 4),
            "effective_s": round(max(0.0, s - block), 4),
            "process_c": round(process_c(t, peak), 4),
        })
    return points
