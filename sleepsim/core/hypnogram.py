"""
Hypnogram Generator: adjusted targets -> timed sleep-stage blocks.

Continuous-cycle block engine:
  - WAKE (latency) -> initial N1, then ~90 min cycles until accumulated
    sleep reaches the total-sleep target
  - each cycle: N2 bridge (40% of N2) -> N3 -> N2 bridge (60% of N2) -> REM,
    plus a short post-REM N1 transition after full cycles
  - the last cycle is shortened to the remaining sleep budget, so total
    sleep lands on the target instead of overshooting by a whole cycle
  - WASO is split into ~15 min WAKE chunks placed after randomly chosen
    cycles; WAKE time advances the clock but not accumulated sleep

Per-cycle architecture (cycle index i, estimated cycle count n):
  progress = min(1, i / n)
  N3_i  = N3 * (1 - progress) * w_N3        early cycles deep-sleep dominant
  REM_i = REM * (0.5 + 1.5 * progress)      late cycles REM dominant
  N2_i  = 1 - N3_i - REM_i                  at least 10% reserved

Micro-arousals are a visual overlay and never touch the sleep/TIB accounting.

Sources:
  - Carskadon & Dement, 2011 (NREM/REM cycle ultradian structure)
  - Ohayon et al., 2004 (WASO, N1 with age)
  - Roehrs & Roth, 2001 (alcohol: early REM suppression, late rebound)
"""

import logging
import math
import random

from sleepsim.config import (
    CYCLE_LENGTH_MIN,
    INITIAL_N1_AGE_BONUS_MIN,
    INITIAL_N1_MIN,
    INITIAL_N1_PER_CAFFEINE_MIN,
    LOCAL_N2_RESERVE,
    N2_BRIDGE_POST_SHARE,
    N2_BRIDGE_PRE_SHARE,
    NEGLIGIBLE_N3_SHARE,
    NOCTURIA_EVENT_MIN,
    NOCTURIA_JITTER_MIN,
    POST_REM_N1_AGE_BONUS_MIN,
    POST_REM_N1_MIN,
    TIMELINE_ANCHOR_MIN,
    get_calibration,
)
from sleepsim.core.models import (
    AdjustedTargets,
    SimulationParams,
    SimulationResult,
    SimulationStats,
    SleepConfig,
    SleepStage,
    StageBlock,
    WakeEvent,
)
from sleepsim.core.modifiers import apply_modifiers
from sleepsim.core.profile import resolve_age_profile

log = logging.getLogger("sleepsim.engine")

# Remaining sleep below this counts as reached; guards against float dust cycles.
SLEEP_EPSILON_MIN = 1e-9


class SimulationError(ValueError):
    """Raised when a generation produces degenerate output (zero time in bed, NaN stats)."""


# ── Block timeline ───────────────────────────────────────────────────

class _Timeline:
    """Contiguous block writer: tracks the wall-clock cursor and accumulated sleep."""

    def __init__(self):
        self.blocks: list[tuple[SleepStage, float, float]] = []
        self.current_time = 0.0
        self.accumulated_sleep = 0.0

    def emit(self, stage: SleepStage, duration: float) -> None:
        if duration <= 0:
            return
        self.blocks.append((stage, self.current_time, duration))
        self.current_time += duration
        if stage != SleepStage.WAKE:
            self.accumulated_sleep += duration


# ── Per-cycle architecture ───────────────────────────────────────────

def cycle_fractions(
    adjusted: AdjustedTargets,
    cycle_index: int,
    estimated_cycles: int,
    alcohol: int = 0,
    calibration: dict | None = None,
) -> tuple[float, float, float]:
    """
    Local (N3, REM, N2) shares for one cycle.
    N3 decays and REM grows with cycle index; alcohol biases early cycles
    toward N3 and later cycles toward REM. N2 keeps at least LOCAL_N2_RESERVE.
    """
    cal = calibration if calibration is not None else get_calibration()
    progress = min(1.0, cycle_index / max(1, estimated_cycles))

    local_n3 = adjusted.n3_fraction * (1 - progress) * cal["local_n3_weight"]
    local_rem = adjusted.rem_fraction * (cal["local_rem_base"] + progress * cal["local_rem_growth"])

    if alcohol > 0:
        if cycle_index < cal["alcohol_early_cycles"]:
            local_n3 *= 1 + alcohol * cal["alcohol_early_n3_per_drink"]
            local_rem *= max(
                cal["alcohol_early_rem_floor"],
                1 - alcohol * cal["alcohol_early_rem_per_drink"],
            )
        else:
            local_rem *= 1 + alcohol * cal["alcohol_late_rem_per_drink"]
            local_n3 *= cal["alcohol_late_n3_factor"]

    budget = 1.0 - LOCAL_N2_RESERVE
    if local_n3 + local_rem > budget:
        scale = budget / (local_n3 + local_rem)
        local_n3 *= scale
        local_rem *= scale

    local_n2 = 1.0 - (local_n3 + local_rem)
    return local_n3, local_rem, local_n2


# ── WASO scheduling ──────────────────────────────────────────────────

def schedule_waso_chunks(
    waso_target: float,
    total_sleep_target: float,
    rng: random.Random,
    chunk_minutes: float = 15.0,
) -> tuple[list[int], float]:
    """
    Split WASO into ~chunk_minutes chunks and draw a target cycle for each.
    Returns (sorted cycle indices, chunk duration); chunks sum to waso_target.
    """
    chunk_count = max(1, math.floor(waso_target / chunk_minutes))
    chunk_duration = waso_target / chunk_count
    estimated_cycles = max(1, math.ceil(total_sleep_target / CYCLE_LENGTH_MIN))
    indices = sorted(rng.randrange(estimated_cycles) for _ in range(chunk_count))
    return indices, chunk_duration


# ── Block generator ──────────────────────────────────────────────────

def generate_blocks(
    adjusted: AdjustedTargets,
    latency_minutes: float,
    config: SleepConfig,
    rng: random.Random,
    active_caffeine: float = 0.0,
    calibration: dict | None = None,
) -> tuple[list[StageBlock], float, float]:
    """
    Build the contiguous block sequence starting at t=0 (lights-out).
    Returns (blocks, accumulated_sleep, time_in_bed).
    """
    cal = calibration if calibration is not None else get_calibration()
    target = adjusted.total_sleep_target
    timeline = _Timeline()

    # Sleep-onset latency
    timeline.emit(SleepStage.WAKE, latency_minutes)

    # Initial N1 (capped so tiny targets still land exactly)
    initial_n1 = INITIAL_N1_MIN + active_caffeine * INITIAL_N1_PER_CAFFEINE_MIN
    if config.age > 50:
        initial_n1 += INITIAL_N1_AGE_BONUS_MIN
    timeline.emit(SleepStage.N1, min(initial_n1, target))

    waso_indices, waso_chunk = schedule_waso_chunks(
        adjusted.waso_target, target, rng, cal["waso_chunk_minutes"],
    )
    estimated_cycles = max(1, math.ceil(target / CYCLE_LENGTH_MIN))
    transition_n1 = POST_REM_N1_MIN + (POST_REM_N1_AGE_BONUS_MIN if config.age > 50 else 0.0)

    cycle_index = 0
    next_chunk = 0
    while target - timeline.accumulated_sleep > SLEEP_EPSILON_MIN:
        remaining = target - timeline.accumulated_sleep
        cycle_budget = min(CYCLE_LENGTH_MIN, remaining)
        full_cycle = remaining > CYCLE_LENGTH_MIN

        local_n3, local_rem, local_n2 = cycle_fractions(
            adjusted, cycle_index, estimated_cycles, config.alcohol, cal,
        )
        n2_pre = cycle_budget * local_n2 * N2_BRIDGE_PRE_SHARE
        n2_post = cycle_budget * local_n2 * N2_BRIDGE_POST_SHARE
        n3_minutes = cycle_budget * local_n3
        rem_minutes = cycle_budget * local_rem

        if local_n3 > NEGLIGIBLE_N3_SHARE:
            timeline.emit(SleepStage.N2, n2_pre)
            timeline.emit(SleepStage.N3, n3_minutes)
        else:
            timeline.emit(SleepStage.N2, n2_pre + n3_minutes)
        timeline.emit(SleepStage.N2, n2_post)
        timeline.emit(SleepStage.REM, rem_minutes)

        if full_cycle:
            left = target - timeline.accumulated_sleep
            timeline.emit(SleepStage.N1, min(transition_n1, left))

        while next_chunk < len(waso_indices) and waso_indices[next_chunk] == cycle_index:
            timeline.emit(SleepStage.WAKE, waso_chunk)
            next_chunk += 1

        log.debug(
            "Cycle %d: budget=%.1f n3=%.3f rem=%.3f n2=%.3f accumulated=%.1f t=%.1f",
            cycle_index, cycle_budget, local_n3, local_rem, local_n2,
            timeline.accumulated_sleep, timeline.current_time,
        )
        cycle_index += 1

    # Chunks drawn for cycles the loop never reached
    while next_chunk < len(waso_indices):
        timeline.emit(SleepStage.WAKE, waso_chunk)
        next_chunk += 1

    blocks = [
        StageBlock(stage=stage, start=start, duration=duration)
        for stage, start, duration in timeline.blocks
    ]
    return blocks, timeline.accumulated_sleep, timeline.current_time


# ── Micro-arousal overlay ────────────────────────────────────────────

def generate_wake_events(
    config: SleepConfig,
    latency_minutes: float,
    time_in_bed: float,
    rng: random.Random,
    calibration: dict | None = None,
) -> list[WakeEvent]:
    """Brief wake markers drawn over the night, plus nocturia bathroom breaks."""
    cal = calibration if calibration is not None else get_calibration()
    events: list[WakeEvent] = []
    sleep_span = time_in_bed - latency_minutes
    if sleep_span <= 0:
        return events

    count = cal["micro_arousals_base"] + cal["micro_arousals_per_sdb"] * config.sdb_severity
    if config.age > 50:
        count += cal["micro_arousals_age_bonus"]

    for _ in range(int(count)):
        events.append(WakeEvent(
            time=latency_minutes + rng.random() * sleep_span,
            duration=rng.uniform(cal["micro_arousal_min_duration"], cal["micro_arousal_max_duration"]),
            kind="micro",
        ))

    for i in range(1, config.nocturia + 1):
        t = latency_minutes + sleep_span * i / (config.nocturia + 1)
        t += rng.uniform(-NOCTURIA_JITTER_MIN, NOCTURIA_JITTER_MIN)
        t = min(max(t, latency_minutes), time_in_bed)
        events.append(WakeEvent(time=t, duration=NOCTURIA_EVENT_MIN, kind="nocturia"))

    return events


# ── Statistics ───────────────────────────────────────────────────────

def sleep_efficiency(total_sleep: float, time_in_bed: float) -> float:
    """SE = 100 * TST / TIB."""
    if time_in_bed <= 0 or not math.isfinite(time_in_bed):
        raise SimulationError(f"time in bed must be positive, got {time_in_bed}")
    return 100.0 * total_sleep / time_in_bed


def _check_finite(stats: SimulationStats) -> None:
    bad = [name for name, value in stats.model_dump().items() if not math.isfinite(value)]
    if bad:
        raise SimulationError(f"non-finite statistics: {', '.join(bad)}")


# ── Entry point ──────────────────────────────────────────────────────

def generate(
    config: SleepConfig,
    rng: random.Random | None = None,
    seed: int | None = None,
    calibration: str | dict | None = None,
) -> SimulationResult:
    """
    Simulate one night for a configuration.

    rng: random source for WASO placement and wake-event jitter. If omitted,
    a private random.Random(seed) is created (unseeded when seed is None).
    calibration: name in CALIBRATIONS or a full table (default: active one).
    """
    if rng is None:
        rng = random.Random(seed)
    cal = calibration if isinstance(calibration, dict) else get_calibration(calibration)

    profile = resolve_age_profile(config.age)
    modified = apply_modifiers(profile, config, cal)
    adjusted = modified.adjusted
    latency = modified.latency_minutes

    blocks, accumulated, time_in_bed = generate_blocks(
        adjusted, latency, config, rng, modified.active_caffeine, cal,
    )
    wake_events = generate_wake_events(config, latency, time_in_bed, rng, cal)

    offset = modified.start_time_offset_minutes
    shift = TIMELINE_ANCHOR_MIN + offset
    blocks = [b.model_copy(update={"start": b.start + shift}) for b in blocks]
    wake_events = [w.model_copy(update={"time": w.time + shift}) for w in wake_events]

    actual_total_sleep = sum(b.duration for b in blocks if b.stage != SleepStage.WAKE)
    if not math.isclose(actual_total_sleep, accumulated, rel_tol=1e-9, abs_tol=1e-6):
        raise SimulationError(
            f"block sleep total {actual_total_sleep:.6f} != accumulated {accumulated:.6f}"
        )

    stats = SimulationStats(
        n3_fraction=adjusted.n3_fraction,
        rem_fraction=adjusted.rem_fraction,
        n1_fraction=adjusted.n1_fraction,
        n2_fraction=adjusted.n2_fraction,
        waso_minutes=adjusted.waso_target,
        actual_total_sleep=actual_total_sleep,
        time_in_bed=time_in_bed,
        sleep_efficiency_percent=sleep_efficiency(actual_total_sleep, time_in_bed),
        latency_minutes=latency,
    )
    _check_finite(stats)

    log.debug(
        "Generated night: %d blocks, %d wake events, TST=%.1f TIB=%.1f SE=%.1f%%",
        len(blocks), len(wake_events), actual_total_sleep, time_in_bed,
        stats.sleep_efficiency_percent,
    )
    return SimulationResult(
        blocks=tuple(blocks),
        wake_events=tuple(wake_events),
        params=SimulationParams(
            chronotype=config.chronotype,
            start_time_offset=offset,
            actual_total_sleep=actual_total_sleep,
            time_in_bed=time_in_bed,
        ),
        stats=stats,
    )
