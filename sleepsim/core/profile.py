"""
Profile Resolver: age -> baseline sleep architecture.

Piecewise-linear interpolation over fixed keyframe tables:
  - flat below the first breakpoint and above the last
  - linear between the two bracketing breakpoints

N2 is the filler stage: n2 = 1 - (n3 + rem + n1). If that would drop below
the N2 floor, N3/REM/N1 are rescaled to PROFILE_FRACTION_CEILING and N2 is
set to the floor, so the four fractions always sum to 1.0.

Sources:
  - Ohayon et al., 2004 (age trends of N1, N3, REM, WASO)
  - National Sleep Foundation, Hirshkowitz et al., 2015 (duration by age)
  - Roffwarg et al., 1966 (infant REM share)
"""

from sleepsim.config import (
    N1_KEYFRAMES,
    N3_KEYFRAMES,
    PROFILE_FRACTION_CEILING,
    PROFILE_N2_FLOOR,
    REM_KEYFRAMES,
    TOTAL_SLEEP_KEYFRAMES,
    WASO_KEYFRAMES,
)
from sleepsim.core.models import AgeProfile


def interpolate_keyframes(keyframes: list[tuple[float, float]], x: float) -> float:
    """Linear interpolation over ascending (x, y) keyframes, flat outside the range."""
    if not keyframes:
        raise ValueError("keyframe table is empty")
    first_x, first_y = keyframes[0]
    if x <= first_x:
        return float(first_y)
    last_x, last_y = keyframes[-1]
    if x >= last_x:
        return float(last_y)
    for (x0, y0), (x1, y1) in zip(keyframes, keyframes[1:]):
        if x0 <= x <= x1:
            if x1 == x0:
                return float(y1)
            return y0 + (y1 - y0) * (x - x0) / (x1 - x0)
    return float(last_y)


def resolve_age_profile(age: float) -> AgeProfile:
    """Baseline sleep architecture for the given age in years."""
    if age < 0:
        raise ValueError(f"age must be >= 0, got {age}")

    total_sleep = interpolate_keyframes(TOTAL_SLEEP_KEYFRAMES, age)
    n3 = interpolate_keyframes(N3_KEYFRAMES, age)
    rem = interpolate_keyframes(REM_KEYFRAMES, age)
    waso = interpolate_keyframes(WASO_KEYFRAMES, age)
    n1 = interpolate_keyframes(N1_KEYFRAMES, age)

    n2 = 1.0 - (n3 + rem + n1)
    if n2 < PROFILE_N2_FLOOR:
        scale = PROFILE_FRACTION_CEILING / (n3 + rem + n1)
        n3 *= scale
        rem *= scale
        n1 *= scale
        n2 = 1.0 - (n3 + rem + n1)

    return AgeProfile(
        total_sleep_target=total_sleep,
        n3_fraction=n3,
        rem_fraction=rem,
        n1_fraction=n1,
        n2_fraction=n2,
        waso_target=waso,
    )
