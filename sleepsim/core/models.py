"""
Data model for the sleep simulator.

Units are fixed per field:
  - durations / times: minutes (float)
  - stage shares: fractions of total sleep time, 0-1
  - caffeine / alcohol / nocturia: integer counts
"""

from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict, Field


class SleepStage(IntEnum):
    """Sleep stages; the integer value is the hypnogram row (0 = top)."""

    WAKE = 0
    REM = 1
    N1 = 2
    N2 = 3
    N3 = 4


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class Chronotype(str, Enum):
    LARK = "lark"
    NORMAL = "normal"
    OWL = "owl"


class CaffeineMetabolism(str, Enum):
    FAST = "fast"
    NORMAL = "normal"
    SLOW = "slow"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class SleepConfig(_Frozen):
    """Demographic and lifestyle inputs for one simulated night."""

    age: int = Field(25, ge=0, le=120, description="years")
    gender: Gender = Gender.MALE
    alcohol: int = Field(0, ge=0, le=10, description="standard drinks")
    caffeine: int = Field(0, ge=0, le=10, description="cup-equivalents")
    caffeine_time: float = Field(0.0, ge=0, le=24, description="hours before bedtime")
    caffeine_metabolism: CaffeineMetabolism = CaffeineMetabolism.NORMAL
    sdb_severity: int = Field(0, ge=0, le=10, description="sleep-disordered-breathing index")
    nocturia: int = Field(0, ge=0, le=10, description="nighttime urination events")
    chronotype: Chronotype = Chronotype.NORMAL
    social_jet_lag: bool = False
    blue_light: bool = False
    is_menopausal: bool = False


class AgeProfile(_Frozen):
    """Baseline sleep architecture for an age."""

    total_sleep_target: float = Field(..., description="minutes of sleep")
    n3_fraction: float
    rem_fraction: float
    n1_fraction: float
    n2_fraction: float
    waso_target: float = Field(..., description="minutes awake after sleep onset")

    @property
    def fraction_sum(self) -> float:
        return self.n3_fraction + self.rem_fraction + self.n1_fraction + self.n2_fraction


class AdjustedTargets(AgeProfile):
    """AgeProfile after lifestyle modifiers."""


class ModifierResult(_Frozen):
    adjusted: AdjustedTargets
    latency_minutes: float
    start_time_offset_minutes: float
    blue_light_latency: float
    active_caffeine: float = Field(0.0, description="cup-equivalents still active at bedtime")


class StageBlock(_Frozen):
    stage: SleepStage
    start: float = Field(..., description="minutes")
    duration: float = Field(..., gt=0, description="minutes")

    @property
    def end(self) -> float:
        return self.start + self.duration


class WakeEvent(_Frozen):
    """Visual-only wake marker; not part of sleep or time-in-bed accounting."""

    time: float = Field(..., description="minutes")
    duration: float = Field(..., gt=0, description="minutes")
    kind: str = Field("micro", pattern="^(micro|nocturia)$")


class SimulationParams(_Frozen):
    chronotype: Chronotype
    start_time_offset: float
    actual_total_sleep: float
    time_in_bed: float


class SimulationStats(_Frozen):
    n3_fraction: float
    rem_fraction: float
    n1_fraction: float
    n2_fraction: float
    waso_minutes: float
    actual_total_sleep: float
    time_in_bed: float
    sleep_efficiency_percent: float
    latency_minutes: float


class SimulationResult(_Frozen):
    blocks: tuple[StageBlock, ...]
    wake_events: tuple[WakeEvent, ...]
    params: SimulationParams
    stats: SimulationStats

    @property
    def sleep_start(self) -> float:
        """Lights-out, minutes from the timeline origin."""
        return self.blocks[0].start if self.blocks else 0.0

    @property
    def sleep_end(self) -> float:
        """Final wake, minutes from the timeline origin."""
        return self.blocks[-1].end if self.blocks else 0.0
