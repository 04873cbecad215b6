"""
Caller-owned state for interactive use: one config + cached last result per profile.

Two profiles (A/B) are fully independent; regenerating one never touches the other.
"""

from typing import Callable, Optional

from sleepsim.core.hypnogram import generate
from sleepsim.core.models import SimulationResult, SleepConfig

Generator = Callable[[SleepConfig], SimulationResult]


class ProfileSession:
    """Holds one configuration and the result last generated for it."""

    def __init__(self, config: Optional[SleepConfig] = None, generator: Optional[Generator] = None):
        self.config = config or SleepConfig()
        self._generator = generator or generate
        self._last_config: Optional[SleepConfig] = None
        self._last_result: Optional[SimulationResult] = None

    @property
    def last_result(self) -> Optional[SimulationResult]:
        return self._last_result

    def update(self, **changes) -> SleepConfig:
        """Replace config fields (validated); the cached result stays until next result()."""
        self.config = SleepConfig.model_validate({**self.config.model_dump(), **changes})
        return self.config

    def result(self) -> SimulationResult:
        """Cached result for the current config, regenerating only if the config changed."""
        if self._last_result is None or self._last_config != self.config:
            self._last_result = self._generator(self.config)
            self._last_config = self.config
        return self._last_result

    def regenerate(self) -> SimulationResult:
        """Force a fresh draw (new WASO placement / wake-event jitter)."""
        self._last_result = None
        return self.result()


class ProfileComparison:
    """Independent A and B profiles."""

    NAMES = ("A", "B")

    def __init__(self, generator: Optional[Generator] = None):
        self.profiles = {name: ProfileSession(generator=generator) for name in self.NAMES}

    def __getitem__(self, name: str) -> ProfileSession:
        try:
            return self.profiles[name]
        except KeyError:
            raise KeyError(f"Unknown profile '{name}', expected one of {self.NAMES}") from None

    def results(self) -> dict[str, SimulationResult]:
        return {name: session.result() for name, session in self.profiles.items()}
