"""Shared test fixtures for the sleep simulator."""

import random

import pytest

from sleepsim.core.models import SleepConfig


@pytest.fixture
def rng():
    """Deterministic random source."""
    return random.Random(1234)


@pytest.fixture
def young_adult():
    """Age 25 male, no modifiers."""
    return SleepConfig(age=25, gender="male")


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from sleepsim.main import app

    return TestClient(app)


# Configs covering every modifier, used for invariant checks
INVARIANT_CONFIGS = [
    SleepConfig(),
    SleepConfig(age=0, gender="female"),
    SleepConfig(age=4, gender="other", caffeine=2, caffeine_time=3),
    SleepConfig(age=17, chronotype="owl", blue_light=True, social_jet_lag=True),
    SleepConfig(age=41, gender="male", alcohol=4, caffeine=3, caffeine_time=2, caffeine_metabolism="slow"),
    SleepConfig(age=52, gender="female", is_menopausal=True, nocturia=2, chronotype="lark"),
    SleepConfig(age=70, sdb_severity=10, nocturia=3),
    SleepConfig(
        age=100, gender="male", alcohol=10, caffeine=10, caffeine_time=0,
        caffeine_metabolism="slow", sdb_severity=10, nocturia=10,
        social_jet_lag=True, blue_light=True, is_menopausal=True,
    ),
]


@pytest.fixture(params=INVARIANT_CONFIGS, ids=lambda c: f"age{c.age}-{c.gender.value}")
def any_config(request):
    return request.param
