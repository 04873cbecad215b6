"""Tests for A/B profile sessions."""

import pytest
from pydantic import ValidationError

from sleepsim.core.hypnogram import generate
from sleepsim.core.session import ProfileComparison, ProfileSession


class CountingGenerator:
    """Wraps generate() and records every config it was called with."""

    def __init__(self):
        self.calls = []

    def __call__(self, config):
        self.calls.append(config)
        return generate(config, seed=len(self.calls))


class TestProfileSession:
    def test_defaults(self):
        session = ProfileSession()
        assert session.config.age == 25
        assert session.last_result is None

    def test_result_is_cached(self):
        gen = CountingGenerator()
        session = ProfileSession(generator=gen)
        first = session.result()
        assert session.result() is first
        assert len(gen.calls) == 1
        assert session.last_result is first

    def test_update_invalidates_on_next_result(self):
        gen = CountingGenerator()
        session = ProfileSession(generator=gen)
        session.result()
        session.update(age=70, sdb_severity=3)
        assert len(gen.calls) == 1
        result = session.result()
        assert len(gen.calls) == 2
        assert gen.calls[-1].age == 70
        assert session.last_result is result

    def test_update_same_values_keeps_cache(self):
        gen = CountingGenerator()
        session = ProfileSession(generator=gen)
        session.result()
        session.update(age=25)
        session.result()
        assert len(gen.calls) == 1

    def test_regenerate_forces_new_draw(self):
        gen = CountingGenerator()
        session = ProfileSession(generator=gen)
        session.result()
        session.regenerate()
        assert len(gen.calls) == 2

    def test_invalid_update_rejected(self):
        session = ProfileSession()
        with pytest.raises(ValidationError):
            session.update(age=500)
        assert session.config.age == 25

    def test_enum_fields_from_strings(self):
        session = ProfileSession()
        config = session.update(chronotype="owl", gender="female")
        assert config.chronotype.value == "owl"
        assert config.gender.value == "female"


class TestProfileComparison:
    def test_profiles_are_independent(self):
        gen = CountingGenerator()
        comparison = ProfileComparison(generator=gen)
        comparison["A"].update(age=25)
        comparison["B"].update(age=70, nocturia=2)

        results = comparison.results()
        assert set(results) == {"A", "B"}
        assert len(gen.calls) == 2

        b_before = results["B"]
        comparison["A"].update(alcohol=3)
        comparison["A"].result()
        assert comparison["B"].result() is b_before
        assert comparison["B"].config.alcohol == 0
        assert len(gen.calls) == 3

    def test_unknown_profile(self):
        with pytest.raises(KeyError, match="Unknown profile"):
            ProfileComparison()["C"]
