"""Tests for the two-process overlay."""

import pytest

from sleepsim.config import TIMELINE_SPAN_MIN
from sleepsim.core.circadian import (
    caffeine_block,
    generate_overlay_curves,
    process_c,
    process_c_peak,
    process_s,
)
from sleepsim.core.hypnogram import generate
from sleepsim.core.models import SleepConfig


class TestProcessC:
    def test_peak_and_trough(self):
        assert process_c(420, 420) == pytest.approx(0.9)
        assert process_c(420 + 720, 420) == pytest.approx(0.1)

    def test_peak_follows_chronotype(self):
        assert process_c_peak("normal") == 420
        assert process_c_peak("lark") == 300
        assert process_c_peak("owl") == 600

    def test_blue_light_delays_peak(self):
        assert process_c_peak("normal", blue_light=True) == 480


class TestProcessS:
    def test_rises_while_awake(self):
        assert process_s(0, 240, 720) < process_s(200, 240, 720)

    def test_continuous_at_sleep_onset(self):
        before = process_s(240 - 1e-6, 240, 720)
        after = process_s(240, 240, 720)
        assert before == pytest.approx(after, abs=1e-6)

    def test_decays_while_asleep(self):
        values = [process_s(t, 240, 720) for t in range(240, 721, 60)]
        assert values == sorted(values, reverse=True)

    def test_rises_again_after_wake(self):
        assert process_s(900, 240, 720) > process_s(720, 240, 720)

    def test_bounded(self):
        for t in range(0, TIMELINE_SPAN_MIN + 1, 30):
            assert 0 < process_s(t, 240, 720) < 1


class TestCaffeineBlock:
    def test_zero_before_intake(self):
        assert caffeine_block(100, 200, 2, 6.0) == 0.0

    def test_at_intake(self):
        assert caffeine_block(200, 200, 2, 6.0) == pytest.approx(0.2)

    def test_halves_each_half_life(self):
        assert caffeine_block(200 + 360, 200, 2, 6.0) == pytest.approx(0.1)

    def test_no_cups(self):
        assert caffeine_block(300, 200, 0, 6.0) == 0.0


class TestOverlayCurves:
    def test_sampling_grid(self, young_adult):
        result = generate(young_adult, seed=0)
        curves = generate_overlay_curves(result, young_adult)
        assert len(curves) == TIMELINE_SPAN_MIN // 5 + 1
        assert curves[0]["t"] == 0
        assert curves[-1]["t"] == TIMELINE_SPAN_MIN
        assert set(curves[0]) == {"t", "process_s", "effective_s", "process_c"}

    def test_no_caffeine_effective_equals_s(self, young_adult):
        result = generate(young_adult, seed=0)
        for point in generate_overlay_curves(result, young_adult):
            assert point["effective_s"] == point["process_s"]

    def test_caffeine_masks_pressure(self):
        config = SleepConfig(age=30, caffeine=3, caffeine_time=2)
        result = generate(config, seed=0)
        curves = generate_overlay_curves(result, config)
        at_bed = next(p for p in curves if p["t"] >= result.sleep_start)
        assert at_bed["effective_s"] < at_bed["process_s"]

    def test_pressure_peaks_around_lights_out(self, young_adult):
        result = generate(young_adult, seed=0)
        curves = generate_overlay_curves(result, young_adult)
        peak = max(curves, key=lambda p: p["process_s"])
        assert peak["t"] == pytest.approx(result.sleep_start, abs=5)

    def test_does_not_change_result(self, young_adult):
        result = generate(young_adult, seed=0)
        before = result.model_dump()
        generate_overlay_curves(result, young_adult, step_minutes=10)
        assert result.model_dump() == before
