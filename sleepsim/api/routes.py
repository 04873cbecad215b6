"""
FastAPI API routes for the Sleep-Simulator.
"""

import logging
import random
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel, Field

from sleepsim.config import ACTIVE_CALIBRATION, API_KEY, CALIBRATIONS, get_calibration
from sleepsim.core.circadian import generate_overlay_curves
from sleepsim.core.hypnogram import SimulationError, generate
from sleepsim.core.models import AgeProfile, SimulationResult, SleepConfig
from sleepsim.core.profile import resolve_age_profile

log = logging.getLogger("sleepsim.api")

router = APIRouter(prefix="/api")


# --- Auth ---

def verify_api_key(x_api_key: str = Header(default="")):
    if API_KEY and x_api_key != API_KEY:
        raise HTTPException(status_code=401, detail="Invalid API key")


# --- Models ---

class HypnogramRequest(BaseModel):
    config: SleepConfig = Field(default_factory=SleepConfig)
    seed: Optional[int] = None
    calibration: Optional[str] = None


class CompareRequest(BaseModel):
    a: SleepConfig = Field(default_factory=SleepConfig)
    b: SleepConfig = Field(default_factory=SleepConfig)
    seed: Optional[int] = None
    calibration: Optional[str] = None


class CompareResponse(BaseModel):
    a: SimulationResult
    b: SimulationResult


class CircadianResponse(BaseModel):
    result: SimulationResult
    curves: list[dict]


# --- Helpers ---

def _run(config: SleepConfig, seed: Optional[int], calibration: Optional[str]) -> SimulationResult:
    """Generate with a private random source per call."""
    try:
        cal = get_calibration(calibration)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    try:
        return generate(config, rng=random.Random(seed), calibration=cal)
    except SimulationError as e:
        log.error("Simulation failed for %s: %s", config.model_dump_json(), e)
        raise HTTPException(status_code=500, detail=f"Simulation failed: {e}")


# --- Endpoints ---

@router.post("/hypnogram", response_model=SimulationResult, dependencies=[Depends(verify_api_key)])
def simulate_night(req: HypnogramRequest):
    """Simulate one night for a configuration."""
    result = _run(req.config, req.seed, req.calibration)
    log.info(
        "Hypnogram: age=%d TST=%.0f TIB=%.0f SE=%.1f%% (%d blocks)",
        req.config.age,
        result.stats.actual_total_sleep,
        result.stats.time_in_bed,
        result.stats.sleep_efficiency_percent,
        len(result.blocks),
    )
    return result


@router.post("/compare", response_model=CompareResponse, dependencies=[Depends(verify_api_key)])
def compare_profiles(req: CompareRequest):
    """Simulate profile A and profile B independently."""
    seed_b = req.seed + 1 if req.seed is not None else None
    return CompareResponse(
        a=_run(req.a, req.seed, req.calibration),
        b=_run(req.b, seed_b, req.calibration),
    )


@router.post("/circadian", response_model=CircadianResponse, dependencies=[Depends(verify_api_key)])
def circadian_overlay(req: HypnogramRequest):
    """Simulate a night and return the two-process overlay curves for it."""
    result = _run(req.config, req.seed, req.calibration)
    return CircadianResponse(result=result, curves=generate_overlay_curves(result, req.config))


@router.get("/profile/{age}", response_model=AgeProfile, dependencies=[Depends(verify_api_key)])
def age_profile(age: int):
    """Baseline sleep architecture for an age (before lifestyle modifiers)."""
    if age < 0 or age > 120:
        raise HTTPException(status_code=422, detail="age must be between 0 and 120")
    return resolve_age_profile(age)


@router.get("/status")
def status():
    return {
        "service": "sleep-simulator",
        "status": "ok",
        "version": "1.0.0",
        "timestamp": datetime.now().isoformat(),
        "calibration": ACTIVE_CALIBRATION,
        "calibrations": sorted(CALIBRATIONS),
        "model": "continuous-cycle-v3",
    }
