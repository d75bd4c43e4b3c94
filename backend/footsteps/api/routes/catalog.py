"""
Catalogue routes: phases, exercises, ranks
"""
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from footsteps.services.catalog import (RECOVERY_PHASES, exercises_for_phase,
                                        get_phase, get_rank_data)

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


@router.get("/phases")
async def list_phases():
    return [asdict(phase) for phase in RECOVERY_PHASES]


@router.get("/exercises")
async def list_exercises(phase: Optional[int] = Query(default=None, ge=1, le=5)):
    return [asdict(exercise) for exercise in exercises_for_phase(phase)]


@router.get("/phases/{phase_id}")
async def get_phase_detail(phase_id: int):
    phase = get_phase(phase_id)
    if phase is None:
        raise HTTPException(status_code=404, detail=f"Phase {phase_id} not found")
    return {**asdict(phase), "exercises": [asdict(e) for e in exercises_for_phase(phase_id)]}


@router.get("/rank")
async def rank_for_footsteps(footsteps: int = Query(default=0, ge=0)):
    return get_rank_data(footsteps)
