"""
Connectivity routes: clients report their platform online/offline signal
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from footsteps.api.dependencies import get_connectivity_probe
from footsteps.core.connectivity import ConnectivityProbe

router = APIRouter(prefix="/api/connectivity", tags=["connectivity"])


class ConnectivityState(BaseModel):
    online: bool = Field(..., description="Whether remote model calls should be attempted")
    changed_at: Optional[str] = None


def _state(probe: ConnectivityProbe) -> ConnectivityState:
    return ConnectivityState(
        online=probe.is_online(),
        changed_at=probe.changed_at.isoformat() if probe.changed_at else None,
    )


@router.get("", response_model=ConnectivityState)
async def get_connectivity(probe: ConnectivityProbe = Depends(get_connectivity_probe)):
    return _state(probe)


@router.put("", response_model=ConnectivityState)
async def set_connectivity(
    state: ConnectivityState,
    probe: ConnectivityProbe = Depends(get_connectivity_probe),
):
    probe.set_online(state.online)
    return _state(probe)
