"""
Request-scoped access to the objects the app builds at startup
"""
from fastapi import Request

from footsteps.core.connectivity import ConnectivityProbe
from footsteps.core.playback import PlaybackController
from footsteps.services.companion_service import CompanionService


def get_companion_service(request: Request) -> CompanionService:
    return request.app.state.companion


def get_connectivity_probe(request: Request) -> ConnectivityProbe:
    return request.app.state.probe


def get_playback_controller(request: Request) -> PlaybackController:
    return request.app.state.playback
