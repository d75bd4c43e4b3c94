"""
Speech routes: synthesize the guide's voice and control the active clip
"""
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, Field

from footsteps.api.dependencies import get_companion_service, get_playback_controller
from footsteps.core.logging_config import LoggingConfig
from footsteps.core.playback import PlaybackController
from footsteps.services.companion_service import CompanionService

router = APIRouter(prefix="/api/speech", tags=["speech"])
logger = LoggingConfig.get_logger(__name__)


class SpeechRequest(BaseModel):
    text: str = Field(..., min_length=1)


def _wav_response(playback: PlaybackController) -> Response:
    handle = playback.current
    return Response(
        content=handle.clip.to_wav(),
        media_type="audio/wav",
        headers={"X-Playback-ID": handle.id},
    )


@router.post("")
async def speak(
    body: SpeechRequest,
    service: CompanionService = Depends(get_companion_service),
    playback: PlaybackController = Depends(get_playback_controller),
):
    """
    Synthesize `text` and make it the active clip.

    Any clip already playing is stopped first. When speech cannot be
    produced the response is 204 and the previous clip keeps playing.
    """
    clip = await service.generate_speech(body.text)
    if clip is None:
        return Response(status_code=204)
    playback.start(clip)
    return _wav_response(playback)


@router.get("/current")
async def current_clip(playback: PlaybackController = Depends(get_playback_controller)):
    if not playback.is_playing:
        raise HTTPException(status_code=404, detail="Nothing is playing")
    return _wav_response(playback)


@router.post("/stop")
async def stop_speech(playback: PlaybackController = Depends(get_playback_controller)):
    stopped = playback.stop_current()
    if stopped:
        logger.info("Speech stopped by client")
    return {"stopped": stopped}
