"""
Companion feature routes

Every endpoint answers even when the model is unreachable: essential text
comes back as a local core response, optional enrichments as null.
"""
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import Response, StreamingResponse
from pydantic import BaseModel, Field

from footsteps.api.dependencies import get_companion_service
from footsteps.core.logging_config import LoggingConfig
from footsteps.models.companion import (ArchiveSummary, AtmosphereData,
                                        BeaconMessage, BiometricData,
                                        ChatTurn, CompanionModel,
                                        CompletedLesson, ContentScreening,
                                        JournalEntry, LocalSupport, MoodEntry,
                                        ReflectionRecord, ShadowArchetype,
                                        SomaticProtocol, SomaticRegion)
from footsteps.services.companion_service import CompanionService

router = APIRouter(prefix="/api/companion", tags=["companion"])
logger = LoggingConfig.get_logger(__name__)


class TextResponse(BaseModel):
    text: Optional[str] = None


class ArtResponse(CompanionModel):
    image_url: Optional[str] = None


# ----------------------------------------------------------------------
# Request bodies
# ----------------------------------------------------------------------

class ModuleReflectionRequest(CompanionModel):
    module_name: str = Field(..., min_length=1)
    context: str = ""
    rating: Optional[int] = Field(default=None, ge=1, le=5)


class ModuleCompletionRequest(ModuleReflectionRequest):
    footsteps: int = Field(default=0, ge=0)


class JournalInsightRequest(CompanionModel):
    content: str
    current_phase: str = "Foundations"


class RetrospectiveInsightRequest(CompanionModel):
    original_content: str
    additional_context: str
    current_phase: str = "Foundations"


class MissionSynthesisRequest(BaseModel):
    title: str
    debrief: str


class MeetingReflectionRequest(BaseModel):
    title: str
    takeaway: str


class AffirmationRequest(CompanionModel):
    rank: str
    phase_id: int = Field(default=1, ge=1)


class NudgeRequest(CompanionModel):
    event_context: str


class JournalPromptRequest(CompanionModel):
    phase_id: int = Field(default=1, ge=1)
    mood: str


class GratitudePromptRequest(CompanionModel):
    phase_title: str
    mood: str


class DeepDiveRequest(BaseModel):
    topic: str
    query: str


class MilestoneEmailRequest(CompanionModel):
    user_name: str
    milestone: str
    type: Literal["streak", "badge"]


class NarrationRequest(CompanionModel):
    route: str
    page_content: str


class AtmosphereRequest(BaseModel):
    moods: List[MoodEntry] = Field(default_factory=list)
    biometrics: BiometricData


class ScreeningRequest(BaseModel):
    text: str


class BeaconRequest(CompanionModel):
    topic: str
    raw_advice: str


class ShadowArchetypeRequest(BaseModel):
    description: str


class ShadowArtRequest(CompanionModel):
    archetype_name: str


class TrueSelfArtRequest(BaseModel):
    rank: str
    landmarks: List[str] = Field(default_factory=list)
    atmosphere: str = "steady"


class CompletionArtRequest(CompanionModel):
    module_name: str
    rank: str


class JourneySummaryRequest(BaseModel):
    moods: List[MoodEntry] = Field(default_factory=list)
    lessons: List[CompletedLesson] = Field(default_factory=list)
    journals: List[JournalEntry] = Field(default_factory=list)


class SomaticRequest(BaseModel):
    regions: List[SomaticRegion] = Field(..., min_length=1)


class LocalSupportRequest(BaseModel):
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)


class ChatRequest(CompanionModel):
    message: str = Field(..., min_length=1)
    history: List[ChatTurn] = Field(default_factory=list)
    context: str = ""
    phase_id: int = Field(default=1, ge=1)
    archive: Optional[ArchiveSummary] = None


class VideoRequest(BaseModel):
    prompt: str = Field(..., min_length=1)


# ----------------------------------------------------------------------
# Reflections
# ----------------------------------------------------------------------

@router.post("/reflection", response_model=TextResponse)
async def module_reflection(body: ModuleReflectionRequest, service: CompanionService = Depends(get_companion_service)):
    return TextResponse(text=await service.get_module_reflection(body.module_name, body.context, body.rating))


@router.post("/complete", response_model=ReflectionRecord)
async def complete_module(body: ModuleCompletionRequest, service: CompanionService = Depends(get_companion_service)):
    """Finish an exercise: reflection plus (when online) completion artwork"""
    return await service.complete_module(body.module_name, body.context, body.rating, body.footsteps)


@router.post("/journal/insight", response_model=TextResponse)
async def journal_insight(body: JournalInsightRequest, service: CompanionService = Depends(get_companion_service)):
    return TextResponse(text=await service.get_journal_insight(body.content, body.current_phase))


@router.post("/journal/retrospective", response_model=TextResponse)
async def retrospective_insight(body: RetrospectiveInsightRequest, service: CompanionService = Depends(get_companion_service)):
    return TextResponse(text=await service.enhance_journal_insight(
        body.original_content, body.additional_context, body.current_phase
    ))


@router.post("/goals/synthesis", response_model=TextResponse)
async def mission_synthesis(body: MissionSynthesisRequest, service: CompanionService = Depends(get_companion_service)):
    return TextResponse(text=await service.generate_mission_synthesis(body.title, body.debrief))


@router.post("/meetings/reflection", response_model=TextResponse)
async def meeting_reflection(body: MeetingReflectionRequest, service: CompanionService = Depends(get_companion_service)):
    return TextResponse(text=await service.generate_meeting_reflection(body.title, body.takeaway))


@router.post("/chain/summary", response_model=TextResponse)
async def chain_summary(data: Dict[str, Any], service: CompanionService = Depends(get_companion_service)):
    return TextResponse(text=await service.summarize_chain(data))


# ----------------------------------------------------------------------
# Short prompts
# ----------------------------------------------------------------------

@router.post("/affirmation", response_model=TextResponse)
async def daily_affirmation(body: AffirmationRequest, service: CompanionService = Depends(get_companion_service)):
    return TextResponse(text=await service.get_daily_affirmation(body.rank, body.phase_id))


@router.post("/nudge", response_model=TextResponse)
async def proactive_nudge(body: NudgeRequest, service: CompanionService = Depends(get_companion_service)):
    return TextResponse(text=await service.get_proactive_nudge(body.event_context))


@router.post("/journal/prompt", response_model=TextResponse)
async def journal_prompt(body: JournalPromptRequest, service: CompanionService = Depends(get_companion_service)):
    return TextResponse(text=await service.get_journal_prompt(body.phase_id, body.mood))


@router.post("/gratitude/prompt", response_model=TextResponse)
async def gratitude_prompt(body: GratitudePromptRequest, service: CompanionService = Depends(get_companion_service)):
    return TextResponse(text=await service.get_gratitude_prompt(body.phase_title, body.mood))


@router.post("/science/deep-dive", response_model=TextResponse)
async def diagnostic_deep_dive(body: DeepDiveRequest, service: CompanionService = Depends(get_companion_service)):
    return TextResponse(text=await service.get_diagnostic_deep_dive(body.topic, body.query))


@router.post("/milestone-email", response_model=TextResponse)
async def milestone_email(body: MilestoneEmailRequest, service: CompanionService = Depends(get_companion_service)):
    return TextResponse(text=await service.generate_milestone_email(body.user_name, body.milestone, body.type))


@router.post("/narration", response_model=TextResponse)
async def ui_narration(body: NarrationRequest, service: CompanionService = Depends(get_companion_service)):
    return TextResponse(text=await service.generate_ui_narration(body.route, body.page_content))


# ----------------------------------------------------------------------
# Structured replies
# ----------------------------------------------------------------------

@router.post("/atmosphere", response_model=Optional[AtmosphereData])
async def atmosphere(body: AtmosphereRequest, service: CompanionService = Depends(get_companion_service)):
    return await service.analyze_nervous_system_atmosphere(body.moods, body.biometrics)


@router.post("/community/screen", response_model=ContentScreening)
async def screen_content(body: ScreeningRequest, service: CompanionService = Depends(get_companion_service)):
    return await service.screen_community_content(body.text)


@router.post("/beacon", response_model=Optional[BeaconMessage])
async def beacon_message(body: BeaconRequest, service: CompanionService = Depends(get_companion_service)):
    return await service.generate_beacon_message(body.topic, body.raw_advice)


@router.post("/shadow/archetype", response_model=Optional[ShadowArchetype])
async def shadow_archetype(body: ShadowArchetypeRequest, service: CompanionService = Depends(get_companion_service)):
    return await service.get_shadow_archetype(body.description)


@router.post("/journey/summary", response_model=Optional[ArchiveSummary])
async def journey_summary(body: JourneySummaryRequest, service: CompanionService = Depends(get_companion_service)):
    return await service.generate_journey_summary(body.moods, body.lessons, body.journals)


@router.post("/somatic/protocol", response_model=Optional[SomaticProtocol])
async def somatic_protocol(body: SomaticRequest, service: CompanionService = Depends(get_companion_service)):
    return await service.recommend_somatic_protocol(body.regions)


@router.post("/local-support", response_model=Optional[LocalSupport])
async def local_support(body: LocalSupportRequest, service: CompanionService = Depends(get_companion_service)):
    return await service.get_local_support(body.lat, body.lng)


# ----------------------------------------------------------------------
# Artwork and video
# ----------------------------------------------------------------------

@router.post("/art/shadow", response_model=ArtResponse)
async def shadow_art(body: ShadowArtRequest, service: CompanionService = Depends(get_companion_service)):
    return ArtResponse(image_url=await service.generate_shadow_art(body.archetype_name))


@router.post("/art/true-self", response_model=ArtResponse)
async def true_self_art(body: TrueSelfArtRequest, service: CompanionService = Depends(get_companion_service)):
    return ArtResponse(image_url=await service.generate_true_self_art(body.rank, body.landmarks, body.atmosphere))


@router.post("/art/completion", response_model=ArtResponse)
async def completion_art(body: CompletionArtRequest, service: CompanionService = Depends(get_companion_service)):
    return ArtResponse(image_url=await service.generate_completion_art(body.module_name, body.rank))


@router.post("/video")
async def sanctuary_video(body: VideoRequest, service: CompanionService = Depends(get_companion_service)):
    """MP4 bytes, or 204 when no video could be produced"""
    video = await service.generate_sanctuary_video(body.prompt)
    if video is None:
        return Response(status_code=204)
    return Response(content=video, media_type="video/mp4")


# ----------------------------------------------------------------------
# Counselor chat
# ----------------------------------------------------------------------

@router.post("/chat")
async def counselor_chat(body: ChatRequest, service: CompanionService = Depends(get_companion_service)):
    """Streamed plain-text reply from the guide"""
    stream = service.stream_counselor_response(
        body.message,
        history=body.history,
        context=body.context,
        phase_id=body.phase_id,
        archive=body.archive,
    )
    return StreamingResponse(stream, media_type="text/plain; charset=utf-8")
