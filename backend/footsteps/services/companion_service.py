"""
Feature callers: one method per companion feature

Each method builds a prompt (plus a JSON schema when the reply is structured)
and sends it through call_with_retry. Essential text never comes back empty:
it falls back to the local core response for the module. Optional
enrichments (art, speech, video, prompts...) resolve to None so the UI can
carry on without them.
"""
import asyncio
import json
import re
import uuid
from datetime import datetime, timezone
from typing import (Any, AsyncIterator, Awaitable, Callable, Dict, List,
                    Optional, Sequence, TypeVar)

from footsteps.core.audio import decode_base64_to_bytes, pcm16_to_samples
from footsteps.core.config import Settings
from footsteps.core.connectivity import ConnectivityProbe
from footsteps.core.errors import GenAIError, MalformedResponse
from footsteps.core.genai_client import GenAIClient, user_content
from footsteps.core.logging_config import LoggingConfig
from footsteps.core.metrics import feature_fallbacks_total, genai_offline_skips_total
from footsteps.core.playback import SpeechClip
from footsteps.core.retry import call_with_retry
from footsteps.models.companion import (ArchiveReply, ArchiveSummary,
                                        AtmosphereData, AtmosphereReply,
                                        BeaconMessage, BeaconReply,
                                        BiometricData, ChatTurn,
                                        CompletedLesson, ContentScreening,
                                        JournalEntry, LocalSupport, MoodEntry,
                                        ReflectionRecord, ShadowArchetype,
                                        ShadowArchetypeReply, SomaticProtocol,
                                        SomaticRegion)
from footsteps.services.catalog import get_rank_data
from footsteps.services.crisis import check_crisis_status
from footsteps.services.fallbacks import (CRISIS_OFFLINE_RESPONSE,
                                          get_local_core_response,
                                          get_offline_response)
from footsteps.services.prompts import (ARCHIVE_SCHEMA, ATMOSPHERE_SCHEMA,
                                        BEACON_SCHEMA, COUNSELOR_GUIDELINE,
                                        SCREENING_SCHEMA,
                                        SHADOW_ARCHETYPE_SCHEMA,
                                        SOMATIC_PROTOCOL_SCHEMA,
                                        SPEECH_PERSONA, SYSTEM_PROMPT,
                                        json_config)

logger = LoggingConfig.get_logger(__name__)

T = TypeVar("T")

LOCAL_SUPPORT_PLACEHOLDER = "Searching for support..."

_RATE_IN_MIME = re.compile(r"rate=(\d+)")


class CompanionService:
    """Companion features backed by the generative model"""

    def __init__(
        self,
        client: GenAIClient,
        probe: ConnectivityProbe,
        settings: Optional[Settings] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.probe = probe
        self.settings = settings or client.settings
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    async def _call(self, operation: Callable[[], Awaitable[T]]) -> Optional[T]:
        return await call_with_retry(
            operation,
            self.settings.genai_max_retries,
            probe=self.probe,
            sleep=self._sleep,
            base_delay=self.settings.genai_backoff_base_seconds,
        )

    async def _optional(self, feature: str, operation: Callable[[], Awaitable[T]]) -> Optional[T]:
        """Enrichment: any model failure resolves to None"""
        try:
            result = await self._call(operation)
        except GenAIError as e:
            logger.warning(
                f"{feature} unavailable: {e}",
                extra={"feature": feature, "status_code": e.status_code, "error_type": type(e).__name__}
            )
            result = None
        if result is None:
            feature_fallbacks_total.labels(feature=feature, kind="none").inc()
        return result

    async def _essential(self, feature: str, fallback_key: str, operation: Callable[[], Awaitable[str]]) -> str:
        """User-facing text: falls back to the local core response"""
        try:
            result = await self._call(operation)
        except GenAIError as e:
            logger.warning(
                f"{feature} failed, serving local core response: {e}",
                extra={"feature": feature, "status_code": e.status_code, "error_type": type(e).__name__}
            )
            result = None
        if not result or not result.strip():
            feature_fallbacks_total.labels(feature=feature, kind="canned").inc()
            return get_local_core_response(fallback_key)
        return result

    async def _text(self, prompt: str, system_instruction: Optional[str] = SYSTEM_PROMPT) -> str:
        response = await self.client.generate_content(
            self.settings.gemini_text_model,
            user_content(prompt),
            system_instruction=system_instruction,
        )
        return response.first_text().strip()

    async def _json(self, prompt: str, schema: dict, reply_cls):
        response = await self.client.generate_content(
            self.settings.gemini_text_model,
            user_content(prompt),
            generation_config=json_config(schema),
        )
        return response.parse_json(reply_cls)

    async def _image(self, prompt: str, aspect_ratio: str) -> str:
        response = await self.client.generate_content(
            self.settings.gemini_image_model,
            [{"parts": [{"text": prompt}]}],
            generation_config={"imageConfig": {"aspectRatio": aspect_ratio}},
        )
        image = response.first_inline_data()
        return f"data:{image.mime_type or 'image/png'};base64,{image.data}"

    # ------------------------------------------------------------------
    # Speech and narration
    # ------------------------------------------------------------------

    async def generate_speech(self, text: str) -> Optional[SpeechClip]:
        """Read `text` aloud in the guide's voice"""
        async def operation() -> SpeechClip:
            response = await self.client.generate_content(
                self.settings.gemini_tts_model,
                [{"parts": [{"text": f"{SPEECH_PERSONA} Text: {text}"}]}],
                generation_config={
                    "responseModalities": ["AUDIO"],
                    "speechConfig": {
                        "voiceConfig": {"prebuiltVoiceConfig": {"voiceName": self.settings.gemini_tts_voice}}
                    },
                },
            )
            audio = response.first_inline_data()
            try:
                pcm = decode_base64_to_bytes(audio.data)
            except ValueError as e:
                raise MalformedResponse(str(e)) from e
            frames = len(pcm16_to_samples(pcm)[0])
            if not frames:
                raise MalformedResponse("Speech payload holds no complete PCM16 frame")
            rate = _RATE_IN_MIME.search(audio.mime_type or "")
            return SpeechClip(
                audio=pcm[:frames * 2],
                sample_rate=int(rate.group(1)) if rate else self.settings.speech_sample_rate,
                text=text,
            )

        return await self._optional("speech", operation)

    async def generate_ui_narration(self, route: str, page_content: str) -> Optional[str]:
        prompt = (
            "You are the Footsteps Guide. I will provide you with the raw text visible on the Traveller's screen.\n"
            f'Current Route Context: "{route}".\n'
            f'Visible Content: "{page_content}".\n'
            "Task: Provide a cohesive verbal walkthrough. Max 65 words. Focus on achievement."
        )
        return await self._optional("ui_narration", lambda: self._text(prompt, system_instruction=None))

    # ------------------------------------------------------------------
    # Counselor chat
    # ------------------------------------------------------------------

    async def stream_counselor_response(
        self,
        message: str,
        history: Optional[Sequence[ChatTurn]] = None,
        context: str = "",
        phase_id: int = 1,
        archive: Optional[ArchiveSummary] = None,
    ) -> AsyncIterator[str]:
        """
        Stream the guide's reply to a chat message.

        Offline, or when the stream fails before producing anything, yields
        the offline response for the phase (the crisis reassurance when the
        message trips the crisis screen).
        """
        fallback = get_offline_response(phase_id, check_crisis_status(message))

        if not self.probe.is_online():
            genai_offline_skips_total.inc()
            feature_fallbacks_total.labels(feature="counselor", kind="canned").inc()
            yield fallback
            return

        system_instruction = f"{SYSTEM_PROMPT}\nPhase: {phase_id}"
        if archive is not None:
            system_instruction += f"\nArchive Context: {archive.narrative}"
        if context:
            system_instruction += f"\nContext: {context}"
        system_instruction += f"\n{COUNSELOR_GUIDELINE}"

        contents = [turn.to_wire() for turn in history or []] + user_content(message)

        produced = False
        try:
            async for chunk in self.client.stream_content(
                self.settings.gemini_counselor_model,
                contents,
                system_instruction=system_instruction,
                generation_config={"temperature": self.settings.llm_temperature},
            ):
                produced = True
                yield chunk
        except GenAIError as e:
            logger.warning(
                f"Counselor stream failed: {e}",
                extra={"feature": "counselor", "status_code": e.status_code, "partial": produced}
            )
            if not produced:
                feature_fallbacks_total.labels(feature="counselor", kind="canned").inc()
                yield fallback

    # ------------------------------------------------------------------
    # Reflections (essential text)
    # ------------------------------------------------------------------

    async def get_module_reflection(self, module_name: str, context: str, rating: Optional[int] = None) -> str:
        prompt = (
            f"Module: {module_name}. Context: {context}. Rating: {rating or 'N/A'}. "
            "Reflection. Max 40 words."
        )
        return await self._essential("module_reflection", module_name, lambda: self._text(prompt))

    async def get_journal_insight(self, content: str, current_phase: str = "Foundations") -> str:
        prompt = f"Phase: {current_phase}. Reflection: {content}. Offer a formal, warm insight. Max 45 words."
        return await self._essential("journal_insight", "Journal Insight", lambda: self._text(prompt))

    async def enhance_journal_insight(
        self,
        original_content: str,
        additional_context: str,
        current_phase: str = "Foundations",
    ) -> str:
        prompt = (
            f'Phase: {current_phase}. Past: "{original_content}". Context: "{additional_context}". '
            "Provide Retrospective Insight. Max 60 words."
        )
        return await self._essential("retrospective_insight", "Journal Insight", lambda: self._text(prompt))

    async def generate_mission_synthesis(self, title: str, debrief: str) -> str:
        prompt = (
            f'Marker: "{title}". Debrief: "{debrief}". Synthesize this victory. Max 50 words. '
            "Focus on identity shift and achievement."
        )
        return await self._essential("mission_synthesis", "SMART Goals", lambda: self._text(prompt))

    async def generate_meeting_reflection(self, title: str, takeaway: str) -> str:
        prompt = f'Meeting: "{title}". Takeaway: "{takeaway}". Commendation. Max 40 words.'
        return await self._essential("meeting_reflection", "Meetings", lambda: self._text(prompt))

    async def summarize_chain(self, data: Dict[str, Any]) -> str:
        prompt = f"Chain Analysis summary. Max 60 words. Data: {json.dumps(data, ensure_ascii=False)}"
        return await self._essential("chain_summary", "Functional Chain Analysis", lambda: self._text(prompt))

    async def complete_module(
        self,
        module_name: str,
        context: str,
        rating: Optional[int] = None,
        footsteps: int = 0,
    ) -> ReflectionRecord:
        """Reflection plus completion artwork for a finished exercise"""
        if self.probe.is_online():
            rank_title = get_rank_data(footsteps)["title"]
            reflection, artwork = await asyncio.gather(
                self.get_module_reflection(module_name, context, rating),
                self.generate_completion_art(module_name, rank_title),
            )
        else:
            reflection = await self.get_module_reflection(module_name, context, rating)
            artwork = None
        return ReflectionRecord(rating=rating, reflection_text=reflection, artwork_url=artwork)

    # ------------------------------------------------------------------
    # Short prompts and insights (optional)
    # ------------------------------------------------------------------

    async def get_daily_affirmation(self, rank: str, phase_id: int) -> Optional[str]:
        prompt = f"Rank: {rank}. Phase: {phase_id}. Create a formal affirmation. Max 30 words."
        return await self._optional("daily_affirmation", lambda: self._text(prompt))

    async def get_proactive_nudge(self, event_context: str) -> Optional[str]:
        prompt = f"Trigger: {event_context}. Offer invitation to regulate. Max 18 words."
        return await self._optional("proactive_nudge", lambda: self._text(prompt))

    async def get_journal_prompt(self, phase_id: int, mood: str) -> Optional[str]:
        prompt = f"Phase: {phase_id}. Mood: {mood}. Contemplative prompt. Max 25 words."
        return await self._optional("journal_prompt", lambda: self._text(prompt))

    async def get_gratitude_prompt(self, phase_title: str, mood: str) -> Optional[str]:
        prompt = f"Phase: {phase_title}. Mood: {mood}. Glimmer prompt. Max 20 words."
        return await self._optional("gratitude_prompt", lambda: self._text(prompt))

    async def get_diagnostic_deep_dive(self, topic: str, query: str) -> Optional[str]:
        prompt = f"Topic: {topic}. Query: {query}. Clinical explanation. Max 80 words."
        return await self._optional("diagnostic_deep_dive", lambda: self._text(prompt))

    async def generate_milestone_email(self, user_name: str, milestone: str, kind: str) -> Optional[str]:
        prompt = f"User: {user_name}. Milestone: {milestone}. Type: {kind}. Email body. Max 100 words."
        return await self._optional("milestone_email", lambda: self._text(prompt))

    # ------------------------------------------------------------------
    # Structured replies
    # ------------------------------------------------------------------

    async def analyze_nervous_system_atmosphere(
        self,
        moods: Sequence[MoodEntry],
        biometrics: BiometricData,
    ) -> Optional[AtmosphereData]:
        recent = ";".join(entry.mood for entry in list(moods)[-5:])
        prompt = (
            f"Recent Data Points: {recent}. Heart Rate: {biometrics.heart_rate}bpm. "
            "Describe the Traveller's nervous system atmosphere as serene, steady, misty or stormy, "
            "with a one-sentence insight."
        )

        async def operation() -> AtmosphereData:
            reply = await self._json(prompt, ATMOSPHERE_SCHEMA, AtmosphereReply)
            return AtmosphereData(**reply.model_dump(), last_updated=datetime.now(timezone.utc))

        return await self._optional("atmosphere", operation)

    async def screen_community_content(self, text: str) -> ContentScreening:
        """Safety review of a community post; the local crisis screen covers for the model"""
        prompt = (
            "Review this community post for safety (self-harm, crisis language, abuse, identifying details). "
            f'Post: "{text}". '
            'JSON: { "isSafe": boolean, "feedback": "empathetic feedback if unsafe" }'
        )
        result = await self._optional(
            "content_screening",
            lambda: self._json(prompt, SCREENING_SCHEMA, ContentScreening),
        )
        if result is not None:
            return result
        if check_crisis_status(text):
            return ContentScreening(is_safe=False, feedback=CRISIS_OFFLINE_RESPONSE)
        return ContentScreening(is_safe=True, feedback="")

    async def generate_beacon_message(self, topic: str, raw_advice: str) -> Optional[BeaconMessage]:
        prompt = (
            f'Topic: "{topic}". Raw: "{raw_advice}". Distil this into wisdom and advice for a Traveller '
            'earlier on the path. JSON: { "wisdom": "string", "advice": "string" }'
        )

        async def operation() -> BeaconMessage:
            reply = await self._json(prompt, BEACON_SCHEMA, BeaconReply)
            return BeaconMessage(topic=topic, **reply.model_dump())

        return await self._optional("beacon_message", operation)

    async def get_shadow_archetype(self, description: str) -> Optional[ShadowArchetype]:
        prompt = (
            f'Shadow profile: "{description}". '
            'JSON: { "name": "string", "description": "string", "originalIntent": "string", "integrationGift": "string" }'
        )

        async def operation() -> ShadowArchetype:
            reply = await self._json(prompt, SHADOW_ARCHETYPE_SCHEMA, ShadowArchetypeReply)
            return ShadowArchetype(id=str(uuid.uuid4()), **reply.model_dump())

        return await self._optional("shadow_archetype", operation)

    async def generate_journey_summary(
        self,
        moods: Sequence[MoodEntry],
        lessons: Sequence[CompletedLesson],
        journals: Sequence[JournalEntry],
    ) -> Optional[ArchiveSummary]:
        data = {
            "moods": [entry.mood for entry in list(moods)[-10:]],
            "lessons": [{"module": lesson.module_name, "rating": lesson.rating} for lesson in list(lessons)[-10:]],
            "journals": [entry.content[:200] for entry in list(journals)[-5:]],
        }
        prompt = (
            f"Summary of journey. Data: {json.dumps(data, ensure_ascii=False)}. "
            'JSON: { "narrative": "string", "patterns": ["string"], "strengths": ["string"] }'
        )

        async def operation() -> ArchiveSummary:
            reply = await self._json(prompt, ARCHIVE_SCHEMA, ArchiveReply)
            return ArchiveSummary(**reply.model_dump(), last_updated=datetime.now(timezone.utc))

        return await self._optional("journey_summary", operation)

    async def recommend_somatic_protocol(self, regions: Sequence[SomaticRegion]) -> Optional[SomaticProtocol]:
        tension = ", ".join(f"{region.label} (Intensity {region.intensity}/3)" for region in regions)
        prompt = f'Tension: {tension}. Somatic Protocol. JSON: {{ "title": "string", "instruction": "string" }}'
        return await self._optional(
            "somatic_protocol",
            lambda: self._json(prompt, SOMATIC_PROTOCOL_SCHEMA, SomaticProtocol),
        )

    async def get_local_support(self, lat: Optional[float] = None, lng: Optional[float] = None) -> Optional[LocalSupport]:
        """Nearby UK recovery support, grounded with Google Maps"""
        tool_config = None
        if lat is not None and lng is not None:
            tool_config = {"retrievalConfig": {"latLng": {"latitude": lat, "longitude": lng}}}

        async def operation() -> LocalSupport:
            response = await self.client.generate_content(
                self.settings.gemini_maps_model,
                user_content("UK recovery support centres and meetings near me."),
                tools=[{"googleMaps": {}}],
                tool_config=tool_config,
            )
            return LocalSupport(
                text=response.text_or_empty() or LOCAL_SUPPORT_PLACEHOLDER,
                grounding=response.grounding_chunks(),
            )

        return await self._optional("local_support", operation)

    # ------------------------------------------------------------------
    # Artwork and video (optional)
    # ------------------------------------------------------------------

    async def generate_shadow_art(self, archetype_name: str) -> Optional[str]:
        prompt = f"Symbolic charcoal and gold artwork for shadow archetype '{archetype_name}'. Cinematic."
        return await self._optional("shadow_art", lambda: self._image(prompt, "1:1"))

    async def generate_true_self_art(self, rank: str, landmarks: List[str], atmosphere: str = "steady") -> Optional[str]:
        prompt = (
            f"Rank: '{rank}'. Landmarks: {', '.join(landmarks)}. Atmosphere: {atmosphere}. "
            "Ethereal teal and gold. Digital painting."
        )
        return await self._optional("true_self_art", lambda: self._image(prompt, "16:9"))

    async def generate_completion_art(self, module_name: str, rank: str) -> Optional[str]:
        prompt = f"Symbolic artifact for '{module_name}'. Rank: '{rank}'. Teal and gold."
        return await self._optional("completion_art", lambda: self._image(prompt, "16:9"))

    async def generate_sanctuary_video(self, prompt: str) -> Optional[bytes]:
        """Generate a calming 16:9 clip; polls the long-running operation until done"""
        model = self.settings.gemini_video_model

        async def operation() -> bytes:
            name = await self.client.start_video_generation(
                model,
                prompt,
                {"aspectRatio": "16:9", "resolution": "720p"},
            )
            for _ in range(self.settings.video_max_polls):
                await self._sleep(self.settings.video_poll_interval_seconds)
                state = await self.client.get_operation(name, model=model)
                if state.done:
                    return await self.client.download(state.video_uri(), model=model)
            raise GenAIError(
                f"Video operation {name} still running after {self.settings.video_max_polls} polls",
                status_code=504,
                status="DEADLINE_EXCEEDED",
            )

        return await self._optional("sanctuary_video", operation)
