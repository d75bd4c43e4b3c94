"""
API tests through the FastAPI app
"""
import json
import time

import httpx
import pytest
from fastapi.testclient import TestClient

from footsteps.core.audio import encode_audio
from footsteps.core.genai_client import GenAIClient
from footsteps.services.companion_service import CompanionService
from footsteps.services.fallbacks import (CRISIS_OFFLINE_RESPONSE,
                                          LOCAL_CORE_RESPONSES,
                                          get_offline_response)


def _text_body(text: str) -> dict:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def _model_handler(request: httpx.Request) -> httpx.Response:
    """Fake model service: speech for the TTS model, JSON or prose otherwise"""
    if "tts" in request.url.path:
        # "chime" requests get a 10 ms clip, everything else two seconds
        frames = 240 if b"chime" in request.content else 48000
        audio = encode_audio(b"\x00\x00" * frames)
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [
            {"inlineData": {"mimeType": "audio/L16;codec=pcm;rate=24000", "data": audio}}
        ]}}]})
    body = json.loads(request.content)
    if body.get("generationConfig", {}).get("responseMimeType") == "application/json":
        return httpx.Response(200, json=_text_body('{"isSafe": false, "feedback": "Please reach out."}'))
    return httpx.Response(200, json=_text_body("A steady step, Traveller."))


async def _no_sleep(delay: float):
    return None


@pytest.fixture
def client(settings):
    from main import app

    with TestClient(app) as test_client:
        genai = GenAIClient(settings, transport=httpx.MockTransport(_model_handler))
        app.state.companion = CompanionService(genai, app.state.probe, settings, sleep=_no_sleep)
        app.state.probe.mark_online()
        yield test_client


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.headers["X-Request-ID"]

    def test_request_id_is_echoed(self, client):
        response = client.get("/health/liveness", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    def test_detailed_degrades_offline(self, client):
        assert client.get("/health/detailed").json()["status"] == "healthy"

        client.put("/api/connectivity", json={"online": False})
        data = client.get("/health/detailed").json()

        assert data["status"] == "degraded"
        assert data["components"]["connectivity"]["online"] is False

    def test_metrics(self, client):
        client.post("/api/companion/reflection", json={"moduleName": "TIPP Skill"})
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "genai_requests_total" in response.text


class TestConnectivity:

    def test_get_and_put(self, client):
        assert client.get("/api/connectivity").json()["online"] is True

        data = client.put("/api/connectivity", json={"online": False}).json()

        assert data["online"] is False
        assert data["changed_at"] is not None


class TestCatalog:

    def test_phases(self, client):
        assert len(client.get("/api/catalog/phases").json()) == 5

    def test_phase_detail(self, client):
        data = client.get("/api/catalog/phases/1").json()
        assert data["title"] == "Phase 1: Foundations"
        assert all(exercise["recommended_phase"] == 1 for exercise in data["exercises"])

    def test_unknown_phase(self, client):
        assert client.get("/api/catalog/phases/9").status_code == 404

    def test_rank(self, client):
        data = client.get("/api/catalog/rank", params={"footsteps": 31}).json()
        assert data["id"] == "resilient"
        assert data["next_threshold"] == 71


class TestCompanion:
    """Companion routes online and offline"""

    def test_reflection_online(self, client):
        response = client.post("/api/companion/reflection", json={"moduleName": "TIPP Skill", "rating": 4})
        assert response.json() == {"text": "A steady step, Traveller."}

    def test_reflection_offline(self, client):
        client.put("/api/connectivity", json={"online": False})
        response = client.post("/api/companion/reflection", json={"moduleName": "Urge Surfing"})
        assert response.json()["text"] == LOCAL_CORE_RESPONSES["Urge Surfing"]

    def test_optional_offline_is_null(self, client):
        client.put("/api/connectivity", json={"online": False})
        response = client.post("/api/companion/affirmation", json={"rank": "The Seeker", "phaseId": 1})
        assert response.json() == {"text": None}

    def test_screening_uses_camel_case(self, client):
        data = client.post("/api/companion/community/screen", json={"text": "rough night"}).json()
        assert data == {"isSafe": False, "feedback": "Please reach out."}

    def test_screening_offline_crisis(self, client):
        client.put("/api/connectivity", json={"online": False})
        data = client.post("/api/companion/community/screen", json={"text": "thinking about suicide"}).json()
        assert data["isSafe"] is False
        assert data["feedback"] == CRISIS_OFFLINE_RESPONSE

    def test_complete_module_offline(self, client):
        client.put("/api/connectivity", json={"online": False})
        data = client.post(
            "/api/companion/complete",
            json={"moduleName": "Radical Acceptance", "rating": 5, "footsteps": 40},
        ).json()
        assert data == {
            "rating": 5,
            "reflectionText": LOCAL_CORE_RESPONSES["Radical Acceptance"],
            "artworkUrl": None,
        }

    def test_chat_offline_stream(self, client):
        client.put("/api/connectivity", json={"online": False})
        response = client.post("/api/companion/chat", json={"message": "Hello", "phaseId": 4})
        assert response.status_code == 200
        assert response.text == get_offline_response(4, False)

    def test_chat_validation(self, client):
        assert client.post("/api/companion/chat", json={"message": ""}).status_code == 422

    def test_video_offline_is_no_content(self, client):
        client.put("/api/connectivity", json={"online": False})
        assert client.post("/api/companion/video", json={"prompt": "calm lake"}).status_code == 204


class TestSpeech:
    """Speech synthesis and playback control"""

    def test_speak_then_stop(self, client):
        response = client.post("/api/speech", json={"text": "Breathe slowly"})
        assert response.status_code == 200
        assert response.headers["content-type"] == "audio/wav"
        assert response.content[:4] == b"RIFF"

        current = client.get("/api/speech/current")
        assert current.headers["X-Playback-ID"] == response.headers["X-Playback-ID"]

        assert client.post("/api/speech/stop").json() == {"stopped": True}
        assert client.post("/api/speech/stop").json() == {"stopped": False}
        assert client.get("/api/speech/current").status_code == 404

    def test_speak_offline(self, client):
        client.put("/api/connectivity", json={"online": False})
        assert client.post("/api/speech", json={"text": "Breathe slowly"}).status_code == 204

    def test_clip_ends_on_its_own(self, client):
        assert client.post("/api/speech", json={"text": "A short chime"}).status_code == 200

        time.sleep(0.2)

        assert client.get("/api/speech/current").status_code == 404
        assert client.post("/api/speech/stop").json() == {"stopped": False}
