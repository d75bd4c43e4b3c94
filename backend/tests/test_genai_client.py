"""
Tests for the Generative Language REST client
"""
import json

import httpx
import pytest

from footsteps.core.errors import (GenAIConfigurationError, GenAIError,
                                   MalformedResponse)
from footsteps.core.genai_client import (GenAIClient, GenerateContentResponse,
                                         VideoOperation, user_content)
from footsteps.models.companion import BeaconReply


def _text_body(text: str) -> dict:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def _client(settings, handler) -> GenAIClient:
    return GenAIClient(settings, transport=httpx.MockTransport(handler))


class TestGenerateContent:
    """Tests for generate_content"""

    @pytest.mark.asyncio
    async def test_request_shape(self, settings):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["key"] = request.headers.get("x-goog-api-key")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_text_body("Hello, Traveller."))

        client = _client(settings, handler)
        response = await client.generate_content(
            "gemini-test",
            user_content("hi"),
            system_instruction="Be kind",
            generation_config={"temperature": 0.2},
        )
        await client.close()

        assert response.first_text() == "Hello, Traveller."
        assert seen["url"] == "https://genai.test/v1beta/models/gemini-test:generateContent"
        assert seen["key"] == "test-key"
        assert seen["body"]["systemInstruction"] == {"parts": [{"text": "Be kind"}]}
        assert seen["body"]["generationConfig"] == {"temperature": 0.2}
        assert "tools" not in seen["body"]

    @pytest.mark.asyncio
    async def test_error_body_is_parsed(self, settings):
        def handler(request):
            return httpx.Response(429, json={
                "error": {"code": 429, "message": "Resource has been exhausted", "status": "RESOURCE_EXHAUSTED"}
            })

        client = _client(settings, handler)
        with pytest.raises(GenAIError) as exc_info:
            await client.generate_content("gemini-test", user_content("hi"))

        assert exc_info.value.status_code == 429
        assert exc_info.value.status == "RESOURCE_EXHAUSTED"
        assert "Resource has been exhausted" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_non_json_error_body(self, settings):
        client = _client(settings, lambda request: httpx.Response(502, text="Bad Gateway"))

        with pytest.raises(GenAIError) as exc_info:
            await client.generate_content("gemini-test", user_content("hi"))

        assert exc_info.value.status_code == 502
        assert exc_info.value.status is None

    @pytest.mark.asyncio
    async def test_missing_api_key(self, settings):
        settings.gemini_api_key = None
        client = _client(settings, lambda request: httpx.Response(200, json=_text_body("x")))

        with pytest.raises(GenAIConfigurationError) as exc_info:
            await client.generate_content("gemini-test", user_content("hi"))

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_transport_error_is_wrapped(self, settings):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        client = _client(settings, handler)
        with pytest.raises(GenAIError) as exc_info:
            await client.generate_content("gemini-test", user_content("hi"))

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, httpx.ConnectTimeout)


class TestResponseAccessors:
    """Tests for GenerateContentResponse accessors"""

    def test_no_candidates(self):
        response = GenerateContentResponse.model_validate({"promptFeedback": {"blockReason": "SAFETY"}})
        with pytest.raises(MalformedResponse, match="SAFETY"):
            response.first_text()
        assert response.text_or_empty() == ""

    def test_empty_text(self):
        response = GenerateContentResponse.model_validate(_text_body("   "))
        with pytest.raises(MalformedResponse):
            response.first_text()

    def test_inline_data(self):
        response = GenerateContentResponse.model_validate({
            "candidates": [{"content": {"parts": [
                {"text": "here you go"},
                {"inlineData": {"mimeType": "image/png", "data": "AAAA"}},
            ]}}]
        })
        image = response.first_inline_data()
        assert image.mime_type == "image/png"
        assert image.data == "AAAA"

    def test_missing_inline_data(self):
        with pytest.raises(MalformedResponse):
            GenerateContentResponse.model_validate(_text_body("text only")).first_inline_data()

    def test_parse_json(self):
        response = GenerateContentResponse.model_validate(_text_body('{"wisdom": "w", "advice": "a"}'))
        assert response.parse_json(BeaconReply) == BeaconReply(wisdom="w", advice="a")

    def test_parse_json_schema_mismatch(self):
        response = GenerateContentResponse.model_validate(_text_body('{"wisdom": "w"}'))
        with pytest.raises(MalformedResponse):
            response.parse_json(BeaconReply)

    def test_grounding_chunks(self):
        chunk = {"maps": {"uri": "https://maps.test/1", "title": "Recovery Hub"}}
        response = GenerateContentResponse.model_validate({
            "candidates": [{
                "content": {"parts": [{"text": "Nearby"}]},
                "groundingMetadata": {"groundingChunks": [chunk]},
            }]
        })
        assert response.grounding_chunks() == [chunk]


class TestStreamContent:
    """Tests for stream_content"""

    @pytest.mark.asyncio
    async def test_yields_text_chunks(self, settings):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            body = "".join(
                f"data: {json.dumps(_text_body(text))}\r\n\r\n" for text in ("Steady ", "steps.")
            )
            return httpx.Response(200, text=body, headers={"content-type": "text/event-stream"})

        client = _client(settings, handler)
        chunks = [chunk async for chunk in client.stream_content("gemini-test", user_content("hi"))]

        assert chunks == ["Steady ", "steps."]
        assert seen["url"].endswith(":streamGenerateContent?alt=sse")

    @pytest.mark.asyncio
    async def test_error_status(self, settings):
        def handler(request):
            return httpx.Response(503, json={"error": {"code": 503, "message": "overloaded", "status": "UNAVAILABLE"}})

        client = _client(settings, handler)
        with pytest.raises(GenAIError) as exc_info:
            async for _ in client.stream_content("gemini-test", user_content("hi")):
                pass

        assert exc_info.value.status_code == 503


class TestVideoOperations:
    """Tests for long-running video generation"""

    @pytest.mark.asyncio
    async def test_start_poll_download(self, settings):
        def handler(request):
            path = request.url.path
            if path.endswith(":predictLongRunning"):
                assert json.loads(request.content)["instances"] == [{"prompt": "forest at dawn"}]
                return httpx.Response(200, json={"name": "models/veo-test/operations/abc"})
            if path == "/v1beta/models/veo-test/operations/abc":
                return httpx.Response(200, json={
                    "name": "models/veo-test/operations/abc",
                    "done": True,
                    "response": {"generateVideoResponse": {"generatedSamples": [
                        {"video": {"uri": "https://files.test/video.mp4"}}
                    ]}},
                })
            if request.url.host == "files.test":
                assert request.headers["x-goog-api-key"] == "test-key"
                return httpx.Response(200, content=b"MP4DATA")
            return httpx.Response(404)

        client = _client(settings, handler)
        name = await client.start_video_generation("veo-test", "forest at dawn", {"aspectRatio": "16:9"})
        operation = await client.get_operation(name, model="veo-test")
        video = await client.download(operation.video_uri(), model="veo-test")

        assert name == "models/veo-test/operations/abc"
        assert video == b"MP4DATA"

    @pytest.mark.asyncio
    async def test_download_redirect_drops_api_key(self, settings):
        seen = []

        def handler(request):
            seen.append((request.url.host, request.headers.get("x-goog-api-key")))
            if request.url.host == "files.test":
                return httpx.Response(302, headers={"location": "https://storage.test/signed/video.mp4"})
            return httpx.Response(200, content=b"MP4DATA")

        client = _client(settings, handler)
        video = await client.download("https://files.test/video.mp4", model="veo-test")

        assert video == b"MP4DATA"
        assert seen == [("files.test", "test-key"), ("storage.test", None)]

    @pytest.mark.asyncio
    async def test_download_redirect_target_error(self, settings):
        def handler(request):
            if request.url.host == "files.test":
                return httpx.Response(302, headers={"location": "https://storage.test/gone"})
            return httpx.Response(404, text="Not Found")

        client = _client(settings, handler)
        with pytest.raises(GenAIError) as exc_info:
            await client.download("https://files.test/video.mp4")

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_start_without_name(self, settings):
        client = _client(settings, lambda request: httpx.Response(200, json={}))
        with pytest.raises(MalformedResponse):
            await client.start_video_generation("veo-test", "forest")

    def test_operation_error(self):
        operation = VideoOperation(name="op", done=True, error={"code": 400, "message": "unsafe prompt"})
        with pytest.raises(GenAIError) as exc_info:
            operation.video_uri()
        assert exc_info.value.status_code == 400

    def test_operation_not_done(self):
        with pytest.raises(MalformedResponse):
            VideoOperation(name="op").video_uri()

    def test_operation_without_samples(self):
        with pytest.raises(MalformedResponse):
            VideoOperation(name="op", done=True, response={}).video_uri()
