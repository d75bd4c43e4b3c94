"""
Gemini (Generative Language API) REST client

Responses are validated into pydantic models up front; accessors raise
MalformedResponse instead of handing back half-missing data.
"""
import json
import time
from typing import Any, AsyncIterator, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from footsteps.core.config import Settings, get_settings
from footsteps.core.errors import GenAIConfigurationError, GenAIError, MalformedResponse
from footsteps.core.logging_config import LoggingConfig
from footsteps.core.metrics import genai_request_duration_seconds, genai_requests_total

logger = LoggingConfig.get_logger(__name__)

M = TypeVar("M", bound=BaseModel)

API_VERSION = "v1beta"


class _ApiModel(BaseModel):
    """Base for API payloads (camelCase on the wire)"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class InlineData(_ApiModel):
    mime_type: Optional[str] = None
    data: str


class Part(_ApiModel):
    text: Optional[str] = None
    inline_data: Optional[InlineData] = None


class Content(_ApiModel):
    role: Optional[str] = None
    parts: List[Part] = Field(default_factory=list)


class GroundingMetadata(_ApiModel):
    grounding_chunks: List[Dict[str, Any]] = Field(default_factory=list)


class Candidate(_ApiModel):
    content: Optional[Content] = None
    finish_reason: Optional[str] = None
    grounding_metadata: Optional[GroundingMetadata] = None


class GenerateContentResponse(_ApiModel):
    """generateContent response"""
    candidates: List[Candidate] = Field(default_factory=list)
    prompt_feedback: Optional[Dict[str, Any]] = None

    def _parts(self) -> List[Part]:
        if not self.candidates:
            block_reason = (self.prompt_feedback or {}).get("blockReason")
            detail = f" (blocked: {block_reason})" if block_reason else ""
            raise MalformedResponse(f"Response has no candidates{detail}")
        content = self.candidates[0].content
        if content is None or not content.parts:
            raise MalformedResponse(
                f"First candidate has no content parts (finish reason: {self.candidates[0].finish_reason})"
            )
        return content.parts

    def text_or_empty(self) -> str:
        """Concatenated text of the first candidate, '' if there is none (stream chunks)"""
        if not self.candidates or self.candidates[0].content is None:
            return ""
        return "".join(part.text for part in self.candidates[0].content.parts if part.text)

    def first_text(self) -> str:
        text = "".join(part.text for part in self._parts() if part.text)
        if not text.strip():
            raise MalformedResponse("First candidate has no text")
        return text

    def first_inline_data(self) -> InlineData:
        for part in self._parts():
            if part.inline_data is not None:
                return part.inline_data
        raise MalformedResponse("First candidate has no inline data")

    def parse_json(self, model_cls: Type[M]) -> M:
        """Parse the text of a JSON-mode reply into `model_cls`"""
        text = self.first_text()
        try:
            return model_cls.model_validate(json.loads(text))
        except (json.JSONDecodeError, ValidationError) as e:
            raise MalformedResponse(f"Reply does not match {model_cls.__name__}: {e}") from e

    def grounding_chunks(self) -> List[Dict[str, Any]]:
        if not self.candidates or self.candidates[0].grounding_metadata is None:
            return []
        return self.candidates[0].grounding_metadata.grounding_chunks


class VideoOperation(_ApiModel):
    """Long-running video generation operation"""
    name: str
    done: bool = False
    error: Optional[Dict[str, Any]] = None
    response: Optional[Dict[str, Any]] = None

    def video_uri(self) -> str:
        if self.error:
            raise GenAIError(
                f"Video generation failed: {self.error.get('message', self.error)}",
                status_code=self.error.get("code") if isinstance(self.error.get("code"), int) else None,
                status=self.error.get("status"),
            )
        if not self.done:
            raise MalformedResponse(f"Operation {self.name} is not finished")
        samples = ((self.response or {}).get("generateVideoResponse") or {}).get("generatedSamples") or []
        uri = ((samples[0] if samples else {}).get("video") or {}).get("uri")
        if not uri:
            raise MalformedResponse(f"Operation {self.name} finished without a video")
        return uri


def user_content(text: str) -> List[Dict[str, Any]]:
    """Single user turn in wire format"""
    return [{"role": "user", "parts": [{"text": text}]}]


def _error_from_response(response: httpx.Response) -> GenAIError:
    status = None
    message = response.text[:500]
    try:
        body = response.json()
        error = body.get("error") or {}
        status = error.get("status")
        message = error.get("message") or message
    except (ValueError, AttributeError):
        pass
    return GenAIError(
        f"HTTP {response.status_code} from model service: {message}",
        status_code=response.status_code,
        status=status,
    )


class GenAIClient:
    """Thin async client for the Generative Language REST API"""

    def __init__(self, settings: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings or get_settings()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.gemini_base_url,
                timeout=float(self.settings.llm_timeout_seconds),
                transport=self._transport,
                follow_redirects=False,
                limits=httpx.Limits(
                    max_keepalive_connections=5,
                    max_connections=10,
                )
            )
        return self._client

    def _headers(self) -> Dict[str, str]:
        if not self.settings.gemini_api_key:
            raise GenAIConfigurationError(
                "Gemini API key is not configured",
                status_code=401,
                status="UNAUTHENTICATED",
            )
        return {"x-goog-api-key": self.settings.gemini_api_key}

    async def _request(self, method: str, url: str, *, model: str, endpoint: str, **kwargs) -> httpx.Response:
        headers = self._headers()
        start_time = time.time()
        try:
            response = await self._get_client().request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            genai_requests_total.labels(model=model, endpoint=endpoint, status="error").inc()
            raise GenAIError(f"{endpoint} request failed: {type(e).__name__}: {e}") from e
        finally:
            genai_request_duration_seconds.labels(model=model, endpoint=endpoint).observe(time.time() - start_time)

        if response.status_code >= 400:
            genai_requests_total.labels(model=model, endpoint=endpoint, status="error").inc()
            error = _error_from_response(response)
            logger.warning(
                "Model service returned an error",
                extra={"model": model, "endpoint": endpoint, "status_code": error.status_code, "status": error.status}
            )
            raise error

        genai_requests_total.labels(model=model, endpoint=endpoint, status="success").inc()
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponse("Response body is not JSON", status_code=response.status_code) from e
        if not isinstance(data, dict):
            raise MalformedResponse("Response body is not a JSON object", status_code=response.status_code)
        return data

    @staticmethod
    def _payload(
        contents: List[Dict[str, Any]],
        system_instruction: Optional[str],
        generation_config: Optional[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]],
        tool_config: Optional[Dict[str, Any]],
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"contents": contents}
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        if generation_config:
            payload["generationConfig"] = generation_config
        if tools:
            payload["tools"] = tools
        if tool_config:
            payload["toolConfig"] = tool_config
        return payload

    async def generate_content(
        self,
        model: str,
        contents: List[Dict[str, Any]],
        *,
        system_instruction: Optional[str] = None,
        generation_config: Optional[Dict[str, Any]] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_config: Optional[Dict[str, Any]] = None,
    ) -> GenerateContentResponse:
        """
        Call models/{model}:generateContent

        Args:
            model: Model name
            contents: Conversation turns in wire format
            system_instruction: System prompt
            generation_config: generationConfig block (JSON mode, modalities, image config...)
            tools: Tool declarations (e.g. googleMaps grounding)
            tool_config: toolConfig block

        Returns:
            Validated GenerateContentResponse
        """
        payload = self._payload(contents, system_instruction, generation_config, tools, tool_config)
        response = await self._request(
            "POST",
            f"/{API_VERSION}/models/{model}:generateContent",
            model=model,
            endpoint="generateContent",
            json=payload,
        )
        try:
            return GenerateContentResponse.model_validate(self._json(response))
        except ValidationError as e:
            raise MalformedResponse(f"Unexpected generateContent response: {e}") from e

    async def stream_content(
        self,
        model: str,
        contents: List[Dict[str, Any]],
        *,
        system_instruction: Optional[str] = None,
        generation_config: Optional[Dict[str, Any]] = None,
    ) -> AsyncIterator[str]:
        """Stream text chunks from models/{model}:streamGenerateContent (SSE)"""
        payload = self._payload(contents, system_instruction, generation_config, None, None)
        headers = self._headers()
        url = f"/{API_VERSION}/models/{model}:streamGenerateContent"
        try:
            async with self._get_client().stream(
                "POST", url, params={"alt": "sse"}, json=payload, headers=headers
            ) as response:
                if response.status_code >= 400:
                    await response.aread()
                    genai_requests_total.labels(model=model, endpoint="streamGenerateContent", status="error").inc()
                    raise _error_from_response(response)

                async for line in response.aiter_lines():
                    if not line.startswith("data:"):
                        continue
                    try:
                        chunk = GenerateContentResponse.model_validate(json.loads(line[5:].strip()))
                    except (json.JSONDecodeError, ValidationError) as e:
                        raise MalformedResponse(f"Unreadable stream chunk: {e}") from e
                    text = chunk.text_or_empty()
                    if text:
                        yield text
        except httpx.HTTPError as e:
            genai_requests_total.labels(model=model, endpoint="streamGenerateContent", status="error").inc()
            raise GenAIError(f"streamGenerateContent request failed: {type(e).__name__}: {e}") from e

        genai_requests_total.labels(model=model, endpoint="streamGenerateContent", status="success").inc()

    async def start_video_generation(self, model: str, prompt: str, parameters: Optional[Dict[str, Any]] = None) -> str:
        """Start a video generation operation, returns the operation name"""
        payload = {"instances": [{"prompt": prompt}], "parameters": parameters or {}}
        response = await self._request(
            "POST",
            f"/{API_VERSION}/models/{model}:predictLongRunning",
            model=model,
            endpoint="predictLongRunning",
            json=payload,
        )
        name = self._json(response).get("name")
        if not isinstance(name, str) or not name:
            raise MalformedResponse("predictLongRunning response has no operation name")
        return name

    async def get_operation(self, name: str, model: str = "") -> VideoOperation:
        response = await self._request(
            "GET",
            f"/{API_VERSION}/{name}",
            model=model,
            endpoint="operations.get",
        )
        try:
            return VideoOperation.model_validate(self._json(response))
        except ValidationError as e:
            raise MalformedResponse(f"Unexpected operation response: {e}") from e

    async def download(self, uri: str, model: str = "") -> bytes:
        """
        Download a generated file (absolute URI returned by the service).

        The key is only sent to `uri` itself. Redirects (to signed storage
        URLs) are followed without it.
        """
        response = await self._request("GET", uri, model=model, endpoint="files.download")
        if not response.is_redirect:
            return response.content

        target = response.url.join(response.headers["location"])
        try:
            response = await self._get_client().get(target, follow_redirects=True)
        except httpx.HTTPError as e:
            raise GenAIError(f"files.download redirect failed: {type(e).__name__}: {e}") from e
        if response.status_code >= 400:
            raise _error_from_response(response)
        return response.content

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None
