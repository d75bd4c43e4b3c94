"""
Tests for remote call classification and the retry wrapper
"""
import httpx
import pytest
from unittest.mock import AsyncMock

from footsteps.core.errors import (GenAIConfigurationError, GenAIError,
                                   MalformedResponse)
from footsteps.core.genai_client import VideoOperation
from footsteps.core.retry import (PERMANENT, RetryReason, backoff_delay,
                                  call_with_retry, classify_error)


class _StatusError(Exception):
    def __init__(self, message, status):
        super().__init__(message)
        self.status = status


class TestClassifyError:
    """Tests for classify_error"""

    @pytest.mark.parametrize("code,reason", [
        (429, RetryReason.RATE_LIMITED),
        (503, RetryReason.OVERLOADED),
        (500, RetryReason.SERVER_FAULT),
    ])
    def test_retryable_status_codes(self, code, reason):
        classification = classify_error(GenAIError("boom", status_code=code))
        assert classification.retryable is True
        assert classification.reason == reason

    @pytest.mark.parametrize("code", [400, 401, 403, 404, 504])
    def test_other_status_codes_are_permanent(self, code):
        assert classify_error(GenAIError("boom", status_code=code)) == PERMANENT

    def test_status_code_wins_over_message(self):
        """A 400 mentioning quota is still permanent"""
        error = GenAIError("quota exceeded 429", status_code=400)
        assert classify_error(error).retryable is False

    def test_rpc_status_name(self):
        classification = classify_error(_StatusError("busy", "UNAVAILABLE"))
        assert classification.reason == RetryReason.OVERLOADED

    def test_numeric_status_string(self):
        classification = classify_error(_StatusError("slow down", "429"))
        assert classification.reason == RetryReason.RATE_LIMITED

    def test_unknown_status_name_falls_back_to_message(self):
        classification = classify_error(_StatusError("model is overloaded", "SOMETHING_NEW"))
        assert classification.reason == RetryReason.OVERLOADED

    def test_httpx_status_error(self):
        request = httpx.Request("POST", "https://genai.test/x")
        response = httpx.Response(503, request=request)
        error = httpx.HTTPStatusError("unavailable", request=request, response=response)
        assert classify_error(error).reason == RetryReason.OVERLOADED

    @pytest.mark.parametrize("message,reason", [
        ("Quota exceeded for project", RetryReason.RATE_LIMITED),
        ("got 429 from upstream", RetryReason.RATE_LIMITED),
        ("The model is overloaded", RetryReason.OVERLOADED),
        ("Internal error encountered", RetryReason.SERVER_FAULT),
    ])
    def test_message_fallback(self, message, reason):
        assert classify_error(RuntimeError(message)).reason == reason

    def test_plain_error_is_permanent(self):
        assert classify_error(ValueError("bad json")) == PERMANENT

    def test_transport_error_is_permanent(self):
        assert classify_error(GenAIError("request failed: ConnectTimeout")).retryable is False

    @pytest.mark.parametrize("error", [
        MalformedResponse("Reply does not match AtmosphereReply: input_value='overloaded'"),
        MalformedResponse("Response body is not JSON: quota 429", status_code=200),
        GenAIConfigurationError("Gemini API key is not configured"),
        GenAIError("streamGenerateContent request failed: ReadError: 500 bytes"),
    ])
    def test_client_errors_never_match_on_message(self, error):
        """Model output quoted in a client error cannot make it transient"""
        assert classify_error(error) == PERMANENT

    def test_unfinished_video_sample_is_permanent(self):
        operation = VideoOperation(name="models/veo/operations/ab500cd", done=True, response={})
        with pytest.raises(MalformedResponse) as exc_info:
            operation.video_uri()
        assert classify_error(exc_info.value) == PERMANENT


class TestBackoffDelay:
    """Tests for backoff_delay"""

    def test_doubles_per_attempt(self):
        assert [backoff_delay(n) for n in range(4)] == [1.5, 3.0, 6.0, 12.0]

    def test_custom_base(self):
        assert backoff_delay(2, base=0.5) == 2.0


class TestCallWithRetry:
    """Tests for call_with_retry"""

    @pytest.mark.asyncio
    async def test_offline_skips_operation(self, probe, sleep):
        probe.mark_offline()
        operation = AsyncMock(return_value="never")

        result = await call_with_retry(operation, 3, probe=probe, sleep=sleep)

        assert result is None
        operation.assert_not_called()
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_success_first_attempt(self, probe, sleep):
        operation = AsyncMock(return_value="ok")

        assert await call_with_retry(operation, 2, probe=probe, sleep=sleep) == "ok"
        assert operation.call_count == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_rate_limited_then_success(self, probe, sleep):
        operation = AsyncMock(side_effect=[
            GenAIError("slow down", status_code=429),
            GenAIError("slow down", status_code=429),
            "ok",
        ])

        result = await call_with_retry(operation, 3, probe=probe, sleep=sleep)

        assert result == "ok"
        assert operation.call_count == 3
        assert sleep.delays == [1.5, 3.0]

    @pytest.mark.asyncio
    async def test_permanent_error_propagates_immediately(self, probe, sleep):
        operation = AsyncMock(side_effect=GenAIError("bad request", status_code=400))

        with pytest.raises(GenAIError) as exc_info:
            await call_with_retry(operation, 3, probe=probe, sleep=sleep)

        assert exc_info.value.status_code == 400
        assert operation.call_count == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_last_error(self, probe, sleep):
        operation = AsyncMock(side_effect=GenAIError("overloaded", status_code=503))

        with pytest.raises(GenAIError):
            await call_with_retry(operation, 2, probe=probe, sleep=sleep)

        assert operation.call_count == 2
        assert sleep.delays == [1.5]

    @pytest.mark.asyncio
    async def test_zero_retries_returns_none(self, probe, sleep):
        operation = AsyncMock(return_value="ok")

        assert await call_with_retry(operation, 0, probe=probe, sleep=sleep) is None
        operation.assert_not_called()

    @pytest.mark.asyncio
    async def test_custom_base_delay(self, probe, sleep):
        operation = AsyncMock(side_effect=[GenAIError("boom", status_code=500), "ok"])

        await call_with_retry(operation, 2, probe=probe, sleep=sleep, base_delay=0.1)

        assert sleep.delays == [0.1]

    @pytest.mark.asyncio
    async def test_probe_read_once_before_first_attempt(self, probe, sleep):
        """Going offline mid-retry does not abort the attempts already under way"""
        calls = []

        async def operation():
            calls.append(1)
            if len(calls) == 1:
                probe.mark_offline()
                raise GenAIError("busy", status_code=503)
            return "ok"

        assert await call_with_retry(operation, 2, probe=probe, sleep=sleep) == "ok"
        assert len(calls) == 2
