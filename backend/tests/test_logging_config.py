"""
Tests for log masking and structured output
"""
import json
import logging

import pytest

from footsteps.core.logging_config import (ContextualFormatter, LoggingConfig,
                                           SensitiveDataFilter)


def _record(msg, *args, **extra):
    record = logging.LogRecord("footsteps.test", logging.INFO, __file__, 1, msg, args, None)
    record.__dict__.update(extra)
    return record


class TestSensitiveDataFilter:

    @pytest.mark.parametrize("message", [
        "headers: x-goog-api-key: AIzaSECRET123",
        "GET https://genai.test/v1beta/models?key=AIzaSECRET123&alt=sse",
        "Authorization: Bearer AIzaSECRET123",
        'payload {"api_key": "AIzaSECRET123"}',
    ])
    def test_masks_keys(self, message):
        record = _record(message)
        SensitiveDataFilter().filter(record)
        assert "AIzaSECRET123" not in record.getMessage()

    def test_masks_args(self):
        record = _record("calling %s", "token=AIzaSECRET123")
        SensitiveDataFilter().filter(record)
        assert "AIzaSECRET123" not in record.getMessage()

    def test_disabled(self):
        record = _record("x-goog-api-key: AIzaSECRET123")
        SensitiveDataFilter(enabled=False).filter(record)
        assert "AIzaSECRET123" in record.getMessage()


class TestContextualFormatter:

    def test_includes_context_and_extra(self):
        LoggingConfig.set_context(request_id="req-1")
        try:
            output = json.loads(ContextualFormatter().format(_record("Retrying", feature="speech")))
        finally:
            LoggingConfig.clear_context()

        assert output["message"] == "Retrying"
        assert output["request_id"] == "req-1"
        assert output["feature"] == "speech"
        assert output["level"] == "INFO"
