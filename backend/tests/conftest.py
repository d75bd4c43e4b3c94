"""
Pytest configuration and fixtures
"""
import os
import sys
from pathlib import Path

# Test environment must be in place before footsteps.core.config is imported
os.environ["LOG_FILE_ENABLED"] = "false"
os.environ["GEMINI_API_KEY"] = "test-key"
os.environ["OFFLINE_MODE"] = "false"

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

import pytest

from footsteps.core.config import Settings
from footsteps.core.connectivity import ConnectivityProbe


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays"""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay: float):
        self.delays.append(delay)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def probe() -> ConnectivityProbe:
    return ConnectivityProbe(online=True)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        gemini_api_key="test-key",
        gemini_base_url="https://genai.test",
        log_file_enabled=False,
        genai_max_retries=2,
        genai_backoff_base_seconds=1.5,
        video_poll_interval_seconds=10.0,
        video_max_polls=3,
    )
