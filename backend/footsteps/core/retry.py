"""
Resilient remote-call wrapper: typed error classification plus bounded
exponential backoff.

Every feature caller funnels its model request through call_with_retry().
The wrapper turns an offline probe into a non-exceptional None and never
swallows a real failure; converting errors into user-facing fallbacks is
the caller's job.
"""
import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

import httpx

from footsteps.core.connectivity import ConnectivityProbe
from footsteps.core.errors import RPC_STATUS_CODES, GenAIError
from footsteps.core.logging_config import LoggingConfig
from footsteps.core.metrics import genai_offline_skips_total, genai_retries_total

logger = LoggingConfig.get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 2
DEFAULT_BACKOFF_BASE_SECONDS = 1.5


class RetryReason(str, Enum):
    """Why a failure is worth another attempt"""
    RATE_LIMITED = "rate_limited"
    OVERLOADED = "overloaded"
    SERVER_FAULT = "server_fault"


@dataclass(frozen=True)
class ErrorClassification:
    retryable: bool
    reason: Optional[RetryReason] = None

    @classmethod
    def retry(cls, reason: RetryReason) -> "ErrorClassification":
        return cls(retryable=True, reason=reason)


PERMANENT = ErrorClassification(retryable=False)

RETRYABLE_STATUS_CODES = {
    429: RetryReason.RATE_LIMITED,
    503: RetryReason.OVERLOADED,
    500: RetryReason.SERVER_FAULT,
}

# Only consulted when the error carries no status code
RETRYABLE_MESSAGE_MARKERS = (
    (("429", "quota"), RetryReason.RATE_LIMITED),
    (("503", "overloaded"), RetryReason.OVERLOADED),
    (("500", "internal error"), RetryReason.SERVER_FAULT),
)


def _status_code_of(error: BaseException) -> Optional[int]:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code

    code = getattr(error, "status_code", None)
    if isinstance(code, int):
        return code

    status = getattr(error, "status", None)
    if isinstance(status, int):
        return status
    if isinstance(status, str):
        if status.isdigit():
            return int(status)
        return RPC_STATUS_CODES.get(status.upper())
    return None


def classify_error(error: BaseException) -> ErrorClassification:
    """
    Decide whether a failed remote call should be retried.

    Status code first: 429, 503 and 500 are retryable, any other known code
    is permanent. Message matching is the fallback for foreign errors that
    carry no status at all. A GenAIError without a status (malformed reply,
    missing key, transport failure) is permanent: its message may quote
    model output, which must not trigger a retry.
    """
    status_code = _status_code_of(error)
    if status_code is not None:
        reason = RETRYABLE_STATUS_CODES.get(status_code)
        return ErrorClassification.retry(reason) if reason else PERMANENT

    if isinstance(error, GenAIError):
        return PERMANENT

    message = str(error).lower()
    for markers, reason in RETRYABLE_MESSAGE_MARKERS:
        if any(marker in message for marker in markers):
            return ErrorClassification.retry(reason)
    return PERMANENT


def backoff_delay(attempt: int, base: float = DEFAULT_BACKOFF_BASE_SECONDS) -> float:
    """Delay in seconds after failed attempt number `attempt` (0-based)"""
    return (2 ** attempt) * base


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    *,
    probe: ConnectivityProbe,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    base_delay: float = DEFAULT_BACKOFF_BASE_SECONDS,
) -> Optional[T]:
    """
    Run `operation` with bounded retry.

    Args:
        operation: Zero-argument coroutine function performing the remote call
        max_retries: Total attempts allowed (not additional retries)
        probe: Connectivity probe checked before the first attempt
        sleep: Awaitable sleep, injectable for tests
        base_delay: Backoff base in seconds

    Returns:
        The operation's result, or None when the probe reports offline
        (the operation is not invoked) or when max_retries < 1.

    Raises:
        Whatever the operation raised, on a permanent fault or on the last
        attempt.
    """
    if not probe.is_online():
        genai_offline_skips_total.inc()
        logger.info("Offline, skipping remote call")
        return None

    for attempt in range(max_retries):
        try:
            return await operation()
        except Exception as error:
            classification = classify_error(error)
            if classification.retryable and attempt < max_retries - 1:
                delay = backoff_delay(attempt, base_delay)
                genai_retries_total.labels(reason=classification.reason.value).inc()
                logger.warning(
                    "Transient remote fault, retrying",
                    extra={
                        "reason": classification.reason.value,
                        "attempt": attempt + 1,
                        "max_retries": max_retries,
                        "delay_seconds": delay,
                        "error": str(error),
                    }
                )
                await sleep(delay)
                continue
            raise

    return None
