"""
Remote call error types
"""
from typing import Optional


class GenAIError(Exception):
    """Failure talking to the generative model service"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        status: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.status = status


class GenAIConfigurationError(GenAIError):
    """Client is not configured well enough to issue requests (e.g. missing API key)"""


class MalformedResponse(GenAIError):
    """Response did not have the expected shape"""


# Upstream status strings (google.rpc.Code names) mapped to HTTP codes, used
# when an error body carries a status but the HTTP layer did not.
RPC_STATUS_CODES = {
    "INVALID_ARGUMENT": 400,
    "FAILED_PRECONDITION": 400,
    "UNAUTHENTICATED": 401,
    "PERMISSION_DENIED": 403,
    "NOT_FOUND": 404,
    "RESOURCE_EXHAUSTED": 429,
    "CANCELLED": 499,
    "INTERNAL": 500,
    "UNAVAILABLE": 503,
    "DEADLINE_EXCEEDED": 504,
}
