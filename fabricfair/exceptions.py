"""Exception hierarchy and gate failure reasons for FabricFair."""

from enum import Enum
from typing import Any


class FabricFairError(Exception):
    """Base exception for all FabricFair errors."""


class StorageError(FabricFairError):
    """Raised when storage operations fail."""


class ReportError(FabricFairError):
    """Raised when a submission document cannot be rendered."""


class ConfigError(FabricFairError):
    """Raised when configuration is invalid."""


class InvalidBodyError(FabricFairError):
    """Raised when a JSON request body is malformed or fails validation."""

    def __init__(self, error: str, details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(error)
        self.error = error
        self.details = details


class GateError(str, Enum):
    """Why the captcha/rate-limit gate refused a request.

    Gate stores return these inside result objects instead of raising;
    the HTTP layer turns them into status codes.
    """

    RATE_LIMITED = "rate_limited"
    CHALLENGE_EXPIRED = "challenge_expired"
    CHALLENGE_ALREADY_USED = "challenge_already_used"
    CHALLENGE_MISMATCH = "challenge_mismatch"
    CHALLENGE_REQUIRED = "challenge_required"
    INVALID_CREDENTIALS = "invalid_credentials"

    @property
    def status_code(self) -> int:
        if self is GateError.RATE_LIMITED:
            return 429
        if self is GateError.INVALID_CREDENTIALS:
            return 401
        return 400
