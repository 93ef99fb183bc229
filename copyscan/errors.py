"""Error taxonomy for plagiarism detection.

Every error raised out of the detection core is a ``DetectionError`` subclass
carrying an ``ErrorKind`` tag, so callers (e.g. the HTTP layer) can branch on
``err.kind`` instead of matching message strings.
"""

from enum import Enum
from typing import Any, Dict, Optional

from copyscan.config import RATE_LIMIT_RETRY_AFTER


class ErrorKind(str, Enum):
    ANALYSIS = "analysis_failure"
    SEARCH = "search_provider_failure"
    EXTRACTION = "extraction_failure"
    RATE_LIMITED = "rate_limited"
    DETECTION = "detection_failure"


class DetectionError(Exception):
    """Base class for all detection errors."""

    kind: ErrorKind = ErrorKind.DETECTION

    def __init__(self, message: str = "", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}


class AnalysisFailure(DetectionError):
    """The submitted text could not be analyzed. Fatal to the request."""

    kind = ErrorKind.ANALYSIS


class SearchProviderFailure(DetectionError):
    """The web search collaborator failed or is unavailable."""

    kind = ErrorKind.SEARCH


class ExtractionFailure(DetectionError):
    """Content could not be extracted from a URL."""

    kind = ErrorKind.EXTRACTION


class RateLimited(DetectionError):
    """A collaborator refused the request because of a rate limit or quota."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(
        self,
        message: str = "Rate limit exceeded for plagiarism checking",
        retry_after: int = RATE_LIMIT_RETRY_AFTER,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details)
        self.retry_after = retry_after


class GenericDetectionFailure(DetectionError):
    """Catch-all wrapper that keeps the original error message."""

    kind = ErrorKind.DETECTION

    @classmethod
    def wrap(cls, error: BaseException) -> "GenericDetectionFailure":
        return cls(f"Plagiarism detection failed: {error}", {"cause": type(error).__name__})
