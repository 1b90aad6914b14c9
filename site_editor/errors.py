"""Edit failure taxonomy.

Every failure raised by the editor pipeline maps to an HTTP status and an
optional wire ``code``; the server turns them into ``{"error": ..., "code": ...}``.
"""

from typing import Any, Dict, Optional


class EditError(Exception):
    status = 500
    code: Optional[str] = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.code:
            body["code"] = self.code
        return body


class ValidationError(EditError):
    """Missing or invalid input. Never retried."""

    status = 400


class QuotaExceeded(EditError):
    status = 429
    code = "rate_limit"

    def __init__(self, retry_after: int, message: str = "Limit reached"):
        super().__init__(message)
        self.retry_after = int(retry_after)

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        body["retryAfter"] = self.retry_after
        return body


class ParseError(EditError):
    """The model reply yielded no usable patch."""

    status = 400
    code = "parse_error"


class ApplyError(ParseError):
    """A patch was recognized but could not be located in (or safely applied to) the document."""


class UpstreamError(EditError):
    status = 502
    code = "ai_error"


class NotConfiguredError(UpstreamError):
    status = 500


class EditTimeout(EditError):
    status = 504
    code = "timeout"
