"""
modon/errors.py

Error taxonomy shared by the service layer and the HTTP routes.

- ValidationError: caller input is malformed or out of range (HTTP 400)
- InternalError: a required storage operation failed (HTTP 500)
- RateLimitedError: a client sent too many submissions (HTTP 429)

"Not found" is not an error: lookups return None and routes map it to 404.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class ModonError(Exception):
    """Base class for errors raised by the MODON service layer."""


class ValidationError(ModonError):
    """Input failed schema or format checks. Never retried."""

    def __init__(self, message: str, details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.details: List[Dict[str, Any]] = details or []

    @classmethod
    def from_pydantic(cls, exc: Any, message: str = "Invalid search parameters") -> "ValidationError":
        """Build from a pydantic ValidationError, one entry per violated field."""
        details = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ())),
                "message": err.get("msg", "invalid value"),
            }
            for err in exc.errors()
        ]
        return cls(message, details)


class InternalError(ModonError):
    """A required storage operation failed. The original exception is chained as __cause__."""

    def __init__(self, operation: str, message: str = "Storage operation failed"):
        super().__init__(f"{message}: {operation}")
        self.operation = operation


class RateLimitedError(ModonError):
    """Client exceeded a rate limit (HTTP 429 with Retry-After)."""

    def __init__(self, retry_after: int, message: str = "Too many requests. Please try again later."):
        super().__init__(message)
        self.message = message
        self.retry_after = retry_after
