"""Typed errors raised by the artwork pipeline and its collaborators."""

from __future__ import annotations

from typing import Optional

from models.analysis_result import AnalysisErrorKind


class InvalidInputError(ValueError):
    """The caller supplied data the service cannot accept."""


class InvalidImageError(InvalidInputError):
    """Uploaded bytes could not be decoded as an image."""


class PayloadTooLargeError(InvalidInputError):
    """Uploaded image exceeds the configured size ceiling."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"Image is {size} bytes; the limit is {limit} bytes.")
        self.size = size
        self.limit = limit


class NotFoundError(LookupError):
    """Record is missing or not visible to the requesting user."""


class AccessDeniedError(PermissionError):
    """Caller is authenticated but lacks the required role."""


class AnalysisInFlightError(RuntimeError):
    """An analysis for this artwork is already queued or running."""

    def __init__(self, artwork_id: int) -> None:
        super().__init__(f"Analysis already in progress for artwork {artwork_id}")
        self.artwork_id = artwork_id


class AnalysisFailedError(RuntimeError):
    """The external model call failed or returned nothing usable.

    Attributes:
        kind: Structured classification of the failure.
        reason: Human-readable reason suitable for logs.
    """

    def __init__(self, kind: AnalysisErrorKind, reason: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(reason)
        self.kind = kind
        self.reason = reason
        self.cause = cause

    @property
    def retryable(self) -> bool:
        return self.kind.retryable
