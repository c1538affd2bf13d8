"""Translate domain errors into HTTP responses."""

import logging

from fastapi import HTTPException

from models.analysis_result import AnalysisErrorKind
from models.errors import (
    AccessDeniedError,
    AnalysisFailedError,
    AnalysisInFlightError,
    InvalidInputError,
    NotFoundError,
    PayloadTooLargeError,
)

LOGGER = logging.getLogger(__name__)


def to_http_exception(exc: Exception) -> HTTPException:
    """Return the HTTPException for a domain error; unknown errors map to 500."""
    if isinstance(exc, HTTPException):
        return exc
    if isinstance(exc, PayloadTooLargeError):
        return HTTPException(status_code=413, detail=str(exc))
    if isinstance(exc, InvalidInputError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail="Artwork not found")
    if isinstance(exc, AccessDeniedError):
        return HTTPException(status_code=403, detail=str(exc) or "Access denied")
    if isinstance(exc, AnalysisInFlightError):
        return HTTPException(status_code=409, detail="Analysis already in progress")
    if isinstance(exc, AnalysisFailedError):
        if exc.kind in (AnalysisErrorKind.QUOTA_EXCEEDED, AnalysisErrorKind.RATE_LIMITED):
            return HTTPException(status_code=429, detail="AI service is rate limited")
        if exc.kind == AnalysisErrorKind.TIMEOUT:
            return HTTPException(status_code=504, detail="AI service timed out")
        return HTTPException(status_code=502, detail="AI service request failed")
    LOGGER.error("Unhandled error: %s", exc, exc_info=exc)
    return HTTPException(status_code=500, detail="Internal server error")
