"""Domain exceptions shared by the meal core and the HTTP layer.

Every error carries a machine-readable ``code``, a human-readable ``message``
and the HTTP status the request handlers should answer with.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional


class FitTrackError(Exception):
    """Base class for errors that surface to the client as-is."""

    code = "error"
    http_status = 500

    def __init__(self, message: str = "Unexpected error", details: Optional[Mapping[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = dict(self.details)
        return payload

    def __str__(self) -> str:
        return self.message


class ResolutionError(FitTrackError):
    """Raised when a meal capture cannot be turned into nutrition facts."""

    code = "resolution_failed"
    http_status = 400


class EmptyImage(ResolutionError):
    code = "empty_image"
    http_status = 400

    def __init__(self, message: str = "Meal capture has no image data", details: Optional[Mapping[str, Any]] = None):
        super().__init__(message, details)


class InvalidImage(ResolutionError):
    code = "invalid_image"
    http_status = 400

    def __init__(self, message: str = "Meal capture is not a decodable image", details: Optional[Mapping[str, Any]] = None):
        super().__init__(message, details)


class AnalysisFailed(ResolutionError):
    """The vision call failed, returned nothing, or returned an unusable payload.

    ``reason`` is kept separately so logs and clients can show it without the
    generic prefix.
    """

    code = "analysis_failed"
    http_status = 502

    def __init__(self, reason: str, details: Optional[Mapping[str, Any]] = None):
        super().__init__(f"Meal analysis failed: {reason}", details)
        self.reason = reason


class InvalidNutrition(ResolutionError):
    code = "invalid_nutrition"
    http_status = 422

    def __init__(self, message: str = "Nutrition values out of bounds", details: Optional[Mapping[str, Any]] = None):
        super().__init__(message, details)


class PersistenceFailed(FitTrackError):
    code = "persistence_failed"
    http_status = 500

    def __init__(self, message: str = "Failed to save meal record", details: Optional[Mapping[str, Any]] = None):
        super().__init__(message, details)


class BarcodeLookupError(FitTrackError):
    code = "barcode_lookup_failed"
    http_status = 502

    def __init__(self, message: str = "Nutrition lookup service unavailable", details: Optional[Mapping[str, Any]] = None):
        super().__init__(message, details)
