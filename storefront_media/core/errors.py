"""
Error taxonomy for the image-delivery pipeline.

Client-class errors (bad reference, unreachable origin, undecodable bytes)
map to 400; codec faults and timeouts map to 500. A result that could not
reach the byte budget is not an error: see ``EncodedResult.budget_unmet``.
"""

from typing import Optional


class PipelineError(Exception):
    """Base error carrying the HTTP status it surfaces as."""

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict:
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class InputError(PipelineError):
    """Missing or unsupported image reference."""
    status_code = 400


class FetchError(PipelineError):
    """Origin request failed or returned a non-success status."""
    status_code = 400


class UnsupportedFormatError(PipelineError):
    """Bytes could not be identified or decoded as an image."""
    status_code = 400


class CodecError(PipelineError):
    """Internal resize/encode failure."""
    status_code = 500


class DeliveryTimeoutError(PipelineError, TimeoutError):
    """Fetch + transcode exceeded the wall-clock boundary."""
    status_code = 500
