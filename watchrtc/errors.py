"""
Typed failures surfaced by a negotiation attempt.
"""

from __future__ import annotations

from typing import Optional


class NegotiationError(RuntimeError):
    """Base class for negotiation related errors."""


class MalformedAnswer(NegotiationError):
    """Raised when the signaling response is not a valid session description."""

    def __init__(self, raw: str, reason: str = "") -> None:
        message = "Malformed answer from signaling endpoint"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.raw = raw


class TransportUnavailable(NegotiationError):
    """Raised when the signaling request could not be completed."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class LocalDescriptionMissing(NegotiationError):
    """Raised when gathering finished but no local description was assigned."""


class GatheringTimeout(NegotiationError):
    """Raised when candidate gathering does not finish in time."""


class NegotiationAborted(NegotiationError):
    """Raised when a session is aborted before its offer was submitted."""


class InvalidState(NegotiationError):
    """Raised when a session operation is requested in the wrong state."""


__all__ = [
    "GatheringTimeout",
    "InvalidState",
    "LocalDescriptionMissing",
    "MalformedAnswer",
    "NegotiationAborted",
    "NegotiationError",
    "TransportUnavailable",
]
