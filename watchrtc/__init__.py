"""
watchrtc package.

Negotiates a WebRTC session with a remote media server: the local offer is
finalized once ICE gathering completes, posted to the server's ``/api/watch``
signaling endpoint exactly once, and the returned answer is validated before
being handed back to the caller.
"""

from __future__ import annotations

from .errors import (
    GatheringTimeout,
    InvalidState,
    LocalDescriptionMissing,
    MalformedAnswer,
    NegotiationAborted,
    NegotiationError,
    TransportUnavailable,
)
from .negotiation import NegotiationSequencer, NegotiationSession, NegotiationState
from .rtc.description import CandidateEvent, IceCandidate, SessionDescription
from .signaling.client import TransportClient

__all__ = [
    "CandidateEvent",
    "GatheringTimeout",
    "IceCandidate",
    "InvalidState",
    "LocalDescriptionMissing",
    "MalformedAnswer",
    "NegotiationAborted",
    "NegotiationError",
    "NegotiationSequencer",
    "NegotiationSession",
    "NegotiationState",
    "SessionDescription",
    "TransportClient",
    "TransportUnavailable",
]
