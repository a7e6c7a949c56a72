"""
WebRTC helpers.
"""

from __future__ import annotations

from .description import CandidateEvent, IceCandidate, SessionDescription
from .source import CandidateFeed, DescriptionSource

__all__ = [
    "CandidateEvent",
    "CandidateFeed",
    "DescriptionSource",
    "IceCandidate",
    "SessionDescription",
]
