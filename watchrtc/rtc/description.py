"""
Session description and ICE candidate value types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

DESCRIPTION_TYPES = ("offer", "pranswer", "answer", "rollback")


@dataclass(frozen=True, slots=True)
class SessionDescription:
    """
    One end of a connection: the description ``type`` and its SDP text.
    """

    type: str
    sdp: str

    def to_dict(self) -> dict:
        return {"type": str(self.type), "sdp": str(self.sdp)}


@dataclass(frozen=True, slots=True)
class IceCandidate:
    """Serialisable ICE candidate container."""

    candidate: str
    sdp_mid: Optional[str] = None
    sdp_mline_index: Optional[int] = None


@dataclass(frozen=True, slots=True)
class CandidateEvent:
    """
    Notification emitted while the local network stack gathers candidates.

    An event without a candidate is the end-of-candidates sentinel.
    """

    candidate: Optional[IceCandidate] = None

    @property
    def is_sentinel(self) -> bool:
        return self.candidate is None

    @classmethod
    def end_of_candidates(cls) -> "CandidateEvent":
        return cls(candidate=None)


__all__ = ["CandidateEvent", "DESCRIPTION_TYPES", "IceCandidate", "SessionDescription"]
