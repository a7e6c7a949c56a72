"""
aiortc backed description sources.

Requires the optional ``aiortc`` dependency (``pip install watchrtc[rtc]``).
aiortc gathers candidates while the local description is being set and does
not trickle them, so the candidates are replayed from the gathered SDP once
``setLocalDescription`` returns.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from aiortc import RTCConfiguration, RTCIceServer, RTCPeerConnection, RTCSessionDescription

from .description import CandidateEvent, IceCandidate, SessionDescription
from .source import CandidateFeed

LOG = logging.getLogger(__name__)

CANDIDATE_PREFIX = "a=candidate:"


def build_configuration(ice_servers: Iterable[str] = ()) -> RTCConfiguration:
    servers = [RTCIceServer(urls=url) for url in ice_servers if url]
    return RTCConfiguration(iceServers=servers)


def iter_sdp_candidates(sdp: str) -> List[IceCandidate]:
    """
    Extract the ``a=candidate`` lines of ``sdp`` with their media section.
    """

    candidates: List[IceCandidate] = []
    mline_index = -1
    mid: Optional[str] = None
    for raw_line in sdp.splitlines():
        line = raw_line.strip()
        if line.startswith("m="):
            mline_index += 1
            mid = None
        elif line.startswith("a=mid:"):
            mid = line[len("a=mid:"):]
        elif line.startswith(CANDIDATE_PREFIX):
            candidates.append(
                IceCandidate(
                    candidate=line[len("a="):],
                    sdp_mid=mid,
                    sdp_mline_index=mline_index if mline_index >= 0 else None,
                )
            )
    return candidates


def _to_rtc(description: SessionDescription) -> RTCSessionDescription:
    return RTCSessionDescription(sdp=description.sdp, type=description.type)


def _from_rtc(description: Optional[RTCSessionDescription]) -> Optional[SessionDescription]:
    if description is None:
        return None
    return SessionDescription(type=description.type, sdp=description.sdp)


class PeerConnectionSource(CandidateFeed):
    """
    Offering side of an aiortc peer connection.

    One receive-only transceiver is added per entry of ``kinds`` so the offer
    carries media sections the remote server can answer with its tracks.
    """

    def __init__(
        self,
        pc: Optional[RTCPeerConnection] = None,
        *,
        ice_servers: Iterable[str] = (),
        kinds: Sequence[str] = ("video", "audio"),
    ) -> None:
        super().__init__()
        self.pc = pc or RTCPeerConnection(configuration=build_configuration(ice_servers))
        for kind in kinds:
            self.pc.addTransceiver(kind, direction="recvonly")
        self._gathering_reported = False

    def _report_gathered(self) -> None:
        state = self.pc.iceGatheringState
        LOG.debug("ICE gathering state is %s", state)
        if state != "complete" or self._gathering_reported:
            return
        self._gathering_reported = True
        local = self.pc.localDescription
        if local is not None:
            for candidate in iter_sdp_candidates(local.sdp):
                self.emit(CandidateEvent(candidate=candidate))
        self.emit(CandidateEvent.end_of_candidates())

    @property
    def local_description(self) -> Optional[SessionDescription]:
        return _from_rtc(self.pc.localDescription)

    async def create_offer(self) -> SessionDescription:
        offer = await self.pc.createOffer()
        return SessionDescription(type=offer.type, sdp=offer.sdp)

    async def set_local_description(self, description: SessionDescription) -> None:
        await self.pc.setLocalDescription(_to_rtc(description))
        self._report_gathered()

    async def apply_answer(self, answer: SessionDescription) -> None:
        await self.pc.setRemoteDescription(_to_rtc(answer))

    async def close(self) -> None:
        await self.pc.close()


async def answer_offer(
    offer: SessionDescription,
    *,
    ice_servers: Iterable[str] = (),
) -> Tuple[RTCPeerConnection, SessionDescription]:
    """
    Answer ``offer`` with a fresh peer connection.

    Gathering completes inside ``setLocalDescription`` so the returned answer
    already lists every local candidate.
    """

    pc = RTCPeerConnection(configuration=build_configuration(ice_servers))

    @pc.on("connectionstatechange")
    async def _on_connection_state() -> None:
        LOG.info("Peer connection state is %s", pc.connectionState)
        if pc.connectionState in ("failed", "closed"):
            await pc.close()

    try:
        await pc.setRemoteDescription(_to_rtc(offer))
        answer = await pc.createAnswer()
        await pc.setLocalDescription(answer)
    except Exception:
        await pc.close()
        raise

    local = _from_rtc(pc.localDescription)
    if local is None:
        await pc.close()
        raise RuntimeError("Failed to get local description")
    return pc, local


__all__ = [
    "PeerConnectionSource",
    "answer_offer",
    "build_configuration",
    "iter_sdp_candidates",
]
