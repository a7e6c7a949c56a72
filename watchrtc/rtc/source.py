"""
Contract for the local side that produces offers and candidate events.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Optional, Protocol, runtime_checkable

from .description import CandidateEvent, SessionDescription

LOG = logging.getLogger(__name__)

CandidateCallback = Callable[[CandidateEvent], None]


@runtime_checkable
class DescriptionSource(Protocol):
    """
    Local description source consumed by the negotiation sequencer.

    Implementations produce an offer, accept it as their local description and
    emit :class:`CandidateEvent` notifications, ending with exactly one
    sentinel once candidate gathering has finished.
    """

    @property
    def local_description(self) -> Optional[SessionDescription]: ...

    async def create_offer(self) -> SessionDescription: ...

    async def set_local_description(self, description: SessionDescription) -> None: ...

    def subscribe_candidates(self, callback: CandidateCallback) -> int: ...

    def unsubscribe_candidates(self, token: int) -> None: ...


class CandidateFeed:
    """
    Subscription bookkeeping for candidate listeners.

    Sources inherit from this class and call :meth:`emit` whenever the network
    stack reports a candidate or the end of gathering.
    """

    def __init__(self) -> None:
        self._feed_lock = threading.RLock()
        self._listener_counter = 0
        self._listeners: Dict[int, CandidateCallback] = {}

    def subscribe_candidates(self, callback: CandidateCallback) -> int:
        if not callable(callback):
            raise TypeError("callback must be callable")
        with self._feed_lock:
            self._listener_counter += 1
            token = self._listener_counter
            self._listeners[token] = callback
        return token

    def unsubscribe_candidates(self, token: int) -> None:
        with self._feed_lock:
            self._listeners.pop(token, None)

    @property
    def listener_count(self) -> int:
        with self._feed_lock:
            return len(self._listeners)

    def emit(self, event: CandidateEvent) -> None:
        with self._feed_lock:
            listeners = dict(self._listeners)
        for token, callback in listeners.items():
            try:
                callback(event)
            except Exception:  # pragma: no cover - listener failures should not stop gathering
                LOG.exception("Candidate listener %s failed.", token)


__all__ = ["CandidateCallback", "CandidateFeed", "DescriptionSource"]
