"""
Offer/answer negotiation sequencer.

A :class:`NegotiationSession` walks one attempt through
``IDLE -> OFFERING -> GATHERING -> SUBMITTED -> COMPLETE``.  Candidate events
are sent into a per-session queue by the source's callback and consumed in
arrival order; the end-of-candidates sentinel is the only event that triggers
submission of the finalized local description.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from enum import Enum
from typing import Optional, Protocol, Union

from .errors import (
    GatheringTimeout,
    InvalidState,
    LocalDescriptionMissing,
    NegotiationAborted,
    NegotiationError,
)
from .rtc.description import CandidateEvent, SessionDescription
from .rtc.source import DescriptionSource

LOG = logging.getLogger(__name__)

DEFAULT_GATHER_TIMEOUT = 10.0


class NegotiationState(str, Enum):
    IDLE = "idle"
    OFFERING = "offering"
    GATHERING = "gathering"
    SUBMITTED = "submitted"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (NegotiationState.COMPLETE, NegotiationState.FAILED)


class AnswerClient(Protocol):
    async def submit(self, description: SessionDescription) -> SessionDescription: ...


class _Abort:
    """Queue marker waking a pending :meth:`NegotiationSession.complete`."""


_ABORT = _Abort()


class NegotiationSession:
    """
    State for a single negotiation attempt.

    The session is single use: retrying means creating a new session.
    """

    def __init__(
        self,
        source: DescriptionSource,
        client: AnswerClient,
        *,
        gather_timeout: Optional[float] = DEFAULT_GATHER_TIMEOUT,
        session_id: Optional[str] = None,
    ) -> None:
        self.id = session_id or uuid.uuid4().hex[:8]
        self._source = source
        self._client = client
        self._gather_timeout = gather_timeout
        self._events: "asyncio.Queue[Union[CandidateEvent, _Abort]]" = asyncio.Queue()
        self._token: Optional[int] = None
        self._submitted = False
        self._sentinel_early = False

        self.state = NegotiationState.IDLE
        self.local_description: Optional[SessionDescription] = None
        self.answer: Optional[SessionDescription] = None
        self.error: Optional[BaseException] = None
        self.candidate_count = 0

    # ------------------------------------------------------------------ helpers

    def _set_state(self, state: NegotiationState) -> None:
        LOG.debug("Session %s: %s -> %s", self.id, self.state.value, state.value)
        self.state = state

    def _stop_listening(self) -> None:
        if self._token is not None:
            self._source.unsubscribe_candidates(self._token)
            self._token = None

    def _fail(self, error: BaseException) -> None:
        self._stop_listening()
        self.error = error
        self._set_state(NegotiationState.FAILED)
        LOG.warning("Session %s failed: %s", self.id, error)

    async def _await_sentinel(self) -> None:
        while True:
            event = await self._events.get()
            if isinstance(event, _Abort):
                raise self.error or NegotiationAborted("negotiation aborted")
            if event.is_sentinel:
                return
            self.candidate_count += 1
            LOG.debug("Session %s: candidate %s", self.id, event.candidate)

    # ------------------------------------------------------------------ public API

    @property
    def submitted(self) -> bool:
        return self._submitted

    def deliver(self, event: CandidateEvent) -> None:
        """
        Channel send used as the source's candidate callback.

        Never raises; events arriving after submission or after the session
        ended are dropped.  A sentinel seen before the source holds a local
        description is remembered so that completion fails instead of
        submitting.
        """

        if self._submitted or self.state.is_terminal:
            LOG.debug("Session %s: ignoring candidate event in state %s", self.id, self.state.value)
            return
        if event.is_sentinel and self._source.local_description is None:
            self._sentinel_early = True
        self._events.put_nowait(event)

    async def begin(self) -> SessionDescription:
        """
        Create the local offer and assign it as the local description.
        """

        if self.state is not NegotiationState.IDLE:
            raise InvalidState(f"begin() requires state idle, session is {self.state.value}")
        self._set_state(NegotiationState.OFFERING)
        # Listen before assignment: sources may emit while it is in progress.
        self._token = self._source.subscribe_candidates(self.deliver)
        try:
            offer = await self._source.create_offer()
            await self._source.set_local_description(offer)
        except asyncio.CancelledError:
            self._fail(NegotiationAborted("offer creation cancelled"))
            raise
        except Exception as exc:
            self._fail(exc)
            raise
        if self.state is not NegotiationState.OFFERING:
            # Aborted while the offer was being produced.
            raise self.error or NegotiationAborted("negotiation aborted")
        self.local_description = offer
        self._set_state(NegotiationState.GATHERING)
        return offer

    async def complete(self) -> SessionDescription:
        """
        Wait for the end of gathering, submit once and return the answer.
        """

        if self.state is not NegotiationState.GATHERING:
            raise InvalidState(f"complete() requires state gathering, session is {self.state.value}")

        try:
            await asyncio.wait_for(self._await_sentinel(), timeout=self._gather_timeout)
        except asyncio.TimeoutError:
            error = GatheringTimeout(
                f"candidate gathering did not finish within {self._gather_timeout}s"
            )
            self._fail(error)
            raise error from None
        except asyncio.CancelledError:
            self.abort("negotiation cancelled")
            raise

        self._stop_listening()
        description = self._source.local_description
        if self._sentinel_early or description is None:
            error = LocalDescriptionMissing(
                "candidate gathering finished before a local description was set"
            )
            self._fail(error)
            raise error

        self._submitted = True
        self.local_description = description
        self._set_state(NegotiationState.SUBMITTED)
        LOG.info("Session %s: gathering finished after %d candidate(s)", self.id, self.candidate_count)

        try:
            answer = await self._client.submit(description)
        except asyncio.CancelledError:
            self._fail(NegotiationAborted("submission cancelled"))
            raise
        except Exception as exc:
            self._fail(exc)
            raise

        self.answer = answer
        self._set_state(NegotiationState.COMPLETE)
        return answer

    def abort(self, reason: str = "negotiation aborted") -> bool:
        """
        Stop a session that has not submitted its offer yet.

        Returns ``False`` when the session already submitted or ended.
        """

        if self._submitted or self.state.is_terminal:
            return False
        self._fail(NegotiationAborted(reason))
        self._events.put_nowait(_ABORT)
        return True


class NegotiationSequencer:
    """
    Creates negotiation sessions bound to one transport client.
    """

    def __init__(
        self,
        client: AnswerClient,
        *,
        gather_timeout: Optional[float] = DEFAULT_GATHER_TIMEOUT,
    ) -> None:
        self.client = client
        self.gather_timeout = gather_timeout

    def new_session(self, source: DescriptionSource) -> NegotiationSession:
        return NegotiationSession(source, self.client, gather_timeout=self.gather_timeout)

    async def negotiate(self, source: DescriptionSource) -> SessionDescription:
        """
        Run a full negotiation against ``source`` and return the remote answer.

        Failures are raised as :class:`~watchrtc.errors.NegotiationError`
        subclasses (or the source's own exception if offer creation failed).
        """

        session = self.new_session(source)
        await session.begin()
        return await session.complete()


__all__ = [
    "AnswerClient",
    "DEFAULT_GATHER_TIMEOUT",
    "NegotiationError",
    "NegotiationSequencer",
    "NegotiationSession",
    "NegotiationState",
]
