"""
FastAPI signaling endpoint answering watch offers.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Iterable, Optional, Set, Tuple

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from ..errors import MalformedAnswer
from ..rtc.description import SessionDescription
from .schemas import SessionDescriptionModel, decode_description

LOG = logging.getLogger(__name__)

Answerer = Callable[[SessionDescription], Awaitable[SessionDescription]]


class PeerAnswerer:
    """
    Default answerer backed by aiortc peer connections.

    Connections stay open after the answer is returned.  They are forgotten
    once they fail or close, and any still open are closed when the
    application shuts down.
    """

    def __init__(
        self,
        ice_servers: Iterable[str] = (),
        *,
        answer: Optional[Callable[..., Awaitable[Tuple[Any, SessionDescription]]]] = None,
    ) -> None:
        self.ice_servers = list(ice_servers)
        self.connections: Set[Any] = set()
        self._answer = answer

    def _track(self, pc: Any) -> None:
        def _on_connection_state() -> None:
            if pc.connectionState in ("failed", "closed"):
                self.connections.discard(pc)

        pc.on("connectionstatechange", _on_connection_state)
        if pc.connectionState not in ("failed", "closed"):
            self.connections.add(pc)

    async def __call__(self, offer: SessionDescription) -> SessionDescription:
        answer = self._answer
        if answer is None:
            from ..rtc.peer import answer_offer as answer

        pc, description = await answer(offer, ice_servers=self.ice_servers)
        self._track(pc)
        return description

    async def close(self) -> None:
        connections = list(self.connections)
        self.connections.clear()
        for pc in connections:
            await pc.close()


def create_app(
    *,
    answerer: Optional[Answerer] = None,
    ice_servers: Iterable[str] = (),
    lifespan: Optional[Callable[..., object]] = None,
) -> FastAPI:
    answer_offer = answerer or PeerAnswerer(ice_servers)

    @asynccontextmanager
    async def app_lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            if lifespan is not None:
                async with lifespan(app):
                    yield
            else:
                yield
        finally:
            close = getattr(answer_offer, "close", None)
            if close is not None:
                await close()

    app = FastAPI(title="watchrtc signaling API", lifespan=app_lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.answerer = answer_offer

    @app.get("/healthz")
    async def healthz() -> dict:
        return {"status": "ok"}

    @app.post("/api/watch")
    async def watch(request: Request) -> Response:
        body = (await request.body()).decode("utf-8", errors="replace")
        try:
            offer = decode_description(body)
        except MalformedAnswer as exc:
            return PlainTextResponse(f"Invalid offer: {exc}", status_code=400)
        if offer.type != "offer":
            return PlainTextResponse(f"Expected an offer, got '{offer.type}'", status_code=400)

        try:
            answer = await answer_offer(offer)
        except Exception as exc:
            LOG.exception("Failed to answer watch offer")
            return PlainTextResponse(str(exc), status_code=500)

        payload = SessionDescriptionModel.from_description(answer).model_dump_json()
        return Response(content=payload, media_type="application/json")

    return app


__all__ = ["Answerer", "PeerAnswerer", "create_app"]
