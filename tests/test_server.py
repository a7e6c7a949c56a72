"""Tests covering the FastAPI signaling endpoint."""

from __future__ import annotations

import httpx
import pytest

from watchrtc.api.server import PeerAnswerer, create_app
from watchrtc.errors import TransportUnavailable
from watchrtc.rtc.description import SessionDescription
from watchrtc.signaling.client import TransportClient

BASE_URL = "http://testserver"


async def echo_answer(offer: SessionDescription) -> SessionDescription:
    return SessionDescription(type="answer", sdp=offer.sdp.replace("offer", "answer"))


async def failing_answer(offer: SessionDescription) -> SessionDescription:
    raise FileNotFoundError("video file: 'missing.h264' not exist")


def asgi_client(app) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=BASE_URL)


@pytest.mark.asyncio
async def test_transport_client_against_endpoint() -> None:
    app = create_app(answerer=echo_answer)
    client = TransportClient(BASE_URL, transport=httpx.ASGITransport(app=app))

    answer = await client.submit(SessionDescription(type="offer", sdp="offer-sdp"))

    assert answer == SessionDescription(type="answer", sdp="answer-sdp")


@pytest.mark.asyncio
async def test_invalid_offer_body_is_rejected() -> None:
    app = create_app(answerer=echo_answer)
    async with asgi_client(app) as client:
        response = await client.post("/api/watch", content="not json")

    assert response.status_code == 400
    assert response.text.startswith("Invalid offer")


@pytest.mark.asyncio
async def test_non_offer_description_is_rejected() -> None:
    app = create_app(answerer=echo_answer)
    async with asgi_client(app) as client:
        response = await client.post("/api/watch", json={"type": "answer", "sdp": "v=0"})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_answerer_failure_surfaces_as_transport_unavailable() -> None:
    app = create_app(answerer=failing_answer)
    client = TransportClient(BASE_URL, transport=httpx.ASGITransport(app=app))

    with pytest.raises(TransportUnavailable) as excinfo:
        await client.submit(SessionDescription(type="offer", sdp="v=0"))

    assert excinfo.value.status_code == 500
    assert excinfo.value.body == "video file: 'missing.h264' not exist"


@pytest.mark.asyncio
async def test_healthz() -> None:
    app = create_app(answerer=echo_answer)
    async with asgi_client(app) as client:
        response = await client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


class FakePeer:
    def __init__(self) -> None:
        self.connectionState = "new"
        self.handlers = {}
        self.closed = False

    def on(self, event, f=None):
        self.handlers.setdefault(event, []).append(f)
        return f

    def change_state(self, state: str) -> None:
        self.connectionState = state
        for handler in self.handlers.get("connectionstatechange", []):
            handler()

    async def close(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_peer_answerer_forgets_closed_connections() -> None:
    peers = []

    async def fake_answer(offer: SessionDescription, *, ice_servers):
        peer = FakePeer()
        peers.append(peer)
        return peer, SessionDescription(type="answer", sdp=offer.sdp)

    answerer = PeerAnswerer(["stun:stun.example.org"], answer=fake_answer)
    app = create_app(answerer=answerer)
    client = TransportClient(BASE_URL, transport=httpx.ASGITransport(app=app))

    for index in range(3):
        await client.submit(SessionDescription(type="offer", sdp=f"v={index}"))
    assert answerer.connections == set(peers)

    peers[0].change_state("connected")
    peers[1].change_state("failed")
    peers[2].change_state("closed")
    assert answerer.connections == {peers[0]}

    await answerer.close()
    assert answerer.connections == set()
    assert peers[0].closed is True
