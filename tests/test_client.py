"""Tests covering the signaling transport client."""

from __future__ import annotations

import json

import httpx
import pytest

from watchrtc.api.schemas import decode_description, encode_description
from watchrtc.errors import MalformedAnswer, TransportUnavailable
from watchrtc.rtc.description import SessionDescription
from watchrtc.signaling.client import TransportClient

OFFER = SessionDescription(type="offer", sdp="v=0...")


def make_client(handler, base_url: str = "http://localhost:8080") -> TransportClient:
    return TransportClient(base_url, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_echoed_offer_round_trips() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=request.content)

    answer = await make_client(handler).submit(OFFER)

    assert answer == OFFER
    assert seen[0].method == "POST"
    assert seen[0].headers["content-type"] == "application/json"
    assert json.loads(seen[0].content) == {"type": "offer", "sdp": "v=0..."}


@pytest.mark.asyncio
async def test_html_body_raises_malformed_answer_with_raw_text() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>Error</html>")

    with pytest.raises(MalformedAnswer) as excinfo:
        await make_client(handler).submit(OFFER)

    assert excinfo.value.raw == "<html>Error</html>"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        "",
        "null",
        "[]",
        json.dumps({"sdp": "v=0"}),
        json.dumps({"type": "answer"}),
        json.dumps({"type": "bogus", "sdp": "v=0"}),
        json.dumps({"type": "answer", "sdp": 5}),
    ],
)
async def test_wrong_shape_raises_malformed_answer(body: str) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=body)

    with pytest.raises(MalformedAnswer) as excinfo:
        await make_client(handler).submit(OFFER)

    assert excinfo.value.raw == body


@pytest.mark.asyncio
async def test_error_status_raises_transport_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="video file: 'x.h264' not exist")

    with pytest.raises(TransportUnavailable) as excinfo:
        await make_client(handler).submit(OFFER)

    assert excinfo.value.status_code == 500
    assert excinfo.value.body == "video file: 'x.h264' not exist"


@pytest.mark.asyncio
async def test_connection_error_raises_transport_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportUnavailable) as excinfo:
        await make_client(handler).submit(OFFER)

    assert excinfo.value.status_code is None
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_endpoint_joins_base_url_and_path() -> None:
    urls = []

    def handler(request: httpx.Request) -> httpx.Response:
        urls.append(str(request.url))
        return httpx.Response(200, json={"type": "answer", "sdp": "Y", "extra": True})

    client = make_client(handler, base_url="http://media.example:8080/")
    answer = await client.submit(OFFER)

    assert client.endpoint == "http://media.example:8080/api/watch"
    assert urls == ["http://media.example:8080/api/watch"]
    assert answer == SessionDescription(type="answer", sdp="Y")


def test_encode_decode_normalises_type() -> None:
    decoded = decode_description(json.dumps({"type": " Answer ", "sdp": "Y"}))
    assert decoded == SessionDescription(type="answer", sdp="Y")
    assert json.loads(encode_description(decoded)) == {"type": "answer", "sdp": "Y"}
