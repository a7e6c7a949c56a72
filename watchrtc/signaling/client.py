"""
HTTP client for the signaling endpoint.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..api.schemas import decode_description, encode_description
from ..errors import TransportUnavailable
from ..rtc.description import SessionDescription

LOG = logging.getLogger(__name__)

DEFAULT_WATCH_PATH = "/api/watch"
DEFAULT_REQUEST_TIMEOUT = 30.0


class TransportClient:
    """
    Stateless request/response wrapper around one signaling endpoint.

    Every :meth:`submit` call opens its own ``httpx.AsyncClient`` so nothing is
    retained between calls.  ``transport`` lets tests and embedders route the
    request through an ``httpx`` mock or ASGI transport.
    """

    def __init__(
        self,
        base_url: str,
        *,
        watch_path: str = DEFAULT_WATCH_PATH,
        timeout: Optional[float] = DEFAULT_REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = str(base_url).rstrip("/")
        self.watch_path = "/" + str(watch_path).lstrip("/")
        self._timeout = httpx.Timeout(timeout, connect=min(timeout, 10.0)) if timeout else httpx.Timeout(None)
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}{self.watch_path}"

    async def submit(self, description: SessionDescription) -> SessionDescription:
        """
        POST ``description`` to the endpoint and parse the reply.

        Raises :class:`TransportUnavailable` when no successful response was
        obtained and :class:`MalformedAnswer` when the body is not a session
        description.
        """

        body = encode_description(description)
        headers = {"Content-Type": "application/json"}
        LOG.info("Submitting %s description to %s", description.type, self.endpoint)

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.post(self.endpoint, content=body, headers=headers)
            except httpx.HTTPError as exc:
                raise TransportUnavailable(f"Signaling request to {self.endpoint} failed: {exc}") from exc

        text = response.text
        if not response.is_success:
            raise TransportUnavailable(
                f"Signaling endpoint returned {response.status_code}",
                status_code=response.status_code,
                body=text,
            )

        answer = decode_description(text)
        LOG.info("Received %s description from %s", answer.type, self.endpoint)
        return answer


__all__ = ["DEFAULT_REQUEST_TIMEOUT", "DEFAULT_WATCH_PATH", "TransportClient"]
