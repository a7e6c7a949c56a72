"""
Command line entrypoint.

``watchrtc watch`` negotiates a receive-only session with a media server and
holds it open; ``watchrtc serve`` runs the signaling endpoint locally.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Any, Optional

import httpx

from .config import ConfigError, WatchConfig, load_config
from .errors import NegotiationError
from .negotiation import NegotiationSequencer
from .signaling.client import TransportClient
from .utils.logging import configure_logging

LOG = logging.getLogger(__name__)


async def watch(
    config: WatchConfig,
    *,
    source: Optional[Any] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    """
    Negotiate with ``config.server`` and wait until the connection ends.

    ``source`` defaults to an aiortc :class:`~watchrtc.rtc.peer.PeerConnectionSource`.
    Returns the process exit code.
    """

    if source is None:
        from .rtc.peer import PeerConnectionSource

        source = PeerConnectionSource(ice_servers=config.ice_servers)

    client = TransportClient(
        config.server,
        watch_path=config.watch_path,
        timeout=config.request_timeout,
        transport=transport,
    )
    sequencer = NegotiationSequencer(client, gather_timeout=config.gather_timeout)
    done = asyncio.Event()

    @source.pc.on("connectionstatechange")
    def _on_connection_state() -> None:
        LOG.info("Peer connection state is %s", source.pc.connectionState)
        if source.pc.connectionState in ("failed", "closed"):
            done.set()

    try:
        try:
            answer = await sequencer.negotiate(source)
        except NegotiationError as exc:
            LOG.error("Negotiation with %s failed: %s", config.server, exc)
            return 1
        try:
            await source.apply_answer(answer)
        except Exception as exc:
            LOG.error("Could not apply answer from %s: %s", config.server, exc)
            return 1
        await done.wait()
    finally:
        await source.close()
    return 0


async def serve(config: WatchConfig, host: str = "127.0.0.1", port: int = 8080) -> None:
    import uvicorn

    from .api.server import create_app

    app = create_app(ice_servers=config.ice_servers)
    server_config = uvicorn.Config(
        app=app,
        host=host,
        port=port,
        log_config=None,
        log_level="info",
        reload=False,
    )
    server = uvicorn.Server(config=server_config)
    LOG.info("Starting signaling server at http://%s:%s/", host, port)
    await server.serve()


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="WebRTC watch client")
    parser.add_argument("--profile", default="default", help="configuration profile to load")
    parser.add_argument("--log-level", default="INFO", help="root log level")
    commands = parser.add_subparsers(dest="command", required=True)

    watch_parser = commands.add_parser("watch", help="negotiate a session with a media server")
    watch_parser.add_argument("--server", default=None, help="signaling base URL")
    watch_parser.add_argument(
        "--gather-timeout",
        type=float,
        default=None,
        help="seconds to wait for ICE gathering (0 disables the timeout)",
    )

    serve_parser = commands.add_parser("serve", help="run the signaling endpoint")
    serve_parser.add_argument("--host", default="127.0.0.1", help="bind host for the API server")
    serve_parser.add_argument("--port", type=int, default=8080, help="bind port for the API server")
    return parser.parse_args(argv)


def run(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)
    try:
        config = load_config(args.profile)
    except ConfigError as exc:
        LOG.error("Could not load profile %r: %s", args.profile, exc)
        return 1

    try:
        if args.command == "watch":
            if args.server:
                config.server = args.server
            if args.gather_timeout is not None:
                config.gather_timeout = args.gather_timeout if args.gather_timeout > 0 else None
            return asyncio.run(watch(config))
        asyncio.run(serve(config, host=args.host, port=args.port))
    except KeyboardInterrupt:
        LOG.info("Interrupted by user.")
    return 0


if __name__ == "__main__":
    raise SystemExit(run())
