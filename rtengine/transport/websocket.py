"""WebSocket transport built on the `websockets` client."""

from __future__ import annotations

import socket
import logging
import contextlib
from typing import Any
from urllib.parse import urlencode

import websockets
from websockets.exceptions import WebSocketException, ConnectionClosed as WebSocketClosed

from rtengine.state.settings import ConnectionSettings
from rtengine.errors import TransportError, ConnectionClosed
from rtengine.config.websocket import WS_CLOSE_CLIENT_REQUEST_CODE, WS_CLOSE_CLIENT_REQUEST_REASON

logger = logging.getLogger(__name__)


def build_ws_url(base_url: str, *, model: str | None = None, call_id: str | None = None) -> str:
    """Attach `call_id` when joining an existing call, `model` otherwise."""
    params = {"call_id": call_id} if call_id else {"model": model} if model else {}
    if not params:
        return base_url
    sep = "&" if "?" in base_url else "?"
    return f"{base_url}{sep}{urlencode(params)}"


def _enable_tcp_nodelay(ws: Any) -> None:
    transport = getattr(ws, "transport", None)
    if transport is not None:
        sock = transport.get_extra_info("socket")
        if sock is not None:
            with contextlib.suppress(Exception):
                sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)


def _closed_reason(exc: WebSocketClosed) -> str:
    rcvd = exc.rcvd
    if rcvd is None:
        return "connection closed without a close frame"
    return f"connection closed ({rcvd.code}) {rcvd.reason}".rstrip()


class WebSocketTransport:
    """Adapts a `websockets` client connection to the Transport protocol."""

    def __init__(self, ws: Any) -> None:
        self._ws = ws

    @property
    def connection(self) -> Any:
        return self._ws

    async def send(self, text: str) -> None:
        try:
            await self._ws.send(text)
        except WebSocketClosed as exc:
            raise ConnectionClosed(_closed_reason(exc)) from exc
        except (WebSocketException, OSError) as exc:
            raise TransportError(f"send failed: {exc}") from exc

    async def recv(self) -> str:
        try:
            message = await self._ws.recv()
        except WebSocketClosed as exc:
            raise ConnectionClosed(_closed_reason(exc)) from exc
        except (WebSocketException, OSError) as exc:
            raise TransportError(f"recv failed: {exc}") from exc
        if isinstance(message, bytes):
            try:
                return message.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise TransportError("binary frame is not valid utf-8") from exc
        return message

    async def close(self) -> None:
        with contextlib.suppress(Exception):
            await self._ws.close(code=WS_CLOSE_CLIENT_REQUEST_CODE, reason=WS_CLOSE_CLIENT_REQUEST_REASON)


async def connect_websocket(
    api_key: str,
    *,
    model: str | None = None,
    call_id: str | None = None,
    settings: ConnectionSettings | None = None,
) -> WebSocketTransport:
    cfg = settings or ConnectionSettings()
    url = build_ws_url(cfg.url, model=model or cfg.model, call_id=call_id)
    headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}

    try:
        ws = await websockets.connect(
            url,
            additional_headers=headers,
            max_size=cfg.max_message_bytes,
            ping_interval=cfg.ping_interval_s,
            ping_timeout=cfg.ping_timeout_s,
            open_timeout=cfg.open_timeout_s,
        )
    except (WebSocketException, OSError, TimeoutError) as exc:
        raise TransportError(f"connect to {cfg.url} failed: {exc}") from exc

    _enable_tcp_nodelay(ws)
    logger.info("connected to realtime endpoint %s", cfg.url)
    return WebSocketTransport(ws)


__all__ = ["WebSocketTransport", "build_ws_url", "connect_websocket"]
