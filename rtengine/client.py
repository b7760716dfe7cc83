"""Connection entry point: open a WebSocket and start an engine on it."""

from __future__ import annotations

import logging

from rtengine.errors import TransportError
from rtengine.state.settings import AppSettings
from rtengine.tools.registry import ToolRegistry
from rtengine.engine.engine import RealtimeEngine
from rtengine.engine.handlers import EventHandlers
from rtengine.runtime.settings import load_settings
from rtengine.transport.websocket import connect_websocket

logger = logging.getLogger(__name__)


async def connect(
    api_key: str | None = None,
    *,
    model: str | None = None,
    call_id: str | None = None,
    settings: AppSettings | None = None,
    tools: ToolRegistry | None = None,
    handlers: EventHandlers | None = None,
) -> RealtimeEngine:
    """Open a realtime session and return a started engine.

    `call_id` attaches to an existing call instead of starting a new session.
    """
    app = settings or load_settings()
    key = api_key or app.auth.api_key
    if not key:
        raise TransportError("no API key configured (set OPENAI_API_KEY)")

    transport = await connect_websocket(key, model=model, call_id=call_id, settings=app.connection)
    engine = RealtimeEngine(transport, settings=app.engine, tools=tools, handlers=handlers)
    return await engine.start()


__all__ = ["connect"]
