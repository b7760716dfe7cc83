from .base import Transport
from .websocket import WebSocketTransport, build_ws_url, connect_websocket

__all__ = ["Transport", "WebSocketTransport", "build_ws_url", "connect_websocket"]
