"""Configuration module exports (env-resolved constants only)."""

from .audio import MAX_INPUT_AUDIO_CHUNK_BYTES, PCM_SAMPLE_RATE_HZ
from .protocol import ROOT_ITEM_ID
from .websocket import REALTIME_MODEL, REALTIME_WS_URL

__all__ = [
    "MAX_INPUT_AUDIO_CHUNK_BYTES",
    "PCM_SAMPLE_RATE_HZ",
    "REALTIME_MODEL",
    "REALTIME_WS_URL",
    "ROOT_ITEM_ID",
]
