from .engine import RealtimeEngine
from .sender import EngineSender
from .receiver import EngineReceiver
from .handlers import EventHandlers
from .lifecycle import EngineLifecycle
from .voice import VoiceEvent, AudioChunk, TranscriptChunk

__all__ = [
    "AudioChunk",
    "EngineLifecycle",
    "EngineReceiver",
    "EngineSender",
    "EventHandlers",
    "RealtimeEngine",
    "TranscriptChunk",
    "VoiceEvent",
]
