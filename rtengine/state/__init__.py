from .audio import AudioPipeline
from .session import SessionState
from .responses import ResponseTracker
from .engine_state import EngineState
from .conversation import ConversationStore
from .settings import AppSettings, AuthSettings, EngineSettings, ConnectionSettings

__all__ = [
    "AppSettings",
    "AudioPipeline",
    "AuthSettings",
    "ConnectionSettings",
    "ConversationStore",
    "EngineSettings",
    "EngineState",
    "ResponseTracker",
    "SessionState",
]
