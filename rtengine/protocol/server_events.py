"""Server event catalog (inbound wire messages).

Every variant carries its wire tag in `TYPE`. Nested payloads (session, item,
content part, response, error) are decoded into their model types by the codec.
"""

from __future__ import annotations

from typing import Any, Union, ClassVar
from dataclasses import field, dataclass

from rtengine.config.protocol import ITEM_NOT_FOUND_CODES
from rtengine.errors import ItemNotFound, ServerReported, TranscriptionFailed

from .items import Item
from .session import Session
from .content import ContentPart
from .response import Usage, Response, RateLimit, ServerError


@dataclass(frozen=True, slots=True)
class ErrorEvent:
    TYPE: ClassVar[str] = "error"

    event_id: str = ""
    error: ServerError = field(default_factory=ServerError)

    def exception(self) -> ServerReported | ItemNotFound:
        """Typed exception for this error; item lookups map to ItemNotFound."""
        if self.error.code in ITEM_NOT_FOUND_CODES:
            return ItemNotFound(item_id=self.error.param or "", server_error=self.error)
        return ServerReported(error=self.error)


@dataclass(frozen=True, slots=True)
class SessionCreated:
    TYPE: ClassVar[str] = "session.created"

    event_id: str = ""
    session: Session = field(default_factory=Session)


@dataclass(frozen=True, slots=True)
class SessionUpdated:
    TYPE: ClassVar[str] = "session.updated"

    event_id: str = ""
    session: Session = field(default_factory=Session)


@dataclass(frozen=True, slots=True)
class ConversationItemAdded:
    TYPE: ClassVar[str] = "conversation.item.added"

    event_id: str = ""
    previous_item_id: str | None = None
    item: Item | None = None


@dataclass(frozen=True, slots=True)
class ConversationItemDone:
    TYPE: ClassVar[str] = "conversation.item.done"

    event_id: str = ""
    previous_item_id: str | None = None
    item: Item | None = None


@dataclass(frozen=True, slots=True)
class ConversationItemRetrieved:
    TYPE: ClassVar[str] = "conversation.item.retrieved"

    event_id: str = ""
    item: Item | None = None


@dataclass(frozen=True, slots=True)
class ConversationItemDeleted:
    TYPE: ClassVar[str] = "conversation.item.deleted"

    event_id: str = ""
    item_id: str = ""


@dataclass(frozen=True, slots=True)
class ConversationItemTruncated:
    TYPE: ClassVar[str] = "conversation.item.truncated"

    event_id: str = ""
    item_id: str = ""
    content_index: int = 0
    audio_end_ms: int = 0


@dataclass(frozen=True, slots=True)
class InputAudioTranscriptionDelta:
    TYPE: ClassVar[str] = "conversation.item.input_audio_transcription.delta"

    event_id: str = ""
    item_id: str = ""
    content_index: int = 0
    delta: str = ""
    logprobs: Any = None


@dataclass(frozen=True, slots=True)
class InputAudioTranscriptionSegment:
    TYPE: ClassVar[str] = "conversation.item.input_audio_transcription.segment"

    event_id: str = ""
    item_id: str = ""
    content_index: int = 0
    text: str = ""
    id: str | None = None
    speaker: str | None = None
    start: float | None = None
    end: float | None = None


@dataclass(frozen=True, slots=True)
class InputAudioTranscriptionCompleted:
    TYPE: ClassVar[str] = "conversation.item.input_audio_transcription.completed"

    event_id: str = ""
    item_id: str = ""
    content_index: int = 0
    transcript: str = ""
    usage: Usage | None = None


@dataclass(frozen=True, slots=True)
class InputAudioTranscriptionFailed:
    TYPE: ClassVar[str] = "conversation.item.input_audio_transcription.failed"

    event_id: str = ""
    item_id: str = ""
    content_index: int = 0
    error: ServerError = field(default_factory=ServerError)

    def exception(self) -> TranscriptionFailed:
        return TranscriptionFailed(item_id=self.item_id, content_index=self.content_index, error=self.error)


@dataclass(frozen=True, slots=True)
class InputAudioBufferCommitted:
    TYPE: ClassVar[str] = "input_audio_buffer.committed"

    event_id: str = ""
    previous_item_id: str | None = None
    item_id: str = ""


@dataclass(frozen=True, slots=True)
class InputAudioBufferCleared:
    TYPE: ClassVar[str] = "input_audio_buffer.cleared"

    event_id: str = ""


@dataclass(frozen=True, slots=True)
class InputAudioBufferSpeechStarted:
    TYPE: ClassVar[str] = "input_audio_buffer.speech_started"

    event_id: str = ""
    audio_start_ms: int = 0
    item_id: str = ""


@dataclass(frozen=True, slots=True)
class InputAudioBufferSpeechStopped:
    TYPE: ClassVar[str] = "input_audio_buffer.speech_stopped"

    event_id: str = ""
    audio_end_ms: int = 0
    item_id: str = ""


@dataclass(frozen=True, slots=True)
class InputAudioBufferTimeoutTriggered:
    TYPE: ClassVar[str] = "input_audio_buffer.timeout_triggered"

    event_id: str = ""
    item_id: str = ""
    audio_start_ms: int = 0
    audio_end_ms: int = 0


@dataclass(frozen=True, slots=True)
class InputAudioBufferDtmfEventReceived:
    TYPE: ClassVar[str] = "input_audio_buffer.dtmf_event_received"

    event: str = ""
    received_at: int = 0


@dataclass(frozen=True, slots=True)
class OutputAudioBufferStarted:
    TYPE: ClassVar[str] = "output_audio_buffer.started"

    event_id: str = ""
    response_id: str = ""


@dataclass(frozen=True, slots=True)
class OutputAudioBufferStopped:
    TYPE: ClassVar[str] = "output_audio_buffer.stopped"

    event_id: str = ""
    response_id: str = ""


@dataclass(frozen=True, slots=True)
class OutputAudioBufferCleared:
    TYPE: ClassVar[str] = "output_audio_buffer.cleared"

    event_id: str = ""
    response_id: str = ""


@dataclass(frozen=True, slots=True)
class ResponseCreated:
    TYPE: ClassVar[str] = "response.created"

    event_id: str = ""
    response: Response = field(default_factory=Response)


@dataclass(frozen=True, slots=True)
class ResponseDone:
    TYPE: ClassVar[str] = "response.done"

    event_id: str = ""
    response: Response = field(default_factory=Response)


@dataclass(frozen=True, slots=True)
class ResponseOutputItemAdded:
    TYPE: ClassVar[str] = "response.output_item.added"

    event_id: str = ""
    response_id: str = ""
    output_index: int = 0
    item: Item | None = None


@dataclass(frozen=True, slots=True)
class ResponseOutputItemDone:
    TYPE: ClassVar[str] = "response.output_item.done"

    event_id: str = ""
    response_id: str = ""
    output_index: int = 0
    item: Item | None = None


@dataclass(frozen=True, slots=True)
class ResponseContentPartAdded:
    TYPE: ClassVar[str] = "response.content_part.added"

    event_id: str = ""
    response_id: str = ""
    item_id: str = ""
    output_index: int = 0
    content_index: int = 0
    part: ContentPart | None = None


@dataclass(frozen=True, slots=True)
class ResponseContentPartDone:
    TYPE: ClassVar[str] = "response.content_part.done"

    event_id: str = ""
    response_id: str = ""
    item_id: str = ""
    output_index: int = 0
    content_index: int = 0
    part: ContentPart | None = None


@dataclass(frozen=True, slots=True)
class ResponseOutputTextDelta:
    TYPE: ClassVar[str] = "response.output_text.delta"

    event_id: str = ""
    response_id: str = ""
    item_id: str = ""
    output_index: int = 0
    content_index: int = 0
    delta: str = ""


@dataclass(frozen=True, slots=True)
class ResponseOutputTextDone:
    TYPE: ClassVar[str] = "response.output_text.done"

    event_id: str = ""
    response_id: str = ""
    item_id: str = ""
    output_index: int = 0
    content_index: int = 0
    text: str = ""


@dataclass(frozen=True, slots=True)
class ResponseOutputAudioDelta:
    TYPE: ClassVar[str] = "response.output_audio.delta"

    event_id: str = ""
    response_id: str = ""
    item_id: str = ""
    output_index: int = 0
    content_index: int = 0
    delta: str = ""


@dataclass(frozen=True, slots=True)
class ResponseOutputAudioDone:
    TYPE: ClassVar[str] = "response.output_audio.done"

    event_id: str = ""
    response_id: str = ""
    item_id: str = ""
    output_index: int = 0
    content_index: int = 0


@dataclass(frozen=True, slots=True)
class ResponseOutputAudioTranscriptDelta:
    TYPE: ClassVar[str] = "response.output_audio_transcript.delta"

    event_id: str = ""
    response_id: str = ""
    item_id: str = ""
    output_index: int = 0
    content_index: int = 0
    delta: str = ""


@dataclass(frozen=True, slots=True)
class ResponseOutputAudioTranscriptDone:
    TYPE: ClassVar[str] = "response.output_audio_transcript.done"

    event_id: str = ""
    response_id: str = ""
    item_id: str = ""
    output_index: int = 0
    content_index: int = 0
    transcript: str = ""


@dataclass(frozen=True, slots=True)
class ResponseFunctionCallArgumentsDelta:
    TYPE: ClassVar[str] = "response.function_call_arguments.delta"

    event_id: str = ""
    response_id: str = ""
    item_id: str = ""
    output_index: int = 0
    call_id: str = ""
    delta: str = ""


@dataclass(frozen=True, slots=True)
class ResponseFunctionCallArgumentsDone:
    TYPE: ClassVar[str] = "response.function_call_arguments.done"

    event_id: str = ""
    response_id: str = ""
    item_id: str = ""
    output_index: int = 0
    call_id: str = ""
    name: str | None = None
    arguments: str = ""


@dataclass(frozen=True, slots=True)
class ResponseMcpCallArgumentsDelta:
    TYPE: ClassVar[str] = "response.mcp_call_arguments.delta"

    event_id: str = ""
    response_id: str = ""
    item_id: str = ""
    output_index: int = 0
    delta: str = ""


@dataclass(frozen=True, slots=True)
class ResponseMcpCallArgumentsDone:
    TYPE: ClassVar[str] = "response.mcp_call_arguments.done"

    event_id: str = ""
    response_id: str = ""
    item_id: str = ""
    output_index: int = 0
    arguments: str = ""


@dataclass(frozen=True, slots=True)
class ResponseMcpCallInProgress:
    TYPE: ClassVar[str] = "response.mcp_call.in_progress"

    event_id: str = ""
    item_id: str = ""
    output_index: int = 0


@dataclass(frozen=True, slots=True)
class ResponseMcpCallCompleted:
    TYPE: ClassVar[str] = "response.mcp_call.completed"

    event_id: str = ""
    item_id: str = ""
    output_index: int = 0


@dataclass(frozen=True, slots=True)
class ResponseMcpCallFailed:
    TYPE: ClassVar[str] = "response.mcp_call.failed"

    event_id: str = ""
    item_id: str = ""
    output_index: int = 0


@dataclass(frozen=True, slots=True)
class McpListToolsInProgress:
    TYPE: ClassVar[str] = "mcp_list_tools.in_progress"

    event_id: str = ""
    item_id: str = ""


@dataclass(frozen=True, slots=True)
class McpListToolsCompleted:
    TYPE: ClassVar[str] = "mcp_list_tools.completed"

    event_id: str = ""
    item_id: str = ""


@dataclass(frozen=True, slots=True)
class McpListToolsFailed:
    TYPE: ClassVar[str] = "mcp_list_tools.failed"

    event_id: str = ""
    item_id: str = ""
    error: ServerError | None = None


@dataclass(frozen=True, slots=True)
class RateLimitsUpdated:
    TYPE: ClassVar[str] = "rate_limits.updated"

    event_id: str = ""
    rate_limits: list[RateLimit] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class UnknownEvent:
    """A message the codec could not map; surfaced so nothing is dropped silently."""

    TYPE: ClassVar[str] = "unknown"

    type: str = ""
    payload: dict[str, Any] = field(default_factory=dict)
    reason: str = ""


SERVER_EVENT_CLASSES: tuple[type, ...] = (
    ErrorEvent,
    SessionCreated,
    SessionUpdated,
    ConversationItemAdded,
    ConversationItemDone,
    ConversationItemRetrieved,
    ConversationItemDeleted,
    ConversationItemTruncated,
    InputAudioTranscriptionDelta,
    InputAudioTranscriptionSegment,
    InputAudioTranscriptionCompleted,
    InputAudioTranscriptionFailed,
    InputAudioBufferCommitted,
    InputAudioBufferCleared,
    InputAudioBufferSpeechStarted,
    InputAudioBufferSpeechStopped,
    InputAudioBufferTimeoutTriggered,
    InputAudioBufferDtmfEventReceived,
    OutputAudioBufferStarted,
    OutputAudioBufferStopped,
    OutputAudioBufferCleared,
    ResponseCreated,
    ResponseDone,
    ResponseOutputItemAdded,
    ResponseOutputItemDone,
    ResponseContentPartAdded,
    ResponseContentPartDone,
    ResponseOutputTextDelta,
    ResponseOutputTextDone,
    ResponseOutputAudioDelta,
    ResponseOutputAudioDone,
    ResponseOutputAudioTranscriptDelta,
    ResponseOutputAudioTranscriptDone,
    ResponseFunctionCallArgumentsDelta,
    ResponseFunctionCallArgumentsDone,
    ResponseMcpCallArgumentsDelta,
    ResponseMcpCallArgumentsDone,
    ResponseMcpCallInProgress,
    ResponseMcpCallCompleted,
    ResponseMcpCallFailed,
    McpListToolsInProgress,
    McpListToolsCompleted,
    McpListToolsFailed,
    RateLimitsUpdated,
)

SERVER_EVENT_TYPES: dict[str, type] = {cls.TYPE: cls for cls in SERVER_EVENT_CLASSES}

ServerEvent = Union[SERVER_EVENT_CLASSES + (UnknownEvent,)]

__all__ = [
    "ConversationItemAdded",
    "ConversationItemDeleted",
    "ConversationItemDone",
    "ConversationItemRetrieved",
    "ConversationItemTruncated",
    "ErrorEvent",
    "InputAudioBufferCleared",
    "InputAudioBufferCommitted",
    "InputAudioBufferDtmfEventReceived",
    "InputAudioBufferSpeechStarted",
    "InputAudioBufferSpeechStopped",
    "InputAudioBufferTimeoutTriggered",
    "InputAudioTranscriptionCompleted",
    "InputAudioTranscriptionDelta",
    "InputAudioTranscriptionFailed",
    "InputAudioTranscriptionSegment",
    "McpListToolsCompleted",
    "McpListToolsFailed",
    "McpListToolsInProgress",
    "OutputAudioBufferCleared",
    "OutputAudioBufferStarted",
    "OutputAudioBufferStopped",
    "RateLimitsUpdated",
    "ResponseContentPartAdded",
    "ResponseContentPartDone",
    "ResponseCreated",
    "ResponseDone",
    "ResponseFunctionCallArgumentsDelta",
    "ResponseFunctionCallArgumentsDone",
    "ResponseMcpCallArgumentsDelta",
    "ResponseMcpCallArgumentsDone",
    "ResponseMcpCallCompleted",
    "ResponseMcpCallFailed",
    "ResponseMcpCallInProgress",
    "ResponseOutputAudioDelta",
    "ResponseOutputAudioDone",
    "ResponseOutputAudioTranscriptDelta",
    "ResponseOutputAudioTranscriptDone",
    "ResponseOutputItemAdded",
    "ResponseOutputItemDone",
    "ResponseOutputTextDelta",
    "ResponseOutputTextDone",
    "SERVER_EVENT_CLASSES",
    "SERVER_EVENT_TYPES",
    "ServerEvent",
    "SessionCreated",
    "SessionUpdated",
    "UnknownEvent",
]
