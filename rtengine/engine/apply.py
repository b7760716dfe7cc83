"""Inbound dispatch: apply each server event to the state owner it belongs to."""

from __future__ import annotations

import logging
from typing import Any
from collections.abc import Callable

from rtengine.state import EngineState
from rtengine.errors import ItemNotFound, NotTruncatable
from rtengine.config.protocol import ROOT_ITEM_ID
from rtengine.protocol.items import Item
from rtengine.protocol import server_events as ev
from rtengine.protocol.validation import audio_bytes_per_ms
from rtengine.state.responses import DELTA_TEXT, DELTA_TRANSCRIPT
from rtengine.state.conversation import CONTENT_TEXT, CONTENT_AUDIO, CONTENT_TRANSCRIPT

logger = logging.getLogger(__name__)

ApplyFn = Callable[[EngineState, Any], None]

# Local lookups that can legitimately miss (out-of-band items, late deltas).
_RECOVERABLE = (ItemNotFound, NotTruncatable, ValueError)


def _quietly(action: Callable[..., None], *args: Any) -> None:
    try:
        action(*args)
    except _RECOVERABLE as exc:
        logger.warning("ignoring %s: %s", getattr(action, "__name__", "update"), exc)


def _place_item(state: EngineState, item: Item | None, previous_item_id: str | None) -> None:
    """Store or re-splice `item` at the position the server stated.

    An item that is already stored keeps its accumulated content and is only moved.
    """
    if item is None or not item.id:
        logger.warning("conversation item without id; not stored")
        return
    store = state.conversation
    anchor = ROOT_ITEM_ID if previous_item_id is None else previous_item_id
    if item.id in store:
        place, target = store.move, item.id
    else:
        place, target = store.insert, item
    try:
        place(target, anchor)
    except ItemNotFound:
        logger.warning("previous item %s unknown for %s; appending at tail", anchor, item.id)
        place(target, None)


def _on_error(state: EngineState, event: ev.ErrorEvent) -> None:
    err = event.error
    logger.warning("server error type=%s code=%s message=%s", err.type, err.code, err.message)
    state.responses.on_error(err)
    if err.event_id:
        state.audio.release_commit(err.event_id)


def _on_session_created(state: EngineState, event: ev.SessionCreated) -> None:
    state.session.apply_server_snapshot(event.session, created=True)


def _on_session_updated(state: EngineState, event: ev.SessionUpdated) -> None:
    state.session.apply_server_snapshot(event.session)


def _on_item_added(state: EngineState, event: ev.ConversationItemAdded) -> None:
    _place_item(state, event.item, event.previous_item_id)


def _on_item_done(state: EngineState, event: ev.ConversationItemDone) -> None:
    item = event.item
    if item is None or not item.id:
        return
    _place_item(state, item, event.previous_item_id)
    state.conversation.mark_done(item.id, item)


def _on_item_retrieved(state: EngineState, event: ev.ConversationItemRetrieved) -> None:
    item = event.item
    if item is None or not item.id:
        return
    if item.id in state.conversation:
        state.conversation.replace_retrieved(item)
    else:
        state.conversation.insert(item, None)


def _on_item_deleted(state: EngineState, event: ev.ConversationItemDeleted) -> None:
    _quietly(state.conversation.delete, event.item_id)


def _on_item_truncated(state: EngineState, event: ev.ConversationItemTruncated) -> None:
    session = state.session.session
    bytes_per_ms = audio_bytes_per_ms(session.output_audio_format if session is not None else None)
    _quietly(state.conversation.truncate, event.item_id, event.content_index, event.audio_end_ms, bytes_per_ms)


def _on_transcription_delta(state: EngineState, event: ev.InputAudioTranscriptionDelta) -> None:
    _quietly(
        state.conversation.apply_content_delta, event.item_id, event.content_index, event.delta, CONTENT_TRANSCRIPT
    )


def _on_transcription_completed(state: EngineState, event: ev.InputAudioTranscriptionCompleted) -> None:
    _quietly(
        state.conversation.finish_content, event.item_id, event.content_index, CONTENT_TRANSCRIPT, event.transcript
    )


def _on_transcription_failed(state: EngineState, event: ev.InputAudioTranscriptionFailed) -> None:
    logger.warning("input transcription failed for %s: %s", event.item_id, event.error.message)


def _on_buffer_committed(state: EngineState, event: ev.InputAudioBufferCommitted) -> None:
    state.audio.on_committed(event.item_id)


def _on_buffer_cleared(state: EngineState, event: ev.InputAudioBufferCleared) -> None:
    state.audio.on_cleared()


def _on_speech_started(state: EngineState, event: ev.InputAudioBufferSpeechStarted) -> None:
    state.audio.on_speech_started(event.item_id)


def _on_speech_stopped(state: EngineState, event: ev.InputAudioBufferSpeechStopped) -> None:
    state.audio.on_speech_stopped(event.item_id)


def _on_timeout_triggered(state: EngineState, event: ev.InputAudioBufferTimeoutTriggered) -> None:
    state.audio.on_timeout_triggered(event.item_id)


def _on_output_started(state: EngineState, event: ev.OutputAudioBufferStarted) -> None:
    state.audio.on_output_started(event.response_id)
    state.session.mark_audio_emitted()


def _on_output_stopped(state: EngineState, event: ev.OutputAudioBufferStopped) -> None:
    state.audio.on_output_stopped(event.response_id)


def _on_output_cleared(state: EngineState, event: ev.OutputAudioBufferCleared) -> None:
    state.audio.on_output_cleared(event.response_id)


def _on_response_created(state: EngineState, event: ev.ResponseCreated) -> None:
    state.responses.on_created(event.response)


def _on_response_done(state: EngineState, event: ev.ResponseDone) -> None:
    state.responses.on_done(event.response)


def _on_output_item_added(state: EngineState, event: ev.ResponseOutputItemAdded) -> None:
    state.responses.on_output_item_added(event.response_id, event.output_index, event.item)


def _on_output_item_done(state: EngineState, event: ev.ResponseOutputItemDone) -> None:
    state.responses.on_output_item_done(event.response_id, event.output_index, event.item)


def _on_content_part_added(state: EngineState, event: ev.ResponseContentPartAdded) -> None:
    if event.part is None or event.item_id not in state.conversation:
        return
    _quietly(state.conversation.add_part, event.item_id, event.content_index, event.part)


def _on_content_part_done(state: EngineState, event: ev.ResponseContentPartDone) -> None:
    part = event.part
    if part is None or event.item_id not in state.conversation:
        return
    if part.text is not None:
        _quietly(state.conversation.finish_content, event.item_id, event.content_index, CONTENT_TEXT, part.text)
    if part.transcript is not None:
        _quietly(
            state.conversation.finish_content, event.item_id, event.content_index, CONTENT_TRANSCRIPT, part.transcript
        )


def _stream_delta(state: EngineState, event: Any, delta_kind: str | None, content_kind: str) -> None:
    if delta_kind is not None:
        state.responses.append_delta(delta_kind, event.response_id, event.item_id, event.content_index, event.delta)
    if event.item_id in state.conversation:
        _quietly(state.conversation.apply_content_delta, event.item_id, event.content_index, event.delta, content_kind)


def _stream_done(state: EngineState, event: Any, value: str, delta_kind: str, content_kind: str) -> None:
    state.responses.finish_delta(delta_kind, event.response_id, event.item_id, event.content_index, value)
    if event.item_id in state.conversation:
        _quietly(state.conversation.finish_content, event.item_id, event.content_index, content_kind, value)


def _on_text_delta(state: EngineState, event: ev.ResponseOutputTextDelta) -> None:
    _stream_delta(state, event, DELTA_TEXT, CONTENT_TEXT)


def _on_text_done(state: EngineState, event: ev.ResponseOutputTextDone) -> None:
    _stream_done(state, event, event.text, DELTA_TEXT, CONTENT_TEXT)


def _on_audio_delta(state: EngineState, event: ev.ResponseOutputAudioDelta) -> None:
    state.session.mark_audio_emitted()
    _stream_delta(state, event, None, CONTENT_AUDIO)


def _on_audio_transcript_delta(state: EngineState, event: ev.ResponseOutputAudioTranscriptDelta) -> None:
    _stream_delta(state, event, DELTA_TRANSCRIPT, CONTENT_TRANSCRIPT)


def _on_audio_transcript_done(state: EngineState, event: ev.ResponseOutputAudioTranscriptDone) -> None:
    _stream_done(state, event, event.transcript, DELTA_TRANSCRIPT, CONTENT_TRANSCRIPT)


def _on_function_arguments_delta(state: EngineState, event: ev.ResponseFunctionCallArgumentsDelta) -> None:
    state.responses.append_arguments(event.response_id, event.call_id, event.delta)


def _on_function_arguments_done(state: EngineState, event: ev.ResponseFunctionCallArgumentsDone) -> None:
    state.responses.finish_arguments(event.response_id, event.call_id, event.arguments, event.name)


def _on_mcp_arguments_delta(state: EngineState, event: ev.ResponseMcpCallArgumentsDelta) -> None:
    state.responses.append_arguments(event.response_id, event.item_id, event.delta)


def _on_mcp_arguments_done(state: EngineState, event: ev.ResponseMcpCallArgumentsDone) -> None:
    state.responses.finish_arguments(event.response_id, event.item_id, event.arguments)


def _on_mcp_list_tools_failed(state: EngineState, event: ev.McpListToolsFailed) -> None:
    message = event.error.message if event.error is not None else "unknown error"
    logger.warning("mcp list_tools failed for %s: %s", event.item_id, message)


def _on_rate_limits(state: EngineState, event: ev.RateLimitsUpdated) -> None:
    state.responses.replace_rate_limits(event.rate_limits)


def _observe_only(state: EngineState, event: Any) -> None:
    return None


HANDLERS: dict[str, ApplyFn] = {
    ev.ErrorEvent.TYPE: _on_error,
    ev.SessionCreated.TYPE: _on_session_created,
    ev.SessionUpdated.TYPE: _on_session_updated,
    ev.ConversationItemAdded.TYPE: _on_item_added,
    ev.ConversationItemDone.TYPE: _on_item_done,
    ev.ConversationItemRetrieved.TYPE: _on_item_retrieved,
    ev.ConversationItemDeleted.TYPE: _on_item_deleted,
    ev.ConversationItemTruncated.TYPE: _on_item_truncated,
    ev.InputAudioTranscriptionDelta.TYPE: _on_transcription_delta,
    ev.InputAudioTranscriptionSegment.TYPE: _observe_only,
    ev.InputAudioTranscriptionCompleted.TYPE: _on_transcription_completed,
    ev.InputAudioTranscriptionFailed.TYPE: _on_transcription_failed,
    ev.InputAudioBufferCommitted.TYPE: _on_buffer_committed,
    ev.InputAudioBufferCleared.TYPE: _on_buffer_cleared,
    ev.InputAudioBufferSpeechStarted.TYPE: _on_speech_started,
    ev.InputAudioBufferSpeechStopped.TYPE: _on_speech_stopped,
    ev.InputAudioBufferTimeoutTriggered.TYPE: _on_timeout_triggered,
    ev.InputAudioBufferDtmfEventReceived.TYPE: _observe_only,
    ev.OutputAudioBufferStarted.TYPE: _on_output_started,
    ev.OutputAudioBufferStopped.TYPE: _on_output_stopped,
    ev.OutputAudioBufferCleared.TYPE: _on_output_cleared,
    ev.ResponseCreated.TYPE: _on_response_created,
    ev.ResponseDone.TYPE: _on_response_done,
    ev.ResponseOutputItemAdded.TYPE: _on_output_item_added,
    ev.ResponseOutputItemDone.TYPE: _on_output_item_done,
    ev.ResponseContentPartAdded.TYPE: _on_content_part_added,
    ev.ResponseContentPartDone.TYPE: _on_content_part_done,
    ev.ResponseOutputTextDelta.TYPE: _on_text_delta,
    ev.ResponseOutputTextDone.TYPE: _on_text_done,
    ev.ResponseOutputAudioDelta.TYPE: _on_audio_delta,
    ev.ResponseOutputAudioDone.TYPE: _observe_only,
    ev.ResponseOutputAudioTranscriptDelta.TYPE: _on_audio_transcript_delta,
    ev.ResponseOutputAudioTranscriptDone.TYPE: _on_audio_transcript_done,
    ev.ResponseFunctionCallArgumentsDelta.TYPE: _on_function_arguments_delta,
    ev.ResponseFunctionCallArgumentsDone.TYPE: _on_function_arguments_done,
    ev.ResponseMcpCallArgumentsDelta.TYPE: _on_mcp_arguments_delta,
    ev.ResponseMcpCallArgumentsDone.TYPE: _on_mcp_arguments_done,
    ev.ResponseMcpCallInProgress.TYPE: _observe_only,
    ev.ResponseMcpCallCompleted.TYPE: _observe_only,
    ev.ResponseMcpCallFailed.TYPE: _observe_only,
    ev.McpListToolsInProgress.TYPE: _observe_only,
    ev.McpListToolsCompleted.TYPE: _observe_only,
    ev.McpListToolsFailed.TYPE: _on_mcp_list_tools_failed,
    ev.RateLimitsUpdated.TYPE: _on_rate_limits,
}


def apply_event(state: EngineState, event: Any) -> None:
    """Apply one decoded event; events without a handler only pass through."""
    handler = HANDLERS.get(type(event).TYPE) if not isinstance(event, ev.UnknownEvent) else None
    if handler is None:
        logger.debug("no state update for %s", getattr(event, "type", type(event).__name__))
        return
    handler(state, event)


__all__ = ["HANDLERS", "apply_event"]
