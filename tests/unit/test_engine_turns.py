from __future__ import annotations

import asyncio
from typing import Any

import pytest

from rtengine.tools import ToolRegistry
from rtengine.protocol import server_events as ev
from rtengine.errors import VoiceLocked, ChunkTooLarge, InvalidIntent, NotTruncatable, EmptyBufferCommit
from tests.utils.engine import until, next_of, start_engine
from tests.utils.events import (
    item_done,
    text_done,
    item_added,
    text_delta,
    output_item,
    audio_delta,
    content_part,
    server_error,
    user_message,
    response_done,
    session_created,
    response_created,
    assistant_message,
)


def _transcript(kind: str, response_id: str, item_id: str, value: str) -> dict[str, Any]:
    key = "delta" if kind == "delta" else "transcript"
    return {
        "type": f"response.output_audio_transcript.{kind}",
        "response_id": response_id,
        "item_id": item_id,
        "output_index": 0,
        "content_index": 0,
        key: value,
    }


def _function_call_done(response_id: str, call_id: str, name: str, arguments: str) -> dict[str, Any]:
    return {
        "type": "response.function_call_arguments.done",
        "response_id": response_id,
        "item_id": f"item_{call_id}",
        "output_index": 0,
        "call_id": call_id,
        "name": name,
        "arguments": arguments,
    }


@pytest.mark.asyncio
async def test_text_turn_builds_conversation() -> None:
    engine, transport = await start_engine()
    try:
        transport.push(session_created())
        await engine.say("hi")
        await engine.respond()
        sent = await transport.wait_sent(2)
        assert [e["type"] for e in sent] == ["conversation.item.create", "response.create"]

        transport.push(item_added(user_message("item_u")))
        transport.push(response_created("resp_1"))
        assistant_item = assistant_message("item_a")
        transport.push(output_item("added", "resp_1", assistant_item))
        transport.push(item_added(assistant_item, "item_u"))
        transport.push(content_part("added", "resp_1", "item_a", {"type": "output_text", "text": ""}))
        transport.push(text_delta("resp_1", "item_a", "Hel"))
        transport.push(text_delta("resp_1", "item_a", "lo"))
        transport.push(text_done("resp_1", "item_a", "Hello"))
        transport.push(content_part("done", "resp_1", "item_a", {"type": "output_text", "text": "Hello"}))
        transport.push(output_item("done", "resp_1", assistant_message("item_a", status="completed")))
        transport.push(item_done(assistant_message("item_a", status="completed"), "item_u"))
        transport.push(response_done("resp_1"))

        seen: list[type] = []
        while not seen or seen[-1] is not ev.ResponseDone:
            seen.append(type(await asyncio.wait_for(engine.next_event(), timeout=1.0)))
        assert seen == [
            ev.SessionCreated,
            ev.ConversationItemAdded,
            ev.ResponseCreated,
            ev.ResponseOutputItemAdded,
            ev.ConversationItemAdded,
            ev.ResponseContentPartAdded,
            ev.ResponseOutputTextDelta,
            ev.ResponseOutputTextDelta,
            ev.ResponseOutputTextDone,
            ev.ResponseContentPartDone,
            ev.ResponseOutputItemDone,
            ev.ConversationItemDone,
            ev.ResponseDone,
        ]
        done = engine.state.responses.finished[-1]
        assert done.usage.total_tokens == 12

        state = engine.state
        assert state.conversation.order() == ["item_u", "item_a"]
        assistant = state.conversation.get("item_a")
        assert assistant.status == "completed"
        assert assistant.content[0].text == "Hello"
        assert state.responses.text("item_a") == "Hello"
        assert state.responses.default_response_id is None
        assert [r.id for r in state.responses.finished] == ["resp_1"]
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_item_done_moves_item_to_stated_position() -> None:
    engine, transport = await start_engine()
    try:
        transport.push(item_added(assistant_message("a")))
        transport.push(item_added(user_message("b"), "a"))
        transport.push(text_delta("resp_1", "a", "kept"))
        transport.push(item_done(assistant_message("a", status="completed"), "b"))
        await next_of(engine, ev.ConversationItemDone)

        assert engine.state.conversation.order() == ["b", "a"]
        moved = engine.state.conversation.get("a")
        assert moved.status == "completed"
        assert moved.content[0].text == "kept"
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_ask_returns_transcript_of_its_response() -> None:
    engine, transport = await start_engine()

    async def server() -> None:
        await transport.wait_sent(2)
        transport.push(response_created("resp_1"))
        transport.push(item_added(assistant_message("item_a", audio=True)))
        transport.push(_transcript("delta", "resp_1", "item_a", "Four"))
        transport.push(_transcript("done", "resp_1", "item_a", "Four."))
        transport.push(response_done("resp_1"))

    fake_server = asyncio.create_task(server())
    try:
        answer = await asyncio.wait_for(engine.ask("two plus two?"), timeout=1.0)
        assert answer == "Four."
        assert engine.state.conversation.get("item_a").content[0].transcript == "Four."
        await fake_server
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_speech_during_reply_barges_in() -> None:
    engine, transport = await start_engine(auto_barge_in=True)
    try:
        transport.push(session_created(turn_detection={"type": "server_vad"}))
        transport.push(response_created("resp_1"))
        transport.push({"type": "output_audio_buffer.started", "response_id": "resp_1"})
        transport.push({"type": "input_audio_buffer.speech_started", "item_id": "item_s", "audio_start_ms": 120})

        await next_of(engine, ev.InputAudioBufferSpeechStarted)
        sent = await transport.wait_sent(2)
        assert [e["type"] for e in sent] == ["response.cancel", "output_audio_buffer.clear"]
        assert sent[0]["response_id"] == "resp_1"
        assert engine.state.audio.speech_item_id == "item_s"
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_no_barge_in_when_interrupt_disabled() -> None:
    engine, transport = await start_engine(auto_barge_in=True)
    try:
        transport.push(session_created(turn_detection={"type": "server_vad", "interrupt_response": False}))
        transport.push(response_created("resp_1"))
        transport.push({"type": "input_audio_buffer.speech_started", "item_id": "item_s"})
        await next_of(engine, ev.InputAudioBufferSpeechStarted)
        await asyncio.sleep(0.02)
        assert transport.sent == []
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_manual_barge_in_cancels_then_clears() -> None:
    engine, transport = await start_engine(auto_barge_in=False)
    try:
        transport.push(response_created("resp_7"))
        await until(lambda: engine.state.responses.default_response_id == "resp_7")
        await engine.barge_in()
        sent = await transport.wait_sent(2)
        assert [e["type"] for e in sent] == ["response.cancel", "output_audio_buffer.clear"]
        assert sent[0]["response_id"] == "resp_7"

        transport.push(response_done("resp_7", status="cancelled"))
        await next_of(engine, ev.ResponseDone)
        assert engine.state.responses.get("resp_7").status == "cancelled"
        assert engine.state.responses.default_response_id is None
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_manual_commit_rules() -> None:
    engine, transport = await start_engine(max_input_audio_chunk_bytes=1000)
    try:
        with pytest.raises(EmptyBufferCommit):
            await engine.commit_audio()
        with pytest.raises(ChunkTooLarge):
            await engine.append_audio_bytes(b"\x00" * 1200)
        assert transport.sent == []

        await engine.append_audio_bytes(b"\x00" * 960)
        assert engine.state.audio.buffered_ms == pytest.approx(20.0)
        await engine.commit_audio(wait_sent=True)
        assert transport.sent_types() == ["input_audio_buffer.append", "input_audio_buffer.commit"]
        assert engine.state.audio.buffered_bytes == 0
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_rejected_commit_does_not_swallow_next_vad_commit() -> None:
    engine, transport = await start_engine()
    try:
        await engine.append_audio_bytes(b"\x00" * 960)
        commit_id = await engine.commit_audio(wait_sent=True)
        transport.push(server_error("buffer too small", code="input_audio_buffer_commit_empty", event_id=commit_id))
        await next_of(engine, ev.ErrorEvent)
        assert engine.state.audio.buffered_bytes == 960

        await engine.append_audio_bytes(b"\x00" * 960)
        transport.push({"type": "input_audio_buffer.committed", "item_id": "item_vad", "previous_item_id": None})
        await next_of(engine, ev.InputAudioBufferCommitted)
        assert engine.state.audio.buffered_bytes == 0
        with pytest.raises(EmptyBufferCommit):
            await engine.commit_audio()
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_idle_timeout_commits_buffer() -> None:
    engine, transport = await start_engine()
    try:
        transport.push(session_created(turn_detection={"type": "server_vad", "idle_timeout_ms": 5000}))
        await next_of(engine, ev.SessionCreated)
        await engine.append_audio_bytes(b"\x00" * 960)
        await transport.wait_sent(1)

        timeout = {"type": "input_audio_buffer.timeout_triggered", "item_id": "item_t", "audio_end_ms": 20}
        transport.push(timeout)
        transport.push({"type": "input_audio_buffer.committed", "item_id": "item_t", "previous_item_id": None})
        await next_of(engine, ev.InputAudioBufferCommitted)

        assert engine.state.audio.buffered_bytes == 0
        assert engine.state.audio.committed_item_ids == ["item_t"]

        # The server opens the reply itself; no client commit or response.create went out.
        transport.push(item_added(user_message("item_t")))
        transport.push(response_created("resp_vad"))
        await next_of(engine, ev.ResponseCreated)
        assert engine.state.conversation.order() == ["item_t"]
        assert engine.state.responses.default_response_id == "resp_vad"
        assert transport.sent_types() == ["input_audio_buffer.append"]
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_tool_call_answered_then_response_requested() -> None:
    registry = ToolRegistry()

    @registry.tool()
    def weather(args: dict) -> dict:
        """Weather lookup."""
        return {"city": args["city"], "temp_c": 4}

    engine, transport = await start_engine(tools=registry, auto_tool_response=True)
    try:
        transport.push(response_created("resp_1"))
        transport.push(_function_call_done("resp_1", "call_1", "weather", '{"city": "Oslo"}'))
        transport.push(response_done("resp_1"))

        sent = await transport.wait_sent(2)
        assert sent[0]["type"] == "conversation.item.create"
        assert sent[0]["item"] == {
            "type": "function_call_output",
            "call_id": "call_1",
            "output": '{"city":"Oslo","temp_c":4}',
        }
        assert sent[1]["type"] == "response.create"
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_failing_tool_reports_error_output() -> None:
    registry = ToolRegistry()

    def broken(args: dict) -> str:
        raise RuntimeError("no data")

    registry.register("broken", broken)
    engine, transport = await start_engine(tools=registry, auto_tool_response=True)
    try:
        transport.push(response_created("resp_1"))
        transport.push(_function_call_done("resp_1", "call_9", "broken", "{}"))
        transport.push(response_done("resp_1"))
        sent = await transport.wait_sent(2)
        assert sent[0]["item"]["output"] == '{"error":"no data"}'
        assert sent[1]["type"] == "response.create"
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_unregistered_tool_left_to_caller() -> None:
    engine, transport = await start_engine(auto_tool_response=True)
    try:
        transport.push(response_created("resp_1"))
        transport.push(_function_call_done("resp_1", "call_1", "lookup", "{}"))
        transport.push(response_done("resp_1"))
        await next_of(engine, ev.ResponseDone)
        await asyncio.sleep(0.02)
        assert transport.sent == []
        assert engine.state.responses.arguments("call_1") == "{}"
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_truncate_after_playback_interruption() -> None:
    engine, transport = await start_engine()
    try:
        transport.push(session_created())
        transport.push(item_added(user_message("item_u")))
        transport.push(item_added(assistant_message("item_a", audio=True), "item_u"))
        transport.push(audio_delta("resp_1", "item_a", 4800))
        transport.push(_transcript("delta", "resp_1", "item_a", "hello world"))
        await next_of(engine, ev.ResponseOutputAudioTranscriptDelta)

        assert engine.state.session.has_emitted_audio
        with pytest.raises(VoiceLocked):
            await engine.update_session({"voice": "marin"})
        with pytest.raises(NotTruncatable):
            await engine.truncate_item("item_u", 0, 10)
        with pytest.raises(InvalidIntent):
            await engine.truncate_item("item_a", 0, -1)

        await engine.truncate_item("item_a", 0, 50, wait_sent=True)
        wire = transport.sent_events()[-1]
        assert wire["type"] == "conversation.item.truncate"
        assert wire["audio_end_ms"] == 50

        truncated = {"type": "conversation.item.truncated", "item_id": "item_a", "content_index": 0, "audio_end_ms": 50}
        transport.push(truncated)
        await next_of(engine, ev.ConversationItemTruncated)
        assert len(engine.state.conversation.audio_bytes("item_a", 0)) == 2400
        assert engine.state.conversation.retrieve("item_a").content[0].transcript == ""
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_session_update_waits_for_server_confirmation() -> None:
    engine, transport = await start_engine()
    try:
        transport.push(session_created(instructions="old"))
        await next_of(engine, ev.SessionCreated)
        await engine.update_session({"instructions": "new"}, wait_sent=True)
        assert transport.sent_events()[0]["session"] == {"instructions": "new"}
        assert engine.state.session.session.instructions == "old"

        transport.push({"type": "session.updated", "session": {"model": "gpt-realtime", "instructions": "new"}})
        await next_of(engine, ev.SessionUpdated)
        assert engine.state.session.session.instructions == "new"
    finally:
        await engine.close()
