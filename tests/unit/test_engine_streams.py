from __future__ import annotations

import asyncio
from typing import Any

import pytest

from rtengine.engine import EventHandlers
from rtengine.tools import ToolCall, ToolResult
from rtengine.protocol import server_events as ev
from rtengine.engine.voice import (
    VOICE_AUDIO_DONE,
    VOICE_AUDIO_DELTA,
    VOICE_DECODE_ERROR,
    VOICE_SPEECH_STARTED,
    VOICE_TRANSCRIPT_DONE,
    VOICE_RESPONSE_CREATED,
    VOICE_TRANSCRIPT_DELTA,
    VOICE_RESPONSE_CANCELLED,
)
from tests.utils.engine import next_of, start_engine
from tests.utils.events import text_done, audio_delta, response_done, response_created


def _audio_event(kind: str, response_id: str, item_id: str, **extra: Any) -> dict[str, Any]:
    return {
        "type": f"response.output_audio{kind}",
        "response_id": response_id,
        "item_id": item_id,
        "output_index": 0,
        "content_index": 0,
        **extra,
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
async def test_voice_turn_feeds_derived_streams() -> None:
    engine, transport = await start_engine(auto_barge_in=False)
    try:
        transport.push(response_created("resp_1"))
        transport.push({"type": "input_audio_buffer.speech_started", "item_id": "item_s", "audio_start_ms": 40})
        transport.push(audio_delta("resp_1", "item_a", 480))
        transport.push(_audio_event(".delta", "resp_1", "item_a", delta="!!!"))
        transport.push(_audio_event(".done", "resp_1", "item_a"))
        transport.push(_audio_event("_transcript.delta", "resp_1", "item_a", delta="Hi"))
        transport.push(_audio_event("_transcript.done", "resp_1", "item_a", transcript="Hi there"))
        transport.push(response_done("resp_1", status="cancelled"))
        await next_of(engine, ev.ResponseDone)

        kinds = []
        for _ in range(8):
            voice = await asyncio.wait_for(engine.next_voice_event(), timeout=1.0)
            kinds.append(voice.kind)
        assert kinds == [
            VOICE_RESPONSE_CREATED,
            VOICE_SPEECH_STARTED,
            VOICE_AUDIO_DELTA,
            VOICE_DECODE_ERROR,
            VOICE_AUDIO_DONE,
            VOICE_TRANSCRIPT_DELTA,
            VOICE_TRANSCRIPT_DONE,
            VOICE_RESPONSE_CANCELLED,
        ]

        chunk = await asyncio.wait_for(engine.next_audio_chunk(), timeout=1.0)
        assert (chunk.response_id, chunk.item_id, chunk.pcm) == ("resp_1", "item_a", b"\x01\x02" * 240)

        partial = await asyncio.wait_for(engine.next_transcript(), timeout=1.0)
        final = await asyncio.wait_for(engine.next_transcript(), timeout=1.0)
        assert (partial.text, partial.is_final) == ("Hi", False)
        assert (final.text, final.is_final) == ("Hi there", True)
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_unread_stream_keeps_newest_entries() -> None:
    engine, transport = await start_engine(derived_stream_max=2)
    try:
        for text in ("one", "two", "three"):
            transport.push(text_done("resp_1", "item_a", text))
        for _ in range(3):
            await next_of(engine, ev.ResponseOutputTextDone)

        assert await engine.next_text() == "two"
        assert await engine.next_text() == "three"
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_derived_streams_end_on_close() -> None:
    engine, transport = await start_engine()
    transport.push(text_done("resp_1", "item_a", "last words"))
    await next_of(engine, ev.ResponseOutputTextDone)
    _, receiver = engine.split()

    await engine.close()
    assert await receiver.next_text() == "last words"
    assert await receiver.next_text() is None
    assert [voice async for voice in receiver.voice_events()] == []


@pytest.mark.asyncio
async def test_handlers_see_applied_events() -> None:
    raw: list[tuple[type, str | None]] = []
    texts: list[str] = []

    def on_raw_event(event: Any) -> None:
        raw.append((type(event), engine.state.responses.default_response_id))

    async def on_text(text: str) -> None:
        texts.append(text)

    handlers = EventHandlers(on_text=on_text, on_raw_event=on_raw_event)
    engine, transport = await start_engine(handlers=handlers)
    try:
        transport.push(response_created("resp_1"))
        transport.push(text_done("resp_1", "item_a", "Hello"))
        transport.push({"type": "response.brand_new_thing"})
        await next_of(engine, ev.UnknownEvent)

        assert raw == [
            (ev.ResponseCreated, "resp_1"),
            (ev.ResponseOutputTextDone, "resp_1"),
            (ev.UnknownEvent, "resp_1"),
        ]
        assert texts == ["Hello"]
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_failing_handler_does_not_stop_delivery() -> None:
    def explode(event: Any) -> None:
        raise RuntimeError("handler bug")

    engine, transport = await start_engine(handlers=EventHandlers(on_raw_event=explode))
    try:
        transport.push(response_created("resp_1"))
        transport.push(response_done("resp_1"))
        await next_of(engine, ev.ResponseDone)
        assert not engine.closed
        assert engine.state.responses.default_response_id is None
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_tool_call_handler_replaces_registry() -> None:
    calls: list[ToolCall] = []

    async def on_tool_call(call: ToolCall) -> ToolResult:
        calls.append(call)
        return ToolResult(call_id=call.call_id, output={"ok": True})

    engine, transport = await start_engine(handlers=EventHandlers(on_tool_call=on_tool_call))
    try:
        transport.push(response_created("resp_1"))
        transport.push(_function_call_done("resp_1", "call_1", "anything", '{"q": 1}'))
        transport.push(response_done("resp_1"))

        sent = await transport.wait_sent(2)
        assert calls[0].name == "anything"
        assert calls[0].arguments == {"q": 1}
        assert sent[0]["item"] == {"type": "function_call_output", "call_id": "call_1", "output": '{"ok":true}'}
        assert sent[1]["type"] == "response.create"
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_tool_call_handler_without_auto_response() -> None:
    engine, transport = await start_engine(
        auto_tool_response=False, handlers=EventHandlers(on_tool_call=lambda call: "plain")
    )
    try:
        transport.push(response_created("resp_1"))
        transport.push(_function_call_done("resp_1", "call_1", "anything", "{}"))
        transport.push(response_done("resp_1"))
        await next_of(engine, ev.ResponseDone)

        sent = await transport.wait_sent(1)
        await asyncio.sleep(0.02)
        assert sent[0]["item"]["output"] == "plain"
        assert transport.sent_types() == ["conversation.item.create"]
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_stream_audio_bytes_from_async_source() -> None:
    engine, transport = await start_engine()

    async def microphone():
        yield b"\x00" * 480
        yield b""
        yield b"\x00" * 480

    try:
        assert await engine.stream_audio_bytes(microphone()) == 2
        sent = await transport.wait_sent(4)
        assert [e["type"] for e in sent] == [
            "input_audio_buffer.append",
            "input_audio_buffer.commit",
            "input_audio_buffer.append",
            "input_audio_buffer.commit",
        ]

        assert await engine.stream_audio_bytes([b"\x01" * 96, b"\x01" * 96], commit_each=False) == 2
        await transport.wait_sent(6)
        assert transport.sent_types()[4:] == ["input_audio_buffer.append", "input_audio_buffer.append"]
        assert engine.state.audio.buffered_bytes == 192
    finally:
        await engine.close()
