from __future__ import annotations

import asyncio

import pytest

from rtengine.engine.intents import IntentsMixin
from rtengine.protocol import server_events as ev
from rtengine.protocol.items import MessageItem
from rtengine.protocol.content import input_text
from rtengine.errors import TransportError, ConnectionClosed, ResponseConflict
from tests.utils.events import server_error, session_created, response_created
from tests.utils.engine import until, next_of, start_engine


@pytest.mark.asyncio
async def test_intents_reach_wire_in_call_order() -> None:
    engine, transport = await start_engine()
    try:
        await engine.say("one")
        await engine.create_response({"conversation": "none"})
        await engine.cancel_response()
        await engine.clear_audio()
        events = await transport.wait_sent(4)
        assert [e["type"] for e in events] == [
            "conversation.item.create",
            "response.create",
            "response.cancel",
            "input_audio_buffer.clear",
        ]
        ids = [e["event_id"] for e in events]
        assert len(set(ids)) == 4
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_wait_sent_resolves_after_transport_write() -> None:
    engine, transport = await start_engine()
    transport.send_gate = asyncio.Event()
    try:
        item = MessageItem(role="user", content=[input_text("x")])
        task = asyncio.create_task(engine.create_item(item, wait_sent=True))
        await asyncio.sleep(0.02)
        assert not task.done()
        transport.send_gate.set()
        event_id = await asyncio.wait_for(task, timeout=1.0)
        assert transport.sent_events()[0]["event_id"] == event_id
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_full_outbound_queue_blocks_submitters() -> None:
    engine, transport = await start_engine(outbound_queue_max=1)
    transport.send_gate = asyncio.Event()
    try:
        await engine.say("a")  # taken by the writer, stuck in send
        await until(lambda: engine._outbound.qsize() == 0)
        await engine.say("b")  # fills the queue
        blocked = asyncio.create_task(engine.say("c"))
        await asyncio.sleep(0.02)
        assert not blocked.done()

        transport.send_gate.set()
        await asyncio.wait_for(blocked, timeout=1.0)
        events = await transport.wait_sent(3)
        assert [e["item"]["content"][0]["text"] for e in events] == ["a", "b", "c"]
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_events_surface_after_state_applied() -> None:
    engine, transport = await start_engine()
    try:
        transport.push(session_created(instructions="be kind"))
        event = await next_of(engine, ev.SessionCreated)
        assert event.session.instructions == "be kind"
        assert engine.state.session.session.instructions == "be kind"
        assert engine.state.session.model == "gpt-realtime"
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_server_error_is_not_fatal() -> None:
    engine, transport = await start_engine()
    try:
        event_id = await engine.respond()
        with pytest.raises(ResponseConflict):
            await engine.respond()

        transport.push(server_error("conversation already has an active response", event_id=event_id))
        error = await next_of(engine, ev.ErrorEvent)
        assert error.error.event_id == event_id
        assert not engine.closed
        assert engine.fatal_error is None

        # The rejected create no longer holds the default slot.
        await engine.respond()
        await transport.wait_sent(2)
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_unknown_and_garbage_messages_are_surfaced() -> None:
    engine, transport = await start_engine()
    try:
        transport.push({"type": "response.brand_new_thing", "x": 1})
        transport.push_raw("{not json")
        transport.push({"type": "conversation.item.added", "item": "not an object"})

        unknown = await next_of(engine, ev.UnknownEvent)
        assert unknown.type == "response.brand_new_thing"
        assert unknown.payload["x"] == 1
        garbage = await next_of(engine, ev.UnknownEvent)
        assert garbage.type == ""
        malformed = await next_of(engine, ev.UnknownEvent)
        assert malformed.type == "conversation.item.added"
        assert not engine.closed
    finally:
        await engine.close()


@pytest.mark.asyncio
async def test_transport_failure_freezes_state() -> None:
    engine, transport = await start_engine()
    transport.push(session_created())
    await next_of(engine, ev.SessionCreated)

    transport.fail(TransportError("socket reset"))
    await until(lambda: engine.fatal_error is not None)

    assert engine.closed
    with pytest.raises(ConnectionClosed) as exc:
        await engine.say("hello?")
    assert "connection lost" in exc.value.reason
    with pytest.raises(ConnectionClosed):
        engine.state.conversation.insert(MessageItem(id="x", role="user"))
    assert await asyncio.wait_for(engine.next_event(), timeout=1.0) is None
    # Reads still work on the frozen snapshot.
    assert engine.state.session.model == "gpt-realtime"
    await engine.close()


@pytest.mark.asyncio
async def test_close_drains_queued_events_then_ends() -> None:
    engine, transport = await start_engine()
    transport.push(session_created())
    transport.push(response_created("resp_1"))
    await until(lambda: engine.state.responses.default_response_id == "resp_1")
    await asyncio.sleep(0.01)

    await engine.close()
    assert transport.closed
    with pytest.raises(ConnectionClosed):
        await engine.respond()

    seen = [type(event) async for event in engine]
    assert seen == [ev.SessionCreated, ev.ResponseCreated]
    assert await engine.next_event() is None
    await engine.close()


@pytest.mark.asyncio
async def test_close_fails_intents_waiting_for_send() -> None:
    engine, transport = await start_engine()
    transport.send_gate = asyncio.Event()
    waiter = asyncio.create_task(engine.clear_audio(wait_sent=True))
    queued = asyncio.create_task(engine.clear_audio(wait_sent=True))
    await asyncio.sleep(0.02)

    await engine.close()
    for task in (waiter, queued):
        with pytest.raises(ConnectionClosed):
            await asyncio.wait_for(task, timeout=1.0)


@pytest.mark.asyncio
async def test_split_halves_share_one_connection() -> None:
    engine, transport = await start_engine()
    sender, receiver = engine.split()

    await sender.say("from sender")
    transport.push(session_created())
    event = await asyncio.wait_for(receiver.next_event(), timeout=1.0)
    assert isinstance(event, ev.SessionCreated)
    assert sender.state is receiver.state
    sent = await transport.wait_sent(1)
    assert sent[0]["item"]["content"][0]["text"] == "from sender"

    await receiver.close()
    assert sender.closed
    with pytest.raises(ConnectionClosed):
        await sender.say("too late")


@pytest.mark.asyncio
async def test_context_manager_closes() -> None:
    engine, transport = await start_engine()
    async with engine:
        await engine.say("hi")
    assert engine.closed
    assert transport.closed


@pytest.mark.asyncio
async def test_cancel_with_nothing_in_flight_is_safe() -> None:
    engine, transport = await start_engine()
    try:
        assert not engine.state.responses.default_in_flight
        cancel_id = await engine.cancel_response(wait_sent=True)
        assert transport.sent_events()[0] == {"type": "response.cancel", "event_id": cancel_id}

        rejection = server_error("no active response", code="response_cancel_not_active", event_id=cancel_id)
        transport.push(rejection)
        error = await next_of(engine, ev.ErrorEvent)
        assert error.error.event_id == cancel_id
        assert not engine.closed
        assert engine.fatal_error is None
        assert not engine.state.responses.default_in_flight

        await engine.respond()
        sent = await transport.wait_sent(2)
        assert sent[1]["type"] == "response.create"
        assert engine.state.responses.default_in_flight
    finally:
        await engine.close()


def test_intents_mixin_requires_submit_and_open_check() -> None:
    class _HalfEngine(IntentsMixin):
        def _ensure_open(self) -> None:
            return None

    with pytest.raises(TypeError):
        _HalfEngine()  # type: ignore[abstract]
    assert IntentsMixin.__abstractmethods__ == frozenset({"_ensure_open", "_submit"})
