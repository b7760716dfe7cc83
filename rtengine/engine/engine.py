"""Realtime engine: one writer, one reader, state applied before events surface."""

from __future__ import annotations

import asyncio
import logging
import contextlib
from typing import Any
from collections.abc import AsyncIterator
from dataclasses import field, replace, dataclass

import orjson

from rtengine.tools import ToolCall, ToolRegistry
from rtengine.state import EngineState, EngineSettings
from rtengine.transport.base import Transport
from rtengine.protocol import server_events as ev
from rtengine.protocol.parser import parse_server_message
from rtengine.protocol.client_events import ClientEvent, new_event_id
from rtengine.protocol.codec import truncate_for_log, event_from_dict, encode_client_event
from rtengine.errors import InvalidIntent, RealtimeError, TransportError, ConnectionClosed, UnknownEventType

from .apply import apply_event
from .sender import EngineSender
from .intents import IntentsMixin
from .streams import DerivedStreams
from .receiver import EngineReceiver
from .lifecycle import EngineLifecycle
from .voice import VoiceEvent, AudioChunk, TranscriptChunk
from .handlers import EventHandlers, call_handler, as_tool_result

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Outbound:
    event_type: str
    event_id: str
    text: str
    sent: asyncio.Future | None = None

    def done(self) -> None:
        if self.sent is not None and not self.sent.done():
            self.sent.set_result(None)

    def fail(self, exc: BaseException) -> None:
        if self.sent is not None and not self.sent.done():
            self.sent.set_exception(exc)


@dataclass(slots=True)
class _ToolBatch:
    calls: set[str] = field(default_factory=set)
    response_done: bool = False


class RealtimeEngine(IntentsMixin):
    """Client-side engine for one realtime connection.

    Intents are validated against local state and queued for the single writer
    task. The single reader task decodes each server message, applies it to the
    state owners and only then hands it to the consumer queue.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        settings: EngineSettings | None = None,
        tools: ToolRegistry | None = None,
        handlers: EventHandlers | None = None,
    ) -> None:
        self._transport = transport
        self._settings = settings or EngineSettings()
        self.state = EngineState.create(
            max_chunk_bytes=self._settings.max_input_audio_chunk_bytes,
            finished_responses_max=self._settings.finished_responses_max,
        )
        self.tools = tools or ToolRegistry()
        self.handlers = handlers or EventHandlers()
        self._streams = DerivedStreams(maxsize=self._settings.derived_stream_max)
        self._outbound: asyncio.Queue[_Outbound] = asyncio.Queue(maxsize=self._settings.outbound_queue_max)
        self._events: asyncio.Queue[Any] = asyncio.Queue(maxsize=self._settings.event_queue_max)
        self._lifecycle = EngineLifecycle()
        self._fatal: RealtimeError | None = None
        self._started = False
        self._closed = False
        self._tool_batches: dict[str, _ToolBatch] = {}
        self._tool_tasks: set[asyncio.Task] = set()

    # --- lifecycle -------------------------------------------------------

    async def start(self) -> RealtimeEngine:
        if not self._started:
            self._started = True
            self._lifecycle.start(self._reader_loop(), self._writer_loop())
        return self

    async def __aenter__(self) -> RealtimeEngine:
        return await self.start()

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def closed(self) -> bool:
        return self._closed or self._lifecycle.stopping

    @property
    def fatal_error(self) -> RealtimeError | None:
        return self._fatal

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    async def close(self) -> None:
        """Stop both loops, fail queued intents and close the transport."""
        if self._closed:
            return
        self._closed = True
        self._lifecycle.signal_stop()
        self.state.freeze()
        self._fail_queued(ConnectionClosed("engine closed"))

        current = asyncio.current_task()
        tool_tasks = [task for task in self._tool_tasks if task is not current]
        for task in tool_tasks:
            task.cancel()
        await self._lifecycle.stop()
        for task in tool_tasks:
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await task

        with contextlib.suppress(Exception):
            await asyncio.wait_for(self._transport.close(), timeout=self._settings.close_timeout_s)
        logger.info("realtime engine closed")

    def split(self) -> tuple[EngineSender, EngineReceiver]:
        """Independent send and receive halves; closing either closes both."""
        return EngineSender(self), EngineReceiver(self)

    def _closed_error(self) -> ConnectionClosed:
        if self._fatal is not None:
            return ConnectionClosed(f"connection lost: {self._fatal}")
        return ConnectionClosed()

    def _ensure_open(self) -> None:
        if self._fatal is not None or self._closed or self._lifecycle.stopping:
            raise self._closed_error()

    def _on_fatal(self, exc: RealtimeError) -> None:
        if self._fatal is not None or self._closed:
            return
        self._fatal = exc
        logger.warning("realtime connection lost: %s", exc)
        self.state.freeze()
        self._lifecycle.signal_stop()
        self._fail_queued(self._closed_error())

    def _fail_queued(self, exc: BaseException) -> None:
        while True:
            try:
                entry = self._outbound.get_nowait()
            except asyncio.QueueEmpty:
                break
            entry.fail(exc)

    # --- outbound --------------------------------------------------------

    async def _submit(self, event: ClientEvent, *, wait_sent: bool = False) -> str:
        """Encode and enqueue an intent; optionally wait until it hit the wire."""
        self._ensure_open()
        if event.event_id is None:
            event = replace(event, event_id=new_event_id())
        try:
            text = encode_client_event(event)
        except TypeError as exc:
            raise InvalidIntent(event.TYPE, f"payload is not JSON serializable: {exc}") from exc

        sent = asyncio.get_running_loop().create_future() if wait_sent else None
        entry = _Outbound(event_type=event.TYPE, event_id=event.event_id, text=text, sent=sent)
        ok, _ = await self._lifecycle.run_until_stopped(self._outbound.put(entry))
        if not ok:
            raise self._closed_error()
        if sent is not None:
            ok, _ = await self._lifecycle.run_until_stopped(sent)
            if not ok:
                raise self._closed_error()
        return event.event_id

    async def _writer_loop(self) -> None:
        try:
            while True:
                ok, entry = await self._lifecycle.run_until_stopped(self._outbound.get())
                if not ok:
                    return
                if self._lifecycle.stopping:
                    entry.fail(self._closed_error())
                    return
                if logger.isEnabledFor(logging.DEBUG):
                    logger.debug("sent %s", truncate_for_log(entry.text))
                try:
                    await self._transport.send(entry.text)
                except asyncio.CancelledError:
                    entry.fail(self._closed_error())
                    raise
                except RealtimeError as exc:
                    entry.fail(exc)
                    self._on_fatal(exc)
                    return
                except Exception as exc:
                    logger.exception("failed to send %s", entry.event_type)
                    err = TransportError(f"send failed: {exc}")
                    entry.fail(err)
                    self._on_fatal(err)
                    return
                entry.done()
        except asyncio.CancelledError:
            return

    # --- inbound ---------------------------------------------------------

    def _decode(self, raw: str) -> Any:
        try:
            msg = parse_server_message(raw)
        except ValueError as exc:
            logger.warning("undecodable server message: %s", exc)
            return ev.UnknownEvent(type="", payload={"raw": raw}, reason=str(exc))
        try:
            return event_from_dict(msg)
        except UnknownEventType:
            logger.warning("unknown server event type %s", msg["type"])
            return ev.UnknownEvent(type=msg["type"], payload=msg, reason="unknown event type")
        except ValueError as exc:
            logger.warning("malformed %s event: %s", msg["type"], exc)
            return ev.UnknownEvent(type=msg["type"], payload=msg, reason=str(exc))

    async def _reader_loop(self) -> None:
        try:
            while not self._lifecycle.stopping:
                try:
                    raw = await self._transport.recv()
                except RealtimeError as exc:
                    self._on_fatal(exc)
                    return
                except Exception as exc:
                    logger.exception("transport recv failed")
                    self._on_fatal(TransportError(f"recv failed: {exc}"))
                    return

                if logger.isEnabledFor(logging.DEBUG):
                    logger.debug("recv %s", truncate_for_log(raw))
                event = self._decode(raw)
                try:
                    apply_event(self.state, event)
                except ConnectionClosed:
                    return
                except Exception:
                    logger.exception("failed to apply %s", type(event).__name__)
                await self._after_apply(event)
                self._streams.feed(event)
                await self._dispatch_handlers(event)

                ok, _ = await self._lifecycle.run_until_stopped(self._events.put(event))
                if not ok:
                    return
        except asyncio.CancelledError:
            return

    async def _after_apply(self, event: Any) -> None:
        if isinstance(event, ev.InputAudioBufferSpeechStarted):
            await self._maybe_auto_barge_in()
        elif isinstance(event, ev.ResponseFunctionCallArgumentsDone):
            self._maybe_run_tool(event)
        elif isinstance(event, ev.ResponseDone):
            batch = self._tool_batches.get(event.response.id)
            if batch is not None:
                batch.response_done = True
                await self._continue_after_tools(event.response.id)

    async def _dispatch_handlers(self, event: Any) -> None:
        handlers = self.handlers
        if handlers.on_raw_event is not None:
            try:
                await call_handler(handlers.on_raw_event, event)
            except Exception:
                logger.exception("on_raw_event handler failed for %s", type(event).__name__)
        if handlers.on_text is not None and isinstance(event, ev.ResponseOutputTextDone):
            try:
                await call_handler(handlers.on_text, event.text)
            except Exception:
                logger.exception("on_text handler failed")

    async def _maybe_auto_barge_in(self) -> None:
        if not self._settings.auto_barge_in:
            return
        session = self.state.session.session
        if session is None or not session.vad_interrupt_response:
            return
        if self.state.responses.default_response_id is None and not self.state.audio.output_audio_active:
            return
        try:
            await self.barge_in()
        except RealtimeError as exc:
            logger.warning("auto barge-in skipped: %s", exc)

    # --- tools -----------------------------------------------------------

    def _maybe_run_tool(self, event: ev.ResponseFunctionCallArgumentsDone) -> None:
        name = event.name or self.state.responses.function_name(event.call_id) or ""
        registered = bool(name) and name in self.tools
        if self.handlers.on_tool_call is None and not (self._settings.auto_tool_response and registered):
            return
        if self._settings.auto_tool_response:
            self._tool_batches.setdefault(event.response_id, _ToolBatch()).calls.add(event.call_id)
        task = asyncio.create_task(self._run_tool(event, name))
        self._tool_tasks.add(task)
        task.add_done_callback(self._tool_tasks.discard)

    async def _run_tool(self, event: ev.ResponseFunctionCallArgumentsDone, name: str) -> None:
        try:
            try:
                call = ToolCall.from_wire(
                    name=name,
                    call_id=event.call_id,
                    arguments=event.arguments,
                    response_id=event.response_id,
                    item_id=event.item_id,
                    output_index=event.output_index,
                )
                if self.handlers.on_tool_call is not None:
                    result = as_tool_result(call, await call_handler(self.handlers.on_tool_call, call))
                else:
                    result = await self.tools.dispatch(call)
                output = result.output_text()
            except Exception as exc:
                logger.warning("tool %s failed: %s", name, exc)
                output = orjson.dumps({"error": str(exc)}).decode("utf-8")
            await self.send_tool_output(event.call_id, output)
        except RealtimeError as exc:
            logger.warning("output for tool call %s not delivered: %s", event.call_id, exc)
            return
        finally:
            batch = self._tool_batches.get(event.response_id)
            if batch is not None:
                batch.calls.discard(event.call_id)
        await self._continue_after_tools(event.response_id)

    async def _continue_after_tools(self, response_id: str) -> None:
        """Ask for the follow-up response once the calling response is done and every output is in."""
        batch = self._tool_batches.get(response_id)
        if batch is None or batch.calls or not batch.response_done:
            return
        del self._tool_batches[response_id]
        try:
            await self.create_response()
        except RealtimeError as exc:
            logger.warning("follow-up response after tool calls not sent: %s", exc)

    # --- consumer --------------------------------------------------------

    async def _next_from(self, queue: asyncio.Queue) -> Any:
        with contextlib.suppress(asyncio.QueueEmpty):
            return queue.get_nowait()
        if self._lifecycle.stopping:
            return None
        ok, item = await self._lifecycle.run_until_stopped(queue.get())
        if ok:
            return item
        with contextlib.suppress(asyncio.QueueEmpty):
            return queue.get_nowait()
        return None

    async def next_event(self) -> Any:
        """Next applied server event, or None once the stream has ended.

        Events queued before shutdown are still delivered.
        """
        return await self._next_from(self._events)

    async def next_text(self) -> str | None:
        """Next finished text output (`response.output_text.done`)."""
        return await self._next_from(self._streams.text)

    async def next_voice_event(self) -> VoiceEvent | None:
        return await self._next_from(self._streams.voice)

    async def next_audio_chunk(self) -> AudioChunk | None:
        """Next decoded output audio chunk."""
        return await self._next_from(self._streams.audio)

    async def next_transcript(self) -> TranscriptChunk | None:
        return await self._next_from(self._streams.transcripts)

    async def voice_events(self) -> AsyncIterator[VoiceEvent]:
        while True:
            event = await self.next_voice_event()
            if event is None:
                return
            yield event

    def __aiter__(self) -> RealtimeEngine:
        return self

    async def __anext__(self) -> Any:
        event = await self.next_event()
        if event is None:
            raise StopAsyncIteration
        return event

    async def ask(self, text: str) -> str:
        """Say `text`, request a response and return its final text or transcript.

        Events read while waiting are consumed here and not surfaced again.
        """
        await self.say(text)
        await self.respond()
        response_id: str | None = None
        parts: list[str] = []
        while True:
            event = await self.next_event()
            if event is None:
                raise self._closed_error()
            if isinstance(event, ev.ResponseCreated) and not self.state.responses.is_out_of_band(event.response.id):
                response_id = event.response.id
            elif isinstance(event, ev.ResponseOutputTextDone) and event.response_id == response_id:
                parts.append(event.text)
            elif isinstance(event, ev.ResponseOutputAudioTranscriptDone) and event.response_id == response_id:
                parts.append(event.transcript)
            elif isinstance(event, ev.ResponseDone) and event.response.id == response_id:
                return "".join(parts)


__all__ = ["RealtimeEngine"]
