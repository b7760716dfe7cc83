"""Response lifecycle owner: active responses, pending creates and streamed deltas."""

from __future__ import annotations

import logging
from typing import Any
from collections import deque
from dataclasses import field, dataclass
from collections.abc import Callable

from rtengine.config.engine import FINISHED_RESPONSES_MAX
from rtengine.protocol.items import Item
from rtengine.protocol.validation import validate_response_config
from rtengine.protocol.response import Response, RateLimit, ServerError
from rtengine.protocol.client_events import ResponseCancel, ResponseCreate
from rtengine.errors import InvalidIntent, ConnectionClosed, ResponseConflict
from rtengine.config.protocol import (
    CONVERSATION_AUTO,
    CONVERSATION_NONE,
    CONVERSATION_DEFAULT,
    RESPONSE_TERMINAL_STATUSES,
)

logger = logging.getLogger(__name__)

DELTA_TEXT = "text"
DELTA_TRANSCRIPT = "transcript"


@dataclass(slots=True)
class _Streams:
    text: dict[tuple[str, int], str] = field(default_factory=dict)
    transcripts: dict[tuple[str, int], str] = field(default_factory=dict)
    arguments: dict[str, str] = field(default_factory=dict)
    function_names: dict[str, str] = field(default_factory=dict)


class ResponseTracker:
    """Tracks in-flight responses and the at-most-one default response rule.

    A default-conversation create is pending from submission until the server
    answers with `response.created` or an `error` echoing its event id.
    Streamed text, transcripts and arguments are grouped per response and leave
    memory together with the response once it falls out of the finished history.
    """

    def __init__(self, *, finished_max: int = FINISHED_RESPONSES_MAX) -> None:
        self._active: dict[str, Response] = {}
        self._out_of_band_ids: set[str] = set()
        self._finished: deque[Response] = deque(maxlen=max(0, int(finished_max)))
        self._default_response_id: str | None = None
        self._pending_default_event_id: str | None = None
        self._pending_out_of_band: list[str] = []
        self._streams: dict[str, _Streams] = {}
        self._finished_streams: dict[str, _Streams] = {}
        self._rate_limits: dict[str, RateLimit] = {}
        self._frozen = False

    # --- read side -------------------------------------------------------

    @property
    def active(self) -> dict[str, Response]:
        return dict(self._active)

    @property
    def finished(self) -> list[Response]:
        return list(self._finished)

    @property
    def default_response_id(self) -> str | None:
        return self._default_response_id

    @property
    def has_pending_default(self) -> bool:
        return self._pending_default_event_id is not None

    @property
    def default_in_flight(self) -> bool:
        return self._default_response_id is not None or self._pending_default_event_id is not None

    @property
    def rate_limits(self) -> dict[str, RateLimit]:
        return dict(self._rate_limits)

    def get(self, response_id: str) -> Response | None:
        found = self._active.get(response_id)
        if found is not None:
            return found
        for response in self._finished:
            if response.id == response_id:
                return response
        return None

    def is_out_of_band(self, response_id: str) -> bool:
        return response_id in self._out_of_band_ids

    def _lookup(self, pick: Callable[[_Streams], dict], key: Any) -> Any:
        for streams in self._streams.values():
            if key in pick(streams):
                return pick(streams)[key]
        for streams in reversed(self._finished_streams.values()):
            if key in pick(streams):
                return pick(streams)[key]
        return None

    def text(self, item_id: str, content_index: int = 0) -> str:
        return self._lookup(lambda s: s.text, (item_id, content_index)) or ""

    def transcript(self, item_id: str, content_index: int = 0) -> str:
        return self._lookup(lambda s: s.transcripts, (item_id, content_index)) or ""

    def arguments(self, call_id: str) -> str:
        return self._lookup(lambda s: s.arguments, call_id) or ""

    def function_name(self, call_id: str) -> str | None:
        return self._lookup(lambda s: s.function_names, call_id)

    @property
    def tracked_stream_count(self) -> int:
        """Responses whose streamed values are still held, active or finished."""
        return len(self._streams) + len(self._finished_streams)

    def freeze(self) -> None:
        self._frozen = True

    def _check_open(self) -> None:
        if self._frozen:
            raise ConnectionClosed()

    # --- client intents --------------------------------------------------

    def create(self, config: dict[str, Any] | None = None, *, event_id: str) -> ResponseCreate:
        """Build a response.create intent and reserve its conversation slot.

        Raises ResponseConflict while a default-conversation response is in
        flight or still pending. Out-of-band requests are never constrained.
        """
        self._check_open()
        validate_response_config(config)
        conversation = (config or {}).get("conversation")
        if conversation not in (None, CONVERSATION_AUTO, CONVERSATION_DEFAULT, CONVERSATION_NONE):
            raise InvalidIntent("response.create", f"unsupported conversation {conversation!r}")

        payload = dict(config) if config is not None else None
        if conversation == CONVERSATION_DEFAULT:
            payload["conversation"] = CONVERSATION_AUTO

        if conversation == CONVERSATION_NONE:
            self._pending_out_of_band.append(event_id)
        else:
            if self.default_in_flight:
                raise ResponseConflict(self._default_response_id)
            self._pending_default_event_id = event_id
        return ResponseCreate(response=payload, event_id=event_id)

    def release_pending(self, event_id: str) -> None:
        """Drop a pending create whose intent never reached the wire."""
        if self._pending_default_event_id == event_id:
            self._pending_default_event_id = None
        if event_id in self._pending_out_of_band:
            self._pending_out_of_band.remove(event_id)

    def cancel(self, response_id: str | None = None) -> ResponseCancel:
        # Always sent; with nothing in flight the server answers with a non-fatal error.
        self._check_open()
        return ResponseCancel(response_id=response_id)

    # --- server events ---------------------------------------------------

    def on_created(self, response: Response) -> None:
        self._check_open()
        if response.conversation_id is None and self._pending_out_of_band:
            self._pending_out_of_band.pop(0)
            self._out_of_band_ids.add(response.id)
        else:
            if self._default_response_id is not None and self._default_response_id != response.id:
                logger.warning(
                    "response %s created while %s is still active", response.id, self._default_response_id
                )
            self._default_response_id = response.id
            self._pending_default_event_id = None
        self._active[response.id] = response

    def on_done(self, response: Response) -> None:
        self._check_open()
        if response.status not in RESPONSE_TERMINAL_STATUSES:
            logger.warning("response %s done with non-terminal status %r", response.id, response.status)
        self._active.pop(response.id, None)
        if self._default_response_id == response.id:
            self._default_response_id = None
        streams = self._streams.pop(response.id, None)
        maxlen = self._finished.maxlen or 0
        if maxlen and len(self._finished) == maxlen:
            self._finished_streams.pop(self._finished[0].id, None)
        self._finished.append(response)
        if maxlen and streams is not None:
            self._finished_streams[response.id] = streams

    def on_error(self, error: ServerError) -> None:
        self._check_open()
        if error.event_id:
            self.release_pending(error.event_id)

    def on_output_item_added(self, response_id: str, output_index: int, item: Item | None) -> None:
        self._check_open()
        response = self._active.get(response_id)
        if response is None or item is None:
            return
        if output_index < len(response.output):
            response.output[output_index] = item
        else:
            response.output.append(item)

    def on_output_item_done(self, response_id: str, output_index: int, item: Item | None) -> None:
        self.on_output_item_added(response_id, output_index, item)

    def _streams_for(self, response_id: str) -> _Streams | None:
        if response_id in self._finished_streams or (
            response_id not in self._streams and any(r.id == response_id for r in self._finished)
        ):
            logger.warning("late stream update for finished response %s; dropped", response_id)
            return None
        return self._streams.setdefault(response_id, _Streams())

    def append_delta(self, kind: str, response_id: str, item_id: str, content_index: int, delta: str) -> None:
        self._check_open()
        if kind not in (DELTA_TEXT, DELTA_TRANSCRIPT):
            raise ValueError(f"unknown delta kind {kind!r}")
        streams = self._streams_for(response_id)
        if streams is None:
            return
        target = streams.text if kind == DELTA_TEXT else streams.transcripts
        key = (item_id, content_index)
        target[key] = target.get(key, "") + delta

    def finish_delta(self, kind: str, response_id: str, item_id: str, content_index: int, value: str | None) -> None:
        """Replace an accumulated value with the final one from a `*.done` event."""
        self._check_open()
        if value is None or kind not in (DELTA_TEXT, DELTA_TRANSCRIPT):
            return
        streams = self._streams_for(response_id)
        if streams is None:
            return
        target = streams.text if kind == DELTA_TEXT else streams.transcripts
        target[(item_id, content_index)] = value

    def append_arguments(self, response_id: str, call_id: str, delta: str) -> None:
        self._check_open()
        streams = self._streams_for(response_id)
        if streams is not None:
            streams.arguments[call_id] = streams.arguments.get(call_id, "") + delta

    def finish_arguments(self, response_id: str, call_id: str, arguments: str, name: str | None = None) -> None:
        self._check_open()
        streams = self._streams_for(response_id)
        if streams is None:
            return
        streams.arguments[call_id] = arguments
        if name:
            streams.function_names[call_id] = name

    def replace_rate_limits(self, limits: list[RateLimit]) -> None:
        self._check_open()
        self._rate_limits = {limit.name: limit for limit in limits}


__all__ = [
    "DELTA_TEXT",
    "DELTA_TRANSCRIPT",
    "ResponseTracker",
]
