"""Conversation state owner: ordered item arena with content accumulation."""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Iterator

from rtengine.config.protocol import ROOT_ITEM_ID, ITEM_COMPLETED
from rtengine.protocol.not_fetched import NOT_FETCHED
from rtengine.errors import ItemNotFound, NotTruncatable, ConnectionClosed
from rtengine.protocol.items import Item, MessageItem, clone_item
from rtengine.protocol.content import ContentPart

logger = logging.getLogger(__name__)

CONTENT_TEXT = "text"
CONTENT_AUDIO = "audio"
CONTENT_TRANSCRIPT = "transcript"

_DEFAULT_PART_TYPE = {
    CONTENT_TEXT: "output_text",
    CONTENT_AUDIO: "output_audio",
    CONTENT_TRANSCRIPT: "output_audio",
}


def _decode_audio(data: str) -> bytes:
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"invalid base64 audio: {exc}") from exc


class ConversationStore:
    """Items keyed by id, linked through prev/next indices.

    Output audio is kept as decoded bytes per (item_id, content_index) so that
    truncation can clip it by duration; `retrieve` re-encodes it on the way out.
    """

    def __init__(self) -> None:
        self._items: dict[str, Item] = {}
        self._prev: dict[str, str | None] = {}
        self._next: dict[str, str | None] = {}
        self._head: str | None = None
        self._tail: str | None = None
        self._audio: dict[tuple[str, int], bytearray] = {}
        self._frozen = False

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Item]:
        for item_id in self.order():
            yield self._items[item_id]

    def freeze(self) -> None:
        self._frozen = True

    def _check_open(self) -> None:
        if self._frozen:
            raise ConnectionClosed()

    def order(self) -> list[str]:
        out: list[str] = []
        cursor = self._head
        while cursor is not None:
            out.append(cursor)
            cursor = self._next[cursor]
        return out

    def get(self, item_id: str) -> Item | None:
        return self._items.get(item_id)

    def previous_of(self, item_id: str) -> str | None:
        if item_id not in self._items:
            raise ItemNotFound(item_id)
        return self._prev[item_id]

    # --- linking ---------------------------------------------------------

    def _unlink(self, item_id: str) -> None:
        prev_id = self._prev.pop(item_id)
        next_id = self._next.pop(item_id)
        if prev_id is None:
            self._head = next_id
        else:
            self._next[prev_id] = next_id
        if next_id is None:
            self._tail = prev_id
        else:
            self._prev[next_id] = prev_id

    def _link_after(self, item_id: str, prev_id: str | None) -> None:
        next_id = self._head if prev_id is None else self._next[prev_id]
        self._prev[item_id] = prev_id
        self._next[item_id] = next_id
        if prev_id is None:
            self._head = item_id
        else:
            self._next[prev_id] = item_id
        if next_id is None:
            self._tail = item_id
        else:
            self._prev[next_id] = item_id

    def _anchor(self, item_id: str, previous_item_id: str | None) -> str | None:
        if previous_item_id is None:
            return self._tail
        if previous_item_id == ROOT_ITEM_ID:
            return None
        if previous_item_id == item_id or previous_item_id not in self._items:
            raise ItemNotFound(previous_item_id)
        return previous_item_id

    def insert(self, item: Item, previous_item_id: str | None = None) -> None:
        """Place `item` after `previous_item_id`.

        None appends at the tail, ROOT_ITEM_ID prepends at the head. An item
        that is already present is moved to the stated position.
        """
        self._check_open()
        item_id = item.id
        if not item_id:
            raise ValueError("item id is required to insert into the conversation")
        self._anchor(item_id, previous_item_id)
        if item_id in self._items:
            self._unlink(item_id)
        self._items[item_id] = clone_item(item)
        self._link_after(item_id, self._anchor(item_id, previous_item_id))

    def move(self, item_id: str, previous_item_id: str | None = None) -> None:
        """Re-link an existing item after `previous_item_id`, keeping its content."""
        self._check_open()
        if item_id not in self._items:
            raise ItemNotFound(item_id)
        self._anchor(item_id, previous_item_id)
        self._unlink(item_id)
        self._link_after(item_id, self._anchor(item_id, previous_item_id))

    def delete(self, item_id: str) -> None:
        self._check_open()
        if item_id not in self._items:
            raise ItemNotFound(item_id)
        self._unlink(item_id)
        del self._items[item_id]
        for key in [k for k in self._audio if k[0] == item_id]:
            del self._audio[key]

    # --- content ---------------------------------------------------------

    def _message(self, item_id: str) -> MessageItem:
        item = self._items.get(item_id)
        if item is None:
            raise ItemNotFound(item_id)
        if not isinstance(item, MessageItem):
            raise ValueError(f"item {item_id} has no content parts")
        return item

    def _part(self, item_id: str, content_index: int, kind: str) -> ContentPart:
        item = self._message(item_id)
        while len(item.content) <= content_index:
            item.content.append(ContentPart(type=_DEFAULT_PART_TYPE[kind]))
        return item.content[content_index]

    def add_part(self, item_id: str, content_index: int, part: ContentPart) -> None:
        self._check_open()
        item = self._message(item_id)
        while len(item.content) < content_index:
            item.content.append(ContentPart(type=part.type))
        if content_index < len(item.content):
            item.content[content_index] = part
        else:
            item.content.append(part)

    def apply_content_delta(self, item_id: str, content_index: int, delta: str, kind: str) -> None:
        """Append a streamed delta to the text, audio or transcript accumulator."""
        self._check_open()
        if kind not in _DEFAULT_PART_TYPE:
            raise ValueError(f"unknown content kind {kind!r}")
        part = self._part(item_id, content_index, kind)
        if kind == CONTENT_TEXT:
            part.text = (part.text or "") + delta
        elif kind == CONTENT_TRANSCRIPT:
            part.transcript = (part.transcript or "") + delta
        else:
            self._audio.setdefault((item_id, content_index), bytearray()).extend(_decode_audio(delta))

    def finish_content(self, item_id: str, content_index: int, kind: str, value: str | None) -> None:
        """Replace an accumulator with the final value from a `*.done` event."""
        self._check_open()
        if value is None:
            return
        part = self._part(item_id, content_index, kind)
        if kind == CONTENT_TEXT:
            part.text = value
        elif kind == CONTENT_TRANSCRIPT:
            part.transcript = value

    def mark_done(self, item_id: str, final_item: Item) -> None:
        self._check_open()
        current = self._items.get(item_id)
        if current is None:
            raise ItemNotFound(item_id)

        final = clone_item(final_item)
        if isinstance(current, MessageItem) and isinstance(final, MessageItem):
            if not final.content:
                final.content = current.content
            for idx, part in enumerate(final.content):
                if idx >= len(current.content):
                    break
                old = current.content[idx]
                if part.text is None:
                    part.text = old.text
                if part.transcript is None:
                    part.transcript = old.transcript
                if isinstance(part.audio, str):
                    self._audio[(item_id, idx)] = bytearray(_decode_audio(part.audio))
                    part.audio = NOT_FETCHED
        final.id = item_id
        final.status = final.status or ITEM_COMPLETED
        self._items[item_id] = final

    def check_truncatable(self, item_id: str, content_index: int) -> None:
        item = self._items.get(item_id)
        if item is None:
            raise ItemNotFound(item_id)
        if not isinstance(item, MessageItem) or item.role != "assistant":
            raise NotTruncatable(item_id, "only assistant messages can be truncated")
        if content_index < 0 or content_index >= len(item.content):
            raise NotTruncatable(item_id, f"no content part at index {content_index}")
        if not item.content[content_index].is_audio:
            raise NotTruncatable(item_id, "content part is not audio")

    def truncate(self, item_id: str, content_index: int, audio_end_ms: int, bytes_per_ms: float) -> None:
        """Clip assistant audio to `audio_end_ms` and drop its transcript."""
        self._check_open()
        self.check_truncatable(item_id, content_index)
        part = self._message(item_id).content[content_index]

        key = (item_id, content_index)
        if isinstance(part.audio, str):
            self._audio[key] = bytearray(_decode_audio(part.audio))
            part.audio = NOT_FETCHED
        buf = self._audio.get(key)
        if buf is not None:
            limit = int(max(0, audio_end_ms) * bytes_per_ms)
            del buf[limit:]
        part.transcript = ""

    def audio_bytes(self, item_id: str, content_index: int) -> bytes:
        return bytes(self._audio.get((item_id, content_index), b""))

    def retrieve(self, item_id: str) -> Item:
        """Return a copy of the stored item with accumulated audio re-encoded.

        Audio parts whose payload was never delivered carry NOT_FETCHED.
        """
        item = self._items.get(item_id)
        if item is None:
            raise ItemNotFound(item_id)
        out = clone_item(item)
        if isinstance(out, MessageItem):
            for idx, part in enumerate(out.content):
                if not part.is_audio:
                    continue
                buf = self._audio.get((item_id, idx))
                if buf is not None:
                    part.audio = base64.b64encode(bytes(buf)).decode("ascii")
                elif not isinstance(part.audio, str):
                    part.audio = NOT_FETCHED
        return out

    def replace_retrieved(self, item: Item) -> None:
        """Apply `conversation.item.retrieved`, keeping the item's position."""
        self._check_open()
        item_id = item.id
        if not item_id or item_id not in self._items:
            raise ItemNotFound(item_id or "")
        fresh = clone_item(item)
        if isinstance(fresh, MessageItem):
            for idx, part in enumerate(fresh.content):
                if isinstance(part.audio, str):
                    self._audio[(item_id, idx)] = bytearray(_decode_audio(part.audio))
                    part.audio = NOT_FETCHED
        self._items[item_id] = fresh


__all__ = [
    "CONTENT_AUDIO",
    "CONTENT_TEXT",
    "CONTENT_TRANSCRIPT",
    "ConversationStore",
]
