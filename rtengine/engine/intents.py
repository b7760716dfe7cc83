"""Outbound intent API shared by the engine and its sender half."""

from __future__ import annotations

import base64
from typing import Any
from abc import ABC, abstractmethod
from collections.abc import Iterable, AsyncIterable

from rtengine.state import EngineState
from rtengine.config.protocol import ROOT_ITEM_ID
from rtengine.errors import ItemNotFound, InvalidIntent
from rtengine.protocol.content import input_text
from rtengine.protocol.client_events import (
    ClientEvent,
    new_event_id,
    OutputAudioBufferClear,
    ConversationItemCreate,
    ConversationItemDelete,
    ConversationItemRetrieve,
    ConversationItemTruncate,
)
from rtengine.protocol.items import (
    Item,
    MessageItem,
    item_from_dict,
    FunctionCallOutputItem,
    McpApprovalResponseItem,
)


class IntentsMixin(ABC):
    """Validates intents against local state, then hands them to `_submit`.

    Implementers provide `state`, `_ensure_open()` and `_submit(event, wait_sent=...)`,
    which enqueues the event and returns its event id.
    """

    state: EngineState

    @abstractmethod
    def _ensure_open(self) -> None: ...

    @abstractmethod
    async def _submit(self, event: ClientEvent, *, wait_sent: bool = False) -> str: ...

    # --- session ---------------------------------------------------------

    async def update_session(self, partial: dict[str, Any], *, wait_sent: bool = False) -> str:
        self._ensure_open()
        return await self._submit(self.state.session.request_update(partial), wait_sent=wait_sent)

    # --- input audio -----------------------------------------------------

    async def append_audio(self, audio: str) -> str:
        """Append one base64 chunk to the input buffer (no server acknowledgement)."""
        self._ensure_open()
        session = self.state.session.session
        fmt = session.input_audio_format if session is not None else None
        return await self._submit(self.state.audio.append(audio, audio_format=fmt))

    async def append_audio_bytes(self, pcm: bytes) -> str | None:
        if not pcm:
            return None
        return await self.append_audio(base64.b64encode(pcm).decode("ascii"))

    async def commit_audio(self, *, wait_sent: bool = False) -> str:
        self._ensure_open()
        event_id = new_event_id()
        event = self.state.audio.commit(event_id=event_id)
        try:
            return await self._submit(event, wait_sent=wait_sent)
        except BaseException:
            self.state.audio.release_commit(event_id)
            raise

    async def clear_audio(self, *, wait_sent: bool = False) -> str:
        self._ensure_open()
        return await self._submit(self.state.audio.clear(), wait_sent=wait_sent)

    async def send_audio_bytes(self, pcm: bytes) -> str:
        """Append raw audio and commit it in one step."""
        await self.append_audio_bytes(pcm)
        return await self.commit_audio()

    async def stream_audio_bytes(
        self, chunks: AsyncIterable[bytes] | Iterable[bytes], *, commit_each: bool = True
    ) -> int:
        """Push audio chunks from an (async) iterable; returns how many were sent.

        With `commit_each` every chunk is committed as its own segment, otherwise
        commits are left to server VAD or a later `commit_audio()`. Empty chunks
        are skipped.
        """
        sent = 0
        if isinstance(chunks, AsyncIterable):
            async for chunk in chunks:
                sent += await self._stream_chunk(chunk, commit_each)
        else:
            for chunk in chunks:
                sent += await self._stream_chunk(chunk, commit_each)
        return sent

    async def _stream_chunk(self, chunk: bytes, commit_each: bool) -> int:
        if not chunk:
            return 0
        if commit_each:
            await self.send_audio_bytes(chunk)
        else:
            await self.append_audio_bytes(chunk)
        return 1

    # --- conversation ----------------------------------------------------

    def _require_item(self, item_id: str) -> None:
        if item_id not in self.state.conversation:
            raise ItemNotFound(item_id)

    async def create_item(
        self,
        item: Item | dict[str, Any],
        previous_item_id: str | None = None,
        *,
        wait_sent: bool = False,
    ) -> str:
        self._ensure_open()
        if isinstance(item, dict):
            try:
                item = item_from_dict(item)
            except ValueError as exc:
                raise InvalidIntent("conversation.item.create", str(exc)) from exc
        if previous_item_id is not None and previous_item_id != ROOT_ITEM_ID:
            self._require_item(previous_item_id)
        event = ConversationItemCreate(item=item, previous_item_id=previous_item_id)
        return await self._submit(event, wait_sent=wait_sent)

    async def retrieve_item(self, item_id: str, *, wait_sent: bool = False) -> str:
        self._ensure_open()
        self._require_item(item_id)
        return await self._submit(ConversationItemRetrieve(item_id=item_id), wait_sent=wait_sent)

    async def truncate_item(
        self, item_id: str, content_index: int, audio_end_ms: int, *, wait_sent: bool = False
    ) -> str:
        self._ensure_open()
        if audio_end_ms < 0:
            raise InvalidIntent("conversation.item.truncate", "audio_end_ms must be >= 0")
        self.state.conversation.check_truncatable(item_id, content_index)
        event = ConversationItemTruncate(item_id=item_id, content_index=content_index, audio_end_ms=audio_end_ms)
        return await self._submit(event, wait_sent=wait_sent)

    async def delete_item(self, item_id: str, *, wait_sent: bool = False) -> str:
        self._ensure_open()
        self._require_item(item_id)
        return await self._submit(ConversationItemDelete(item_id=item_id), wait_sent=wait_sent)

    async def say(self, text: str) -> str:
        """Add a user text message to the conversation."""
        return await self.create_item(MessageItem(role="user", content=[input_text(text)]))

    async def send_tool_output(self, call_id: str, output: str) -> str:
        return await self.create_item(FunctionCallOutputItem(call_id=call_id, output=output))

    async def approve_mcp(self, approval_request_id: str, reason: str | None = None) -> str:
        item = McpApprovalResponseItem(approval_request_id=approval_request_id, approve=True, reason=reason)
        return await self.create_item(item)

    async def deny_mcp(self, approval_request_id: str, reason: str | None = None) -> str:
        item = McpApprovalResponseItem(approval_request_id=approval_request_id, approve=False, reason=reason)
        return await self.create_item(item)

    # --- responses -------------------------------------------------------

    async def create_response(self, config: dict[str, Any] | None = None, *, wait_sent: bool = False) -> str:
        self._ensure_open()
        event_id = new_event_id()
        event = self.state.responses.create(config, event_id=event_id)
        try:
            return await self._submit(event, wait_sent=wait_sent)
        except BaseException:
            self.state.responses.release_pending(event_id)
            raise

    async def respond(self) -> str:
        """Ask for a response with the session defaults."""
        return await self.create_response()

    async def send_response(self, config: dict[str, Any]) -> str:
        return await self.create_response(config)

    async def cancel_response(self, response_id: str | None = None, *, wait_sent: bool = False) -> str:
        self._ensure_open()
        return await self._submit(self.state.responses.cancel(response_id), wait_sent=wait_sent)

    async def clear_output_audio(self, *, wait_sent: bool = False) -> str:
        self._ensure_open()
        return await self._submit(OutputAudioBufferClear(), wait_sent=wait_sent)

    async def barge_in(self) -> None:
        """Cancel the default response and flush queued output audio.

        The clear is queued right behind the cancel; neither waits for the server.
        """
        self._ensure_open()
        cancel, clear = self.state.audio.barge_in(self.state.responses.default_response_id)
        await self._submit(cancel)
        await self._submit(clear)


__all__ = ["IntentsMixin"]
