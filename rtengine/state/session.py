"""Session state owner: mirror of the server session plus mutation rules."""

from __future__ import annotations

import copy
import logging
from typing import Any

from rtengine.protocol.session import Session, normalize_session_fields
from rtengine.protocol.client_events import SessionUpdate
from rtengine.protocol.validation import validate_session_fields
from rtengine.errors import VoiceLocked, InvalidIntent, ConnectionClosed, ImmutableFieldChange

logger = logging.getLogger(__name__)


class SessionState:
    """Holds the last session snapshot the server reported.

    Updates requested by the client are validated here but never applied
    directly; the mirror only changes on `session.created` / `session.updated`.
    """

    def __init__(self) -> None:
        self._session: Session | None = None
        self._model: str | None = None
        self._has_emitted_audio = False
        self._frozen = False

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def model(self) -> str | None:
        if self._model is not None:
            return self._model
        return self._session.model if self._session is not None else None

    @property
    def has_emitted_audio(self) -> bool:
        return self._has_emitted_audio

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True

    def _check_open(self) -> None:
        if self._frozen:
            raise ConnectionClosed()

    def apply_server_snapshot(self, session: Session, *, created: bool = False) -> None:
        self._check_open()
        if created and self._model is None:
            self._model = session.model
        elif self._model is not None and session.model not in (None, self._model):
            logger.warning("server reported model %r, keeping %r", session.model, self._model)
        self._session = copy.deepcopy(session)

    def mark_audio_emitted(self) -> None:
        self._check_open()
        self._has_emitted_audio = True

    def request_update(self, partial: dict[str, Any]) -> SessionUpdate:
        """Validate a partial session update and build its intent."""
        self._check_open()
        if not isinstance(partial, dict):
            raise InvalidIntent("session.update", "session must be an object")

        flat = validate_session_fields(partial)

        if "model" in flat:
            current = self.model
            if current is not None and flat["model"] != current:
                raise ImmutableFieldChange("model", current, flat["model"])

        if "voice" in flat and self._has_emitted_audio:
            current_voice = self._session.voice if self._session is not None else None
            raise VoiceLocked(current_voice, flat["voice"])

        return SessionUpdate(session=copy.deepcopy(partial))

    def preview_update(self, partial: dict[str, Any]) -> Session:
        """Return the session the server should report after applying `partial`.

        Absent keys are untouched. An empty string clears instructions, an empty
        list clears tools, and an explicit None clears turn detection.
        """
        merged = self._session.to_dict() if self._session is not None else {}
        for key, value in normalize_session_fields(partial).items():
            if key == "instructions" and value == "":
                merged[key] = None
                continue
            merged[key] = copy.deepcopy(value)
        return Session.from_dict(merged)


__all__ = ["SessionState"]
