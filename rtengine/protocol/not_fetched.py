"""Marker for audio payloads the server did not deliver."""

from __future__ import annotations


class NotFetched:
    """Stands in for raw audio that is only available via conversation.item.retrieve."""

    __slots__ = ()
    _instance: NotFetched | None = None

    def __new__(cls) -> NotFetched:
        if cls._instance is None:
            cls._instance = object.__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_FETCHED"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> NotFetched:
        return self

    def __deepcopy__(self, memo: dict) -> NotFetched:
        return self


NOT_FETCHED = NotFetched()

__all__ = ["NOT_FETCHED", "NotFetched"]
