"""Duplex text channel the engine runs on."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Transport(Protocol):
    """An established full-duplex text channel.

    `recv` raises ConnectionClosed once the peer has gone away and
    TransportError for any other I/O failure; `send` does the same.
    """

    async def send(self, text: str) -> None: ...

    async def recv(self) -> str: ...

    async def close(self) -> None: ...


__all__ = ["Transport"]
