"""Test utilities.

Focused modules:
- transport.py: in-memory duplex transport fake
- events.py: server event payload builders
- engine.py: engine startup and event scanning helpers
"""

from __future__ import annotations
