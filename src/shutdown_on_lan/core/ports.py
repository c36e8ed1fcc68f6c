"""Core ports (interfaces) for Shutdown on LAN.

The listener depends on these protocols rather than on platform
adapters, so tests can substitute fakes.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ShutdownTrigger(Protocol):
    """Asks the host OS to power off."""

    def shutdown(self) -> None:
        """Start a power-off; raise ShutdownFailed if the OS refuses."""
