"""Shutdown on LAN - the opposite of wake-on-LAN"""

__version__ = "1.0.0"
__description__ = "Remotely shut down a machine by sending it a shared secret over TCP"

__all__ = ["main", "ListenerService", "__version__"]


def __getattr__(name: str):
    """Lazy import so the configuration modules load without the CLI stack."""
    if name == "ListenerService":
        from .listener_service import ListenerService

        return ListenerService
    if name == "main":
        from .main import main

        return main
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
