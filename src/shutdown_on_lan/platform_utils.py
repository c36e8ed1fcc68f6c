"""Platform detection and cross-platform utilities for Shutdown on LAN"""

import os
import platform
import sys

import psutil

# Platform detection
IS_WINDOWS = sys.platform == "win32"
IS_LINUX = sys.platform.startswith("linux")
IS_MACOS = sys.platform == "darwin"


def is_privileged() -> bool:
    """Return True when running as root (POSIX) or an administrator (Windows)."""
    if IS_WINDOWS:
        import ctypes

        try:
            return bool(ctypes.windll.shell32.IsUserAnAdmin())
        except (AttributeError, OSError):
            return False
    return os.geteuid() == 0


def interface_name_for(address: str) -> str | None:
    """Find the name of the local network interface that owns ``address``."""
    for name, addrs in psutil.net_if_addrs().items():
        for addr in addrs:
            if addr.address == address:
                return name
    return None


def get_platform_info() -> dict:
    """Get detailed platform information."""
    return {
        "system": platform.system(),
        "release": platform.release(),
        "python_version": platform.python_version(),
        "is_windows": IS_WINDOWS,
        "is_linux": IS_LINUX,
        "is_macos": IS_MACOS,
        "is_privileged": is_privileged(),
    }
