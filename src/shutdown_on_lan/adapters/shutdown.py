"""Shutdown trigger adapters (ask the host OS to power off)."""

from __future__ import annotations

import logging
import shutil
import subprocess

from ..core.errors import ShutdownFailed
from ..platform_utils import IS_MACOS, IS_WINDOWS

logger = logging.getLogger(__name__)


class SystemShutdownTrigger:
    """Runs the platform's power-off command once; failures are not retried."""

    def shutdown(self) -> None:
        args = _shutdown_command()
        logger.info("Requesting power-off: %s", " ".join(args))
        try:
            result = _run(args)
        except (OSError, subprocess.SubprocessError) as e:
            raise ShutdownFailed(f"{args[0]}: {e}") from e

        if result.returncode != 0:
            detail = (result.stderr or "").strip()
            raise ShutdownFailed(detail or f"{args[0]} exited with status {result.returncode}")


class DryRunShutdownTrigger:
    """Logs the power-off it would perform instead of running it."""

    def __init__(self):
        self.calls = 0

    def shutdown(self) -> None:
        self.calls += 1
        logger.warning("Dry run: would power off with %s", " ".join(_shutdown_command()))


def _shutdown_command() -> list[str]:
    if IS_WINDOWS:
        return ["shutdown", "/s", "/t", "0"]
    if IS_MACOS:
        return ["osascript", "-e", 'tell app "System Events" to shut down']
    if _has_cmd("systemctl"):
        return ["systemctl", "poweroff"]
    return ["shutdown", "-h", "now"]


def _has_cmd(name: str) -> bool:
    return shutil.which(name) is not None


def _run(args: list[str]) -> subprocess.CompletedProcess[str]:
    return subprocess.run(args, capture_output=True, text=True, timeout=30)
