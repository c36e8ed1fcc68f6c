"""Process settings for Shutdown on LAN (environment / .env driven).

These tune how the process runs. The port, addresses and secret live in
the persisted AppConfiguration handled by the configuration stores.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    """Minimal configuration"""

    DEBUG = _env_flag("SHUTDOWN_ON_LAN_DEBUG")
    LOG_LEVEL = os.getenv("SHUTDOWN_ON_LAN_LOG_LEVEL", "INFO").upper()
    LOG_FILE = os.getenv("SHUTDOWN_ON_LAN_LOG_FILE", "shutdown-on-lan.log")

    # Overrides the resolved storage directory for the file backends
    CONFIG_DIR = os.getenv("SHUTDOWN_ON_LAN_CONFIG_DIR", "")

    # Log the power-off instead of running it
    DRY_RUN = _env_flag("SHUTDOWN_ON_LAN_DRY_RUN")

    @classmethod
    def config_dir_override(cls) -> Path | None:
        return Path(cls.CONFIG_DIR).expanduser() if cls.CONFIG_DIR else None


config = Config()
