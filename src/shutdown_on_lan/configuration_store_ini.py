"""Linux Configuration Store for Shutdown on LAN

Stores the configuration as a flat INI file:
  root:  /etc/shutdown-on-lan/ShutDownOnLan.conf
  users: $XDG_CONFIG_HOME/shutdown-on-lan/ShutDownOnLan.conf
"""

import configparser
import io
import logging
import os
from pathlib import Path

from .configuration_store import FileConfigurationStore, decode_fields, encode_fields
from .core.config_model import AppConfiguration
from .core.errors import InvalidConfiguration, InvalidConfigurationFile

logger = logging.getLogger(__name__)

SECTION = "ShutdownOnLan"
DIR_NAME = "shutdown-on-lan"


def _new_parser() -> configparser.ConfigParser:
    # Secrets may contain '%', so no interpolation
    return configparser.ConfigParser(interpolation=None)


class IniConfigurationStore(FileConfigurationStore):
    """Configuration store backed by an INI-style key/value file."""

    FILE_NAME = "ShutDownOnLan.conf"

    def machine_storage_dir(self) -> Path:
        return Path("/etc") / DIR_NAME

    def user_storage_dir(self) -> Path:
        base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
        return Path(base) / DIR_NAME

    def encode(self, configuration: AppConfiguration) -> bytes:
        fields = encode_fields(configuration)
        secret = fields["secret"]
        # configparser strips surrounding whitespace and can't hold bare newlines
        if secret != secret.strip() or "\n" in secret or "\r" in secret:
            raise InvalidConfiguration(
                "secret has surrounding whitespace or line breaks and can't be stored in an INI file"
            )

        parser = _new_parser()
        parser[SECTION] = {key: str(value) for key, value in fields.items()}

        buffer = io.StringIO()
        parser.write(buffer)
        return buffer.getvalue().encode("utf-8")

    def decode(self, data: bytes) -> AppConfiguration:
        location = str(self.configuration_path())
        parser = _new_parser()
        try:
            parser.read_string(data.decode("utf-8"), source=location)
        except (UnicodeDecodeError, configparser.Error) as e:
            logger.error("Malformed INI file at %s: %s", location, e)
            raise InvalidConfigurationFile(location, f"malformed INI: {e}") from e

        if not parser.has_section(SECTION):
            raise InvalidConfigurationFile(location, f"missing [{SECTION}] section")
        return decode_fields(location, parser[SECTION])
