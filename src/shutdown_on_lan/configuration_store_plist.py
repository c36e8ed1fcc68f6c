"""macOS Configuration Store for Shutdown on LAN

Stores the configuration as an XML property list:
  root:  /Library/Application Support/ShutdownOnLan/ShutDownOnLan.plist
  users: ~/Library/Application Support/ShutdownOnLan/ShutDownOnLan.plist
"""

import logging
import plistlib
from pathlib import Path
from xml.parsers.expat import ExpatError

from .configuration_store import APP_NAME, FileConfigurationStore, decode_fields, encode_fields
from .core.config_model import AppConfiguration
from .core.errors import InvalidConfiguration, InvalidConfigurationFile

logger = logging.getLogger(__name__)


class PlistConfigurationStore(FileConfigurationStore):
    """Configuration store backed by a property list document."""

    FILE_NAME = "ShutDownOnLan.plist"

    def machine_storage_dir(self) -> Path:
        return Path("/Library/Application Support") / APP_NAME

    def user_storage_dir(self) -> Path:
        return Path.home() / "Library" / "Application Support" / APP_NAME

    def encode(self, configuration: AppConfiguration) -> bytes:
        try:
            return plistlib.dumps(encode_fields(configuration), fmt=plistlib.FMT_XML)
        except (TypeError, OverflowError, ValueError) as e:
            raise InvalidConfiguration(str(e)) from e

    def decode(self, data: bytes) -> AppConfiguration:
        location = str(self.configuration_path())
        try:
            document = plistlib.loads(data)
        except (plistlib.InvalidFileException, ExpatError, ValueError) as e:
            logger.error("Corrupt property list at %s: %s", location, e)
            raise InvalidConfigurationFile(location, f"corrupt property list: {e}") from e

        if not isinstance(document, dict):
            raise InvalidConfigurationFile(location, "property list root is not a dictionary")
        return decode_fields(location, document)
