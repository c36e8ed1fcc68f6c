"""Windows Configuration Store for Shutdown on LAN

Stores three named values under SOFTWARE\\ShutdownOnLan:
  ip_addresses  REG_SZ     comma-joined address list
  port          REG_DWORD  listening port
  secret        REG_SZ     shared secret

The key lives under HKEY_LOCAL_MACHINE for administrators (the installed
service) and HKEY_CURRENT_USER for everyone else.
"""

import logging

from .configuration_store import (
    ADDRESSES_KEY,
    PORT_KEY,
    SECRET_KEY,
    ConfigurationStore,
    decode_fields,
    encode_fields,
)
from .core.config_model import AppConfiguration
from .core.errors import (
    ConfigurationFileUnwritable,
    MissingConfigurationFile,
    RegistryKeyNotReadable,
    RegistryKeyNotWritable,
    StorageUnwritable,
)
from .platform_utils import is_privileged

logger = logging.getLogger(__name__)

SUBKEY = r"SOFTWARE\ShutdownOnLan"
VALUE_NAMES = (ADDRESSES_KEY, PORT_KEY, SECRET_KEY)


class RegistryConfigurationStore(ConfigurationStore):
    """Configuration store backed by the Windows registry.

    Args:
        registry: Module exposing the winreg API. Defaults to the real
                  ``winreg``; tests pass a stand-in.
        privileged: Force machine-wide (True) or per-user (False) scope.
    """

    def __init__(self, registry=None, privileged: bool | None = None):
        if registry is None:
            import winreg as registry
        self._reg = registry
        self._privileged = privileged

    def _is_machine_wide(self) -> bool:
        return is_privileged() if self._privileged is None else self._privileged

    def _root_key(self):
        if self._is_machine_wide():
            return self._reg.HKEY_LOCAL_MACHINE
        return self._reg.HKEY_CURRENT_USER

    def storage_location(self) -> str:
        root = "HKEY_LOCAL_MACHINE" if self._is_machine_wide() else "HKEY_CURRENT_USER"
        return f"{root}\\{SUBKEY}"

    def ensure_storage_exists(self) -> None:
        try:
            with self._reg.CreateKeyEx(self._root_key(), SUBKEY, 0, self._reg.KEY_WRITE):
                pass
        except OSError as e:
            raise StorageUnwritable(self.storage_location(), e) from e

    def configuration_exists(self) -> bool:
        try:
            with self._reg.OpenKey(self._root_key(), SUBKEY, 0, self._reg.KEY_READ) as key:
                for name in VALUE_NAMES:
                    try:
                        self._reg.QueryValueEx(key, name)
                        return True
                    except FileNotFoundError:
                        continue
        except FileNotFoundError:
            return False
        return False

    def fetch(self) -> AppConfiguration:
        location = self.storage_location()
        logger.info("Looking up configuration in %s", location)
        try:
            key = self._reg.OpenKey(self._root_key(), SUBKEY, 0, self._reg.KEY_READ)
        except FileNotFoundError as e:
            raise MissingConfigurationFile(location) from e

        with key:
            fields = {
                ADDRESSES_KEY: self._read(key, ADDRESSES_KEY, self._reg.REG_SZ),
                PORT_KEY: self._read(key, PORT_KEY, self._reg.REG_DWORD),
                SECRET_KEY: self._read(key, SECRET_KEY, self._reg.REG_SZ),
            }
        return decode_fields(location, fields)

    def _read(self, key, name: str, expected_type: int):
        try:
            value, value_type = self._reg.QueryValueEx(key, name)
        except OSError as e:
            raise RegistryKeyNotReadable(self.storage_location(), name) from e
        if value_type != expected_type:
            raise RegistryKeyNotReadable(self.storage_location(), name)
        return value

    def save(self, configuration: AppConfiguration) -> None:
        fields = encode_fields(configuration)
        location = self.storage_location()
        try:
            key = self._reg.CreateKeyEx(self._root_key(), SUBKEY, 0, self._reg.KEY_WRITE)
        except OSError as e:
            raise StorageUnwritable(location, e) from e

        with key:
            self._write(key, ADDRESSES_KEY, self._reg.REG_SZ, fields[ADDRESSES_KEY])
            logger.debug("Set IP addresses to %s", fields[ADDRESSES_KEY])
            self._write(key, PORT_KEY, self._reg.REG_DWORD, fields[PORT_KEY])
            logger.debug("Set port to %s", fields[PORT_KEY])
            self._write(key, SECRET_KEY, self._reg.REG_SZ, fields[SECRET_KEY])
            logger.debug("Set secret")

    def _write(self, key, name: str, value_type: int, value) -> None:
        try:
            self._reg.SetValueEx(key, name, 0, value_type, value)
        except OSError as e:
            raise RegistryKeyNotWritable(self.storage_location(), name, e) from e

    def delete(self) -> None:
        try:
            self._reg.DeleteKey(self._root_key(), SUBKEY)
        except FileNotFoundError:
            return
        except OSError as e:
            raise ConfigurationFileUnwritable(self.storage_location(), e) from e
        logger.info("Deleted configuration key %s", self.storage_location())
