"""Configuration Store for Shutdown on LAN

Persists the AppConfiguration using whatever mechanism the host platform
favors:
  macOS:   property list under Application Support
  Linux:   INI file under /etc (or the user's XDG config directory)
  Windows: three values under a SOFTWARE\\ShutdownOnLan registry key

Every backend presents the same contract, and exactly one is chosen per
platform by get_configuration_store(). The privileged account resolves to
the machine-wide location; any other user gets a per-user location.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from .core.config_model import (
    AppConfiguration,
    MAX_PORT,
    default_configuration,
    format_addresses,
    parse_addresses,
)
from .core.errors import (
    ConfigurationFileUnwritable,
    InvalidConfiguration,
    InvalidConfigurationFile,
    MissingConfigurationFile,
    StorageUnwritable,
)
from .platform_utils import is_privileged

logger = logging.getLogger(__name__)

APP_NAME = "ShutdownOnLan"

# Names of the persisted fields, shared by every backend
PORT_KEY = "port"
ADDRESSES_KEY = "ip_addresses"
SECRET_KEY = "secret"


class ConfigurationStore(ABC):
    """Abstract base class for platform-specific configuration persistence.

    Implementations resolve a storage location, create it on demand, and
    encode/decode the three configuration fields. The bootstrap logic in
    ensure_configuration_exists() and validate() is shared.
    """

    @abstractmethod
    def storage_location(self) -> str:
        """Directory or registry key that holds the configuration."""

    @abstractmethod
    def ensure_storage_exists(self) -> None:
        """Create the storage location if absent.

        Raises:
            StorageUnwritable: if the directory or key can't be created.
        """

    @abstractmethod
    def configuration_exists(self) -> bool:
        """Return True if a configuration has been persisted."""

    @abstractmethod
    def fetch(self) -> AppConfiguration:
        """Read and decode the persisted configuration.

        Raises:
            MissingConfigurationFile: nothing is stored at the location.
            InvalidConfigurationFile: stored contents can't be decoded.
        """

    @abstractmethod
    def save(self, configuration: AppConfiguration) -> None:
        """Encode and write the configuration, replacing any existing one.

        Raises:
            InvalidConfiguration: the configuration can't be encoded.
            StorageUnwritable / ConfigurationFileUnwritable: on I/O failure.
        """

    @abstractmethod
    def delete(self) -> None:
        """Remove the persisted configuration; no-op if there is none."""

    def ensure_configuration_exists(self) -> None:
        """Persist the default configuration unless one already exists."""
        logger.debug("Checking whether configuration needs to be created")
        self.ensure_storage_exists()

        if self.configuration_exists():
            logger.debug("Configuration exists at %s", self.storage_location())
            return

        logger.info("Creating configuration from defaults at %s", self.storage_location())
        self.save(default_configuration())

    def validate(self) -> AppConfiguration:
        """Guarantee a well-formed configuration exists and return it."""
        self.ensure_configuration_exists()
        return self.fetch()


def encode_fields(configuration: AppConfiguration) -> dict:
    """Convert a configuration into the three persisted fields.

    Raises:
        InvalidConfiguration: if a field can't be represented.
    """
    port = configuration.port
    if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= MAX_PORT:
        raise InvalidConfiguration(f"port {port!r} is not a 16-bit unsigned integer")
    if not isinstance(configuration.secret, str):
        raise InvalidConfiguration("secret must be a string")
    try:
        addresses = format_addresses(configuration.addresses)
    except TypeError as e:
        raise InvalidConfiguration(f"addresses can't be joined: {e}") from e

    return {
        PORT_KEY: port,
        ADDRESSES_KEY: addresses,
        SECRET_KEY: configuration.secret,
    }


def decode_fields(location: str, fields) -> AppConfiguration:
    """Build a configuration from a mapping of persisted fields.

    Raises:
        InvalidConfigurationFile: if a field is missing or has the wrong shape.
    """
    missing = [key for key in (PORT_KEY, ADDRESSES_KEY, SECRET_KEY) if key not in fields]
    if missing:
        raise InvalidConfigurationFile(location, f"missing {', '.join(missing)}")

    raw_port = fields[PORT_KEY]
    # Typed backends must store an integer; text backends store its digits
    if isinstance(raw_port, bool) or not isinstance(raw_port, (int, str)):
        raise InvalidConfigurationFile(location, f"port {raw_port!r} is not an integer")
    try:
        port = int(raw_port)
    except ValueError as e:
        raise InvalidConfigurationFile(location, f"port {raw_port!r} is not a number") from e
    if not 0 <= port <= MAX_PORT:
        raise InvalidConfigurationFile(location, f"port {port} is out of range")

    addresses = fields[ADDRESSES_KEY]
    secret = fields[SECRET_KEY]
    if not isinstance(addresses, str) or not isinstance(secret, str):
        raise InvalidConfigurationFile(location, "ip_addresses and secret must be strings")

    return AppConfiguration(port=port, addresses=parse_addresses(addresses), secret=secret)


class FileConfigurationStore(ConfigurationStore):
    """Shared behavior for backends that persist a single file in a directory."""

    FILE_NAME = ""

    def __init__(self, storage_dir: Path | str | None = None, privileged: bool | None = None):
        self._storage_dir = Path(storage_dir) if storage_dir is not None else None
        self._privileged = privileged

    @abstractmethod
    def machine_storage_dir(self) -> Path:
        """Machine-wide directory used by the privileged account."""

    @abstractmethod
    def user_storage_dir(self) -> Path:
        """Per-user directory."""

    @abstractmethod
    def encode(self, configuration: AppConfiguration) -> bytes:
        """Serialize a configuration to file contents."""

    @abstractmethod
    def decode(self, data: bytes) -> AppConfiguration:
        """Parse file contents; raise InvalidConfigurationFile if undecodable."""

    def storage_path(self) -> Path:
        if self._storage_dir is not None:
            return self._storage_dir
        privileged = is_privileged() if self._privileged is None else self._privileged
        path = self.machine_storage_dir() if privileged else self.user_storage_dir()
        logger.debug("Detected configuration path: %s", path)
        return path

    def storage_location(self) -> str:
        return str(self.storage_path())

    def configuration_path(self) -> Path:
        return self.storage_path() / self.FILE_NAME

    def ensure_storage_exists(self) -> None:
        path = self.storage_path()
        if path.is_dir():
            return

        logger.debug("Creating configuration storage at %s", path)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnwritable(str(path), e) from e

    def configuration_exists(self) -> bool:
        return self.configuration_path().exists()

    def fetch(self) -> AppConfiguration:
        path = self.configuration_path()
        logger.debug("Fetching configuration from %s", path)
        try:
            data = path.read_bytes()
        except FileNotFoundError as e:
            raise MissingConfigurationFile(str(path)) from e
        except IsADirectoryError as e:
            raise InvalidConfigurationFile(str(path), "path is a directory") from e
        return self.decode(data)

    def save(self, configuration: AppConfiguration) -> None:
        data = self.encode(configuration)
        self.ensure_storage_exists()

        path = self.configuration_path()
        logger.debug("Writing configuration to %s", path)
        try:
            path.write_bytes(data)
        except OSError as e:
            raise ConfigurationFileUnwritable(str(path), e) from e

    def delete(self) -> None:
        path = self.configuration_path()
        if not path.is_file():
            return

        logger.info("Deleting configuration at %s", path)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise ConfigurationFileUnwritable(str(path), e) from e


class MemoryConfigurationStore(ConfigurationStore):
    """In-memory store with the same contract, for tests and dry runs."""

    def __init__(self, configuration: AppConfiguration | None = None):
        self._fields: dict | None = None
        if configuration is not None:
            self._fields = encode_fields(configuration)

    def storage_location(self) -> str:
        return "memory://" + APP_NAME

    def ensure_storage_exists(self) -> None:
        # Nothing to create for an in-memory store
        return None

    def configuration_exists(self) -> bool:
        return self._fields is not None

    def fetch(self) -> AppConfiguration:
        if self._fields is None:
            raise MissingConfigurationFile(self.storage_location())
        return decode_fields(self.storage_location(), self._fields)

    def save(self, configuration: AppConfiguration) -> None:
        self._fields = encode_fields(configuration)

    def delete(self) -> None:
        self._fields = None


# =============================================================================
# Factory Function
# =============================================================================


def get_configuration_store(
    force_type: str | None = None,
    storage_dir: Path | str | None = None,
) -> ConfigurationStore:
    """Get the configuration store for the current platform.

    Args:
        force_type: Force a specific backend.
                   Options: "plist", "ini", "registry", "memory"
        storage_dir: Override the resolved directory (file backends only).
                     Defaults to SHUTDOWN_ON_LAN_CONFIG_DIR when set.

    Returns:
        ConfigurationStore implementation appropriate for the platform.
    """
    from .config import config
    from .platform_utils import IS_MACOS, IS_WINDOWS

    if storage_dir is None:
        storage_dir = config.config_dir_override()

    if force_type == "memory":
        return MemoryConfigurationStore()

    if force_type == "registry" or (IS_WINDOWS and force_type is None):
        from .configuration_store_registry import RegistryConfigurationStore

        return RegistryConfigurationStore()

    if force_type == "plist" or (IS_MACOS and force_type is None):
        from .configuration_store_plist import PlistConfigurationStore

        return PlistConfigurationStore(storage_dir)

    if force_type not in (None, "ini"):
        raise ValueError(f"Unknown configuration store type: {force_type!r}")

    from .configuration_store_ini import IniConfigurationStore

    return IniConfigurationStore(storage_dir)
