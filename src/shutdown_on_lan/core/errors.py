"""Error taxonomy for Shutdown on LAN.

Configuration failures surface as typed exceptions deriving from
``ConfigurationError``; listener and trigger failures have their own
types so callers can tell a startup failure from a runtime one.
"""

from __future__ import annotations


class ShutdownOnLanError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(ShutdownOnLanError):
    """Base class for configuration store failures."""


class MissingConfigurationFile(ConfigurationError):
    def __init__(self, location: str):
        super().__init__(f"No configuration at {location}")
        self.location = location


class InvalidConfigurationFile(ConfigurationError):
    def __init__(self, location: str, reason: str = ""):
        message = f"Contents of configuration at {location} are invalid"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.location = location
        self.reason = reason


class InvalidConfiguration(ConfigurationError):
    """The in-memory configuration can't be converted to its stored form."""

    def __init__(self, reason: str):
        super().__init__(f"Configuration can't be encoded: {reason}")
        self.reason = reason


class StorageUnwritable(ConfigurationError):
    def __init__(self, location: str, source: OSError | None = None):
        message = f"Unable to write to configuration storage {location}"
        if source is not None:
            message = f"{message}: {source}"
        super().__init__(message)
        self.location = location
        self.source = source


class ConfigurationFileUnwritable(ConfigurationError):
    def __init__(self, location: str, source: OSError | None = None):
        message = f"Unable to write configuration to {location}"
        if source is not None:
            message = f"{message}: {source}"
        super().__init__(message)
        self.location = location
        self.source = source


class RegistryKeyNotReadable(InvalidConfigurationFile):
    def __init__(self, location: str, value_name: str):
        super().__init__(location, f"unable to read registry value {value_name!r}")
        self.value_name = value_name


class RegistryKeyNotWritable(ConfigurationFileUnwritable):
    def __init__(self, location: str, value_name: str, source: OSError | None = None):
        super().__init__(f"{location}\\{value_name}", source)
        self.value_name = value_name


class ListenerBindError(ShutdownOnLanError):
    def __init__(self, host: str, port: int, source: OSError):
        super().__init__(f"Unable to listen on {host}:{port}: {source}")
        self.host = host
        self.port = port
        self.source = source


class ShutdownFailed(ShutdownOnLanError):
    """The host OS refused or failed to start a power-off."""
