import ipaddress

import pytest

from shutdown_on_lan.configuration_store_registry import SUBKEY, RegistryConfigurationStore
from shutdown_on_lan.core.config_model import AppConfiguration, default_configuration
from shutdown_on_lan.core.errors import (
    InvalidConfigurationFile,
    MissingConfigurationFile,
    RegistryKeyNotReadable,
    RegistryKeyNotWritable,
    StorageUnwritable,
)


class _Key:
    def __init__(self, values: dict):
        self.values = values

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class _FakeRegistry:
    """Minimal stand-in for the winreg module."""

    HKEY_LOCAL_MACHINE = "HKLM"
    HKEY_CURRENT_USER = "HKCU"
    KEY_READ = 0x20019
    KEY_WRITE = 0x20006
    REG_SZ = 1
    REG_DWORD = 4

    def __init__(self):
        self.keys: dict[tuple[str, str], dict] = {}
        self.fail_create = False
        self.fail_set: set[str] = set()

    def CreateKeyEx(self, root, sub_key, reserved=0, access=0):
        if self.fail_create:
            raise PermissionError(5, "Access is denied")
        return _Key(self.keys.setdefault((root, sub_key), {}))

    def OpenKey(self, root, sub_key, reserved=0, access=0):
        if (root, sub_key) not in self.keys:
            raise FileNotFoundError(2, "The system cannot find the file specified")
        return _Key(self.keys[(root, sub_key)])

    def QueryValueEx(self, key, name):
        if name not in key.values:
            raise FileNotFoundError(2, "The system cannot find the file specified")
        return key.values[name]

    def SetValueEx(self, key, name, reserved, value_type, value):
        if name in self.fail_set:
            raise PermissionError(5, "Access is denied")
        key.values[name] = (value, value_type)

    def DeleteKey(self, root, sub_key):
        if (root, sub_key) not in self.keys:
            raise FileNotFoundError(2, "The system cannot find the file specified")
        del self.keys[(root, sub_key)]


@pytest.fixture
def registry():
    return _FakeRegistry()


@pytest.fixture
def store(registry):
    return RegistryConfigurationStore(registry=registry, privileged=True)


def test_save_then_fetch_round_trips(store):
    configuration = AppConfiguration(
        port=65535,
        addresses=[ipaddress.ip_address("192.168.0.10"), ipaddress.ip_address("fe80::2")],
        secret="registry secret",
    )

    store.save(configuration)

    assert store.fetch() == configuration


def test_values_are_stored_with_native_types(store, registry):
    store.save(default_configuration())

    values = registry.keys[("HKLM", SUBKEY)]
    assert values["ip_addresses"] == ("127.0.0.1", registry.REG_SZ)
    assert values["port"] == (53632, registry.REG_DWORD)
    assert values["secret"] == ("Super Secret String", registry.REG_SZ)


def test_scope_selects_registry_root(registry):
    machine = RegistryConfigurationStore(registry=registry, privileged=True)
    user = RegistryConfigurationStore(registry=registry, privileged=False)

    machine.save(default_configuration())

    assert machine.storage_location() == "HKEY_LOCAL_MACHINE\\" + SUBKEY
    assert user.storage_location() == "HKEY_CURRENT_USER\\" + SUBKEY
    with pytest.raises(MissingConfigurationFile):
        user.fetch()


def test_fetch_without_key_raises_missing(store):
    with pytest.raises(MissingConfigurationFile):
        store.fetch()


def test_validate_writes_defaults_into_empty_key(store, registry):
    store.ensure_storage_exists()
    assert not store.configuration_exists()

    assert store.validate() == default_configuration()
    assert store.configuration_exists()


def test_ensure_configuration_exists_is_idempotent(store, registry):
    store.ensure_configuration_exists()
    snapshot = dict(registry.keys[("HKLM", SUBKEY)])

    store.ensure_configuration_exists()

    assert registry.keys[("HKLM", SUBKEY)] == snapshot


def test_wrongly_typed_value_is_unreadable(store, registry):
    store.save(default_configuration())
    registry.keys[("HKLM", SUBKEY)]["port"] = ("53632", registry.REG_SZ)

    with pytest.raises(RegistryKeyNotReadable) as excinfo:
        store.fetch()

    assert excinfo.value.value_name == "port"
    assert isinstance(excinfo.value, InvalidConfigurationFile)


def test_port_beyond_16_bits_is_invalid(store, registry):
    store.save(default_configuration())
    registry.keys[("HKLM", SUBKEY)]["port"] = (70000, registry.REG_DWORD)

    with pytest.raises(InvalidConfigurationFile):
        store.fetch()


def test_partial_configuration_is_not_overwritten(store, registry):
    store.ensure_storage_exists()
    registry.keys[("HKLM", SUBKEY)]["port"] = (1234, registry.REG_DWORD)

    with pytest.raises(RegistryKeyNotReadable):
        store.validate()
    assert registry.keys[("HKLM", SUBKEY)] == {"port": (1234, registry.REG_DWORD)}


def test_malformed_addresses_are_dropped(store, registry):
    store.save(default_configuration())
    registry.keys[("HKLM", SUBKEY)]["ip_addresses"] = (
        "127.0.0.1,not-an-ip,10.0.0.5",
        registry.REG_SZ,
    )

    addresses = store.fetch().addresses

    assert addresses == [ipaddress.ip_address("127.0.0.1"), ipaddress.ip_address("10.0.0.5")]


def test_create_failure_raises_storage_unwritable(store, registry):
    registry.fail_create = True

    with pytest.raises(StorageUnwritable):
        store.ensure_storage_exists()
    with pytest.raises(StorageUnwritable):
        store.save(default_configuration())


def test_value_write_failure_names_the_value(store, registry):
    registry.fail_set.add("secret")

    with pytest.raises(RegistryKeyNotWritable) as excinfo:
        store.save(default_configuration())

    assert excinfo.value.value_name == "secret"


def test_delete_is_noop_when_absent(store, registry):
    store.delete()
    store.save(default_configuration())

    store.delete()

    assert ("HKLM", SUBKEY) not in registry.keys
    assert not store.configuration_exists()
