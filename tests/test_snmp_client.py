import pytest

from router_inventory.errors import SnmpError
from router_inventory.schemas import Router, SnmpConfig
from router_inventory.snmp_client import (
    STUB_INTERFACE_COUNT,
    _auth_data,
    poll_interfaces,
    split_address,
)


@pytest.mark.parametrize(
    "address, expected",
    [
        ("10.0.0.1", ("10.0.0.1", 161)),
        ("10.0.0.1:1161", ("10.0.0.1", 1161)),
        ("router.example.net", ("router.example.net", 161)),
        ("2001:db8::1", ("2001:db8::1", 161)),
        ("[2001:db8::1]:1161", ("2001:db8::1", 1161)),
        ("[2001:db8::1]", ("2001:db8::1", 161)),
    ],
)
def test_split_address(address, expected):
    assert split_address(address) == expected


def test_stub_table_is_stable_and_counters_grow():
    router = Router(unique_name="stub-test")
    first = poll_interfaces(router, use_stub=True)
    second = poll_interfaces(router, use_stub=True)

    assert len(first) == STUB_INTERFACE_COUNT
    assert [(i.name, i.index, i.speed) for i in first] == [
        (i.name, i.index, i.speed) for i in second
    ]
    assert all(i.router_id is None and i.id is None for i in first)
    assert second[0].counters.current.in_octets > first[0].counters.current.in_octets
    assert second[0].counters.current.remote_time > first[0].counters.current.remote_time


def test_poll_without_config_fails():
    with pytest.raises(SnmpError):
        poll_interfaces(Router(unique_name="no-config"))


def test_unknown_v3_protocol():
    config = SnmpConfig(
        address="10.0.0.1",
        version="v3",
        user_name="ops",
        security_level="authNoPriv",
        auth_password="secret123",
        auth_protocol="ROT13",
    )
    with pytest.raises(SnmpError):
        _auth_data(config)


def test_snmp_version_is_validated():
    with pytest.raises(ValueError):
        SnmpConfig(address="10.0.0.1", version="v4")


def test_pysnmp_errors_are_wrapped(monkeypatch):
    from pysnmp.error import PySnmpError

    from router_inventory import snmp_client

    async def broken(router, config):
        raise PySnmpError("bad transport")

    monkeypatch.setattr(snmp_client, "_snmp_poll_interfaces", broken)
    router = Router(unique_name="alu-01", snmp_config=SnmpConfig(address="10.0.0.1"))
    with pytest.raises(SnmpError) as excinfo:
        poll_interfaces(router)
    assert "bad transport" in str(excinfo.value)
