import pytest

from router_inventory.errors import ConsistencyError, MissingIdentityError
from router_inventory.loader import load_interfaces, load_router, load_routers, load_snmp_config
from router_inventory.schemas import Interface, Router, SnmpConfig
from router_inventory.synchronizer import bootstrap_or_create


@pytest.fixture
def populated(store):
    routers = [
        Router(
            unique_name="alu-01",
            snmp_config=SnmpConfig(address="10.0.1.1"),
            interfaces=[Interface(name="a", index=1), Interface(name="b", index=2)],
        ),
        Router(unique_name="alu-02"),
    ]
    bootstrap_or_create(store, routers)
    return routers


def test_load_routers_scalars_only(store, populated):
    routers = load_routers(store)
    assert [r.unique_name for r in routers] == ["alu-01", "alu-02"]
    assert routers[0].interfaces == []
    assert routers[0].snmp_config is None


def test_load_routers_with_children(store, populated):
    routers = load_routers(store, with_interfaces=True, with_snmp_config=True)
    alu = routers[0]
    assert [i.name for i in alu.interfaces] == ["a", "b"]
    assert alu.snmp_config.address == "10.0.1.1"
    assert routers[1].snmp_config is None


def test_load_router_by_name(store, populated):
    router = load_router(store, "alu-01", with_interfaces=True)
    assert router.id == populated[0].id
    assert len(router.interfaces) == 2

    with pytest.raises(ConsistencyError):
        load_router(store, "unknown")


def test_children_need_a_persisted_router(store):
    with pytest.raises(MissingIdentityError):
        load_interfaces(store, Router(unique_name="ghost"))
    with pytest.raises(MissingIdentityError):
        load_snmp_config(store, Router(unique_name="ghost"))
