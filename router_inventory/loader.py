"""
Read routers back from storage into memory.
"""

from typing import List, Optional

from router_inventory.errors import ConsistencyError, MissingIdentityError
from router_inventory.schemas import Interface, Router, SnmpConfig
from router_inventory.store import Store


def load_interfaces(store: Store, router: Router) -> List[Interface]:
    """Stored interfaces of `router`, in insertion order."""
    if router.id is None:
        raise MissingIdentityError(router, "loading interfaces")
    return store.find_by_foreign_key(Interface, router.id)


def load_snmp_config(store: Store, router: Router) -> Optional[SnmpConfig]:
    if router.id is None:
        raise MissingIdentityError(router, "loading the SNMP config")
    configs = store.find_by_foreign_key(SnmpConfig, router.id)
    if len(configs) > 1:
        raise ConsistencyError("SnmpConfig", router.id, len(configs))
    return configs[0] if configs else None


def _populate(
    store: Store, router: Router, with_interfaces: bool, with_snmp_config: bool
) -> Router:
    if with_interfaces:
        router.interfaces = load_interfaces(store, router)
    if with_snmp_config:
        router.snmp_config = load_snmp_config(store, router)
    return router


def load_routers(
    store: Store,
    with_interfaces: bool = False,
    with_snmp_config: bool = False,
) -> List[Router]:
    """Every stored router, optionally with its interfaces and SNMP config."""
    return [
        _populate(store, router, with_interfaces, with_snmp_config)
        for router in store.find_all(Router)
    ]


def load_router(
    store: Store,
    unique_name: str,
    with_interfaces: bool = False,
    with_snmp_config: bool = False,
) -> Router:
    """The router named `unique_name`; ConsistencyError unless exactly one matches."""
    candidates = store.find_by_unique_key(Router, unique_name)
    if len(candidates) != 1:
        raise ConsistencyError("Router", unique_name, len(candidates))
    return _populate(store, candidates[0], with_interfaces, with_snmp_config)
