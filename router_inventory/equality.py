"""
Identity and equality predicates for routers and interfaces.

Matching and comparing are kept apart for interfaces: `same_interface` tells
whether two records describe the same physical port, `same_interface_content`
whether that port changed. The reconciler needs both to tell an update from a
remove + create.
"""

from router_inventory.schemas import ROUTER_FIELDS, STORAGE_FIELDS, Interface, Router

# Absolute tolerance used to compare geo-coordinates
FLOAT_TOLERANCE = 1e-9

_FLOAT_ROUTER_FIELDS = ("lat", "lon")


def almost_equal(x: float, y: float, tolerance: float = FLOAT_TOLERANCE) -> bool:
    return abs(x - y) <= tolerance


def same_interface(a: Interface, b: Interface) -> bool:
    """Identity match: same router, same name, same ifIndex."""
    return a.router_id == b.router_id and a.name == b.name and a.index == b.index


def same_interface_content(a: Interface, b: Interface) -> bool:
    """Content match of two interfaces already known to be the same port."""
    return a.speed == b.speed and a.alias == b.alias


def interfaces_equal(a: Interface, b: Interface) -> bool:
    return same_interface(a, b) and same_interface_content(a, b)


def routers_equal(a: Router, b: Router) -> bool:
    """
    Field-by-field equality of every persisted router attribute.

    Storage-assigned fields (id, timestamps) take part in the comparison;
    coordinates are compared with `almost_equal`. Interfaces and SNMP config
    are ignored.
    """
    for field in STORAGE_FIELDS + ROUTER_FIELDS:
        x, y = getattr(a, field), getattr(b, field)
        if field in _FLOAT_ROUTER_FIELDS:
            if not almost_equal(x, y):
                return False
        elif x != y:
            return False
    return True
