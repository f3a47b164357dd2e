from datetime import datetime

from router_inventory.equality import (
    almost_equal,
    interfaces_equal,
    routers_equal,
    same_interface,
    same_interface_content,
)
from router_inventory.schemas import Interface, Router


def make_router(**kwargs):
    fields = dict(
        id=3,
        created_at=datetime(2024, 1, 1, 12, 0),
        updated_at=datetime(2024, 1, 2, 12, 0),
        unique_name="alu-01",
        name="alu-01.example.net",
        location="Paris",
        lat=48.8566,
        lon=2.3522,
        bulk_max_repetition=10,
        flow_source_ip="10.0.1.1",
    )
    fields.update(kwargs)
    return Router(**fields)


def test_almost_equal():
    assert almost_equal(1.0000000001, 1.0000000002)
    assert not almost_equal(1.0, 1.1)
    assert almost_equal(0.0, 0.0)


def test_router_equals_its_copy():
    r = make_router()
    assert routers_equal(r, r)
    assert routers_equal(r, r.model_copy())


def test_router_coordinates_within_tolerance():
    r = make_router()
    assert routers_equal(r, make_router(lat=r.lat + 1e-12, lon=r.lon - 1e-12))
    assert not routers_equal(r, make_router(lat=r.lat + 1e-6))


def test_router_storage_fields_matter():
    r = make_router()
    assert not routers_equal(r, make_router(id=4))
    assert not routers_equal(r, make_router(updated_at=datetime(2024, 1, 3)))
    assert not routers_equal(r, make_router(id=None, created_at=None, updated_at=None))


def test_router_scalars_matter_but_children_do_not():
    r = make_router()
    assert not routers_equal(r, make_router(contact="noc@example.net"))
    assert not routers_equal(r, make_router(flow_source_ip="10.0.1.2"))
    other = make_router(interfaces=[Interface(name="a", index=1)])
    assert routers_equal(r, other)


def test_interface_identity_and_content_are_separate():
    a = Interface(router_id=1, name="xe-0/0/1", index=5, speed=10, alias="x")
    same_port_new_speed = Interface(router_id=1, name="xe-0/0/1", index=5, speed=20, alias="x")
    assert same_interface(a, same_port_new_speed)
    assert not same_interface_content(a, same_port_new_speed)
    assert not interfaces_equal(a, same_port_new_speed)
    assert interfaces_equal(a, a.model_copy())

    assert not same_interface(a, Interface(router_id=1, name="xe-0/0/1", index=6))
    assert not same_interface(a, Interface(router_id=2, name="xe-0/0/1", index=5))
