from router_inventory.reconciler import (
    NO_INDEX,
    DiffKind,
    InterfaceDiffAction,
    reconcile_interfaces,
    summarize,
)
from router_inventory.schemas import Interface


def iface(name, index, speed=0, alias="", router_id=1):
    return Interface(router_id=router_id, name=name, index=index, speed=speed, alias=alias)


def kinds(diff):
    return [a.kind for a in diff]


def test_empty_stored_creates_everything_in_polled_order():
    polled = [iface("a", 1), iface("b", 2), iface("c", 3)]
    diff = reconcile_interfaces(polled, [])
    assert diff == [
        InterfaceDiffAction(DiffKind.CREATE, 0, NO_INDEX),
        InterfaceDiffAction(DiffKind.CREATE, 1, NO_INDEX),
        InterfaceDiffAction(DiffKind.CREATE, 2, NO_INDEX),
    ]


def test_both_empty():
    assert reconcile_interfaces([], []) == []


def test_empty_polled_removes_everything_in_stored_order():
    stored = [iface("a", 1), iface("b", 2)]
    diff = reconcile_interfaces([], stored)
    assert diff == [InterfaceDiffAction.remove(0), InterfaceDiffAction.remove(1)]


def test_same_sequence_is_all_untouch():
    stored = [iface("a", 1, 10), iface("b", 2, 20), iface("c", 3, 30)]
    polled = [i.model_copy() for i in stored]
    diff = reconcile_interfaces(polled, stored)
    assert kinds(diff) == [DiffKind.UNTOUCH] * 3
    assert [(a.polled_index, a.stored_index) for a in diff] == [(0, 0), (1, 1), (2, 2)]


def test_missing_interface_is_removed_once():
    stored = [iface("a", 1), iface("b", 2), iface("c", 3)]
    polled = [iface("a", 1), iface("c", 3)]
    diff = reconcile_interfaces(polled, stored)
    removes = [a for a in diff if a.kind == DiffKind.REMOVE]
    assert removes == [InterfaceDiffAction.remove(1)]


def test_speed_change_is_a_single_reload():
    stored = [iface("ge-0/0/0", 1, speed=1_000_000_000)]
    polled = [iface("ge-0/0/0", 1, speed=10_000_000_000)]
    assert reconcile_interfaces(polled, stored) == [InterfaceDiffAction.reload(0, 0)]


def test_alias_change_is_a_reload():
    stored = [iface("ge-0/0/0", 1, alias="uplink")]
    polled = [iface("ge-0/0/0", 1, alias="uplink to core")]
    assert reconcile_interfaces(polled, stored) == [InterfaceDiffAction.reload(0, 0)]


def test_index_change_is_create_and_remove():
    stored = [iface("ge-0/0/0", 1)]
    polled = [iface("ge-0/0/0", 7)]
    assert reconcile_interfaces(polled, stored) == [
        InterfaceDiffAction.create(0),
        InterfaceDiffAction.remove(0),
    ]


def test_other_router_never_matches():
    stored = [iface("a", 1, router_id=1)]
    polled = [iface("a", 1, router_id=2)]
    assert kinds(reconcile_interfaces(polled, stored)) == [DiffKind.CREATE, DiffKind.REMOVE]


def test_end_to_end_example():
    stored = [iface("1/1/1", 1, speed=10), iface("2/2/2", 2, speed=20)]
    polled = [iface("1/1/1", 1, speed=10), iface("3/3/3", 3, speed=30)]
    assert reconcile_interfaces(polled, stored) == [
        InterfaceDiffAction(DiffKind.UNTOUCH, 0, 0),
        InterfaceDiffAction(DiffKind.CREATE, 1, -1),
        InterfaceDiffAction(DiffKind.REMOVE, -1, 1),
    ]


def test_creates_and_untouches_follow_polled_order():
    stored = [iface("b", 2), iface("a", 1)]
    polled = [iface("a", 1), iface("new", 9), iface("b", 2)]
    assert reconcile_interfaces(polled, stored) == [
        InterfaceDiffAction.untouch(0, 1),
        InterfaceDiffAction.create(1),
        InterfaceDiffAction.untouch(2, 0),
    ]


def test_duplicate_stored_rows_are_matched_once():
    stored = [iface("a", 1), iface("a", 1)]
    polled = [iface("a", 1)]
    assert reconcile_interfaces(polled, stored) == [
        InterfaceDiffAction.untouch(0, 0),
        InterfaceDiffAction.remove(1),
    ]


def test_summarize_and_str():
    diff = [
        InterfaceDiffAction.untouch(0, 0),
        InterfaceDiffAction.create(1),
        InterfaceDiffAction.remove(1),
    ]
    assert summarize(diff) == {"create": 1, "reload": 0, "remove": 1, "untouch": 1}
    assert str(diff[1]) == "CREATE(1, -1)"
