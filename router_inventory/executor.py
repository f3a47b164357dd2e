"""
Apply an interface diff to storage.

This is the write side of reconciliation: it walks the actions computed by
`reconcile_interfaces()` in order and turns each one into a store call. It is
best-effort, not transactional; actions applied before a failure stay applied.
Wrap the call in `store.transaction()` to get all-or-nothing; on rollback the
polled interfaces lose the identity they were given.
"""

from dataclasses import dataclass, field
from typing import List, Sequence

from loguru import logger

from router_inventory.errors import MissingIdentityError, StoreError
from router_inventory.reconciler import DiffKind, InterfaceDiffAction
from router_inventory.schemas import Interface, Router, adopt_storage_fields
from router_inventory.store import Store


@dataclass
class ActionFailure:
    action: InterfaceDiffAction
    record: Interface
    error: StoreError


@dataclass
class ApplyReport:
    """What happened to each action of a diff."""

    applied: List[InterfaceDiffAction] = field(default_factory=list)
    failed: List[ActionFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def apply_interface_diff(
    store: Store,
    router: Router,
    polled: Sequence[Interface],
    stored: Sequence[Interface],
    diff: Sequence[InterfaceDiffAction],
    abort_on_error: bool = True,
) -> ApplyReport:
    """
    Apply `diff` (computed from `polled` and `stored`) for `router`.

    Polled interfaces are updated in place with the identity and timestamps
    assigned by storage, so their live counters survive; once every action has
    run, they become `router.interfaces`.

    On a store failure, `abort_on_error=True` raises a StoreError naming the
    action and record; otherwise the failure is recorded in the report and the
    next action is applied.
    """
    if router.id is None:
        raise MissingIdentityError(router, "applying an interface diff")

    for interface in polled:
        interface.router_id = router.id

    report = ApplyReport()

    for action in diff:
        record = (
            stored[action.stored_index]
            if action.kind == DiffKind.REMOVE
            else polled[action.polled_index]
        )
        try:
            _apply_one(store, action, polled, stored)
        except StoreError as exc:
            exc.action = action
            exc.record = record
            logger.warning(
                f"[executor] {router.unique_name}: {action} failed on "
                f"{record.name!r} (ifIndex {record.index}): {exc}"
            )
            if abort_on_error:
                raise
            report.failed.append(ActionFailure(action, record, exc))
            continue
        report.applied.append(action)

    router.interfaces = list(polled)
    return report


def _apply_one(
    store: Store,
    action: InterfaceDiffAction,
    polled: Sequence[Interface],
    stored: Sequence[Interface],
) -> None:
    if action.kind != DiffKind.REMOVE:
        store.remember(polled[action.polled_index])

    if action.kind == DiffKind.CREATE:
        interface = polled[action.polled_index]
        adopt_storage_fields(interface, store.create(interface))

    elif action.kind == DiffKind.RELOAD:
        interface = polled[action.polled_index]
        adopt_storage_fields(interface, stored[action.stored_index])
        adopt_storage_fields(interface, store.save(interface))

    elif action.kind == DiffKind.UNTOUCH:
        adopt_storage_fields(polled[action.polled_index], stored[action.stored_index])

    elif action.kind == DiffKind.REMOVE:
        store.delete(stored[action.stored_index])
