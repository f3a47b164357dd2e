"""
Interface reconciliation.

Given the interface table just polled from a router and the one last written
to storage, compute the ordered list of actions that brings storage in line
with the device:

- CREATE:  polled interface with no stored counterpart
- RELOAD:  same port, but speed or alias changed
- UNTOUCH: same port, nothing changed
- REMOVE:  stored interface the device no longer reports

Actions come in polled order for CREATE / RELOAD / UNTOUCH, followed by the
REMOVEs in stored order. The function is pure and cannot fail.
"""

import enum
from dataclasses import dataclass
from typing import List, Sequence

from router_inventory.equality import same_interface, same_interface_content
from router_inventory.schemas import Interface

# Index used for the side of an action that has no record
NO_INDEX = -1


class DiffKind(str, enum.Enum):
    CREATE = "create"
    RELOAD = "reload"
    REMOVE = "remove"
    UNTOUCH = "untouch"


@dataclass(frozen=True)
class InterfaceDiffAction:
    """
    One step of a diff.

    `polled_index` points into the polled sequence, `stored_index` into the
    stored one; either is NO_INDEX when the action has no record on that side.
    """

    kind: DiffKind
    polled_index: int = NO_INDEX
    stored_index: int = NO_INDEX

    @classmethod
    def create(cls, polled_index: int) -> "InterfaceDiffAction":
        return cls(DiffKind.CREATE, polled_index, NO_INDEX)

    @classmethod
    def reload(cls, polled_index: int, stored_index: int) -> "InterfaceDiffAction":
        return cls(DiffKind.RELOAD, polled_index, stored_index)

    @classmethod
    def untouch(cls, polled_index: int, stored_index: int) -> "InterfaceDiffAction":
        return cls(DiffKind.UNTOUCH, polled_index, stored_index)

    @classmethod
    def remove(cls, stored_index: int) -> "InterfaceDiffAction":
        return cls(DiffKind.REMOVE, NO_INDEX, stored_index)

    def __str__(self) -> str:
        return f"{self.kind.name}({self.polled_index}, {self.stored_index})"


def reconcile_interfaces(
    polled: Sequence[Interface],
    stored: Sequence[Interface],
) -> List[InterfaceDiffAction]:
    """
    Diff `polled` (live device) against `stored` (last persisted state).

    Counterparts are found by linear scan, first unclaimed match in stored
    order wins. O(len(polled) * len(stored)), fine for the tens of interfaces
    a router has.
    """
    if not stored:
        return [InterfaceDiffAction.create(i) for i in range(len(polled))]

    diff: List[InterfaceDiffAction] = []
    matched = [False] * len(stored)

    for i, p in enumerate(polled):
        for j, s in enumerate(stored):
            if matched[j] or not same_interface(p, s):
                continue
            matched[j] = True
            if same_interface_content(p, s):
                diff.append(InterfaceDiffAction.untouch(i, j))
            else:
                diff.append(InterfaceDiffAction.reload(i, j))
            break
        else:
            diff.append(InterfaceDiffAction.create(i))

    if sum(matched) < len(stored):
        diff.extend(
            InterfaceDiffAction.remove(j) for j, hit in enumerate(matched) if not hit
        )

    return diff


def summarize(diff: Sequence[InterfaceDiffAction]) -> dict:
    """Count of actions per kind, e.g. for log lines."""
    counts = {kind.value: 0 for kind in DiffKind}
    for action in diff:
        counts[action.kind.value] += 1
    return counts
