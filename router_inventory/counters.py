"""
Live interface counters.

A poll produces one `IfCounters` per interface. Counters are never persisted;
we only keep the current and the previous snapshot, which is all that is
needed to compute a rate between the last two polls.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

# Counters read from IF-MIB HC objects are Counter64
COUNTER64_MODULO = 2 ** 64

COUNTER_FIELDS = (
    "in_octets",
    "in_ucast_pkts",
    "in_mcast_pkts",
    "in_bcast_pkts",
    "out_octets",
    "out_ucast_pkts",
    "out_mcast_pkts",
    "out_bcast_pkts",
)


@dataclass(frozen=True)
class IfCounters:
    """One snapshot of the traffic counters of an interface."""

    local_time: datetime
    remote_time: Optional[int] = None  # sysUpTime, in hundredths of seconds

    in_octets: int = 0
    in_ucast_pkts: int = 0
    in_mcast_pkts: int = 0
    in_bcast_pkts: int = 0
    out_octets: int = 0
    out_ucast_pkts: int = 0
    out_mcast_pkts: int = 0
    out_bcast_pkts: int = 0


def _delta(current: int, previous: int, modulo: int) -> int:
    """Difference between two readings of a wrapping counter."""
    if current >= previous:
        return current - previous
    return current + modulo - previous


def elapsed_seconds(current: IfCounters, previous: IfCounters) -> float:
    """
    Seconds between two snapshots.

    The device clock (sysUpTime) is preferred because it is not skewed by
    polling latency. When either snapshot lacks it, or the uptime went
    backwards (reboot), we fall back to the local clock.
    """
    if current.remote_time is not None and previous.remote_time is not None:
        if current.remote_time >= previous.remote_time:
            return (current.remote_time - previous.remote_time) / 100.0
    return (current.local_time - previous.local_time).total_seconds()


def compute_rates(current: IfCounters, previous: IfCounters) -> Dict[str, float]:
    """
    Per-second rate of every counter between `previous` and `current`.

    Returns an empty dict when no time elapsed between the two snapshots.
    """
    seconds = elapsed_seconds(current, previous)
    if seconds <= 0:
        return {}

    return {
        name: _delta(getattr(current, name), getattr(previous, name), COUNTER64_MODULO)
        / seconds
        for name in COUNTER_FIELDS
    }


class CounterHistory:
    """
    Two-slot history of counter snapshots: (current, previous).

    Pushing a new snapshot moves `current` into `previous` and drops whatever
    was there before, so memory stays constant however long a router is polled.
    """

    __slots__ = ("current", "previous")

    def __init__(
        self,
        current: Optional[IfCounters] = None,
        previous: Optional[IfCounters] = None,
    ):
        self.current = current
        self.previous = previous

    def push(self, snapshot: IfCounters) -> None:
        self.previous = self.current
        self.current = snapshot

    def carry_over(self, older: Optional["CounterHistory"]) -> None:
        """
        Chain this (fresh) history onto the one of the previous poll.

        Only the latest snapshot of `older` is retained, as our `previous`.
        """
        if older is not None and older.current is not None:
            self.previous = older.current

    def rates(self) -> Dict[str, float]:
        if self.current is None or self.previous is None:
            return {}
        return compute_rates(self.current, self.previous)

    def __eq__(self, other):
        if not isinstance(other, CounterHistory):
            return NotImplemented
        return self.current == other.current and self.previous == other.previous

    def __repr__(self) -> str:
        return f"CounterHistory(current={self.current!r}, previous={self.previous!r})"

