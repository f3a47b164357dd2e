from datetime import datetime, timedelta

from router_inventory.counters import CounterHistory, IfCounters, compute_rates, elapsed_seconds

T0 = datetime(2024, 5, 1, 10, 0, 0)


def snap(seconds, remote=None, **counters):
    return IfCounters(local_time=T0 + timedelta(seconds=seconds), remote_time=remote, **counters)


def test_elapsed_prefers_device_uptime():
    # local clock says 12s, device says 10s
    assert elapsed_seconds(snap(12, remote=2000), snap(0, remote=1000)) == 10.0


def test_elapsed_falls_back_to_local_clock():
    assert elapsed_seconds(snap(30), snap(0)) == 30.0
    # uptime went backwards: device rebooted
    assert elapsed_seconds(snap(30, remote=100), snap(0, remote=900000)) == 30.0


def test_rates():
    rates = compute_rates(
        snap(10, in_octets=2000, out_octets=500),
        snap(0, in_octets=1000, out_octets=0),
    )
    assert rates["in_octets"] == 100.0
    assert rates["out_octets"] == 50.0
    assert rates["in_ucast_pkts"] == 0.0


def test_rates_handle_counter64_wrap():
    rates = compute_rates(snap(1, in_octets=5), snap(0, in_octets=2 ** 64 - 5))
    assert rates["in_octets"] == 10.0


def test_rates_without_elapsed_time():
    assert compute_rates(snap(0, in_octets=10), snap(0)) == {}


def test_history_keeps_two_slots():
    h = CounterHistory()
    assert h.rates() == {}

    first, second, third = snap(0), snap(10), snap(20)
    h.push(first)
    assert h.current is first and h.previous is None
    h.push(second)
    h.push(third)
    assert h.current is third
    assert h.previous is second


def test_carry_over_keeps_only_latest_snapshot():
    older = CounterHistory(current=snap(10, in_octets=100), previous=snap(0))
    fresh = CounterHistory(snap(20, in_octets=300))
    fresh.carry_over(older)
    assert fresh.previous == older.current
    assert fresh.rates()["in_octets"] == 20.0

    lone = CounterHistory(snap(20))
    lone.carry_over(None)
    assert lone.previous is None
