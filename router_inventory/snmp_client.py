"""
SNMP poller for router interface tables.

We support two modes:

1. Real SNMP (pysnmp asyncio API), when USE_SNMP_STUB=0.
2. Stub mode: a fake interface table per router with growing counters.

Either way the result is a list of `Interface` records, each carrying a fresh
`IfCounters` snapshot. Records have no `router_id` or storage identity yet;
that is the job of the reconciliation that follows.
"""

from __future__ import annotations

import asyncio
import random
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger
from pyasn1.type.univ import OctetString
from pysnmp.error import PySnmpError
from pysnmp.hlapi.v3arch.asyncio import (
    CommunityData,
    ContextData,
    ObjectIdentity,
    ObjectType,
    SnmpEngine,
    Udp6TransportTarget,
    UdpTransportTarget,
    UsmUserData,
    bulk_walk_cmd,
    get_cmd,
    usmAesCfb128Protocol,
    usmDESPrivProtocol,
    usmHMAC192SHA256AuthProtocol,
    usmHMACMD5AuthProtocol,
    usmHMACSHAAuthProtocol,
    walk_cmd,
)

from router_inventory.counters import CounterHistory, IfCounters
from router_inventory.errors import SnmpError
from router_inventory.schemas import Interface, Router, SnmpConfig

SYS_UPTIME = "1.3.6.1.2.1.1.3.0"

# IF-MIB ifXTable columns (1.3.6.1.2.1.31.1.1.1.X.ifIndex)
IF_X_TABLE = "1.3.6.1.2.1.31.1.1.1"
IF_COLUMNS = {
    "name": f"{IF_X_TABLE}.1",  # ifName
    "in_octets": f"{IF_X_TABLE}.6",  # ifHCInOctets
    "in_ucast_pkts": f"{IF_X_TABLE}.7",  # ifHCInUcastPkts
    "in_mcast_pkts": f"{IF_X_TABLE}.8",  # ifHCInMulticastPkts
    "in_bcast_pkts": f"{IF_X_TABLE}.9",  # ifHCInBroadcastPkts
    "out_octets": f"{IF_X_TABLE}.10",  # ifHCOutOctets
    "out_ucast_pkts": f"{IF_X_TABLE}.11",  # ifHCOutUcastPkts
    "out_mcast_pkts": f"{IF_X_TABLE}.12",  # ifHCOutMulticastPkts
    "out_bcast_pkts": f"{IF_X_TABLE}.13",  # ifHCOutBroadcastPkts
    "high_speed": f"{IF_X_TABLE}.15",  # ifHighSpeed, Mbit/s
    "alias": f"{IF_X_TABLE}.18",  # ifAlias
}

_AUTH_PROTOCOLS = {
    "MD5": usmHMACMD5AuthProtocol,
    "SHA": usmHMACSHAAuthProtocol,
    "SHA256": usmHMAC192SHA256AuthProtocol,
}

_PRIV_PROTOCOLS = {
    "DES": usmDESPrivProtocol,
    "AES": usmAesCfb128Protocol,
}

DEFAULT_PORT = 161


# ---------------------------------------------------------------------------
# Stub implementation: fake interface tables for demo purposes
# ---------------------------------------------------------------------------

STUB_INTERFACE_COUNT = 4

# Per-(router, ifIndex) counters for stub mode
_stub_state: Dict[Tuple[str, int], Dict[str, int]] = {}
_stub_lock = threading.Lock()


def _stub_poll_interfaces(router: Router) -> List[Interface]:
    """
    Generate a fake interface table for `router`.

    The table itself is stable across calls; each call increments the
    counters by a random amount to simulate traffic.
    """
    now = datetime.utcnow()
    interfaces = []

    with _stub_lock:
        for if_index in range(1, STUB_INTERFACE_COUNT + 1):
            st = _stub_state.setdefault(
                (router.unique_name, if_index),
                {
                    "in_octets": random.randint(1_000_000, 10_000_000),
                    "out_octets": random.randint(1_000_000, 10_000_000),
                    "in_ucast_pkts": 0,
                    "out_ucast_pkts": 0,
                    "uptime": 0,
                },
            )
            st["in_octets"] += random.randint(10_000, 100_000)
            st["out_octets"] += random.randint(10_000, 100_000)
            st["in_ucast_pkts"] += random.randint(10, 100)
            st["out_ucast_pkts"] += random.randint(10, 100)
            st["uptime"] += 100 * 10

            interfaces.append(
                Interface(
                    name=f"{router.unique_name}-if{if_index}",
                    alias=f"stub interface {if_index}",
                    speed=1_000_000_000,
                    index=if_index,
                    counters=CounterHistory(
                        IfCounters(
                            local_time=now,
                            remote_time=st["uptime"],
                            in_octets=st["in_octets"],
                            out_octets=st["out_octets"],
                            in_ucast_pkts=st["in_ucast_pkts"],
                            out_ucast_pkts=st["out_ucast_pkts"],
                        )
                    ),
                )
            )

    return interfaces


# ---------------------------------------------------------------------------
# Real SNMP implementation
# ---------------------------------------------------------------------------


def split_address(address: str) -> Tuple[str, int]:
    """
    "host", "host:port", "[v6]:port" or a bare IPv6 address -> (host, port).
    """
    if address.startswith("["):
        host, _, rest = address[1:].partition("]")
        port = rest.lstrip(":")
        return host, int(port) if port else DEFAULT_PORT
    if address.count(":") == 1:
        host, port = address.split(":")
        return host, int(port)
    return address, DEFAULT_PORT


def _auth_data(config: SnmpConfig):
    if config.version in ("v1", "v2c"):
        return CommunityData(
            config.community or "public",
            mpModel=0 if config.version == "v1" else 1,
        )

    level = config.security_level or "noAuthNoPriv"
    kwargs: Dict[str, Any] = {}
    if level in ("authNoPriv", "authPriv"):
        kwargs["authKey"] = config.auth_password
        kwargs["authProtocol"] = _protocol(_AUTH_PROTOCOLS, config.auth_protocol or "SHA")
    if level == "authPriv":
        kwargs["privKey"] = config.priv_password
        kwargs["privProtocol"] = _protocol(_PRIV_PROTOCOLS, config.priv_protocol or "AES")
    if config.security_engine_id:
        kwargs["securityEngineId"] = OctetString(hexValue=config.security_engine_id)
    return UsmUserData(config.user_name, **kwargs)


def _protocol(table: Dict[str, Any], name: str):
    try:
        return table[name.upper()]
    except KeyError:
        raise SnmpError(f"unsupported SNMPv3 protocol {name!r}") from None


def _context_data(config: SnmpConfig) -> ContextData:
    kwargs: Dict[str, Any] = {}
    if config.context_engine_id:
        kwargs["contextEngineId"] = OctetString(hexValue=config.context_engine_id)
    if config.context_name:
        kwargs["contextName"] = config.context_name
    return ContextData(**kwargs)


async def _transport(config: SnmpConfig):
    host, port = split_address(config.address)
    target_cls = Udp6TransportTarget if config.network == "udp6" else UdpTransportTarget
    return await target_cls.create(
        (host, port), timeout=config.timeout, retries=config.retries
    )


def _check(error_indication, error_status, error_index, var_binds) -> None:
    if error_indication:
        raise SnmpError(str(error_indication))
    if error_status:
        at = error_index and var_binds[int(error_index) - 1][0] or "?"
        raise SnmpError(f"{error_status.prettyPrint()} at {at}")


async def _walk_column(
    engine, auth, target, context, oid: str, config: SnmpConfig, max_repetitions: int
) -> Dict[int, Any]:
    """Walk one table column; returns {ifIndex: value}."""
    if config.version == "v1":
        walker = walk_cmd(
            engine, auth, target, context,
            ObjectType(ObjectIdentity(oid)),
            lexicographicMode=False, lookupMib=False,
        )
    else:
        walker = bulk_walk_cmd(
            engine, auth, target, context, 0, max_repetitions,
            ObjectType(ObjectIdentity(oid)),
            lexicographicMode=False, lookupMib=False,
        )

    values: Dict[int, Any] = {}
    async for error_indication, error_status, error_index, var_binds in walker:
        _check(error_indication, error_status, error_index, var_binds)
        for name, value in var_binds:
            values[int(str(name).rsplit(".", 1)[-1])] = value
    return values


def _as_int(value) -> int:
    return int(value) if value is not None else 0


async def _snmp_poll_interfaces(router: Router, config: SnmpConfig) -> List[Interface]:
    engine = SnmpEngine()
    try:
        auth = _auth_data(config)
        context = _context_data(config)
        target = await _transport(config)

        error_indication, error_status, error_index, var_binds = await get_cmd(
            engine, auth, target, context,
            ObjectType(ObjectIdentity(SYS_UPTIME)),
            lookupMib=False,
        )
        _check(error_indication, error_status, error_index, var_binds)
        uptime = int(var_binds[0][1])

        columns = {
            key: await _walk_column(
                engine, auth, target, context, oid, config, router.bulk_max_repetition
            )
            for key, oid in IF_COLUMNS.items()
        }
    finally:
        engine.close_dispatcher()

    now = datetime.utcnow()
    interfaces = []
    for if_index in sorted(columns["name"]):

        def counter(key: str) -> int:
            return _as_int(columns[key].get(if_index))

        interfaces.append(
            Interface(
                name=str(columns["name"][if_index]),
                alias=str(columns["alias"].get(if_index, "")),
                speed=counter("high_speed") * 1_000_000,
                index=if_index,
                counters=CounterHistory(
                    IfCounters(
                        local_time=now,
                        remote_time=uptime,
                        in_octets=counter("in_octets"),
                        in_ucast_pkts=counter("in_ucast_pkts"),
                        in_mcast_pkts=counter("in_mcast_pkts"),
                        in_bcast_pkts=counter("in_bcast_pkts"),
                        out_octets=counter("out_octets"),
                        out_ucast_pkts=counter("out_ucast_pkts"),
                        out_mcast_pkts=counter("out_mcast_pkts"),
                        out_bcast_pkts=counter("out_bcast_pkts"),
                    )
                ),
            )
        )
    return interfaces


# ---------------------------------------------------------------------------
# Public API function used by the collector
# ---------------------------------------------------------------------------


def poll_interfaces(
    router: Router,
    config: Optional[SnmpConfig] = None,
    use_stub: bool = False,
) -> List[Interface]:
    """
    Main entry point: the current interface table of `router`.

    `config` defaults to the router's own SNMP config. Raises SnmpError when
    the device cannot be polled.
    """
    if use_stub:
        return _stub_poll_interfaces(router)

    config = config or router.snmp_config
    if config is None:
        raise SnmpError(f"router {router.unique_name} has no SNMP config")

    logger.debug(f"[snmp] polling {router.unique_name} at {config.address} ({config.version})")
    try:
        return asyncio.run(_snmp_poll_interfaces(router, config))
    except SnmpError:
        raise
    except (PySnmpError, OSError, ValueError) as exc:
        raise SnmpError(f"{router.unique_name}: {exc}") from exc
