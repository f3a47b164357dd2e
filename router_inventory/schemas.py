"""
Pydantic models ("schemas") for in-memory records and API responses.

The poller, the reconciler and the synchronizer all work on these records;
only `store.py` ever touches the SQLAlchemy rows from `models.py`. Records
are built from rows with `Model.model_validate(row)` (from_attributes).
"""

from datetime import datetime
from ipaddress import ip_address
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from router_inventory.counters import CounterHistory

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1


class Record(BaseModel):
    """Storage-assigned fields shared by every persisted record."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Fields written by the store rather than by us
STORAGE_FIELDS = ("id", "created_at", "updated_at")


def adopt_storage_fields(target: Record, source: Record) -> None:
    """Copy id and timestamps of `source` (a persisted copy) into `target`."""
    for field in STORAGE_FIELDS:
        setattr(target, field, getattr(source, field))


class Interface(Record):
    """
    One entry of a router's interface table.

    `counters` is the live traffic snapshot of the last poll; it is never
    written to storage.
    """

    model_config = ConfigDict(from_attributes=True, arbitrary_types_allowed=True)

    router_id: Optional[int] = None
    name: str = ""
    alias: str = ""
    speed: int = Field(default=0, ge=0)
    index: int = Field(ge=INT32_MIN, le=INT32_MAX)

    counters: Optional[CounterHistory] = Field(default=None, exclude=True)


class SnmpConfig(Record):
    """SNMP transport and credentials of one router."""

    router_id: Optional[int] = None

    network: str = "udp"
    address: str
    timeout: float = 2.0
    retries: int = 1
    max_msg_size: int = 65507

    version: str = "v2c"

    community: Optional[str] = None

    user_name: Optional[str] = None
    security_level: Optional[str] = None
    auth_password: Optional[str] = None
    auth_protocol: Optional[str] = None
    priv_password: Optional[str] = None
    priv_protocol: Optional[str] = None
    security_engine_id: Optional[str] = None
    context_engine_id: Optional[str] = None
    context_name: Optional[str] = None

    @field_validator("version")
    @classmethod
    def check_version(cls, v: str) -> str:
        if v not in ("v1", "v2c", "v3"):
            raise ValueError(f"unsupported SNMP version {v!r}")
        return v


class Router(Record):
    """
    A managed router.

    `interfaces` and `snmp_config` are owned by the router in memory; they are
    persisted to their own tables and are not part of router equality.
    """

    unique_name: str

    name: str = ""
    description: str = ""
    up_time: str = ""
    contact: str = ""
    location: str = ""

    lat: float = 0.0
    lon: float = 0.0

    bulk_max_repetition: int = 10
    flow_source_ip: Optional[str] = None
    polling_interval: str = ""

    interfaces: List[Interface] = Field(default_factory=list, exclude=True)
    snmp_config: Optional[SnmpConfig] = Field(default=None, exclude=True)

    @field_validator("flow_source_ip")
    @classmethod
    def check_flow_source_ip(cls, v: Optional[str]) -> Optional[str]:
        """Keep the textual form, normalized (e.g. compressed IPv6)."""
        if v is None or v == "":
            return None
        return str(ip_address(v))


# Persisted scalar fields of a router, storage-assigned ones excluded
ROUTER_FIELDS = (
    "unique_name",
    "name",
    "description",
    "up_time",
    "contact",
    "location",
    "lat",
    "lon",
    "bulk_max_repetition",
    "flow_source_ip",
    "polling_interval",
)


# ---------------------------------------------------------------------------
# API views
# ---------------------------------------------------------------------------


class InterfaceOut(BaseModel):
    """Full view of a stored interface for API responses."""

    id: int
    router_id: int
    name: str
    alias: str
    speed: int
    index: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RouterOut(BaseModel):
    id: int
    unique_name: str
    name: str
    description: str
    up_time: str
    contact: str
    location: str
    lat: float
    lon: float
    bulk_max_repetition: int
    flow_source_ip: Optional[str]
    polling_interval: str
    created_at: datetime
    updated_at: datetime
    interface_count: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)
