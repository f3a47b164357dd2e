"""
SQLAlchemy ORM models.

Three tables:

- ManagedRouter:    one row per router, keyed by `unique_name`
- ManagedInterface: the interface table of a router (many per router)
- UserSnmpConfig:   SNMP credentials of a router (at most one per router)

These rows only live inside the store. Code outside `store.py` works with the
pydantic records from `schemas.py`.
"""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
)

from router_inventory.database import Base


class ManagedRouter(Base):
    __tablename__ = "managed_routers"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    # Natural key, assigned by whoever declares the router
    unique_name = Column(String(255), unique=True, index=True, nullable=False)

    # System group, refreshed from the device
    name = Column(String(255), nullable=False, default="")
    description = Column(String(1024), nullable=False, default="")
    up_time = Column(String(64), nullable=False, default="")
    contact = Column(String(255), nullable=False, default="")
    location = Column(String(255), nullable=False, default="")

    lat = Column(Float, nullable=False, default=0.0)
    lon = Column(Float, nullable=False, default=0.0)

    bulk_max_repetition = Column(Integer, nullable=False, default=10)

    # Source address of the netflow packets exported by this router
    flow_source_ip = Column(String(45), nullable=True)

    polling_interval = Column(String(32), nullable=False, default="")


class ManagedInterface(Base):
    __tablename__ = "managed_interfaces"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    router_id = Column(
        Integer,
        ForeignKey("managed_routers.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )

    name = Column(String(255), nullable=False, default="")
    alias = Column(String(255), nullable=False, default="")

    # ifHighSpeed converted to bits/sec
    speed = Column(BigInteger, nullable=False, default=0)

    # ifIndex as reported by the device
    index = Column(Integer, nullable=False)


class UserSnmpConfig(Base):
    __tablename__ = "user_snmp_configs"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    router_id = Column(
        Integer,
        ForeignKey("managed_routers.id", ondelete="CASCADE"),
        unique=True,
        index=True,
        nullable=False,
    )

    # Transport
    network = Column(String(16), nullable=False, default="udp")
    address = Column(String(255), nullable=False)
    timeout = Column(Float, nullable=False, default=2.0)
    retries = Column(Integer, nullable=False, default=1)
    max_msg_size = Column(Integer, nullable=False, default=65507)

    # "v1", "v2c" or "v3"
    version = Column(String(8), nullable=False, default="v2c")

    # v1 / v2c
    community = Column(String(255), nullable=True)

    # v3 (USM)
    user_name = Column(String(255), nullable=True)
    security_level = Column(String(16), nullable=True)
    auth_password = Column(String(255), nullable=True)
    auth_protocol = Column(String(16), nullable=True)
    priv_password = Column(String(255), nullable=True)
    priv_protocol = Column(String(16), nullable=True)
    security_engine_id = Column(String(64), nullable=True)
    context_engine_id = Column(String(64), nullable=True)
    context_name = Column(String(255), nullable=True)
