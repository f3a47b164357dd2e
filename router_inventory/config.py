"""
Configuration for the router inventory service.

We use pydantic-settings (Pydantic v2) to load settings from:
- environment variables
- a local `.env` file in the project root
"""

import enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RouterSyncPolicy(str, enum.Enum):
    """
    What to do when a stored router differs from the in-memory one.

    - pull: storage wins, local scalar edits are discarded
    - push: local scalars are saved to storage
    """

    PULL = "pull"
    PUSH = "push"


class RouterSeed(BaseModel):
    """One router entry of the ROUTERS setting."""

    unique_name: str
    flow_source_ip: Optional[str] = None
    address: Optional[str] = None
    community: Optional[str] = None
    bulk_max_repetition: int = 10


class Settings(BaseSettings):
    """
    Application-wide settings.

    Environment variables (with defaults):

    - DATABASE_URL:          SQLAlchemy URL, default SQLite file "inventory.db"
    - POLL_INTERVAL_SECONDS: How often each router is polled (default: 60)
    - USE_SNMP_STUB:         "1" or "0" to toggle fake SNMP data (default: 1/True)
    - SNMP_COMMUNITY:        Default SNMPv2c community string (default: "public")
    - SNMP_PORT:             Default UDP port for SNMP (default: 161)
    - SNMP_TIMEOUT:          Seconds before an SNMP request is retried (default: 2)
    - SNMP_RETRIES:          SNMP retry count (default: 1)
    - ROUTER_SYNC_POLICY:    "pull" or "push" (default: pull)
    - ABORT_ON_STORE_ERROR:  Stop applying a diff at the first failed action
    - MAX_WORKERS:           Routers polled in parallel (default: 4)
    - LOG_LEVEL:             loguru level (default: INFO)
    - LOG_FILE:              Optional path of a rotating log file
    - ROUTERS:               JSON list of routers to seed the inventory with
    """

    database_url: str = "sqlite:///./inventory.db"

    poll_interval_seconds: int = 60

    use_snmp_stub: bool = True
    snmp_community: str = "public"
    snmp_port: int = 161
    snmp_timeout: float = 2.0
    snmp_retries: int = 1

    router_sync_policy: RouterSyncPolicy = RouterSyncPolicy.PULL
    abort_on_store_error: bool = True

    max_workers: int = Field(default=4, ge=1)

    log_level: str = "INFO"
    log_file: Optional[str] = None

    routers: List[RouterSeed] = Field(default_factory=list)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        """Accept "debug", "Debug", ... as well as "DEBUG"."""
        if isinstance(v, str):
            return v.strip().upper()
        return v


# Single global settings object
settings = Settings()
