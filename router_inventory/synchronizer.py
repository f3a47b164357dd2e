"""
Keep in-memory routers consistent with their stored rows.

Router metadata does not go through the reconcile/apply path used for
interfaces. A router is created in storage the first time it is seen; after
that, what happens when the stored copy differs from the in-memory one is a
policy decision (see `RouterSyncPolicy`):

- PULL: storage is the source of truth, local scalar edits are dropped
- PUSH: local scalars are written to storage
"""

from typing import Iterable, Sequence

from loguru import logger

from router_inventory.config import RouterSyncPolicy
from router_inventory.equality import routers_equal
from router_inventory.errors import ConsistencyError
from router_inventory.schemas import (
    ROUTER_FIELDS,
    STORAGE_FIELDS,
    Router,
    SnmpConfig,
    adopt_storage_fields,
)
from router_inventory.store import Store


def sync_from_store(router: Router, candidates: Sequence[Router]) -> Router:
    """
    Copy the stored state of `router` into it, in place.

    `candidates` is the result of looking storage up by `router.unique_name`.
    Identity, timestamps and every persisted scalar are copied; interfaces and
    SNMP config are left as they are.
    """
    if len(candidates) != 1:
        raise ConsistencyError("Router", router.unique_name, len(candidates))

    stored = candidates[0]
    for field in STORAGE_FIELDS + ROUTER_FIELDS:
        setattr(router, field, getattr(stored, field))
    return router


def create_router(store: Store, router: Router) -> Router:
    """
    Persist a new router along with its SNMP config and interfaces.

    Children get the new router id; every record is updated in place with
    its storage-assigned fields. Inside a transaction that later rolls back,
    they all get their previous identity back.
    """
    store.remember(router, *router.interfaces)
    if router.snmp_config is not None:
        store.remember(router.snmp_config)

    adopt_storage_fields(router, store.create(router))

    if router.snmp_config is not None:
        router.snmp_config.router_id = router.id
        adopt_storage_fields(router.snmp_config, store.create(router.snmp_config))

    for interface in router.interfaces:
        interface.router_id = router.id
        adopt_storage_fields(interface, store.create(interface))

    logger.info(
        f"[sync] created router {router.unique_name} (id={router.id}) "
        f"with {len(router.interfaces)} interface(s)"
    )
    return router


def ensure_snmp_config(store: Store, router: Router) -> None:
    """Create the router's SNMP config in storage if it has none yet."""
    if router.snmp_config is None or router.snmp_config.id is not None:
        return
    existing = store.find_by_unique_key(SnmpConfig, router.id)
    if existing:
        router.snmp_config = existing[0]
        return
    store.remember(router.snmp_config)
    router.snmp_config.router_id = router.id
    adopt_storage_fields(router.snmp_config, store.create(router.snmp_config))


def bootstrap_or_create(
    store: Store,
    routers: Iterable[Router],
    policy: RouterSyncPolicy = RouterSyncPolicy.PULL,
) -> None:
    """
    Make every in-memory router known to storage, and vice versa.

    On an empty store every router is created (with its children) in a
    single transaction, then refreshed from storage. Otherwise each router is
    looked up by unique name: unknown ones are created, known ones are
    reconciled according to `policy`.
    """
    routers = list(routers)

    if store.count(Router) == 0:
        logger.info(f"[sync] empty store, creating {len(routers)} router(s)")
        with store.transaction():
            for router in routers:
                create_router(store, router)
        for router in routers:
            sync_from_store(router, store.find_by_unique_key(Router, router.unique_name))
        return

    for router in routers:
        candidates = store.find_by_unique_key(Router, router.unique_name)

        if not candidates:
            with store.transaction():
                create_router(store, router)
            sync_from_store(router, store.find_by_unique_key(Router, router.unique_name))
            continue

        if len(candidates) > 1:
            raise ConsistencyError("Router", router.unique_name, len(candidates))

        stored = candidates[0]
        store.remember(router)
        if router.id is None:
            adopt_storage_fields(router, stored)

        if not routers_equal(router, stored):
            if policy == RouterSyncPolicy.PUSH:
                adopt_storage_fields(router, stored)
                saved = store.save(router)
                adopt_storage_fields(router, saved)
                logger.info(f"[sync] pushed local changes of router {router.unique_name}")
            else:
                sync_from_store(router, candidates)
                logger.info(f"[sync] refreshed router {router.unique_name} from storage")

        ensure_snmp_config(store, router)
