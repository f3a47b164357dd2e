"""
Background collector process.

This module:
- makes the configured routers known to the database (bootstrap)
- polls the interface table of each router (SNMP client, stub or real)
- reconciles it with the stored interfaces and applies the diff

Routers are polled in parallel, one task per router at most; a router whose
previous cycle is still writing is skipped for this cycle.

Run it as:

    $env:USE_SNMP_STUB="1"
    python -m router_inventory.collector
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional, Sequence

from loguru import logger

from router_inventory.config import RouterSeed, Settings, settings
from router_inventory.database import SessionLocal
from router_inventory.equality import same_interface
from router_inventory.errors import ConsistencyError, InventoryError
from router_inventory.executor import ApplyReport, apply_interface_diff
from router_inventory.loader import load_interfaces, load_routers, load_snmp_config
from router_inventory.reconciler import reconcile_interfaces, summarize
from router_inventory.schemas import Interface, Router, SnmpConfig
from router_inventory.snmp_client import poll_interfaces
from router_inventory.store import Store
from router_inventory.synchronizer import bootstrap_or_create
from router_inventory.tasks import RouterTask, RouterTaskRegistry, TaskCancelled


def seed_routers(seeds: Iterable[RouterSeed], config: Settings = settings) -> List[Router]:
    """Build in-memory routers from the ROUTERS setting."""
    routers = []
    for seed in seeds:
        address = seed.address or seed.flow_source_ip
        snmp_config = None
        if address:
            snmp_config = SnmpConfig(
                address=address,
                community=seed.community or config.snmp_community,
                timeout=config.snmp_timeout,
                retries=config.snmp_retries,
            )
        routers.append(
            Router(
                unique_name=seed.unique_name,
                flow_source_ip=seed.flow_source_ip,
                bulk_max_repetition=seed.bulk_max_repetition,
                snmp_config=snmp_config,
            )
        )
    return routers


def carry_over_counters(polled: Sequence[Interface], previous: Sequence[Interface]) -> None:
    """Chain the counters of each polled interface onto those of the last poll."""
    for p in polled:
        if p.counters is None:
            continue
        for q in previous:
            if same_interface(p, q):
                p.counters.carry_over(q.counters)
                break


def reconcile_router(
    store: Store,
    router: Router,
    polled: List[Interface],
    abort_on_error: bool = True,
) -> ApplyReport:
    """Diff `polled` against what is stored for `router` and apply the result."""
    for interface in polled:
        interface.router_id = router.id
    carry_over_counters(polled, router.interfaces)

    stored = load_interfaces(store, router)
    diff = reconcile_interfaces(polled, stored)
    report = apply_interface_diff(
        store, router, polled, stored, diff, abort_on_error=abort_on_error
    )

    logger.info(
        f"[collector] {router.unique_name}: {summarize(diff)}"
        + (f", {len(report.failed)} failed" if report.failed else "")
    )
    return report


class Collector:
    """Owns the routers being polled and their task handles."""

    def __init__(
        self,
        routers: Iterable[Router],
        session_factory=SessionLocal,
        config: Settings = settings,
    ):
        self.routers: List[Router] = list(routers)
        self.session_factory = session_factory
        self.config = config
        self.registry = RouterTaskRegistry()
        # Routers whose poller was stopped, by cancel() or a consistency error
        self.stopped: set = set()
        self._pool = ThreadPoolExecutor(
            max_workers=config.max_workers, thread_name_prefix="poller"
        )
        self._shutdown = threading.Event()

    def bootstrap(self) -> None:
        """Ensure the schema, sync configured routers, then adopt the stored ones."""
        with self.session_factory() as db:
            store = Store(db)
            store.ensure_schema()
            bootstrap_or_create(store, self.routers, self.config.router_sync_policy)

            known = {r.unique_name for r in self.routers}
            for router in self.routers:
                router.interfaces = load_interfaces(store, router)
                if router.snmp_config is None:
                    router.snmp_config = load_snmp_config(store, router)
            for router in load_routers(store, with_interfaces=True, with_snmp_config=True):
                if router.unique_name not in known:
                    self.routers.append(router)

        logger.info(f"[collector] managing {len(self.routers)} router(s)")

    def cancel(self, unique_name: str) -> None:
        """Stop polling `unique_name`; its in-flight task stops at its next step."""
        self.stopped.add(unique_name)
        self.registry.cancel(unique_name)

    def run_cycle(self) -> Dict[str, Optional[ApplyReport]]:
        """Poll every active router once and wait for all of them."""
        futures = {}
        for router in self.routers:
            name = router.unique_name
            if name in self.stopped:
                continue
            if not self.registry.wait(name, timeout=0):
                logger.warning(f"[collector] {name}: previous cycle still running, skipped")
                continue
            task = self.registry.start(name)
            futures[name] = self._pool.submit(self._run_task, router, task)

        reports: Dict[str, Optional[ApplyReport]] = {}
        for name, future in futures.items():
            try:
                reports[name] = future.result()
            except Exception:
                # one broken poller never costs the other routers their cycle
                logger.exception(f"[collector] {name}: unexpected error in poller")
                reports[name] = None
        return reports

    def _run_task(self, router: Router, task: RouterTask) -> Optional[ApplyReport]:
        try:
            report = self.poll_router(router, task)
        except TaskCancelled:
            logger.info(f"[collector] {router.unique_name}: cancelled")
            task.finish(None)
            return None
        except ConsistencyError as exc:
            logger.error(f"[collector] {router.unique_name}: {exc}; poller stopped")
            self.stopped.add(router.unique_name)
            task.fail(exc)
            return None
        except InventoryError as exc:
            logger.error(f"[collector] {router.unique_name}: {exc}")
            task.fail(exc)
            return None
        except Exception as exc:
            task.fail(exc)
            raise
        task.finish(report)
        return report

    def poll_router(self, router: Router, task: RouterTask) -> ApplyReport:
        task.raise_if_cancelled()
        polled = poll_interfaces(router, use_stub=self.config.use_snmp_stub)
        task.raise_if_cancelled()
        with self.session_factory() as db:
            return reconcile_router(
                Store(db), router, polled, abort_on_error=self.config.abort_on_store_error
            )

    def run_forever(self) -> None:
        """Main collector loop: poll, reconcile, sleep, repeat."""
        while not self._shutdown.is_set():
            self.run_cycle()
            self._shutdown.wait(self.config.poll_interval_seconds)

    def shutdown(self) -> None:
        self._shutdown.set()
        self.registry.cancel_all()
        self._pool.shutdown(wait=True)


def main() -> None:
    from router_inventory.logger import setup_logger

    setup_logger()
    logger.info("[collector] Starting router inventory collector...")
    logger.info(f"[collector] Poll interval: {settings.poll_interval_seconds} seconds")

    collector = Collector(seed_routers(settings.routers))
    collector.bootstrap()
    try:
        collector.run_forever()
    except KeyboardInterrupt:
        logger.info("[collector] interrupted, shutting down")
    finally:
        collector.shutdown()


if __name__ == "__main__":
    main()
