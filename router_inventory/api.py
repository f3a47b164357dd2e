"""
FastAPI application exposing the router inventory.

Endpoints
---------
- GET /health                           -> Simple liveness check
- GET /routers                          -> Every stored router
- GET /routers/{unique_name}            -> One router
- GET /routers/{unique_name}/interfaces -> Stored interface table of a router
"""

from contextlib import asynccontextmanager
from typing import List

from fastapi import Depends, FastAPI, HTTPException
from sqlalchemy.orm import Session

from router_inventory.database import SessionLocal, init_db
from router_inventory.errors import ConsistencyError, StoreError
from router_inventory.loader import load_router, load_routers
from router_inventory.schemas import InterfaceOut, Router, RouterOut
from router_inventory.store import Store


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Make sure tables exist even if the collector has not been run yet.
    init_db()
    yield


app = FastAPI(
    title="Router Inventory API",
    version="0.1.0",
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Dependency: one DB session per request
# ---------------------------------------------------------------------------

def get_db() -> Session:
    """
    FastAPI dependency that provides a SQLAlchemy session.

    The session is created at the start of the request and closed at the end.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _router_out(router: Router) -> RouterOut:
    return RouterOut(
        **router.model_dump(),
        interface_count=len(router.interfaces),
    )


def _get_router(store: Store, unique_name: str, with_interfaces: bool) -> Router:
    try:
        return load_router(store, unique_name, with_interfaces=with_interfaces)
    except ConsistencyError as exc:
        if exc.count == 0:
            raise HTTPException(status_code=404, detail=f"unknown router {unique_name}")
        raise HTTPException(status_code=409, detail=str(exc))
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@app.get("/health")
def health() -> dict:
    """Simple liveness endpoint used for health checks."""
    return {"status": "ok"}


@app.get("/routers", response_model=List[RouterOut])
def list_routers(db: Session = Depends(get_db)):
    """Every stored router, ordered by id, with its interface count."""
    try:
        routers = load_routers(Store(db), with_interfaces=True)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return [_router_out(r) for r in routers]


@app.get("/routers/{unique_name}", response_model=RouterOut)
def get_router(unique_name: str, db: Session = Depends(get_db)):
    return _router_out(_get_router(Store(db), unique_name, with_interfaces=True))


@app.get("/routers/{unique_name}/interfaces", response_model=List[InterfaceOut])
def get_router_interfaces(unique_name: str, db: Session = Depends(get_db)):
    """Stored interfaces of a router, in the order they were first seen."""
    router = _get_router(Store(db), unique_name, with_interfaces=True)
    return [InterfaceOut.model_validate(i, from_attributes=True) for i in router.interfaces]
