# main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adapters.external.database.ledger_events_repository_mongodb import LedgerEventsRepositoryMongoDB
from adapters.external.database.ledger_snapshot_repository_mongodb import LedgerSnapshotRepositoryMongoDB
from adapters.external.database.wrapper_factory_repository_mongodb import WrapperFactoryRepositoryMongoDB
from adapters.entry.http.view.admin.admin_view import router as admin_router
from adapters.entry.http.view.factories import router as factories_router
from adapters.entry.http.view.ledger import router as ledger_router
from adapters.entry.http.view.wrappers import router as wrappers_router
from config import get_settings
from core.services.ledger import Ledger
from core.services.ledger_cache import install_ledger

logger = logging.getLogger(__name__)


def init_mongo_indexes() -> None:
    """
    Initialize MongoDB indexes for the ledger collections.

    This makes sure the application has the expected indexes for efficient
    queries and unique constraints before serving any request.
    """
    # Wrapper factories: __init__ already ensures its own indexes
    WrapperFactoryRepositoryMongoDB()

    LedgerEventsRepositoryMongoDB().ensure_indexes()
    LedgerSnapshotRepositoryMongoDB().ensure_indexes()


def restore_latest_snapshot() -> None:
    """
    Boot the ledger from the newest stored snapshot of this chain, if any.
    """
    s = get_settings()
    snap = LedgerSnapshotRepositoryMongoDB().get_latest(chain=s.CHAIN_NAME)
    if snap is None:
        logger.info("no snapshot stored for %s; starting from genesis", s.CHAIN_NAME)
        return
    install_ledger(Ledger.from_snapshot(snap, block_gas_limit=s.BLOCK_GAS_LIMIT, block_time_sec=s.BLOCK_TIME_SEC))
    logger.info("ledger restored from snapshot %s (block %d)", snap.id, snap.block_number)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context.

    Runs once on startup (before the first request) and once on shutdown.
    Makes sure MongoDB indexes exist and, when configured, restores the ledger
    from its latest snapshot before handling traffic.
    """
    init_mongo_indexes()
    if get_settings().RESTORE_SNAPSHOT_ON_START:
        restore_latest_snapshot()
    yield


def create_app(*, with_lifespan: bool = True) -> FastAPI:
    """
    Application factory for the Token Wrapper Ledger API.

    Wires routes and configures the application lifespan so that infrastructure
    (MongoDB indexes, ledger state) is ready before processing requests.
    """
    s = get_settings()
    logging.basicConfig(
        level=getattr(logging, s.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Token Wrapper Ledger API",
        version="0.1.0",
        lifespan=lifespan if with_lifespan else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(admin_router, prefix="/api")
    app.include_router(factories_router, prefix="/api")
    app.include_router(wrappers_router, prefix="/api")
    app.include_router(ledger_router, prefix="/api")

    return app


app = create_app()
