"""Entry point for the SSV APR service.

Wires all components together and serves the FastAPI app with uvicorn.
The scheduler, the feeds and the database share the single asyncio event
loop; FastAPI's lifespan context manager owns their startup and shutdown.

Component wiring order (in _build_components):
1. AppSettings (configuration)
2. Logging setup
3. SampleDatabase + SampleStore (persistence)
4. ContractIndexReader (accEthPerShare)
5. CoinGeckoPriceReader (ETH/SSV prices)
6. EffectiveBalanceReader (projected APR balances)
7. SamplingOrchestrator (collection cycle and read views)
8. AsyncIOScheduler (cron collection + weekly pruning)
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from apr_service.config import AppSettings
from apr_service.data.database import SampleDatabase
from apr_service.data.store import SampleStore
from apr_service.feeds.coingecko import CoinGeckoPriceReader
from apr_service.feeds.contract_index import ContractIndexReader
from apr_service.feeds.effective_balance import EffectiveBalanceReader
from apr_service.logging import get_logger, setup_logging
from apr_service.orchestrator import SamplingOrchestrator
from apr_service.scheduler import build_scheduler


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all service components from settings.

    Note: Does NOT connect the database or start the scheduler -- that
    happens in the lifespan.

    Returns:
        Dict mapping component names to instances.
    """
    database = SampleDatabase(settings.storage.db_path)
    store = SampleStore(database)

    index_reader = ContractIndexReader(settings.chain)
    price_reader = CoinGeckoPriceReader(settings.prices)
    balance_reader = EffectiveBalanceReader(settings.balances)

    orchestrator = SamplingOrchestrator(
        index_reader=index_reader,
        price_reader=price_reader,
        balance_reader=balance_reader,
        store=store,
        retention_days=settings.schedule.retention_days,
    )

    scheduler = build_scheduler(orchestrator, settings.schedule)

    return {
        "database": database,
        "store": store,
        "index_reader": index_reader,
        "price_reader": price_reader,
        "balance_reader": balance_reader,
        "orchestrator": orchestrator,
        "scheduler": scheduler,
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage component lifecycle within the FastAPI application.

    On startup: connects the database, exposes the orchestrator on app.state,
    starts the scheduler (if enabled).

    On shutdown: stops the scheduler, closes feed clients and the database.
    """
    logger = get_logger("apr_service.main")
    settings: AppSettings = app.state.settings
    components = app.state.components

    await components["database"].connect()
    app.state.orchestrator = components["orchestrator"]

    scheduler = components["scheduler"]
    if settings.schedule.enabled:
        scheduler.start()
        logger.info("scheduler_started")
    else:
        logger.info("scheduler_disabled")

    logger.info(
        "apr_service_started",
        host=settings.api.host,
        port=settings.api.port,
        docs=f"{settings.api.prefix.rstrip('/')}/docs",
    )

    yield

    if scheduler.running:
        scheduler.shutdown(wait=False)

    for name in ("index_reader", "price_reader", "balance_reader"):
        await components[name].close()

    await components["database"].close()
    logger.info("apr_service_stopped")


async def run() -> None:
    """Run the APR service: HTTP API plus scheduled collection."""
    settings = AppSettings()

    setup_logging(settings.log_level)

    components = _build_components(settings)

    from apr_service.api.app import create_app

    app = create_app(
        lifespan=lifespan,
        prefix=settings.api.prefix,
        cors_origin=settings.api.cors_origin,
    )
    app.state.settings = settings
    app.state.components = components

    config = uvicorn.Config(
        app,
        host=settings.api.host,
        port=settings.api.port,
        log_level="warning",  # Suppress uvicorn access logs
    )
    server = uvicorn.Server(config)
    await server.serve()


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
