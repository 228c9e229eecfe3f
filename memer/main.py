"""
memer/main.py
Bootstrap: configure logging, open the ledger store, seed the catalog, serve HTTP
"""

import logging
from typing import Optional, Tuple

from aiohttp import web

from .database.database_service import DatabaseService
from .database.ledger import Ledger, MemoryLedger, PostgresLedger
from .database.seed import default_items
from .services.registry import build_services
from .utils.config import Config
from .utils.logging_config import setup_logging
from .utils.webserver import EconomyWebServer

logger = logging.getLogger(__name__)


async def open_ledger(config: Config) -> Tuple[Ledger, Optional[DatabaseService]]:
    if config.storage_backend == "memory":
        logger.info("Using in-memory ledger store")
        return MemoryLedger(), None

    if config.storage_backend == "postgres":
        db_service = DatabaseService(config)
        pool = await db_service.initialize()
        ledger = PostgresLedger(pool)
        await ledger.ensure_schema()
        return ledger, db_service

    raise ValueError(f"Unknown STORAGE_BACKEND '{config.storage_backend}' (expected memory or postgres)")


async def create_app(config: Optional[Config] = None) -> web.Application:
    config = config or Config()
    ledger, db_service = await open_ledger(config)

    if config.seed_catalog:
        await ledger.seed_catalog(default_items())

    server = EconomyWebServer(build_services(ledger, config), config)
    if db_service is not None:
        async def close_database(_app: web.Application):
            await db_service.close()

        server.app.on_cleanup.append(close_database)

    if not config.admin_token:
        logger.warning("ADMIN_TOKEN is not set; admin commands are disabled")
    logger.info(f"Meme economy API ready on {config.http_host}:{config.http_port}")
    return server.app


def main():
    config = Config()
    setup_logging(config.log_level, config.log_file)
    web.run_app(create_app(config), host=config.http_host, port=config.http_port, access_log=None)


if __name__ == "__main__":
    main()
