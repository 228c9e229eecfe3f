"""
memer/database/database_service.py
PostgreSQL connection management for the ledger store
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

import asyncpg

from ..utils.config import Config

logger = logging.getLogger(__name__)

CONNECT_ATTEMPTS = 30


class DatabaseService:
    """Waits for PostgreSQL and owns the asyncpg pool"""

    def __init__(self, config: Config):
        self.config = config
        self.pool: Optional[asyncpg.Pool] = None
        self.db_host = config.db_host
        self.db_port = config.db_port
        self.db_name = config.db_name
        self.db_user = config.db_user
        self.db_password = config.db_password

    async def initialize(self) -> asyncpg.Pool:
        """Wait for the database, then create the connection pool"""
        start_time = datetime.utcnow()
        logger.info("Initializing database service...")

        try:
            await self._wait_for_database()
            self.pool = await self._create_connection_pool()
            init_time = (datetime.utcnow() - start_time).total_seconds()
            logger.info(f"Database service initialized successfully in {init_time:.2f}s")
            return self.pool
        except Exception as e:
            init_time = (datetime.utcnow() - start_time).total_seconds()
            logger.error(f"Failed to initialize database after {init_time:.2f}s: {e}")
            raise

    async def _wait_for_database(self):
        """Retry until PostgreSQL accepts connections to the target database"""
        logger.info(f"Checking if database '{self.db_name}' is reachable...")

        for attempt in range(CONNECT_ATTEMPTS):
            try:
                test_conn = await asyncpg.connect(
                    host=self.db_host,
                    port=self.db_port,
                    user=self.db_user,
                    password=self.db_password,
                    database=self.db_name,
                )
                version = await test_conn.fetchval("SELECT version()")
                await test_conn.close()

                logger.info(f"Database '{self.db_name}' is ready - PostgreSQL: {version[:50]}...")
                return

            except Exception as e:
                if attempt < CONNECT_ATTEMPTS - 1:
                    logger.info(
                        f"Database not ready (attempt {attempt + 1}/{CONNECT_ATTEMPTS}), waiting... Error: {e}"
                    )
                    await asyncio.sleep(1)
                else:
                    logger.error(f"Failed to connect to database after {CONNECT_ATTEMPTS} attempts: {e}")
                    raise

    async def _create_connection_pool(self) -> asyncpg.Pool:
        """Create asyncpg connection pool"""
        logger.info(f"Creating connection pool to {self.db_host}:{self.db_port}/{self.db_name}")

        try:
            pool = await asyncpg.create_pool(
                host=self.db_host,
                port=self.db_port,
                user=self.db_user,
                password=self.db_password,
                database=self.db_name,
                min_size=self.config.db_pool_min,
                max_size=self.config.db_pool_max,
                command_timeout=60,
            )

            async with pool.acquire() as conn:
                current_db = await conn.fetchval("SELECT current_database()")
                if current_db != self.db_name:
                    raise RuntimeError(f"Connected to wrong database: {current_db}, expected: {self.db_name}")
                logger.info(f"Connected to database: {current_db}")

            return pool

        except Exception as e:
            logger.error(f"Failed to create connection pool: {e}")
            raise

    async def close(self):
        """Close all database connections"""
        logger.info("Closing database connections...")
        if self.pool:
            try:
                await self.pool.close()
                logger.info("Connection pool closed")
            except Exception as e:
                logger.error(f"Error closing connection pool: {e}")
            self.pool = None
        logger.info("Database service shutdown complete")
