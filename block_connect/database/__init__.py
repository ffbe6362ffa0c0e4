import logging

import asyncpg

from block_connect.core.exceptions import DatabaseUnavailableError
from block_connect.core.settings import settings

logger = logging.getLogger(__name__)


class PostgreSQLConnection:
    """Owns the asyncpg pool shared by request handlers, background tasks and
    the seed script."""

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        database: str,
        min_size: int = 1,
        max_size: int = 10,
        application_name: str = "block-connect",
    ):
        self.pool: asyncpg.Pool | None = None
        self.database = database
        self.config = {
            "host": host,
            "port": port,
            "user": user,
            "password": password,
            "database": database,
            "min_size": min_size,
            "max_size": max_size,
            "server_settings": {"application_name": application_name},
        }

    @property
    def is_connected(self) -> bool:
        return self.pool is not None and not self.pool.is_closing()

    async def connect(self) -> None:
        if self.pool is not None:
            logger.debug(f"Pool for {self.database} already open")
            return

        logger.info(f"Opening PostgreSQL pool for {self.database}")
        try:
            self.pool = await asyncpg.create_pool(**self.config)
        except (OSError, asyncpg.PostgresError) as e:
            logger.error(f"Could not open PostgreSQL pool for {self.database}: {e}")
            raise DatabaseUnavailableError() from e
        logger.info(f"PostgreSQL pool ready for {self.database}")

    async def close(self) -> None:
        if self.pool is None:
            return
        logger.info(f"Closing PostgreSQL pool for {self.database}")
        pool, self.pool = self.pool, None
        await pool.close()

    def get_connection(self) -> asyncpg.pool.PoolAcquireContext:
        if self.pool is None:
            logger.error("Connection requested before the pool was opened")
            raise DatabaseUnavailableError("Database pool is not initialized")
        return self.pool.acquire()


db_connection = PostgreSQLConnection(
    host=settings.database_host,
    port=settings.database_port,
    user=settings.database_user,
    password=settings.database_password,
    database=settings.database_name,
    min_size=settings.database_pool_min_size,
    max_size=settings.database_pool_max_size,
    application_name=settings.app_name.lower().replace(" ", "-"),
)
