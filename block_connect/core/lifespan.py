import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from block_connect.core.logging import setup_logging
from block_connect.core.settings import settings
from block_connect.database import db_connection

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging(settings.log_level)
    logger.info(f"Starting {settings.app_name} {settings.app_version}")
    await db_connection.connect()
    try:
        yield
    finally:
        logger.info(f"Shutting down {settings.app_name}")
        await db_connection.close()
