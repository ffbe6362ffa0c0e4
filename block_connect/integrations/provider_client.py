import asyncio
import logging
from types import TracebackType
from typing import Self

import aiohttp

from block_connect.core.exceptions import UpstreamProviderError
from block_connect.core.settings import settings

logger = logging.getLogger(__name__)


class ProviderApiClient:
    """Outbound HTTP calls to a provider app block's declared API."""

    def __init__(self, timeout: float | None = None):
        self._timeout = aiohttp.ClientTimeout(
            total=timeout or settings.provider_health_timeout_seconds
        )
        self._client: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> Self:
        self._client = aiohttp.ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def _get_client(self) -> aiohttp.ClientSession:
        if self._client is None or self._client.closed:
            logger.debug("Creating new aiohttp ClientSession")
            self._client = aiohttp.ClientSession(timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.closed:
            await self._client.close()
            self._client = None

    async def check_status(self, provider: str, url: str, access_token: str) -> int:
        """GET ``url`` with the bearer token and return the HTTP status.

        Raises ``UpstreamProviderError`` when no response arrives at all.
        """
        client = await self._get_client()
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }
        logger.debug(f"Checking provider {provider} at {url}")
        try:
            async with client.get(url, headers=headers) as response:
                return response.status
        except asyncio.TimeoutError as e:
            raise UpstreamProviderError(provider, "request timed out") from e
        except aiohttp.ClientError as e:
            raise UpstreamProviderError(provider, str(e) or type(e).__name__) from e
