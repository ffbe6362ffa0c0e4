"""
Tests for provider health checks, with the HTTP client replaced.
"""

import pytest

from block_connect.constants.enums import HealthStatus, InstallationStatus
from block_connect.core.exceptions import UpstreamProviderError
from block_connect.models.installation import ProviderRef
from block_connect.services.provider_health_service import (
    ProviderHealthService,
    resolve_api_url,
)


class FakeProviderClient:
    def __init__(self, status: int | None = 200, error: str | None = None):
        self.status = status
        self.error = error
        self.calls = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def check_status(self, provider: str, url: str, access_token: str) -> int:
        self.calls.append((provider, url, access_token))
        if self.error:
            raise UpstreamProviderError(provider, self.error)
        return self.status


def health_service(services, client: FakeProviderClient) -> ProviderHealthService:
    return ProviderHealthService(
        services.manager,
        services.catalog,
        services.token_service,
        client_factory=lambda: client,
    )


async def install_provider(services, owner, consumer, make_provider):
    provider = make_provider()
    result = await services.manager.install(
        owner, consumer.id, ProviderRef.app_block(provider.id), ["events.read"]
    )
    return result.installation


class TestCheck:
    @pytest.mark.asyncio
    async def test_healthy_provider(self, services, db, owner, consumer, make_provider):
        installation = await install_provider(services, owner, consumer, make_provider)
        client = FakeProviderClient(status=200)

        result = await health_service(services, client).check(owner, installation.id)

        assert result.health == HealthStatus.HEALTHY
        assert result.upstream_status == 200
        _, url, token = client.calls[0]
        assert url == "https://provider.example.com/api"
        assert services.token_service.verify_app_token(token).scopes == ["events.read"]

    @pytest.mark.asyncio
    async def test_auth_failure_marks_error(self, services, owner, consumer, make_provider):
        installation = await install_provider(services, owner, consumer, make_provider)

        result = await health_service(services, FakeProviderClient(status=401)).check(
            owner, installation.id
        )

        assert result.health == HealthStatus.NEEDS_REAUTH
        assert result.installation.status == InstallationStatus.ERROR

    @pytest.mark.asyncio
    async def test_unreachable_marks_error(self, services, owner, consumer, make_provider):
        installation = await install_provider(services, owner, consumer, make_provider)

        result = await health_service(
            services, FakeProviderClient(error="connection refused")
        ).check(owner, installation.id)

        assert result.health == HealthStatus.NEEDS_REAUTH
        assert result.installation.status == InstallationStatus.ERROR

    @pytest.mark.asyncio
    async def test_server_error_is_degraded(self, services, owner, consumer, make_provider):
        installation = await install_provider(services, owner, consumer, make_provider)

        result = await health_service(services, FakeProviderClient(status=503)).check(
            owner, installation.id
        )

        assert result.health == HealthStatus.DEGRADED
        assert result.installation.status == InstallationStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_errored_installation_is_not_checked(
        self, services, owner, consumer, make_provider
    ):
        installation = await install_provider(services, owner, consumer, make_provider)
        await services.manager.mark_error(installation.id, "expired credential")
        client = FakeProviderClient()

        result = await health_service(services, client).check(owner, installation.id)

        assert result.health == HealthStatus.NEEDS_REAUTH
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_connector_is_healthy_without_request(
        self, services, owner, consumer, events_connector
    ):
        installed = await services.manager.install(
            owner, consumer.id, ProviderRef.connector("events"), ["events.read"]
        )
        client = FakeProviderClient()

        result = await health_service(services, client).check(owner, installed.installation.id)

        assert result.health == HealthStatus.HEALTHY
        assert client.calls == []


class TestResolveApiUrl:
    def test_absolute_url_is_kept(self):
        assert resolve_api_url("https://x.example.com/api") == "https://x.example.com/api"

    def test_relative_url_joins_platform(self):
        assert resolve_api_url("/api/districts/events") == (
            "https://platform.test/api/districts/events"
        )
