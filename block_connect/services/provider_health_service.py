import logging
from collections.abc import Callable
from urllib.parse import urljoin, urlparse

from block_connect.constants.enums import (
    HealthStatus,
    InstallationKind,
    InstallationStatus,
    ProviderStatus,
    SubjectType,
)
from block_connect.core.exceptions import NotFoundError, UpstreamProviderError
from block_connect.core.security import TokenService
from block_connect.core.settings import settings
from block_connect.dtos.health_dtos import HealthCheckResultDTO
from block_connect.dtos.token_dtos import TokenGrant
from block_connect.integrations.provider_client import ProviderApiClient
from block_connect.models.identity import Identity
from block_connect.models.installation import Installation
from block_connect.services.installation_manager import InstallationManager
from block_connect.services.scope_catalog import ScopeCatalog

logger = logging.getLogger(__name__)

_AUTH_FAILURE_STATUSES = (401, 403)


def resolve_api_url(base_api_url: str) -> str:
    if urlparse(base_api_url).scheme:
        return base_api_url
    return urljoin(settings.platform_base_url.rstrip("/") + "/", base_api_url.lstrip("/"))


class ProviderHealthService:
    """Checks whether an installation's provider still accepts its grant.

    An auth failure or an unreachable provider moves the installation to
    ``error`` so the consumer can re-authorize without re-granting scopes.
    """

    def __init__(
        self,
        installation_manager: InstallationManager,
        scope_catalog: ScopeCatalog,
        token_service: TokenService,
        client_factory: Callable[[], ProviderApiClient] = ProviderApiClient,
    ):
        self._installation_manager = installation_manager
        self._scope_catalog = scope_catalog
        self._token_service = token_service
        self._client_factory = client_factory

    async def check(self, identity: Identity, installation_id: str) -> HealthCheckResultDTO:
        installation = await self._installation_manager.get_as_consumer(
            identity, installation_id
        )

        if installation.status == InstallationStatus.ERROR:
            return HealthCheckResultDTO(
                installation=installation, health=HealthStatus.NEEDS_REAUTH
            )
        if installation.status != InstallationStatus.ACTIVE:
            return HealthCheckResultDTO(
                installation=installation, health=HealthStatus.INACTIVE
            )
        if installation.kind == InstallationKind.CONNECTOR:
            return HealthCheckResultDTO(
                installation=installation, health=HealthStatus.HEALTHY
            )

        try:
            context = await self._scope_catalog.resolve_provider(installation.provider_ref)
        except NotFoundError:
            return HealthCheckResultDTO(
                installation=installation,
                health=HealthStatus.INACTIVE,
                message="Provider no longer exists",
            )
        if context.status != ProviderStatus.ACTIVE or not context.base_api_url:
            return HealthCheckResultDTO(
                installation=installation,
                health=HealthStatus.INACTIVE,
                message=f"Provider is {context.status.value}",
            )

        url = resolve_api_url(context.base_api_url)
        token = self._health_token(identity, installation)
        try:
            async with self._client_factory() as client:
                status = await client.check_status(context.display_name, url, token)
        except UpstreamProviderError as e:
            logger.warning(f"Provider {installation.provider_ref} unreachable: {e.message}")
            return await self._needs_reauth(installation, e.message, e.upstream_status)

        if status in _AUTH_FAILURE_STATUSES:
            return await self._needs_reauth(
                installation, f"Provider rejected the credential ({status})", status
            )
        if status >= 500:
            logger.warning(
                f"Provider {installation.provider_ref} answered {status} "
                f"for installation {installation.id}"
            )
            return HealthCheckResultDTO(
                installation=installation,
                health=HealthStatus.DEGRADED,
                upstream_status=status,
            )

        await self._installation_manager.touch(installation.id, installation.kind)
        return HealthCheckResultDTO(
            installation=installation,
            health=HealthStatus.HEALTHY,
            upstream_status=status,
        )

    async def _needs_reauth(
        self, installation: Installation, reason: str, upstream_status: int | None
    ) -> HealthCheckResultDTO:
        updated = await self._installation_manager.mark_error(
            installation.id, reason, installation.kind
        )
        return HealthCheckResultDTO(
            installation=updated,
            health=HealthStatus.NEEDS_REAUTH,
            upstream_status=upstream_status,
            message="Connection needs re-authentication",
        )

    def _health_token(self, identity: Identity, installation: Installation) -> str:
        scopes = sorted(installation.granted_scopes)
        token, _ = self._token_service.create_app_token(
            subject=identity.user_id,
            subject_type=SubjectType.USER,
            app_block_id=installation.consumer_app_block_id,
            scopes=scopes,
            grants=[
                TokenGrant(
                    installation_id=installation.id,
                    provider_kind=installation.kind,
                    provider_id=installation.provider_id,
                    scopes=scopes,
                )
            ],
            role=identity.role,
        )
        return token
