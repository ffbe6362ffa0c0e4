import logging
from collections.abc import Iterable

from block_connect.constants.enums import (
    AuthType,
    InstallationKind,
    ProviderStatus,
    Role,
)
from block_connect.constants.error_codes import ERROR_MESSAGES, ErrorCode
from block_connect.core.exceptions import NotFoundError, ValidationError
from block_connect.dtos.consent_dtos import ProviderContextDTO, ScopeValidationDTO
from block_connect.models.connector import Connector
from block_connect.models.installation import ProviderRef
from block_connect.models.scope import ScopeDefinition
from block_connect.repositories.app_block_repository import AppBlockRepository
from block_connect.repositories.connector_repository import ConnectorRepository
from block_connect.repositories.provider_repository import ProviderRepository
from block_connect.repositories.registry_repository import RegistryRepository

logger = logging.getLogger(__name__)


def split_known(
    context: ProviderContextDTO, requested: Iterable[str]
) -> ScopeValidationDTO:
    known = context.scope_names
    requested_set = set(requested)
    return ScopeValidationDTO(
        accepted=sorted(requested_set & known),
        rejected=sorted(requested_set - known),
    )


def filter_by_role(
    scopes: Iterable[ScopeDefinition], role: Role
) -> tuple[list[ScopeDefinition], list[ScopeDefinition]]:
    """Split scopes into those ``role`` may grant and those above it."""
    grantable: list[ScopeDefinition] = []
    above_role: list[ScopeDefinition] = []
    for scope in scopes:
        if role.satisfies(scope.required_role):
            grantable.append(scope)
        else:
            above_role.append(scope)
    return grantable, above_role


class ScopeCatalog:
    """Answers which scopes a connector or provider app block offers.

    Every lookup goes through ``resolve_provider`` so connectors and
    provider app blocks present the same ``ProviderContextDTO`` shape to the
    rest of the system.
    """

    def __init__(
        self,
        connector_repository: ConnectorRepository,
        app_block_repository: AppBlockRepository,
        provider_repository: ProviderRepository,
        registry_repository: RegistryRepository,
    ):
        self._connector_repo = connector_repository
        self._app_block_repo = app_block_repository
        self._provider_repo = provider_repository
        self._registry_repo = registry_repository

    async def list_connectors(self) -> list[Connector]:
        return await self._connector_repo.find_all()

    async def get_connector(self, connector_id: str) -> Connector:
        connector = await self._connector_repo.find_by_id(connector_id)
        if connector is None:
            raise NotFoundError("Connector", connector_id)
        return connector

    async def resolve_provider(self, ref: ProviderRef) -> ProviderContextDTO:
        if ref.kind == InstallationKind.CONNECTOR:
            return await self._resolve_connector(ref.id)
        return await self._resolve_app_block_provider(ref.id)

    async def list_scopes(self, ref: ProviderRef) -> list[ScopeDefinition]:
        context = await self.resolve_provider(ref)
        return sorted(context.scopes, key=lambda scope: scope.name)

    async def validate_scopes(
        self, ref: ProviderRef, requested: Iterable[str]
    ) -> ScopeValidationDTO:
        context = await self.resolve_provider(ref)
        result = split_known(context, requested)
        if not result.is_valid:
            logger.debug(f"Unknown scopes for {ref}: {result.rejected}")
        return result

    async def require_known(self, ref: ProviderRef, requested: Iterable[str]) -> None:
        result = await self.validate_scopes(ref, requested)
        if not result.is_valid:
            raise ValidationError(
                ErrorCode.UNKNOWN_SCOPES.value,
                ERROR_MESSAGES[ErrorCode.UNKNOWN_SCOPES],
                target="scopes",
                values=result.rejected,
            )

    async def _resolve_connector(self, connector_id: str) -> ProviderContextDTO:
        connector = await self.get_connector(connector_id)
        scopes = await self._connector_repo.find_scopes(connector_id)
        return ProviderContextDTO(
            kind=InstallationKind.CONNECTOR,
            id=connector.id,
            display_name=connector.name,
            description=connector.description,
            icon_url=connector.icon_url,
            auth_methods=[AuthType.USER, AuthType.SERVICE],
            status=(
                ProviderStatus.ACTIVE if connector.is_active else ProviderStatus.DISABLED
            ),
            requires_approval=False,
            installable=connector.is_active,
            scopes=[scope.to_definition() for scope in scopes],
        )

    async def _resolve_app_block_provider(self, app_block_id: str) -> ProviderContextDTO:
        app_block = await self._app_block_repo.find_by_id(app_block_id)
        if app_block is None:
            raise NotFoundError("Provider", app_block_id)

        provider = await self._provider_repo.find_by_app_block_id(app_block_id)
        if provider is None:
            raise NotFoundError("Provider", app_block_id)

        entry = await self._registry_repo.find_by_app_block_id(app_block_id)
        return ProviderContextDTO(
            kind=InstallationKind.APP_BLOCK,
            id=app_block.id,
            display_name=entry.display_name if entry else app_block.name,
            description=entry.description if entry else app_block.description,
            icon_url=entry.icon_url if entry else app_block.icon_url,
            owner_user_id=app_block.owner_user_id,
            auth_methods=list(provider.auth_methods),
            status=provider.status,
            requires_approval=entry.requires_approval if entry else False,
            installable=entry.installable if entry else True,
            base_api_url=provider.base_api_url,
            api_version=provider.api_version,
            scopes=[scope.to_definition() for scope in provider.scopes],
        )
