import logging

from block_connect.constants.enums import RegistryVisibility
from block_connect.constants.error_codes import ERROR_MESSAGES, ErrorCode
from block_connect.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from block_connect.dtos.consent_dtos import ProviderContextDTO
from block_connect.dtos.provider_dtos import CreateProviderDTO, UpdateProviderDTO
from block_connect.models.identity import Identity
from block_connect.models.installation import ProviderRef
from block_connect.models.provider import AppBlockProvider
from block_connect.repositories.app_block_repository import AppBlockRepository
from block_connect.repositories.provider_repository import ProviderRepository
from block_connect.repositories.registry_repository import RegistryRepository
from block_connect.services.installation_manager import InstallationManager
from block_connect.services.ownership import require_owned_app_block
from block_connect.services.scope_catalog import ScopeCatalog

logger = logging.getLogger(__name__)


class ProviderService:
    """Lets an app block expose its own API to other blocks."""

    def __init__(
        self,
        provider_repository: ProviderRepository,
        app_block_repository: AppBlockRepository,
        registry_repository: RegistryRepository,
        scope_catalog: ScopeCatalog,
        installation_manager: InstallationManager,
    ):
        self._provider_repo = provider_repository
        self._app_block_repo = app_block_repository
        self._registry_repo = registry_repository
        self._scope_catalog = scope_catalog
        self._installation_manager = installation_manager

    async def get(self, identity: Identity, app_block_id: str) -> AppBlockProvider:
        await require_owned_app_block(self._app_block_repo, identity, app_block_id)
        return await self._get_existing(app_block_id)

    async def create(
        self, identity: Identity, app_block_id: str, dto: CreateProviderDTO
    ) -> AppBlockProvider:
        await require_owned_app_block(self._app_block_repo, identity, app_block_id)

        if await self._provider_repo.find_by_app_block_id(app_block_id):
            raise ConflictError(
                ErrorCode.PROVIDER_EXISTS.value, ERROR_MESSAGES[ErrorCode.PROVIDER_EXISTS]
            )
        if not dto.auth_methods:
            raise ValidationError(
                ErrorCode.UNSUPPORTED_AUTH_METHOD.value,
                ERROR_MESSAGES[ErrorCode.UNSUPPORTED_AUTH_METHOD],
                target="auth_methods",
            )

        provider = await self._provider_repo.create(app_block_id, dto)
        logger.info(
            f"Provider {provider.id} created for app block {app_block_id} "
            f"with scopes {[scope.scope_name for scope in provider.scopes]}"
        )
        return provider

    async def update(
        self, identity: Identity, app_block_id: str, dto: UpdateProviderDTO
    ) -> AppBlockProvider:
        await require_owned_app_block(self._app_block_repo, identity, app_block_id)
        provider = await self._get_existing(app_block_id)

        if dto.auth_methods is not None and not dto.auth_methods:
            raise ValidationError(
                ErrorCode.UNSUPPORTED_AUTH_METHOD.value,
                ERROR_MESSAGES[ErrorCode.UNSUPPORTED_AUTH_METHOD],
                target="auth_methods",
            )

        if dto.scopes is not None:
            kept = {scope.scope_name for scope in dto.scopes}
            dropped = {scope.scope_name for scope in provider.scopes} - kept
            if dropped:
                in_use = await self._installation_manager.live_scopes_for_provider(
                    ProviderRef.app_block(app_block_id)
                )
                blocked = sorted(dropped & in_use)
                if blocked:
                    logger.warning(
                        f"Provider {provider.id} update tried to drop scopes in use: {blocked}"
                    )
                    raise ValidationError(
                        ErrorCode.SCOPE_IN_USE.value,
                        ERROR_MESSAGES[ErrorCode.SCOPE_IN_USE],
                        target="scopes",
                        values=blocked,
                    )

        updated = await self._provider_repo.update(provider.id, app_block_id, dto)
        if dto.status is not None and dto.status != provider.status:
            logger.info(
                f"Provider {provider.id} status: "
                f"{provider.status.value} -> {dto.status.value}"
            )
        else:
            logger.info(f"Provider {provider.id} updated")
        return updated

    async def delete(self, identity: Identity, app_block_id: str) -> None:
        await require_owned_app_block(self._app_block_repo, identity, app_block_id)
        provider = await self._get_existing(app_block_id)

        expired = await self._installation_manager.expire_all_for_provider(
            ProviderRef.app_block(app_block_id)
        )
        await self._provider_repo.delete_by_app_block_id(app_block_id)
        logger.info(
            f"Provider {provider.id} of app block {app_block_id} deleted, "
            f"{expired} installations expired"
        )

    async def manifest(
        self, app_block_id: str, viewer: Identity | None = None
    ) -> ProviderContextDTO:
        """Public description of a provider, as a consumer would see it.
        Providers listed privately are only visible to their owner."""
        context = await self._scope_catalog.resolve_provider(
            ProviderRef.app_block(app_block_id)
        )
        entry = await self._registry_repo.find_by_app_block_id(app_block_id)
        if entry is not None and entry.visibility == RegistryVisibility.PRIVATE:
            is_owner = viewer is not None and context.owner_user_id == viewer.user_id
            if not is_owner:
                raise AuthorizationError(
                    "Provider", app_block_id, reason="private provider manifest"
                )
        return context

    async def _get_existing(self, app_block_id: str) -> AppBlockProvider:
        provider = await self._provider_repo.find_by_app_block_id(app_block_id)
        if provider is None:
            raise NotFoundError("Provider", app_block_id)
        return provider
