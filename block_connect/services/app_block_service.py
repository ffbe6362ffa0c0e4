import logging

from block_connect.core.exceptions import AuthorizationError, NotFoundError
from block_connect.dtos.app_block_dtos import CreateAppBlockDTO, UpdateAppBlockDTO
from block_connect.models.app_block import AppBlock
from block_connect.models.identity import Identity
from block_connect.repositories.app_block_repository import AppBlockRepository
from block_connect.repositories.provider_repository import ProviderRepository
from block_connect.repositories.registry_repository import RegistryRepository
from block_connect.services.installation_manager import InstallationManager
from block_connect.services.ownership import require_owned_app_block

logger = logging.getLogger(__name__)


class AppBlockService:
    def __init__(
        self,
        app_block_repository: AppBlockRepository,
        provider_repository: ProviderRepository,
        registry_repository: RegistryRepository,
        installation_manager: InstallationManager,
    ):
        self._app_block_repo = app_block_repository
        self._provider_repo = provider_repository
        self._registry_repo = registry_repository
        self._installation_manager = installation_manager

    async def create(
        self,
        identity: Identity,
        name: str,
        description: str | None = None,
        icon_url: str | None = None,
    ) -> AppBlock:
        app_block = await self._app_block_repo.create(
            CreateAppBlockDTO(
                name=name,
                owner_user_id=identity.user_id,
                description=description,
                icon_url=icon_url,
            )
        )
        logger.info(f"App block {app_block.id} created by user {identity.user_id}")
        return app_block

    async def get(self, identity: Identity, app_block_id: str) -> AppBlock:
        return await require_owned_app_block(self._app_block_repo, identity, app_block_id)

    async def list_owned(self, identity: Identity) -> list[AppBlock]:
        return await self._app_block_repo.find_by_owner(identity.user_id)

    async def update(
        self, identity: Identity, app_block_id: str, dto: UpdateAppBlockDTO
    ) -> AppBlock:
        await require_owned_app_block(self._app_block_repo, identity, app_block_id)
        app_block = await self._app_block_repo.update(app_block_id, dto)
        logger.info(f"App block {app_block_id} updated")
        return app_block

    async def delete(self, identity: Identity, app_block_id: str) -> None:
        """Soft-delete the block, then revoke every installation it is a party
        to and remove its provider and registry listing.

        The block is marked deleted first: installation writes refuse deleted
        blocks, so nothing can be granted behind the cascade. Every cascade
        step is idempotent, and deleting an already deleted block re-runs them
        to finish a delete that was interrupted halfway.
        """
        app_block = await self._app_block_repo.find_by_id(
            app_block_id, include_deleted=True
        )
        if app_block is None:
            raise NotFoundError("App block", app_block_id)
        if not app_block.is_owned_by(identity.user_id):
            raise AuthorizationError(
                "App block", app_block_id, reason="delete by non-owner"
            )

        if not await self._app_block_repo.soft_delete(app_block_id):
            logger.debug(f"App block {app_block_id} already deleted, re-running cascade")

        revoked = await self._installation_manager.revoke_all_for_app_block(app_block_id)
        provider_removed = await self._provider_repo.delete_by_app_block_id(app_block_id)
        unlisted = await self._registry_repo.delete_by_app_block_id(app_block_id)
        logger.info(
            f"App block {app_block_id} deleted: {revoked} installations revoked, "
            f"provider removed={provider_removed}, registry entry removed={unlisted}"
        )
