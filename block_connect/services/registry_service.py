import logging

from block_connect.constants.enums import RegistryVisibility
from block_connect.constants.error_codes import ERROR_MESSAGES, ErrorCode
from block_connect.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from block_connect.core.settings import settings
from block_connect.dtos.registry_dtos import (
    CreateRegistryEntryDTO,
    RegistryBrowseFiltersDTO,
    RegistryEntryWithProviderDTO,
    RegistryPageDTO,
    UpdateRegistryEntryDTO,
)
from block_connect.models.identity import Identity
from block_connect.models.registry_entry import RegistryEntry
from block_connect.repositories.app_block_repository import AppBlockRepository
from block_connect.repositories.provider_repository import ProviderRepository
from block_connect.repositories.registry_repository import RegistryRepository
from block_connect.services.ownership import require_owned_app_block
from block_connect.utils.slug import is_valid_slug, normalize_slug

logger = logging.getLogger(__name__)


class RegistryService:
    def __init__(
        self,
        registry_repository: RegistryRepository,
        app_block_repository: AppBlockRepository,
        provider_repository: ProviderRepository,
    ):
        self._registry_repo = registry_repository
        self._app_block_repo = app_block_repository
        self._provider_repo = provider_repository

    async def browse(self, filters: RegistryBrowseFiltersDTO) -> RegistryPageDTO:
        limit = min(filters.limit, settings.registry_max_page_size)
        filters = filters.model_copy(update={"limit": limit})

        # Only public entries are ever listed; any other visibility filter
        # narrows the public set to nothing.
        if filters.visibility not in (None, RegistryVisibility.PUBLIC):
            logger.debug(f"Registry browse with visibility={filters.visibility}")
            return RegistryPageDTO(items=[], total=0, page=filters.page, limit=limit)

        entries, total = await self._registry_repo.browse(filters)
        logger.debug(f"Registry browse returned {len(entries)} of {total} entries")
        return RegistryPageDTO(items=entries, total=total, page=filters.page, limit=limit)

    async def get_by_slug(
        self, slug: str, viewer: Identity | None = None
    ) -> RegistryEntryWithProviderDTO:
        entry = await self._registry_repo.find_by_slug(slug.strip().lower())
        if entry is None:
            raise NotFoundError("Registry entry", slug)

        if entry.visibility == RegistryVisibility.PRIVATE:
            app_block = await self._app_block_repo.find_by_id(entry.app_block_id)
            is_owner = (
                viewer is not None
                and app_block is not None
                and app_block.is_owned_by(viewer.user_id)
            )
            if not is_owner:
                raise AuthorizationError(
                    "Registry entry", slug, reason="private entry viewed by non-owner"
                )

        provider = await self._provider_repo.find_by_app_block_id(entry.app_block_id)
        return RegistryEntryWithProviderDTO(entry=entry, provider=provider)

    async def get_for_app_block(
        self, identity: Identity, app_block_id: str
    ) -> RegistryEntry:
        await require_owned_app_block(self._app_block_repo, identity, app_block_id)
        entry = await self._registry_repo.find_by_app_block_id(app_block_id)
        if entry is None:
            raise NotFoundError("Registry entry", app_block_id)
        return entry

    async def publish(
        self, identity: Identity, app_block_id: str, dto: CreateRegistryEntryDTO
    ) -> RegistryEntry:
        await require_owned_app_block(self._app_block_repo, identity, app_block_id)

        if await self._registry_repo.find_by_app_block_id(app_block_id):
            raise ConflictError(
                ErrorCode.REGISTRY_ENTRY_EXISTS.value,
                ERROR_MESSAGES[ErrorCode.REGISTRY_ENTRY_EXISTS],
            )

        slug = await self._claim_slug(dto.slug, app_block_id)
        entry = await self._registry_repo.create(app_block_id, slug, dto)
        logger.info(
            f"App block {app_block_id} published to registry as {slug} "
            f"({entry.visibility.value})"
        )
        return entry

    async def update(
        self, identity: Identity, app_block_id: str, dto: UpdateRegistryEntryDTO
    ) -> RegistryEntry:
        await require_owned_app_block(self._app_block_repo, identity, app_block_id)

        existing = await self._registry_repo.find_by_app_block_id(app_block_id)
        if existing is None:
            raise NotFoundError("Registry entry", app_block_id)

        slug = None
        if dto.slug is not None:
            slug = await self._claim_slug(dto.slug, app_block_id)

        entry = await self._registry_repo.update(app_block_id, dto, slug=slug)
        logger.info(f"Registry entry for app block {app_block_id} updated")
        return entry

    async def unpublish(self, identity: Identity, app_block_id: str) -> None:
        await require_owned_app_block(self._app_block_repo, identity, app_block_id)

        deleted = await self._registry_repo.delete_by_app_block_id(app_block_id)
        if not deleted:
            raise NotFoundError("Registry entry", app_block_id)
        logger.info(f"App block {app_block_id} removed from registry")

    async def _claim_slug(self, raw_slug: str, app_block_id: str) -> str:
        slug = normalize_slug(raw_slug)
        if not is_valid_slug(slug):
            raise ValidationError(
                ErrorCode.INVALID_SLUG.value,
                ERROR_MESSAGES[ErrorCode.INVALID_SLUG],
                target="slug",
                values=[raw_slug],
            )
        if await self._registry_repo.slug_exists(slug, exclude_app_block_id=app_block_id):
            logger.warning(f"Slug {slug} already taken")
            raise ConflictError(
                ErrorCode.SLUG_TAKEN.value, ERROR_MESSAGES[ErrorCode.SLUG_TAKEN]
            )
        return slug
