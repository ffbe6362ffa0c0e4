import logging
from collections.abc import Iterable

from block_connect.constants.enums import AuthType
from block_connect.dtos.consent_dtos import ConsentRequestDTO, ConsentScopeDTO
from block_connect.dtos.installation_dtos import InstallResultDTO
from block_connect.models.identity import Identity
from block_connect.models.installation import ProviderRef
from block_connect.repositories.app_block_repository import AppBlockRepository
from block_connect.services.installation_manager import InstallationManager
from block_connect.services.ownership import require_owned_app_block
from block_connect.services.recipe_resolver import CUSTOM_RECIPE, RecipeResolver
from block_connect.services.scope_catalog import ScopeCatalog

logger = logging.getLogger(__name__)


class ConsentService:
    """Two-step consent: ``prepare`` shows the operator what would be granted,
    ``confirm`` performs the install. Nothing is written until ``confirm``;
    cancelling is simply never calling it."""

    def __init__(
        self,
        scope_catalog: ScopeCatalog,
        recipe_resolver: RecipeResolver,
        installation_manager: InstallationManager,
        app_block_repository: AppBlockRepository,
    ):
        self._scope_catalog = scope_catalog
        self._recipe_resolver = recipe_resolver
        self._installation_manager = installation_manager
        self._app_block_repo = app_block_repository

    async def prepare(
        self,
        identity: Identity,
        consumer_app_block_id: str,
        ref: ProviderRef,
        recipe: str = CUSTOM_RECIPE,
    ) -> ConsentRequestDTO:
        await require_owned_app_block(
            self._app_block_repo, identity, consumer_app_block_id
        )
        context = await self._scope_catalog.resolve_provider(ref)
        proposed = await self._recipe_resolver.resolve(ref, recipe)

        scopes = []
        for scope in sorted(context.scopes, key=lambda s: s.name):
            selectable = identity.role.satisfies(scope.required_role)
            scopes.append(
                ConsentScopeDTO(
                    name=scope.name,
                    description=scope.description,
                    required_role=scope.required_role,
                    is_public_read=scope.is_public_read,
                    selectable=selectable,
                    preselected=selectable and scope.name in proposed,
                )
            )

        logger.debug(
            f"Consent prepared for {consumer_app_block_id} -> {ref} "
            f"(recipe={recipe}, {len(scopes)} scopes)"
        )
        return ConsentRequestDTO(
            consumer_app_block_id=consumer_app_block_id,
            provider=context,
            recipe=recipe,
            scopes=scopes,
        )

    async def confirm(
        self,
        identity: Identity,
        consumer_app_block_id: str,
        ref: ProviderRef,
        scopes: Iterable[str],
        auth_type: AuthType = AuthType.USER,
    ) -> InstallResultDTO:
        return await self._installation_manager.install(
            identity, consumer_app_block_id, ref, scopes, auth_type
        )
