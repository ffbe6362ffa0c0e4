import logging

from block_connect.constants.enums import InstallationKind
from block_connect.constants.error_codes import ERROR_MESSAGES, ErrorCode
from block_connect.core.exceptions import NotFoundError, ValidationError
from block_connect.models.connector import ConnectorRecipe
from block_connect.models.installation import ProviderRef
from block_connect.repositories.connector_repository import ConnectorRepository
from block_connect.services.scope_catalog import ScopeCatalog

logger = logging.getLogger(__name__)

CUSTOM_RECIPE = "custom"


class RecipeResolver:
    """Turns a recipe id (or ``custom``) into a concrete scope set.

    Read-only: installation state is never consulted.
    """

    def __init__(
        self,
        connector_repository: ConnectorRepository,
        scope_catalog: ScopeCatalog,
    ):
        self._connector_repo = connector_repository
        self._scope_catalog = scope_catalog

    async def resolve(self, ref: ProviderRef, recipe_id_or_custom: str) -> frozenset[str]:
        if recipe_id_or_custom == CUSTOM_RECIPE:
            scopes = await self._scope_catalog.list_scopes(ref)
            return frozenset(scope.name for scope in scopes)

        recipe = None
        if ref.kind == InstallationKind.CONNECTOR:
            recipe = await self._connector_repo.find_recipe(recipe_id_or_custom)

        if recipe is None or recipe.connector_id != ref.id:
            logger.warning(f"Unknown recipe {recipe_id_or_custom} for {ref}")
            raise ValidationError(
                ErrorCode.UNKNOWN_RECIPE.value,
                ERROR_MESSAGES[ErrorCode.UNKNOWN_RECIPE],
                target="recipe",
                values=[recipe_id_or_custom],
            )
        known = {scope.name for scope in await self._scope_catalog.list_scopes(ref)}
        stale = sorted(set(recipe.scopes) - known)
        if stale:
            logger.warning(
                f"Recipe {recipe.id} lists scopes missing from {ref}, dropping: {stale}"
            )
        return frozenset(recipe.scopes) & known

    async def list_recipes(self, connector_id: str) -> list[ConnectorRecipe]:
        connector = await self._connector_repo.find_by_id(connector_id)
        if connector is None:
            raise NotFoundError("Connector", connector_id)
        return await self._connector_repo.find_recipes(connector_id)
