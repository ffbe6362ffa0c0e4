from pydantic import BaseModel

from block_connect.constants.enums import Role
from block_connect.models.connector import Connector, ConnectorRecipe
from block_connect.models.scope import ScopeDefinition


class ScopeResponse(BaseModel):
    name: str
    description: str | None
    required_role: Role | None
    is_public_read: bool


class RecipeResponse(BaseModel):
    id: str
    name: str
    description: str | None
    scopes: list[str]
    ui_modules: list[str]


class ConnectorResponse(BaseModel):
    id: str
    name: str
    description: str | None
    icon_url: str | None
    is_active: bool


class ConnectorDetailResponse(ConnectorResponse):
    scopes: list[ScopeResponse]
    recipes: list[RecipeResponse]


class ConnectorListResponse(BaseModel):
    connectors: list[ConnectorResponse]


class RecipeListResponse(BaseModel):
    recipes: list[RecipeResponse]


def to_scope_response(scope: ScopeDefinition) -> ScopeResponse:
    return ScopeResponse(
        name=scope.name,
        description=scope.description,
        required_role=scope.required_role,
        is_public_read=scope.is_public_read,
    )


def to_recipe_response(recipe: ConnectorRecipe) -> RecipeResponse:
    return RecipeResponse(
        id=recipe.id,
        name=recipe.name,
        description=recipe.description,
        scopes=recipe.scopes,
        ui_modules=recipe.ui_modules,
    )


def to_connector_response(connector: Connector) -> ConnectorResponse:
    return ConnectorResponse(
        id=connector.id,
        name=connector.name,
        description=connector.description,
        icon_url=connector.icon_url,
        is_active=connector.is_active,
    )
