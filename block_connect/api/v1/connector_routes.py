from fastapi import APIRouter

from block_connect.core.dependencies import (
    CurrentIdentityDep,
    RecipeResolverDep,
    ScopeCatalogDep,
)
from block_connect.models.installation import ProviderRef
from block_connect.schemas.common import ApiResponse, create_success_response
from block_connect.schemas.connector import (
    ConnectorDetailResponse,
    ConnectorListResponse,
    RecipeListResponse,
    to_connector_response,
    to_recipe_response,
    to_scope_response,
)

router = APIRouter(prefix="/connectors", tags=["connectors"])


@router.get("", response_model=ApiResponse)
async def list_connectors(_: CurrentIdentityDep, catalog: ScopeCatalogDep):
    connectors = await catalog.list_connectors()
    response = ConnectorListResponse(
        connectors=[to_connector_response(connector) for connector in connectors]
    )
    return create_success_response(data=response.model_dump(mode="json"))


@router.get("/{connector_id}", response_model=ApiResponse)
async def get_connector(
    connector_id: str,
    _: CurrentIdentityDep,
    catalog: ScopeCatalogDep,
    resolver: RecipeResolverDep,
):
    connector = await catalog.get_connector(connector_id)
    scopes = await catalog.list_scopes(ProviderRef.connector(connector_id))
    recipes = await resolver.list_recipes(connector_id)
    response = ConnectorDetailResponse(
        **to_connector_response(connector).model_dump(),
        scopes=[to_scope_response(scope) for scope in scopes],
        recipes=[to_recipe_response(recipe) for recipe in recipes],
    )
    return create_success_response(data=response.model_dump(mode="json"))


@router.get("/{connector_id}/recipes", response_model=ApiResponse)
async def list_connector_recipes(
    connector_id: str,
    _: CurrentIdentityDep,
    resolver: RecipeResolverDep,
):
    recipes = await resolver.list_recipes(connector_id)
    response = RecipeListResponse(
        recipes=[to_recipe_response(recipe) for recipe in recipes]
    )
    return create_success_response(data=response.model_dump(mode="json"))
