import logging

from fastapi import APIRouter, Query, status

from block_connect.constants.enums import RegistryCategory, RegistryVisibility
from block_connect.core.dependencies import (
    CurrentIdentityDep,
    OptionalIdentityDep,
    RegistryServiceDep,
)
from block_connect.core.settings import settings
from block_connect.dtos.registry_dtos import (
    CreateRegistryEntryDTO,
    RegistryBrowseFiltersDTO,
    UpdateRegistryEntryDTO,
)
from block_connect.schemas.common import ApiResponse, create_success_response
from block_connect.schemas.registry import (
    to_registry_detail_response,
    to_registry_entry_response,
    to_registry_list_response,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["registry"])


@router.get("/registry/app-blocks", response_model=ApiResponse)
@router.get("/registry", response_model=ApiResponse)
async def browse_registry(
    service: RegistryServiceDep,
    category: RegistryCategory | None = Query(None),
    query: str | None = Query(None, max_length=200),
    tags: list[str] | None = Query(None),
    visibility: RegistryVisibility | None = Query(None),
    installable: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.registry_default_page_size, ge=1),
):
    filters = RegistryBrowseFiltersDTO(
        category=category,
        query=query,
        tags=tags or [],
        visibility=visibility,
        installable_only=installable,
        page=page,
        limit=limit,
    )
    result = await service.browse(filters)
    return create_success_response(
        data=to_registry_list_response(result).model_dump(mode="json")
    )


@router.get("/registry/app-blocks/{slug}", response_model=ApiResponse)
@router.get("/registry/{slug}", response_model=ApiResponse)
async def get_registry_entry(
    slug: str,
    viewer: OptionalIdentityDep,
    service: RegistryServiceDep,
):
    result = await service.get_by_slug(slug, viewer)
    return create_success_response(
        data=to_registry_detail_response(result).model_dump(mode="json")
    )


@router.get("/app-blocks/{app_block_id}/registry", response_model=ApiResponse)
async def get_own_registry_entry(
    app_block_id: str,
    identity: CurrentIdentityDep,
    service: RegistryServiceDep,
):
    entry = await service.get_for_app_block(identity, app_block_id)
    return create_success_response(
        data=to_registry_entry_response(entry).model_dump(mode="json")
    )


@router.post(
    "/app-blocks/{app_block_id}/registry",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
)
async def publish_app_block(
    app_block_id: str,
    request: CreateRegistryEntryDTO,
    identity: CurrentIdentityDep,
    service: RegistryServiceDep,
):
    entry = await service.publish(identity, app_block_id, request)
    return create_success_response(
        data=to_registry_entry_response(entry).model_dump(mode="json")
    )


@router.patch("/app-blocks/{app_block_id}/registry", response_model=ApiResponse)
async def update_registry_entry(
    app_block_id: str,
    request: UpdateRegistryEntryDTO,
    identity: CurrentIdentityDep,
    service: RegistryServiceDep,
):
    entry = await service.update(identity, app_block_id, request)
    return create_success_response(
        data=to_registry_entry_response(entry).model_dump(mode="json")
    )


@router.delete("/app-blocks/{app_block_id}/registry", response_model=ApiResponse)
async def unpublish_app_block(
    app_block_id: str,
    identity: CurrentIdentityDep,
    service: RegistryServiceDep,
):
    await service.unpublish(identity, app_block_id)
    return create_success_response(data={"unpublished": True, "app_block_id": app_block_id})
