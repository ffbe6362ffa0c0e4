from fastapi import APIRouter, status

from block_connect.core.dependencies import (
    CurrentIdentityDep,
    OptionalIdentityDep,
    ProviderServiceDep,
)
from block_connect.dtos.provider_dtos import CreateProviderDTO, UpdateProviderDTO
from block_connect.schemas.common import ApiResponse, create_success_response
from block_connect.schemas.provider import to_manifest_response, to_provider_response

router = APIRouter(prefix="/app-blocks/{app_block_id}/provider", tags=["providers"])


@router.get("", response_model=ApiResponse)
async def get_provider(
    app_block_id: str,
    identity: CurrentIdentityDep,
    service: ProviderServiceDep,
):
    provider = await service.get(identity, app_block_id)
    return create_success_response(
        data=to_provider_response(provider).model_dump(mode="json")
    )


@router.get("/manifest", response_model=ApiResponse)
async def get_provider_manifest(
    app_block_id: str,
    viewer: OptionalIdentityDep,
    service: ProviderServiceDep,
):
    context = await service.manifest(app_block_id, viewer)
    return create_success_response(
        data=to_manifest_response(context).model_dump(mode="json")
    )


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_provider(
    app_block_id: str,
    request: CreateProviderDTO,
    identity: CurrentIdentityDep,
    service: ProviderServiceDep,
):
    provider = await service.create(identity, app_block_id, request)
    return create_success_response(
        data=to_provider_response(provider).model_dump(mode="json")
    )


@router.patch("", response_model=ApiResponse)
async def update_provider(
    app_block_id: str,
    request: UpdateProviderDTO,
    identity: CurrentIdentityDep,
    service: ProviderServiceDep,
):
    provider = await service.update(identity, app_block_id, request)
    return create_success_response(
        data=to_provider_response(provider).model_dump(mode="json")
    )


@router.delete("", response_model=ApiResponse)
async def delete_provider(
    app_block_id: str,
    identity: CurrentIdentityDep,
    service: ProviderServiceDep,
):
    await service.delete(identity, app_block_id)
    return create_success_response(data={"deleted": True, "app_block_id": app_block_id})
