import logging

from fastapi import APIRouter, status

from block_connect.core.dependencies import AppBlockServiceDep, CurrentIdentityDep
from block_connect.dtos.app_block_dtos import UpdateAppBlockDTO
from block_connect.schemas.app_block import (
    AppBlockCreateRequest,
    AppBlockListResponse,
    AppBlockUpdateRequest,
    to_app_block_response,
)
from block_connect.schemas.common import ApiResponse, create_success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/app-blocks", tags=["app-blocks"])


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_app_block(
    request: AppBlockCreateRequest,
    identity: CurrentIdentityDep,
    service: AppBlockServiceDep,
):
    app_block = await service.create(
        identity,
        name=request.name,
        description=request.description,
        icon_url=request.icon_url,
    )
    return create_success_response(
        data=to_app_block_response(app_block).model_dump(mode="json")
    )


@router.get("", response_model=ApiResponse)
async def list_app_blocks(identity: CurrentIdentityDep, service: AppBlockServiceDep):
    app_blocks = await service.list_owned(identity)
    response = AppBlockListResponse(
        app_blocks=[to_app_block_response(block) for block in app_blocks]
    )
    return create_success_response(data=response.model_dump(mode="json"))


@router.get("/{app_block_id}", response_model=ApiResponse)
async def get_app_block(
    app_block_id: str,
    identity: CurrentIdentityDep,
    service: AppBlockServiceDep,
):
    app_block = await service.get(identity, app_block_id)
    return create_success_response(
        data=to_app_block_response(app_block).model_dump(mode="json")
    )


@router.patch("/{app_block_id}", response_model=ApiResponse)
async def update_app_block(
    app_block_id: str,
    request: AppBlockUpdateRequest,
    identity: CurrentIdentityDep,
    service: AppBlockServiceDep,
):
    app_block = await service.update(
        identity,
        app_block_id,
        UpdateAppBlockDTO(**request.model_dump(exclude_unset=True)),
    )
    return create_success_response(
        data=to_app_block_response(app_block).model_dump(mode="json")
    )


@router.delete("/{app_block_id}", response_model=ApiResponse)
async def delete_app_block(
    app_block_id: str,
    identity: CurrentIdentityDep,
    service: AppBlockServiceDep,
):
    await service.delete(identity, app_block_id)
    return create_success_response(data={"deleted": True, "app_block_id": app_block_id})
