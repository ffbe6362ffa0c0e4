from fastapi import APIRouter, status

from block_connect.core.dependencies import CurrentIdentityDep, ServiceAccountServiceDep
from block_connect.schemas.common import ApiResponse, create_success_response
from block_connect.schemas.service_account import to_credentials_response

router = APIRouter(
    prefix="/app-blocks/{app_block_id}/service-account", tags=["service-accounts"]
)


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_service_account(
    app_block_id: str,
    identity: CurrentIdentityDep,
    service: ServiceAccountServiceDep,
):
    credentials = await service.create(identity, app_block_id)
    return create_success_response(
        data=to_credentials_response(credentials).model_dump(mode="json")
    )


@router.post("/rotate", response_model=ApiResponse)
async def rotate_service_account_key(
    app_block_id: str,
    identity: CurrentIdentityDep,
    service: ServiceAccountServiceDep,
):
    credentials = await service.rotate(identity, app_block_id)
    return create_success_response(
        data=to_credentials_response(credentials).model_dump(mode="json")
    )
