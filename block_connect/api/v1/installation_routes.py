import logging

from fastapi import APIRouter, Query, Response, status

from block_connect.constants.enums import InstallationKind
from block_connect.core.dependencies import (
    ConsentServiceDep,
    CurrentIdentityDep,
    InstallationManagerDep,
    ProviderHealthServiceDep,
)
from block_connect.dtos.installation_dtos import InstallResultDTO
from block_connect.models.installation import ProviderRef
from block_connect.schemas.common import ApiResponse, create_success_response
from block_connect.schemas.consent import to_consent_response
from block_connect.schemas.installation import (
    AppBlockInstallRequest,
    ConnectorInstallRequest,
    InstallationListResponse,
    to_app_block_installation_response,
    to_connector_installation_response,
    to_health_check_response,
    to_install_response,
    to_installation_response,
)
from block_connect.services.recipe_resolver import CUSTOM_RECIPE

logger = logging.getLogger(__name__)

router = APIRouter(tags=["installations"])


def _install_result(result: InstallResultDTO, response: Response):
    if result.created:
        response.status_code = status.HTTP_201_CREATED
    return create_success_response(
        data=to_install_response(result).model_dump(mode="json")
    )


@router.get("/app-blocks/{app_block_id}/consent", response_model=ApiResponse)
async def prepare_consent(
    app_block_id: str,
    identity: CurrentIdentityDep,
    service: ConsentServiceDep,
    provider_kind: InstallationKind = Query(...),
    provider_id: str = Query(..., min_length=1),
    recipe: str = Query(CUSTOM_RECIPE, min_length=1),
):
    consent = await service.prepare(
        identity,
        app_block_id,
        ProviderRef(kind=provider_kind, id=provider_id),
        recipe,
    )
    return create_success_response(
        data=to_consent_response(consent).model_dump(mode="json")
    )


@router.post("/app-blocks/{app_block_id}/connectors", response_model=ApiResponse)
@router.post(
    "/app-blocks/{app_block_id}/connector-installations", response_model=ApiResponse
)
async def install_connector(
    app_block_id: str,
    request: ConnectorInstallRequest,
    response: Response,
    identity: CurrentIdentityDep,
    service: ConsentServiceDep,
):
    result = await service.confirm(
        identity,
        app_block_id,
        ProviderRef.connector(request.connector_id),
        request.scopes,
        request.auth_type,
    )
    return _install_result(result, response)


@router.post("/app-blocks/{app_block_id}/installations", response_model=ApiResponse)
@router.post(
    "/app-blocks/{app_block_id}/app-block-installations", response_model=ApiResponse
)
async def install_app_block(
    app_block_id: str,
    request: AppBlockInstallRequest,
    response: Response,
    identity: CurrentIdentityDep,
    service: ConsentServiceDep,
):
    result = await service.confirm(
        identity,
        app_block_id,
        ProviderRef.app_block(request.provider_app_block_id),
        request.scopes,
        request.auth_type,
    )
    return _install_result(result, response)


@router.get("/app-blocks/{app_block_id}/installations", response_model=ApiResponse)
async def list_consumer_installations(
    app_block_id: str,
    identity: CurrentIdentityDep,
    manager: InstallationManagerDep,
):
    installations = await manager.list_for_consumer(identity, app_block_id)
    response = InstallationListResponse(
        installations=[to_installation_response(item) for item in installations]
    )
    return create_success_response(data=response.model_dump(mode="json"))


@router.get(
    "/app-blocks/{app_block_id}/provider/installations", response_model=ApiResponse
)
async def list_provider_installations(
    app_block_id: str,
    identity: CurrentIdentityDep,
    manager: InstallationManagerDep,
):
    installations = await manager.list_for_provider(identity, app_block_id)
    response = InstallationListResponse(
        installations=[to_installation_response(item) for item in installations]
    )
    return create_success_response(data=response.model_dump(mode="json"))


@router.get("/connector-installations/{installation_id}", response_model=ApiResponse)
async def get_connector_installation(
    installation_id: str,
    identity: CurrentIdentityDep,
    manager: InstallationManagerDep,
):
    installation = await manager.get(
        identity, installation_id, InstallationKind.CONNECTOR
    )
    return create_success_response(
        data=to_connector_installation_response(installation).model_dump(mode="json")
    )


@router.delete("/connector-installations/{installation_id}", response_model=ApiResponse)
async def revoke_connector_installation(
    installation_id: str,
    identity: CurrentIdentityDep,
    manager: InstallationManagerDep,
):
    installation = await manager.revoke(
        identity, installation_id, InstallationKind.CONNECTOR
    )
    return create_success_response(
        data=to_connector_installation_response(installation).model_dump(mode="json")
    )


@router.get("/app-block-installations/{installation_id}", response_model=ApiResponse)
async def get_app_block_installation(
    installation_id: str,
    identity: CurrentIdentityDep,
    manager: InstallationManagerDep,
):
    installation = await manager.get(
        identity, installation_id, InstallationKind.APP_BLOCK
    )
    return create_success_response(
        data=to_app_block_installation_response(installation).model_dump(mode="json")
    )


@router.delete("/app-block-installations/{installation_id}", response_model=ApiResponse)
async def revoke_app_block_installation(
    installation_id: str,
    identity: CurrentIdentityDep,
    manager: InstallationManagerDep,
):
    installation = await manager.revoke(
        identity, installation_id, InstallationKind.APP_BLOCK
    )
    return create_success_response(
        data=to_app_block_installation_response(installation).model_dump(mode="json")
    )


@router.post(
    "/app-block-installations/{installation_id}/approve", response_model=ApiResponse
)
async def approve_installation(
    installation_id: str,
    identity: CurrentIdentityDep,
    manager: InstallationManagerDep,
):
    installation = await manager.approve(identity, installation_id)
    return create_success_response(
        data=to_app_block_installation_response(installation).model_dump(mode="json")
    )


@router.post(
    "/app-block-installations/{installation_id}/reject", response_model=ApiResponse
)
async def reject_installation(
    installation_id: str,
    identity: CurrentIdentityDep,
    manager: InstallationManagerDep,
):
    installation = await manager.reject(identity, installation_id)
    return create_success_response(
        data=to_app_block_installation_response(installation).model_dump(mode="json")
    )


@router.post("/installations/{installation_id}/reauthorize", response_model=ApiResponse)
async def reauthorize_installation(
    installation_id: str,
    identity: CurrentIdentityDep,
    manager: InstallationManagerDep,
):
    installation = await manager.reauthorize(identity, installation_id)
    return create_success_response(
        data=to_installation_response(installation).model_dump(mode="json")
    )


@router.get("/installations/{installation_id}/health", response_model=ApiResponse)
async def check_installation_health(
    installation_id: str,
    identity: CurrentIdentityDep,
    service: ProviderHealthServiceDep,
):
    result = await service.check(identity, installation_id)
    return create_success_response(
        data=to_health_check_response(result).model_dump(mode="json")
    )
