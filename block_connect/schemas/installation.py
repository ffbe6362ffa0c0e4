"""
External views of the ``Installation`` aggregate.

Connector and app-block installations share one model internally; clients see
them with the provider column named after what it points at.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from block_connect.constants.enums import (
    AuthType,
    HealthStatus,
    InstallationKind,
    InstallationStatus,
)
from block_connect.dtos.health_dtos import HealthCheckResultDTO
from block_connect.dtos.installation_dtos import InstallResultDTO
from block_connect.models.installation import Installation


class ConnectorInstallRequest(BaseModel):
    connector_id: str
    scopes: list[str] = Field(default_factory=list)
    auth_type: AuthType = AuthType.USER


class AppBlockInstallRequest(BaseModel):
    provider_app_block_id: str
    scopes: list[str] = Field(default_factory=list)
    auth_type: AuthType = AuthType.USER


class _InstallationFields(BaseModel):
    id: str
    consumer_app_block_id: str
    granted_scopes: list[str]
    auth_type: AuthType
    status: InstallationStatus
    approved_at: datetime | None
    revoked_at: datetime | None
    last_used_at: datetime | None
    created_at: datetime
    updated_at: datetime


class ConnectorInstallationResponse(_InstallationFields):
    connector_id: str


class AppBlockInstallationResponse(_InstallationFields):
    provider_app_block_id: str


class InstallationResponse(_InstallationFields):
    kind: InstallationKind
    provider_id: str


class InstallResponse(BaseModel):
    installation: ConnectorInstallationResponse | AppBlockInstallationResponse
    rejected_scopes: list[str]
    created: bool


class InstallationListResponse(BaseModel):
    installations: list[InstallationResponse]


class HealthCheckResponse(BaseModel):
    installation: InstallationResponse
    health: HealthStatus
    upstream_status: int | None
    message: str | None


def _common_fields(installation: Installation) -> dict:
    return {
        "id": installation.id,
        "consumer_app_block_id": installation.consumer_app_block_id,
        "granted_scopes": sorted(installation.granted_scopes),
        "auth_type": installation.auth_type,
        "status": installation.status,
        "approved_at": installation.approved_at,
        "revoked_at": installation.revoked_at,
        "last_used_at": installation.last_used_at,
        "created_at": installation.created_at,
        "updated_at": installation.updated_at,
    }


def to_installation_response(installation: Installation) -> InstallationResponse:
    return InstallationResponse(
        kind=installation.kind,
        provider_id=installation.provider_id,
        **_common_fields(installation),
    )


def to_connector_installation_response(
    installation: Installation,
) -> ConnectorInstallationResponse:
    return ConnectorInstallationResponse(
        connector_id=installation.provider_id, **_common_fields(installation)
    )


def to_app_block_installation_response(
    installation: Installation,
) -> AppBlockInstallationResponse:
    return AppBlockInstallationResponse(
        provider_app_block_id=installation.provider_id, **_common_fields(installation)
    )


def to_install_response(result: InstallResultDTO) -> InstallResponse:
    installation = result.installation
    if installation.kind == InstallationKind.CONNECTOR:
        view = to_connector_installation_response(installation)
    else:
        view = to_app_block_installation_response(installation)
    return InstallResponse(
        installation=view,
        rejected_scopes=result.rejected_scopes,
        created=result.created,
    )


def to_health_check_response(result: HealthCheckResultDTO) -> HealthCheckResponse:
    return HealthCheckResponse(
        installation=to_installation_response(result.installation),
        health=result.health,
        upstream_status=result.upstream_status,
        message=result.message,
    )
