from datetime import datetime

from pydantic import BaseModel

from block_connect.constants.enums import AuthType, ProviderStatus, Role
from block_connect.dtos.consent_dtos import ProviderContextDTO
from block_connect.models.provider import AppBlockProvider
from block_connect.schemas.connector import ScopeResponse, to_scope_response


class ProviderScopeResponse(BaseModel):
    scope_name: str
    description: str | None
    is_public_read: bool
    required_role: Role | None


class ProviderResponse(BaseModel):
    id: str
    app_block_id: str
    base_api_url: str
    api_version: str
    auth_methods: list[AuthType]
    status: ProviderStatus
    rate_limit_per_minute: int
    scopes: list[ProviderScopeResponse]
    created_at: datetime
    updated_at: datetime


class ProviderManifestResponse(BaseModel):
    app_block_id: str
    display_name: str
    description: str | None
    icon_url: str | None
    auth_methods: list[AuthType]
    status: ProviderStatus
    requires_approval: bool
    installable: bool
    base_api_url: str | None
    api_version: str | None
    scopes: list[ScopeResponse]


def to_provider_response(provider: AppBlockProvider) -> ProviderResponse:
    return ProviderResponse(
        id=provider.id,
        app_block_id=provider.app_block_id,
        base_api_url=provider.base_api_url,
        api_version=provider.api_version,
        auth_methods=provider.auth_methods,
        status=provider.status,
        rate_limit_per_minute=provider.rate_limit_per_minute,
        scopes=[
            ProviderScopeResponse(
                scope_name=scope.scope_name,
                description=scope.description,
                is_public_read=scope.is_public_read,
                required_role=scope.required_role,
            )
            for scope in provider.scopes
        ],
        created_at=provider.created_at,
        updated_at=provider.updated_at,
    )


def to_manifest_response(context: ProviderContextDTO) -> ProviderManifestResponse:
    return ProviderManifestResponse(
        app_block_id=context.id,
        display_name=context.display_name,
        description=context.description,
        icon_url=context.icon_url,
        auth_methods=context.auth_methods,
        status=context.status,
        requires_approval=context.requires_approval,
        installable=context.installable,
        base_api_url=context.base_api_url,
        api_version=context.api_version,
        scopes=[to_scope_response(scope) for scope in context.scopes],
    )
