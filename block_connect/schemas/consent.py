from pydantic import BaseModel

from block_connect.constants.enums import (
    AuthType,
    InstallationKind,
    ProviderStatus,
    Role,
)
from block_connect.dtos.consent_dtos import ConsentRequestDTO


class ConsentProviderResponse(BaseModel):
    kind: InstallationKind
    id: str
    display_name: str
    description: str | None
    icon_url: str | None
    auth_methods: list[AuthType]
    status: ProviderStatus
    requires_approval: bool
    installable: bool


class ConsentScopeResponse(BaseModel):
    name: str
    description: str | None
    required_role: Role | None
    is_public_read: bool
    selectable: bool
    preselected: bool


class ConsentResponse(BaseModel):
    consumer_app_block_id: str
    recipe: str
    provider: ConsentProviderResponse
    scopes: list[ConsentScopeResponse]


def to_consent_response(consent: ConsentRequestDTO) -> ConsentResponse:
    provider = consent.provider
    return ConsentResponse(
        consumer_app_block_id=consent.consumer_app_block_id,
        recipe=consent.recipe,
        provider=ConsentProviderResponse(
            kind=provider.kind,
            id=provider.id,
            display_name=provider.display_name,
            description=provider.description,
            icon_url=provider.icon_url,
            auth_methods=provider.auth_methods,
            status=provider.status,
            requires_approval=provider.requires_approval,
            installable=provider.installable,
        ),
        scopes=[
            ConsentScopeResponse(
                name=scope.name,
                description=scope.description,
                required_role=scope.required_role,
                is_public_read=scope.is_public_read,
                selectable=scope.selectable,
                preselected=scope.preselected,
            )
            for scope in consent.scopes
        ],
    )
