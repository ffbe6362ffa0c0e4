from pydantic import BaseModel, Field

from block_connect.constants.enums import (
    AuthType,
    InstallationKind,
    ProviderStatus,
    Role,
)
from block_connect.models.scope import ScopeDefinition


class ProviderContextDTO(BaseModel):
    kind: InstallationKind
    id: str
    display_name: str
    description: str | None = None
    icon_url: str | None = None
    owner_user_id: str | None = None
    auth_methods: list[AuthType]
    status: ProviderStatus
    requires_approval: bool = False
    installable: bool = True
    base_api_url: str | None = None
    api_version: str | None = None
    scopes: list[ScopeDefinition] = Field(default_factory=list)

    @property
    def scope_names(self) -> frozenset[str]:
        return frozenset(scope.name for scope in self.scopes)


class ScopeValidationDTO(BaseModel):
    accepted: list[str] = Field(default_factory=list)
    rejected: list[str] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.rejected


class ConsentScopeDTO(BaseModel):
    name: str
    description: str | None = None
    required_role: Role | None = None
    is_public_read: bool = False
    selectable: bool
    preselected: bool


class ConsentRequestDTO(BaseModel):
    consumer_app_block_id: str
    provider: ProviderContextDTO
    recipe: str
    scopes: list[ConsentScopeDTO]
