from pydantic import BaseModel, Field

from block_connect.constants.enums import AuthType, ProviderStatus, Role


class ProviderScopeInputDTO(BaseModel):
    scope_name: str = Field(..., min_length=1, pattern=r"^[a-z0-9_]+(\.[a-z0-9_]+)*$")
    description: str | None = None
    is_public_read: bool = False
    required_role: Role | None = None


class CreateProviderDTO(BaseModel):
    base_api_url: str = Field(..., min_length=1)
    api_version: str = "v1"
    auth_methods: list[AuthType] = Field(default_factory=lambda: [AuthType.USER])
    rate_limit_per_minute: int = Field(120, ge=1)
    scopes: list[ProviderScopeInputDTO] = Field(default_factory=list)


class UpdateProviderDTO(BaseModel):
    base_api_url: str | None = Field(None, min_length=1)
    api_version: str | None = None
    auth_methods: list[AuthType] | None = None
    status: ProviderStatus | None = None
    rate_limit_per_minute: int | None = Field(None, ge=1)
    scopes: list[ProviderScopeInputDTO] | None = None
