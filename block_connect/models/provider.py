from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from block_connect.constants.enums import AuthType, ProviderStatus, Role
from block_connect.models.scope import ScopeDefinition


class ProviderScope(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    provider_id: str
    scope_name: str
    description: str | None = None
    is_public_read: bool = False
    required_role: Role | None = None
    created_at: datetime

    def to_definition(self) -> ScopeDefinition:
        return ScopeDefinition(
            name=self.scope_name,
            description=self.description,
            required_role=self.required_role,
            is_public_read=self.is_public_read,
        )


class AppBlockProvider(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    app_block_id: str
    base_api_url: str
    api_version: str = "v1"
    auth_methods: list[AuthType] = Field(default_factory=lambda: [AuthType.USER])
    status: ProviderStatus = ProviderStatus.ACTIVE
    rate_limit_per_minute: int = 120
    scopes: list[ProviderScope] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
