from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from block_connect.constants.enums import Role
from block_connect.models.scope import ScopeDefinition


class Connector(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None = None
    icon_url: str | None = None
    is_active: bool = True
    created_at: datetime


class ConnectorScope(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    connector_id: str
    name: str
    description: str | None = None
    required_role: Role | None = None
    is_public_read: bool = False
    created_at: datetime

    def to_definition(self) -> ScopeDefinition:
        return ScopeDefinition(
            name=self.name,
            description=self.description,
            required_role=self.required_role,
            is_public_read=self.is_public_read,
        )


class ConnectorRecipe(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    connector_id: str
    name: str
    description: str | None = None
    scopes: list[str] = Field(default_factory=list)
    ui_modules: list[str] = Field(default_factory=list)
    created_at: datetime
