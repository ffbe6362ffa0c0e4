from datetime import datetime

from pydantic import BaseModel, Field

from block_connect.constants.enums import (
    AuthType,
    InstallationKind,
    InstallationStatus,
)
from block_connect.models.installation import Installation


class CreateInstallationDTO(BaseModel):
    kind: InstallationKind
    consumer_app_block_id: str
    provider_id: str
    granted_scopes: frozenset[str]
    auth_type: AuthType
    status: InstallationStatus
    approved_at: datetime | None = None


class UpdateInstallationGrantDTO(BaseModel):
    granted_scopes: frozenset[str]
    auth_type: AuthType
    status: InstallationStatus
    approved_at: datetime | None = None


class InstallResultDTO(BaseModel):
    installation: Installation
    rejected_scopes: list[str] = Field(default_factory=list)
    created: bool = False
