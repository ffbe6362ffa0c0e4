from datetime import datetime

from pydantic import BaseModel, Field

from block_connect.constants.enums import InstallationKind, Role, SubjectType


class SessionTokenPayload(BaseModel):
    sub: str
    type: str
    role: Role = Role.VISITOR
    iat: datetime
    exp: datetime


class TokenGrant(BaseModel):
    installation_id: str
    provider_kind: InstallationKind
    provider_id: str
    scopes: list[str]


class AppTokenPayload(BaseModel):
    sub: str
    type: str
    subject_type: SubjectType
    app_block_id: str
    scopes: list[str] = Field(default_factory=list)
    grants: list[TokenGrant] = Field(default_factory=list)
    role: Role | None = None
    jti: str
    iat: datetime
    exp: datetime


class IssuedTokenDTO(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_at: datetime
    scopes: list[str]
