from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from block_connect.constants.enums import GrantType, InstallationKind, Role, SubjectType
from block_connect.dtos.token_dtos import AppTokenPayload, IssuedTokenDTO, TokenGrant
from block_connect.models.installation import ProviderRef


class TokenRequest(BaseModel):
    grant_type: GrantType
    app_block_id: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    scopes: list[str] | None = None
    provider_kind: InstallationKind | None = None
    provider_id: str | None = None

    @model_validator(mode="after")
    def _check_grant_fields(self) -> "TokenRequest":
        if self.grant_type == GrantType.USER_SESSION and not self.app_block_id:
            raise ValueError("app_block_id is required for user_session")
        if self.grant_type == GrantType.CLIENT_CREDENTIALS and not (
            self.client_id and self.client_secret
        ):
            raise ValueError("client_id and client_secret are required")
        if (self.provider_kind is None) != (self.provider_id is None):
            raise ValueError("provider_kind and provider_id go together")
        return self

    @property
    def provider(self) -> ProviderRef | None:
        if self.provider_kind is None or self.provider_id is None:
            return None
        return ProviderRef(kind=self.provider_kind, id=self.provider_id)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str
    expires_at: datetime
    scopes: list[str]


class IntrospectRequest(BaseModel):
    token: str = Field(..., min_length=1)


class IntrospectResponse(BaseModel):
    active: bool
    sub: str
    subject_type: SubjectType
    app_block_id: str
    scopes: list[str]
    grants: list[TokenGrant]
    role: Role | None
    jti: str
    issued_at: datetime
    expires_at: datetime


def to_token_response(issued: IssuedTokenDTO) -> TokenResponse:
    return TokenResponse(
        access_token=issued.access_token,
        token_type=issued.token_type,
        expires_at=issued.expires_at,
        scopes=issued.scopes,
    )


def to_introspect_response(payload: AppTokenPayload) -> IntrospectResponse:
    return IntrospectResponse(
        active=True,
        sub=payload.sub,
        subject_type=payload.subject_type,
        app_block_id=payload.app_block_id,
        scopes=payload.scopes,
        grants=payload.grants,
        role=payload.role,
        jti=payload.jti,
        issued_at=payload.iat,
        expires_at=payload.exp,
    )
