import logging

from fastapi import APIRouter, BackgroundTasks

from block_connect.constants.enums import GrantType
from block_connect.constants.error_codes import ERROR_MESSAGES, ErrorCode
from block_connect.core.dependencies import OptionalIdentityDep, TokenIssuerDep
from block_connect.core.exceptions import AuthenticationError
from block_connect.schemas.auth import (
    IntrospectRequest,
    TokenRequest,
    to_introspect_response,
    to_token_response,
)
from block_connect.schemas.common import ApiResponse, create_success_response
from block_connect.services.token_issuer import touch_token_grants

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/token", response_model=ApiResponse)
async def issue_token(
    request: TokenRequest,
    identity: OptionalIdentityDep,
    issuer: TokenIssuerDep,
):
    if request.grant_type == GrantType.USER_SESSION:
        if identity is None:
            raise AuthenticationError(
                ErrorCode.INVALID_SESSION_TOKEN.value,
                ERROR_MESSAGES[ErrorCode.INVALID_SESSION_TOKEN],
            )
        issued = await issuer.issue_user_token(
            identity,
            request.app_block_id,
            requested_scopes=request.scopes,
            provider=request.provider,
        )
    else:
        issued = await issuer.issue_service_token(
            request.client_id,
            request.client_secret,
            requested_scopes=request.scopes,
            provider=request.provider,
        )
    return create_success_response(
        data=to_token_response(issued).model_dump(mode="json")
    )


@router.post("/introspect", response_model=ApiResponse)
async def introspect_token(
    request: IntrospectRequest,
    issuer: TokenIssuerDep,
    background_tasks: BackgroundTasks,
):
    payload = issuer.introspect(request.token)
    if payload.grants:
        background_tasks.add_task(touch_token_grants, payload.grants)
    return create_success_response(
        data=to_introspect_response(payload).model_dump(mode="json")
    )
