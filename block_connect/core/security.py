import logging
import uuid
from datetime import datetime, timedelta, timezone

import jwt
from pydantic import ValidationError

from block_connect.constants.enums import Role, SubjectType, TokenType
from block_connect.core.settings import settings
from block_connect.dtos.token_dtos import (
    AppTokenPayload,
    SessionTokenPayload,
    TokenGrant,
)

logger = logging.getLogger(__name__)


class TokenService:

    def create_session_token(self, user_id: str, role: Role) -> str:
        """Mint a platform session token. Production sessions come from the
        platform's own sign-in; this exists for local development and tests."""
        now = datetime.now(timezone.utc)
        expires = now + timedelta(seconds=settings.session_token_expire_seconds)
        payload = {
            "sub": user_id,
            "type": TokenType.SESSION.value,
            "role": role.value,
            "iat": now,
            "exp": expires,
        }
        return jwt.encode(
            payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm
        )

    def create_app_token(
        self,
        subject: str,
        subject_type: SubjectType,
        app_block_id: str,
        scopes: list[str],
        grants: list[TokenGrant],
        role: Role | None = None,
    ) -> tuple[str, datetime]:
        now = datetime.now(timezone.utc)
        expires = now + timedelta(seconds=settings.app_token_expire_seconds)
        payload = {
            "sub": subject,
            "type": TokenType.APP_BLOCK.value,
            "subject_type": subject_type.value,
            "app_block_id": app_block_id,
            "scopes": scopes,
            "grants": [grant.model_dump(mode="json") for grant in grants],
            "role": role.value if role else None,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": expires,
        }
        token = jwt.encode(
            payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm
        )
        return token, expires

    def verify_session_token(self, token: str) -> SessionTokenPayload | None:
        payload = self._decode(token, TokenType.SESSION)
        if payload is None:
            return None
        try:
            return SessionTokenPayload(**payload)
        except ValidationError:
            logger.debug("Session token payload failed validation")
            return None

    def verify_app_token(self, token: str) -> AppTokenPayload | None:
        payload = self._decode(token, TokenType.APP_BLOCK)
        if payload is None:
            return None
        try:
            return AppTokenPayload(**payload)
        except ValidationError:
            logger.debug("App token payload failed validation")
            return None

    def _decode(self, token: str, expected_type: TokenType) -> dict | None:
        try:
            payload = jwt.decode(
                token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
            )
        except jwt.ExpiredSignatureError:
            logger.debug(f"Rejected expired {expected_type.value} token")
            return None
        except jwt.InvalidTokenError:
            logger.debug(f"Rejected invalid {expected_type.value} token")
            return None
        if payload.get("type") != expected_type.value:
            return None
        return payload


token_service = TokenService()
