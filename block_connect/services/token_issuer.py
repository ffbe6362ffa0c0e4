import logging
from collections.abc import Iterable

from block_connect.constants.enums import (
    AuthType,
    InstallationKind,
    ProviderStatus,
    Role,
    SubjectType,
)
from block_connect.constants.error_codes import ERROR_MESSAGES, ErrorCode
from block_connect.core.exceptions import (
    AuthenticationError,
    NotFoundError,
)
from block_connect.core.security import TokenService
from block_connect.database import db_connection
from block_connect.dtos.consent_dtos import ProviderContextDTO
from block_connect.dtos.token_dtos import AppTokenPayload, IssuedTokenDTO, TokenGrant
from block_connect.models.identity import Identity
from block_connect.models.installation import ProviderRef
from block_connect.repositories.app_block_repository import AppBlockRepository
from block_connect.repositories.installation_repository import (
    AppBlockInstallationRepository,
    ConnectorInstallationRepository,
)
from block_connect.repositories.service_account_repository import (
    ServiceAccountRepository,
)
from block_connect.services.installation_manager import InstallationManager
from block_connect.services.scope_catalog import ScopeCatalog
from block_connect.utils.crypto import verify_api_key

logger = logging.getLogger(__name__)


class TokenIssuer:
    """Mints short-lived app block tokens from active installations.

    Scopes are only ever narrowed: a token carries the intersection of what
    the block's active grants allow and what the caller asked for. Anything
    that cannot be backed by an active installation of an active provider is
    dropped silently, so a block whose grants are all pending gets a token
    with no scopes rather than an error.
    """

    def __init__(
        self,
        installation_manager: InstallationManager,
        scope_catalog: ScopeCatalog,
        app_block_repository: AppBlockRepository,
        service_account_repository: ServiceAccountRepository,
        token_service: TokenService,
    ):
        self._installation_manager = installation_manager
        self._scope_catalog = scope_catalog
        self._app_block_repo = app_block_repository
        self._service_account_repo = service_account_repository
        self._token_service = token_service

    async def issue_user_token(
        self,
        identity: Identity,
        app_block_id: str,
        requested_scopes: Iterable[str] | None = None,
        provider: ProviderRef | None = None,
    ) -> IssuedTokenDTO:
        app_block = await self._app_block_repo.find_by_id(app_block_id)
        if app_block is None:
            raise NotFoundError("App block", app_block_id)

        scopes, grants = await self._effective_grants(
            app_block_id, AuthType.USER, requested_scopes, provider, role=identity.role
        )
        token, expires_at = self._token_service.create_app_token(
            subject=identity.user_id,
            subject_type=SubjectType.USER,
            app_block_id=app_block_id,
            scopes=scopes,
            grants=grants,
            role=identity.role,
        )
        logger.info(
            f"Issued user token for app block {app_block_id} to user {identity.user_id} "
            f"with {len(scopes)} scopes"
        )
        return IssuedTokenDTO(access_token=token, expires_at=expires_at, scopes=scopes)

    async def issue_service_token(
        self,
        client_id: str,
        client_secret: str,
        requested_scopes: Iterable[str] | None = None,
        provider: ProviderRef | None = None,
    ) -> IssuedTokenDTO:
        account = await self._service_account_repo.find_by_id(client_id)
        if account is None or not verify_api_key(client_secret, account.api_key_hash):
            logger.warning(f"Rejected client credentials for {client_id}")
            raise AuthenticationError(
                ErrorCode.INVALID_CLIENT_CREDENTIALS.value,
                ERROR_MESSAGES[ErrorCode.INVALID_CLIENT_CREDENTIALS],
            )

        app_block = await self._app_block_repo.find_by_id(account.app_block_id)
        if app_block is None:
            logger.warning(
                f"Service account {account.id} belongs to deleted app block "
                f"{account.app_block_id}"
            )
            raise AuthenticationError(
                ErrorCode.INVALID_CLIENT_CREDENTIALS.value,
                ERROR_MESSAGES[ErrorCode.INVALID_CLIENT_CREDENTIALS],
            )

        scopes, grants = await self._effective_grants(
            app_block.id, AuthType.SERVICE, requested_scopes, provider
        )
        token, expires_at = self._token_service.create_app_token(
            subject=account.id,
            subject_type=SubjectType.SERVICE,
            app_block_id=app_block.id,
            scopes=scopes,
            grants=grants,
        )
        logger.info(
            f"Issued service token for app block {app_block.id} with {len(scopes)} scopes"
        )
        return IssuedTokenDTO(access_token=token, expires_at=expires_at, scopes=scopes)

    def introspect(self, token: str) -> AppTokenPayload:
        payload = self._token_service.verify_app_token(token)
        if payload is None:
            raise AuthenticationError(
                ErrorCode.INVALID_ACCESS_TOKEN.value,
                ERROR_MESSAGES[ErrorCode.INVALID_ACCESS_TOKEN],
            )
        return payload

    async def _effective_grants(
        self,
        app_block_id: str,
        auth_type: AuthType,
        requested_scopes: Iterable[str] | None,
        provider: ProviderRef | None,
        role: Role | None = None,
    ) -> tuple[list[str], list[TokenGrant]]:
        requested = set(requested_scopes) if requested_scopes is not None else None
        installations = await self._installation_manager.list_active_for_consumer(
            app_block_id, auth_type
        )

        contexts: dict[ProviderRef, ProviderContextDTO | None] = {}
        grants: list[TokenGrant] = []
        for installation in installations:
            ref = installation.provider_ref
            if provider is not None and ref != provider:
                continue
            if ref not in contexts:
                contexts[ref] = await self._active_provider(ref)
            context = contexts[ref]
            if context is None:
                continue

            allowed = {
                scope.name
                for scope in context.scopes
                if scope.name in installation.granted_scopes
                and (role is None or role.satisfies(scope.required_role))
            }
            if requested is not None:
                allowed &= requested
            if not allowed:
                continue

            grants.append(
                TokenGrant(
                    installation_id=installation.id,
                    provider_kind=ref.kind,
                    provider_id=ref.id,
                    scopes=sorted(allowed),
                )
            )

        scopes = sorted({scope for grant in grants for scope in grant.scopes})
        if requested is not None and len(scopes) < len(requested):
            logger.debug(
                f"Dropped unavailable scopes for app block {app_block_id}: "
                f"{sorted(requested - set(scopes))}"
            )
        return scopes, grants

    async def _active_provider(self, ref: ProviderRef) -> ProviderContextDTO | None:
        try:
            context = await self._scope_catalog.resolve_provider(ref)
        except NotFoundError:
            logger.debug(f"Provider {ref} no longer exists, dropping its scopes")
            return None
        if context.status != ProviderStatus.ACTIVE:
            logger.debug(
                f"Provider {ref} is {context.status.value}, dropping its scopes"
            )
            return None
        return context


async def touch_token_grants(grants: list[TokenGrant]) -> None:
    """Bump ``last_used_at`` for every installation behind a token.

    Runs as a background task after the response is sent, so it takes its own
    connection from the pool instead of the request's.
    """
    async with db_connection.get_connection() as conn:
        repos = {
            InstallationKind.CONNECTOR: ConnectorInstallationRepository(conn),
            InstallationKind.APP_BLOCK: AppBlockInstallationRepository(conn),
        }
        for grant in grants:
            await repos[grant.provider_kind].touch(grant.installation_id)
    logger.debug(f"Touched {len(grants)} installations")
