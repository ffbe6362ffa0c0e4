"""
Installation lifecycle.

An installation binds a consumer app block to a connector or to a provider
app block with a granted scope set and a status::

    pending -> active -> error -> active
       |         |        |
       +---------+--------+--> revoked | expired   (terminal)

All writes go through the repositories' conditional updates, so the status
read here is only ever advisory: the database decides whether a transition
still applies.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from block_connect.constants.enums import (
    AuthType,
    InstallationKind,
    InstallationStatus,
    ProviderStatus,
)
from block_connect.constants.error_codes import ERROR_MESSAGES, ErrorCode
from block_connect.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from block_connect.core.settings import settings
from block_connect.dtos.consent_dtos import ProviderContextDTO
from block_connect.dtos.installation_dtos import (
    CreateInstallationDTO,
    InstallResultDTO,
    UpdateInstallationGrantDTO,
)
from block_connect.models.identity import Identity
from block_connect.models.installation import Installation, ProviderRef, sources_for
from block_connect.models.scope import ScopeDefinition
from block_connect.repositories.app_block_repository import AppBlockRepository
from block_connect.repositories.installation_repository import (
    AppBlockInstallationRepository,
    ConnectorInstallationRepository,
    InstallationRepository,
)
from block_connect.services.ownership import require_owned_app_block
from block_connect.services.scope_catalog import (
    ScopeCatalog,
    filter_by_role,
    split_known,
)

logger = logging.getLogger(__name__)


def _validation_error(code: ErrorCode, target: str, values: list[str] | None = None):
    return ValidationError(code.value, ERROR_MESSAGES[code], target=target, values=values)


def _invalid_transition(installation: Installation) -> ConflictError:
    return ConflictError(
        ErrorCode.INVALID_TRANSITION.value,
        f"{ERROR_MESSAGES[ErrorCode.INVALID_TRANSITION]} "
        f"(current status: {installation.status.value})",
    )


class InstallationManager:
    def __init__(
        self,
        scope_catalog: ScopeCatalog,
        app_block_repository: AppBlockRepository,
        connector_installation_repository: ConnectorInstallationRepository,
        app_block_installation_repository: AppBlockInstallationRepository,
        retry_attempts: int | None = None,
    ):
        self._scope_catalog = scope_catalog
        self._app_block_repo = app_block_repository
        self._repos: dict[InstallationKind, InstallationRepository] = {
            InstallationKind.CONNECTOR: connector_installation_repository,
            InstallationKind.APP_BLOCK: app_block_installation_repository,
        }
        self._retry_attempts = retry_attempts or settings.install_retry_attempts

    async def install(
        self,
        identity: Identity,
        consumer_app_block_id: str,
        ref: ProviderRef,
        requested_scopes: Iterable[str],
        auth_type: AuthType = AuthType.USER,
    ) -> InstallResultDTO:
        requested = set(requested_scopes)
        logger.info(
            f"Install requested: consumer={consumer_app_block_id} provider={ref} "
            f"scopes={sorted(requested)} auth_type={auth_type.value}"
        )
        consumer = await require_owned_app_block(
            self._app_block_repo, identity, consumer_app_block_id
        )

        if ref.kind == InstallationKind.APP_BLOCK and ref.id == consumer_app_block_id:
            raise _validation_error(ErrorCode.SELF_INSTALL, "provider_app_block_id")

        context = await self._scope_catalog.resolve_provider(ref)
        self._check_installable(context, auth_type)
        if auth_type == AuthType.SERVICE and not consumer.has_service_account:
            raise _validation_error(ErrorCode.SERVICE_ACCOUNT_REQUIRED, "auth_type")

        validation = split_known(context, requested)
        if not validation.is_valid:
            logger.warning(
                f"Install rejected, unknown scopes for {ref}: {validation.rejected}"
            )
            raise _validation_error(
                ErrorCode.UNKNOWN_SCOPES, "scopes", validation.rejected
            )

        requested_definitions = [
            scope for scope in context.scopes if scope.name in requested
        ]
        grantable, above_role = filter_by_role(requested_definitions, identity.role)
        rejected_scopes = sorted(scope.name for scope in above_role)
        if rejected_scopes:
            logger.warning(
                f"Scopes {rejected_scopes} exceed role {identity.role.value} "
                f"of user {identity.user_id}"
            )
        if not grantable:
            raise _validation_error(
                ErrorCode.NO_GRANTABLE_SCOPES, "scopes", rejected_scopes
            )

        installation, created = await self._upsert(
            consumer_app_block_id, context, grantable, auth_type
        )
        logger.info(
            f"Installation {installation.id} {'created' if created else 'updated'}: "
            f"consumer={consumer_app_block_id} provider={ref} "
            f"status={installation.status.value} "
            f"scopes={sorted(installation.granted_scopes)}"
        )
        return InstallResultDTO(
            installation=installation,
            rejected_scopes=rejected_scopes,
            created=created,
        )

    async def get(
        self,
        identity: Identity,
        installation_id: str,
        kind: InstallationKind | None = None,
    ) -> Installation:
        installation = await self._find(installation_id, kind)
        if not (
            await self._is_consumer_owner(identity, installation)
            or await self._is_provider_owner(identity, installation)
        ):
            raise AuthorizationError(
                "Installation", installation_id, reason="not a party to installation"
            )
        return installation

    async def get_as_consumer(
        self, identity: Identity, installation_id: str
    ) -> Installation:
        installation = await self._find(installation_id)
        if not await self._is_consumer_owner(identity, installation):
            raise AuthorizationError(
                "Installation", installation_id, reason="not the consumer owner"
            )
        return installation

    async def approve(self, identity: Identity, installation_id: str) -> Installation:
        installation = await self._find_for_provider_side(identity, installation_id)
        return await self._transition_or_fail(
            installation,
            InstallationStatus.ACTIVE,
            [InstallationStatus.PENDING.value],
            approved_at=datetime.now(timezone.utc),
        )

    async def reject(self, identity: Identity, installation_id: str) -> Installation:
        installation = await self._find_for_provider_side(identity, installation_id)
        return await self._transition_or_fail(
            installation,
            InstallationStatus.REVOKED,
            [InstallationStatus.PENDING.value],
        )

    async def revoke(
        self,
        identity: Identity,
        installation_id: str,
        kind: InstallationKind | None = None,
    ) -> Installation:
        installation = await self._find(installation_id, kind)
        # Owners of deleted blocks still count, so a revoke racing the delete
        # cascade returns the terminal row instead of failing.
        if not (
            await self._is_consumer_owner(identity, installation, include_deleted=True)
            or await self._is_provider_owner(identity, installation, include_deleted=True)
        ):
            raise AuthorizationError(
                "Installation", installation_id, reason="revoke by non-party"
            )

        if installation.is_terminal:
            logger.debug(
                f"Installation {installation_id} already {installation.status.value}"
            )
            return installation

        repo = self._repos[installation.kind]
        revoked = await repo.transition(
            installation_id,
            InstallationStatus.REVOKED,
            sources_for(InstallationStatus.REVOKED),
        )
        if revoked is None:
            # Lost to a concurrent revoke or cascade; the row is terminal now.
            return await repo.find_by_id(installation_id)

        logger.info(f"Installation {installation_id} revoked by user {identity.user_id}")
        return revoked

    async def reauthorize(self, identity: Identity, installation_id: str) -> Installation:
        installation = await self._find(installation_id)
        if not await self._is_consumer_owner(identity, installation):
            raise AuthorizationError(
                "Installation", installation_id, reason="reauthorize by non-consumer"
            )
        return await self._transition_or_fail(
            installation,
            InstallationStatus.ACTIVE,
            [InstallationStatus.ERROR.value],
        )

    async def touch(
        self, installation_id: str, kind: InstallationKind | None = None
    ) -> bool:
        for repo in self._candidate_repos(kind):
            if await repo.touch(installation_id):
                return True
        logger.debug(f"Touch skipped, installation {installation_id} not found")
        return False

    async def mark_error(
        self,
        installation_id: str,
        reason: str,
        kind: InstallationKind | None = None,
    ) -> Installation:
        installation = await self._find(installation_id, kind)
        repo = self._repos[installation.kind]
        updated = await repo.transition(
            installation_id,
            InstallationStatus.ERROR,
            [InstallationStatus.ACTIVE.value],
        )
        if updated is None:
            logger.debug(
                f"mark_error ignored for installation {installation_id} "
                f"in status {installation.status.value}"
            )
            return installation

        logger.warning(f"Installation {installation_id} marked as error: {reason}")
        return updated

    async def revoke_all_for_app_block(self, app_block_id: str) -> int:
        connector_repo = self._repos[InstallationKind.CONNECTOR]
        app_block_repo = self._repos[InstallationKind.APP_BLOCK]
        revoked = [
            *await connector_repo.revoke_all_by_consumer(app_block_id),
            *await app_block_repo.revoke_all_by_consumer(app_block_id),
            *await app_block_repo.revoke_all_by_provider(app_block_id),
        ]
        logger.info(
            f"Revoked {len(revoked)} installations of app block {app_block_id}"
        )
        return len(revoked)

    async def expire_all_for_provider(self, ref: ProviderRef) -> int:
        expired = await self._repos[ref.kind].expire_all_by_provider(ref.id)
        logger.info(f"Expired {len(expired)} installations of provider {ref}")
        return len(expired)

    async def list_for_consumer(
        self, identity: Identity, app_block_id: str
    ) -> list[Installation]:
        await require_owned_app_block(self._app_block_repo, identity, app_block_id)
        return [
            *await self._repos[InstallationKind.CONNECTOR].find_by_consumer(app_block_id),
            *await self._repos[InstallationKind.APP_BLOCK].find_by_consumer(app_block_id),
        ]

    async def live_scopes_for_provider(self, ref: ProviderRef) -> frozenset[str]:
        installations = await self._repos[ref.kind].find_live_by_provider(ref.id)
        return frozenset(
            scope for installation in installations for scope in installation.granted_scopes
        )

    async def list_active_for_consumer(
        self, app_block_id: str, auth_type: AuthType
    ) -> list[Installation]:
        return [
            *await self._repos[InstallationKind.CONNECTOR].find_active_by_consumer(
                app_block_id, auth_type
            ),
            *await self._repos[InstallationKind.APP_BLOCK].find_active_by_consumer(
                app_block_id, auth_type
            ),
        ]

    async def list_for_provider(
        self, identity: Identity, app_block_id: str
    ) -> list[Installation]:
        await require_owned_app_block(self._app_block_repo, identity, app_block_id)
        return await self._repos[InstallationKind.APP_BLOCK].find_by_provider(
            app_block_id
        )

    def _check_installable(self, context: ProviderContextDTO, auth_type: AuthType) -> None:
        if not context.installable:
            raise _validation_error(ErrorCode.PROVIDER_NOT_INSTALLABLE, "provider")
        if context.status != ProviderStatus.ACTIVE:
            raise _validation_error(
                ErrorCode.PROVIDER_INACTIVE, "provider", [context.status.value]
            )
        if auth_type not in context.auth_methods:
            raise _validation_error(
                ErrorCode.UNSUPPORTED_AUTH_METHOD, "auth_type", [auth_type.value]
            )

    async def _upsert(
        self,
        consumer_app_block_id: str,
        context: ProviderContextDTO,
        grantable: list[ScopeDefinition],
        auth_type: AuthType,
    ) -> tuple[Installation, bool]:
        repo = self._repos[context.kind]
        granted = frozenset(scope.name for scope in grantable)
        public_only = all(scope.is_public_read for scope in grantable)

        for attempt in range(1, self._retry_attempts + 1):
            existing = await repo.find_live_by_pair(consumer_app_block_id, context.id)
            status = self._initial_status(context, granted, public_only, existing)
            approved_at = (
                datetime.now(timezone.utc)
                if status == InstallationStatus.ACTIVE
                else None
            )

            if existing is not None:
                updated = await repo.update_grant(
                    existing,
                    UpdateInstallationGrantDTO(
                        granted_scopes=granted,
                        auth_type=auth_type,
                        status=status,
                        approved_at=approved_at,
                    ),
                )
                if updated is not None:
                    return updated, False
                await self._require_live_parties(consumer_app_block_id, context)
                logger.info(
                    f"Installation {existing.id} went terminal during install, "
                    f"retrying ({attempt}/{self._retry_attempts})"
                )
                continue

            try:
                created = await repo.create(
                    CreateInstallationDTO(
                        kind=context.kind,
                        consumer_app_block_id=consumer_app_block_id,
                        provider_id=context.id,
                        granted_scopes=granted,
                        auth_type=auth_type,
                        status=status,
                        approved_at=approved_at,
                    )
                )
            except ConflictError:
                logger.info(
                    f"Concurrent install for {consumer_app_block_id} -> "
                    f"{context.kind.value}:{context.id}, "
                    f"retrying ({attempt}/{self._retry_attempts})"
                )
                continue
            if created is None:
                logger.warning(
                    f"Install for {consumer_app_block_id} -> "
                    f"{context.kind.value}:{context.id} lost to an app block delete"
                )
                await self._require_live_parties(consumer_app_block_id, context)
                continue
            return created, True

        logger.error(
            f"Install for {consumer_app_block_id} -> {context.kind.value}:{context.id} "
            f"did not converge after {self._retry_attempts} attempts"
        )
        raise ConflictError(
            ErrorCode.INSTALL_CONFLICT.value,
            ERROR_MESSAGES[ErrorCode.INSTALL_CONFLICT],
        )

    def _initial_status(
        self,
        context: ProviderContextDTO,
        granted: frozenset[str],
        public_only: bool,
        existing: Installation | None,
    ) -> InstallationStatus:
        if not context.requires_approval or public_only:
            return InstallationStatus.ACTIVE
        if (
            existing is not None
            and existing.status in (InstallationStatus.ACTIVE, InstallationStatus.ERROR)
            and granted <= existing.granted_scopes
        ):
            return InstallationStatus.ACTIVE
        return InstallationStatus.PENDING

    async def _transition_or_fail(
        self,
        installation: Installation,
        target: InstallationStatus,
        from_statuses: list[str],
        approved_at: datetime | None = None,
    ) -> Installation:
        if (
            installation.status.value not in from_statuses
            or not installation.can_transition_to(target)
        ):
            raise _invalid_transition(installation)

        repo = self._repos[installation.kind]
        updated = await repo.transition(
            installation.id, target, from_statuses, approved_at=approved_at
        )
        if updated is None:
            current = await repo.find_by_id(installation.id)
            raise _invalid_transition(current or installation)

        logger.info(
            f"Installation {installation.id}: "
            f"{installation.status.value} -> {target.value}"
        )
        return updated

    async def _find(
        self, installation_id: str, kind: InstallationKind | None = None
    ) -> Installation:
        for repo in self._candidate_repos(kind):
            installation = await repo.find_by_id(installation_id)
            if installation is not None:
                return installation
        raise NotFoundError("Installation", installation_id)

    async def _find_for_provider_side(
        self, identity: Identity, installation_id: str
    ) -> Installation:
        installation = await self._find(installation_id, InstallationKind.APP_BLOCK)
        if not (
            identity.is_admin or await self._is_provider_owner(identity, installation)
        ):
            raise AuthorizationError(
                "Installation", installation_id, reason="not the provider owner"
            )
        return installation

    def _candidate_repos(
        self, kind: InstallationKind | None
    ) -> list[InstallationRepository]:
        if kind is not None:
            return [self._repos[kind]]
        return [
            self._repos[InstallationKind.APP_BLOCK],
            self._repos[InstallationKind.CONNECTOR],
        ]

    async def _is_consumer_owner(
        self,
        identity: Identity,
        installation: Installation,
        include_deleted: bool = False,
    ) -> bool:
        consumer = await self._app_block_repo.find_by_id(
            installation.consumer_app_block_id, include_deleted=include_deleted
        )
        return consumer is not None and consumer.is_owned_by(identity.user_id)

    async def _is_provider_owner(
        self,
        identity: Identity,
        installation: Installation,
        include_deleted: bool = False,
    ) -> bool:
        if installation.kind != InstallationKind.APP_BLOCK:
            return False
        provider = await self._app_block_repo.find_by_id(
            installation.provider_id, include_deleted=include_deleted
        )
        return provider is not None and provider.is_owned_by(identity.user_id)

    async def _require_live_parties(
        self, consumer_app_block_id: str, context: ProviderContextDTO
    ) -> None:
        if await self._app_block_repo.find_by_id(consumer_app_block_id) is None:
            raise NotFoundError("App block", consumer_app_block_id)
        if (
            context.kind == InstallationKind.APP_BLOCK
            and await self._app_block_repo.find_by_id(context.id) is None
        ):
            raise NotFoundError("Provider", context.id)

