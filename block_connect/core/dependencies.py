import logging
from collections.abc import AsyncGenerator
from typing import Annotated

import asyncpg
from fastapi import Cookie, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from block_connect.constants.error_codes import ERROR_MESSAGES, ErrorCode
from block_connect.core.exceptions import AuthenticationError
from block_connect.core.security import TokenService, token_service
from block_connect.database import db_connection
from block_connect.models.identity import Identity
from block_connect.repositories.app_block_repository import AppBlockRepository
from block_connect.repositories.connector_repository import ConnectorRepository
from block_connect.repositories.installation_repository import (
    AppBlockInstallationRepository,
    ConnectorInstallationRepository,
)
from block_connect.repositories.provider_repository import ProviderRepository
from block_connect.repositories.registry_repository import RegistryRepository
from block_connect.repositories.service_account_repository import (
    ServiceAccountRepository,
)
from block_connect.services.app_block_service import AppBlockService
from block_connect.services.consent_service import ConsentService
from block_connect.services.installation_manager import InstallationManager
from block_connect.services.provider_health_service import ProviderHealthService
from block_connect.services.provider_service import ProviderService
from block_connect.services.recipe_resolver import RecipeResolver
from block_connect.services.registry_service import RegistryService
from block_connect.services.scope_catalog import ScopeCatalog
from block_connect.services.service_account_service import ServiceAccountService
from block_connect.services.token_issuer import TokenIssuer

logger = logging.getLogger(__name__)

http_bearer = HTTPBearer(auto_error=False)


async def get_db_session() -> AsyncGenerator[asyncpg.Connection, None]:
    async with db_connection.get_connection() as conn:
        yield conn


def get_app_block_repository(
    conn: asyncpg.Connection = Depends(get_db_session),
) -> AppBlockRepository:
    return AppBlockRepository(conn)


def get_connector_repository(
    conn: asyncpg.Connection = Depends(get_db_session),
) -> ConnectorRepository:
    return ConnectorRepository(conn)


def get_provider_repository(
    conn: asyncpg.Connection = Depends(get_db_session),
) -> ProviderRepository:
    return ProviderRepository(conn)


def get_registry_repository(
    conn: asyncpg.Connection = Depends(get_db_session),
) -> RegistryRepository:
    return RegistryRepository(conn)


def get_service_account_repository(
    conn: asyncpg.Connection = Depends(get_db_session),
) -> ServiceAccountRepository:
    return ServiceAccountRepository(conn)


def get_connector_installation_repository(
    conn: asyncpg.Connection = Depends(get_db_session),
) -> ConnectorInstallationRepository:
    return ConnectorInstallationRepository(conn)


def get_app_block_installation_repository(
    conn: asyncpg.Connection = Depends(get_db_session),
) -> AppBlockInstallationRepository:
    return AppBlockInstallationRepository(conn)


def get_token_service() -> TokenService:
    return token_service


def get_scope_catalog(
    connector_repository: ConnectorRepository = Depends(get_connector_repository),
    app_block_repository: AppBlockRepository = Depends(get_app_block_repository),
    provider_repository: ProviderRepository = Depends(get_provider_repository),
    registry_repository: RegistryRepository = Depends(get_registry_repository),
) -> ScopeCatalog:
    return ScopeCatalog(
        connector_repository=connector_repository,
        app_block_repository=app_block_repository,
        provider_repository=provider_repository,
        registry_repository=registry_repository,
    )


def get_recipe_resolver(
    connector_repository: ConnectorRepository = Depends(get_connector_repository),
    scope_catalog: ScopeCatalog = Depends(get_scope_catalog),
) -> RecipeResolver:
    return RecipeResolver(connector_repository, scope_catalog)


def get_installation_manager(
    scope_catalog: ScopeCatalog = Depends(get_scope_catalog),
    app_block_repository: AppBlockRepository = Depends(get_app_block_repository),
    connector_installation_repository: ConnectorInstallationRepository = Depends(
        get_connector_installation_repository
    ),
    app_block_installation_repository: AppBlockInstallationRepository = Depends(
        get_app_block_installation_repository
    ),
) -> InstallationManager:
    return InstallationManager(
        scope_catalog=scope_catalog,
        app_block_repository=app_block_repository,
        connector_installation_repository=connector_installation_repository,
        app_block_installation_repository=app_block_installation_repository,
    )


def get_registry_service(
    registry_repository: RegistryRepository = Depends(get_registry_repository),
    app_block_repository: AppBlockRepository = Depends(get_app_block_repository),
    provider_repository: ProviderRepository = Depends(get_provider_repository),
) -> RegistryService:
    return RegistryService(registry_repository, app_block_repository, provider_repository)


def get_consent_service(
    scope_catalog: ScopeCatalog = Depends(get_scope_catalog),
    recipe_resolver: RecipeResolver = Depends(get_recipe_resolver),
    installation_manager: InstallationManager = Depends(get_installation_manager),
    app_block_repository: AppBlockRepository = Depends(get_app_block_repository),
) -> ConsentService:
    return ConsentService(
        scope_catalog=scope_catalog,
        recipe_resolver=recipe_resolver,
        installation_manager=installation_manager,
        app_block_repository=app_block_repository,
    )


def get_token_issuer(
    installation_manager: InstallationManager = Depends(get_installation_manager),
    scope_catalog: ScopeCatalog = Depends(get_scope_catalog),
    app_block_repository: AppBlockRepository = Depends(get_app_block_repository),
    service_account_repository: ServiceAccountRepository = Depends(
        get_service_account_repository
    ),
    tokens: TokenService = Depends(get_token_service),
) -> TokenIssuer:
    return TokenIssuer(
        installation_manager=installation_manager,
        scope_catalog=scope_catalog,
        app_block_repository=app_block_repository,
        service_account_repository=service_account_repository,
        token_service=tokens,
    )


def get_app_block_service(
    app_block_repository: AppBlockRepository = Depends(get_app_block_repository),
    provider_repository: ProviderRepository = Depends(get_provider_repository),
    registry_repository: RegistryRepository = Depends(get_registry_repository),
    installation_manager: InstallationManager = Depends(get_installation_manager),
) -> AppBlockService:
    return AppBlockService(
        app_block_repository=app_block_repository,
        provider_repository=provider_repository,
        registry_repository=registry_repository,
        installation_manager=installation_manager,
    )


def get_provider_service(
    provider_repository: ProviderRepository = Depends(get_provider_repository),
    app_block_repository: AppBlockRepository = Depends(get_app_block_repository),
    registry_repository: RegistryRepository = Depends(get_registry_repository),
    scope_catalog: ScopeCatalog = Depends(get_scope_catalog),
    installation_manager: InstallationManager = Depends(get_installation_manager),
) -> ProviderService:
    return ProviderService(
        provider_repository=provider_repository,
        app_block_repository=app_block_repository,
        registry_repository=registry_repository,
        scope_catalog=scope_catalog,
        installation_manager=installation_manager,
    )


def get_service_account_service(
    service_account_repository: ServiceAccountRepository = Depends(
        get_service_account_repository
    ),
    app_block_repository: AppBlockRepository = Depends(get_app_block_repository),
) -> ServiceAccountService:
    return ServiceAccountService(service_account_repository, app_block_repository)


def get_provider_health_service(
    installation_manager: InstallationManager = Depends(get_installation_manager),
    scope_catalog: ScopeCatalog = Depends(get_scope_catalog),
    tokens: TokenService = Depends(get_token_service),
) -> ProviderHealthService:
    return ProviderHealthService(installation_manager, scope_catalog, tokens)


def _extract_token(
    credentials: HTTPAuthorizationCredentials | None,
    session_cookie: str | None,
) -> str | None:
    if credentials is not None:
        return credentials.credentials
    if session_cookie:
        return session_cookie
    return None


async def get_optional_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(http_bearer)],
    session_cookie: Annotated[str | None, Cookie(alias="session_token")] = None,
) -> Identity | None:
    token = _extract_token(credentials, session_cookie)
    if token is None:
        return None

    payload = token_service.verify_session_token(token)
    if payload is None:
        raise AuthenticationError(
            ErrorCode.INVALID_SESSION_TOKEN.value,
            ERROR_MESSAGES[ErrorCode.INVALID_SESSION_TOKEN],
        )
    return Identity(user_id=payload.sub, role=payload.role)


async def get_current_identity(
    identity: Annotated[Identity | None, Depends(get_optional_identity)],
) -> Identity:
    if identity is None:
        raise AuthenticationError(
            ErrorCode.INVALID_SESSION_TOKEN.value, "Not authenticated"
        )
    return identity


CurrentIdentityDep = Annotated[Identity, Depends(get_current_identity)]
OptionalIdentityDep = Annotated[Identity | None, Depends(get_optional_identity)]
ScopeCatalogDep = Annotated[ScopeCatalog, Depends(get_scope_catalog)]
RecipeResolverDep = Annotated[RecipeResolver, Depends(get_recipe_resolver)]
InstallationManagerDep = Annotated[
    InstallationManager, Depends(get_installation_manager)
]
RegistryServiceDep = Annotated[RegistryService, Depends(get_registry_service)]
ConsentServiceDep = Annotated[ConsentService, Depends(get_consent_service)]
TokenIssuerDep = Annotated[TokenIssuer, Depends(get_token_issuer)]
AppBlockServiceDep = Annotated[AppBlockService, Depends(get_app_block_service)]
ProviderServiceDep = Annotated[ProviderService, Depends(get_provider_service)]
ServiceAccountServiceDep = Annotated[
    ServiceAccountService, Depends(get_service_account_service)
]
ProviderHealthServiceDep = Annotated[
    ProviderHealthService, Depends(get_provider_health_service)
]
