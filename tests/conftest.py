"""
Shared pytest fixtures: an in-memory database and the services wired on it.
"""

import os

# Settings are read at import time; give them test values first.
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-unit-tests-0123456789abcdef")
os.environ.setdefault("PLATFORM_BASE_URL", "https://platform.test")

import pytest

from block_connect.constants.enums import (
    AuthType,
    InstallationKind,
    RegistryVisibility,
    Role,
)
from block_connect.core.security import TokenService
from block_connect.dtos.provider_dtos import ProviderScopeInputDTO
from block_connect.models.identity import Identity
from block_connect.services.app_block_service import AppBlockService
from block_connect.services.consent_service import ConsentService
from block_connect.services.installation_manager import InstallationManager
from block_connect.services.provider_service import ProviderService
from block_connect.services.recipe_resolver import RecipeResolver
from block_connect.services.registry_service import RegistryService
from block_connect.services.scope_catalog import ScopeCatalog
from block_connect.services.service_account_service import ServiceAccountService
from block_connect.services.token_issuer import TokenIssuer
from tests.fakes import (
    FakeAppBlockRepository,
    FakeConnectorRepository,
    FakeInstallationRepository,
    FakeProviderRepository,
    FakeRegistryRepository,
    FakeServiceAccountRepository,
    InMemoryDatabase,
)

OWNER_ID = "user-owner"
PROVIDER_OWNER_ID = "user-provider"
STRANGER_ID = "user-stranger"


class Services:
    """Every service built on one in-memory database."""

    def __init__(self, db: InMemoryDatabase):
        self.db = db
        self.app_block_repo = FakeAppBlockRepository(db)
        self.connector_repo = FakeConnectorRepository(db)
        self.provider_repo = FakeProviderRepository(db)
        self.registry_repo = FakeRegistryRepository(db)
        self.service_account_repo = FakeServiceAccountRepository(db)
        self.connector_installation_repo = FakeInstallationRepository(
            db, InstallationKind.CONNECTOR
        )
        self.app_block_installation_repo = FakeInstallationRepository(
            db, InstallationKind.APP_BLOCK
        )
        self.token_service = TokenService()

        self.catalog = ScopeCatalog(
            self.connector_repo,
            self.app_block_repo,
            self.provider_repo,
            self.registry_repo,
        )
        self.resolver = RecipeResolver(self.connector_repo, self.catalog)
        self.manager = InstallationManager(
            self.catalog,
            self.app_block_repo,
            self.connector_installation_repo,
            self.app_block_installation_repo,
            retry_attempts=3,
        )
        self.registry = RegistryService(
            self.registry_repo, self.app_block_repo, self.provider_repo
        )
        self.consent = ConsentService(
            self.catalog, self.resolver, self.manager, self.app_block_repo
        )
        self.issuer = TokenIssuer(
            self.manager,
            self.catalog,
            self.app_block_repo,
            self.service_account_repo,
            self.token_service,
        )
        self.app_blocks = AppBlockService(
            self.app_block_repo, self.provider_repo, self.registry_repo, self.manager
        )
        self.providers = ProviderService(
            self.provider_repo,
            self.app_block_repo,
            self.registry_repo,
            self.catalog,
            self.manager,
        )
        self.service_accounts = ServiceAccountService(
            self.service_account_repo, self.app_block_repo
        )


@pytest.fixture
def db():
    return InMemoryDatabase()


@pytest.fixture
def services(db):
    return Services(db)


@pytest.fixture
def owner():
    return Identity(user_id=OWNER_ID, role=Role.CREATOR)


@pytest.fixture
def provider_owner():
    return Identity(user_id=PROVIDER_OWNER_ID, role=Role.CREATOR)


@pytest.fixture
def stranger():
    return Identity(user_id=STRANGER_ID, role=Role.MEMBER)


@pytest.fixture
def admin():
    return Identity(user_id="user-admin", role=Role.ADMIN)


@pytest.fixture
def events_connector(db):
    """The seeded events connector with its recipes."""
    return db.add_connector(
        "events",
        scopes=[
            ("events.read", Role.VISITOR),
            ("events.publish", Role.CREATOR),
            ("events.approve", Role.ORGANIZER),
            ("events.checkin", Role.ORGANIZER),
            ("events.manage", Role.ADMIN),
        ],
        recipes={
            "events-view": ["events.read"],
            "events-publish": ["events.read", "events.publish"],
            "events-community": ["events.read", "events.publish", "events.approve"],
        },
    )


@pytest.fixture
def consumer(db):
    return db.add_app_block(OWNER_ID, name="Consumer")


@pytest.fixture
def make_provider(db):
    """Build a provider app block owned by ``PROVIDER_OWNER_ID``."""

    def _make(
        requires_approval: bool = False,
        auth_methods: list[AuthType] | None = None,
        slug: str = "city-events",
        visibility: RegistryVisibility = RegistryVisibility.PUBLIC,
    ):
        block = db.add_app_block(PROVIDER_OWNER_ID, name="Provider")
        db.add_provider(
            block.id,
            [
                ProviderScopeInputDTO(scope_name="events.read", is_public_read=True),
                ProviderScopeInputDTO(
                    scope_name="events.write", required_role=Role.CREATOR
                ),
                ProviderScopeInputDTO(
                    scope_name="events.manage", required_role=Role.ADMIN
                ),
            ],
            auth_methods=auth_methods,
        )
        db.add_registry_entry(
            block.id, slug, visibility=visibility, requires_approval=requires_approval
        )
        return block

    return _make
