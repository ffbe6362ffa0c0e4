"""
In-memory stand-ins for the asyncpg repositories.

Each fake mirrors the public interface of its repository and shares one
``InMemoryDatabase``, the way the real repositories share one connection.
Every method yields to the event loop once so concurrent callers interleave
the way they would against Postgres.
"""

import asyncio
from datetime import datetime, timezone

from block_connect.constants.enums import (
    AuthType,
    InstallationKind,
    InstallationStatus,
    LIVE_INSTALLATION_STATUSES,
    RegistryCategory,
    RegistryVisibility,
    Role,
)
from block_connect.constants.error_codes import ERROR_MESSAGES, ErrorCode
from block_connect.core.exceptions import ConflictError
from block_connect.dtos.app_block_dtos import CreateAppBlockDTO, UpdateAppBlockDTO
from block_connect.dtos.installation_dtos import (
    CreateInstallationDTO,
    UpdateInstallationGrantDTO,
)
from block_connect.dtos.provider_dtos import (
    CreateProviderDTO,
    ProviderScopeInputDTO,
    UpdateProviderDTO,
)
from block_connect.dtos.registry_dtos import (
    CreateRegistryEntryDTO,
    RegistryBrowseFiltersDTO,
    UpdateRegistryEntryDTO,
)
from block_connect.models.app_block import AppBlock
from block_connect.models.connector import Connector, ConnectorRecipe, ConnectorScope
from block_connect.models.installation import Installation
from block_connect.models.provider import AppBlockProvider, ProviderScope
from block_connect.models.registry_entry import RegistryEntry
from block_connect.models.service_account import ServiceAccount
from block_connect.utils.crypto import generate_id


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryDatabase:
    def __init__(self):
        self.connectors: dict[str, Connector] = {}
        self.connector_scopes: list[ConnectorScope] = []
        self.recipes: dict[str, ConnectorRecipe] = {}
        self.app_blocks: dict[str, AppBlock] = {}
        self.providers: dict[str, AppBlockProvider] = {}
        self.registry: dict[str, RegistryEntry] = {}
        self.service_accounts: dict[str, ServiceAccount] = {}
        self.installations: dict[InstallationKind, dict[str, Installation]] = {
            kind: {} for kind in InstallationKind
        }

    def add_connector(
        self,
        connector_id: str,
        scopes: list[tuple[str, Role | None]],
        recipes: dict[str, list[str]] | None = None,
        is_active: bool = True,
        public_read: set[str] | None = None,
    ) -> Connector:
        connector = Connector(
            id=connector_id,
            name=connector_id.title(),
            description=f"{connector_id} connector",
            is_active=is_active,
            created_at=_now(),
        )
        self.connectors[connector_id] = connector
        for name, required_role in scopes:
            self.connector_scopes.append(
                ConnectorScope(
                    id=name,
                    connector_id=connector_id,
                    name=name,
                    required_role=required_role,
                    is_public_read=name in (public_read or set()),
                    created_at=_now(),
                )
            )
        for recipe_id, recipe_scopes in (recipes or {}).items():
            self.recipes[recipe_id] = ConnectorRecipe(
                id=recipe_id,
                connector_id=connector_id,
                name=recipe_id,
                scopes=recipe_scopes,
                created_at=_now(),
            )
        return connector

    def add_app_block(self, owner_user_id: str, name: str = "Block") -> AppBlock:
        app_block = AppBlock(
            id=generate_id(),
            name=name,
            owner_user_id=owner_user_id,
            created_at=_now(),
            updated_at=_now(),
        )
        self.app_blocks[app_block.id] = app_block
        return app_block

    def add_provider(
        self,
        app_block_id: str,
        scopes: list[ProviderScopeInputDTO],
        auth_methods: list[AuthType] | None = None,
        base_api_url: str = "https://provider.example.com/api",
    ) -> AppBlockProvider:
        provider_id = generate_id()
        provider = AppBlockProvider(
            id=provider_id,
            app_block_id=app_block_id,
            base_api_url=base_api_url,
            auth_methods=auth_methods or [AuthType.USER],
            scopes=[_provider_scope(provider_id, scope) for scope in scopes],
            created_at=_now(),
            updated_at=_now(),
        )
        self.providers[app_block_id] = provider
        return provider

    def add_registry_entry(
        self,
        app_block_id: str,
        slug: str,
        visibility: RegistryVisibility = RegistryVisibility.PUBLIC,
        requires_approval: bool = False,
        installable: bool = True,
        category: RegistryCategory = RegistryCategory.OTHER,
        tags: list[str] | None = None,
        featured: bool = False,
    ) -> RegistryEntry:
        entry = RegistryEntry(
            id=generate_id(),
            app_block_id=app_block_id,
            slug=slug,
            display_name=slug.replace("-", " ").title(),
            category=category,
            visibility=visibility,
            installable=installable,
            requires_approval=requires_approval,
            tags=sorted(set(tags or [])),
            featured_at=_now() if featured else None,
            created_at=_now(),
            updated_at=_now(),
        )
        self.registry[app_block_id] = entry
        return entry


def _provider_scope(provider_id: str, scope: ProviderScopeInputDTO) -> ProviderScope:
    return ProviderScope(
        id=generate_id(),
        provider_id=provider_id,
        scope_name=scope.scope_name,
        description=scope.description,
        is_public_read=scope.is_public_read,
        required_role=scope.required_role,
        created_at=_now(),
    )


class FakeAppBlockRepository:
    def __init__(self, db: InMemoryDatabase):
        self._db = db

    async def find_by_id(
        self, app_block_id: str, include_deleted: bool = False
    ) -> AppBlock | None:
        await asyncio.sleep(0)
        app_block = self._db.app_blocks.get(app_block_id)
        if app_block is None or (app_block.deleted_at and not include_deleted):
            return None
        has_account = any(
            account.app_block_id == app_block_id
            for account in self._db.service_accounts.values()
        )
        return app_block.model_copy(update={"has_service_account": has_account})

    async def find_by_owner(self, owner_user_id: str) -> list[AppBlock]:
        await asyncio.sleep(0)
        return [
            block
            for block in self._db.app_blocks.values()
            if block.owner_user_id == owner_user_id and block.deleted_at is None
        ]

    async def create(self, dto: CreateAppBlockDTO) -> AppBlock:
        app_block = AppBlock(
            id=generate_id(),
            name=dto.name,
            owner_user_id=dto.owner_user_id,
            description=dto.description,
            icon_url=dto.icon_url,
            created_at=_now(),
            updated_at=_now(),
        )
        self._db.app_blocks[app_block.id] = app_block
        return await self.find_by_id(app_block.id)

    async def update(self, app_block_id: str, dto: UpdateAppBlockDTO) -> AppBlock | None:
        app_block = self._db.app_blocks.get(app_block_id)
        if app_block is not None and app_block.deleted_at is None:
            changes = dto.model_dump(exclude_none=True)
            self._db.app_blocks[app_block_id] = app_block.model_copy(
                update={**changes, "updated_at": _now()}
            )
        return await self.find_by_id(app_block_id)

    async def soft_delete(self, app_block_id: str) -> bool:
        await asyncio.sleep(0)
        app_block = self._db.app_blocks.get(app_block_id)
        if app_block is None or app_block.deleted_at is not None:
            return False
        self._db.app_blocks[app_block_id] = app_block.model_copy(
            update={"deleted_at": _now(), "updated_at": _now()}
        )
        return True


class FakeConnectorRepository:
    def __init__(self, db: InMemoryDatabase):
        self._db = db

    async def find_all(self, active_only: bool = True) -> list[Connector]:
        await asyncio.sleep(0)
        connectors = [
            connector
            for connector in self._db.connectors.values()
            if connector.is_active or not active_only
        ]
        return sorted(connectors, key=lambda connector: connector.name)

    async def find_by_id(self, connector_id: str) -> Connector | None:
        await asyncio.sleep(0)
        return self._db.connectors.get(connector_id)

    async def find_scopes(self, connector_id: str) -> list[ConnectorScope]:
        await asyncio.sleep(0)
        return [
            scope
            for scope in self._db.connector_scopes
            if scope.connector_id == connector_id
        ]

    async def find_recipes(self, connector_id: str) -> list[ConnectorRecipe]:
        await asyncio.sleep(0)
        return [
            recipe
            for recipe in self._db.recipes.values()
            if recipe.connector_id == connector_id
        ]

    async def find_recipe(self, recipe_id: str) -> ConnectorRecipe | None:
        await asyncio.sleep(0)
        return self._db.recipes.get(recipe_id)


class FakeProviderRepository:
    def __init__(self, db: InMemoryDatabase):
        self._db = db

    async def find_by_app_block_id(self, app_block_id: str) -> AppBlockProvider | None:
        await asyncio.sleep(0)
        provider = self._db.providers.get(app_block_id)
        if provider is None:
            return None
        scopes = sorted(provider.scopes, key=lambda scope: scope.scope_name)
        return provider.model_copy(update={"scopes": scopes})

    async def create(self, app_block_id: str, dto: CreateProviderDTO) -> AppBlockProvider:
        self._db.add_provider(
            app_block_id,
            dto.scopes,
            auth_methods=list(dict.fromkeys(dto.auth_methods)),
            base_api_url=dto.base_api_url,
        )
        return await self.find_by_app_block_id(app_block_id)

    async def update(
        self, provider_id: str, app_block_id: str, dto: UpdateProviderDTO
    ) -> AppBlockProvider | None:
        provider = self._db.providers[app_block_id]
        changes = dto.model_dump(exclude_none=True, exclude={"scopes"})
        if dto.auth_methods is not None:
            changes["auth_methods"] = list(dict.fromkeys(dto.auth_methods))
        if dto.scopes is not None:
            changes["scopes"] = [_provider_scope(provider_id, scope) for scope in dto.scopes]
        self._db.providers[app_block_id] = provider.model_copy(
            update={**changes, "updated_at": _now()}
        )
        return await self.find_by_app_block_id(app_block_id)

    async def delete_by_app_block_id(self, app_block_id: str) -> bool:
        await asyncio.sleep(0)
        return self._db.providers.pop(app_block_id, None) is not None


class FakeRegistryRepository:
    def __init__(self, db: InMemoryDatabase):
        self._db = db

    async def find_by_slug(self, slug: str) -> RegistryEntry | None:
        await asyncio.sleep(0)
        for entry in self._db.registry.values():
            block = self._db.app_blocks.get(entry.app_block_id)
            if entry.slug == slug and block is not None and block.deleted_at is None:
                return entry
        return None

    async def find_by_app_block_id(self, app_block_id: str) -> RegistryEntry | None:
        await asyncio.sleep(0)
        return self._db.registry.get(app_block_id)

    async def browse(
        self, filters: RegistryBrowseFiltersDTO
    ) -> tuple[list[RegistryEntry], int]:
        await asyncio.sleep(0)
        matches = []
        for entry in self._db.registry.values():
            block = self._db.app_blocks.get(entry.app_block_id)
            if block is None or block.deleted_at is not None:
                continue
            if entry.visibility != RegistryVisibility.PUBLIC:
                continue
            if filters.category is not None and entry.category != filters.category:
                continue
            if filters.query:
                needle = filters.query.lower()
                haystack = f"{entry.display_name} {entry.description or ''}".lower()
                if needle not in haystack:
                    continue
            if filters.tags and not set(filters.tags) & set(entry.tags):
                continue
            if filters.installable_only and not entry.installable:
                continue
            matches.append(entry)

        matches.sort(
            key=lambda entry: (
                entry.featured_at is None,
                -(entry.featured_at.timestamp() if entry.featured_at else 0),
                entry.display_name,
                entry.id,
            )
        )
        page = matches[filters.offset : filters.offset + filters.limit]
        return page, len(matches)

    async def create(
        self, app_block_id: str, slug: str, dto: CreateRegistryEntryDTO
    ) -> RegistryEntry:
        await asyncio.sleep(0)
        if any(entry.slug == slug for entry in self._db.registry.values()):
            raise ConflictError(
                ErrorCode.SLUG_TAKEN.value, ERROR_MESSAGES[ErrorCode.SLUG_TAKEN]
            )
        if app_block_id in self._db.registry:
            raise ConflictError(
                ErrorCode.REGISTRY_ENTRY_EXISTS.value,
                ERROR_MESSAGES[ErrorCode.REGISTRY_ENTRY_EXISTS],
            )
        self._db.registry[app_block_id] = RegistryEntry(
            id=generate_id(),
            app_block_id=app_block_id,
            slug=slug,
            **dto.model_dump(exclude={"slug", "tags"}),
            tags=sorted(set(dto.tags)),
            created_at=_now(),
            updated_at=_now(),
        )
        return self._db.registry[app_block_id]

    async def update(
        self, app_block_id: str, dto: UpdateRegistryEntryDTO, slug: str | None = None
    ) -> RegistryEntry | None:
        await asyncio.sleep(0)
        entry = self._db.registry.get(app_block_id)
        if entry is None:
            return None
        changes = dto.model_dump(exclude_none=True, exclude={"slug"})
        if "tags" in changes:
            changes["tags"] = sorted(set(changes["tags"]))
        if slug is not None:
            changes["slug"] = slug
        self._db.registry[app_block_id] = entry.model_copy(
            update={**changes, "updated_at": _now()}
        )
        return self._db.registry[app_block_id]

    async def slug_exists(self, slug: str, exclude_app_block_id: str | None = None) -> bool:
        await asyncio.sleep(0)
        return any(
            entry.slug == slug and entry.app_block_id != exclude_app_block_id
            for entry in self._db.registry.values()
        )

    async def delete_by_app_block_id(self, app_block_id: str) -> bool:
        await asyncio.sleep(0)
        return self._db.registry.pop(app_block_id, None) is not None


class FakeServiceAccountRepository:
    def __init__(self, db: InMemoryDatabase):
        self._db = db

    async def find_by_id(self, service_account_id: str) -> ServiceAccount | None:
        await asyncio.sleep(0)
        return self._db.service_accounts.get(service_account_id)

    async def find_by_app_block_id(self, app_block_id: str) -> ServiceAccount | None:
        await asyncio.sleep(0)
        for account in self._db.service_accounts.values():
            if account.app_block_id == app_block_id:
                return account
        return None

    async def create(self, app_block_id: str, api_key_hash: str) -> ServiceAccount:
        existing = await self.find_by_app_block_id(app_block_id)
        if existing is not None:
            return existing
        account = ServiceAccount(
            id=generate_id(),
            app_block_id=app_block_id,
            api_key_hash=api_key_hash,
            created_at=_now(),
        )
        self._db.service_accounts[account.id] = account
        return account

    async def rotate(self, app_block_id: str, api_key_hash: str) -> ServiceAccount | None:
        account = await self.find_by_app_block_id(app_block_id)
        if account is None:
            return None
        rotated = account.model_copy(
            update={"api_key_hash": api_key_hash, "last_rotated_at": _now()}
        )
        self._db.service_accounts[account.id] = rotated
        return rotated


class FakeInstallationRepository:
    """Enforces the one-live-row-per-pair rule like the partial unique index."""

    def __init__(self, db: InMemoryDatabase, kind: InstallationKind):
        self._db = db
        self._kind = kind

    @property
    def kind(self) -> InstallationKind:
        return self._kind

    @property
    def _rows(self) -> dict[str, Installation]:
        return self._db.installations[self._kind]

    async def find_by_id(self, installation_id: str) -> Installation | None:
        await asyncio.sleep(0)
        return self._rows.get(installation_id)

    async def find_live_by_pair(
        self, consumer_id: str, provider_id: str
    ) -> Installation | None:
        await asyncio.sleep(0)
        for row in self._rows.values():
            if (
                row.consumer_app_block_id == consumer_id
                and row.provider_id == provider_id
                and row.status.value in LIVE_INSTALLATION_STATUSES
            ):
                return row
        return None

    async def find_by_consumer(self, consumer_id: str) -> list[Installation]:
        await asyncio.sleep(0)
        return [r for r in self._rows.values() if r.consumer_app_block_id == consumer_id]

    async def find_by_provider(self, provider_id: str) -> list[Installation]:
        await asyncio.sleep(0)
        return [r for r in self._rows.values() if r.provider_id == provider_id]

    async def find_live_by_provider(self, provider_id: str) -> list[Installation]:
        rows = await self.find_by_provider(provider_id)
        return [r for r in rows if r.status.value in LIVE_INSTALLATION_STATUSES]

    async def find_active_by_consumer(
        self, consumer_id: str, auth_type: AuthType
    ) -> list[Installation]:
        rows = await self.find_by_consumer(consumer_id)
        return [
            r
            for r in rows
            if r.status == InstallationStatus.ACTIVE and r.auth_type == auth_type
        ]

    async def create(self, dto: CreateInstallationDTO) -> Installation | None:
        await asyncio.sleep(0)
        if not self._parties_live(dto.consumer_app_block_id, dto.provider_id):
            return None
        if self._live_pair_exists(dto.consumer_app_block_id, dto.provider_id):
            raise ConflictError(
                ErrorCode.INSTALL_CONFLICT.value,
                ERROR_MESSAGES[ErrorCode.INSTALL_CONFLICT],
            )
        row = Installation(
            id=generate_id(),
            kind=self._kind,
            consumer_app_block_id=dto.consumer_app_block_id,
            provider_id=dto.provider_id,
            granted_scopes=dto.granted_scopes,
            auth_type=dto.auth_type,
            status=dto.status,
            approved_at=dto.approved_at,
            created_at=_now(),
            updated_at=_now(),
        )
        self._rows[row.id] = row
        return row

    async def update_grant(
        self, installation: Installation, dto: UpdateInstallationGrantDTO
    ) -> Installation | None:
        await asyncio.sleep(0)
        installation_id = installation.id
        row = self._rows.get(installation_id)
        if row is None or row.status.value not in LIVE_INSTALLATION_STATUSES:
            return None
        if not self._parties_live(row.consumer_app_block_id, row.provider_id):
            return None
        updated = row.model_copy(
            update={
                "granted_scopes": dto.granted_scopes,
                "auth_type": dto.auth_type,
                "status": dto.status,
                "approved_at": row.approved_at or dto.approved_at,
                "updated_at": _now(),
            }
        )
        self._rows[installation_id] = updated
        return updated

    async def transition(
        self,
        installation_id: str,
        target: InstallationStatus,
        from_statuses: list[str],
        approved_at: datetime | None = None,
    ) -> Installation | None:
        await asyncio.sleep(0)
        row = self._rows.get(installation_id)
        if row is None or row.status.value not in from_statuses:
            return None
        updated = row.model_copy(
            update={
                "status": target,
                "approved_at": approved_at or row.approved_at,
                "revoked_at": (
                    _now() if target == InstallationStatus.REVOKED else row.revoked_at
                ),
                "updated_at": _now(),
            }
        )
        self._rows[installation_id] = updated
        return updated

    async def touch(self, installation_id: str) -> bool:
        await asyncio.sleep(0)
        row = self._rows.get(installation_id)
        if row is None:
            return False
        self._rows[installation_id] = row.model_copy(update={"last_used_at": _now()})
        return True

    async def revoke_all_by_consumer(self, consumer_id: str) -> list[str]:
        return await self._bulk_transition(
            "consumer_app_block_id", consumer_id, InstallationStatus.REVOKED
        )

    async def revoke_all_by_provider(self, provider_id: str) -> list[str]:
        return await self._bulk_transition(
            "provider_id", provider_id, InstallationStatus.REVOKED
        )

    async def expire_all_by_provider(self, provider_id: str) -> list[str]:
        return await self._bulk_transition(
            "provider_id", provider_id, InstallationStatus.EXPIRED
        )

    async def _bulk_transition(
        self, field: str, value: str, target: InstallationStatus
    ) -> list[str]:
        await asyncio.sleep(0)
        changed = []
        for row in list(self._rows.values()):
            if getattr(row, field) != value:
                continue
            if row.status.value not in LIVE_INSTALLATION_STATUSES:
                continue
            updated = await self.transition(
                row.id, target, list(LIVE_INSTALLATION_STATUSES)
            )
            if updated is not None:
                changed.append(row.id)
        return changed

    def _parties_live(self, consumer_id: str, provider_id: str) -> bool:
        block_ids = [consumer_id]
        if self._kind == InstallationKind.APP_BLOCK:
            block_ids.append(provider_id)
        for block_id in block_ids:
            block = self._db.app_blocks.get(block_id)
            if block is None or block.deleted_at is not None:
                return False
        return True

    def _live_pair_exists(self, consumer_id: str, provider_id: str) -> bool:
        # No await between this check and the insert, like a unique index.
        return any(
            row.consumer_app_block_id == consumer_id
            and row.provider_id == provider_id
            and row.status.value in LIVE_INSTALLATION_STATUSES
            for row in self._rows.values()
        )
