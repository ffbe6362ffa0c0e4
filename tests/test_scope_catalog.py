"""
Tests for the scope catalog and its pure helpers.
"""

import pytest

from block_connect.constants.enums import (
    AuthType,
    InstallationKind,
    ProviderStatus,
    Role,
)
from block_connect.core.exceptions import NotFoundError, ValidationError
from block_connect.dtos.provider_dtos import ProviderScopeInputDTO
from block_connect.models.installation import ProviderRef
from block_connect.models.scope import ScopeDefinition
from block_connect.services.scope_catalog import filter_by_role
from tests.conftest import PROVIDER_OWNER_ID


class TestFilterByRole:
    def test_splits_on_required_role(self):
        scopes = [
            ScopeDefinition(name="events.read", required_role=Role.VISITOR),
            ScopeDefinition(name="events.publish", required_role=Role.CREATOR),
            ScopeDefinition(name="events.open"),
        ]

        grantable, above = filter_by_role(scopes, Role.MEMBER)

        assert [scope.name for scope in grantable] == ["events.read", "events.open"]
        assert [scope.name for scope in above] == ["events.publish"]

    def test_admin_satisfies_everything(self):
        scopes = [ScopeDefinition(name="x.manage", required_role=Role.ADMIN)]

        grantable, above = filter_by_role(scopes, Role.ADMIN)

        assert len(grantable) == 1
        assert above == []


class TestConnectorContext:
    @pytest.mark.asyncio
    async def test_connector_context(self, services, events_connector):
        context = await services.catalog.resolve_provider(ProviderRef.connector("events"))

        assert context.kind == InstallationKind.CONNECTOR
        assert context.auth_methods == [AuthType.USER, AuthType.SERVICE]
        assert context.status == ProviderStatus.ACTIVE
        assert context.requires_approval is False
        assert "events.manage" in context.scope_names

    @pytest.mark.asyncio
    async def test_unknown_connector(self, services):
        with pytest.raises(NotFoundError):
            await services.catalog.resolve_provider(ProviderRef.connector("ghost"))

    @pytest.mark.asyncio
    async def test_list_scopes_is_sorted(self, services, events_connector):
        scopes = await services.catalog.list_scopes(ProviderRef.connector("events"))

        names = [scope.name for scope in scopes]
        assert names == sorted(names)
        assert len(names) == 5

    @pytest.mark.asyncio
    async def test_validate_scopes(self, services, events_connector):
        result = await services.catalog.validate_scopes(
            ProviderRef.connector("events"), ["events.read", "events.fly"]
        )

        assert result.accepted == ["events.read"]
        assert result.rejected == ["events.fly"]
        assert result.is_valid is False

    @pytest.mark.asyncio
    async def test_require_known_raises_with_offending_values(
        self, services, events_connector
    ):
        with pytest.raises(ValidationError) as exc_info:
            await services.catalog.require_known(
                ProviderRef.connector("events"), ["events.fly", "events.swim"]
            )

        assert exc_info.value.values == ["events.fly", "events.swim"]
        assert exc_info.value.target == "scopes"


class TestAppBlockProviderContext:
    @pytest.mark.asyncio
    async def test_uses_registry_listing(self, services, make_provider):
        provider = make_provider(requires_approval=True)

        context = await services.catalog.resolve_provider(
            ProviderRef.app_block(provider.id)
        )

        assert context.kind == InstallationKind.APP_BLOCK
        assert context.display_name == "City Events"
        assert context.owner_user_id == PROVIDER_OWNER_ID
        assert context.requires_approval is True
        assert context.scope_names == {"events.read", "events.write", "events.manage"}

    @pytest.mark.asyncio
    async def test_unlisted_provider_falls_back_to_app_block(self, services, db):
        block = db.add_app_block(PROVIDER_OWNER_ID, name="Quiet Block")
        db.add_provider(block.id, [ProviderScopeInputDTO(scope_name="notes.read")])

        context = await services.catalog.resolve_provider(ProviderRef.app_block(block.id))

        assert context.display_name == "Quiet Block"
        assert context.installable is True
        assert context.requires_approval is False

    @pytest.mark.asyncio
    async def test_block_without_provider_is_not_found(self, services, consumer):
        with pytest.raises(NotFoundError):
            await services.catalog.resolve_provider(ProviderRef.app_block(consumer.id))

    @pytest.mark.asyncio
    async def test_deleted_block_is_not_found(self, services, db, make_provider):
        provider = make_provider()
        await services.app_block_repo.soft_delete(provider.id)

        with pytest.raises(NotFoundError):
            await services.catalog.resolve_provider(ProviderRef.app_block(provider.id))
