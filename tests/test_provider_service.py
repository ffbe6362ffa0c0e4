import pytest

from block_connect.constants.enums import (
    AuthType,
    InstallationKind,
    InstallationStatus,
    RegistryVisibility,
)
from block_connect.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from block_connect.dtos.provider_dtos import (
    CreateProviderDTO,
    ProviderScopeInputDTO,
    UpdateProviderDTO,
)
from block_connect.models.installation import ProviderRef


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_provider(self, services, owner, consumer):
        provider = await services.providers.create(
            owner,
            consumer.id,
            CreateProviderDTO(
                base_api_url="/api/districts/notes",
                auth_methods=[AuthType.USER, AuthType.SERVICE, AuthType.USER],
                scopes=[ProviderScopeInputDTO(scope_name="notes.read")],
            ),
        )

        assert provider.auth_methods == [AuthType.USER, AuthType.SERVICE]
        assert [scope.scope_name for scope in provider.scopes] == ["notes.read"]

    @pytest.mark.asyncio
    async def test_one_provider_per_block(self, services, owner, consumer):
        dto = CreateProviderDTO(base_api_url="https://notes.example.com")
        await services.providers.create(owner, consumer.id, dto)

        with pytest.raises(ConflictError) as exc_info:
            await services.providers.create(owner, consumer.id, dto)

        assert exc_info.value.code == "PROVIDER_EXISTS"

    @pytest.mark.asyncio
    async def test_requires_an_auth_method(self, services, owner, consumer):
        with pytest.raises(ValidationError):
            await services.providers.create(
                owner,
                consumer.id,
                CreateProviderDTO(base_api_url="https://x.example.com", auth_methods=[]),
            )

    @pytest.mark.asyncio
    async def test_non_owner(self, services, stranger, consumer):
        with pytest.raises(AuthorizationError):
            await services.providers.create(
                stranger, consumer.id, CreateProviderDTO(base_api_url="https://x.example.com")
            )


class TestUpdate:
    @pytest.mark.asyncio
    async def test_cannot_drop_scope_in_use(
        self, services, owner, provider_owner, consumer, make_provider
    ):
        provider = make_provider()
        await services.manager.install(
            owner, consumer.id, ProviderRef.app_block(provider.id), ["events.write"]
        )

        with pytest.raises(ValidationError) as exc_info:
            await services.providers.update(
                provider_owner,
                provider.id,
                UpdateProviderDTO(scopes=[ProviderScopeInputDTO(scope_name="events.read")]),
            )

        assert exc_info.value.code == "SCOPE_IN_USE"
        assert exc_info.value.values == ["events.write"]

    @pytest.mark.asyncio
    async def test_can_drop_unused_scope(
        self, services, owner, provider_owner, consumer, make_provider
    ):
        provider = make_provider()
        installed = await services.manager.install(
            owner, consumer.id, ProviderRef.app_block(provider.id), ["events.write"]
        )
        await services.manager.revoke(owner, installed.installation.id)

        updated = await services.providers.update(
            provider_owner,
            provider.id,
            UpdateProviderDTO(
                scopes=[
                    ProviderScopeInputDTO(scope_name="events.read", is_public_read=True),
                    ProviderScopeInputDTO(scope_name="events.rsvp"),
                ]
            ),
        )

        assert {scope.scope_name for scope in updated.scopes} == {
            "events.read",
            "events.rsvp",
        }


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_expires_installations(
        self, services, db, owner, provider_owner, consumer, make_provider
    ):
        provider = make_provider()
        await services.manager.install(
            owner, consumer.id, ProviderRef.app_block(provider.id), ["events.read"]
        )

        await services.providers.delete(provider_owner, provider.id)

        rows = list(db.installations[InstallationKind.APP_BLOCK].values())
        assert [row.status for row in rows] == [InstallationStatus.EXPIRED]
        with pytest.raises(NotFoundError):
            await services.providers.get(provider_owner, provider.id)


class TestManifest:
    @pytest.mark.asyncio
    async def test_public_manifest(self, services, make_provider):
        provider = make_provider()

        manifest = await services.providers.manifest(provider.id)

        assert manifest.base_api_url == "https://provider.example.com/api"
        assert len(manifest.scopes) == 3

    @pytest.mark.asyncio
    async def test_private_manifest_hidden(
        self, services, stranger, provider_owner, make_provider
    ):
        provider = make_provider(visibility=RegistryVisibility.PRIVATE)

        with pytest.raises(AuthorizationError):
            await services.providers.manifest(provider.id, viewer=stranger)
        manifest = await services.providers.manifest(provider.id, viewer=provider_owner)

        assert manifest.id == provider.id
