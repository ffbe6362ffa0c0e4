"""
Tests for app block token issuance and introspection.
"""

import pytest

from block_connect.constants.enums import (
    AuthType,
    InstallationKind,
    ProviderStatus,
    Role,
    SubjectType,
)
from block_connect.core.exceptions import AuthenticationError, NotFoundError
from block_connect.dtos.provider_dtos import UpdateProviderDTO
from block_connect.models.identity import Identity
from block_connect.models.installation import ProviderRef
from tests.conftest import OWNER_ID

EVENTS = ProviderRef.connector("events")


class TestUserToken:
    @pytest.mark.asyncio
    async def test_token_carries_active_grants(
        self, services, owner, consumer, events_connector
    ):
        installed = await services.manager.install(
            owner, consumer.id, EVENTS, ["events.read", "events.publish"]
        )

        issued = await services.issuer.issue_user_token(owner, consumer.id)
        payload = services.issuer.introspect(issued.access_token)

        assert issued.scopes == ["events.publish", "events.read"]
        assert payload.sub == OWNER_ID
        assert payload.subject_type == SubjectType.USER
        assert payload.role == Role.CREATOR
        assert payload.grants[0].installation_id == installed.installation.id

    @pytest.mark.asyncio
    async def test_role_narrows_user_token(self, services, owner, consumer, events_connector):
        await services.manager.install(
            owner, consumer.id, EVENTS, ["events.read", "events.publish"]
        )
        visitor = Identity(user_id="user-visitor", role=Role.VISITOR)

        issued = await services.issuer.issue_user_token(visitor, consumer.id)

        assert issued.scopes == ["events.read"]

    @pytest.mark.asyncio
    async def test_requested_scopes_only_narrow(
        self, services, owner, consumer, events_connector
    ):
        await services.manager.install(owner, consumer.id, EVENTS, ["events.read"])

        issued = await services.issuer.issue_user_token(
            owner, consumer.id, requested_scopes=["events.read", "events.manage"]
        )

        assert issued.scopes == ["events.read"]

    @pytest.mark.asyncio
    async def test_pending_installation_yields_empty_token(
        self, services, owner, consumer, make_provider
    ):
        provider = make_provider(requires_approval=True)
        await services.manager.install(
            owner, consumer.id, ProviderRef.app_block(provider.id), ["events.write"]
        )

        issued = await services.issuer.issue_user_token(owner, consumer.id)

        assert issued.scopes == []
        assert issued.access_token

    @pytest.mark.asyncio
    async def test_revoked_installation_is_dropped(
        self, services, owner, consumer, events_connector
    ):
        installed = await services.manager.install(owner, consumer.id, EVENTS, ["events.read"])
        await services.manager.revoke(owner, installed.installation.id)

        issued = await services.issuer.issue_user_token(owner, consumer.id)

        assert issued.scopes == []

    @pytest.mark.asyncio
    async def test_disabled_provider_is_dropped(
        self, services, owner, provider_owner, consumer, make_provider
    ):
        provider = make_provider()
        await services.manager.install(
            owner, consumer.id, ProviderRef.app_block(provider.id), ["events.read"]
        )
        await services.providers.update(
            provider_owner, provider.id, UpdateProviderDTO(status=ProviderStatus.DISABLED)
        )

        issued = await services.issuer.issue_user_token(owner, consumer.id)

        assert issued.scopes == []

    @pytest.mark.asyncio
    async def test_provider_filter(
        self, services, owner, consumer, events_connector, make_provider
    ):
        provider = make_provider()
        ref = ProviderRef.app_block(provider.id)
        await services.manager.install(owner, consumer.id, EVENTS, ["events.publish"])
        await services.manager.install(owner, consumer.id, ref, ["events.write"])

        issued = await services.issuer.issue_user_token(owner, consumer.id, provider=ref)
        payload = services.issuer.introspect(issued.access_token)

        assert issued.scopes == ["events.write"]
        assert [grant.provider_kind for grant in payload.grants] == [
            InstallationKind.APP_BLOCK
        ]

    @pytest.mark.asyncio
    async def test_unknown_app_block(self, services, owner):
        with pytest.raises(NotFoundError):
            await services.issuer.issue_user_token(owner, "missing")


class TestServiceToken:
    @pytest.mark.asyncio
    async def test_client_credentials(self, services, owner, consumer, events_connector):
        credentials = await services.service_accounts.create(owner, consumer.id)
        await services.manager.install(
            owner, consumer.id, EVENTS, ["events.read"], auth_type=AuthType.SERVICE
        )

        issued = await services.issuer.issue_service_token(
            credentials.client_id, credentials.client_secret
        )
        payload = services.issuer.introspect(issued.access_token)

        assert issued.scopes == ["events.read"]
        assert payload.subject_type == SubjectType.SERVICE
        assert payload.sub == credentials.client_id
        assert payload.role is None

    @pytest.mark.asyncio
    async def test_user_grants_do_not_reach_service_tokens(
        self, services, owner, consumer, events_connector
    ):
        credentials = await services.service_accounts.create(owner, consumer.id)
        await services.manager.install(owner, consumer.id, EVENTS, ["events.read"])

        issued = await services.issuer.issue_service_token(
            credentials.client_id, credentials.client_secret
        )

        assert issued.scopes == []

    @pytest.mark.asyncio
    async def test_wrong_secret(self, services, owner, consumer):
        credentials = await services.service_accounts.create(owner, consumer.id)

        with pytest.raises(AuthenticationError) as exc_info:
            await services.issuer.issue_service_token(credentials.client_id, "bcsk_wrong")

        assert exc_info.value.code == "INVALID_CLIENT_CREDENTIALS"

    @pytest.mark.asyncio
    async def test_rotated_secret_replaces_old(self, services, owner, consumer):
        old = await services.service_accounts.create(owner, consumer.id)
        new = await services.service_accounts.rotate(owner, consumer.id)

        with pytest.raises(AuthenticationError):
            await services.issuer.issue_service_token(old.client_id, old.client_secret)
        issued = await services.issuer.issue_service_token(new.client_id, new.client_secret)

        assert issued.access_token


class TestIntrospect:
    def test_garbage_token(self, services):
        with pytest.raises(AuthenticationError) as exc_info:
            services.issuer.introspect("not-a-token")

        assert exc_info.value.code == "INVALID_ACCESS_TOKEN"

    def test_session_token_is_not_an_app_token(self, services):
        session = services.token_service.create_session_token(OWNER_ID, Role.MEMBER)

        with pytest.raises(AuthenticationError):
            services.issuer.introspect(session)
