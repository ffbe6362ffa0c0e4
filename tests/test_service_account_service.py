import pytest

from block_connect.core.exceptions import AuthorizationError, ConflictError, NotFoundError
from block_connect.utils.crypto import API_KEY_PREFIX, hash_api_key


class TestServiceAccounts:
    @pytest.mark.asyncio
    async def test_create_returns_secret_once(self, services, db, owner, consumer):
        credentials = await services.service_accounts.create(owner, consumer.id)

        stored = db.service_accounts[credentials.client_id]
        assert credentials.client_secret.startswith(API_KEY_PREFIX)
        assert stored.api_key_hash == hash_api_key(credentials.client_secret)
        assert stored.api_key_hash != credentials.client_secret

    @pytest.mark.asyncio
    async def test_second_create_conflicts(self, services, owner, consumer):
        await services.service_accounts.create(owner, consumer.id)

        with pytest.raises(ConflictError) as exc_info:
            await services.service_accounts.create(owner, consumer.id)

        assert exc_info.value.code == "SERVICE_ACCOUNT_EXISTS"

    @pytest.mark.asyncio
    async def test_rotate_keeps_client_id(self, services, owner, consumer):
        created = await services.service_accounts.create(owner, consumer.id)

        rotated = await services.service_accounts.rotate(owner, consumer.id)

        assert rotated.client_id == created.client_id
        assert rotated.client_secret != created.client_secret

    @pytest.mark.asyncio
    async def test_rotate_without_account(self, services, owner, consumer):
        with pytest.raises(NotFoundError):
            await services.service_accounts.rotate(owner, consumer.id)

    @pytest.mark.asyncio
    async def test_non_owner(self, services, stranger, consumer):
        with pytest.raises(AuthorizationError):
            await services.service_accounts.create(stranger, consumer.id)
