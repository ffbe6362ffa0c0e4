import logging

from block_connect.constants.error_codes import ERROR_MESSAGES, ErrorCode
from block_connect.core.exceptions import ConflictError, NotFoundError
from block_connect.dtos.service_account_dtos import ServiceAccountCredentialsDTO
from block_connect.models.identity import Identity
from block_connect.models.service_account import ServiceAccount
from block_connect.repositories.app_block_repository import AppBlockRepository
from block_connect.repositories.service_account_repository import (
    ServiceAccountRepository,
)
from block_connect.services.ownership import require_owned_app_block
from block_connect.utils.crypto import generate_api_key, hash_api_key

logger = logging.getLogger(__name__)


class ServiceAccountService:
    def __init__(
        self,
        service_account_repository: ServiceAccountRepository,
        app_block_repository: AppBlockRepository,
    ):
        self._service_account_repo = service_account_repository
        self._app_block_repo = app_block_repository

    async def create(
        self, identity: Identity, app_block_id: str
    ) -> ServiceAccountCredentialsDTO:
        await require_owned_app_block(self._app_block_repo, identity, app_block_id)

        if await self._service_account_repo.find_by_app_block_id(app_block_id):
            raise self._exists_error()

        api_key = generate_api_key()
        api_key_hash = hash_api_key(api_key)
        account = await self._service_account_repo.create(app_block_id, api_key_hash)
        if account.api_key_hash != api_key_hash:
            # another request created the account first
            raise self._exists_error()

        logger.info(f"Service account {account.id} created for app block {app_block_id}")
        return self._credentials(account, api_key)

    async def rotate(
        self, identity: Identity, app_block_id: str
    ) -> ServiceAccountCredentialsDTO:
        await require_owned_app_block(self._app_block_repo, identity, app_block_id)

        api_key = generate_api_key()
        account = await self._service_account_repo.rotate(
            app_block_id, hash_api_key(api_key)
        )
        if account is None:
            raise NotFoundError("Service account", app_block_id)

        logger.info(f"Service account {account.id} key rotated")
        return self._credentials(account, api_key)

    def _credentials(
        self, account: ServiceAccount, api_key: str
    ) -> ServiceAccountCredentialsDTO:
        return ServiceAccountCredentialsDTO(
            client_id=account.id,
            app_block_id=account.app_block_id,
            client_secret=api_key,
            issued_at=account.last_rotated_at or account.created_at,
        )

    def _exists_error(self) -> ConflictError:
        return ConflictError(
            ErrorCode.SERVICE_ACCOUNT_EXISTS.value,
            ERROR_MESSAGES[ErrorCode.SERVICE_ACCOUNT_EXISTS],
        )
