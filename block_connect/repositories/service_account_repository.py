import asyncpg

from block_connect.models.service_account import ServiceAccount
from block_connect.utils.crypto import generate_id


class ServiceAccountRepository:

    _SELECT_FIELDS = "id, app_block_id, api_key_hash, last_rotated_at, created_at"

    def __init__(self, conn: asyncpg.Connection):
        self._conn = conn

    async def find_by_id(self, service_account_id: str) -> ServiceAccount | None:
        query = f"SELECT {self._SELECT_FIELDS} FROM service_account WHERE id = $1"
        row = await self._conn.fetchrow(query, service_account_id)
        return ServiceAccount.model_validate(dict(row)) if row else None

    async def find_by_app_block_id(self, app_block_id: str) -> ServiceAccount | None:
        query = (
            f"SELECT {self._SELECT_FIELDS} FROM service_account WHERE app_block_id = $1"
        )
        row = await self._conn.fetchrow(query, app_block_id)
        return ServiceAccount.model_validate(dict(row)) if row else None

    async def create(self, app_block_id: str, api_key_hash: str) -> ServiceAccount:
        query = f"""
            INSERT INTO service_account (id, app_block_id, api_key_hash)
            VALUES ($1, $2, $3)
            ON CONFLICT (app_block_id) DO NOTHING
            RETURNING {self._SELECT_FIELDS}
        """
        row = await self._conn.fetchrow(query, generate_id(), app_block_id, api_key_hash)
        if row is None:
            return await self.find_by_app_block_id(app_block_id)
        return ServiceAccount.model_validate(dict(row))

    async def rotate(self, app_block_id: str, api_key_hash: str) -> ServiceAccount | None:
        query = f"""
            UPDATE service_account
            SET api_key_hash = $2, last_rotated_at = NOW()
            WHERE app_block_id = $1
            RETURNING {self._SELECT_FIELDS}
        """
        row = await self._conn.fetchrow(query, app_block_id, api_key_hash)
        return ServiceAccount.model_validate(dict(row)) if row else None
