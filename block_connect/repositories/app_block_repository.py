from typing import Any

import asyncpg

from block_connect.database.query_builder import bind_named, build_set_clause
from block_connect.dtos.app_block_dtos import CreateAppBlockDTO, UpdateAppBlockDTO
from block_connect.models.app_block import AppBlock
from block_connect.utils.crypto import generate_id


class AppBlockRepository:

    _SELECT_FIELDS = """
        b.id, b.name, b.owner_user_id, b.description, b.icon_url,
        EXISTS (
            SELECT 1 FROM service_account sa WHERE sa.app_block_id = b.id
        ) AS has_service_account,
        b.created_at, b.updated_at, b.deleted_at
    """

    def __init__(self, conn: asyncpg.Connection):
        self._conn = conn

    async def find_by_id(
        self, app_block_id: str, include_deleted: bool = False
    ) -> AppBlock | None:
        query = f"""
            SELECT {self._SELECT_FIELDS}
            FROM app_block b
            WHERE b.id = :app_block_id
        """
        if not include_deleted:
            query += " AND b.deleted_at IS NULL"
        query, values = bind_named(query, {"app_block_id": app_block_id})
        row = await self._conn.fetchrow(query, *values)
        return self._map_to_model(row)

    async def find_by_owner(self, owner_user_id: str) -> list[AppBlock]:
        query = f"""
            SELECT {self._SELECT_FIELDS}
            FROM app_block b
            WHERE b.owner_user_id = :owner_user_id AND b.deleted_at IS NULL
            ORDER BY b.created_at DESC
        """
        query, values = bind_named(query, {"owner_user_id": owner_user_id})
        rows = await self._conn.fetch(query, *values)
        return [self._map_to_model(row) for row in rows]

    async def create(self, dto: CreateAppBlockDTO) -> AppBlock:
        query = """
            INSERT INTO app_block (id, name, owner_user_id, description, icon_url)
            VALUES (:id, :name, :owner_user_id, :description, :icon_url)
            RETURNING id
        """
        params = {
            "id": generate_id(),
            "name": dto.name,
            "owner_user_id": dto.owner_user_id,
            "description": dto.description,
            "icon_url": dto.icon_url,
        }
        query, values = bind_named(query, params)
        app_block_id = await self._conn.fetchval(query, *values)
        return await self.find_by_id(app_block_id)

    async def update(
        self, app_block_id: str, dto: UpdateAppBlockDTO
    ) -> AppBlock | None:
        update_fields = self._build_update_fields(dto)
        if not update_fields:
            return await self.find_by_id(app_block_id)

        query = f"""
            UPDATE app_block
            SET {build_set_clause(update_fields)}, updated_at = NOW()
            WHERE id = :app_block_id AND deleted_at IS NULL
        """
        query, values = bind_named(
            query, {"app_block_id": app_block_id, **update_fields}
        )
        await self._conn.execute(query, *values)
        return await self.find_by_id(app_block_id)

    async def soft_delete(self, app_block_id: str) -> bool:
        query = """
            UPDATE app_block
            SET deleted_at = NOW(), updated_at = NOW()
            WHERE id = $1 AND deleted_at IS NULL
        """
        result = await self._conn.execute(query, app_block_id)
        return result == "UPDATE 1"

    def _build_update_fields(self, dto: UpdateAppBlockDTO) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        if dto.name is not None:
            fields["name"] = dto.name
        if dto.description is not None:
            fields["description"] = dto.description
        if dto.icon_url is not None:
            fields["icon_url"] = dto.icon_url
        return fields

    def _map_to_model(self, row: asyncpg.Record | None) -> AppBlock | None:
        if row is None:
            return None
        return AppBlock(
            id=row["id"],
            name=row["name"],
            owner_user_id=row["owner_user_id"],
            description=row["description"],
            icon_url=row["icon_url"],
            has_service_account=row["has_service_account"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            deleted_at=row["deleted_at"],
        )
