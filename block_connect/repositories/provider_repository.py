import logging
from typing import Any

import asyncpg

from block_connect.constants.enums import AuthType
from block_connect.database.json_columns import dump_string_list, load_string_list
from block_connect.database.query_builder import bind_named, build_set_clause
from block_connect.dtos.provider_dtos import (
    CreateProviderDTO,
    ProviderScopeInputDTO,
    UpdateProviderDTO,
)
from block_connect.models.provider import AppBlockProvider, ProviderScope
from block_connect.utils.crypto import generate_id

logger = logging.getLogger(__name__)


class ProviderRepository:

    _SELECT_FIELDS = """
        id, app_block_id, base_api_url, api_version, auth_methods, status,
        rate_limit_per_minute, created_at, updated_at
    """
    _SCOPE_FIELDS = """
        id, provider_id, scope_name, description, is_public_read, required_role, created_at
    """

    def __init__(self, conn: asyncpg.Connection):
        self._conn = conn

    async def find_by_app_block_id(self, app_block_id: str) -> AppBlockProvider | None:
        query = f"""
            SELECT {self._SELECT_FIELDS}
            FROM app_block_provider
            WHERE app_block_id = :app_block_id
        """
        query, values = bind_named(query, {"app_block_id": app_block_id})
        row = await self._conn.fetchrow(query, *values)
        if row is None:
            return None
        scopes = await self._find_scopes(row["id"])
        return self._map_to_model(row, scopes)

    async def create(
        self, app_block_id: str, dto: CreateProviderDTO
    ) -> AppBlockProvider:
        query = """
            INSERT INTO app_block_provider (
                id, app_block_id, base_api_url, api_version, auth_methods,
                rate_limit_per_minute
            ) VALUES (
                :id, :app_block_id, :base_api_url, :api_version, :auth_methods,
                :rate_limit_per_minute
            )
        """
        provider_id = generate_id()
        params = {
            "id": provider_id,
            "app_block_id": app_block_id,
            "base_api_url": dto.base_api_url,
            "api_version": dto.api_version,
            "auth_methods": self._dump_auth_methods(dto.auth_methods),
            "rate_limit_per_minute": dto.rate_limit_per_minute,
        }
        query, values = bind_named(query, params)
        async with self._conn.transaction():
            await self._conn.execute(query, *values)
            for scope in dto.scopes:
                await self._insert_scope(provider_id, scope)
        return await self.find_by_app_block_id(app_block_id)

    async def update(
        self, provider_id: str, app_block_id: str, dto: UpdateProviderDTO
    ) -> AppBlockProvider | None:
        update_fields = self._build_update_fields(dto)
        async with self._conn.transaction():
            if update_fields:
                query = f"""
                    UPDATE app_block_provider
                    SET {build_set_clause(update_fields)}, updated_at = NOW()
                    WHERE id = :provider_id
                """
                query, values = bind_named(
                    query, {"provider_id": provider_id, **update_fields}
                )
                await self._conn.execute(query, *values)
            if dto.scopes is not None:
                await self._replace_scopes(provider_id, dto.scopes)
        return await self.find_by_app_block_id(app_block_id)

    async def delete_by_app_block_id(self, app_block_id: str) -> bool:
        query = "DELETE FROM app_block_provider WHERE app_block_id = $1"
        result = await self._conn.execute(query, app_block_id)
        return result == "DELETE 1"

    async def _find_scopes(self, provider_id: str) -> list[ProviderScope]:
        query = f"""
            SELECT {self._SCOPE_FIELDS}
            FROM provider_scope
            WHERE provider_id = :provider_id
            ORDER BY scope_name
        """
        query, values = bind_named(query, {"provider_id": provider_id})
        rows = await self._conn.fetch(query, *values)
        return [ProviderScope.model_validate(dict(row)) for row in rows]

    async def _insert_scope(self, provider_id: str, scope: ProviderScopeInputDTO) -> None:
        query = """
            INSERT INTO provider_scope (
                id, provider_id, scope_name, description, is_public_read, required_role
            ) VALUES (
                :id, :provider_id, :scope_name, :description, :is_public_read, :required_role
            )
            ON CONFLICT (provider_id, scope_name) DO UPDATE SET
                description = EXCLUDED.description,
                is_public_read = EXCLUDED.is_public_read,
                required_role = EXCLUDED.required_role
        """
        params = {
            "id": generate_id(),
            "provider_id": provider_id,
            "scope_name": scope.scope_name,
            "description": scope.description,
            "is_public_read": scope.is_public_read,
            "required_role": scope.required_role.value if scope.required_role else None,
        }
        query, values = bind_named(query, params)
        await self._conn.execute(query, *values)

    async def _replace_scopes(
        self, provider_id: str, scopes: list[ProviderScopeInputDTO]
    ) -> None:
        keep = [scope.scope_name for scope in scopes]
        await self._conn.execute(
            """
            DELETE FROM provider_scope
            WHERE provider_id = $1 AND NOT (scope_name = ANY($2::text[]))
            """,
            provider_id,
            keep,
        )
        for scope in scopes:
            await self._insert_scope(provider_id, scope)
        logger.debug(f"Provider {provider_id} scopes replaced with {keep}")

    def _build_update_fields(self, dto: UpdateProviderDTO) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        if dto.base_api_url is not None:
            fields["base_api_url"] = dto.base_api_url
        if dto.api_version is not None:
            fields["api_version"] = dto.api_version
        if dto.auth_methods is not None:
            fields["auth_methods"] = self._dump_auth_methods(dto.auth_methods)
        if dto.status is not None:
            fields["status"] = dto.status.value
        if dto.rate_limit_per_minute is not None:
            fields["rate_limit_per_minute"] = dto.rate_limit_per_minute
        return fields

    def _dump_auth_methods(self, auth_methods: list[AuthType]) -> str:
        return dump_string_list(dict.fromkeys(method.value for method in auth_methods))

    def _map_to_model(
        self, row: asyncpg.Record, scopes: list[ProviderScope]
    ) -> AppBlockProvider:
        known = {method.value for method in AuthType}
        auth_methods = [
            AuthType(method)
            for method in load_string_list(row["auth_methods"])
            if method in known
        ]
        return AppBlockProvider(
            id=row["id"],
            app_block_id=row["app_block_id"],
            base_api_url=row["base_api_url"],
            api_version=row["api_version"],
            auth_methods=auth_methods,
            status=row["status"],
            rate_limit_per_minute=row["rate_limit_per_minute"],
            scopes=scopes,
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
