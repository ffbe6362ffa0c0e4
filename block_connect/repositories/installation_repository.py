"""
Persistence for installations.

Connector and app-block installations live in separate tables but share one
``Installation`` aggregate. ``InstallationRepository`` holds all the SQL; the
two subclasses only name their table and columns. Every status change is a
conditional UPDATE so concurrent callers cannot move a row out of a state it
is no longer in. Grant writes hold a share lock on the app blocks involved,
so no live row can be written for a block that is being deleted.
"""

import logging
from datetime import datetime

import asyncpg

from block_connect.constants.enums import (
    LIVE_INSTALLATION_STATUSES,
    AuthType,
    InstallationKind,
    InstallationStatus,
)
from block_connect.constants.error_codes import ERROR_MESSAGES, ErrorCode
from block_connect.core.exceptions import ConflictError
from block_connect.database.json_columns import dump_string_set, load_string_set
from block_connect.database.query_builder import bind_named
from block_connect.dtos.installation_dtos import (
    CreateInstallationDTO,
    UpdateInstallationGrantDTO,
)
from block_connect.models.installation import Installation
from block_connect.utils.crypto import generate_id

logger = logging.getLogger(__name__)


class InstallationRepository:

    _TABLE: str
    _CONSUMER_COLUMN: str
    _PROVIDER_COLUMN: str
    _KIND: InstallationKind

    def __init__(self, conn: asyncpg.Connection):
        self._conn = conn

    @property
    def kind(self) -> InstallationKind:
        return self._KIND

    @property
    def _select_fields(self) -> str:
        return f"""
            id, {self._CONSUMER_COLUMN} AS consumer_app_block_id,
            {self._PROVIDER_COLUMN} AS provider_id, granted_scopes, auth_type,
            status, approved_at, revoked_at, last_used_at, created_at, updated_at
        """

    async def find_by_id(self, installation_id: str) -> Installation | None:
        query = f"""
            SELECT {self._select_fields}
            FROM {self._TABLE}
            WHERE id = :installation_id
        """
        query, values = bind_named(query, {"installation_id": installation_id})
        row = await self._conn.fetchrow(query, *values)
        return self._map_to_model(row)

    async def find_live_by_pair(
        self, consumer_id: str, provider_id: str
    ) -> Installation | None:
        query = f"""
            SELECT {self._select_fields}
            FROM {self._TABLE}
            WHERE {self._CONSUMER_COLUMN} = :consumer_id
              AND {self._PROVIDER_COLUMN} = :provider_id
              AND status = ANY(:live_statuses)
        """
        params = {
            "consumer_id": consumer_id,
            "provider_id": provider_id,
            "live_statuses": list(LIVE_INSTALLATION_STATUSES),
        }
        query, values = bind_named(query, params)
        row = await self._conn.fetchrow(query, *values)
        return self._map_to_model(row)

    async def find_by_consumer(self, consumer_id: str) -> list[Installation]:
        return await self._find_where(self._CONSUMER_COLUMN, consumer_id)

    async def find_by_provider(self, provider_id: str) -> list[Installation]:
        return await self._find_where(self._PROVIDER_COLUMN, provider_id)

    async def find_live_by_provider(self, provider_id: str) -> list[Installation]:
        return await self._find_where(
            self._PROVIDER_COLUMN, provider_id, list(LIVE_INSTALLATION_STATUSES)
        )

    async def find_active_by_consumer(
        self, consumer_id: str, auth_type: AuthType
    ) -> list[Installation]:
        query = f"""
            SELECT {self._select_fields}
            FROM {self._TABLE}
            WHERE {self._CONSUMER_COLUMN} = :consumer_id
              AND status = :status
              AND auth_type = :auth_type
            ORDER BY created_at, id
        """
        params = {
            "consumer_id": consumer_id,
            "status": InstallationStatus.ACTIVE.value,
            "auth_type": auth_type.value,
        }
        query, values = bind_named(query, params)
        rows = await self._conn.fetch(query, *values)
        return [self._map_to_model(row) for row in rows]

    async def create(self, dto: CreateInstallationDTO) -> Installation | None:
        """Insert a new live row.

        Returns None when the consumer or provider block is deleted. Raises
        ``ConflictError`` when a live row for the same pair already exists.
        """
        query = f"""
            INSERT INTO {self._TABLE} (
                id, {self._CONSUMER_COLUMN}, {self._PROVIDER_COLUMN},
                granted_scopes, auth_type, status, approved_at
            ) VALUES (
                :id, :consumer_id, :provider_id,
                :granted_scopes, :auth_type, :status, :approved_at
            )
            RETURNING {self._select_fields}
        """
        params = {
            "id": generate_id(),
            "consumer_id": dto.consumer_app_block_id,
            "provider_id": dto.provider_id,
            "granted_scopes": dump_string_set(dto.granted_scopes),
            "auth_type": dto.auth_type.value,
            "status": dto.status.value,
            "approved_at": dto.approved_at,
        }
        query, values = bind_named(query, params)
        try:
            async with self._conn.transaction():
                if not await self._lock_live_parties(
                    dto.consumer_app_block_id, dto.provider_id
                ):
                    return None
                row = await self._conn.fetchrow(query, *values)
        except asyncpg.UniqueViolationError as e:
            logger.debug(
                f"Live {self._KIND.value} installation already exists for "
                f"{dto.consumer_app_block_id} -> {dto.provider_id}"
            )
            raise ConflictError(
                ErrorCode.INSTALL_CONFLICT.value,
                ERROR_MESSAGES[ErrorCode.INSTALL_CONFLICT],
            ) from e
        return self._map_to_model(row)

    async def update_grant(
        self, installation: Installation, dto: UpdateInstallationGrantDTO
    ) -> Installation | None:
        """Rewrite the grant of a live row. Returns None if the row went
        terminal in the meantime or one of its blocks was deleted."""
        query = f"""
            UPDATE {self._TABLE}
            SET granted_scopes = :granted_scopes,
                auth_type = :auth_type,
                status = :status,
                approved_at = COALESCE(approved_at, :approved_at),
                updated_at = NOW()
            WHERE id = :installation_id AND status = ANY(:live_statuses)
            RETURNING {self._select_fields}
        """
        params = {
            "installation_id": installation.id,
            "granted_scopes": dump_string_set(dto.granted_scopes),
            "auth_type": dto.auth_type.value,
            "status": dto.status.value,
            "approved_at": dto.approved_at,
            "live_statuses": list(LIVE_INSTALLATION_STATUSES),
        }
        query, values = bind_named(query, params)
        async with self._conn.transaction():
            if not await self._lock_live_parties(
                installation.consumer_app_block_id, installation.provider_id
            ):
                return None
            row = await self._conn.fetchrow(query, *values)
        return self._map_to_model(row)

    async def transition(
        self,
        installation_id: str,
        target: InstallationStatus,
        from_statuses: list[str],
        approved_at: datetime | None = None,
    ) -> Installation | None:
        """Move the row to ``target`` if it is currently in one of
        ``from_statuses``; None means it was not."""
        query = f"""
            UPDATE {self._TABLE}
            SET status = :target,
                approved_at = COALESCE(:approved_at, approved_at),
                revoked_at = CASE WHEN :target = 'revoked' THEN NOW() ELSE revoked_at END,
                updated_at = NOW()
            WHERE id = :installation_id AND status = ANY(:from_statuses)
            RETURNING {self._select_fields}
        """
        params = {
            "installation_id": installation_id,
            "target": target.value,
            "approved_at": approved_at,
            "from_statuses": from_statuses,
        }
        query, values = bind_named(query, params)
        row = await self._conn.fetchrow(query, *values)
        return self._map_to_model(row)

    async def touch(self, installation_id: str) -> bool:
        query = f"UPDATE {self._TABLE} SET last_used_at = NOW() WHERE id = $1"
        result = await self._conn.execute(query, installation_id)
        return result == "UPDATE 1"

    async def revoke_all_by_consumer(self, consumer_id: str) -> list[str]:
        return await self._bulk_transition(
            self._CONSUMER_COLUMN, consumer_id, InstallationStatus.REVOKED
        )

    async def revoke_all_by_provider(self, provider_id: str) -> list[str]:
        return await self._bulk_transition(
            self._PROVIDER_COLUMN, provider_id, InstallationStatus.REVOKED
        )

    async def expire_all_by_provider(self, provider_id: str) -> list[str]:
        return await self._bulk_transition(
            self._PROVIDER_COLUMN, provider_id, InstallationStatus.EXPIRED
        )

    async def _bulk_transition(
        self, column: str, value: str, target: InstallationStatus
    ) -> list[str]:
        query = f"""
            UPDATE {self._TABLE}
            SET status = :target,
                revoked_at = CASE WHEN :target = 'revoked' THEN NOW() ELSE revoked_at END,
                updated_at = NOW()
            WHERE {column} = :value AND status = ANY(:live_statuses)
            RETURNING id
        """
        params = {
            "target": target.value,
            "value": value,
            "live_statuses": list(LIVE_INSTALLATION_STATUSES),
        }
        query, values = bind_named(query, params)
        rows = await self._conn.fetch(query, *values)
        return [row["id"] for row in rows]

    async def _lock_live_parties(self, consumer_id: str, provider_id: str) -> bool:
        """Share-lock the app blocks behind an installation until the enclosing
        transaction ends. False if any of them is missing or deleted.

        A concurrent soft delete waits on the lock, so the delete cascade that
        follows it sees every row written here.
        """
        block_ids = [consumer_id]
        if self._KIND == InstallationKind.APP_BLOCK:
            block_ids.append(provider_id)
        query = """
            SELECT id FROM app_block
            WHERE id = ANY(:block_ids) AND deleted_at IS NULL
            FOR SHARE
        """
        query, values = bind_named(query, {"block_ids": block_ids})
        rows = await self._conn.fetch(query, *values)
        return len(rows) == len(set(block_ids))

    async def _find_where(
        self, column: str, value: str, statuses: list[str] | None = None
    ) -> list[Installation]:
        query = f"""
            SELECT {self._select_fields}
            FROM {self._TABLE}
            WHERE {column} = :value
        """
        params: dict = {"value": value}
        if statuses is not None:
            query += " AND status = ANY(:statuses)"
            params["statuses"] = statuses
        query += " ORDER BY created_at DESC, id"
        query, values = bind_named(query, params)
        rows = await self._conn.fetch(query, *values)
        return [self._map_to_model(row) for row in rows]

    def _map_to_model(self, row: asyncpg.Record | None) -> Installation | None:
        if row is None:
            return None
        return Installation(
            id=row["id"],
            kind=self._KIND,
            consumer_app_block_id=row["consumer_app_block_id"],
            provider_id=row["provider_id"],
            granted_scopes=load_string_set(row["granted_scopes"]),
            auth_type=row["auth_type"],
            status=row["status"],
            approved_at=row["approved_at"],
            revoked_at=row["revoked_at"],
            last_used_at=row["last_used_at"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


class ConnectorInstallationRepository(InstallationRepository):
    _TABLE = "connector_installation"
    _CONSUMER_COLUMN = "app_block_id"
    _PROVIDER_COLUMN = "connector_id"
    _KIND = InstallationKind.CONNECTOR


class AppBlockInstallationRepository(InstallationRepository):
    _TABLE = "app_block_installation"
    _CONSUMER_COLUMN = "consumer_app_block_id"
    _PROVIDER_COLUMN = "provider_app_block_id"
    _KIND = InstallationKind.APP_BLOCK
