from typing import Any

import asyncpg

from block_connect.constants.enums import RegistryVisibility
from block_connect.constants.error_codes import ERROR_MESSAGES, ErrorCode
from block_connect.core.exceptions import ConflictError
from block_connect.database.json_columns import dump_string_set, load_string_list
from block_connect.database.query_builder import (
    bind_named,
    build_set_clause,
    escape_like,
)
from block_connect.dtos.registry_dtos import (
    CreateRegistryEntryDTO,
    RegistryBrowseFiltersDTO,
    UpdateRegistryEntryDTO,
)
from block_connect.models.registry_entry import RegistryEntry
from block_connect.utils.crypto import generate_id


class RegistryRepository:

    _SELECT_FIELDS = """
        r.id, r.app_block_id, r.slug, r.display_name, r.description, r.icon_url,
        r.category, r.visibility, r.installable, r.requires_approval,
        r.contact_email, r.contact_url, r.tags, r.featured_at,
        r.created_at, r.updated_at
    """

    def __init__(self, conn: asyncpg.Connection):
        self._conn = conn

    async def find_by_slug(self, slug: str) -> RegistryEntry | None:
        query = f"""
            SELECT {self._SELECT_FIELDS}
            FROM app_block_registry r
            JOIN app_block b ON b.id = r.app_block_id AND b.deleted_at IS NULL
            WHERE r.slug = :slug
        """
        query, values = bind_named(query, {"slug": slug})
        row = await self._conn.fetchrow(query, *values)
        return self._map_to_model(row)

    async def find_by_app_block_id(self, app_block_id: str) -> RegistryEntry | None:
        query = f"""
            SELECT {self._SELECT_FIELDS}
            FROM app_block_registry r
            WHERE r.app_block_id = :app_block_id
        """
        query, values = bind_named(query, {"app_block_id": app_block_id})
        row = await self._conn.fetchrow(query, *values)
        return self._map_to_model(row)

    async def browse(
        self, filters: RegistryBrowseFiltersDTO
    ) -> tuple[list[RegistryEntry], int]:
        """Public listing. Visibility is pinned to ``public`` here regardless
        of what the caller filtered on."""
        conditions = ["r.visibility = :visibility", "b.deleted_at IS NULL"]
        params: dict[str, Any] = {"visibility": RegistryVisibility.PUBLIC.value}

        if filters.category is not None:
            conditions.append("r.category = :category")
            params["category"] = filters.category.value
        if filters.query:
            conditions.append(
                "(r.display_name ILIKE :pattern ESCAPE '\\' "
                "OR r.description ILIKE :pattern ESCAPE '\\')"
            )
            params["pattern"] = f"%{escape_like(filters.query)}%"
        if filters.tags:
            # tags is a JSONB array; match any of the requested tags
            conditions.append("r.tags ?| :tags")
            params["tags"] = list(filters.tags)
        if filters.installable_only:
            conditions.append("r.installable")

        where_clause = " AND ".join(conditions)
        base = f"""
            FROM app_block_registry r
            JOIN app_block b ON b.id = r.app_block_id
            WHERE {where_clause}
        """

        count_query, count_values = bind_named(f"SELECT COUNT(*) {base}", params)
        total = await self._conn.fetchval(count_query, *count_values)

        page_query = f"""
            SELECT {self._SELECT_FIELDS}
            {base}
            ORDER BY r.featured_at IS NULL, r.featured_at DESC, r.display_name, r.id
            LIMIT :limit OFFSET :offset
        """
        page_query, page_values = bind_named(
            page_query, {**params, "limit": filters.limit, "offset": filters.offset}
        )
        rows = await self._conn.fetch(page_query, *page_values)
        return [self._map_to_model(row) for row in rows], total

    async def create(
        self, app_block_id: str, slug: str, dto: CreateRegistryEntryDTO
    ) -> RegistryEntry:
        query = """
            INSERT INTO app_block_registry (
                id, app_block_id, slug, display_name, description, icon_url,
                category, visibility, installable, requires_approval,
                contact_email, contact_url, tags
            ) VALUES (
                :id, :app_block_id, :slug, :display_name, :description, :icon_url,
                :category, :visibility, :installable, :requires_approval,
                :contact_email, :contact_url, :tags
            )
        """
        params = {
            "id": generate_id(),
            "app_block_id": app_block_id,
            "slug": slug,
            "display_name": dto.display_name,
            "description": dto.description,
            "icon_url": dto.icon_url,
            "category": dto.category.value,
            "visibility": dto.visibility.value,
            "installable": dto.installable,
            "requires_approval": dto.requires_approval,
            "contact_email": dto.contact_email,
            "contact_url": dto.contact_url,
            "tags": dump_string_set(dto.tags),
        }
        query, values = bind_named(query, params)
        try:
            await self._conn.execute(query, *values)
        except asyncpg.UniqueViolationError as e:
            raise self._conflict_from(e) from e
        return await self.find_by_app_block_id(app_block_id)

    async def update(
        self, app_block_id: str, dto: UpdateRegistryEntryDTO, slug: str | None = None
    ) -> RegistryEntry | None:
        update_fields = self._build_update_fields(dto)
        if slug is not None:
            update_fields["slug"] = slug
        if not update_fields:
            return await self.find_by_app_block_id(app_block_id)

        query = f"""
            UPDATE app_block_registry
            SET {build_set_clause(update_fields)}, updated_at = NOW()
            WHERE app_block_id = :app_block_id
        """
        query, values = bind_named(
            query, {"app_block_id": app_block_id, **update_fields}
        )
        try:
            await self._conn.execute(query, *values)
        except asyncpg.UniqueViolationError as e:
            raise self._conflict_from(e) from e
        return await self.find_by_app_block_id(app_block_id)

    async def slug_exists(self, slug: str, exclude_app_block_id: str | None = None) -> bool:
        query = """
            SELECT EXISTS (
                SELECT 1 FROM app_block_registry
                WHERE slug = $1 AND app_block_id IS DISTINCT FROM $2
            )
        """
        return await self._conn.fetchval(query, slug, exclude_app_block_id)

    async def delete_by_app_block_id(self, app_block_id: str) -> bool:
        query = "DELETE FROM app_block_registry WHERE app_block_id = $1"
        result = await self._conn.execute(query, app_block_id)
        return result == "DELETE 1"

    def _conflict_from(self, error: asyncpg.UniqueViolationError) -> ConflictError:
        if "slug" in (error.constraint_name or ""):
            code = ErrorCode.SLUG_TAKEN
        else:
            code = ErrorCode.REGISTRY_ENTRY_EXISTS
        return ConflictError(code.value, ERROR_MESSAGES[code])

    def _build_update_fields(self, dto: UpdateRegistryEntryDTO) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        for name in (
            "display_name",
            "description",
            "icon_url",
            "installable",
            "requires_approval",
            "contact_email",
            "contact_url",
        ):
            value = getattr(dto, name)
            if value is not None:
                fields[name] = value
        if dto.category is not None:
            fields["category"] = dto.category.value
        if dto.visibility is not None:
            fields["visibility"] = dto.visibility.value
        if dto.tags is not None:
            fields["tags"] = dump_string_set(dto.tags)
        return fields

    def _map_to_model(self, row: asyncpg.Record | None) -> RegistryEntry | None:
        if row is None:
            return None
        return RegistryEntry(
            id=row["id"],
            app_block_id=row["app_block_id"],
            slug=row["slug"],
            display_name=row["display_name"],
            description=row["description"],
            icon_url=row["icon_url"],
            category=row["category"],
            visibility=row["visibility"],
            installable=row["installable"],
            requires_approval=row["requires_approval"],
            contact_email=row["contact_email"],
            contact_url=row["contact_url"],
            tags=load_string_list(row["tags"]),
            featured_at=row["featured_at"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
