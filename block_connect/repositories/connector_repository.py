import asyncpg

from block_connect.database.json_columns import load_string_list
from block_connect.database.query_builder import bind_named
from block_connect.models.connector import Connector, ConnectorRecipe, ConnectorScope


class ConnectorRepository:
    """Read side of the seeded connector catalog: connectors, scopes, recipes."""

    _SELECT_FIELDS = "id, name, description, icon_url, is_active, created_at"
    _SCOPE_FIELDS = """
        id, connector_id, name, description, required_role, is_public_read, created_at
    """
    _RECIPE_FIELDS = """
        id, connector_id, name, description, scopes, ui_modules, created_at
    """

    def __init__(self, conn: asyncpg.Connection):
        self._conn = conn

    async def find_all(self, active_only: bool = True) -> list[Connector]:
        query = f"SELECT {self._SELECT_FIELDS} FROM connector"
        if active_only:
            query += " WHERE is_active"
        query += " ORDER BY name"
        rows = await self._conn.fetch(query)
        return [Connector.model_validate(dict(row)) for row in rows]

    async def find_by_id(self, connector_id: str) -> Connector | None:
        query = f"""
            SELECT {self._SELECT_FIELDS}
            FROM connector
            WHERE id = :connector_id
        """
        query, values = bind_named(query, {"connector_id": connector_id})
        row = await self._conn.fetchrow(query, *values)
        return Connector.model_validate(dict(row)) if row else None

    async def find_scopes(self, connector_id: str) -> list[ConnectorScope]:
        query = f"""
            SELECT {self._SCOPE_FIELDS}
            FROM scope
            WHERE connector_id = :connector_id
            ORDER BY name
        """
        query, values = bind_named(query, {"connector_id": connector_id})
        rows = await self._conn.fetch(query, *values)
        return [ConnectorScope.model_validate(dict(row)) for row in rows]

    async def find_recipes(self, connector_id: str) -> list[ConnectorRecipe]:
        query = f"""
            SELECT {self._RECIPE_FIELDS}
            FROM connector_recipe
            WHERE connector_id = :connector_id
            ORDER BY created_at, id
        """
        query, values = bind_named(query, {"connector_id": connector_id})
        rows = await self._conn.fetch(query, *values)
        return [self._map_recipe(row) for row in rows]

    async def find_recipe(self, recipe_id: str) -> ConnectorRecipe | None:
        query = f"""
            SELECT {self._RECIPE_FIELDS}
            FROM connector_recipe
            WHERE id = :recipe_id
        """
        query, values = bind_named(query, {"recipe_id": recipe_id})
        row = await self._conn.fetchrow(query, *values)
        return self._map_recipe(row) if row else None

    def _map_recipe(self, row: asyncpg.Record) -> ConnectorRecipe:
        return ConnectorRecipe(
            id=row["id"],
            connector_id=row["connector_id"],
            name=row["name"],
            description=row["description"],
            scopes=load_string_list(row["scopes"]),
            ui_modules=load_string_list(row["ui_modules"]),
            created_at=row["created_at"],
        )
