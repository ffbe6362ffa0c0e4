"""
Block Connect seed script.

Applies ``schema.sql`` and loads the v1 connector catalog (connectors, scopes,
recipes) together with the first-party provider app blocks. Every insert is
``ON CONFLICT DO NOTHING`` so the script can run on every deploy.

Usage:
    python -m block_connect.database.seed
    python -m block_connect.database.seed --skip-schema
"""

import argparse
import asyncio
import logging
import uuid
from pathlib import Path

import asyncpg

from block_connect.core.logging import setup_logging
from block_connect.core.settings import settings
from block_connect.database import db_connection
from block_connect.database.json_columns import dump_string_list
from block_connect.database.query_builder import bind_named

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schema.sql"

SYSTEM_USER_ID = "00000000-0000-0000-0000-000000000001"

V1_CONNECTORS = [
    {
        "id": "events",
        "name": "Events District",
        "description": "Connect to city-wide events, calendars, and gatherings",
        "icon_url": "/connectors/events.svg",
    },
    {
        "id": "collab",
        "name": "Collab",
        "description": "Collaborative tasks, projects, and team coordination",
        "icon_url": "/connectors/collab.svg",
    },
    {
        "id": "people",
        "name": "Renaissance People",
        "description": "Bring your connections and social graph to any app block",
        "icon_url": "/connectors/people.svg",
    },
]

# (connector_id, name, description, required_role)
V1_SCOPES = [
    ("events", "events.read", "View upcoming and past events", "visitor"),
    ("events", "events.publish", "Publish new events to the city calendar", "creator"),
    ("events", "events.approve", "Approve or reject pending events", "organizer"),
    ("events", "events.checkin", "Check in attendees to events", "organizer"),
    ("events", "events.manage", "Full event management access", "admin"),
    ("collab", "collab.tasks.read", "View tasks and projects", "member"),
    ("collab", "collab.tasks.create", "Create new tasks and projects", "member"),
    ("collab", "collab.tasks.assign", "Assign tasks to team members", "creator"),
    ("collab", "collab.projects.manage", "Create and manage projects", "organizer"),
    (
        "people",
        "people.connections.read",
        "View your connections and their public profiles",
        "visitor",
    ),
    (
        "people",
        "people.connections.invite",
        "Send connection invites to other users",
        "member",
    ),
    (
        "people",
        "people.connections.manage",
        "Accept, reject, and remove connections",
        "member",
    ),
    (
        "people",
        "people.directory.search",
        "Search the Renaissance City user directory",
        "member",
    ),
    ("people", "people.groups.read", "View connection groups and circles", "member"),
    ("people", "people.groups.manage", "Create and manage connection groups", "member"),
]

V1_RECIPES = [
    {
        "id": "events-view",
        "connector_id": "events",
        "name": "Show Upcoming Events",
        "description": "Display a calendar of upcoming city events",
        "scopes": ["events.read"],
        "ui_modules": ["EventCalendar", "EventList"],
    },
    {
        "id": "events-publish",
        "connector_id": "events",
        "name": "Publish Events",
        "description": "Create and publish events to the city calendar",
        "scopes": ["events.read", "events.publish"],
        "ui_modules": ["EventCalendar", "EventList", "EventForm"],
    },
    {
        "id": "events-community",
        "connector_id": "events",
        "name": "Community Events with Approval",
        "description": "Let community members submit events for approval",
        "scopes": ["events.read", "events.publish", "events.approve"],
        "ui_modules": ["EventCalendar", "EventList", "EventForm", "EventApprovalQueue"],
    },
    {
        "id": "collab-view",
        "connector_id": "collab",
        "name": "View Tasks",
        "description": "Display team tasks and project status",
        "scopes": ["collab.tasks.read"],
        "ui_modules": ["TaskBoard", "TaskList"],
    },
    {
        "id": "collab-contribute",
        "connector_id": "collab",
        "name": "Contribute Tasks",
        "description": "Create and complete tasks",
        "scopes": ["collab.tasks.read", "collab.tasks.create"],
        "ui_modules": ["TaskBoard", "TaskList", "TaskForm"],
    },
    {
        "id": "collab-manage",
        "connector_id": "collab",
        "name": "Project Management",
        "description": "Full project and task management capabilities",
        "scopes": [
            "collab.tasks.read",
            "collab.tasks.create",
            "collab.tasks.assign",
            "collab.projects.manage",
        ],
        "ui_modules": [
            "TaskBoard",
            "TaskList",
            "TaskForm",
            "ProjectSettings",
            "TeamManagement",
        ],
    },
    {
        "id": "people-view",
        "connector_id": "people",
        "name": "View Connections",
        "description": "Display your connections and their profiles",
        "scopes": ["people.connections.read"],
        "ui_modules": ["ConnectionsList", "ProfileCard"],
    },
    {
        "id": "people-network",
        "connector_id": "people",
        "name": "Build Your Network",
        "description": "Find and invite new connections",
        "scopes": [
            "people.connections.read",
            "people.connections.invite",
            "people.directory.search",
        ],
        "ui_modules": ["ConnectionsList", "ProfileCard", "UserSearch", "InviteForm"],
    },
    {
        "id": "people-manage",
        "connector_id": "people",
        "name": "Manage Connections",
        "description": "Full connection management with groups and circles",
        "scopes": [
            "people.connections.read",
            "people.connections.invite",
            "people.connections.manage",
            "people.directory.search",
            "people.groups.read",
            "people.groups.manage",
        ],
        "ui_modules": [
            "ConnectionsList",
            "ProfileCard",
            "UserSearch",
            "InviteForm",
            "ConnectionGroups",
            "GroupEditor",
        ],
    },
]

# (scope_name, description, is_public_read, required_role)
FIRST_PARTY_PROVIDERS = [
    {
        "id": "block_events",
        "name": "Events District",
        "slug": "events",
        "description": (
            "Official Renaissance City Events platform. Browse, create, and "
            "manage city-wide events and gatherings."
        ),
        "category": "events",
        "icon_url": "/connectors/events.svg",
        "base_api_url": "/api/districts/events",
        "scopes": [
            ("events.read", "View upcoming and past events", True, None),
            ("events.publish", "Publish new events to the city calendar", False, "creator"),
            ("events.approve", "Approve or reject pending events", False, "organizer"),
            ("events.checkin", "Check in attendees to events", False, "organizer"),
            ("events.manage", "Full event management access", False, "admin"),
        ],
        "tags": ["official", "events", "calendar", "gatherings"],
    },
    {
        "id": "block_collab",
        "name": "Collab",
        "slug": "collab",
        "description": (
            "Official collaborative workspace. Manage tasks, projects, and team "
            "coordination across the city."
        ),
        "category": "tools",
        "icon_url": "/connectors/collab.svg",
        "base_api_url": "/api/districts/collab",
        "scopes": [
            ("collab.tasks.read", "View tasks and projects", False, "member"),
            ("collab.tasks.create", "Create new tasks and projects", False, "member"),
            ("collab.tasks.assign", "Assign tasks to team members", False, "creator"),
            ("collab.projects.manage", "Create and manage projects", False, "organizer"),
        ],
        "tags": ["official", "tasks", "projects", "teamwork"],
    },
    {
        "id": "block_people",
        "name": "Renaissance People",
        "slug": "people",
        "description": (
            "The social heart of Renaissance City. Connect with other users, "
            "build your network, and bring your connections to any app block."
        ),
        "category": "community",
        "icon_url": "/connectors/people.svg",
        "base_api_url": "/api/districts/people",
        "scopes": [
            (
                "people.connections.read",
                "View your connections and their public profiles",
                False,
                None,
            ),
            (
                "people.connections.invite",
                "Send connection invites to other users",
                False,
                "member",
            ),
            (
                "people.connections.manage",
                "Accept, reject, and remove connections",
                False,
                "member",
            ),
            (
                "people.directory.search",
                "Search the Renaissance City user directory",
                False,
                "member",
            ),
            ("people.groups.read", "View connection groups and circles", False, "member"),
            ("people.groups.manage", "Create and manage connection groups", False, "member"),
        ],
        "tags": ["official", "connections", "network", "social", "community"],
    },
]


def validate_catalog() -> None:
    """Refuse to seed a recipe that names a scope its connector does not offer."""
    offered: dict[str, set[str]] = {}
    for connector_id, name, _, _ in V1_SCOPES:
        offered.setdefault(connector_id, set()).add(name)

    for recipe in V1_RECIPES:
        unknown = sorted(set(recipe["scopes"]) - offered.get(recipe["connector_id"], set()))
        if unknown:
            raise ValueError(
                f"Recipe '{recipe['id']}' names unknown scopes for "
                f"connector '{recipe['connector_id']}': {unknown}"
            )


async def _execute(conn: asyncpg.Connection, query: str, params: dict) -> str:
    query, values = bind_named(query, params)
    return await conn.execute(query, *values)


async def seed_connectors(conn: asyncpg.Connection) -> None:
    for connector in V1_CONNECTORS:
        await _execute(
            conn,
            """
            INSERT INTO connector (id, name, description, icon_url)
            VALUES (:id, :name, :description, :icon_url)
            ON CONFLICT (id) DO NOTHING
            """,
            connector,
        )
    logger.info(f"Seeded {len(V1_CONNECTORS)} connectors")

    for connector_id, name, description, required_role in V1_SCOPES:
        await _execute(
            conn,
            """
            INSERT INTO scope (id, connector_id, name, description, required_role)
            VALUES (:id, :connector_id, :name, :description, :required_role)
            ON CONFLICT DO NOTHING
            """,
            {
                "id": name,
                "connector_id": connector_id,
                "name": name,
                "description": description,
                "required_role": required_role,
            },
        )
    logger.info(f"Seeded {len(V1_SCOPES)} connector scopes")

    for recipe in V1_RECIPES:
        await _execute(
            conn,
            """
            INSERT INTO connector_recipe (
                id, connector_id, name, description, scopes, ui_modules
            )
            VALUES (:id, :connector_id, :name, :description, :scopes, :ui_modules)
            ON CONFLICT (id) DO NOTHING
            """,
            {
                **recipe,
                "scopes": dump_string_list(recipe["scopes"]),
                "ui_modules": dump_string_list(recipe["ui_modules"]),
            },
        )
    logger.info(f"Seeded {len(V1_RECIPES)} recipes")


async def seed_first_party_providers(conn: asyncpg.Connection) -> None:
    for provider in FIRST_PARTY_PROVIDERS:
        async with conn.transaction():
            await _execute(
                conn,
                """
                INSERT INTO app_block (id, name, owner_user_id, description, icon_url)
                VALUES (:id, :name, :owner_user_id, :description, :icon_url)
                ON CONFLICT (id) DO NOTHING
                """,
                {
                    "id": provider["id"],
                    "name": provider["name"],
                    "owner_user_id": SYSTEM_USER_ID,
                    "description": provider["description"],
                    "icon_url": provider["icon_url"],
                },
            )
            await _execute(
                conn,
                """
                INSERT INTO app_block_registry (
                    id, app_block_id, slug, display_name, description, icon_url,
                    category, visibility, installable, requires_approval, tags
                )
                VALUES (
                    :id, :app_block_id, :slug, :display_name, :description, :icon_url,
                    :category, 'public', TRUE, FALSE, :tags
                )
                ON CONFLICT DO NOTHING
                """,
                {
                    "id": str(uuid.uuid4()),
                    "app_block_id": provider["id"],
                    "slug": provider["slug"],
                    "display_name": provider["name"],
                    "description": provider["description"],
                    "icon_url": provider["icon_url"],
                    "category": provider["category"],
                    "tags": dump_string_list(provider["tags"]),
                },
            )

            query, values = bind_named(
                "SELECT id FROM app_block_provider WHERE app_block_id = :app_block_id",
                {"app_block_id": provider["id"]},
            )
            provider_id = await conn.fetchval(query, *values)
            if provider_id is None:
                provider_id = str(uuid.uuid4())
                await _execute(
                    conn,
                    """
                    INSERT INTO app_block_provider (
                        id, app_block_id, base_api_url, api_version, auth_methods,
                        status, rate_limit_per_minute
                    )
                    VALUES (
                        :id, :app_block_id, :base_api_url, 'v1', :auth_methods,
                        'active', 120
                    )
                    """,
                    {
                        "id": provider_id,
                        "app_block_id": provider["id"],
                        "base_api_url": provider["base_api_url"],
                        "auth_methods": dump_string_list(["user", "service"]),
                    },
                )

            for scope_name, description, is_public_read, required_role in provider[
                "scopes"
            ]:
                await _execute(
                    conn,
                    """
                    INSERT INTO provider_scope (
                        id, provider_id, scope_name, description, is_public_read,
                        required_role
                    )
                    VALUES (
                        :id, :provider_id, :scope_name, :description,
                        :is_public_read, :required_role
                    )
                    ON CONFLICT (provider_id, scope_name) DO NOTHING
                    """,
                    {
                        "id": str(uuid.uuid4()),
                        "provider_id": provider_id,
                        "scope_name": scope_name,
                        "description": description,
                        "is_public_read": is_public_read,
                        "required_role": required_role,
                    },
                )
        logger.info(f"Seeded first-party provider {provider['slug']} ({provider['id']})")


async def run(apply_schema: bool = True) -> None:
    validate_catalog()
    await db_connection.connect()
    try:
        async with db_connection.get_connection() as conn:
            if apply_schema:
                await conn.execute(SCHEMA_PATH.read_text())
                logger.info(f"Applied schema from {SCHEMA_PATH.name}")
            await seed_connectors(conn)
            await seed_first_party_providers(conn)
    finally:
        await db_connection.close()
    logger.info("Seeding complete")


def main() -> None:
    parser = argparse.ArgumentParser(description="Block Connect seed script")
    parser.add_argument(
        "--skip-schema",
        action="store_true",
        help="Do not apply schema.sql before seeding",
    )
    args = parser.parse_args()

    setup_logging(settings.log_level)
    asyncio.run(run(apply_schema=not args.skip_schema))


if __name__ == "__main__":
    main()
