"""
Tests for registry browsing and publishing.
"""

import pytest

from block_connect.constants.enums import RegistryCategory, RegistryVisibility
from block_connect.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from block_connect.core.settings import settings
from block_connect.dtos.registry_dtos import (
    CreateRegistryEntryDTO,
    RegistryBrowseFiltersDTO,
    UpdateRegistryEntryDTO,
)
from tests.conftest import PROVIDER_OWNER_ID


@pytest.fixture
def listings(db):
    """Three listed blocks and one of each hidden visibility."""
    blocks = {}
    for slug, kwargs in {
        "city-events": {"category": RegistryCategory.EVENTS, "tags": ["events"]},
        "jam-session": {"category": RegistryCategory.MUSIC, "tags": ["music", "live"]},
        "trivia-night": {"category": RegistryCategory.GAMES, "featured": True},
        "secret-lab": {"visibility": RegistryVisibility.PRIVATE},
        "link-only": {"visibility": RegistryVisibility.UNLISTED},
    }.items():
        block = db.add_app_block(PROVIDER_OWNER_ID, name=slug)
        db.add_registry_entry(block.id, slug, **kwargs)
        blocks[slug] = block
    return blocks


class TestBrowse:
    """Only public entries are listed, featured first."""

    @pytest.mark.asyncio
    async def test_lists_public_entries_only(self, services, listings):
        page = await services.registry.browse(RegistryBrowseFiltersDTO())

        slugs = [entry.slug for entry in page.items]
        assert page.total == 3
        assert slugs[0] == "trivia-night"
        assert "secret-lab" not in slugs
        assert "link-only" not in slugs

    @pytest.mark.asyncio
    async def test_filters_by_category_and_tags(self, services, listings):
        by_category = await services.registry.browse(
            RegistryBrowseFiltersDTO(category=RegistryCategory.MUSIC)
        )
        by_tag = await services.registry.browse(RegistryBrowseFiltersDTO(tags=["events"]))

        assert [entry.slug for entry in by_category.items] == ["jam-session"]
        assert [entry.slug for entry in by_tag.items] == ["city-events"]

    @pytest.mark.asyncio
    async def test_text_query(self, services, listings):
        page = await services.registry.browse(RegistryBrowseFiltersDTO(query="jam"))

        assert [entry.slug for entry in page.items] == ["jam-session"]

    @pytest.mark.asyncio
    async def test_non_public_visibility_filter_is_empty(self, services, listings):
        page = await services.registry.browse(
            RegistryBrowseFiltersDTO(visibility=RegistryVisibility.PRIVATE)
        )

        assert page.items == []
        assert page.total == 0

    @pytest.mark.asyncio
    async def test_pagination_and_limit_cap(self, services, listings):
        second = await services.registry.browse(RegistryBrowseFiltersDTO(page=2, limit=2))
        capped = await services.registry.browse(RegistryBrowseFiltersDTO(limit=10_000))

        assert len(second.items) == 1
        assert second.total == 3
        assert capped.limit == settings.registry_max_page_size

    @pytest.mark.asyncio
    async def test_deleted_blocks_disappear(self, services, listings):
        await services.app_block_repo.soft_delete(listings["jam-session"].id)

        page = await services.registry.browse(RegistryBrowseFiltersDTO())

        assert "jam-session" not in [entry.slug for entry in page.items]


class TestGetBySlug:
    @pytest.mark.asyncio
    async def test_unlisted_is_reachable_by_slug(self, services, listings):
        result = await services.registry.get_by_slug("link-only")

        assert result.entry.slug == "link-only"
        assert result.provider is None

    @pytest.mark.asyncio
    async def test_private_hidden_from_others(self, services, listings, stranger):
        with pytest.raises(AuthorizationError):
            await services.registry.get_by_slug("secret-lab", viewer=stranger)
        with pytest.raises(NotFoundError):
            await services.registry.get_by_slug("secret-lab")

    @pytest.mark.asyncio
    async def test_private_visible_to_owner(self, services, listings, provider_owner):
        result = await services.registry.get_by_slug("secret-lab", viewer=provider_owner)

        assert result.entry.visibility == RegistryVisibility.PRIVATE

    @pytest.mark.asyncio
    async def test_slug_lookup_is_case_insensitive(self, services, listings):
        result = await services.registry.get_by_slug("  City-Events ")

        assert result.entry.slug == "city-events"


class TestPublish:
    @pytest.mark.asyncio
    async def test_publish_normalizes_slug(self, services, owner, consumer):
        entry = await services.registry.publish(
            owner,
            consumer.id,
            CreateRegistryEntryDTO(slug="My Cool Block!", display_name="My Cool Block"),
        )

        assert entry.slug == "my-cool-block"
        assert entry.visibility == RegistryVisibility.PRIVATE

    @pytest.mark.asyncio
    async def test_invalid_slug(self, services, owner, consumer):
        with pytest.raises(ValidationError) as exc_info:
            await services.registry.publish(
                owner, consumer.id, CreateRegistryEntryDTO(slug="---", display_name="x")
            )

        assert exc_info.value.code == "INVALID_SLUG"

    @pytest.mark.asyncio
    async def test_slug_taken(self, services, owner, consumer, listings):
        with pytest.raises(ConflictError) as exc_info:
            await services.registry.publish(
                owner,
                consumer.id,
                CreateRegistryEntryDTO(slug="city-events", display_name="Copycat"),
            )

        assert exc_info.value.code == "SLUG_TAKEN"

    @pytest.mark.asyncio
    async def test_publish_twice(self, services, owner, consumer):
        dto = CreateRegistryEntryDTO(slug="consumer", display_name="Consumer")
        await services.registry.publish(owner, consumer.id, dto)

        with pytest.raises(ConflictError) as exc_info:
            await services.registry.publish(owner, consumer.id, dto)

        assert exc_info.value.code == "REGISTRY_ENTRY_EXISTS"

    @pytest.mark.asyncio
    async def test_non_owner_cannot_publish(self, services, stranger, consumer):
        with pytest.raises(AuthorizationError):
            await services.registry.publish(
                stranger, consumer.id, CreateRegistryEntryDTO(slug="x", display_name="x")
            )

    @pytest.mark.asyncio
    async def test_update_keeps_own_slug(self, services, owner, consumer):
        await services.registry.publish(
            owner, consumer.id, CreateRegistryEntryDTO(slug="consumer", display_name="C")
        )

        entry = await services.registry.update(
            owner,
            consumer.id,
            UpdateRegistryEntryDTO(slug="consumer", visibility=RegistryVisibility.PUBLIC),
        )

        assert entry.slug == "consumer"
        assert entry.visibility == RegistryVisibility.PUBLIC

    @pytest.mark.asyncio
    async def test_unpublish(self, services, owner, consumer):
        await services.registry.publish(
            owner, consumer.id, CreateRegistryEntryDTO(slug="consumer", display_name="C")
        )

        await services.registry.unpublish(owner, consumer.id)

        with pytest.raises(NotFoundError):
            await services.registry.unpublish(owner, consumer.id)
