from datetime import datetime

from pydantic import BaseModel

from block_connect.constants.enums import RegistryCategory, RegistryVisibility
from block_connect.dtos.registry_dtos import (
    RegistryEntryWithProviderDTO,
    RegistryPageDTO,
)
from block_connect.models.registry_entry import RegistryEntry
from block_connect.schemas.common import PaginationResponse
from block_connect.schemas.provider import ProviderResponse, to_provider_response


class RegistryEntryResponse(BaseModel):
    id: str
    app_block_id: str
    slug: str
    display_name: str
    description: str | None
    icon_url: str | None
    category: RegistryCategory
    visibility: RegistryVisibility
    installable: bool
    requires_approval: bool
    contact_email: str | None
    contact_url: str | None
    tags: list[str]
    featured: bool
    created_at: datetime
    updated_at: datetime


class RegistryEntryDetailResponse(RegistryEntryResponse):
    provider: ProviderResponse | None


class RegistryListResponse(BaseModel):
    entries: list[RegistryEntryResponse]
    pagination: PaginationResponse


def _entry_fields(entry: RegistryEntry) -> dict:
    return {
        "id": entry.id,
        "app_block_id": entry.app_block_id,
        "slug": entry.slug,
        "display_name": entry.display_name,
        "description": entry.description,
        "icon_url": entry.icon_url,
        "category": entry.category,
        "visibility": entry.visibility,
        "installable": entry.installable,
        "requires_approval": entry.requires_approval,
        "contact_email": entry.contact_email,
        "contact_url": entry.contact_url,
        "tags": entry.tags,
        "featured": entry.featured_at is not None,
        "created_at": entry.created_at,
        "updated_at": entry.updated_at,
    }


def to_registry_entry_response(entry: RegistryEntry) -> RegistryEntryResponse:
    return RegistryEntryResponse(**_entry_fields(entry))


def to_registry_detail_response(
    result: RegistryEntryWithProviderDTO,
) -> RegistryEntryDetailResponse:
    return RegistryEntryDetailResponse(
        **_entry_fields(result.entry),
        provider=to_provider_response(result.provider) if result.provider else None,
    )


def to_registry_list_response(page: RegistryPageDTO) -> RegistryListResponse:
    return RegistryListResponse(
        entries=[to_registry_entry_response(entry) for entry in page.items],
        pagination=PaginationResponse.build(page.page, page.limit, page.total),
    )
