from pydantic import BaseModel, Field

from block_connect.constants.enums import RegistryCategory, RegistryVisibility
from block_connect.models.provider import AppBlockProvider
from block_connect.models.registry_entry import RegistryEntry


class CreateRegistryEntryDTO(BaseModel):
    slug: str = Field(..., min_length=1, max_length=64)
    display_name: str = Field(..., min_length=1)
    description: str | None = None
    icon_url: str | None = None
    category: RegistryCategory = RegistryCategory.OTHER
    visibility: RegistryVisibility = RegistryVisibility.PRIVATE
    installable: bool = True
    requires_approval: bool = False
    contact_email: str | None = None
    contact_url: str | None = None
    tags: list[str] = Field(default_factory=list)


class UpdateRegistryEntryDTO(BaseModel):
    slug: str | None = Field(None, min_length=1, max_length=64)
    display_name: str | None = Field(None, min_length=1)
    description: str | None = None
    icon_url: str | None = None
    category: RegistryCategory | None = None
    visibility: RegistryVisibility | None = None
    installable: bool | None = None
    requires_approval: bool | None = None
    contact_email: str | None = None
    contact_url: str | None = None
    tags: list[str] | None = None


class RegistryBrowseFiltersDTO(BaseModel):
    category: RegistryCategory | None = None
    query: str | None = None
    tags: list[str] = Field(default_factory=list)
    visibility: RegistryVisibility | None = None
    installable_only: bool = False
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class RegistryPageDTO(BaseModel):
    items: list[RegistryEntry]
    total: int
    page: int
    limit: int


class RegistryEntryWithProviderDTO(BaseModel):
    entry: RegistryEntry
    provider: AppBlockProvider | None = None
