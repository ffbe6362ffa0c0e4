from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from block_connect.constants.enums import RegistryCategory, RegistryVisibility


class RegistryEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    app_block_id: str
    slug: str
    display_name: str
    description: str | None = None
    icon_url: str | None = None
    category: RegistryCategory = RegistryCategory.OTHER
    visibility: RegistryVisibility = RegistryVisibility.PRIVATE
    installable: bool = True
    requires_approval: bool = False
    contact_email: str | None = None
    contact_url: str | None = None
    tags: list[str] = Field(default_factory=list)
    featured_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
