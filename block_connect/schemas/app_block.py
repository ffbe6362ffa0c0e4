from datetime import datetime

from pydantic import BaseModel, Field

from block_connect.models.app_block import AppBlock


class AppBlockCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: str | None = None
    icon_url: str | None = None


class AppBlockUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=120)
    description: str | None = None
    icon_url: str | None = None


class AppBlockResponse(BaseModel):
    id: str
    name: str
    owner_user_id: str
    description: str | None
    icon_url: str | None
    has_service_account: bool
    created_at: datetime
    updated_at: datetime


class AppBlockListResponse(BaseModel):
    app_blocks: list[AppBlockResponse]


def to_app_block_response(app_block: AppBlock) -> AppBlockResponse:
    return AppBlockResponse(
        id=app_block.id,
        name=app_block.name,
        owner_user_id=app_block.owner_user_id,
        description=app_block.description,
        icon_url=app_block.icon_url,
        has_service_account=app_block.has_service_account,
        created_at=app_block.created_at,
        updated_at=app_block.updated_at,
    )
