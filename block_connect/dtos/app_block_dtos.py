from pydantic import BaseModel, Field


class CreateAppBlockDTO(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    owner_user_id: str
    description: str | None = None
    icon_url: str | None = None


class UpdateAppBlockDTO(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=120)
    description: str | None = None
    icon_url: str | None = None
