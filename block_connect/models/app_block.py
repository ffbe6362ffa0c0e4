from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AppBlock(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    owner_user_id: str
    description: str | None = None
    icon_url: str | None = None
    has_service_account: bool = False
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None

    def is_owned_by(self, user_id: str) -> bool:
        return self.owner_user_id == user_id
