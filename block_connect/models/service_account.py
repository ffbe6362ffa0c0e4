from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ServiceAccount(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    app_block_id: str
    api_key_hash: str
    last_rotated_at: datetime | None = None
    created_at: datetime
