from datetime import datetime

from pydantic import BaseModel


class ServiceAccountCredentialsDTO(BaseModel):
    """Returned once, at creation or rotation; only the hash is stored."""

    client_id: str
    app_block_id: str
    client_secret: str
    issued_at: datetime
