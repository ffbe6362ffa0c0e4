from pydantic import BaseModel

from block_connect.constants.enums import HealthStatus
from block_connect.models.installation import Installation


class HealthCheckResultDTO(BaseModel):
    installation: Installation
    health: HealthStatus
    upstream_status: int | None = None
    message: str | None = None
