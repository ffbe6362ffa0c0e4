from datetime import datetime

from pydantic import BaseModel

from block_connect.dtos.service_account_dtos import ServiceAccountCredentialsDTO


class ServiceAccountCredentialsResponse(BaseModel):
    client_id: str
    app_block_id: str
    client_secret: str
    issued_at: datetime


def to_credentials_response(
    credentials: ServiceAccountCredentialsDTO,
) -> ServiceAccountCredentialsResponse:
    return ServiceAccountCredentialsResponse(
        client_id=credentials.client_id,
        app_block_id=credentials.app_block_id,
        client_secret=credentials.client_secret,
        issued_at=credentials.issued_at,
    )
