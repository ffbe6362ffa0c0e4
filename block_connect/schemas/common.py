import logging
import math
from datetime import datetime, timezone
from typing import Generic, TypeVar
from uuid import uuid4

from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MetaResponse(BaseModel):
    request_id: str
    timestamp: datetime


class PaginationResponse(BaseModel):
    page: int
    page_size: int
    total_items: int
    total_pages: int

    @classmethod
    def build(cls, page: int, page_size: int, total_items: int) -> "PaginationResponse":
        return cls(
            page=page,
            page_size=page_size,
            total_items=total_items,
            total_pages=math.ceil(total_items / page_size) if page_size else 0,
        )


class ErrorDetail(BaseModel):
    code: str
    field: str | None = None
    message: str


class ErrorResponse(BaseModel):
    code: str
    message: str
    target: str | None = None
    details: list[ErrorDetail] | None = None


class ApiResponse(BaseModel, Generic[T]):
    meta: MetaResponse
    data: T | None = None
    error: ErrorResponse | None = None


def _meta() -> MetaResponse:
    return MetaResponse(request_id=str(uuid4()), timestamp=datetime.now(timezone.utc))


def create_success_response(data: T) -> ApiResponse[T]:
    return ApiResponse(meta=_meta(), data=data, error=None)


def create_error_response(
    code: str,
    message: str,
    target: str | None = None,
    status_code: int = 400,
    details: list[dict] | None = None,
) -> JSONResponse:
    meta = _meta()
    response = ApiResponse(
        meta=meta,
        data=None,
        error=ErrorResponse(
            code=code,
            message=message,
            target=target,
            details=[ErrorDetail(**detail) for detail in details] if details else None,
        ),
    )
    logger.warning(
        f"Error response [{meta.request_id}] status={status_code} "
        f"code={code} target={target} message={message}"
    )
    return JSONResponse(
        status_code=status_code,
        content=response.model_dump(mode="json"),
    )
