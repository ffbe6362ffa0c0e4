from block_connect.schemas.common import (
    ApiResponse,
    ErrorDetail,
    ErrorResponse,
    MetaResponse,
    PaginationResponse,
    create_error_response,
    create_success_response,
)

__all__ = [
    "ApiResponse",
    "MetaResponse",
    "PaginationResponse",
    "ErrorDetail",
    "ErrorResponse",
    "create_success_response",
    "create_error_response",
]
