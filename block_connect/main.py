import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from block_connect.api.v1 import api_v1_router
from block_connect.core.exceptions import AppException, AuthorizationError
from block_connect.core.lifespan import lifespan
from block_connect.core.settings import settings
from block_connect.database import db_connection
from block_connect.schemas.common import create_error_response

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)


@app.exception_handler(AuthorizationError)
async def authorization_exception_handler(
    request: Request, exc: AuthorizationError
) -> JSONResponse:
    logger.warning(
        f"Access denied on {request.method} {request.url.path}: "
        f"{exc.resource} {exc.identifier} ({exc.reason})"
    )
    return create_error_response(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
    )


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    logger.warning(
        f"AppException on {request.method} {request.url.path}: "
        f"code={exc.code} message={exc.message}"
    )
    return create_error_response(
        code=exc.code,
        message=exc.message,
        target=exc.target,
        status_code=exc.status_code,
        details=exc.details,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.warning(
        f"Validation error on {request.method} {request.url.path}: {exc.errors()}"
    )
    details = [
        {
            "code": error.get("type", "invalid"),
            "field": ".".join(str(part) for part in error.get("loc", ())),
            "message": error.get("msg", ""),
        }
        for error in exc.errors()
    ]
    return create_error_response(
        code="VALIDATION_ERROR",
        message="Request validation failed",
        status_code=422,
        details=details,
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        f"Unhandled exception on {request.method} {request.url.path}: {exc}"
    )
    return create_error_response(
        code="INTERNAL_ERROR",
        message="An unexpected error occurred",
        status_code=500,
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_v1_router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    return {
        "status": "healthy",
        "database": "connected" if db_connection.is_connected else "disconnected",
    }


if __name__ == "__main__":
    uvicorn.run(
        "block_connect.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
