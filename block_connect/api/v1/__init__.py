from fastapi import APIRouter

from block_connect.api.v1.app_block_routes import router as app_block_router
from block_connect.api.v1.auth_routes import router as auth_router
from block_connect.api.v1.connector_routes import router as connector_router
from block_connect.api.v1.installation_routes import router as installation_router
from block_connect.api.v1.provider_routes import router as provider_router
from block_connect.api.v1.registry_routes import router as registry_router
from block_connect.api.v1.service_account_routes import (
    router as service_account_router,
)

api_v1_router = APIRouter(prefix="/api/v1")

api_v1_router.include_router(auth_router)
api_v1_router.include_router(app_block_router)
api_v1_router.include_router(connector_router)
api_v1_router.include_router(registry_router)
api_v1_router.include_router(provider_router)
api_v1_router.include_router(installation_router)
api_v1_router.include_router(service_account_router)
