from fastapi import APIRouter

from statdash_api.routers.v1 import dashboard, sync

v1_router = APIRouter(prefix="/v1")

v1_router.include_router(sync.router)
v1_router.include_router(dashboard.router)
