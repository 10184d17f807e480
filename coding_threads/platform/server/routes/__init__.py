from fastapi import APIRouter

from coding_threads.platform.server.routes.base import base_router

root = APIRouter()
root.include_router(base_router)
