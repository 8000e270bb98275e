from fastapi import APIRouter

from finpilot.api.routes import categories, receipts, voice

api_router = APIRouter()

api_router.include_router(receipts.router)
api_router.include_router(voice.router)
api_router.include_router(categories.router)
