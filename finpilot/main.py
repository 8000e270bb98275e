from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from finpilot.api.dependencies import get_inference_client
from finpilot.api.router import api_router
from finpilot.config import get_settings
from finpilot.core.logging import configure_logging


app = FastAPI(
    title="FinPilot Backend",
    version="1.0.0",
    description="FinPilot: receipt scanning and voice queries for personal finance",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.on_event("startup")
async def _startup() -> None:
    configure_logging()
    s = get_settings()
    client = get_inference_client()
    logger.info("FinPilot starting (env={}, inference={})", s.APP_ENV, client.name)
    if s.demo_mode:
        logger.warning("Demo mode: no inference credentials, scans return fallback transactions")


@app.get("/health")
async def health() -> Dict[str, Any]:
    client = get_inference_client()
    return {
        "ok": True,
        "service": "finpilot-backend",
        "inference": client.name,
        "inference_available": client.available,
        "demo_mode": get_settings().demo_mode,
    }
