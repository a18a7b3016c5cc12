import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from teamdeck.api.v1.api import api_router
from teamdeck.core.config import settings
from teamdeck.core.logging import configure_logging
from teamdeck.db.init_db import init_first_owner
from teamdeck.db.session import init_models
from teamdeck.services import background_tasks

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    docs_url=f"{settings.API_V1_STR}/docs",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    redoc_url=None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get(f"{settings.API_V1_STR}/health", include_in_schema=False)
async def health() -> dict:
    return {"status": "ok"}


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    if settings.DB_AUTO_CREATE:
        await init_models()
    await init_first_owner()
    logger.info("%s started", settings.PROJECT_NAME)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await background_tasks.drain()
