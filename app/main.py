from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.advisor import build_default_advisor


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    advisor = build_default_advisor()
    try:
        yield
    finally:
        await advisor.aclose()
        build_default_advisor.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Row Advisor",
        description="Voice skill answering whether river flow allows rowing today.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
