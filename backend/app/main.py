from __future__ import annotations

import logging
from collections.abc import AsyncGenerator  # noqa: TC003
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.database import create_tables
from app.routers import (
    chat,
    contacts,
    conversations,
    deals,
    health,
    properties,
    search,
)

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    create_tables()
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(chat.router, prefix=settings.api_prefix, tags=["chat"])
app.include_router(search.router, prefix=settings.api_prefix, tags=["search"])
app.include_router(properties.router, prefix=settings.api_prefix, tags=["properties"])
app.include_router(contacts.router, prefix=settings.api_prefix, tags=["contacts"])
app.include_router(
    conversations.router, prefix=settings.api_prefix, tags=["conversations"]
)
app.include_router(deals.router, prefix=settings.api_prefix, tags=["deals"])
