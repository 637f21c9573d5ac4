from fastapi import APIRouter

from paperbot.api.notifications import router as notifications_router
from paperbot.api.papers import router as papers_router
from paperbot.api.webhook import router as webhook_router

api_router = APIRouter()

# Provider-facing webhook at the root
api_router.include_router(webhook_router, tags=["webhook"])

# API routes at /api/*
api_router.include_router(notifications_router, prefix="/api", tags=["notifications"])
api_router.include_router(papers_router, prefix="/api", tags=["papers"])
