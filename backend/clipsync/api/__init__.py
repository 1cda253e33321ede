"""
API routes initialization.

This module aggregates all API routers and provides a single router
to include in the main application.
"""

from fastapi import APIRouter

from clipsync.api.routes import clips, salesforce, webhook

# Create main API router
api_router = APIRouter()

# Clip listing, processing and sync status
api_router.include_router(clips.router)

# Salesforce OAuth redirect and callback
api_router.include_router(salesforce.router)

# Zoom webhook intake
api_router.include_router(webhook.router)
