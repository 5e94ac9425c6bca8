"""Routes API / API routes."""

from fastapi import APIRouter

from liftcheck.api import (
    templates,
    inspections,
    quotes,
)

api_router = APIRouter(prefix="/api")

api_router.include_router(templates.router, prefix="/templates", tags=["templates"])
api_router.include_router(inspections.router, prefix="/inspections", tags=["inspections"])
api_router.include_router(quotes.router, prefix="/quotes", tags=["quotes"])
