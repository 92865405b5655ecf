"""API route registration."""

from fastapi import APIRouter

from ipmipower.api.routes import health, power, web

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(power.router, prefix="/power", tags=["power"])

web_router = web.router
