"""FastAPI dependency injection: settings, power service and WoL listener from app state."""

from __future__ import annotations

from fastapi import Request

from ipmipower.config import Settings
from ipmipower.services.power_service import PowerService
from ipmipower.services.wol_listener import WolListener


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_power_service(request: Request) -> PowerService:
    return request.app.state.power_service


def get_wol_listener(request: Request) -> WolListener | None:
    return request.app.state.wol_listener
