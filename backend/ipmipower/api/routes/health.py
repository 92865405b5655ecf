"""Health check."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ipmipower import __version__
from ipmipower.api.deps import get_settings, get_wol_listener
from ipmipower.config import Settings
from ipmipower.schemas.system import HealthResponse
from ipmipower.services.wol_listener import WolListener

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(
    settings: Settings = Depends(get_settings),
    listener: WolListener | None = Depends(get_wol_listener),
):
    """Liveness plus WoL listener state; does not touch the BMC."""
    port = listener.bound_port if listener is not None else None
    return HealthResponse(
        version=__version__,
        bmc_host=settings.ipmi_host,
        wol_mac=settings.wol_mac,
        wol_listening=port is not None,
        wol_port=port,
    )
