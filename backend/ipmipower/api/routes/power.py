"""Power control JSON routes: state and power-on."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from ipmipower.api.deps import get_power_service, get_settings
from ipmipower.config import Settings
from ipmipower.schemas.power import PowerOnOut, PowerStatusOut
from ipmipower.services.power_service import PowerService

router = APIRouter()


@router.get("", response_model=PowerStatusOut)
async def power_status(
    settings: Settings = Depends(get_settings),
    power: PowerService = Depends(get_power_service),
):
    """Query the BMC for the current power state (UNKNOWN on failure)."""
    state = await power.get_power_state()
    return PowerStatusOut(host=settings.ipmi_host, state=state)


@router.post("/on", response_model=PowerOnOut)
async def power_on(response: Response, power: PowerService = Depends(get_power_service)):
    """Power the host on unless it already is. 502 if the BMC failed."""
    result = await power.trigger_power_on()
    if not result.ok:
        response.status_code = status.HTTP_502_BAD_GATEWAY
    return PowerOnOut(outcome=result.outcome, detail=result.detail)
