"""HTML control page: current power state and a Power ON button."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import PlainTextResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from ipmipower.api.deps import get_power_service, get_settings
from ipmipower.config import Settings
from ipmipower.services.ipmi_controller import PowerState
from ipmipower.services.power_service import PowerService

router = APIRouter()

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent.parent / "templates"))

STATUS_LABELS = {
    PowerState.ON: "ON",
    PowerState.OFF: "OFF",
    PowerState.UNKNOWN: "Unknown",
}


@router.get("/", include_in_schema=False)
async def index(
    request: Request,
    settings: Settings = Depends(get_settings),
    power: PowerService = Depends(get_power_service),
):
    """Render the control page with a freshly queried power state."""
    state = await power.get_power_state()
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "host": settings.ipmi_host,
            "status": STATUS_LABELS[state],
            "is_powered": state == PowerState.ON,
            "time": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        },
    )


@router.post("/poweron", include_in_schema=False)
async def power_on(power: PowerService = Depends(get_power_service)):
    """Run power-on, then redirect back to the page. 500 with the reason on failure."""
    result = await power.trigger_power_on()
    if not result.ok:
        return PlainTextResponse(
            f"Error powering on: {result.detail}",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
