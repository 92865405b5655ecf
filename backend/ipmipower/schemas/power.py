"""Power control schemas."""

from pydantic import BaseModel

from ipmipower.services.ipmi_controller import PowerState
from ipmipower.services.power_service import PowerOnOutcome


class PowerStatusOut(BaseModel):
    """Current chassis power state of the managed host."""
    host: str
    state: PowerState


class PowerOnOut(BaseModel):
    """Result of a power-on request."""
    outcome: PowerOnOutcome
    detail: str = ""
