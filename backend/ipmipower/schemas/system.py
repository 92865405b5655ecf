"""System status schemas."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "ok"
    version: str
    service: str = "ipmipower"
    bmc_host: str
    wol_mac: str
    wol_listening: bool
    wol_port: int | None = None
