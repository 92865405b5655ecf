"""ipmipower configuration: Pydantic BaseSettings loaded from flags, env and .env."""

from __future__ import annotations

from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ipmipower.errors import ConfigError
from ipmipower.utils.mac import format_mac, parse_mac


class Settings(BaseSettings):
    """Immutable runtime settings.

    Init kwargs (CLI flags) win over environment variables, which win over the
    defaults below. Field names map to upper-case env vars, e.g. IPMI_HOST.
    """

    app_name: str = "ipmipower"
    log_level: str = "INFO"

    # BMC connection
    ipmi_host: str = "192.168.0.1"
    ipmi_username: str = "admin"
    ipmi_password: str = "admin"
    ipmi_port: int = Field(default=623, ge=1, le=65535)
    # Budget for the whole connect -> query -> act sequence
    action_timeout_seconds: float = Field(default=10.0, gt=0)

    # WoL listener
    wol_mac: str = "00:11:22:33:44:55"
    wol_port: int = Field(default=9, ge=0, le=65535)
    wol_bind_address: str = "0.0.0.0"

    # Web UI
    web_host: str = "0.0.0.0"
    web_port: int = Field(default=80, ge=0, le=65535)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    @field_validator("wol_mac")
    @classmethod
    def canonical_mac(cls, value: str) -> str:
        return format_mac(parse_mac(value))

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, value: str) -> str:
        return value.upper()


def load_settings(**overrides: Any) -> Settings:
    """Build settings once at startup.

    ``None`` overrides are dropped so unset CLI flags fall through to the
    environment. Raises ConfigError on invalid values (e.g. a malformed MAC).
    """
    explicit = {key: value for key, value in overrides.items() if value is not None}
    try:
        return Settings(**explicit)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'settings'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from exc
