"""Domain-specific errors for ipmipower."""


class IpmiPowerError(Exception):
    """Base error for ipmipower."""


class ConfigError(IpmiPowerError):
    """Raised when the startup configuration is invalid."""


class MacParseError(IpmiPowerError, ValueError):
    """Raised when a MAC address text cannot be parsed into 6 bytes."""


class ControllerError(IpmiPowerError):
    """Base error for BMC controller failures."""


class ControllerConnectError(ControllerError):
    """Raised when a session with the BMC cannot be established."""


class ControllerQueryError(ControllerError):
    """Raised when the chassis power state cannot be read."""


class ControllerCommandError(ControllerError):
    """Raised when the BMC rejects the power-on command."""
