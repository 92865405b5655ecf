"""IPMI BMC abstraction: RMCP+ session, chassis power state, power-on."""

from __future__ import annotations

import asyncio
import logging
import threading
from enum import Enum
from typing import Any, Callable, Protocol

from pyghmi import exceptions as pygexc
from pyghmi.ipmi import command as ipmi_command

from ipmipower.errors import ControllerCommandError, ControllerConnectError, ControllerQueryError

logger = logging.getLogger(__name__)

OPERATOR_PRIVILEGE = 3  # enough for chassis control

# Chassis Control: NetFn 0x00, Cmd 0x02, data 0x01 = power up
CHASSIS_NETFN = 0x00
CHASSIS_CONTROL_CMD = 0x02
CHASSIS_POWER_UP = 0x01


class PowerState(str, Enum):
    ON = "on"
    OFF = "off"
    UNKNOWN = "unknown"


class ControllerSession(Protocol):
    async def get_power_state(self) -> PowerState:
        """Return PowerState.ON or PowerState.OFF, or raise ControllerQueryError."""

    async def power_on(self) -> None:
        """Issue a single power-up command, or raise ControllerCommandError."""

    async def close(self) -> None:
        """Release the session."""


class PowerController(Protocol):
    async def connect(self) -> ControllerSession:
        """Open an authenticated session, or raise ControllerConnectError."""


def _logout(command: ipmi_command.Command) -> None:
    session = getattr(command, "ipmi_session", None)
    if session is not None:
        session.logout()


class IpmiSession:
    """One caller's hold on an authenticated BMC session.

    pyghmi is blocking, so every call runs in a worker thread. A call
    abandoned on deadline keeps running in its thread; close() waits for it
    before logging out.
    """

    def __init__(
        self,
        command: ipmi_command.Command,
        host: str,
        release: Callable[[ipmi_command.Command], None] = _logout,
    ):
        self._command = command
        self._host = host
        self._release = release
        self._lock = threading.Lock()
        self._closed = False

    async def get_power_state(self) -> PowerState:
        try:
            response = await asyncio.to_thread(self._locked, self._command.get_power)
        except (pygexc.PyghmiException, OSError) as e:
            raise ControllerQueryError(f"Failed to get chassis status from {self._host}: {e}") from e

        state = response.get("powerstate")
        if state == "on":
            return PowerState.ON
        if state == "off":
            return PowerState.OFF
        raise ControllerQueryError(f"Unexpected chassis status from {self._host}: {response!r}")

    async def power_on(self) -> None:
        # Raw chassis control: pyghmi's set_power() would query the state a second time
        try:
            response = await asyncio.to_thread(
                self._locked,
                self._command.raw_command,
                netfn=CHASSIS_NETFN,
                command=CHASSIS_CONTROL_CMD,
                data=(CHASSIS_POWER_UP,),
            )
        except (pygexc.PyghmiException, OSError) as e:
            raise ControllerCommandError(f"Failed to send Power Up command to {self._host}: {e}") from e

        if "error" in response:
            raise ControllerCommandError(
                f"BMC {self._host} rejected Power Up command: {response['error']}"
            )

    async def close(self) -> None:
        await asyncio.to_thread(self._close)

    def _locked(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            return func(*args, **kwargs)

    def _close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._release(self._command)


class _PendingLogin:
    """Hands a late login result to whoever is still interested in it."""

    def __init__(self):
        self.lock = threading.Lock()
        self.abandoned = False
        self.command: ipmi_command.Command | None = None


class IpmiController:
    """Opens IPMI 2.0 (lanplus) sessions against a single BMC.

    pyghmi hands out one shared session object per (bmc, user, password)
    while it is logged in, so connects that overlap get the same session.
    Holders are counted per pyghmi session and only the last close logs out.
    """

    def __init__(self, host: str, username: str, password: str, port: int = 623):
        self._host = host
        self._username = username
        self._password = password
        self._port = port
        self._lock = threading.Lock()
        self._holders: dict[Any, int] = {}

    @property
    def host(self) -> str:
        return self._host

    async def connect(self) -> IpmiSession:
        pending = _PendingLogin()
        try:
            command = await asyncio.to_thread(self._login_for, pending)
        except asyncio.CancelledError:
            # The worker thread cannot be interrupted; whoever finishes last logs out
            with pending.lock:
                pending.abandoned = True
                command = pending.command
            if command is not None:
                asyncio.get_running_loop().run_in_executor(None, self._release_abandoned, command)
            raise
        except (pygexc.PyghmiException, OSError) as e:
            raise ControllerConnectError(
                f"Failed to establish session with {self._host}:{self._port}: {e}"
            ) from e
        logger.info("Connected to BMC at %s", self._host)
        return IpmiSession(command, self._host, release=self._release)

    def _login_for(self, pending: _PendingLogin) -> ipmi_command.Command:
        command = self._login()
        with pending.lock:
            pending.command = command
            abandoned = pending.abandoned
        if abandoned:
            self._release_abandoned(command)
        return command

    def _login(self) -> ipmi_command.Command:
        # Blocks until the RMCP+ session is authenticated
        with self._lock:
            command = ipmi_command.Command(
                bmc=self._host,
                userid=self._username,
                password=self._password,
                port=self._port,
                privlevel=OPERATOR_PRIVILEGE,
            )
            session = getattr(command, "ipmi_session", None)
            if session is not None:
                self._holders[session] = self._holders.get(session, 0) + 1
        return command

    def _release(self, command: ipmi_command.Command) -> None:
        session = getattr(command, "ipmi_session", None)
        if session is None:
            return
        with self._lock:
            holders = self._holders.pop(session, 1) - 1
            if holders > 0:
                self._holders[session] = holders
                return
            session.logout()

    def _release_abandoned(self, command: ipmi_command.Command) -> None:
        logger.info("Closing BMC session to %s opened after the deadline", self._host)
        try:
            self._release(command)
        except Exception as e:
            logger.warning("Failed to close late BMC session to %s: %s", self._host, e)
