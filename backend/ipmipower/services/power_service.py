"""Idempotent power-on orchestration against the BMC."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from ipmipower.errors import (
    ControllerCommandError,
    ControllerConnectError,
    ControllerError,
    ControllerQueryError,
)
from ipmipower.services.ipmi_controller import ControllerSession, PowerController, PowerState

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0  # seconds, whole connect -> query -> act sequence


class PowerOnOutcome(str, Enum):
    ALREADY_ON = "already_on"
    POWER_ON_ISSUED = "power_on_issued"
    QUERY_FAILED = "query_failed"
    COMMAND_FAILED = "command_failed"


@dataclass(frozen=True)
class PowerOnResult:
    outcome: PowerOnOutcome
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome in (PowerOnOutcome.ALREADY_ON, PowerOnOutcome.POWER_ON_ISSUED)


class PowerService:
    """Check-then-act power-on shared by the WoL listener and the web UI.

    Holds no mutable state between calls, so concurrent callers need no lock.
    Two concurrent calls can both see OFF and both send power-on.
    """

    def __init__(self, controller: PowerController, timeout: float = DEFAULT_TIMEOUT):
        self._controller = controller
        self._timeout = timeout

    async def trigger_power_on(self) -> PowerOnResult:
        """Power the host on unless it is already on. Never raises on controller errors."""
        session: ControllerSession | None = None
        command_sent = False
        try:
            async with asyncio.timeout(self._timeout):
                session = await self._controller.connect()
                state = await session.get_power_state()
                if state == PowerState.ON:
                    logger.info("Server is already powered ON, no action taken")
                    return PowerOnResult(PowerOnOutcome.ALREADY_ON)
                if state != PowerState.OFF:
                    raise ControllerQueryError(f"Power state is {state.value}, refusing to act")

                logger.info("Server is currently OFF, sending Power Up command")
                command_sent = True
                await session.power_on()
        except (ControllerConnectError, ControllerQueryError) as e:
            logger.warning("Power state query failed: %s", e)
            return PowerOnResult(PowerOnOutcome.QUERY_FAILED, str(e))
        except ControllerCommandError as e:
            logger.warning("Power on command failed: %s", e)
            return PowerOnResult(PowerOnOutcome.COMMAND_FAILED, str(e))
        except TimeoutError:
            detail = f"BMC did not answer within {self._timeout:g}s"
            if command_sent:
                logger.warning("Power on command timed out: %s", detail)
                return PowerOnResult(PowerOnOutcome.COMMAND_FAILED, detail)
            logger.warning("Power state query timed out: %s", detail)
            return PowerOnResult(PowerOnOutcome.QUERY_FAILED, detail)
        finally:
            if session is not None:
                await _close_quietly(session)

        logger.info("Success: Power On command sent")
        return PowerOnResult(PowerOnOutcome.POWER_ON_ISSUED)

    async def get_power_state(self) -> PowerState:
        """Fresh power state read; UNKNOWN if the BMC cannot be queried."""
        session: ControllerSession | None = None
        try:
            async with asyncio.timeout(self._timeout):
                session = await self._controller.connect()
                return await session.get_power_state()
        except ControllerError as e:
            logger.warning("Error getting power status: %s", e)
        except TimeoutError:
            logger.warning("Error getting power status: BMC did not answer within %gs", self._timeout)
        finally:
            if session is not None:
                await _close_quietly(session)
        return PowerState.UNKNOWN


async def _close_quietly(session: ControllerSession) -> None:
    """Release a session; a failing logout must not change the outcome."""
    try:
        await session.close()
    except Exception as e:
        logger.debug("Session close failed: %s", e)
