"""WoL listener: receives magic packets on UDP and triggers power-on."""

from __future__ import annotations

import asyncio
import logging
import socket
from typing import TYPE_CHECKING, Any

from ipmipower.utils.mac import format_mac
from ipmipower.utils.wol import is_magic_packet

if TYPE_CHECKING:
    from ipmipower.services.power_service import PowerOnResult, PowerService

logger = logging.getLogger(__name__)


class WolListener:
    """Processes one datagram at a time on a dedicated task.

    While a power-on runs, later datagrams wait in the OS socket buffer.
    No reply is ever sent.
    """

    RECV_BUFFER = 1024  # bytes, larger than any magic packet

    def __init__(
        self,
        power_service: PowerService,
        target_mac: bytes,
        port: int = 9,
        bind_address: str = "0.0.0.0",
    ):
        self._power = power_service
        self._target_mac = target_mac
        self._port = port
        self._bind_address = bind_address
        self._sock: socket.socket | None = None
        self._task: asyncio.Task | None = None

    @property
    def bound_port(self) -> int | None:
        """Actual UDP port, or None when not listening."""
        if self._sock is None:
            return None
        return self._sock.getsockname()[1]

    def start(self) -> None:
        """Bind the socket and start the receive loop. OSError if the port is taken."""
        if self._task is not None:
            return
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.bind((self._bind_address, self._port))
        except OSError:
            sock.close()
            raise
        sock.setblocking(False)
        self._sock = sock
        self._task = asyncio.create_task(self._run_loop())
        logger.info(
            "Listening for WoL packets on %s:%d, waiting for MAC: %s",
            self._bind_address, self.bound_port, format_mac(self._target_mac),
        )

    async def stop(self) -> None:
        """Stop the receive loop and release the socket."""
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        if self._sock:
            self._sock.close()
            self._sock = None
        logger.info("WoL listener stopped")

    async def handle_datagram(self, data: bytes, addr: Any) -> PowerOnResult | None:
        """Validate one datagram and run power-on if it is for our MAC."""
        if not is_magic_packet(data, self._target_mac):
            logger.debug("Ignoring %d-byte datagram from %s", len(data), addr)
            return None

        logger.info(
            "Received valid WoL packet from %s for MAC %s", addr, format_mac(self._target_mac)
        )
        result = await self._power.trigger_power_on()
        if result.ok:
            logger.info("WoL trigger from %s: %s", addr, result.outcome.value)
        else:
            logger.error("Error executing IPMI command: %s", result.detail)
        return result

    async def _run_loop(self) -> None:
        """Main receive loop."""
        loop = asyncio.get_running_loop()
        while True:
            try:
                data, addr = await loop.sock_recvfrom(self._sock, self.RECV_BUFFER)
            except OSError as e:
                logger.error("Error reading UDP message: %s", e)
                await asyncio.sleep(0.1)
                continue

            try:
                await self.handle_datagram(data, addr)
            except Exception as e:
                logger.exception("WoL trigger failed: %s", e)
