"""Test fixtures: fake BMC controller, settings and FastAPI test client."""

from __future__ import annotations

import asyncio

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from ipmipower.config import Settings
from ipmipower.main import create_app
from ipmipower.services.ipmi_controller import PowerState

TARGET_MAC = bytes.fromhex("001122334455")


class FakeSession:
    def __init__(self, controller: FakeController):
        self._controller = controller

    async def get_power_state(self) -> PowerState:
        ctl = self._controller
        ctl.queries += 1
        state = ctl.state
        if ctl.query_barrier is not None:
            await ctl.query_barrier.wait()
        if ctl.query_delay:
            await asyncio.sleep(ctl.query_delay)
        if ctl.query_error:
            raise ctl.query_error
        return state

    async def power_on(self) -> None:
        ctl = self._controller
        ctl.power_on_calls += 1
        if ctl.command_delay:
            await asyncio.sleep(ctl.command_delay)
        if ctl.command_error:
            raise ctl.command_error
        ctl.state = PowerState.ON

    async def close(self) -> None:
        self._controller.closed += 1
        if self._controller.close_error:
            raise self._controller.close_error


class FakeController:
    """In-memory BMC: counts sessions and commands, optionally fails or stalls."""

    def __init__(
        self,
        state: PowerState = PowerState.OFF,
        *,
        connect_error: Exception | None = None,
        query_error: Exception | None = None,
        command_error: Exception | None = None,
        close_error: Exception | None = None,
        query_delay: float = 0.0,
        command_delay: float = 0.0,
        query_barrier: asyncio.Barrier | None = None,
    ):
        self.state = state
        self.connect_error = connect_error
        self.query_error = query_error
        self.command_error = command_error
        self.close_error = close_error
        self.query_delay = query_delay
        self.command_delay = command_delay
        self.query_barrier = query_barrier
        self.connects = 0
        self.queries = 0
        self.power_on_calls = 0
        self.closed = 0

    async def connect(self) -> FakeSession:
        self.connects += 1
        if self.connect_error:
            raise self.connect_error
        return FakeSession(self)


@pytest.fixture
def settings(monkeypatch, tmp_path) -> Settings:
    """Settings isolated from the developer's environment and .env file."""
    monkeypatch.chdir(tmp_path)
    return Settings(
        ipmi_host="10.0.0.5",
        wol_mac="00-11-22-33-44-55",
        wol_port=0,
        wol_bind_address="127.0.0.1",
        log_level="DEBUG",
    )


@pytest.fixture
def controller() -> FakeController:
    return FakeController(PowerState.OFF)


@pytest_asyncio.fixture
async def client(settings: Settings, controller: FakeController):
    """Provide an async test client backed by the fake controller."""
    app = create_app(settings, controller=controller)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
