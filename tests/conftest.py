"""Pytest configuration and fixtures for fieldpoll tests."""

import threading
from typing import Any
from unittest.mock import MagicMock

import pytest

from fieldpoll.config import parse_config_string
from fieldpoll.drivers.base import AddressSpec, DeviceFamily, ProtocolAdapter, Session
from fieldpoll.errors import ReadError
from fieldpoll.pal.address_map import AddressMap
from fieldpoll.pal.liveness import LivenessProbe


SAMPLE_CONFIG = """
[Gateway]
ping_timeout_ms = 250
max_workers = 4

[Elite]
IP = 192.168.1.20, 192.168.1.21,,192.168.1.20

[192.168.1.20]
Joint = 300,6     ; radians * 5000
DI = 400,1

[192.168.1.21]
DO = 402,2

[Siemens1200]
IP = 192.168.1.50

[192.168.1.50]
Block1 = 1,0,4
"""


@pytest.fixture
def sample_config():
    """Parsed sample configuration."""
    return parse_config_string(SAMPLE_CONFIG)


@pytest.fixture
def config_file(tmp_path):
    """Sample configuration written to disk."""
    path = tmp_path / "config.ini"
    path.write_text(SAMPLE_CONFIG, encoding="utf-8")
    return path


@pytest.fixture
def mock_modbus_client():
    """Create a mock pymodbus client."""
    client = MagicMock()
    client.connect.return_value = True
    client.close.return_value = None
    client.read_holding_registers.return_value = MagicMock(
        registers=[5000, 0xFFFF, 0, 1, 2, 3], isError=lambda: False
    )
    client.read_input_registers.return_value = MagicMock(
        registers=[0x7FFF, 0xFFFF], isError=lambda: False
    )
    client.read_coils.return_value = MagicMock(
        bits=[True, False, True, False, False, False, False, False], isError=lambda: False
    )
    client.read_discrete_inputs.return_value = MagicMock(
        bits=[False, True, False, False, False, False, False, False], isError=lambda: False
    )
    return client


@pytest.fixture
def mock_snap7_client():
    """Create a mock snap7 client."""
    client = MagicMock()
    client.connect.return_value = None
    client.disconnect.return_value = None
    client.get_connected.return_value = True
    client.db_read.return_value = bytearray([0x00, 0x64, 0xFF, 0x01])
    return client


@pytest.fixture
def mock_rpc_proxy():
    """Create a mock robot XML-RPC proxy."""
    proxy = MagicMock()
    proxy.GetActualJointPosDegree.return_value = [0, 10.5, -20.25, 30.0, 0.0, 90.0, -180.0]
    proxy.GetDI.side_effect = lambda channel, block: [0, channel % 2]
    return proxy


class FakeProbe(LivenessProbe):
    """Probe answering from a fixed set of reachable IPs."""

    def __init__(self, reachable: set[str] | None = None):
        self.reachable = reachable if reachable is not None else set()
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def probe(self, ip: str) -> bool:
        with self._lock:
            self.calls.append(ip)
        return ip in self.reachable


class FakeSession(Session):
    """Session recording whether it was closed."""

    def __init__(self, ip: str):
        super().__init__(ip)
        self.release_count = 0

    def _release(self) -> None:
        self.release_count += 1


class FakeAdapter(ProtocolAdapter):
    """
    In-memory adapter for the ModbusTCP family.

    registers maps ip -> tag -> raw data; a raw value that is an exception
    instance is raised from read_field.
    """

    family = DeviceFamily.MODBUS_TCP

    def __init__(self, registers: dict[str, dict[str, Any]] | None = None):
        super().__init__(timeout=0.1)
        self.registers = registers or {}
        self.sessions: list[FakeSession] = []
        self.open_count = 0
        self._lock = threading.Lock()

    def supported_tags(self) -> frozenset[str]:
        return frozenset({"ReadCoils", "ReadInputs", "ReadHoldingRegisters", "ReadInputRegisters"})

    def open(self, ip: str) -> FakeSession:
        session = FakeSession(ip)
        with self._lock:
            self.open_count += 1
            self.sessions.append(session)
        return session

    def read_field(self, session: Session, tag: str, spec: AddressSpec) -> Any | None:
        if not self.supports(tag):
            return None
        if session.closed:
            raise ReadError("session closed", ip=session.ip, tag=tag)
        raw = self.registers.get(session.ip, {}).get(tag)
        if isinstance(raw, Exception):
            raise raw
        if raw is None:
            raise ReadError("no data", ip=session.ip, tag=tag)
        return list(raw)


@pytest.fixture
def fake_probe():
    return FakeProbe()


@pytest.fixture
def modbus_address_map():
    """Two generic Modbus devices."""
    return AddressMap("ModbusTCP", {
        "10.0.0.1": {"ReadHoldingRegisters": (0, 2), "ReadCoils": (0, 3)},
        "10.0.0.2": {"ReadInputRegisters": (10, 1), "Unknown": (1, 1)},
    })
