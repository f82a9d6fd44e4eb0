"""
Modbus-TCP Protocol Adapters

Covers every device family that speaks Modbus-TCP: the generic Modbus
device, both Modbus robot variants and the XinJie PLC. The families differ
only in which Modbus table serves each field tag.
Uses pymodbus library for communication.
"""

import logging
from enum import Enum
from typing import Any

from pymodbus.client import ModbusTcpClient
from pymodbus.exceptions import ModbusException

from fieldpoll.drivers.base import AddressSpec, DeviceFamily, ProtocolAdapter, Session
from fieldpoll.errors import DeviceConnectionError, ReadError

logger = logging.getLogger(__name__)


class ModbusTable(str, Enum):
    """Modbus tables used for read dispatch"""
    COIL = "coil"
    DISCRETE_INPUT = "discrete_input"
    INPUT_REGISTER = "input_register"
    HOLDING_REGISTER = "holding_register"


BIT_TABLES = (ModbusTable.COIL, ModbusTable.DISCRETE_INPUT)


class ModbusSession(Session):
    """Open Modbus-TCP connection to one device"""

    def __init__(self, ip: str, client: ModbusTcpClient):
        super().__init__(ip)
        self.client = client

    def _release(self) -> None:
        try:
            self.client.close()
        except Exception as e:
            logger.warning("Error closing Modbus client for %s: %s", self.ip, e)


class ModbusAdapter(ProtocolAdapter):
    """
    Base adapter for Modbus-TCP families.

    Subclasses fill FIELD_TABLES with the table each tag is read from, and
    FIELD_UNIT_IDS where a tag is addressed to a unit other than the default.
    """

    DEFAULT_TCP_PORT = 502
    DEFAULT_UNIT_ID = 1

    FIELD_TABLES: dict[str, ModbusTable] = {}
    FIELD_UNIT_IDS: dict[str, int] = {}

    def __init__(
        self,
        timeout: float = 3.0,
        port: int = DEFAULT_TCP_PORT,
        unit_id: int = DEFAULT_UNIT_ID,
    ):
        super().__init__(timeout)
        self._port = port
        self._unit_id = unit_id

    def supported_tags(self) -> frozenset[str]:
        return frozenset(self.FIELD_TABLES)

    def open(self, ip: str) -> ModbusSession:
        """
        Connect to the device over Modbus-TCP.

        Args:
            ip: IP address of the device

        Returns:
            ModbusSession wrapping the connected client
        """
        client = ModbusTcpClient(host=ip, port=self._port, timeout=self._timeout)
        try:
            connected = client.connect()
        except Exception as e:
            client.close()
            raise DeviceConnectionError(
                f"Failed to connect to {ip}:{self._port}: {e}", ip=ip, cause=e
            ) from e

        if not connected:
            client.close()
            raise DeviceConnectionError(f"Failed to connect to {ip}:{self._port}", ip=ip)

        return ModbusSession(ip, client)

    def read_field(self, session: Session, tag: str, spec: AddressSpec) -> list[Any] | None:
        table = self.FIELD_TABLES.get(tag)
        if table is None:
            return None

        offset, count = spec[0], spec[1]
        unit_id = self.FIELD_UNIT_IDS.get(tag, self._unit_id)
        return self._read_table(session, tag, table, offset, count, unit_id)

    def _read_table(
        self,
        session: Session,
        tag: str,
        table: ModbusTable,
        offset: int,
        count: int,
        unit_id: int,
    ) -> list[Any]:
        """Issue one Modbus read and return its bits or registers"""
        client = session.client
        try:
            if table == ModbusTable.COIL:
                rr = client.read_coils(offset, count=count, device_id=unit_id)
            elif table == ModbusTable.DISCRETE_INPUT:
                rr = client.read_discrete_inputs(offset, count=count, device_id=unit_id)
            elif table == ModbusTable.INPUT_REGISTER:
                rr = client.read_input_registers(offset, count=count, device_id=unit_id)
            else:
                rr = client.read_holding_registers(offset, count=count, device_id=unit_id)
        except ModbusException as e:
            raise ReadError(str(e), ip=session.ip, tag=tag, cause=e) from e

        if rr.isError():
            raise ReadError(
                f"{table.value} read at {offset} failed: {rr}", ip=session.ip, tag=tag
            )

        if table in BIT_TABLES:
            bits = getattr(rr, "bits", None)
            if bits is None or len(bits) < count:
                raise ReadError("Short bit response", ip=session.ip, tag=tag)
            # Bit responses are padded to a whole byte
            return list(bits[:count])

        registers = getattr(rr, "registers", None)
        if registers is None or len(registers) < count:
            raise ReadError("Short register response", ip=session.ip, tag=tag)
        return list(registers[:count])


class AuboModbusAdapter(ModbusAdapter):
    """
    Modbus robot variant A.

    DI/DO use the unit-less discrete input read, which addresses unit 0.
    """

    family = DeviceFamily.AUBO

    FIELD_TABLES = {
        "Joint": ModbusTable.INPUT_REGISTER,
        "DI": ModbusTable.DISCRETE_INPUT,
        "DO": ModbusTable.DISCRETE_INPUT,
        "AO": ModbusTable.HOLDING_REGISTER,
    }
    FIELD_UNIT_IDS = {
        "DI": 0,
        "DO": 0,
    }


class EliteModbusAdapter(ModbusAdapter):
    """Modbus robot variant B: everything lives in holding registers"""

    family = DeviceFamily.ELITE

    FIELD_TABLES = {
        "Joint": ModbusTable.HOLDING_REGISTER,
        "DI": ModbusTable.HOLDING_REGISTER,
        "DO": ModbusTable.HOLDING_REGISTER,
    }


class GenericModbusAdapter(ModbusAdapter):
    """Generic Modbus-TCP device; tags are named after the read function"""

    family = DeviceFamily.MODBUS_TCP

    FIELD_TABLES = {
        "ReadCoils": ModbusTable.COIL,
        "ReadInputs": ModbusTable.DISCRETE_INPUT,
        "ReadHoldingRegisters": ModbusTable.HOLDING_REGISTER,
        "ReadInputRegisters": ModbusTable.INPUT_REGISTER,
    }


class XinJieModbusAdapter(ModbusAdapter):
    """XinJie PLC: REAL and INT data in holding registers"""

    family = DeviceFamily.XINJIE

    FIELD_TABLES = {
        "REAL": ModbusTable.HOLDING_REGISTER,
        "INT": ModbusTable.HOLDING_REGISTER,
    }
