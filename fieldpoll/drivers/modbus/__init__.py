"""
Modbus-TCP Adapters

Supports:
- Modbus robot variant A (Aubo)
- Modbus robot variant B (Elite)
- Generic Modbus-TCP devices
- XinJie PLCs
"""

from fieldpoll.drivers.modbus.modbus_driver import (
    AuboModbusAdapter,
    EliteModbusAdapter,
    GenericModbusAdapter,
    ModbusAdapter,
    ModbusSession,
    ModbusTable,
    XinJieModbusAdapter,
)

__all__ = [
    'AuboModbusAdapter',
    'EliteModbusAdapter',
    'GenericModbusAdapter',
    'ModbusAdapter',
    'ModbusSession',
    'ModbusTable',
    'XinJieModbusAdapter',
]
