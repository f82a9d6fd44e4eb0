"""
Siemens PLC Adapters

Supports:
- S7-1200 (S7comm protocol, data block reads)
"""

from fieldpoll.drivers.siemens.s7comm import S7Session, SiemensS7Adapter

__all__ = ['S7Session', 'SiemensS7Adapter']
