"""
fieldpoll Protocol Adapters

One adapter per device family, plus the register decoders they feed.
"""

from fieldpoll.drivers.base import AddressSpec, DeviceFamily, ProtocolAdapter, Session

__all__ = [
    'AddressSpec',
    'DeviceFamily',
    'ProtocolAdapter',
    'Session',
]
