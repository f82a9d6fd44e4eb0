"""
fieldpoll - Multi-Protocol Field Device Polling Gateway

Reads live data from heterogeneous field devices and returns normalized
snapshots:
- Modbus-TCP devices and PLCs (generic, XinJie)
- Modbus collaborative robots (Aubo, Elite)
- Siemens S7-1200 PLCs
- Fairino robots over XML-RPC

Features:
- Per-family address maps from an INI file
- Ping before connect, per-device failure isolation
- Concurrent fan-out over all devices of a family
- Snapshot cache, JSON over HTTP
"""

__version__ = "1.0.0"

from fieldpoll.pal.gateway import Gateway
from fieldpoll.pal.orchestrator import DataRecord, PollingOrchestrator

__all__ = [
    'DataRecord',
    'Gateway',
    'PollingOrchestrator',
]
