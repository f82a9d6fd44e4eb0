"""
fieldpoll Polling Layer

Address maps, liveness probing, the snapshot cache and the per-family
polling orchestrator.
"""

from fieldpoll.pal.address_map import AddressMap, load_address_map
from fieldpoll.pal.cache import DeviceCache
from fieldpoll.pal.gateway import AdapterFactory, Gateway
from fieldpoll.pal.liveness import LivenessProbe, PingProbe
from fieldpoll.pal.orchestrator import (
    AcquisitionOutcome,
    DataRecord,
    OutcomeStatus,
    PollingOrchestrator,
)

__all__ = [
    'AcquisitionOutcome',
    'AdapterFactory',
    'AddressMap',
    'DataRecord',
    'DeviceCache',
    'Gateway',
    'LivenessProbe',
    'OutcomeStatus',
    'PingProbe',
    'PollingOrchestrator',
    'load_address_map',
]
