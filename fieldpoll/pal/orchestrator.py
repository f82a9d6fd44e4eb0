"""
Polling Orchestrator

Acquires one snapshot per device: liveness probe, protocol session, read and
decode every configured field, close the session. Per-device failures are
turned into null-data records; nothing raised by a device leaves this module.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from fieldpoll.drivers.base import ProtocolAdapter
from fieldpoll.drivers.decoders import decode
from fieldpoll.errors import ProtocolError
from fieldpoll.pal.address_map import AddressMap
from fieldpoll.pal.cache import DeviceCache
from fieldpoll.pal.liveness import LivenessProbe

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y/%m/%d %H:%M:%S"

DEFAULT_MAX_WORKERS = 16


def timestamp_now() -> str:
    """Local wall-clock time in record format"""
    return datetime.now().strftime(TIMESTAMP_FORMAT)


@dataclass(frozen=True)
class DataRecord:
    """Snapshot of one device; data is None when acquisition failed"""
    ip: str
    data: dict[str, Any] | None
    timestamp: str

    @classmethod
    def empty(cls, ip: str) -> 'DataRecord':
        """Null-data record stamped now"""
        return cls(ip=ip, data=None, timestamp=timestamp_now())

    @property
    def ok(self) -> bool:
        return self.data is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ip": self.ip,
            "data": self.data,
            "timestamp": self.timestamp,
        }


class OutcomeStatus(Enum):
    """Result of one device acquisition"""
    SUCCESS = "success"
    UNREACHABLE = "unreachable"
    PROTOCOL_ERROR = "protocol_error"
    AGGREGATION_FAILURE = "aggregation_failure"


@dataclass(frozen=True)
class AcquisitionOutcome:
    """Explicit success/failure result, collapsed to a DataRecord at the boundary"""
    status: OutcomeStatus
    data: dict[str, Any] | None = None
    reason: str = ""

    @classmethod
    def success(cls, data: dict[str, Any]) -> 'AcquisitionOutcome':
        return cls(OutcomeStatus.SUCCESS, data=data)

    @classmethod
    def failure(cls, status: OutcomeStatus, reason: str) -> 'AcquisitionOutcome':
        return cls(status, reason=reason)

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS

    def to_record(self, ip: str) -> DataRecord:
        return DataRecord(
            ip=ip,
            data=self.data if self.ok else None,
            timestamp=timestamp_now(),
        )


class PollingOrchestrator:
    """
    Snapshot acquisition for every device of one family.

    Usage:
        orchestrator = PollingOrchestrator(address_map, adapter, PingProbe())
        record = orchestrator.get_one("192.168.1.20")
        records = orchestrator.get_all()
    """

    def __init__(
        self,
        address_map: AddressMap,
        adapter: ProtocolAdapter,
        probe: LivenessProbe,
        cache: DeviceCache | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        """
        Initialize orchestrator.

        Args:
            address_map: Field tags per IP for this family
            adapter: Protocol adapter for this family
            probe: Reachability check run before opening a session
            cache: Snapshot cache (a new one if omitted)
            max_workers: Maximum concurrent device tasks in get_all
        """
        self._address_map = address_map
        self._adapter = adapter
        self._probe = probe
        self._cache = cache if cache is not None else DeviceCache()
        self._max_workers = max_workers

    @property
    def family(self) -> str:
        return self._adapter.family.value

    @property
    def address_map(self) -> AddressMap:
        return self._address_map

    @property
    def cache(self) -> DeviceCache:
        return self._cache

    def acquire(self, ip: str) -> AcquisitionOutcome:
        """
        Run one uncached acquisition for a configured IP.

        Steps are strictly sequential: probe, open, read and decode each
        tag in declared order, close.
        """
        fields = self._address_map.fields(ip)

        try:
            reachable = self._probe.probe(ip)
        except Exception as e:
            logger.warning("%s device %s: liveness probe failed: %s", self.family, ip, e)
            reachable = False

        if not reachable:
            logger.warning("%s device %s is unreachable", self.family, ip)
            return AcquisitionOutcome.failure(OutcomeStatus.UNREACHABLE, "no ping reply")

        try:
            session = self._adapter.open(ip)
        except ProtocolError as e:
            logger.warning("%s device %s: %s", self.family, ip, e)
            return AcquisitionOutcome.failure(OutcomeStatus.PROTOCOL_ERROR, str(e))
        except Exception as e:
            logger.exception("%s device %s: unexpected error opening session", self.family, ip)
            return AcquisitionOutcome.failure(OutcomeStatus.PROTOCOL_ERROR, str(e))

        try:
            data: dict[str, Any] = {}
            for tag, spec in fields.items():
                raw = self._adapter.read_field(session, tag, spec)
                if raw is not None:
                    data[tag] = decode(self._adapter.family, tag, raw)
                self._adapter.end_field(session)
            return AcquisitionOutcome.success(data)
        except ProtocolError as e:
            logger.warning("%s device %s: %s", self.family, ip, e)
            return AcquisitionOutcome.failure(OutcomeStatus.PROTOCOL_ERROR, str(e))
        except Exception as e:
            logger.exception("%s device %s: unexpected error", self.family, ip)
            return AcquisitionOutcome.failure(OutcomeStatus.PROTOCOL_ERROR, str(e))
        finally:
            session.close()

    def get_one(self, ip: str) -> DataRecord:
        """
        Get the snapshot for one device.

        The first result for a configured IP, success or failure, is
        cached and returned for every later request. IPs outside the
        address map get an uncached null-data record.
        """
        if ip not in self._address_map:
            logger.warning("%s device %s is not configured", self.family, ip)
            return DataRecord.empty(ip)

        return self._cache.get_or_compute(ip, lambda: self.acquire(ip).to_record(ip))

    def get_all(self, ips: list[str] | None = None) -> list[DataRecord]:
        """
        Get snapshots for many devices concurrently.

        Args:
            ips: IPs to poll (default: every configured IP)

        Returns:
            One record per IP in completion order. If the fan-out itself
            fails, a null-data record for every IP.
        """
        ips = list(self._address_map.ips if ips is None else ips)
        if not ips:
            return []

        records: list[DataRecord] = []
        try:
            with ThreadPoolExecutor(max_workers=min(self._max_workers, len(ips))) as executor:
                futures = {executor.submit(self.get_one, ip): ip for ip in ips}
                for future in as_completed(futures):
                    records.append(future.result())
        except Exception:
            logger.exception("%s fan-out failed, returning empty records", self.family)
            failed = AcquisitionOutcome.failure(OutcomeStatus.AGGREGATION_FAILURE, "fan-out failed")
            return [failed.to_record(ip) for ip in ips]

        return records
