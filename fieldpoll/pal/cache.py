"""
Device Snapshot Cache

Holds the first DataRecord produced for each IP for the life of the process.
Records are never refreshed or expired, failure records included.
"""

import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fieldpoll.pal.orchestrator import DataRecord

logger = logging.getLogger(__name__)


class DeviceCache:
    """
    Thread-safe insert-once map of IP -> DataRecord.

    Concurrent first requests for the same IP may each run their compute
    function, but only the first record inserted is kept and every caller
    receives that record.
    """

    def __init__(self):
        self._records: dict[str, 'DataRecord'] = {}
        self._lock = threading.Lock()

    def get(self, ip: str) -> 'DataRecord | None':
        with self._lock:
            return self._records.get(ip)

    def get_or_compute(self, ip: str, compute: Callable[[], 'DataRecord']) -> 'DataRecord':
        """
        Return the cached record for an IP, computing it on first use.

        Args:
            ip: Device IP address
            compute: Produces the record; runs outside the lock

        Returns:
            The record stored for the IP
        """
        cached = self.get(ip)
        if cached is not None:
            logger.debug("Cache hit for %s", ip)
            return cached

        record = compute()
        with self._lock:
            stored = self._records.setdefault(ip, record)

        if stored is not record:
            logger.debug("Discarding duplicate record for %s", ip)
        return stored

    def __contains__(self, ip: object) -> bool:
        with self._lock:
            return ip in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
