"""
Device Liveness Probe

A single ICMP echo sent before opening a protocol session, so devices that
are powered off or unplugged fail fast instead of paying a connect timeout.
"""

import logging
import platform
import subprocess
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

DEFAULT_PING_TIMEOUT_MS = 100

# Allowance for starting the ping process on top of the echo timeout
PROCESS_GRACE_S = 0.5


class LivenessProbe(ABC):
    """Reachability check run before every first acquisition of a device"""

    @abstractmethod
    def probe(self, ip: str) -> bool:
        """
        Check whether a device answers.

        Args:
            ip: IP address of the device

        Returns:
            True only if the device replied
        """
        pass


class PingProbe(LivenessProbe):
    """
    ICMP echo via the system ping command.

    One echo, no retry. Any failure (timeout, unreachable, missing ping
    binary) reports the device as not reachable.
    """

    def __init__(self, timeout_ms: int = DEFAULT_PING_TIMEOUT_MS):
        self._timeout_ms = timeout_ms

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    def build_command(self, ip: str) -> list[str]:
        """
        Build the platform ping command line.

        Windows takes -w in milliseconds, macOS takes -W in milliseconds,
        Linux (iputils) takes -W in seconds, fractions allowed.
        """
        system = platform.system().lower()
        if system == 'windows':
            return ['ping', '-n', '1', '-w', str(self._timeout_ms), ip]
        if system == 'darwin':
            return ['ping', '-c', '1', '-W', str(self._timeout_ms), ip]
        seconds = self._timeout_ms / 1000
        return ['ping', '-c', '1', '-W', f'{seconds:g}', ip]

    def probe(self, ip: str) -> bool:
        try:
            result = subprocess.run(
                self.build_command(ip),
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=self._timeout_ms / 1000 + PROCESS_GRACE_S,
            )
        except subprocess.TimeoutExpired:
            logger.debug("Ping to %s timed out", ip)
            return False
        except OSError as e:
            logger.warning("Ping to %s could not run: %s", ip, e)
            return False

        reachable = result.returncode == 0
        logger.debug("Ping %s: %s", ip, "reachable" if reachable else "no reply")
        return reachable
