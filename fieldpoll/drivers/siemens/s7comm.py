"""
Siemens S7comm Protocol Adapter

Reads data block byte ranges from S7-1200 PLCs.
Uses python-snap7 library for low-level communication.
"""

import logging

from snap7.client import Client

from fieldpoll.drivers.base import AddressSpec, DeviceFamily, ProtocolAdapter, Session
from fieldpoll.errors import ConfigurationError, DeviceConnectionError, ReadError

logger = logging.getLogger(__name__)


class S7Session(Session):
    """Open S7comm connection to one PLC"""

    def __init__(self, ip: str, client: Client):
        super().__init__(ip)
        self.client = client

    def _release(self) -> None:
        try:
            self.client.disconnect()
        except Exception as e:
            logger.warning("Error disconnecting S7 client for %s: %s", self.ip, e)


class SiemensS7Adapter(ProtocolAdapter):
    """
    Siemens S7 adapter using S7comm protocol.

    Every tag is a data block read with address parameters
    [db_number, start_byte, byte_length].
    """

    family = DeviceFamily.SIEMENS_1200

    DEFAULT_RACK = 0
    DEFAULT_SLOT = 1

    def __init__(self, timeout: float = 3.0, rack: int = DEFAULT_RACK, slot: int = DEFAULT_SLOT):
        super().__init__(timeout)
        self._rack = rack
        self._slot = slot

    def supported_tags(self) -> None:
        return None

    def validate_spec(self, tag: str, spec: AddressSpec) -> None:
        if len(spec) != 3:
            raise ConfigurationError(
                f"S7 tag {tag!r} needs [db_number, start_byte, byte_length], got {list(spec)}",
                key=tag,
            )
        if spec[2] == 0:
            raise ConfigurationError(f"S7 tag {tag!r} has a zero byte length", key=tag)

    def open(self, ip: str) -> S7Session:
        """
        Connect to the PLC.

        Args:
            ip: IP address of the PLC

        Returns:
            S7Session wrapping the connected client
        """
        client = Client()
        try:
            client.connect(ip, self._rack, self._slot)
            connected = client.get_connected()
        except Exception as e:
            raise DeviceConnectionError(
                f"Failed to connect to S7 PLC at {ip}: {e}", ip=ip, cause=e
            ) from e

        if not connected:
            raise DeviceConnectionError(f"S7 PLC at {ip} did not accept the connection", ip=ip)

        return S7Session(ip, client)

    def read_field(self, session: Session, tag: str, spec: AddressSpec) -> bytes:
        db_number, start, size = spec[0], spec[1], spec[2]
        try:
            data = session.client.db_read(db_number, start, size)
        except Exception as e:
            raise ReadError(
                f"DB{db_number} read at {start} ({size} bytes) failed: {e}",
                ip=session.ip,
                tag=tag,
                cause=e,
            ) from e

        if len(data) < size:
            raise ReadError("Short data block response", ip=session.ip, tag=tag)
        return bytes(data[:size])
