"""
Fairino Robot RPC Adapter

Reads joint positions and digital inputs from Fairino collaborative robot
controllers through their XML-RPC service.
"""

import logging
import socket
import xmlrpc.client
from typing import Any

from fieldpoll.drivers.base import AddressSpec, DeviceFamily, ProtocolAdapter, Session
from fieldpoll.errors import DeviceConnectionError, ReadError

logger = logging.getLogger(__name__)


class _TimeoutTransport(xmlrpc.client.Transport):
    """XML-RPC transport with a socket timeout"""

    def __init__(self, timeout: float):
        super().__init__()
        self._timeout = timeout

    def make_connection(self, host):
        connection = super().make_connection(host)
        connection.timeout = self._timeout
        return connection


class FairinoSession(Session):
    """RPC handle to one robot controller"""

    def __init__(self, ip: str, proxy: xmlrpc.client.ServerProxy):
        super().__init__(ip)
        self.proxy = proxy

    def call(self, method: str, *args: Any) -> list[Any]:
        """
        Invoke a controller method and check its error code.

        The controller answers with a list whose first item is an error
        code (0 on success) followed by the payload.

        Raises:
            ReadError: On a closed session, transport failure or error code
        """
        if self.closed:
            raise ReadError(f"RPC session is closed, cannot call {method}", ip=self.ip)

        try:
            result = getattr(self.proxy, method)(*args)
        except (OSError, xmlrpc.client.Error) as e:
            raise ReadError(f"{method} failed: {e}", ip=self.ip, cause=e) from e

        if not isinstance(result, (list, tuple)) or not result:
            raise ReadError(f"{method} returned {result!r}", ip=self.ip)
        if result[0] != 0:
            raise ReadError(f"{method} returned error code {result[0]}", ip=self.ip)
        return list(result)

    def _release(self) -> None:
        try:
            self.proxy("close")()
        except Exception as e:
            logger.warning("Error closing RPC handle for %s: %s", self.ip, e)


class FairinoRPCAdapter(ProtocolAdapter):
    """
    Robot RPC adapter.

    Tags:
    - Joint: actual joint positions in degrees (6 floats)
    - DI: one digital input call per channel in [offset, offset + count)

    With close_session_per_field the session is closed after every
    configured tag, so a second tag on the same device reads from a closed
    handle and fails the whole record.
    """

    family = DeviceFamily.FAIRINO

    DEFAULT_RPC_PORT = 20003
    JOINT_COUNT = 6

    def __init__(
        self,
        timeout: float = 3.0,
        port: int = DEFAULT_RPC_PORT,
        close_session_per_field: bool = True,
    ):
        super().__init__(timeout)
        self._port = port
        self._close_session_per_field = close_session_per_field

    @property
    def close_session_per_field(self) -> bool:
        return self._close_session_per_field

    def supported_tags(self) -> frozenset[str]:
        return frozenset({"Joint", "DI"})

    def open(self, ip: str) -> FairinoSession:
        """
        Check the RPC port and create the controller handle.

        Args:
            ip: IP address of the robot controller

        Returns:
            FairinoSession for the controller
        """
        try:
            with socket.create_connection((ip, self._port), timeout=self._timeout):
                pass
        except OSError as e:
            raise DeviceConnectionError(
                f"RPC service at {ip}:{self._port} unreachable: {e}", ip=ip, cause=e
            ) from e

        proxy = xmlrpc.client.ServerProxy(
            f"http://{ip}:{self._port}/RPC2",
            transport=_TimeoutTransport(self._timeout),
            allow_none=True,
        )
        return FairinoSession(ip, proxy)

    def read_field(self, session: Session, tag: str, spec: AddressSpec) -> list[Any] | None:
        if tag == "Joint":
            result = session.call("GetActualJointPosDegree", 0)
            joints = result[1:1 + self.JOINT_COUNT]
            if len(joints) < self.JOINT_COUNT:
                raise ReadError("Short joint position response", ip=session.ip, tag=tag)
            return joints

        if tag == "DI":
            offset, count = spec[0], spec[1]
            values = []
            for channel in range(offset, offset + count):
                result = session.call("GetDI", channel, 0)
                if len(result) < 2:
                    raise ReadError(f"Short GetDI response for channel {channel}",
                                    ip=session.ip, tag=tag)
                values.append(result[1])
            return values

        return None

    def end_field(self, session: Session) -> None:
        if self._close_session_per_field:
            session.close()
