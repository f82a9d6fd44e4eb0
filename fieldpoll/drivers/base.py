"""
Base Protocol Adapter Interface

Defines the abstract interface every device-family adapter implements.
The polling orchestrator only talks to devices through this interface:
open a session, read each configured field, close the session.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from fieldpoll.errors import ConfigurationError

# Ordered unsigned 16-bit parameters, usually [offset, count]
AddressSpec = tuple[int, ...]


class DeviceFamily(Enum):
    """Supported device families, valued by their configuration section name"""
    AUBO = "Aubo"                  # Modbus robot variant A
    ELITE = "Elite"                # Modbus robot variant B
    MODBUS_TCP = "ModbusTCP"       # Generic Modbus-TCP device
    XINJIE = "XinJie"              # XinJie PLC over Modbus-TCP
    SIEMENS_1200 = "Siemens1200"   # Siemens S7 PLC
    FAIRINO = "Fairino"            # Robot RPC controller

    @classmethod
    def from_name(cls, name: str) -> 'DeviceFamily':
        """Look up a family by section name, ignoring case"""
        for family in cls:
            if family.value.lower() == name.strip().lower():
                return family
        raise ValueError(f"Unknown device family: {name!r}")


class Session(ABC):
    """
    An open, exclusively owned transport handle to one device.

    close() must be safe to call more than once.
    """

    def __init__(self, ip: str):
        self.ip = ip
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the transport"""
        if self._closed:
            return
        self._closed = True
        self._release()

    @abstractmethod
    def _release(self) -> None:
        """Close the underlying client"""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class ProtocolAdapter(ABC):
    """
    Abstract base class for all device-family adapters.

    Each adapter knows how to open a session to one IP and which read
    primitive serves each field tag of its family.
    """

    family: DeviceFamily

    # Minimum number of address parameters for a recognised tag
    MIN_SPEC_LENGTH = 2

    def __init__(self, timeout: float = 3.0):
        self._timeout = timeout

    @property
    def timeout(self) -> float:
        return self._timeout

    @abstractmethod
    def supported_tags(self) -> frozenset[str] | None:
        """
        Tags this family knows how to read.

        Returns:
            Set of tag names, or None if every tag is readable
        """
        pass

    def supports(self, tag: str) -> bool:
        tags = self.supported_tags()
        return tags is None or tag in tags

    def validate_spec(self, tag: str, spec: AddressSpec) -> None:
        """
        Check the arity of an address spec for a recognised tag.

        Unrecognised tags are not checked; they are skipped at read time.

        Raises:
            ConfigurationError: If the spec is too short or the count is zero
        """
        if not self.supports(tag):
            return
        if len(spec) < self.MIN_SPEC_LENGTH:
            raise ConfigurationError(
                f"{self.family.value} tag {tag!r} needs at least "
                f"{self.MIN_SPEC_LENGTH} address parameters, got {list(spec)}",
                key=tag,
            )
        if spec[1] == 0:
            raise ConfigurationError(
                f"{self.family.value} tag {tag!r} has a zero count",
                key=tag,
            )

    # ===================
    # Session Methods
    # ===================

    @abstractmethod
    def open(self, ip: str) -> Session:
        """
        Open a session to the device.

        Args:
            ip: IP address of the device

        Returns:
            Open Session owned by the caller

        Raises:
            DeviceConnectionError: If the transport cannot be established
        """
        pass

    @abstractmethod
    def read_field(self, session: Session, tag: str, spec: AddressSpec) -> Any | None:
        """
        Read the raw data for one field tag.

        Args:
            session: Session returned by open()
            tag: Field tag name (e.g. "Joint", "DI")
            spec: Address parameters for the tag

        Returns:
            Raw data for the decoder, or None if the tag is not recognised

        Raises:
            ReadError: If the device rejects or fails the read
        """
        pass

    def end_field(self, session: Session) -> None:
        """Called after every configured tag, recognised or not"""
        pass
