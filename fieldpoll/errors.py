"""
Exception hierarchy for fieldpoll.

ConfigurationError is fatal at startup. ProtocolError and its subclasses are
raised by protocol adapters and decoders and are absorbed per device by the
polling orchestrator.
"""


class FieldPollError(Exception):
    """Base exception for fieldpoll."""


class ConfigurationError(FieldPollError):
    """Raised when the gateway configuration is malformed."""

    def __init__(
        self,
        message: str,
        *,
        section: str | None = None,
        key: str | None = None,
    ) -> None:
        self.section = section
        self.key = key
        super().__init__(message)


class ProtocolError(FieldPollError):
    """Raised when talking to a device fails (connect, read or decode)."""

    def __init__(
        self,
        message: str,
        *,
        ip: str | None = None,
        tag: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.ip = ip
        self.tag = tag
        self.cause = cause
        super().__init__(message)


class DeviceConnectionError(ProtocolError):
    """Raised when a session to a device cannot be established."""


class ReadError(ProtocolError):
    """Raised when a protocol read returns an error or a short response."""


class DecodeError(ProtocolError):
    """Raised when raw device data cannot be decoded for its field tag."""
