"""
Gateway Assembly

Builds one polling orchestrator per configured device family from the
gateway configuration file.
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from fieldpoll.config import GatewaySettings, read_config
from fieldpoll.drivers.base import DeviceFamily, ProtocolAdapter
from fieldpoll.drivers.fairino import FairinoRPCAdapter
from fieldpoll.drivers.modbus import (
    AuboModbusAdapter,
    EliteModbusAdapter,
    GenericModbusAdapter,
    XinJieModbusAdapter,
)
from fieldpoll.drivers.siemens import SiemensS7Adapter
from fieldpoll.pal.address_map import load_address_map
from fieldpoll.pal.cache import DeviceCache
from fieldpoll.pal.liveness import LivenessProbe, PingProbe
from fieldpoll.pal.orchestrator import PollingOrchestrator

logger = logging.getLogger(__name__)


class AdapterFactory:
    """
    Factory for protocol adapters.

    Maps each device family to the adapter class that reads it.
    """

    _adapters: dict[DeviceFamily, type[ProtocolAdapter]] = {}

    @classmethod
    def register_adapter(cls, family: DeviceFamily, adapter_class: type[ProtocolAdapter]) -> None:
        """
        Register an adapter class for a family.

        Args:
            family: DeviceFamily enum value
            adapter_class: ProtocolAdapter subclass for this family
        """
        cls._adapters[family] = adapter_class

    @classmethod
    def create(cls, family: DeviceFamily | str, settings: GatewaySettings | None = None) -> ProtocolAdapter:
        """
        Create the adapter for a family.

        Args:
            family: Family enum or section name
            settings: Gateway settings (defaults if None)

        Raises:
            ValueError: If the family is unknown or has no adapter
        """
        if isinstance(family, str):
            family = DeviceFamily.from_name(family)
        if family not in cls._adapters:
            raise ValueError(f"No adapter registered for family: {family.value}")

        settings = settings or GatewaySettings()
        kwargs: dict[str, Any] = {'timeout': settings.connect_timeout}
        if family == DeviceFamily.FAIRINO:
            kwargs['close_session_per_field'] = settings.rpc_close_per_field

        return cls._adapters[family](**kwargs)


AdapterFactory.register_adapter(DeviceFamily.AUBO, AuboModbusAdapter)
AdapterFactory.register_adapter(DeviceFamily.ELITE, EliteModbusAdapter)
AdapterFactory.register_adapter(DeviceFamily.MODBUS_TCP, GenericModbusAdapter)
AdapterFactory.register_adapter(DeviceFamily.XINJIE, XinJieModbusAdapter)
AdapterFactory.register_adapter(DeviceFamily.SIEMENS_1200, SiemensS7Adapter)
AdapterFactory.register_adapter(DeviceFamily.FAIRINO, FairinoRPCAdapter)


class Gateway:
    """
    All configured families, each with its own address map, cache and
    orchestrator.

    Usage:
        gateway = Gateway.from_config("config.ini")
        record = gateway.orchestrator("Elite").get_one("192.168.1.20")
    """

    def __init__(self, settings: GatewaySettings, orchestrators: dict[DeviceFamily, PollingOrchestrator]):
        self._settings = settings
        self._orchestrators = dict(orchestrators)

    @property
    def settings(self) -> GatewaySettings:
        return self._settings

    @classmethod
    def from_config(cls, path: str | Path, probe: LivenessProbe | None = None) -> 'Gateway':
        """
        Load the configuration file and build the gateway.

        Raises:
            ConfigurationError: If the configuration is malformed
        """
        return cls.from_parser(read_config(path), probe=probe)

    @classmethod
    def from_parser(
        cls,
        config: configparser.ConfigParser,
        probe: LivenessProbe | None = None,
    ) -> 'Gateway':
        """
        Build the gateway from a parsed configuration.

        Only families whose section exists are served.
        """
        settings = GatewaySettings.from_config(config)
        probe = probe or PingProbe(settings.ping_timeout_ms)

        orchestrators: dict[DeviceFamily, PollingOrchestrator] = {}
        for family in DeviceFamily:
            if not config.has_section(family.value):
                continue

            adapter = AdapterFactory.create(family, settings)
            address_map = load_address_map(
                config,
                family.value,
                validate=adapter.validate_spec,
                max_workers=settings.max_workers,
            )
            orchestrators[family] = PollingOrchestrator(
                address_map,
                adapter,
                probe,
                cache=DeviceCache(),
                max_workers=settings.max_workers,
            )

        if not orchestrators:
            logger.warning("No device family sections found in configuration")
        return cls(settings, orchestrators)

    def families(self) -> list[str]:
        """Configured family names"""
        return [family.value for family in self._orchestrators]

    def orchestrator(self, family: DeviceFamily | str) -> PollingOrchestrator:
        """
        Get the orchestrator for a family.

        Raises:
            KeyError: If the family is unknown or not configured
        """
        if isinstance(family, str):
            try:
                family = DeviceFamily.from_name(family)
            except ValueError:
                raise KeyError(family) from None
        return self._orchestrators[family]
