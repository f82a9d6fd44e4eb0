"""
Address Map

Per-family table of device IP -> field tag -> address spec, built once at
startup from the configuration and read-only afterwards.
"""

import configparser
import logging
from collections.abc import Callable, Iterator, Mapping
from concurrent.futures import ThreadPoolExecutor
from types import MappingProxyType

from fieldpoll.drivers.base import AddressSpec
from fieldpoll.errors import ConfigurationError

logger = logging.getLogger(__name__)

IP_KEY = "IP"
UINT16_MAX = 0xFFFF

SpecValidator = Callable[[str, AddressSpec], None]


class AddressMap:
    """
    Immutable map of IP -> {tag: AddressSpec} for one device family.

    IPs keep their configured order and each IP's tags keep their
    declaration order.
    """

    def __init__(self, family: str, entries: Mapping[str, Mapping[str, AddressSpec]]):
        self._family = family
        self._entries: dict[str, Mapping[str, AddressSpec]] = {
            ip: MappingProxyType(dict(fields)) for ip, fields in entries.items()
        }

    @property
    def family(self) -> str:
        return self._family

    @property
    def ips(self) -> list[str]:
        """Configured IPs in declaration order"""
        return list(self._entries)

    def fields(self, ip: str) -> Mapping[str, AddressSpec]:
        """
        Get the field tags configured for an IP.

        Raises:
            KeyError: If the IP is not configured for this family
        """
        return self._entries[ip]

    def __contains__(self, ip: object) -> bool:
        return ip in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"AddressMap(family={self._family!r}, ips={self.ips!r})"


def parse_ip_list(raw: str) -> list[str]:
    """Split a comma-separated IP list, dropping blanks and duplicates"""
    ips: list[str] = []
    for part in raw.split(','):
        ip = part.strip()
        if ip and ip not in ips:
            ips.append(ip)
    return ips


def parse_address_spec(raw: str, *, section: str = "", key: str = "") -> AddressSpec:
    """
    Parse "n,n[,n]" into an AddressSpec.

    Count and length checks depend on the family and are left to the
    adapter's validate_spec.

    Raises:
        ConfigurationError: If any component is not an unsigned 16-bit integer
    """
    spec = []
    for part in raw.split(','):
        text = part.strip()
        # ASCII digits only, no sign, underscore or other scripts
        if not (text.isascii() and text.isdigit()):
            raise ConfigurationError(
                f"[{section}] {key} = {raw!r}: {text!r} is not an unsigned integer",
                section=section,
                key=key,
            )
        value = int(text)
        if not 0 <= value <= UINT16_MAX:
            raise ConfigurationError(
                f"[{section}] {key} = {raw!r}: {value} is outside 0-{UINT16_MAX}",
                section=section,
                key=key,
            )
        spec.append(value)

    return tuple(spec)


def _load_ip_fields(
    config: configparser.ConfigParser,
    ip: str,
    validate: SpecValidator | None,
) -> dict[str, AddressSpec]:
    if not config.has_section(ip):
        raise ConfigurationError(f"No configuration section for device {ip}", section=ip)

    fields: dict[str, AddressSpec] = {}
    for tag, raw in config.items(ip):
        spec = parse_address_spec(raw, section=ip, key=tag)
        if validate is not None:
            try:
                validate(tag, spec)
            except ConfigurationError as e:
                raise ConfigurationError(f"[{ip}] {e}", section=ip, key=tag) from e
        fields[tag] = spec
    return fields


def load_address_map(
    config: configparser.ConfigParser,
    family: str,
    validate: SpecValidator | None = None,
    max_workers: int = 8,
) -> AddressMap:
    """
    Build the AddressMap for one device family.

    Args:
        config: Parsed gateway configuration
        family: Family section name (e.g. "Elite")
        validate: Optional per-tag arity check from the family's adapter
        max_workers: Threads used to parse IP sections in parallel

    Returns:
        AddressMap with one entry per configured IP

    Raises:
        ConfigurationError: If the family has no IP list, an IP has no
            section, or an address spec is malformed
    """
    if not config.has_section(family):
        raise ConfigurationError(f"No configuration section for family {family}", section=family)
    if not config.has_option(family, IP_KEY):
        raise ConfigurationError(f"[{family}] has no {IP_KEY} list", section=family, key=IP_KEY)

    ips = parse_ip_list(config.get(family, IP_KEY))
    if not ips:
        logger.warning("[%s] lists no devices", family)
        return AddressMap(family, {})

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(ips)))) as executor:
        loaded = list(executor.map(lambda ip: _load_ip_fields(config, ip, validate), ips))

    entries = dict(zip(ips, loaded))
    logger.info("Loaded %d %s device(s): %s", len(entries), family, ", ".join(ips))
    return AddressMap(family, entries)
