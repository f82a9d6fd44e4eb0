"""
Gateway configuration file handling.

The configuration is an INI file. Each device family has a section with a
comma-separated IP list, each IP has its own section of field tags, and an
optional [Gateway] section carries gateway-wide settings:

    [Gateway]
    ping_timeout_ms = 100
    port = 8080

    [Elite]
    IP = 192.168.1.20,192.168.1.21

    [192.168.1.20]
    Joint = 0,6      ; offset, count
    DI = 100,2
"""

import configparser
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

from fieldpoll.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "config.ini"
CONFIG_ENV_VAR = "FIELDPOLL_CONFIG"
GATEWAY_SECTION = "Gateway"

# Comments start at # or ; anywhere on a line, with or without leading space
COMMENT_PATTERN = re.compile(r"[#;].*")

# configparser default section renamed out of reach ("[\n]" cannot be a header)
NO_DEFAULT_SECTION = "\n"


def default_config_path() -> Path:
    """Config path from FIELDPOLL_CONFIG, else config.ini in the working directory"""
    return Path(os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_FILE))


def strip_comments(text: str) -> str:
    """Drop everything from the first # or ; to the end of each line"""
    return "\n".join(COMMENT_PATTERN.sub("", line) for line in text.splitlines())


def new_parser() -> configparser.ConfigParser:
    """
    Parser with case-preserved keys.

    The file format has no [DEFAULT] section, so configparser's default
    section is moved to a name that cannot appear in a file; a literal
    [DEFAULT] is then an ordinary section.
    """
    parser = configparser.ConfigParser(
        comment_prefixes=('#', ';'),
        interpolation=None,
        default_section=NO_DEFAULT_SECTION,
    )
    parser.optionxform = str
    return parser


def read_config(path: str | Path) -> configparser.ConfigParser:
    """
    Read the gateway INI file.

    Args:
        path: Path to the INI file (UTF-8, BOM allowed)

    Returns:
        Parsed configuration

    Raises:
        ConfigurationError: If the file is missing or not valid INI
    """
    path = Path(path)
    parser = new_parser()
    try:
        with open(path, encoding='utf-8-sig') as f:
            parser.read_string(strip_comments(f.read()), source=str(path))
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {path}") from None
    except configparser.Error as e:
        raise ConfigurationError(f"Malformed configuration file {path}: {e}") from e

    logger.debug("Loaded configuration from %s (%d sections)", path, len(parser.sections()))
    return parser


def parse_config_string(text: str) -> configparser.ConfigParser:
    """Parse INI text with the same rules as read_config"""
    parser = new_parser()
    try:
        parser.read_string(strip_comments(text))
    except configparser.Error as e:
        raise ConfigurationError(f"Malformed configuration: {e}") from e
    return parser


@dataclass
class GatewaySettings:
    """Gateway-wide settings from the optional [Gateway] section"""
    ping_timeout_ms: int = 100
    connect_timeout: float = 3.0
    max_workers: int = 16
    rpc_close_per_field: bool = True
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    @classmethod
    def from_config(cls, config: configparser.ConfigParser) -> 'GatewaySettings':
        """
        Build settings from a parsed configuration.

        Missing keys keep their defaults.

        Raises:
            ConfigurationError: If a value has the wrong type or range
        """
        settings = cls()
        if not config.has_section(GATEWAY_SECTION):
            return settings

        section = config[GATEWAY_SECTION]
        try:
            settings.ping_timeout_ms = section.getint('ping_timeout_ms', settings.ping_timeout_ms)
            settings.connect_timeout = section.getfloat('connect_timeout', settings.connect_timeout)
            settings.max_workers = section.getint('max_workers', settings.max_workers)
            settings.rpc_close_per_field = section.getboolean(
                'rpc_close_per_field', settings.rpc_close_per_field
            )
            settings.port = section.getint('port', settings.port)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid value in [{GATEWAY_SECTION}]: {e}", section=GATEWAY_SECTION
            ) from e

        settings.host = section.get('host', settings.host)
        settings.log_level = section.get('log_level', settings.log_level).upper()

        if settings.ping_timeout_ms <= 0:
            raise ConfigurationError("ping_timeout_ms must be positive", section=GATEWAY_SECTION)
        if settings.connect_timeout <= 0:
            raise ConfigurationError("connect_timeout must be positive", section=GATEWAY_SECTION)
        if settings.max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1", section=GATEWAY_SECTION)

        return settings
