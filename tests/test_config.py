"""Unit tests for configuration loading and address maps."""

import pytest

from fieldpoll.config import (
    CONFIG_ENV_VAR,
    GatewaySettings,
    default_config_path,
    parse_config_string,
    read_config,
)
from fieldpoll.drivers.fairino import FairinoRPCAdapter
from fieldpoll.drivers.modbus import EliteModbusAdapter
from fieldpoll.drivers.siemens import SiemensS7Adapter
from fieldpoll.errors import ConfigurationError
from fieldpoll.pal.address_map import (
    AddressMap,
    load_address_map,
    parse_address_spec,
    parse_ip_list,
)


class TestReadConfig:
    """Tests for INI file reading."""

    def test_read_file(self, config_file):
        """Test reading a configuration from disk."""
        config = read_config(config_file)

        assert config.has_section("Elite")
        assert config.has_section("192.168.1.50")

    def test_keys_keep_case(self, sample_config):
        """Test tag names are not lower-cased."""
        assert list(sample_config["192.168.1.20"]) == ["Joint", "DI"]

    def test_inline_comments_stripped(self, sample_config):
        """Test ; comments after a value are ignored."""
        assert sample_config.get("192.168.1.20", "Joint") == "300,6"

    def test_comments_without_space(self):
        """Test # and ; start a comment even right after a value."""
        config = parse_config_string(
            "[Elite]\nIP = 10.0.0.1;lab\n[10.0.0.1]\nJoint = 300,6;radians\nDI = 400,1#inputs\n"
        )
        address_map = load_address_map(config, "Elite")

        assert address_map.ips == ["10.0.0.1"]
        assert address_map.fields("10.0.0.1") == {"Joint": (300, 6), "DI": (400, 1)}

    def test_file_comments_without_space(self, tmp_path):
        path = tmp_path / "c.ini"
        path.write_text("[Elite];robots\nIP = 10.0.0.1#cell 1\n", encoding="utf-8")

        assert read_config(path).get("Elite", "IP") == "10.0.0.1"

    def test_utf8_bom(self, tmp_path):
        """Test a BOM at the start of the file is accepted."""
        path = tmp_path / "bom.ini"
        path.write_bytes("\ufeff[Elite]\nIP = 10.0.0.1\n".encode("utf-8"))

        config = read_config(path)

        assert config.get("Elite", "IP") == "10.0.0.1"

    def test_missing_file(self, tmp_path):
        """Test a missing file is a configuration error."""
        with pytest.raises(ConfigurationError):
            read_config(tmp_path / "nope.ini")

    def test_malformed(self):
        """Test text without a section header is rejected."""
        with pytest.raises(ConfigurationError):
            parse_config_string("IP = 10.0.0.1\n")

    def test_default_path_from_env(self, monkeypatch, tmp_path):
        """Test the environment variable overrides the default path."""
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "gw.ini"))
        assert default_config_path() == tmp_path / "gw.ini"

    def test_default_path(self, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        assert default_config_path().name == "config.ini"


class TestGatewaySettings:
    """Tests for the [Gateway] section."""

    def test_defaults_without_section(self):
        """Test defaults apply when [Gateway] is absent."""
        settings = GatewaySettings.from_config(parse_config_string("[Elite]\nIP=\n"))

        assert settings == GatewaySettings()
        assert settings.ping_timeout_ms == 100
        assert settings.rpc_close_per_field is True

    def test_overrides(self, sample_config):
        """Test values in [Gateway] override defaults."""
        settings = GatewaySettings.from_config(sample_config)

        assert settings.ping_timeout_ms == 250
        assert settings.max_workers == 4
        assert settings.port == 8080

    def test_boolean_and_level(self):
        config = parse_config_string(
            "[Gateway]\nrpc_close_per_field = no\nlog_level = debug\n"
        )
        settings = GatewaySettings.from_config(config)

        assert settings.rpc_close_per_field is False
        assert settings.log_level == "DEBUG"

    def test_bad_integer(self):
        """Test a non-numeric value is a configuration error."""
        config = parse_config_string("[Gateway]\nport = eighty\n")
        with pytest.raises(ConfigurationError):
            GatewaySettings.from_config(config)

    def test_non_positive_timeout(self):
        config = parse_config_string("[Gateway]\nping_timeout_ms = 0\n")
        with pytest.raises(ConfigurationError):
            GatewaySettings.from_config(config)


class TestParsing:
    """Tests for IP lists and address specs."""

    def test_ip_list_trimmed_and_deduplicated(self):
        """Test blanks and repeats are dropped, order is kept."""
        assert parse_ip_list(" 10.0.0.2, 10.0.0.1,,10.0.0.2 ,") == ["10.0.0.2", "10.0.0.1"]

    def test_ip_list_empty(self):
        assert parse_ip_list("") == []

    def test_spec(self):
        assert parse_address_spec("1, 0, 4") == (1, 0, 4)

    def test_spec_single_value(self):
        assert parse_address_spec("7") == (7,)

    def test_spec_not_integer(self):
        """Test non-numeric components are rejected."""
        with pytest.raises(ConfigurationError) as exc_info:
            parse_address_spec("1,x", section="10.0.0.1", key="DI")
        assert exc_info.value.section == "10.0.0.1"
        assert exc_info.value.key == "DI"

    def test_spec_out_of_range(self):
        """Test components above 65535 are rejected."""
        with pytest.raises(ConfigurationError):
            parse_address_spec("65536,1")

    def test_spec_negative(self):
        with pytest.raises(ConfigurationError):
            parse_address_spec("-1,1")

    def test_spec_zero_second_value_parses(self):
        """Test a zero second value is left to the family check."""
        assert parse_address_spec("1,0,16") == (1, 0, 16)
        assert parse_address_spec("100,0") == (100, 0)

    @pytest.mark.parametrize("raw", ["1_0,1", "+1,1", "0x10,1", "\u0661,1", "1.0,1", ",1"])
    def test_spec_digits_only(self, raw):
        """Test only plain ASCII digits are accepted."""
        with pytest.raises(ConfigurationError):
            parse_address_spec(raw)


class TestLoadAddressMap:
    """Tests for building a family's address map."""

    def test_load(self, sample_config):
        """Test IPs and tags keep their declaration order."""
        address_map = load_address_map(sample_config, "Elite")

        assert address_map.family == "Elite"
        assert address_map.ips == ["192.168.1.20", "192.168.1.21"]
        assert list(address_map.fields("192.168.1.20")) == ["Joint", "DI"]
        assert address_map.fields("192.168.1.20")["Joint"] == (300, 6)
        assert "192.168.1.21" in address_map
        assert "192.168.1.99" not in address_map
        assert len(address_map) == 2

    def test_fields_read_only(self, sample_config):
        """Test the loaded map cannot be changed."""
        address_map = load_address_map(sample_config, "Elite")
        with pytest.raises(TypeError):
            address_map.fields("192.168.1.20")["AO"] = (0, 1)

    def test_unknown_ip(self, sample_config):
        address_map = load_address_map(sample_config, "Elite")
        with pytest.raises(KeyError):
            address_map.fields("10.9.9.9")

    def test_missing_family_section(self, sample_config):
        with pytest.raises(ConfigurationError):
            load_address_map(sample_config, "Aubo")

    def test_missing_ip_key(self):
        """Test a family section without IP is rejected."""
        config = parse_config_string("[Aubo]\nHosts = 10.0.0.1\n")
        with pytest.raises(ConfigurationError):
            load_address_map(config, "Aubo")

    def test_missing_ip_section(self):
        """Test a listed IP without its own section is rejected."""
        config = parse_config_string("[Aubo]\nIP = 10.0.0.1\n")
        with pytest.raises(ConfigurationError) as exc_info:
            load_address_map(config, "Aubo")
        assert exc_info.value.section == "10.0.0.1"

    def test_empty_ip_list(self):
        """Test an empty IP list yields an empty map."""
        config = parse_config_string("[Aubo]\nIP =\n")
        address_map = load_address_map(config, "Aubo")

        assert len(address_map) == 0
        assert address_map.ips == []

    def test_section_shared_by_families(self):
        """Test the same IP section can back devices of two families."""
        config = parse_config_string(
            "[Aubo]\nIP = 10.0.0.1\n[Elite]\nIP = 10.0.0.1\n[10.0.0.1]\nJoint = 0,6\n"
        )
        assert load_address_map(config, "Aubo").fields("10.0.0.1") == {"Joint": (0, 6)}
        assert load_address_map(config, "Elite").fields("10.0.0.1") == {"Joint": (0, 6)}

    def test_validator_short_spec(self):
        """Test Modbus tags need offset and count."""
        config = parse_config_string("[Elite]\nIP = 10.0.0.1\n[10.0.0.1]\nJoint = 5\n")
        with pytest.raises(ConfigurationError) as exc_info:
            load_address_map(config, "Elite", validate=EliteModbusAdapter().validate_spec)
        assert "10.0.0.1" in str(exc_info.value)

    def test_validator_ignores_unknown_tag(self):
        """Test tags the family cannot read are not arity-checked."""
        config = parse_config_string("[Elite]\nIP = 10.0.0.1\n[10.0.0.1]\nLamp = 5\n")
        address_map = load_address_map(config, "Elite", validate=EliteModbusAdapter().validate_spec)

        assert address_map.fields("10.0.0.1") == {"Lamp": (5,)}

    def test_s7_start_byte_zero(self):
        """Test an S7 read from the first byte of a data block is accepted."""
        config = parse_config_string("[Siemens1200]\nIP = 10.0.0.5\n[10.0.0.5]\nBlock1 = 1,0,16\n")
        address_map = load_address_map(config, "Siemens1200", validate=SiemensS7Adapter().validate_spec)

        assert address_map.fields("10.0.0.5") == {"Block1": (1, 0, 16)}

    def test_modbus_zero_count(self):
        """Test a Modbus tag with a zero count is rejected."""
        config = parse_config_string("[Elite]\nIP = 10.0.0.1\n[10.0.0.1]\nDI = 100,0\n")
        with pytest.raises(ConfigurationError):
            load_address_map(config, "Elite", validate=EliteModbusAdapter().validate_spec)

    def test_default_section_is_not_shared(self):
        """Test a [DEFAULT] section adds no tags to other sections."""
        config = parse_config_string(
            "[DEFAULT]\nport = 502\n[Elite]\nIP = 10.0.0.1\n[10.0.0.1]\nJoint = 0,6\n"
        )
        address_map = load_address_map(config, "Elite")

        assert list(address_map.fields("10.0.0.1")) == ["Joint"]
        assert config.has_section("DEFAULT")

    def test_s7_validator(self):
        """Test S7 tags need exactly three parameters."""
        config = parse_config_string("[Siemens1200]\nIP = 10.0.0.5\n[10.0.0.5]\nBlock = 1,0\n")
        with pytest.raises(ConfigurationError):
            load_address_map(config, "Siemens1200", validate=SiemensS7Adapter().validate_spec)

    def test_rpc_validator(self):
        config = parse_config_string("[Fairino]\nIP = 10.0.0.7\n[10.0.0.7]\nDI = 0\n")
        with pytest.raises(ConfigurationError):
            load_address_map(config, "Fairino", validate=FairinoRPCAdapter().validate_spec)

    def test_repr(self):
        address_map = AddressMap("Aubo", {"10.0.0.1": {}})
        assert "10.0.0.1" in repr(address_map)
