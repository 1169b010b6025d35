"""Tests for gateway settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from smartfriends_core.config import DEFAULT_PORT, GatewayConfig, load_config
from smartfriends_core.errors import SmartFriendsConfigError


class TestGatewayConfig:
    """Tests for GatewayConfig validation."""

    def test_defaults(self):
        """Test protocol defaults."""
        config = GatewayConfig(host="10.0.0.5", username="admin", password="pw")

        assert config.port == DEFAULT_PORT
        assert config.command_timeout == 2.5
        assert config.verify_certificate is True
        assert config.client_symbol == "D19033i"

    def test_frozen(self):
        """Test settings are immutable."""
        config = GatewayConfig(host="10.0.0.5", username="admin", password="pw")
        with pytest.raises(AttributeError):
            config.host = "other"  # type: ignore[misc]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"host": ""},
            {"username": ""},
            {"port": 0},
            {"port": 70000},
            {"command_timeout": 0},
            {"connect_timeout": -1},
            {"read_size": 0},
        ],
    )
    def test_invalid_values(self, overrides):
        """Test invalid settings are rejected."""
        data = {"host": "10.0.0.5", "username": "admin", "password": "pw"}
        data.update(overrides)

        with pytest.raises(SmartFriendsConfigError):
            GatewayConfig(**data)

    def test_from_mapping_unknown_keys(self):
        """Test unknown keys are reported."""
        with pytest.raises(SmartFriendsConfigError, match="hostname"):
            GatewayConfig.from_mapping({"hostname": "x", "username": "u", "password": "p"})

    def test_from_mapping_missing_keys(self):
        """Test missing required keys are a config error."""
        with pytest.raises(SmartFriendsConfigError):
            GatewayConfig.from_mapping({"host": "10.0.0.5"})


class TestLoadConfig:
    """Tests for load_config()."""

    def test_load_yaml(self, tmp_path: Path):
        """Test settings load from a YAML mapping."""
        path = tmp_path / "gateway.yaml"
        path.write_text(
            "host: 10.0.0.5\n"
            "port: 4300\n"
            "username: admin\n"
            "password: secret\n"
            "ca_file: /etc/smartfriends/CA.pem\n"
            "command_timeout: 5\n"
        )

        config = load_config(path)

        assert config == GatewayConfig(
            host="10.0.0.5",
            username="admin",
            password="secret",
            ca_file="/etc/smartfriends/CA.pem",
            command_timeout=5,
        )

    def test_missing_file(self, tmp_path: Path):
        """Test a missing file is a config error."""
        with pytest.raises(SmartFriendsConfigError, match="not found"):
            load_config(tmp_path / "missing.yaml")

    def test_not_a_mapping(self, tmp_path: Path):
        """Test a YAML list is rejected."""
        path = tmp_path / "gateway.yaml"
        path.write_text("- host\n- port\n")

        with pytest.raises(SmartFriendsConfigError, match="mapping"):
            load_config(str(path))
