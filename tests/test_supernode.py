"""
Tests for n2nadmin.services.supernode and server.config modules.
"""

import pytest

from n2nadmin.exceptions import SupernodeConfigError
from n2nadmin.models.enums import LogLevel
from n2nadmin.server.config import ServerConfig
from n2nadmin.services.supernode import (
    parse_supernode_config,
    read_supernode_config,
    update_supernode_config,
    write_community_list,
)


class TestSupernodeConfig:
    """Tests for supernode.conf handling."""

    def test_parse(self):
        text = "# comment\n-p=7654\n\n-c=/etc/n2n/community.list\n-f\n"
        assert parse_supernode_config(text) == {
            "p": "7654",
            "c": "/etc/n2n/community.list",
            "f": "",
        }

    def test_update_forces_flags(self, tmp_path):
        """Saved configs always keep foreground and verbose on."""
        path = tmp_path / "supernode.conf"
        path.write_text("-p=7654\n")

        update_supernode_config(str(path), {"p": "7777", "t": "5645"})

        assert read_supernode_config(str(path)) == {
            "p": "7777",
            "t": "5645",
            "f": "",
            "v": "",
        }

    def test_update_missing_file(self, tmp_path):
        path = tmp_path / "supernode.conf"

        result = update_supernode_config(str(path), {"p": "7654"})

        assert result == {"p": "7654", "f": "", "v": ""}
        assert path.exists()

    def test_read_missing_file_raises(self, tmp_path):
        with pytest.raises(SupernodeConfigError):
            read_supernode_config(str(tmp_path / "absent.conf"))


class TestCommunityList:
    def test_write(self, tmp_path):
        path = tmp_path / "n2n" / "community.list"

        write_community_list(str(path), ["office", "home"])

        assert path.read_text() == "office\nhome\n"

    def test_write_empty(self, tmp_path):
        path = tmp_path / "community.list"

        write_community_list(str(path), [])

        assert path.read_text() == ""


class TestServerConfig:
    """Tests for environment loading."""

    def test_defaults(self):
        cfg = ServerConfig.from_env({})

        assert cfg.PORT == 8080
        assert cfg.get_mgmt_endpoint() == ("127.0.0.1", 56440)
        assert cfg.IP_CACHE_TTL_SECONDS == 86400
        assert cfg.IP_CACHE_SIZE == 1000
        assert not cfg.ENABLE_NET_TOOLS
        assert cfg.CORS_ORIGINS == ""

    def test_overrides(self):
        cfg = ServerConfig.from_env(
            {
                "N2N_PORT": "9000",
                "N2N_DB_PATH": "/var/lib/n2n/admin.db",
                "N2N_MGMT_ADDR": "10.0.0.1:5645",
                "N2N_IP_CACHE_TTL": "15m",
                "N2N_IP_CACHE_SIZE": "50",
                "N2N_ENABLE_NET_TOOLS": "true",
                "N2N_LOG_LEVEL": "debug",
                "N2N_CORS_ORIGINS": " https://panel.example ",
            }
        )

        assert cfg.PORT == 9000
        assert cfg.DB_FILE == "/var/lib/n2n/admin.db"
        assert cfg.get_mgmt_endpoint() == ("10.0.0.1", 5645)
        assert cfg.IP_CACHE_TTL_SECONDS == 900
        assert cfg.IP_CACHE_SIZE == 50
        assert cfg.ENABLE_NET_TOOLS
        assert cfg.LOG_LEVEL == LogLevel.DEBUG
        assert cfg.CORS_ORIGINS == "https://panel.example"

    def test_malformed_values_keep_defaults(self):
        cfg = ServerConfig.from_env(
            {"N2N_PORT": "eighty", "N2N_IP_CACHE_TTL": "1 week"}
        )

        assert cfg.PORT == 8080
        assert cfg.IP_CACHE_TTL_SECONDS == 86400
