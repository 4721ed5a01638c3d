"""
Tests for the NetworkConfig module.
"""
import pytest
from unittest.mock import patch

from notelayer_sdk.config import NetworkConfig

# Sample network configuration
MOCK_NETWORKS = {
    "test-network": {
        "rpc": "https://test.example.com",
        "explorer": "https://explorer.example.com/",
        "pollInterval": 0.5,
        "maxWait": 30
    },
    "no-explorer": {
        "rpc": "https://quiet.example.com",
        "explorer": None
    }
}


class TestNetworkConfig:
    """Test NetworkConfig class."""

    def test_packaged_networks(self):
        """The shipped networks.json loads and names the known networks."""
        networks = NetworkConfig.load_networks()
        assert {"testnet", "devnet", "localhost"} <= set(networks)
        for config in networks.values():
            assert "rpc" in config

    def test_load_networks_cached(self):
        """Networks are served from the cache after the first load."""
        NetworkConfig._networks_cache = MOCK_NETWORKS

        with patch("importlib.resources.files") as mock_files:
            result = NetworkConfig.load_networks()
            mock_files.assert_not_called()

        assert result == MOCK_NETWORKS

    def test_get_network_not_found(self):
        """Unknown networks list the available ones."""
        NetworkConfig._networks_cache = MOCK_NETWORKS

        with pytest.raises(ValueError) as exc_info:
            NetworkConfig.get_network("non-existent-network")

        assert "test-network" in str(exc_info.value)
        assert "no-explorer" in str(exc_info.value)

    def test_get_rpc_url_default(self, monkeypatch):
        monkeypatch.delenv("NOTELAYER_RPC_URL", raising=False)
        NetworkConfig._networks_cache = MOCK_NETWORKS
        assert NetworkConfig.get_rpc_url("test-network") == "https://test.example.com"

    def test_get_rpc_url_env_override(self, monkeypatch):
        monkeypatch.setenv("NOTELAYER_RPC_URL", "https://env.example.com")
        NetworkConfig._networks_cache = MOCK_NETWORKS
        assert NetworkConfig.get_rpc_url("test-network") == "https://env.example.com"

    def test_get_rpc_url_explicit_override_wins(self, monkeypatch):
        monkeypatch.setenv("NOTELAYER_RPC_URL", "https://env.example.com")
        NetworkConfig._networks_cache = MOCK_NETWORKS
        assert NetworkConfig.get_rpc_url("test-network", "https://arg.example.com") == "https://arg.example.com"

    def test_get_poll_settings(self, monkeypatch):
        monkeypatch.delenv("NOTELAYER_POLL_INTERVAL", raising=False)
        monkeypatch.delenv("NOTELAYER_MAX_WAIT", raising=False)
        NetworkConfig._networks_cache = MOCK_NETWORKS
        assert NetworkConfig.get_poll_settings("test-network") == {"poll_interval": 0.5, "max_wait": 30.0}
        assert NetworkConfig.get_poll_settings("no-explorer") == {"poll_interval": 1.0, "max_wait": 120.0}

    def test_get_poll_settings_env_override(self, monkeypatch):
        monkeypatch.setenv("NOTELAYER_POLL_INTERVAL", "0.25")
        monkeypatch.delenv("NOTELAYER_MAX_WAIT", raising=False)
        NetworkConfig._networks_cache = MOCK_NETWORKS
        assert NetworkConfig.get_poll_settings("test-network") == {"poll_interval": 0.25, "max_wait": 30.0}

    def test_get_explorer_tx_url(self):
        NetworkConfig._networks_cache = MOCK_NETWORKS
        assert NetworkConfig.get_explorer_tx_url("test-network", "0xabc") == "https://explorer.example.com/tx/0xabc"
        assert NetworkConfig.get_explorer_tx_url("no-explorer", "0xabc") is None
