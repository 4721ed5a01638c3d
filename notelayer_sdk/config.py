"""
Network configuration for the NoteLayer SDK.

Known networks are shipped in ``networks.json``. Environment variables
override the packaged values so deployments can point at other nodes
without code changes.
"""
import os
import json
import logging
import importlib.resources
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class NetworkConfig:
    """Access to the packaged network definitions."""

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load all network definitions.

        Returns:
            Mapping of network name to its configuration
        """
        if cls._networks_cache is not None:
            return cls._networks_cache

        text = importlib.resources.files("notelayer_sdk").joinpath("networks.json").read_text(encoding="utf-8")
        cls._networks_cache = json.loads(text)
        logger.debug(f"Loaded {len(cls._networks_cache)} network definitions")
        return cls._networks_cache

    @classmethod
    def get_network(cls, network: str) -> Dict[str, Any]:
        """
        Get the configuration of one network.

        Raises:
            ValueError: If the network is unknown
        """
        networks = cls.load_networks()
        if network not in networks:
            raise ValueError(
                f"Unknown network '{network}'. Available networks: {', '.join(sorted(networks))}"
            )
        return networks[network]

    @classmethod
    def get_rpc_url(cls, network: str, override: Optional[str] = None) -> str:
        """
        Get the ledger RPC URL of a network.

        Precedence: ``override``, then NOTELAYER_RPC_URL, then the packaged value.
        """
        if override:
            return override
        env_url = os.environ.get("NOTELAYER_RPC_URL")
        if env_url:
            return env_url
        return cls.get_network(network)["rpc"]

    @classmethod
    def get_poll_settings(cls, network: str) -> Dict[str, float]:
        """
        Default poll interval and wait budget for a network.

        Precedence: NOTELAYER_POLL_INTERVAL / NOTELAYER_MAX_WAIT, then the
        packaged value, then the built-in default.
        """
        config = cls.get_network(network)
        return {
            "poll_interval": float(
                os.environ.get("NOTELAYER_POLL_INTERVAL") or config.get("pollInterval", 1.0)
            ),
            "max_wait": float(os.environ.get("NOTELAYER_MAX_WAIT") or config.get("maxWait", 120.0)),
        }

    @classmethod
    def get_explorer_tx_url(cls, network: str, transaction_id: str) -> Optional[str]:
        """Block explorer URL of a transaction, if the network has an explorer."""
        explorer = cls.get_network(network).get("explorer")
        if not explorer:
            return None
        return f"{explorer.rstrip('/')}/tx/{transaction_id}"
