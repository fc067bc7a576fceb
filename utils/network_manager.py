"""
Network Manager
Resolves named deployment networks and connects to their RPC endpoints
"""

import os
import json
from typing import Dict, List, Optional
from web3 import Web3
from loguru import logger
from dotenv import load_dotenv

load_dotenv()


DEFAULT_NETWORK_SETTINGS = {
    'gas_limit': 6000000,
    'gas_multiplier': 1.2,
    'confirmations_timeout': 300,
    'min_balance_eth': 0.0,
}


class NetworkError(Exception):
    """Raised when a network is unknown or its RPC endpoint is unusable"""


class NetworkManager:
    """
    Named networks loaded from config/networks.json

    Each network lists an RPC endpoint directly (rpc_url), through an
    environment variable (rpc_url_env), or both. Endpoints from
    fallback_rpc_url_envs are tried in order when the primary is down.
    """

    def __init__(self, config_path: str = "config/networks.json"):
        """
        Initialize Network Manager

        Args:
            config_path: Path to the networks JSON file
        """
        self.config_path = config_path

        try:
            with open(config_path, 'r') as f:
                self.config = json.load(f)
        except FileNotFoundError:
            raise NetworkError(f"Network configuration not found: {config_path}")
        except json.JSONDecodeError as e:
            raise NetworkError(f"Invalid network configuration {config_path}: {e}")

        self.networks = self.config.get('networks', {})

        logger.info(f"Network Manager loaded {len(self.networks)} networks")

    def names(self) -> List[str]:
        return sorted(self.networks.keys())

    def get_network(self, name: str) -> Dict:
        """
        Get settings for a named network with defaults applied

        Args:
            name: Network name (e.g. development, sepolia)

        Returns:
            Network settings dict
        """
        if name not in self.networks:
            raise NetworkError(
                f"Unknown network '{name}'. Configured: {', '.join(self.names()) or 'none'}"
            )

        network = dict(DEFAULT_NETWORK_SETTINGS)
        network.update(self.networks[name])
        network['name'] = name
        return network

    def get_rpc_urls(self, name: str) -> List[str]:
        """RPC endpoints for a network in the order they should be tried"""
        network = self.get_network(name)
        urls = []

        env_url = os.getenv(network['rpc_url_env']) if network.get('rpc_url_env') else None
        if env_url:
            urls.append(env_url)

        if network.get('rpc_url'):
            urls.append(network['rpc_url'])

        for env_name in network.get('fallback_rpc_url_envs', []):
            url = os.getenv(env_name)
            if url:
                urls.append(url)
            else:
                logger.debug(f"{env_name} not set, skipping fallback endpoint")

        return urls

    def connect(self, name: str, web3_factory=None) -> Web3:
        """
        Connect to the first reachable endpoint of a network

        Args:
            name: Network name
            web3_factory: Callable taking an RPC URL and returning a Web3 instance

        Returns:
            Connected Web3 instance
        """
        network = self.get_network(name)
        urls = self.get_rpc_urls(name)

        if not urls:
            raise NetworkError(f"No RPC endpoint configured for network '{name}'")

        factory = web3_factory or (lambda url: Web3(Web3.HTTPProvider(url)))

        for url in urls:
            w3 = factory(url)

            if not w3.is_connected():
                logger.warning(f"Failed to connect to {_redact(url)}")
                continue

            expected_chain_id = network.get('chain_id')
            if expected_chain_id is not None:
                chain_id = w3.eth.chain_id
                if chain_id != expected_chain_id:
                    raise NetworkError(
                        f"Endpoint {_redact(url)} reports chain id {chain_id}, "
                        f"network '{name}' expects {expected_chain_id}"
                    )

            logger.success(f"Connected to {name} via {_redact(url)}")
            return w3

        raise NetworkError(f"All RPC endpoints for network '{name}' are unreachable")

    def get_network_id(self, name: str, w3: Optional[Web3] = None) -> str:
        """Network id used as the key in Truffle artifact 'networks' maps"""
        network = self.get_network(name)

        if network.get('network_id') is not None:
            return str(network['network_id'])

        if w3 is not None:
            return str(w3.net.version)

        return str(network.get('chain_id', name))


def _redact(url: str) -> str:
    """Hide API keys that providers embed in the URL path"""
    if url.startswith('http://127.0.0.1') or url.startswith('http://localhost'):
        return url

    parts = url.split('/')
    if len(parts) > 3 and len(parts[-1]) > 16:
        parts[-1] = parts[-1][:4] + '...'
    return '/'.join(parts)
