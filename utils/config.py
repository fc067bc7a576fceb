"""
Deployment Configuration
Loads constructor parameters and deployment settings from the environment
"""

import os
from dataclasses import dataclass
from typing import List, Optional
from web3 import Web3
from loguru import logger
from dotenv import load_dotenv

load_dotenv()


PLACEHOLDER_ADDRESS = "0x0"


class ConfigurationError(ValueError):
    """Raised when a configuration value is missing or malformed"""


def _parse_wei(raw: str) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(f"TOTAL_WEI_GATHERED must be an integer, got {raw!r}")

    if value < 0:
        raise ConfigurationError(f"TOTAL_WEI_GATHERED must be non-negative, got {value}")

    return value


@dataclass(frozen=True)
class TokenAllocationParams:
    """
    Constructor parameters for the TokenAllocation contract

    - ico_manager: backend key that mints tokens
    - founders_wallet: receives the founders' allocation after vesting
    - partners_wallet: allocates the early contributors' bonus
    - total_wei_gathered: running total of wei gathered during the crowdsale
    """

    ico_manager: str = PLACEHOLDER_ADDRESS
    founders_wallet: str = PLACEHOLDER_ADDRESS
    partners_wallet: str = PLACEHOLDER_ADDRESS
    total_wei_gathered: int = 0

    @classmethod
    def from_env(cls) -> "TokenAllocationParams":
        """Build parameters from environment variables (placeholders when unset)"""
        return cls(
            ico_manager=os.getenv('ICO_MANAGER_ADDRESS', PLACEHOLDER_ADDRESS),
            founders_wallet=os.getenv('FOUNDERS_WALLET_ADDRESS', PLACEHOLDER_ADDRESS),
            partners_wallet=os.getenv('PARTNERS_WALLET_ADDRESS', PLACEHOLDER_ADDRESS),
            total_wei_gathered=_parse_wei(os.getenv('TOTAL_WEI_GATHERED', '0')),
        )

    def as_constructor_args(self) -> list:
        """Constructor arguments in the order TokenAllocation expects"""
        return [
            self.ico_manager,
            self.founders_wallet,
            self.partners_wallet,
            self.total_wei_gathered,
        ]

    def placeholders(self) -> List[str]:
        """Names of address fields still set to the placeholder"""
        fields = {
            'ico_manager': self.ico_manager,
            'founders_wallet': self.founders_wallet,
            'partners_wallet': self.partners_wallet,
        }
        return [name for name, value in fields.items() if value == PLACEHOLDER_ADDRESS]

    def validate(self):
        """
        Check the parameters are ready for a live deployment

        Addresses are accepted in any case a deployment accepts them:
        all-lowercase or correctly checksummed. Mixed case with a bad
        checksum is rejected.

        Raises:
            ConfigurationError: placeholder or malformed address, negative amount
        """
        missing = self.placeholders()
        if missing:
            raise ConfigurationError(
                f"Placeholder addresses must be replaced before deploying: {', '.join(missing)}"
            )

        for name in ('ico_manager', 'founders_wallet', 'partners_wallet'):
            value = getattr(self, name)
            if not Web3.is_address(value):
                raise ConfigurationError(f"{name} is not a valid address: {value}")

        if self.total_wei_gathered < 0:
            raise ConfigurationError("total_wei_gathered must be non-negative")


@dataclass(frozen=True)
class DeploymentSettings:
    """Where the deployment tooling finds its inputs and keeps its state"""

    network: str = 'development'
    private_key: Optional[str] = None
    artifacts_dir: str = 'build/contracts'
    migrations_dir: str = 'migrations'
    deployments_db: str = 'data/deployments.db'
    networks_config: str = 'config/networks.json'
    env_path: str = '.env'

    @classmethod
    def from_env(cls, network: Optional[str] = None) -> "DeploymentSettings":
        settings = cls(
            network=network or os.getenv('DEPLOY_NETWORK', 'development'),
            private_key=os.getenv('DEPLOYER_PRIVATE_KEY'),
            artifacts_dir=os.getenv('ARTIFACTS_DIR', 'build/contracts'),
            migrations_dir=os.getenv('MIGRATIONS_DIR', 'migrations'),
            deployments_db=os.getenv('DEPLOYMENTS_DB', 'data/deployments.db'),
            networks_config=os.getenv('NETWORKS_CONFIG', 'config/networks.json'),
        )
        logger.debug(f"Deployment settings loaded for network: {settings.network}")
        return settings
