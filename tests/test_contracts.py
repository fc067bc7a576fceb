"""
TokenAllocation Deployment Integration Tests
Deploys the compiled contract to a local node through the migration runner
"""

import os

import pytest
from web3 import Web3

from blockchain.artifacts import ArtifactLoader
from blockchain.deployer import Deployer
from blockchain.migration_runner import MigrationRunner
from blockchain.wallet_manager import WalletManager
from utils.deployment_registry import DeploymentRegistry

from conftest import MIGRATIONS_DIR, PROJECT_ROOT


# Note: These tests require a local node and compiled contracts
# Run: npx hardhat node   (or ganache / anvil)
# Then: truffle compile && pytest tests/test_contracts.py

LOCAL_RPC_URL = os.getenv('LOCAL_RPC_URL', 'http://127.0.0.1:8545')

# First default account of hardhat/anvil nodes
LOCAL_DEPLOYER_KEY = os.getenv(
    'LOCAL_DEPLOYER_PRIVATE_KEY',
    '0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80'
)

ARTIFACTS_DIR = os.path.join(PROJECT_ROOT, 'build', 'contracts')


@pytest.fixture
def w3():
    """Connect to local node"""
    w3 = Web3(Web3.HTTPProvider(LOCAL_RPC_URL))
    if not w3.is_connected():
        pytest.skip(f"No local node at {LOCAL_RPC_URL}")
    return w3


@pytest.fixture
def loader():
    loader = ArtifactLoader(ARTIFACTS_DIR, os.path.join(PROJECT_ROOT, 'artifacts'))
    if not loader.exists('TokenAllocation'):
        pytest.skip("TokenAllocation artifact not compiled")
    return loader


@pytest.fixture
def accounts(w3):
    """Get test accounts"""
    return w3.eth.accounts


class TestTokenAllocationDeployment:
    """Deploy TokenAllocation on a local node"""

    def test_migration_deploys_contract(self, w3, loader, accounts, monkeypatch):
        monkeypatch.setenv('ICO_MANAGER_ADDRESS', accounts[1])
        monkeypatch.setenv('FOUNDERS_WALLET_ADDRESS', accounts[2])
        monkeypatch.setenv('PARTNERS_WALLET_ADDRESS', accounts[3])
        monkeypatch.setenv('TOTAL_WEI_GATHERED', '0')

        registry = DeploymentRegistry(':memory:')
        network = {'name': 'development', 'gas_limit': 6721975, 'confirmations_timeout': 60}
        deployer = Deployer(
            w3,
            WalletManager(LOCAL_DEPLOYER_KEY),
            network,
            loader,
            registry=registry,
            update_artifacts=False
        )

        MigrationRunner(MIGRATIONS_DIR, registry, 'development').run(deployer)

        record = registry.get_deployment('development', 'TokenAllocation')
        assert record is not None
        assert record.constructor_args == [accounts[1], accounts[2], accounts[3], 0]
        assert w3.eth.get_code(record.address) not in (b'', '0x')
