"""
Shared test fixtures
"""

import os
import json
from decimal import Decimal
from unittest.mock import MagicMock, Mock

import pytest
from web3 import Web3


PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
MIGRATIONS_DIR = os.path.join(PROJECT_ROOT, 'migrations')

DEPLOYER_ADDRESS = '0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266'
CONTRACT_ADDRESS = '0x5FbDB2315678afecb367f032d93F642f64180aa3'

TOKEN_ALLOCATION_ABI = [
    {
        "inputs": [
            {"name": "_icoManager", "type": "address"},
            {"name": "_foundersWallet", "type": "address"},
            {"name": "_partnersWallet", "type": "address"},
            {"name": "_totalWeiGathered", "type": "uint256"}
        ],
        "stateMutability": "nonpayable",
        "type": "constructor"
    },
    {
        "inputs": [],
        "name": "icoManager",
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function"
    }
]

TOKEN_ALLOCATION_BYTECODE = '0x608060405234801561001057600080fd5b50'

ENV_VARS = [
    'ICO_MANAGER_ADDRESS',
    'FOUNDERS_WALLET_ADDRESS',
    'PARTNERS_WALLET_ADDRESS',
    'TOTAL_WEI_GATHERED',
    'DEPLOYER_PRIVATE_KEY',
    'DEPLOY_NETWORK',
    'ARTIFACTS_DIR',
    'MIGRATIONS_DIR',
    'DEPLOYMENTS_DB',
    'NETWORKS_CONFIG',
    'DEVELOPMENT_RPC_URL',
]


def write_artifact(build_dir, name='TokenAllocation', abi=None, bytecode=TOKEN_ALLOCATION_BYTECODE, networks=None):
    """Write a Truffle-style artifact and return its path"""
    os.makedirs(build_dir, exist_ok=True)
    path = os.path.join(build_dir, f'{name}.json')

    with open(path, 'w') as f:
        json.dump({
            'contractName': name,
            'abi': TOKEN_ALLOCATION_ABI if abi is None else abi,
            'bytecode': bytecode,
            'networks': networks or {}
        }, f)

    return path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep tests independent of the developer's .env"""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def build_dir(tmp_path):
    """Truffle build directory holding a TokenAllocation artifact"""
    path = tmp_path / 'build' / 'contracts'
    write_artifact(str(path))
    return str(path)


@pytest.fixture
def network():
    """Development network settings"""
    return {
        'name': 'development',
        'rpc_url': 'http://127.0.0.1:8545',
        'gas_limit': 6721975,
        'gas_multiplier': 1.2,
        'confirmations_timeout': 60,
        'min_balance_eth': 0
    }


def offline_contract_factory(w3):
    """
    Stand-in for w3.eth.contract: web3 ABI-encodes the constructor
    arguments for real, gas estimation and transaction building are canned
    """
    offline = Web3()

    def contract(abi, bytecode):
        factory = offline.eth.contract(abi=abi, bytecode=bytecode)

        def constructor(*args):
            encoded = factory.constructor(*args)
            w3.constructor_calls.append(list(args))

            built = Mock()
            built.estimate_gas = w3.estimate_deployment_gas
            built.build_transaction.side_effect = lambda params: dict(params, data=encoded.data_in_transaction)
            return built

        return Mock(constructor=Mock(side_effect=constructor))

    return contract


@pytest.fixture
def mock_w3():
    """Web3 stand-in for a legacy-fee chain with one successful deployment"""
    w3 = MagicMock()
    w3.eth.chain_id = 1337
    w3.net.version = '1337'
    w3.eth.gas_price = 20 * 10**9
    w3.eth.get_block.return_value = {'number': 100}
    w3.eth.get_transaction_count.return_value = 0
    w3.eth.get_balance.return_value = 10 * 10**18

    units = {'ether': 10**18, 'gwei': 10**9, 'wei': 1}
    w3.from_wei.side_effect = lambda value, unit: Decimal(value) / Decimal(units[unit])
    w3.to_wei.side_effect = lambda value, unit: int(Decimal(str(value)) * units[unit])

    w3.constructor_calls = []
    w3.estimate_deployment_gas = Mock(return_value=1000000)
    w3.eth.contract.side_effect = offline_contract_factory(w3)

    w3.eth.send_raw_transaction.return_value = bytes.fromhex('ab' * 32)
    w3.eth.wait_for_transaction_receipt.return_value = {
        'status': 1,
        'contractAddress': CONTRACT_ADDRESS,
        'blockNumber': 101,
        'gasUsed': 950000
    }
    return w3


@pytest.fixture
def wallet():
    """Deploying wallet that signs without a real key"""
    wallet = Mock()
    wallet.address = DEPLOYER_ADDRESS
    wallet.sign_transaction.return_value = Mock(raw_transaction=b'signed')
    wallet.get_balance.return_value = Decimal('10')
    return wallet
