"""
System Check Script
Verifies configuration, artifacts and network access before deploying

Run from the project root: python -m scripts.check_system
"""

import os
import sys
import json

from web3 import Web3
from loguru import logger
from dotenv import load_dotenv

from blockchain.artifacts import ArtifactError, ArtifactLoader
from blockchain.migration_runner import MigrationError, discover_migrations
from blockchain.wallet_manager import WalletManager
from utils.config import ConfigurationError, DeploymentSettings, TokenAllocationParams
from utils.network_manager import NetworkError, NetworkManager

load_dotenv()


EXPECTED_CONSTRUCTOR_TYPES = ['address', 'address', 'address', 'uint256']


def check_environment_variables(settings: DeploymentSettings) -> bool:
    """Check the deploying key is set"""
    logger.info("Checking environment variables...")

    if not settings.private_key:
        logger.error("Missing environment variable: DEPLOYER_PRIVATE_KEY")
        return False

    logger.success("✓ DEPLOYER_PRIVATE_KEY set")
    return True


def check_constructor_parameters(settings: DeploymentSettings) -> bool:
    """Check TokenAllocation constructor parameters are real addresses"""
    logger.info("Checking TokenAllocation constructor parameters...")

    try:
        params = TokenAllocationParams.from_env()
        params.validate()
    except ConfigurationError as e:
        logger.error(f"  ✗ {e}")
        logger.info("  Set ICO_MANAGER_ADDRESS, FOUNDERS_WALLET_ADDRESS, PARTNERS_WALLET_ADDRESS in .env")
        return False

    logger.success(f"  ✓ ICO manager: {params.ico_manager}")
    logger.success(f"  ✓ Founders wallet: {params.founders_wallet}")
    logger.success(f"  ✓ Partners wallet: {params.partners_wallet}")
    logger.success(f"  ✓ Total wei gathered: {params.total_wei_gathered}")
    return True


def check_configuration_files(settings: DeploymentSettings) -> bool:
    """Check the network configuration parses and names the target network"""
    logger.info("Checking configuration files...")

    if not os.path.exists(settings.networks_config):
        logger.error(f"  ✗ Missing {settings.networks_config}")
        return False

    try:
        with open(settings.networks_config, 'r') as f:
            json.load(f)
        network_manager = NetworkManager(settings.networks_config)
        network_manager.get_network(settings.network)
    except (json.JSONDecodeError, NetworkError) as e:
        logger.error(f"  ✗ {settings.networks_config}: {e}")
        return False

    logger.success(f"  ✓ {settings.networks_config} (network: {settings.network})")
    return True


def check_directories(settings: DeploymentSettings) -> bool:
    """Create data directories if needed"""
    logger.info("Checking directories...")

    required_dirs = [
        os.path.dirname(settings.deployments_db) or 'data',
        'data/logs',
    ]

    for dir_path in required_dirs:
        if not os.path.exists(dir_path):
            os.makedirs(dir_path, exist_ok=True)
            logger.info(f"  Created: {dir_path}")
        else:
            logger.success(f"  ✓ {dir_path}")

    return True


def check_artifacts(settings: DeploymentSettings) -> bool:
    """Check the TokenAllocation artifact is compiled with the expected constructor"""
    logger.info("Checking contract artifacts...")

    loader = ArtifactLoader(settings.artifacts_dir)

    try:
        artifact = loader.require("TokenAllocation")
    except ArtifactError as e:
        logger.error(f"  ✗ {e}")
        logger.info("  Run 'truffle compile' (or 'npx hardhat compile') first")
        return False

    types = artifact.constructor_types()
    if types != EXPECTED_CONSTRUCTOR_TYPES:
        logger.error(f"  ✗ TokenAllocation constructor is ({', '.join(types)}), "
                     f"expected ({', '.join(EXPECTED_CONSTRUCTOR_TYPES)})")
        return False

    logger.success(f"  ✓ TokenAllocation artifact: {artifact.path}")
    return True


def check_migrations(settings: DeploymentSettings) -> bool:
    """Check migration scripts are discoverable"""
    logger.info("Checking migrations...")

    try:
        migrations = discover_migrations(settings.migrations_dir)
    except MigrationError as e:
        logger.error(f"  ✗ {e}")
        return False

    if not migrations:
        logger.error(f"  ✗ No migrations in {settings.migrations_dir}")
        return False

    for migration in migrations:
        logger.success(f"  ✓ {migration.name}")

    return True


def check_rpc_connection(settings: DeploymentSettings) -> bool:
    """Check the target network's RPC endpoint"""
    logger.info("Checking RPC connection...")

    try:
        w3 = NetworkManager(settings.networks_config).connect(settings.network)
        logger.success(f"  ✓ {settings.network}: Connected (Block: {w3.eth.block_number})")
        return True
    except NetworkError as e:
        logger.error(f"  ✗ {settings.network}: {e}")
        return False


def check_wallet_balance(settings: DeploymentSettings) -> bool:
    """Check the deploying account can pay for the deployment"""
    logger.info("Checking deployer balance...")

    if not settings.private_key:
        logger.warning("  No deployer key - skipping balance check")
        return False

    try:
        network_manager = NetworkManager(settings.networks_config)
        network = network_manager.get_network(settings.network)
        w3 = network_manager.connect(settings.network)
    except NetworkError as e:
        logger.warning(f"  Network unavailable - skipping balance check ({e})")
        return False

    wallet = WalletManager(settings.private_key)
    balance = wallet.get_balance(w3)
    min_balance = network['min_balance_eth']

    logger.info(f"  Deployer: {balance:.4f} ETH")

    if balance < min_balance:
        logger.error(f"  ✗ Deployer balance low (need at least {min_balance} ETH)")
        return False

    logger.success("  ✓ Deployer balance sufficient")
    return True


def check_existing_deployment(settings: DeploymentSettings) -> bool:
    """Report whether TokenAllocation is already deployed"""
    logger.info("Checking existing deployment...")

    contract_address = os.getenv('TOKEN_ALLOCATION_ADDRESS')

    if not contract_address:
        logger.info("  TokenAllocation not deployed yet")
        return True

    try:
        w3 = NetworkManager(settings.networks_config).connect(settings.network)
        code = w3.eth.get_code(Web3.to_checksum_address(contract_address))
    except (NetworkError, ValueError) as e:
        logger.warning(f"  Could not check {contract_address}: {e}")
        return True

    if code in (b'', '0x'):
        logger.warning(f"  No contract at {contract_address} on {settings.network}")
    else:
        logger.success(f"  ✓ TokenAllocation already deployed at {contract_address}")

    return True


def main():
    """Run all system checks"""
    logger.info("=" * 70)
    logger.info("Deployment System Check")
    logger.info("=" * 70)

    settings = DeploymentSettings.from_env()

    checks = [
        ("Environment Variables", check_environment_variables),
        ("Constructor Parameters", check_constructor_parameters),
        ("Configuration Files", check_configuration_files),
        ("Directories", check_directories),
        ("Contract Artifacts", check_artifacts),
        ("Migrations", check_migrations),
        ("RPC Connection", check_rpc_connection),
        ("Deployer Balance", check_wallet_balance),
        ("Existing Deployment", check_existing_deployment),
    ]

    results = []

    for name, check_func in checks:
        logger.info("")
        try:
            result = check_func(settings)
            results.append((name, result))
        except Exception as e:
            logger.error(f"Error in {name}: {e}")
            results.append((name, False))

    # Summary
    logger.info("")
    logger.info("=" * 70)
    logger.info("Summary")
    logger.info("=" * 70)

    passed = sum(1 for _, result in results if result)
    total = len(results)

    for name, result in results:
        status = "✓ PASS" if result else "✗ FAIL"
        logger.info(f"  {status}: {name}")

    logger.info("")
    logger.info(f"Total: {passed}/{total} checks passed")

    if passed == total:
        logger.success("=" * 70)
        logger.success("✅ Ready to deploy!")
        logger.success("=" * 70)
        logger.info("Deploy: python main.py migrate")
        return 0
    else:
        logger.error("=" * 70)
        logger.error("❌ Not ready - fix issues above")
        logger.error("=" * 70)
        return 1


if __name__ == "__main__":
    sys.exit(main())
