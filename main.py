"""
TokenAllocation Deployment - Main Entry Point
Runs numbered migration scripts against a configured network
"""

import argparse
import sys
from decimal import Decimal
from typing import List, Optional
from loguru import logger
from web3.exceptions import Web3Exception

from blockchain.artifacts import ArtifactError, ArtifactLoader
from blockchain.deployer import Deployer, DeploymentError, InsufficientFundsError
from blockchain.migration_runner import MigrationError, MigrationRunner
from blockchain.wallet_manager import WalletManager
from utils.config import ConfigurationError, DeploymentSettings, TokenAllocationParams
from utils.deployment_registry import DeploymentRegistry
from utils.env_file import env_key_for_contract, update_env_file
from utils.network_manager import NetworkError, NetworkManager


def configure_logging(verbose: bool = False, log_file: Optional[str] = "data/logs/deploy.log"):
    """Console sink at INFO (DEBUG when verbose) plus a rotating debug log file"""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level="DEBUG" if verbose else "INFO"
    )
    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}",
            level="DEBUG"
        )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="main.py",
        description="Deploy the TokenAllocation contract through numbered migrations",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Debug output on the console")
    p.add_argument("--no-log-file", action="store_true", help="Do not write data/logs/deploy.log")

    sub = p.add_subparsers(dest="command", required=True)

    migrate = sub.add_parser("migrate", help="Run pending migrations")
    migrate.add_argument("--network", help="Network name from config/networks.json (default: $DEPLOY_NETWORK)")
    migrate.add_argument("--reset", action="store_true", help="Run all migrations from the beginning")
    migrate.add_argument("--from", dest="from_number", type=int, help="First migration number to run")
    migrate.add_argument("--to", dest="to_number", type=int, help="Last migration number to run")
    migrate.add_argument("--dry-run", action="store_true", help="Build and price transactions without sending")
    migrate.add_argument("--allow-placeholders", action="store_true",
                         help="Deploy even if constructor addresses are still 0x0")
    migrate.add_argument("-y", "--yes", action="store_true", help="Skip the confirmation prompt")
    migrate.add_argument("--update-env", action="store_true",
                         help="Write deployed addresses into .env (e.g. TOKEN_ALLOCATION_ADDRESS)")

    status = sub.add_parser("status", help="Show migrations and recorded deployments")
    status.add_argument("--network", help="Network name (default: $DEPLOY_NETWORK)")

    sub.add_parser("networks", help="List configured networks")

    return p.parse_args(argv)


def run_migrate(args: argparse.Namespace) -> int:
    settings = DeploymentSettings.from_env(args.network)
    params = TokenAllocationParams.from_env()

    placeholders = params.placeholders()
    if placeholders:
        logger.warning(f"Placeholder addresses in use: {', '.join(placeholders)}")

    if not args.dry_run and not args.allow_placeholders:
        params.validate()

    network_manager = NetworkManager(settings.networks_config)
    network = network_manager.get_network(settings.network)
    w3 = network_manager.connect(settings.network)

    wallet = WalletManager(settings.private_key)
    balance = wallet.get_balance(w3)
    logger.info(f"Account balance: {balance} ETH")

    min_balance = network.get('min_balance_eth', 0)
    if not args.dry_run and balance < Decimal(str(min_balance)):
        raise InsufficientFundsError(
            f"Insufficient balance for deployment (need at least {min_balance} ETH on {settings.network})"
        )

    registry = DeploymentRegistry(settings.deployments_db)
    try:
        runner = MigrationRunner(settings.migrations_dir, registry, settings.network)
        pending = runner.pending(reset=args.reset, from_number=args.from_number, to_number=args.to_number)

        if not pending:
            logger.info(f"Network '{settings.network}' is up to date")
            return 0

        logger.info(f"Pending migrations on {settings.network}:")
        for migration in pending:
            logger.info(f"  {migration.name}")

        if not args.yes and not args.dry_run:
            confirm = input("\nProceed with deployment? (yes/no): ")
            if confirm.strip().lower() != 'yes':
                logger.info("Deployment cancelled")
                return 0

        deployer = Deployer(
            w3,
            wallet,
            network,
            ArtifactLoader(settings.artifacts_dir),
            registry=registry,
            network_id=network_manager.get_network_id(settings.network, w3),
            dry_run=args.dry_run,
        )

        runner.run(deployer, reset=args.reset, from_number=args.from_number, to_number=args.to_number)

        logger.info("=" * 70)
        logger.info("Deployments")
        logger.info("=" * 70)
        for record in deployer.deployments:
            if record.is_dry_run:
                logger.info(f"  {record.contract_name}: dry run, args {record.constructor_args}")
            else:
                logger.info(f"  {record.contract_name}: {record.address} (tx {record.tx_hash})")

        if args.update_env and not args.dry_run:
            for record in deployer.deployments:
                update_env_file(env_key_for_contract(record.contract_name), record.address, settings.env_path)

        return 0
    finally:
        registry.close()


def run_status(args: argparse.Namespace) -> int:
    settings = DeploymentSettings.from_env(args.network)
    registry = DeploymentRegistry(settings.deployments_db)

    try:
        runner = MigrationRunner(settings.migrations_dir, registry, settings.network)

        logger.info(f"Migrations on {settings.network}:")
        for entry in runner.status():
            mark = "✓" if entry['completed'] else " "
            logger.info(f"  [{mark}] {entry['name']}")

        deployments = registry.list_deployments(settings.network)
        if deployments:
            logger.info("Deployments:")
            for record in deployments:
                logger.info(f"  {record.contract_name}: {record.address} (block {record.block_number})")
        else:
            logger.info("No deployments recorded")

        return 0
    finally:
        registry.close()


def run_networks(args: argparse.Namespace) -> int:
    settings = DeploymentSettings.from_env()
    network_manager = NetworkManager(settings.networks_config)

    for name in network_manager.names():
        network = network_manager.get_network(name)
        chain_id = network.get('chain_id', 'any')
        logger.info(f"  {name} (chain id: {chain_id})")

    return 0


COMMANDS = {
    'migrate': run_migrate,
    'status': run_status,
    'networks': run_networks,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = parse_args(argv)
    configure_logging(args.verbose, None if args.no_log_file else "data/logs/deploy.log")

    try:
        return COMMANDS[args.command](args)
    except (ConfigurationError, NetworkError, ArtifactError, DeploymentError, MigrationError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    except (Web3Exception, TypeError, ValueError) as e:
        # Rejected by web3 or the ABI encoder
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 1


if __name__ == "__main__":
    sys.exit(main())
