"""
Deployer
The handle migration scripts receive: deploys artifacts with constructor arguments
"""

from typing import Dict, List, Optional, Union
from web3 import Web3
from loguru import logger

from utils.deployment_registry import DeploymentRecord, DeploymentRegistry

from .artifacts import ArtifactLoader, ContractArtifact
from .nonce_manager import NonceManager
from .transaction_builder import TransactionBuilder
from .wallet_manager import WalletManager


class DeploymentError(Exception):
    """Base error for deployments"""


class ConstructorArgumentError(DeploymentError):
    """Wrong number of constructor arguments for the artifact"""


class InsufficientFundsError(DeploymentError):
    """Deploying account cannot cover the transaction fee"""


class DeploymentFailedError(DeploymentError):
    """Deployment transaction was mined but reverted"""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.tx_hash = tx_hash


class Deployer:
    """
    Deploys compiled contracts for migration scripts

    Network, signing and RPC errors are not caught here; they reach the
    migration runner unchanged.
    """

    def __init__(
        self,
        w3: Web3,
        wallet: WalletManager,
        network: Dict,
        artifacts: ArtifactLoader,
        registry: Optional[DeploymentRegistry] = None,
        nonce_manager: Optional[NonceManager] = None,
        tx_builder: Optional[TransactionBuilder] = None,
        network_id: Optional[str] = None,
        dry_run: bool = False,
        update_artifacts: bool = True
    ):
        """
        Initialize Deployer

        Args:
            w3: Connected Web3 instance
            wallet: Deploying account
            network: Network settings from NetworkManager.get_network
            artifacts: Loader used to resolve contract names
            registry: Where successful deployments are recorded
            nonce_manager: Nonce source (created from the chain when omitted)
            tx_builder: Transaction builder (created from network when omitted)
            network_id: Key for the artifact's networks map
            dry_run: Build and price transactions without sending them
            update_artifacts: Write deployed addresses back into artifact files
        """
        self.w3 = w3
        self.wallet = wallet
        self.network = network
        self.network_name = network.get('name', 'development')
        self.artifacts = artifacts
        self.registry = registry
        self.nonce_manager = nonce_manager or NonceManager(w3, wallet.address)
        self.tx_builder = tx_builder or TransactionBuilder(w3, network)
        self.network_id = str(network_id) if network_id is not None else self.network_name
        self.dry_run = dry_run
        self.update_artifacts = update_artifacts
        self.confirmations_timeout = int(network.get('confirmations_timeout', 300))

        self.deployments: List[DeploymentRecord] = []

    def deploy(
        self,
        contract: Union[ContractArtifact, str],
        *args,
        overwrite: bool = True,
        tx_params: Optional[Dict] = None
    ) -> DeploymentRecord:
        """
        Deploy a contract with constructor arguments

        Args:
            contract: Artifact, or contract name to resolve through the loader
            *args: Constructor arguments in declaration order
            overwrite: Redeploy even if the registry already has this contract
            tx_params: Transaction fields overriding the built ones (gas, fees, value)

        Returns:
            DeploymentRecord (address is None in dry-run mode)
        """
        artifact = contract if isinstance(contract, ContractArtifact) else self.artifacts.require(contract)
        args = list(args)

        expected = len(artifact.constructor_inputs())
        if len(args) != expected:
            raise ConstructorArgumentError(
                f"{artifact.name} constructor takes {expected} arguments, got {len(args)}"
            )

        args = artifact.normalize_constructor_args(args)

        if not overwrite and self.registry is not None:
            existing = self.registry.get_deployment(self.network_name, artifact.name)
            if existing is not None:
                logger.info(f"{artifact.name} already deployed at {existing.address}, skipping")
                self.deployments.append(existing)
                return existing

        logger.info(f"Deploying {artifact.name} to {self.network_name} from {self.wallet.address}")
        logger.debug(f"Constructor arguments: {args}")

        if self.dry_run:
            return self._dry_run(artifact, args, tx_params)

        nonce = self.nonce_manager.get_nonce()

        try:
            tx = self.tx_builder.build_deployment_tx(artifact, args, self.wallet.address, nonce, tx_params)
            encoded_args = Web3.to_hex(artifact.encode_constructor_args(args))
            self._check_funds(tx)

            signed_tx = self.wallet.sign_transaction(tx)
            tx_hash = self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        except Exception as e:
            logger.error(f"❌ Could not send {artifact.name} deployment: {e}")
            self.nonce_manager.release_nonce(nonce)
            raise

        tx_hash_hex = Web3.to_hex(tx_hash)
        logger.info(f"Transaction sent: {tx_hash_hex}")
        logger.info("Waiting for confirmation...")

        receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.confirmations_timeout)
        self.nonce_manager.confirm_nonce(nonce)

        if receipt['status'] != 1:
            logger.error(f"❌ Deployment of {artifact.name} failed")
            logger.error(f"Transaction hash: {tx_hash_hex}")
            raise DeploymentFailedError(f"Deployment of {artifact.name} reverted", tx_hash=tx_hash_hex)

        record = DeploymentRecord(
            contract_name=artifact.name,
            network=self.network_name,
            constructor_args=args,
            address=receipt['contractAddress'],
            tx_hash=tx_hash_hex,
            block_number=receipt['blockNumber'],
            gas_used=receipt['gasUsed'],
            encoded_args=encoded_args,
        )

        logger.success(f"✅ {artifact.name} deployed at {record.address}")
        logger.success(f"Gas used: {record.gas_used}")
        logger.info(f"Constructor arguments (ABI-encoded): {encoded_args}")

        self._record(artifact, record)
        return record

    def _dry_run(self, artifact: ContractArtifact, args: list, tx_params: Optional[Dict]) -> DeploymentRecord:
        nonce = self.nonce_manager.get_current_nonce()

        try:
            tx = self.tx_builder.build_deployment_tx(artifact, args, self.wallet.address, nonce, tx_params)
        except Exception as e:
            logger.error(f"❌ [dry run] Could not build {artifact.name} deployment: {e}")
            raise

        encoded_args = Web3.to_hex(artifact.encode_constructor_args(args))
        cost = self.w3.from_wei(self.tx_builder.estimate_cost(tx), 'ether')
        logger.info(f"[dry run] {artifact.name}: estimated cost {cost} ETH, not sent")

        record = DeploymentRecord(
            contract_name=artifact.name,
            network=self.network_name,
            constructor_args=args,
            encoded_args=encoded_args,
        )
        self.deployments.append(record)
        return record

    def _check_funds(self, tx: Dict):
        cost_wei = self.tx_builder.estimate_cost(tx)
        balance_wei = self.w3.eth.get_balance(self.wallet.address)

        logger.info(f"Estimated deployment cost: {self.w3.from_wei(cost_wei, 'ether')} ETH")

        if balance_wei < cost_wei:
            raise InsufficientFundsError(
                f"Balance {self.w3.from_wei(balance_wei, 'ether')} ETH is below the "
                f"estimated cost {self.w3.from_wei(cost_wei, 'ether')} ETH"
            )

    def _record(self, artifact: ContractArtifact, record: DeploymentRecord):
        self.deployments.append(record)

        if self.registry is not None:
            self.registry.record_deployment(record)

        if self.update_artifacts and artifact.path:
            artifact.record_deployment(self.network_id, record.address, record.tx_hash)
            self.artifacts.save(artifact)
