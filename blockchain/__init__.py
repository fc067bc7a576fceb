"""
Blockchain Interaction Package
Handles artifact loading, deployment transactions, nonce management and migrations
"""

from .artifacts import ArtifactLoader, ContractArtifact
from .deployer import Deployer
from .migration_runner import MigrationRunner
from .nonce_manager import NonceManager
from .transaction_builder import TransactionBuilder
from .wallet_manager import WalletManager

__all__ = [
    'ArtifactLoader',
    'ContractArtifact',
    'Deployer',
    'MigrationRunner',
    'NonceManager',
    'TransactionBuilder',
    'WalletManager'
]
