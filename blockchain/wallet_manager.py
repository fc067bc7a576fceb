"""
Wallet Manager
Holds the deploying account and signs deployment transactions
"""

from decimal import Decimal
from typing import Dict, Optional
from web3 import Web3
from eth_account import Account
from loguru import logger


class WalletManager:
    """
    Deploying account loaded from a private key

    The key comes from DEPLOYER_PRIVATE_KEY (see utils.config) and never
    leaves this object; only the address is logged.
    """

    def __init__(self, private_key: Optional[str]):
        """
        Initialize wallet manager

        Args:
            private_key: Hex private key of the deploying account
        """
        if not private_key:
            raise ValueError("DEPLOYER_PRIVATE_KEY must be set in .env")

        self.account = Account.from_key(private_key)
        self.address = self.account.address

        logger.info(f"Deployer wallet: {self.address}")

    def sign_transaction(self, transaction: Dict):
        """
        Sign a transaction with the deploying account

        Args:
            transaction: Transaction dict

        Returns:
            Signed transaction
        """
        try:
            return self.account.sign_transaction(transaction)
        except Exception as e:
            logger.error(f"Error signing transaction: {e}")
            raise

    def get_balance(self, w3: Web3) -> Decimal:
        """
        Native balance of the deploying account

        Args:
            w3: Web3 instance

        Returns:
            Balance in ether
        """
        balance_wei = w3.eth.get_balance(self.address)
        return Decimal(str(w3.from_wei(balance_wei, 'ether')))
