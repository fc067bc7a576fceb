"""
Nonce Manager
Hands out sequential nonces for the deploying account
"""

import threading
from typing import Optional
from web3 import Web3
from loguru import logger


class NonceManager:
    """
    Tracks the deploying account's nonce locally

    A migration run may send several deployments back to back; allocating
    nonces here keeps them sequential without waiting for the node's
    pending count to catch up.
    """

    def __init__(self, w3: Web3, address: str):
        """
        Initialize Nonce Manager

        Args:
            w3: Web3 instance
            address: Deploying account address
        """
        self.w3 = w3
        self.address = Web3.to_checksum_address(address)

        self.current_nonce: Optional[int] = None
        self.pending_nonces = set()
        self.lock = threading.Lock()

        self._sync_nonce()

        logger.debug(f"Nonce Manager initialized with nonce: {self.current_nonce}")

    def _sync_nonce(self):
        """Sync nonce with blockchain (confirmed + pending)"""
        self.current_nonce = self.w3.eth.get_transaction_count(self.address, 'pending')
        logger.debug(f"Nonce synced: {self.current_nonce}")

    def get_nonce(self) -> int:
        """
        Get next available nonce

        Returns:
            Next nonce to use
        """
        with self.lock:
            if self.current_nonce is None:
                self._sync_nonce()

            nonce = self.current_nonce
            self.current_nonce += 1
            self.pending_nonces.add(nonce)

            logger.debug(f"Allocated nonce: {nonce}")
            return nonce

    def confirm_nonce(self, nonce: int):
        """Mark a nonce as mined"""
        with self.lock:
            self.pending_nonces.discard(nonce)

    def release_nonce(self, nonce: int):
        """
        Give back a nonce whose transaction was never sent

        Only the most recently allocated nonce can be reused; anything older
        forces a resync so no gap is left behind.
        """
        with self.lock:
            self.pending_nonces.discard(nonce)

            if self.current_nonce == nonce + 1:
                self.current_nonce = nonce
            else:
                self._sync_nonce()

    def get_current_nonce(self) -> int:
        """Get current nonce (without incrementing)"""
        if self.current_nonce is None:
            self._sync_nonce()
        return self.current_nonce
