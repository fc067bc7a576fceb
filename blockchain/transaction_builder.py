"""
Transaction Builder
Constructs contract-creation transactions with gas and fee settings
"""

from typing import Dict, Optional
from web3 import Web3
from loguru import logger

from .artifacts import ContractArtifact


FEE_FIELDS = ('gasPrice', 'maxFeePerGas', 'maxPriorityFeePerGas')


class TransactionBuilder:
    """
    Builds deployment transactions for compiled artifacts
    """

    def __init__(self, w3: Web3, network: Dict):
        """
        Initialize Transaction Builder

        Args:
            w3: Web3 instance
            network: Network settings (gas_limit, gas_multiplier, ...)
        """
        self.w3 = w3
        self.default_gas_limit = int(network.get('gas_limit', 6000000))
        self.gas_multiplier = float(network.get('gas_multiplier', 1.2))
        self.max_gas_price_gwei = network.get('max_gas_price_gwei')

    def build_deployment_tx(
        self,
        artifact: ContractArtifact,
        args: list,
        sender: str,
        nonce: int,
        overrides: Optional[Dict] = None
    ) -> Dict:
        """
        Build the contract-creation transaction for an artifact

        Args:
            artifact: Compiled contract
            args: Constructor arguments in declaration order
            sender: Deploying account address
            nonce: Nonce to use
            overrides: Caller-supplied transaction fields, applied last

        Returns:
            Unsigned transaction dict
        """
        overrides = dict(overrides or {})

        contract = self.w3.eth.contract(abi=artifact.abi, bytecode=artifact.bytecode)
        constructor = contract.constructor(*args)

        params = {
            'from': sender,
            'nonce': nonce,
            'chainId': self.w3.eth.chain_id,
        }

        if 'gas' not in overrides:
            params['gas'] = self.estimate_gas_limit(constructor, sender, artifact.name)

        if not any(name in overrides for name in FEE_FIELDS):
            params.update(self.get_fee_params())

        params.update(overrides)

        tx = constructor.build_transaction(params)

        logger.debug(f"Built deployment transaction for {artifact.name} (nonce {nonce}, gas {tx.get('gas')})")
        return tx

    def estimate_gas_limit(self, constructor, sender: str, contract_name: str = '') -> int:
        """
        Estimate deployment gas with a safety buffer

        Falls back to the network's default gas limit when the node
        cannot estimate (e.g. the constructor would revert).
        """
        try:
            gas_estimate = constructor.estimate_gas({'from': sender})
            gas_limit = int(gas_estimate * self.gas_multiplier)
        except Exception as e:
            logger.warning(f"Gas estimation failed for {contract_name}: {e}, using default")
            gas_limit = self.default_gas_limit

        logger.info(f"Gas limit: {gas_limit}")
        return gas_limit

    def get_fee_params(self) -> Dict[str, int]:
        """
        EIP-1559 fee fields when the chain reports a base fee, legacy gasPrice otherwise

        Returns:
            Dict with fee fields in wei
        """
        latest_block = self.w3.eth.get_block('latest')
        base_fee_wei = latest_block.get('baseFeePerGas')

        if base_fee_wei is None:
            gas_price = self.w3.eth.gas_price
            if self.max_gas_price_gwei is not None:
                gas_price = min(gas_price, self.w3.to_wei(self.max_gas_price_gwei, 'gwei'))
            logger.info(f"Gas price: {self.w3.from_wei(gas_price, 'gwei')} gwei")
            return {'gasPrice': int(gas_price)}

        priority_fee_wei = self.w3.eth.max_priority_fee

        # Max fee = base fee * 2 + priority fee (buffer for fluctuations)
        max_fee_wei = (base_fee_wei * 2) + priority_fee_wei

        if self.max_gas_price_gwei is not None:
            max_fee_wei = min(max_fee_wei, self.w3.to_wei(self.max_gas_price_gwei, 'gwei'))
            priority_fee_wei = min(priority_fee_wei, max_fee_wei)

        logger.info(f"Max fee: {self.w3.from_wei(max_fee_wei, 'gwei')} gwei")
        return {
            'maxFeePerGas': int(max_fee_wei),
            'maxPriorityFeePerGas': int(priority_fee_wei),
        }

    @staticmethod
    def estimate_cost(tx: Dict) -> int:
        """Upper bound of the transaction's fee in wei"""
        price = tx.get('maxFeePerGas', tx.get('gasPrice', 0))
        return int(tx.get('gas', 0)) * int(price) + int(tx.get('value', 0))
