"""
Contract Artifacts
Loads compiled contract artifacts (ABI + bytecode) by contract name
"""

import os
import json
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from eth_abi import encode
from web3 import Web3
from loguru import logger


# Truffle-era scripts pass "0x0" for an unset address
SHORT_ZERO_ADDRESS = "0x0"
ZERO_ADDRESS = "0x" + "0" * 40


class ArtifactError(Exception):
    """Base error for artifact loading"""


class ArtifactNotFoundError(ArtifactError):
    """No compiled artifact exists for the requested contract"""


class InvalidArtifactError(ArtifactError):
    """Artifact file exists but cannot be used for deployment"""


@dataclass
class ContractArtifact:
    """Compiled contract: name, interface and deployable bytecode"""

    name: str
    abi: List[Dict]
    bytecode: str
    path: Optional[str] = None
    networks: Dict = field(default_factory=dict)
    raw: Dict = field(default_factory=dict, repr=False)

    def constructor_inputs(self) -> List[Dict]:
        """ABI inputs of the constructor (empty when it takes none)"""
        for entry in self.abi:
            if entry.get('type') == 'constructor':
                return entry.get('inputs', [])
        return []

    def constructor_types(self) -> List[str]:
        return [_abi_type(item) for item in self.constructor_inputs()]

    def normalize_constructor_args(self, args: list) -> list:
        """
        Put address arguments into the form web3 encodes

        '0x0' becomes the zero address and valid addresses are checksummed.
        Anything else is passed through for web3 to reject.
        """
        normalized = []
        for item, value in zip(self.constructor_inputs(), args):
            if item.get('type') == 'address' and isinstance(value, str):
                if value == SHORT_ZERO_ADDRESS:
                    value = ZERO_ADDRESS
                elif Web3.is_address(value):
                    value = Web3.to_checksum_address(value)
            normalized.append(value)
        return normalized

    def encode_constructor_args(self, args: list) -> bytes:
        """
        ABI-encode constructor arguments (as block explorers expect for verification)

        Args:
            args: Constructor arguments in declaration order

        Returns:
            Encoded arguments
        """
        return encode(self.constructor_types(), list(args))

    def record_deployment(self, network_id: str, address: str, tx_hash: str):
        """Store a deployment in the Truffle-style networks map"""
        self.networks[str(network_id)] = {
            'address': address,
            'transactionHash': tx_hash,
        }


def _abi_type(item: Dict) -> str:
    """Canonical ABI type string, expanding tuple components"""
    abi_type = item['type']

    if abi_type.startswith('tuple'):
        inner = ','.join(_abi_type(component) for component in item.get('components', []))
        return f"({inner}){abi_type[len('tuple'):]}"

    return abi_type


def normalize_contract_name(name: str) -> str:
    """'./TokenAllocation.sol' -> 'TokenAllocation'"""
    base = os.path.basename(name.strip())
    if base.endswith('.sol'):
        base = base[:-len('.sol')]
    return base


class ArtifactLoader:
    """
    Resolves contract names to compiled artifacts

    Truffle build output (build/contracts/<Name>.json) is searched first,
    then Hardhat output (artifacts/contracts/<Name>.sol/<Name>.json).
    """

    def __init__(self, build_dir: str = "build/contracts", hardhat_dir: str = "artifacts"):
        """
        Initialize Artifact Loader

        Args:
            build_dir: Truffle build directory
            hardhat_dir: Hardhat artifacts directory
        """
        self.build_dir = build_dir
        self.hardhat_dir = hardhat_dir
        self._cache: Dict[str, ContractArtifact] = {}

    def candidate_paths(self, name: str) -> List[str]:
        contract_name = normalize_contract_name(name)
        return [
            os.path.join(self.build_dir, f"{contract_name}.json"),
            os.path.join(self.hardhat_dir, 'contracts', f"{contract_name}.sol", f"{contract_name}.json"),
        ]

    def require(self, name: str) -> ContractArtifact:
        """
        Load a compiled contract by name

        Args:
            name: Contract name, optionally with a path prefix or .sol suffix

        Returns:
            ContractArtifact
        """
        contract_name = normalize_contract_name(name)

        if contract_name in self._cache:
            return self._cache[contract_name]

        paths = self.candidate_paths(contract_name)
        for path in paths:
            if os.path.exists(path):
                artifact = self._load(contract_name, path)
                self._cache[contract_name] = artifact
                logger.debug(f"Loaded artifact {contract_name} from {path}")
                return artifact

        raise ArtifactNotFoundError(
            f"Contract artifact not found for {contract_name} (searched: {', '.join(paths)}). "
            f"Compile the contracts first"
        )

    def exists(self, name: str) -> bool:
        return any(os.path.exists(path) for path in self.candidate_paths(name))

    def save(self, artifact: ContractArtifact):
        """Write the artifact's networks map back to its file"""
        if not artifact.path:
            raise InvalidArtifactError(f"Artifact {artifact.name} has no source file")

        data = dict(artifact.raw)
        data['networks'] = artifact.networks

        with open(artifact.path, 'w') as f:
            json.dump(data, f, indent=2)

        logger.debug(f"Saved artifact {artifact.name} to {artifact.path}")

    def _load(self, contract_name: str, path: str) -> ContractArtifact:
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidArtifactError(f"Artifact {path} is not valid JSON: {e}")

        abi = data.get('abi')
        if not isinstance(abi, list):
            raise InvalidArtifactError(f"Artifact {path} has no ABI")

        bytecode = data.get('bytecode') or ''
        if isinstance(bytecode, dict):
            bytecode = bytecode.get('object', '')

        if bytecode and not bytecode.startswith('0x'):
            bytecode = '0x' + bytecode

        if bytecode in ('', '0x'):
            raise InvalidArtifactError(
                f"Artifact {path} has no bytecode ({contract_name} may be abstract or an interface)"
            )

        return ContractArtifact(
            name=data.get('contractName', contract_name),
            abi=abi,
            bytecode=bytecode,
            path=path,
            networks=dict(data.get('networks', {})),
            raw=data,
        )
