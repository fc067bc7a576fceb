"""
Unit Tests for artifact loading
"""

import os
import json

import pytest

from blockchain.artifacts import (
    ArtifactLoader,
    ArtifactNotFoundError,
    InvalidArtifactError,
    ZERO_ADDRESS,
    normalize_contract_name,
)

from conftest import DEPLOYER_ADDRESS, TOKEN_ALLOCATION_BYTECODE, write_artifact


class TestArtifactLoader:
    """Test ArtifactLoader"""

    @pytest.mark.parametrize('name', ['TokenAllocation', 'TokenAllocation.sol', './TokenAllocation.sol'])
    def test_require_accepts_name_forms(self, build_dir, name):
        artifact = ArtifactLoader(build_dir).require(name)

        assert artifact.name == 'TokenAllocation'
        assert artifact.bytecode == TOKEN_ALLOCATION_BYTECODE
        assert artifact.path == os.path.join(build_dir, 'TokenAllocation.json')

    def test_require_caches(self, build_dir):
        loader = ArtifactLoader(build_dir)

        assert loader.require('TokenAllocation') is loader.require('./TokenAllocation.sol')

    def test_missing_artifact(self, tmp_path):
        loader = ArtifactLoader(str(tmp_path / 'build'), str(tmp_path / 'artifacts'))

        with pytest.raises(ArtifactNotFoundError, match='Compile the contracts first'):
            loader.require('TokenAllocation')

        assert not loader.exists('TokenAllocation')

    def test_hardhat_layout(self, tmp_path):
        hardhat_dir = tmp_path / 'artifacts'
        write_artifact(str(hardhat_dir / 'contracts' / 'TokenAllocation.sol'))

        loader = ArtifactLoader(str(tmp_path / 'build'), str(hardhat_dir))
        artifact = loader.require('TokenAllocation')

        assert artifact.name == 'TokenAllocation'
        assert len(artifact.constructor_inputs()) == 4

    def test_bytecode_without_prefix(self, tmp_path):
        write_artifact(str(tmp_path), bytecode='6080')

        artifact = ArtifactLoader(str(tmp_path)).require('TokenAllocation')

        assert artifact.bytecode == '0x6080'

    @pytest.mark.parametrize('bytecode', ['', '0x'])
    def test_empty_bytecode_rejected(self, tmp_path, bytecode):
        write_artifact(str(tmp_path), bytecode=bytecode)

        with pytest.raises(InvalidArtifactError, match='no bytecode'):
            ArtifactLoader(str(tmp_path)).require('TokenAllocation')

    def test_missing_abi_rejected(self, tmp_path):
        with open(tmp_path / 'TokenAllocation.json', 'w') as f:
            json.dump({'contractName': 'TokenAllocation', 'bytecode': '0x6080'}, f)

        with pytest.raises(InvalidArtifactError, match='no ABI'):
            ArtifactLoader(str(tmp_path)).require('TokenAllocation')

    def test_invalid_json_rejected(self, tmp_path):
        (tmp_path / 'TokenAllocation.json').write_text('{not json')

        with pytest.raises(InvalidArtifactError):
            ArtifactLoader(str(tmp_path)).require('TokenAllocation')

    def test_save_records_networks(self, build_dir):
        loader = ArtifactLoader(build_dir)
        artifact = loader.require('TokenAllocation')

        artifact.record_deployment('1337', '0x5FbDB2315678afecb367f032d93F642f64180aa3', '0xabc')
        loader.save(artifact)

        reloaded = ArtifactLoader(build_dir).require('TokenAllocation')
        assert reloaded.networks['1337']['address'] == '0x5FbDB2315678afecb367f032d93F642f64180aa3'
        assert reloaded.networks['1337']['transactionHash'] == '0xabc'
        assert reloaded.abi == artifact.abi


class TestContractArtifact:
    """Test constructor ABI helpers"""

    def test_constructor_types(self, build_dir):
        artifact = ArtifactLoader(build_dir).require('TokenAllocation')

        assert artifact.constructor_types() == ['address', 'address', 'address', 'uint256']

    def test_no_constructor(self, tmp_path):
        write_artifact(str(tmp_path), abi=[])

        artifact = ArtifactLoader(str(tmp_path)).require('TokenAllocation')

        assert artifact.constructor_inputs() == []
        assert artifact.encode_constructor_args([]) == b''

    def test_encode_constructor_args(self, build_dir):
        artifact = ArtifactLoader(build_dir).require('TokenAllocation')

        encoded = artifact.encode_constructor_args([
            '0x' + '11' * 20,
            '0x' + '22' * 20,
            '0x' + '33' * 20,
            500
        ])

        assert len(encoded) == 128
        assert encoded[12:32] == bytes.fromhex('11' * 20)
        assert encoded[96:] == (500).to_bytes(32, 'big')

    def test_normalize_placeholder_and_lowercase(self, build_dir):
        artifact = ArtifactLoader(build_dir).require('TokenAllocation')

        args = artifact.normalize_constructor_args(['0x0', DEPLOYER_ADDRESS.lower(), '0x0', 0])

        assert args == [ZERO_ADDRESS, DEPLOYER_ADDRESS, ZERO_ADDRESS, 0]

    def test_normalize_leaves_invalid_values(self, build_dir):
        artifact = ArtifactLoader(build_dir).require('TokenAllocation')

        args = artifact.normalize_constructor_args(['0xBBB', 'alice.eth', '0x0', '0x0'])

        assert args == ['0xBBB', 'alice.eth', ZERO_ADDRESS, '0x0']

    def test_tuple_constructor_type(self, tmp_path):
        abi = [{
            "type": "constructor",
            "inputs": [{
                "name": "config",
                "type": "tuple[]",
                "components": [
                    {"name": "wallet", "type": "address"},
                    {"name": "share", "type": "uint16"}
                ]
            }]
        }]
        write_artifact(str(tmp_path), abi=abi)

        artifact = ArtifactLoader(str(tmp_path)).require('TokenAllocation')

        assert artifact.constructor_types() == ['(address,uint16)[]']


def test_normalize_contract_name():
    assert normalize_contract_name('./contracts/TokenAllocation.sol') == 'TokenAllocation'
    assert normalize_contract_name('TokenAllocation') == 'TokenAllocation'
