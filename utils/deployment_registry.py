"""
Deployment Registry
Local SQLite record of deployed contracts and completed migrations per network
"""

import os
import json
import time
import sqlite3
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional
from loguru import logger


@dataclass
class DeploymentRecord:
    """One contract deployment on one network"""

    contract_name: str
    network: str
    constructor_args: list = field(default_factory=list)
    address: Optional[str] = None
    tx_hash: Optional[str] = None
    block_number: Optional[int] = None
    gas_used: Optional[int] = None
    encoded_args: Optional[str] = None
    deployed_at: float = field(default_factory=time.time)

    @property
    def is_dry_run(self) -> bool:
        return self.address is None

    def to_dict(self) -> Dict:
        return asdict(self)


class DeploymentRegistry:
    """
    SQLite-backed registry

    Holds the latest deployment of each contract per network and the
    migration numbers that have completed on each network. Pass
    ":memory:" as db_path for a throwaway registry.
    """

    def __init__(self, db_path: str = "data/deployments.db"):
        """
        Initialize Deployment Registry

        Args:
            db_path: Path to SQLite database
        """
        self.db_path = db_path

        if db_path != ':memory:' and os.path.dirname(db_path):
            os.makedirs(os.path.dirname(db_path), exist_ok=True)

        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self._init_db()

        logger.debug(f"Deployment registry opened: {db_path}")

    def _init_db(self):
        cursor = self.conn.cursor()

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS deployments (
                network TEXT NOT NULL,
                contract_name TEXT NOT NULL,
                address TEXT NOT NULL,
                tx_hash TEXT,
                block_number INTEGER,
                gas_used INTEGER,
                constructor_args TEXT NOT NULL,
                encoded_args TEXT,
                deployed_at REAL NOT NULL,
                PRIMARY KEY (network, contract_name)
            )
        ''')

        # Registries created before encoded_args was stored
        columns = [row[1] for row in cursor.execute('PRAGMA table_info(deployments)')]
        if 'encoded_args' not in columns:
            cursor.execute('ALTER TABLE deployments ADD COLUMN encoded_args TEXT')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS migrations (
                network TEXT NOT NULL,
                number INTEGER NOT NULL,
                name TEXT NOT NULL,
                completed_at REAL NOT NULL,
                PRIMARY KEY (network, number)
            )
        ''')

        self.conn.commit()

    def record_deployment(self, record: DeploymentRecord):
        """
        Store a deployment, replacing any earlier one of the same contract

        Args:
            record: Deployment with an on-chain address
        """
        if record.is_dry_run:
            raise ValueError(f"Cannot record dry-run deployment of {record.contract_name}")

        cursor = self.conn.cursor()
        cursor.execute(
            'INSERT OR REPLACE INTO deployments '
            '(network, contract_name, address, tx_hash, block_number, gas_used, constructor_args, encoded_args, deployed_at) '
            'VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)',
            (
                record.network,
                record.contract_name,
                record.address,
                record.tx_hash,
                record.block_number,
                record.gas_used,
                json.dumps(record.constructor_args),
                record.encoded_args,
                record.deployed_at,
            )
        )
        self.conn.commit()

        logger.debug(f"Recorded {record.contract_name} at {record.address} on {record.network}")

    def get_deployment(self, network: str, contract_name: str) -> Optional[DeploymentRecord]:
        cursor = self.conn.cursor()
        cursor.execute(
            'SELECT contract_name, network, constructor_args, address, tx_hash, block_number, gas_used, encoded_args, deployed_at '
            'FROM deployments WHERE network = ? AND contract_name = ?',
            (network, contract_name)
        )

        row = cursor.fetchone()
        return self._row_to_record(row) if row else None

    def list_deployments(self, network: str) -> List[DeploymentRecord]:
        cursor = self.conn.cursor()
        cursor.execute(
            'SELECT contract_name, network, constructor_args, address, tx_hash, block_number, gas_used, encoded_args, deployed_at '
            'FROM deployments WHERE network = ? ORDER BY deployed_at',
            (network,)
        )
        return [self._row_to_record(row) for row in cursor.fetchall()]

    def mark_migration_completed(self, network: str, number: int, name: str):
        """
        Record that a migration script finished on a network

        Args:
            network: Network name
            number: Migration number (file prefix)
            name: Migration file name
        """
        cursor = self.conn.cursor()
        cursor.execute(
            'INSERT OR REPLACE INTO migrations (network, number, name, completed_at) VALUES (?, ?, ?, ?)',
            (network, number, name, time.time())
        )
        self.conn.commit()

        logger.debug(f"Migration {number} ({name}) marked completed on {network}")

    def last_completed_migration(self, network: str) -> int:
        """Highest completed migration number on a network (0 if none)"""
        cursor = self.conn.cursor()
        cursor.execute('SELECT MAX(number) FROM migrations WHERE network = ?', (network,))
        value = cursor.fetchone()[0]
        return value if value is not None else 0

    def completed_migrations(self, network: str) -> List[int]:
        cursor = self.conn.cursor()
        cursor.execute('SELECT number FROM migrations WHERE network = ? ORDER BY number', (network,))
        return [row[0] for row in cursor.fetchall()]

    def reset_migrations(self, network: str):
        """Forget completed migrations on a network (deployments are kept)"""
        cursor = self.conn.cursor()
        cursor.execute('DELETE FROM migrations WHERE network = ?', (network,))
        deleted = cursor.rowcount
        self.conn.commit()

        logger.warning(f"Reset {deleted} completed migrations on {network}")

    def close(self):
        if self.conn:
            self.conn.close()
            self.conn = None

    @staticmethod
    def _row_to_record(row) -> DeploymentRecord:
        contract_name, network, args_json, address, tx_hash, block_number, gas_used, encoded_args, deployed_at = row
        return DeploymentRecord(
            contract_name=contract_name,
            network=network,
            constructor_args=json.loads(args_json),
            address=address,
            tx_hash=tx_hash,
            block_number=block_number,
            gas_used=gas_used,
            encoded_args=encoded_args,
            deployed_at=deployed_at,
        )
