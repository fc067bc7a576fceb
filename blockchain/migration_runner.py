"""
Migration Runner
Discovers numbered migration scripts and runs the ones not yet applied
"""

import os
import re
import importlib.util
from dataclasses import dataclass
from typing import Dict, List, Optional
from loguru import logger

from utils.deployment_registry import DeploymentRegistry


MIGRATION_FILE_PATTERN = re.compile(r'^(\d+)_([A-Za-z0-9_]+)\.py$')


class MigrationError(Exception):
    """Migration scripts are malformed or one of them failed"""


@dataclass(frozen=True)
class Migration:
    """A migration script: <number>_<description>.py exposing migrate(deployer)"""

    number: int
    name: str
    path: str

    def load(self):
        """
        Import the script and return its migrate function

        File names start with a digit, so they are loaded by path rather
        than through the package system.
        """
        module_name = f"migration_{self.number}_{os.path.splitext(self.name)[0].split('_', 1)[1]}"
        spec = importlib.util.spec_from_file_location(module_name, self.path)
        if spec is None or spec.loader is None:
            raise MigrationError(f"Cannot load migration {self.path}")

        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)

        migrate = getattr(module, 'migrate', None)
        if not callable(migrate):
            raise MigrationError(f"Migration {self.name} does not define migrate(deployer)")

        return migrate


def discover_migrations(migrations_dir: str) -> List[Migration]:
    """
    Find migration scripts in a directory, ordered by number

    Args:
        migrations_dir: Directory holding <number>_<description>.py files

    Returns:
        Migrations sorted by number
    """
    if not os.path.isdir(migrations_dir):
        raise MigrationError(f"Migrations directory not found: {migrations_dir}")

    migrations: Dict[int, Migration] = {}

    for file_name in sorted(os.listdir(migrations_dir)):
        match = MIGRATION_FILE_PATTERN.match(file_name)
        if not match:
            continue

        number = int(match.group(1))
        if number in migrations:
            raise MigrationError(
                f"Duplicate migration number {number}: {migrations[number].name} and {file_name}"
            )

        migrations[number] = Migration(
            number=number,
            name=file_name,
            path=os.path.join(migrations_dir, file_name),
        )

    return [migrations[number] for number in sorted(migrations)]


class MigrationRunner:
    """
    Runs pending migrations against one network

    Completed migration numbers are kept in the deployment registry, so a
    second run only picks up scripts added since.
    """

    def __init__(self, migrations_dir: str, registry: DeploymentRegistry, network: str):
        """
        Initialize Migration Runner

        Args:
            migrations_dir: Directory of migration scripts
            registry: Deployment registry holding completed migrations
            network: Network name
        """
        self.migrations_dir = migrations_dir
        self.registry = registry
        self.network = network

    def migrations(self) -> List[Migration]:
        return discover_migrations(self.migrations_dir)

    def pending(
        self,
        reset: bool = False,
        from_number: Optional[int] = None,
        to_number: Optional[int] = None
    ) -> List[Migration]:
        """
        Migrations that a run with these options would execute

        Args:
            reset: Ignore completed migrations and start from the first
            from_number: Lowest migration number to run (inclusive)
            to_number: Highest migration number to run (inclusive)
        """
        last_completed = 0 if reset else self.registry.last_completed_migration(self.network)

        selected = []
        for migration in self.migrations():
            if from_number is not None:
                if migration.number < from_number:
                    continue
            elif migration.number <= last_completed:
                continue

            if to_number is not None and migration.number > to_number:
                continue

            selected.append(migration)

        return selected

    def run(
        self,
        deployer,
        reset: bool = False,
        from_number: Optional[int] = None,
        to_number: Optional[int] = None
    ) -> List[Migration]:
        """
        Run pending migrations in order

        Args:
            deployer: Handle passed to each migrate(deployer)
            reset: Re-run every migration from the first
            from_number: Lowest migration number to run (inclusive)
            to_number: Highest migration number to run (inclusive)

        Returns:
            Migrations that ran
        """
        dry_run = getattr(deployer, 'dry_run', False)
        pending = self.pending(reset=reset, from_number=from_number, to_number=to_number)

        if not pending:
            logger.info(f"Network '{self.network}' is up to date, no migrations to run")
            return []

        if reset and not dry_run:
            self.registry.reset_migrations(self.network)

        completed = []

        for migration in pending:
            logger.info(f"Running migration: {migration.name}")

            migrate = migration.load()

            try:
                migrate(deployer)
            except Exception as e:
                logger.error(f"Migration {migration.name} failed: {e}")
                raise

            if not dry_run:
                self.registry.mark_migration_completed(self.network, migration.number, migration.name)

            completed.append(migration)
            logger.success(f"Migration {migration.name} complete")

        return completed

    def status(self) -> List[Dict]:
        """Each discovered migration with whether it has completed on this network"""
        completed = set(self.registry.completed_migrations(self.network))

        return [
            {
                'number': migration.number,
                'name': migration.name,
                'completed': migration.number in completed,
            }
            for migration in self.migrations()
        ]
