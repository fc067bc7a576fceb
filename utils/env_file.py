"""
.env File Updates
Writes deployed contract addresses back into the project's .env file
"""

import os
import re
from loguru import logger


def update_env_file(key: str, value: str, env_path: str = ".env") -> bool:
    """
    Set KEY=value in the .env file, replacing an existing entry

    Args:
        key: Variable name (e.g. TOKEN_ALLOCATION_ADDRESS)
        value: Value to store
        env_path: Path to the .env file (created if missing)

    Returns:
        True if the file was written
    """
    try:
        lines = []
        if os.path.exists(env_path):
            with open(env_path, 'r') as f:
                lines = f.readlines()

        found = False
        for i, line in enumerate(lines):
            if line.startswith(f'{key}='):
                lines[i] = f'{key}={value}\n'
                found = True
                break

        if not found:
            if lines and not lines[-1].endswith('\n'):
                lines[-1] += '\n'
            lines.append(f'{key}={value}\n')

        with open(env_path, 'w') as f:
            f.writelines(lines)

        logger.success(f"Updated {env_path} with {key}")
        return True

    except OSError as e:
        logger.error(f"Error updating {env_path}: {e}")
        return False


def env_key_for_contract(contract_name: str) -> str:
    """'TokenAllocation' -> 'TOKEN_ALLOCATION_ADDRESS'"""
    snake = re.sub(r'(?<=[a-z0-9])(?=[A-Z])', '_', contract_name)
    return f"{snake.upper()}_ADDRESS"
