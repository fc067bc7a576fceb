"""
Utilities Package
Configuration, network access and deployment bookkeeping
"""

from .config import DeploymentSettings, TokenAllocationParams
from .deployment_registry import DeploymentRecord, DeploymentRegistry
from .network_manager import NetworkManager

__all__ = [
    'DeploymentSettings',
    'TokenAllocationParams',
    'DeploymentRecord',
    'DeploymentRegistry',
    'NetworkManager'
]
