"""
Deployment wiring, configuration and snapshots
"""

from .config import AmmConfig, config_from_env, config_from_mapping, load_config
from .deployment import Deployment, deploy
from .snapshot import REGISTRY_SNAPSHOT_VERSION, RegistrySnapshot, snapshot_registry

__all__ = [
    "AmmConfig",
    "config_from_env",
    "config_from_mapping",
    "load_config",
    "Deployment",
    "deploy",
    "REGISTRY_SNAPSHOT_VERSION",
    "RegistrySnapshot",
    "snapshot_registry",
]
