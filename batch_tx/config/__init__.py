"""
Configuration management for batch-tx.

This module provides centralized configuration management for the SDK and
its scripts. Use get_config() to access all configuration settings.

Example:
    from batch_tx.config import get_config

    config = get_config()

    # Access RPC and signer settings
    rpc_url = config.network.RPC_URL
    executor = config.network.BATCH_CONTRACT_ADDRESS

    # Access deployment settings
    artifact = config.deployment.artifact_path("BatchTransactionContract.json")
"""

from .base import BaseConfig, ConfigError
from .manager import ConfigManager, get_config, reload_config
from .network import DeploymentConfig, NetworkConfig

__all__ = [
    "BaseConfig",
    "ConfigError",
    "NetworkConfig",
    "DeploymentConfig",
    "ConfigManager",
    "get_config",
    "reload_config",
]
