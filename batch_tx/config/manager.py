"""
Configuration manager for batch-tx.

This module provides a centralized way to access all configuration settings
across the application. It combines all configuration classes into a single
easy-to-use interface.
"""

import logging
from typing import Dict, Any
from .base import BaseConfig, ConfigError
from .network import DeploymentConfig, NetworkConfig

logger = logging.getLogger(__name__)


class ConfigManager:
    """
    Centralized configuration manager that combines all configuration classes.

    This class provides easy access to all configuration settings and ensures
    that configurations are properly initialized and validated.
    """

    def __init__(self, environment: str = None):
        """
        Initialize the configuration manager.

        Args:
            environment: Override the environment (local, test, dev, staging, production)
        """
        self._environment = environment
        self._base_config = None
        self._network_config = None
        self._deployment_config = None
        self._initialize_configs()

    def _initialize_configs(self):
        """Initialize all configuration objects."""
        try:
            # Initialize base configuration first
            self._base_config = BaseConfig()
            if self._environment:
                self._base_config.ENVIRONMENT = self._environment
                self._base_config._validate_config()

            # Initialize all other configurations
            self._network_config = NetworkConfig()
            self._deployment_config = DeploymentConfig()

            logger.info(f"Configuration initialized for environment: {self.environment}")

        except Exception as e:
            logger.error(f"Failed to initialize configuration: {e}")
            raise ConfigError(f"Configuration initialization failed: {e}") from e

    @property
    def environment(self) -> str:
        """Get current environment."""
        return self._base_config.ENVIRONMENT

    @property
    def base(self) -> BaseConfig:
        """Get base configuration."""
        return self._base_config

    @property
    def network(self) -> NetworkConfig:
        """Get network configuration."""
        return self._network_config

    @property
    def deployment(self) -> DeploymentConfig:
        """Get deployment configuration."""
        return self._deployment_config

    def validate_configuration(self, require_signer: bool = False) -> bool:
        """
        Validate all configuration settings.

        Args:
            require_signer: Also demand a private key and executor address

        Returns:
            True if all configurations are valid

        Raises:
            ConfigError: If any configuration is invalid
        """
        try:
            self.network._validate_config()
            self.deployment._validate_config()

            if require_signer:
                self.network.require_signer()
            elif not self.network.BATCH_CONTRACT_ADDRESS:
                logger.warning("BATCH_CONTRACT_ADDRESS not configured")

            logger.info("Configuration validation successful")
            return True

        except Exception as e:
            logger.error(f"Configuration validation failed: {e}")
            raise ConfigError(f"Configuration validation failed: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert all configurations to dictionary format."""
        return {
            "environment": self.environment,
            "base": self.base.to_dict() if self.base else {},
            "network": self.network.to_dict() if self.network else {},
            "deployment": self.deployment.to_dict() if self.deployment else {},
        }

    def __repr__(self) -> str:
        """String representation of the configuration manager."""
        return f"ConfigManager(environment={self.environment})"


# Global configuration manager instance
_config_manager = None


def get_config(environment: str = None, force_reload: bool = False) -> ConfigManager:
    """
    Get the global configuration manager instance.

    Args:
        environment: Override environment
        force_reload: Force reload of configuration

    Returns:
        ConfigManager instance
    """
    global _config_manager

    if _config_manager is None or force_reload:
        _config_manager = ConfigManager(environment=environment)
        _config_manager.validate_configuration()

    return _config_manager


def reload_config(environment: str = None) -> ConfigManager:
    """
    Reload the global configuration manager.

    Args:
        environment: Override environment

    Returns:
        New ConfigManager instance
    """
    return get_config(environment=environment, force_reload=True)
