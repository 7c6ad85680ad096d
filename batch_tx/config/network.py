"""
Network and deployment configuration for batch-tx.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from eth_utils import is_address

from .base import BaseConfig, ConfigError


@dataclass
class NetworkConfig(BaseConfig):
    """RPC endpoint, signer and executor address used by the SDK."""

    # Endpoint (ALCHEMY_API_URL kept for existing .env files)
    RPC_URL: str = BaseConfig.get_env(
        "RPC_URL", BaseConfig.get_env("ALCHEMY_API_URL", "http://127.0.0.1:8545")
    )
    CHAIN_ID: int = BaseConfig.get_env_int("CHAIN_ID", 31337)

    # Signer and executor
    PRIVATE_KEY: Optional[str] = BaseConfig.get_env("PRIVATE_KEY")
    BATCH_CONTRACT_ADDRESS: Optional[str] = BaseConfig.get_env("BATCH_CONTRACT_ADDRESS")

    # RPC behaviour
    MAX_RETRY_ATTEMPTS: int = BaseConfig.get_env_int("MAX_RETRY_ATTEMPTS", 3)
    RETRY_DELAY_SECONDS: float = BaseConfig.get_env_float("RETRY_DELAY_SECONDS", 1.0)
    REQUEST_TIMEOUT: float = BaseConfig.get_env_float("REQUEST_TIMEOUT", 30.0)
    RECEIPT_TIMEOUT: float = BaseConfig.get_env_float("RECEIPT_TIMEOUT", 120.0)
    GAS_MULTIPLIER: float = BaseConfig.get_env_float("GAS_MULTIPLIER", 1.2)

    def _validate_config(self):
        super()._validate_config()
        if not self.RPC_URL.startswith(("http://", "https://", "ws://", "wss://")):
            raise ConfigError(f"Invalid RPC URL: {self.RPC_URL}")
        if self.BATCH_CONTRACT_ADDRESS and not is_address(self.BATCH_CONTRACT_ADDRESS):
            raise ConfigError(f"Invalid batch contract address: {self.BATCH_CONTRACT_ADDRESS}")
        if self.MAX_RETRY_ATTEMPTS < 1:
            raise ConfigError("MAX_RETRY_ATTEMPTS must be at least 1")
        if self.GAS_MULTIPLIER < 1.0:
            raise ConfigError("GAS_MULTIPLIER must be at least 1.0")

    def require_signer(self) -> None:
        """
        Check that everything needed to submit transactions is set.

        Raises:
            ConfigError: If the private key or executor address is missing
        """
        if not self.PRIVATE_KEY:
            raise ConfigError("Required environment variable 'PRIVATE_KEY' is not set")
        if not self.BATCH_CONTRACT_ADDRESS:
            raise ConfigError("Required environment variable 'BATCH_CONTRACT_ADDRESS' is not set")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        # Never expose the key
        if data.get("PRIVATE_KEY"):
            data["PRIVATE_KEY"] = "***"
        return data


@dataclass
class DeploymentConfig(BaseConfig):
    """Where compiled contracts live and where the mocks were deployed."""

    ARTIFACTS_DIR: Path = Path(
        BaseConfig.get_env("ARTIFACTS_DIR", str(BaseConfig.PROJECT_ROOT / "artifacts"))
    )
    BATCH_CONTRACT_ARTIFACT: str = BaseConfig.get_env(
        "BATCH_CONTRACT_ARTIFACT", "BatchTransactionContract.json"
    )
    MOCK_TOKEN_ARTIFACT: str = BaseConfig.get_env("MOCK_TOKEN_ARTIFACT", "MockToken.json")
    SIMPLE_STORAGE_ARTIFACT: str = BaseConfig.get_env("SIMPLE_STORAGE_ARTIFACT", "SimpleStorage.json")
    DEPLOY_MOCKS: bool = BaseConfig.get_env_bool("DEPLOY_MOCKS", True)

    MOCK_TOKEN_ADDRESS: Optional[str] = BaseConfig.get_env("MOCK_TOKEN_ADDRESS")
    SIMPLE_STORAGE_ADDRESS: Optional[str] = BaseConfig.get_env("SIMPLE_STORAGE_ADDRESS")

    def _validate_config(self):
        super()._validate_config()
        for name in ("MOCK_TOKEN_ADDRESS", "SIMPLE_STORAGE_ADDRESS"):
            value = getattr(self, name)
            if value and not is_address(value):
                raise ConfigError(f"Invalid {name}: {value}")

    def artifact_path(self, artifact: str) -> Path:
        return Path(self.ARTIFACTS_DIR) / artifact
