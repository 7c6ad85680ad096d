"""
Unit tests for the configuration system.
"""

import pytest

from batch_tx.config import (
    BaseConfig,
    ConfigError,
    ConfigManager,
    DeploymentConfig,
    NetworkConfig,
    get_config,
    reload_config,
)

PRIVATE_KEY = "0x" + "01" * 32
EXECUTOR = "0x" + "77" * 20


class TestEnvHelpers:
    """Test cases for the BaseConfig environment readers."""

    def test_get_env_int(self, monkeypatch):
        monkeypatch.setenv("BATCH_TX_TEST_INT", "12")
        assert BaseConfig.get_env_int("BATCH_TX_TEST_INT", 3) == 12
        assert BaseConfig.get_env_int("BATCH_TX_TEST_MISSING", 3) == 3

    def test_get_env_int_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("BATCH_TX_TEST_INT", "twelve")
        with pytest.raises(ConfigError):
            BaseConfig.get_env_int("BATCH_TX_TEST_INT", 3)

    def test_required_variable(self, monkeypatch):
        monkeypatch.delenv("BATCH_TX_TEST_MISSING", raising=False)
        with pytest.raises(ConfigError):
            BaseConfig.get_env("BATCH_TX_TEST_MISSING", required=True)

    @pytest.mark.parametrize("raw, expected", [("true", True), ("1", True), ("on", True), ("no", False)])
    def test_get_env_bool(self, monkeypatch, raw, expected):
        monkeypatch.setenv("BATCH_TX_TEST_BOOL", raw)
        assert BaseConfig.get_env_bool("BATCH_TX_TEST_BOOL") is expected

    def test_get_env_list(self, monkeypatch):
        monkeypatch.setenv("BATCH_TX_TEST_LIST", "a, b,,c")
        assert BaseConfig.get_env_list("BATCH_TX_TEST_LIST") == ["a", "b", "c"]


class TestNetworkConfig:

    def test_invalid_environment(self):
        with pytest.raises(ConfigError):
            BaseConfig(ENVIRONMENT="moon")

    def test_invalid_rpc_url(self):
        with pytest.raises(ConfigError):
            NetworkConfig(RPC_URL="ftp://node")

    def test_invalid_executor_address(self):
        with pytest.raises(ConfigError):
            NetworkConfig(BATCH_CONTRACT_ADDRESS="0x1234")

    def test_gas_multiplier_below_one(self):
        with pytest.raises(ConfigError):
            NetworkConfig(GAS_MULTIPLIER=0.5)

    def test_require_signer(self):
        with pytest.raises(ConfigError, match="PRIVATE_KEY"):
            NetworkConfig(PRIVATE_KEY=None, BATCH_CONTRACT_ADDRESS=EXECUTOR).require_signer()
        with pytest.raises(ConfigError, match="BATCH_CONTRACT_ADDRESS"):
            NetworkConfig(PRIVATE_KEY=PRIVATE_KEY, BATCH_CONTRACT_ADDRESS=None).require_signer()

        NetworkConfig(PRIVATE_KEY=PRIVATE_KEY, BATCH_CONTRACT_ADDRESS=EXECUTOR).require_signer()

    def test_to_dict_masks_private_key(self):
        data = NetworkConfig(PRIVATE_KEY=PRIVATE_KEY).to_dict()
        assert data["PRIVATE_KEY"] == "***"


class TestDeploymentConfig:

    def test_artifact_path(self, tmp_path):
        config = DeploymentConfig(ARTIFACTS_DIR=tmp_path)
        assert config.artifact_path(config.BATCH_CONTRACT_ARTIFACT) == tmp_path / "BatchTransactionContract.json"

    def test_invalid_mock_address(self):
        with pytest.raises(ConfigError):
            DeploymentConfig(SIMPLE_STORAGE_ADDRESS="storage")


class TestConfigManager:

    def test_environment_override(self):
        config = ConfigManager(environment="test")
        assert config.environment == "test"
        assert set(config.to_dict()) == {"environment", "base", "network", "deployment"}

    def test_invalid_environment_override(self):
        with pytest.raises(ConfigError):
            ConfigManager(environment="moon")

    def test_validate_with_signer_requirement(self):
        config = ConfigManager(environment="test")
        config.network.PRIVATE_KEY = None

        with pytest.raises(ConfigError):
            config.validate_configuration(require_signer=True)

    def test_get_config_is_cached(self):
        first = reload_config("test")
        assert get_config() is first
        assert reload_config("test") is not first
