#!/usr/bin/env python3
"""
Deploy the batch executor (and optionally the mock contracts) to a node.

Reads compiled artifacts from ARTIFACTS_DIR (Hardhat/Foundry style JSON with a
``bytecode`` entry) and deploys them with the configured PRIVATE_KEY. Prints
the resulting addresses in .env form.

Usage:
    python scripts/deploy_contracts.py [--no-mocks]
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from batch_tx.config import ConfigError, ConfigManager
from batch_tx.sdk import NetworkSettings, Web3Network

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def load_bytecode(path: Path) -> str:
    """Creation bytecode from a compiled artifact."""
    with open(path) as f:
        artifact = json.load(f)

    bytecode = artifact.get("bytecode")
    # Foundry nests it as {"object": "0x..."}
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")
    if not bytecode or bytecode == "0x":
        raise ValueError(f"No bytecode in artifact {path}")
    return bytecode


async def deploy(network: Web3Network, path: Path, name: str) -> str:
    logger.info(f"Deploying {name} from {path}")
    address = await network.deploy(load_bytecode(path))
    logger.info(f"{name} deployed to: {address}")
    return address


async def main(deploy_mocks: bool):
    """Deploy contracts and print their addresses."""
    try:
        config = ConfigManager()
        network_config = config.network
        deployment = config.deployment

        if not network_config.PRIVATE_KEY:
            logger.error("PRIVATE_KEY is not set")
            return 1

        settings = NetworkSettings(
            max_retries=network_config.MAX_RETRY_ATTEMPTS,
            retry_delay=network_config.RETRY_DELAY_SECONDS,
            timeout=network_config.REQUEST_TIMEOUT,
            receipt_timeout=network_config.RECEIPT_TIMEOUT,
            gas_multiplier=network_config.GAS_MULTIPLIER,
            chain_id=network_config.CHAIN_ID,
        )
        network = Web3Network.from_rpc_url(network_config.RPC_URL, network_config.PRIVATE_KEY, settings)
        logger.info(f"Deploying from {network.address} via {network_config.RPC_URL}")

        addresses = {
            "BATCH_CONTRACT_ADDRESS": await deploy(
                network,
                deployment.artifact_path(deployment.BATCH_CONTRACT_ARTIFACT),
                "BatchTransactionContract",
            )
        }

        if deploy_mocks:
            addresses["MOCK_TOKEN_ADDRESS"] = await deploy(
                network, deployment.artifact_path(deployment.MOCK_TOKEN_ARTIFACT), "MockToken"
            )
            addresses["SIMPLE_STORAGE_ADDRESS"] = await deploy(
                network, deployment.artifact_path(deployment.SIMPLE_STORAGE_ARTIFACT), "SimpleStorage"
            )

        print()
        for key, address in addresses.items():
            print(f"{key}={address}")
        return 0

    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Deployment failed: {e}")
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Deploy the batch executor contracts")
    parser.add_argument("--no-mocks", action="store_true", help="Skip MockToken and SimpleStorage")
    args = parser.parse_args()

    deploy_mocks = ConfigManager().deployment.DEPLOY_MOCKS and not args.no_mocks
    exit_code = asyncio.run(main(deploy_mocks))
    sys.exit(exit_code)
