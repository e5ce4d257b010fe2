"""
Deploy and exercise the MyToken contract.

Usage:
    python -m erc20_deployer
    erc20-deploy

Environment Variables:
    ERC20_PROVIDERS_FILE: Node endpoint file (default: eth_providers/providers.json)
    ERC20_PROVIDER_KEY: provider_link_cli (default) or provider_link_ui
    ERC20_ACCOUNTS_FILE: Keystore file (default: eth_accounts/accounts.json)
    ERC20_BUILD_DIR: Artifact output directory (default: build)
    ERC20_EVM_VERSION: Target EVM, e.g. berlin for the Ganache GUI

Startup failures (provider, accounts, compilation, deployment) end the run
with exit code 1. Failed checks after deployment are logged and the run
continues; it then exits 0.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from .compiler import compile_sols, write_output
from .config import PipelineConfig
from .constants import (
    ACCOUNT_NAMES,
    CONTRACT_NAME,
    DEPLOYER_ACCOUNT,
    TOKEN_NAME,
    TOKEN_SYMBOL,
    TOKEN_TOTAL_SUPPLY,
    TRANSFER_AMOUNT,
)
from .deployer import deploy_contract
from .errors import CompileError, DeployerError
from .identity import Identity, open_session
from .interaction import TokenClient
from .models import CompileSuccess, ContractHandle
from .utils.logging import configure_logging, get_logger

__all__ = ["run", "main"]

_logger = get_logger(__name__)


async def run(config: PipelineConfig) -> None:
    """Run the full compile -> deploy -> verify sequence.

    Raises:
        DeployerError: On any startup-critical failure.
    """
    session = await open_session(config, ACCOUNT_NAMES)
    async with session:
        deployer = session.wallet.by_name(DEPLOYER_ACCOUNT)
        _logger.info("Accessing account", extra={"account": deployer.name, "address": deployer.address})

        result = compile_sols([CONTRACT_NAME], config)
        if not isinstance(result, CompileSuccess):
            raise CompileError(
                "Error while compiling contract",
                details={"errors": [d.message for d in result.errors]},
            )
        write_output(result, config.build_dir)
        _logger.info("Contract compiled", extra={"contract": CONTRACT_NAME})

        deployed = await deploy_contract(
            session,
            result.artifact(CONTRACT_NAME),
            deployer,
            [TOKEN_NAME, TOKEN_SYMBOL, TOKEN_TOTAL_SUPPLY],
        )

        handle = ContractHandle.from_artifact(CONTRACT_NAME, deployed.address, config.build_dir)
        token = TokenClient(session, handle)
        await verify_token(token, deployer, session.wallet.by_name(ACCOUNT_NAMES[1]))


async def verify_token(token: TokenClient, sender: Identity, receiver: Identity) -> None:
    """Post-deployment checks; each one is fault-isolated."""
    owner, recipient = sender.address, receiver.address
    symbol = await token.safe_call("checking symbol", "symbol")
    if symbol is not None:
        _logger.info("Token symbol", extra={"symbol": symbol})

    supply = await token.safe_call("checking total supply", "totalSupply")
    if supply is not None:
        _logger.info("Token supply", extra={"supply": supply})

    balance = await token.safe_call("checking deployer balance", "balanceOf", owner)
    if balance is not None:
        _logger.info("Token deployer balance", extra={"address": owner, "balance": balance})

    outcome = await token.safe_transact(
        "transferring tokens", "transfer", recipient, TRANSFER_AMOUNT, sender=sender
    )
    if outcome is None:
        return
    _logger.info(
        "Tokens transferred",
        extra={
            "amount": TRANSFER_AMOUNT,
            "from": owner,
            "to": recipient,
            "tx_hash": outcome.receipt.transaction_hash,
        },
    )

    for index, address in enumerate((owner, recipient)):
        balance = await token.safe_call(f"checking balance of address {index}", "balanceOf", address)
        if balance is not None:
            _logger.info("Balance", extra={"index": index, "address": address, "balance": balance})


def main(config: Optional[PipelineConfig] = None) -> int:
    config = config or PipelineConfig.from_env()
    configure_logging(config.log_level)
    try:
        asyncio.run(run(config))
    except DeployerError as e:
        _logger.error("Run aborted", extra={"kind": e.kind.value, "error": str(e)})
        return 1
    return 0
