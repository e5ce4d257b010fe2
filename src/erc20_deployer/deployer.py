"""
Deployment Orchestrator.

Turns a compiled artifact plus constructor arguments into a deployed
ContractHandle. Deployments are not idempotent: calling this twice deploys
two instances at two addresses.
"""

from __future__ import annotations

from typing import Any, Sequence, Tuple

from .errors import DeployError
from .identity import Identity, NodeSession
from .models import CompiledArtifact, ContractHandle
from .pipeline import TransactionOutcome, run_transaction
from .utils.logging import get_logger

__all__ = ["deploy_contract", "deploy_with_outcome"]

_logger = get_logger(__name__)


async def deploy_with_outcome(
    session: NodeSession,
    artifact: CompiledArtifact,
    sender: Identity,
    args: Sequence[Any] = (),
) -> Tuple[ContractHandle, TransactionOutcome]:
    """Deploy and also return the pipeline outcome (receipt, gas used for pricing)."""
    if not artifact.bytecode or artifact.bytecode == "0x":
        raise DeployError(
            f"deploy {artifact.contract_name}: artifact has no bytecode",
            details={"contract": artifact.contract_name},
        )

    def build():
        contract = session.w3.eth.contract(abi=artifact.abi, bytecode=artifact.bytecode)
        return contract.constructor(*args)

    outcome = await run_transaction(
        session,
        sender,
        build,
        label=f"deploy {artifact.contract_name}",
        error_cls=DeployError,
    )

    address = outcome.receipt.contract_address
    if not address:
        raise DeployError(
            f"deploy {artifact.contract_name}: receipt has no contract address",
            tx_hash=outcome.receipt.transaction_hash,
        )

    _logger.info(
        "Contract deployed",
        extra={"contract": artifact.contract_name, "address": address, "tx_hash": outcome.receipt.transaction_hash},
    )
    return ContractHandle(address=address, abi=artifact.abi), outcome


async def deploy_contract(
    session: NodeSession,
    artifact: CompiledArtifact,
    sender: Identity,
    args: Sequence[Any] = (),
) -> ContractHandle:
    """Deploy a compiled contract.

    Args:
        session: Node session
        artifact: Compiled artifact (ABI + bytecode)
        sender: Deploying identity
        args: Constructor arguments, in ABI order

    Returns:
        ContractHandle for the new instance

    Raises:
        DeployError: If any step fails; carries the stage and underlying cause.
    """
    handle, _ = await deploy_with_outcome(session, artifact, sender, args)
    return handle
