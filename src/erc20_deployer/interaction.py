"""
Contract Interaction Client.

Read-only calls are plain ``eth_call`` round trips; state-mutating calls go
through the same build -> estimate -> pad -> sign -> submit -> receipt
pipeline as deployments.

``call``/``transact`` raise CallError/TransactionError. The ``safe_*``
variants log the failure under an operation label and return None, so one
failed check never stops the checks after it.
"""

from __future__ import annotations

from typing import Any, Optional

from web3 import AsyncWeb3

from .errors import CallError, DeployerError, TransactionError
from .identity import Identity, NodeSession
from .models import ContractHandle
from .pipeline import TransactionOutcome, run_transaction
from .utils.logging import get_logger

__all__ = ["ContractClient", "TokenClient"]

_logger = get_logger(__name__)


class ContractClient:
    """Calls against one deployed contract."""

    def __init__(self, session: NodeSession, handle: ContractHandle) -> None:
        self.session = session
        self.handle = handle
        self.contract = session.w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(handle.address),
            abi=handle.abi,
        )

    @property
    def address(self) -> str:
        return self.handle.address

    def _function(self, fn_name: str, *args: Any):
        return getattr(self.contract.functions, fn_name)(*args)

    async def call(self, fn_name: str, *args: Any) -> Any:
        """Run a read-only call.

        Raises:
            CallError: On encoding, transport or decoding failure.
        """
        try:
            return await self._function(fn_name, *args).call()
        except Exception as e:
            raise CallError(
                f"{fn_name}() call failed",
                details={"contract": self.address, "function": fn_name},
                cause=e,
            ) from e

    async def transact(self, fn_name: str, *args: Any, sender: Identity) -> TransactionOutcome:
        """Send a state-mutating call from ``sender`` and wait for its receipt.

        Raises:
            TransactionError: On the first failing pipeline stage or a reverted receipt.
        """
        return await run_transaction(
            self.session,
            sender,
            lambda: self._function(fn_name, *args),
            label=fn_name,
            error_cls=TransactionError,
        )

    async def safe_call(self, label: str, fn_name: str, *args: Any) -> Optional[Any]:
        try:
            return await self.call(fn_name, *args)
        except DeployerError as e:
            _log_failure(label, e)
            return None

    async def safe_transact(
        self, label: str, fn_name: str, *args: Any, sender: Identity
    ) -> Optional[TransactionOutcome]:
        try:
            return await self.transact(fn_name, *args, sender=sender)
        except DeployerError as e:
            _log_failure(label, e)
            return None


def _log_failure(label: str, error: DeployerError) -> None:
    _logger.error(
        f"Error while {label}",
        extra={"operation": label, "kind": error.kind.value, "stage": error.stage, "error": str(error)},
    )


class TokenClient(ContractClient):
    """ERC-20 view of a deployed token."""

    async def symbol(self) -> str:
        return await self.call("symbol")

    async def name(self) -> str:
        return await self.call("name")

    async def total_supply(self) -> int:
        return await self.call("totalSupply")

    async def balance_of(self, owner: str) -> int:
        return await self.call("balanceOf", owner)

    async def transfer(self, to: str, amount: int, sender: Identity) -> TransactionOutcome:
        return await self.transact("transfer", to, amount, sender=sender)
