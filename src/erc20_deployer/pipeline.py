"""
Transaction pipeline shared by deployment and state-mutating calls.

A transaction moves through fixed stages::

    BUILDING -> ESTIMATING -> PRICING -> SUBMITTING -> CONFIRMED
         \\___________\\___________\\___________\\_____-> FAILED

Each stage blocks on the previous one. The first failing stage moves the
pipeline to FAILED and raises the caller's error class carrying the stage,
the cause and, once submitted, the transaction hash. Nothing is retried.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type, TypeVar

from .errors import DeployerError
from .gas import pad
from .identity import Identity, NodeSession
from .models import TransactionReceipt, TxStage
from .utils.logging import get_logger

__all__ = [
    "ALLOWED_TRANSITIONS",
    "InvalidStageTransition",
    "TransactionPipeline",
    "TransactionOutcome",
    "run_transaction",
]

_logger = get_logger(__name__)

T = TypeVar("T")

ALLOWED_TRANSITIONS = {
    TxStage.BUILDING: {TxStage.ESTIMATING, TxStage.FAILED},
    TxStage.ESTIMATING: {TxStage.PRICING, TxStage.FAILED},
    TxStage.PRICING: {TxStage.SUBMITTING, TxStage.FAILED},
    TxStage.SUBMITTING: {TxStage.CONFIRMED, TxStage.FAILED},
    TxStage.CONFIRMED: set(),
    TxStage.FAILED: set(),
}


class InvalidStageTransition(RuntimeError):
    """Raised when the pipeline is driven out of order."""


class TransactionPipeline:
    """Stage tracker for one transaction.

    Args:
        label: Operation label used in logs and errors (e.g. ``"deploy MyToken"``)
        error_cls: DeployerError subclass raised on failure
    """

    def __init__(self, label: str, error_cls: Type[DeployerError]) -> None:
        self.label = label
        self.error_cls = error_cls
        self.stage = TxStage.BUILDING
        self.history: List[TxStage] = [TxStage.BUILDING]
        self.tx_hash: Optional[str] = None

    def advance(self, stage: TxStage) -> None:
        if stage not in ALLOWED_TRANSITIONS[self.stage]:
            raise InvalidStageTransition(f"{self.stage.value} -> {stage.value}")
        self.stage = stage
        self.history.append(stage)
        _logger.debug("Transaction stage", extra={"operation": self.label, "stage": stage.value})

    def fail(self, message: str, cause: Optional[BaseException] = None, **details: Any) -> DeployerError:
        failed_at = self.stage
        self.advance(TxStage.FAILED)
        return self.error_cls(
            f"{self.label}: {message}",
            stage=failed_at.value,
            tx_hash=self.tx_hash,
            details=details,
            cause=cause,
        )

    async def step(self, description: str, fn: Callable[[], Awaitable[T]]) -> T:
        """Await one node round trip inside the current stage."""
        try:
            return await fn()
        except DeployerError:
            raise
        except Exception as e:
            raise self.fail(f"{description} failed", cause=e) from e


@dataclass
class TransactionOutcome:
    receipt: TransactionReceipt
    gas_price: int
    gas_limit: int
    stages: List[TxStage] = field(default_factory=list)


async def run_transaction(
    session: NodeSession,
    sender: Identity,
    build: Callable[[], Any],
    *,
    label: str,
    error_cls: Type[DeployerError],
) -> TransactionOutcome:
    """Build, price, sign, submit and confirm one transaction.

    Args:
        session: Node session supplying the transport
        sender: Identity paying for and signing the transaction
        build: Returns the web3 constructor or function call to send; any
            argument encoding error surfaces here
        label: Operation label for logs and errors
        error_cls: Error class raised on failure

    Returns:
        TransactionOutcome with the confirmed receipt

    Raises:
        error_cls: On the first failing stage, or if the receipt reports status 0.
    """
    w3 = session.w3
    pipeline = TransactionPipeline(label, error_cls)

    try:
        action = build()
    except Exception as e:
        raise pipeline.fail("building transaction failed", cause=e) from e

    pipeline.advance(TxStage.ESTIMATING)
    gas_price = await pipeline.step("gas price query", lambda: w3.eth.gas_price)
    raw_estimate = await pipeline.step("gas estimation", lambda: action.estimate_gas({"from": sender.address}))

    pipeline.advance(TxStage.PRICING)
    try:
        gas_limit = int(pad(raw_estimate))
    except (TypeError, ValueError, ArithmeticError) as e:
        raise pipeline.fail("gas padding failed", cause=e, estimate=repr(raw_estimate)) from e

    pipeline.advance(TxStage.SUBMITTING)
    nonce = await pipeline.step(
        "nonce query", lambda: w3.eth.get_transaction_count(sender.address, "pending")
    )
    chain_id = await pipeline.step("chain id query", lambda: w3.eth.chain_id)
    tx: Dict[str, Any] = await pipeline.step(
        "transaction build",
        lambda: action.build_transaction(
            {
                "from": sender.address,
                "gasPrice": gas_price,
                "gas": gas_limit,
                "nonce": nonce,
                "chainId": chain_id,
            }
        ),
    )
    try:
        signed = sender.sign_transaction(tx)
    except Exception as e:
        raise pipeline.fail("signing failed", cause=e) from e

    sent = await pipeline.step("submission", lambda: w3.eth.send_raw_transaction(signed.raw_transaction))
    pipeline.tx_hash = sent.to_0x_hex() if hasattr(sent, "to_0x_hex") else str(sent)
    _logger.info(
        "Transaction submitted",
        extra={"operation": label, "tx_hash": pipeline.tx_hash, "gas": gas_limit, "gas_price": gas_price},
    )

    raw_receipt = await pipeline.step(
        "receipt wait",
        lambda: w3.eth.wait_for_transaction_receipt(sent, timeout=session.receipt_timeout),
    )
    receipt = TransactionReceipt.from_web3(raw_receipt)
    if receipt.status != 1:
        raise pipeline.fail("transaction reverted", status=receipt.status)

    pipeline.advance(TxStage.CONFIRMED)
    return TransactionOutcome(
        receipt=receipt,
        gas_price=gas_price,
        gas_limit=gas_limit,
        stages=list(pipeline.history),
    )
