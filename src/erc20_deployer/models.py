from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .errors import CompileError

__all__ = [
    "SourceModule",
    "ImportResult",
    "Diagnostic",
    "CompiledArtifact",
    "CompileSuccess",
    "CompileDiagnostics",
    "CompileResult",
    "TxStage",
    "TransactionReceipt",
    "ContractHandle",
]


@dataclass(frozen=True)
class SourceModule:
    name: str
    text: str


@dataclass(frozen=True)
class ImportResult:
    """Outcome of resolving one import path.

    Exactly one of ``contents`` and ``error`` is set.
    """

    path: str
    contents: Optional[str] = None
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.contents is None) == (self.error is None):
            raise ValueError("ImportResult needs exactly one of contents or error")

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class Diagnostic:
    """One compiler message or unresolved import."""

    severity: str
    message: str
    source: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def from_solc(cls, raw: Mapping[str, Any]) -> "Diagnostic":
        location = raw.get("sourceLocation") or {}
        return cls(
            severity=raw.get("severity", "error"),
            message=raw.get("formattedMessage") or raw.get("message", ""),
            source=location.get("file"),
            error_type=raw.get("type"),
        )

    @property
    def is_error(self) -> bool:
        return self.severity == "error"


@dataclass(frozen=True)
class CompiledArtifact:
    contract_name: str
    abi: List[Dict[str, Any]]
    bytecode: str

    @classmethod
    def from_contracts(cls, contracts: Mapping[str, Any], source_name: str, contract_name: str) -> "CompiledArtifact":
        entry = contracts[source_name][contract_name]
        bytecode = entry.get("evm", {}).get("bytecode", {}).get("object", "") or ""
        if bytecode and not bytecode.startswith("0x"):
            bytecode = "0x" + bytecode
        return cls(contract_name=contract_name, abi=entry.get("abi", []), bytecode=bytecode)


@dataclass(frozen=True)
class CompileSuccess:
    """Successful compilation.

    Attributes:
        contracts: Raw compiler ``contracts`` map (source name -> contract name -> output).
        artifacts: Typed artifacts for every contract, keyed by contract name.
        warnings: Non-fatal compiler messages.
    """

    contracts: Dict[str, Dict[str, Any]]
    artifacts: Dict[str, CompiledArtifact]
    warnings: Tuple[Diagnostic, ...] = ()

    def artifact(self, name: str) -> CompiledArtifact:
        try:
            return self.artifacts[name]
        except KeyError:
            raise CompileError(
                f"Contract {name} not found in compiler output",
                details={"available": sorted(self.artifacts)},
            ) from None


@dataclass(frozen=True)
class CompileDiagnostics:
    """Failed compilation: nothing usable was produced."""

    diagnostics: Tuple[Diagnostic, ...]

    @property
    def errors(self) -> Tuple[Diagnostic, ...]:
        return tuple(d for d in self.diagnostics if d.is_error)


CompileResult = Union[CompileSuccess, CompileDiagnostics]


class TxStage(str, Enum):
    BUILDING = "building"
    ESTIMATING = "estimating"
    PRICING = "pricing"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass(frozen=True)
class TransactionReceipt:
    transaction_hash: str
    status: int
    contract_address: Optional[str] = None
    block_number: Optional[int] = None
    gas_used: Optional[int] = None

    @classmethod
    def from_web3(cls, raw: Mapping[str, Any]) -> "TransactionReceipt":
        tx_hash = raw["transactionHash"]
        if isinstance(tx_hash, (bytes, bytearray)):
            tx_hash = "0x" + bytes(tx_hash).hex()
        return cls(
            transaction_hash=str(tx_hash),
            status=int(raw.get("status", 0)),
            contract_address=raw.get("contractAddress"),
            block_number=raw.get("blockNumber"),
            gas_used=raw.get("gasUsed"),
        )


@dataclass(frozen=True)
class ContractHandle:
    """A deployed contract's interface bound to its chain address.

    The ABI is trusted to match the code at ``address``; a mismatch shows up
    as a decoding failure on the first call.
    """

    address: str
    abi: List[Dict[str, Any]] = field(repr=False)

    @classmethod
    def from_artifact(cls, contract_name: str, address: str, build_dir: Path) -> "ContractHandle":
        from .compiler import load_abi

        return cls(address=address, abi=load_abi(contract_name, build_dir))
