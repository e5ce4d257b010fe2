"""
ERC-20 deployment pipeline.

Compile Solidity sources with solc, deploy the resulting artifact to an
Ethereum node over JSON-RPC, and exercise the deployed token.

Example:
    >>> import asyncio
    >>> from erc20_deployer import PipelineConfig, compile_sols, open_session, deploy_contract
    >>> config = PipelineConfig.from_env()
    >>> result = compile_sols(["MyToken"], config)
"""

from .compiler import compile_sols, find_imports, load_abi, write_output
from .config import PipelineConfig, ProviderConfig, load_provider_config
from .deployer import deploy_contract
from .errors import (
    ABILoadError,
    AccountLoadError,
    CallError,
    CompileError,
    DeployError,
    DeployerError,
    ErrorKind,
    ProviderInitError,
    TransactionError,
)
from .gas import pad
from .identity import Identity, NodeSession, Wallet, init_provider, load_account, open_session
from .interaction import ContractClient, TokenClient
from .models import (
    CompileDiagnostics,
    CompiledArtifact,
    CompileSuccess,
    ContractHandle,
    Diagnostic,
    ImportResult,
    SourceModule,
    TransactionReceipt,
    TxStage,
)
from .pipeline import TransactionOutcome, run_transaction

__version__ = "0.1.0"

__all__ = [
    # Config
    "PipelineConfig",
    "ProviderConfig",
    "load_provider_config",
    # Compiler
    "compile_sols",
    "find_imports",
    "write_output",
    "load_abi",
    # Identity & transport
    "Identity",
    "Wallet",
    "NodeSession",
    "init_provider",
    "load_account",
    "open_session",
    # Gas
    "pad",
    # Transactions
    "run_transaction",
    "TransactionOutcome",
    "deploy_contract",
    "ContractClient",
    "TokenClient",
    # Models
    "SourceModule",
    "ImportResult",
    "Diagnostic",
    "CompiledArtifact",
    "CompileSuccess",
    "CompileDiagnostics",
    "ContractHandle",
    "TransactionReceipt",
    "TxStage",
    # Errors
    "ErrorKind",
    "DeployerError",
    "ProviderInitError",
    "AccountLoadError",
    "CompileError",
    "ABILoadError",
    "DeployError",
    "CallError",
    "TransactionError",
]
