"""Constants for the ERC-20 deployment pipeline.

Gas policy, default file locations, compiler settings and the fixed
parameters of the token run.
"""

from decimal import Decimal

# Gas Constants
GAS_MULTIPLIER = Decimal("1.2")  # Increase estimate by 20%

# Default Locations (relative to the working directory)
DEFAULT_PROVIDERS_FILE = "eth_providers/providers.json"
DEFAULT_ACCOUNTS_FILE = "eth_accounts/accounts.json"
DEFAULT_CONTRACTS_DIR = "contracts"
DEFAULT_DEPENDENCY_ROOT = "node_modules"
DEFAULT_BUILD_DIR = "build"

# Provider Keys
PROVIDER_LINK_CLI = "provider_link_cli"
PROVIDER_LINK_UI = "provider_link_ui"

# Compiler Constants
DEFAULT_SOLC_VERSION = "0.8.24"
SOURCE_SUFFIX = ".sol"
OUTPUT_SELECTION = {"*": {"*": ["*"]}}

# Network Constants
REQUEST_TIMEOUT_SECONDS = 30
RECEIPT_TIMEOUT_SECONDS = 120

# Token Run Parameters
CONTRACT_NAME = "MyToken"
TOKEN_NAME = "My Token"
TOKEN_SYMBOL = "MyT"
TOKEN_TOTAL_SUPPLY = 100_000
ACCOUNT_NAMES = ("acc0", "acc1", "acc2")
DEPLOYER_ACCOUNT = "acc0"
TRANSFER_AMOUNT = 2000

__all__ = [
    "GAS_MULTIPLIER",
    "DEFAULT_PROVIDERS_FILE",
    "DEFAULT_ACCOUNTS_FILE",
    "DEFAULT_CONTRACTS_DIR",
    "DEFAULT_DEPENDENCY_ROOT",
    "DEFAULT_BUILD_DIR",
    "PROVIDER_LINK_CLI",
    "PROVIDER_LINK_UI",
    "DEFAULT_SOLC_VERSION",
    "SOURCE_SUFFIX",
    "OUTPUT_SELECTION",
    "REQUEST_TIMEOUT_SECONDS",
    "RECEIPT_TIMEOUT_SECONDS",
    "CONTRACT_NAME",
    "TOKEN_NAME",
    "TOKEN_SYMBOL",
    "TOKEN_TOTAL_SUPPLY",
    "ACCOUNT_NAMES",
    "DEPLOYER_ACCOUNT",
    "TRANSFER_AMOUNT",
]
