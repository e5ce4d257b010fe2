"""
Pipeline configuration.

Locations and compiler settings come from the environment (a ``.env`` file
is honoured); the node endpoint itself lives in the JSON providers file
shared with the Ganache tooling::

    {"provider_link_cli": "ws://127.0.0.1:8545",
     "provider_link_ui": "ws://127.0.0.1:7545"}
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .constants import (
    DEFAULT_ACCOUNTS_FILE,
    DEFAULT_BUILD_DIR,
    DEFAULT_CONTRACTS_DIR,
    DEFAULT_DEPENDENCY_ROOT,
    DEFAULT_PROVIDERS_FILE,
    DEFAULT_SOLC_VERSION,
    PROVIDER_LINK_CLI,
    PROVIDER_LINK_UI,
    RECEIPT_TIMEOUT_SECONDS,
    REQUEST_TIMEOUT_SECONDS,
)
from .errors import ProviderInitError

__all__ = ["PipelineConfig", "ProviderConfig", "load_provider_config"]


@dataclass(frozen=True)
class ProviderConfig:
    provider_link_cli: Optional[str] = None
    provider_link_ui: Optional[str] = None

    def endpoint(self, key: str = PROVIDER_LINK_CLI) -> str:
        """Select one node link by its key in the providers file."""
        if key not in (PROVIDER_LINK_CLI, PROVIDER_LINK_UI):
            raise ProviderInitError(f"Unknown provider key: {key}")
        link = getattr(self, key)
        if not link:
            raise ProviderInitError(f"Provider link '{key}' is not set")
        return link


@dataclass(frozen=True)
class PipelineConfig:
    providers_path: Path = Path(DEFAULT_PROVIDERS_FILE)
    provider_key: str = PROVIDER_LINK_CLI
    accounts_path: Path = Path(DEFAULT_ACCOUNTS_FILE)
    contracts_dir: Path = Path(DEFAULT_CONTRACTS_DIR)
    dependency_root: Path = Path(DEFAULT_DEPENDENCY_ROOT)
    build_dir: Path = Path(DEFAULT_BUILD_DIR)
    solc_version: str = DEFAULT_SOLC_VERSION
    evm_version: Optional[str] = None
    request_timeout: float = REQUEST_TIMEOUT_SECONDS
    receipt_timeout: float = RECEIPT_TIMEOUT_SECONDS
    log_level: str = "INFO"

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        dotenv: bool = True,
    ) -> "PipelineConfig":
        """Build a config from ``ERC20_*`` environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``.
            dotenv: Load a ``.env`` file into the process environment first.
        """
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ

        def _get(name: str, default: str) -> str:
            return environ.get(name) or default

        return cls(
            providers_path=Path(_get("ERC20_PROVIDERS_FILE", DEFAULT_PROVIDERS_FILE)),
            provider_key=_get("ERC20_PROVIDER_KEY", PROVIDER_LINK_CLI),
            accounts_path=Path(_get("ERC20_ACCOUNTS_FILE", DEFAULT_ACCOUNTS_FILE)),
            contracts_dir=Path(_get("ERC20_CONTRACTS_DIR", DEFAULT_CONTRACTS_DIR)),
            dependency_root=Path(_get("ERC20_DEPENDENCY_ROOT", DEFAULT_DEPENDENCY_ROOT)),
            build_dir=Path(_get("ERC20_BUILD_DIR", DEFAULT_BUILD_DIR)),
            solc_version=_get("ERC20_SOLC_VERSION", DEFAULT_SOLC_VERSION),
            evm_version=environ.get("ERC20_EVM_VERSION") or None,
            request_timeout=float(_get("ERC20_REQUEST_TIMEOUT", str(REQUEST_TIMEOUT_SECONDS))),
            receipt_timeout=float(_get("ERC20_RECEIPT_TIMEOUT", str(RECEIPT_TIMEOUT_SECONDS))),
            log_level=_get("ERC20_LOG_LEVEL", "INFO"),
        )


def load_provider_config(path: Path) -> ProviderConfig:
    """Parse the providers file.

    Raises:
        ProviderInitError: If the file is missing, unreadable or not a JSON object.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ProviderInitError(
            "Cannot read provider", details={"path": str(path)}, cause=e
        ) from e

    if not isinstance(data, dict):
        raise ProviderInitError("Provider file must hold a JSON object", details={"path": str(path)})

    return ProviderConfig(
        provider_link_cli=data.get(PROVIDER_LINK_CLI),
        provider_link_ui=data.get(PROVIDER_LINK_UI),
    )
