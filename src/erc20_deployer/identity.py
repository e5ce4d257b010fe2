"""
Identity & Transport Manager.

Opens the single node connection for a run and imports the named signing
identities from the keystore file (``{"acc0": {"pvtKey": "0x..."}, ...}``)
into a Wallet. The connection and wallet travel together as a NodeSession,
which is passed explicitly to the deployer and the interaction client.

Keys are only imported, never generated.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union
from urllib.parse import urlparse

from aiohttp import ClientTimeout
from eth_account import Account
from eth_account.datastructures import SignedTransaction
from web3 import AsyncHTTPProvider, AsyncWeb3, WebSocketProvider
from web3.providers.persistent import PersistentConnectionProvider

from .config import PipelineConfig, load_provider_config
from .errors import AccountLoadError, ProviderInitError
from .utils.logging import get_logger

__all__ = [
    "Identity",
    "Wallet",
    "NodeSession",
    "init_provider",
    "load_account",
    "open_session",
]

_logger = get_logger(__name__)


@dataclass(frozen=True)
class Identity:
    name: str
    address: str
    private_key: str = field(repr=False)

    @classmethod
    def from_key(cls, name: str, private_key: str) -> "Identity":
        # Never echo the key back in errors
        try:
            account = Account.from_key(private_key)
        except Exception:
            raise AccountLoadError(
                f"Invalid private key for account {name} (key not shown)",
                details={"account": name},
            ) from None
        return cls(name=name, address=account.address, private_key=private_key)

    def sign_transaction(self, tx: Dict[str, Any]) -> SignedTransaction:
        return Account.sign_transaction(tx, self.private_key)


class Wallet:
    """Ordered collection of signing identities.

    Identities are addressable by position (load order) or by name. Adding a
    key that is already present is a no-op. Once frozen, the wallet rejects
    further additions.
    """

    def __init__(self) -> None:
        self._identities: List[Identity] = []
        self._frozen = False

    def add(self, identity: Identity) -> Identity:
        for existing in self._identities:
            if existing.address == identity.address:
                return existing
        if self._frozen:
            raise RuntimeError("Wallet is frozen; identities are loaded at startup only")
        self._identities.append(identity)
        return identity

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def by_name(self, name: str) -> Identity:
        for identity in self._identities:
            if identity.name == name:
                return identity
        raise KeyError(name)

    def __getitem__(self, index: int) -> Identity:
        return self._identities[index]

    def __len__(self) -> int:
        return len(self._identities)

    def __iter__(self) -> Iterator[Identity]:
        return iter(self._identities)


def init_provider(config: PipelineConfig) -> Union[WebSocketProvider, AsyncHTTPProvider]:
    """Build the transport provider for the configured endpoint.

    ``ws://`` and ``wss://`` links get a WebSocket provider, ``http(s)://``
    links an HTTP provider.

    Raises:
        ProviderInitError: If the providers file is missing or malformed, the
            selected link is unset, or its scheme is unsupported.
    """
    link = load_provider_config(config.providers_path).endpoint(config.provider_key)
    scheme = urlparse(link).scheme.lower()

    if scheme in ("ws", "wss"):
        return WebSocketProvider(link, request_timeout=config.request_timeout, max_connection_retries=1)
    if scheme in ("http", "https"):
        return AsyncHTTPProvider(
            link, request_kwargs={"timeout": ClientTimeout(total=config.request_timeout)}
        )
    raise ProviderInitError(f"Unsupported provider scheme: {scheme or link!r}", details={"link": link})


def _read_keystore(path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise AccountLoadError("Cannot read account", details={"path": str(path)}, cause=e) from e
    if not isinstance(data, dict):
        raise AccountLoadError("Keystore must hold a JSON object", details={"path": str(path)})
    return data


def load_account(
    wallet: Wallet,
    name: str,
    accounts_path: Path,
    keystore: Optional[Dict[str, Any]] = None,
) -> Identity:
    """Import the named account's private key into the wallet.

    Args:
        wallet: Wallet receiving the identity
        name: Account name in the keystore
        accounts_path: Keystore JSON file
        keystore: Already-parsed keystore (skips reading the file)

    Raises:
        AccountLoadError: If the keystore is unreadable, the name is absent,
            or the key is invalid.
    """
    data = keystore if keystore is not None else _read_keystore(accounts_path)
    entry = data.get(name)
    if not isinstance(entry, dict) or not entry.get("pvtKey"):
        raise AccountLoadError(f"Account {name} not found in keystore", details={"account": name})

    identity = wallet.add(Identity.from_key(name, entry["pvtKey"]))
    if identity.name != name:
        raise AccountLoadError(
            f"Account {name} uses the same key as account {identity.name}",
            details={"account": name, "duplicate_of": identity.name},
        )
    _logger.debug("Loaded account", extra={"account": name, "address": identity.address})
    return identity


class NodeSession:
    """One node connection plus the run's wallet.

    Example:
        ```python
        async with await open_session(config) as session:
            sender = session.wallet[0]
            print(await session.w3.eth.get_balance(sender.address))
        ```
    """

    def __init__(self, w3: AsyncWeb3, wallet: Optional[Wallet] = None, receipt_timeout: float = 120) -> None:
        self.w3 = w3
        self.wallet = wallet if wallet is not None else Wallet()
        self.receipt_timeout = receipt_timeout

    @property
    def persistent(self) -> bool:
        return isinstance(self.w3.provider, PersistentConnectionProvider)

    async def close(self) -> None:
        # HTTP providers hold cached aiohttp sessions too
        await self.w3.provider.disconnect()

    async def __aenter__(self) -> "NodeSession":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()


async def open_session(config: PipelineConfig, account_names: Sequence[str] = ()) -> NodeSession:
    """Connect to the node and load the named accounts.

    The wallet is frozen before returning.

    Raises:
        ProviderInitError: If the provider cannot be built or connected.
        AccountLoadError: If any named account cannot be loaded.
    """
    provider = init_provider(config)
    w3 = AsyncWeb3(provider)
    if isinstance(provider, PersistentConnectionProvider):
        try:
            await provider.connect()
        except Exception as e:
            raise ProviderInitError("Cannot connect to provider", cause=e) from e
    _logger.info("Connected to Web3 provider", extra={"provider": type(provider).__name__})

    session = NodeSession(w3, receipt_timeout=config.receipt_timeout)
    try:
        if account_names:
            keystore = _read_keystore(config.accounts_path)
            for name in account_names:
                load_account(session.wallet, name, config.accounts_path, keystore=keystore)
    except AccountLoadError:
        await session.close()
        raise
    session.wallet.freeze()
    return session
