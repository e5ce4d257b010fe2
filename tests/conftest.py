"""
Shared fixtures: an in-memory stand-in for an AsyncWeb3 node that tracks
deployed ERC-20 instances, plus identities and a throwaway config.
"""

import itertools
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import pytest
from eth_utils import to_checksum_address
from hexbytes import HexBytes

from erc20_deployer.config import PipelineConfig
from erc20_deployer.identity import Identity, NodeSession, Wallet

# Private keys for tests (DO NOT USE IN PRODUCTION)
PVT_KEY_0 = "0x" + "11" * 32
PVT_KEY_1 = "0x" + "22" * 32
PVT_KEY_2 = "0x" + "33" * 32

GAS_PRICE = 20_000_000_000
RAW_ESTIMATE = 50_000
CHAIN_ID = 1337

ERC20_ABI: List[Dict[str, Any]] = [
    {
        "type": "constructor",
        "inputs": [
            {"name": "name", "type": "string"},
            {"name": "symbol", "type": "string"},
            {"name": "initialSupply", "type": "uint256"},
        ],
        "stateMutability": "nonpayable",
    },
    {"type": "function", "name": "symbol", "inputs": [], "outputs": [{"name": "", "type": "string"}], "stateMutability": "view"},
    {"type": "function", "name": "totalSupply", "inputs": [], "outputs": [{"name": "", "type": "uint256"}], "stateMutability": "view"},
    {
        "type": "function",
        "name": "balanceOf",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "transfer",
        "inputs": [{"name": "to", "type": "address"}, {"name": "value", "type": "uint256"}],
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
    },
]

BYTECODE = "0x6080604052"


async def _value(value):
    return value


class StubAction:
    """Constructor or function call as returned by web3 contract objects."""

    def __init__(self, node: "StubNode", kind: str, name: str, args: tuple, address: Optional[str] = None):
        self.node = node
        self.kind = kind
        self.name = name
        self.args = args
        self.address = address

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        self.node.record("estimate_gas")
        return self.node.estimate

    async def build_transaction(self, tx: Dict[str, Any]) -> Dict[str, Any]:
        self.node.record("build_transaction")
        self.node.built.append(dict(tx))
        self.node.pending = (self, dict(tx))
        built = {**tx, "data": "0x6080", "value": 0}
        if self.address:
            built["to"] = self.address
        return built

    async def call(self) -> Any:
        self.node.record(f"call:{self.name}")
        state = self.node.contracts[self.address]
        if self.name == "symbol":
            return state["symbol"]
        if self.name == "name":
            return state["name"]
        if self.name == "totalSupply":
            return state["supply"]
        if self.name == "balanceOf":
            return state["balances"].get(self.args[0], 0)
        raise ValueError(f"Could not decode output of {self.name}")


class StubFunctions:
    def __init__(self, node: "StubNode", address: str):
        self._node = node
        self._address = address

    def __getattr__(self, name: str):
        return lambda *args: StubAction(self._node, "function", name, args, self._address)


class StubContract:
    def __init__(self, node: "StubNode", address: Optional[str]):
        self.node = node
        self.address = address
        self.functions = StubFunctions(node, address)

    def constructor(self, *args: Any) -> StubAction:
        if len(args) != 3:
            raise TypeError("constructor expects 3 arguments")
        return StubAction(self.node, "constructor", "constructor", args)


class StubEth:
    def __init__(self, node: "StubNode"):
        self.node = node

    @property
    def gas_price(self):
        self.node.record("gas_price")
        return _value(GAS_PRICE)

    @property
    def chain_id(self):
        self.node.record("chain_id")
        return _value(CHAIN_ID)

    def contract(self, address: Optional[str] = None, abi=None, bytecode=None) -> StubContract:
        return StubContract(self.node, address)

    async def get_transaction_count(self, address: str, block: str = "latest") -> int:
        self.node.record("get_transaction_count")
        return self.node.nonces.get(address, 0)

    async def send_raw_transaction(self, raw: bytes) -> HexBytes:
        self.node.record("send_raw_transaction")
        self.node.raw_sent.append(raw)
        tx_hash = HexBytes(next(self.node.hash_counter).to_bytes(32, "big"))
        self.node.receipts[bytes(tx_hash)] = self.node.apply_pending(tx_hash)
        return tx_hash

    async def wait_for_transaction_receipt(self, tx_hash: HexBytes, timeout: float = 120) -> Dict[str, Any]:
        self.node.record("wait_for_transaction_receipt")
        return self.node.receipts[bytes(tx_hash)]


class StubProvider:
    def __init__(self) -> None:
        self.disconnected = False

    async def disconnect(self) -> None:
        self.disconnected = True


class StubW3:
    def __init__(self, node: "StubNode"):
        self.eth = StubEth(node)
        self.provider = StubProvider()


class StubNode:
    """Minimal ledger: deploys ERC-20 instances and applies transfers."""

    def __init__(self) -> None:
        self.calls: List[str] = []
        self.fail: Set[str] = set()
        self.estimate = RAW_ESTIMATE
        self.revert = False
        self.built: List[Dict[str, Any]] = []
        self.raw_sent: List[bytes] = []
        self.pending = None
        self.contracts: Dict[str, Dict[str, Any]] = {}
        self.nonces: Dict[str, int] = {}
        self.receipts: Dict[bytes, Dict[str, Any]] = {}
        self.hash_counter = itertools.count(1)
        self.address_counter = itertools.count(0xC0FFEE)
        self.w3 = StubW3(self)

    def record(self, step: str) -> None:
        self.calls.append(step)
        if step in self.fail:
            raise ConnectionError(f"node unreachable during {step}")

    def apply_pending(self, tx_hash: HexBytes) -> Dict[str, Any]:
        action, tx = self.pending
        sender = tx["from"]
        self.nonces[sender] = self.nonces.get(sender, 0) + 1
        receipt = {"transactionHash": tx_hash, "status": 0 if self.revert else 1, "blockNumber": len(self.receipts) + 1,
                   "gasUsed": tx["gas"] - 1, "contractAddress": None}
        if self.revert:
            return receipt
        if action.kind == "constructor":
            name, symbol, supply = action.args
            address = to_checksum_address("0x" + f"{next(self.address_counter):040x}")
            self.contracts[address] = {"name": name, "symbol": symbol, "supply": supply, "balances": {sender: supply}}
            receipt["contractAddress"] = address
        elif action.name == "transfer":
            to, amount = action.args
            balances = self.contracts[action.address]["balances"]
            if balances.get(sender, 0) < amount:
                receipt["status"] = 0
            else:
                balances[sender] -= amount
                balances[to] = balances.get(to, 0) + amount
        return receipt


@pytest.fixture
def node() -> StubNode:
    return StubNode()


@pytest.fixture
def identities() -> List[Identity]:
    return [
        Identity.from_key("acc0", PVT_KEY_0),
        Identity.from_key("acc1", PVT_KEY_1),
        Identity.from_key("acc2", PVT_KEY_2),
    ]


@pytest.fixture
def session(node: StubNode, identities: List[Identity]) -> NodeSession:
    wallet = Wallet()
    for identity in identities:
        wallet.add(identity)
    wallet.freeze()
    return NodeSession(node.w3, wallet, receipt_timeout=5)


@pytest.fixture
def keystore_file(tmp_path: Path) -> Path:
    path = tmp_path / "accounts.json"
    path.write_text(
        json.dumps({"acc0": {"pvtKey": PVT_KEY_0}, "acc1": {"pvtKey": PVT_KEY_1}, "acc2": {"pvtKey": PVT_KEY_2}}),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def providers_file(tmp_path: Path) -> Path:
    path = tmp_path / "providers.json"
    path.write_text(
        json.dumps({"provider_link_cli": "http://127.0.0.1:8545", "provider_link_ui": "ws://127.0.0.1:7545"}),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def config(tmp_path: Path, providers_file: Path, keystore_file: Path) -> PipelineConfig:
    contracts_dir = tmp_path / "contracts"
    deps = tmp_path / "node_modules"
    contracts_dir.mkdir()
    deps.mkdir()
    return PipelineConfig(
        providers_path=providers_file,
        accounts_path=keystore_file,
        contracts_dir=contracts_dir,
        dependency_root=deps,
        build_dir=tmp_path / "build",
        request_timeout=5,
        receipt_timeout=5,
    )
