"""Tests for the deployment orchestrator."""

import pytest

from erc20_deployer.deployer import deploy_contract, deploy_with_outcome
from erc20_deployer.errors import DeployError, ErrorKind
from erc20_deployer.models import CompiledArtifact, ContractHandle

from .conftest import ERC20_ABI, BYTECODE

ARGS = ["My Token", "MyT", 100000]


@pytest.fixture
def artifact() -> CompiledArtifact:
    return CompiledArtifact(contract_name="MyToken", abi=ERC20_ABI, bytecode=BYTECODE)


class TestDeployContract:
    @pytest.mark.asyncio
    async def test_returns_handle(self, node, session, identities, artifact) -> None:
        handle = await deploy_contract(session, artifact, identities[0], ARGS)

        assert isinstance(handle, ContractHandle)
        assert handle.abi == ERC20_ABI
        state = node.contracts[handle.address]
        assert state["symbol"] == "MyT"
        assert state["balances"][identities[0].address] == 100000

    @pytest.mark.asyncio
    async def test_not_idempotent(self, node, session, identities, artifact) -> None:
        first = await deploy_contract(session, artifact, identities[0], ARGS)
        second = await deploy_contract(session, artifact, identities[0], ARGS)

        assert first.address != second.address
        assert len(node.contracts) == 2
        assert [tx["nonce"] for tx in node.built] == [0, 1]

    @pytest.mark.asyncio
    async def test_failure_wraps_cause(self, node, session, identities, artifact) -> None:
        node.fail.add("estimate_gas")
        with pytest.raises(DeployError) as exc:
            await deploy_contract(session, artifact, identities[0], ARGS)

        assert exc.value.kind is ErrorKind.DEPLOY
        assert "deploy MyToken" in exc.value.message
        assert "send_raw_transaction" not in node.calls
        assert node.contracts == {}

    @pytest.mark.asyncio
    async def test_empty_bytecode(self, node, session, identities) -> None:
        abstract = CompiledArtifact(contract_name="Context", abi=[], bytecode="")
        with pytest.raises(DeployError):
            await deploy_contract(session, abstract, identities[0])
        assert node.calls == []

    @pytest.mark.asyncio
    async def test_receipt_without_address(self, node, session, identities, artifact, monkeypatch) -> None:
        original = node.apply_pending

        def no_address(tx_hash):
            receipt = original(tx_hash)
            receipt["contractAddress"] = None
            return receipt

        monkeypatch.setattr(node, "apply_pending", no_address)
        with pytest.raises(DeployError) as exc:
            await deploy_contract(session, artifact, identities[0], ARGS)
        assert exc.value.tx_hash is not None

    @pytest.mark.asyncio
    async def test_outcome_exposes_receipt(self, session, identities, artifact) -> None:
        handle, outcome = await deploy_with_outcome(session, artifact, identities[0], ARGS)
        assert outcome.receipt.contract_address == handle.address
        assert outcome.gas_limit == 60000
