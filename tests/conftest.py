"""Pytest configuration and fixtures for RWA Token Manager tests."""

import logging
import os
from contextlib import asynccontextmanager
from unittest.mock import patch

import pytest

from rwa.core.errors import ChainError
from rwa.core.session import ChainConfig, Identity, Session
from rwa.integrations.evm import TokenDetails

# Well-known example key
PRIMARY_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"

FACTORY = "0x" + "4" * 40
CREATED_TOKEN = "0x" + "5" * 40
TX_HASH = "0x" + "ab" * 32


@pytest.fixture(autouse=True)
def mock_environment_variables():
    """Keep tests independent of any local .env or shell configuration."""
    env_vars = {
        "RPC_URL": "http://localhost:8545",
        "CHAIN_ID": "1337",
        "TOKEN_FACTORY_ADDRESS": FACTORY,
        "PRIVATE_KEY": PRIMARY_KEY,
        "RWA_TX_TIMEOUT": "5",
        "LOG_LEVEL": "ERROR",
        "NO_COLOR": "1",
    }
    with patch.dict(os.environ, env_vars, clear=False):
        yield


class ScriptedPrompt:
    """Prompt that answers from a fixed script and records everything shown."""

    def __init__(self, answers=()):
        self.answers = list(answers)
        self.asked = []
        self.output = []
        self.statuses = []

    async def ask(self, field):
        self.asked.append(field)
        if not self.answers:
            raise EOFError("script exhausted")
        return self.answers.pop(0)

    def show(self, message):
        self.output.append(message)

    def status(self, message):
        self.statuses.append(message)

        @asynccontextmanager
        async def _status():
            yield self

        return _status()

    @property
    def text(self):
        return "\n".join(self.output)


class StubChain:
    """In-memory stand-in for EvmClient that records every call."""

    def __init__(
        self,
        *,
        decimals=18,
        native_balance=10**18,
        balances=None,
        allowances=None,
        created_token=CREATED_TOKEN,
        fail_details=False,
    ):
        self.decimals_value = decimals
        self.native_balance = native_balance
        self.balances = dict(balances or {})
        self.allowances = dict(allowances or {})
        self.created_token = created_token
        self.fail_details = fail_details
        self.fail_native_balance = False
        self.calls = []
        self.bound = None

    @property
    def signer_address(self):
        return self.bound

    @property
    def writes(self):
        names = {"create_token", "mint", "burn", "transfer", "approve", "transfer_from"}
        return [call for call in self.calls if call[0] in names]

    def bind(self, identity):
        self.bound = identity.address
        self.calls.append(("bind", identity.address))

    async def get_native_balance(self, address):
        self.calls.append(("get_native_balance", address))
        if self.fail_native_balance:
            raise ChainError("Failed to get balance: connection refused")
        return self.native_balance

    async def decimals(self, token_address):
        self.calls.append(("decimals", token_address))
        return self.decimals_value

    async def balance_of(self, token_address, owner):
        self.calls.append(("balance_of", token_address, owner))
        return self.balances.get(owner, 0)

    async def allowance(self, token_address, owner, spender):
        self.calls.append(("allowance", token_address, owner, spender))
        return self.allowances.get((owner, spender), 0)

    async def token_details(self, token_address, holder):
        self.calls.append(("token_details", token_address, holder))
        if self.fail_details:
            raise ChainError(f"Failed to read name from {token_address}: execution reverted")
        return TokenDetails(
            address=token_address,
            name="Gold",
            symbol="GLD",
            decimals=self.decimals_value,
            total_supply=1000 * 10**self.decimals_value,
            balance=self.balances.get(holder, 0),
        )

    async def create_token(self, name, symbol, initial_owner):
        self.calls.append(("create_token", name, symbol, initial_owner))
        return TX_HASH

    async def mint(self, token_address, recipient, amount):
        self.calls.append(("mint", token_address, recipient, amount))
        return TX_HASH

    async def burn(self, token_address, amount):
        self.calls.append(("burn", token_address, amount))
        return TX_HASH

    async def transfer(self, token_address, recipient, amount):
        self.calls.append(("transfer", token_address, recipient, amount))
        return TX_HASH

    async def approve(self, token_address, spender, amount):
        self.calls.append(("approve", token_address, spender, amount))
        return TX_HASH

    async def transfer_from(self, token_address, sender, recipient, amount):
        self.calls.append(("transfer_from", token_address, sender, recipient, amount))
        return TX_HASH

    async def wait_for_receipt(self, tx_hash):
        self.calls.append(("wait_for_receipt", tx_hash))
        return {"status": 1, "blockNumber": 7, "transactionHash": tx_hash}

    async def find_created_token(self, receipt):
        self.calls.append(("find_created_token", receipt["blockNumber"]))
        return self.created_token


@pytest.fixture
def chain_config():
    return ChainConfig(
        rpc_url="http://localhost:8545", chain_id=1337, factory_address=FACTORY, tx_timeout=5
    )


@pytest.fixture
def session(chain_config):
    session = Session(config=chain_config)
    session.add_identity(Identity.from_private_key("Default Account", PRIMARY_KEY))
    return session


@pytest.fixture
def chain(session):
    stub = StubChain()
    stub.bind(session.current)
    stub.calls.clear()
    return stub


@pytest.fixture
def make_prompt():
    return ScriptedPrompt


@pytest.fixture
def make_chain():
    return StubChain


# Disable logging to reduce noise during tests
logging.getLogger().setLevel(logging.ERROR)
