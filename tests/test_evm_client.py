from unittest.mock import AsyncMock, MagicMock

import pytest
from web3 import Web3
from web3.exceptions import TimeExhausted

from rwa.core.errors import ChainError, TransactionRevertedError
from rwa.core.session import ChainConfig, Identity
from rwa.integrations.evm import (
    TOKEN_CREATED_TOPIC,
    AddressInput,
    CreateTokenInput,
    EvmClient,
)

KEY_ONE = "0x" + "0" * 63 + "1"
KEY_ONE_ADDRESS = "0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf"
ALICE = "0x" + "1" * 40
TOKEN = "0x" + "3" * 40
FACTORY = "0x" + "4" * 40
CREATED_TOKEN = "0x" + "5" * 40
TX_HASH = "0x" + "ab" * 32


async def fake_to_thread(func, *args, **kwargs):
    return func(*args, **kwargs)


@pytest.fixture
def config():
    return ChainConfig(
        rpc_url="http://localhost:8545", chain_id=1337, factory_address=FACTORY, tx_timeout=5
    )


@pytest.fixture
def web3():
    return MagicMock()


@pytest.fixture
def contract(web3):
    contract = MagicMock()
    web3.eth.contract.return_value = contract
    return contract


@pytest.fixture
def client(config, web3):
    return EvmClient(config, web3=web3, to_thread=fake_to_thread)


def set_view(contract, name, value):
    getattr(contract.functions, name).return_value.call.return_value = value


def test_token_created_topic():
    assert TOKEN_CREATED_TOPIC == Web3.to_hex(Web3.keccak(text="TokenCreated(address,address)"))


def test_address_input_normalizes():
    assert AddressInput(address="1" * 40).address == ALICE


def test_create_token_input_validation():
    params = CreateTokenInput(name=" Gold ", symbol="GLD", initial_owner=ALICE[2:])
    assert params.name == "Gold"
    assert params.initial_owner == ALICE

    with pytest.raises(ValueError):
        CreateTokenInput(name="", symbol="GLD", initial_owner=ALICE)
    with pytest.raises(ValueError):
        CreateTokenInput(name="Gold", symbol="GLD", initial_owner="0x12")


def test_bind_sets_signer(client):
    assert client.signer_address is None
    client.bind(Identity.from_private_key("Ops", KEY_ONE))
    assert client.signer_address == KEY_ONE_ADDRESS


@pytest.mark.asyncio
async def test_native_balance(client, web3):
    web3.eth.get_balance.return_value = 5 * 10**18

    assert await client.get_native_balance(ALICE[2:]) == 5 * 10**18
    web3.eth.get_balance.assert_called_once_with(ALICE)


@pytest.mark.asyncio
async def test_native_balance_failure_is_chain_error(client, web3):
    web3.eth.get_balance.side_effect = ConnectionError("connection refused")

    with pytest.raises(ChainError, match="Failed to get balance"):
        await client.get_native_balance(ALICE)


@pytest.mark.asyncio
async def test_view_reads(client, web3, contract):
    set_view(contract, "decimals", 6)
    set_view(contract, "balanceOf", 42)
    set_view(contract, "allowance", 7)

    assert await client.decimals(TOKEN) == 6
    assert await client.balance_of(TOKEN, ALICE) == 42
    assert await client.allowance(TOKEN, ALICE, FACTORY) == 7
    contract.functions.balanceOf.assert_called_with(ALICE)
    contract.functions.allowance.assert_called_with(ALICE, FACTORY)
    assert web3.eth.contract.call_args.kwargs["address"] == TOKEN


@pytest.mark.asyncio
async def test_token_details(client, contract):
    set_view(contract, "name", "Gold")
    set_view(contract, "symbol", "GLD")
    set_view(contract, "decimals", 18)
    set_view(contract, "totalSupply", 1000 * 10**18)
    set_view(contract, "balanceOf", 3)

    details = await client.token_details(TOKEN, ALICE)

    assert details.address == TOKEN
    assert (details.name, details.symbol, details.decimals) == ("Gold", "GLD", 18)
    assert details.total_supply == 1000 * 10**18
    assert details.balance == 3


@pytest.mark.asyncio
async def test_token_details_fails_if_any_read_fails(client, contract):
    set_view(contract, "name", "Gold")
    contract.functions.symbol.return_value.call.side_effect = ValueError("execution reverted")
    set_view(contract, "decimals", 18)
    set_view(contract, "totalSupply", 0)
    set_view(contract, "balanceOf", 0)

    with pytest.raises(ChainError, match="symbol"):
        await client.token_details(TOKEN, ALICE)


@pytest.mark.asyncio
async def test_send_transaction_signs_locally(client, web3):
    client.bind(Identity.from_private_key("Ops", KEY_ONE))
    web3.eth.get_transaction_count.return_value = 3
    web3.eth.send_raw_transaction.return_value = bytes.fromhex("ab" * 32)
    call = MagicMock()
    call.build_transaction.return_value = {
        "to": TOKEN,
        "value": 0,
        "gas": 100_000,
        "gasPrice": 10**9,
        "nonce": 3,
        "chainId": 1337,
        "data": "0x",
    }

    assert await client.send_transaction(call) == TX_HASH

    call.build_transaction.assert_called_once_with(
        {"from": KEY_ONE_ADDRESS, "nonce": 3, "chainId": 1337}
    )
    web3.eth.get_transaction_count.assert_called_once_with(KEY_ONE_ADDRESS, "pending")
    web3.eth.send_raw_transaction.assert_called_once()


@pytest.mark.asyncio
async def test_send_transaction_requires_bound_account(client):
    with pytest.raises(ChainError, match="No signing account"):
        await client.send_transaction(MagicMock())


@pytest.mark.asyncio
async def test_send_transaction_failure_is_chain_error(client, web3):
    client.bind(Identity.from_private_key("Ops", KEY_ONE))
    call = MagicMock()
    call.build_transaction.side_effect = ValueError("insufficient funds for gas")

    with pytest.raises(ChainError, match="insufficient funds"):
        await client.send_transaction(call)
    web3.eth.send_raw_transaction.assert_not_called()


@pytest.mark.asyncio
async def test_mint_builds_contract_call(client, contract):
    client.send_transaction = AsyncMock(return_value=TX_HASH)

    assert await client.mint(TOKEN, "1" * 40, 5) == TX_HASH

    contract.functions.mint.assert_called_once_with(ALICE, 5)
    client.send_transaction.assert_awaited_once_with(contract.functions.mint.return_value)


@pytest.mark.asyncio
async def test_transfer_from_builds_contract_call(client, contract):
    client.send_transaction = AsyncMock(return_value=TX_HASH)

    await client.transfer_from(TOKEN, ALICE, FACTORY, 9)

    contract.functions.transferFrom.assert_called_once_with(ALICE, FACTORY, 9)


@pytest.mark.asyncio
async def test_create_token_targets_factory(client, web3, contract):
    client.send_transaction = AsyncMock(return_value=TX_HASH)

    await client.create_token("Gold", "GLD", ALICE)

    assert web3.eth.contract.call_args.kwargs["address"] == FACTORY
    contract.functions.createToken.assert_called_once_with("Gold", "GLD", ALICE)


@pytest.mark.asyncio
async def test_wait_for_receipt_uses_configured_timeout(client, web3):
    receipt = {"status": 1, "blockNumber": 9}
    web3.eth.wait_for_transaction_receipt.return_value = receipt

    assert await client.wait_for_receipt(TX_HASH) is receipt
    web3.eth.wait_for_transaction_receipt.assert_called_once_with(TX_HASH, timeout=5)


@pytest.mark.asyncio
async def test_reverted_receipt_raises(client, web3):
    web3.eth.wait_for_transaction_receipt.return_value = {"status": 0, "blockNumber": 9}

    with pytest.raises(TransactionRevertedError) as exc_info:
        await client.wait_for_receipt(TX_HASH)
    assert exc_info.value.tx_hash == TX_HASH


@pytest.mark.asyncio
async def test_receipt_timeout_raises_chain_error(client, web3):
    web3.eth.wait_for_transaction_receipt.side_effect = TimeExhausted("not mined")

    with pytest.raises(ChainError, match="Timed out after 5s"):
        await client.wait_for_receipt(TX_HASH)


def _padded(address):
    return bytes(12) + bytes.fromhex(address[2:])


def _log(topics):
    return {
        "address": FACTORY,
        "topics": topics,
        "data": b"",
        "blockNumber": 7,
        "blockHash": bytes(32),
        "transactionHash": bytes.fromhex("ab" * 32),
        "transactionIndex": 0,
        "logIndex": 0,
        "removed": False,
    }


@pytest.mark.asyncio
async def test_find_created_token_decodes_event(config, web3):
    web3.eth.contract.side_effect = Web3().eth.contract
    other_event = _log([Web3.keccak(text="OwnershipTransferred(address,address)"), _padded(ALICE), _padded(ALICE)])
    created = _log([Web3.keccak(text="TokenCreated(address,address)"), _padded(CREATED_TOKEN), _padded(ALICE)])
    web3.eth.get_logs.return_value = [other_event, created]
    client = EvmClient(config, web3=web3, to_thread=fake_to_thread)

    assert await client.find_created_token({"blockNumber": 7, "status": 1}) == CREATED_TOKEN

    (log_filter,) = web3.eth.get_logs.call_args.args
    assert log_filter == {
        "address": FACTORY,
        "fromBlock": 7,
        "toBlock": 7,
        "topics": [TOKEN_CREATED_TOPIC],
    }


@pytest.mark.asyncio
async def test_find_created_token_without_event(config, web3):
    web3.eth.contract.side_effect = Web3().eth.contract
    web3.eth.get_logs.return_value = []
    client = EvmClient(config, web3=web3, to_thread=fake_to_thread)

    assert await client.find_created_token({"blockNumber": 7, "status": 1}) is None
