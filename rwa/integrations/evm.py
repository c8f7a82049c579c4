"""EVM chain client for the token factory and ERC20 token contracts."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from pydantic import BaseModel, ConfigDict, Field, field_validator
from web3 import Web3
from web3.exceptions import MismatchedABI, TimeExhausted

from ..core.errors import ChainError, TransactionRevertedError
from ..core.session import ChainConfig, Identity
from ..utils.wallets import normalize_address

logger = logging.getLogger(__name__)

RPC_REQUEST_TIMEOUT = 30

TOKEN_FACTORY_ABI: List[Dict[str, Any]] = [
    {
        "inputs": [
            {"name": "name", "type": "string"},
            {"name": "symbol", "type": "string"},
            {"name": "initialOwner", "type": "address"},
        ],
        "name": "createToken",
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "tokenAddress", "type": "address"},
            {"indexed": True, "name": "owner", "type": "address"},
        ],
        "name": "TokenCreated",
        "type": "event",
    },
]

TOKEN_CREATED_TOPIC = Web3.to_hex(Web3.keccak(text="TokenCreated(address,address)"))


def _view(name: str, inputs: List[Dict[str, str]], output_type: str) -> Dict[str, Any]:
    return {
        "inputs": inputs,
        "name": name,
        "outputs": [{"name": "", "type": output_type}],
        "stateMutability": "view",
        "type": "function",
    }


def _mutating(name: str, inputs: List[Dict[str, str]], returns_bool: bool = True) -> Dict[str, Any]:
    return {
        "inputs": inputs,
        "name": name,
        "outputs": [{"name": "", "type": "bool"}] if returns_bool else [],
        "stateMutability": "nonpayable",
        "type": "function",
    }


TOKEN_ABI: List[Dict[str, Any]] = [
    _view("name", [], "string"),
    _view("symbol", [], "string"),
    _view("decimals", [], "uint8"),
    _view("totalSupply", [], "uint256"),
    _view("balanceOf", [{"name": "account", "type": "address"}], "uint256"),
    _view(
        "allowance",
        [{"name": "owner", "type": "address"}, {"name": "spender", "type": "address"}],
        "uint256",
    ),
    _mutating(
        "transfer", [{"name": "to", "type": "address"}, {"name": "amount", "type": "uint256"}]
    ),
    _mutating(
        "approve", [{"name": "spender", "type": "address"}, {"name": "amount", "type": "uint256"}]
    ),
    _mutating(
        "transferFrom",
        [
            {"name": "sender", "type": "address"},
            {"name": "recipient", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
    ),
    _mutating(
        "mint",
        [{"name": "to", "type": "address"}, {"name": "amount", "type": "uint256"}],
        returns_bool=False,
    ),
    _mutating("burn", [{"name": "amount", "type": "uint256"}], returns_bool=False),
]


class AddressInput(BaseModel):
    """A single address entered by the operator."""

    address: str = Field(description="EVM address, with or without 0x prefix")

    model_config = ConfigDict(extra="forbid")

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        return normalize_address(v)


class CreateTokenInput(BaseModel):
    """Arguments for the factory's createToken call."""

    name: str = Field(description="Token name")
    symbol: str = Field(description="Token symbol")
    initial_owner: str = Field(description="Address that will own the new token")

    model_config = ConfigDict(extra="forbid")

    @field_validator("name", "symbol")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("initial_owner")
    @classmethod
    def validate_owner(cls, v: str) -> str:
        return normalize_address(v)


@dataclass(frozen=True)
class TokenDetails:
    address: str
    name: str
    symbol: str
    decimals: int
    total_supply: int
    balance: int


class EvmClient:
    """Read and write access to the factory and token contracts.

    Reads go through a plain HTTP ``Web3`` instance. Writes are signed locally
    by the identity passed to :meth:`bind` and sent as raw transactions.
    Blocking web3 calls run through ``to_thread`` so the caller's event loop
    stays responsive.
    """

    def __init__(
        self,
        config: ChainConfig,
        *,
        web3: Optional[Web3] = None,
        to_thread: Callable[..., Any] = asyncio.to_thread,
    ) -> None:
        self.config = config
        self._web3 = web3
        self._to_thread = to_thread
        self._account: Optional[LocalAccount] = None

    @property
    def web3(self) -> Web3:
        """Get Web3 instance, creating if necessary."""
        if self._web3 is None:
            self._web3 = Web3(
                Web3.HTTPProvider(
                    self.config.rpc_url, request_kwargs={"timeout": RPC_REQUEST_TIMEOUT}
                )
            )
        return self._web3

    @property
    def signer_address(self) -> Optional[str]:
        return self._account.address if self._account is not None else None

    def bind(self, identity: Identity) -> None:
        """Sign subsequent transactions with ``identity``."""
        account = Account.from_key(identity.private_key)
        self._account = account
        logger.debug("Write client bound to %s", account.address)

    def _token(self, token_address: str) -> Any:
        return self.web3.eth.contract(address=normalize_address(token_address), abi=TOKEN_ABI)

    def _factory(self) -> Any:
        return self.web3.eth.contract(
            address=normalize_address(self.config.factory_address), abi=TOKEN_FACTORY_ABI
        )

    # Reads

    async def get_native_balance(self, address: str) -> int:
        checksum_address = normalize_address(address)
        try:
            balance = await self._to_thread(self.web3.eth.get_balance, checksum_address)
        except Exception as exc:
            logger.error(f"Failed to get native balance for {checksum_address}: {exc}")
            raise ChainError(f"Failed to get balance: {exc}") from exc
        return int(balance)

    async def read_token(self, token_address: str, function_name: str, *args: Any) -> Any:
        """Call a view function on the token contract."""
        try:
            call = getattr(self._token(token_address).functions, function_name)(*args)
            return await self._to_thread(call.call)
        except Exception as exc:
            logger.error(f"{function_name}() on {token_address} failed: {exc}")
            raise ChainError(f"Failed to read {function_name} from {token_address}: {exc}") from exc

    async def decimals(self, token_address: str) -> int:
        return int(await self.read_token(token_address, "decimals"))

    async def balance_of(self, token_address: str, owner: str) -> int:
        return int(await self.read_token(token_address, "balanceOf", normalize_address(owner)))

    async def allowance(self, token_address: str, owner: str, spender: str) -> int:
        return int(
            await self.read_token(
                token_address, "allowance", normalize_address(owner), normalize_address(spender)
            )
        )

    async def token_details(self, token_address: str, holder: str) -> TokenDetails:
        """Read name, symbol, decimals, supply and ``holder``'s balance together.

        The five reads are issued concurrently; if any of them fails the whole
        read fails.
        """
        name, symbol, decimals, total_supply, balance = await asyncio.gather(
            self.read_token(token_address, "name"),
            self.read_token(token_address, "symbol"),
            self.read_token(token_address, "decimals"),
            self.read_token(token_address, "totalSupply"),
            self.read_token(token_address, "balanceOf", normalize_address(holder)),
        )
        return TokenDetails(
            address=normalize_address(token_address),
            name=str(name),
            symbol=str(symbol),
            decimals=int(decimals),
            total_supply=int(total_supply),
            balance=int(balance),
        )

    # Writes

    def _require_account(self) -> LocalAccount:
        if self._account is None:
            raise ChainError("No signing account bound to the write client")
        return self._account

    async def send_transaction(self, contract_call: Any) -> str:
        """Build, sign and submit a contract call; return its hash as hex."""
        account = self._require_account()
        web3 = self.web3

        def _build_and_send() -> Any:
            tx = contract_call.build_transaction(
                {
                    "from": account.address,
                    "nonce": web3.eth.get_transaction_count(account.address, "pending"),
                    "chainId": self.config.chain_id,
                }
            )
            signed = account.sign_transaction(tx)
            return web3.eth.send_raw_transaction(signed.raw_transaction)

        try:
            tx_hash = await self._to_thread(_build_and_send)
        except Exception as exc:
            logger.error(f"Transaction submission from {account.address} failed: {exc}")
            raise ChainError(f"Transaction submission failed: {exc}") from exc
        return Web3.to_hex(tx_hash)

    async def wait_for_receipt(self, tx_hash: str) -> Any:
        """Wait up to the configured timeout for ``tx_hash`` to be mined."""
        timeout = self.config.tx_timeout
        try:
            receipt = await self._to_thread(
                self.web3.eth.wait_for_transaction_receipt, tx_hash, timeout=timeout
            )
        except TimeExhausted as exc:
            raise ChainError(
                f"Timed out after {timeout:g}s waiting for transaction {tx_hash}"
            ) from exc
        except Exception as exc:
            logger.error(f"Waiting for receipt of {tx_hash} failed: {exc}")
            raise ChainError(f"Transaction confirmation failed: {exc}") from exc

        if receipt["status"] == 0:
            raise TransactionRevertedError(tx_hash)
        logger.info("Transaction %s mined in block %s", tx_hash, receipt["blockNumber"])
        return receipt

    async def create_token(self, name: str, symbol: str, initial_owner: str) -> str:
        call = self._factory().functions.createToken(name, symbol, normalize_address(initial_owner))
        return await self.send_transaction(call)

    async def mint(self, token_address: str, recipient: str, amount: int) -> str:
        call = self._token(token_address).functions.mint(normalize_address(recipient), amount)
        return await self.send_transaction(call)

    async def burn(self, token_address: str, amount: int) -> str:
        return await self.send_transaction(self._token(token_address).functions.burn(amount))

    async def transfer(self, token_address: str, recipient: str, amount: int) -> str:
        call = self._token(token_address).functions.transfer(normalize_address(recipient), amount)
        return await self.send_transaction(call)

    async def approve(self, token_address: str, spender: str, amount: int) -> str:
        call = self._token(token_address).functions.approve(normalize_address(spender), amount)
        return await self.send_transaction(call)

    async def transfer_from(
        self, token_address: str, sender: str, recipient: str, amount: int
    ) -> str:
        call = self._token(token_address).functions.transferFrom(
            normalize_address(sender), normalize_address(recipient), amount
        )
        return await self.send_transaction(call)

    # Events

    async def find_created_token(self, receipt: Any) -> Optional[str]:
        """Return the token address from the first TokenCreated log in the receipt's block."""
        factory = self._factory()
        block = receipt["blockNumber"]
        try:
            logs = await self._to_thread(
                self.web3.eth.get_logs,
                {
                    "address": factory.address,
                    "fromBlock": block,
                    "toBlock": block,
                    "topics": [TOKEN_CREATED_TOPIC],
                },
            )
        except Exception as exc:
            raise ChainError(f"Failed to read factory events: {exc}") from exc

        event = factory.events.TokenCreated()
        for log in logs:
            try:
                decoded = event.process_log(log)
            except MismatchedABI:
                continue
            token_address = decoded["args"].get("tokenAddress")
            if token_address:
                return normalize_address(token_address)
        return None
