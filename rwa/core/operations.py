"""Token and account operations invoked from the main menu.

Every public coroutine on :class:`TokenOperations` is an operation boundary:
failures are logged, reported through the prompt and never propagate to the
menu loop.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from ..integrations.evm import AddressInput, CreateTokenInput, EvmClient
from ..utils.amounts import NATIVE_DECIMALS, format_units, parse_units
from ..utils.cli_helpers import CLIFormatter
from ..utils.error_messages import format_error_for_cli
from .errors import InsufficientAllowanceError, NoTokenConnectedError
from .prompts import Field, PromptInterface, ask_fields, confirm
from .session import Identity, Session

logger = logging.getLogger(__name__)

T = TypeVar("T")
Handler = Callable[..., Awaitable[Optional[T]]]


def operation(
    action: str, *, requires_token: bool = False
) -> Callable[[Handler[T]], Handler[T]]:
    """Turn a method into an operation boundary.

    With ``requires_token`` the method is skipped, without prompting, when no
    token is connected. Any exception is reported as "Error <action>".
    """

    def decorator(func: Handler[T]) -> Handler[T]:
        @functools.wraps(func)
        async def wrapper(self: "TokenOperations", *args: Any, **kwargs: Any) -> Optional[T]:
            if requires_token and not self.session.token_address:
                self.prompt.show(CLIFormatter.warning(str(NoTokenConnectedError())))
                return None
            try:
                return await func(self, *args, **kwargs)
            except (EOFError, KeyboardInterrupt):
                raise
            except Exception as exc:
                self.prompt.show(format_error_for_cli(action, exc))
                return None

        return wrapper

    return decorator


class TokenOperations:
    """Operations against the connected token and the account registry."""

    def __init__(self, session: Session, chain: EvmClient, prompt: PromptInterface) -> None:
        self.session = session
        self.chain = chain
        self.prompt = prompt

    @property
    def token(self) -> str:
        if not self.session.token_address:
            raise NoTokenConnectedError()
        return self.session.token_address

    async def _submit_and_confirm(self, submission: Awaitable[str]) -> Any:
        tx_hash = await submission
        self.prompt.show(CLIFormatter.info(f"Transaction sent: {tx_hash}"))
        async with self.prompt.status("Waiting for transaction confirmation"):
            return await self.chain.wait_for_receipt(tx_hash)

    async def _show_native_balance(self, address: str) -> None:
        balance = await self.chain.get_native_balance(address)
        self.prompt.show(f"Account balance: {format_units(balance, NATIVE_DECIMALS)} ETH")

    # Token lifecycle

    @operation("creating token")
    async def create_token(self) -> None:
        answers = await ask_fields(
            self.prompt,
            [
                Field("name", "Enter token name"),
                Field("symbol", "Enter token symbol"),
                Field("initial_owner", "Enter initial owner address", default=self.session.address),
            ],
        )
        params = CreateTokenInput(**answers)

        self.prompt.show(f"Creating token {params.name} ({params.symbol})...")
        receipt = await self._submit_and_confirm(
            self.chain.create_token(params.name, params.symbol, params.initial_owner)
        )

        token_address = await self.chain.find_created_token(receipt)
        if not token_address:
            self.prompt.show(
                CLIFormatter.warning("Token creation event not found in the transaction receipt")
            )
            return

        self.session.token_address = token_address
        logger.info("Token created at %s", token_address)
        self.prompt.show(CLIFormatter.success(f"Token created successfully at address: {token_address}"))
        await self.show_token_details()

    @operation("connecting to token")
    async def connect_token(self) -> bool:
        answer = await self.prompt.ask(Field("address", "Enter token address"))
        token_address = AddressInput(address=answer).address

        self.session.token_address = token_address
        if not await self.show_token_details():
            return False
        self.prompt.show(CLIFormatter.success(f"Connected to token {token_address}"))
        return True

    async def show_token_details(self) -> bool:
        """Display the connected token's details.

        Returns False, and disconnects the token, when any of the reads fails.
        """
        if not self.session.token_address:
            self.prompt.show(CLIFormatter.warning(str(NoTokenConnectedError())))
            return False

        try:
            details = await self.chain.token_details(self.session.token_address, self.session.address)
        except Exception as exc:
            self.prompt.show(format_error_for_cli("fetching token details", exc))
            self.session.disconnect_token()
            return False

        self.prompt.show(
            "\n".join(
                [
                    CLIFormatter.header("Token Details:"),
                    f"Name: {details.name}",
                    f"Symbol: {details.symbol}",
                    f"Decimals: {details.decimals}",
                    f"Total Supply: {format_units(details.total_supply, details.decimals)}",
                    f"Contract Address: {details.address}",
                    f"Your balance: {format_units(details.balance, details.decimals)}",
                ]
            )
        )
        return True

    # Mutating token operations

    @operation("minting tokens", requires_token=True)
    async def mint(self) -> None:
        answers = await ask_fields(
            self.prompt,
            [
                Field("recipient", "Enter recipient address", default=self.session.address),
                Field("amount", "Enter amount to mint"),
            ],
        )
        recipient = AddressInput(address=answers["recipient"]).address
        decimals = await self.chain.decimals(self.token)
        amount = parse_units(answers["amount"], decimals)

        self.prompt.show(f"Minting {answers['amount']} tokens to {recipient}...")
        await self._submit_and_confirm(self.chain.mint(self.token, recipient, amount))
        self.prompt.show(CLIFormatter.success("Tokens minted successfully!"))

        balance = await self.chain.balance_of(self.token, recipient)
        self.prompt.show(f"New balance of {recipient}: {format_units(balance, decimals)}")

    @operation("burning tokens", requires_token=True)
    async def burn(self) -> None:
        answers = await ask_fields(self.prompt, [Field("amount", "Enter amount to burn")])
        decimals = await self.chain.decimals(self.token)
        amount = parse_units(answers["amount"], decimals)

        self.prompt.show(f"Burning {answers['amount']} tokens...")
        await self._submit_and_confirm(self.chain.burn(self.token, amount))
        self.prompt.show(CLIFormatter.success("Tokens burned successfully!"))

        balance = await self.chain.balance_of(self.token, self.session.address)
        self.prompt.show(f"New balance: {format_units(balance, decimals)}")

    @operation("transferring tokens", requires_token=True)
    async def transfer(self) -> None:
        answers = await ask_fields(
            self.prompt,
            [
                Field("recipient", "Enter recipient address"),
                Field("amount", "Enter amount to transfer"),
            ],
        )
        recipient = AddressInput(address=answers["recipient"]).address
        decimals = await self.chain.decimals(self.token)
        amount = parse_units(answers["amount"], decimals)

        self.prompt.show(f"Transferring {answers['amount']} tokens to {recipient}...")
        await self._submit_and_confirm(self.chain.transfer(self.token, recipient, amount))
        self.prompt.show(CLIFormatter.success("Tokens transferred successfully!"))

        balance = await self.chain.balance_of(self.token, self.session.address)
        self.prompt.show(f"New balance: {format_units(balance, decimals)}")

    @operation("approving tokens", requires_token=True)
    async def approve(self) -> None:
        answers = await ask_fields(
            self.prompt,
            [
                Field("spender", "Enter spender address"),
                Field("amount", "Enter amount to approve"),
            ],
        )
        spender = AddressInput(address=answers["spender"]).address
        decimals = await self.chain.decimals(self.token)
        amount = parse_units(answers["amount"], decimals)

        self.prompt.show(f"Approving {answers['amount']} tokens for {spender}...")
        await self._submit_and_confirm(self.chain.approve(self.token, spender, amount))
        self.prompt.show(CLIFormatter.success("Tokens approved successfully!"))

        allowance = await self.chain.allowance(self.token, self.session.address, spender)
        self.prompt.show(f"New allowance for {spender}: {format_units(allowance, decimals)}")

    @operation("transferring tokens from another account", requires_token=True)
    async def transfer_from(self) -> None:
        answers = await ask_fields(
            self.prompt,
            [
                Field("sender", "Enter sender address"),
                Field("recipient", "Enter recipient address"),
                Field("amount", "Enter amount to transfer"),
            ],
        )
        sender = AddressInput(address=answers["sender"]).address
        recipient = AddressInput(address=answers["recipient"]).address
        decimals = await self.chain.decimals(self.token)
        amount = parse_units(answers["amount"], decimals)

        # The current account is always the spender.
        allowance = await self.chain.allowance(self.token, sender, self.session.address)
        if allowance < amount:
            raise InsufficientAllowanceError(
                allowance,
                amount,
                f"Insufficient allowance. Current allowance: {format_units(allowance, decimals)}, "
                f"requested: {format_units(amount, decimals)}",
            )

        self.prompt.show(f"Transferring {answers['amount']} tokens from {sender} to {recipient}...")
        await self._submit_and_confirm(self.chain.transfer_from(self.token, sender, recipient, amount))
        self.prompt.show(CLIFormatter.success("Tokens transferred successfully!"))

        balance = await self.chain.balance_of(self.token, recipient)
        self.prompt.show(f"New balance of {recipient}: {format_units(balance, decimals)}")
        remaining = await self.chain.allowance(self.token, sender, self.session.address)
        self.prompt.show(f"Remaining allowance: {format_units(remaining, decimals)}")

    # Read-only token operations

    @operation("checking balance", requires_token=True)
    async def check_balance(self) -> None:
        answers = await ask_fields(
            self.prompt,
            [Field("address", "Enter address to check", default=self.session.address)],
        )
        address = AddressInput(address=answers["address"]).address
        decimals = await self.chain.decimals(self.token)
        balance = await self.chain.balance_of(self.token, address)
        self.prompt.show(f"Balance of {address}: {format_units(balance, decimals)}")

    # Accounts

    async def _ask_account_name(self) -> str:
        default = f"Account {len(self.session.identities) + 1}"
        answers = await ask_fields(
            self.prompt, [Field("name", "Enter a name for this account", default=default)]
        )
        return answers["name"]

    async def _offer_switch(self, index: int) -> None:
        if await confirm(self.prompt, "Switch to this account?"):
            await self._activate(index)

    async def _activate(self, index: int) -> Identity:
        identity = self.session.identities[index]
        self.chain.bind(identity)
        self.session.select(index)
        self.prompt.show(f"Switched to account: {identity.name}")
        self.prompt.show(f"Address: {self.chain.signer_address}")
        await self._show_native_balance(identity.address)
        return identity

    @operation("creating new account")
    async def create_account(self) -> None:
        name = await self._ask_account_name()
        identity = Identity.generate(name)
        index = self.session.add_identity(identity)
        logger.info("Created account %s (%s)", name, identity.address)

        self.prompt.show(CLIFormatter.success(f"New account created: {name}"))
        self.prompt.show(f"Address: {identity.address}")
        self.prompt.show(f"Private Key: {identity.private_key} (Keep this secure!)")
        await self._offer_switch(index)

    @operation("importing account")
    async def import_account(self) -> None:
        name = await self._ask_account_name()
        private_key = await self.prompt.ask(Field("private_key", "Enter private key", secret=True))
        identity = Identity.from_private_key(name, private_key)
        index = self.session.add_identity(identity)
        logger.info("Imported account %s (%s)", name, identity.address)

        self.prompt.show(CLIFormatter.success(f"Account imported: {name}"))
        self.prompt.show(f"Address: {identity.address}")
        await self._offer_switch(index)

    @operation("switching account")
    async def switch_account(self) -> None:
        lines = [CLIFormatter.header("Available Accounts:")]
        for i, identity in enumerate(self.session.identities):
            marker = " (Current)" if i == self.session.current_index else ""
            lines.append(f"{i + 1}. {identity.name} ({identity.address}){marker}")
        self.prompt.show("\n".join(lines))

        choice = await self.prompt.ask(Field("choice", "Select account number (or 'c' to create new)"))
        if choice.lower() == "c":
            await self.create_account()
            return

        try:
            index = int(choice) - 1
        except ValueError:
            index = -1
        if not 0 <= index < len(self.session.identities):
            self.prompt.show(CLIFormatter.warning("Invalid selection. Please try again."))
            return
        await self._activate(index)
