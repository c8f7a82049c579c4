"""Session bootstrap: resolve connection parameters and bind the primary account."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple, Type

from ..config.settings import Settings
from ..integrations.evm import EvmClient
from ..utils.amounts import NATIVE_DECIMALS, format_units
from ..utils.cli_helpers import CLIFormatter
from ..utils.wallets import WalletError, with_hex_prefix
from .errors import BootstrapError
from .prompts import Field, PromptInterface
from .session import ChainConfig, Identity, Session

logger = logging.getLogger(__name__)

PRIMARY_ACCOUNT_NAME = "Default Account"


async def _resolve(prompt: PromptInterface, value: Optional[str], field: Field) -> str:
    if value:
        return value
    return await prompt.ask(field)


async def resolve_config(
    prompt: PromptInterface, settings: Type[Settings] = Settings
) -> Tuple[ChainConfig, str]:
    """Return the chain config and primary private key, prompting for gaps."""
    private_key = await _resolve(
        prompt, settings.PRIVATE_KEY, Field("private_key", "Enter your private key", secret=True)
    )
    factory_address = await _resolve(
        prompt,
        settings.TOKEN_FACTORY_ADDRESS,
        Field("factory", "Enter TokenFactory contract address"),
    )

    chain_id = settings.CHAIN_ID
    if chain_id is None:
        raw_chain_id = await prompt.ask(Field("chain_id", "Enter chain ID"))
        try:
            chain_id = int(raw_chain_id)
        except ValueError as exc:
            raise BootstrapError(f"Chain ID must be an integer, got {raw_chain_id!r}") from exc

    config = ChainConfig(
        rpc_url=settings.RPC_URL,
        chain_id=chain_id,
        factory_address=with_hex_prefix(factory_address),
        tx_timeout=settings.RWA_TX_TIMEOUT,
    )
    return config, private_key


async def bootstrap(
    prompt: PromptInterface,
    settings: Type[Settings] = Settings,
    client_factory: Callable[[ChainConfig], EvmClient] = EvmClient,
) -> Tuple[Session, EvmClient]:
    """Create the session with the primary account bound and its balance checked.

    Raises :class:`BootstrapError` when the private key is unusable or the
    chain cannot be reached; the caller treats both as fatal.
    """
    prompt.show("Connecting to blockchain...")
    config, private_key = await resolve_config(prompt, settings)

    try:
        identity = Identity.from_private_key(PRIMARY_ACCOUNT_NAME, private_key)
    except WalletError as exc:
        raise BootstrapError(f"Invalid private key: {exc}") from exc

    chain = client_factory(config)
    chain.bind(identity)
    session = Session(config=config)
    session.add_identity(identity)
    session.select(0)
    prompt.show(f"Connected with account: {identity.address}")

    try:
        balance = await chain.get_native_balance(identity.address)
    except Exception as exc:
        raise BootstrapError(f"Unable to read balance from {config.rpc_url}: {exc}") from exc

    prompt.show(f"Account balance: {format_units(balance, NATIVE_DECIMALS)} ETH")
    prompt.show(CLIFormatter.success("Initialization complete!"))
    logger.info("Session ready on chain %s with %s", config.chain_id, identity.address)
    return session, chain
