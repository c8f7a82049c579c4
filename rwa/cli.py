#!/usr/bin/env python3
"""RWA Token Manager CLI - interactive ERC20 token management.

Deploy tokens through a factory contract and mint, burn, transfer and
approve them from any number of local accounts, all from one menu.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from . import __version__
from .config.settings import Settings, setup_logging
from .core.bootstrap import bootstrap
from .core.dispatcher import MenuDispatcher
from .core.errors import BootstrapError
from .core.operations import TokenOperations
from .core.prompts import ConsolePrompt, PromptInterface
from .utils.cli_helpers import CLIFormatter, banner

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rwa",
        description="RWA Token Manager - manage ERC20 tokens on a private EVM chain",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR, OFF); defaults to LOG_LEVEL",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


async def run_session(prompt: PromptInterface) -> int:
    """Bootstrap a session and run the menu until the operator exits."""
    try:
        session, chain = await bootstrap(prompt)
    except BootstrapError as e:
        logger.error(f"Initialization error: {e}")
        prompt.show(CLIFormatter.error(f"Initialization error: {e}"))
        return 1
    except (EOFError, KeyboardInterrupt):
        prompt.show(CLIFormatter.error("Initialization cancelled"))
        return 1

    operations = TokenOperations(session, chain, prompt)
    return await MenuDispatcher(operations, prompt).run()


async def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    Settings.log_config()
    Settings.validate()

    print(banner("RWA Token Manager", __version__))
    return await run_session(ConsolePrompt())


def app() -> None:
    """Entry point for the CLI application."""
    try:
        exit_code = asyncio.run(main())
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\nGoodbye!")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        print(f"❌ Unexpected error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    app()
