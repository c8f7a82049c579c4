from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict

from ..utils.cli_helpers import CLIFormatter
from ..utils.error_messages import format_error_for_cli
from .commands import Command, parse_command, render_menu
from .operations import TokenOperations
from .prompts import Field, PromptInterface

logger = logging.getLogger(__name__)

CHOICE_FIELD = Field("choice", "Enter your choice")


def _absorb_interrupt() -> None:
    """Withdraw the cancellation asyncio.run delivers to the main task on Ctrl+C."""
    task = asyncio.current_task()
    if task is not None:
        task.uncancel()


class MenuDispatcher:
    """Main menu loop: render, read one choice, run it, repeat until Exit."""

    def __init__(self, operations: TokenOperations, prompt: PromptInterface) -> None:
        self.operations = operations
        self.prompt = prompt
        self.handlers: Dict[Command, Callable[[], Awaitable[Any]]] = {
            Command.CREATE_TOKEN: operations.create_token,
            Command.CONNECT_TOKEN: operations.connect_token,
            Command.MINT: operations.mint,
            Command.BURN: operations.burn,
            Command.TRANSFER: operations.transfer,
            Command.APPROVE: operations.approve,
            Command.TRANSFER_FROM: operations.transfer_from,
            Command.CHECK_BALANCE: operations.check_balance,
            Command.TOKEN_DETAILS: operations.show_token_details,
            Command.CREATE_ACCOUNT: operations.create_account,
            Command.IMPORT_ACCOUNT: operations.import_account,
            Command.SWITCH_ACCOUNT: operations.switch_account,
        }

    async def read_command(self) -> Command:
        self.prompt.show(render_menu(self.operations.session))
        try:
            choice = await self.prompt.ask(CHOICE_FIELD)
        except (EOFError, KeyboardInterrupt):
            # Closed stdin or Ctrl+C at the menu both mean exit.
            return Command.EXIT
        except asyncio.CancelledError:
            _absorb_interrupt()
            self.prompt.show("")
            return Command.EXIT
        return parse_command(choice)

    async def dispatch(self, command: Command) -> bool:
        """Run one command; return False when the loop should stop."""
        if command is Command.EXIT:
            self.prompt.show("Goodbye!")
            return False

        handler = self.handlers.get(command)
        if handler is None:
            self.prompt.show(CLIFormatter.warning("Invalid choice. Please try again."))
            return True

        logger.debug("Dispatching %s", command.name)
        try:
            await handler()
        except (EOFError, KeyboardInterrupt):
            self.prompt.show("\nOperation cancelled.")
        except asyncio.CancelledError:
            _absorb_interrupt()
            self.prompt.show("\nOperation cancelled.")
        except Exception as exc:
            self.prompt.show(format_error_for_cli(f"running {command.name.lower()}", exc))
        return True

    async def run(self) -> int:
        while await self.dispatch(await self.read_command()):
            pass
        return 0
