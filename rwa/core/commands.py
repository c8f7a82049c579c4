"""Main menu commands and their rendering."""

from __future__ import annotations

from enum import Enum
from typing import List, Tuple

from .session import Session


class Command(Enum):
    """Selections available from the main menu."""

    EXIT = "0"
    CREATE_TOKEN = "1"
    CONNECT_TOKEN = "2"
    MINT = "3"
    BURN = "4"
    TRANSFER = "5"
    APPROVE = "6"
    TRANSFER_FROM = "7"
    CHECK_BALANCE = "8"
    TOKEN_DETAILS = "9"
    CREATE_ACCOUNT = "10"
    IMPORT_ACCOUNT = "11"
    SWITCH_ACCOUNT = "12"
    UNKNOWN = "?"


COMMAND_LABELS = {
    Command.CREATE_TOKEN: "Create new token",
    Command.CONNECT_TOKEN: "Connect to existing token",
    Command.MINT: "Mint tokens (owner only)",
    Command.BURN: "Burn tokens (owner only)",
    Command.TRANSFER: "Transfer tokens",
    Command.APPROVE: "Approve tokens",
    Command.TRANSFER_FROM: "Transfer tokens from another account",
    Command.CHECK_BALANCE: "Check balance",
    Command.TOKEN_DETAILS: "Show token details",
    Command.CREATE_ACCOUNT: "Create new account",
    Command.IMPORT_ACCOUNT: "Import existing account",
    Command.SWITCH_ACCOUNT: "Switch account",
}

MENU_SECTIONS: List[Tuple[str, List[Command]]] = [
    (
        "Token Operations",
        [
            Command.CREATE_TOKEN,
            Command.CONNECT_TOKEN,
            Command.MINT,
            Command.BURN,
            Command.TRANSFER,
            Command.APPROVE,
            Command.TRANSFER_FROM,
            Command.CHECK_BALANCE,
            Command.TOKEN_DETAILS,
        ],
    ),
    (
        "Account Management",
        [Command.CREATE_ACCOUNT, Command.IMPORT_ACCOUNT, Command.SWITCH_ACCOUNT],
    ),
]


def parse_command(choice: str) -> Command:
    """Map a line of menu input to a command; anything else is UNKNOWN."""
    value = (choice or "").strip()
    if value == Command.UNKNOWN.value:
        return Command.UNKNOWN
    try:
        return Command(value)
    except ValueError:
        return Command.UNKNOWN


def render_menu(session: Session) -> str:
    current = session.current
    lines = [
        "",
        "=== RWA Token Manager ===",
        f"Current Account: {current.name} ({current.address})",
        f"Connected Token: {session.token_address or 'none'}",
    ]
    for title, commands in MENU_SECTIONS:
        lines.append("")
        lines.append(f"=== {title} ===")
        lines.extend(f"{command.value}. {COMMAND_LABELS[command]}" for command in commands)
    lines.append("")
    lines.append(f"{Command.EXIT.value}. Exit")
    return "\n".join(lines)
