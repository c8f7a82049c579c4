"""Terminal styling helpers and the spinner shown while a receipt is pending."""

from __future__ import annotations

import asyncio
import os
import shutil
import sys
from types import TracebackType


class Style:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    FG_RED = "\033[31m"
    FG_GREEN = "\033[32m"
    FG_YELLOW = "\033[33m"
    FG_BLUE = "\033[34m"
    FG_CYAN = "\033[36m"


def supports_ansi() -> bool:
    """Colour only on a real terminal, and never when NO_COLOR is set."""
    return sys.stdout.isatty() and "NO_COLOR" not in os.environ


def colorize(text: str, *styles: str) -> str:
    if not styles or not supports_ansi():
        return text
    return "".join(styles) + text + Style.RESET


def rule(char: str = "─") -> str:
    """A horizontal line sized to the terminal, clamped to 20..100 columns."""
    columns = shutil.get_terminal_size(fallback=(80, 24)).columns
    return char * max(20, min(100, columns))


def banner(title: str, version: str) -> str:
    heading = f"{colorize(title, Style.BOLD, Style.FG_CYAN)} {colorize(f'v{version}', Style.DIM)}"
    return "\n".join([rule(), heading, rule()])


class CLIFormatter:
    """Message formatting for operation outcomes."""

    @classmethod
    def success(cls, text: str) -> str:
        return colorize(f"✅ {text}", Style.FG_GREEN)

    @classmethod
    def warning(cls, text: str) -> str:
        return colorize(f"⚠️  {text}", Style.FG_YELLOW)

    @classmethod
    def error(cls, text: str) -> str:
        return colorize(f"❌ {text}", Style.FG_RED)

    @classmethod
    def info(cls, text: str) -> str:
        return colorize(f"ℹ️  {text}", Style.FG_CYAN)

    @classmethod
    def header(cls, text: str) -> str:
        return colorize(f"\n{text}", Style.BOLD, Style.FG_BLUE)


class Spinner:
    """Spinner with an elapsed-seconds counter for a pending confirmation.

    Without ANSI support it prints the message once and stays silent.
    """

    FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"

    def __init__(self, message: str, interval: float = 0.1) -> None:
        self.message = message
        self.interval = interval
        self._task: asyncio.Task[None] | None = None

    async def __aenter__(self) -> "Spinner":
        if supports_ansi():
            self._task = asyncio.create_task(self._spin())
        else:
            sys.stdout.write(f"{self.message}...\n")
            sys.stdout.flush()
        return self

    async def __aexit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc: BaseException | None,
        _tb: TracebackType | None,
    ) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        sys.stdout.write("\r\033[K")
        sys.stdout.flush()

    async def _spin(self) -> None:
        loop = asyncio.get_running_loop()
        started = loop.time()
        frame = 0
        while True:
            elapsed = int(loop.time() - started)
            line = (
                f" {colorize(self.FRAMES[frame % len(self.FRAMES)], Style.FG_CYAN)} "
                f"{colorize(f'{self.message} ({elapsed}s)', Style.DIM)}"
            )
            sys.stdout.write(f"\r{line}")
            sys.stdout.flush()
            frame += 1
            await asyncio.sleep(self.interval)
