"""Operator prompts.

Operations describe what they need as :class:`Field` tuples and hand them to
a :class:`PromptInterface`. The console implementation reads from stdin; tests
supply canned answers through their own implementation.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import getpass
import os
import sys
import threading
from dataclasses import dataclass
from typing import AsyncContextManager, Callable, Dict, Optional, Protocol, Sequence

from ..utils.cli_helpers import Spinner


@dataclass(frozen=True)
class Field:
    """One value to request from the operator."""

    key: str
    label: str
    default: Optional[str] = None
    secret: bool = False

    def render(self) -> str:
        if self.default:
            return f"{self.label} (default: {self.default}): "
        return f"{self.label}: "


class PromptInterface(Protocol):
    async def ask(self, field: Field) -> str: ...

    def show(self, message: str) -> None: ...

    def status(self, message: str) -> AsyncContextManager[object]: ...


def _start_reader(reader: Callable[[str], str], text: str) -> "concurrent.futures.Future[str]":
    """Run a blocking line read on a daemon thread.

    The future is marked running up front so cancelling an awaiting task never
    cancels the read itself.
    """
    future: concurrent.futures.Future[str] = concurrent.futures.Future()
    future.set_running_or_notify_cancel()

    def _run() -> None:
        try:
            future.set_result(reader(text))
        except Exception as exc:
            future.set_exception(exc)

    threading.Thread(target=_run, name="rwa-stdin", daemon=True).start()
    return future


def _terminal_restorer() -> Optional[Callable[[], None]]:
    """Snapshot tty settings so a cancelled hidden prompt does not leave echo off."""
    if os.name == "nt" or not sys.stdin.isatty():
        return None

    import termios

    fd = sys.stdin.fileno()
    old_settings = termios.tcgetattr(fd)
    return lambda: termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)


class ConsolePrompt:
    """Prompt implementation backed by stdin/stdout.

    Lines are read on daemon threads so Ctrl+C can cancel the waiting task and
    shutdown never blocks on ``input()``. A read abandoned that way stays
    pending and answers the next question; only one thread reads stdin at a
    time.
    """

    def __init__(self) -> None:
        self._pending: Optional[concurrent.futures.Future[str]] = None

    async def ask(self, field: Field) -> str:
        text = field.render()
        restore = _terminal_restorer() if field.secret else None
        if self._pending is None:
            reader = getpass.getpass if field.secret else input
            self._pending = _start_reader(reader, text)
        else:
            # The abandoned read already printed its own prompt
            sys.stdout.write(text)
            sys.stdout.flush()

        try:
            answer = await asyncio.wrap_future(self._pending)
        except asyncio.CancelledError:
            if restore is not None:
                restore()
            raise
        except Exception:
            self._pending = None
            raise
        self._pending = None
        return answer.strip()

    def show(self, message: str) -> None:
        print(message)

    def status(self, message: str) -> AsyncContextManager[object]:
        return Spinner(message)


async def ask_fields(prompt: PromptInterface, fields: Sequence[Field]) -> Dict[str, str]:
    """Ask each field in order, substituting defaults for blank answers."""
    answers: Dict[str, str] = {}
    for field in fields:
        value = await prompt.ask(field)
        if not value and field.default is not None:
            value = field.default
        answers[field.key] = value
    return answers


async def confirm(prompt: PromptInterface, question: str) -> bool:
    answer = await prompt.ask(Field("confirm", f"{question} (y/n)"))
    return answer.lower() == "y"
