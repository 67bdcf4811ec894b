"""
Output sinks: standard output and the system clipboard.
"""

from __future__ import annotations

import asyncio
from typing import List, Protocol, Sequence

import click
import structlog

from tabnab.exceptions import SinkError

logger = structlog.get_logger(__name__)


class Sink(Protocol):
    """Destination for the final rendered output."""

    async def write(self, text: str) -> None:
        ...


class StdoutSink:
    async def write(self, text: str) -> None:
        click.echo(text)


class ClipboardSink:
    """Pipes output into a clipboard command such as ``pbcopy``."""

    def __init__(self, command: Sequence[str] = ("pbcopy",)) -> None:
        self.command: List[str] = list(command)

    async def write(self, text: str) -> None:
        try:
            process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise SinkError(f"Clipboard command not found: {self.command[0]}") from e
        except OSError as e:
            raise SinkError(f"Could not write to clipboard: {e}") from e

        _, stderr = await process.communicate(text.encode("utf-8"))
        if process.returncode != 0:
            logger.debug("Clipboard command failed", error=stderr.decode("utf-8", errors="replace").strip())
            raise SinkError(f"{self.command[0]} exited with code {process.returncode}")

        logger.debug("Copied output to clipboard", characters=len(text))
