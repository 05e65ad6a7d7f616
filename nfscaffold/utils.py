"""Shared utility functions for nfscaffold.

Provides async text I/O that preserves line endings, the shared Rich console,
and the small set of output helpers every component reports through.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from rich.console import Console

console = Console()

# ---------------------------------------------------------------------------
# Async file I/O
# ---------------------------------------------------------------------------


def _read_text(path: Path) -> str:
    # newline="" keeps CRLF intact; solution and project files are Windows-native.
    with open(path, encoding="utf-8", newline="") as fh:
        return fh.read()


def _write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as fh:
        fh.write(content)


async def read_text(path: str | Path) -> str:
    """Read a whole UTF-8 text file without translating line endings.

    Args:
        path: File to read.

    Returns:
        The file content exactly as stored on disk.

    Raises:
        OSError: If the file cannot be read.
        UnicodeDecodeError: If the file is not valid UTF-8.
    """
    return await asyncio.to_thread(_read_text, Path(path))


async def write_text(path: str | Path, content: str) -> Path:
    """Write *content* to *path*, creating parent directories as needed.

    Existing files are overwritten.  Line endings are written verbatim.

    Returns:
        The written path.
    """
    file_path = Path(path)
    await asyncio.to_thread(_write_text, file_path, content)
    return file_path


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)   -> "3.7s"
        format_duration(65.2)  -> "1m 5s"
    """
    if seconds < 0:
        return "0.0s"

    minutes = int(seconds // 60)
    secs = seconds % 60
    if minutes > 0:
        return f"{minutes}m {int(secs)}s"
    return f"{secs:.1f}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


_STYLES = {
    "success": "bold green",
    "error": "bold red",
    "warning": "bold yellow",
}


def print_step(message: str) -> None:
    """Print a dimmed, indented progress line."""
    console.print(f"  [dim]{message}[/dim]")


def _print_styled(level: str, message: str) -> None:
    style = _STYLES[level]
    console.print(f"[{style}]{message}[/{style}]")


def print_success(message: str) -> None:
    _print_styled("success", message)


def print_error(message: str) -> None:
    _print_styled("error", message)


def print_warning(message: str) -> None:
    _print_styled("warning", message)
