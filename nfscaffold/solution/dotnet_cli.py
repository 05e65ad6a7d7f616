"""``dotnet`` CLI process management.

Wraps the two solution operations the scaffolder relies on -- creating a
solution and adding a project to it -- and awaits each process to exit so
callers never race the tool while it rewrites the ``.sln`` file.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from pathlib import Path

from nfscaffold.utils import console


@dataclass
class CommandResult:
    """Outcome of one ``dotnet`` invocation."""

    command: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class DotnetCliError(Exception):
    """Raised when a ``dotnet`` command cannot run or exits unsuccessfully."""

    def __init__(self, message: str, command: str = "", stderr: str = ""):
        self.command = command
        self.stderr = stderr
        super().__init__(message)


class DotnetCli:
    """Runs ``dotnet`` subcommands as child processes.

    Commands are spawned without a shell so paths containing spaces are passed
    through untouched.
    """

    def __init__(self, dotnet_binary: str = "dotnet", timeout_seconds: float = 120.0):
        self.dotnet_binary = dotnet_binary
        self.timeout_seconds = timeout_seconds

    async def run(self, *args: str, cwd: str | Path | None = None) -> CommandResult:
        """Run ``dotnet <args>`` and wait for it to exit.

        Returns:
            CommandResult, whatever the exit code.

        Raises:
            DotnetCliError: If the binary cannot be started or the command
                exceeds the configured timeout.
        """
        cmd = [self.dotnet_binary, *args]
        cmd_str = " ".join(cmd)
        start_time = time.monotonic()

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd else None,
            )
        except FileNotFoundError:
            raise DotnetCliError(
                f"dotnet binary not found: '{self.dotnet_binary}'. "
                "Ensure the .NET SDK is installed and in PATH.",
                command=cmd_str,
            )
        except PermissionError:
            raise DotnetCliError(
                f"Permission denied executing: '{self.dotnet_binary}'.",
                command=cmd_str,
            )

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise DotnetCliError(
                f"dotnet command timed out after {self.timeout_seconds}s: {cmd_str}",
                command=cmd_str,
            )

        return CommandResult(
            command=cmd_str,
            exit_code=process.returncode if process.returncode is not None else -1,
            stdout=(stdout_bytes or b"").decode("utf-8", errors="replace").strip(),
            stderr=(stderr_bytes or b"").decode("utf-8", errors="replace").strip(),
            duration_seconds=time.monotonic() - start_time,
        )

    async def _run_checked(self, *args: str) -> CommandResult:
        result = await self.run(*args)
        if not result.success:
            raise DotnetCliError(
                f"dotnet command failed (exit {result.exit_code}): {result.command}\n"
                f"{result.stderr or result.stdout}",
                command=result.command,
                stderr=result.stderr,
            )
        return result

    async def new_solution(self, directory: str | Path) -> CommandResult:
        """Create a solution container inside *directory* (``dotnet new sln -o``)."""
        return await self._run_checked("new", "sln", "-o", str(directory))

    async def add_project(self, solution_path: str | Path, project_path: str | Path) -> CommandResult:
        """Add *project_path* to the solution at *solution_path* (``dotnet sln add``)."""
        return await self._run_checked("sln", str(solution_path), "add", str(project_path))

    async def check_available(self) -> bool:
        """Return ``True`` if ``dotnet --version`` runs successfully."""
        try:
            result = await self.run("--version")
        except DotnetCliError:
            console.print(
                f"[red]dotnet CLI not available:[/red] '{self.dotnet_binary}' not found in PATH."
            )
            return False
        if result.success:
            console.print(f"[green]dotnet CLI available:[/green] {result.stdout}")
        return result.success
