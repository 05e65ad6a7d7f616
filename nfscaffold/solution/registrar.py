"""Solution registration for newly created projects.

``dotnet sln add`` files every ``.nfproj`` under a generic project type GUID.
Visual Studio only loads the project with the nanoFramework extension when
the entry carries the nanoFramework type GUID, so after the CLI has added the
project its ``Project("{...}")`` line is rewritten in place.

Only the matching ``Project(...)`` line is touched; every other byte of the
solution file (BOM, CRLF line endings, configuration sections) is preserved.
"""

from __future__ import annotations

import asyncio
import re
import time
from dataclasses import dataclass, field
from pathlib import Path

from nfscaffold.solution.dotnet_cli import DotnetCli, DotnetCliError
from nfscaffold.utils import print_error, print_step, print_warning, read_text, write_text

# Project("{TYPE}") = "Name", "Path", "{GUID}"
_PROJECT_LINE = re.compile(
    r'^Project\("\{(?P<type_id>[^}"]+)\}"\)\s*=\s*'
    r'"(?P<name>[^"]*)",\s*"(?P<path>[^"]*)",\s*"\{(?P<project_id>[^}"]+)\}"',
    re.MULTILINE,
)


@dataclass(frozen=True)
class SolutionEntry:
    """One ``Project(...)`` declaration and where its fields sit in the text."""

    name: str
    path: str
    type_id: str
    project_id: str
    type_span: tuple[int, int]
    project_id_span: tuple[int, int]


class SolutionFile:
    """Minimal structured view over the text of a ``.sln`` file.

    Only project declarations are parsed.  Edits splice new values into the
    original text at the recorded spans, so formatting never changes.
    """

    def __init__(self, text: str) -> None:
        self.text = text

    @property
    def entries(self) -> list[SolutionEntry]:
        return [
            SolutionEntry(
                name=m.group("name"),
                path=m.group("path"),
                type_id=m.group("type_id"),
                project_id=m.group("project_id"),
                type_span=m.span("type_id"),
                project_id_span=m.span("project_id"),
            )
            for m in _PROJECT_LINE.finditer(self.text)
        ]

    def find(self, project_name: str) -> list[SolutionEntry]:
        """Return every entry whose name equals *project_name* exactly."""
        return [e for e in self.entries if e.name == project_name]

    def _splice(self, span: tuple[int, int], value: str) -> None:
        start, end = span
        self.text = self.text[:start] + value + self.text[end:]

    def retype(self, entry: SolutionEntry, type_id: str) -> None:
        """Set the project type GUID of *entry*."""
        self._splice(entry.type_span, type_id)

    def reconcile_project_id(self, entry: SolutionEntry, project_id: str) -> None:
        """Replace *entry*'s project GUID with *project_id* throughout the file.

        The old GUID also keys the configuration-platform lines, so every
        occurrence is rewritten to keep the solution consistent.
        """
        old = entry.project_id
        new = project_id.upper()
        if old.upper() == new:
            return
        self.text = re.sub(re.escape(old), new, self.text, flags=re.IGNORECASE)


def patch_solution_text(
    text: str,
    project_name: str,
    type_id: str,
    project_id: str | None = None,
) -> tuple[str, int]:
    """Retype the entry named *project_name* in solution *text*.

    When several entries share the name, only the last one (the entry
    ``dotnet sln add`` appends) is patched.

    Returns:
        ``(new_text, matches)`` where *matches* is how many entries carried
        the name.  With zero matches the text is returned unchanged.
    """
    solution = SolutionFile(text)
    matches = solution.find(project_name)
    if not matches:
        return text, 0

    target = matches[-1]
    if project_id:
        # Retype first: spans are only valid until the first edit.
        solution.retype(target, type_id)
        refreshed = solution.find(project_name)[-1]
        solution.reconcile_project_id(refreshed, project_id)
    else:
        solution.retype(target, type_id)
    return solution.text, len(matches)


# ---------------------------------------------------------------------------
# Registrar
# ---------------------------------------------------------------------------


@dataclass
class RegistrationResult:
    """What happened while registering a project in a solution."""

    solution_path: Path
    project_name: str
    added: bool = False
    patched: bool = False
    matches: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.added and self.patched and not self.errors


class SolutionRegistrar:
    """Adds a project to a solution and stamps the framework type GUID on it.

    Failures are reported on the returned ``RegistrationResult`` and printed;
    they are never raised, so an unpatched solution is a degraded but valid
    outcome.
    """

    def __init__(
        self,
        cli: DotnetCli,
        settle_timeout: float = 5.0,
        poll_interval: float = 0.25,
    ) -> None:
        self.cli = cli
        self.settle_timeout = settle_timeout
        self.poll_interval = poll_interval

    async def wait_for_entry(self, solution_path: str | Path, project_name: str) -> str | None:
        """Poll the solution until it declares *project_name*.

        Returns:
            The solution text once the entry is present, or ``None`` when the
            settle timeout elapses first.

        Raises:
            OSError, UnicodeDecodeError: If the last read before the deadline
                failed.
        """
        deadline = time.monotonic() + self.settle_timeout
        last_error: OSError | UnicodeDecodeError | None = None

        while True:
            try:
                text = await read_text(solution_path)
            except (OSError, UnicodeDecodeError) as exc:
                # Unreadable or not yet fully written; keep polling.
                last_error = exc
            else:
                last_error = None
                if SolutionFile(text).find(project_name):
                    return text

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            await asyncio.sleep(min(self.poll_interval, remaining))

        if last_error is not None:
            raise last_error
        return None

    async def register_project(
        self,
        solution_path: str | Path,
        project_file_path: str | Path,
        project_name: str,
        framework_id: str,
        project_id: str | None = None,
    ) -> RegistrationResult:
        """Add *project_file_path* to the solution and patch its type GUID.

        Args:
            solution_path: The ``.sln`` file to modify.
            project_file_path: The ``.nfproj`` to add.
            project_name: Name the solution entry is declared under.
            framework_id: Project type GUID to stamp on the entry.
            project_id: Optional project GUID to reconcile the entry to.
        """
        solution = Path(solution_path)
        result = RegistrationResult(solution_path=solution, project_name=project_name)

        try:
            await self.cli.add_project(solution, project_file_path)
        except DotnetCliError as exc:
            print_error(f"Could not add {project_name} to {solution.name}: {exc}")
            result.errors.append(str(exc))
            return result
        result.added = True

        try:
            text = await self.wait_for_entry(solution, project_name)
        except (OSError, UnicodeDecodeError) as exc:
            print_error(f"Could not read {solution}: {exc}")
            result.errors.append(str(exc))
            return result

        if text is None:
            print_warning(
                f"No entry for '{project_name}' in {solution.name} after "
                f"{self.settle_timeout}s; project type left unchanged."
            )
            return result

        patched, matches = patch_solution_text(text, project_name, framework_id, project_id)
        result.matches = matches
        if matches > 1:
            print_warning(
                f"{matches} entries named '{project_name}' in {solution.name}; "
                "patching the last one."
            )

        if patched != text:
            try:
                await write_text(solution, patched)
            except OSError as exc:
                print_error(f"Could not write {solution}: {exc}")
                result.errors.append(str(exc))
                return result

        result.patched = True
        print_step(f"{project_name} registered in {solution.name} as {{{framework_id}}}")
        return result
