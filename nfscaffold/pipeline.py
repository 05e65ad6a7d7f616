"""nfscaffold project orchestrator.

Creates a nanoFramework project next to an existing solution by running a
fixed, ordered list of steps:

1. manifest       -- materialize the ``.nfproj`` template
2. main_file      -- materialize ``Program.cs`` / ``Class1.cs`` / ``UnitTest1.cs``
3. assembly_info  -- materialize ``Properties/AssemblyInfo.cs``
4. core_reference -- inject the core library reference and ``packages.config``
5. solution       -- ``dotnet sln add`` and patch the project type GUID

Every project type runs the same steps over its own template set.  A failing
step is caught, printed and recorded; whether later steps still run is
decided by the configured ``FailurePolicy``.  Nothing is rolled back.

Concurrent runs against the same solution file are not serialised here;
callers must not overlap them.

Usage::

    python -m nfscaffold.pipeline new-solution ./MySolution
    python -m nfscaffold.pipeline add-project ./MySolution/MySolution.sln MyLib \\
        --type "Class Library" --tool-path ./templates
"""

from __future__ import annotations

import asyncio
import sys
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError, field_validator
from rich.panel import Panel
from rich.table import Table

from nfscaffold.config import Config, FailurePolicy
from nfscaffold.scaffolder import (
    ProjectLayout,
    ProjectType,
    ReferenceInjector,
    TemplateSet,
    build_token_map,
    materialize,
    new_identifier,
)
from nfscaffold.solution import (
    CommandResult,
    DotnetCli,
    RegistrationResult,
    SolutionRegistrar,
)
from nfscaffold.utils import (
    console,
    format_duration,
    print_error,
    print_step,
    print_success,
    print_warning,
)

# ---------------------------------------------------------------------------
# Request / result models
# ---------------------------------------------------------------------------


class ProjectRequest(BaseModel):
    """Immutable input to one project-creation run."""

    model_config = {"frozen": True}

    solution_file_path: Path
    project_name: str
    project_type: ProjectType = ProjectType.BLANK_APPLICATION
    tool_path: Path

    @field_validator("project_type", mode="before")
    @classmethod
    def _parse_project_type(cls, value: Any) -> ProjectType:
        return ProjectType.parse(value)

    @field_validator("project_name")
    @classmethod
    def _validate_project_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("project name must not be empty")
        if any(ch in value for ch in '"/\\'):
            raise ValueError(f"project name contains an invalid character: {value!r}")
        return value

    @property
    def solution_dir(self) -> Path:
        return self.solution_file_path.parent


class StepStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class StepOutcome:
    """Result of a single pipeline step."""

    name: str
    status: StepStatus
    error: str | None = None
    duration_seconds: float = 0.0


@dataclass
class ProjectResult:
    """Aggregated outcome of a project-creation run."""

    request: ProjectRequest
    project_id: str
    layout: ProjectLayout
    outcomes: list[StepOutcome] = field(default_factory=list)
    files: list[Path] = field(default_factory=list)
    core_library_version: str | None = None
    registration: RegistrationResult | None = None

    @property
    def success(self) -> bool:
        return bool(self.outcomes) and all(
            o.status == StepStatus.SUCCEEDED for o in self.outcomes
        )

    @property
    def failed_steps(self) -> list[str]:
        return [o.name for o in self.outcomes if o.status == StepStatus.FAILED]


class RegistrationIncompleteError(Exception):
    """Raised by the solution step when the registrar could not finish."""


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------


@dataclass
class StepContext:
    """Everything a step needs, derived once per request."""

    request: ProjectRequest
    templates: TemplateSet
    layout: ProjectLayout
    tokens: dict[str, str]
    result: ProjectResult


@dataclass
class PipelineStep:
    name: str
    description: str
    run: Callable[[StepContext], Awaitable[None]]


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class ProjectOrchestrator:
    """Sequences project creation for every supported project type.

    Attributes:
        config: Global configuration.
        cli: ``dotnet`` CLI wrapper shared by solution creation and
            registration.
        registrar: Adds projects to solutions and patches their type GUID.
        injector: Adds the core library reference to new manifests.
    """

    def __init__(
        self,
        config: Config,
        cli: DotnetCli | None = None,
        registrar: SolutionRegistrar | None = None,
        injector: ReferenceInjector | None = None,
    ) -> None:
        self.config = config
        self.cli = cli or DotnetCli(
            dotnet_binary=config.cli.dotnet_binary,
            timeout_seconds=config.cli.timeout,
        )
        self.registrar = registrar or SolutionRegistrar(
            self.cli,
            settle_timeout=config.registration.settle_timeout,
            poll_interval=config.registration.poll_interval,
        )
        self.injector = injector or ReferenceInjector(config.core_library_id)
        self.steps = self.build_steps()

    def build_steps(self) -> list[PipelineStep]:
        """Return the ordered steps run for every project type."""
        return [
            PipelineStep("manifest", "Project manifest", self._create_manifest),
            PipelineStep("main_file", "Main source file", self._create_main_file),
            PipelineStep("assembly_info", "AssemblyInfo", self._create_assembly_info),
            PipelineStep("core_reference", "Core library reference", self._inject_core_reference),
            PipelineStep("solution", "Solution registration", self._register_in_solution),
        ]

    # -- Step implementations ----------------------------------------------

    async def _create_manifest(self, ctx: StepContext) -> None:
        path = await materialize(ctx.templates.manifest, ctx.layout.manifest, ctx.tokens)
        ctx.result.files.append(path)

    async def _create_main_file(self, ctx: StepContext) -> None:
        path = await materialize(ctx.templates.main_file, ctx.layout.main_file, ctx.tokens)
        ctx.result.files.append(path)

    async def _create_assembly_info(self, ctx: StepContext) -> None:
        path = await materialize(
            ctx.templates.assembly_info, ctx.layout.assembly_info, ctx.tokens
        )
        ctx.result.files.append(path)

    async def _inject_core_reference(self, ctx: StepContext) -> None:
        version = await self.injector.inject(ctx.layout.manifest, ctx.request.tool_path)
        ctx.result.core_library_version = version
        ctx.result.files.append(ctx.layout.packages_config)

    async def _register_in_solution(self, ctx: StepContext) -> None:
        registration = await self.registrar.register_project(
            ctx.request.solution_file_path,
            ctx.layout.manifest,
            ctx.request.project_name,
            self.config.framework_type_id,
            project_id=ctx.result.project_id,
        )
        ctx.result.registration = registration
        if not registration.success:
            reason = "; ".join(registration.errors) or "solution entry was not patched"
            raise RegistrationIncompleteError(reason)

    # -- Public API --------------------------------------------------------

    async def add_project(self, request: ProjectRequest) -> ProjectResult:
        """Create the project described by *request* and register it.

        Never raises for step failures; inspect ``ProjectResult.success`` and
        ``ProjectResult.outcomes`` instead.
        """
        templates = TemplateSet.resolve(request.tool_path, request.project_type)
        layout = ProjectLayout.for_project(
            request.solution_dir, request.project_name, templates.main_file_name
        )
        project_id = new_identifier()
        result = ProjectResult(request=request, project_id=project_id, layout=layout)
        ctx = StepContext(
            request=request,
            templates=templates,
            layout=layout,
            tokens=build_token_map(request.project_name, project_id),
            result=result,
        )

        console.print(
            Panel(
                f"[cyan]Creating {templates.project_type.value}[/cyan] "
                f"[bold]{request.project_name}[/bold]\n"
                f"  Solution: {request.solution_file_path}\n"
                f"  Templates: {request.tool_path}",
                title="nfscaffold",
                border_style="cyan",
            )
        )

        aborted = False
        for step in self.steps:
            if aborted:
                result.outcomes.append(StepOutcome(step.name, StepStatus.SKIPPED))
                continue

            print_step(f"{step.description}...")
            start = time.monotonic()
            try:
                await step.run(ctx)
            except Exception as exc:
                elapsed = time.monotonic() - start
                print_error(f"{step.description} failed: {exc}")
                result.outcomes.append(
                    StepOutcome(step.name, StepStatus.FAILED, str(exc), elapsed)
                )
                if self.config.failure_policy == FailurePolicy.ABORT:
                    aborted = True
                continue

            result.outcomes.append(
                StepOutcome(step.name, StepStatus.SUCCEEDED, None, time.monotonic() - start)
            )

        if result.success:
            print_success(f"Project {request.project_name} created.")
        else:
            print_warning(
                f"Project {request.project_name} incomplete; failed: "
                f"{', '.join(result.failed_steps)}"
            )
        return result

    async def create_solution(self, directory: str | Path) -> CommandResult:
        """Create a new solution in *directory* with ``dotnet new sln``.

        Raises:
            DotnetCliError: If the CLI cannot run or reports failure.
        """
        result = await self.cli.new_solution(directory)
        print_success(f"Solution created in {directory}")
        return result


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


_STATUS_STYLES = {
    StepStatus.SUCCEEDED: "green",
    StepStatus.FAILED: "red",
    StepStatus.SKIPPED: "dim",
}


def build_outcome_table(result: ProjectResult) -> Table:
    """Render one row per pipeline step, with the run's identifiers in the caption."""
    table = Table(
        title=result.request.project_name,
        show_header=True,
        header_style="bold cyan",
        caption=f"project id {{{result.project_id}}}"
        + (f", core library {result.core_library_version}" if result.core_library_version else ""),
    )
    table.add_column("Step", no_wrap=True)
    table.add_column("Status")
    table.add_column("Time", justify="right")
    table.add_column("Error", style="red")

    for outcome in result.outcomes:
        style = _STATUS_STYLES[outcome.status]
        table.add_row(
            outcome.name,
            f"[{style}]{outcome.status.value}[/{style}]",
            format_duration(outcome.duration_seconds) if outcome.status != StepStatus.SKIPPED else "",
            outcome.error or "",
        )
    return table


def main() -> None:
    """CLI entry point for ``python -m nfscaffold.pipeline``."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Create nanoFramework solutions and projects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  nfscaffold new-solution ./MySolution\n"
            '  nfscaffold add-project ./MySolution/MySolution.sln MyLib --type "Class Library"\n'
        ),
    )
    sub = parser.add_subparsers(dest="command", required=True)

    new_sln = sub.add_parser("new-solution", help="Create an empty solution")
    new_sln.add_argument("directory", help="Directory to create the solution in")

    add = sub.add_parser("add-project", help="Add a new project to a solution")
    add.add_argument("solution", help="Path to the .sln file")
    add.add_argument("name", help="Project name")
    add.add_argument(
        "--type",
        default=ProjectType.BLANK_APPLICATION.value,
        choices=[t.value for t in ProjectType],
        help="Project type (default: Blank Application)",
    )
    add.add_argument(
        "--tool-path",
        default=None,
        help="Directory holding the project templates (default: $NF_TOOL_PATH)",
    )
    add.add_argument(
        "--policy",
        default=None,
        choices=[p.value for p in FailurePolicy],
        help="What to do after a failed step (default: abort)",
    )
    add.add_argument(
        "--settle-timeout",
        type=float,
        default=None,
        help="Seconds to wait for the solution entry after dotnet exits",
    )

    args = parser.parse_args()
    config = Config.from_env()

    if args.command == "new-solution":
        orchestrator = ProjectOrchestrator(config)
        try:
            asyncio.run(orchestrator.create_solution(args.directory))
        except Exception as exc:
            print_error(f"Error: {exc}")
            sys.exit(1)
        return

    if args.tool_path:
        config.tool_path = Path(args.tool_path)
    if args.policy:
        config.failure_policy = FailurePolicy(args.policy)
    if args.settle_timeout is not None:
        config.registration.settle_timeout = args.settle_timeout

    solution = Path(args.solution)
    if not solution.exists():
        console.print(f"[bold red]Error:[/bold red] Solution file not found: {solution}")
        sys.exit(1)

    try:
        request = ProjectRequest(
            solution_file_path=solution,
            project_name=args.name,
            project_type=args.type,
            tool_path=config.tool_path,
        )
    except ValidationError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(1)
    orchestrator = ProjectOrchestrator(config)
    result = asyncio.run(orchestrator.add_project(request))
    console.print(build_outcome_table(result))

    if not result.success:
        sys.exit(1)


if __name__ == "__main__":
    main()
