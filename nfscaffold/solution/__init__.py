"""nfscaffold solution module.

Drives the ``dotnet`` CLI and patches ``.sln`` entries so new projects are
recognised as nanoFramework projects.

Key classes:
    DotnetCli          - ``dotnet`` process spawning
    SolutionFile       - Structured view over ``Project(...)`` declarations
    SolutionRegistrar  - Add-then-patch registration of a project
"""

from .dotnet_cli import CommandResult, DotnetCli, DotnetCliError
from .registrar import (
    RegistrationResult,
    SolutionEntry,
    SolutionFile,
    SolutionRegistrar,
    patch_solution_text,
)

__all__ = [
    # CLI
    "DotnetCli",
    "DotnetCliError",
    "CommandResult",
    # Solution file
    "SolutionFile",
    "SolutionEntry",
    "patch_solution_text",
    # Registrar
    "SolutionRegistrar",
    "RegistrationResult",
]
