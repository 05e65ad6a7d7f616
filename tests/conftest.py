"""Shared pytest fixtures for the nfscaffold test suite.

Provides reusable fixtures for:
- A fake template tool directory with every project type
- A sample solution file (BOM + CRLF, as Visual Studio writes it)
- A fake ``dotnet`` CLI that appends entries the way ``dotnet sln add`` does
- Mock subprocess helpers
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from nfscaffold.solution import CommandResult, DotnetCli

CORE_LIBRARY_VERSION = "1.15.5"
GENERIC_CSPROJ_TYPE = "9A19103F-16F7-4668-BE54-9A1E7A4F7556"
DOTNET_ASSIGNED_ID = "DEADBEEF-0000-4000-8000-000000000001"


def crlf(text: str) -> str:
    return text.replace("\n", "\r\n")


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

NFPROJ_TEMPLATE = crlf(
    """<?xml version="1.0" encoding="utf-8"?>
<Project ToolsVersion="15.0" DefaultTargets="Build" xmlns="http://schemas.microsoft.com/developer/msbuild/2003">
  <PropertyGroup>
    <ProjectGuid>{$guid1$}</ProjectGuid>
    <RootNamespace>$safeprojectname$</RootNamespace>
    <AssemblyName>$safeprojectname$</AssemblyName>
  </PropertyGroup>
  <ItemGroup>
    <Compile Include="{main}" />
    <Compile Include="Properties\\AssemblyInfo.cs" />
  </ItemGroup>
</Project>
"""
)

MAIN_TEMPLATE = crlf(
    """namespace $safeprojectname$
{
    public class {cls}
    {
    }
}
"""
)

ASSEMBLY_INFO_TEMPLATE = crlf(
    """using System.Reflection;

[assembly: AssemblyTitle("$safeprojectname$")]
[assembly: AssemblyCompany("$registeredorganization$")]
[assembly: AssemblyCopyright("Copyright (c) $year$")]
"""
)

VSTEMPLATE = crlf(
    f"""<VSTemplate Version="3.0.0" Type="Project">
  <WizardData>
    <packages repository="extension">
      <package id="nanoFramework.CoreLibrary" version="{CORE_LIBRARY_VERSION}" targetFramework="netnano1.0" />
    </packages>
  </WizardData>
</VSTemplate>
"""
)

PACKAGES_CONFIG_TEMPLATE = crlf(
    """<?xml version="1.0" encoding="utf-8"?>
<packages>
  <package id="nanoFramework.CoreLibrary" version="$version$" targetFramework="netnano1.0" />
</packages>
"""
)

_TEMPLATE_DIRS = {
    "CS.BlankApplication-vs2022": ("NFApp.nfproj", "Program.cs", "Program"),
    "CS.ClassLibrary-vs2022": ("NFClassLibrary.nfproj", "Class1.cs", "Class1"),
    "CS.TestApplication-vs2022": ("NFUnitTest.nfproj", "UnitTest1.cs", "UnitTest1"),
}


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(text.encode("utf-8"))


@pytest.fixture
def tool_dir(tmp_path: Path) -> Path:
    """Template directory laid out like the nanoFramework extension ships it."""
    root = tmp_path / "tool"
    for directory, (manifest, main_file, cls) in _TEMPLATE_DIRS.items():
        _write(root / directory / manifest, NFPROJ_TEMPLATE.replace("{main}", main_file))
        _write(root / directory / main_file, MAIN_TEMPLATE.replace("{cls}", cls))
        _write(root / directory / "AssemblyInfo.cs", ASSEMBLY_INFO_TEMPLATE)
    _write(root / "CS.BlankApplication-vs2022" / "CS.BlankApplication-vs2022.vstemplate", VSTEMPLATE)
    _write(root / "packages.config", PACKAGES_CONFIG_TEMPLATE)
    return root


# ---------------------------------------------------------------------------
# Solution files
# ---------------------------------------------------------------------------

SOLUTION_TEXT = "\ufeff" + crlf(
    """
Microsoft Visual Studio Solution File, Format Version 12.00
# Visual Studio Version 17
VisualStudioVersion = 17.0.31903.59
Project("{FAE04EC0-301F-11D3-BF4B-00C04F79EFBC}") = "Existing", "Existing\\Existing.csproj", "{11111111-1111-1111-1111-111111111111}"
EndProject
Global
	GlobalSection(SolutionConfigurationPlatforms) = preSolution
		Debug|Any CPU = Debug|Any CPU
	EndGlobalSection
	GlobalSection(ProjectConfigurationPlatforms) = postSolution
		{11111111-1111-1111-1111-111111111111}.Debug|Any CPU.ActiveCfg = Debug|Any CPU
	EndGlobalSection
EndGlobal
"""
)


def _solution_entry(name: str, type_id: str = GENERIC_CSPROJ_TYPE, project_id: str = DOTNET_ASSIGNED_ID) -> str:
    return (
        f'Project("{{{type_id}}}") = "{name}", "{name}\\{name}.nfproj", "{{{project_id}}}"\r\n'
        "EndProject\r\n"
    )


def _append_entry(solution_text: str, entry: str) -> str:
    """Insert *entry* before ``Global`` the way ``dotnet sln add`` does."""
    return solution_text.replace("Global\r\n", entry + "Global\r\n", 1)


@pytest.fixture
def solution_file(tmp_path: Path) -> Path:
    """An existing solution with one unrelated C# project."""
    path = tmp_path / "solution" / "MySolution.sln"
    _write(path, SOLUTION_TEXT)
    return path


def _read_raw(path: Path) -> str:
    return path.read_bytes().decode("utf-8")


# ---------------------------------------------------------------------------
# Fake dotnet CLI
# ---------------------------------------------------------------------------


class FakeDotnetCli(DotnetCli):
    """Stands in for ``dotnet``; ``sln add`` appends a generic entry.

    Set ``add_exit_code`` to simulate a failing command, or
    ``append_on_add=False`` to simulate a tool that exits without writing.
    """

    def __init__(self, add_exit_code: int = 0, append_on_add: bool = True) -> None:
        super().__init__(dotnet_binary="dotnet", timeout_seconds=5)
        self.add_exit_code = add_exit_code
        self.append_on_add = append_on_add
        self.calls: list[tuple[str, ...]] = []

    async def run(self, *args: str, cwd: str | Path | None = None) -> CommandResult:
        self.calls.append(args)
        if args[:1] == ("sln",) and self.add_exit_code == 0 and self.append_on_add:
            solution = Path(args[1])
            name = Path(args[3]).stem
            solution.write_bytes(
                _append_entry(_read_raw(solution), _solution_entry(name)).encode("utf-8")
            )
        if args[:2] == ("new", "sln"):
            directory = Path(args[3])
            directory.mkdir(parents=True, exist_ok=True)
            (directory / f"{directory.name}.sln").write_bytes(SOLUTION_TEXT.encode("utf-8"))
        exit_code = self.add_exit_code if args[:1] == ("sln",) else 0
        return CommandResult(
            command=" ".join(("dotnet",) + args),
            exit_code=exit_code,
            stderr="" if exit_code == 0 else "error: boom",
        )


@pytest.fixture
def fake_cli() -> FakeDotnetCli:
    return FakeDotnetCli()


# ---------------------------------------------------------------------------
# Mock subprocess
# ---------------------------------------------------------------------------


def _make_process(returncode: int = 0, stdout: bytes = b"", stderr: bytes = b"") -> MagicMock:
    """Build a mock ``asyncio.subprocess.Process``."""
    process = MagicMock()
    process.returncode = returncode
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    process.wait = AsyncMock(return_value=returncode)
    process.kill = MagicMock()
    return process


# ---------------------------------------------------------------------------
# Helper fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def core_library_version() -> str:
    """Version pinned by the fake ``.vstemplate``."""
    return CORE_LIBRARY_VERSION


@pytest.fixture
def solution_text() -> str:
    """Pristine content of ``solution_file``."""
    return SOLUTION_TEXT


@pytest.fixture
def generic_type_id() -> str:
    """Type GUID the fake ``dotnet sln add`` files new projects under."""
    return GENERIC_CSPROJ_TYPE


@pytest.fixture
def dotnet_assigned_id() -> str:
    """Project GUID the fake ``dotnet sln add`` assigns."""
    return DOTNET_ASSIGNED_ID


@pytest.fixture
def solution_entry():
    """Build a ``Project(...)``/``EndProject`` block for a solution file."""
    return _solution_entry


@pytest.fixture
def append_entry():
    """Insert an entry block into solution text before ``Global``."""
    return _append_entry


@pytest.fixture
def read_raw():
    """Read a file as UTF-8 without newline translation."""
    return _read_raw


@pytest.fixture
def make_fake_cli():
    """Factory for ``FakeDotnetCli`` with custom failure behaviour."""
    return FakeDotnetCli


@pytest.fixture
def make_process():
    """Factory for mock ``asyncio.subprocess.Process`` objects."""
    return _make_process
