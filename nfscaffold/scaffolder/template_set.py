"""Project types and the template files each one is built from."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel

MANIFEST_EXTENSION = ".nfproj"

BLANK_APPLICATION_DIR = "CS.BlankApplication-vs2022"
VERSION_DESCRIPTOR_NAME = f"{BLANK_APPLICATION_DIR}.vstemplate"
PACKAGES_CONFIG_NAME = "packages.config"
ASSEMBLY_INFO_NAME = "AssemblyInfo.cs"


class ProjectType(str, Enum):
    """Supported nanoFramework project templates."""

    BLANK_APPLICATION = "Blank Application"
    CLASS_LIBRARY = "Class Library"
    UNIT_TEST = "Unit Test"

    @classmethod
    def parse(cls, value: str | ProjectType | None) -> ProjectType:
        """Map a user-supplied type name to a ``ProjectType``.

        Unknown or empty names fall back to ``BLANK_APPLICATION``.
        """
        if isinstance(value, ProjectType):
            return value
        for member in cls:
            if member.value == value:
                return member
        return cls.BLANK_APPLICATION


# directory, manifest template, main source template
_LAYOUT: dict[ProjectType, tuple[str, str, str]] = {
    ProjectType.BLANK_APPLICATION: (BLANK_APPLICATION_DIR, "NFApp.nfproj", "Program.cs"),
    ProjectType.CLASS_LIBRARY: ("CS.ClassLibrary-vs2022", "NFClassLibrary.nfproj", "Class1.cs"),
    ProjectType.UNIT_TEST: ("CS.TestApplication-vs2022", "NFUnitTest.nfproj", "UnitTest1.cs"),
}


class TemplateSet(BaseModel):
    """Resolved template paths for one project type.

    Read-only once built; the orchestrator never mutates it.
    """

    model_config = {"frozen": True}

    project_type: ProjectType
    manifest: Path
    main_file: Path
    assembly_info: Path
    version_descriptor: Path
    packages_config: Path

    @property
    def main_file_name(self) -> str:
        return self.main_file.name

    @classmethod
    def resolve(cls, tool_path: str | Path, project_type: str | ProjectType | None) -> TemplateSet:
        """Build the template set for *project_type* under *tool_path*.

        No file is checked for existence here; missing templates surface as
        I/O failures in the step that reads them.
        """
        kind = ProjectType.parse(project_type)
        root = Path(tool_path)
        directory, manifest, main_file = _LAYOUT[kind]
        template_dir = root / directory
        return cls(
            project_type=kind,
            manifest=template_dir / manifest,
            main_file=template_dir / main_file,
            assembly_info=template_dir / ASSEMBLY_INFO_NAME,
            version_descriptor=root / BLANK_APPLICATION_DIR / VERSION_DESCRIPTOR_NAME,
            packages_config=root / PACKAGES_CONFIG_NAME,
        )


class ProjectLayout(BaseModel):
    """Destination paths for a project created next to a solution file."""

    model_config = {"frozen": True}

    project_dir: Path
    manifest: Path
    main_file: Path
    assembly_info: Path
    packages_config: Path

    @classmethod
    def for_project(cls, solution_dir: str | Path, project_name: str, main_file_name: str) -> ProjectLayout:
        project_dir = Path(solution_dir) / project_name
        return cls(
            project_dir=project_dir,
            manifest=project_dir / f"{project_name}{MANIFEST_EXTENSION}",
            main_file=project_dir / main_file_name,
            assembly_info=project_dir / "Properties" / ASSEMBLY_INFO_NAME,
            packages_config=project_dir / PACKAGES_CONFIG_NAME,
        )
