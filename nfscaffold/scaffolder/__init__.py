"""nfscaffold scaffolder -- turns nanoFramework templates into project files.

Key pieces:
    TemplateSet        - Template paths for a project type
    ProjectLayout      - Destination paths inside the solution directory
    materialize        - Token substitution from a template to a file
    new_identifier     - Fresh project GUID
    ReferenceInjector  - Core library reference and packages.config

Quick usage::

    from nfscaffold.scaffolder import TemplateSet, materialize, build_token_map

    templates = TemplateSet.resolve(tool_path, "Class Library")
    await materialize(templates.manifest, dest, build_token_map("MyLib", guid))
"""

from .identity import new_identifier
from .references import (
    CoreLibraryVersionNotFoundError,
    ReferenceInjector,
    extract_version,
    insert_reference,
    render_reference,
)
from .template_set import ProjectLayout, ProjectType, TemplateSet
from .templates import MaterializeError, build_token_map, materialize, substitute

__all__ = [
    # Templates
    "ProjectType",
    "TemplateSet",
    "ProjectLayout",
    "MaterializeError",
    "build_token_map",
    "materialize",
    "substitute",
    # Identity
    "new_identifier",
    # Core library reference
    "ReferenceInjector",
    "CoreLibraryVersionNotFoundError",
    "extract_version",
    "insert_reference",
    "render_reference",
]
