"""Core library reference injection.

A freshly materialized ``.nfproj`` has no reference to ``mscorlib``.  The
version to reference is mined from the Blank Application ``.vstemplate``
(which pins the NuGet package), then a ``<Reference>`` block is spliced in
after every ``<ItemGroup>`` and a matching ``packages.config`` is written next
to the project.
"""

from __future__ import annotations

import re
from pathlib import Path

from jinja2 import Environment, StrictUndefined

from nfscaffold.config import CORE_LIBRARY_ID
from nfscaffold.scaffolder.template_set import PACKAGES_CONFIG_NAME, TemplateSet
from nfscaffold.scaffolder.templates import VERSION_TOKEN, substitute
from nfscaffold.utils import print_step, read_text, write_text

ITEM_GROUP_MARKER = "<ItemGroup>"

_REFERENCE_TEMPLATE = (
    '    <Reference Include="mscorlib">\r\n'
    "      <HintPath>..\\packages\\{{ library_id }}.{{ version }}\\lib\\mscorlib.dll</HintPath>\r\n"
    "    </Reference>\r\n"
    '    <None Include="{{ packages_config }}" />'
)

_env = Environment(autoescape=False, undefined=StrictUndefined, keep_trailing_newline=True)


class CoreLibraryVersionNotFoundError(Exception):
    """Raised when the version descriptor does not pin the core library."""

    def __init__(self, descriptor_path: Path, library_id: str = CORE_LIBRARY_ID) -> None:
        self.descriptor_path = descriptor_path
        self.library_id = library_id
        super().__init__(
            f"Unable to find the version of {library_id} in the template file {descriptor_path}"
        )


def extract_version(descriptor_text: str, library_id: str = CORE_LIBRARY_ID) -> str | None:
    """Return the version pinned for *library_id*, or ``None``.

    Matches ``id="<library_id>" version="<value>"`` exactly as the
    ``.vstemplate`` package list writes it.
    """
    pattern = re.compile(r'id="' + re.escape(library_id) + r'" version="([^"]*)"')
    match = pattern.search(descriptor_text)
    return match.group(1) if match else None


def render_reference(version: str, library_id: str = CORE_LIBRARY_ID) -> str:
    """Render the ``<Reference>`` block for the given core library version."""
    return _env.from_string(_REFERENCE_TEMPLATE).render(
        library_id=library_id,
        version=version,
        packages_config=PACKAGES_CONFIG_NAME,
    )


def insert_reference(manifest_text: str, reference: str) -> str:
    """Insert *reference* after every ``<ItemGroup>`` marker.

    Purely textual; everything outside the insertion points is preserved.
    """
    return manifest_text.replace(ITEM_GROUP_MARKER, f"{ITEM_GROUP_MARKER}\r\n{reference}")


class ReferenceInjector:
    """Adds the core library reference and ``packages.config`` to a project."""

    def __init__(self, library_id: str = CORE_LIBRARY_ID) -> None:
        self.library_id = library_id

    async def find_version(self, descriptor_path: str | Path) -> str:
        """Read the version descriptor and return the pinned core library version.

        Raises:
            CoreLibraryVersionNotFoundError: If no matching package entry exists.
            OSError: If the descriptor cannot be read.
        """
        path = Path(descriptor_path)
        version = extract_version(await read_text(path), self.library_id)
        if version is None:
            raise CoreLibraryVersionNotFoundError(path, self.library_id)
        return version

    async def inject(self, manifest_path: str | Path, tool_path: str | Path) -> str:
        """Inject the core library reference into *manifest_path*.

        The version is looked up first, so a descriptor without a version
        leaves the manifest untouched.

        Returns:
            The core library version that was injected.
        """
        templates = TemplateSet.resolve(tool_path, None)
        manifest = Path(manifest_path)

        version = await self.find_version(templates.version_descriptor)
        print_step(f"{self.library_id} version {version}")

        manifest_text = await read_text(manifest)
        reference = render_reference(version, self.library_id)
        await write_text(manifest, insert_reference(manifest_text, reference))

        packages_text = await read_text(templates.packages_config)
        await write_text(
            manifest.parent / PACKAGES_CONFIG_NAME,
            substitute(packages_text, {VERSION_TOKEN: version}),
        )
        return version
