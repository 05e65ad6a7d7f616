"""Template materialization for nanoFramework project files.

Templates use the fixed Visual Studio placeholder tokens (``$safeprojectname$``,
``$guid1$`` ...).  Substitution is a plain global replace of each known
token; there is no expression language and unknown ``$...$`` markers are
left untouched.
"""

from __future__ import annotations

from pathlib import Path

from nfscaffold.utils import read_text, write_text

# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

PROJECT_NAME_TOKEN = "$safeprojectname$"
GUID_TOKEN = "$guid1$"
ORGANIZATION_TOKEN = "$registeredorganization$"
YEAR_TOKEN = "$year$"
VERSION_TOKEN = "$version$"


def build_token_map(project_name: str, identifier: str) -> dict[str, str]:
    """Return the substitution map used for every file of one project.

    Organization and year are blanked out, matching what the Visual Studio
    wizard produces when neither is configured.
    """
    return {
        PROJECT_NAME_TOKEN: project_name,
        GUID_TOKEN: identifier,
        ORGANIZATION_TOKEN: "",
        YEAR_TOKEN: "",
    }


def substitute(text: str, substitutions: dict[str, str]) -> str:
    """Replace every occurrence of each token in *substitutions*."""
    for token, value in substitutions.items():
        text = text.replace(token, value)
    return text


# ---------------------------------------------------------------------------
# Materializer
# ---------------------------------------------------------------------------


class MaterializeError(Exception):
    """Raised when a template cannot be read or its destination written."""

    def __init__(self, message: str, template_path: Path, destination: Path) -> None:
        self.template_path = template_path
        self.destination = destination
        super().__init__(message)


async def materialize(
    template_path: str | Path,
    destination: str | Path,
    substitutions: dict[str, str],
) -> Path:
    """Render *template_path* with *substitutions* and write it to *destination*.

    Missing parent directories are created and an existing destination is
    overwritten.

    Returns:
        The destination path.

    Raises:
        MaterializeError: If the template cannot be read or the destination
            cannot be written, or the template is not valid UTF-8.  The
            original ``OSError`` or ``UnicodeDecodeError`` is chained.
    """
    source = Path(template_path)
    target = Path(destination)

    try:
        content = await read_text(source)
    except (OSError, UnicodeDecodeError) as exc:
        raise MaterializeError(
            f"Cannot read template {source}: {exc}", source, target
        ) from exc

    try:
        return await write_text(target, substitute(content, substitutions))
    except OSError as exc:
        raise MaterializeError(
            f"Cannot write {target}: {exc}", source, target
        ) from exc
