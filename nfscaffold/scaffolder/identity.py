"""Project identifier generation."""

from __future__ import annotations

import uuid


def new_identifier() -> str:
    """Return a fresh random 128-bit identifier in canonical GUID form.

    Uppercase, matching how ``dotnet`` and Visual Studio write GUIDs into
    ``.sln`` files, so the manifest and solution carry the same bytes.
    """
    return str(uuid.uuid4()).upper()
