"""nfscaffold configuration.

Centralised, typed configuration for project creation.  All settings use
Pydantic v2 models so they are validated at construction time and can be
serialised to/from JSON or read from environment variables.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

# Project type GUID Visual Studio uses to recognise nanoFramework projects.
NANOFRAMEWORK_PROJECT_TYPE_ID = "11A8DD76-328B-46DF-9F39-F559912D0360"

CORE_LIBRARY_ID = "nanoFramework.CoreLibrary"


class FailurePolicy(str, Enum):
    """What the pipeline does after a step fails."""

    ABORT = "abort"
    CONTINUE = "continue"


class CliConfig(BaseModel):
    """Settings for the external ``dotnet`` command-line tool."""

    dotnet_binary: str = Field(default="dotnet")
    timeout: int = Field(default=120, ge=1, description="Per-command timeout in seconds")


class RegistrationConfig(BaseModel):
    """Tuning knobs for waiting on the solution file after ``dotnet sln add``.

    ``settle_timeout`` bounds how long the registrar polls for the new entry
    once the CLI has exited.  Zero means check exactly once.
    """

    settle_timeout: float = Field(default=5.0, ge=0)
    poll_interval: float = Field(default=0.25, gt=0)


class Config(BaseModel):
    """Global nfscaffold configuration.

    Instances are normally created once by the CLI entry point and handed to
    the ``ProjectOrchestrator``.
    """

    tool_path: Path = Field(default=Path("."))
    framework_type_id: str = Field(default=NANOFRAMEWORK_PROJECT_TYPE_ID)
    core_library_id: str = Field(default=CORE_LIBRARY_ID)
    failure_policy: FailurePolicy = Field(default=FailurePolicy.ABORT)
    cli: CliConfig = Field(default_factory=CliConfig)
    registration: RegistrationConfig = Field(default_factory=RegistrationConfig)

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Returns:
            The path where the file was written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            NF_TOOL_PATH, NF_FRAMEWORK_TYPE_ID, NF_CORE_LIBRARY_ID,
            NF_FAILURE_POLICY, NF_DOTNET_BINARY, NF_CLI_TIMEOUT,
            NF_SETTLE_TIMEOUT, NF_POLL_INTERVAL.
        """
        cli_kwargs: dict[str, Any] = {}
        if os.environ.get("NF_DOTNET_BINARY"):
            cli_kwargs["dotnet_binary"] = os.environ["NF_DOTNET_BINARY"]
        if os.environ.get("NF_CLI_TIMEOUT"):
            cli_kwargs["timeout"] = int(os.environ["NF_CLI_TIMEOUT"])

        registration_kwargs: dict[str, Any] = {}
        if os.environ.get("NF_SETTLE_TIMEOUT"):
            registration_kwargs["settle_timeout"] = float(os.environ["NF_SETTLE_TIMEOUT"])
        if os.environ.get("NF_POLL_INTERVAL"):
            registration_kwargs["poll_interval"] = float(os.environ["NF_POLL_INTERVAL"])

        return cls(
            tool_path=Path(os.environ.get("NF_TOOL_PATH", ".")),
            framework_type_id=os.environ.get(
                "NF_FRAMEWORK_TYPE_ID", NANOFRAMEWORK_PROJECT_TYPE_ID
            ),
            core_library_id=os.environ.get("NF_CORE_LIBRARY_ID", CORE_LIBRARY_ID),
            failure_policy=FailurePolicy(
                os.environ.get("NF_FAILURE_POLICY", FailurePolicy.ABORT.value)
            ),
            cli=CliConfig(**cli_kwargs),
            registration=RegistrationConfig(**registration_kwargs),
        )
