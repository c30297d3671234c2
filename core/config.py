"""Runtime settings for depbump.

Settings are layered: model defaults, then ``DEPBUMP_*`` environment
variables, then explicit overrides (CLI options).
"""

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .detect import find_manifest
from .models import ManifestHandle

ENV_PREFIX = "DEPBUMP_"
DEFAULT_PACKAGE_ID = "CounterStrikeSharp.API"
DEFAULT_RELEASES_URL = "https://api.github.com/repos/roflmuffin/CounterStrikeSharp/releases"
NUGET_INDEX_TEMPLATE = "https://api.nuget.org/v3-flatcontainer/{package}/index.json"


class UpdaterSettings(BaseModel):
    """Everything a run needs to know besides the operator's flags."""

    project_dir: Path = Field(default_factory=Path.cwd)
    manifest_path: Path | None = Field(
        default=None,
        description="Manifest to update; discovered in project_dir when unset",
    )
    package_id: str = DEFAULT_PACKAGE_ID
    releases_url: str = DEFAULT_RELEASES_URL
    index_url: str | None = Field(
        default=None,
        description="Package index URL; derived from package_id when unset",
    )
    github_token: str | None = None
    http_timeout: float = 30.0
    include_prereleases: bool = False
    dotnet: str = "dotnet"
    build_configuration: str = "Release"
    command_timeout: float = 600.0
    run_build: bool = True
    notes_lines: int = 15

    @field_validator("http_timeout", "command_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Timeout must be positive, got {v}")
        return v

    @field_validator("package_id")
    @classmethod
    def validate_package_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Package id must not be empty")
        return v

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX, **overrides: Any) -> "UpdaterSettings":
        """Build settings from environment variables plus explicit overrides.

        Overrides whose value is None are ignored so unset CLI options fall
        through to the environment and then to the defaults.
        """
        values: dict[str, Any] = {}
        for key, value in os.environ.items():
            if not key.startswith(prefix):
                continue
            name = key[len(prefix):].lower()
            if name in cls.model_fields:
                values[name] = value

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @property
    def package_index_url(self) -> str:
        return self.index_url or NUGET_INDEX_TEMPLATE.format(package=self.package_id.lower())

    def resolve_manifest(self) -> Path | None:
        """Return the configured manifest, or the only one in project_dir."""
        if self.manifest_path is not None:
            return self.manifest_path
        return find_manifest(self.project_dir)

    def manifest_handle(self) -> ManifestHandle | None:
        path = self.resolve_manifest()
        if path is None:
            return None
        return ManifestHandle(path=path, package_id=self.package_id)
