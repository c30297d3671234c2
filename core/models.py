"""Core data models for depbump."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

BACKUP_SUFFIX = ".backup"


class Comparison(str, Enum):
    """How one version relates to another."""

    NEWER = "newer"
    OLDER = "older"
    SAME = "same"
    UNKNOWN = "unknown"


class VersionSource(str, Enum):
    """Priority slot of a remote version source."""

    PRIMARY = "primary"
    FALLBACK = "fallback"


class PlanMode(str, Enum):
    """How the operator asked depbump to run."""

    CHECK_ONLY = "check-only"
    INTERACTIVE = "interactive"
    FORCE_APPLY = "force"
    EXPLICIT_VERSION = "explicit-version"


@dataclass(frozen=True)
class ManifestHandle:
    """The manifest file and the dependency tracked inside it."""

    path: Path
    package_id: str

    @property
    def backup_path(self) -> Path:
        return self.path.with_name(self.path.name + BACKUP_SUFFIX)


@dataclass(frozen=True)
class RemoteVersionInfo:
    """Latest version as reported by one remote source."""

    version: str
    source: VersionSource
    source_name: str
    notes: str = ""
    published_at: str = "unknown"
    info_url: str = ""


@dataclass
class UpdatePlan:
    """Decision taken by the planner for a single run."""

    current_version: str | None
    target_version: str | None
    comparison: Comparison
    mode: PlanMode
    proceed: bool
    reason: str
    warnings: list[str] = field(default_factory=list)


@dataclass
class UpdateOutcome:
    """Result of a successful manifest update."""

    manifest: Path
    previous_version: str | None
    new_version: str
    method: str  # package-manager, text-substitution
    warnings: list[str] = field(default_factory=list)
