"""Manifest discovery inside a project directory."""

from pathlib import Path

MANIFEST_GLOBS = ("*.csproj", "*.fsproj", "*.vbproj")


def find_manifests(project_dir: Path) -> list[Path]:
    """List project manifests directly inside ``project_dir``.

    Args:
        project_dir: Directory to scan (not recursive)

    Returns:
        Sorted manifest paths, empty if the directory does not exist
    """
    if not project_dir.is_dir():
        return []

    found: list[Path] = []
    for pattern in MANIFEST_GLOBS:
        found.extend(p for p in project_dir.glob(pattern) if p.is_file())
    return sorted(found)


def find_manifest(project_dir: Path) -> Path | None:
    """Return the single manifest in ``project_dir``, or None if zero or several."""
    candidates = find_manifests(project_dir)
    if len(candidates) == 1:
        return candidates[0]
    return None
