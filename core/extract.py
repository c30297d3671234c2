"""Locate and rewrite the pinned version of a dependency in a manifest."""

import logging
import re
from pathlib import Path

from .models import ManifestHandle

logger = logging.getLogger(__name__)

# Most specific first; the permissive ones can match unrelated text.
VERSION_PATTERNS = [
    r'<PackageReference\s+Include="{id}"\s+Version="(?P<version>[^"]+)"',
    r'<PackageReference\s+Include="{id}"[^>]*?\sVersion="(?P<version>[^"]+)"',
    r'<PackageReference\s+Include="{id}"[^>]*>\s*<Version>\s*(?P<version>[^<\s]+)\s*</Version>',
    r'Include="{id}"[^>]*?\bVersion="(?P<version>[^"]+)"',
    r'(?<![\w.-]){id}(?![\w.-])[^<>]*?\bVersion="(?P<version>[^"]+)"',
]


class VersionPatternSet:
    """Ordered version matchers for one package id, first match wins."""

    def __init__(self, package_id: str):
        self.package_id = package_id
        escaped = re.escape(package_id)
        self.patterns = [
            re.compile(template.replace("{id}", escaped), re.IGNORECASE | re.DOTALL)
            for template in VERSION_PATTERNS
        ]

    def search(self, content: str) -> re.Match | None:
        """Return the first match of the most specific pattern that matches."""
        for index, pattern in enumerate(self.patterns):
            match = pattern.search(content)
            if match:
                logger.debug("Matched %s with pattern #%d", self.package_id, index + 1)
                return match
        return None

    def find_version(self, content: str) -> str | None:
        match = self.search(content)
        return match.group("version").strip() if match else None

    def replace_version(self, content: str, new_version: str) -> str | None:
        """Rewrite only the captured version group; None if nothing matched."""
        match = self.search(content)
        if not match:
            return None
        start, end = match.span("version")
        return content[:start] + new_version + content[end:]


def read_manifest(path: Path) -> str | None:
    """Read manifest text preserving line endings, or None if unreadable."""
    try:
        with open(path, encoding="utf-8", newline="") as handle:
            return handle.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Cannot read manifest %s: %s", path, e)
        return None


def write_manifest(path: Path, content: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as handle:
        handle.write(content)


def extract_version(handle: ManifestHandle) -> str | None:
    """Get the version currently pinned for the handle's package.

    Args:
        handle: Manifest path and package id

    Returns:
        The pinned version, or None when the file or the entry is missing
    """
    content = read_manifest(handle.path)
    if content is None:
        return None

    version = VersionPatternSet(handle.package_id).find_version(content)
    if version is None:
        logger.info("No version found for %s in %s", handle.package_id, handle.path)
    return version
