"""Version parsing and comparison."""

import re

from packaging.version import InvalidVersion, Version

from .models import Comparison

_TAG_PREFIX = re.compile(r"^[^\d]+")


def normalize_version(text: str | None) -> str | None:
    """Strip whitespace and any leading non-numeric tag prefix ("v", "release-")."""
    if text is None:
        return None
    cleaned = _TAG_PREFIX.sub("", text.strip())
    return cleaned or None


def parse_version(text: str | None) -> Version | None:
    """Parse a version string, returning None when it is absent or invalid."""
    cleaned = normalize_version(text)
    if not cleaned:
        return None
    try:
        return Version(cleaned)
    except InvalidVersion:
        return None


def compare_versions(version: str | None, baseline: str | None) -> Comparison:
    """Compare ``version`` against ``baseline``.

    Components are compared left to right and missing trailing components
    count as zero, so "1.2" and "1.2.0" are the same version.

    Args:
        version: Version being judged
        baseline: Version it is judged against

    Returns:
        NEWER/OLDER/SAME describing ``version`` relative to ``baseline``,
        or UNKNOWN when either side is missing or unparseable
    """
    left = parse_version(version)
    right = parse_version(baseline)
    if left is None or right is None:
        return Comparison.UNKNOWN

    if left > right:
        return Comparison.NEWER
    if left < right:
        return Comparison.OLDER
    return Comparison.SAME
