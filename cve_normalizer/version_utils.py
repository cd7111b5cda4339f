"""
Shared version helpers.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence

from .errors import UnsupportedVersion, VersionLookupError


_VERSION_COMPONENT = re.compile(r"(\d+|(?:rc|alpha|beta|preview)\d*)", re.IGNORECASE)
_PRERELEASE_COMPONENT = re.compile(r"(?:rc|alpha|beta|preview)\d*", re.IGNORECASE)


def version_index(valid_versions: Optional[Sequence[str]], version: str) -> int:
    """Return the position of a version in the valid list, or -1."""
    for i, current in enumerate(valid_versions or ()):
        if current == version:
            return i
    return -1


def has_version(valid_versions: Optional[Sequence[str]], version: str) -> bool:
    """Check a version against the valid list; an empty list accepts anything."""
    if not valid_versions:
        return True
    return version_index(valid_versions, version) != -1


def next_version(valid_versions: Optional[Sequence[str]], version: str) -> str:
    """Return the version that follows ``version`` in the valid list.

    Raises:
        VersionLookupError: The version is unknown or is the last one
    """
    idx = version_index(valid_versions, version)
    if idx == -1:
        raise VersionLookupError(f"Warning: {version} is not a valid version")

    idx += 1
    if idx >= len(valid_versions):
        raise VersionLookupError(
            f"Warning: {version} does not have a version that comes after."
        )

    return valid_versions[idx]


def clean_version(version: str) -> str:
    # Matcher bounds sometimes carry a trailing ":".
    return version.rstrip(":")


def normalize_version(version: str) -> str:
    """Normalize a version string for comparison.

    Numeric runs and prerelease markers (rc, alpha, beta, preview) are
    extracted in order and joined with "-", so ``v2.3.1-rc1`` becomes
    ``2-3-1-rc1``. The result is meant for sorting and matching, not display.

    A version made only of a prerelease marker, such as ``rc1``, has no
    release number to attach it to and raises rather than normalizing to
    an empty string.

    Raises:
        UnsupportedVersion: No numeric or prerelease component was found
    """
    components = _VERSION_COMPONENT.findall(version)
    if not components:
        raise UnsupportedVersion(f"{version!r} is not a supported version")

    # A leading prerelease marker is not attached to any release number.
    if _PRERELEASE_COMPONENT.fullmatch(components[0]):
        components = components[1:]
    if not components:
        raise UnsupportedVersion(f"{version!r} has no release component")

    return "-".join(components)
