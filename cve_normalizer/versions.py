"""
Affected version extraction from CVE records.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence, Tuple

from .errors import VersionLookupError
from .models import AffectedVersion, CPEMatch, CVEItem, VersionInfo
from .repos import RepoResolver, extract_git_commit
from .version_utils import clean_version, has_version, next_version


logger = logging.getLogger(__name__)

# Matches "x before y", "x through y", "before y", "through version y".
DESCRIPTION_RANGE_PATTERN = re.compile(
    r"([\w.+\-]+)?\s+(through|before)\s+(?:version\s+)?([\w.+\-]+)",
    re.IGNORECASE | re.ASCII,
)

_DIGITS = set("0123456789")


def _process_extracted_version(version: Optional[str]) -> str:
    """Trim sentence periods; tokens with neither a dot nor a digit are noise."""
    version = (version or "").strip(".")
    if "." not in version and not _DIGITS.intersection(version):
        return ""
    return version


def extract_versions_from_description(
    valid_versions: Optional[Sequence[str]], description: str
) -> Tuple[List[AffectedVersion], List[str]]:
    """Extract version ranges from a free-text description.

    Args:
        valid_versions: Ordered list of known versions, possibly empty
        description: English description of the CVE

    Returns:
        Tuple of (affected versions, notes)
    """
    matches = list(DESCRIPTION_RANGE_PATTERN.finditer(description or ""))
    if not matches:
        return [], ["Failed to parse versions from description"]

    notes: List[str] = []
    versions: List[AffectedVersion] = []
    for match in matches:
        introduced = _process_extracted_version(match.group(1))
        fixed = _process_extracted_version(match.group(3))
        if fixed and match.group(2).lower() == "through":
            # "through" is inclusive, so the fix is the release after it.
            try:
                fixed = next_version(valid_versions, fixed)
            except VersionLookupError as e:
                notes.append(str(e))
                fixed = ""

        if not introduced and not fixed:
            notes.append("Failed to match version range from description")
            continue

        if introduced and not has_version(valid_versions, introduced):
            notes.append(f"Extracted version {introduced} is not a valid version")
        if fixed and not has_version(valid_versions, fixed):
            notes.append(f"Extracted version {fixed} is not a valid version")

        affected = AffectedVersion(introduced=introduced, fixed=fixed)
        if affected not in versions:
            versions.append(affected)

    return versions, notes


def _affected_from_match(
    match: CPEMatch, valid_versions: Optional[Sequence[str]], notes: List[str]
) -> Optional[AffectedVersion]:
    introduced = ""
    fixed = ""
    last_affected = ""

    if match.version_start_including:
        introduced = clean_version(match.version_start_including)
    elif match.version_start_excluding:
        try:
            introduced = next_version(
                valid_versions, clean_version(match.version_start_excluding)
            )
        except VersionLookupError as e:
            notes.append(str(e))

    if match.version_end_excluding:
        fixed = clean_version(match.version_end_excluding)
    elif match.version_end_including:
        end = clean_version(match.version_end_including)
        try:
            fixed = next_version(valid_versions, end)
        except VersionLookupError as e:
            # Without a later release the end bound can only be expressed inclusively.
            notes.append(str(e))
            last_affected = end
            notes.append(f"Using {end} as last_affected version instead")

    if not introduced and not fixed and not last_affected:
        return None

    if introduced and not has_version(valid_versions, introduced):
        notes.append(f"Warning: {introduced} is not a valid introduced version")
    if fixed and not has_version(valid_versions, fixed):
        notes.append(f"Warning: {fixed} is not a valid fixed version")

    return AffectedVersion(
        introduced=introduced, fixed=fixed, last_affected=last_affected
    )


def extract_version_info(
    cve: CVEItem,
    valid_versions: Optional[Sequence[str]] = None,
    resolver: Optional[RepoResolver] = None,
) -> Tuple[VersionInfo, List[str]]:
    """Extract fix commits and affected version ranges from a CVE record.

    Structured matcher data is preferred; the description is only parsed
    when no matcher entry yields a range. Problems are reported as notes,
    never raised.

    Args:
        cve: Parsed CVE record
        valid_versions: Ordered list of known versions, possibly empty
        resolver: Repository resolver; defaults to the built-in tables

    Returns:
        Tuple of (version info, notes)
    """
    info = VersionInfo()
    notes: List[str] = []

    for reference in cve.references:
        if resolver is not None:
            git_commit = resolver.git_commit(reference.url)
        else:
            git_commit = extract_git_commit(reference.url)
        if git_commit is not None:
            info.fix_commits.append(git_commit)

    got_versions = False
    for node in cve.nodes:
        if node.operator != "OR":
            continue

        for match in node.cpe_match:
            if not match.vulnerable:
                continue

            affected = _affected_from_match(match, valid_versions, notes)
            if affected is None:
                continue

            got_versions = True
            if affected not in info.affected_versions:
                info.affected_versions.append(affected)

    if not got_versions:
        info.affected_versions, extract_notes = extract_versions_from_description(
            valid_versions, cve.english_description()
        )
        notes.extend(extract_notes)
        if info.affected_versions:
            logger.info(
                "[%s] Extracted versions from description = %s",
                cve.id,
                info.affected_versions,
            )

    if not info.affected_versions:
        notes.append("No versions detected.")

    if notes and valid_versions:
        notes.append("Valid versions:")
        notes.extend(f"  - {version}" for version in valid_versions)

    return info, notes
