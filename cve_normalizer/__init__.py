"""
CVE Normalizer

Normalizes CVE records into canonical repositories, fix commits, affected
version ranges and decomposed CPE identifiers.
"""

__version__ = "0.1.0"

from .cli import main
from .models import AffectedVersion, CPE, GitCommit, VersionInfo
from .platform_ids import parse_cpe
from .repos import commit, extract_git_commit, repo
from .version_utils import normalize_version
from .versions import extract_version_info

__all__ = [
    "main",
    "AffectedVersion",
    "CPE",
    "GitCommit",
    "VersionInfo",
    "commit",
    "extract_git_commit",
    "extract_version_info",
    "normalize_version",
    "parse_cpe",
    "repo",
]
