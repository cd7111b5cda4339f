"""
Core data models for CVE normalization.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class GitCommit:
    """A commit in a canonical repository."""

    repo: str
    commit: str


@dataclass(frozen=True)
class AffectedVersion:
    """An affected version range.

    Empty strings mean "absent". ``fixed`` is an exclusive upper bound and
    ``last_affected`` an inclusive one; at most one of them is set.
    """

    introduced: str = ""
    fixed: str = ""
    last_affected: str = ""


@dataclass
class VersionInfo:
    """Commits and version ranges extracted from a CVE record."""

    introduced_commits: List[GitCommit] = field(default_factory=list)
    fix_commits: List[GitCommit] = field(default_factory=list)
    limit_commits: List[GitCommit] = field(default_factory=list)
    last_affected_commits: List[GitCommit] = field(default_factory=list)
    affected_versions: List[AffectedVersion] = field(default_factory=list)


@dataclass(frozen=True)
class CPE:
    """A decomposed platform identifier."""

    cpe_version: str
    part: str
    vendor: str
    product: str
    version: str
    update: str
    edition: str
    language: str
    sw_edition: str
    target_sw: str
    target_hw: str
    other: str


@dataclass(frozen=True)
class Reference:
    """A supporting link attached to a CVE record."""

    url: str


@dataclass(frozen=True)
class CPEMatch:
    """A single version matcher entry of a configuration node."""

    vulnerable: bool
    cpe23_uri: str = ""
    version_start_including: str = ""
    version_start_excluding: str = ""
    version_end_including: str = ""
    version_end_excluding: str = ""

    @classmethod
    def from_dict(cls, data: Dict) -> "CPEMatch":
        return cls(
            vulnerable=bool(data.get("vulnerable", False)),
            cpe23_uri=data.get("cpe23Uri") or data.get("criteria") or "",
            version_start_including=data.get("versionStartIncluding") or "",
            version_start_excluding=data.get("versionStartExcluding") or "",
            version_end_including=data.get("versionEndIncluding") or "",
            version_end_excluding=data.get("versionEndExcluding") or "",
        )


@dataclass(frozen=True)
class Node:
    """A configuration node combining matcher entries with an operator."""

    operator: str
    cpe_match: Tuple[CPEMatch, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict) -> "Node":
        matches = data.get("cpe_match")
        if matches is None:
            matches = data.get("cpeMatch", [])
        return cls(
            operator=data.get("operator", ""),
            cpe_match=tuple(CPEMatch.from_dict(m) for m in matches or []),
        )


@dataclass(frozen=True)
class CVEItem:
    """The parts of an NVD CVE record consumed by the normalizers."""

    id: str
    references: Tuple[Reference, ...] = ()
    nodes: Tuple[Node, ...] = ()
    descriptions: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def from_dict(cls, data: Dict) -> "CVEItem":
        """Build an item from an NVD JSON 1.1 feed item or an API 2.0 record.

        Args:
            data: A ``CVE_Items`` entry, or a ``vulnerabilities`` entry

        Returns:
            Parsed CVE item
        """
        cve = data.get("cve", {}) or {}
        if "CVE_data_meta" in cve:
            return cls._from_legacy_feed(data, cve)
        return cls._from_api(cve)

    @classmethod
    def _from_legacy_feed(cls, data: Dict, cve: Dict) -> "CVEItem":
        references = (cve.get("references") or {}).get("reference_data", [])
        descriptions = (cve.get("description") or {}).get("description_data", [])
        nodes = (data.get("configurations") or {}).get("nodes", [])
        return cls(
            id=(cve.get("CVE_data_meta") or {}).get("ID", ""),
            references=_parse_references(references),
            nodes=tuple(Node.from_dict(n) for n in nodes or []),
            descriptions=_parse_descriptions(descriptions),
        )

    @classmethod
    def _from_api(cls, cve: Dict) -> "CVEItem":
        nodes = []
        for configuration in cve.get("configurations") or []:
            nodes.extend(configuration.get("nodes", []))
        return cls(
            id=cve.get("id", ""),
            references=_parse_references(cve.get("references")),
            nodes=tuple(Node.from_dict(n) for n in nodes),
            descriptions=_parse_descriptions(cve.get("descriptions")),
        )

    def english_description(self) -> str:
        for lang, value in self.descriptions:
            if lang == "en":
                return value
        return ""


def _parse_references(references: Optional[List[Dict]]) -> Tuple[Reference, ...]:
    return tuple(
        Reference(url=ref["url"]) for ref in references or [] if ref.get("url")
    )


def _parse_descriptions(descriptions: Optional[List[Dict]]) -> Tuple[Tuple[str, str], ...]:
    return tuple(
        (desc.get("lang", ""), desc.get("value", "")) for desc in descriptions or []
    )
