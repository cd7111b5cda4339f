"""
Batch normalization of NVD feed files.
"""

import gzip
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import pandas as pd
from tqdm import tqdm

from .errors import MalformedIdentifier, UnsupportedVersion
from .models import CVEItem
from .platform_ids import cpes, parse_cpe
from .repos import RepoResolver
from .reporting import export_csv, export_worksheets, save_results_json
from .version_utils import normalize_version
from .versions import extract_version_info


logger = logging.getLogger(__name__)

ValidVersions = Union[List[str], Dict[str, List[str]]]


def load_valid_versions(path: Path) -> ValidVersions:
    """Load valid versions from a file.

    A JSON object maps CVE IDs to version lists, a JSON list applies to
    every record, and any other file is read as one version per line.

    Args:
        path: Path to the versions file

    Returns:
        Version list or mapping of CVE ID to version list
    """
    text = Path(path).read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        data = None

    if isinstance(data, dict):
        return {cve_id: [str(v) for v in versions] for cve_id, versions in data.items()}
    if isinstance(data, list):
        return [str(v) for v in data]
    return [line.strip() for line in text.splitlines() if line.strip()]


def _read_json(path: Path) -> Any:
    if path.suffix == ".gz":
        with gzip.open(path, "rt", encoding="utf-8") as f:
            return json.load(f)
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _iter_raw_items(data: Any) -> Iterable[Dict]:
    if isinstance(data, list):
        return data
    if "CVE_Items" in data:
        return data["CVE_Items"]
    if "vulnerabilities" in data:
        return data["vulnerabilities"]
    return [data]


def _normalized_or_none(version: str) -> Optional[str]:
    if not version:
        return None
    try:
        return normalize_version(version)
    except UnsupportedVersion:
        return None


class FeedAnalyzer:
    """Normalize every CVE record in a set of NVD feed files."""

    def __init__(
        self,
        feed_paths: Sequence[Path],
        valid_versions: Optional[ValidVersions] = None,
        cve_ids: Optional[Iterable[str]] = None,
        resolver: Optional[RepoResolver] = None,
        output_dir: Path = Path("./output"),
    ):
        """Initialize feed analyzer.

        Args:
            feed_paths: NVD JSON feed files (``.json`` or ``.json.gz``)
            valid_versions: Version list for every record, or a per-CVE mapping
            cve_ids: Only analyze these CVE IDs
            resolver: Repository resolver; defaults to the built-in tables
            output_dir: Output directory for results
        """
        self.feed_paths = [Path(p) for p in feed_paths]
        self.valid_versions = valid_versions
        self.cve_ids = set(cve_ids) if cve_ids else None
        self.resolver = resolver or RepoResolver()
        self.output_dir = Path(output_dir)

    @property
    def output_name(self) -> str:
        """Base name for exported files, taken from the first feed."""
        name = self.feed_paths[0].name if self.feed_paths else "cves"
        for suffix in (".gz", ".json"):
            name = name.removesuffix(suffix)
        return name

    def load_items(self) -> List[CVEItem]:
        """Read and parse the CVE records of every feed file."""
        items = []
        for path in self.feed_paths:
            logger.info("Loading feed %s", path)
            data = _read_json(path)
            for raw in _iter_raw_items(data):
                item = CVEItem.from_dict(raw)
                if self.cve_ids is not None and item.id not in self.cve_ids:
                    continue
                items.append(item)
        logger.info("Loaded %d CVE records", len(items))
        return items

    def valid_versions_for(self, cve_id: str) -> List[str]:
        if isinstance(self.valid_versions, Mapping):
            return list(self.valid_versions.get(cve_id, []))
        return list(self.valid_versions or [])

    def analyze_item(self, item: CVEItem) -> Dict[str, Any]:
        """Extract versions, commits and CPEs from a single record."""
        version_info, notes = extract_version_info(
            item, self.valid_versions_for(item.id), resolver=self.resolver
        )

        parsed_cpes = []
        for formatted in cpes(item):
            try:
                parsed_cpes.append(parse_cpe(formatted))
            except MalformedIdentifier as e:
                logger.warning("[%s] Skipping CPE %s: %s", item.id, formatted, e)

        return {
            "id": item.id,
            "version_info": version_info,
            "notes": notes,
            "cpes": parsed_cpes,
        }

    def analyze(self) -> Dict[str, Any]:
        """Run the normalization over every loaded record.

        Returns:
            Dictionary with per-record results and summary DataFrames
        """
        items = self.load_items()

        records = []
        failed = []
        for item in tqdm(items, desc="Normalizing CVEs"):
            try:
                records.append(self.analyze_item(item))
            except Exception as e:
                logger.error("Error analyzing %s: %s", item.id, e)
                failed.append(item.id)
                continue

        return {
            "feeds": [str(p) for p in self.feed_paths],
            "num_records": len(items),
            "num_failed": len(failed),
            "failed": failed,
            "records": records,
            "affected_versions": self._affected_versions_frame(records),
            "commits": self._commits_frame(records),
            "notes": self._notes_frame(records),
            "cpes": self._cpes_frame(records),
        }

    def export(self, results: Dict[str, Any], get_worksheets: bool = False) -> List[Path]:
        """Write results into the output directory.

        Args:
            results: Output of :meth:`analyze`
            get_worksheets: Also write an Excel workbook with one sheet per table

        Returns:
            Paths of the written files
        """
        name = self.output_name
        written = [save_results_json(results, self.output_dir, name)]
        written.extend(export_csv(results, self.output_dir, name))
        if get_worksheets:
            excel_file = export_worksheets(results, self.output_dir, name)
            if excel_file is not None:
                written.append(excel_file)
        for path in written:
            logger.info("Saved %s", path)
        return written

    def _affected_versions_frame(self, records: List[Dict[str, Any]]) -> pd.DataFrame:
        rows = []
        for record in records:
            for affected in record["version_info"].affected_versions:
                rows.append({
                    "cve_id": record["id"],
                    "introduced": affected.introduced,
                    "fixed": affected.fixed,
                    "last_affected": affected.last_affected,
                    "introduced_normalized": _normalized_or_none(affected.introduced),
                    "fixed_normalized": _normalized_or_none(affected.fixed),
                    "last_affected_normalized": _normalized_or_none(affected.last_affected),
                })
        return pd.DataFrame(rows, columns=[
            "cve_id",
            "introduced",
            "fixed",
            "last_affected",
            "introduced_normalized",
            "fixed_normalized",
            "last_affected_normalized",
        ])

    def _commits_frame(self, records: List[Dict[str, Any]]) -> pd.DataFrame:
        rows = []
        for record in records:
            info = record["version_info"]
            for kind, commits in (
                ("introduced", info.introduced_commits),
                ("fixed", info.fix_commits),
                ("limit", info.limit_commits),
                ("last_affected", info.last_affected_commits),
            ):
                for git_commit in commits:
                    rows.append({
                        "cve_id": record["id"],
                        "kind": kind,
                        "repo": git_commit.repo,
                        "commit": git_commit.commit,
                    })
        return pd.DataFrame(rows, columns=["cve_id", "kind", "repo", "commit"])

    def _notes_frame(self, records: List[Dict[str, Any]]) -> pd.DataFrame:
        rows = [
            {"cve_id": record["id"], "note": note}
            for record in records
            for note in record["notes"]
        ]
        return pd.DataFrame(rows, columns=["cve_id", "note"])

    def _cpes_frame(self, records: List[Dict[str, Any]]) -> pd.DataFrame:
        columns = [
            "cve_id",
            "cpe_version",
            "part",
            "vendor",
            "product",
            "version",
            "update",
            "edition",
            "language",
            "sw_edition",
            "target_sw",
            "target_hw",
            "other",
        ]
        rows = []
        for record in records:
            for parsed in record["cpes"]:
                row = {"cve_id": record["id"]}
                row.update({name: getattr(parsed, name) for name in columns[1:]})
                rows.append(row)
        return pd.DataFrame(rows, columns=columns)
