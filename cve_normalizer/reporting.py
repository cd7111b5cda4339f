"""
Reporting and export utilities.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List

import pandas as pd


logger = logging.getLogger(__name__)

FRAME_KEYS = ("affected_versions", "commits", "notes", "cpes")


def print_summary(results: Dict) -> None:
    logger.info("=" * 60)
    logger.info("NORMALIZATION RESULTS")
    logger.info("=" * 60)
    logger.info("Feeds: %s", ", ".join(results["feeds"]))
    logger.info("Records: %s", results["num_records"])
    logger.info("Failed records: %s", results["num_failed"])
    logger.info("-" * 60)
    logger.info("Affected version ranges: %s", len(results["affected_versions"]))
    logger.info("Fix commits: %s", len(results["commits"]))
    logger.info("Notes: %s", len(results["notes"]))
    logger.info("Parsed CPEs: %s", len(results["cpes"]))
    logger.info("=" * 60)


def _record_to_json(record: Dict) -> Dict:
    return {
        "id": record["id"],
        "version_info": asdict(record["version_info"]),
        "notes": record["notes"],
        "cpes": [asdict(parsed) for parsed in record["cpes"]],
    }


def save_results_json(results: Dict, output_dir: Path, name: str) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    results_file = output_dir / f"{name}_results.json"
    payload = {
        "feeds": results["feeds"],
        "num_records": results["num_records"],
        "num_failed": results["num_failed"],
        "failed": results["failed"],
        "records": [_record_to_json(r) for r in results["records"]],
    }
    with open(results_file, 'w') as f:
        json.dump(payload, f, indent=2, default=str)
    return results_file


def export_csv(results: Dict, output_dir: Path, name: str) -> List[Path]:
    output_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for key in FRAME_KEYS:
        if key not in results:
            continue
        csv_file = output_dir / f"{name}_{key}.csv"
        results[key].to_csv(csv_file, index=False)
        written.append(csv_file)
    return written


def export_worksheets(results: Dict, output_dir: Path, name: str) -> Path | None:
    frames = {key: results[key] for key in FRAME_KEYS if key in results}
    if not frames:
        return None
    output_dir.mkdir(parents=True, exist_ok=True)
    excel_file = output_dir / f"{name}_worksheets.xlsx"
    with pd.ExcelWriter(excel_file, engine='openpyxl') as writer:
        for key, df in frames.items():
            # Excel sheet names have a 31 character limit
            df.to_excel(writer, sheet_name=key[:31], index=False)
    return excel_file
