import json
from pathlib import Path

from cve_normalizer.analyzer import FeedAnalyzer
from cve_normalizer.reporting import export_csv, export_worksheets, print_summary, save_results_json


def test_reporting_exports(feed_file: Path, tmp_path: Path):
    output_dir = tmp_path / "out"
    results = FeedAnalyzer([feed_file], output_dir=output_dir).analyze()

    print_summary(results)
    results_file = save_results_json(results, output_dir, "demo")
    csv_files = export_csv(results, output_dir, "demo")
    excel_file = export_worksheets(results, output_dir, "demo")

    assert results_file.exists()
    payload = json.loads(results_file.read_text())
    assert payload["num_records"] == 2
    assert payload["records"][0]["version_info"]["fix_commits"][0]["repo"] == "https://github.com/MariaDB/server"

    assert [p.name for p in csv_files] == [
        "demo_affected_versions.csv",
        "demo_commits.csv",
        "demo_notes.csv",
        "demo_cpes.csv",
    ]
    assert all(p.exists() for p in csv_files)
    assert excel_file is not None and excel_file.exists()


def test_export_worksheets_without_frames(tmp_path: Path):
    assert export_worksheets({}, tmp_path, "demo") is None
