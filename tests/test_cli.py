import json
import sys
from pathlib import Path

import pytest

from cve_normalizer.cli import main


def test_cli_writes_results(feed_file: Path, tmp_path: Path, monkeypatch):
    output_dir = tmp_path / "out"
    versions_file = tmp_path / "versions.json"
    versions_file.write_text(
        json.dumps({"CVE-2021-0001": ["10.2.0", "10.2.9", "10.2.10"]}), encoding="utf-8"
    )
    denylist_file = tmp_path / "denylist.txt"
    denylist_file.write_text("https://github.com/MariaDB/\n", encoding="utf-8")

    monkeypatch.setattr(sys, "argv", [
        "cve-normalizer",
        "--feed", str(feed_file),
        "--valid-versions", str(versions_file),
        "--denylist", str(denylist_file),
        "--cve", "CVE-2021-0001",
        "--output-dir", str(output_dir),
        "--get-worksheets",
    ])

    main()

    payload = json.loads((output_dir / "nvdcve-1.1-2021_results.json").read_text())
    assert payload["num_records"] == 1
    record = payload["records"][0]
    assert record["version_info"]["affected_versions"] == [
        {"introduced": "10.2.0", "fixed": "10.2.10", "last_affected": ""}
    ]
    assert record["version_info"]["fix_commits"] == []
    assert (output_dir / "nvdcve-1.1-2021_affected_versions.csv").exists()
    assert (output_dir / "nvdcve-1.1-2021_worksheets.xlsx").exists()


def test_cli_missing_feed_exits(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(sys, "argv", [
        "cve-normalizer",
        "--feed", str(tmp_path / "missing.json"),
        "--output-dir", str(tmp_path / "out"),
    ])

    with pytest.raises(SystemExit) as excinfo:
        main()
    assert excinfo.value.code == 1
