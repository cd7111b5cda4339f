import json
from pathlib import Path

import pytest


FEED = {
    "CVE_data_type": "CVE",
    "CVE_Items": [
        {
            "cve": {
                "CVE_data_meta": {"ID": "CVE-2021-0001"},
                "references": {
                    "reference_data": [
                        {"url": "https://github.com/MariaDB/server/commit/b1351c15946349f9daa7e5297fb2ac6f3139e4a8"},
                        {"url": "https://github.com/google/osv.dev/pull/738"},
                    ]
                },
                "description": {"description_data": [{"lang": "en", "value": "Overflow in server."}]},
            },
            "configurations": {
                "nodes": [
                    {
                        "operator": "OR",
                        "cpe_match": [
                            {
                                "vulnerable": True,
                                "cpe23Uri": "cpe:2.3:a:mariadb:mariadb:*:*:*:*:*:*:*:*",
                                "versionStartIncluding": "10.2.0",
                                "versionEndIncluding": "10.2.9",
                            }
                        ],
                    }
                ]
            },
        },
        {
            "cve": {
                "CVE_data_meta": {"ID": "CVE-2021-0002"},
                "references": {"reference_data": []},
                "description": {
                    "description_data": [
                        {"lang": "en", "value": "Acme Widget v1.2 before 1.4 allows XSS."}
                    ]
                },
            },
            "configurations": {"nodes": []},
        },
    ],
}


@pytest.fixture
def feed_file(tmp_path: Path) -> Path:
    path = tmp_path / "nvdcve-1.1-2021.json"
    path.write_text(json.dumps(FEED), encoding="utf-8")
    return path
