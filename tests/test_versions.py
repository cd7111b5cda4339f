"""Tests for affected version extraction."""

from cve_normalizer.models import (
    AffectedVersion,
    CPEMatch,
    CVEItem,
    GitCommit,
    Node,
    Reference,
)
from cve_normalizer.versions import extract_version_info, extract_versions_from_description


VALID_VERSIONS = ["1.0", "1.1", "1.2", "2.0"]


def make_item(matches=(), operator="OR", description="", references=()):
    return CVEItem(
        id="CVE-2022-0001",
        references=tuple(Reference(url=u) for u in references),
        nodes=(Node(operator=operator, cpe_match=tuple(matches)),),
        descriptions=(("en", description),),
    )


def test_inclusive_end_uses_next_version_as_fix():
    item = make_item([CPEMatch(vulnerable=True, version_end_including="1.1")])

    info, notes = extract_version_info(item, VALID_VERSIONS)

    assert info.affected_versions == [AffectedVersion(fixed="1.2")]
    assert notes == []


def test_inclusive_end_without_successor_falls_back_to_last_affected():
    item = make_item([CPEMatch(vulnerable=True, version_end_including="2.0")])

    info, notes = extract_version_info(item, VALID_VERSIONS)

    assert info.affected_versions == [AffectedVersion(last_affected="2.0")]
    assert "Warning: 2.0 does not have a version that comes after." in notes
    assert "Using 2.0 as last_affected version instead" in notes
    assert notes[-5:] == ["Valid versions:", "  - 1.0", "  - 1.1", "  - 1.2", "  - 2.0"]


def test_inclusive_end_without_valid_versions_is_last_affected():
    item = make_item([
        CPEMatch(vulnerable=True, version_start_including="1.0", version_end_including="1.4"),
    ])

    info, notes = extract_version_info(item, [])

    assert info.affected_versions == [AffectedVersion(introduced="1.0", last_affected="1.4")]
    assert "Valid versions:" not in notes


def test_exclusive_bounds():
    item = make_item([
        CPEMatch(vulnerable=True, version_start_excluding="1.0", version_end_excluding="2.0"),
    ])

    info, notes = extract_version_info(item, VALID_VERSIONS)

    assert info.affected_versions == [AffectedVersion(introduced="1.1", fixed="2.0")]
    assert notes == []


def test_exclusive_start_without_successor_is_noted():
    item = make_item([
        CPEMatch(vulnerable=True, version_start_excluding="0.9", version_end_excluding="1.2"),
    ])

    info, notes = extract_version_info(item, VALID_VERSIONS)

    assert info.affected_versions == [AffectedVersion(fixed="1.2")]
    assert notes[0] == "Warning: 0.9 is not a valid version"


def test_bounds_outside_valid_versions_are_noted():
    item = make_item([
        CPEMatch(vulnerable=True, version_start_including="0.5", version_end_excluding="3.0"),
    ])

    info, notes = extract_version_info(item, VALID_VERSIONS)

    assert info.affected_versions == [AffectedVersion(introduced="0.5", fixed="3.0")]
    assert notes[:2] == [
        "Warning: 0.5 is not a valid introduced version",
        "Warning: 3.0 is not a valid fixed version",
    ]


def test_trailing_colons_are_cleaned():
    item = make_item([
        CPEMatch(vulnerable=True, version_start_including="1.0:", version_end_excluding="1.2:"),
    ])

    info, _ = extract_version_info(item, VALID_VERSIONS)

    assert info.affected_versions == [AffectedVersion(introduced="1.0", fixed="1.2")]


def test_duplicate_matches_are_collapsed():
    match = CPEMatch(vulnerable=True, version_start_including="1.0", version_end_excluding="1.2")
    item = make_item([match, match])

    info, _ = extract_version_info(item, VALID_VERSIONS)

    assert info.affected_versions == [AffectedVersion(introduced="1.0", fixed="1.2")]


def test_structured_versions_skip_description():
    item = make_item(
        [CPEMatch(vulnerable=True, version_end_excluding="1.2")],
        description="Versions 1.0 through 1.1 are affected.",
    )

    info, _ = extract_version_info(item, VALID_VERSIONS)

    assert info.affected_versions == [AffectedVersion(fixed="1.2")]


def test_non_vulnerable_entries_and_other_operators_are_ignored():
    ignored = make_item(
        [CPEMatch(vulnerable=False, version_end_excluding="1.2")],
        description="A crash in the parser.",
    )
    and_node = make_item(
        [CPEMatch(vulnerable=True, version_end_excluding="1.2")],
        operator="AND",
        description="A crash in the parser.",
    )

    for item in (ignored, and_node):
        info, notes = extract_version_info(item)
        assert info.affected_versions == []
        assert notes == ["Failed to parse versions from description", "No versions detected."]


def test_entry_without_bounds_is_skipped():
    item = make_item(
        [CPEMatch(vulnerable=True, cpe23_uri="cpe:2.3:a:acme:widget:1.0:*:*:*:*:*:*:*")],
        description="Issue in widget before 1.1",
    )

    info, _ = extract_version_info(item, VALID_VERSIONS)

    assert info.affected_versions == [AffectedVersion(fixed="1.1")]


def test_description_through_range():
    item = make_item(description="This affects versions 1.2 through 1.5 of the product.")

    info, notes = extract_version_info(item, ["1.2", "1.5", "1.6"])

    assert info.affected_versions == [AffectedVersion(introduced="1.2", fixed="1.6")]
    assert notes == []


def test_description_before_range_trims_sentence_period():
    versions, notes = extract_versions_from_description([], "Acme Widget before 2.3.4.")

    assert versions == [AffectedVersion(fixed="2.3.4")]
    assert notes == []


def test_description_through_is_case_insensitive():
    versions, notes = extract_versions_from_description(
        ["1.0", "1.1", "1.2"], "Affected: 1.0 Through Version 1.1"
    )

    assert versions == [AffectedVersion(introduced="1.0", fixed="1.2")]
    assert notes == []


def test_description_through_without_successor_keeps_introduced():
    versions, notes = extract_versions_from_description([], "releases 1.2 through 1.5 are affected")

    assert versions == [AffectedVersion(introduced="1.2")]
    assert notes == ["Warning: 1.5 is not a valid version"]


def test_description_without_versions_is_noted():
    versions, notes = extract_versions_from_description([], "A problem exists through misuse.")

    assert versions == []
    assert notes == ["Failed to match version range from description"]


def test_description_unknown_versions_are_noted():
    versions, notes = extract_versions_from_description(VALID_VERSIONS, "in 0.9 before 1.1")

    assert versions == [AffectedVersion(introduced="0.9", fixed="1.1")]
    assert notes == ["Extracted version 0.9 is not a valid version"]


def test_description_duplicates_are_collapsed():
    versions, _ = extract_versions_from_description(
        [], "Fixed in Widget before 2.0. Gadget before 2.0 is affected too."
    )

    assert versions == [AffectedVersion(fixed="2.0")]


def test_unparseable_description_lists_valid_versions():
    item = make_item(operator="AND", description="Memory corruption.")

    info, notes = extract_version_info(item, ["1.0"])

    assert info.affected_versions == []
    assert notes == [
        "Failed to parse versions from description",
        "No versions detected.",
        "Valid versions:",
        "  - 1.0",
    ]


def test_references_populate_fix_commits_only():
    item = make_item(
        [CPEMatch(vulnerable=True, version_end_excluding="1.2")],
        references=[
            "https://github.com/MariaDB/server/commit/b1351c15946349f9daa7e5297fb2ac6f3139e4a8",
            "https://github.com/google/osv.dev/pull/738",
            "https://nvd.nist.gov/vuln/detail/CVE-2022-0001",
            "https://gitlab.com/qemu-project/qemu/-/commit/4367a20cc4",
        ],
    )

    info, _ = extract_version_info(item, VALID_VERSIONS)

    assert info.fix_commits == [
        GitCommit("https://github.com/MariaDB/server", "b1351c15946349f9daa7e5297fb2ac6f3139e4a8"),
        GitCommit("https://gitlab.com/qemu-project/qemu", "4367a20cc4"),
    ]
    assert info.introduced_commits == []
    assert info.limit_commits == []
    assert info.last_affected_commits == []
