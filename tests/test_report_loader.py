import json
from pathlib import Path

import pytest

from binaudit.core.errors import Error, ErrorKind
from binaudit.core.report_loader import load_report, parse_report

SAMPLE = {
    "database": {"advisory-count": 600},
    "lockfile": {"dependency-count": 42},
    "vulnerabilities": {
        "found": True,
        "count": 2,
        "list": [
            {
                "advisory": {
                    "id": "RUSTSEC-2020-0071",
                    "package": "time",
                    "title": "Potential segfault in the time crate",
                    "aliases": ["CVE-2020-26235"],
                    "url": "https://github.com/time-rs/time/issues/293",
                },
                "versions": {"patched": [">=0.2.23"], "unaffected": ["=0.2.0"]},
                "affected": {"arch": [], "os": ["Linux", "macos"], "functions": {"time::at": ["<0.2.23"]}},
                "package": {"name": "time", "version": "0.1.45"},
            },
            {
                "advisory": {"id": "RUSTSEC-2021-0145", "package": "atty", "title": "Potential unaligned read"},
                "versions": {"patched": []},
                "affected": None,
                "package": {"name": "atty", "version": "0.2.14"},
            },
        ],
    },
    "warnings": {"unmaintained": [{"kind": "unmaintained", "advisory": {"id": "RUSTSEC-2024-0375"}}]},
}


def test_load_report_parses_vulnerabilities(tmp_path: Path):
    path = tmp_path / "audit.json"
    path.write_text(json.dumps(SAMPLE))
    report = load_report(path)

    vulns = report.vulnerabilities
    assert vulns.count == 2
    assert vulns.found is True
    first, second = vulns.list
    assert first.advisory_id == "RUSTSEC-2020-0071"
    assert first.aliases == ("CVE-2020-26235",)
    assert first.affected.os == ["linux", "macos"]
    assert first.affected.functions == {"time::at": ["<0.2.23"]}
    assert second.affected is None
    assert report.warning_count == 1


def test_round_trip_keeps_unknown_sections():
    report = parse_report(SAMPLE)
    payload = report.to_dict()
    assert payload["database"] == {"advisory-count": 600}
    assert payload["vulnerabilities"]["list"][0]["versions"]["patched"] == [">=0.2.23"]
    assert payload["vulnerabilities"]["list"][1]["affected"] is None


def test_counts_are_kept_as_reported():
    data = {"vulnerabilities": {"found": True, "count": 5, "list": []}}
    report = parse_report(data)
    assert report.vulnerabilities.count == 5


def test_missing_sections_default_to_empty():
    report = parse_report({})
    assert report.vulnerabilities.count == 0
    assert report.vulnerabilities.found is False
    assert report.warnings == {}


def test_invalid_json(tmp_path: Path):
    path = tmp_path / "audit.json"
    path.write_text("{not json")
    with pytest.raises(Error) as excinfo:
        load_report(path)
    assert excinfo.value.kind is ErrorKind.PARSE


def test_non_object_report():
    with pytest.raises(Error) as excinfo:
        parse_report([1, 2, 3])
    assert excinfo.value.kind is ErrorKind.PARSE
    with pytest.raises(Error):
        parse_report({"vulnerabilities": []})


def test_non_object_vulnerability_entry_is_a_parse_error():
    with pytest.raises(Error) as excinfo:
        parse_report({"vulnerabilities": {"found": True, "count": 1, "list": ["oops"]}})
    assert excinfo.value.kind is ErrorKind.PARSE
    assert "#0" in str(excinfo.value)
