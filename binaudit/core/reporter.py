"""Report rendering utilities."""

from __future__ import annotations

import datetime as dt
import json
import pathlib
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from binaudit import __version__
from binaudit.core.binary_format import BinaryFormat
from binaudit.core.report import Report, Vulnerability


@dataclass
class ReportPaths:
    json_path: pathlib.Path | None
    markdown_path: pathlib.Path | None
    sarif_path: pathlib.Path | None


def build_summary(report: Report, binary_format: BinaryFormat, top_n: int = 10) -> Dict[str, Any]:
    vulns = report.vulnerabilities
    package_counter: Dict[str, int] = {}
    informational = 0
    for vuln in vulns.list:
        key = f"{vuln.package_name} {vuln.package_version}" if vuln.package_version else vuln.package_name
        package_counter[key] = package_counter.get(key, 0) + 1
        if vuln.informational:
            informational += 1
    top_packages = sorted(package_counter.items(), key=lambda kv: (-kv[1], kv[0]))[:top_n]
    return {
        "generated_at": dt.datetime.now(dt.UTC).isoformat(),
        "binary_format": str(binary_format),
        "found": vulns.found,
        "total": vulns.count,
        "informational": informational,
        "warnings": {kind: len(entries) for kind, entries in sorted(report.warnings.items())},
        "top_packages": [{"name": name, "count": count} for name, count in top_packages],
        "items": [_summarise(vuln) for vuln in vulns.list[:top_n]],
    }


def write_reports(
    report: Report,
    summary: Dict[str, Any],
    output_dir: pathlib.Path,
    json_path: pathlib.Path | None = None,
    sarif_path: pathlib.Path | None = None,
    formats: Sequence[str] | None = None,
) -> ReportPaths:
    output_dir.mkdir(parents=True, exist_ok=True)
    formats = [fmt.lower() for fmt in (formats or ["json", "md"])]

    resolved_json = json_path or (output_dir / "report.json")
    resolved_markdown = output_dir / "report.md" if "md" in formats else None

    if "json" in formats:
        resolved_json.parent.mkdir(parents=True, exist_ok=True)
        resolved_json.write_text(json.dumps(render_json(report, summary), indent=2, sort_keys=True))
    else:
        resolved_json = None

    if resolved_markdown:
        resolved_markdown.write_text(render_markdown(summary, report.vulnerabilities.list))

    resolved_sarif = None
    if sarif_path:
        sarif_path.parent.mkdir(parents=True, exist_ok=True)
        sarif_path.write_text(json.dumps(render_sarif(report.vulnerabilities.list), indent=2))
        resolved_sarif = sarif_path

    return ReportPaths(json_path=resolved_json, markdown_path=resolved_markdown, sarif_path=resolved_sarif)


def render_json(report: Report, summary: Dict[str, Any]) -> Dict[str, Any]:
    payload = report.to_dict()
    payload["summary"] = summary
    return payload


def render_markdown(summary: Dict[str, Any], vulnerabilities: Sequence[Vulnerability]) -> str:
    lines: List[str] = ["# Binary Audit Report", ""]
    lines.append(f"Generated: {summary['generated_at']}")
    lines.append(f"Binary format: {summary['binary_format']}")
    lines.append("")
    lines.append("## Counts")
    lines.append(f"- Vulnerabilities: {summary.get('total', 0)}")
    lines.append(f"- Informational: {summary.get('informational', 0)}")
    for kind, count in summary.get("warnings", {}).items():
        lines.append(f"- Warnings ({kind}): {count}")
    lines.append("")
    if summary.get("top_packages"):
        lines.append("## Top Packages")
        for entry in summary["top_packages"]:
            lines.append(f"- {entry['name']} ({entry['count']} advisories)")
        lines.append("")
    if vulnerabilities:
        lines.append("## Advisories")
        for vuln in vulnerabilities:
            patched = ", ".join(vuln.patched) or "none"
            lines.append(
                f"- {vuln.advisory_id} | {vuln.package_name} {vuln.package_version or ''} | {vuln.title} | patched={patched}"
            )
    return "\n".join(lines)


def render_sarif(vulnerabilities: Sequence[Vulnerability]) -> Dict[str, Any]:
    results = []
    for vuln in vulnerabilities:
        results.append(
            {
                "ruleId": vuln.advisory_id,
                "level": "note" if vuln.informational else "error",
                "message": {"text": f"{vuln.package_name} {vuln.package_version or ''}: {vuln.title}".strip()},
                "properties": {
                    "aliases": list(vuln.aliases),
                    "cvss": vuln.cvss,
                    "patched": list(vuln.patched),
                    "url": vuln.url,
                    "os": list(vuln.affected.os) if vuln.affected else [],
                },
            }
        )
    return {
        "$schema": "https://json.schemastore.org/sarif-2.1.0.json",
        "version": "2.1.0",
        "runs": [
            {
                "tool": {"driver": {"name": "binaudit", "version": __version__}},
                "results": results,
            }
        ],
    }


def _summarise(vuln: Vulnerability) -> Dict[str, Any]:
    return {
        "id": vuln.advisory_id,
        "package": vuln.package_name,
        "version": vuln.package_version,
        "title": vuln.title,
        "url": vuln.url,
        "patched": list(vuln.patched),
    }
