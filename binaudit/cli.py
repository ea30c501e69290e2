"""Command-line interface for filtering audit reports by binary format."""

from __future__ import annotations

import argparse
import logging
import pathlib
from typing import List

from binaudit.core import binary_filter, binary_format, ignore_rules, platforms, reporter, s3util
from binaudit.core.errors import Error
from binaudit.core.report_loader import load_report

_LOG = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FOUND = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Drop advisories that cannot apply to a binary's container format")
    parser.add_argument("report", type=pathlib.Path, help="Audit report JSON to filter")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--binary", type=pathlib.Path, help="Binary whose header determines the container format")
    target.add_argument(
        "--format-name",
        choices=[kind.value for kind in binary_format.FormatKind],
        help="Container format to assume instead of reading a binary",
    )
    parser.add_argument("--registry", type=pathlib.Path, default=None, help="Platform registry YAML (defaults to the bundled table)")
    parser.add_argument("--ignore", type=pathlib.Path, default=pathlib.Path("config/.advisory-ignore.yml"), help="Ignore rules YAML file")
    parser.add_argument("--out", type=pathlib.Path, default=pathlib.Path("reports/report.json"), help="Path for the filtered JSON report")
    parser.add_argument("--sarif", type=pathlib.Path, help="Optional SARIF output path")
    parser.add_argument("--emit", action="append", choices=["json", "md"], help="Formats to emit (defaults to all)")
    parser.add_argument("--top", type=int, default=10, help="Number of advisories listed in the summary")
    parser.add_argument("--upload", metavar="S3_URL", help="Upload the filtered JSON report to s3://bucket/key")
    parser.add_argument("--deny-warnings", action="store_true", help="Fail when the report carries any warnings")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity")
    return parser


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    try:
        return _run(args)
    except Error as exc:
        _LOG.error("%s", exc)
        return EXIT_ERROR


def _run(args: argparse.Namespace) -> int:
    if args.binary is not None:
        fmt = binary_format.detect_file(args.binary)
        _LOG.info("%s detected as %s", args.binary, fmt)
    else:
        fmt = binary_format.parse_format_name(args.format_name)

    apple = None
    if args.registry is not None:
        apple = platforms.ApplePlatforms(registry=platforms.load_registry(args.registry))

    report = load_report(args.report)
    binary_filter.filter_report(fmt, report, apple)
    ignore_rules.filter_vulnerabilities(report, ignore_rules.load_rules(args.ignore))

    summary = reporter.build_summary(report, fmt, top_n=args.top)
    paths = reporter.write_reports(
        report,
        summary,
        output_dir=args.out.parent,
        json_path=args.out,
        sarif_path=args.sarif,
        formats=args.emit or ["json", "md"],
    )
    if args.upload:
        bucket, key = s3util.parse_s3_url(args.upload)
        s3util.upload_json(bucket, key, reporter.render_json(report, summary))

    print(f"Filtered report at JSON={paths.json_path or 'skipped'} MD={paths.markdown_path or 'skipped'}")
    if args.sarif:
        print(f"SARIF={paths.sarif_path}")

    vulns = report.vulnerabilities
    if vulns.found:
        print(f"{vulns.count} vulnerabilities apply to this {fmt} binary")
        return EXIT_FOUND
    if args.deny_warnings and report.warning_count:
        print(f"Failing due to {report.warning_count} warnings")
        return EXIT_FOUND
    return EXIT_OK


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
