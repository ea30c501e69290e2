"""Ignore rule handling for advisory filtering."""

from __future__ import annotations

import datetime as dt
import logging
import pathlib
from dataclasses import dataclass
from typing import List, Optional, Sequence

import yaml

from binaudit.core.errors import Error
from binaudit.core.report import Report, Vulnerability

_LOG = logging.getLogger(__name__)


@dataclass
class IgnoreRule:
    ids: Sequence[str]
    packages: Sequence[str]
    until: Optional[dt.date]
    reason: Optional[str]

    def matches(self, vuln: Vulnerability, reference_date: dt.date) -> bool:
        if self.until and reference_date > self.until:
            return False
        if self.ids and not ({vuln.advisory_id, *vuln.aliases} & set(self.ids)):
            return False
        if self.packages and vuln.package_name not in self.packages:
            return False
        return True


def load_rules(path: pathlib.Path) -> Sequence[IgnoreRule]:
    if not path.exists():
        return []
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        raise Error.from_exception(exc) from exc
    if not isinstance(data, dict):
        return []
    entries = data.get("rules") or []
    rules: List[IgnoreRule] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        until = _parse_date(entry.get("until") or entry.get("expires"))
        ids = _ensure_sequence(entry.get("ids") or entry.get("advisories") or entry.get("id"))
        packages = _ensure_sequence(entry.get("packages") or entry.get("package"))
        rules.append(IgnoreRule(ids=ids, packages=packages, until=until, reason=entry.get("reason")))
    return rules


def filter_vulnerabilities(
    report: Report,
    rules: Sequence[IgnoreRule],
    reference_date: Optional[dt.date] = None,
) -> None:
    """Drop ignored vulnerabilities from *report* in place."""

    if not rules:
        return
    today = reference_date or dt.date.today()
    vulns = report.vulnerabilities
    kept: List[Vulnerability] = []
    for vuln in vulns.list:
        rule = next((rule for rule in rules if rule.matches(vuln, today)), None)
        if rule is None:
            kept.append(vuln)
            continue
        _LOG.info("ignoring %s in %s: %s", vuln.advisory_id, vuln.package_name, rule.reason or "no reason given")
    vulns.list[:] = kept
    vulns.resync()


def _parse_date(value: object) -> Optional[dt.date]:
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str) and value:
        try:
            return dt.date.fromisoformat(value)
        except ValueError:
            return None
    return None


def _ensure_sequence(value: object) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(item) for item in value]
    return [str(value)]
