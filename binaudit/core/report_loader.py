"""Load audit reports from JSON."""

from __future__ import annotations

import json
import pathlib
from typing import Any

from binaudit.core.errors import Error, ErrorKind
from binaudit.core.report import Report


def load_report(path: pathlib.Path) -> Report:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise Error.from_exception(exc) from exc
    return parse_report(data, source=str(path))


def parse_report(data: Any, source: str = "<report>") -> Report:
    if not isinstance(data, dict):
        raise Error(ErrorKind.PARSE, f"{source}: expected a JSON object")
    vulnerabilities = data.get("vulnerabilities")
    if vulnerabilities is not None and not isinstance(vulnerabilities, dict):
        raise Error(ErrorKind.PARSE, f"{source}: 'vulnerabilities' must be an object")
    try:
        return Report.from_dict(data)
    except (AttributeError, TypeError, ValueError) as exc:
        raise Error(ErrorKind.PARSE, f"{source}: {exc}") from exc
