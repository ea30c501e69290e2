"""Drop advisories that cannot apply to a binary's container format.

Windows-only advisories are irrelevant for an ELF file, Linux-only ones for a
Mach-O file, and so on. When in doubt an advisory is kept: reporting something
that does not apply is preferable to hiding something that does.
"""

from __future__ import annotations

import logging
from typing import Collection, Optional, Union

from binaudit.core.binary_format import BinaryFormat, FormatKind
from binaudit.core.platforms import WINDOWS, ApplePlatforms, default_apple_platforms
from binaudit.core.report import Affected, Report, VulnerabilityInfo

_LOG = logging.getLogger(__name__)


def filter_report(
    binary_format: BinaryFormat,
    report: Union[Report, VulnerabilityInfo],
    apple: Optional[ApplePlatforms] = None,
) -> None:
    """Remove vulnerabilities not applicable to *binary_format* in place.

    Retained entries keep their original order, and ``count``/``found`` are
    recomputed afterwards. Raises ``AssertionError`` if ``count`` disagrees with
    the list on entry.
    """

    vulns = report.vulnerabilities if isinstance(report, Report) else report
    if vulns.count != len(vulns.list):
        raise AssertionError(
            f"Internal logic error: report claims {vulns.count} vulnerabilities but lists {len(vulns.list)}"
        )
    if apple is None:
        apple = default_apple_platforms()
    kept = []
    for vuln in vulns.list:
        if advisory_applies(binary_format, vuln.affected, apple):
            kept.append(vuln)
        else:
            _LOG.debug("%s (%s) does not apply to %s binaries", vuln.advisory_id, vuln.package_name, binary_format)
    removed = len(vulns.list) - len(kept)
    vulns.list[:] = kept
    vulns.resync()
    if removed:
        _LOG.info("dropped %d of %d advisories not applicable to %s", removed, removed + vulns.count, binary_format)
    # TODO: filter report warnings by platform as well


def advisory_applies(
    binary_format: BinaryFormat,
    affected: Optional[Affected],
    apple: Optional[ApplePlatforms] = None,
) -> bool:
    if affected is None or not affected.os:
        return True
    return _runs_on_any(binary_format, affected.os, apple if apple is not None else default_apple_platforms())


def _runs_on_any(binary_format: BinaryFormat, os_list: Collection[str], apple: ApplePlatforms) -> bool:
    os_list = [str(os_name).lower() for os_name in os_list]
    if binary_format.kind is FormatKind.PE:
        return WINDOWS in os_list
    if binary_format.kind is FormatKind.MACHO:
        return any(os_name in apple for os_name in os_list)
    if binary_format.is_elf:
        # The registry has no OS family data, so anything that is neither
        # Windows nor Apple is assumed to load ELF.
        return any(os_name != WINDOWS and os_name not in apple for os_name in os_list)
    return True
