"""Typed view over audit reports (vulnerabilities and warnings)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence


@dataclass
class Affected:
    """Platforms and functions an advisory is known to affect."""

    os: List[str] = field(default_factory=list)
    arch: List[str] = field(default_factory=list)
    functions: Dict[str, List[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.os = [str(item).lower() for item in self.os]
        self.arch = [str(item).lower() for item in self.arch]

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["Affected"]:
        if data is None:
            return None
        return cls(
            os=list(data.get("os") or []),
            arch=list(data.get("arch") or []),
            functions={str(path): list(reqs or []) for path, reqs in (data.get("functions") or {}).items()},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"arch": list(self.arch), "os": list(self.os), "functions": dict(self.functions)}


@dataclass
class Vulnerability:
    advisory_id: str
    package_name: str
    package_version: Optional[str] = None
    title: str = ""
    url: Optional[str] = None
    cvss: Optional[str] = None
    informational: Optional[str] = None
    aliases: Sequence[str] = ()
    patched: Sequence[str] = ()
    affected: Optional[Affected] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Vulnerability":
        advisory = data.get("advisory") or {}
        package = data.get("package") or {}
        versions = data.get("versions") or {}
        return cls(
            advisory_id=str(advisory.get("id") or "UNKNOWN"),
            package_name=str(package.get("name") or advisory.get("package") or "unknown"),
            package_version=package.get("version"),
            title=str(advisory.get("title") or ""),
            url=advisory.get("url"),
            cvss=advisory.get("cvss"),
            informational=advisory.get("informational"),
            aliases=tuple(advisory.get("aliases") or ()),
            patched=tuple(versions.get("patched") or ()),
            affected=Affected.from_dict(data.get("affected")),
            raw=data,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload = dict(self.raw)
        payload.setdefault("advisory", {"id": self.advisory_id, "package": self.package_name, "title": self.title})
        payload.setdefault("package", {"name": self.package_name, "version": self.package_version})
        payload["affected"] = self.affected.to_dict() if self.affected is not None else None
        return payload


@dataclass
class VulnerabilityInfo:
    """Vulnerability section; ``count`` and ``found`` mirror ``list``."""

    found: bool = False
    count: int = 0
    list: List[Vulnerability] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "VulnerabilityInfo":
        data = data or {}
        entries: List[Vulnerability] = []
        for index, item in enumerate(data.get("list") or []):
            if not isinstance(item, dict):
                raise TypeError(f"vulnerability #{index} is not an object")
            entries.append(Vulnerability.from_dict(item))
        count = int(data["count"]) if "count" in data else len(entries)
        found = bool(data["found"]) if "found" in data else count != 0
        return cls(found=found, count=count, list=entries)

    @classmethod
    def of(cls, vulnerabilities: Sequence[Vulnerability]) -> "VulnerabilityInfo":
        entries = list(vulnerabilities)
        return cls(found=bool(entries), count=len(entries), list=entries)

    def resync(self) -> None:
        self.count = len(self.list)
        self.found = self.count != 0

    def to_dict(self) -> Dict[str, Any]:
        return {"found": self.found, "count": self.count, "list": [item.to_dict() for item in self.list]}


@dataclass
class Report:
    vulnerabilities: VulnerabilityInfo = field(default_factory=VulnerabilityInfo)
    warnings: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Report":
        warnings_raw = data.get("warnings") or {}
        warnings = {str(kind): list(entries or []) for kind, entries in warnings_raw.items()}
        return cls(
            vulnerabilities=VulnerabilityInfo.from_dict(data.get("vulnerabilities")),
            warnings=warnings,
            raw=data,
        )

    @property
    def warning_count(self) -> int:
        return sum(len(entries) for entries in self.warnings.values())

    def to_dict(self) -> Dict[str, Any]:
        payload = dict(self.raw)
        payload["vulnerabilities"] = self.vulnerabilities.to_dict()
        payload["warnings"] = {kind: list(entries) for kind, entries in self.warnings.items()}
        return payload
