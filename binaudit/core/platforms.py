"""Platform registry, wildcard platform requirements and the Apple OS cache."""

from __future__ import annotations

import functools
import logging
import pathlib
import re
import threading
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional

import yaml

from binaudit.core.errors import Error, ErrorKind

_LOG = logging.getLogger(__name__)

WINDOWS = "windows"
APPLE_PATTERN = "*apple*"

BUNDLED_REGISTRY = pathlib.Path(__file__).resolve().parent.parent / "data" / "platforms.yml"

_REQ_CHARS = re.compile(r"^[A-Za-z0-9_.\-]+$")


@dataclass(frozen=True)
class Platform:
    """A compilation target known to the registry."""

    target_triple: str
    target_arch: str
    target_os: str
    target_env: Optional[str] = None
    tier: int = 3

    def __post_init__(self) -> None:
        object.__setattr__(self, "target_os", str(self.target_os).lower())


@dataclass(frozen=True)
class PlatformReq:
    """Target triple requirement, optionally with a leading and/or trailing ``*``."""

    text: str
    prefix_wildcard: bool
    suffix_wildcard: bool
    body: str

    @classmethod
    def parse(cls, text: str) -> "PlatformReq":
        if text == "*":
            return cls(text=text, prefix_wildcard=True, suffix_wildcard=True, body="")
        prefix = text.startswith("*")
        suffix = len(text) > 1 and text.endswith("*")
        body = text[int(prefix): len(text) - int(suffix)]
        if not body or not _REQ_CHARS.match(body):
            raise Error(ErrorKind.BAD_PARAM, f"malformed platform requirement: {text!r}")
        return cls(text=text, prefix_wildcard=prefix, suffix_wildcard=suffix, body=body)

    def matches(self, target_triple: str) -> bool:
        if self.prefix_wildcard and self.suffix_wildcard:
            return self.body in target_triple
        if self.prefix_wildcard:
            return target_triple.endswith(self.body)
        if self.suffix_wildcard:
            return target_triple.startswith(self.body)
        return target_triple == self.body

    def __str__(self) -> str:
        return self.text


class PlatformRegistry:
    """Ordered collection of platforms keyed by target triple."""

    def __init__(self, platforms: Iterable[Platform]) -> None:
        self._platforms: List[Platform] = []
        self._by_triple: Dict[str, Platform] = {}
        for platform in platforms:
            if platform.target_triple in self._by_triple:
                continue
            self._by_triple[platform.target_triple] = platform
            self._platforms.append(platform)

    def matching(self, req: PlatformReq) -> Iterator[Platform]:
        for platform in self._platforms:
            if req.matches(platform.target_triple):
                yield platform

    def find(self, target_triple: str) -> Optional[Platform]:
        return self._by_triple.get(target_triple)

    def __iter__(self) -> Iterator[Platform]:
        return iter(self._platforms)

    def __len__(self) -> int:
        return len(self._platforms)


def load_registry(path: pathlib.Path) -> PlatformRegistry:
    """Load a registry from a YAML file holding a ``platforms`` list."""

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        raise Error.from_exception(exc) from exc
    if not isinstance(data, dict):
        raise Error(ErrorKind.PARSE, f"{path}: expected a mapping with a 'platforms' key")
    entries = data.get("platforms") or []
    platforms: List[Platform] = []
    for index, entry in enumerate(entries):
        platforms.append(_platform_from_entry(path, index, entry))
    _LOG.debug("loaded %d platforms from %s", len(platforms), path)
    return PlatformRegistry(platforms)


@functools.lru_cache(maxsize=1)
def default_registry() -> PlatformRegistry:
    return load_registry(BUNDLED_REGISTRY)


def _platform_from_entry(path: pathlib.Path, index: int, entry: object) -> Platform:
    if not isinstance(entry, dict):
        raise Error(ErrorKind.PARSE, f"{path}: platform #{index} is not a mapping")
    missing = [key for key in ("triple", "arch", "os") if not entry.get(key)]
    if missing:
        raise Error(ErrorKind.PARSE, f"{path}: platform #{index} missing {', '.join(missing)}")
    env = entry.get("env")
    try:
        tier = int(entry.get("tier", 3))
    except (TypeError, ValueError) as exc:
        raise Error(ErrorKind.PARSE, f"{path}: platform #{index} has invalid tier") from exc
    return Platform(
        target_triple=str(entry["triple"]),
        target_arch=str(entry["arch"]),
        target_os=str(entry["os"]),
        target_env=str(env) if env else None,
        tier=tier,
    )


class ApplePlatforms:
    """Lazily computed set of Apple-family OS identifiers.

    The set is derived once from the registry platforms matching
    :data:`APPLE_PATTERN` and reused afterwards. A malformed pattern raises
    :class:`~binaudit.core.errors.Error` on first access and is never cached.
    """

    def __init__(self, registry: Optional[PlatformRegistry] = None, pattern: str = APPLE_PATTERN) -> None:
        self._registry = registry
        self._pattern = pattern
        self._lock = threading.Lock()
        self._value: Optional[FrozenSet[str]] = None

    def get(self) -> FrozenSet[str]:
        value = self._value
        if value is not None:
            return value
        with self._lock:
            if self._value is None:
                self._value = self._compute()
            return self._value

    def __contains__(self, os_name: object) -> bool:
        return os_name in self.get()

    def _compute(self) -> FrozenSet[str]:
        req = PlatformReq.parse(self._pattern)
        registry = self._registry if self._registry is not None else default_registry()
        oses = frozenset(platform.target_os for platform in registry.matching(req))
        _LOG.debug("apple platforms for %s: %s", req, ", ".join(sorted(oses)) or "(none)")
        return oses


_DEFAULT_APPLE = ApplePlatforms()


def apple_platforms() -> FrozenSet[str]:
    """Return the process-wide Apple OS set."""

    return _DEFAULT_APPLE.get()


def default_apple_platforms() -> ApplePlatforms:
    return _DEFAULT_APPLE
