import threading
from pathlib import Path

import pytest

from binaudit.core import platforms
from binaudit.core.errors import Error, ErrorKind
from binaudit.core.platforms import ApplePlatforms, Platform, PlatformRegistry, PlatformReq


def _registry() -> PlatformRegistry:
    return PlatformRegistry(
        [
            Platform("aarch64-apple-darwin", "aarch64", "macos", None, 1),
            Platform("aarch64-apple-ios", "aarch64", "ios", None, 2),
            Platform("x86_64-unknown-linux-gnu", "x86_64", "linux", "gnu", 1),
            Platform("x86_64-pc-windows-msvc", "x86_64", "windows", "msvc", 1),
        ]
    )


@pytest.mark.parametrize(
    "text,triple,expected",
    [
        ("*apple*", "aarch64-apple-ios", True),
        ("*apple*", "x86_64-unknown-linux-gnu", False),
        ("x86_64-*", "x86_64-pc-windows-msvc", True),
        ("*-msvc", "x86_64-pc-windows-msvc", True),
        ("*-msvc", "x86_64-pc-windows-gnu", False),
        ("x86_64-unknown-linux-gnu", "x86_64-unknown-linux-gnu", True),
        ("x86_64-unknown-linux-gnu", "x86_64-unknown-linux-musl", False),
        ("*", "anything-at-all", True),
    ],
)
def test_platform_req_matching(text, triple, expected):
    assert PlatformReq.parse(text).matches(triple) is expected


@pytest.mark.parametrize("text", ["", "**", "***", "x86*64", "*apple os*", "apple/*"])
def test_platform_req_rejects_malformed_patterns(text):
    with pytest.raises(Error) as excinfo:
        PlatformReq.parse(text)
    assert excinfo.value.kind is ErrorKind.BAD_PARAM


def test_registry_matching_and_find():
    registry = _registry()
    matches = list(registry.matching(PlatformReq.parse("*apple*")))
    assert [p.target_triple for p in matches] == ["aarch64-apple-darwin", "aarch64-apple-ios"]
    assert registry.find("x86_64-pc-windows-msvc").target_os == "windows"
    assert registry.find("riscv64-unknown-none") is None


def test_bundled_registry_contains_apple_and_windows_targets():
    registry = platforms.default_registry()
    assert len(registry) > 10
    oses = {p.target_os for p in registry}
    assert {"windows", "linux", "macos", "ios"} <= oses


def test_default_apple_set_covers_apple_oses_only():
    apple = platforms.apple_platforms()
    assert {"macos", "ios"} <= apple
    assert "linux" not in apple
    assert "windows" not in apple


def test_apple_set_is_cached(monkeypatch: pytest.MonkeyPatch):
    cache = ApplePlatforms(registry=_registry())
    calls = []
    original = cache._compute

    def counting_compute():
        calls.append(1)
        return original()

    monkeypatch.setattr(cache, "_compute", counting_compute)
    first = cache.get()
    second = cache.get()
    assert first == frozenset({"macos", "ios"})
    assert first is second
    assert len(calls) == 1
    assert "ios" in cache


def test_apple_set_concurrent_first_access():
    cache = ApplePlatforms(registry=_registry())
    results = []
    threads = [threading.Thread(target=lambda: results.append(cache.get())) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(results) == 8
    assert all(result is results[0] for result in results)


def test_apple_set_may_be_empty():
    registry = PlatformRegistry([Platform("x86_64-unknown-linux-gnu", "x86_64", "linux")])
    assert ApplePlatforms(registry=registry).get() == frozenset()


def test_malformed_apple_pattern_fails_fast():
    cache = ApplePlatforms(registry=_registry(), pattern="*ap*ple*")
    with pytest.raises(Error):
        cache.get()


def test_load_registry_from_yaml(tmp_path: Path):
    path = tmp_path / "platforms.yml"
    path.write_text(
        """
platforms:
  - {triple: x86_64-apple-darwin, arch: x86_64, os: MacOS, tier: 1}
  - {triple: x86_64-unknown-linux-gnu, arch: x86_64, os: linux, env: gnu}
""".strip()
    )
    registry = platforms.load_registry(path)
    assert len(registry) == 2
    darwin = registry.find("x86_64-apple-darwin")
    assert darwin.target_os == "macos"
    assert darwin.tier == 1
    assert registry.find("x86_64-unknown-linux-gnu").target_env == "gnu"


def test_load_registry_reports_missing_keys(tmp_path: Path):
    path = tmp_path / "platforms.yml"
    path.write_text("platforms:\n  - {triple: x86_64-apple-darwin}\n")
    with pytest.raises(Error) as excinfo:
        platforms.load_registry(path)
    assert excinfo.value.kind is ErrorKind.PARSE


def test_load_registry_reports_yaml_errors(tmp_path: Path):
    path = tmp_path / "platforms.yml"
    path.write_text("platforms: [unterminated\n")
    with pytest.raises(Error) as excinfo:
        platforms.load_registry(path)
    assert excinfo.value.kind is ErrorKind.PARSE


def test_load_registry_missing_file(tmp_path: Path):
    with pytest.raises(Error) as excinfo:
        platforms.load_registry(tmp_path / "absent.yml")
    assert excinfo.value.kind is ErrorKind.NOT_FOUND


def test_platform_os_is_normalised():
    platform = Platform("x86_64-apple-darwin", "x86_64", "MacOS")
    assert platform.target_os == "macos"
    registry = PlatformRegistry([platform, Platform("aarch64-apple-ios", "aarch64", "iOS")])
    assert ApplePlatforms(registry=registry).get() == frozenset({"macos", "ios"})
