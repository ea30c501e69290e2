"""Executable container format classification."""

from __future__ import annotations

import pathlib
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from binaudit.core.errors import Error, ErrorKind

HEADER_BYTES = 64
MIN_HEADER_BYTES = 8

ELF_MAGIC = b"\x7fELF"
PE_MAGIC = b"MZ"
MACHO_MAGICS = (
    b"\xca\xfe\xba\xbe",
    b"\xca\xfe\xba\xbf",
    b"\xfe\xed\xfa\xce",
    b"\xfe\xed\xfa\xcf",
    b"\xce\xfa\xed\xfe",
    b"\xcf\xfa\xed\xfe",
)


class FormatKind(str, Enum):
    PE = "pe"
    MACHO = "macho"
    ELF32 = "elf32"
    ELF64 = "elf64"
    UNKNOWN = "unknown"


class ByteOrder(str, Enum):
    LITTLE = "little"
    BIG = "big"


@dataclass(frozen=True)
class BinaryFormat:
    """Container format of a binary. ``byte_order`` is only set for ELF."""

    kind: FormatKind
    byte_order: Optional[ByteOrder] = None

    @property
    def is_elf(self) -> bool:
        return self.kind in (FormatKind.ELF32, FormatKind.ELF64)

    def __str__(self) -> str:
        if self.byte_order is not None:
            return f"{self.kind.value}-{self.byte_order.value}"
        return self.kind.value


PE = BinaryFormat(FormatKind.PE)
MACHO = BinaryFormat(FormatKind.MACHO)
UNKNOWN = BinaryFormat(FormatKind.UNKNOWN)


def elf32(byte_order: ByteOrder = ByteOrder.LITTLE) -> BinaryFormat:
    return BinaryFormat(FormatKind.ELF32, byte_order)


def elf64(byte_order: ByteOrder = ByteOrder.LITTLE) -> BinaryFormat:
    return BinaryFormat(FormatKind.ELF64, byte_order)


def detect_format(data: bytes) -> BinaryFormat:
    """Classify *data* by its header magic."""

    if len(data) < MIN_HEADER_BYTES:
        return UNKNOWN
    if data.startswith(ELF_MAGIC):
        return _detect_elf(data)
    if data.startswith(PE_MAGIC):
        return PE
    if any(data.startswith(magic) for magic in MACHO_MAGICS):
        return MACHO
    return UNKNOWN


def _detect_elf(data: bytes) -> BinaryFormat:
    elf_class, elf_data = data[4], data[5]
    if elf_data == 1:
        order = ByteOrder.LITTLE
    elif elf_data == 2:
        order = ByteOrder.BIG
    else:
        return UNKNOWN
    if elf_class == 1:
        return elf32(order)
    if elf_class == 2:
        return elf64(order)
    return UNKNOWN


def detect_file(path: pathlib.Path) -> BinaryFormat:
    try:
        with path.open("rb") as handle:
            header = handle.read(HEADER_BYTES)
    except OSError as exc:
        raise Error.from_exception(exc) from exc
    return detect_format(header)


def parse_format_name(name: str) -> BinaryFormat:
    """Map a format name such as ``elf64`` or ``pe`` to a :class:`BinaryFormat`."""

    try:
        kind = FormatKind(name.strip().lower())
    except ValueError as exc:
        choices = ", ".join(item.value for item in FormatKind)
        raise Error(ErrorKind.BAD_PARAM, f"unknown binary format {name!r} (expected one of {choices})") from exc
    if kind is FormatKind.ELF32:
        return elf32()
    if kind is FormatKind.ELF64:
        return elf64()
    return BinaryFormat(kind)
