"""Error types shared by the binaudit modules."""

from __future__ import annotations

import json
from enum import Enum

import yaml


class ErrorKind(Enum):
    """Kinds of errors surfaced to callers."""

    BAD_PARAM = "bad parameter"
    IO = "I/O operation failed"
    NOT_FOUND = "not found"
    LOCK_TIMEOUT = "unable to acquire filesystem lock"
    PARSE = "parse error"
    REGISTRY = "registry"
    REPO = "git operation failed"
    VERSION = "bad version"

    def __str__(self) -> str:
        return self.value


class Error(Exception):
    """Error carrying an :class:`ErrorKind` and a message."""

    def __init__(self, kind: ErrorKind, msg: object) -> None:
        super().__init__(str(msg))
        self.kind = kind
        self.msg = str(msg)

    def __str__(self) -> str:
        return f"{self.kind}: {self.msg}"

    @classmethod
    def from_exception(cls, exc: BaseException) -> "Error":
        if isinstance(exc, Error):
            return exc
        return cls(_kind_for(exc), exc)


def _kind_for(exc: BaseException) -> ErrorKind:
    # JSONDecodeError and UnicodeDecodeError are ValueError subclasses
    if isinstance(exc, (json.JSONDecodeError, UnicodeDecodeError, yaml.YAMLError)):
        return ErrorKind.PARSE
    if isinstance(exc, TimeoutError):
        return ErrorKind.LOCK_TIMEOUT
    if isinstance(exc, FileNotFoundError):
        return ErrorKind.NOT_FOUND
    if isinstance(exc, OSError):
        return ErrorKind.IO
    if isinstance(exc, ValueError):
        return ErrorKind.BAD_PARAM
    return ErrorKind.IO
