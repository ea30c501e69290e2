"""Entry point for `python -m binaudit`."""

from __future__ import annotations

from binaudit import cli


def main(argv: list[str] | None = None) -> int:
    return cli.main(argv)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
