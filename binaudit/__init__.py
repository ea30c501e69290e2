"""Filter audit reports down to advisories applicable to a binary."""

__version__ = "0.1.0"
