"""Core utilities for binary advisory filtering."""

__all__ = [
    "binary_filter",
    "binary_format",
    "errors",
    "ignore_rules",
    "platforms",
    "report",
    "report_loader",
    "reporter",
    "s3util",
]
