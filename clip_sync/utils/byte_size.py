# clip_sync/utils/byte_size.py
"""Byte-size helpers used by the quota checks and log lines."""

MB = 1024 * 1024

_UNITS = ("B", "KB", "MB", "GB", "TB")


def megabytes(value: float) -> int:
    """Convert a size in MB to bytes."""
    return int(value * MB)


def format_bytes(size: float) -> str:
    """Human readable size, e.g. 10485760 -> '10.0 MB'."""
    if size == float("inf"):
        return "unlimited"
    value = float(size)
    for unit in _UNITS:
        if abs(value) < 1024 or unit == _UNITS[-1]:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} {_UNITS[-1]}"
