"""
Process memory helpers for progress reporting.
"""

import psutil

_UNITS = ["B", "KB", "MB", "GB", "TB"]


def format_bytes(num_bytes: float) -> str:
    """Format a byte count with two decimals, e.g. 1536 -> '1.50 KB'."""
    size = float(num_bytes)
    unit_index = 0
    while size >= 1024 and unit_index < len(_UNITS) - 1:
        size /= 1024
        unit_index += 1
    return f"{size:.2f} {_UNITS[unit_index]}"


def get_rss_bytes() -> int:
    """Resident set size of the current process."""
    return psutil.Process().memory_info().rss


def get_memory_usage() -> str:
    """Human-readable memory line for logs."""
    info = psutil.Process().memory_info()
    return f"Memory Usage: RSS: {format_bytes(info.rss)} | VMS: {format_bytes(info.vms)}"
