"""Human-friendly formatting for wizard output.

Thin facade over the `humanize` library.
"""

import humanize


def format_bytes(n: int | float) -> str:
    """Format byte count as human-readable string, e.g. '1.5 MiB'."""
    if n <= 0:
        return "0 Bytes"
    return humanize.naturalsize(n, binary=True)


def format_progress(downloaded: int, total: int, percent: int) -> str:
    """Progress line for a transfer, e.g. '45%  12.3 MiB / 27.3 MiB'.

    The size part is omitted while the total is unknown.
    """
    if total > 0:
        return f"{percent:3d}%  {format_bytes(downloaded)} / {format_bytes(total)}"
    return f"{percent:3d}%  {format_bytes(downloaded)}"
