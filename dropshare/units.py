"""Human-readable byte sizes for log lines."""

_UNITS = (
    ("TiB", 1024 ** 4),
    ("GiB", 1024 ** 3),
    ("MiB", 1024 ** 2),
    ("KiB", 1024),
)


def format_size(size: int) -> str:
    """
    Format a byte count with 1024-based units, e.g. "512 B" or "2.50 MiB".
    """
    size = int(size)
    for unit, factor in _UNITS:
        if size >= factor:
            return f"{size / factor:.2f} {unit}"
    return f"{size} B"
