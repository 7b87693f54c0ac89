from __future__ import annotations

_UNITS = ("B", "K", "M", "G", "T")


def format_size(size: int) -> str:
    value = float(size)
    for unit in _UNITS:
        if abs(value) < 1024:
            if unit == "B":
                return f"{int(value)}B"
            return f"{value:.2f}{unit}"
        value /= 1024.0
    return f"{value:.2f}P"
