from __future__ import annotations


def is_newer(candidate: str, current: str) -> bool:
    """Return True if `candidate` moves the watermark past `current`.

    Gmail history ids are decimal strings and compare numerically. Anything
    else is opaque, so only inequality counts as progress.
    """
    if candidate.isdigit() and current.isdigit():
        return int(candidate) > int(current)
    return candidate != current
