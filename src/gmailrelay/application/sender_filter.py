"""Sender allow-list filtering."""

from __future__ import annotations

import re
from typing import Iterable

_ANGLE_ADDR = re.compile(r"<(.+?)>")


def extract_bare_address(from_address: str) -> str:
    """Extract the address from 'Name <email@domain.com>' format.

    A value without angle brackets is taken as the address itself.
    """
    match = _ANGLE_ADDR.search(from_address or "")
    addr = match.group(1) if match else (from_address or "")
    return addr.strip().lower()


def parse_allow_list(value: str | Iterable[str] | None) -> frozenset[str]:
    """Parse a comma-separated (or already split) list of allowed senders."""
    if not value:
        return frozenset()
    items = value.split(",") if isinstance(value, str) else value
    return frozenset(s.strip().lower() for s in items if s and s.strip())


def is_allowed(from_address: str, allow_list: Iterable[str]) -> bool:
    """Check whether a sender may trigger delivery.

    An empty allow-list allows everyone. Matching is on the full address,
    case-insensitive; there is no domain-only matching.
    """
    allowed = parse_allow_list(allow_list)
    if not allowed:
        return True
    return extract_bare_address(from_address) in allowed
