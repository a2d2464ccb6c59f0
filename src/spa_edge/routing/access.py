"""Client IP allow-list.

Entries are exact IPs or literal string prefixes such as ``192.168.1.``.
There is no CIDR parsing and no delimiter awareness: ``192.168.1.2`` also
admits ``192.168.1.23``. An empty or all-blank list disables the check, and
a blank entry inside a non-empty list is an empty prefix that admits every
address.
"""

from __future__ import annotations

from typing import Iterable


def is_open(allow_list: Iterable[str]) -> bool:
    """True when no entry carries any content, i.e. access is unrestricted."""
    return not any(entry.strip() for entry in allow_list)


def is_allowed(allow_list: Iterable[str], client_ip: str) -> bool:
    entries = tuple(allow_list)
    if is_open(entries):
        return True
    return any(
        entry == client_ip or client_ip.startswith(entry.strip())
        for entry in entries
    )


class AccessGuard:
    """Allow-list bound once at startup; safe to share across requests."""

    def __init__(self, allow_list: Iterable[str] = ()) -> None:
        self._entries: tuple[str, ...] = tuple(allow_list)

    @property
    def entries(self) -> tuple[str, ...]:
        return self._entries

    @property
    def is_open(self) -> bool:
        return is_open(self._entries)

    def allows(self, client_ip: str) -> bool:
        return is_allowed(self._entries, client_ip)
