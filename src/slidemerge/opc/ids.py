"""Monotonic identifier allocators.

Both allocators are seeded once from the identifiers already present and then
only ever count upward, so IDs handed out in one run never collide with each
other or with pre-existing ones.
"""

import re
from collections.abc import Iterable

_RID_PATTERN = re.compile(r"^rId(\d+)$")


class SlideIdAllocator:
    """Hands out slide IDs as ``max(existing, 0) + 1``, ``+2``, ..."""

    def __init__(self, existing_ids: Iterable[int] = ()):
        self._last = max(existing_ids, default=0)

    def next(self) -> int:
        self._last += 1
        return self._last


class RelationshipIdAllocator:
    """Allocates ``rIdN`` values unused within one relationship set.

    The counter starts at the largest numeric ``rIdN`` suffix plus one.
    Non-numeric IDs (``rIdX``, ``R3f2a``) are kept in the taken set so they
    are never reissued.
    """

    def __init__(self, existing_ids: Iterable[str] = ()):
        self._taken: set[str] = set()
        self._next = 1
        for rid in existing_ids:
            self.reserve(rid)

    def reserve(self, rid: str) -> None:
        """Mark ``rid`` as used, advancing the counter past it if numeric."""
        self._taken.add(rid)
        match = _RID_PATTERN.match(rid)
        if match:
            self._next = max(self._next, int(match.group(1)) + 1)

    def next(self) -> str:
        while f"rId{self._next}" in self._taken:
            self._next += 1
        rid = f"rId{self._next}"
        self._taken.add(rid)
        self._next += 1
        return rid
