"""Ordering rules for enum members and match-case patterns."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

Location = Optional[Tuple[int, int]]

UNSUPPORTED_MESSAGE = "unsupported by sorted"


class UnsupportedPatternError(ValueError):
    """A pattern that cannot be compared by name."""

    def __init__(self, location: Location = None, message: str = UNSUPPORTED_MESSAGE):
        super().__init__(message)
        self.message = message
        self.location = location


def simplify_path(segments: Sequence[str], leading_colon: bool) -> str:
    """Join plain name segments into a dotted path, rejecting anything else."""
    if leading_colon:
        raise UnsupportedPatternError()
    parts = list(segments)
    if not parts:
        raise UnsupportedPatternError()
    for segment in parts:
        if not segment.isidentifier():
            raise UnsupportedPatternError()
    return ".".join(parts)


class SortableKind(enum.Enum):
    IDENT = "ident"
    PATH = "path"
    WILDCARD = "wildcard"


@dataclass(frozen=True, eq=False)
class Sortable:
    """A name whose position in a sequence is checked for order."""

    kind: SortableKind
    text: str
    location: Location = None

    @classmethod
    def ident(cls, name: str, location: Location = None) -> "Sortable":
        return cls(SortableKind.IDENT, name, location)

    @classmethod
    def path(cls, segments: Sequence[str], location: Location = None) -> "Sortable":
        return cls(SortableKind.PATH, simplify_path(segments, False), location)

    @classmethod
    def wildcard(cls, location: Location = None) -> "Sortable":
        return cls(SortableKind.WILDCARD, "", location)

    def _rank(self) -> Tuple[int, str]:
        if self.kind is SortableKind.WILDCARD:
            return (1, "")
        return (0, self.text)

    def __str__(self) -> str:
        if self.kind is SortableKind.WILDCARD:
            return "wildcard"
        return self.text

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Sortable):
            return NotImplemented
        if self.kind is not other.kind:
            return False
        return self.kind is SortableKind.WILDCARD or self.text == other.text

    def __hash__(self) -> int:
        return hash((self.kind, self.text))

    def __lt__(self, other: "Sortable") -> bool:
        if not isinstance(other, Sortable):
            return NotImplemented
        return self._rank() < other._rank()

    def __gt__(self, other: "Sortable") -> bool:
        if not isinstance(other, Sortable):
            return NotImplemented
        return self._rank() > other._rank()

    def __le__(self, other: "Sortable") -> bool:
        if not isinstance(other, Sortable):
            return NotImplemented
        return self._rank() <= other._rank()

    def __ge__(self, other: "Sortable") -> bool:
        if not isinstance(other, Sortable):
            return NotImplemented
        return self._rank() >= other._rank()


class SortingError(Exception):
    """An item that appears after something it should precede."""

    def __init__(self, item: Sortable, before: Sortable):
        self.item = item
        self.before = before
        self.location = item.location
        self.message = f"{item} should sort before {before}"
        super().__init__(self.message)


def check_sorting(items: Iterable[Sortable]) -> List[SortingError]:
    """Report every item that is out of order, naming the earliest item it should precede."""
    entries = list(items)
    goes_before: List[Optional[Sortable]] = [None] * len(entries)
    for i, earlier in enumerate(entries):
        for j, later in enumerate(entries[i + 1:], start=i + 1):
            if earlier > later:
                current = goes_before[j]
                if current is None or earlier < current:
                    goes_before[j] = earlier
    return [
        SortingError(item, before)
        for item, before in zip(entries, goes_before)
        if before is not None
    ]