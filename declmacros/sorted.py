"""Checks that enum members and marked match statements are written in sorted order.

A ``match`` statement is marked for checking by a ``# sorted`` comment on the
line directly above it or at the end of its first line.
"""

from __future__ import annotations

import ast
import enum
import inspect
import io
import textwrap
import tokenize
from typing import Iterable, List, Sequence, Set

from .sortcheck import (
    Sortable,
    SortingError,
    UnsupportedPatternError,
    check_sorting,
)


class SortedError(Exception):
    """Raised when an item is not sorted or cannot be checked."""

    def __init__(self, message: str, errors: Iterable[Exception] = ()):
        super().__init__(message)
        self.message = message
        self.errors = list(errors)

    @classmethod
    def from_errors(cls, errors: Iterable[Exception]) -> "SortedError":
        collected = list(errors)
        return cls("\n".join(_describe(error) for error in collected), collected)


def _describe(error: Exception) -> str:
    location = getattr(error, "location", None)
    if location is None:
        return str(error)
    line, column = location
    return f"line {line}, column {column}: {error}"


def sorted_enum(item):
    """Return the enum unchanged if its members are in sorted order."""
    if not (isinstance(item, type) and issubclass(item, enum.Enum)):
        raise SortedError("expected enum or match expression")
    errors = check_sorting(Sortable.ident(name) for name in item.__members__)
    if errors:
        raise SortedError.from_errors(errors)
    return item


def _marked_lines(source: str) -> Set[int]:
    lines = source.splitlines()
    marked: Set[int] = set()
    for token in tokenize.generate_tokens(io.StringIO(source).readline):
        if token.type != tokenize.COMMENT or token.string[1:].strip() != "sorted":
            continue
        row = token.start[0]
        if lines[row - 1].lstrip().startswith("#"):
            marked.add(row + 1)
        else:
            marked.add(row)
    return marked


def _dotted_segments(node: ast.expr) -> Sequence[str]:
    segments: List[str] = []
    while isinstance(node, ast.Attribute):
        segments.append(node.attr)
        node = node.value
    if not isinstance(node, ast.Name):
        raise UnsupportedPatternError((node.lineno, node.col_offset))
    segments.append(node.id)
    return segments[::-1]


def _sortable(pattern: ast.pattern) -> Sortable:
    location = (pattern.lineno, pattern.col_offset)
    if isinstance(pattern, ast.MatchAs):
        if pattern.name is None:
            return Sortable.wildcard(location)
        return Sortable.ident(pattern.name, location)
    if isinstance(pattern, ast.MatchValue):
        return Sortable.path(_dotted_segments(pattern.value), location)
    if isinstance(pattern, ast.MatchClass):
        return Sortable.path(_dotted_segments(pattern.cls), location)
    raise UnsupportedPatternError(location)


class _MatchChecker(ast.NodeVisitor):
    def __init__(self, marked: Set[int]):
        self.marked = marked
        self.sorting_errors: List[SortingError] = []
        self.unsupported: List[UnsupportedPatternError] = []
        self.checked: List[int] = []

    def visit_Match(self, node: ast.Match) -> None:
        if node.lineno not in self.marked:
            return
        try:
            items = [_sortable(case.pattern) for case in node.cases]
        except UnsupportedPatternError as error:
            self.unsupported.append(error)
            return
        self.checked.append(node.lineno)
        self.sorting_errors.extend(check_sorting(items))


def check_source(source: str) -> List[int]:
    """Check the marked match statements in the source of one function.

    Returns the line numbers of the match statements that were checked.
    """
    text = textwrap.dedent(source)
    tree = ast.parse(text)
    if len(tree.body) != 1 or not isinstance(
        tree.body[0], (ast.FunctionDef, ast.AsyncFunctionDef)
    ):
        raise SortedError("expected function")
    checker = _MatchChecker(_marked_lines(text))
    checker.visit(tree.body[0])
    errors: List[Exception] = [*checker.sorting_errors, *checker.unsupported]
    if errors:
        raise SortedError.from_errors(errors)
    return checker.checked


def check(func):
    """Return the function unchanged if its marked match statements are sorted."""
    try:
        source = inspect.getsource(func)
    except TypeError as error:
        raise SortedError("expected function") from error
    check_source(source)
    return func