# declmacros

Small helpers that act on declarations as they are defined: checks that
enum members and `match` cases are written in alphabetical order, and
generated builder objects for dataclasses. The package has no dependencies
beyond the standard library.

## Sortedness checks

`declmacros.sorted` checks that names are written in sorted order.

- `sorted_enum(item)` checks an `enum.Enum` subclass: every member name must
  sort after the names declared before it. It returns the class unchanged,
  so it can be used as a class decorator. Given anything that is not an enum
  class it raises `SortedError("expected enum or match expression")`.
- `check(func)` is a function decorator. It reads the function's source and
  checks every `match` statement marked with a `# sorted` comment, either on
  the line directly above the `match` or at the end of its first line. It
  returns the function unchanged, and raises `SortedError("expected function")`
  when the source of `func` cannot be obtained.
- `check_source(source)` does the same for a string holding the source of one
  function (it is dedented first). It returns the line numbers of the `match`
  statements it checked.

```python
import enum
from declmacros.sorted import check, sorted_enum

@sorted_enum
class Conference(enum.Enum):
    RUST_BELT_RUST = 1
    RUST_CONF = 2
    RUST_FEST = 3

@check
def region(conference):
    # sorted
    match conference:
        case Conference.RUST_FEST:
            return "Europe"
        case _:
            return "elsewhere"
```

Case patterns that can be compared are capture names, dotted value patterns
such as `Error.Fmt`, class patterns such as `Error.Io(e)` (compared by the
class path), and the wildcard `_`, which must come last. Any other pattern,
such as a sequence pattern, makes the whole `match` unsupported and is
reported as `unsupported by sorted`.

Each misplaced item is reported with the earliest item it should come before,
for example `SomethingFailed should sort before ThatFailed`. All problems are
collected into one `SortedError`; its `errors` attribute holds the individual
`SortingError` and `UnsupportedPatternError` objects, and its message lists
them one per line, prefixed with `line L, column C:` where a location is known.

The lower-level pieces live in `declmacros.sortcheck`:

- `Sortable.ident(name)`, `Sortable.path(segments)` and `Sortable.wildcard()`
  build comparable items; wildcards sort after everything else.
- `simplify_path(segments, leading_colon)` joins identifier segments with dots
  and raises `UnsupportedPatternError` for a leading colon, an empty path or a
  segment that is not an identifier.
- `check_sorting(items)` returns a list of `SortingError`, one per item that
  is out of order (empty when everything is sorted).

## Builders

`declmacros.builder.builder` is a class decorator. A plain class is turned
into a dataclass first. It adds a `builder()` factory to the class that
returns a `<Name>Builder` object with one chainable setter per field and a
`build()` method.

```python
from dataclasses import dataclass, field
from typing import Optional
from declmacros.builder import builder

@builder
@dataclass
class Command:
    executable: str
    args: list[str] = field(metadata={"builder": {"each": "arg"}})
    env: list[str] = field(metadata={"builder": {"each": "env"}})
    current_dir: Optional[str] = None

command = (
    Command.builder()
    .executable("cargo")
    .arg("build")
    .arg("--release")
    .build()
)
```

- Plain fields must be set before `build()`; otherwise it raises
  `MissingFieldError` (message `field not set: <name>`).
- `Optional[T]`, `Union[T, None]` and `T | None` fields may be left unset and
  build as `None`.
- `list[T]` fields whose metadata is `{"builder": {"each": "name"}}` get a
  `name(item)` method that appends one element at a time, in place of the
  whole-value setter, and build as an empty list when nothing was added.
- Annotations are examined as written; string annotations (for example under
  `from __future__ import annotations`) are recognised by their text.
- Only fields that take part in `__init__` are covered.

`BuilderDefinitionError` is raised when the decorator is applied to something
that is not a class, to an enum, when a `builder` metadata entry has a key
other than `each`, a value that is not a string or not a valid identifier, or
when two builder methods would share a name.

The helpers `extract_inner_type`, `extract_each_name`, `extract_fields`,
`FieldSpec` and `FieldKind` are available for inspecting how fields are
classified.

## What it does not do

This is a library only; it installs no command-line program. The order checks
run when a decorator is applied or `check_source` is called, not as a
standalone linter over files.

## Running the tests

```
pip install -e .[test]
pytest
```