"""Builder objects for dataclasses.

Decorating a class with :func:`builder` gives it a ``builder()`` factory that
returns a ``<Name>Builder`` object. The builder has one chainable setter per
field and a ``build()`` method that creates the instance.

* A field annotated ``Optional[T]`` (or ``T | None``) need not be set; it
  builds as ``None`` when left out.
* A ``list[T]`` field whose metadata holds ``{"builder": {"each": "name"}}``
  gets a ``name(item)`` method that appends one item at a time, in place of
  the whole-value setter, and builds as an empty list when left out.
* Every other field must be set before ``build()``.

Annotations are examined as written. String annotations, such as those left
by postponed evaluation, are recognised by their text.
"""

from __future__ import annotations

import dataclasses
import enum
import re
import types
import typing
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

EACH_USAGE = 'expected `builder(each = "...")`'

_UNION_ORIGINS = (typing.Union, types.UnionType)
_UNSET = object()
_OPENERS = "[("
_CLOSERS = "])"
_SUBSCRIPT = re.compile(r"(?:typing\.)?(\w+)\[(.*)\]", re.S)


class BuilderDefinitionError(TypeError):
    """The decorated class or one of its fields cannot have a builder."""


class MissingFieldError(ValueError):
    """``build()`` was called before a required field was set."""

    def __init__(self, field: str):
        super().__init__(f"field not set: {field}")
        self.field = field


def _split_top_level(text: str, separator: str) -> List[str]:
    """Split ``text`` on ``separator`` where it is not inside brackets."""
    parts = []
    current = []
    depth = 0
    for char in text:
        if char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth -= 1
        if char == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    parts.append("".join(current).strip())
    return parts


def _single_non_none(parts: List[str]) -> Optional[str]:
    if len(parts) != 2:
        return None
    others = [part for part in parts if part != "None"]
    return others[0] if len(others) == 1 else None


def _inner_from_text(text: str, outer: Any) -> Optional[str]:
    text = text.strip()
    if outer is typing.Optional:
        union_parts = _split_top_level(text, "|")
        if len(union_parts) > 1:
            return _single_non_none(union_parts)
        match = _SUBSCRIPT.fullmatch(text)
        if match is None:
            return None
        name, body = match.groups()
        args = _split_top_level(body, ",")
        if name == "Optional":
            return args[0] if len(args) == 1 else None
        if name == "Union":
            return _single_non_none(args)
        return None
    outer_name = getattr(outer, "__name__", None)
    if outer_name is None:
        return None
    match = _SUBSCRIPT.fullmatch(text)
    if match is None:
        return None
    name, body = match.groups()
    if name not in {outer_name, outer_name.capitalize()}:
        return None
    args = _split_top_level(body, ",")
    return args[0] if len(args) == 1 else None


def extract_inner_type(annotation: Any, outer: Any) -> Any:
    """Return ``T`` if ``annotation`` is ``outer[T]``, otherwise ``None``.

    ``outer`` is a generic such as ``list``, or ``typing.Optional``, which
    also matches ``Union[T, None]`` and ``T | None``.
    """
    if isinstance(annotation, str):
        return _inner_from_text(annotation, outer)
    origin = typing.get_origin(annotation)
    args = typing.get_args(annotation)
    if outer is typing.Optional:
        if origin not in _UNION_ORIGINS or len(args) != 2:
            return None
        others = [arg for arg in args if arg is not type(None)]
        if len(others) != 1:
            return None
        return others[0]
    if origin is None or origin is not outer:
        return None
    if len(args) != 1:
        return None
    return args[0]


def extract_each_name(metadata: Mapping[str, Any]) -> Optional[str]:
    """Read the ``each`` method name from a field's ``builder`` metadata."""
    options = metadata.get("builder") if metadata else None
    if options is None:
        return None
    if not isinstance(options, Mapping):
        raise BuilderDefinitionError(EACH_USAGE)
    each_name = None
    for key, value in options.items():
        if key != "each":
            raise BuilderDefinitionError(EACH_USAGE)
        if not isinstance(value, str):
            raise BuilderDefinitionError("expected string literal")
        if not value.isidentifier():
            raise BuilderDefinitionError(f"`{value}` is not a valid method name")
        each_name = value
    return each_name


class FieldKind(enum.Enum):
    """How a field is set on the builder and filled in by ``build()``."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    REPEATED = "repeated"


@dataclass(frozen=True)
class FieldSpec:
    """One field of the built class, as the builder sees it."""

    name: str
    annotation: Any
    kind: FieldKind = FieldKind.REQUIRED
    inner: Any = None
    each: Optional[str] = None

    @classmethod
    def from_field(cls, field: Any) -> "FieldSpec":
        """Classify a field given its ``name``, ``type`` and ``metadata``."""
        each_name = extract_each_name(field.metadata)
        if each_name is not None:
            inner = extract_inner_type(field.type, list)
            if inner is not None:
                return cls(field.name, field.type, FieldKind.REPEATED, inner, each_name)
        inner = extract_inner_type(field.type, typing.Optional)
        if inner is not None:
            return cls(field.name, field.type, FieldKind.OPTIONAL, inner)
        return cls(field.name, field.type)

    @property
    def setter_name(self) -> str:
        """Name of the builder method that sets this field."""
        if self.kind is FieldKind.REPEATED:
            return self.each
        return self.name

    def initial(self) -> Any:
        """The builder's starting value for this field."""
        if self.kind is FieldKind.REPEATED:
            return []
        if self.kind is FieldKind.OPTIONAL:
            return None
        return _UNSET


def _check_class(cls: Any) -> None:
    if not isinstance(cls, type):
        raise BuilderDefinitionError("expected class")
    if issubclass(cls, enum.Enum):
        raise BuilderDefinitionError("expected class, not enum")


def extract_fields(cls: Any) -> List[FieldSpec]:
    """Describe the constructor fields of a dataclass."""
    _check_class(cls)
    if not dataclasses.is_dataclass(cls):
        raise BuilderDefinitionError("expected dataclass")
    return [FieldSpec.from_field(field) for field in dataclasses.fields(cls) if field.init]


class _BuilderBase:
    _target: type
    _specs: tuple

    def __init__(self) -> None:
        self._values: Dict[str, Any] = {spec.name: spec.initial() for spec in self._specs}

    def build(self):
        """Create the target instance from the values set so far."""
        kwargs = {}
        for spec in self._specs:
            value = self._values[spec.name]
            if spec.kind is FieldKind.REQUIRED and value is _UNSET:
                raise MissingFieldError(spec.name)
            kwargs[spec.name] = list(value) if spec.kind is FieldKind.REPEATED else value
        return self._target(**kwargs)

    def __repr__(self) -> str:
        shown = ", ".join(
            f"{name}={'<unset>' if value is _UNSET else repr(value)}"
            for name, value in self._values.items()
        )
        return f"{type(self).__name__}({shown})"


def _make_setter(spec: FieldSpec):
    if spec.kind is FieldKind.REPEATED:

        def setter(self, value):
            self._values[spec.name].append(value)
            return self

        setter.__doc__ = f"Append one item to `{spec.name}`."
    else:

        def setter(self, value):
            self._values[spec.name] = value
            return self

        setter.__doc__ = f"Set `{spec.name}`."
    setter.__name__ = spec.setter_name
    return setter


def builder(cls):
    """Give ``cls`` a ``builder()`` factory; plain classes become dataclasses."""
    _check_class(cls)
    if not dataclasses.is_dataclass(cls):
        cls = dataclasses.dataclass(cls)
    specs = extract_fields(cls)

    method_names = ["build"] + [spec.setter_name for spec in specs]
    seen = set()
    for name in method_names:
        if name in seen:
            raise BuilderDefinitionError(f"duplicate builder method `{name}`")
        seen.add(name)

    builder_name = f"{cls.__name__}Builder"
    namespace: Dict[str, Any] = {
        "_target": cls,
        "_specs": tuple(specs),
        "__module__": cls.__module__,
        "__qualname__": f"{cls.__qualname__}Builder",
        "__doc__": f"Step-by-step construction of {cls.__name__}.",
    }
    for spec in specs:
        namespace[spec.setter_name] = _make_setter(spec)
    builder_cls = type(builder_name, (_BuilderBase,), namespace)
    cls.builder = staticmethod(builder_cls)
    return cls