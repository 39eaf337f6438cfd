import dataclasses
import enum
import typing
from dataclasses import dataclass, field
from typing import List, Optional

import pytest

from declmacros.builder import (
    BuilderDefinitionError,
    FieldKind,
    FieldSpec,
    MissingFieldError,
    builder,
    extract_each_name,
    extract_fields,
    extract_inner_type,
)


@dataclass
class Command:
    executable: str
    args: List[str]
    env: List[str]
    current_dir: str


@dataclass
class OptionalCommand:
    executable: str
    args: List[str]
    env: List[str]
    current_dir: Optional[str]


@dataclass
class RepeatedCommand:
    executable: str
    args: List[str] = field(metadata={"builder": {"each": "arg"}})
    env: List[str] = field(metadata={"builder": {"each": "env"}})
    current_dir: Optional[str] = None


def test_parse_produces_builder_factory():
    cls = builder(Command)
    assert cls is Command
    assert callable(cls.builder)
    assert [spec.name for spec in extract_fields(Command)] == [
        "executable",
        "args",
        "env",
        "current_dir",
    ]


def test_create_builder_named_after_class():
    b = builder(Command).builder()
    assert type(b).__name__ == "CommandBuilder"


def test_call_setters_return_builder():
    b = builder(Command).builder()
    assert b.executable("cargo") is b
    assert b.args(["build", "--release"]) is b
    assert b.env([]) is b
    assert b.current_dir("..") is b


def test_call_build():
    b = builder(Command).builder()
    b.executable("cargo")
    b.args(["build", "--release"])
    b.env([])
    b.current_dir("..")
    command = b.build()
    assert command.executable == "cargo"
    assert command == Command("cargo", ["build", "--release"], [], "..")


def test_build_missing_field_raises():
    b = builder(Command).builder().executable("cargo").args([]).env([])
    with pytest.raises(MissingFieldError) as info:
        b.build()
    assert info.value.field == "current_dir"
    assert "field not set" in str(info.value)


def test_method_chaining():
    command = (
        builder(Command)
        .builder()
        .executable("cargo")
        .args(["build", "--release"])
        .env([])
        .current_dir("..")
        .build()
    )
    assert command.executable == "cargo"


def test_optional_field_may_be_left_out():
    cls = builder(OptionalCommand)
    command = cls.builder().executable("cargo").args(["build", "--release"]).env([]).build()
    assert command.current_dir is None

    command = (
        cls.builder()
        .executable("cargo")
        .args(["build", "--release"])
        .env([])
        .current_dir("..")
        .build()
    )
    assert command.current_dir == ".."


def test_repeated_field():
    command = (
        builder(RepeatedCommand)
        .builder()
        .executable("cargo")
        .arg("build")
        .arg("--release")
        .build()
    )
    assert command.executable == "cargo"
    assert command.args == ["build", "--release"]
    assert command.env == []
    assert command.current_dir is None


def test_repeated_field_has_no_whole_value_setter():
    b = builder(RepeatedCommand).builder()
    assert not hasattr(b, "args")
    assert b.env("PATH=/bin") is b
    assert b.executable("sh").build().env == ["PATH=/bin"]


def test_build_copies_lists():
    b = builder(RepeatedCommand).builder().executable("cargo").arg("a")
    first = b.build()
    b.arg("b")
    second = b.build()
    assert first.args == ["a"]
    assert second.args == ["a", "b"]


def test_unrecognized_attribute():
    @dataclass
    class Bad:
        executable: str
        args: List[str] = field(metadata={"builder": {"eac": "arg"}})

    with pytest.raises(BuilderDefinitionError, match='expected `builder\\(each = "..."\\)`'):
        builder(Bad)


def test_redefined_prelude_names_do_not_matter():
    Option = Some = Result = Box = None  # noqa: F841

    @dataclass
    class Plain:
        executable: str

    built = builder(Plain).builder().executable("cargo").build()
    assert built.executable == "cargo"


def test_unresolvable_annotations_still_build():
    @dataclass
    class Loose:
        executable: "Unresolved"  # noqa: F821

    cls = builder(Loose)
    assert cls.builder().executable("x").build().executable == "x"
    with pytest.raises(MissingFieldError):
        cls.builder().build()


def test_string_annotations_are_classified():
    @builder
    @dataclass
    class Textual:
        name: "str"
        tags: "List[str]" = field(metadata={"builder": {"each": "tag"}})
        note: "Optional[str]" = None

    specs = {spec.name: spec for spec in extract_fields(Textual)}
    assert specs["name"].kind is FieldKind.REQUIRED
    assert specs["tags"].kind is FieldKind.REPEATED
    assert specs["tags"].inner == "str"
    assert specs["note"].kind is FieldKind.OPTIONAL
    built = Textual.builder().name("n").tag("a").tag("b").build()
    assert built.tags == ["a", "b"]
    assert built.note is None


def test_plain_class_becomes_dataclass():
    class Point:
        x: int
        y: int

    cls = builder(Point)
    assert dataclasses.is_dataclass(cls)
    point = cls.builder().x(1).y(2).build()
    assert (point.x, point.y) == (1, 2)


def test_enum_and_non_class_rejected():
    class Colour(enum.Enum):
        RED = 1

    with pytest.raises(BuilderDefinitionError, match="enum"):
        builder(Colour)
    with pytest.raises(BuilderDefinitionError, match="expected class"):
        builder(42)


def test_extract_fields_requires_dataclass():
    class Plain:
        x: int

    with pytest.raises(BuilderDefinitionError, match="expected dataclass"):
        extract_fields(Plain)


def test_non_init_fields_skipped():
    @dataclass
    class Counter:
        name: str
        count: int = field(default=0, init=False)

    cls = builder(Counter)
    built = cls.builder().name("c").build()
    assert built.name == "c"
    assert built.count == 0


def test_duplicate_method_names_rejected():
    @dataclass
    class Clash:
        items: List[str] = field(metadata={"builder": {"each": "build"}})

    with pytest.raises(BuilderDefinitionError, match="duplicate"):
        builder(Clash)


@pytest.mark.parametrize(
    "annotation, outer, expected",
    [
        (List[str], list, str),
        (list[int], list, int),
        (Optional[int], typing.Optional, int),
        (int | None, typing.Optional, int),
        (typing.Union[int, str], typing.Optional, None),
        (typing.Union[int, str, None], typing.Optional, None),
        (typing.Dict[str, int], list, None),
        (str, list, None),
        (list, list, None),
        (Optional[List[str]], list, None),
        ("List[str]", list, "str"),
        ("list[Dict[str, int]]", list, "Dict[str, int]"),
        ("Optional[int]", typing.Optional, "int"),
        ("int | None", typing.Optional, "int"),
        ("Union[None, str]", typing.Optional, "str"),
        ("Union[int, str]", typing.Optional, None),
        ("Dict[str, int]", list, None),
        ("str", list, None),
    ],
)
def test_extract_inner_type(annotation, outer, expected):
    assert extract_inner_type(annotation, outer) == expected


def test_extract_each_name():
    assert extract_each_name({}) is None
    assert extract_each_name({"other": 1}) is None
    assert extract_each_name({"builder": {"each": "arg"}}) == "arg"
    assert extract_each_name({"builder": {}}) is None


@pytest.mark.parametrize(
    "metadata, message",
    [
        ({"builder": {"eac": "arg"}}, "expected `builder"),
        ({"builder": "arg"}, "expected `builder"),
        ({"builder": {"each": 3}}, "expected string literal"),
        ({"builder": {"each": "not valid"}}, "not a valid method name"),
    ],
)
def test_extract_each_name_errors(metadata, message):
    with pytest.raises(BuilderDefinitionError, match=message):
        extract_each_name(metadata)


def test_field_spec_from_field_kinds():
    specs = {spec.name: spec for spec in extract_fields(RepeatedCommand)}
    assert specs["executable"].kind is FieldKind.REQUIRED
    assert specs["args"].kind is FieldKind.REPEATED
    assert specs["args"].inner is str
    assert specs["args"].setter_name == "arg"
    assert specs["current_dir"].kind is FieldKind.OPTIONAL
    assert specs["current_dir"].inner is str


def test_each_on_non_list_field_is_ignored():
    spec = FieldSpec.from_field(
        dataclasses.make_dataclass(
            "Tmp", [("name", str, field(metadata={"builder": {"each": "n"}}))]
        ).__dataclass_fields__["name"]
    )
    assert spec.kind is FieldKind.REQUIRED
    assert spec.setter_name == "name"