"""Tests for the structural builder."""

import pytest

from swiftstyle_core.errors import MalformedSourceError
from swiftstyle_core.parsing import (
    AccessLevel,
    DeclarationKind,
    ImportGroup,
    StructuralModel,
    build,
    tokenize,
)


def model_of(source: str) -> StructuralModel:
    return build(tokenize(source), "Sample.swift")


def by_name(model: StructuralModel, name: str):
    return next(d for d in model.declarations if d.name == name)


class TestImports:
    """Import entries and their groups."""

    def test_groups_and_names(self) -> None:
        model = model_of(
            "import Foundation\n"
            "import struct Geometry.Point\n"
            "@testable import App\n"
        )
        assert [(i.module_name, i.group) for i in model.imports] == [
            ("Foundation", ImportGroup.MODULE),
            ("Geometry.Point", ImportGroup.DECLARATION),
            ("App", ImportGroup.TESTABLE),
        ]
        assert [i.line for i in model.imports] == [1, 2, 3]
        assert model.imports_in_group(ImportGroup.TESTABLE)[0].module_name == "App"

    def test_imports_are_not_declarations(self) -> None:
        model = model_of("import UIKit\n")
        assert model.declarations == ()


class TestDeclarations:
    """Declarations, nesting and access levels."""

    SOURCE = (
        "public class Outer {\n"
        "    private(set) var count: Int = 0\n"
        "    func run(times: Int) {\n"
        "        let local = 1\n"
        "    }\n"
        "    enum Mode {\n"
        "        case fast, slow\n"
        "    }\n"
        "}\n"
    )

    @pytest.fixture
    def model(self) -> StructuralModel:
        return model_of(self.SOURCE)

    def test_source_order(self, model: StructuralModel) -> None:
        assert [d.name for d in model.declarations] == [
            "Outer", "count", "run", "times", "local", "Mode", "fast", "slow",
        ]

    def test_kinds(self, model: StructuralModel) -> None:
        assert by_name(model, "Outer").kind == DeclarationKind.TYPE
        assert by_name(model, "count").kind == DeclarationKind.PROPERTY
        assert by_name(model, "run").kind == DeclarationKind.FUNCTION
        assert by_name(model, "times").kind == DeclarationKind.PARAMETER
        assert by_name(model, "fast").kind == DeclarationKind.ENUM_CASE
        assert by_name(model, "slow").kind == DeclarationKind.ENUM_CASE

    def test_nesting(self, model: StructuralModel) -> None:
        outer = by_name(model, "Outer")
        assert outer.nesting_depth == 0
        assert outer.parent_index is None
        count = by_name(model, "count")
        assert count.nesting_depth == 1
        assert count.parent_kind == DeclarationKind.TYPE
        assert model.declarations[count.parent_index] is outer
        local = by_name(model, "local")
        assert local.is_local
        assert local.nesting_depth == 2
        assert model.declarations[local.parent_index].name == "run"
        fast = by_name(model, "fast")
        assert [a.name for a in model.ancestors(fast)] == ["Mode", "Outer"]

    def test_access_levels(self, model: StructuralModel) -> None:
        assert by_name(model, "Outer").access_level == AccessLevel.PUBLIC
        # Setter access is not the declaration's access level.
        count = by_name(model, "count")
        assert count.access_level == AccessLevel.UNSPECIFIED
        assert "private(set)" in count.modifiers
        assert by_name(model, "run").access_level == AccessLevel.UNSPECIFIED

    def test_ranges(self, model: StructuralModel) -> None:
        outer = by_name(model, "Outer")
        assert (outer.range.line, outer.range.end_line) == (1, 9)
        assert (outer.name_range.line, outer.name_range.column) == (1, 14)
        assert outer.insertion_offset == 0
        run = by_name(model, "run")
        assert (run.range.line, run.range.end_line) == (3, 5)
        assert model.enclosing_declaration(run.range.start + 30).name == "run"

    def test_class_modifier_and_attributes(self) -> None:
        model = model_of(
            "final class Cell {\n"
            "    @IBOutlet weak var label: UILabel!\n"
            "    class func make() -> Cell { Cell() }\n"
            "}\n"
        )
        label = by_name(model, "label")
        assert label.attributes == ("IBOutlet",)
        assert label.modifiers == ("weak",)
        make = by_name(model, "make")
        assert make.kind == DeclarationKind.FUNCTION
        assert make.modifiers == ("class",)
        cell = by_name(model, "Cell")
        assert cell.modifiers == ("final",)

    def test_call_named_like_modifier_is_not_a_declaration(self) -> None:
        model = model_of("func f() {\n    open(url)\n}\n")
        assert [d.name for d in model.declarations] == ["f"]

    def test_extension_and_protocol(self) -> None:
        model = model_of(
            "extension Foo.Bar {\n    func a() {}\n}\n"
            "protocol Drawable {\n    func draw()\n}\n"
        )
        ext = model.declarations[0]
        assert (ext.keyword, ext.name) == ("extension", "Foo.Bar")
        draw = by_name(model, "draw")
        assert draw.parent_index == 2
        assert not draw.is_local

    def test_init_and_subscript(self) -> None:
        model = model_of(
            "struct S {\n"
            "    init?(raw: Int) {}\n"
            "    subscript(index: Int) -> Int { 0 }\n"
            "    deinit {}\n"
            "}\n"
        )
        assert [(d.keyword, d.name) for d in model.declarations if d.kind == DeclarationKind.FUNCTION] == [
            ("init", "init"),
            ("subscript", "subscript"),
            ("deinit", "deinit"),
        ]

    def test_operator_function(self) -> None:
        model = model_of("static func == (lhs: A, rhs: A) -> Bool { true }\n")
        assert model.declarations[0].name == "=="

    def test_wrapped_header_finds_body(self) -> None:
        model = model_of(
            "func load(\n"
            "    id: Int\n"
            ") -> String\n"
            "{\n"
            "    let inner = 1\n"
            "}\n"
        )
        assert by_name(model, "inner").is_local
        assert by_name(model, "load").range.end_line == 6

    def test_case_outside_enum_is_not_a_declaration(self) -> None:
        model = model_of(
            "func f(x: Int) {\n"
            "    switch x {\n"
            "    case 1: break\n"
            "    default: break\n"
            "    }\n"
            "}\n"
        )
        assert all(d.kind != DeclarationKind.ENUM_CASE for d in model.declarations)


class TestDocComments:
    """Doc comment attachment."""

    def test_attached_without_blank_line(self) -> None:
        model = model_of("/// Docs.\n@MainActor\npublic struct A {}\n")
        assert model.declarations[0].has_doc_comment

    def test_blank_line_detaches(self) -> None:
        model = model_of("/// Docs.\n\npublic struct A {}\n")
        assert not model.declarations[0].has_doc_comment

    def test_plain_comment_is_not_documentation(self) -> None:
        model = model_of("// Not docs.\npublic struct A {}\n")
        assert not model.declarations[0].has_doc_comment


class TestLines:
    """Per-line layout facts."""

    def test_lengths_and_content_end(self) -> None:
        model = model_of("let a = 1  \n\n    var b = 2 // note   \n")
        first, blank, third, last = model.lines
        assert (first.length, first.content_end_column, first.trailing_whitespace) == (11, 10, 2)
        assert blank.is_blank
        assert third.indent == "    "
        assert third.content_end_column == 22
        assert third.trailing_whitespace == 3
        assert last.number == 4
        assert last.length == 0

    def test_multiline_token_lines(self) -> None:
        model = model_of('let t = """\nabc\n"""\n')
        assert [line.length for line in model.lines] == [11, 3, 3, 0]
        assert model.line(2).start_offset == 12


class TestMalformed:
    """Unbalanced delimiters."""

    @pytest.mark.parametrize("source, reason", [
        ("func f() {\n", "unclosed '{'"),
        ("}\n", "unexpected '}'"),
        ("let a = (1]\n", "does not match"),
    ])
    def test_unbalanced(self, source: str, reason: str) -> None:
        with pytest.raises(MalformedSourceError) as excinfo:
            model_of(source)
        assert reason in excinfo.value.reason

    def test_error_position(self) -> None:
        with pytest.raises(MalformedSourceError) as excinfo:
            model_of("struct A {\n    func f() {\n}\n")
        assert (excinfo.value.line, excinfo.value.column) == (1, 10)

    def test_brackets_in_strings_and_comments_are_ignored(self) -> None:
        model = model_of('let s = "{ ( ["\n// }\n/* ) */\n')
        assert [d.name for d in model.declarations] == ["s"]


class TestLogging:
    def test_building_writes_nothing_to_stdout(self, capsys: pytest.CaptureFixture[str]) -> None:
        model_of("import Foundation\n\nstruct A {\n    func f() {}\n}\n")
        assert capsys.readouterr().out == ""
