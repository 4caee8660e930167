"""Tests for the file structure rules."""

import pytest


class TestImportOrder:
    """import-order rule."""

    def test_unsorted_group(self, check) -> None:
        [violation] = check("import Zoo\nimport Abc\n", "import-order")
        assert violation.message == "import 'Abc' (line 2) should come before 'Zoo' (line 1)"
        assert (violation.line, violation.column) == (2, 1)
        assert not violation.fix_available

    def test_one_violation_per_inversion(self, check) -> None:
        violations = check("import C\nimport B\nimport A\n", "import-order")
        assert [v.line for v in violations] == [2, 3]

    def test_sorted_groups_pass(self, check) -> None:
        source = (
            "import Foundation\n"
            "import UIKit\n"
            "\n"
            "import struct Geometry.Point\n"
            "\n"
            "@testable import App\n"
        )
        assert check(source, "import-order") == []

    def test_group_order(self, check) -> None:
        [violation] = check("@testable import App\n\nimport Foundation\n", "import-order")
        assert violation.message == (
            "module import 'Foundation' (line 3) should come before the testable imports (line 1)"
        )

    def test_groups_need_blank_line(self, check) -> None:
        [violation] = check("import Foundation\nimport struct Geometry.Point\n", "import-order")
        assert violation.line == 2
        assert "blank line" in violation.message

    def test_sorting_is_per_group(self, check) -> None:
        source = "import Zoo\n\nimport class Abc.Widget\n"
        assert check(source, "import-order") == []


class TestOverloadGrouping:
    """overload-grouping rule."""

    def test_separated_overloads(self, check) -> None:
        source = (
            "struct Loader {\n"
            "    func load(id: Int) {}\n"
            "    var count = 0\n"
            "    func load(name: String) {}\n"
            "}\n"
        )
        [violation] = check(source, "overload-grouping")
        assert violation.line == 4
        assert violation.message == "overload of 'load' should be grouped with the declaration on line 2"

    def test_adjacent_overloads_pass(self, check) -> None:
        source = (
            "struct Loader {\n"
            "    init(id: Int) {}\n"
            "    init(name: String) {}\n"
            "    func load(id: Int) {}\n"
            "    func load(name: String) {}\n"
            "}\n"
        )
        assert check(source, "overload-grouping") == []

    def test_scopes_are_independent(self, check) -> None:
        source = (
            "struct A {\n    func load() {}\n}\n"
            "struct B {\n    func load() {}\n}\n"
        )
        assert check(source, "overload-grouping") == []

    def test_top_level_functions(self, check) -> None:
        source = "func f() {}\nlet x = 1\nfunc f(a: Int) {}\n"
        assert [v.line for v in check(source, "overload-grouping")] == [3]


class TestSinglePrimaryType:
    """single-primary-type rule."""

    def test_second_primary_type(self, check) -> None:
        source = "struct A {}\nstruct B {}\nprivate struct C {}\nextension A {}\n"
        [violation] = check(source, "single-primary-type")
        assert violation.message == "'B' is a second primary type in this file; 'A' is declared on line 1"
        assert violation.severity.value == "info"

    @pytest.mark.parametrize("source", [
        "struct A {\n    struct Nested {}\n}\n",
        "class A {}\nfileprivate class Helper {}\n",
        "enum A {}\nextension A {}\nfunc helper() {}\n",
    ])
    def test_single_primary_type(self, check, source: str) -> None:
        assert check(source, "single-primary-type") == []


class TestMissingDocComment:
    """missing-doc-comment rule."""

    def test_public_declarations_need_docs(self, check) -> None:
        source = (
            "public struct Account {\n"
            "    public func close() {}\n"
            "    func audit() {}\n"
            "}\n"
        )
        violations = check(source, "missing-doc-comment")
        assert [v.message for v in violations] == [
            "public struct 'Account' needs a /// doc comment",
            "public func 'close' needs a /// doc comment",
        ]

    def test_documented_and_exempt_declarations(self, check) -> None:
        source = (
            "/// An account.\n"
            "open class Account {\n"
            "    /** Closes it. */\n"
            "    open func close() {}\n"
            "    public override func audit() {}\n"
            "}\n"
            "public extension Account {}\n"
        )
        assert check(source, "missing-doc-comment") == []
