"""Structural model types produced by the builder.

Every type here is immutable. The builder appends to private working lists
while it walks the token stream and freezes them into tuples at the end.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

from swiftstyle_core.parsing.lexer import Token


class AccessLevel(str, Enum):
    """Access level written on a declaration."""

    PRIVATE = "private"
    FILEPRIVATE = "fileprivate"
    INTERNAL = "internal"
    PUBLIC = "public"
    OPEN = "open"
    UNSPECIFIED = "unspecified"  # No keyword written; never defaulted.

    @property
    def is_restricted(self) -> bool:
        return self in (AccessLevel.PRIVATE, AccessLevel.FILEPRIVATE)

    @property
    def is_exported(self) -> bool:
        return self in (AccessLevel.PUBLIC, AccessLevel.OPEN)


class DeclarationKind(str, Enum):
    """Kind of declared symbol."""

    TYPE = "type"
    FUNCTION = "function"
    PROPERTY = "property"
    ENUM_CASE = "enum_case"
    IMPORT = "import"
    PARAMETER = "parameter"


class ImportGroup(str, Enum):
    """Import ordering groups, in canonical order."""

    MODULE = "module"
    DECLARATION = "declaration"
    TESTABLE = "testable"

    @property
    def order(self) -> int:
        return list(ImportGroup).index(self)


@dataclass(frozen=True)
class SourceRange:
    """A span of source text with its start/end positions."""

    start: int
    end: int
    line: int
    column: int
    end_line: int
    end_column: int

    @classmethod
    def from_tokens(cls, first: Token, last: Token | None = None) -> "SourceRange":
        last = last or first
        end_line = last.line
        end_column = last.column + len(last.text)
        if "\n" in last.text or "\r" in last.text:
            tail = last.text.replace("\r\n", "\n").replace("\r", "\n")
            end_line = last.line + tail.count("\n")
            end_column = len(tail.rsplit("\n", 1)[1]) + 1
        return cls(
            start=first.offset,
            end=last.end_offset,
            line=first.line,
            column=first.column,
            end_line=end_line,
            end_column=end_column,
        )

    def contains(self, offset: int) -> bool:
        return self.start <= offset < self.end

    def overlaps(self, start: int, end: int) -> bool:
        if start == end:
            return self.start <= start <= self.end
        return self.start < end and start < self.end

    def to_dict(self) -> dict[str, int]:
        return {
            "start": self.start,
            "end": self.end,
            "line": self.line,
            "column": self.column,
            "end_line": self.end_line,
            "end_column": self.end_column,
        }


@dataclass(frozen=True)
class Declaration:
    """A declared symbol, in source order."""

    kind: DeclarationKind
    name: str
    keyword: str
    access_level: AccessLevel
    has_doc_comment: bool
    range: SourceRange
    name_range: SourceRange
    nesting_depth: int
    parent_kind: DeclarationKind | None = None
    parent_index: int | None = None
    modifiers: tuple[str, ...] = ()
    attributes: tuple[str, ...] = ()
    # Offset where an access keyword would be inserted (first modifier or
    # the introducer, after attributes).
    insertion_offset: int = 0
    # Declared inside a function body, closure, accessor or control block
    # rather than at file scope or directly in a type body.
    is_local: bool = False

    @property
    def is_identifier_name(self) -> bool:
        name = self.name
        return bool(name) and (name[0].isalpha() or name[0] == "_") and all(
            ch.isalnum() or ch == "_" for ch in name
        )


@dataclass(frozen=True)
class ImportEntry:
    """A single import statement."""

    module_name: str
    is_declaration_import: bool
    is_testable_import: bool
    line: int
    range: SourceRange

    @property
    def group(self) -> ImportGroup:
        if self.is_testable_import:
            return ImportGroup.TESTABLE
        if self.is_declaration_import:
            return ImportGroup.DECLARATION
        return ImportGroup.MODULE


@dataclass(frozen=True)
class LineInfo:
    """Per-line layout facts used by formatting rules."""

    number: int
    start_offset: int
    length: int
    # Column just past the final non-whitespace token (1 for blank lines).
    content_end_column: int
    indent: str = ""

    @property
    def is_blank(self) -> bool:
        return self.content_end_column == 1

    @property
    def trailing_whitespace(self) -> int:
        return self.length - (self.content_end_column - 1)


@dataclass(frozen=True)
class StructuralModel:
    """Declaration/import/scope summary of one source file."""

    path: str
    imports: tuple[ImportEntry, ...] = ()
    declarations: tuple[Declaration, ...] = ()
    lines: tuple[LineInfo, ...] = field(default_factory=tuple)

    def imports_in_group(self, group: ImportGroup) -> list[ImportEntry]:
        return [entry for entry in self.imports if entry.group == group]

    def children(self, index: int | None) -> list[Declaration]:
        """Direct children of the declaration at index (None = top level)."""
        return [decl for decl in self.declarations if decl.parent_index == index]

    def ancestors(self, declaration: Declaration) -> Iterator[Declaration]:
        """Enclosing declarations, innermost first."""
        index = declaration.parent_index
        while index is not None:
            parent = self.declarations[index]
            yield parent
            index = parent.parent_index

    def enclosing_declaration(self, offset: int) -> Declaration | None:
        """Innermost non-parameter declaration whose range contains offset."""
        best: Declaration | None = None
        for decl in self.declarations:
            if decl.kind == DeclarationKind.PARAMETER or not decl.range.contains(offset):
                continue
            if best is None or decl.nesting_depth >= best.nesting_depth:
                best = decl
        return best

    def line(self, number: int) -> LineInfo:
        return self.lines[number - 1]
