"""Structural builder: tokens -> declaration/import/scope model.

The builder makes a single pass over the significant tokens, keeping a stack
of open brackets. Declarations are recognized at statement starts; their
header is scanned ahead (read-only) to find the body brace, so the main walk
still sees every bracket and can report unbalanced delimiters.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from swiftstyle_core.errors import MalformedSourceError
from swiftstyle_core.parsing.lexer import Token, TokenKind
from swiftstyle_core.parsing.model import (
    AccessLevel,
    Declaration,
    DeclarationKind,
    ImportEntry,
    LineInfo,
    SourceRange,
    StructuralModel,
)

logger = structlog.get_logger()

ACCESS_KEYWORDS = frozenset(level.value for level in AccessLevel if level != AccessLevel.UNSPECIFIED)

MODIFIER_WORDS = ACCESS_KEYWORDS | {
    "static", "class", "final", "override", "mutating", "nonmutating", "lazy",
    "weak", "unowned", "dynamic", "convenience", "required", "optional",
    "indirect", "nonisolated", "prefix", "postfix", "infix", "distributed",
}

MODIFIER_ARGUMENTS = frozenset({"set", "safe", "unsafe"})

TYPE_KEYWORDS = frozenset({"class", "struct", "enum", "protocol", "actor", "extension"})
ALIAS_KEYWORDS = frozenset({"typealias", "associatedtype"})
FUNCTION_KEYWORDS = frozenset({"func", "init", "deinit", "subscript"})
BINDING_KEYWORDS = frozenset({"var", "let"})
INTRODUCERS = TYPE_KEYWORDS | ALIAS_KEYWORDS | FUNCTION_KEYWORDS | BINDING_KEYWORDS

DECLARATION_IMPORT_KINDS = frozenset({
    "struct", "class", "enum", "protocol", "typealias", "func", "var", "let",
})

# A header that wraps onto a new line continues when the new line starts with
# one of these tokens or the previous line ended with one of the others.
HEADER_CONTINUATION_STARTS = frozenset({
    "{", "->", "throws", "rethrows", "async", "where", ":", ",", "&", ".",
})
HEADER_CONTINUATION_ENDS = frozenset({",", ":", "&", "->", "=", "where", "(", "<", "."})

OPENERS = {"{": "}", "(": ")", "[": "]"}
CLOSERS = {"}": "{", ")": "(", "]": "["}


@dataclass
class _Scope:
    opener: Token
    declaration: int | None = None


@dataclass
class _PendingDeclaration:
    kind: DeclarationKind
    name: str
    keyword: str
    access_level: AccessLevel
    has_doc_comment: bool
    first: Token
    last: Token
    name_token: Token
    nesting_depth: int
    parent_index: int | None
    modifiers: tuple[str, ...]
    attributes: tuple[str, ...]
    insertion_offset: int
    is_local: bool
    name_range: SourceRange | None = None


@dataclass
class _Prefix:
    """Attributes and modifiers preceding an introducer."""

    attributes: list[str] = field(default_factory=list)
    modifiers: list[str] = field(default_factory=list)
    access_level: AccessLevel = AccessLevel.UNSPECIFIED
    modifiers_start: int = 0
    introducer: int = 0


def _end_line(token: Token) -> int:
    text = token.text.replace("\r\n", "\n").replace("\r", "\n")
    return token.line + text.count("\n")


class StructureBuilder:
    """Builds a StructuralModel from a token stream."""

    def __init__(self, tokens: tuple[Token, ...] | list[Token], path: str = "") -> None:
        self.tokens = tuple(tokens)
        self.path = path
        self._raw_index = [i for i, token in enumerate(self.tokens) if token.is_significant]
        self.sig = [self.tokens[i] for i in self._raw_index]
        self._declarations: list[_PendingDeclaration] = []
        self._imports: list[ImportEntry] = []
        self._scopes: list[_Scope] = []
        self._body_openers: dict[int, int] = {}
        self._claimed = -1

    def build(self) -> StructuralModel:
        self._walk()
        declarations = tuple(self._freeze(pending) for pending in self._declarations)
        logger.debug(
            "structure_built", path=self.path, declarations=len(declarations), imports=len(self._imports)
        )
        return StructuralModel(
            path=self.path,
            imports=tuple(self._imports),
            declarations=declarations,
            lines=self._line_infos(),
        )

    # -- main walk ----------------------------------------------------------

    def _walk(self) -> None:
        for pos, token in enumerate(self.sig):
            if pos > self._claimed and self._at_statement_start(pos):
                self._claimed = max(self._claimed, self._parse_statement(pos))

            if token.kind != TokenKind.PUNCTUATION:
                continue
            if token.text in OPENERS:
                self._scopes.append(_Scope(token, self._body_openers.pop(pos, None)))
            elif token.text in CLOSERS:
                self._close_scope(token)

        if self._scopes:
            opener = self._scopes[-1].opener
            raise MalformedSourceError(
                f"unclosed '{opener.text}'", opener.line, opener.column, opener.offset
            )

    def _close_scope(self, token: Token) -> None:
        if not self._scopes:
            raise MalformedSourceError(
                f"unexpected '{token.text}'", token.line, token.column, token.offset
            )
        scope = self._scopes.pop()
        if scope.opener.text != CLOSERS[token.text]:
            raise MalformedSourceError(
                f"'{token.text}' does not match '{scope.opener.text}' opened at "
                f"{scope.opener.line}:{scope.opener.column}",
                token.line,
                token.column,
                token.offset,
            )
        if scope.declaration is not None:
            self._declarations[scope.declaration].last = token

    def _at_statement_start(self, pos: int) -> bool:
        if pos == 0:
            return True
        prev = self.sig[pos - 1]
        if prev.is_punct("{", "}", ";"):
            return True
        if _end_line(prev) < self.sig[pos].line:
            if prev.kind == TokenKind.PUNCTUATION:
                return prev.text in (")", "]", ">", "?", "!")
            return True
        return False

    # -- statements ---------------------------------------------------------

    def _parse_statement(self, pos: int) -> int:
        """Recognize a declaration or import at pos; return last claimed position."""
        prefix = self._parse_prefix(pos)
        p = prefix.introducer
        if p >= len(self.sig):
            return pos - 1

        intro = self.sig[p]
        text = intro.text
        if text == "import" and intro.kind == TokenKind.KEYWORD:
            return self._parse_import(pos, p, prefix)
        if text == "case" and intro.kind == TokenKind.KEYWORD and self._in_enum_body():
            return self._parse_enum_cases(pos, p, prefix)
        if text == "actor" and intro.kind == TokenKind.IDENTIFIER:
            if p + 1 < len(self.sig) and self.sig[p + 1].kind == TokenKind.IDENTIFIER:
                return self._parse_type(pos, p, prefix)
            return pos - 1
        if intro.kind != TokenKind.KEYWORD or text not in INTRODUCERS:
            return pos - 1
        if text in TYPE_KEYWORDS or text in ALIAS_KEYWORDS:
            return self._parse_type(pos, p, prefix)
        if text in FUNCTION_KEYWORDS:
            return self._parse_function(pos, p, prefix)
        return self._parse_binding(pos, p, prefix)

    def _parse_prefix(self, pos: int) -> _Prefix:
        prefix = _Prefix()
        sig = self.sig
        p = pos
        while p + 1 < len(sig) and sig[p].is_punct("@") and sig[p + 1].kind in (
            TokenKind.IDENTIFIER,
            TokenKind.KEYWORD,
        ):
            prefix.attributes.append(sig[p + 1].text)
            p += 2
            if p < len(sig) and sig[p].is_punct("(") and sig[p].offset == sig[p - 1].end_offset:
                p = self._matching(p) + 1

        prefix.modifiers_start = p
        while p < len(sig):
            token = sig[p]
            if token.text not in MODIFIER_WORDS or token.kind not in (
                TokenKind.IDENTIFIER,
                TokenKind.KEYWORD,
            ):
                break
            following = sig[p + 1] if p + 1 < len(sig) else None
            if token.text == "class" and not self._class_is_modifier(following):
                break
            if following is not None and following.is_punct("("):
                close = self._matching(p + 1)
                inner = [t.text for t in sig[p + 2:close]]
                if len(inner) != 1 or inner[0] not in MODIFIER_ARGUMENTS:
                    # A call such as open(url), not a modifier.
                    break
                if token.text in ACCESS_KEYWORDS:
                    # private(set) restricts only the setter.
                    prefix.modifiers.append(f"{token.text}({inner[0]})")
                else:
                    prefix.modifiers.append(token.text)
                p = close + 1
                continue
            if token.text in ACCESS_KEYWORDS and prefix.access_level == AccessLevel.UNSPECIFIED:
                prefix.access_level = AccessLevel(token.text)
            prefix.modifiers.append(token.text)
            p += 1
        prefix.introducer = p
        return prefix

    @staticmethod
    def _class_is_modifier(following: Token | None) -> bool:
        if following is None:
            return False
        return following.text in MODIFIER_WORDS or following.text in (
            FUNCTION_KEYWORDS | BINDING_KEYWORDS
        )

    def _in_enum_body(self) -> bool:
        if not self._scopes:
            return False
        index = self._scopes[-1].declaration
        return index is not None and self._declarations[index].keyword == "enum"

    def _context(self) -> tuple[int | None, int, bool]:
        """Parent index, nesting depth and locality for a new declaration."""
        parent_index = None
        for scope in reversed(self._scopes):
            if scope.declaration is not None:
                parent_index = scope.declaration
                break
        depth = 0 if parent_index is None else self._declarations[parent_index].nesting_depth + 1
        if not self._scopes:
            is_local = False
        else:
            top = self._scopes[-1].declaration
            is_local = top is None or self._declarations[top].keyword not in TYPE_KEYWORDS
        return parent_index, depth, is_local

    def _add(
        self,
        kind: DeclarationKind,
        keyword: str,
        name_token: Token,
        first_pos: int,
        last: Token,
        prefix: _Prefix,
        name: str | None = None,
        context: tuple[int | None, int, bool] | None = None,
        documented: bool | None = None,
    ) -> int:
        parent_index, depth, is_local = context or self._context()
        first = self.sig[first_pos]
        insertion = self.sig[min(prefix.modifiers_start, len(self.sig) - 1)]
        self._declarations.append(_PendingDeclaration(
            kind=kind,
            name=name if name is not None else name_token.text.strip("`"),
            keyword=keyword,
            access_level=prefix.access_level,
            has_doc_comment=self._has_doc_comment(first_pos) if documented is None else documented,
            first=first,
            last=last,
            name_token=name_token,
            nesting_depth=depth,
            parent_index=parent_index,
            modifiers=tuple(prefix.modifiers),
            attributes=tuple(prefix.attributes),
            insertion_offset=insertion.offset,
            is_local=is_local,
        ))
        return len(self._declarations) - 1

    def _parse_import(self, pos: int, p: int, prefix: _Prefix) -> int:
        sig = self.sig
        q = p + 1
        is_declaration = False
        if q < len(sig) and sig[q].text in DECLARATION_IMPORT_KINDS:
            is_declaration = True
            q += 1
        if q >= len(sig):
            return p
        parts = [sig[q].text]
        last = q
        while (
            last + 2 < len(sig)
            and sig[last + 1].is_punct(".")
            and sig[last + 1].line == sig[last].line
        ):
            parts.append(sig[last + 2].text)
            last += 2
        self._imports.append(ImportEntry(
            module_name=".".join(parts),
            is_declaration_import=is_declaration,
            is_testable_import="testable" in prefix.attributes,
            line=sig[pos].line,
            range=SourceRange.from_tokens(sig[pos], sig[last]),
        ))
        return last

    def _parse_type(self, pos: int, p: int, prefix: _Prefix) -> int:
        sig = self.sig
        keyword = sig[p].text
        q = p + 1
        if q >= len(sig) or sig[q].kind not in (TokenKind.IDENTIFIER, TokenKind.KEYWORD):
            return p
        name_token = sig[q]
        parts = [name_token.text.strip("`")]
        last_name = q
        if keyword == "extension":
            while last_name + 2 < len(sig) and sig[last_name + 1].is_punct("."):
                parts.append(sig[last_name + 2].text)
                last_name += 2

        if keyword in ALIAS_KEYWORDS:
            _, header_end = self._find_body(last_name + 1, binding=True)
            self._add(
                DeclarationKind.TYPE, keyword, name_token, pos, sig[header_end], prefix,
                name=parts[0],
            )
            return last_name

        body, header_end = self._find_body(last_name + 1, binding=False)
        index = self._add(
            DeclarationKind.TYPE, keyword, name_token, pos, sig[header_end], prefix,
            name=".".join(parts),
        )
        if body is not None:
            self._body_openers[body] = index
        return last_name

    def _parse_function(self, pos: int, p: int, prefix: _Prefix) -> int:
        sig = self.sig
        keyword = sig[p].text
        q = p + 1
        name_token = sig[p]
        name = keyword
        if keyword == "func" and q < len(sig):
            name_token = sig[q]
            if name_token.kind == TokenKind.PUNCTUATION:
                # Operator function: the name is the run of adjacent operator characters.
                pieces = [name_token.text]
                while (
                    q + 1 < len(sig)
                    and sig[q + 1].kind == TokenKind.PUNCTUATION
                    and sig[q + 1].offset == sig[q].end_offset
                    and not sig[q + 1].is_punct("(", "<")
                ):
                    q += 1
                    pieces.append(sig[q].text)
                name = "".join(pieces)
            else:
                name = name_token.text.strip("`")
            q += 1
        elif keyword == "init" and q < len(sig) and sig[q].is_punct("?", "!"):
            q += 1

        last_claimed = q - 1
        context = self._context()
        if q < len(sig) and sig[q].is_punct("<"):
            q = self._skip_generic_clause(q)
        params_open = q if q < len(sig) and sig[q].is_punct("(") else None

        body, header_end = self._find_body(q, binding=False)
        index = self._add(
            DeclarationKind.FUNCTION, keyword, name_token, pos, sig[header_end], prefix,
            name=name, context=context,
        )
        if body is not None:
            self._body_openers[body] = index
        if params_open is not None and keyword != "deinit":
            self._parse_parameters(params_open, index)
        return last_claimed

    def _parse_parameters(self, open_pos: int, function_index: int) -> None:
        sig = self.sig
        close = self._matching(open_pos)
        segments: list[tuple[int, int]] = []
        depth = 0
        start = open_pos + 1
        for q in range(open_pos + 1, close):
            token = sig[q]
            if token.is_punct("(", "[", "{"):
                depth += 1
            elif token.is_punct(")", "]", "}"):
                depth -= 1
            elif depth == 0 and token.is_punct(","):
                segments.append((start, q))
                start = q + 1
        if start < close:
            segments.append((start, close))

        function = self._declarations[function_index]
        context = (function_index, function.nesting_depth + 1, True)
        empty = _Prefix()
        for seg_start, seg_end in segments:
            names: list[int] = []
            for q in range(seg_start, seg_end):
                if sig[q].is_punct(":"):
                    break
                names.append(q)
            else:
                continue
            for q in names:
                token = sig[q]
                if token.kind != TokenKind.IDENTIFIER or token.text == "_":
                    continue
                empty.modifiers_start = q
                self._add(
                    DeclarationKind.PARAMETER, "parameter", token, q, token, empty,
                    context=context, documented=False,
                )

    def _parse_binding(self, pos: int, p: int, prefix: _Prefix) -> int:
        sig = self.sig
        keyword = sig[p].text
        q = p + 1
        if q >= len(sig) or sig[q].kind != TokenKind.IDENTIFIER:
            return p
        name_token = sig[q]
        body, header_end = self._find_body(q + 1, binding=True)
        index = self._add(
            DeclarationKind.PROPERTY, keyword, name_token, pos, sig[max(header_end, q)], prefix,
        )
        if body is not None:
            self._body_openers[body] = index
        return q

    def _parse_enum_cases(self, pos: int, p: int, prefix: _Prefix) -> int:
        sig = self.sig
        q = p + 1
        last_claimed = p
        first = True
        context = self._context()
        while q < len(sig) and sig[q].kind == TokenKind.IDENTIFIER:
            name_token = sig[q]
            self._add(
                DeclarationKind.ENUM_CASE, "case", name_token, pos if first else q, name_token,
                prefix, context=context, documented=None if first else False,
            )
            first = False
            last_claimed = q
            q += 1
            if q < len(sig) and sig[q].is_punct("("):
                q = self._matching(q) + 1
            if q < len(sig) and sig[q].is_punct("="):
                q += 1
                while q < len(sig) and not sig[q].is_punct(",", "}", ";") and (
                    sig[q].line == sig[q - 1].line
                ):
                    q += 1
            if q < len(sig) and sig[q].is_punct(","):
                q += 1
                continue
            break
        return last_claimed

    # -- header scanning ----------------------------------------------------

    def _find_body(self, pos: int, binding: bool) -> tuple[int | None, int]:
        """Locate the body brace of a header starting at pos.

        Returns (body position or None, position of the last header token).
        """
        sig = self.sig
        depth = 0
        last = max(pos - 1, 0)
        p = pos
        while p < len(sig):
            token = sig[p]
            if token.is_punct("(", "["):
                depth += 1
            elif token.is_punct(")", "]"):
                depth -= 1
                if depth < 0:
                    return None, last
            elif depth == 0:
                if token.is_punct("{"):
                    return p, last
                if token.is_punct("}", ";"):
                    return None, last
                if binding and token.is_punct("="):
                    return None, last
                if p > pos and _end_line(sig[p - 1]) < token.line and not (
                    token.text in HEADER_CONTINUATION_STARTS
                    or sig[p - 1].text in HEADER_CONTINUATION_ENDS
                ):
                    return None, last
            last = p
            p += 1
        return None, last

    def _skip_generic_clause(self, pos: int) -> int:
        depth = 0
        p = pos
        while p < len(self.sig):
            token = self.sig[p]
            if token.is_punct("<"):
                depth += 1
            elif token.is_punct(">"):
                depth -= 1
                if depth == 0:
                    return p + 1
            elif token.is_punct(">>"):
                depth -= 2
                if depth <= 0:
                    return p + 1
            elif token.is_punct("{", "(", "="):
                return p
            p += 1
        return p

    def _matching(self, pos: int) -> int:
        """Position of the bracket closing sig[pos]; last position when unbalanced."""
        depth = 0
        for p in range(pos, len(self.sig)):
            token = self.sig[p]
            if token.kind != TokenKind.PUNCTUATION:
                continue
            if token.text in OPENERS:
                depth += 1
            elif token.text in CLOSERS:
                depth -= 1
                if depth == 0:
                    return p
        return len(self.sig) - 1

    def _has_doc_comment(self, pos: int) -> bool:
        """True if a doc comment directly precedes sig[pos] with no blank line."""
        newlines = 0
        i = self._raw_index[pos] - 1
        while i >= 0:
            token = self.tokens[i]
            if token.kind == TokenKind.WHITESPACE:
                i -= 1
                continue
            if token.kind == TokenKind.NEWLINE:
                newlines += 1
                if newlines > 1:
                    return False
                i -= 1
                continue
            return token.kind == TokenKind.DOC_COMMENT
        return False

    # -- freezing -----------------------------------------------------------

    def _freeze(self, pending: _PendingDeclaration) -> Declaration:
        parent_kind = None
        if pending.parent_index is not None:
            parent_kind = self._declarations[pending.parent_index].kind
        last = pending.last
        if last.end_offset < pending.name_token.end_offset:
            last = pending.name_token
        return Declaration(
            kind=pending.kind,
            name=pending.name,
            keyword=pending.keyword,
            access_level=pending.access_level,
            has_doc_comment=pending.has_doc_comment,
            range=SourceRange.from_tokens(pending.first, last),
            name_range=SourceRange.from_tokens(pending.name_token),
            nesting_depth=pending.nesting_depth,
            parent_kind=parent_kind,
            parent_index=pending.parent_index,
            modifiers=pending.modifiers,
            attributes=pending.attributes,
            insertion_offset=pending.insertion_offset,
            is_local=pending.is_local,
        )

    def _line_infos(self) -> tuple[LineInfo, ...]:
        lines: list[LineInfo] = []
        number = 1
        start = 0
        content_end = 1
        indent = ""
        at_line_start = True

        for token in self.tokens:
            if token.kind in (TokenKind.NEWLINE, TokenKind.EOF):
                lines.append(LineInfo(number, start, token.column - 1, content_end, indent))
                number += 1
                start = token.end_offset
                content_end = 1
                indent = ""
                at_line_start = True
                continue
            if token.kind == TokenKind.WHITESPACE:
                if at_line_start:
                    indent = token.text
                continue

            at_line_start = False
            text = token.text.replace("\r\n", "\n").replace("\r", "\n")
            parts = text.split("\n")
            if len(parts) == 1:
                width = len(text.rstrip()) if token.is_comment else len(text)
                content_end = token.column + width
                continue

            # Multi-line token: close out every line it spans but the last.
            raw_offset = token.offset
            raw = token.text
            for index, part in enumerate(parts[:-1]):
                width = len(part.rstrip()) if token.is_comment else len(part)
                if index == 0:
                    length = token.column - 1 + len(part)
                    end_column = token.column + width
                else:
                    length = len(part)
                    end_column = width + 1
                lines.append(LineInfo(number, start, length, end_column, indent))
                number += 1
                # Advance past this line's text and its line break in the raw text.
                consumed = len(part)
                break_index = raw_offset - token.offset + consumed
                break_len = 2 if raw[break_index:break_index + 2] == "\r\n" else 1
                raw_offset += consumed + break_len
                start = raw_offset
                indent = ""
            last = parts[-1]
            width = len(last.rstrip()) if token.is_comment else len(last)
            content_end = width + 1
        return tuple(lines)


def build(tokens: tuple[Token, ...] | list[Token], path: str = "") -> StructuralModel:
    """Build the structural model for a token stream.

    Raises:
        MalformedSourceError: braces, parentheses or brackets are unbalanced
    """
    return StructureBuilder(tokens, path).build()
