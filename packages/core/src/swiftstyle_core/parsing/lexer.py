"""Swift lexer.

Converts raw source text into a flat, position-tagged token stream. Lexing is
total: every input produces a token stream ending in an ``eof`` token, and
the concatenated token texts reproduce the input exactly.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenKind(str, Enum):
    """Classification of a token."""

    IDENTIFIER = "identifier"
    KEYWORD = "keyword"
    STRING_LITERAL = "string_literal"
    NUMBER_LITERAL = "number_literal"
    PUNCTUATION = "punctuation"
    COMMENT = "comment"
    DOC_COMMENT = "doc_comment"
    WHITESPACE = "whitespace"
    NEWLINE = "newline"
    UNKNOWN = "unknown"
    EOF = "eof"


# Reserved words. Contextual keywords (open, final, get, set, actor, ...) are
# valid identifiers and are lexed as such.
KEYWORDS: frozenset[str] = frozenset({
    "associatedtype", "class", "deinit", "enum", "extension", "fileprivate",
    "func", "import", "init", "inout", "internal", "let", "operator", "private",
    "precedencegroup", "protocol", "public", "rethrows", "static", "struct",
    "subscript", "typealias", "var",
    "break", "case", "catch", "continue", "default", "defer", "do", "else",
    "fallthrough", "for", "guard", "if", "in", "repeat", "return", "throw",
    "switch", "where", "while",
    "Any", "as", "false", "is", "nil", "self", "Self", "super", "throws",
    "true", "try",
})

# Longest first so that greedy matching picks "..<" before "..".
MULTI_CHAR_PUNCTUATION: tuple[str, ...] = (
    "===", "!==", "...", "..<", "<<=", ">>=",
    "->", "==", "!=", "<=", ">=", "&&", "||", "??", "+=", "-=", "*=", "/=",
    "%=", "&=", "|=", "^=", "<<", ">>",
)

SINGLE_CHAR_PUNCTUATION = frozenset("{}()[]<>.,:;=@#&|^~?!+-*/%`\\'")

NON_SIGNIFICANT_KINDS = frozenset({
    TokenKind.WHITESPACE,
    TokenKind.NEWLINE,
    TokenKind.COMMENT,
    TokenKind.DOC_COMMENT,
    TokenKind.EOF,
})


@dataclass(frozen=True)
class Token:
    """A single lexed token."""

    kind: TokenKind
    text: str
    line: int
    column: int
    offset: int

    @property
    def end_offset(self) -> int:
        return self.offset + len(self.text)

    @property
    def is_significant(self) -> bool:
        """True for tokens that carry syntax (not trivia)."""
        return self.kind not in NON_SIGNIFICANT_KINDS

    @property
    def is_comment(self) -> bool:
        return self.kind in (TokenKind.COMMENT, TokenKind.DOC_COMMENT)

    def is_punct(self, *texts: str) -> bool:
        return self.kind == TokenKind.PUNCTUATION and self.text in texts


@dataclass(frozen=True)
class _StringFrame:
    multiline: bool
    terminator: str
    escape: str


@dataclass
class _InterpolationFrame:
    depth: int = 0


def _is_identifier_start(ch: str) -> bool:
    return ch == "_" or ch == "$" or ch.isalpha()


def _is_identifier_part(ch: str) -> bool:
    return ch == "_" or ch == "$" or ch.isalnum()


class Lexer:
    """Single-pass scanner over a source string."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.length = len(source)
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: list[Token] = []

    def tokenize(self) -> tuple[Token, ...]:
        while self.pos < self.length:
            self._scan_token()
        self.tokens.append(Token(TokenKind.EOF, "", self.line, self.column, self.pos))
        return tuple(self.tokens)

    # -- helpers ------------------------------------------------------------

    def _peek(self, ahead: int = 0) -> str:
        index = self.pos + ahead
        return self.source[index] if index < self.length else ""

    def _emit(self, kind: TokenKind, end: int) -> None:
        text = self.source[self.pos:end]
        self.tokens.append(Token(kind, text, self.line, self.column, self.pos))
        # Advance line/column over the consumed text.
        index = 0
        while index < len(text):
            ch = text[index]
            if ch == "\r" and index + 1 < len(text) and text[index + 1] == "\n":
                index += 1
                ch = "\n"
            if ch in "\r\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            index += 1
        self.pos = end

    def _line_end(self, start: int) -> int:
        end = start
        while end < self.length and self.source[end] not in "\r\n":
            end += 1
        return end

    # -- scanners -----------------------------------------------------------

    def _scan_token(self) -> None:
        ch = self._peek()

        if ch in " \t\f\v":
            end = self.pos
            while end < self.length and self.source[end] in " \t\f\v":
                end += 1
            self._emit(TokenKind.WHITESPACE, end)
        elif ch == "\r":
            self._emit(TokenKind.NEWLINE, self.pos + (2 if self._peek(1) == "\n" else 1))
        elif ch == "\n":
            self._emit(TokenKind.NEWLINE, self.pos + 1)
        elif ch == "/" and self._peek(1) == "/":
            kind = TokenKind.DOC_COMMENT if self._is_doc_line_comment() else TokenKind.COMMENT
            self._emit(kind, self._line_end(self.pos))
        elif ch == "/" and self._peek(1) == "*":
            self._scan_block_comment()
        elif ch == '"' or (ch == "#" and self._raw_string_hashes() > 0):
            self._emit(TokenKind.STRING_LITERAL, self._string_end(self.pos))
        elif ch.isdigit():
            self._emit(TokenKind.NUMBER_LITERAL, self._number_end())
        elif ch == "`":
            self._scan_backtick_identifier()
        elif _is_identifier_start(ch):
            end = self.pos + 1
            while end < self.length and _is_identifier_part(self.source[end]):
                end += 1
            word = self.source[self.pos:end]
            self._emit(TokenKind.KEYWORD if word in KEYWORDS else TokenKind.IDENTIFIER, end)
        elif ch == "#" and _is_identifier_start(self._peek(1)):
            end = self.pos + 1
            while end < self.length and _is_identifier_part(self.source[end]):
                end += 1
            self._emit(TokenKind.KEYWORD, end)
        elif ch in SINGLE_CHAR_PUNCTUATION:
            for candidate in MULTI_CHAR_PUNCTUATION:
                if self.source.startswith(candidate, self.pos):
                    self._emit(TokenKind.PUNCTUATION, self.pos + len(candidate))
                    return
            if ch == "\\":
                self._emit(TokenKind.UNKNOWN, self.pos + 1)
            else:
                self._emit(TokenKind.PUNCTUATION, self.pos + 1)
        else:
            self._emit(TokenKind.UNKNOWN, self.pos + 1)

    def _is_doc_line_comment(self) -> bool:
        # "///" is a doc comment, "////" is an ordinary comment.
        return self.source.startswith("///", self.pos) and not self.source.startswith("////", self.pos)

    def _scan_block_comment(self) -> None:
        is_doc = (
            self.source.startswith("/**", self.pos)
            and not self.source.startswith("/**/", self.pos)
            and not self.source.startswith("/***", self.pos)
        )
        depth = 0
        index = self.pos
        while index < self.length:
            if self.source.startswith("/*", index):
                depth += 1
                index += 2
            elif self.source.startswith("*/", index):
                depth -= 1
                index += 2
                if depth == 0:
                    break
            else:
                index += 1
        self._emit(TokenKind.DOC_COMMENT if is_doc else TokenKind.COMMENT, min(index, self.length))

    def _scan_backtick_identifier(self) -> None:
        end = self.pos + 1
        while end < self.length and _is_identifier_part(self.source[end]):
            end += 1
        if end < self.length and self.source[end] == "`" and end > self.pos + 1:
            self._emit(TokenKind.IDENTIFIER, end + 1)
        else:
            self._emit(TokenKind.PUNCTUATION, self.pos + 1)

    def _raw_string_hashes(self, start: int | None = None) -> int:
        index = self.pos if start is None else start
        hashes = 0
        while index < self.length and self.source[index] == "#":
            hashes += 1
            index += 1
        if index < self.length and self.source[index] == '"':
            return hashes
        return 0

    def _number_end(self) -> int:
        source = self.source
        end = self.pos
        if source.startswith(("0x", "0o", "0b"), end):
            end += 2
            while end < self.length and (source[end].isalnum() or source[end] == "_"):
                end += 1
            return end
        while end < self.length and (source[end].isdigit() or source[end] == "_"):
            end += 1
        if end + 1 < self.length and source[end] == "." and source[end + 1].isdigit():
            end += 1
            while end < self.length and (source[end].isdigit() or source[end] == "_"):
                end += 1
        if end < self.length and source[end] in "eE":
            probe = end + 1
            if probe < self.length and source[probe] in "+-":
                probe += 1
            if probe < self.length and source[probe].isdigit():
                end = probe
                while end < self.length and source[end].isdigit():
                    end += 1
        return end

    def _open_string(self, index: int) -> tuple[_StringFrame, int]:
        """Read a string opener at index; return its frame and the offset after it."""
        source = self.source
        hashes = 0
        while index < self.length and source[index] == "#":
            hashes += 1
            index += 1
        closing_hashes = "#" * hashes
        multiline = source.startswith('"""', index)
        index += 3 if multiline else 1
        terminator = ('"""' if multiline else '"') + closing_hashes
        return _StringFrame(multiline, terminator, "\\" + closing_hashes), index

    def _string_end(self, start: int) -> int:
        """Return the offset just past the string literal beginning at start.

        Interpolations may nest strings to any depth; open literals and
        interpolations are tracked on an explicit stack. A literal still open
        at end of input runs to EOF.
        """
        source = self.source
        frame, index = self._open_string(start)
        stack: list[_StringFrame | _InterpolationFrame] = [frame]

        while stack and index < self.length:
            frame = stack[-1]
            ch = source[index]
            if isinstance(frame, _StringFrame):
                if not frame.multiline and ch in "\r\n":
                    stack.pop()
                    continue
                if source.startswith(frame.escape, index):
                    after = index + len(frame.escape)
                    if after < self.length and source[after] == "(":
                        stack.append(_InterpolationFrame())
                        index = after
                    elif not frame.multiline and after < self.length and source[after] in "\r\n":
                        stack.pop()
                        index = after
                    else:
                        index = after + 1
                    continue
                if source.startswith(frame.terminator, index):
                    stack.pop()
                    index += len(frame.terminator)
                    continue
                index += 1
                continue

            # Inside \( ... ): balance parentheses, open nested strings.
            if ch == "(":
                frame.depth += 1
            elif ch == ")":
                frame.depth -= 1
                if frame.depth == 0:
                    stack.pop()
                    index += 1
                    continue
            elif ch == '"' or (ch == "#" and self._raw_string_hashes(index) > 0):
                inner, index = self._open_string(index)
                stack.append(inner)
                continue
            elif ch in "\r\n":
                # Interpolations cannot span lines; the enclosing literal decides.
                stack.pop()
                continue
            index += 1

        return self.length if stack else index


def tokenize(source: str) -> tuple[Token, ...]:
    """Tokenize Swift source text. Never raises."""
    return Lexer(source).tokenize()


def significant(tokens: tuple[Token, ...] | list[Token]) -> list[Token]:
    """Return only tokens that carry syntax."""
    return [token for token in tokens if token.is_significant]
