"""Lexer, structural model and structural builder for Swift sources."""

from swiftstyle_core.parsing.lexer import Lexer, Token, TokenKind, significant, tokenize
from swiftstyle_core.parsing.model import (
    AccessLevel,
    Declaration,
    DeclarationKind,
    ImportEntry,
    ImportGroup,
    LineInfo,
    SourceRange,
    StructuralModel,
)
from swiftstyle_core.parsing.structure import StructureBuilder, build

__all__ = [
    "AccessLevel",
    "Declaration",
    "DeclarationKind",
    "ImportEntry",
    "ImportGroup",
    "Lexer",
    "LineInfo",
    "SourceRange",
    "StructuralModel",
    "StructureBuilder",
    "Token",
    "TokenKind",
    "build",
    "significant",
    "tokenize",
]
