"""Token types, data structures, and character classification helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    # Script
    IDENTIFIER = auto()  # name, including $ and _
    KEYWORD = auto()  # reserved word; value is the word
    NUMBER = auto()  # numeric literal; value is the normalised digits
    STRING = auto()  # '...' or "..."; value is the decoded string
    PUNCT = auto()  # operator or delimiter; value is the punctuator

    # Template literal sub-tokens
    TEMPLATE_START = auto()  # opening `
    TEMPLATE_CHUNK = auto()  # cooked text between substitutions
    TEMPLATE_EXPR_OPEN = auto()  # ${
    TEMPLATE_EXPR_CLOSE = auto()  # } closing a substitution
    TEMPLATE_END = auto()  # closing `

    # Markup
    JSX_TAG_OPEN = auto()  # < starting an opening tag or fragment
    JSX_CLOSE_TAG_OPEN = auto()  # </
    JSX_TAG_END = auto()  # > ending a tag
    JSX_SELF_CLOSE = auto()  # />
    JSX_NAME = auto()  # tag or attribute name (may contain - . :)
    JSX_EQUALS = auto()  # = between attribute name and value
    JSX_ATTR_STRING = auto()  # quoted attribute value; value is entity-decoded
    JSX_TEXT = auto()  # text child; value is entity-decoded, raw is verbatim
    JSX_EXPR_OPEN = auto()  # { entering an expression container
    JSX_EXPR_CLOSE = auto()  # } leaving an expression container

    EOF = auto()


@dataclass(frozen=True, slots=True)
class Position:
    """Source position, 1-based line and column, 0-based character offset."""

    line: int
    column: int
    offset: int


@dataclass(frozen=True, slots=True)
class Span:
    """Source range from start to end position."""

    start: Position
    end: Position


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexer token with resolved value and original source text.

    ``newline_before`` records a line terminator between this token and the
    previous one, which drives automatic semicolon insertion.
    """

    type: TokenType
    value: str
    raw: str
    span: Span
    newline_before: bool = False


KEYWORDS: frozenset[str] = frozenset(
    {
        "break",
        "case",
        "catch",
        "class",
        "const",
        "continue",
        "default",
        "delete",
        "do",
        "else",
        "export",
        "extends",
        "false",
        "finally",
        "for",
        "function",
        "if",
        "import",
        "in",
        "instanceof",
        "let",
        "new",
        "null",
        "return",
        "super",
        "switch",
        "this",
        "throw",
        "true",
        "try",
        "typeof",
        "var",
        "void",
        "while",
    }
)

# Longest first so the lexer can take the first prefix match.
PUNCTUATORS: tuple[str, ...] = tuple(
    sorted(
        {
            ">>>=", "...", "===", "!==", "**=", "<<=", ">>=", ">>>", "&&=", "||=", "??=",
            "=>", "==", "!=", "<=", ">=", "&&", "||", "??", "?.", "++", "--", "+=", "-=",
            "*=", "/=", "%=", "&=", "|=", "^=", "**", "<<", ">>",
            "{", "}", "(", ")", "[", "]", ";", ",", "<", ">", "+", "-", "*", "/", "%",
            "&", "|", "^", "!", "~", "?", ":", "=", ".", "@", "#",
        },
        key=len,
        reverse=True,
    )
)


def is_ident_start(ch: str) -> bool:
    """Return True if ch may begin an identifier."""
    return ch != "" and (ch.isalpha() or ch in "$_")


def is_ident_char(ch: str) -> bool:
    """Return True if ch may continue an identifier."""
    return ch != "" and (ch.isalnum() or ch in "$_")


def is_jsx_name_char(ch: str) -> bool:
    """Return True if ch may appear in a JSX tag or attribute name."""
    return ch != "" and (is_ident_char(ch) or ch in "-.:")


def is_hex_digit(ch: str) -> bool:
    """Return True if ch is a hexadecimal digit."""
    return ch != "" and ch in "0123456789abcdefABCDEF"
