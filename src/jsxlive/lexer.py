"""Component source lexer — converts JS/JSX source text into a flat token stream."""

from __future__ import annotations

import html
from dataclasses import dataclass
from enum import Enum, auto

from jsxlive.errors import LexError
from jsxlive.tokens import (
    KEYWORDS,
    PUNCTUATORS,
    Position,
    Span,
    Token,
    TokenType,
    is_hex_digit,
    is_ident_char,
    is_ident_start,
    is_jsx_name_char,
)


class _State(Enum):
    CODE = auto()
    TEMPLATE = auto()
    JSX_TAG = auto()
    JSX_CLOSING_TAG = auto()
    JSX_CHILDREN = auto()


@dataclass(slots=True)
class _Mode:
    state: _State
    opened_at: Position
    closer: TokenType | None = None  # token emitted by the `}` that leaves CODE
    depth: int = 0  # nested `{` inside CODE
    tag: str | None = None  # element name, set by the first name in JSX_TAG
    mismatched: bool = False  # closing tag names a different element


# Keywords after which `<` starts markup rather than a comparison.
_JSX_AFTER_KEYWORDS = frozenset(
    {"return", "default", "else", "typeof", "void", "in", "case", "throw", "delete", "do"}
)
# Punctuators that end an operand, so a following `<` is a comparison.
_OPERAND_END_PUNCT = frozenset({")", "]", "}", "++", "--"})

_LINE_TERMINATORS = frozenset("\n\u2028\u2029")
_WHITESPACE = frozenset(" \t\r\v\f\u00a0\ufeff") | _LINE_TERMINATORS

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}


class Lexer:
    """Tokenize component source text into a stream of Token objects."""

    def __init__(self, source: str, filename: str = "component.jsx") -> None:
        self._source = source
        self._filename = filename
        self._pos = 0
        self._line = 1
        self._col = 1
        self._tokens: list[Token] = []
        self._stack: list[_Mode] = []
        self._mode = _Mode(_State.CODE, self._current_pos())
        self._newline_pending = False

    def tokenize(self) -> list[Token]:
        """Tokenize the full source and return the token list."""
        while self._pos < len(self._source):
            state = self._mode.state
            if state == _State.CODE:
                self._lex_code()
            elif state == _State.TEMPLATE:
                self._lex_template()
            elif state == _State.JSX_TAG:
                self._lex_jsx_tag()
            elif state == _State.JSX_CLOSING_TAG:
                self._lex_jsx_closing_tag()
            else:
                self._lex_jsx_children()

        # Check for unclosed states at EOF
        if self._stack:
            mode = self._mode
            if mode.state == _State.TEMPLATE:
                raise self._error("unterminated template literal", mode.opened_at)
            if mode.state == _State.CODE and mode.closer == TokenType.JSX_EXPR_CLOSE:
                raise self._error("unterminated JSX expression", mode.opened_at)
            if mode.state == _State.CODE and mode.closer == TokenType.TEMPLATE_EXPR_CLOSE:
                raise self._error("unterminated template substitution", mode.opened_at)
            raise self._error("unterminated JSX element", mode.opened_at)

        self._emit(TokenType.EOF, "", "")
        return self._tokens

    # ------------------------------------------------------------------
    # Position helpers
    # ------------------------------------------------------------------

    def _current_pos(self) -> Position:
        return Position(self._line, self._col, self._pos)

    def _peek(self, offset: int = 0) -> str:
        idx = self._pos + offset
        if idx < len(self._source):
            return self._source[idx]
        return ""

    def _at_end(self) -> bool:
        return self._pos >= len(self._source)

    def _advance(self) -> str:
        ch = self._source[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._col = 1
        else:
            self._col += 1
        return ch

    def _emit(self, tt: TokenType, value: str, raw: str, start: Position | None = None) -> Token:
        end = self._current_pos()
        if start is None:
            start = end
        tok = Token(tt, value, raw, Span(start, end), self._newline_pending)
        self._newline_pending = False
        self._tokens.append(tok)
        return tok

    def _error(self, message: str, pos: Position | None = None) -> LexError:
        if pos is None:
            pos = self._current_pos()
        return LexError(message, pos, self._source)

    # ------------------------------------------------------------------
    # State management
    # ------------------------------------------------------------------

    def _push_state(
        self, state: _State, opened_at: Position, closer: TokenType | None = None
    ) -> None:
        self._stack.append(self._mode)
        self._mode = _Mode(state, opened_at, closer)

    def _pop_state(self) -> None:
        self._mode = self._stack.pop()

    def _switch_state(self, state: _State) -> None:
        self._mode.state = state

    # ------------------------------------------------------------------
    # Code mode
    # ------------------------------------------------------------------

    def _lex_code(self) -> None:
        ch = self._peek()

        if ch in _WHITESPACE:
            if ch in _LINE_TERMINATORS:
                self._newline_pending = True
            self._advance()
            return

        if ch == "/" and self._peek(1) in ("/", "*"):
            self._skip_comment()
            return

        if is_ident_start(ch):
            self._lex_identifier()
            return

        if ch.isdigit() or (ch == "." and self._peek(1).isdigit()):
            self._lex_number()
            return

        if ch in "'\"":
            self._lex_string()
            return

        if ch == "`":
            start = self._current_pos()
            self._advance()
            self._emit(TokenType.TEMPLATE_START, "`", "`", start)
            self._push_state(_State.TEMPLATE, start)
            return

        if ch == "<" and self._jsx_allowed():
            start = self._current_pos()
            self._advance()
            self._emit(TokenType.JSX_TAG_OPEN, "<", "<", start)
            self._push_state(_State.JSX_TAG, start)
            return

        if ch == "{":
            start = self._current_pos()
            self._advance()
            self._mode.depth += 1
            self._emit(TokenType.PUNCT, "{", "{", start)
            return

        if ch == "}":
            start = self._current_pos()
            self._advance()
            if self._mode.depth > 0:
                self._mode.depth -= 1
                self._emit(TokenType.PUNCT, "}", "}", start)
            elif self._mode.closer is not None:
                self._emit(self._mode.closer, "}", "}", start)
                self._pop_state()
            else:
                self._emit(TokenType.PUNCT, "}", "}", start)
            return

        for punct in PUNCTUATORS:
            if self._source.startswith(punct, self._pos):
                # `?.` followed by a digit is a conditional, not optional chaining
                if punct == "?." and self._peek(2).isdigit():
                    continue
                start = self._current_pos()
                for _ in punct:
                    self._advance()
                self._emit(TokenType.PUNCT, punct, punct, start)
                return

        if ch == "\0":
            raise self._error("NUL character in source")
        raise self._error(f"unexpected character {ch!r}")

    def _jsx_allowed(self) -> bool:
        """Decide from the previous token whether `<` opens markup."""
        nxt = self._peek(1)
        if not (is_ident_start(nxt) or nxt == ">"):
            return False
        if not self._tokens:
            return True
        prev = self._tokens[-1]
        if prev.type in (TokenType.JSX_EXPR_OPEN, TokenType.TEMPLATE_EXPR_OPEN):
            return True
        if prev.type == TokenType.KEYWORD:
            return prev.value in _JSX_AFTER_KEYWORDS
        if prev.type == TokenType.PUNCT:
            return prev.value not in _OPERAND_END_PUNCT
        return False

    def _skip_comment(self) -> None:
        start = self._current_pos()
        self._advance()
        if self._advance() == "/":
            while not self._at_end() and self._peek() != "\n":
                self._advance()
            return
        while not self._at_end():
            if self._peek() == "*" and self._peek(1) == "/":
                self._advance()
                self._advance()
                return
            if self._advance() == "\n":
                self._newline_pending = True
        raise self._error("unterminated comment", start)

    def _lex_identifier(self) -> None:
        start = self._current_pos()
        chars = []
        while not self._at_end() and is_ident_char(self._peek()):
            chars.append(self._advance())
        text = "".join(chars)
        tt = TokenType.KEYWORD if text in KEYWORDS else TokenType.IDENTIFIER
        self._emit(tt, text, text, start)

    def _lex_number(self) -> None:
        start = self._current_pos()
        ch = self._peek()
        nxt = self._peek(1).lower()

        if ch == "0" and nxt in "xob" and nxt != "":
            self._advance()
            self._advance()
            valid = {"x": "0123456789abcdefABCDEF", "o": "01234567", "b": "01"}[nxt]
            digits = self._read_digits(valid)
            if not digits:
                raise self._error("expected digits after numeric prefix", start)
            value = str(int(digits, {"x": 16, "o": 8, "b": 2}[nxt]))
        else:
            value = self._read_digits("0123456789")
            if self._peek() == ".":
                self._advance()
                value += "." + self._read_digits("0123456789")
            if self._peek() in ("e", "E") and self._peek() != "":
                sign_ok = self._peek(1) in "+-" and self._peek(2).isdigit()
                if self._peek(1).isdigit() or sign_ok:
                    value += self._advance().lower()
                    if self._peek() in "+-":
                        value += self._advance()
                    value += self._read_digits("0123456789")

        if not self._at_end() and is_ident_start(self._peek()):
            raise self._error("identifier starts immediately after numeric literal")
        raw = self._source[start.offset : self._pos]
        self._emit(TokenType.NUMBER, value, raw, start)

    def _read_digits(self, valid: str) -> str:
        chars = []
        while not self._at_end():
            ch = self._peek()
            if ch == "_" and self._peek(1) != "" and self._peek(1) in valid:
                self._advance()
                continue
            if ch not in valid:
                break
            chars.append(self._advance())
        return "".join(chars)

    def _lex_string(self) -> None:
        start = self._current_pos()
        quote = self._advance()
        chars = []
        while True:
            if self._at_end() or self._peek() == "\n":
                raise self._error("unterminated string literal", start)
            ch = self._advance()
            if ch == quote:
                break
            if ch == "\\":
                chars.append(self._read_escape())
            else:
                chars.append(ch)
        raw = self._source[start.offset : self._pos]
        self._emit(TokenType.STRING, "".join(chars), raw, start)

    def _read_escape(self) -> str:
        """Decode the escape sequence after a consumed backslash."""
        esc_start = self._current_pos()
        if self._at_end():
            raise self._error("unterminated escape sequence", esc_start)
        ch = self._advance()
        if ch in _SIMPLE_ESCAPES and not (ch == "0" and self._peek().isdigit()):
            return _SIMPLE_ESCAPES[ch]
        if ch == "\r" and self._peek() == "\n":
            self._advance()
            return ""
        if ch in _LINE_TERMINATORS:
            return ""
        if ch == "x":
            digits = self._peek() + self._peek(1)
            if len(digits) != 2 or not all(is_hex_digit(d) for d in digits):
                raise self._error("invalid hexadecimal escape", esc_start)
            self._advance()
            self._advance()
            return chr(int(digits, 16))
        if ch == "u":
            if self._peek() == "{":
                self._advance()
                digits = []
                while is_hex_digit(self._peek()):
                    digits.append(self._advance())
                if self._peek() != "}" or not digits:
                    raise self._error("invalid unicode escape", esc_start)
                self._advance()
                code = int("".join(digits), 16)
            else:
                digits = [self._peek(i) for i in range(4)]
                if not all(is_hex_digit(d) for d in digits):
                    raise self._error("invalid unicode escape", esc_start)
                for _ in range(4):
                    self._advance()
                code = int("".join(digits), 16)
            if code > 0x10FFFF:
                raise self._error("unicode escape out of range", esc_start)
            return chr(code)
        return ch

    # ------------------------------------------------------------------
    # Template literals
    # ------------------------------------------------------------------

    def _lex_template(self) -> None:
        """Emit one cooked chunk followed by `${` or the closing backtick."""
        start = self._current_pos()
        chars = []
        while not self._at_end():
            ch = self._peek()
            if ch == "`" or (ch == "$" and self._peek(1) == "{"):
                break
            self._advance()
            if ch == "\\":
                chars.append(self._read_escape())
            elif ch == "\r" and self._peek() == "\n":
                continue
            else:
                chars.append(ch)
        if self._at_end():
            # Leave the mode open so tokenize() reports the literal's start
            return
        raw = self._source[start.offset : self._pos]
        self._emit(TokenType.TEMPLATE_CHUNK, "".join(chars), raw, start)

        delim_start = self._current_pos()
        if self._peek() == "`":
            self._advance()
            self._emit(TokenType.TEMPLATE_END, "`", "`", delim_start)
            self._pop_state()
            return
        self._advance()
        self._advance()
        self._emit(TokenType.TEMPLATE_EXPR_OPEN, "${", "${", delim_start)
        self._push_state(_State.CODE, delim_start, TokenType.TEMPLATE_EXPR_CLOSE)

    # ------------------------------------------------------------------
    # Markup
    # ------------------------------------------------------------------

    def _skip_tag_whitespace(self) -> bool:
        ch = self._peek()
        if ch in _WHITESPACE:
            self._advance()
            return True
        if ch == "/" and self._peek(1) in ("/", "*"):
            self._skip_comment()
            return True
        return False

    def _lex_jsx_tag(self) -> None:
        if self._skip_tag_whitespace():
            return

        ch = self._peek()
        start = self._current_pos()

        if ch == ">":
            self._advance()
            self._emit(TokenType.JSX_TAG_END, ">", ">", start)
            self._switch_state(_State.JSX_CHILDREN)
            return

        if ch == "/" and self._peek(1) == ">":
            self._advance()
            self._advance()
            self._emit(TokenType.JSX_SELF_CLOSE, "/>", "/>", start)
            self._pop_state()
            return

        if ch == "=":
            self._advance()
            self._emit(TokenType.JSX_EQUALS, "=", "=", start)
            return

        if ch == "{":
            self._advance()
            self._emit(TokenType.JSX_EXPR_OPEN, "{", "{", start)
            self._push_state(_State.CODE, start, TokenType.JSX_EXPR_CLOSE)
            return

        if ch in "'\"":
            self._lex_jsx_attr_string()
            return

        if ch == "<" and (is_ident_start(self._peek(1)) or self._peek(1) == ">"):
            # Element as an attribute value
            self._advance()
            self._emit(TokenType.JSX_TAG_OPEN, "<", "<", start)
            self._push_state(_State.JSX_TAG, start)
            return

        if is_ident_start(ch):
            self._lex_jsx_name()
            return

        raise self._error(f"unexpected character {ch!r} in JSX tag")

    def _lex_jsx_closing_tag(self) -> None:
        if self._skip_tag_whitespace():
            return

        ch = self._peek()
        start = self._current_pos()
        if ch == ">":
            self._advance()
            self._emit(TokenType.JSX_TAG_END, ">", ">", start)
            mismatched = self._mode.mismatched
            self._pop_state()
            # Leave markup entirely so the parser reports the mismatch at the
            # closing name rather than the rest of the source failing as JSX text
            while mismatched and self._mode.state != _State.CODE:
                self._pop_state()
            return
        if is_ident_start(ch):
            self._lex_jsx_name()
            return
        raise self._error(f"unexpected character {ch!r} in closing tag")

    def _lex_jsx_name(self) -> None:
        start = self._current_pos()
        chars = []
        while not self._at_end() and is_jsx_name_char(self._peek()):
            chars.append(self._advance())
        text = "".join(chars)
        mode = self._mode
        if mode.state == _State.JSX_TAG and mode.tag is None:
            mode.tag = text
        elif mode.state == _State.JSX_CLOSING_TAG and text != (mode.tag or ""):
            mode.mismatched = True
        self._emit(TokenType.JSX_NAME, text, text, start)

    def _lex_jsx_attr_string(self) -> None:
        start = self._current_pos()
        quote = self._advance()
        while not self._at_end() and self._peek() != quote:
            self._advance()
        if self._at_end():
            raise self._error("unterminated attribute string", start)
        self._advance()
        raw = self._source[start.offset : self._pos]
        self._emit(TokenType.JSX_ATTR_STRING, html.unescape(raw[1:-1]), raw, start)

    def _lex_jsx_children(self) -> None:
        ch = self._peek()
        start = self._current_pos()

        if ch == "<":
            self._advance()
            if self._peek() == "/":
                self._advance()
                self._emit(TokenType.JSX_CLOSE_TAG_OPEN, "</", "</", start)
                self._switch_state(_State.JSX_CLOSING_TAG)
                return
            self._emit(TokenType.JSX_TAG_OPEN, "<", "<", start)
            self._push_state(_State.JSX_TAG, start)
            return

        if ch == "{":
            self._advance()
            self._emit(TokenType.JSX_EXPR_OPEN, "{", "{", start)
            self._push_state(_State.CODE, start, TokenType.JSX_EXPR_CLOSE)
            return

        while not self._at_end() and self._peek() not in "<{":
            if self._peek() == ">":
                raise self._error("unexpected token '>' in JSX text, did you mean '&gt;'?")
            if self._peek() == "}":
                raise self._error("unexpected token '}' in JSX text, did you mean '&rbrace;'?")
            self._advance()
        raw = self._source[start.offset : self._pos]
        self._emit(TokenType.JSX_TEXT, html.unescape(raw), raw, start)


def tokenize(source: str, filename: str = "component.jsx") -> list[Token]:
    """Convenience function: tokenize source text and return token list."""
    return Lexer(source, filename).tokenize()
