"""Tokenizer for rule and action expressions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from bre.errors import ParseError


class TokenType(str, Enum):
    INTEGER = "integer"
    STRING = "string"
    IDENT = "ident"
    OPERATOR = "operator"
    LPAREN = "("
    RPAREN = ")"
    EOF = "eof"


@dataclass(frozen=True)
class Token:
    type: TokenType
    text: str
    position: int


# Longest match first
_OPERATORS = ("==", "!=", "&&", "||", "*", "/", "+", "-", "=")

# A lone "=" is how actions are conventionally written; it means "=="
_OPERATOR_SPELLINGS = {"=": "=="}

_WHITESPACE = " \t\r\n"


def _is_ident_start(ch: str) -> bool:
    return ch == "_" or ch.isalpha()


def _is_ident_char(ch: str) -> bool:
    return _is_ident_start(ch) or ch.isdecimal()


def tokenize(text: str) -> list[Token]:
    """Split expression text into tokens, ending with an EOF token.

    Raises:
        ParseError: On any character that cannot start a token, or an
            unterminated string literal.
    """
    tokens: list[Token] = []
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]

        if ch in _WHITESPACE:
            i += 1
            continue

        if ch == "(":
            tokens.append(Token(TokenType.LPAREN, ch, i))
            i += 1
            continue
        if ch == ")":
            tokens.append(Token(TokenType.RPAREN, ch, i))
            i += 1
            continue

        if ch.isascii() and ch.isdigit():
            start = i
            while i < n and text[i].isascii() and text[i].isdigit():
                i += 1
            if i < n and (text[i] == "." or _is_ident_start(text[i])):
                raise ParseError(text, i, f"Unexpected character {text[i]!r} in number")
            tokens.append(Token(TokenType.INTEGER, text[start:i], start))
            continue

        if _is_ident_start(ch):
            start = i
            while i < n and _is_ident_char(text[i]):
                i += 1
            tokens.append(Token(TokenType.IDENT, text[start:i], start))
            continue

        if ch == '"':
            end = _scan_quoted(text, i)
            tokens.append(Token(TokenType.STRING, text[i:end], i))
            i = end
            continue

        if ch == "`":
            close = text.find("`", i + 1)
            if close < 0:
                raise ParseError(text, i, "Unterminated raw string literal")
            tokens.append(Token(TokenType.STRING, text[i:close + 1], i))
            i = close + 1
            continue

        for op in _OPERATORS:
            if text.startswith(op, i):
                tokens.append(Token(TokenType.OPERATOR, _OPERATOR_SPELLINGS.get(op, op), i))
                i += len(op)
                break
        else:
            raise ParseError(text, i, f"Unexpected character {ch!r}")

    tokens.append(Token(TokenType.EOF, "", n))
    return tokens


def _scan_quoted(text: str, start: int) -> int:
    """Return the index just past the closing quote of a ``"..."`` literal."""
    i = start + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "\n":
            break
        if ch == '"':
            return i + 1
        i += 1
    raise ParseError(text, start, "Unterminated string literal")
