"""
Recursive-descent parser for rule and action expressions.

Grammar (lowest precedence first, all binary operators left-associative)::

    expression := or
    or         := and ( "||" and )*
    and        := equality ( "&&" equality )*
    equality   := additive ( ( "==" | "!=" ) additive )*
    additive   := term ( ( "+" | "-" ) term )*
    term       := primary ( ( "*" | "/" ) primary )*
    primary    := INTEGER | STRING | IDENT | "(" expression ")"

Levels are handled by precedence climbing over ``Operator.precedence``.
"""

from __future__ import annotations

from bre.config import get_settings
from bre.errors import ParseError

from .lexer import Token, TokenType, tokenize
from .nodes import (
    BinaryExpr,
    Expression,
    GroupExpr,
    IdentifierExpr,
    LiteralExpr,
    LiteralKind,
    Operator,
)


class Parser:
    """Parses a single expression string into a tree.

    The parser tracks the height of every subtree it builds and rejects
    trees taller than ``max_depth``, so evaluation of anything it accepts
    stays within the interpreter's recursion limit.
    """

    def __init__(self, text: str, max_depth: int | None = None):
        self.text = text
        self.max_depth = max_depth if max_depth is not None else get_settings().max_expression_depth
        self._tokens = tokenize(text)
        self._pos = 0
        self._nesting = 0

    def parse(self) -> Expression:
        """Parse the full text.

        Raises:
            ParseError: If the grammar does not match or input remains.
        """
        if self._peek().type == TokenType.EOF:
            raise ParseError(self.text, 0, "Empty expression")

        expr, _ = self._parse_binary(1)

        token = self._peek()
        if token.type != TokenType.EOF:
            raise ParseError(self.text, token.position, f"Unexpected {token.text!r}")
        return expr

    # -------------------------------------------------------------------------
    # Token helpers
    # -------------------------------------------------------------------------

    def _peek(self) -> Token:
        return self._tokens[self._pos]

    def _advance(self) -> Token:
        token = self._tokens[self._pos]
        if token.type != TokenType.EOF:
            self._pos += 1
        return token

    def _check_depth(self, depth: int, position: int) -> None:
        if depth > self.max_depth:
            raise ParseError(
                self.text, position, f"Expression nested deeper than {self.max_depth} levels"
            )

    # -------------------------------------------------------------------------
    # Grammar
    # -------------------------------------------------------------------------

    def _parse_binary(self, min_precedence: int) -> tuple[Expression, int]:
        left, left_depth = self._parse_primary()

        while True:
            token = self._peek()
            if token.type != TokenType.OPERATOR:
                break
            operator = Operator(token.text)
            if operator.precedence < min_precedence:
                break
            self._advance()

            if self._peek().type == TokenType.EOF:
                raise ParseError(self.text, token.position, f"Missing right operand for {token.text!r}")

            right, right_depth = self._parse_binary(operator.precedence + 1)
            depth = max(left_depth, right_depth) + 1
            self._check_depth(depth, token.position)
            left = BinaryExpr(operator=operator, left=left, right=right)
            left_depth = depth

        return left, left_depth

    def _parse_primary(self) -> tuple[Expression, int]:
        token = self._advance()

        if token.type == TokenType.INTEGER:
            return LiteralExpr(kind=LiteralKind.INTEGER, raw=token.text), 1
        if token.type == TokenType.STRING:
            return LiteralExpr(kind=LiteralKind.STRING, raw=token.text), 1
        if token.type == TokenType.IDENT:
            return IdentifierExpr(name=token.text), 1

        if token.type == TokenType.LPAREN:
            self._nesting += 1
            self._check_depth(self._nesting, token.position)
            inner, inner_depth = self._parse_binary(1)
            closing = self._advance()
            if closing.type != TokenType.RPAREN:
                raise ParseError(self.text, token.position, "Unbalanced parenthesis")
            self._nesting -= 1
            depth = inner_depth + 1
            self._check_depth(depth, token.position)
            return GroupExpr(inner=inner), depth

        if token.type == TokenType.EOF:
            raise ParseError(self.text, token.position, "Unexpected end of expression")
        raise ParseError(self.text, token.position, f"Unexpected {token.text!r}")


def parse(text: str, max_depth: int | None = None) -> Expression:
    """Parse expression text into a tree.

    Args:
        text: Condition or action source text
        max_depth: Optional tree height limit (defaults to settings)

    Returns:
        Root expression node

    Raises:
        ParseError: If the text is not a valid expression
    """
    return Parser(text, max_depth).parse()
