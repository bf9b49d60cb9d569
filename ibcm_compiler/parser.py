"""
Recursive-descent parser for IBCMC.

Parses a token stream from the Lexer into the AST defined in ast_nodes.

Grammar:
  program     := block EOF
  block       := stmt*                      (stops at `}` or EOF)
  stmt        := `;`
               | decl `;`
               | decl `=` expr `;`
               | decl `(` params `)` `{` block `}`
               | IDENT `=` expr `;`
               | IDENT (`+=` | `-=`) expr `;`
               | `{` block `}`
               | expr `;`
  decl        := [`const`] (`int` | `void`) IDENT
  params      := [decl (`,` decl)*]
  expr        := term ((`+` | `-`) term)*   (left-associative)
  term        := IDENT | INT_LITERAL

`void` is only accepted as the return type of a function definition.
"""

from __future__ import annotations
from typing import List, Optional
from .lexer import Token, TokenType
from .ast_nodes import *


class ParseError(Exception):
    def __init__(self, message: str, token: Token):
        self.token = token
        self.line = token.line
        loc = f"L{token.line}:{token.col}"
        super().__init__(f"Parse error at {loc}: {message} (got {token})")


_TYPE_KEYWORDS = (TokenType.KW_INT, TokenType.KW_VOID)
_TYPES = {
    TokenType.KW_INT: Type.INT,
    TokenType.KW_VOID: Type.VOID,
}


class Parser:
    """Recursive descent parser producing an AST from tokens."""

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0

    # ── Helpers ─────────────────────────────

    def _cur(self) -> Token:
        return self.tokens[self.pos]

    def _peek(self, offset: int = 0) -> Token:
        i = self.pos + offset
        if i < len(self.tokens):
            return self.tokens[i]
        return self.tokens[-1]  # EOF

    def _at(self, *types: TokenType) -> bool:
        return self._cur().type in types

    def _advance(self) -> Token:
        tok = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def _expect(self, ttype: TokenType, msg: str = "") -> Token:
        if self._cur().type != ttype:
            if not msg:
                msg = f"expected `{ttype.value}`"
            raise ParseError(msg, self._cur())
        return self._advance()

    def _match(self, *types: TokenType) -> Optional[Token]:
        if self._cur().type in types:
            return self._advance()
        return None

    # ── Program structure ────────────────────

    def parse(self) -> Block:
        """Parse a complete program."""
        block = self._parse_block()
        if not self._at(TokenType.EOF):
            raise ParseError("unexpected `}` at top level", self._cur())
        return block

    def _parse_block(self) -> Block:
        line = self._cur().line
        stmts = []
        while not self._at(TokenType.RBRACE, TokenType.EOF):
            stmts.append(self._parse_stmt())
        return Block(stmts, line)

    def _parse_stmt(self) -> Stmt:
        tok = self._cur()
        line = tok.line

        if self._match(TokenType.SEMI):
            return Empty(line)

        if self._at(TokenType.KW_CONST, *_TYPE_KEYWORDS):
            return self._parse_stmt_after_type()

        if self._match(TokenType.LBRACE):
            block = self._parse_block()
            self._expect(TokenType.RBRACE)
            block.line = line
            return block

        if tok.type == TokenType.IDENT:
            nxt = self._peek(1).type
            if nxt == TokenType.ASSIGN:
                self._advance()
                self._advance()
                expr = self._parse_expr()
                self._expect(TokenType.SEMI)
                return Assign(tok.value, expr, line)
            if nxt in (TokenType.PLUS_ASSIGN, TokenType.MINUS_ASSIGN):
                self._advance()
                op = BinOpKind.ADD if self._advance().type == TokenType.PLUS_ASSIGN else BinOpKind.SUB
                expr = self._parse_expr()
                self._expect(TokenType.SEMI)
                return CompoundAssign(tok.value, op, expr, line)

        if self._at(TokenType.EOF):
            raise ParseError("unexpected end of program", tok)

        expr = self._parse_expr()
        self._expect(TokenType.SEMI)
        return ExprStmt(expr, line)

    def _parse_stmt_after_type(self) -> Stmt:
        """Variable declaration, initialization, or function definition."""
        line = self._cur().line
        decl = self._parse_decl()

        if self._match(TokenType.LPAREN):
            params = self._parse_param_list()
            self._expect(TokenType.RPAREN)
            self._expect(TokenType.LBRACE)
            body = self._parse_block()
            self._expect(TokenType.RBRACE)
            return Function(decl, params, body, line)

        if decl.type == Type.VOID:
            raise ParseError(f"variable '{decl.name}' declared void", self._cur())

        if self._match(TokenType.SEMI):
            return DeclStmt(decl, line)
        if self._match(TokenType.ASSIGN):
            expr = self._parse_expr()
            self._expect(TokenType.SEMI)
            return Init(decl, expr, line)
        raise ParseError("expected `;`, `=`, or `(`", self._cur())

    def _parse_param_list(self) -> List[Decl]:
        params: List[Decl] = []
        if self._at(TokenType.RPAREN):
            return params
        while True:
            param = self._parse_decl()
            if param.type == Type.VOID:
                raise ParseError(f"parameter '{param.name}' declared void", self._cur())
            params.append(param)
            if not self._match(TokenType.COMMA):
                return params

    def _parse_decl(self) -> Decl:
        is_const = self._match(TokenType.KW_CONST) is not None
        tok = self._cur()
        if tok.type not in _TYPES:
            raise ParseError("expected type", tok)
        self._advance()
        name = self._expect(TokenType.IDENT, "expected identifier").value
        return Decl(is_const, _TYPES[tok.type], name)

    # ── Expressions ──────────────────────────

    def _parse_expr(self) -> Expr:
        lhs = self._parse_term()
        while self._at(TokenType.PLUS, TokenType.MINUS):
            op = BinOpKind.ADD if self._advance().type == TokenType.PLUS else BinOpKind.SUB
            rhs = self._parse_term()
            lhs = BinOp(op, lhs, rhs)
        return lhs

    def _parse_term(self) -> Expr:
        tok = self._cur()
        if tok.type == TokenType.IDENT:
            self._advance()
            return Ident(tok.value)
        if tok.type == TokenType.INT_LITERAL:
            self._advance()
            return IntLiteral(tok.value)
        raise ParseError("expected expression term", tok)
