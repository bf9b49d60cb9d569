"""
Lexer / Tokenizer for IBCMC.

IBCMC is a stripped-down C-like language for the IBCM. This module turns
its source text into a stream of tokens for the parser.

Tokens:
  operators     +  -  =  +=  -=
  punctuation   ;  ,  (  )  {  }
  keywords      const  int  void
  identifiers   a letter followed by letters and digits
  literals      decimal integers that fit in a 16-bit word

Whitespace and `//` line comments are skipped.
"""

from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import Dict, List


# ──────────────────────────────────────────────
# Token types
# ──────────────────────────────────────────────

class TokenType(enum.Enum):
    # Literals
    INT_LITERAL = "INT_LITERAL"

    # Identifier
    IDENT = "IDENT"

    # Keywords
    KW_CONST = "const"
    KW_INT = "int"
    KW_VOID = "void"

    # Operators
    PLUS = "+"
    MINUS = "-"
    ASSIGN = "="
    PLUS_ASSIGN = "+="
    MINUS_ASSIGN = "-="

    # Punctuation
    SEMI = ";"
    COMMA = ","
    LPAREN = "("
    RPAREN = ")"
    LBRACE = "{"
    RBRACE = "}"

    # Special
    EOF = "EOF"


# ──────────────────────────────────────────────
# Token data class
# ──────────────────────────────────────────────

@dataclass
class Token:
    type: TokenType
    value: str | int
    line: int
    col: int

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, L{self.line}:{self.col})"

    def __str__(self):
        if self.type == TokenType.IDENT:
            return f"ident({self.value})"
        if self.type == TokenType.INT_LITERAL:
            return f"int_lit({self.value})"
        if self.type == TokenType.EOF:
            return "end of input"
        return self.type.value


KEYWORDS: Dict[str, TokenType] = {
    "const": TokenType.KW_CONST,
    "int": TokenType.KW_INT,
    "void": TokenType.KW_VOID,
}

# Longest match first
OPERATORS = [
    ("+=", TokenType.PLUS_ASSIGN),
    ("-=", TokenType.MINUS_ASSIGN),
    ("+", TokenType.PLUS),
    ("-", TokenType.MINUS),
    ("=", TokenType.ASSIGN),
    (";", TokenType.SEMI),
    (",", TokenType.COMMA),
    ("(", TokenType.LPAREN),
    (")", TokenType.RPAREN),
    ("{", TokenType.LBRACE),
    ("}", TokenType.RBRACE),
]

MAX_INT_LITERAL = 0xFFFF

_LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
_DIGITS = "0123456789"


# ──────────────────────────────────────────────
# Lexer
# ──────────────────────────────────────────────

class LexerError(Exception):
    def __init__(self, message: str, line: int, col: int):
        self.line = line
        self.col = col
        super().__init__(f"Lexer error at L{line}:{col}: {message}")


class Lexer:
    """Tokenizes IBCMC source into a list of Tokens."""

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.col = 1
        self.tokens: List[Token] = []

    def _peek(self, offset: int = 0) -> str:
        i = self.pos + offset
        return self.source[i] if i < len(self.source) else "\0"

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _match(self, expected: str) -> bool:
        if self.source[self.pos:self.pos + len(expected)] == expected:
            for _ in expected:
                self._advance()
            return True
        return False

    def _skip_whitespace(self):
        while self.pos < len(self.source) and self.source[self.pos] in " \t\r\n":
            self._advance()

    def _skip_line_comment(self):
        while self.pos < len(self.source) and self.source[self.pos] != "\n":
            self._advance()

    def _read_number(self) -> Token:
        start_line, start_col = self.line, self.col
        start_pos = self.pos
        while self.pos < len(self.source) and self.source[self.pos] in _DIGITS:
            self._advance()
        text = self.source[start_pos:self.pos]
        value = int(text)
        if value > MAX_INT_LITERAL:
            raise LexerError(f"integer literal {text} does not fit in a word",
                             start_line, start_col)
        return Token(TokenType.INT_LITERAL, value, start_line, start_col)

    def _read_identifier_or_keyword(self) -> Token:
        start_line, start_col = self.line, self.col
        start_pos = self.pos
        while self.pos < len(self.source) and self.source[self.pos] in _LETTERS + _DIGITS:
            self._advance()
        word = self.source[start_pos:self.pos]
        ttype = KEYWORDS.get(word, TokenType.IDENT)
        return Token(ttype, word, start_line, start_col)

    def tokenize(self) -> List[Token]:
        """Tokenize the whole source. The list always ends with an EOF token."""
        self.tokens = []
        while True:
            self._skip_whitespace()
            if self.pos >= len(self.source):
                break

            if self._peek() == "/" and self._peek(1) == "/":
                self._skip_line_comment()
                continue

            ch = self._peek()
            if ch in _DIGITS:
                self.tokens.append(self._read_number())
                continue
            if ch in _LETTERS:
                self.tokens.append(self._read_identifier_or_keyword())
                continue

            line, col = self.line, self.col
            for text, ttype in OPERATORS:
                if self._match(text):
                    self.tokens.append(Token(ttype, text, line, col))
                    break
            else:
                raise LexerError(f"unknown token `{ch}`", line, col)

        self.tokens.append(Token(TokenType.EOF, "", self.line, self.col))
        return self.tokens
