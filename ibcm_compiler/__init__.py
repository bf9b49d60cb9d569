"""
IBCM Toolchain
==============
Assembler for the Itty Bitty Computing Machine plus the front end of
IBCMC, a small C-like language for the same machine.

Architecture:
    ┌──────────┐    ┌──────────┐    ┌──────────┐
    │ IBCMC    │───>│  Lexer   │───>│  Parser  │───> AST
    │ (.ibc)   │    │ (tokens) │    │          │
    └──────────┘    └──────────┘    └──────────┘

    ┌──────────┐    ┌───────────┐    ┌───────────┐
    │ Assembly │───>│ Assembler │───>│ Simulator │
    │ (.ibcm)  │    │ (words)   │    │ (ibcm_emulator)
    └──────────┘    └───────────┘    └───────────┘

    - lexer.py:     hand-written scanner
    - parser.py:    recursive descent
    - ast_nodes.py: dataclass tree
    - assembler.py: two-pass label resolver
"""

__version__ = "0.1.0"

from .lexer import Lexer, LexerError, Token, TokenType
from .ast_nodes import *
from .parser import Parser, ParseError
from .assembler import Assembler, AssemblerError, Program, assemble, assemble_to_hex


def tokenize_source(source: str):
    """Tokenize IBCMC source. The returned list ends with an EOF token."""
    return Lexer(source).tokenize()


def parse_source(source: str) -> Block:
    """Parse IBCMC source into its AST.

    Full pipeline: Lexer -> Parser -> AST.
    Raises LexerError or ParseError.
    """
    return Parser(tokenize_source(source)).parse()
