"""
AST Node definitions for IBCMC.

Defines the Abstract Syntax Tree produced by the parser. A program is a
Block of statements; statements and expressions are plain dataclasses.
Every statement records the line it started on.
"""

from __future__ import annotations
import enum
from dataclasses import dataclass, field
from typing import List, Union

__all__ = [
    "Type", "BinOpKind", "Decl", "IntLiteral", "Ident", "BinOp", "Expr",
    "Block", "Assign", "CompoundAssign", "DeclStmt", "Init", "Function",
    "ExprStmt", "Empty", "Stmt", "format_expr", "format_tree",
]


# ──────────────────────────────────────────────
# Type system
# ──────────────────────────────────────────────

class Type(enum.Enum):
    INT = "int"      # 16-bit word
    VOID = "void"    # function return type only


class BinOpKind(enum.Enum):
    ADD = "+"
    SUB = "-"


@dataclass
class Decl:
    """`[const] type name`"""
    is_const: bool
    type: Type
    name: str

    def __str__(self) -> str:
        prefix = "const " if self.is_const else ""
        return f"{prefix}{self.type.value} {self.name}"


# ──────────────────────────────────────────────
# Expressions
# ──────────────────────────────────────────────

@dataclass
class IntLiteral:
    value: int


@dataclass
class Ident:
    name: str


@dataclass
class BinOp:
    op: BinOpKind
    lhs: Expr
    rhs: Expr


Expr = Union[BinOp, Ident, IntLiteral]


# ──────────────────────────────────────────────
# Statements
# ──────────────────────────────────────────────

@dataclass
class Block:
    stmts: List[Stmt] = field(default_factory=list)
    line: int = 0


@dataclass
class Assign:
    """`name = expr;`"""
    name: str
    expr: Expr
    line: int = 0


@dataclass
class CompoundAssign:
    """`name += expr;` / `name -= expr;`"""
    name: str
    op: BinOpKind
    expr: Expr
    line: int = 0


@dataclass
class DeclStmt:
    """`int x;`"""
    decl: Decl
    line: int = 0


@dataclass
class Init:
    """`int x = expr;`"""
    decl: Decl
    expr: Expr
    line: int = 0


@dataclass
class Function:
    """`int f(int a, int b) { ... }`"""
    decl: Decl
    params: List[Decl]
    body: Block
    line: int = 0


@dataclass
class ExprStmt:
    expr: Expr
    line: int = 0


@dataclass
class Empty:
    """`;`"""
    line: int = 0


Stmt = Union[Block, Assign, CompoundAssign, DeclStmt, Init, Function, ExprStmt, Empty]


# ──────────────────────────────────────────────
# Pretty printer
# ──────────────────────────────────────────────

def format_expr(expr: Expr) -> str:
    if isinstance(expr, IntLiteral):
        return str(expr.value)
    if isinstance(expr, Ident):
        return expr.name
    return f"({format_expr(expr.lhs)} {expr.op.value} {format_expr(expr.rhs)})"


def format_tree(node: Union[Block, Stmt], indent: int = 0) -> str:
    """Render a statement tree as indented text, one node per line."""
    pad = "  " * indent
    if isinstance(node, Block):
        lines = [f"{pad}Block"]
        lines.extend(format_tree(s, indent + 1) for s in node.stmts)
        return "\n".join(lines)
    if isinstance(node, Function):
        params = ", ".join(str(p) for p in node.params)
        return (f"{pad}Function {node.decl}({params})  @L{node.line}\n"
                + format_tree(node.body, indent + 1))
    if isinstance(node, Assign):
        return f"{pad}Assign {node.name} = {format_expr(node.expr)}  @L{node.line}"
    if isinstance(node, CompoundAssign):
        return (f"{pad}CompoundAssign {node.name} {node.op.value}= "
                f"{format_expr(node.expr)}  @L{node.line}")
    if isinstance(node, DeclStmt):
        return f"{pad}Decl {node.decl}  @L{node.line}"
    if isinstance(node, Init):
        return f"{pad}Init {node.decl} = {format_expr(node.expr)}  @L{node.line}"
    if isinstance(node, ExprStmt):
        return f"{pad}Expr {format_expr(node.expr)}  @L{node.line}"
    return f"{pad}Empty  @L{node.line}"
