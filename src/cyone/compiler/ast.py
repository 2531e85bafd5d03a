"""
Cyone Abstract Syntax Tree (AST) Definitions
============================================

This module defines the AST node types produced by the Cyone parser.

Node Hierarchy
--------------
ASTNode (base)
├── Program - root node: variables, optional start, blocks
├── Declarations
│   ├── VariableDeclaration - loc NAME at ADDR;
│   ├── StartBlock - start at ADDR;
│   └── Block - block ADDR { ... } (also used for if/else bodies)
├── Statements (closed set)
│   ├── Assignment - NAME = expr;
│   ├── IfStatement - if (expr) { ... } else { ... }
│   ├── CallStatement - call NAME(params);
│   ├── GotoStatement - goto ADDR;
│   └── MemoryAssignment - mem[expr] = expr;
├── Expressions (closed set)
│   ├── BinaryExpression - left OP right (flat precedence)
│   ├── Variable - declared variable reference
│   ├── Constant - hex literal
│   └── MemoryLocation - mem[ADDR]
└── Call parameters (closed set)
    ├── MemoryReference - bare identifier argument
    └── ByteValue - hex literal argument

Design Notes
------------
- Nodes are frozen dataclasses with tuple children; the tree is never
  modified after parsing.
- Addresses and constants keep their literal text ("0x0010"). Range
  checking happens in the bytecode generator.
- ``location`` is excluded from equality, so two trees with the same
  shape compare equal regardless of where they came from.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from cyone.errors import SourceLocation


# =============================================================================
# AST Node Base Classes
# =============================================================================

@dataclass(frozen=True)
class ASTNode:
    """
    Base class for all AST nodes.

    Attributes:
        location: Source location where this node starts
    """
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Expression(ASTNode):
    """Base class for expression nodes."""
    pass


@dataclass(frozen=True)
class Statement(ASTNode):
    """Base class for statement nodes."""
    pass


@dataclass(frozen=True)
class Parameter(ASTNode):
    """Base class for call parameter nodes."""
    pass


# =============================================================================
# Expression Nodes
# =============================================================================

class BinaryOperator(Enum):
    """Binary operators. All share a single precedence level."""
    MODULO = "%"
    ADD = "+"
    SUBTRACT = "-"
    EQUAL = "=="
    NOT_EQUAL = "!="
    GREATER = ">"
    LESS = "<"
    MULTIPLY = "*"


@dataclass(frozen=True)
class BinaryExpression(Expression):
    """
    Binary operation.

    The parser folds operators left to right, so ``a + b * c`` is
    ``BinaryExpression(BinaryExpression(a, ADD, b), MULTIPLY, c)``.
    """
    left: Expression = None
    operator: BinaryOperator = BinaryOperator.ADD
    right: Expression = None


@dataclass(frozen=True)
class Variable(Expression):
    """Reference to a variable declared with 'loc'."""
    name: str = ""


@dataclass(frozen=True)
class Constant(Expression):
    """Hex literal, e.g. ``0x05``."""
    value: str = ""


@dataclass(frozen=True)
class MemoryLocation(Expression):
    """Direct memory read ``mem[0x0010]``. The address is always a literal."""
    address: str = ""


# =============================================================================
# Call Parameters
# =============================================================================

@dataclass(frozen=True)
class MemoryReference(Parameter):
    """Identifier argument, passed as the variable's memory address."""
    name: str = ""


@dataclass(frozen=True)
class ByteValue(Parameter):
    """Hex literal argument."""
    value: str = ""


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass(frozen=True)
class Block(ASTNode):
    """
    Sequence of statements.

    Top-level blocks carry their load address. The bodies of if/else
    are blocks without an address.
    """
    address: Optional[str] = None
    statements: tuple[Statement, ...] = ()


@dataclass(frozen=True)
class Assignment(Statement):
    """Store an expression into a declared variable."""
    target: str = ""
    expression: Expression = None


@dataclass(frozen=True)
class IfStatement(Statement):
    """Conditional with optional else branch."""
    condition: Expression = None
    then_block: Block = None
    else_block: Optional[Block] = None


@dataclass(frozen=True)
class CallStatement(Statement):
    """Device function call, e.g. ``call DRAW_LINE(x, 0x10);``."""
    function_name: str = ""
    parameters: tuple[Parameter, ...] = ()


@dataclass(frozen=True)
class GotoStatement(Statement):
    """Unconditional jump to a literal address."""
    address: str = ""


@dataclass(frozen=True)
class MemoryAssignment(Statement):
    """
    Direct memory write ``mem[addr] = value;``.

    Unlike MemoryLocation, the address here may be any expression.
    """
    address: Expression = None
    value: Expression = None


# =============================================================================
# Declarations and Program Root
# =============================================================================

@dataclass(frozen=True)
class VariableDeclaration(ASTNode):
    """``loc NAME at ADDR;``"""
    name: str = ""
    address: str = ""


@dataclass(frozen=True)
class StartBlock(ASTNode):
    """``start at ADDR;`` - the program entry address."""
    address: str = ""


@dataclass(frozen=True)
class Program(ASTNode):
    """
    Root node of a parsed Cyone source file.

    Attributes:
        variables: Variable declarations in source order
        start: The entry address declaration, if any
        blocks: Code blocks in source order
    """
    variables: tuple[VariableDeclaration, ...] = ()
    start: Optional[StartBlock] = None
    blocks: tuple[Block, ...] = ()


# =============================================================================
# AST Visitor Pattern
# =============================================================================

class ASTVisitor:
    """
    Base class for AST visitors.

    Subclasses override visit_* methods for the node types they care
    about. Unhandled nodes fall through to generic_visit, which visits
    every child node.

    Usage:
        class CallCounter(ASTVisitor):
            def __init__(self):
                self.count = 0

            def visit_CallStatement(self, node):
                self.count += 1

        counter = CallCounter()
        counter.visit(program)
    """

    def visit(self, node: ASTNode):
        method_name = f"visit_{node.__class__.__name__}"
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: ASTNode) -> None:
        for field_value in node.__dict__.values():
            if isinstance(field_value, ASTNode):
                self.visit(field_value)
            elif isinstance(field_value, tuple):
                for item in field_value:
                    if isinstance(item, ASTNode):
                        self.visit(item)


# =============================================================================
# AST Pretty Printer
# =============================================================================

class ASTPrinter(ASTVisitor):
    """
    Pretty printer for AST debugging (``cyonec --ast``).

    Usage:
        printer = ASTPrinter()
        print(printer.print(program))
    """

    def __init__(self):
        self.output: list[str] = []
        self.indent_level = 0

    def print(self, node: ASTNode) -> str:
        """Print the AST and return it as a string."""
        self.output = []
        self.indent_level = 0
        self.visit(node)
        return "\n".join(self.output)

    def _emit(self, text: str) -> None:
        self.output.append(f"{'  ' * self.indent_level}{text}")

    def _nested(self, block: Block) -> None:
        self.indent_level += 1
        for stmt in block.statements:
            self.visit(stmt)
        self.indent_level -= 1

    def visit_Program(self, node: Program):
        self._emit("Program")
        self.indent_level += 1
        for decl in node.variables:
            self.visit(decl)
        if node.start:
            self.visit(node.start)
        for block in node.blocks:
            self.visit(block)
        self.indent_level -= 1

    def visit_VariableDeclaration(self, node: VariableDeclaration):
        self._emit(f"Variable: {node.name} at {node.address}")

    def visit_StartBlock(self, node: StartBlock):
        self._emit(f"Start: {node.address}")

    def visit_Block(self, node: Block):
        self._emit(f"Block {node.address}")
        self._nested(node)

    def visit_Assignment(self, node: Assignment):
        self._emit(f"Assign: {node.target} = {expression_str(node.expression)}")

    def visit_MemoryAssignment(self, node: MemoryAssignment):
        self._emit(
            f"MemAssign: mem[{expression_str(node.address)}] = {expression_str(node.value)}"
        )

    def visit_GotoStatement(self, node: GotoStatement):
        self._emit(f"Goto: {node.address}")

    def visit_CallStatement(self, node: CallStatement):
        args = ", ".join(parameter_str(p) for p in node.parameters)
        self._emit(f"Call: {node.function_name}({args})")

    def visit_IfStatement(self, node: IfStatement):
        self._emit(f"If ({expression_str(node.condition)})")
        self.indent_level += 1
        self._emit("Then:")
        self._nested(node.then_block)
        if node.else_block is not None:
            self._emit("Else:")
            self._nested(node.else_block)
        self.indent_level -= 1


def expression_str(expr: Expression) -> str:
    """Render an expression with explicit grouping, e.g. ``((a + b) * c)``."""
    if isinstance(expr, BinaryExpression):
        return f"({expression_str(expr.left)} {expr.operator.value} {expression_str(expr.right)})"
    if isinstance(expr, Variable):
        return expr.name
    if isinstance(expr, Constant):
        return expr.value
    if isinstance(expr, MemoryLocation):
        return f"mem[{expr.address}]"
    return f"<{type(expr).__name__}>"


def parameter_str(param: Parameter) -> str:
    if isinstance(param, MemoryReference):
        return param.name
    if isinstance(param, ByteValue):
        return param.value
    return f"<{type(param).__name__}>"
