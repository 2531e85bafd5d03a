"""
Tests for the Cyone parser.

Covers top-level declarations, every statement form, the flat
left-associative expression grammar, comment skipping and the
first-error-aborts behavior.
"""

import pytest

from cyone.compiler.lexer import Lexer, TokenType
from cyone.compiler.parser import Parser, parse_source
from cyone.compiler.ast import (
    Program,
    VariableDeclaration,
    StartBlock,
    Block,
    Assignment,
    IfStatement,
    CallStatement,
    GotoStatement,
    MemoryAssignment,
    BinaryExpression,
    BinaryOperator,
    Variable,
    Constant,
    MemoryLocation,
    MemoryReference,
    ByteValue,
    ASTPrinter,
    ASTVisitor,
    expression_str,
)
from cyone.compiler.errors import (
    ParseError,
    UnexpectedTokenError,
    MissingTokenError,
    UnexpectedEndError,
    DuplicateStartError,
)


def parse_statements(body: str) -> tuple:
    """Parse statements wrapped in a single block."""
    program = parse_source(f"block 0x0200 {{ {body} }}")
    return program.blocks[0].statements


def parse_expression(expr: str):
    """Parse an expression as the right-hand side of an assignment."""
    (stmt,) = parse_statements(f"r = {expr};")
    return stmt.expression


# =============================================================================
# Top-Level Declarations
# =============================================================================

class TestDeclarations:

    def test_empty_program(self):
        program = parse_source("")
        assert program == Program()

    def test_example_program(self):
        program = parse_source("""
            loc x at 0x0010;
            block 0x0200 {
                x = 0x05;
                goto 0x0200;
            }
        """)
        assert program == Program(
            variables=(VariableDeclaration(name="x", address="0x0010"),),
            start=None,
            blocks=(
                Block(
                    address="0x0200",
                    statements=(
                        Assignment(target="x", expression=Constant(value="0x05")),
                        GotoStatement(address="0x0200"),
                    ),
                ),
            ),
        )

    def test_start_declaration(self):
        program = parse_source("start at 0x0200;")
        assert program.start == StartBlock(address="0x0200")

    def test_declarations_in_any_order(self):
        program = parse_source("""
            block 0x0300 { }
            loc b at 0x0011;
            start at 0x0300;
            loc a at 0x0010;
        """)
        assert [v.name for v in program.variables] == ["b", "a"]
        assert program.start.address == "0x0300"
        assert len(program.blocks) == 1

    def test_blocks_keep_source_order(self):
        program = parse_source("block 0x0300 { } block 0x0100 { }")
        assert [b.address for b in program.blocks] == ["0x0300", "0x0100"]

    def test_duplicate_start(self):
        with pytest.raises(DuplicateStartError) as exc_info:
            parse_source("start at 0x0200;\nstart at 0x0300;", "prog.cy")
        error = exc_info.value
        assert error.location.line == 2
        assert error.original_location.line == 1

    def test_statement_at_top_level(self):
        with pytest.raises(UnexpectedTokenError) as exc_info:
            parse_source("x = 0x01;")
        assert "at top level" in str(exc_info.value)

    def test_locations_recorded(self):
        program = parse_source("\n  loc x at 0x0010;", "prog.cy")
        location = program.variables[0].location
        assert (location.filename, location.line, location.column) == ("prog.cy", 2, 3)


# =============================================================================
# Statements
# =============================================================================

class TestStatements:

    def test_assignment(self):
        (stmt,) = parse_statements("x = y;")
        assert stmt == Assignment(target="x", expression=Variable(name="y"))

    def test_goto(self):
        (stmt,) = parse_statements("goto 0x0300;")
        assert stmt == GotoStatement(address="0x0300")

    def test_goto_requires_literal(self):
        with pytest.raises(MissingTokenError) as exc_info:
            parse_statements("goto x;")
        assert exc_info.value.expected == "HEXNUMBER"

    def test_call_with_parameters(self):
        (stmt,) = parse_statements("call DRAW_LINE(x, 0x10, y);")
        assert stmt == CallStatement(
            function_name="DRAW_LINE",
            parameters=(
                MemoryReference(name="x"),
                ByteValue(value="0x10"),
                MemoryReference(name="y"),
            ),
        )

    def test_call_without_parameters(self):
        (stmt,) = parse_statements("call SET_COLOR();")
        assert stmt == CallStatement(function_name="SET_COLOR")

    def test_call_trailing_comma(self):
        with pytest.raises(UnexpectedTokenError):
            parse_statements("call DRAW_LINE(x,);")

    def test_call_missing_comma(self):
        with pytest.raises(UnexpectedTokenError) as exc_info:
            parse_statements("call DRAW_LINE(x 0x10);")
        assert "argument list" in str(exc_info.value)

    def test_call_parameter_must_be_simple(self):
        with pytest.raises(ParseError):
            parse_statements("call DRAW_LINE(mem[0x10]);")

    def test_unknown_function_parses(self):
        (stmt,) = parse_statements("call UNKNOWN_FN();")
        assert stmt.function_name == "UNKNOWN_FN"

    def test_memory_assignment_with_expression_address(self):
        (stmt,) = parse_statements("mem[x + 0x01] = 0x05;")
        assert stmt == MemoryAssignment(
            address=BinaryExpression(
                left=Variable(name="x"),
                operator=BinaryOperator.ADD,
                right=Constant(value="0x01"),
            ),
            value=Constant(value="0x05"),
        )

    def test_if_without_else(self):
        (stmt,) = parse_statements("if (x == 0x01) { goto 0x0300; }")
        assert isinstance(stmt, IfStatement)
        assert stmt.condition == BinaryExpression(
            left=Variable(name="x"),
            operator=BinaryOperator.EQUAL,
            right=Constant(value="0x01"),
        )
        assert stmt.then_block.statements == (GotoStatement(address="0x0300"),)
        assert stmt.else_block is None

    def test_if_with_else(self):
        (stmt,) = parse_statements("if (x) { x = 0x00; } else { x = 0x01; }")
        assert stmt.else_block.statements == (
            Assignment(target="x", expression=Constant(value="0x01")),
        )

    def test_nested_if(self):
        (stmt,) = parse_statements("if (a) { if (b) { goto 0x10; } }")
        inner = stmt.then_block.statements[0]
        assert isinstance(inner, IfStatement)
        assert inner.condition == Variable(name="b")

    def test_empty_if_body(self):
        (stmt,) = parse_statements("if (x) { } else { }")
        assert stmt.then_block.statements == ()
        assert stmt.else_block.statements == ()

    def test_reserved_keyword_is_not_a_statement(self):
        with pytest.raises(UnexpectedTokenError) as exc_info:
            parse_statements("to x;")
        assert exc_info.value.found == "TO"


# =============================================================================
# Expressions
# =============================================================================

class TestExpressions:

    def test_flat_precedence_add_then_multiply(self):
        assert expression_str(parse_expression("a + b * c")) == "((a + b) * c)"

    def test_flat_precedence_multiply_then_add(self):
        assert expression_str(parse_expression("a * b + c")) == "((a * b) + c)"

    def test_left_associative_subtraction(self):
        expr = parse_expression("a - b - c")
        assert expr.left == BinaryExpression(
            left=Variable(name="a"),
            operator=BinaryOperator.SUBTRACT,
            right=Variable(name="b"),
        )
        assert expr.right == Variable(name="c")

    @pytest.mark.parametrize("op,operator", [
        ("%", BinaryOperator.MODULO),
        ("+", BinaryOperator.ADD),
        ("-", BinaryOperator.SUBTRACT),
        ("==", BinaryOperator.EQUAL),
        ("!=", BinaryOperator.NOT_EQUAL),
        (">", BinaryOperator.GREATER),
        ("<", BinaryOperator.LESS),
        ("*", BinaryOperator.MULTIPLY),
    ])
    def test_binary_operators(self, op, operator):
        expr = parse_expression(f"a {op} 0x01")
        assert expr.operator == operator

    def test_slash_is_not_an_operator(self):
        with pytest.raises(MissingTokenError) as exc_info:
            parse_expression("a / b")
        assert exc_info.value.expected == "SEMICOLON"

    def test_memory_read(self):
        assert parse_expression("mem[0x0010]") == MemoryLocation(address="0x0010")

    def test_memory_read_in_binary_expression(self):
        assert expression_str(parse_expression("mem[0x10] + x")) == "(mem[0x10] + x)"

    def test_memory_read_requires_literal(self):
        with pytest.raises(ParseError):
            parse_expression("mem[x + 0x01]")

    def test_missing_operand(self):
        with pytest.raises(UnexpectedTokenError) as exc_info:
            parse_expression("a +")
        assert "in expression" in str(exc_info.value)


# =============================================================================
# Comments
# =============================================================================

class TestComments:

    def test_comments_between_tokens(self):
        program = parse_source("""
            // variables
            loc // name follows
                x at 0x0010; // trailing
            block 0x0200 { // body
                x = // value
                    0x05;
            }
            // end of file""")
        assert program.variables[0].name == "x"
        assert program.blocks[0].statements[0].expression == Constant(value="0x05")

    def test_comment_only_source(self):
        assert parse_source("// nothing here") == Program()


# =============================================================================
# Error Reporting
# =============================================================================

class TestParseErrors:

    def test_missing_semicolon(self):
        with pytest.raises(MissingTokenError) as exc_info:
            parse_source("block 0x0200 { x = 0x05 }", "prog.cy")
        error = exc_info.value
        assert error.expected == "SEMICOLON"
        assert error.found == "RBRACE"
        assert "SEMICOLON" in str(error)
        assert (error.location.line, error.location.column) == (1, 25)

    def test_error_shows_source_line(self):
        with pytest.raises(ParseError) as exc_info:
            parse_source("loc x at 0x10;\nloc y 0x11;", "prog.cy")
        assert "loc y 0x11;" in str(exc_info.value)

    def test_unexpected_end_of_input(self):
        with pytest.raises(UnexpectedEndError):
            parse_source("loc x at 0x0010")

    def test_unclosed_block(self):
        with pytest.raises(UnexpectedEndError):
            parse_source("block 0x0200 { x = 0x01;")

    def test_missing_block_address(self):
        with pytest.raises(MissingTokenError) as exc_info:
            parse_source("block { }")
        assert exc_info.value.expected == "HEXNUMBER"

    def test_parser_without_eof_token(self):
        tokens = [t for t in Lexer("start at 0x10;").tokenize() if t.type != TokenType.EOF]
        program = Parser(tokens).parse()
        assert program.start.address == "0x10"


# =============================================================================
# AST Utilities
# =============================================================================

class TestASTUtilities:

    def test_printer(self):
        program = parse_source("""
            loc x at 0x0010;
            start at 0x0200;
            block 0x0200 {
                if (x > 0x01) { call DRAW_CIRCLE(x, 0x20); } else { mem[x] = 0x00; }
            }
        """)
        text = ASTPrinter().print(program)
        assert text.splitlines() == [
            "Program",
            "  Variable: x at 0x0010",
            "  Start: 0x0200",
            "  Block 0x0200",
            "    If ((x > 0x01))",
            "      Then:",
            "        Call: DRAW_CIRCLE(x, 0x20)",
            "      Else:",
            "        MemAssign: mem[x] = 0x00",
        ]

    def test_visitor_reaches_nested_nodes(self):
        class CallCounter(ASTVisitor):
            def __init__(self):
                self.count = 0

            def visit_CallStatement(self, node):
                self.count += 1

        program = parse_source("""
            block 0x0100 { call SET_COLOR(0x01); }
            block 0x0200 { if (a) { call DRAW_LINE(); } else { call DRAW_LINE(); } }
        """)
        counter = CallCounter()
        counter.visit(program)
        assert counter.count == 3

    def test_nodes_are_immutable(self):
        (stmt,) = parse_statements("goto 0x10;")
        with pytest.raises(AttributeError):
            stmt.address = "0x20"
