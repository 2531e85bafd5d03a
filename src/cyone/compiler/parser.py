"""
Cyone Recursive Descent Parser
==============================

This module implements a recursive descent parser for the Cyone control
language. It takes the token list from the lexer and builds an immutable
Abstract Syntax Tree (AST).

Grammar (EBNF)
--------------
program      ::= (var_decl | start_decl | block_decl)*
var_decl     ::= 'loc' IDENT 'at' HEX ';'
start_decl   ::= 'start' 'at' HEX ';'
block_decl   ::= 'block' HEX '{' stmt* '}'
stmt         ::= assign | if_stmt | call | goto | mem_assign
assign       ::= IDENT '=' expr ';'
if_stmt      ::= 'if' '(' expr ')' '{' stmt* '}' ('else' '{' stmt* '}')?
call         ::= 'call' IDENT '(' (param (',' param)*)? ')' ';'
goto         ::= 'goto' HEX ';'
mem_assign   ::= 'mem' '[' expr ']' '=' expr ';'
param        ::= IDENT | HEX
expr         ::= primary (OP primary)*
primary      ::= IDENT | HEX | 'mem' '[' HEX ']'

Expression Precedence
---------------------
There is exactly one precedence level. The operators % + - == != > < *
fold strictly left to right, so ``a + b * c`` means ``(a + b) * c``.

Note the two forms of ``mem[...]``: as a statement target the address
may be any expression, but inside an expression it must be a literal.

Error Handling
--------------
The parser stops at the first error. There is no recovery or
resynchronization. Comment tokens are skipped wherever a token is
examined, so comments may appear between any two tokens.

Example Usage
-------------
>>> from cyone.compiler.parser import parse_source
>>> program = parse_source("loc x at 0x0010; block 0x0200 { x = 0x05; }")
>>> program.blocks[0].statements[0]
Assignment(target='x', expression=Constant(value='0x05'))
"""

from typing import Optional

from cyone.errors import SourceLocation
from cyone.compiler.lexer import Lexer, Token, TokenType
from cyone.compiler.ast import (
    Program,
    VariableDeclaration,
    StartBlock,
    Block,
    Statement,
    Assignment,
    IfStatement,
    CallStatement,
    GotoStatement,
    MemoryAssignment,
    Expression,
    BinaryExpression,
    BinaryOperator,
    Variable,
    Constant,
    MemoryLocation,
    Parameter,
    MemoryReference,
    ByteValue,
)
from cyone.compiler.errors import (
    UnexpectedTokenError,
    MissingTokenError,
    UnexpectedEndError,
    DuplicateStartError,
)


# Operators accepted between primaries, all at the same precedence
BINARY_OPERATORS: dict[TokenType, BinaryOperator] = {
    TokenType.MOD: BinaryOperator.MODULO,
    TokenType.PLUS: BinaryOperator.ADD,
    TokenType.MINUS: BinaryOperator.SUBTRACT,
    TokenType.EQ: BinaryOperator.EQUAL,
    TokenType.NOT_EQ: BinaryOperator.NOT_EQUAL,
    TokenType.GT: BinaryOperator.GREATER,
    TokenType.LT: BinaryOperator.LESS,
    TokenType.ASTERISK: BinaryOperator.MULTIPLY,
}


class Parser:
    """
    Recursive descent parser for Cyone.

    Attributes:
        tokens: Token list from the lexer (normally ending with EOF)
        filename: Source filename for error reporting
    """

    def __init__(
        self,
        tokens: list[Token],
        filename: str = "<input>",
        source_lines: Optional[list[str]] = None,
    ):
        """
        Initialize the parser.

        Args:
            tokens: List of tokens from the lexer
            filename: Source filename for error messages
            source_lines: Original source lines for error context
        """
        self.tokens = tokens
        self.filename = filename
        self.source_lines = source_lines or []
        self._pos = 0

    def parse(self) -> Program:
        """
        Parse the whole token list into a Program.

        Raises:
            ParseError: On the first grammar mismatch
        """
        variables: list[VariableDeclaration] = []
        blocks: list[Block] = []
        start: Optional[StartBlock] = None

        while not self._at_end():
            token = self._peek()

            if token.type == TokenType.LOC:
                variables.append(self._parse_variable_declaration())
            elif token.type == TokenType.START:
                declaration = self._parse_start_declaration()
                if start is not None:
                    raise DuplicateStartError(
                        declaration.location,
                        start.location,
                        self._get_source_line(declaration.location.line),
                    )
                start = declaration
            elif token.type == TokenType.BLOCK:
                blocks.append(self._parse_block())
            else:
                raise self._unexpected(
                    token, "'loc', 'start' or 'block'", context="at top level"
                )

        return Program(
            location=SourceLocation(self.filename, 1, 1),
            variables=tuple(variables),
            start=start,
            blocks=tuple(blocks),
        )

    # =========================================================================
    # Token Access Methods
    # =========================================================================

    def _skip_comments(self) -> None:
        while (self._pos < len(self.tokens)
               and self.tokens[self._pos].type == TokenType.COMMENT):
            self._pos += 1

    def _peek(self) -> Token:
        """Current token after skipping comments (EOF past the end)."""
        self._skip_comments()
        if self._pos >= len(self.tokens):
            return self._eof_token()
        return self.tokens[self._pos]

    def _eof_token(self) -> Token:
        if self.tokens:
            last = self.tokens[-1]
            if last.type == TokenType.EOF:
                return last
            return Token(TokenType.EOF, "", last.line, last.column, self.filename)
        return Token(TokenType.EOF, "", 1, 1, self.filename)

    def _at_end(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _advance(self) -> Token:
        token = self._peek()
        if token.type != TokenType.EOF:
            self._pos += 1
        return token

    def _check(self, *types: TokenType) -> bool:
        return self._peek().type in types

    def _expect(self, token_type: TokenType) -> Token:
        """
        Consume a token of the given type.

        Raises:
            UnexpectedEndError: If the input ends first
            MissingTokenError: If a different token is found
        """
        token = self._peek()
        if token.type == token_type:
            return self._advance()

        if token.type == TokenType.EOF:
            raise UnexpectedEndError(token_type.name, token.location)

        raise MissingTokenError(
            token_type.name,
            token.type.name,
            token.location,
            self._get_source_line(token.line),
        )

    def _expect_any(self, *token_types: TokenType) -> Token:
        """
        Consume a token matching any of the given types.

        Raises:
            UnexpectedEndError: If the input ends first
            UnexpectedTokenError: If no type matches
        """
        token = self._peek()
        if token.type in token_types:
            return self._advance()

        expected = " or ".join(t.name for t in token_types)
        raise self._unexpected(token, expected)

    def _unexpected(
        self,
        token: Token,
        expected: str,
        context: Optional[str] = None,
    ) -> Exception:
        if token.type == TokenType.EOF:
            return UnexpectedEndError(expected, token.location)
        return UnexpectedTokenError(
            token.type.name,
            expected,
            token.location,
            self._get_source_line(token.line),
            context=context,
        )

    def _get_source_line(self, line: int) -> Optional[str]:
        if 0 < line <= len(self.source_lines):
            return self.source_lines[line - 1]
        return None

    # =========================================================================
    # Top-Level Declarations
    # =========================================================================

    def _parse_variable_declaration(self) -> VariableDeclaration:
        """loc NAME at ADDR;"""
        location = self._expect(TokenType.LOC).location
        name = self._expect(TokenType.IDENTIFIER).value
        self._expect(TokenType.AT)
        address = self._expect(TokenType.HEXNUMBER).value
        self._expect(TokenType.SEMICOLON)
        return VariableDeclaration(location=location, name=name, address=address)

    def _parse_start_declaration(self) -> StartBlock:
        """start at ADDR;"""
        location = self._expect(TokenType.START).location
        self._expect(TokenType.AT)
        address = self._expect(TokenType.HEXNUMBER).value
        self._expect(TokenType.SEMICOLON)
        return StartBlock(location=location, address=address)

    def _parse_block(self) -> Block:
        """block ADDR { stmt* }"""
        location = self._expect(TokenType.BLOCK).location
        address = self._expect(TokenType.HEXNUMBER).value
        statements = self._parse_block_body()
        return Block(location=location, address=address, statements=statements)

    def _parse_block_body(self) -> tuple[Statement, ...]:
        """Parse '{' stmt* '}' and return the statements."""
        self._expect(TokenType.LBRACE)
        statements = []
        while not self._check(TokenType.RBRACE):
            statements.append(self._parse_statement())
        self._expect(TokenType.RBRACE)
        return tuple(statements)

    # =========================================================================
    # Statements
    # =========================================================================

    def _parse_statement(self) -> Statement:
        token = self._peek()

        if token.type == TokenType.IDENTIFIER:
            return self._parse_assignment()
        if token.type == TokenType.IF:
            return self._parse_if_statement()
        if token.type == TokenType.CALL:
            return self._parse_call()
        if token.type == TokenType.GOTO:
            return self._parse_goto()
        if token.type == TokenType.MEM:
            return self._parse_memory_assignment()

        raise self._unexpected(token, "a statement or RBRACE", context="in block")

    def _parse_assignment(self) -> Assignment:
        """NAME = expr;"""
        target = self._expect(TokenType.IDENTIFIER)
        self._expect(TokenType.ASSIGN)
        expression = self._parse_expression()
        self._expect(TokenType.SEMICOLON)
        return Assignment(location=target.location, target=target.value, expression=expression)

    def _parse_if_statement(self) -> IfStatement:
        """if (expr) { ... } [else { ... }]"""
        location = self._expect(TokenType.IF).location
        self._expect(TokenType.LPAREN)
        condition = self._parse_expression()
        self._expect(TokenType.RPAREN)

        then_location = self._peek().location
        then_block = Block(location=then_location, statements=self._parse_block_body())

        else_block = None
        if self._check(TokenType.ELSE):
            self._advance()
            else_location = self._peek().location
            else_block = Block(location=else_location, statements=self._parse_block_body())

        return IfStatement(
            location=location,
            condition=condition,
            then_block=then_block,
            else_block=else_block,
        )

    def _parse_call(self) -> CallStatement:
        """call NAME(param, ...);"""
        location = self._expect(TokenType.CALL).location
        name = self._expect(TokenType.IDENTIFIER).value
        self._expect(TokenType.LPAREN)

        parameters: list[Parameter] = []
        if not self._check(TokenType.RPAREN):
            parameters.append(self._parse_parameter())
            while self._check(TokenType.COMMA):
                self._advance()
                parameters.append(self._parse_parameter())

            if not self._check(TokenType.RPAREN):
                raise self._unexpected(self._peek(), "COMMA or RPAREN", context="in argument list")

        self._expect(TokenType.RPAREN)
        self._expect(TokenType.SEMICOLON)
        return CallStatement(location=location, function_name=name, parameters=tuple(parameters))

    def _parse_parameter(self) -> Parameter:
        """IDENT (memory reference) or HEX (byte value)."""
        token = self._expect_any(TokenType.IDENTIFIER, TokenType.HEXNUMBER)
        if token.type == TokenType.IDENTIFIER:
            return MemoryReference(location=token.location, name=token.value)
        return ByteValue(location=token.location, value=token.value)

    def _parse_goto(self) -> GotoStatement:
        """goto ADDR;"""
        location = self._expect(TokenType.GOTO).location
        address = self._expect(TokenType.HEXNUMBER).value
        self._expect(TokenType.SEMICOLON)
        return GotoStatement(location=location, address=address)

    def _parse_memory_assignment(self) -> MemoryAssignment:
        """mem[expr] = expr;"""
        location = self._expect(TokenType.MEM).location
        self._expect(TokenType.LBRACKET)
        address = self._parse_expression()
        self._expect(TokenType.RBRACKET)
        self._expect(TokenType.ASSIGN)
        value = self._parse_expression()
        self._expect(TokenType.SEMICOLON)
        return MemoryAssignment(location=location, address=address, value=value)

    # =========================================================================
    # Expressions
    # =========================================================================

    def _parse_expression(self) -> Expression:
        """primary (OP primary)*, folded left to right."""
        expr = self._parse_primary()

        while self._peek().type in BINARY_OPERATORS:
            operator = BINARY_OPERATORS[self._advance().type]
            right = self._parse_primary()
            expr = BinaryExpression(
                location=expr.location,
                left=expr,
                operator=operator,
                right=right,
            )

        return expr

    def _parse_primary(self) -> Expression:
        token = self._peek()

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            return Variable(location=token.location, name=token.value)
        if token.type == TokenType.HEXNUMBER:
            self._advance()
            return Constant(location=token.location, value=token.value)
        if token.type == TokenType.MEM:
            return self._parse_memory_access()

        raise self._unexpected(token, "IDENTIFIER, HEXNUMBER or MEM", context="in expression")

    def _parse_memory_access(self) -> MemoryLocation:
        """mem[HEX] inside an expression; the address must be a literal."""
        location = self._expect(TokenType.MEM).location
        self._expect(TokenType.LBRACKET)
        address = self._expect(TokenType.HEXNUMBER).value
        self._expect(TokenType.RBRACKET)
        return MemoryLocation(location=location, address=address)


def parse_source(source: str, filename: str = "<input>") -> Program:
    """
    Tokenize and parse source text in one step.

    Raises:
        LexError: On an illegal character
        ParseError: On a grammar mismatch
    """
    tokens = list(Lexer(source, filename).tokenize())
    return Parser(tokens, filename, source.splitlines()).parse()
