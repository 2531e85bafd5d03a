"""
Cyone Opcode Tables
===================

The bytecode format assigns one byte to every token type and one byte
to every device function. Both tables are part of the wire format shared
with the target's interpreter and must not be reordered.

Token Opcodes
-------------
| Opcode | Token      | Opcode | Token      | Opcode | Token      |
|--------|------------|--------|------------|--------|------------|
| 0x00   | ILLEGAL    | 0x0C   | CALL       | 0x18   | COMMA      |
| 0x01   | EOF        | 0x0D   | TO         | 0x19   | SEMICOLON  |
| 0x02   | IDENTIFIER | 0x0E   | ASSIGN     | 0x1A   | COLON      |
| 0x03   | HEXNUMBER  | 0x0F   | PLUS       | 0x1B   | LPAREN     |
| 0x04   | LOC        | 0x10   | MINUS      | 0x1C   | RPAREN     |
| 0x05   | AT         | 0x11   | ASTERISK   | 0x1D   | LBRACE     |
| 0x06   | START      | 0x12   | SLASH      | 0x1E   | RBRACE     |
| 0x07   | BLOCK      | 0x13   | EQ         | 0x1F   | LBRACKET   |
| 0x08   | MEM        | 0x14   | NOT_EQ     | 0x20   | RBRACKET   |
| 0x09   | IF         | 0x15   | GT         | 0x21   | COMMENT    |
| 0x0A   | ELSE       | 0x16   | LT         |        |            |
| 0x0B   | GOTO       | 0x17   | MOD        |        |            |

Function Opcodes
----------------
| Opcode | Function       |
|--------|----------------|
| 0x00   | DRAW_LINE      |
| 0x01   | DRAW_CIRCLE    |
| 0x02   | SET_COLOR      |
| 0x03   | DRAW_RECTANGLE |
"""

from typing import Final

from cyone.compiler.lexer import TokenType
from cyone.compiler.ast import BinaryOperator


OP_ILLEGAL: Final = 0x00
OP_EOF: Final = 0x01
OP_IDENTIFIER: Final = 0x02
OP_HEXNUMBER: Final = 0x03
OP_LOC: Final = 0x04
OP_AT: Final = 0x05
OP_START: Final = 0x06
OP_BLOCK: Final = 0x07
OP_MEM: Final = 0x08
OP_IF: Final = 0x09
OP_ELSE: Final = 0x0A
OP_GOTO: Final = 0x0B
OP_CALL: Final = 0x0C
OP_TO: Final = 0x0D
OP_ASSIGN: Final = 0x0E
OP_PLUS: Final = 0x0F
OP_MINUS: Final = 0x10
OP_ASTERISK: Final = 0x11
OP_SLASH: Final = 0x12
OP_EQ: Final = 0x13
OP_NOT_EQ: Final = 0x14
OP_GT: Final = 0x15
OP_LT: Final = 0x16
OP_MOD: Final = 0x17
OP_COMMA: Final = 0x18
OP_SEMICOLON: Final = 0x19
OP_COLON: Final = 0x1A
OP_LPAREN: Final = 0x1B
OP_RPAREN: Final = 0x1C
OP_LBRACE: Final = 0x1D
OP_RBRACE: Final = 0x1E
OP_LBRACKET: Final = 0x1F
OP_RBRACKET: Final = 0x20
OP_COMMENT: Final = 0x21


TOKEN_OPCODES: dict[TokenType, int] = {
    TokenType.ILLEGAL: OP_ILLEGAL,
    TokenType.EOF: OP_EOF,
    TokenType.IDENTIFIER: OP_IDENTIFIER,
    TokenType.HEXNUMBER: OP_HEXNUMBER,
    TokenType.LOC: OP_LOC,
    TokenType.AT: OP_AT,
    TokenType.START: OP_START,
    TokenType.BLOCK: OP_BLOCK,
    TokenType.MEM: OP_MEM,
    TokenType.IF: OP_IF,
    TokenType.ELSE: OP_ELSE,
    TokenType.GOTO: OP_GOTO,
    TokenType.CALL: OP_CALL,
    TokenType.TO: OP_TO,
    TokenType.ASSIGN: OP_ASSIGN,
    TokenType.PLUS: OP_PLUS,
    TokenType.MINUS: OP_MINUS,
    TokenType.ASTERISK: OP_ASTERISK,
    TokenType.SLASH: OP_SLASH,
    TokenType.EQ: OP_EQ,
    TokenType.NOT_EQ: OP_NOT_EQ,
    TokenType.GT: OP_GT,
    TokenType.LT: OP_LT,
    TokenType.MOD: OP_MOD,
    TokenType.COMMA: OP_COMMA,
    TokenType.SEMICOLON: OP_SEMICOLON,
    TokenType.COLON: OP_COLON,
    TokenType.LPAREN: OP_LPAREN,
    TokenType.RPAREN: OP_RPAREN,
    TokenType.LBRACE: OP_LBRACE,
    TokenType.RBRACE: OP_RBRACE,
    TokenType.LBRACKET: OP_LBRACKET,
    TokenType.RBRACKET: OP_RBRACKET,
    TokenType.COMMENT: OP_COMMENT,
}

# Reverse lookup for listings and tests
OPCODE_NAMES: dict[int, str] = {opcode: tt.name for tt, opcode in TOKEN_OPCODES.items()}

# Each binary operator is encoded with the opcode of the token it came from
OPERATOR_OPCODES: dict[BinaryOperator, int] = {
    BinaryOperator.MODULO: OP_MOD,
    BinaryOperator.ADD: OP_PLUS,
    BinaryOperator.SUBTRACT: OP_MINUS,
    BinaryOperator.EQUAL: OP_EQ,
    BinaryOperator.NOT_EQUAL: OP_NOT_EQ,
    BinaryOperator.GREATER: OP_GT,
    BinaryOperator.LESS: OP_LT,
    BinaryOperator.MULTIPLY: OP_ASTERISK,
}

FUNCTION_OPCODES: dict[str, int] = {
    "DRAW_LINE": 0x00,
    "DRAW_CIRCLE": 0x01,
    "SET_COLOR": 0x02,
    "DRAW_RECTANGLE": 0x03,
}


def get_function_opcode(name: str) -> int | None:
    """Return the opcode for a device function, or None if unknown."""
    return FUNCTION_OPCODES.get(name)
