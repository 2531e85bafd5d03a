"""
Cyone Compiler
==============

This package implements the Cyone compiler: a hand-written lexer, a
recursive descent parser producing an immutable AST, and a two-pass
bytecode generator.

Pipeline
--------
    Source → Lexer → Parser → AST → Bytecode Generator → Intel HEX

Usage
-----
>>> from cyone.compiler import compile_to_hex
>>> source = '''
... loc x at 0x0010;
... block 0x0200 {
...     x = 0x05;
...     goto 0x0200;
... }
... '''
>>> compile_to_hex(source)
[':090200000200100E03050B0200C0', ':00000001FF']

Language Summary
----------------
- Declarations: ``loc NAME at ADDR;``, ``start at ADDR;``,
  ``block ADDR { ... }``
- Statements: assignment, ``mem[expr] = expr;``, ``if``/``else``,
  ``call FUNC(args);``, ``goto ADDR;``
- Expressions: identifiers, hex literals and ``mem[ADDR]`` joined by
  ``% + - == != > < *`` at a single precedence level, left to right
- Functions: DRAW_LINE, DRAW_CIRCLE, SET_COLOR, DRAW_RECTANGLE

Numbers are hexadecimal only, always written with a ``0x`` prefix.
"""

from cyone.compiler.compiler import (
    CyoneCompiler,
    CompilerOptions,
    CompilerResult,
    compile_to_hex,
    compile_file,
)
from cyone.compiler.errors import (
    CompilerError,
    LexError,
    ParseError,
    UnexpectedTokenError,
    MissingTokenError,
    UnexpectedEndError,
    DuplicateStartError,
    SymbolError,
    UndeclaredVariableError,
    UnknownFunctionError,
    DuplicateAddressError,
    DuplicateDeclarationError,
    AddressRangeError,
    InvalidLiteralError,
)
from cyone.compiler.lexer import Lexer, Token, TokenType, tokenize
from cyone.compiler.parser import Parser, parse_source
from cyone.compiler.bytecode import (
    BytecodeGenerator,
    BytecodeImage,
    Chunk,
    SymbolTable,
    generate_bytecode,
)

__all__ = [
    # Main interface
    "CyoneCompiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_to_hex",
    "compile_file",
    # Errors
    "CompilerError",
    "LexError",
    "ParseError",
    "UnexpectedTokenError",
    "MissingTokenError",
    "UnexpectedEndError",
    "DuplicateStartError",
    "SymbolError",
    "UndeclaredVariableError",
    "UnknownFunctionError",
    "DuplicateAddressError",
    "DuplicateDeclarationError",
    "AddressRangeError",
    "InvalidLiteralError",
    # Components
    "Lexer",
    "Token",
    "TokenType",
    "tokenize",
    "Parser",
    "parse_source",
    "BytecodeGenerator",
    "BytecodeImage",
    "Chunk",
    "SymbolTable",
    "generate_bytecode",
]
