"""
Cyone - Compiler for the Cyone Device Control Language
======================================================

This package compiles programs written in Cyone, a small language for
driving a memory-mapped drawing device, into bytecode packaged as
Intel HEX records ready to load onto the target.

A Cyone program declares named memory locations, an optional entry
address and address-tagged blocks of statements:

    loc x at 0x0010;
    start at 0x0200;
    block 0x0200 {
        x = 0x05;
        call DRAW_CIRCLE(x, 0x20);
        goto 0x0200;
    }

Main Components
---------------
- **compiler**: Lexer, parser, AST and bytecode generator (cyonec)
- **ihex**: Intel HEX record encoding and decoding

Quick Start
-----------
Compile source text:
    >>> from cyone import compile_to_hex
    >>> for line in compile_to_hex(source):
    ...     print(line)

Or use the command-line tool:
    $ cyonec lamp.cy -o lamp.hex

Version History
---------------
1.0.0 - Initial release
"""

__version__ = "1.0.0"
__author__ = "Isak Ruas"

# =============================================================================
# Public API Exports
# =============================================================================

from cyone.errors import (
    CyoneError,
    SourceLocation,
    LocatedError,
    HexError,
    HexFormatError,
    HexChecksumError,
)
from cyone.compiler import (
    CyoneCompiler,
    CompilerOptions,
    CompilerResult,
    compile_to_hex,
    CompilerError,
    LexError,
    ParseError,
    SymbolError,
)
from cyone.ihex import (
    IntelHexEncoder,
    StartRecordFormat,
    HexRecord,
    decode_hex,
)

__all__ = [
    # Version info
    "__version__",
    "__author__",
    # Compiler
    "CyoneCompiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_to_hex",
    # Intel HEX
    "IntelHexEncoder",
    "StartRecordFormat",
    "HexRecord",
    "decode_hex",
    # Exception hierarchy
    "CyoneError",
    "SourceLocation",
    "LocatedError",
    "CompilerError",
    "LexError",
    "ParseError",
    "SymbolError",
    "HexError",
    "HexFormatError",
    "HexChecksumError",
]
