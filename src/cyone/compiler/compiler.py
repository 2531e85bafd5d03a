"""
Cyone Compiler Main Module
==========================

This module provides the main compiler interface for Cyone.
It orchestrates the complete compilation process:

    Source → Lex → Parse → Generate → Intel HEX

Usage
-----
Command line:
    $ cyonec lamp.cy -o lamp.hex

Programmatic:
    >>> from cyone.compiler import compile_to_hex
    >>> lines = compile_to_hex('loc x at 0x0010; block 0x0200 { x = 0x05; }')
    >>> lines[-1]
    ':00000001FF'

Compilation Pipeline
--------------------
1. **Lexical Analysis**: Convert source to tokens
2. **Parsing**: Build the Abstract Syntax Tree (AST)
3. **Bytecode Generation**: Resolve symbols, encode each block
4. **HEX Encoding**: Split the image into checksummed records

Error Handling
--------------
Compilation stops at the first error. compile_source() reports it in
the returned CompilerResult; compile_to_hex() raises it.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import logging

from cyone.errors import CyoneError
from cyone.compiler.lexer import Lexer, Token
from cyone.compiler.parser import Parser
from cyone.compiler.ast import Program
from cyone.compiler.bytecode import BytecodeGenerator, BytecodeImage
from cyone.ihex.encoder import (
    IntelHexEncoder,
    StartRecordFormat,
    DEFAULT_BYTES_PER_RECORD,
)
from cyone.ihex.records import MAX_RECORD_DATA


logger = logging.getLogger(__name__)


@dataclass
class CompilerOptions:
    """
    Compiler configuration options.

    Attributes:
        bytes_per_record: Payload bytes per Intel HEX data record (1-255)
        start_record: Record written for the 'start' address. Accepts a
                      StartRecordFormat or its name ("linear", "segment",
                      "none").
    """
    bytes_per_record: int = DEFAULT_BYTES_PER_RECORD
    start_record: StartRecordFormat = StartRecordFormat.LINEAR

    def __post_init__(self):
        if isinstance(self.start_record, str):
            self.start_record = StartRecordFormat(self.start_record.lower())
        if not 1 <= self.bytes_per_record <= MAX_RECORD_DATA:
            raise ValueError(
                f"bytes_per_record must be between 1 and {MAX_RECORD_DATA}, "
                f"got {self.bytes_per_record}"
            )


@dataclass
class CompilerResult:
    """
    Result of a compilation.

    Exactly one of ``lines`` (on success) or ``error`` (on failure) is
    meaningful.

    Attributes:
        filename: Source filename
        success: True if compilation succeeded
        lines: Intel HEX record lines (if successful)
        image: The bytecode image (if generation succeeded)
        ast: Abstract syntax tree (if parsing succeeded)
        tokens: Token list (if lexing succeeded)
        error: The error that stopped compilation
    """
    filename: str = ""
    success: bool = False
    lines: list[str] = None
    image: Optional[BytecodeImage] = None
    ast: Optional[Program] = None
    tokens: list[Token] = None
    error: Optional[CyoneError] = None

    def __post_init__(self):
        if self.lines is None:
            self.lines = []
        if self.tokens is None:
            self.tokens = []

    @property
    def token_count(self) -> int:
        return len(self.tokens)

    @property
    def hex_text(self) -> str:
        """Record lines joined for writing to a file."""
        return "".join(f"{line}\n" for line in self.lines)


class CyoneCompiler:
    """
    Cyone compiler.

    Each call compiles independently; no state carries over between
    compilations.

    Example:
        compiler = CyoneCompiler()
        result = compiler.compile_file("lamp.cy")
        if result.success:
            print(result.hex_text, end="")
        else:
            print(result.error)

    Attributes:
        options: Compiler configuration options
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()

    def compile_source(self, source: str, filename: str = "<input>") -> CompilerResult:
        """
        Compile Cyone source text to Intel HEX.

        Args:
            source: Cyone source code string
            filename: Source filename for error messages

        Returns:
            CompilerResult with either the HEX lines or the error
        """
        result = CompilerResult(filename=filename)
        source_lines = source.splitlines()

        try:
            # Stage 1: Lexical analysis
            result.tokens = self._lex(source, filename)

            # Stage 2: Parsing
            result.ast = self._parse(result.tokens, filename, source_lines)

            # Stage 3: Bytecode generation
            result.image = self._generate(result.ast, source_lines)

            # Stage 4: HEX encoding
            result.lines = self._encode(result.image)
            result.success = True

        except CyoneError as e:
            logger.debug(f"Compilation of {filename} failed: {e.__class__.__name__}")
            result.lines = []
            result.error = e
            result.success = False

        return result

    def compile_file(self, filepath: str) -> CompilerResult:
        """
        Compile a Cyone source file.

        Raises:
            FileNotFoundError: If source file not found
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Source file not found: {filepath}")

        source = path.read_text(encoding="utf-8")
        return self.compile_source(source, str(path))

    def _lex(self, source: str, filename: str) -> list[Token]:
        tokens = list(Lexer(source, filename).tokenize())
        logger.debug(f"Lexed {len(tokens)} tokens from {filename}")
        return tokens

    def _parse(self, tokens: list[Token], filename: str, source_lines: list[str]) -> Program:
        program = Parser(tokens, filename, source_lines).parse()
        logger.debug(
            f"Parsed {len(program.variables)} variables and {len(program.blocks)} blocks"
        )
        return program

    def _generate(self, program: Program, source_lines: list[str]) -> BytecodeImage:
        image = BytecodeGenerator(source_lines).generate(program)
        logger.debug(f"Generated {image.size} bytes of bytecode")
        return image

    def _encode(self, image: BytecodeImage) -> list[str]:
        encoder = IntelHexEncoder(
            bytes_per_record=self.options.bytes_per_record,
            start_format=self.options.start_record,
        )
        return encoder.encode(image)


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_to_hex(
    source: str,
    filename: str = "<input>",
    options: Optional[CompilerOptions] = None,
) -> list[str]:
    """
    Compile Cyone source to Intel HEX lines.

    Raises:
        CyoneError: The first error found in the source
    """
    result = CyoneCompiler(options).compile_source(source, filename)
    if not result.success:
        raise result.error
    return result.lines


def compile_file(filepath: str, options: Optional[CompilerOptions] = None) -> CompilerResult:
    """Compile a Cyone source file and return the result."""
    return CyoneCompiler(options).compile_file(filepath)
