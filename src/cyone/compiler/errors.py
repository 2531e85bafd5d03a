"""
Cyone Compiler Error Hierarchy
==============================

This module defines the exception hierarchy for the Cyone compiler.
All exceptions inherit from CompilerError, which itself inherits from
the base CyoneError for consistent error handling across the toolchain.

Exception Hierarchy
-------------------
CompilerError (base for all compiler errors)
├── LexError - character that starts no valid token
├── ParseError - grammar mismatch (no recovery)
│   ├── UnexpectedTokenError - token not valid at this point
│   ├── MissingTokenError - a specific token was required
│   ├── UnexpectedEndError - source ended inside a construct
│   └── DuplicateStartError - more than one 'start' declaration
└── SymbolError - resolution failure during bytecode generation
    ├── UndeclaredVariableError - variable used without 'loc'
    ├── UnknownFunctionError - call to a name outside the function table
    ├── DuplicateAddressError - two blocks share a load address
    ├── DuplicateDeclarationError - variable declared twice
    ├── AddressRangeError - value or block end past 16 bits
    └── InvalidLiteralError - '0x' with no digits

Every error is terminal: the first one aborts the compilation and no
HEX output is produced.
"""

from difflib import get_close_matches
from typing import Iterable, Optional

from cyone.errors import LocatedError, SourceLocation


class CompilerError(LocatedError):
    """Base exception for all Cyone compiler errors."""
    pass


# =============================================================================
# Lexer Errors
# =============================================================================

class LexError(CompilerError):
    """
    Illegal character in source text.

    Attributes:
        char: The offending character
        token: The ILLEGAL token produced for it
    """

    def __init__(
        self,
        char: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        token=None,
    ):
        self.char = char
        self.token = token

        hint = None
        if char == "!":
            hint = "'!' is only valid as part of '!='"
        elif char.isdigit():
            hint = "numbers must be hexadecimal with a '0x' prefix"

        super().__init__(
            f"unexpected character '{char}' (0x{ord(char):02X})",
            location=location,
            hint=hint,
            source_line=source_line,
        )


# =============================================================================
# Parser Errors
# =============================================================================

class ParseError(CompilerError):
    """
    Syntax error in Cyone source.

    Raised by the parser on the first structural mismatch. The parser
    performs no error recovery.
    """
    pass


class UnexpectedTokenError(ParseError):
    """
    Token that does not fit the grammar at this point.

    Attributes:
        found: Name of the token type found
        expected: Description of what would have been valid
    """

    def __init__(
        self,
        found: str,
        expected: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        context: Optional[str] = None,
    ):
        self.found = found
        self.expected = expected

        message = f"unexpected token {found}"
        if context:
            message = f"{message} {context}"

        super().__init__(
            message,
            location=location,
            hint=f"expected {expected}" if expected else None,
            source_line=source_line,
        )


class MissingTokenError(ParseError):
    """
    Required token is missing.

    Attributes:
        expected: Name of the required token type (e.g. 'SEMICOLON')
        found: Name of the token type found instead
    """

    def __init__(
        self,
        expected: str,
        found: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.expected = expected
        self.found = found
        super().__init__(
            f"expected token {expected} but got {found}",
            location=location,
            source_line=source_line,
        )


class UnexpectedEndError(ParseError):
    """Source text ended in the middle of a declaration or statement."""

    def __init__(
        self,
        expected: Optional[str] = None,
        location: Optional[SourceLocation] = None,
    ):
        self.expected = expected
        super().__init__(
            "reached end of input",
            location=location,
            hint=f"expected {expected}" if expected else None,
        )


class DuplicateStartError(ParseError):
    """A program may declare its entry address only once."""

    def __init__(
        self,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.original_location = original_location
        hint = None
        if original_location:
            hint = f"entry address was first declared at {original_location}"
        super().__init__(
            "duplicate 'start' declaration",
            location=location,
            hint=hint,
            source_line=source_line,
        )


# =============================================================================
# Symbol Errors (Bytecode Generation)
# =============================================================================

class SymbolError(CompilerError):
    """
    Name or address resolution error.

    Raised by the bytecode generator when the program parses but refers
    to something that cannot be resolved to a 16-bit address or opcode.
    """
    pass


class UndeclaredVariableError(SymbolError):
    """
    Reference to a variable that has no 'loc' declaration.

    Similarly-named declared variables are suggested in the hint.
    """

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        known_names: Iterable[str] = (),
        source_line: Optional[str] = None,
    ):
        self.name = name
        self.similar_names = get_close_matches(name, list(known_names), n=3)

        hint = None
        if self.similar_names:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_names)
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"undeclared variable '{name}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class UnknownFunctionError(SymbolError):
    """Call to a function name that has no entry in the function table."""

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        known_names: Iterable[str] = (),
        source_line: Optional[str] = None,
    ):
        self.name = name
        known = sorted(known_names)
        super().__init__(
            f"unknown function '{name}'",
            location=location,
            hint=f"available functions: {', '.join(known)}" if known else None,
            source_line=source_line,
        )


class DuplicateAddressError(SymbolError):
    """Two blocks declared at the same load address."""

    def __init__(
        self,
        address: int,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.address = address
        self.original_location = original_location
        hint = None
        if original_location:
            hint = f"block 0x{address:04X} was first declared at {original_location}"
        super().__init__(
            f"duplicate block address 0x{address:04X}",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class DuplicateDeclarationError(SymbolError):
    """Variable name declared by more than one 'loc'."""

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.name = name
        self.original_location = original_location
        hint = None
        if original_location:
            hint = f"'{name}' was first declared at {original_location}"
        super().__init__(
            f"redeclaration of variable '{name}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class AddressRangeError(SymbolError):
    """Value that does not fit the 16-bit address space."""

    def __init__(
        self,
        message: str,
        value: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.value = value
        super().__init__(
            message,
            location=location,
            hint="addresses and values are limited to 0x0000-0xFFFF (at most 4 hex digits)",
            source_line=source_line,
        )


class InvalidLiteralError(SymbolError):
    """Hex literal with no digits after the '0x' prefix."""

    def __init__(
        self,
        literal: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.literal = literal
        super().__init__(
            f"malformed hex literal '{literal}'",
            location=location,
            hint="write at least one hex digit after '0x'",
            source_line=source_line,
        )
