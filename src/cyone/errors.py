"""
Cyone Error Hierarchy
=====================

This module defines the base of the exception hierarchy used across the
Cyone toolchain. All exceptions inherit from CyoneError, allowing callers
to catch every toolchain error with a single except clause if desired.

Exception Hierarchy
-------------------
CyoneError (base)
├── CompilerError (see cyone.compiler.errors)
│   ├── LexError - illegal character in source
│   ├── ParseError - grammar mismatch or premature end of input
│   └── SymbolError - name or address resolution failure
└── HexError (Intel HEX handling)
    ├── HexFormatError - malformed record line
    └── HexChecksumError - record checksum does not match its bytes

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
        ^ (pointer to error location)
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class CyoneError(Exception):
    """
    Base exception for all Cyone errors.

        try:
            compile_to_hex(source)
        except CyoneError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Located Error Base
# =============================================================================

class LocatedError(CyoneError):
    """
    Error that can point at a position in the source text.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The actual source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            lamp.cy:4:9: error: undeclared variable 'cnt'
                    cnt = cnt + 0x01;
                    ^
            hint: did you mean 'count'?
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


# =============================================================================
# Intel HEX Exceptions
# =============================================================================

class HexError(CyoneError):
    """Base exception for Intel HEX encoding and decoding errors."""
    pass


class HexFormatError(HexError):
    """
    Malformed Intel HEX record.

    Raised when a line does not start with ':', contains non-hex
    characters, or its byte count disagrees with its length.
    """

    def __init__(self, message: str, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class HexChecksumError(HexError):
    """
    Record checksum mismatch.

    Attributes:
        expected: Checksum computed from the record bytes
        actual: Checksum stored in the record
    """

    def __init__(self, expected: int, actual: int, line_number: Optional[int] = None):
        self.expected = expected
        self.actual = actual
        self.line_number = line_number
        prefix = f"line {line_number}: " if line_number is not None else ""
        super().__init__(
            f"{prefix}checksum mismatch: stored 0x{actual:02X}, "
            f"calculated 0x{expected:02X}"
        )
