"""
Cyone Lexer (Tokenizer)
=======================

This module implements the lexer for the Cyone control language.
It converts source text into a stream of tokens for the parser.

Token Categories
----------------
- Keywords: loc, at, start, block, mem, if, else, goto, call, to
- Identifiers: letters and underscores only (no digits)
- Hex numbers: 0x followed by hex digits (the only numeric form)
- Operators: = + - * / == != > < %
- Delimiters: , ; : ( ) { } [ ]
- Comments: // to end of line (emitted as COMMENT tokens)

Unlike most lexers, comments are not discarded here. They are passed
through to the parser, which skips them wherever it inspects a token.

Example Usage
-------------
>>> from cyone.compiler.lexer import Lexer
>>> lexer = Lexer("loc x at 0x0010;", "test.cy")
>>> for token in lexer.tokenize():
...     print(token)
Token(LOC, 'loc', 1:1)
Token(IDENTIFIER, 'x', 1:5)
Token(AT, 'at', 1:7)
Token(HEXNUMBER, '0x0010', 1:10)
Token(SEMICOLON, ';', 1:16)
Token(EOF, '', 1:17)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator
import string

from cyone.errors import SourceLocation
from cyone.compiler.errors import LexError


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """
    Token types for the Cyone language.

    Declaration order matches the opcode table in cyone.compiler.opcodes
    (ILLEGAL = 0x00 through COMMENT = 0x21).
    """

    ILLEGAL = auto()
    EOF = auto()

    # === Identifiers and Literals ===
    IDENTIFIER = auto()
    HEXNUMBER = auto()

    # === Keywords ===
    LOC = auto()            # loc
    AT = auto()             # at
    START = auto()          # start
    BLOCK = auto()          # block
    MEM = auto()            # mem
    IF = auto()             # if
    ELSE = auto()           # else
    GOTO = auto()           # goto
    CALL = auto()           # call
    TO = auto()             # to (reserved)

    # === Operators ===
    ASSIGN = auto()         # =
    PLUS = auto()           # +
    MINUS = auto()          # -
    ASTERISK = auto()       # *
    SLASH = auto()          # /
    EQ = auto()             # ==
    NOT_EQ = auto()         # !=
    GT = auto()             # >
    LT = auto()             # <
    MOD = auto()            # %

    # === Delimiters ===
    COMMA = auto()          # ,
    SEMICOLON = auto()      # ;
    COLON = auto()          # :
    LPAREN = auto()         # (
    RPAREN = auto()         # )
    LBRACE = auto()         # {
    RBRACE = auto()         # }
    LBRACKET = auto()       # [
    RBRACKET = auto()       # ]

    COMMENT = auto()        # // ...


# =============================================================================
# Lookup Tables
# =============================================================================

KEYWORDS: dict[str, TokenType] = {
    "loc": TokenType.LOC,
    "at": TokenType.AT,
    "start": TokenType.START,
    "block": TokenType.BLOCK,
    "mem": TokenType.MEM,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "goto": TokenType.GOTO,
    "call": TokenType.CALL,
    "to": TokenType.TO,
}

SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.ASTERISK,
    ";": TokenType.SEMICOLON,
    ":": TokenType.COLON,
    ",": TokenType.COMMA,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    ">": TokenType.GT,
    "<": TokenType.LT,
    "%": TokenType.MOD,
}


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token from Cyone source.

    Attributes:
        type: The TokenType classification
        value: The literal source text of the token
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
    """
    type: TokenType
    value: str
    line: int = 1
    column: int = 1
    filename: str = "<input>"

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes Cyone source text.

    The lexer is a single forward scan with one character of lookahead.
    A NUL character, like the end of the text, marks end of input.

    Usage:
        lexer = Lexer(source_text, filename)
        tokens = list(lexer.tokenize())

    Attributes:
        source: The source text being tokenized
        filename: Name of the source file (for error reporting)
    """

    IDENT_CHARS = string.ascii_letters + "_"
    HEX_DIGITS = string.hexdigits
    WHITESPACE = " \t\n\r\v\f"
    END = "\0"

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename

        self._pos = 0
        self._line = 1
        self._column = 1
        self._line_start_pos = 0

    def tokenize(self) -> Iterator[Token]:
        """
        Generate every token, ending with (and including) EOF.

        Raises:
            LexError: On the first illegal character
        """
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                return

    def next_token(self) -> Token:
        """
        Scan and return the next token.

        Returns EOF repeatedly once the input is exhausted.

        Raises:
            LexError: If the next character starts no valid token
        """
        self._skip_whitespace()

        start_line = self._line
        start_column = self._column
        char = self._peek()

        if char == self.END:
            return self._make_token(TokenType.EOF, "", start_line, start_column)

        if char == "=":
            self._advance()
            if self._match("="):
                return self._make_token(TokenType.EQ, "==", start_line, start_column)
            return self._make_token(TokenType.ASSIGN, "=", start_line, start_column)

        if char == "!":
            if self._peek(1) == "=":
                self._advance()
                self._advance()
                return self._make_token(TokenType.NOT_EQ, "!=", start_line, start_column)
            raise self._illegal(char, start_line, start_column)

        if char == "/":
            if self._peek(1) == "/":
                return self._scan_comment(start_line, start_column)
            self._advance()
            return self._make_token(TokenType.SLASH, "/", start_line, start_column)

        if char in SINGLE_CHAR_TOKENS:
            self._advance()
            return self._make_token(SINGLE_CHAR_TOKENS[char], char, start_line, start_column)

        if char in self.IDENT_CHARS:
            return self._scan_identifier(start_line, start_column)

        if char == "0" and self._peek(1) == "x":
            return self._scan_hex_number(start_line, start_column)

        raise self._illegal(char, start_line, start_column)

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _peek(self, offset: int = 0) -> str:
        """Character at current position + offset, or NUL past the end."""
        pos = self._pos + offset
        if pos >= len(self.source):
            return self.END
        return self.source[pos]

    def _advance(self) -> str:
        """Consume and return the current character, tracking line/column."""
        char = self._peek()
        if char == self.END:
            return char

        self._pos += 1
        if char == "\n":
            self._line += 1
            self._column = 1
            self._line_start_pos = self._pos
        else:
            self._column += 1
        return char

    def _match(self, expected: str) -> bool:
        """Consume the current character if it equals expected."""
        if self._peek() == expected:
            self._advance()
            return True
        return False

    def _skip_whitespace(self) -> None:
        while self._peek() in self.WHITESPACE:
            self._advance()

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _make_token(
        self,
        token_type: TokenType,
        value: str,
        line: int,
        column: int,
    ) -> Token:
        return Token(
            type=token_type,
            value=value,
            line=line,
            column=column,
            filename=self.filename,
        )

    def _scan_comment(self, start_line: int, start_column: int) -> Token:
        """Scan '//' through end of line; the newline is not included."""
        chars = []
        while self._peek() not in ("\n", self.END):
            chars.append(self._advance())
        return self._make_token(TokenType.COMMENT, "".join(chars), start_line, start_column)

    def _scan_identifier(self, start_line: int, start_column: int) -> Token:
        """
        Scan an identifier or keyword.

        Identifiers are letters and underscores only; a digit ends the
        identifier and must then start a token of its own.
        """
        chars = []
        while self._peek() in self.IDENT_CHARS:
            chars.append(self._advance())

        name = "".join(chars)
        token_type = KEYWORDS.get(name, TokenType.IDENTIFIER)
        return self._make_token(token_type, name, start_line, start_column)

    def _scan_hex_number(self, start_line: int, start_column: int) -> Token:
        """
        Scan '0x' and any hex digits that follow.

        Zero digits is accepted here; the bytecode generator rejects the
        literal when it needs its value.
        """
        chars = [self._advance(), self._advance()]
        while self._peek() in self.HEX_DIGITS:
            chars.append(self._advance())
        return self._make_token(TokenType.HEXNUMBER, "".join(chars), start_line, start_column)

    # =========================================================================
    # Error Reporting
    # =========================================================================

    def _illegal(self, char: str, line: int, column: int) -> LexError:
        token = self._make_token(TokenType.ILLEGAL, char, line, column)
        return LexError(
            char,
            SourceLocation(self.filename, line, column),
            self._get_current_line(),
            token=token,
        )

    def _get_current_line(self) -> str:
        """Get the current line of source text for error reporting."""
        line_end = self.source.find("\n", self._line_start_pos)
        if line_end == -1:
            line_end = len(self.source)
        return self.source[self._line_start_pos:line_end]


def tokenize(source: str, filename: str = "<input>") -> list[Token]:
    """Tokenize source text into a list ending with EOF."""
    return list(Lexer(source, filename).tokenize())
