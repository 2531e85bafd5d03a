"""
Cyone Bytecode Generator
========================

This module translates a parsed Program into an address-keyed bytecode
image: one chunk of bytes per block, placed at the block's address.

It works in two passes, in the manner of a two-pass assembler:

Pass 1 (Symbol Collection)
--------------------------
- Resolve every 'loc' declaration to a 16-bit address
- Record every block address, rejecting duplicates
- Resolve the optional 'start' entry address

Pass 2 (Code Generation)
------------------------
- Encode each block's statements with the fixed opcode tables
- Resolve variable references against the symbol table
- Look up device functions in the function opcode table

Chunks are built in a private list and only returned once every block
has encoded, so a failing compilation never yields partial output.

Encoding
--------
Every node starts with a one-byte opcode (see cyone.compiler.opcodes).
Addresses are two bytes, big-endian.

| Construct        | Bytes                                                   |
|------------------|---------------------------------------------------------|
| NAME = e;        | IDENTIFIER addr:2 ASSIGN <e>                            |
| mem[a] = v;      | MEM <a> ASSIGN <v>                                      |
| goto A;          | GOTO A:2                                                |
| call F(p...);    | CALL code:1 <p>...                                      |
| if (c) {T} {E}   | IF <c> len:2 <T> [ELSE len:2 <E>]                       |
| l OP r           | <l> OP <r>                                              |
| variable         | IDENTIFIER addr:2                                       |
| constant         | HEXNUMBER value:1 (value <= 0xFF) or value:2            |
| mem[A]           | MEM A:2                                                 |
| ident parameter  | IDENTIFIER addr:2                                       |
| hex parameter    | HEXNUMBER value:1 or value:2                            |

The branch lengths let an interpreter skip the branch it does not take.

Example
-------
>>> from cyone.compiler.parser import parse_source
>>> program = parse_source('''
...     loc x at 0x0010;
...     block 0x0200 { x = 0x05; goto 0x0200; }
... ''')
>>> image = BytecodeGenerator().generate(program)
>>> image.chunks[0].data.hex(" ")
'02 00 10 0e 03 05 0b 02 00'
"""

from dataclasses import dataclass, field
from typing import Optional
import logging
import struct

from cyone.errors import SourceLocation
from cyone.compiler.ast import (
    Program,
    Block,
    Statement,
    Assignment,
    IfStatement,
    CallStatement,
    GotoStatement,
    MemoryAssignment,
    Expression,
    BinaryExpression,
    Variable,
    Constant,
    MemoryLocation,
    Parameter,
    MemoryReference,
    ByteValue,
)
from cyone.compiler.errors import (
    CompilerError,
    UndeclaredVariableError,
    UnknownFunctionError,
    DuplicateAddressError,
    DuplicateDeclarationError,
    AddressRangeError,
    InvalidLiteralError,
)
from cyone.compiler.opcodes import (
    OP_IDENTIFIER,
    OP_HEXNUMBER,
    OP_MEM,
    OP_IF,
    OP_ELSE,
    OP_GOTO,
    OP_CALL,
    OP_ASSIGN,
    OPERATOR_OPCODES,
    FUNCTION_OPCODES,
    get_function_opcode,
)


logger = logging.getLogger(__name__)

ADDRESS_MAX = 0xFFFF
ADDRESS_SPACE = 0x10000
MAX_HEX_DIGITS = 4


def source_line_at(
    source_lines: Optional[list[str]],
    location: Optional[SourceLocation],
) -> Optional[str]:
    """Return the source text of the line a location points at, if known."""
    if not source_lines or location is None:
        return None
    if 0 < location.line <= len(source_lines):
        return source_lines[location.line - 1]
    return None


def parse_hex_literal(
    literal: str,
    location: Optional[SourceLocation] = None,
    what: str = "value",
    source_line: Optional[str] = None,
) -> int:
    """
    Convert a '0x...' literal to an int in the 16-bit range.

    Args:
        literal: Literal text as it appeared in the source
        location: Source location for error reporting
        what: Description used in the range error ("address", "constant")
        source_line: Text of the source line, shown under the error

    Raises:
        InvalidLiteralError: If there are no digits after '0x'
        AddressRangeError: If there are more than four digits, or the
            value exceeds 0xFFFF
    """
    digits = literal[2:] if literal[:2] in ("0x", "0X") else literal
    if not digits:
        raise InvalidLiteralError(literal, location, source_line)

    value = int(digits, 16)
    if len(digits) > MAX_HEX_DIGITS:
        raise AddressRangeError(
            f"{what} {literal} has more than {MAX_HEX_DIGITS} hex digits",
            value,
            location,
            source_line,
        )
    if value > ADDRESS_MAX:
        raise AddressRangeError(
            f"{what} {literal} does not fit in 16 bits",
            value,
            location,
            source_line,
        )
    return value


def encode_word(value: int) -> bytes:
    """Encode a 16-bit value as two big-endian bytes."""
    return struct.pack(">H", value)


def encode_literal(value: int) -> bytes:
    """Encode a value in the fewest bytes that hold it (1 or 2)."""
    if value <= 0xFF:
        return bytes([value])
    return encode_word(value)


# =============================================================================
# Image Data Structures
# =============================================================================

@dataclass(frozen=True)
class Chunk:
    """
    Bytes to be loaded at a fixed address.

    Attributes:
        address: Load address of the first byte
        data: The encoded bytes
    """
    address: int
    data: bytes

    @property
    def end(self) -> int:
        """Address one past the last byte."""
        return self.address + len(self.data)

    def __len__(self) -> int:
        return len(self.data)


class SymbolTable:
    """
    Flat name/address table built once before code generation.

    Variables map names to addresses; blocks are tracked by address so
    that two blocks cannot claim the same load location. The generator
    only reads from the table while emitting code.
    """

    def __init__(self, source_lines: Optional[list[str]] = None):
        self._variables: dict[str, int] = {}
        self._variable_locations: dict[str, Optional[SourceLocation]] = {}
        self._blocks: dict[int, Optional[SourceLocation]] = {}
        self._source_lines = source_lines or []

    @classmethod
    def from_program(
        cls,
        program: Program,
        source_lines: Optional[list[str]] = None,
    ) -> "SymbolTable":
        """
        Collect every variable and block address in a program.

        Raises:
            DuplicateDeclarationError: Variable declared twice
            DuplicateAddressError: Two blocks at one address
            AddressRangeError / InvalidLiteralError: Bad address literal
        """
        table = cls(source_lines)
        for decl in program.variables:
            address = table._literal(decl.address, decl.location, "address")
            table.define_variable(decl.name, address, decl.location)
        for block in program.blocks:
            address = table._literal(block.address, block.location, "block address")
            table.define_block(address, block.location)
        return table

    def _literal(self, literal: str, location: Optional[SourceLocation], what: str) -> int:
        return parse_hex_literal(
            literal, location, what, source_line_at(self._source_lines, location)
        )

    def define_variable(
        self,
        name: str,
        address: int,
        location: Optional[SourceLocation] = None,
    ) -> None:
        if name in self:
            raise DuplicateDeclarationError(
                name,
                location,
                self._variable_locations[name],
                source_line_at(self._source_lines, location),
            )
        self._variables[name] = address
        self._variable_locations[name] = location
        logger.debug(f"Variable '{name}' at 0x{address:04X}")

    def define_block(self, address: int, location: Optional[SourceLocation] = None) -> None:
        if address in self._blocks:
            raise DuplicateAddressError(
                address,
                location,
                self._blocks[address],
                source_line_at(self._source_lines, location),
            )
        self._blocks[address] = location
        logger.debug(f"Block at 0x{address:04X}")

    def resolve_variable(self, name: str, location: Optional[SourceLocation] = None) -> int:
        """
        Return the address of a declared variable.

        Raises:
            UndeclaredVariableError: If the name was never declared
        """
        if name not in self:
            raise UndeclaredVariableError(
                name,
                location,
                self._variables,
                source_line_at(self._source_lines, location),
            )
        return self._variables[name]

    def __contains__(self, name: str) -> bool:
        return name in self._variables

    @property
    def variables(self) -> dict[str, int]:
        """Copy of the variable name to address mapping."""
        return dict(self._variables)

    @property
    def block_addresses(self) -> list[int]:
        return sorted(self._blocks)

    def format_map(self) -> str:
        """
        Render the table as a symbol map file.

        Format: one 'name $ADDR' line per variable, sorted by name,
        followed by one 'block $ADDR' line per block.
        """
        lines = ["# Symbol table", "# Generated by cyonec"]
        for name, address in sorted(self._variables.items()):
            lines.append(f"{name} ${address:04X}")
        for address in self.block_addresses:
            lines.append(f"block ${address:04X}")
        return "\n".join(lines) + "\n"


@dataclass(frozen=True)
class BytecodeImage:
    """
    Complete output of the generator, ready for HEX encoding.

    Attributes:
        chunks: Encoded blocks, sorted by ascending address
        start_address: Entry address from 'start', if declared
        symbols: The resolved symbol table
    """
    chunks: tuple[Chunk, ...] = ()
    start_address: Optional[int] = None
    symbols: SymbolTable = field(default_factory=SymbolTable, compare=False)

    @property
    def size(self) -> int:
        """Total number of code bytes across all chunks."""
        return sum(len(chunk) for chunk in self.chunks)


# =============================================================================
# Generator
# =============================================================================

class BytecodeGenerator:
    """
    Translates a Program into a BytecodeImage.

    A generator instance may be reused; each call to generate() builds
    its own symbol table and chunk list.

    Passing the source lines lets errors quote the offending line.

    Example:
        image = BytecodeGenerator(source.splitlines()).generate(program)
        for chunk in image.chunks:
            print(f"{chunk.address:04X}: {chunk.data.hex()}")
    """

    def __init__(self, source_lines: Optional[list[str]] = None):
        self.source_lines = source_lines or []
        self._symbols = SymbolTable(self.source_lines)

    def generate(self, program: Program) -> BytecodeImage:
        """
        Encode every block of the program.

        Raises:
            SymbolError: On any unresolved name, duplicate, or range error
        """
        # Pass 1
        self._symbols = SymbolTable.from_program(program, self.source_lines)

        start_address = None
        if program.start is not None:
            start_address = self._literal(
                program.start.address, program.start.location, "start address"
            )
            logger.debug(f"Entry point at 0x{start_address:04X}")

        # Pass 2
        chunks = []
        for block in program.blocks:
            chunks.append(self._encode_block(block))

        chunks.sort(key=lambda c: c.address)
        self._warn_overlaps(chunks)

        return BytecodeImage(
            chunks=tuple(chunks),
            start_address=start_address,
            symbols=self._symbols,
        )

    def _source_line(self, location: Optional[SourceLocation]) -> Optional[str]:
        return source_line_at(self.source_lines, location)

    def _literal(self, literal: str, location: Optional[SourceLocation], what: str) -> int:
        return parse_hex_literal(literal, location, what, self._source_line(location))

    def _encode_block(self, block: Block) -> Chunk:
        address = self._literal(block.address, block.location, "block address")
        data = bytes(self._encode_statements(block.statements))

        if address + len(data) > ADDRESS_SPACE:
            raise AddressRangeError(
                f"block 0x{address:04X} ({len(data)} bytes) runs past 0xFFFF",
                address + len(data) - 1,
                block.location,
                self._source_line(block.location),
            )

        logger.debug(f"Encoded block 0x{address:04X}: {len(data)} bytes")
        return Chunk(address, data)

    def _warn_overlaps(self, chunks: list[Chunk]) -> None:
        for previous, current in zip(chunks, chunks[1:]):
            if previous.end > current.address:
                logger.warning(
                    f"Block 0x{previous.address:04X} ({len(previous)} bytes) "
                    f"overlaps block 0x{current.address:04X}"
                )

    # =========================================================================
    # Statements
    # =========================================================================

    def _encode_statements(self, statements: tuple[Statement, ...]) -> bytearray:
        out = bytearray()
        for stmt in statements:
            self._encode_statement(stmt, out)
        return out

    def _encode_statement(self, stmt: Statement, out: bytearray) -> None:
        if isinstance(stmt, Assignment):
            out.append(OP_IDENTIFIER)
            out += encode_word(self._symbols.resolve_variable(stmt.target, stmt.location))
            out.append(OP_ASSIGN)
            self._encode_expression(stmt.expression, out)

        elif isinstance(stmt, MemoryAssignment):
            out.append(OP_MEM)
            self._encode_expression(stmt.address, out)
            out.append(OP_ASSIGN)
            self._encode_expression(stmt.value, out)

        elif isinstance(stmt, GotoStatement):
            out.append(OP_GOTO)
            out += encode_word(self._literal(stmt.address, stmt.location, "goto address"))

        elif isinstance(stmt, CallStatement):
            opcode = get_function_opcode(stmt.function_name)
            if opcode is None:
                raise UnknownFunctionError(
                    stmt.function_name,
                    stmt.location,
                    FUNCTION_OPCODES,
                    self._source_line(stmt.location),
                )
            out.append(OP_CALL)
            out.append(opcode)
            for param in stmt.parameters:
                self._encode_parameter(param, out)

        elif isinstance(stmt, IfStatement):
            out.append(OP_IF)
            self._encode_expression(stmt.condition, out)
            self._encode_branch(stmt.then_block, out)
            if stmt.else_block is not None:
                out.append(OP_ELSE)
                self._encode_branch(stmt.else_block, out)

        else:
            raise CompilerError(
                f"internal error: unhandled statement {type(stmt).__name__}",
                stmt.location,
            )

    def _encode_branch(self, block: Block, out: bytearray) -> None:
        """Length-prefixed branch body."""
        body = self._encode_statements(block.statements)
        if len(body) > ADDRESS_MAX:
            raise AddressRangeError(
                f"branch body of {len(body)} bytes is too long",
                len(body),
                block.location,
                self._source_line(block.location),
            )
        out += encode_word(len(body))
        out += body

    # =========================================================================
    # Expressions and Parameters
    # =========================================================================

    def _encode_expression(self, expr: Expression, out: bytearray) -> None:
        if isinstance(expr, BinaryExpression):
            self._encode_expression(expr.left, out)
            out.append(OPERATOR_OPCODES[expr.operator])
            self._encode_expression(expr.right, out)

        elif isinstance(expr, Variable):
            out.append(OP_IDENTIFIER)
            out += encode_word(self._symbols.resolve_variable(expr.name, expr.location))

        elif isinstance(expr, Constant):
            out.append(OP_HEXNUMBER)
            out += encode_literal(self._literal(expr.value, expr.location, "constant"))

        elif isinstance(expr, MemoryLocation):
            out.append(OP_MEM)
            out += encode_word(self._literal(expr.address, expr.location, "memory address"))

        else:
            raise CompilerError(
                f"internal error: unhandled expression {type(expr).__name__}",
                expr.location,
            )

    def _encode_parameter(self, param: Parameter, out: bytearray) -> None:
        if isinstance(param, MemoryReference):
            out.append(OP_IDENTIFIER)
            out += encode_word(self._symbols.resolve_variable(param.name, param.location))

        elif isinstance(param, ByteValue):
            out.append(OP_HEXNUMBER)
            out += encode_literal(self._literal(param.value, param.location, "argument"))

        else:
            raise CompilerError(
                f"internal error: unhandled parameter {type(param).__name__}",
                param.location,
            )


def generate_bytecode(
    program: Program,
    source_lines: Optional[list[str]] = None,
) -> BytecodeImage:
    """Convenience wrapper around BytecodeGenerator(source_lines).generate()."""
    return BytecodeGenerator(source_lines).generate(program)
