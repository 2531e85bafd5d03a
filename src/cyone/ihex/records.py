"""
Intel HEX Record Definitions
============================

This module defines the record structure of the Intel HEX format, the
ASCII container used to ship a bytecode image to the target.

Record Format
-------------
Every record is one line:

    :LLAAAATT<data>CC

- ``:``     Start code
- ``LL``    Byte count of the data field (00-FF)
- ``AAAA``  16-bit load address, big-endian
- ``TT``    Record type
- ``data``  LL bytes, two hex digits each
- ``CC``    Checksum

All hex digits are written upper-case.

Record Types
------------
- 00: Data
- 01: End Of File (always ``:00000001FF``)
- 02: Extended Segment Address
- 03: Start Segment Address (CS:IP)
- 04: Extended Linear Address
- 05: Start Linear Address (EIP)

Checksum
--------
The checksum is the two's complement of the low byte of the sum of every
preceding byte (count, address, type, data). Adding all bytes of a valid
record, checksum included, gives 0 modulo 256.

Reference
---------
- Intel Hexadecimal Object File Format Specification, Revision A (1988)
"""

from dataclasses import dataclass
from enum import IntEnum
import struct

from cyone.errors import HexFormatError, HexChecksumError


class RecordType(IntEnum):
    """Intel HEX record type byte."""
    DATA = 0x00
    EOF = 0x01
    EXTENDED_SEGMENT_ADDRESS = 0x02
    START_SEGMENT_ADDRESS = 0x03
    EXTENDED_LINEAR_ADDRESS = 0x04
    START_LINEAR_ADDRESS = 0x05


MAX_RECORD_DATA = 0xFF


def calculate_checksum(data: bytes) -> int:
    """
    Calculate the Intel HEX checksum of a record's bytes.

    Args:
        data: Count, address, type and data bytes (no checksum)

    Returns:
        Checksum byte (0-255)

    Example:
        >>> calculate_checksum(bytes([0x00, 0x00, 0x00, 0x01]))
        255
    """
    return (0x100 - (sum(data) % 256)) & 0xFF


@dataclass(frozen=True)
class HexRecord:
    """
    One Intel HEX record.

    Attributes:
        record_type: Record type byte
        address: 16-bit address field
        data: Record payload (0-255 bytes)
    """
    record_type: RecordType
    address: int = 0
    data: bytes = b""

    def __post_init__(self):
        if not 0 <= self.address <= 0xFFFF:
            raise ValueError(f"record address out of range: {self.address:#x}")
        if len(self.data) > MAX_RECORD_DATA:
            raise ValueError(f"record data too long: {len(self.data)} bytes")

    def to_bytes(self) -> bytes:
        """Binary form of the record without the checksum."""
        header = struct.pack(">BHB", len(self.data), self.address, self.record_type)
        return header + self.data

    @property
    def checksum(self) -> int:
        return calculate_checksum(self.to_bytes())

    def to_line(self) -> str:
        """Format the record as a ':'-prefixed upper-case line."""
        body = self.to_bytes() + bytes([self.checksum])
        return ":" + body.hex().upper()

    @classmethod
    def from_line(cls, line: str, line_number: int | None = None) -> "HexRecord":
        """
        Parse one record line.

        Surrounding whitespace is ignored.

        Raises:
            HexFormatError: Missing ':', embedded whitespace, bad hex digits,
                byte count mismatch or unknown record type
            HexChecksumError: Stored checksum disagrees with the bytes
        """
        text = line.strip()
        if not text.startswith(":"):
            raise HexFormatError("record does not start with ':'", line_number)
        # bytes.fromhex() would skip these
        if any(c.isspace() for c in text[1:]):
            raise HexFormatError("record contains embedded whitespace", line_number)

        try:
            raw = bytes.fromhex(text[1:])
        except ValueError:
            raise HexFormatError("record contains invalid hex digits", line_number) from None

        if len(raw) < 5:
            raise HexFormatError(f"record too short ({len(raw)} bytes)", line_number)

        count, address, type_byte = struct.unpack(">BHB", raw[:4])
        if len(raw) != count + 5:
            raise HexFormatError(
                f"byte count {count} does not match record length {len(raw) - 5}",
                line_number,
            )

        calculated = calculate_checksum(raw[:-1])
        if calculated != raw[-1]:
            raise HexChecksumError(calculated, raw[-1], line_number)

        try:
            record_type = RecordType(type_byte)
        except ValueError:
            raise HexFormatError(f"unknown record type 0x{type_byte:02X}", line_number) from None

        return cls(record_type, address, raw[4:-1])

    def __str__(self) -> str:
        return self.to_line()


EOF_RECORD = HexRecord(RecordType.EOF)
