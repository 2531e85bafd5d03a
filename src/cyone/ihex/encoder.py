"""
Intel HEX Encoder
=================

Converts a BytecodeImage into Intel HEX record lines, and parses such
lines back into records and chunks.

Output layout:

1. Optional start record (when the program declared 'start')
2. Data records, chunk by chunk in ascending address order, each
   carrying at most ``bytes_per_record`` bytes
3. The End Of File record ``:00000001FF``

Example
-------
>>> encoder = IntelHexEncoder()
>>> for line in encoder.encode(image):
...     print(line)
:0400000500000200F5
:090200000200100E03050B0200C0
:00000001FF
"""

from enum import Enum
from typing import Iterable, Iterator
import logging
import struct

from cyone.errors import HexFormatError
from cyone.compiler.bytecode import BytecodeImage, Chunk
from cyone.ihex.records import (
    RecordType,
    HexRecord,
    EOF_RECORD,
    MAX_RECORD_DATA,
)


logger = logging.getLogger(__name__)

DEFAULT_BYTES_PER_RECORD = 16


class StartRecordFormat(Enum):
    """How the entry address is written, if the program declares one."""
    LINEAR = "linear"
    SEGMENT = "segment"
    NONE = "none"


def start_record(address: int, fmt: StartRecordFormat) -> HexRecord | None:
    """
    Build the start record for an entry address.

    LINEAR gives type 05 with a 32-bit EIP; SEGMENT gives type 03 with
    CS=0 and IP=address; NONE gives no record.
    """
    if fmt is StartRecordFormat.LINEAR:
        return HexRecord(RecordType.START_LINEAR_ADDRESS, 0, struct.pack(">I", address))
    if fmt is StartRecordFormat.SEGMENT:
        return HexRecord(RecordType.START_SEGMENT_ADDRESS, 0, struct.pack(">HH", 0, address))
    return None


class IntelHexEncoder:
    """
    Encodes bytecode images as Intel HEX.

    Attributes:
        bytes_per_record: Maximum payload bytes per data record (1-255)
        start_format: Which start record to emit for the entry address
    """

    def __init__(
        self,
        bytes_per_record: int = DEFAULT_BYTES_PER_RECORD,
        start_format: StartRecordFormat = StartRecordFormat.LINEAR,
    ):
        if not 1 <= bytes_per_record <= MAX_RECORD_DATA:
            raise ValueError(
                f"bytes_per_record must be between 1 and {MAX_RECORD_DATA}, "
                f"got {bytes_per_record}"
            )
        self.bytes_per_record = bytes_per_record
        self.start_format = start_format

    def records(self, image: BytecodeImage) -> Iterator[HexRecord]:
        """Yield every record for the image, ending with EOF."""
        if image.start_address is not None:
            record = start_record(image.start_address, self.start_format)
            if record is not None:
                yield record

        for chunk in sorted(image.chunks, key=lambda c: c.address):
            yield from self.data_records(chunk)

        yield EOF_RECORD

    def data_records(self, chunk: Chunk) -> Iterator[HexRecord]:
        """Split one chunk into data records. Empty chunks yield nothing."""
        step = self.bytes_per_record
        for offset in range(0, len(chunk.data), step):
            yield HexRecord(
                RecordType.DATA,
                chunk.address + offset,
                chunk.data[offset:offset + step],
            )

    def encode(self, image: BytecodeImage) -> list[str]:
        """Encode the image as a list of record lines."""
        lines = [record.to_line() for record in self.records(image)]
        logger.debug(
            f"Encoded {image.size} bytes in {len(image.chunks)} chunks "
            f"as {len(lines)} records"
        )
        return lines


# =============================================================================
# Decoding
# =============================================================================

def decode_hex(lines: Iterable[str]) -> list[HexRecord]:
    """
    Parse Intel HEX lines into records.

    Blank lines are skipped. Parsing stops at the EOF record, which is
    included in the result.

    Raises:
        HexFormatError: On a malformed line or missing EOF record
        HexChecksumError: On a checksum mismatch
    """
    records = []
    for line_number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        record = HexRecord.from_line(line, line_number)
        records.append(record)
        if record.record_type == RecordType.EOF:
            return records

    raise HexFormatError("missing end of file record")


def records_to_chunks(records: Iterable[HexRecord]) -> list[Chunk]:
    """
    Merge data records back into chunks.

    Consecutive data records whose addresses follow on from each other
    are joined into one chunk. Other record types are ignored.
    """
    chunks: list[Chunk] = []
    address = None
    data = bytearray()

    for record in records:
        if record.record_type != RecordType.DATA or not record.data:
            continue
        if address is not None and record.address == address + len(data):
            data += record.data
            continue
        if address is not None:
            chunks.append(Chunk(address, bytes(data)))
        address = record.address
        data = bytearray(record.data)

    if address is not None:
        chunks.append(Chunk(address, bytes(data)))
    return chunks


def start_address_of(records: Iterable[HexRecord]) -> int | None:
    """Return the entry address carried by a start record, if any."""
    for record in records:
        if record.record_type == RecordType.START_LINEAR_ADDRESS:
            return struct.unpack(">I", record.data)[0]
        if record.record_type == RecordType.START_SEGMENT_ADDRESS:
            segment, offset = struct.unpack(">HH", record.data)
            return (segment << 4) + offset
    return None
