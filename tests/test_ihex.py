"""
Tests for Intel HEX encoding and decoding.
"""

import pytest

from cyone.compiler.bytecode import BytecodeImage, Chunk
from cyone.errors import HexFormatError, HexChecksumError
from cyone.ihex import (
    RecordType,
    HexRecord,
    EOF_RECORD,
    calculate_checksum,
    StartRecordFormat,
    IntelHexEncoder,
    decode_hex,
    records_to_chunks,
    start_address_of,
)


EXAMPLE_CHUNK = Chunk(0x0200, bytes.fromhex("02 00 10 0E 03 05 0B 02 00"))


@pytest.fixture
def multi_chunk_image():
    """Image with three separate chunks, one longer than a record."""
    return BytecodeImage(
        chunks=(
            Chunk(0x0100, bytes(range(40))),
            Chunk(0x0200, bytes.fromhex("0B 02 00")),
            Chunk(0x8000, b"\xff" * 5),
        ),
        start_address=0x0100,
    )


def line_sum(line: str) -> int:
    return sum(bytes.fromhex(line[1:])) % 256


# =============================================================================
# Records
# =============================================================================

class TestHexRecord:

    def test_eof_record(self):
        assert EOF_RECORD.to_line() == ":00000001FF"

    def test_checksum(self):
        assert calculate_checksum(bytes([0x00, 0x00, 0x00, 0x01])) == 0xFF
        assert calculate_checksum(b"") == 0x00
        assert calculate_checksum(bytes([0x01])) == 0xFF
        assert calculate_checksum(bytes([0x80, 0x80])) == 0x00

    def test_data_record_line(self):
        record = HexRecord(RecordType.DATA, EXAMPLE_CHUNK.address, EXAMPLE_CHUNK.data)
        assert record.to_line() == ":090200000200100E03050B0200C0"

    def test_line_is_uppercase(self):
        record = HexRecord(RecordType.DATA, 0xABCD, b"\xab\xcd")
        line = record.to_line()
        assert line == line.upper()

    def test_from_line(self):
        record = HexRecord.from_line(":10010000214601360121470136007EFE09D2190140")
        assert record.record_type == RecordType.DATA
        assert record.address == 0x0100
        assert record.data == bytes.fromhex("214601360121470136007EFE09D21901")

    def test_from_line_ignores_whitespace(self):
        assert HexRecord.from_line("  :00000001FF\r\n") == EOF_RECORD

    def test_from_line_lowercase(self):
        assert HexRecord.from_line(":00000001ff") == EOF_RECORD

    def test_missing_start_code(self):
        with pytest.raises(HexFormatError):
            HexRecord.from_line("00000001FF")

    def test_invalid_digits(self):
        with pytest.raises(HexFormatError):
            HexRecord.from_line(":0000000GFF")

    @pytest.mark.parametrize("line", [
        ":03 0100000B0001F0",
        ":00000001 FF",
        ":00000001\tFF",
    ])
    def test_embedded_whitespace(self, line):
        with pytest.raises(HexFormatError) as exc_info:
            HexRecord.from_line(line, line_number=3)
        assert "whitespace" in str(exc_info.value)
        assert exc_info.value.line_number == 3

    def test_too_short(self):
        with pytest.raises(HexFormatError):
            HexRecord.from_line(":000000")

    def test_byte_count_mismatch(self):
        with pytest.raises(HexFormatError) as exc_info:
            HexRecord.from_line(":0200000001FD", line_number=7)
        assert exc_info.value.line_number == 7
        assert str(exc_info.value).startswith("line 7:")

    def test_bad_checksum(self):
        with pytest.raises(HexChecksumError) as exc_info:
            HexRecord.from_line(":00000001FE")
        error = exc_info.value
        assert error.actual == 0xFE
        assert error.expected == 0xFF

    def test_unknown_record_type(self):
        with pytest.raises(HexFormatError):
            HexRecord.from_line(":00000006FA")

    def test_record_limits(self):
        with pytest.raises(ValueError):
            HexRecord(RecordType.DATA, 0x10000, b"\x00")
        with pytest.raises(ValueError):
            HexRecord(RecordType.DATA, 0, bytes(256))


# =============================================================================
# Encoder
# =============================================================================

class TestEncoder:

    def test_example_image(self):
        lines = IntelHexEncoder().encode(BytecodeImage(chunks=(EXAMPLE_CHUNK,)))
        assert lines == [":090200000200100E03050B0200C0", ":00000001FF"]

    def test_linear_start_record(self):
        image = BytecodeImage(chunks=(EXAMPLE_CHUNK,), start_address=0x0200)
        lines = IntelHexEncoder().encode(image)
        assert lines[0] == ":0400000500000200F5"
        assert lines[1] == ":090200000200100E03050B0200C0"

    def test_segment_start_record(self):
        image = BytecodeImage(chunks=(EXAMPLE_CHUNK,), start_address=0x0200)
        lines = IntelHexEncoder(start_format=StartRecordFormat.SEGMENT).encode(image)
        assert lines[0] == ":0400000300000200F7"

    def test_no_start_record(self):
        image = BytecodeImage(chunks=(EXAMPLE_CHUNK,), start_address=0x0200)
        lines = IntelHexEncoder(start_format=StartRecordFormat.NONE).encode(image)
        assert lines == [":090200000200100E03050B0200C0", ":00000001FF"]

    def test_records_split(self):
        encoder = IntelHexEncoder(bytes_per_record=16)
        records = list(encoder.data_records(Chunk(0x1000, bytes(40))))
        assert [(r.address, len(r.data)) for r in records] == [
            (0x1000, 16),
            (0x1010, 16),
            (0x1020, 8),
        ]

    def test_one_byte_records(self):
        encoder = IntelHexEncoder(bytes_per_record=1)
        lines = encoder.encode(BytecodeImage(chunks=(Chunk(0x0010, b"\x01\x02"),)))
        assert lines == [":0100100001EE", ":0100110002EC", ":00000001FF"]

    def test_empty_chunk_has_no_records(self):
        lines = IntelHexEncoder().encode(BytecodeImage(chunks=(Chunk(0x0100, b""),)))
        assert lines == [":00000001FF"]

    def test_empty_image(self):
        assert IntelHexEncoder().encode(BytecodeImage()) == [":00000001FF"]

    def test_data_sorted_by_address(self):
        image = BytecodeImage(chunks=(Chunk(0x0300, b"\x01"), Chunk(0x0100, b"\x02")))
        records = list(IntelHexEncoder().records(image))
        assert [r.address for r in records[:-1]] == [0x0100, 0x0300]

    def test_last_byte_of_memory(self):
        lines = IntelHexEncoder().encode(BytecodeImage(chunks=(Chunk(0xFFFF, b"\x00"),)))
        assert lines[0] == ":01FFFF000001"

    @pytest.mark.parametrize("size", [0, 256, -1])
    def test_invalid_record_size(self, size):
        with pytest.raises(ValueError):
            IntelHexEncoder(bytes_per_record=size)

    def test_every_line_checksums_to_zero(self, multi_chunk_image):
        lines = IntelHexEncoder(bytes_per_record=7).encode(multi_chunk_image)
        assert all(line_sum(line) == 0 for line in lines)
        assert lines[-1] == ":00000001FF"


# =============================================================================
# Decoder
# =============================================================================

class TestDecoder:

    def test_round_trip(self, multi_chunk_image):
        lines = IntelHexEncoder().encode(multi_chunk_image)
        records = decode_hex(lines)
        assert records_to_chunks(records) == list(multi_chunk_image.chunks)
        assert start_address_of(records) == 0x0100

    def test_round_trip_segment_start(self, multi_chunk_image):
        encoder = IntelHexEncoder(start_format=StartRecordFormat.SEGMENT)
        records = decode_hex(encoder.encode(multi_chunk_image))
        assert start_address_of(records) == 0x0100

    def test_no_start_address(self):
        assert start_address_of(decode_hex([":00000001FF"])) is None

    def test_contiguous_chunks_merge(self):
        image = BytecodeImage(chunks=(Chunk(0x0100, b"\x01\x02"), Chunk(0x0102, b"\x03")))
        records = decode_hex(IntelHexEncoder().encode(image))
        assert records_to_chunks(records) == [Chunk(0x0100, b"\x01\x02\x03")]

    def test_blank_lines_skipped(self):
        records = decode_hex(["", ":090200000200100E03050B0200C0", "  ", ":00000001FF"])
        assert records_to_chunks(records) == [EXAMPLE_CHUNK]

    def test_stops_at_eof(self):
        records = decode_hex([":00000001FF", "garbage"])
        assert records == [EOF_RECORD]

    def test_missing_eof(self):
        with pytest.raises(HexFormatError):
            decode_hex([":090200000200100E03050B0200C0"])

    def test_checksum_error_line_number(self):
        with pytest.raises(HexChecksumError) as exc_info:
            decode_hex([":090200000200100E03050B0200C0", ":090200000200100E03050B0200C1"])
        assert exc_info.value.line_number == 2
