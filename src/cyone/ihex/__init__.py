"""
Intel HEX Support
=================

Encoding of bytecode images as Intel HEX records, and decoding of such
records for verification.

Main Components
---------------
- records: HexRecord, RecordType and the record checksum
- encoder: IntelHexEncoder, decode_hex, records_to_chunks
"""

from cyone.ihex.records import (
    RecordType,
    HexRecord,
    EOF_RECORD,
    calculate_checksum,
)
from cyone.ihex.encoder import (
    StartRecordFormat,
    IntelHexEncoder,
    DEFAULT_BYTES_PER_RECORD,
    decode_hex,
    records_to_chunks,
    start_address_of,
)

__all__ = [
    "RecordType",
    "HexRecord",
    "EOF_RECORD",
    "calculate_checksum",
    "StartRecordFormat",
    "IntelHexEncoder",
    "DEFAULT_BYTES_PER_RECORD",
    "decode_hex",
    "records_to_chunks",
    "start_address_of",
]
