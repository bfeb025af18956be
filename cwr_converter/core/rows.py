"""CSV row reading for the CLI and the HTTP API.

WHY: The extractor works on plain row mappings. Something has to turn a
spreadsheet export into those mappings without mangling the template's
long, multi-line header cells.

HOW: csv.DictReader over decoded text. The header row supplies the keys
verbatim (quoted headers keep their embedded newlines and trailing
spaces). Bytes are decoded with the first encoding that works.

RULES:
- Encodings tried in order: utf-8-sig, cp1252, latin-1
- Short rows yield None for missing cells (treated as missing downstream)
- Cells beyond the header are dropped
- Rows with no non-empty cell are skipped
- An unreadable file raises OSError; callers report it
"""

from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Dict, List, Optional

Row = Dict[str, Optional[str]]

_ENCODINGS = ("utf-8-sig", "cp1252", "latin-1")


def decode_csv_bytes(data: bytes) -> str:
    """Decode raw CSV bytes with the first encoding that succeeds.

    The last encoding (latin-1) maps every byte, so this never fails.
    """
    for encoding in _ENCODINGS[:-1]:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    return data.decode(_ENCODINGS[-1])


def parse_csv_text(text: str) -> List[Row]:
    """Parse CSV text into ordered row mappings."""
    reader = csv.DictReader(io.StringIO(text, newline=""))
    rows: List[Row] = []
    for record in reader:
        # DictReader files overflow cells under the None key.
        record.pop(None, None)
        if not any(value and value.strip() for value in record.values()):
            continue
        rows.append(record)
    return rows


def rows_from_bytes(data: bytes) -> List[Row]:
    """Parse uploaded CSV bytes into ordered row mappings."""
    return parse_csv_text(decode_csv_bytes(data))


def read_rows(path: str | Path) -> List[Row]:
    """Read a CSV file into ordered row mappings.

    Raises:
        FileNotFoundError: If the file does not exist.
        OSError: If the file cannot be read.
    """
    return rows_from_bytes(Path(path).read_bytes())
