"""CWR fixed-width record emitter.

WHY: Registration partners ingest line-record transmissions where every
field sits in a fixed column range. A single misplaced space or a wrong
trailer count gets the whole file rejected, so emission must be exact
and deterministic.

HOW: One linear pass over the Transmission IR. A RecordSequence collects
lines and counts them. For each work: one NWR line, then per interested
party an SWR (or PUB) line, an SPT share line, and a TER territory line.
The HDR line opens the run and the TRL line closes it with the total
line count, itself included.

RULES:
- Text fields: left-justified, space-padded, truncated to width
- Sequence numbers and counts: zero-padded, truncated to width
- Work sequence starts at 1 per run; party sequence restarts at 1 per work
- Publishers (role "P") get a PUB line without a role field
- Share: two decimals, point removed, zero-padded to 5 (50.5 → "05050")
- Territory "World" → "001", anything else passes through
- Every record ends with "\\n"
- Output suffix: ".cwr", media type "text/plain"
"""

from __future__ import annotations

from typing import List

from cwr_converter.config import OUTPUT_SUFFIX, map_territory
from cwr_converter.core.ir import (
    FIELD_WIDTHS,
    InterestedParty,
    Transmission,
    WorkRegistration,
)
from cwr_converter.formatters.base import BaseFormatter, FormatterOutput

WORK_SEQUENCE_WIDTH = 5
PARTY_SEQUENCE_WIDTH = 3
SHARE_WIDTH = 5
RECORD_COUNT_WIDTH = 9

_BLANK_CONTROLS = str.maketrans({"\r": " ", "\n": " ", "\t": " ", "\v": " ", "\f": " "})


def pad_field(value: object, width: int) -> str:
    """Left-justify ``value`` in ``width`` columns, truncating overflow.

    Line breaks and tabs become spaces so a value can never split a record.
    """
    text = str(value).translate(_BLANK_CONTROLS)
    return text.ljust(width, " ")[:width]


def pad_number(value: object, width: int) -> str:
    """Zero-left-pad ``value`` to ``width`` columns, truncating overflow."""
    return str(value).zfill(width)[:width]


def format_share(share: float) -> str:
    """Render a share percentage as the 5-digit SPT value."""
    return pad_number("{:.2f}".format(share).replace(".", ""), SHARE_WIDTH)


class RecordSequence:
    """Running line buffer and counter for one conversion run.

    WHY: The trailer must report exactly how many lines were written.
    Counting as lines are emitted (instead of computing the total from
    the input shape) keeps that number honest.

    RULES:
    - count starts at 0 and grows by one per emit()
    - One instance per run; never shared between runs
    """

    def __init__(self) -> None:
        self.count = 0
        self._lines: List[str] = []

    def emit(self, *fields: str) -> None:
        self._lines.append("".join(fields))
        self.count += 1

    def render(self) -> str:
        return "".join(line + "\n" for line in self._lines)


def _emit_party(
    records: RecordSequence,
    work_number: str,
    party_number: str,
    party: InterestedParty,
    registration: WorkRegistration,
) -> None:
    name = pad_field(party.name, FIELD_WIDTHS["name"])
    ipi = pad_field(party.ipi, FIELD_WIDTHS["ipi"])
    society = pad_field(registration.societies.get(party.name, ""), 3)

    if party.is_publisher:
        records.emit("PUB", work_number, name, ipi, society)
    else:
        records.emit("SWR", work_number, name, ipi, pad_field(party.role.value, 2), society)

    records.emit("SPT", work_number, party_number, format_share(party.share))
    records.emit(
        "TER",
        work_number,
        party_number,
        pad_field(map_territory(registration.work.territory), 3),
    )


def _emit_work(
    records: RecordSequence,
    sequence: int,
    registration: WorkRegistration,
) -> None:
    work = registration.work
    work_number = pad_number(sequence, WORK_SEQUENCE_WIDTH)
    records.emit(
        "NWR",
        work_number,
        pad_field(work.title, FIELD_WIDTHS["title"]),
        pad_field(work.iswc, FIELD_WIDTHS["iswc"]),
        pad_field(work.duration_code, 6),
        pad_field(work.language, FIELD_WIDTHS["language"]),
        pad_field(work.genre, FIELD_WIDTHS["genre"]),
    )
    for party_sequence, party in enumerate(registration.parties, start=1):
        _emit_party(
            records,
            work_number,
            pad_number(party_sequence, PARTY_SEQUENCE_WIDTH),
            party,
            registration,
        )


def emit_records(transmission: Transmission) -> str:
    """Serialize a Transmission into CWR fixed-width text.

    Args:
        transmission: Extracted registrations plus header metadata.

    Returns:
        The complete transmission, one newline-terminated record per line.
    """
    records = RecordSequence()
    records.emit(
        "HDR",
        pad_field(transmission.sender_id, 9),
        pad_field(transmission.receiver_id, 9),
        pad_field(transmission.creation_date, 8),
        pad_field(transmission.version, 7),
    )

    for sequence, registration in enumerate(transmission.registrations, start=1):
        _emit_work(records, sequence, registration)

    # The trailer counts itself.
    records.emit("TRL", pad_number(records.count + 1, RECORD_COUNT_WIDTH))
    return records.render()


class CWRFormatter(BaseFormatter):
    """Formatter that produces the fixed-width CWR transmission file."""

    @property
    def name(self) -> str:
        return "CWR Fixed-Width"

    def format(self, transmission: Transmission) -> List[FormatterOutput]:
        return [
            FormatterOutput(
                suffix=OUTPUT_SUFFIX,
                content=emit_records(transmission),
                media_type="text/plain",
            )
        ]
