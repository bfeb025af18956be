"""Intermediate representation dataclasses for extracted work registrations.

WHY: Spreadsheet rows are loose mappings of header text to cell text.
The record emitter needs typed works, parties and society lookups with
every default already applied. The IR decouples extraction from emission
so either side can change without touching the other.

HOW: Five types form a hierarchy:
  Role            : normalized interested-party role
  Work            : one musical work with its NWR fields
  InterestedParty : one writer or publisher parsed from free text
  WorkRegistration: one row's work, parties and society lookup
  Transmission    : the complete batch plus header metadata

RULES:
- Work fields are already defaulted and clipped to their column widths
- duration_code is always exactly 4 ASCII digits
- Parties keep the order in which they appear in the source text
- SocietyLookup is a plain dict; unknown names resolve to ""
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, List

SocietyLookup = Dict[str, str]
"""Party name → affiliated society code (2–3 upper-case letters)."""

FIELD_WIDTHS: Dict[str, int] = {
    "title": 60,
    "iswc": 11,
    "language": 3,
    "genre": 10,
    "name": 60,
    "ipi": 11,
}
"""Column widths shared by the extractor (clipping) and the emitter (padding)."""


class Role(str, enum.Enum):
    """Interested-party roles.

    Values are the codes written into the SWR role field. Publishers never
    get a role field; they are emitted as PUB lines instead.
    """

    COMPOSER = "C"
    AUTHOR = "A"
    COMPOSER_AUTHOR = "CA"
    PUBLISHER = "P"


@dataclass
class Work:
    """A single musical work extracted from one spreadsheet row.

    RULES:
    - title: defaults to "UNKNOWN_TITLE", at most 60 chars
    - iswc: defaults to "", at most 11 chars
    - duration_code: "MMSS", defaults to "0000"
    - language: 3-char upper-case code, defaults to "ENG"
    - genre: defaults to "", at most 10 chars
    - territory: free text, defaults to "World"
    """

    title: str = "UNKNOWN_TITLE"
    iswc: str = ""
    duration_code: str = "0000"
    language: str = "ENG"
    genre: str = ""
    territory: str = "World"


@dataclass
class InterestedParty:
    """A writer or publisher with a claim on a work.

    RULES:
    - name: as written in the source, separators stripped
    - ipi: numeric string
    - role_code: raw code from the source, upper-cased ("C", "C/A", "P", ...)
    - role: normalized Role derived from role_code
    - share: ownership percentage, 0.0 when absent
    """

    name: str
    ipi: str
    role_code: str
    role: Role
    share: float = 0.0

    @property
    def is_publisher(self) -> bool:
        return self.role is Role.PUBLISHER


@dataclass
class WorkRegistration:
    """Everything extracted from one row: the work, its parties, its societies."""

    work: Work
    parties: List[InterestedParty] = field(default_factory=list)
    societies: SocietyLookup = field(default_factory=dict)


@dataclass
class Transmission:
    """The complete intermediate representation of one conversion run.

    WHY: This is the top-level container that formatters receive. It holds
    the ordered registrations plus everything the header record needs.

    RULES:
    - registrations: row order == output order
    - creation_date: "YYYYMMDD"; explicit so reruns are byte-identical
    - source_filename: original CSV name (for output naming)
    """

    registrations: List[WorkRegistration]
    sender_id: str
    receiver_id: str
    creation_date: str
    version: str
    source_filename: str = ""
