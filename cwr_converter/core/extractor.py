"""Field extraction: column aliases, defaults, durations, and free-text
party/society parsing into the Transmission IR.

WHY: Catalogue spreadsheets carry one work per row, but the interesting
data hides in free text: a single cell lists every writer and publisher
with IPI, role and share, another lists each party's society. The record
emitter needs those as structured, fully defaulted values.

HOW: Column lookups go through a static alias table with exact header
matching. Durations are split on ":" and re-padded. Party and society
cells are split into words once and scanned left to right; an IPI plus
role marker (or a society code) closes the name run before it and starts
a new entry. build_transmission() runs the extractor over a whole batch.

RULES:
- Exact header matching only; unknown columns are ignored
- Missing, empty, or whitespace-only cells use the documented defaults
- Nothing here raises for bad data; fallbacks are logged at DEBUG
- Party boundary: "<Name> <ASCII digits> (<ROLE>)", share is the first
  decimal number after the parenthetical (0.0 if none)
- Society boundary: "<Name> <2-3 upper-case letters>"
- Leading "and", "&" or "+" words are dropped from names
- Role "C/A" → composer/author, "C" → composer, "P" → publisher,
  anything else → author
"""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from cwr_converter import config
from cwr_converter.core.ir import (
    FIELD_WIDTHS,
    InterestedParty,
    Role,
    SocietyLookup,
    Transmission,
    Work,
    WorkRegistration,
)

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "UNKNOWN_TITLE"
DEFAULT_DURATION_CODE = "0000"
DEFAULT_LANGUAGE = "ENG"
DEFAULT_TERRITORY = "World"

# Logical field → accepted header strings, tried in order. The long headers
# are the ones in the registration spreadsheet template, newline included.
COLUMN_ALIASES: Dict[str, Tuple[str, ...]] = {
    "title": (
        "title",
        "Title",
        "Work Title\n(as it should appear on the registration)",
    ),
    "iswc": (
        "iswc",
        "ISWC",
        "ISWC\n(International Standard Musical Work Code, e.g. T0345246801)",
    ),
    "duration": (
        "duration",
        "Duration",
        "Duration\n(MM:SS, e.g. 03:45)",
    ),
    "language": (
        "language",
        "Language",
        "Language\n(3-letter code, e.g. ENG) ",
    ),
    "genre": (
        "genre",
        "Genre",
        "Genre\n(free text, max 10 characters)",
    ),
    "territory": (
        "territory",
        "Territory",
        "Territory\n(World, or a territory code) ",
    ),
    "interested_parties": (
        "interested_parties",
        "Interested Parties",
        "Interested Parties\n(Name IPI (Role) Share, e.g. Jane Doe 123456789 (C) 50.5; "
        "Role: C = Composer, A = Author, C/A = Composer/Author, P = Publisher)",
    ),
    "societies": (
        "societies",
        "Affiliated Societies",
        "Affiliated Societies\n(Name Society, e.g. Jane Doe BMI)",
    ),
}

# "( C/A )" anywhere in the text; rewritten to a standalone "(C/A)" token.
_ROLE_MARKER_RE = re.compile(r"\(\s*([A-Za-z/]+)\s*\)")
_ROLE_TOKEN_RE = re.compile(r"\(([A-Za-z/]+)\)")
_IPI_TOKEN_RE = re.compile(r"[0-9]+")
_SOCIETY_CODE_RE = re.compile(r"\(?([A-Z]{2,3})\)?(?![^\W\d_])")
_SHARE_RE = re.compile(r"[0-9]+(?:\.[0-9]+)?")

# A name never spans a digit or a parenthesis.
_NAME_BREAK_RE = re.compile(r"[\d()]")
_LETTER_RE = re.compile(r"[^\W\d_]")

# Characters trimmed from both ends of a parsed name.
_NAME_STRIP = " \t\r\n,;|:-"

# Joining words left over between two entries ("... 50 and John Smith ...").
_LEADING_CONNECTORS = frozenset({"and", "&", "+"})


# ---------------------------------------------------------------------------
# Cell access
# ---------------------------------------------------------------------------


def resolve_cell(row: Mapping[str, object], field_name: str) -> Optional[str]:
    """Return the first non-missing value among a field's header aliases.

    RULES:
    - Aliases are tried in COLUMN_ALIASES order
    - None, empty, and whitespace-only values are missing
    - Returned text is stripped
    """
    for header in COLUMN_ALIASES[field_name]:
        value = row.get(header)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def _clip(value: str, field_name: str) -> str:
    return value[:FIELD_WIDTHS[field_name]]


def _normalize_name(raw: str) -> str:
    """Collapse whitespace, start at the first letter, drop leading connectors."""
    letter = _LETTER_RE.search(raw)
    if letter is None:
        return ""
    words = raw[letter.start():].split()
    while words and words[0] in _LEADING_CONNECTORS:
        words.pop(0)
    return " ".join(words).strip(_NAME_STRIP)


# ---------------------------------------------------------------------------
# Scalar fields
# ---------------------------------------------------------------------------


def format_duration(text: Optional[str]) -> str:
    """Convert "MM:SS" text to a 4-digit "MMSS" code.

    WHY: The NWR duration column holds digits only. Spreadsheets hold
    whatever the user typed ("3:45", "03:45", "3:5").

    HOW: Split on ":", parse each half as an integer, zero-pad each to two
    digits and concatenate.

    RULES:
    - Missing input → "0000"
    - Anything other than exactly two all-digit halves → "0000"
    - A half above 99 → "0000" (the code must stay 4 digits)
    - Seconds are not range-checked ("1:75" → "0175")
    """
    if not text:
        return DEFAULT_DURATION_CODE

    halves = text.split(":")
    if len(halves) != 2:
        logger.debug("Duration %r is not MM:SS, using %s", text, DEFAULT_DURATION_CODE)
        return DEFAULT_DURATION_CODE

    parts: List[str] = []
    for half in halves:
        half = half.strip()
        if not (half.isascii() and half.isdigit()) or int(half) > 99:
            logger.debug("Duration %r has a malformed half, using %s", text, DEFAULT_DURATION_CODE)
            return DEFAULT_DURATION_CODE
        parts.append("{:02d}".format(int(half)))

    return "".join(parts)


def normalize_role(code: str) -> Role:
    """Map a source role code to a Role.

    Unknown codes fall back to author, even when they mean something else
    in the source (e.g. "AR" arranger).
    """
    code = code.upper().replace(" ", "")
    if code in ("C/A", "CA"):
        return Role.COMPOSER_AUTHOR
    if code == "C":
        return Role.COMPOSER
    if code == "P":
        return Role.PUBLISHER
    return Role.AUTHOR


# ---------------------------------------------------------------------------
# Free-text scanners
# ---------------------------------------------------------------------------


class _NameRun:
    """Words that may become the next entry's name.

    WHY: Names are free text with no delimiter of their own. Whatever
    words sit between the previous entry and the next IPI or society code
    form the name, unless a digit or parenthesis cuts in between.

    RULES:
    - feed() appends a word; a word containing a digit or parenthesis
      restarts the run with whatever follows its last such character
    - Each word is looked at a bounded number of times, so a scan stays
      linear in the cell length
    """

    def __init__(self) -> None:
        self._words: List[str] = []

    def feed(self, word: str) -> None:
        pieces = _NAME_BREAK_RE.split(word)
        if len(pieces) == 1:
            self._words.append(word)
            return
        rest = pieces[-1]
        self._words = [rest] if rest else []

    def restart(self, rest: str = "") -> None:
        self._words = []
        if rest:
            self.feed(rest)

    def name(self) -> str:
        return _normalize_name(" ".join(self._words))


def _role_tokens(text: str) -> List[str]:
    """Split party text into words with every role marker as its own word."""
    return _ROLE_MARKER_RE.sub(r" (\1) ", text).split()


def parse_interested_parties(text: Optional[str]) -> List[InterestedParty]:
    """Parse a free-text party cell into InterestedParty records.

    Example: ``"Jane Doe 123456789 (C) 50.5 Acme Music 555 (P) 49.5"``
    yields a composer and a publisher, in that order.

    HOW: One pass over the words. An ASCII-digit word directly followed
    by a "(ROLE)" word, with a name run before it, starts a new party.
    The first number after the role marker, before the next party's
    name, is that party's share.
    """
    if not text or not text.strip():
        return []

    words = _role_tokens(text)
    parties: List[InterestedParty] = []
    run = _NameRun()
    share_pending = False
    index = 0

    while index < len(words):
        word = words[index]
        marker = None
        if index + 1 < len(words) and _IPI_TOKEN_RE.fullmatch(word):
            marker = _ROLE_TOKEN_RE.fullmatch(words[index + 1])

        name = run.name() if marker is not None else ""
        if name:
            if share_pending:
                logger.debug("No share for party %r, using 0", parties[-1].name)
            role_code = marker.group(1).upper()
            parties.append(InterestedParty(
                name=name,
                ipi=word,
                role_code=role_code,
                role=normalize_role(role_code),
            ))
            share_pending = True
            run.restart()
            index += 2
            continue

        if share_pending:
            share_match = _SHARE_RE.search(word)
            if share_match:
                parties[-1].share = float(share_match.group())
                share_pending = False
        run.feed(word)
        index += 1

    if share_pending:
        logger.debug("No share for party %r, using 0", parties[-1].name)
    if not parties:
        logger.debug("No interested parties recognised in %.80r", text)
    return parties


def parse_societies(text: Optional[str]) -> SocietyLookup:
    """Parse a free-text society cell into a name → society code lookup.

    Example: ``"Jane Doe BMI John Smith PRS"`` →
    ``{"Jane Doe": "BMI", "John Smith": "PRS"}``. A later entry for the
    same name overwrites an earlier one.
    """
    if not text or not text.strip():
        return {}

    lookup: SocietyLookup = {}
    run = _NameRun()
    for word in text.split():
        code = _SOCIETY_CODE_RE.match(word)
        if code is not None:
            name = run.name()
            if name:
                lookup[name] = code.group(1)
                run.restart(word[code.end():])
                continue
        run.feed(word)
    return lookup


# ---------------------------------------------------------------------------
# Row extraction
# ---------------------------------------------------------------------------


def _value_or_default(row: Mapping[str, object], field_name: str, default: str) -> str:
    value = resolve_cell(row, field_name)
    if value is None:
        if default:
            logger.debug("Missing %s, using %r", field_name, default)
        return default
    return value


def extract_work(row: Mapping[str, object]) -> Work:
    """Build a Work from one row, applying every default.

    RULES:
    - Text fields are clipped to their NWR column widths
    - Language is upper-cased
    - Territory is kept as written (mapped to a code at emission)
    """
    language = _value_or_default(row, "language", DEFAULT_LANGUAGE).upper()
    return Work(
        title=_clip(_value_or_default(row, "title", DEFAULT_TITLE), "title"),
        iswc=_clip(_value_or_default(row, "iswc", ""), "iswc"),
        duration_code=format_duration(resolve_cell(row, "duration")),
        language=_clip(language, "language"),
        genre=_clip(_value_or_default(row, "genre", ""), "genre"),
        territory=_value_or_default(row, "territory", DEFAULT_TERRITORY),
    )


def extract_parties(row: Mapping[str, object]) -> List[InterestedParty]:
    """Parse the row's interested-parties cell."""
    return parse_interested_parties(resolve_cell(row, "interested_parties"))


def extract_societies(row: Mapping[str, object]) -> SocietyLookup:
    """Parse the row's affiliated-societies cell."""
    return parse_societies(resolve_cell(row, "societies"))


def extract_registration(row: Mapping[str, object]) -> WorkRegistration:
    """Run all three extractors over one row."""
    return WorkRegistration(
        work=extract_work(row),
        parties=extract_parties(row),
        societies=extract_societies(row),
    )


def build_transmission(
    rows: Iterable[Mapping[str, object]],
    source_filename: str = "",
    sender_id: Optional[str] = None,
    receiver_id: Optional[str] = None,
    creation_date: Optional[str] = None,
    version: Optional[str] = None,
) -> Transmission:
    """Build a Transmission IR from spreadsheet rows.

    WHY: The record emitter consumes a whole batch plus header metadata.
    This function is the bridge from loose rows to that batch.

    HOW: Extracts every row in order and fills header fields from the
    arguments, falling back to config values and today's date.

    Args:
        rows: Ordered row mappings (header text → cell text).
        source_filename: Original CSV filename for output naming.
        sender_id: HDR sender id (default: config.SENDER_ID).
        receiver_id: HDR receiver id (default: config.RECEIVER_ID).
        creation_date: HDR date as YYYYMMDD (default: today).
        version: HDR version tag (default: config.CWR_VERSION).

    Returns:
        Transmission ready for the CWR formatter.
    """
    registrations = [extract_registration(row) for row in rows]
    logger.info(
        "Extracted %d works with %d interested parties",
        len(registrations),
        sum(len(r.parties) for r in registrations),
    )
    return Transmission(
        registrations=registrations,
        sender_id=sender_id or config.SENDER_ID,
        receiver_id=receiver_id or config.RECEIVER_ID,
        creation_date=creation_date or date.today().strftime("%Y%m%d"),
        version=version or config.CWR_VERSION,
        source_filename=source_filename,
    )
