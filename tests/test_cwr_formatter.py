"""Unit tests for the CWR fixed-width record emitter.

WHY: Registration partners parse CWR files by column position. A field
one character too wide shifts every following column, and a trailer
count off by one gets the whole transmission rejected.

HOW: Tests check each record type's layout by column slices, the
publisher/songwriter branch, sequence numbering, share and territory
encoding, and batch-level properties (trailer count, idempotence) over
seeded, generated batches.

RULES:
- Transmissions are built with a fixed creation date (CREATION_DATE)
- Lines are split on "\\n" only; records may end in padding spaces
"""

import random

import pytest

from cwr_converter.core.extractor import build_transmission
from cwr_converter.core.ir import (
    InterestedParty,
    Role,
    Transmission,
    Work,
    WorkRegistration,
)
from cwr_converter.formatters.cwr import (
    CWRFormatter,
    RecordSequence,
    emit_records,
    format_share,
    pad_field,
    pad_number,
)


CREATION_DATE = "20240101"

# Column slices per record type: field name → (start, end)
NWR_COLUMNS = {
    "seq": (3, 8), "title": (8, 68), "iswc": (68, 79), "duration": (79, 85),
    "language": (85, 88), "genre": (88, 98),
}
SWR_COLUMNS = {
    "seq": (3, 8), "name": (8, 68), "ipi": (68, 79), "role": (79, 81), "society": (81, 84),
}
PUB_COLUMNS = {
    "seq": (3, 8), "name": (8, 68), "ipi": (68, 79), "society": (79, 82),
}
SPT_COLUMNS = {"seq": (3, 8), "party": (8, 11), "share": (11, 16)}
TER_COLUMNS = {"seq": (3, 8), "party": (8, 11), "territory": (11, 14)}
HDR_COLUMNS = {"sender": (3, 12), "receiver": (12, 21), "date": (21, 29), "version": (29, 36)}


def column(line, columns, name):
    start, end = columns[name]
    return line[start:end]


def make_transmission(rows, **kwargs):
    kwargs.setdefault("creation_date", CREATION_DATE)
    kwargs.setdefault("sender_id", "SENDER_ID")
    kwargs.setdefault("receiver_id", "RECEIVER")
    kwargs.setdefault("version", "CWR2.1")
    return build_transmission(rows, **kwargs)


def _lines(content):
    assert content.endswith("\n")
    return content[:-1].split("\n")


def _emit(rows, **kwargs):
    return _lines(emit_records(make_transmission(rows, **kwargs)))


def _transmission(*registrations):
    return Transmission(
        registrations=list(registrations),
        sender_id="SENDER_ID",
        receiver_id="RECEIVER",
        creation_date=CREATION_DATE,
        version="CWR2.1",
    )


class TestPadding:
    """pad_field/pad_number never wrap and never error."""

    def test_pad_field_pads_with_spaces(self):
        assert pad_field("ab", 5) == "ab   "

    def test_pad_field_truncates(self):
        assert pad_field("abcdefgh", 3) == "abc"

    def test_pad_field_exact_width(self):
        assert pad_field("abc", 3) == "abc"

    def test_pad_field_replaces_line_breaks(self):
        assert pad_field("a\nb\r\tc", 6) == "a b  c"

    def test_pad_number_zero_pads(self):
        assert pad_number(7, 5) == "00007"

    def test_pad_number_truncates(self):
        assert pad_number(1234567, 3) == "123"

    @pytest.mark.parametrize("share, expected", [
        (50.5, "05050"),
        (100, "10000"),
        (0, "00000"),
        (0.0, "00000"),
        (33.33, "03333"),
        (7.25, "00725"),
    ])
    def test_format_share(self, share, expected):
        assert format_share(share) == expected


class TestRecordSequence:
    """RecordSequence counts every emitted line."""

    def test_starts_at_zero(self):
        assert RecordSequence().count == 0

    def test_counts_and_renders(self):
        records = RecordSequence()
        records.emit("HDR", "X")
        records.emit("TRL")
        assert records.count == 2
        assert records.render() == "HDRX\nTRL\n"

    def test_instances_are_independent(self):
        first = RecordSequence()
        first.emit("A")
        assert RecordSequence().count == 0


class TestExampleWork:
    """The canonical one-composer example."""

    def test_full_output(self, example_row):
        lines = _emit([example_row])
        assert len(lines) == 6
        assert [line[:3] for line in lines] == ["HDR", "NWR", "SWR", "SPT", "TER", "TRL"]

    def test_header(self, example_row):
        header = _emit([example_row])[0]
        assert column(header, HDR_COLUMNS, "sender") == "SENDER_ID"
        assert column(header, HDR_COLUMNS, "receiver") == "RECEIVER "
        assert column(header, HDR_COLUMNS, "date") == CREATION_DATE
        assert column(header, HDR_COLUMNS, "version") == "CWR2.1 "
        assert len(header) == 36

    def test_work_line(self, example_row):
        nwr = _emit([example_row])[1]
        assert len(nwr) == 98
        assert column(nwr, NWR_COLUMNS, "seq") == "00001"
        assert column(nwr, NWR_COLUMNS, "title") == "Test Song".ljust(60)
        assert column(nwr, NWR_COLUMNS, "iswc") == " " * 11
        assert column(nwr, NWR_COLUMNS, "duration") == "0345  "
        assert column(nwr, NWR_COLUMNS, "language") == "ENG"
        assert column(nwr, NWR_COLUMNS, "genre") == " " * 10

    def test_songwriter_line(self, example_row):
        swr = _emit([example_row])[2]
        assert len(swr) == 84
        assert column(swr, SWR_COLUMNS, "seq") == "00001"
        assert column(swr, SWR_COLUMNS, "name") == "Jane Doe".ljust(60)
        assert column(swr, SWR_COLUMNS, "ipi") == "123456789  "
        assert column(swr, SWR_COLUMNS, "role") == "C "
        assert column(swr, SWR_COLUMNS, "society") == "   "

    def test_share_line(self, example_row):
        spt = _emit([example_row])[3]
        assert spt == "SPT" + "00001" + "001" + "05050"

    def test_territory_line(self, example_row):
        ter = _emit([example_row])[4]
        assert ter == "TER" + "00001" + "001" + "001"

    def test_trailer(self, example_row):
        assert _emit([example_row])[5] == "TRL000000006"


class TestPartyLines:
    """SWR vs PUB branch, role codes, and society annotation."""

    def test_publisher_gets_pub_line_without_role(self):
        lines = _emit([{"interested_parties": "Acme Music 555666777 (P) 100"}])
        pub = lines[2]
        assert pub[:3] == "PUB"
        assert len(pub) == 82
        assert column(pub, PUB_COLUMNS, "name") == "Acme Music".ljust(60)
        assert column(pub, PUB_COLUMNS, "ipi") == "555666777  "
        assert column(pub, PUB_COLUMNS, "society") == "   "
        assert lines[3] == "SPT0000100110000"

    @pytest.mark.parametrize("code, expected", [
        ("C", "C "),
        ("A", "A "),
        ("C/A", "CA"),
        ("AR", "A "),
    ])
    def test_songwriter_role_codes(self, code, expected):
        lines = _emit([{"interested_parties": "Jane Doe 1 ({}) 100".format(code)}])
        assert column(lines[2], SWR_COLUMNS, "role") == expected

    def test_society_annotation(self, catalogue_rows):
        lines = _emit(catalogue_rows[:1])
        swr, pub = lines[2], lines[5]
        assert column(swr, SWR_COLUMNS, "society") == "BMI"
        assert column(pub, PUB_COLUMNS, "society") == "ASC"

    def test_unknown_society_is_blank(self):
        lines = _emit([{
            "interested_parties": "Jane Doe 1 (C) 100",
            "societies": "Somebody Else PRS",
        }])
        assert column(lines[2], SWR_COLUMNS, "society") == "   "

    def test_party_group_order(self, catalogue_rows):
        lines = _emit(catalogue_rows[:1])
        assert [line[:3] for line in lines] == [
            "HDR", "NWR", "SWR", "SPT", "TER", "PUB", "SPT", "TER", "TRL",
        ]

    def test_long_name_is_truncated(self):
        lines = _emit([{"interested_parties": "{} 1 (C) 1".format("Ann " * 30)}])
        assert len(lines[2]) == 84


class TestSequencing:
    """Work and party sequence numbers."""

    def test_work_sequence_increments(self, catalogue_rows):
        lines = _emit(catalogue_rows + [{"title": "Third"}])
        nwr = [line for line in lines if line.startswith("NWR")]
        assert [column(line, NWR_COLUMNS, "seq") for line in nwr] == ["00001", "00002", "00003"]

    def test_party_lines_carry_their_work_sequence(self, catalogue_rows):
        lines = _emit(catalogue_rows)
        for line in lines:
            if line[:3] in ("SWR", "PUB", "SPT", "TER"):
                assert line[3:8] in ("00001", "00002")
        second_work = [line for line in lines if line[3:8] == "00002"]
        assert [line[:3] for line in second_work] == [
            "NWR", "SWR", "SPT", "TER", "SWR", "SPT", "TER",
        ]

    def test_party_sequence_restarts_per_work(self, catalogue_rows):
        lines = _emit(catalogue_rows)
        spt = [line for line in lines if line.startswith("SPT")]
        assert [(column(line, SPT_COLUMNS, "seq"), column(line, SPT_COLUMNS, "party"))
                for line in spt] == [
            ("00001", "001"), ("00001", "002"), ("00002", "001"), ("00002", "002"),
        ]

    def test_sequences_restart_for_each_run(self, example_row):
        first = _emit([example_row])
        second = _emit([example_row])
        assert first[1][3:8] == second[1][3:8] == "00001"


class TestTerritory:
    """TER territory codes."""

    @pytest.mark.parametrize("territory, expected", [
        ("World", "001"),
        ("US", "US "),
        ("2136", "213"),
        ("Europe", "Eur"),
        ("world", "wor"),
    ])
    def test_territory_codes(self, territory, expected):
        lines = _emit([{
            "territory": territory,
            "interested_parties": "Jane Doe 1 (C) 100",
        }])
        assert column(lines[4], TER_COLUMNS, "territory") == expected

    def test_default_territory_is_world(self, example_row):
        assert _emit([example_row])[4].endswith("001")


class TestEdgeCases:
    """Empty batches, empty party lists, odd text."""

    def test_empty_batch(self):
        lines = _emit([])
        assert [line[:3] for line in lines] == ["HDR", "TRL"]
        assert lines[1] == "TRL000000002"

    def test_work_without_parties(self):
        lines = _emit([{"title": "Instrumental", "interested_parties": ""}])
        assert [line[:3] for line in lines] == ["HDR", "NWR", "TRL"]
        assert lines[2] == "TRL000000003"

    def test_line_breaks_in_values_do_not_add_records(self):
        registration = WorkRegistration(
            work=Work(title="Line\nBreak"),
            parties=[InterestedParty(
                name="Jane\r\nDoe", ipi="1", role_code="C", role=Role.COMPOSER, share=10,
            )],
        )
        content = emit_records(_transmission(registration))
        lines = _lines(content)
        assert len(lines) == 6
        assert column(lines[1], NWR_COLUMNS, "title").startswith("Line Break")
        assert lines[-1] == "TRL000000006"

    def test_overlong_header_ids_are_truncated(self):
        lines = _emit([], sender_id="A_VERY_LONG_SENDER", receiver_id="R")
        assert column(lines[0], HDR_COLUMNS, "sender") == "A_VERY_LO"
        assert column(lines[0], HDR_COLUMNS, "receiver") == "R        "


def _random_batch(rng):
    """Rows plus the number of parties written into each row."""
    names = ["Jane Doe", "John Smith", "Acme Music", "Max O'Neil", "Lee", "Ana Maria Paz"]
    roles = ["C", "A", "C/A", "P", "AR", "E"]
    rows = []
    party_counts = []
    for _ in range(rng.randint(0, 8)):
        count = rng.randint(0, 5)
        entries = [
            "{} {} ({}) {}".format(
                rng.choice(names),
                rng.randint(1, 10 ** 11),
                rng.choice(roles),
                rng.choice(["", "50", "12.5", "100%"]),
            )
            for _ in range(count)
        ]
        rows.append({
            "title": rng.choice(["", "Song", "X" * 80]),
            "duration": rng.choice(["", "3:45", "bad", "10:00"]),
            "territory": rng.choice(["", "World", "US", "Europe"]),
            "interested_parties": rng.choice([" ", "; ", "\n"]).join(entries),
            "societies": " ".join(
                "{} {}".format(rng.choice(names), rng.choice(["BMI", "PRS", "SG"]))
                for _ in range(rng.randint(0, 3))
            ),
        })
        party_counts.append(count)
    return rows, party_counts


class TestBatchProperties:
    """Trailer count and sequencing hold for any batch shape."""

    @pytest.mark.parametrize("seed", range(25))
    def test_trailer_equals_line_count(self, seed):
        rows, party_counts = _random_batch(random.Random(seed))
        content = emit_records(make_transmission(rows))
        lines = _lines(content)

        expected = 1 + sum(1 + 3 * p for p in party_counts) + 1
        assert content.count("\n") == expected
        assert lines[-1] == "TRL" + str(expected).zfill(9)
        assert int(lines[-1][3:]) == len(lines)

    @pytest.mark.parametrize("seed", range(10))
    def test_work_sequences_are_one_to_n(self, seed):
        rows, _ = _random_batch(random.Random(seed))
        lines = _emit(rows)
        sequences = [int(line[3:8]) for line in lines if line.startswith("NWR")]
        assert sequences == list(range(1, len(rows) + 1))

    @pytest.mark.parametrize("seed", range(10))
    def test_party_sequences_restart_per_work(self, seed):
        rows, party_counts = _random_batch(random.Random(seed))
        lines = _emit(rows)
        for work_number, count in enumerate(party_counts, start=1):
            parties = [
                int(line[8:11]) for line in lines
                if line.startswith("SPT") and int(line[3:8]) == work_number
            ]
            assert parties == list(range(1, count + 1))

    @pytest.mark.parametrize("seed", range(10))
    def test_fixed_line_lengths(self, seed):
        rows, _ = _random_batch(random.Random(seed))
        widths = {"HDR": 36, "NWR": 98, "SWR": 84, "PUB": 82, "SPT": 16, "TER": 14, "TRL": 12}
        for line in _emit(rows):
            assert len(line) == widths[line[:3]]

    @pytest.mark.parametrize("seed", range(5))
    def test_idempotent(self, seed):
        rows, _ = _random_batch(random.Random(seed))
        assert emit_records(make_transmission(rows)) == emit_records(make_transmission(rows))


class TestCWRFormatter:
    """CWRFormatter wraps emit_records in the formatter interface."""

    def test_name(self):
        assert CWRFormatter().name == "CWR Fixed-Width"

    def test_single_cwr_output(self, catalogue_rows):
        transmission = make_transmission(catalogue_rows)
        outputs = CWRFormatter().format(transmission)
        assert len(outputs) == 1
        assert outputs[0].suffix == ".cwr"
        assert outputs[0].media_type == "text/plain"
        assert outputs[0].content == emit_records(transmission)
