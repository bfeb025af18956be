"""Shared test fixtures for the cwr_converter test suite.

WHY: Extractor, formatter, CLI, and API tests all need the same sample
spreadsheet rows. Centralizing them here keeps the sample catalogue in
one place.

HOW: Pytest fixtures provide raw rows (short and template headers) and a
sample CSV file on disk.

RULES:
- Test modules use these through fixtures only; helpers live in the
  module that needs them
"""

import csv

import pytest

from cwr_converter.core.extractor import COLUMN_ALIASES


def _template_header(field_name: str) -> str:
    """The long, annotated spreadsheet-template header for a field."""
    return COLUMN_ALIASES[field_name][-1]


@pytest.fixture
def example_row():
    """One work, one composer, default territory."""
    return {
        "title": "Test Song",
        "duration": "3:45",
        "interested_parties": "Jane Doe 123456789 (C) 50.5",
    }


@pytest.fixture
def catalogue_rows():
    """Two works written with the spreadsheet-template headers."""
    return [
        {
            _template_header("title"): "Midnight Train",
            _template_header("iswc"): "T0345246801",
            _template_header("duration"): "04:12",
            _template_header("language"): "eng",
            _template_header("genre"): "Pop",
            _template_header("territory"): "World",
            _template_header("interested_parties"): (
                "Jane Doe 123456789 (C/A) 50 Acme Music 555666777 (P) 50"
            ),
            _template_header("societies"): "Jane Doe BMI Acme Music ASC",
        },
        {
            _template_header("title"): "Second Light",
            _template_header("duration"): "2:58",
            _template_header("territory"): "US",
            _template_header("interested_parties"): (
                "John Smith 987654321 (C) 40; Mary Major 111222333 (A) 60"
            ),
            _template_header("societies"): "John Smith PRS",
        },
    ]


@pytest.fixture
def catalogue_csv(tmp_path, catalogue_rows):
    """catalogue_rows written as a CSV file with quoted multi-line headers."""
    fieldnames = [
        _template_header(name)
        for name in (
            "title", "iswc", "duration", "language", "genre",
            "territory", "interested_parties", "societies",
        )
    ]
    path = tmp_path / "catalogue.csv"
    with open(path, "w", encoding="utf-8", newline="") as fh:
        writer = csv.DictWriter(fh, fieldnames=fieldnames)
        writer.writeheader()
        for row in catalogue_rows:
            writer.writerow(row)
    return path
