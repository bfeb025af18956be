"""Core row reading, extraction, and intermediate representation modules.

WHY: The core package holds the stable heart of the converter: the IR
dataclasses and the field extraction logic. The record emitter consumes
them and must not need to know anything about spreadsheet headers.

HOW: ir.py defines the data structures, extractor.py builds them from
row mappings, rows.py reads those row mappings from CSV input.

RULES:
- IR dataclasses are the contract; change with care
- Extraction is format-agnostic; no fixed-width logic here
"""
