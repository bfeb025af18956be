"""CWR Converter: spreadsheet work registrations to fixed-width CWR text.

WHY: Publishers keep their catalogue in spreadsheets with one row per work
and free-text columns for writers, publishers and societies. Registration
partners expect a fixed-width, line-record transmission instead. This
package bridges the two.

HOW: Three-stage pipeline: read (CSV rows), extract (core IR), format
(fixed-width record emitter). Each stage is independently testable.

RULES:
- The extractor never rejects a row; missing or malformed values default
- The Transmission IR is the stable contract between extraction and emission
- The emitter is a single pass whose trailer counts every line it wrote
"""

__version__ = "0.1.0"
