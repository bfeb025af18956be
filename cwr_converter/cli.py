"""Command-line interface for the CWR converter.

WHY: Catalogue managers need a simple way to turn a spreadsheet export
into a CWR file from the terminal. The CLI wires together the whole
pipeline (CSV reading, field extraction, record emission, and file
saving) behind a single command.

HOW: Uses argparse to accept an input CSV, header overrides, and an
output directory. Status messages go to stderr; the .cwr file is saved
next to the source (or to --output-dir) without overwriting older runs.

RULES:
- Positional argument: input CSV file path
- Validates the extension against SUPPORTED_INPUT_FORMATS before reading
- --date must be YYYYMMDD (8 digits); defaults to today
- Output naming: {stem}.cwr, numeric suffix on conflict ({stem}-2.cwr)
- Status output goes to stderr (not stdout)
- --verbose turns on DEBUG logging, which shows every applied default
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from cwr_converter.config import RECEIVER_ID, SENDER_ID, SUPPORTED_INPUT_FORMATS
from cwr_converter.core.extractor import build_transmission
from cwr_converter.core.rows import read_rows
from cwr_converter.formatters.base import FormatterOutput
from cwr_converter.formatters.cwr import CWRFormatter


def _status(msg: str) -> None:
    """Print a status message to stderr.

    Status output must not pollute stdout so the CLI can be piped.
    """
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _resolve_output_path(
    stem: str,
    suffix: str,
    output_dir: Path,
) -> Path:
    """Resolve the output file path, adding a numeric suffix on conflict.

    WHY: Users rerun the converter after fixing the spreadsheet. Silently
    overwriting the previous transmission would lose the file that may
    already have been sent.

    RULES:
    - First attempt: {stem}{suffix} (e.g. catalogue.cwr)
    - Conflict: insert a counter before the extension (catalogue-2.cwr)
    - Counter starts at 2 and increments

    Args:
        stem: Source filename stem (without extension).
        suffix: Formatter's suffix (e.g. ".cwr").
        output_dir: Directory to save the output file.

    Returns:
        A Path that does not yet exist.
    """
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    dot_idx = suffix.rfind(".")
    if dot_idx >= 0:
        suffix_name = suffix[:dot_idx]
        suffix_ext = suffix[dot_idx:]
    else:
        suffix_name = suffix
        suffix_ext = ""

    counter = 2
    while True:
        candidate = output_dir / "{}{}-{}{}".format(stem, suffix_name, counter, suffix_ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _save_output(
    output: FormatterOutput,
    stem: str,
    output_dir: Path,
) -> Path:
    """Save a formatter output to disk and return where it went.

    The content is ASCII-padded text; it is written as UTF-8 with "\\n"
    line endings on every platform.
    """
    path = _resolve_output_path(stem, output.suffix, output_dir)
    with open(path, "w", encoding="utf-8", newline="\n") as fh:
        fh.write(output.content)
    return path


def _creation_date(value: str) -> str:
    """argparse type for --date."""
    if len(value) != 8 or not value.isdigit():
        raise argparse.ArgumentTypeError(
            "expected YYYYMMDD, got {!r}".format(value)
        )
    return value


def convert_file(args: argparse.Namespace) -> Path:
    """Run the full conversion for parsed CLI arguments.

    RULES:
    - Validate input and output paths before reading anything
    - Read rows, build the Transmission, format, save
    - Returns the saved path; exits with status 1 on user errors
    """
    input_path = Path(args.input_file).resolve()

    if not input_path.is_file():
        _fail("File not found: {}".format(input_path))

    ext = input_path.suffix.lower()
    if ext not in SUPPORTED_INPUT_FORMATS:
        _fail("Unsupported file type '{}'. Supported formats: {}".format(
            ext, ", ".join(sorted(SUPPORTED_INPUT_FORMATS))
        ))

    output_dir = Path(args.output_dir).resolve() if args.output_dir else input_path.parent
    if not output_dir.is_dir():
        _fail("Output directory does not exist: {}".format(output_dir))

    _status("Reading {}...".format(input_path.name))
    try:
        rows = read_rows(input_path)
    except OSError as e:
        _fail("Could not read {}: {}".format(input_path, e))
    _status("  {} rows".format(len(rows)))

    transmission = build_transmission(
        rows,
        source_filename=input_path.name,
        sender_id=args.sender_id,
        receiver_id=args.receiver_id,
        creation_date=args.date,
    )
    party_count = sum(len(r.parties) for r in transmission.registrations)
    _status("  {} works, {} interested parties".format(
        len(transmission.registrations), party_count,
    ))

    formatter = CWRFormatter()
    _status("Running {} formatter...".format(formatter.name))
    saved_path = None
    for output in formatter.format(transmission):
        saved_path = _save_output(output, input_path.stem, output_dir)
        _status("  Saved: {}".format(saved_path.name))

    _status("")
    _status("Done! Saved to {}".format(output_dir))
    return saved_path


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    Separate from main() so tests can inspect the parser without running
    a conversion.
    """
    parser = argparse.ArgumentParser(
        prog="cwr_converter",
        description="Convert a work-registration spreadsheet (CSV) into a "
                    "fixed-width CWR transmission file.",
    )

    parser.add_argument(
        "input_file",
        help="Path to the CSV file to convert.",
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save the .cwr file (default: same as input file).",
    )

    parser.add_argument(
        "--sender-id",
        default=SENDER_ID,
        help="Sender id written to the HDR record (default: %(default)s).",
    )

    parser.add_argument(
        "--receiver-id",
        default=RECEIVER_ID,
        help="Receiver id written to the HDR record (default: %(default)s).",
    )

    parser.add_argument(
        "--date",
        type=_creation_date,
        default=None,
        help="Creation date for the HDR record as YYYYMMDD (default: today).",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every default applied to missing or malformed cells.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )
    convert_file(args)


if __name__ == "__main__":
    main()
