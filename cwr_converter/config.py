"""Configuration constants, territory codes, and .env loading.

WHY: Transmission header identities, the version tag, and the API's
housekeeping limits differ between deployments. Keeping them as plain
module-level values (not buried in the emitter) makes them easy to find
and override.

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level dicts, sets, and strings, each overridable through an
environment variable of the same name.

RULES:
- Sender/receiver ids default to the placeholder ids the format expects
- TERRITORY_CODES maps free-text territory names to numeric TIS codes
- Unmapped territories pass through unchanged (the emitter truncates)
- Integer settings raise ValueError on import when not parseable
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()


def _int_setting(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(
            "{} must be an integer, got {!r}. Fix it in the .env file.".format(name, raw)
        ) from None


# ---------------------------------------------------------------------------
# Transmission header
# ---------------------------------------------------------------------------

SENDER_ID = os.getenv("CWR_SENDER_ID", "SENDER_ID")
RECEIVER_ID = os.getenv("CWR_RECEIVER_ID", "RECEIVER_ID")
CWR_VERSION = os.getenv("CWR_VERSION", "CWR2.1")

# ---------------------------------------------------------------------------
# Territory mapping: free-text name → TIS numeric code
# ---------------------------------------------------------------------------

TERRITORY_CODES: dict[str, str] = {
    "World": "001",
}


def map_territory(territory: str) -> str:
    """Map a territory name to its code, passing unknown values through.

    RULES:
    - Exact, case-sensitive lookup ("World" → "001")
    - Anything else is returned unchanged
    """
    return TERRITORY_CODES.get(territory, territory)


# ---------------------------------------------------------------------------
# Input files
# ---------------------------------------------------------------------------

SUPPORTED_INPUT_FORMATS: set[str] = {".csv"}
"""Spreadsheet export extensions accepted by the CLI and the API."""

OUTPUT_SUFFIX = ".cwr"

# ---------------------------------------------------------------------------
# HTTP API
# ---------------------------------------------------------------------------

CONVERSION_TTL_SECONDS = _int_setting("CWR_CONVERSION_TTL_SECONDS", 3600)
MAX_CONVERSIONS = _int_setting("CWR_MAX_CONVERSIONS", 100)
API_HOST = os.getenv("CWR_API_HOST", "0.0.0.0")
API_PORT = _int_setting("CWR_API_PORT", 8000)
