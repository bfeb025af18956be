"""Output formatters for the Transmission IR.

The CWR fixed-width emitter is the only output format; it follows the
BaseFormatter interface so the CLI and the API save it generically.
"""

from cwr_converter.formatters.cwr import CWRFormatter, emit_records

__all__ = ["CWRFormatter", "emit_records"]
