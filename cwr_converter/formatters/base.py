"""Abstract base formatter and output container.

WHY: The CLI and the HTTP API both turn a Transmission into a file on
disk. A shared interface lets them handle any formatter the same way:
ask it for outputs, then save each one under the source stem.

HOW: BaseFormatter is an ABC with two requirements: a ``name`` property
and a ``format()`` method. FormatterOutput is a plain dataclass that
bundles a file suffix with its content and MIME type.

RULES:
- Subclasses MUST implement ``name`` (human-readable) and ``format()``
- ``format()`` returns a list of outputs
- ``suffix`` includes the dot, e.g. ``".cwr"``
- The caller is responsible for prepending the source filename stem
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from cwr_converter.core.ir import Transmission


@dataclass
class FormatterOutput:
    """One output file produced by a formatter.

    Attributes:
        suffix: File suffix appended to the source stem,
                e.g. ``".cwr"`` → ``"catalogue.cwr"``.
        content: The file content.
        media_type: MIME type for the content, e.g. ``"text/plain"``.
    """

    suffix: str
    content: str
    media_type: str


class BaseFormatter(ABC):
    """Abstract base for all output formatters."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'CWR Fixed-Width'."""

    @abstractmethod
    def format(self, transmission: Transmission) -> list[FormatterOutput]:
        """Convert the Transmission IR into one or more output files.

        Args:
            transmission: The extracted registrations plus header metadata.

        Returns:
            List of FormatterOutput objects.
        """
