"""In-memory conversion store with per-conversion temp dirs and TTL cleanup.

WHY: The HTTP API converts an upload, then serves the .cwr file from a
separate download request. Something has to hold the file between those
requests and remove it afterwards so temp space does not fill up.

HOW: Two components work together:
  Conversion:      dataclass holding metadata and the temp directory
  ConversionStore: thread-safe dict-based store with create/get/list/
                    delete and TTL cleanup

RULES:
- All store mutations are protected by threading.Lock
- Each conversion gets a dedicated temp directory
- TTL is measured from created_at; expired entries lose their directory
- Conversion ids are UUID4 hex strings generated at creation time
- max_conversions caps the number of live entries (ValueError when full)
"""

from __future__ import annotations

import logging
import shutil
import tempfile
import threading
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from cwr_converter.config import CONVERSION_TTL_SECONDS, MAX_CONVERSIONS

logger = logging.getLogger(__name__)


@dataclass
class Conversion:
    """Metadata for one finished conversion.

    RULES:
    - id: UUID4 hex, unique and immutable
    - filename: original uploaded CSV filename
    - output_dir: temp directory holding the output file
    - output_filename: name of the .cwr file inside output_dir ("" until saved)
    - work_count / record_count: filled in once the file is written
    """

    id: str
    filename: str
    output_dir: Path
    created_at: float
    output_filename: str = ""
    work_count: int = 0
    record_count: int = 0

    @property
    def output_path(self) -> Path:
        return self.output_dir / self.output_filename


class ConversionStore:
    """Thread-safe in-memory store for conversions.

    RULES:
    - create() generates an id and a temp dir, and stores the entry
    - get() returns None for unknown ids (no exceptions)
    - delete() removes the entry and its temp dir
    - cleanup_expired() removes entries older than the TTL
    """

    def __init__(
        self,
        ttl_seconds: int = CONVERSION_TTL_SECONDS,
        max_conversions: int = MAX_CONVERSIONS,
    ) -> None:
        self._conversions: Dict[str, Conversion] = {}
        self._lock = threading.Lock()
        self._ttl_seconds = ttl_seconds
        self.max_conversions = max_conversions

    def create(self, filename: str) -> Conversion:
        """Create a new conversion with its own temp directory.

        Raises:
            ValueError: When max_conversions entries are already stored.
        """
        with self._lock:
            if len(self._conversions) >= self.max_conversions:
                raise ValueError(
                    "Maximum number of stored conversions ({}) reached".format(
                        self.max_conversions
                    )
                )

            conversion = Conversion(
                id=uuid.uuid4().hex,
                filename=filename,
                output_dir=Path(tempfile.mkdtemp(prefix="cwr_conversion_")),
                created_at=time.time(),
            )
            self._conversions[conversion.id] = conversion

        logger.info("Created conversion %s for file %s", conversion.id, filename)
        return conversion

    def get(self, conversion_id: str) -> Optional[Conversion]:
        with self._lock:
            return self._conversions.get(conversion_id)

    def list_conversions(self) -> List[Conversion]:
        """Return all conversions, oldest first."""
        with self._lock:
            return sorted(self._conversions.values(), key=lambda c: c.created_at)

    def delete(self, conversion_id: str) -> bool:
        """Delete a conversion and its temp directory.

        Returns True if the conversion existed. Directory removal happens
        outside the lock.
        """
        with self._lock:
            conversion = self._conversions.pop(conversion_id, None)

        if conversion is None:
            return False

        self._cleanup_output_dir(conversion.output_dir)
        logger.info("Deleted conversion %s", conversion_id)
        return True

    def clear(self) -> None:
        """Delete every conversion."""
        with self._lock:
            conversions = list(self._conversions.values())
            self._conversions.clear()
        for conversion in conversions:
            self._cleanup_output_dir(conversion.output_dir)

    def cleanup_expired(self) -> int:
        """Remove all conversions older than the TTL and return how many."""
        now = time.time()
        expired: List[Conversion] = []

        with self._lock:
            for conversion_id, conversion in list(self._conversions.items()):
                if now - conversion.created_at > self._ttl_seconds:
                    expired.append(self._conversions.pop(conversion_id))

        for conversion in expired:
            self._cleanup_output_dir(conversion.output_dir)
            logger.info(
                "Expired conversion %s (created %.0fs ago)",
                conversion.id, now - conversion.created_at,
            )

        return len(expired)

    @staticmethod
    def _cleanup_output_dir(output_dir: Path) -> None:
        """Remove a conversion's temp directory tree; logs instead of raising."""
        if output_dir.exists():
            try:
                shutil.rmtree(output_dir)
            except OSError:
                logger.warning("Failed to clean up temp dir: %s", output_dir)
