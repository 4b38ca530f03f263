"""
Backend contract for varanno.

Every index type answers the same question: which rows does the index hold
for this variant over this range? Adapters never raise from query(); I/O and
connectivity failures are logged, counted and reported as "no rows".
"""

import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from ..model import AnnotationRecord, Variant

# Configure logging
log = logging.getLogger("varanno")


class AnnotationBackend(ABC):
    """Abstract base class for annotation index adapters."""

    name = "backend"

    def __init__(self, source_path: Optional[Path] = None):
        """
        Initialize the backend.

        Args:
            source_path: Path to the index, file or database backing this adapter
        """
        self.source_path = Path(source_path) if source_path else None
        self.available = True
        self._error_count = 0
        self._lock = threading.Lock()

    @property
    def error_count(self) -> int:
        return self._error_count

    def _mark_unavailable(self, reason: str):
        """Report a start-up problem once and fall back to answering every query with no rows."""
        self.available = False
        log.error(f"{self.name} backend disabled, all lookups will return no data: {reason}")

    def _check_source_exists(self) -> bool:
        if self.source_path is None or not self.source_path.exists():
            self._mark_unavailable(f"index not found at {self.source_path}")
            return False
        return True

    def query(self, variant: Variant, start: int, end: int) -> List[AnnotationRecord]:
        """
        Fetch the raw rows held for a variant.

        Args:
            variant: Variant being annotated
            start: 1-based inclusive range start
            end: 1-based inclusive range end

        Returns:
            List of AnnotationRecord; empty when nothing is found or the backend failed
        """
        if not self.available:
            return []
        try:
            return self._fetch(variant, start, end)
        except Exception as e:
            with self._lock:
                self._error_count += 1
            log.error(f"Unable to read from {self.name} source {self.source_path} for {variant}: {e}")
            return []

    @abstractmethod
    def _fetch(self, variant: Variant, start: int, end: int) -> List[AnnotationRecord]:
        """Run the query against the index; may raise on I/O failure."""

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self):
        return f"{self.__class__.__name__}({self.source_path})"
