"""
Range-indexed flat file backend for varanno.

Reads bgzip-compressed, tabix-indexed files through pysam. pysam iterators
hold file position state, so each worker thread opens its own TabixFile and
every query gets a fresh iterator from it.
"""

import logging
import threading
from pathlib import Path
from typing import List, Optional

import pysam

from ..exceptions import MalformedRecordError
from ..info_parser import parse_score_line, parse_vcf_line
from ..model import AnnotationRecord, Variant
from .base import AnnotationBackend

# Configure logging
log = logging.getLogger("varanno")

LAYOUT_VCF = "vcf"
LAYOUT_SCORE = "score"


class TabixBackend(AnnotationBackend):
    """
    Positional range queries against a tabix-indexed file.

    The index only guarantees positional overlap; rows for other alleles at
    the same position are returned too and must be filtered by the caller.
    """

    name = "tabix"

    def __init__(self, source_path: Path, layout: str = LAYOUT_VCF, score_key: str = "REMM"):
        """
        Initialize the tabix backend.

        Args:
            source_path: Path to the .gz file; the .tbi index is expected beside it
            layout: Row layout, "vcf" (chrom pos id ref alt qual filter info) or
                "score" (chrom pos score)
            score_key: Field name given to the score column of "score" layout rows
        """
        super().__init__(source_path)
        if layout not in (LAYOUT_VCF, LAYOUT_SCORE):
            raise ValueError(f"Unknown tabix row layout: {layout}")
        self.layout = layout
        self.score_key = score_key
        self._local = threading.local()
        self._handles = []
        if self._check_source_exists():
            try:
                # open once up front so a bad index is reported at start-up
                handle = self._handle()
                log.info(f"Reading variant data from tabix {self.source_path} ({len(handle.contigs)} contigs)")
            except (OSError, ValueError) as e:
                self._mark_unavailable(f"unable to open {self.source_path}: {e}")

    def _handle(self) -> pysam.TabixFile:
        handle = getattr(self._local, "handle", None)
        if handle is None:
            handle = pysam.TabixFile(str(self.source_path))
            self._local.handle = handle
            self._local.contigs = set(handle.contigs)
            with self._lock:
                self._handles.append(handle)
        return handle

    def _resolve_contig(self, variant: Variant) -> Optional[str]:
        """Index files name chromosomes as 1, X or chrX; use whichever this file has."""
        contigs = self._local.contigs
        for candidate in (str(variant.chromosome), variant.chromosome_name, f"chr{variant.chromosome_name}"):
            if candidate in contigs:
                return candidate
        return None

    def fetch_lines(self, variant: Variant, start: int, end: int) -> List[str]:
        handle = self._handle()
        contig = self._resolve_contig(variant)
        if contig is None:
            return []
        # pysam takes 0-based half-open coordinates
        return list(handle.fetch(contig, start - 1, end))

    def _fetch(self, variant: Variant, start: int, end: int) -> List[AnnotationRecord]:
        records = []
        for line in self.fetch_lines(variant, start, end):
            try:
                records.append(self._parse_line(line))
            except MalformedRecordError as e:
                log.warning(f"Skipping malformed row in {self.source_path}: {e}")
        return records

    def _parse_line(self, line: str) -> AnnotationRecord:
        if self.layout == LAYOUT_SCORE:
            return parse_score_line(line, self.score_key)
        return parse_vcf_line(line)

    def close(self):
        with self._lock:
            handles, self._handles = self._handles, []
        for handle in handles:
            handle.close()
        self._local = threading.local()
