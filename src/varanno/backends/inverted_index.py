"""
Inverted index backend for varanno.

Alleles are indexed as one document per (chr, pos, ref, alt) in a read-only
DuckDB database. Field values are typed when the index is built, so a hit
needs only type coercion, not INFO parsing.

Expected table:

    alleles(chr INTEGER, pos INTEGER, ref VARCHAR, alt VARCHAR, rsId VARCHAR,
            KG DOUBLE, ESP_AA DOUBLE, ..., SIFT DOUBLE, POLYPHEN DOUBLE, MUT_TASTER DOUBLE)

NULL fields are treated as absent. Every lookup filters on all four key
columns, so index builders should create an index on (chr, pos, ref, alt):

    CREATE INDEX alleles_key ON alleles (chr, pos, ref, alt)
"""

import logging
from pathlib import Path
from typing import List

import duckdb

from ..model import AnnotationRecord, Variant
from .base import AnnotationBackend

# Configure logging
log = logging.getLogger("varanno")

TABLE_NAME = "alleles"
KEY_COLUMNS = ("chr", "pos", "ref", "alt")
RSID_FIELD = "rsId"

QUERY = f"SELECT * FROM {TABLE_NAME} WHERE chr = ? AND pos = ? AND ref = ? AND alt = ? LIMIT 1"


class InvertedIndexBackend(AnnotationBackend):
    """Exact-match allele lookups returning at most one best hit."""

    name = "index"

    def __init__(self, source_path: Path):
        """
        Initialize the index backend.

        Args:
            source_path: Path to the DuckDB index file
        """
        super().__init__(source_path)
        self._connection = None
        if self._check_source_exists():
            try:
                self._connection = duckdb.connect(str(self.source_path), read_only=True)
                log.info(f"Reading variant data from index {self.source_path}")
            except duckdb.Error as e:
                self._mark_unavailable(f"unable to open {self.source_path}: {e}")

    def _fetch(self, variant: Variant, start: int, end: int) -> List[AnnotationRecord]:
        # exact-match index: the range is ignored, the allele conjunction is the key
        with self._lock:
            cursor = self._connection.cursor()
        try:
            cursor.execute(QUERY, [variant.chromosome, variant.position, variant.ref, variant.alt])
            row = cursor.fetchone()
            if row is None:
                return []
            columns = [column[0] for column in cursor.description]
        finally:
            cursor.close()

        document = dict(zip(columns, row))
        fields = {
            name: value
            for name, value in document.items()
            if name not in KEY_COLUMNS and name != RSID_FIELD and value is not None
        }
        return [AnnotationRecord(
            chromosome=str(document["chr"]),
            position=int(document["pos"]),
            ref=document["ref"],
            alt=document["alt"],
            rs_id=document.get(RSID_FIELD) or ".",
            info=fields,
        )]

    def close(self):
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            self.available = False
