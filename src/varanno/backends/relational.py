"""
Relational exact-match backends for varanno.

Two schemas are supported:

- RelationalBackend: a FREQUENCY table with one column per population panel,
  left-joined to a VARIANT table holding the SIFT, PolyPhen and
  MutationTaster predictions.
- RelationalInfoBackend: a single variant(chromosome, position, ref, alt,
  rsid, info) table whose info column holds an INFO-style string.

Both look a variant up by the exact (chromosome, position, ref, alt) key and
return at most one row.
"""

import logging
from abc import abstractmethod
from pathlib import Path
from typing import List

from ..model import AnnotationRecord, Variant
from ..sources import (
    FREQUENCY_COLUMN_MAP,
    FREQUENCY_INFO_KEYS,
    PATHOGENICITY_COLUMN_MAP,
    PATHOGENICITY_INFO_KEYS,
)
from .base import AnnotationBackend
from .pool import ConnectionPool

# Configure logging
log = logging.getLogger("varanno")


def _build_join_query() -> str:
    frequency_columns = ", ".join(f"f.{column}" for column in FREQUENCY_COLUMN_MAP.values())
    pathogenicity_columns = ", ".join(f"v.{column}" for column in PATHOGENICITY_COLUMN_MAP.values())
    return (
        "SELECT f.chromosome, f.position, f.ref, f.alt, f.rsid, "
        f"{frequency_columns}, {pathogenicity_columns} "
        "FROM frequency f "
        "LEFT JOIN variant v "
        "ON v.chromosome = f.chromosome "
        "AND v.position = f.position "
        "AND v.ref = f.ref "
        "AND v.alt = f.alt "
        "WHERE f.chromosome = ? AND f.position = ? AND f.ref = ? AND f.alt = ?"
    )


JOIN_QUERY = _build_join_query()

INFO_QUERY = (
    "SELECT chromosome, position, ref, alt, rsid, info "
    "FROM variant "
    "WHERE chromosome = ? AND position = ? AND ref = ? AND alt = ?"
)


class _PooledBackend(AnnotationBackend):
    """Shared set-up for the sqlite backends: one pool per database."""

    def __init__(self, source_path: Path, pool_size: int = 5, pool_timeout: float = 30.0):
        super().__init__(source_path)
        self.pool = None
        if self._check_source_exists():
            self.pool = ConnectionPool(self.source_path, size=pool_size, timeout=pool_timeout)
            log.info(f"Reading variant data from {self.name} database {self.source_path} (pool size {pool_size})")

    def _fetch(self, variant: Variant, start: int, end: int) -> List[AnnotationRecord]:
        with self.pool.connection() as connection:
            cursor = connection.execute(self.query_sql, (variant.chromosome, variant.position, variant.ref, variant.alt))
            try:
                row = cursor.fetchone()
            finally:
                cursor.close()
        if row is None:
            return []
        return [self._to_record(row)]

    @abstractmethod
    def _to_record(self, row) -> AnnotationRecord:
        """Convert one result row to a record."""

    def close(self):
        if self.pool is not None:
            self.pool.close()


class RelationalBackend(_PooledBackend):
    """FREQUENCY left join VARIANT, one nullable column per source."""

    name = "relational"
    query_sql = JOIN_QUERY

    def _to_record(self, row) -> AnnotationRecord:
        # columns are renamed to the INFO keys so the record parses like any other
        fields = {}
        for source, column in FREQUENCY_COLUMN_MAP.items():
            fields[FREQUENCY_INFO_KEYS[source]] = row[column]
        for source, column in PATHOGENICITY_COLUMN_MAP.items():
            fields[PATHOGENICITY_INFO_KEYS[source]] = row[column]
        return AnnotationRecord(
            chromosome=str(row["chromosome"]),
            position=int(row["position"]),
            ref=row["ref"],
            alt=row["alt"],
            rs_id=row["rsid"],
            info={key: value for key, value in fields.items() if value is not None},
        )


class RelationalInfoBackend(_PooledBackend):
    """Single variant table with an INFO-style string column."""

    name = "relational-info"
    query_sql = INFO_QUERY

    def _to_record(self, row) -> AnnotationRecord:
        return AnnotationRecord(
            chromosome=str(row["chromosome"]),
            position=int(row["position"]),
            ref=row["ref"],
            alt=row["alt"],
            rs_id=row["rsid"] if row["rsid"] is not None else ".",
            info=row["info"] if row["info"] is not None else ".",
        )
