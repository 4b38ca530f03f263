"""
Backends package for varanno.

Interchangeable adapters over the pre-built annotation indexes. All of them
implement AnnotationBackend.query() and are selected by name when the store
is configured.
"""

from pathlib import Path

from .base import AnnotationBackend
from .tabix import TabixBackend, LAYOUT_VCF, LAYOUT_SCORE
from .inverted_index import InvertedIndexBackend
from .relational import RelationalBackend, RelationalInfoBackend
from .pool import ConnectionPool

BACKEND_TYPES = ("tabix", "index", "relational", "relational-info")


def create_backend(kind: str, source_path: Path, pool_size: int = 5, pool_timeout: float = 30.0) -> AnnotationBackend:
    """
    Create the adapter for a combined frequency and pathogenicity index.

    Args:
        kind: One of BACKEND_TYPES
        source_path: Path to the index
        pool_size: Connection pool size for the relational backends
        pool_timeout: Seconds to wait for a pooled connection

    Returns:
        AnnotationBackend instance
    """
    if kind == "tabix":
        return TabixBackend(source_path, layout=LAYOUT_VCF)
    if kind == "index":
        return InvertedIndexBackend(source_path)
    if kind == "relational":
        return RelationalBackend(source_path, pool_size=pool_size, pool_timeout=pool_timeout)
    if kind == "relational-info":
        return RelationalInfoBackend(source_path, pool_size=pool_size, pool_timeout=pool_timeout)
    raise ValueError(f"Unknown backend type: {kind}")


__all__ = [
    'AnnotationBackend',
    'TabixBackend',
    'InvertedIndexBackend',
    'RelationalBackend',
    'RelationalInfoBackend',
    'ConnectionPool',
    'LAYOUT_VCF',
    'LAYOUT_SCORE',
    'BACKEND_TYPES',
    'create_backend',
]
