"""
Coordinate policy for varanno.

The query range for an indel is wider than its anchor position because the
score files store indel evidence at the flanking or deleted bases. These end
positions follow the convention the REMM authors trained against; changing
them desynchronises the scores from their training distribution.
"""

from typing import Tuple

from .model import Variant


def query_range(variant: Variant) -> Tuple[int, int]:
    """
    Compute the 1-based inclusive genomic range to query for a variant.

    Args:
        variant: Variant to locate

    Returns:
        Tuple of (start, end)
    """
    start = variant.position
    if variant.is_deletion:
        # every deleted base
        return start, start + len(variant.ref)
    if variant.is_insertion:
        # the bases either side of the insertion point
        return start, start + 1
    return start, start


def point_range(variant: Variant) -> Tuple[int, int]:
    return variant.position, variant.position
