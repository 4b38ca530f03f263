"""
VariantData: the frequency and pathogenicity evidence found for one variant,
plus the transient AnnotationRecord rows backends hand to the parser.
"""

from dataclasses import dataclass
from typing import Mapping, Optional, Union

from .frequency import FrequencyData
from .pathogenicity import PathogenicityData


@dataclass(frozen=True)
class VariantData:
    frequency_data: FrequencyData = FrequencyData.EMPTY
    pathogenicity_data: PathogenicityData = PathogenicityData.EMPTY

    @classmethod
    def of(cls, frequency_data=None, pathogenicity_data=None) -> "VariantData":
        data = cls(frequency_data or FrequencyData.EMPTY, pathogenicity_data or PathogenicityData.EMPTY)
        if data == VariantData.EMPTY:
            return VariantData.EMPTY
        return data

    @property
    def is_empty(self) -> bool:
        return self == VariantData.EMPTY


VariantData.EMPTY = VariantData()


@dataclass(frozen=True)
class AnnotationRecord:
    """
    One physical row returned by a backend.

    info is either the raw semicolon-delimited INFO string or, for backends
    that store typed fields, a mapping of field name to number. ref and alt
    are None for position-only sources, which then match on positional
    overlap alone.
    """

    chromosome: str
    position: int
    ref: Optional[str]
    alt: Optional[str]
    rs_id: Union[str, int, None] = "."
    info: Union[str, Mapping[str, float], None] = "."

    def matches(self, position: int, ref: str, alt: str) -> bool:
        """True if this row describes the allele at position, or carries no alleles at all."""
        if self.ref is None or self.alt is None:
            return True
        return self.position == position and self.ref == ref and self.alt == alt
