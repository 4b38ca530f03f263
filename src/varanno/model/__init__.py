"""
Model package for varanno.

Immutable value types shared by the backends, the store and the cache.
"""

from .variant import Variant, VariantEffect, parse_chromosome, chromosome_name, EMPTY_ALLELE
from .frequency import Frequency, FrequencyData, FrequencySource, RsId
from .pathogenicity import (
    PathogenicityData,
    PathogenicityScore,
    PathogenicitySource,
    SiftScore,
    PolyPhenScore,
    MutationTasterScore,
    RemmScore,
    SCORE_TYPES,
)
from .variant_data import VariantData, AnnotationRecord

__all__ = [
    'Variant',
    'VariantEffect',
    'parse_chromosome',
    'chromosome_name',
    'EMPTY_ALLELE',
    'Frequency',
    'FrequencyData',
    'FrequencySource',
    'RsId',
    'PathogenicityData',
    'PathogenicityScore',
    'PathogenicitySource',
    'SiftScore',
    'PolyPhenScore',
    'MutationTasterScore',
    'RemmScore',
    'SCORE_TYPES',
    'VariantData',
    'AnnotationRecord',
]
