"""
varanno: variant annotation retrieval.

Looks up population frequencies and pathogenicity predictions for genomic
variants in pre-built tabix, inverted-index or relational indexes.
"""

from .model import (
    Variant,
    VariantEffect,
    Frequency,
    FrequencyData,
    FrequencySource,
    RsId,
    PathogenicityData,
    PathogenicitySource,
    SiftScore,
    PolyPhenScore,
    MutationTasterScore,
    RemmScore,
    VariantData,
)
from .cache import AnnotationCache, CachingVariantDataStore
from .config import AnnotationConfig
from .store import AnnotationSource, VariantDataStore

__version__ = "0.1.0"

__all__ = [
    'Variant',
    'VariantEffect',
    'Frequency',
    'FrequencyData',
    'FrequencySource',
    'RsId',
    'PathogenicityData',
    'PathogenicitySource',
    'SiftScore',
    'PolyPhenScore',
    'MutationTasterScore',
    'RemmScore',
    'VariantData',
    'AnnotationCache',
    'CachingVariantDataStore',
    'AnnotationConfig',
    'AnnotationSource',
    'VariantDataStore',
]
