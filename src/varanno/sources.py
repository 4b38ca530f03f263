"""
Annotation source name mappings for varanno.

This is the one place that ties a FrequencySource or pathogenicity predictor
to the names used in the indexes: INFO keys in the flat files, field names in
the inverted index and column labels in the relational schema. Every backend
reads from these tables so they cannot drift apart.
"""

from types import MappingProxyType
from typing import Optional, Type

from .model import (
    FrequencySource,
    PathogenicitySource,
    PathogenicityScore,
    SCORE_TYPES,
)

# INFO key / index field name -> FrequencySource
FREQUENCY_SOURCE_MAP = MappingProxyType({
    "KG": FrequencySource.THOUSAND_GENOMES,
    "ESP_AA": FrequencySource.ESP_AFRICAN_AMERICAN,
    "ESP_EA": FrequencySource.ESP_EUROPEAN_AMERICAN,
    "ESP_ALL": FrequencySource.ESP_ALL,
    "EXAC_AFR": FrequencySource.EXAC_AFRICAN_INC_AFRICAN_AMERICAN,
    "EXAC_AMR": FrequencySource.EXAC_AMERICAN,
    "EXAC_EAS": FrequencySource.EXAC_EAST_ASIAN,
    "EXAC_FIN": FrequencySource.EXAC_FINNISH,
    "EXAC_NFE": FrequencySource.EXAC_NON_FINNISH_EUROPEAN,
    "EXAC_SAS": FrequencySource.EXAC_SOUTH_ASIAN,
    "EXAC_OTH": FrequencySource.EXAC_OTHER,
})

FREQUENCY_INFO_KEYS = MappingProxyType({source: key for key, source in FREQUENCY_SOURCE_MAP.items()})

# FrequencySource -> relational column label
FREQUENCY_COLUMN_MAP = MappingProxyType({
    FrequencySource.THOUSAND_GENOMES: "dbSNPmaf",
    FrequencySource.ESP_AFRICAN_AMERICAN: "espAAmaf",
    FrequencySource.ESP_EUROPEAN_AMERICAN: "espEAmaf",
    FrequencySource.ESP_ALL: "espAllmaf",
    FrequencySource.EXAC_AFRICAN_INC_AFRICAN_AMERICAN: "exacAFRmaf",
    FrequencySource.EXAC_AMERICAN: "exacAMRmaf",
    FrequencySource.EXAC_EAST_ASIAN: "exacEASmaf",
    FrequencySource.EXAC_FINNISH: "exacFINmaf",
    FrequencySource.EXAC_NON_FINNISH_EUROPEAN: "exacNFEmaf",
    FrequencySource.EXAC_SOUTH_ASIAN: "exacSASmaf",
    FrequencySource.EXAC_OTHER: "exacOTHmaf",
})

# INFO key prefix / index field name -> PathogenicitySource
PATHOGENICITY_KEY_PREFIXES = MappingProxyType({
    "SIFT": PathogenicitySource.SIFT,
    "POLYPHEN": PathogenicitySource.POLYPHEN,
    "MUT_TASTER": PathogenicitySource.MUTATION_TASTER,
    "REMM": PathogenicitySource.REMM,
})

PATHOGENICITY_INFO_KEYS = MappingProxyType({source: key for key, source in PATHOGENICITY_KEY_PREFIXES.items()})

# PathogenicitySource -> relational column label (VARIANT table)
PATHOGENICITY_COLUMN_MAP = MappingProxyType({
    PathogenicitySource.SIFT: "sift",
    PathogenicitySource.POLYPHEN: "polyphen",
    PathogenicitySource.MUTATION_TASTER: "mut_taster",
})


def frequency_source_for(key: str) -> Optional[FrequencySource]:
    return FREQUENCY_SOURCE_MAP.get(key)


def score_type_for(key: str) -> Optional[Type[PathogenicityScore]]:
    """Match a field name by prefix, so SIFT_SCORE or POLYPHEN_HVAR also resolve."""
    for prefix, source in PATHOGENICITY_KEY_PREFIXES.items():
        if key.startswith(prefix):
            return SCORE_TYPES[source]
    return None
