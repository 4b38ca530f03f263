"""
Variant annotation store for varanno.

The store is the one entry point the scoring code uses: hand it a Variant,
get back VariantData. Behind it sit one or more AnnotationSources, each an
index adapter plus the rules for when that index is worth asking. Lookups
are total: whatever goes wrong underneath, the caller gets EMPTY data and a
log line, never an exception.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .backends import (
    AnnotationBackend,
    LAYOUT_SCORE,
    LAYOUT_VCF,
    TabixBackend,
    create_backend,
)
from .cache import AnnotationCache
from .coordinates import point_range, query_range
from .info_parser import parse_record
from .model import (
    AnnotationRecord,
    FrequencyData,
    PathogenicityData,
    Variant,
    VariantData,
)

# Configure logging
log = logging.getLogger("varanno")

Predicate = Callable[[Variant], bool]
DataPair = Tuple[FrequencyData, PathogenicityData]

EMPTY_PAIR: DataPair = (FrequencyData.EMPTY, PathogenicityData.EMPTY)


def applies_to_all(variant: Variant) -> bool:
    return True


def missense_only(variant: Variant) -> bool:
    """SIFT, PolyPhen and MutationTaster only score missense changes."""
    return variant.effect.is_missense


def non_missense_only(variant: Variant) -> bool:
    """REMM has not been trained on missense variants."""
    return not variant.effect.is_missense


@dataclass
class AnnotationSource:
    """
    An index adapter plus the rules for querying it.

    Attributes:
        name: Label used in logs
        backend: Adapter answering the queries
        frequency: Predicate deciding whether the frequency half applies to a
            variant, or None if this source holds no frequencies
        pathogenicity: Same for the pathogenicity half
        range_query: Query the indel-expanded range rather than the anchor position
        cache: Optional per-source cache keyed by the variant's genome HGVS string
    """

    name: str
    backend: AnnotationBackend
    frequency: Optional[Predicate] = applies_to_all
    pathogenicity: Optional[Predicate] = missense_only
    range_query: bool = False
    cache: Optional[AnnotationCache] = None


def variant_data_source(backend: AnnotationBackend, name: str = "variant_data") -> AnnotationSource:
    """Combined frequency and SIFT/PolyPhen/MutationTaster index."""
    return AnnotationSource(name, backend, frequency=applies_to_all, pathogenicity=missense_only)


def frequency_source(backend: AnnotationBackend, name: str = "frequency") -> AnnotationSource:
    return AnnotationSource(name, backend, frequency=applies_to_all, pathogenicity=None)


def pathogenicity_source(backend: AnnotationBackend, name: str = "pathogenicity") -> AnnotationSource:
    return AnnotationSource(name, backend, frequency=None, pathogenicity=missense_only)


def remm_source(backend: AnnotationBackend, cache: Optional[AnnotationCache] = None, name: str = "remm") -> AnnotationSource:
    """Positional REMM scores, queried over the indel-expanded range and max-reduced."""
    return AnnotationSource(
        name, backend, frequency=None, pathogenicity=non_missense_only, range_query=True, cache=cache,
    )


def select_records(records: Iterable[AnnotationRecord]) -> DataPair:
    """
    Reduce the rows matching one variant to a single result.

    Frequencies and rs id come from the first row; pathogenicity keeps the
    highest score per predictor over all rows.
    """
    parsed = [parse_record(record) for record in records]
    if not parsed:
        return EMPTY_PAIR
    frequency_data = parsed[0][0]
    pathogenicity_data = PathogenicityData.of(
        score for _, pathogenicity in parsed for score in pathogenicity.scores
    )
    return frequency_data, pathogenicity_data


def merge_frequency_data(parts: Iterable[FrequencyData]) -> FrequencyData:
    rs_id = None
    frequencies = []
    for part in parts:
        if rs_id is None and not part.rs_id.is_empty:
            rs_id = part.rs_id
        frequencies.extend(part.frequencies)
    return FrequencyData.of(rs_id, frequencies)


def merge_pathogenicity_data(parts: Iterable[PathogenicityData]) -> PathogenicityData:
    return PathogenicityData.of(score for part in parts for score in part.scores)


class VariantDataStore:
    """Façade over the configured annotation sources."""

    def __init__(self, sources: Iterable[AnnotationSource]):
        """
        Initialize the store.

        Args:
            sources: Annotation sources, in priority order for frequencies and rs ids
        """
        self.sources: List[AnnotationSource] = list(sources)
        log.info(f"Variant data store using sources: {', '.join(s.name for s in self.sources) or 'none'}")

    @classmethod
    def from_config(cls, config) -> "VariantDataStore":
        """
        Build a store from an AnnotationConfig.

        Missing index files do not stop the store being built; the affected
        backend logs the problem and answers with no data.
        """
        config.validate()
        sources = []
        if config.variant_data_path:
            backend = create_backend(
                config.backend, config.variant_data_path,
                pool_size=config.pool_size, pool_timeout=config.pool_timeout,
            )
            sources.append(variant_data_source(backend))
        if config.frequency_path:
            sources.append(frequency_source(TabixBackend(config.frequency_path, layout=LAYOUT_VCF)))
        if config.pathogenicity_path:
            sources.append(pathogenicity_source(TabixBackend(config.pathogenicity_path, layout=LAYOUT_VCF)))
        if config.remm_path:
            remm_cache = AnnotationCache(max_size=config.cache_size, enabled=config.cache_enabled, name="remm")
            backend = TabixBackend(config.remm_path, layout=LAYOUT_SCORE, score_key="REMM")
            sources.append(remm_source(backend, cache=remm_cache))
        return cls(sources)

    def _query_source(self, source: AnnotationSource, variant: Variant) -> DataPair:
        start, end = query_range(variant) if source.range_query else point_range(variant)
        records = source.backend.query(variant, start, end)
        # the index only guarantees positional overlap
        matching = [record for record in records if record.matches(variant.position, variant.ref, variant.alt)]
        if not matching:
            return EMPTY_PAIR
        return select_records(matching)

    def _lookup(self, source: AnnotationSource, variant: Variant) -> DataPair:
        """Unmasked result of one source; both halves as the index holds them."""
        try:
            if source.cache is not None:
                return source.cache.get(variant.hgvs_genome, lambda: self._query_source(source, variant))
            return self._query_source(source, variant)
        except Exception as e:
            log.error(f"Unexpected error annotating {variant} from source {source.name}: {e}")
            return EMPTY_PAIR

    def collect(
        self,
        variant: Variant,
        want_frequency: bool = True,
        want_pathogenicity: bool = True,
        known: Optional[Dict[int, DataPair]] = None,
    ) -> List[DataPair]:
        """
        Look a variant up in every source, masking the halves that do not apply to it.

        A source none of whose wanted halves applies to the variant is not queried.

        Args:
            variant: Variant to annotate
            want_frequency: Include frequency halves
            want_pathogenicity: Include pathogenicity halves
            known: Unmasked results by source index from an earlier lookup of
                the same alleles; reused instead of querying, and extended
                with any source queried now

        Returns:
            One (FrequencyData, PathogenicityData) pair per source
        """
        results = []
        for index, source in enumerate(self.sources):
            use_frequency = want_frequency and source.frequency is not None and source.frequency(variant)
            use_pathogenicity = want_pathogenicity and source.pathogenicity is not None and source.pathogenicity(variant)
            if not (use_frequency or use_pathogenicity):
                results.append(EMPTY_PAIR)
                continue

            if known is not None and index in known:
                frequency_data, pathogenicity_data = known[index]
            else:
                frequency_data, pathogenicity_data = self._lookup(source, variant)
                if known is not None:
                    known[index] = (frequency_data, pathogenicity_data)

            results.append((
                frequency_data if use_frequency else FrequencyData.EMPTY,
                pathogenicity_data if use_pathogenicity else PathogenicityData.EMPTY,
            ))
        return results

    def get_variant_data(self, variant: Variant, known: Optional[Dict[int, DataPair]] = None) -> VariantData:
        """
        Get the frequency and pathogenicity data for a variant.

        Args:
            variant: Variant to annotate
            known: Unmasked per-source results to reuse and extend, see collect

        Returns:
            VariantData; VariantData.EMPTY when no source has evidence
        """
        results = self.collect(variant, known=known)
        return VariantData.of(
            merge_frequency_data(frequency for frequency, _ in results),
            merge_pathogenicity_data(pathogenicity for _, pathogenicity in results),
        )

    def get_frequency_data(self, variant: Variant, known: Optional[Dict[int, DataPair]] = None) -> FrequencyData:
        results = self.collect(variant, True, False, known=known)
        return merge_frequency_data(frequency for frequency, _ in results)

    def get_pathogenicity_data(self, variant: Variant, known: Optional[Dict[int, DataPair]] = None) -> PathogenicityData:
        results = self.collect(variant, False, True, known=known)
        return merge_pathogenicity_data(pathogenicity for _, pathogenicity in results)

    def close(self):
        closed = set()
        for source in self.sources:
            if id(source.backend) not in closed:
                closed.add(id(source.backend))
                source.backend.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
