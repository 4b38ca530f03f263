"""
Unit tests for the VariantDataStore: source eligibility, REMM range
reduction, merging and failure handling.
"""

from unittest.mock import MagicMock

import pytest

from varanno.backends import AnnotationBackend, LAYOUT_SCORE, TabixBackend
from varanno.cache import AnnotationCache
from varanno.config import AnnotationConfig
from varanno.exceptions import ConfigurationError
from varanno.model import (
    AnnotationRecord,
    FrequencySource,
    PathogenicityData,
    PathogenicitySource,
    RemmScore,
    RsId,
    SiftScore,
    Variant,
    VariantData,
    VariantEffect,
)
from varanno.store import (
    VariantDataStore,
    frequency_source,
    pathogenicity_source,
    remm_source,
    variant_data_source,
)


class CountingBackend(AnnotationBackend):
    """Backend serving fixed rows and counting the queries it receives."""

    name = "counting"

    def __init__(self, records=()):
        super().__init__()
        self.records = list(records)
        self.calls = []

    def _fetch(self, variant, start, end):
        self.calls.append((variant, start, end))
        return list(self.records)


def regulatory(position, ref="A", alt="T"):
    return Variant(1, position, ref, alt, VariantEffect.REGULATORY_REGION_VARIANT)


class TestEligibility:
    """Test that sources are only queried for variants they can score."""

    def test_remm_not_queried_for_missense(self, missense_variant):
        backend = CountingBackend([AnnotationRecord("1", 100, None, None, ".", {"REMM": 0.9})])
        store = VariantDataStore([remm_source(backend)])
        assert store.get_variant_data(missense_variant) is VariantData.EMPTY
        assert backend.calls == []

    def test_pathogenicity_only_source_not_queried_for_non_missense(self):
        backend = CountingBackend([AnnotationRecord("1", 1, "A", "T", ".", "SIFT=0.1")])
        store = VariantDataStore([pathogenicity_source(backend)])
        assert store.get_pathogenicity_data(regulatory(1)) is PathogenicityData.EMPTY
        assert backend.calls == []

    def test_frequency_only_source_skipped_for_pathogenicity(self, missense_variant):
        backend = CountingBackend([AnnotationRecord("1", 100, "A", "T", "rs1", "KG=0.1")])
        store = VariantDataStore([frequency_source(backend)])
        assert store.get_pathogenicity_data(missense_variant) is PathogenicityData.EMPTY
        assert backend.calls == []

    def test_combined_source_masks_predictions_for_non_missense(self):
        backend = CountingBackend([AnnotationRecord("1", 1, "A", "T", "rs1", "KG=0.1;SIFT=0.1")])
        store = VariantDataStore([variant_data_source(backend)])
        data = store.get_variant_data(regulatory(1))
        assert data.frequency_data.get_frequency_for(FrequencySource.THOUSAND_GENOMES).frequency == 0.1
        assert data.pathogenicity_data is PathogenicityData.EMPTY
        assert len(backend.calls) == 1

    def test_collect_reuses_known_results_and_masks_them(self, missense_variant):
        backend = CountingBackend([AnnotationRecord("1", 100, "A", "T", "rs1", "KG=0.1;SIFT=0.1")])
        store = VariantDataStore([variant_data_source(backend)])
        known = {}

        [(_, pathogenicity)] = store.collect(missense_variant, known=known)
        assert not pathogenicity.is_empty
        intronic = Variant(1, 100, "A", "T", VariantEffect.INTRON_VARIANT)
        [(frequency, pathogenicity)] = store.collect(intronic, known=known)

        assert frequency.rs_id == RsId(1)
        assert pathogenicity is PathogenicityData.EMPTY
        assert known[0][1] == PathogenicityData.of([SiftScore(0.1)])
        assert len(backend.calls) == 1

    def test_combined_source_queries_anchor_position(self):
        backend = CountingBackend()
        store = VariantDataStore([variant_data_source(backend)])
        store.get_variant_data(regulatory(10, "AAA", "-"))
        assert backend.calls[0][1:] == (10, 10)


class TestRemm:
    """Test positional REMM lookups over indel ranges."""

    def test_deletion_takes_max_score_in_range(self, remm_tabix):
        store = VariantDataStore([remm_source(TabixBackend(remm_tabix, layout=LAYOUT_SCORE))])
        data = store.get_pathogenicity_data(regulatory(1, "AAA", "-"))
        assert data == PathogenicityData.of([RemmScore(1.0)])
        store.close()

    def test_insertion_takes_max_of_flanking_scores(self, remm_tabix):
        store = VariantDataStore([remm_source(TabixBackend(remm_tabix, layout=LAYOUT_SCORE))])
        data = store.get_pathogenicity_data(regulatory(1, "-", "TT"))
        assert data == PathogenicityData.of([RemmScore(0.5)])
        store.close()

    def test_snv_reads_own_position(self, remm_tabix):
        store = VariantDataStore([remm_source(TabixBackend(remm_tabix, layout=LAYOUT_SCORE))])
        assert store.get_pathogenicity_data(regulatory(10)).get_score(PathogenicitySource.REMM).score == 0.7
        assert store.get_pathogenicity_data(regulatory(5)) is PathogenicityData.EMPTY
        store.close()

    def test_zero_score_is_empty(self, remm_tabix):
        store = VariantDataStore([remm_source(TabixBackend(remm_tabix, layout=LAYOUT_SCORE))])
        assert store.get_variant_data(regulatory(1)) is VariantData.EMPTY
        store.close()

    def test_results_cached_by_hgvs(self):
        backend = CountingBackend([AnnotationRecord("1", 1, None, None, ".", {"REMM": 0.6})])
        cache = AnnotationCache(name="remm")
        store = VariantDataStore([remm_source(backend, cache=cache)])
        first = store.get_pathogenicity_data(regulatory(1))
        second = store.get_pathogenicity_data(regulatory(1))
        assert first == second == PathogenicityData.of([RemmScore(0.6)])
        assert len(backend.calls) == 1
        assert "1:g.1A>T" in cache


class TestMerging:
    """Test how results from several rows and sources are combined."""

    def test_rows_for_other_alleles_are_ignored(self):
        backend = CountingBackend([
            AnnotationRecord("1", 100, "A", "G", ".", "EXAC_NFE=1.5"),
            AnnotationRecord("1", 100, "A", "T", "rs123", "KG=0.1"),
        ])
        store = VariantDataStore([variant_data_source(backend)])
        data = store.get_frequency_data(Variant(1, 100, "A", "T"))
        assert data.rs_id == RsId(123)
        assert data.get_frequency_for(FrequencySource.THOUSAND_GENOMES).frequency == 0.1
        assert data.get_frequency_for(FrequencySource.EXAC_NON_FINNISH_EUROPEAN) is None

    def test_deletion_anchored_upstream_is_ignored(self):
        # a positional index returns the row at 100 for a query at 101, since REF spans both bases
        backend = CountingBackend([AnnotationRecord("1", 100, "AA", "-", "rs111", "KG=5.0")])
        store = VariantDataStore([variant_data_source(backend)])
        deletion = VariantEffect.FRAMESHIFT_VARIANT
        assert store.get_variant_data(Variant(1, 101, "AA", "-", deletion)) is VariantData.EMPTY
        assert store.get_frequency_data(Variant(1, 100, "AA", "-", deletion)).rs_id == RsId(111)

    def test_position_only_rows_match_on_overlap(self):
        backend = CountingBackend([AnnotationRecord("1", 3, None, None, ".", {"REMM": 0.4})])
        store = VariantDataStore([remm_source(backend)])
        assert store.get_pathogenicity_data(regulatory(1, "AAA", "-")) == PathogenicityData.of([RemmScore(0.4)])

    def test_first_matching_row_supplies_frequencies(self):
        backend = CountingBackend([
            AnnotationRecord("1", 100, "A", "T", "rs1", "KG=0.1"),
            AnnotationRecord("1", 100, "A", "T", "rs2", "KG=0.2"),
        ])
        store = VariantDataStore([variant_data_source(backend)])
        data = store.get_frequency_data(Variant(1, 100, "A", "T"))
        assert data.rs_id == RsId(1)
        assert data.max_freq == 0.1

    def test_sources_are_merged(self, missense_variant):
        frequencies = CountingBackend([AnnotationRecord("1", 100, "A", "T", "rs5", "ESP_ALL=0.4")])
        predictions = CountingBackend([AnnotationRecord("1", 100, "A", "T", ".", "SIFT=0.3;POLYPHEN=0.6")])
        store = VariantDataStore([frequency_source(frequencies), pathogenicity_source(predictions)])
        data = store.get_variant_data(missense_variant)
        assert data.frequency_data.rs_id == RsId(5)
        assert {score.source for score in data.pathogenicity_data.scores} == {
            PathogenicitySource.SIFT, PathogenicitySource.POLYPHEN,
        }

    def test_no_sources(self, missense_variant):
        assert VariantDataStore([]).get_variant_data(missense_variant) is VariantData.EMPTY


class TestFailureHandling:
    """Test that lookups never raise."""

    def test_backend_error_gives_empty(self, missense_variant, caplog):
        backend = CountingBackend([AnnotationRecord("1", 100, "A", "T", "rs1", "KG=0.1")])
        fetch = backend._fetch
        backend._fetch = MagicMock(side_effect=[OSError("connection reset"), fetch(missense_variant, 100, 100)])
        store = VariantDataStore([variant_data_source(backend)])

        assert store.get_variant_data(missense_variant) is VariantData.EMPTY
        assert backend.error_count == 1
        assert "connection reset" in caplog.text

        # the next lookup is unaffected
        assert store.get_frequency_data(missense_variant).rs_id == RsId(1)

    def test_malformed_remm_row_gives_empty(self, score_file):
        path = score_file("remm_bad.tsv", [("1", 1, "abc"), ("1", 5, "0.9")])
        with VariantDataStore([remm_source(TabixBackend(path, layout=LAYOUT_SCORE))]) as store:
            assert store.get_variant_data(regulatory(1)) is VariantData.EMPTY
            assert store.get_pathogenicity_data(regulatory(5)) == PathogenicityData.of([RemmScore(0.9)])

    def test_unexpected_error_gives_empty(self, missense_variant):
        backend = MagicMock()
        backend.query.side_effect = RuntimeError("bug")
        store = VariantDataStore([variant_data_source(backend)])
        assert store.get_variant_data(missense_variant) is VariantData.EMPTY

    def test_missing_indexes_give_empty(self, tmp_path, missense_variant):
        config = AnnotationConfig(
            variant_data_path=tmp_path / "missing.vcf.gz",
            remm_path=tmp_path / "missing_remm.tsv.gz",
        )
        with VariantDataStore.from_config(config) as store:
            assert store.get_variant_data(missense_variant) is VariantData.EMPTY
            assert [source.name for source in store.sources] == ["variant_data", "remm"]


class TestFromConfig:
    """Test building a store from configuration."""

    def test_sources_in_priority_order(self, tabix_vcf, remm_tabix):
        config = AnnotationConfig(
            variant_data_path=tabix_vcf,
            frequency_path=tabix_vcf,
            pathogenicity_path=tabix_vcf,
            remm_path=remm_tabix,
        )
        with VariantDataStore.from_config(config) as store:
            assert [source.name for source in store.sources] == ["variant_data", "frequency", "pathogenicity", "remm"]
            assert store.sources[-1].cache is not None
            assert store.sources[-1].range_query

    def test_combined_tabix_lookup(self, tabix_vcf, missense_variant):
        with VariantDataStore.from_config(AnnotationConfig(variant_data_path=tabix_vcf)) as store:
            data = store.get_variant_data(missense_variant)
        assert data.frequency_data.rs_id == RsId(123)
        assert data.pathogenicity_data.get_score(PathogenicitySource.MUTATION_TASTER).score == 0.8

    def test_invalid_config_raises(self):
        with pytest.raises(ConfigurationError):
            VariantDataStore.from_config(AnnotationConfig(backend="lucene"))

    def test_close_shared_backend_once(self):
        backend = MagicMock()
        store = VariantDataStore([frequency_source(backend), pathogenicity_source(backend)])
        store.close()
        backend.close.assert_called_once()
