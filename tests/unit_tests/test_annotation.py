"""Tests for annotation records, filters, in-memory source and model cache."""

import logging

import pytest

from protgenome.annotation import (
    ByGeneName,
    ByIdentifier,
    ByMappingType,
    Composite,
    ExonModelCache,
    IdType,
    InMemoryAnnotationSource,
    TranscriptRecord,
)
from protgenome.errors import AnnotationIntegrityError


def make_record(transcript_id, gene_name='GENE', mapping_type='direct', coding=True, **kwargs):
    return TranscriptRecord(
        transcript_id, '1', '+', exons=((100, 200),),
        coding_start=100 if coding else None,
        coding_end=198 if coding else None,
        gene_name=gene_name,
        mapping_type=mapping_type,
        **kwargs,
    )


class TestIdType:

    def test_from_string(self):
        assert IdType('uniprot_id') is IdType.UNIPROT_ID

    def test_cross_reference(self):
        assert IdType.UNIPROT_ID.is_cross_reference
        assert IdType.GENE_NAME.is_cross_reference
        assert not IdType.PROTEIN_ID.is_cross_reference
        assert not IdType.TRANSCRIPT_ID.is_cross_reference

    def test_record_identifiers(self):
        record = make_record('TX1', protein_id='P1', uniprot_ids=('Q1', 'Q2'))

        assert record.identifiers(IdType.TRANSCRIPT_ID) == ('TX1',)
        assert record.identifiers(IdType.PROTEIN_ID) == ('P1',)
        assert record.identifiers(IdType.UNIPROT_ID) == ('Q1', 'Q2')
        assert make_record('TX2', gene_name='').identifiers(IdType.GENE_NAME) == ()


class TestFilters:
    """Test filter variants and their composition."""

    def test_by_gene_name(self):
        assert ByGeneName('BRAF').matches(make_record('TX1', 'BRAF'))
        assert not ByGeneName(['KRAS', 'NRAS']).matches(make_record('TX1', 'BRAF'))

    def test_by_identifier(self):
        record = make_record('TX1', uniprot_ids=('P15056',))

        assert ByIdentifier('uniprot_id', 'P15056').matches(record)
        assert not ByIdentifier(IdType.TRANSCRIPT_ID, ['TX2']).matches(record)

    def test_by_mapping_type_case_insensitive(self):
        assert ByMappingType('DIRECT').matches(make_record('TX1'))
        assert not ByMappingType('indirect').matches(make_record('TX1'))

    def test_and_composes(self):
        combined = ByGeneName('BRAF') & ByMappingType('direct')

        assert isinstance(combined, Composite)
        assert combined.matches(make_record('TX1', 'BRAF'))
        assert not combined.matches(make_record('TX1', 'BRAF', 'indirect'))

    def test_and_flattens(self):
        combined = ByGeneName('A') & ByGeneName('B') & ByMappingType('direct')

        assert len(combined.filters) == 3

    def test_empty_composite_matches_everything(self):
        assert Composite(()).matches(make_record('TX1'))

    def test_filters_are_hashable(self):
        assert ByGeneName(['A', 'B']) == ByGeneName(['B', 'A'])
        assert len({ByGeneName('A'), ByGeneName('A')}) == 1


class TestInMemoryAnnotationSource:
    """Test the query contract."""

    @pytest.fixture
    def source(self):
        return InMemoryAnnotationSource([
            make_record('TX1', 'BRAF', protein_id='P1', uniprot_ids=('Q1',)),
            make_record('TX2', 'BRAF', mapping_type='indirect', uniprot_ids=('Q1',)),
            make_record('TX3', 'KRAS', coding=False, uniprot_ids=('Q2',)),
        ])

    def test_several_transcripts_per_identifier(self, source):
        result = source.query('gene_name', ['BRAF'])

        assert [r.transcript_id for r in result['BRAF']] == ['TX1', 'TX2']

    def test_unresolved_absent(self, source):
        result = source.query(IdType.PROTEIN_ID, ['P1', 'P9'])

        assert list(result) == ['P1']

    def test_non_coding_dropped(self, source):
        """Test a resolved identifier without coding transcripts maps to []."""
        assert source.query('uniprot_id', ['Q2']) == {'Q2': []}

    def test_filter_applied(self, source):
        result = source.query('uniprot_id', ['Q1'], ByMappingType('direct'))

        assert [r.transcript_id for r in result['Q1']] == ['TX1']

    def test_duplicates_and_empty_ids(self, source):
        result = source.query('transcript_id', ['TX1', 'TX1', ''])

        assert list(result) == ['TX1']

    def test_logs_resolution(self, source, caplog):
        caplog.set_level(logging.INFO, logger='protgenome')

        source.query('protein_id', ['P1', 'P9'])

        assert 'Resolved 1/2 protein_id identifiers' in caplog.text

    def test_cache_key_differs_per_source(self, source):
        other = InMemoryAnnotationSource(source.records)

        assert source.cache_key != other.cache_key


class TestExonModelCache:
    """Test LRU caching of exon models."""

    def test_hit_and_miss(self):
        cache = ExonModelCache()
        record = make_record('TX1')

        first = cache.get_or_build('src', record)
        second = cache.get_or_build('src', record)

        assert first is second
        assert (cache.hits, cache.misses) == (1, 1)
        assert ('src', 'TX1') in cache

    def test_keyed_by_source(self):
        cache = ExonModelCache()
        record = make_record('TX1')

        cache.get_or_build('release_1', record)
        cache.get_or_build('release_2', record)

        assert cache.misses == 2
        assert len(cache) == 2

    def test_eviction(self):
        cache = ExonModelCache(max_size=2)
        for name in ('TX1', 'TX2', 'TX3'):
            cache.get_or_build('src', make_record(name))

        assert len(cache) == 2
        assert ('src', 'TX1') not in cache

    def test_recently_used_kept(self):
        cache = ExonModelCache(max_size=2)
        cache.get_or_build('src', make_record('TX1'))
        cache.get_or_build('src', make_record('TX2'))
        cache.get_or_build('src', make_record('TX1'))
        cache.get_or_build('src', make_record('TX3'))

        assert ('src', 'TX1') in cache
        assert ('src', 'TX2') not in cache

    def test_invalid_record_not_cached(self):
        cache = ExonModelCache()
        bad = TranscriptRecord('TX1', '1', '+', exons=((100, 200),), coding_start=190, coding_end=110)

        with pytest.raises(AnnotationIntegrityError):
            cache.get_or_build('src', bad)
        assert len(cache) == 0

    def test_clear(self):
        cache = ExonModelCache()
        cache.get_or_build('src', make_record('TX1'))
        cache.clear()

        assert len(cache) == 0
        assert cache.misses == 0

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            ExonModelCache(max_size=0)
