"""Tests for the Ensembl REST annotation and sequence sources.

The HTTP session is replaced by a mock; no network access is needed.
"""

from unittest.mock import Mock

import pytest
import requests

from protgenome.annotation import EnsemblRestSource, IdType
from protgenome.annotation.ensembl import _gene_name_from_display, _stable_id, chunks
from protgenome.config import AnnotationConfig
from protgenome.genome import EnsemblSequenceSource


def json_response(data):
    response = Mock()
    response.json.return_value = data
    response.raise_for_status.return_value = None
    return response


TRANSCRIPT = {
    'id': 'ENST0001',
    'object_type': 'Transcript',
    'seq_region_name': '7',
    'strand': -1,
    'start': 100,
    'end': 400,
    'biotype': 'protein_coding',
    'display_name': 'BRAF-201',
    'Parent': 'ENSG0001',
    'Exon': [{'start': 300, 'end': 400}, {'start': 100, 'end': 200}],
    'Translation': {'id': 'ENSP0001', 'start': 150, 'end': 350},
}

NON_CODING_TRANSCRIPT = {
    'id': 'ENST0002',
    'object_type': 'Transcript',
    'seq_region_name': '7',
    'strand': -1,
    'biotype': 'retained_intron',
    'display_name': 'BRAF-202',
    'Parent': 'ENSG0001',
    'Exon': [{'start': 100, 'end': 200}],
}


@pytest.fixture
def session():
    return Mock()


@pytest.fixture
def source(session):
    return EnsemblRestSource(AnnotationConfig(batch_size=2, timeout_s=5.0), session=session)


class TestHelpers:

    def test_stable_id(self):
        assert _stable_id('ENST00000288602.11') == 'ENST00000288602'
        assert _stable_id('P15056') == 'P15056'

    def test_gene_name_from_display(self):
        assert _gene_name_from_display('BRAF-201') == 'BRAF'
        assert _gene_name_from_display('HLA-A') == 'HLA-A'

    def test_chunks(self):
        assert list(chunks(['a', 'b', 'c'], 2)) == [['a', 'b'], ['c']]


class TestTranscriptLookup:
    """Test lookup by transcript id."""

    def test_record_built_from_json(self, source, session):
        session.post.return_value = json_response({'ENST0001': TRANSCRIPT})

        result = source.query('transcript_id', ['ENST0001.5'])
        record = result['ENST0001.5'][0]

        assert record.transcript_id == 'ENST0001'
        assert record.strand == '-'
        assert record.chromosome == '7'
        assert record.exons == ((100, 200), (300, 400))
        assert (record.coding_start, record.coding_end) == (150, 350)
        assert record.protein_id == 'ENSP0001'
        assert record.gene_id == 'ENSG0001'
        assert record.gene_name == 'BRAF'

    def test_request(self, source, session):
        session.post.return_value = json_response({'ENST0001': TRANSCRIPT})

        source.query('transcript_id', ['ENST0001.5'])

        args, kwargs = session.post.call_args
        assert args[0] == 'https://rest.ensembl.org/lookup/id'
        assert kwargs['json'] == {'ids': ['ENST0001']}
        assert kwargs['params'] == {'expand': 1}
        assert kwargs['timeout'] == 5.0

    def test_unknown_identifier_absent(self, source, session):
        session.post.return_value = json_response({'ENST9999': None})

        assert source.query('transcript_id', ['ENST9999']) == {}

    def test_batched(self, source, session):
        session.post.return_value = json_response({})

        source.query('transcript_id', ['ENST1', 'ENST2', 'ENST3'])

        assert session.post.call_count == 2

    def test_timeout_leaves_batch_unresolved(self, source, session, caplog):
        """Test a timed-out batch counts as not found and the rest proceeds."""
        other = dict(TRANSCRIPT, id='ENST0003')
        session.post.side_effect = [
            requests.Timeout(),
            json_response({'ENST0003': other}),
        ]

        result = source.query('transcript_id', ['ENST0001', 'ENST0002', 'ENST0003'])

        assert list(result) == ['ENST0003']
        assert 'timed out' in caplog.text

    def test_http_error_leaves_batch_unresolved(self, source, session):
        response = Mock()
        response.raise_for_status.side_effect = requests.HTTPError('400 Bad Request')
        session.post.return_value = response

        assert source.query('transcript_id', ['ENST0001']) == {}

    def test_invalid_json(self, source, session):
        response = Mock()
        response.raise_for_status.return_value = None
        response.json.side_effect = ValueError('no JSON')
        session.post.return_value = response

        assert source.query('transcript_id', ['ENST0001']) == {}


class TestProteinLookup:

    def test_translation_then_parent(self, source, session):
        session.post.side_effect = [
            json_response({'ENSP0001': {'id': 'ENSP0001', 'Parent': 'ENST0001'}}),
            json_response({'ENST0001': TRANSCRIPT}),
        ]

        result = source.query(IdType.PROTEIN_ID, ['ENSP0001.2'])

        assert [r.transcript_id for r in result['ENSP0001.2']] == ['ENST0001']
        assert session.post.call_args_list[1].kwargs['json'] == {'ids': ['ENST0001']}


class TestGeneNameLookup:

    def test_symbol_lookup(self, source, session):
        gene = {
            'id': 'ENSG0001',
            'display_name': 'BRAF',
            'Transcript': [TRANSCRIPT, NON_CODING_TRANSCRIPT],
        }
        session.post.return_value = json_response({'BRAF': gene})

        result = source.query('gene_name', ['BRAF', 'NOTAGENE'])

        assert list(result) == ['BRAF']
        # Non-coding transcript dropped by the query
        assert [r.transcript_id for r in result['BRAF']] == ['ENST0001']
        args, kwargs = session.post.call_args
        assert args[0].endswith('/lookup/symbol/homo_sapiens')
        assert kwargs['json'] == {'symbols': ['BRAF', 'NOTAGENE']}


class TestUniprotLookup:

    def test_translation_xref_is_direct(self, source, session):
        session.get.side_effect = [
            json_response([{'type': 'translation', 'id': 'ENSP0001'}]),
            json_response([]),
        ]
        session.post.side_effect = [
            json_response({'ENSP0001': {'id': 'ENSP0001', 'Parent': 'ENST0001'}}),
            json_response({'ENST0001': TRANSCRIPT}),
        ]

        result = source.query('uniprot_id', ['P15056'])
        record = result['P15056'][0]

        assert record.mapping_type == 'direct'
        assert record.uniprot_ids == ('P15056',)

    def test_gene_xref_is_indirect(self, source, session):
        gene = {'id': 'ENSG0001', 'display_name': 'BRAF', 'Transcript': [TRANSCRIPT]}
        session.get.side_effect = [
            json_response([{'type': 'gene', 'id': 'ENSG0001'}]),
            json_response([]),
        ]
        session.post.return_value = json_response({'ENSG0001': gene})

        result = source.query('uniprot_id', ['P15056'])

        assert result['P15056'][0].mapping_type == 'indirect'

    def test_no_xrefs(self, source, session):
        session.get.return_value = json_response([])

        assert source.query('uniprot_id', ['P00000']) == {}
        session.post.assert_not_called()


class TestSourceConfig:

    def test_cache_key_from_config(self):
        config = AnnotationConfig.for_assembly('GRCh37', release='75')
        source = EnsemblRestSource(config, session=Mock())

        assert source.cache_key == 'https://grch37.rest.ensembl.org|homo_sapiens|75'


class TestEnsemblSequenceSource:
    """Test sequence/region requests."""

    def test_minus_strand_region(self):
        session = Mock()
        response = Mock()
        response.text = 'acgt\n'
        response.raise_for_status.return_value = None
        session.get.return_value = response

        genome = EnsemblSequenceSource(AnnotationConfig(timeout_s=5.0), session=session)
        sequence = genome.fetch('chr7', 140753336, 140753339, '-')

        assert sequence == 'ACGT'
        args, kwargs = session.get.call_args
        assert args[0] == 'https://rest.ensembl.org/sequence/region/homo_sapiens/7:140753336..140753339:-1'
        assert kwargs['timeout'] == 5.0

    def test_errors_propagate(self):
        session = Mock()
        session.get.side_effect = requests.ConnectionError('down')
        genome = EnsemblSequenceSource(session=session)

        with pytest.raises(requests.ConnectionError):
            genome.fetch('7', 1, 10)

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            EnsemblSequenceSource(session=Mock()).fetch('7', 10, 1)
