"""Tests for translation, alignment and the verification pass."""

import pytest

from protgenome.config import VerificationParams
from protgenome.datasets import EXAMPLE_PROTEINS, build_synthetic_transcript
from protgenome.exons import CodingSegment, ExonModel
from protgenome.genome import InMemoryGenome
from protgenome.mapping import map_ranges_to_genome
from protgenome.proteins import Protein
from protgenome.ranges import SequenceRange
from protgenome.verification import (
    alignment_score,
    extract_coding_sequence,
    make_alignment_verifier,
    translate_coding_sequence,
    verify_mapping,
    verify_transcript,
)


class TestTranslation:

    def test_stops_at_stop_codon(self):
        assert translate_coding_sequence('ATGAAATAAGGG') == 'MK'

    def test_keeps_stop_when_asked(self):
        assert translate_coding_sequence('ATGAAATAA', to_stop=False) == 'MK*'

    def test_incomplete_codon_ignored(self):
        assert translate_coding_sequence('ATGAAAT') == 'MK'

    def test_empty(self):
        assert translate_coding_sequence('AT') == ''


class TestAlignmentScore:

    def test_identical(self):
        score, n_matches = alignment_score('MKPEPTIDE', 'MKPEPTIDE')

        assert score > 0
        assert n_matches == 9

    def test_mismatch_scores_lower(self):
        identical, _ = alignment_score('MKPEPTIDE', 'MKPEPTIDE')
        mutated, n_matches = alignment_score('MKPEPTIDE', 'MKPAPTIDE')

        assert mutated < identical
        assert n_matches == 8

    def test_empty(self):
        assert alignment_score('', 'MK') == (0.0, 0)

    def test_non_standard_residue(self):
        score, _ = alignment_score('MKUPEPTIDE', 'MKUPEPTIDE')

        assert score > 0

    def test_local_mode(self):
        params = VerificationParams(mode='local')
        _, n_matches = alignment_score('PEPTIDE', 'WWWWPEPTIDEWWWW', params)

        assert n_matches == 7


class TestVerifyTranscript:
    """Test translation of a model from the genome."""

    def test_example_transcripts(self, example_records, example_genome):
        for accession, transcript_id in [('PROT_PLUS', 'TX_PLUS_1'), ('PROT_MINUS', 'TX_MINUS_1')]:
            model = example_records[transcript_id].to_exon_model()
            result = verify_transcript(EXAMPLE_PROTEINS[accession], model, example_genome)

            assert result.translated == EXAMPLE_PROTEINS[accession]
            assert result.identity == 1.0

    def test_coding_sequence_includes_stop(self, example_records, example_genome):
        model = example_records['TX_PLUS_1'].to_exon_model()
        nucleotides = extract_coding_sequence(model, example_genome)

        assert len(nucleotides) == model.coding_length
        assert nucleotides[-3:] in ('TAA', 'TAG', 'TGA')

    def test_wrong_protein_lower_identity(self, example_records, example_genome):
        model = example_records['TX_MINUS_1'].to_exon_model()
        result = verify_transcript(EXAMPLE_PROTEINS['PROT_PLUS'], model, example_genome)

        assert result.identity < 1.0


class TestAlignmentVerifier:

    def test_correct_transcript_scores_higher(self, example_records, example_genome):
        verifier = make_alignment_verifier(EXAMPLE_PROTEINS['PROT_PLUS'], example_genome)

        right = verifier(example_records['TX_PLUS_1'].to_exon_model())
        wrong = verifier(example_records['TX_MINUS_1'].to_exon_model())

        assert right > wrong

    def test_unknown_chromosome_scores_minus_inf(self, example_genome):
        verifier = make_alignment_verifier('MK', example_genome)
        model = ExonModel('TX_Y', (CodingSegment('Y', 1, 9, '+'),))

        assert verifier(model) == float('-inf')


class TestRoundTrip:
    """Test mapped ranges translate back to their peptides."""

    @pytest.mark.parametrize('strand', ['+', '-'])
    def test_every_range(self, strand):
        sequence = 'MSTKWLPHEVDRAGCFNQYIK'
        chromosome, record = build_synthetic_transcript(
            'TX1', sequence, [7, 11, 16], strand=strand, intron_length=30,
        )
        genome = InMemoryGenome({'1': chromosome})
        model = record.to_exon_model().coding_only()

        ranges = [
            SequenceRange.from_protein(sequence, start, end)
            for start in range(1, len(sequence) + 1, 3)
            for end in (start, min(start + 6, len(sequence)))
        ]
        protein = Protein('P1', sequence, pranges=ranges)
        result = map_ranges_to_genome(ranges, model, len(sequence), 'P1')
        checks = verify_mapping(protein, result, genome)

        assert len(checks) == len(ranges)
        assert all(c.ok for c in checks), [c for c in checks if not c.ok]

    def test_mismatch_detected(self, example_genome):
        model = ExonModel('TX1', (CodingSegment('1', 1, 30, '+'),))
        protein = Protein('P1', 'MKPEPTIDEK', pranges=[SequenceRange(1, 3, 'MKP')])
        result = map_ranges_to_genome(protein.pranges, model, len(protein), 'P1')

        checks = verify_mapping(protein, result, example_genome)

        # Chromosome 1 starts with 'N' padding
        assert not checks[0].ok
        assert checks[0].translated == 'XXX'
