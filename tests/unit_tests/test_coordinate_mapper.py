"""Tests for protein-to-genome coordinate mapping.

Tests the numba segment search, the worked plus-strand scenario, coverage
conservation, junction-spanning ranges, strand symmetry and the failure
records of ranges and proteins that do not fit the coding model.
"""

import numpy as np
import pytest

from protgenome.errors import FailureKind
from protgenome.exons import CodingSegment, ExonModel
from protgenome.mapping import (
    locate_segments_numba,
    map_range_to_genome,
    map_ranges_to_genome,
    pmap_to_genome,
)
from protgenome.proteins import Protein
from protgenome.ranges import SequenceRange


class TestLocateSegmentsNumba:
    """Test Numba-accelerated binary search over coding offsets."""

    starts = np.array([0, 16], dtype=np.int64)
    ends = np.array([16, 30], dtype=np.int64)

    def test_spanning_junction(self):
        assert locate_segments_numba(self.starts, self.ends, 12, 20) == (0, 2)

    def test_first_segment_only(self):
        assert locate_segments_numba(self.starts, self.ends, 0, 15) == (0, 1)

    def test_segment_boundary_is_half_open(self):
        """Test offset 16 belongs to the second segment only."""
        assert locate_segments_numba(self.starts, self.ends, 16, 18) == (1, 2)

    def test_beyond_last_segment(self):
        first, last = locate_segments_numba(self.starts, self.ends, 30, 32)

        assert first == last

    def test_empty_arrays(self):
        empty = np.array([], dtype=np.int64)

        assert locate_segments_numba(empty, empty, 0, 2) == (0, 0)


class TestPlusStrandScenario:
    """Test the worked example: segments [100, 115] and [200, 213]."""

    def test_range_inside_one_segment(self, plus_model):
        group = map_range_to_genome(SequenceRange(3, 5), plus_model)

        assert group.ok
        assert [(r.start, r.end) for r in group.ranges] == [(106, 114)]

    def test_range_spanning_junction(self, plus_model):
        group = map_range_to_genome(SequenceRange(5, 7), plus_model)

        assert [(r.start, r.end) for r in group.ranges] == [(112, 115), (200, 204)]
        assert [r.ordinal for r in group.ranges] == [0, 1]
        assert group.is_junction_spanning

    def test_first_and_last_codon(self, plus_model):
        first = map_range_to_genome(SequenceRange(1, 1), plus_model)
        last = map_range_to_genome(SequenceRange(10, 10), plus_model)

        assert [(r.start, r.end) for r in first.ranges] == [(100, 102)]
        assert [(r.start, r.end) for r in last.ranges] == [(211, 213)]

    def test_utr_segments_ignored(self):
        model = ExonModel.from_segments("TX1", [
            CodingSegment("chr1", 50, 99, "+", is_coding=False),
            CodingSegment("chr1", 100, 115, "+"),
            CodingSegment("chr1", 200, 213, "+"),
            CodingSegment("chr1", 214, 260, "+", is_coding=False),
        ])
        group = map_range_to_genome(SequenceRange(3, 5), model)

        assert [(r.start, r.end) for r in group.ranges] == [(106, 114)]


class TestCoverage:
    """Test genomic width equals three nucleotides per residue."""

    def test_every_range_of_a_model(self, plus_model, minus_model):
        for model in (plus_model, minus_model):
            for start in range(1, 11):
                for end in range(start, 11):
                    group = map_range_to_genome(SequenceRange(start, end), model)

                    assert group.ok
                    assert group.genomic_width == 3 * (end - start + 1)

    def test_junction_ranges_contiguous_in_coding_space(self, plus_model):
        """Test consecutive ranges meet at segment boundaries."""
        group = map_range_to_genome(SequenceRange(2, 9), plus_model)
        first, second = group.ranges

        assert first.end == 115
        assert second.start == 200


class TestStrandSymmetry:
    """Test mirrored minus-strand models give mirrored ranges."""

    def test_minus_strand_junction(self, minus_model):
        group = map_range_to_genome(SequenceRange(5, 7), minus_model)

        # 5'->3' on the minus strand runs towards lower coordinates
        assert [(r.start, r.end) for r in group.ranges] == [(199, 202), (110, 114)]
        assert all(r.strand == "-" for r in group.ranges)

    def test_mirror_of_plus_strand(self, plus_model, minus_model):
        for start, end in [(1, 3), (3, 5), (5, 7), (6, 10)]:
            plus = map_range_to_genome(SequenceRange(start, end), plus_model)
            minus = map_range_to_genome(SequenceRange(start, end), minus_model)

            assert [r.width for r in plus.ranges] == [r.width for r in minus.ranges]
            mirrored = [(314 - r.end, 314 - r.start) for r in plus.ranges]
            assert mirrored == [(r.start, r.end) for r in minus.ranges]

    def test_raw_genomic_order_reversed(self, plus_model, minus_model):
        plus = map_range_to_genome(SequenceRange(5, 7), plus_model)
        minus = map_range_to_genome(SequenceRange(5, 7), minus_model)

        assert plus.ranges[0].start < plus.ranges[1].start
        assert minus.ranges[0].start > minus.ranges[1].start


class TestMappingFailures:
    """Test failures are recorded, never raised."""

    def test_protein_longer_than_model(self, plus_model):
        result = map_ranges_to_genome([SequenceRange(1, 3)], plus_model, protein_length=11)

        assert not result.ok
        assert result.failure.kind is FailureKind.LENGTH_MISMATCH
        assert result.groups == ()

    def test_model_without_stop_codon_accepted(self, plus_model):
        result = map_ranges_to_genome([SequenceRange(1, 10)], plus_model, protein_length=10)

        assert result.ok
        assert result.groups[0].ok

    def test_range_beyond_protein(self, plus_model):
        ranges = [SequenceRange(1, 3), SequenceRange(7, 9)]
        result = map_ranges_to_genome(ranges, plus_model, protein_length=8)

        assert result.ok
        assert result.groups[0].ok
        assert result.groups[1].failure.kind is FailureKind.RANGE_OUT_OF_BOUNDS
        assert len(result.failed_groups) == 1

    def test_range_beyond_coding_region(self, plus_model):
        group = map_range_to_genome(SequenceRange(10, 11), plus_model)

        assert not group.ok
        assert group.failure.kind is FailureKind.RANGE_OUT_OF_BOUNDS
        assert group.ranges == ()

    def test_groups_keep_input_order(self, plus_model):
        ranges = [SequenceRange(5, 7), SequenceRange(1, 2), SequenceRange(9, 12)]
        result = map_ranges_to_genome(ranges, plus_model)

        assert [g.group_id for g in result.groups] == [0, 1, 2]
        assert [g.source for g in result.groups] == ranges
        assert [g.ok for g in result.groups] == [True, True, False]

    def test_failure_converts_to_exception(self, plus_model):
        from protgenome.errors import MappingError

        result = map_ranges_to_genome([], plus_model, protein_length=20, protein_id="P1")

        with pytest.raises(MappingError, match="P1"):
            raise result.failure.to_exception()


class TestProteinMapping:
    """Test mapping the ranges attached to a Protein."""

    def test_pmap_to_genome(self, plus_model):
        protein = Protein("P1", "MKPEPTIDEK", pranges=[SequenceRange(3, 5, "PEP")])
        result = pmap_to_genome(protein, plus_model)

        assert result.protein_id == "P1"
        assert result.transcript_id == "TX1"
        assert [str(r) for r in result.genomic_ranges()] == ["chr1:106-114:+"]

    def test_pmap_features(self, plus_model):
        protein = Protein("P1", "MKPEPTIDEK", pfeatures=[SequenceRange(5, 7)])

        assert pmap_to_genome(protein, plus_model, "pranges").groups == ()
        assert len(pmap_to_genome(protein, plus_model, "pfeatures").genomic_ranges()) == 2

    def test_rows(self, plus_model):
        protein = Protein("P1", "MKPEPTIDEK", pranges=[
            SequenceRange(5, 7, "PTI", {'score': 3.0}),
        ])
        rows = pmap_to_genome(protein, plus_model).to_rows()

        assert len(rows) == 2
        assert rows[0]['status'] == 'mapped'
        assert rows[0]['score'] == 3.0
        assert (rows[1]['start'], rows[1]['end'], rows[1]['ordinal']) == (200, 204, 1)

    def test_rows_keep_identity_columns(self, plus_model):
        """Test range attributes never replace the report's own columns."""
        protein = Protein("P1", "MKPEPTIDEK", pranges=[
            SequenceRange(5, 7, "PTI", {
                'protein_id': 'OTHER', 'transcript_id': 'TX9', 'status': 'decoy', 'charge': '2',
            }),
        ])
        rows = pmap_to_genome(protein, plus_model).to_rows()

        assert all(r['protein_id'] == 'P1' for r in rows)
        assert all(r['transcript_id'] == 'TX1' for r in rows)
        assert all(r['status'] == 'mapped' for r in rows)
        assert rows[0]['charge'] == '2'
