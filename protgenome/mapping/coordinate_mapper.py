"""Protein-to-genome coordinate mapping.

Maps 1-based amino acid ranges onto the genomic intervals that encode them,
given the exon model of the transcript that encodes the protein.

Algorithm
---------
1. Convert a residue range [s, e] to 0-based coding nucleotide offsets:
   nt_start = (s - 1) * 3, nt_end = e * 3 - 1 (inclusive)
2. Binary search the cumulative coding offsets for every coding segment
   intersecting [nt_start, nt_end] (each segment owns the half-open
   interval [offset_start, offset_end))
3. Project the local offsets onto genomic coordinates: plus strand counts
   up from the segment start, minus strand counts down from the segment end
4. Emit one GenomicRange per segment in 5'->3' transcript order, so the
   group concatenates back into coding sequence

Failures never raise: a protein longer than the coding model is a
LENGTH_MISMATCH result, a range outside the coding region is a failed group.

Examples
--------
>>> model = ExonModel.from_segments("TX1", [
...     CodingSegment("chr1", 100, 115, "+"),
...     CodingSegment("chr1", 200, 213, "+"),
... ])
>>> result = map_ranges_to_genome([SequenceRange(5, 7)], model, protein_length=10)
>>> [str(r) for r in result.genomic_ranges()]
['chr1:112-115:+', 'chr1:200-204:+']
"""

import logging
from typing import TYPE_CHECKING, Optional, Sequence, Tuple

import numba
import numpy as np

from ..errors import FailureKind
from ..exons import ExonModel
from ..ranges import GenomicRange, SequenceRange
from .results import GenomicRangeGroup, MappingFailure, MappingResult

if TYPE_CHECKING:
    from ..proteins import Protein

logger = logging.getLogger(__name__)


# =============================================================================
# Numba-Accelerated Segment Search
# =============================================================================

@numba.jit(nopython=True, cache=True)
def locate_segments_numba(
    offset_starts: np.ndarray,
    offset_ends: np.ndarray,
    nt_start: int,
    nt_end: int,
) -> Tuple[int, int]:
    """Find the coding segments intersecting a nucleotide interval.

    Parameters
    ----------
    offset_starts : np.ndarray (int64)
        First coding offset of each segment, ascending
    offset_ends : np.ndarray (int64)
        One past the last coding offset of each segment, ascending
    nt_start : int
        First nucleotide offset (0-based, inclusive)
    nt_end : int
        Last nucleotide offset (0-based, inclusive)

    Returns
    -------
    first_idx : int
        First intersecting segment (inclusive)
    last_idx : int
        One past the last intersecting segment (exclusive, Python convention)

    Examples
    --------
    >>> starts = np.array([0, 16], dtype=np.int64)
    >>> ends = np.array([16, 30], dtype=np.int64)
    >>> locate_segments_numba(starts, ends, 12, 20)
    (0, 2)
    """
    n = len(offset_starts)
    if n == 0:
        return (0, 0)

    # First segment ending after nt_start
    left, right = 0, n
    while left < right:
        mid = (left + right) // 2
        if offset_ends[mid] <= nt_start:
            left = mid + 1
        else:
            right = mid
    first_idx = left

    # First segment starting after nt_end
    left, right = first_idx, n
    while left < right:
        mid = (left + right) // 2
        if offset_starts[mid] <= nt_end:
            left = mid + 1
        else:
            right = mid
    last_idx = left

    return (first_idx, last_idx)


# =============================================================================
# Range Mapping
# =============================================================================

def map_range_to_genome(
    seq_range: SequenceRange,
    model: ExonModel,
    group_id: int = 0,
    protein_id: str = '',
) -> GenomicRangeGroup:
    """Map a single amino acid range onto the coding segments of a model.

    Parameters
    ----------
    seq_range : SequenceRange
        Range in protein coordinates (1-based, inclusive)
    model : ExonModel
        Exon model; non-coding segments are ignored
    group_id : int
        Identifier shared by all genomic ranges of this range
    protein_id : str
        Protein accession (for failure records only)

    Returns
    -------
    GenomicRangeGroup
        Genomic ranges in 5'->3' order, or a RANGE_OUT_OF_BOUNDS failure
    """
    nt_start, nt_end = seq_range.nt_interval()

    if nt_end >= model.coding_length:
        return GenomicRangeGroup(
            group_id, seq_range,
            failure=MappingFailure(
                FailureKind.RANGE_OUT_OF_BOUNDS,
                f"range [{seq_range.start}, {seq_range.end}] needs coding offsets "
                f"up to {nt_end}, {model.transcript_id} has {model.coding_length} nt",
                protein_id,
            ),
        )

    offset_starts, offset_ends = model.offset_arrays
    first_idx, last_idx = locate_segments_numba(offset_starts, offset_ends, nt_start, nt_end)

    if first_idx >= last_idx:
        return GenomicRangeGroup(
            group_id, seq_range,
            failure=MappingFailure(
                FailureKind.RANGE_OUT_OF_BOUNDS,
                f"range [{seq_range.start}, {seq_range.end}] intersects no coding segment "
                f"of {model.transcript_id}",
                protein_id,
            ),
        )

    ranges = []
    for ordinal, idx in enumerate(range(first_idx, last_idx)):
        segment = model.coding_segments[idx]

        # Local offsets inside the segment, counted 5'->3'
        local_start = max(nt_start, int(offset_starts[idx])) - segment.coding_offset
        local_end = min(nt_end, int(offset_ends[idx]) - 1) - segment.coding_offset

        pos_a = segment.to_genomic(local_start)
        pos_b = segment.to_genomic(local_end)

        ranges.append(GenomicRange(
            chromosome=segment.chromosome,
            start=min(pos_a, pos_b),
            end=max(pos_a, pos_b),
            strand=segment.strand,
            group_id=group_id,
            ordinal=ordinal,
        ))

    return GenomicRangeGroup(group_id, seq_range, tuple(ranges))


def map_ranges_to_genome(
    ranges: Sequence[SequenceRange],
    model: ExonModel,
    protein_length: Optional[int] = None,
    protein_id: str = '',
) -> MappingResult:
    """Map all ranges of one protein onto one exon model.

    Parameters
    ----------
    ranges : Sequence[SequenceRange]
        Ranges along the protein; output groups keep this order
    model : ExonModel
        Exon model of the encoding transcript
    protein_length : int, optional
        Protein length in residues. If given, the model must provide at
        least that many codons and ranges must end inside the protein.
    protein_id : str
        Protein accession

    Returns
    -------
    MappingResult
        One group per input range, or a LENGTH_MISMATCH failure

    Notes
    -----
    The stop codon is not required: a model with exactly
    3 * protein_length coding nucleotides is accepted.
    """
    if protein_length is not None and model.n_codons < protein_length:
        logger.debug(
            f"{protein_id}: {model.transcript_id} has {model.n_codons} codons "
            f"for {protein_length} residues"
        )
        return MappingResult(
            protein_id, model.transcript_id,
            failure=MappingFailure(
                FailureKind.LENGTH_MISMATCH,
                f"{model.transcript_id} codes for {model.n_codons} codons, "
                f"protein has {protein_length} residues",
                protein_id,
            ),
        )

    groups = []
    for group_id, seq_range in enumerate(ranges):
        if protein_length is not None and seq_range.end > protein_length:
            groups.append(GenomicRangeGroup(
                group_id, seq_range,
                failure=MappingFailure(
                    FailureKind.RANGE_OUT_OF_BOUNDS,
                    f"range [{seq_range.start}, {seq_range.end}] ends after "
                    f"protein length {protein_length}",
                    protein_id,
                ),
            ))
            continue
        groups.append(map_range_to_genome(seq_range, model, group_id, protein_id))

    n_failed = sum(1 for g in groups if not g.ok)
    if n_failed:
        logger.debug(f"{protein_id}: {n_failed}/{len(groups)} ranges not mapped")

    return MappingResult(protein_id, model.transcript_id, tuple(groups))


def pmap_to_genome(
    protein: 'Protein',
    model: ExonModel,
    which: str = 'pranges',
) -> MappingResult:
    """Map the peptide ranges (or feature ranges) of a protein onto a model.

    Parameters
    ----------
    protein : Protein
        Protein with attached ranges
    model : ExonModel
        Exon model of the encoding transcript
    which : str
        'pranges' for peptide ranges, 'pfeatures' for feature ranges
    """
    return map_ranges_to_genome(
        protein.get_ranges(which),
        model,
        protein_length=len(protein),
        protein_id=protein.accession,
    )
