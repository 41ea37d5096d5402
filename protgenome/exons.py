"""Exon models: ordered coding-sequence segments of one transcript.

An ExonModel stores the segments of a transcript sorted by genomic start,
ascending, regardless of strand. Each segment knows how many coding
nucleotides precede it in 5'->3' transcript order (its coding offset), which
is all the coordinate mapper needs to locate a codon.

Design principles:
1. Immutable after construction (frozen dataclasses)
2. Invariants checked once, at construction
3. Coding offsets derived from transcript order, never supplied by callers
4. Numpy offset arrays for the binary-search kernel in the mapper

Examples
--------
>>> model = ExonModel.from_segments("TX1", [
...     CodingSegment("chr1", 100, 115, "+"),
...     CodingSegment("chr1", 200, 213, "+"),
... ])
>>> model.coding_length
30
>>> [s.coding_offset for s in model.segments]
[0, 16]
"""

from dataclasses import dataclass, replace
from functools import cached_property
from typing import Iterable, List, Optional, Tuple

import numpy as np

from .constants import CODON_LENGTH, MINUS_STRAND, VALID_STRANDS
from .errors import AnnotationIntegrityError


@dataclass(frozen=True)
class CodingSegment:
    """Contiguous genomic interval of a transcript (1-based, inclusive)."""

    chromosome: str
    start: int
    end: int
    strand: str
    is_coding: bool = True

    # Coding nucleotides before this segment in transcript order
    coding_offset: int = 0

    exon_id: str = ''

    @property
    def width(self) -> int:
        return self.end - self.start + 1

    @property
    def coding_width(self) -> int:
        """Coding nucleotides contributed (zero for UTR segments)."""
        return self.width if self.is_coding else 0

    def to_genomic(self, local_offset: int) -> int:
        """Genomic position of a 0-based offset counted 5'->3' inside the segment."""
        if self.strand == MINUS_STRAND:
            return self.end - local_offset
        return self.start + local_offset


def _validate_segments(transcript_id: str, segments: Tuple[CodingSegment, ...]) -> None:
    """Raise AnnotationIntegrityError if the segments break an invariant."""
    if not segments:
        return

    chromosomes = {s.chromosome for s in segments}
    if len(chromosomes) > 1:
        raise AnnotationIntegrityError(
            f"{transcript_id}: segments on several chromosomes {sorted(chromosomes)}"
        )

    strands = {s.strand for s in segments}
    if len(strands) > 1:
        raise AnnotationIntegrityError(f"{transcript_id}: segments on both strands")
    strand = strands.pop()
    if strand not in VALID_STRANDS:
        raise AnnotationIntegrityError(f"{transcript_id}: invalid strand {strand!r}")

    for seg in segments:
        if seg.start < 1 or seg.end < seg.start:
            raise AnnotationIntegrityError(
                f"{transcript_id}: invalid segment [{seg.start}, {seg.end}]"
            )

    for prev, seg in zip(segments, segments[1:]):
        if seg.start < prev.start:
            raise AnnotationIntegrityError(
                f"{transcript_id}: segments not sorted by genomic start "
                f"({prev.start} then {seg.start})"
            )
        if seg.start <= prev.end:
            raise AnnotationIntegrityError(
                f"{transcript_id}: overlapping segments "
                f"[{prev.start}, {prev.end}] and [{seg.start}, {seg.end}]"
            )


@dataclass(frozen=True)
class ExonModel:
    """Segments of one transcript, sorted by genomic start ascending.

    Attributes
    ----------
    transcript_id : str
        Transcript identifier (e.g. ENST00000288602)
    segments : Tuple[CodingSegment, ...]
        Coding and non-coding segments, genomic order
    protein_id : str
        Identifier of the encoded protein, if known
    gene_name : str
        Gene symbol, if known
    """

    transcript_id: str
    segments: Tuple[CodingSegment, ...] = ()
    protein_id: str = ''
    gene_name: str = ''

    def __post_init__(self):
        segments = tuple(self.segments)
        _validate_segments(self.transcript_id, segments)

        # Assign coding offsets walking 5'->3'
        if segments and segments[0].strand == MINUS_STRAND:
            order = range(len(segments) - 1, -1, -1)
        else:
            order = range(len(segments))

        updated = list(segments)
        offset = 0
        for i in order:
            updated[i] = replace(segments[i], coding_offset=offset)
            offset += segments[i].coding_width

        object.__setattr__(self, 'segments', tuple(updated))

    @classmethod
    def from_segments(
        cls,
        transcript_id: str,
        segments: Iterable[CodingSegment],
        **kwargs,
    ) -> 'ExonModel':
        """Build a model from segments in any order (sorted by genomic start)."""
        return cls(transcript_id, tuple(sorted(segments, key=lambda s: s.start)), **kwargs)

    # ------------------------------------------------------------------
    # Derived properties
    # ------------------------------------------------------------------

    @property
    def chromosome(self) -> Optional[str]:
        return self.segments[0].chromosome if self.segments else None

    @property
    def strand(self) -> Optional[str]:
        return self.segments[0].strand if self.segments else None

    @property
    def coding_length(self) -> int:
        """Total coding nucleotides."""
        return sum(s.coding_width for s in self.segments)

    @property
    def is_translatable(self) -> bool:
        """True if the coding length is a non-zero multiple of three."""
        length = self.coding_length
        return length > 0 and length % CODON_LENGTH == 0

    @property
    def n_codons(self) -> int:
        return self.coding_length // CODON_LENGTH

    def transcript_order(self) -> List[CodingSegment]:
        """Segments in 5'->3' transcript order."""
        if self.strand == MINUS_STRAND:
            return list(reversed(self.segments))
        return list(self.segments)

    def coding_only(self) -> 'ExonModel':
        """Model restricted to coding segments, offsets renormalised."""
        return replace(self, segments=tuple(s for s in self.segments if s.is_coding))

    @cached_property
    def coding_segments(self) -> Tuple[CodingSegment, ...]:
        """Coding segments in transcript order."""
        return tuple(s for s in self.transcript_order() if s.is_coding)

    @cached_property
    def offset_arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        """Cumulative coding offsets of the coding segments, transcript order.

        Returns
        -------
        offset_starts : np.ndarray (int64)
            First coding offset of each segment
        offset_ends : np.ndarray (int64)
            One past the last coding offset of each segment
        """
        starts = np.array([s.coding_offset for s in self.coding_segments], dtype=np.int64)
        widths = np.array([s.width for s in self.coding_segments], dtype=np.int64)
        return starts, starts + widths

    def __len__(self) -> int:
        return len(self.segments)
