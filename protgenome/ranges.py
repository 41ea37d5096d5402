"""Immutable range types in protein and genome coordinates.

SequenceRange is a 1-based, inclusive interval along a protein sequence
(an identified peptide, a cleavage product or a domain) together with the
amino acids it covers and free-form attributes (score, spectrum reference,
charge...).

GenomicRange is one contiguous genomic interval produced by mapping a
SequenceRange. Junction-spanning peptides yield several GenomicRanges that
share a group id and are ranked 5'->3' by their ordinal.

Examples
--------
>>> rng = SequenceRange.from_protein("MKPEPTIDEK", 3, 5, score=12.5)
>>> rng.sequence
'PEP'
>>> rng.nt_interval()
(6, 14)
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

from .constants import CODON_LENGTH, VALID_STRANDS
from .errors import LoadError


@dataclass(frozen=True)
class SequenceRange:
    """Interval [start, end] along a protein (1-based, inclusive)."""

    start: int
    end: int
    sequence: str = ''
    attributes: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        if self.start < 1:
            raise ValueError(f"Range start must be >= 1, got {self.start}")
        if self.end < self.start:
            raise ValueError(f"Range end ({self.end}) is before start ({self.start})")
        if self.sequence and len(self.sequence) != self.width:
            raise ValueError(
                f"Sequence '{self.sequence}' has length {len(self.sequence)}, "
                f"range [{self.start}, {self.end}] has width {self.width}"
            )
        object.__setattr__(self, 'attributes', MappingProxyType(dict(self.attributes)))

    @classmethod
    def from_protein(
        cls,
        protein_sequence: str,
        start: int,
        end: int,
        peptide: Optional[str] = None,
        **attributes,
    ) -> 'SequenceRange':
        """Build a range on a protein, checking it against the protein sequence.

        Parameters
        ----------
        protein_sequence : str
            Full protein sequence
        start, end : int
            1-based inclusive coordinates
        peptide : str, optional
            Observed peptide; must equal protein_sequence[start-1:end]
        **attributes
            Free-form metadata stored on the range

        Raises
        ------
        LoadError
            If the range leaves the protein or the peptide does not match.
        """
        if start < 1 or end > len(protein_sequence) or end < start:
            raise LoadError(
                f"Range [{start}, {end}] outside protein of length {len(protein_sequence)}"
            )
        expected = protein_sequence[start - 1:end]
        if peptide is not None and peptide != expected:
            raise LoadError(
                f"Peptide '{peptide}' does not match protein sequence "
                f"'{expected}' at [{start}, {end}]"
            )
        return cls(start, end, expected, attributes)

    @property
    def width(self) -> int:
        """Number of residues covered."""
        return self.end - self.start + 1

    def nt_interval(self) -> Tuple[int, int]:
        """0-based inclusive nucleotide offsets in coding-only space."""
        return (self.start - 1) * CODON_LENGTH, self.end * CODON_LENGTH - 1

    def with_attributes(self, **attributes) -> 'SequenceRange':
        """Return a copy with extra attributes merged in."""
        merged = dict(self.attributes)
        merged.update(attributes)
        return replace(self, attributes=merged)


@dataclass(frozen=True)
class GenomicRange:
    """Contiguous genomic interval (1-based, inclusive) from one mapped range."""

    chromosome: str
    start: int
    end: int
    strand: str
    group_id: int = 0
    ordinal: int = 0

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"Genomic end ({self.end}) is before start ({self.start})")
        if self.strand not in VALID_STRANDS:
            raise ValueError(f"Invalid strand: {self.strand!r}")

    @property
    def width(self) -> int:
        return self.end - self.start + 1

    def __str__(self) -> str:
        return f"{self.chromosome}:{self.start}-{self.end}:{self.strand}"
