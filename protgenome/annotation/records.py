"""Transcript records returned by annotation sources.

A TranscriptRecord is the source-independent description of one
transcript: its exons in genomic coordinates, the genomic bounds of its
coding region and the identifiers it is known by. It is converted into an
ExonModel (coding and UTR segments) on demand.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from ..constants import MAPPING_TYPE_DIRECT
from ..errors import AnnotationIntegrityError
from ..exons import CodingSegment, ExonModel


class IdType(Enum):
    """Identifier types an annotation source can be queried by."""

    PROTEIN_ID = "protein_id"
    TRANSCRIPT_ID = "transcript_id"
    UNIPROT_ID = "uniprot_id"
    GENE_NAME = "gene_name"

    @property
    def is_cross_reference(self) -> bool:
        """True for id types that usually resolve to several transcripts."""
        return self in (IdType.UNIPROT_ID, IdType.GENE_NAME)


@dataclass(frozen=True)
class TranscriptRecord:
    """One annotated transcript.

    Attributes
    ----------
    transcript_id : str
        Transcript identifier
    chromosome : str
        Sequence region name
    strand : str
        '+' or '-'
    exons : Tuple[Tuple[int, int], ...]
        Exon (start, end) pairs, 1-based inclusive
    coding_start, coding_end : int, optional
        Genomic bounds of the coding region (start <= end on both strands);
        None for non-coding transcripts
    protein_id, gene_id, gene_name, biotype : str
        Cross references and annotation
    uniprot_ids : Tuple[str, ...]
        UniProt accessions linked to the encoded protein
    mapping_type : str
        Quality of the link to the queried identifier ('direct' or 'indirect')
    """

    transcript_id: str
    chromosome: str
    strand: str
    exons: Tuple[Tuple[int, int], ...]
    coding_start: Optional[int] = None
    coding_end: Optional[int] = None
    protein_id: str = ''
    gene_id: str = ''
    gene_name: str = ''
    biotype: str = ''
    uniprot_ids: Tuple[str, ...] = ()
    mapping_type: str = MAPPING_TYPE_DIRECT

    @property
    def is_coding(self) -> bool:
        return self.coding_start is not None and self.coding_end is not None

    def identifiers(self, id_type: IdType) -> Tuple[str, ...]:
        """Identifiers of this record for one id type."""
        if id_type is IdType.TRANSCRIPT_ID:
            return (self.transcript_id,)
        if id_type is IdType.PROTEIN_ID:
            return (self.protein_id,) if self.protein_id else ()
        if id_type is IdType.GENE_NAME:
            return (self.gene_name,) if self.gene_name else ()
        return self.uniprot_ids

    def to_exon_model(self) -> ExonModel:
        """Split exons into coding and UTR segments.

        Raises
        ------
        AnnotationIntegrityError
            If the coding bounds are inverted or the exons overlap.
        """
        if self.is_coding and self.coding_start > self.coding_end:
            raise AnnotationIntegrityError(
                f"{self.transcript_id}: coding start {self.coding_start} "
                f"after coding end {self.coding_end}"
            )

        segments = []
        for start, end in sorted(self.exons):
            if not self.is_coding:
                segments.append(CodingSegment(self.chromosome, start, end, self.strand, False))
                continue

            # Part before the coding region
            if start < self.coding_start:
                segments.append(CodingSegment(
                    self.chromosome, start, min(end, self.coding_start - 1), self.strand, False,
                ))
            coding_start = max(start, self.coding_start)
            coding_end = min(end, self.coding_end)
            if coding_start <= coding_end:
                segments.append(CodingSegment(
                    self.chromosome, coding_start, coding_end, self.strand, True,
                ))
            # Part after the coding region
            if end > self.coding_end:
                segments.append(CodingSegment(
                    self.chromosome, max(start, self.coding_end + 1), end, self.strand, False,
                ))

        return ExonModel(
            self.transcript_id,
            tuple(segments),
            protein_id=self.protein_id,
            gene_name=self.gene_name,
        )
