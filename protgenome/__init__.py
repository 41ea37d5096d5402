"""protgenome - Map protein and peptide ranges onto genomic coordinates.

Peptide-level evidence (identified peptides, cleavage products, protein
features) is located on the genome through the coding-sequence structure
of the transcript that encodes each protein. Ranges spanning exon-exon
junctions yield several genomic intervals; both strands are supported and
mapped ranges can be verified by translating the genomic sequence back.
"""

__version__ = "0.1.0"

# Import main submodules for convenient access
from protgenome import annotation
from protgenome import database
from protgenome import genome
from protgenome import mapping

from protgenome.errors import (
    ProtGenomeError,
    LoadError,
    ResolutionError,
    SelectionError,
    MappingError,
    AnnotationIntegrityError,
    FailureKind,
)
from protgenome.config import AnnotationConfig, CleavageParams, VerificationParams
from protgenome.ranges import GenomicRange, SequenceRange
from protgenome.exons import CodingSegment, ExonModel
from protgenome.proteins import Protein, ProteinsCollection
from protgenome.verification import (
    verify_mapping,
    verify_transcript,
    make_alignment_verifier,
)

__all__ = [
    # Submodules
    "annotation",
    "database",
    "genome",
    "mapping",

    # Errors
    "ProtGenomeError",
    "LoadError",
    "ResolutionError",
    "SelectionError",
    "MappingError",
    "AnnotationIntegrityError",
    "FailureKind",

    # Configuration
    "AnnotationConfig",
    "CleavageParams",
    "VerificationParams",

    # Core types
    "GenomicRange",
    "SequenceRange",
    "CodingSegment",
    "ExonModel",
    "Protein",
    "ProteinsCollection",

    # Verification
    "verify_mapping",
    "verify_transcript",
    "make_alignment_verifier",
]
