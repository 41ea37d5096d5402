"""Verification of exon models and mapped ranges against genomic sequence.

Two checks, both optional and both driven by a genome sequence source:

1. Transcript verification: fetch the coding segments of a model, join them
   5'->3', translate (standard code, stop codon terminates) and align the
   translation against the protein with Bio.Align.PairwiseAligner and a
   substitution matrix (BLOSUM62 by default). The score doubles as the
   transcript selector's tie-break.
2. Round trip: fetch the genomic ranges of each mapped peptide, join them
   in ordinal order and translate; the result must equal the peptide.

Examples
--------
>>> result = verify_transcript(protein.sequence, model, genome)
>>> result.identity
1.0
>>> checks = verify_mapping(protein, mapping_result, genome)
>>> all(c.ok for c in checks)
True
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import requests
from Bio.Align import PairwiseAligner, substitution_matrices
from Bio.Seq import Seq

from .config import VerificationParams
from .constants import CODON_LENGTH, STANDARD_CODON_TABLE
from .exons import ExonModel
from .mapping.results import MappingResult

logger = logging.getLogger(__name__)


# =============================================================================
# Sequence Extraction and Translation
# =============================================================================

def extract_coding_sequence(model: ExonModel, genome) -> str:
    """Coding nucleotides of a model, 5'->3' (sense strand).

    Parameters
    ----------
    model : ExonModel
        Exon model; non-coding segments are skipped
    genome : GenomeSequenceSource
        Any object with fetch(chromosome, start, end, strand)

    Returns
    -------
    str
        Concatenated coding sequence
    """
    return ''.join(
        genome.fetch(seg.chromosome, seg.start, seg.end, seg.strand)
        for seg in model.coding_segments
    )


def translate_coding_sequence(
    nucleotides: str,
    table: int = STANDARD_CODON_TABLE,
    to_stop: bool = True,
) -> str:
    """Translate nucleotides, ignoring an incomplete trailing codon.

    With to_stop=True translation ends at the first stop codon, which is
    not included in the result.
    """
    usable = len(nucleotides) - len(nucleotides) % CODON_LENGTH
    if usable == 0:
        return ''
    return str(Seq(nucleotides[:usable]).translate(table=table, to_stop=to_stop))


# =============================================================================
# Alignment
# =============================================================================

def _make_aligner(params: VerificationParams) -> PairwiseAligner:
    aligner = PairwiseAligner()
    aligner.mode = params.mode
    aligner.substitution_matrix = substitution_matrices.load(params.substitution_matrix)
    aligner.open_gap_score = params.open_gap_score
    aligner.extend_gap_score = params.extend_gap_score
    return aligner


def _restrict_to_alphabet(sequence: str, alphabet: str) -> str:
    """Replace residues missing from the matrix alphabet (e.g. 'U') by 'X'."""
    return ''.join(aa if aa in alphabet else 'X' for aa in sequence)


def alignment_score(
    query: str,
    target: str,
    params: Optional[VerificationParams] = None,
) -> Tuple[float, int]:
    """Score of the best alignment of two protein sequences.

    Parameters
    ----------
    query : str
        Protein sequence (e.g. the reference protein)
    target : str
        Protein sequence (e.g. the translated transcript)
    params : VerificationParams, optional
        Alignment mode, matrix and gap scores

    Returns
    -------
    score : float
        Alignment score (0.0 if either sequence is empty)
    n_matches : int
        Identical aligned residues
    """
    if not query or not target:
        return 0.0, 0

    params = params or VerificationParams()
    aligner = _make_aligner(params)
    alphabet = aligner.substitution_matrix.alphabet
    query = _restrict_to_alphabet(query.upper(), alphabet)
    target = _restrict_to_alphabet(target.upper(), alphabet)

    alignment = aligner.align(target, query)[0]

    n_matches = 0
    target_blocks, query_blocks = alignment.aligned
    for (t_start, t_end), (q_start, q_end) in zip(target_blocks, query_blocks):
        n_matches += sum(
            1 for a, b in zip(target[t_start:t_end], query[q_start:q_end]) if a == b
        )

    return float(alignment.score), n_matches


# =============================================================================
# Transcript Verification
# =============================================================================

@dataclass(frozen=True)
class VerificationResult:
    """Alignment of a translated transcript against its protein."""

    transcript_id: str
    score: float
    n_matches: int
    translated: str
    protein_length: int

    @property
    def identity(self) -> float:
        """Fraction of protein residues matched identically."""
        if self.protein_length == 0:
            return 0.0
        return self.n_matches / self.protein_length


def verify_transcript(
    protein_sequence: str,
    model: ExonModel,
    genome,
    params: Optional[VerificationParams] = None,
) -> VerificationResult:
    """Translate a model from the genome and align it to the protein.

    Parameters
    ----------
    protein_sequence : str
        Reference protein sequence
    model : ExonModel
        Candidate exon model
    genome : GenomeSequenceSource
        Genome sequence source
    params : VerificationParams, optional
        Translation table and alignment parameters

    Returns
    -------
    VerificationResult
        Score, identical residues and the translated sequence
    """
    params = params or VerificationParams()

    coding_sequence = extract_coding_sequence(model, genome)
    translated = translate_coding_sequence(coding_sequence, params.codon_table)
    score, n_matches = alignment_score(protein_sequence, translated, params)

    logger.debug(
        f"{model.transcript_id}: score={score:.1f}, "
        f"{n_matches}/{len(protein_sequence)} identical residues"
    )

    return VerificationResult(
        model.transcript_id, score, n_matches, translated, len(protein_sequence),
    )


def make_alignment_verifier(
    protein_sequence: str,
    genome,
    params: Optional[VerificationParams] = None,
) -> Callable[[ExonModel], float]:
    """Build a selector tie-break: model -> alignment score.

    Models whose sequence cannot be fetched (unknown chromosome, interval
    past the chromosome end, failed or timed-out request to a remote
    source) score -inf.
    """
    params = params or VerificationParams()

    def verifier(model: ExonModel) -> float:
        try:
            return verify_transcript(protein_sequence, model, genome, params).score
        except (KeyError, ValueError, requests.RequestException) as e:
            logger.warning(f"Cannot verify {model.transcript_id}: {e}")
            return float('-inf')

    return verifier


# =============================================================================
# Round Trip
# =============================================================================

@dataclass(frozen=True)
class RoundTripCheck:
    """Peptide re-derived from the genomic ranges of one mapped group."""

    group_id: int
    expected: str
    translated: str

    @property
    def ok(self) -> bool:
        return self.expected == self.translated


def verify_mapping(
    protein,
    result: MappingResult,
    genome,
    table: int = STANDARD_CODON_TABLE,
) -> List[RoundTripCheck]:
    """Fetch and translate the genomic ranges of every mapped group.

    Parameters
    ----------
    protein : Protein
        Protein the ranges were taken from
    result : MappingResult
        Mapping of the protein's ranges
    genome : GenomeSequenceSource
        Genome sequence source
    table : int
        NCBI translation table

    Returns
    -------
    List[RoundTripCheck]
        One check per successfully mapped group, in group order
    """
    checks = []
    for group in result.groups:
        if not group.ok:
            continue

        nucleotides = ''.join(
            genome.fetch(r.chromosome, r.start, r.end, r.strand)
            for r in sorted(group.ranges, key=lambda r: r.ordinal)
        )
        expected = group.source.sequence or protein.sequence[group.source.start - 1:group.source.end]
        translated = translate_coding_sequence(nucleotides, table, to_stop=False)
        checks.append(RoundTripCheck(group.group_id, expected, translated))

    n_failed = sum(1 for c in checks if not c.ok)
    if n_failed:
        logger.warning(f"{result.protein_id}: {n_failed}/{len(checks)} ranges failed the round trip")
    else:
        logger.info(f"✓ {result.protein_id}: {len(checks)} ranges passed the round trip")

    return checks
