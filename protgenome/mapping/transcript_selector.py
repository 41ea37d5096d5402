"""Transcript selection by coding length.

When a protein identifier resolves to several transcripts, the transcript
whose coding sequence length best matches the protein length is chosen.
A perfect match codes for one more codon than the protein has residues
(the stop codon).

Selection policy
----------------
1. Only candidates whose coding length is a non-zero multiple of 3 are valid
2. delta = coding_length / 3 - protein_length; minimise |delta - 1|
3. Ties: highest score from the optional verifier (alignment of the
   translated transcript against the protein)
4. Remaining ties: identifier that sorts first. This is a deterministic
   fallback, not a biological preference.

Examples
--------
>>> from protgenome.datasets import make_coding_model
>>> models = [make_coding_model("TX_A", 300), make_coding_model("TX_B", 303),
...           make_coding_model("TX_C", 306)]
>>> select_transcript(101, models).transcript_id
'TX_C'
"""

import logging
from typing import Callable, Optional, Sequence

from ..constants import CODON_LENGTH
from ..errors import SelectionError
from ..exons import ExonModel

logger = logging.getLogger(__name__)


def coding_length_delta(protein_length: int, model: ExonModel) -> float:
    """Codons in the model minus residues in the protein (1.0 is a perfect match)."""
    return model.coding_length / CODON_LENGTH - protein_length


def select_transcript(
    protein_length: int,
    candidates: Sequence[ExonModel],
    verifier: Optional[Callable[[ExonModel], float]] = None,
) -> Optional[ExonModel]:
    """Select the candidate whose coding length best matches the protein.

    Parameters
    ----------
    protein_length : int
        Protein length in residues
    candidates : Sequence[ExonModel]
        Candidate exon models (coding-only view recommended)
    verifier : callable, optional
        Scores a candidate (higher is better); only consulted to break
        ties in coding length

    Returns
    -------
    ExonModel or None
        Selected candidate, None if no candidate is valid
    """
    valid = [m for m in candidates if m.is_translatable]

    if not valid:
        logger.debug(
            f"No translatable candidate among {len(candidates)} for protein "
            f"of length {protein_length}"
        )
        return None

    def length_error(model: ExonModel) -> float:
        return abs(coding_length_delta(protein_length, model) - 1)

    best_error = min(length_error(m) for m in valid)
    tied = sorted(
        (m for m in valid if length_error(m) == best_error),
        key=lambda m: m.transcript_id,
    )

    if len(tied) > 1 and verifier is not None:
        scores = {m.transcript_id: verifier(m) for m in tied}
        best_score = max(scores.values())
        tied = [m for m in tied if scores[m.transcript_id] == best_score]
        logger.debug(f"Verifier scores for tied transcripts: {scores}")

    if len(tied) > 1:
        logger.debug(
            f"{len(tied)} transcripts tie for protein length {protein_length}; "
            f"choosing {tied[0].transcript_id} by identifier order"
        )

    return tied[0]


def select_transcript_or_raise(
    protein_length: int,
    candidates: Sequence[ExonModel],
    verifier: Optional[Callable[[ExonModel], float]] = None,
) -> ExonModel:
    """Like select_transcript, but raise SelectionError instead of returning None."""
    selected = select_transcript(protein_length, candidates, verifier)
    if selected is None:
        ids = ', '.join(m.transcript_id for m in candidates) or 'none'
        raise SelectionError(
            f"No candidate with a valid coding length for protein of length "
            f"{protein_length} (candidates: {ids})"
        )
    return selected
