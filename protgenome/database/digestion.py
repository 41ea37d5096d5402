"""In-silico protein cleavage into sequence ranges.

Cleaves protein sequences with a specific protease and returns the
products as SequenceRanges, so cleavage products can be mapped to the
genome exactly like identified peptides.

Supported enzymes (see constants.CLEAVAGE_RULES):
- trypsin: after K/R, blocked by a following P
- trypsin/p, lys-c, arg-c, glu-c, chymotrypsin

Design principles:
1. Cleavage sites found in one pass over the sequence
2. Missed cleavages generated from the site list (no re-scanning)
3. Positions kept (1-based, inclusive) so products stay anchored
"""

import logging
from typing import List, Optional, Tuple

from ..constants import CLEAVAGE_RULES
from ..ranges import SequenceRange

logger = logging.getLogger(__name__)


def find_cleavage_sites(sequence: str, enzyme: str = 'trypsin') -> List[int]:
    """0-based indices of residues after which the enzyme cuts.

    Parameters
    ----------
    sequence : str
        Protein sequence
    enzyme : str
        Enzyme name (key of CLEAVAGE_RULES)

    Returns
    -------
    sites : List[int]
        Residue indices, ascending; the C-terminal residue is never a site

    Examples
    --------
    >>> find_cleavage_sites("PEPTIDEKSEQUENCER")
    [7]
    """
    try:
        cleave_after, blocked_by = CLEAVAGE_RULES[enzyme.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown enzyme: {enzyme}. Use one of {sorted(CLEAVAGE_RULES)}."
        ) from None

    sites = []
    for i, aa in enumerate(sequence[:-1]):
        if aa in cleave_after and sequence[i + 1] not in blocked_by:
            sites.append(i)
    return sites


def cleave_sequence(
    sequence: str,
    enzyme: str = 'trypsin',
    missed_cleavages: int = 0,
    min_length: int = 1,
    max_length: Optional[int] = None,
) -> List[Tuple[int, int]]:
    """Cleave a sequence and return product positions.

    Parameters
    ----------
    sequence : str
        Protein sequence
    enzyme : str
        Enzyme name (default: trypsin)
    missed_cleavages : int
        Number of missed cleavages allowed (default: 0)
    min_length : int
        Minimum product length (default: 1)
    max_length : int, optional
        Maximum product length (default: no limit)

    Returns
    -------
    positions : List[Tuple[int, int]]
        (start, end) of each product, 1-based inclusive, ordered by number of
        missed cleavages, then by start

    Examples
    --------
    >>> cleave_sequence("PEPTIDEKSEQUENCER")
    [(1, 8), (9, 17)]
    >>> cleave_sequence("PEPTIDEKSEQUENCER", missed_cleavages=1)
    [(1, 8), (9, 17), (1, 17)]
    """
    if not sequence:
        return []

    # Boundaries: product i spans (bounds[i], bounds[i + 1]] in 0-based terms
    bounds = [-1] + find_cleavage_sites(sequence, enzyme) + [len(sequence) - 1]

    positions = []
    for mc in range(missed_cleavages + 1):
        for i in range(len(bounds) - mc - 1):
            start = bounds[i] + 2  # 1-based
            end = bounds[i + mc + 1] + 1
            length = end - start + 1
            if length < min_length:
                continue
            if max_length is not None and length > max_length:
                continue
            positions.append((start, end))

    return positions


def cleave_protein(
    sequence: str,
    protein_id: str = '',
    enzyme: str = 'trypsin',
    missed_cleavages: int = 0,
    min_length: int = 1,
    max_length: Optional[int] = None,
) -> List[SequenceRange]:
    """Cleave a protein into SequenceRanges.

    Each range carries 'enzyme' and 'missed_cleavages' attributes.

    Parameters
    ----------
    sequence : str
        Protein sequence
    protein_id : str
        Protein identifier (for logging only)
    enzyme, missed_cleavages, min_length, max_length
        See cleave_sequence()

    Returns
    -------
    ranges : List[SequenceRange]
        Cleavage products, ordered as cleave_sequence()
    """
    sites = set(find_cleavage_sites(sequence, enzyme))

    ranges = []
    for start, end in cleave_sequence(sequence, enzyme, missed_cleavages, min_length, max_length):
        # Internal sites inside the product are missed cleavages
        n_missed = sum(1 for i in range(start - 1, end - 1) if i in sites)
        ranges.append(SequenceRange(
            start, end, sequence[start - 1:end],
            {'enzyme': enzyme, 'missed_cleavages': n_missed},
        ))

    logger.debug(f"{protein_id}: {len(ranges)} {enzyme} products")

    return ranges
