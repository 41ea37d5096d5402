"""Protein-to-genome coordinate mapping and transcript selection.

Key Features
------------
- Junction-aware mapping: one peptide may yield several genomic ranges
- Strand-aware projection with 5'->3' ordering of the emitted ranges
- Numba binary search over cumulative coding offsets
- Length-based transcript selection with deterministic tie-breaking
- Structured failure records instead of exceptions

Examples
--------
>>> from protgenome.mapping import map_ranges_to_genome, select_transcript
>>>
>>> model = select_transcript(len(protein), candidates)
>>> result = map_ranges_to_genome(protein.pranges, model, len(protein))
>>> for group in result.groups:
...     print(group.source.sequence, [str(r) for r in group.ranges])
"""

from .coordinate_mapper import (
    locate_segments_numba,
    map_range_to_genome,
    map_ranges_to_genome,
    pmap_to_genome,
)
from .results import (
    BatchMappingResult,
    GenomicRangeGroup,
    MappingFailure,
    MappingResult,
)
from .transcript_selector import (
    coding_length_delta,
    select_transcript,
    select_transcript_or_raise,
)

__all__ = [
    # Coordinate mapping
    "locate_segments_numba",
    "map_range_to_genome",
    "map_ranges_to_genome",
    "pmap_to_genome",
    # Results
    "BatchMappingResult",
    "GenomicRangeGroup",
    "MappingFailure",
    "MappingResult",
    # Transcript selection
    "coding_length_delta",
    "select_transcript",
    "select_transcript_or_raise",
]
