"""Protein and peptide input sources.

Provides the sequence and identification sources that populate a
ProteinsCollection:

- FASTA file reading with header metadata (UniProt and Ensembl formats)
- PSM tables from search engines, with per-record load reports
- In-silico cleavage (trypsin and other proteases) into sequence ranges
"""

from .fasta_reader import (
    read_fasta,
    read_multiple_fasta,
    parse_protein_id,
    parse_header_metadata,
)

from .identifications import (
    PSM,
    LoadReport,
    load_psms,
)

from .digestion import (
    find_cleavage_sites,
    cleave_sequence,
    cleave_protein,
)

__all__ = [
    # FASTA reading
    'read_fasta',
    'read_multiple_fasta',
    'parse_protein_id',
    'parse_header_metadata',

    # Identifications
    'PSM',
    'LoadReport',
    'load_psms',

    # Cleavage
    'find_cleavage_sites',
    'cleave_sequence',
    'cleave_protein',
]
