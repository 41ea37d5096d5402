"""FASTA reading for protein sequence sources.

Lightweight streaming parser for protein FASTA files. Supports:
- UniProt headers (>sp|P12345|NAME_HUMAN ... GN=GENE ...)
- Ensembl peptide headers (>ENSP... pep chromosome:... gene:ENSG... transcript:ENST...)
- Generic headers (>PROTEIN_ID description)

Header metadata (gene name, Ensembl transcript and gene ids) is extracted
so proteins can later be resolved against an annotation source by any of
these identifiers.
"""

import logging
import re
from pathlib import Path
from typing import Dict, List, Tuple, Union

logger = logging.getLogger(__name__)

# key:value tokens of Ensembl FASTA headers
_ENSEMBL_TOKEN = re.compile(r'(\w+):(\S+)')

# KEY=value tokens of UniProt FASTA headers (value runs until the next KEY=)
_UNIPROT_TOKEN = re.compile(r'\b(OS|OX|GN|PE|SV)=(.*?)(?=\s\w\w=|$)')


def parse_protein_id(header: str) -> Tuple[str, str]:
    """Extract protein ID and description from FASTA header.

    Parameters
    ----------
    header : str
        FASTA header line (without leading '>')

    Returns
    -------
    protein_id : str
        Extracted protein identifier
    description : str
        Full header line

    Examples
    --------
    >>> parse_protein_id("sp|P12345|NAME_HUMAN Some protein")
    ('P12345', 'sp|P12345|NAME_HUMAN Some protein')

    >>> parse_protein_id("ENSP00000288602.6 pep chromosome:GRCh38:7:140719327:140924929:-1")
    ('ENSP00000288602.6', 'ENSP00000288602.6 pep chromosome:GRCh38:7:140719327:140924929:-1')
    """
    description = header.strip()
    first_token = description.split()[0] if description else ''

    # UniProt: sp|P12345|NAME_HUMAN or tr|A0A123|NAME_HUMAN
    parts = first_token.split('|')
    if len(parts) >= 2 and parts[1]:
        return parts[1], description

    return first_token, description


def parse_header_metadata(description: str) -> Dict[str, str]:
    """Extract key/value metadata from a FASTA description.

    Returns
    -------
    Dict[str, str]
        Keys found among 'gene_name', 'gene_id', 'transcript_id',
        'protein_id', 'organism', 'chromosome'

    Examples
    --------
    >>> parse_header_metadata("sp|P15056|BRAF_HUMAN Serine/threonine-protein kinase B-raf OS=Homo sapiens OX=9606 GN=BRAF PE=1 SV=4")
    {'organism': 'Homo sapiens', 'gene_name': 'BRAF'}
    """
    metadata = {}

    for key, value in _UNIPROT_TOKEN.findall(description):
        if key == 'GN':
            metadata['gene_name'] = value.strip()
        elif key == 'OS':
            metadata['organism'] = value.strip()

    tokens = dict(_ENSEMBL_TOKEN.findall(description))
    if 'gene_symbol' in tokens:
        metadata['gene_name'] = tokens['gene_symbol']
    if 'gene' in tokens:
        metadata['gene_id'] = tokens['gene']
    if 'transcript' in tokens:
        metadata['transcript_id'] = tokens['transcript']
    if ' pep ' in f" {description} " and description.startswith('ENSP'):
        metadata['protein_id'] = description.split()[0]
    if 'chromosome' in tokens:
        # chromosome:GRCh38:7:140719327:140924929:-1
        fields = tokens['chromosome'].split(':')
        if len(fields) >= 2:
            metadata['chromosome'] = fields[1]

    return metadata


def read_fasta(
    fasta_path: Union[str, Path],
    min_length: int = 0,
) -> List[Tuple[str, str, str]]:
    """Read FASTA file and return list of (protein_id, sequence, description).

    Trailing stop symbols ('*') are removed from sequences.

    Parameters
    ----------
    fasta_path : str or Path
        Path to FASTA file
    min_length : int
        Minimum protein length (default: 0, no filter)

    Returns
    -------
    proteins : List[Tuple[str, str, str]]
        List of (protein_id, sequence, description) tuples

    Examples
    --------
    >>> proteins = read_fasta("human.fasta", min_length=7)
    >>> protein_id, sequence, description = proteins[0]
    """
    fasta_path = Path(fasta_path)

    if not fasta_path.exists():
        raise FileNotFoundError(f"FASTA file not found: {fasta_path}")

    logger.info(f"Reading FASTA file: {fasta_path.name}")

    proteins = []
    current_id = None
    current_description = None
    current_seq = []

    def flush():
        if current_id and current_seq:
            sequence = ''.join(current_seq).upper().rstrip('*')
            if len(sequence) >= min_length:
                proteins.append((current_id, sequence, current_description))

    with open(fasta_path) as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            if line.startswith('>'):
                flush()
                current_id, current_description = parse_protein_id(line[1:])
                current_seq = []
            else:
                current_seq.append(line)
        flush()

    logger.info(f"✓ Read {len(proteins):,} proteins from {fasta_path.name}")

    return proteins


def read_multiple_fasta(
    fasta_paths: List[Union[str, Path]],
    min_length: int = 0,
) -> List[Tuple[str, str, str]]:
    """Read several FASTA files and concatenate their records, in file order."""
    all_proteins = []

    for fasta_path in fasta_paths:
        all_proteins.extend(read_fasta(fasta_path, min_length=min_length))

    logger.info(f"✓ Combined {len(all_proteins):,} proteins from {len(fasta_paths)} files")

    return all_proteins
