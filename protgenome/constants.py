"""Constants for protein-to-genome coordinate mapping.

This module collects the fixed values used throughout protgenome: strand
symbols, codon arithmetic, amino acid alphabets, cleavage rules and the
default endpoints of the Ensembl REST service.

Key Features
------------
- 1-based, inclusive genomic and protein coordinates everywhere
- Strand symbols as used by GFF/GTF ('+' and '-')
- NCBI translation table ids (1 = standard genetic code)
- Ensembl REST servers for GRCh38 and GRCh37

Sources
-------
- NCBI genetic codes: https://www.ncbi.nlm.nih.gov/Taxonomy/Utils/wprintgc.cgi
- Ensembl REST API: https://rest.ensembl.org
"""

# =============================================================================
# Codon Arithmetic
# =============================================================================

# Nucleotides per codon
CODON_LENGTH = 3

# NCBI translation table id of the standard genetic code
STANDARD_CODON_TABLE = 1

# Symbol emitted by Biopython for a stop codon
STOP_SYMBOL = '*'

# =============================================================================
# Strands
# =============================================================================

PLUS_STRAND = '+'
MINUS_STRAND = '-'
VALID_STRANDS = (PLUS_STRAND, MINUS_STRAND)

# Ensembl encodes strand as 1 / -1
ENSEMBL_STRANDS = {
    1: PLUS_STRAND,
    -1: MINUS_STRAND,
}

# =============================================================================
# Amino Acids
# =============================================================================

# Standard 20 amino acids (one-letter codes)
STANDARD_AMINO_ACIDS = frozenset('ACDEFGHIKLMNPQRSTVWY')

# Non-standard one-letter codes that may appear in sequence databases
NON_STANDARD_AMINO_ACIDS = frozenset('XZBJUO')

# =============================================================================
# Enzymes (in-silico cleavage)
# =============================================================================

# enzyme -> (residues cleaved after, residue blocking cleavage when next)
CLEAVAGE_RULES = {
    'trypsin': ('KR', 'P'),
    'trypsin/p': ('KR', ''),
    'lys-c': ('K', ''),
    'arg-c': ('R', 'P'),
    'glu-c': ('E', 'P'),
    'chymotrypsin': ('FWY', 'P'),
}

# =============================================================================
# Ensembl REST
# =============================================================================

ENSEMBL_SERVERS = {
    'GRCh38': 'https://rest.ensembl.org',
    'GRCh37': 'https://grch37.rest.ensembl.org',
}

DEFAULT_ENSEMBL_SERVER = ENSEMBL_SERVERS['GRCh38']
DEFAULT_SPECIES = 'homo_sapiens'

# Per-request timeout (seconds); timed-out identifiers count as not found
DEFAULT_TIMEOUT_S = 30.0

# Ensembl POST endpoints accept at most 1000 ids per request
MAX_ENSEMBL_BATCH_SIZE = 1000
DEFAULT_BATCH_SIZE = 200

# External database names used for UniProt cross references
UNIPROT_EXTERNAL_DBS = ('Uniprot/SWISSPROT', 'Uniprot/SPTREMBL')

# Cross-reference quality flags
MAPPING_TYPE_DIRECT = 'direct'
MAPPING_TYPE_INDIRECT = 'indirect'
