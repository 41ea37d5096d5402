"""Configuration dataclasses.

Parameters are grouped per concern and carry sensible defaults, so most
callers never construct them explicitly.
"""

import os
from dataclasses import dataclass
from typing import Optional

from .constants import (
    CLEAVAGE_RULES,
    DEFAULT_BATCH_SIZE,
    DEFAULT_SPECIES,
    DEFAULT_TIMEOUT_S,
    ENSEMBL_SERVERS,
    MAX_ENSEMBL_BATCH_SIZE,
    STANDARD_CODON_TABLE,
)


@dataclass
class AnnotationConfig:
    """Parameters for the Ensembl REST annotation source.

    The server, species and release together form the cache key of every
    exon model fetched with this configuration.
    """

    server: str = ENSEMBL_SERVERS['GRCh38']
    species: str = DEFAULT_SPECIES

    # Per-request timeout in seconds
    timeout_s: float = DEFAULT_TIMEOUT_S

    # Identifiers per POST request
    batch_size: int = DEFAULT_BATCH_SIZE

    # Optional release tag, only used to key cached exon models
    release: Optional[str] = None

    def __post_init__(self):
        if not 1 <= self.batch_size <= MAX_ENSEMBL_BATCH_SIZE:
            raise ValueError(
                f"batch_size must be in [1, {MAX_ENSEMBL_BATCH_SIZE}], "
                f"got {self.batch_size}"
            )
        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be positive, got {self.timeout_s}")
        self.server = self.server.rstrip('/')

    @property
    def cache_key(self) -> str:
        return f"{self.server}|{self.species}|{self.release or 'current'}"

    @classmethod
    def for_assembly(cls, assembly: str, **kwargs) -> 'AnnotationConfig':
        """Create a configuration pointing at the server of a genome assembly.

        Args:
            assembly: 'GRCh38' or 'GRCh37'
            **kwargs: Overrides for the remaining fields

        Returns:
            AnnotationConfig for that assembly
        """
        if assembly not in ENSEMBL_SERVERS:
            raise ValueError(
                f"Unknown assembly: {assembly}. "
                f"Use one of {sorted(ENSEMBL_SERVERS)}."
            )
        return cls(server=ENSEMBL_SERVERS[assembly], **kwargs)

    @classmethod
    def from_env(
        cls,
        prefix: str = 'PROTGENOME_',
        assembly: Optional[str] = None,
    ) -> 'AnnotationConfig':
        """Read overrides from environment variables.

        Recognised variables (with the default prefix): PROTGENOME_ASSEMBLY,
        PROTGENOME_ENSEMBL_SERVER, PROTGENOME_SPECIES, PROTGENOME_TIMEOUT,
        PROTGENOME_BATCH_SIZE and PROTGENOME_RELEASE.

        Args:
            prefix: Prefix of the variable names
            assembly: If given, selects the server and takes precedence over
                PROTGENOME_ASSEMBLY and PROTGENOME_ENSEMBL_SERVER; the other
                variables still apply
        """
        env = os.environ
        kwargs = {}
        if f'{prefix}SPECIES' in env:
            kwargs['species'] = env[f'{prefix}SPECIES']
        if f'{prefix}TIMEOUT' in env:
            kwargs['timeout_s'] = float(env[f'{prefix}TIMEOUT'])
        if f'{prefix}BATCH_SIZE' in env:
            kwargs['batch_size'] = int(env[f'{prefix}BATCH_SIZE'])
        if f'{prefix}RELEASE' in env:
            kwargs['release'] = env[f'{prefix}RELEASE']

        if assembly is not None:
            return cls.for_assembly(assembly, **kwargs)
        if f'{prefix}ENSEMBL_SERVER' in env:
            return cls(server=env[f'{prefix}ENSEMBL_SERVER'], **kwargs)
        if f'{prefix}ASSEMBLY' in env:
            return cls.for_assembly(env[f'{prefix}ASSEMBLY'], **kwargs)
        return cls(**kwargs)


@dataclass
class VerificationParams:
    """Parameters for translation and alignment in the verification pass."""

    # 'global' (Needleman-Wunsch) or 'local' (Smith-Waterman)
    mode: str = 'global'

    substitution_matrix: str = 'BLOSUM62'

    # Affine gap scores (negative values)
    open_gap_score: float = -10.0
    extend_gap_score: float = -0.5

    codon_table: int = STANDARD_CODON_TABLE

    def __post_init__(self):
        if self.mode not in ('global', 'local'):
            raise ValueError(f"Unknown alignment mode: {self.mode}. Use 'global' or 'local'.")


@dataclass
class CleavageParams:
    """Parameters for in-silico protein cleavage."""

    enzyme: str = 'trypsin'
    missed_cleavages: int = 0
    min_length: int = 1
    max_length: Optional[int] = None

    def __post_init__(self):
        self.enzyme = self.enzyme.lower()
        if self.enzyme not in CLEAVAGE_RULES:
            raise ValueError(
                f"Unknown enzyme: {self.enzyme}. Use one of {sorted(CLEAVAGE_RULES)}."
            )
        if self.missed_cleavages < 0:
            raise ValueError(f"missed_cleavages must be >= 0, got {self.missed_cleavages}")
