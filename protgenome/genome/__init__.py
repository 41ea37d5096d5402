"""Genome sequence sources for the verification pass."""

from .sources import (
    GenomeSequenceSource,
    InMemoryGenome,
    FastaGenome,
    HDF5Genome,
    write_hdf5_genome,
    chromosome_aliases,
)

from .ensembl import EnsemblSequenceSource

__all__ = [
    # Sources
    'GenomeSequenceSource',
    'InMemoryGenome',
    'FastaGenome',
    'HDF5Genome',
    'EnsemblSequenceSource',

    # Utilities
    'write_hdf5_genome',
    'chromosome_aliases',
]
