"""Genome sequence sources.

A genome sequence source returns the nucleotides of a 1-based, inclusive
genomic interval, reverse-complemented for the minus strand. Sources are
only used by the verification pass.

Implementations:

- InMemoryGenome: dict of chromosome -> sequence (tests, small genomes)
- FastaGenome: indexed FASTA file (Bio.SeqIO.index, no full load)
- HDF5Genome: uint8-encoded chromosomes in an HDF5 file, opened lazily

Chromosome names are matched with and without a 'chr' prefix, so '7' and
'chr7' address the same sequence.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, Optional

import h5py
import numpy as np
from Bio import SeqIO
from Bio.Seq import reverse_complement

from ..constants import MINUS_STRAND, VALID_STRANDS

logger = logging.getLogger(__name__)

# HDF5 group holding one dataset per chromosome
HDF5_SEQUENCE_GROUP = 'sequences'


def chromosome_aliases(chromosome: str) -> tuple:
    """Name variants tried when looking up a chromosome ('7' <-> 'chr7')."""
    if chromosome.lower().startswith('chr'):
        return (chromosome, chromosome[3:])
    return (chromosome, f"chr{chromosome}")


class GenomeSequenceSource(ABC):
    """Source of genomic nucleotide sequence."""

    @abstractmethod
    def _resolve(self, chromosome: str) -> Optional[str]:
        """Name under which the source stores a chromosome, or None."""

    @abstractmethod
    def chromosome_length(self, chromosome: str) -> int:
        """Length of a (resolved) chromosome."""

    @abstractmethod
    def _fetch_forward(self, chromosome: str, start: int, end: int) -> str:
        """Plus-strand sequence of a validated, resolved interval."""

    def fetch(self, chromosome: str, start: int, end: int, strand: str = '+') -> str:
        """Sequence of a genomic interval.

        Parameters
        ----------
        chromosome : str
            Chromosome name (with or without 'chr' prefix)
        start, end : int
            1-based inclusive bounds
        strand : str
            '+' or '-'; the minus strand is returned reverse-complemented

        Returns
        -------
        str
            Upper-case nucleotide sequence of length end - start + 1

        Raises
        ------
        KeyError
            If the chromosome is unknown.
        ValueError
            If the interval is invalid or extends past the chromosome end.
        """
        if strand not in VALID_STRANDS:
            raise ValueError(f"Invalid strand: {strand!r}")
        if start < 1 or end < start:
            raise ValueError(f"Invalid interval {chromosome}:{start}-{end}")

        name = self._resolve(chromosome)
        if name is None:
            raise KeyError(f"Chromosome not found: {chromosome}")

        length = self.chromosome_length(name)
        if end > length:
            raise ValueError(
                f"Interval {chromosome}:{start}-{end} extends past chromosome end ({length})"
            )

        sequence = self._fetch_forward(name, start, end).upper()
        if strand == MINUS_STRAND:
            sequence = reverse_complement(sequence)
        return sequence

    def __contains__(self, chromosome: str) -> bool:
        return self._resolve(chromosome) is not None


class InMemoryGenome(GenomeSequenceSource):
    """Genome held as a dict of chromosome -> sequence."""

    def __init__(self, sequences: Dict[str, str]):
        self.sequences = {name: str(seq).upper() for name, seq in sequences.items()}

    def _resolve(self, chromosome: str) -> Optional[str]:
        for alias in chromosome_aliases(chromosome):
            if alias in self.sequences:
                return alias
        return None

    def chromosome_length(self, chromosome: str) -> int:
        return len(self.sequences[chromosome])

    def _fetch_forward(self, chromosome: str, start: int, end: int) -> str:
        return self.sequences[chromosome][start - 1:end]


class FastaGenome(GenomeSequenceSource):
    """Genome FASTA file, indexed on construction.

    The index holds file offsets only. A record is parsed when first
    fetched from and kept until a fetch moves to another chromosome, so
    consecutive fetches on one chromosome parse it once and at most one
    chromosome is held in memory. Record ids (first header token) name the
    chromosomes.
    """

    def __init__(self, fasta_path: Path | str):
        self.fasta_path = Path(fasta_path)
        if not self.fasta_path.exists():
            raise FileNotFoundError(f"Genome FASTA not found: {self.fasta_path}")
        self._index = SeqIO.index(str(self.fasta_path), 'fasta')
        self._lengths: Dict[str, int] = {}
        self._current_id: Optional[str] = None
        self._current_seq = ''
        logger.info(f"✓ Indexed {len(self._index)} sequences from {self.fasta_path.name}")

    def _resolve(self, chromosome: str) -> Optional[str]:
        for alias in chromosome_aliases(chromosome):
            if alias in self._index:
                return alias
        return None

    def _record_sequence(self, chromosome: str) -> str:
        if chromosome != self._current_id:
            logger.debug(f"Parsing {chromosome} from {self.fasta_path.name}")
            self._current_seq = str(self._index[chromosome].seq)
            self._current_id = chromosome
            self._lengths[chromosome] = len(self._current_seq)
        return self._current_seq

    def chromosome_length(self, chromosome: str) -> int:
        if chromosome not in self._lengths:
            self._record_sequence(chromosome)
        return self._lengths[chromosome]

    def _fetch_forward(self, chromosome: str, start: int, end: int) -> str:
        return self._record_sequence(chromosome)[start - 1:end]

    def close(self) -> None:
        self._current_id = None
        self._current_seq = ''
        self._index.close()


class HDF5Genome(GenomeSequenceSource):
    """Genome stored as uint8 (ASCII) datasets in an HDF5 file.

    Layout: one dataset per chromosome under /sequences. Slices are read
    directly from disk; use as a context manager to keep the file open
    across many fetches.

    Examples
    --------
    >>> with HDF5Genome("genome.h5") as genome:
    ...     genome.fetch("7", 140753336, 140753338, "-")
    """

    def __init__(self, hdf5_path: Path | str):
        self.hdf5_path = Path(hdf5_path)
        if not self.hdf5_path.exists():
            raise FileNotFoundError(f"Genome HDF5 not found: {self.hdf5_path}")
        self._hdf_handle = None

        with h5py.File(self.hdf5_path, 'r') as hdf:
            self._lengths = {
                name: int(dataset.shape[0])
                for name, dataset in hdf[HDF5_SEQUENCE_GROUP].items()
            }

    def __enter__(self):
        """Open HDF5 file for batch fetches."""
        self._hdf_handle = h5py.File(self.hdf5_path, 'r')
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Close HDF5 file."""
        if self._hdf_handle is not None:
            self._hdf_handle.close()
            self._hdf_handle = None

    def _resolve(self, chromosome: str) -> Optional[str]:
        for alias in chromosome_aliases(chromosome):
            if alias in self._lengths:
                return alias
        return None

    def chromosome_length(self, chromosome: str) -> int:
        return self._lengths[chromosome]

    def _fetch_forward(self, chromosome: str, start: int, end: int) -> str:
        should_close = False
        if self._hdf_handle is None:
            hdf = h5py.File(self.hdf5_path, 'r')
            should_close = True
        else:
            hdf = self._hdf_handle

        try:
            codes = hdf[HDF5_SEQUENCE_GROUP][chromosome][start - 1:end]
        finally:
            if should_close:
                hdf.close()

        return np.asarray(codes, dtype=np.uint8).tobytes().decode('ascii')


def write_hdf5_genome(hdf5_path: Path | str, sequences: Dict[str, str] | Iterable) -> Path:
    """Write chromosome sequences in the HDF5Genome layout.

    Parameters
    ----------
    hdf5_path : Path or str
        Output file (overwritten)
    sequences : dict or iterable of (name, sequence)
        Chromosome sequences

    Returns
    -------
    Path
        Path of the written file
    """
    hdf5_path = Path(hdf5_path)
    items = sequences.items() if isinstance(sequences, dict) else sequences

    n_written = 0
    with h5py.File(hdf5_path, 'w') as hdf:
        group = hdf.create_group(HDF5_SEQUENCE_GROUP)
        for name, sequence in items:
            codes = np.frombuffer(str(sequence).upper().encode('ascii'), dtype=np.uint8)
            group.create_dataset(name, data=codes, compression='gzip')
            n_written += 1

    logger.info(f"✓ Wrote {n_written} sequences to {hdf5_path.name}")
    return hdf5_path
