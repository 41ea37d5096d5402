"""Proteins with attached peptide and feature ranges.

A ProteinsCollection holds proteins (accession, sequence, metadata) and the
ranges attached to them: peptide ranges ('pranges', e.g. identified
peptides or cleavage products) and feature ranges ('pfeatures', e.g.
domains). It is the entry point of the batch pipeline:

1. Load proteins (FASTA or a mapping of sequences)
2. Attach ranges (PSM identifications, in-silico cleavage, explicit ranges)
3. map_all(): resolve identifiers through an annotation source, select a
   transcript per protein and map every range onto the genome

Examples
--------
>>> proteins = ProteinsCollection.from_fasta("uniprot_human.fasta")
>>> psms, _ = load_psms("psms.tsv")
>>> report = proteins.add_identifications(psms)
>>> source = EnsemblRestSource(AnnotationConfig.for_assembly("GRCh38"))
>>> batch = proteins.map_all(source, "uniprot_id")
>>> print(batch.format_summary())
"""

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Union

from .annotation import (
    AnnotationFilter,
    AnnotationSource,
    ExonModelCache,
    IdType,
    TranscriptRecord,
)
from .config import CleavageParams, VerificationParams
from .constants import STOP_SYMBOL
from .database.digestion import cleave_protein
from .database.fasta_reader import parse_header_metadata, read_fasta
from .database.identifications import PSM, LoadReport
from .errors import AnnotationIntegrityError, FailureKind, LoadError
from .mapping import (
    BatchMappingResult,
    MappingFailure,
    MappingResult,
    pmap_to_genome,
    select_transcript,
)
from .ranges import SequenceRange
from .verification import make_alignment_verifier

logger = logging.getLogger(__name__)

RANGE_KINDS = ('pranges', 'pfeatures')


# =============================================================================
# Protein
# =============================================================================

@dataclass
class Protein:
    """Protein sequence with metadata and attached ranges."""

    accession: str
    sequence: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    pranges: List[SequenceRange] = field(default_factory=list)
    pfeatures: List[SequenceRange] = field(default_factory=list)

    def __post_init__(self):
        if not self.accession:
            raise ValueError("Protein accession must not be empty")
        self.sequence = self.sequence.upper().rstrip(STOP_SYMBOL)

    def __len__(self) -> int:
        return len(self.sequence)

    def get_ranges(self, which: str = 'pranges') -> List[SequenceRange]:
        """Peptide ranges ('pranges') or feature ranges ('pfeatures')."""
        if which not in RANGE_KINDS:
            raise ValueError(f"Unknown range kind: {which}. Use one of {RANGE_KINDS}.")
        return getattr(self, which)

    def check_range(self, seq_range: SequenceRange) -> SequenceRange:
        """Validate a range against the sequence; fill in its residues if missing.

        Raises
        ------
        LoadError
            If the range leaves the protein or its residues differ.
        """
        if seq_range.end > len(self):
            raise LoadError(
                f"{self.accession}: range [{seq_range.start}, {seq_range.end}] "
                f"outside protein of length {len(self)}"
            )
        expected = self.sequence[seq_range.start - 1:seq_range.end]
        if not seq_range.sequence:
            return replace(seq_range, sequence=expected)
        if seq_range.sequence != expected:
            raise LoadError(
                f"{self.accession}: '{seq_range.sequence}' does not match protein "
                f"sequence '{expected}' at [{seq_range.start}, {seq_range.end}]"
            )
        return seq_range


# =============================================================================
# Collection
# =============================================================================

class ProteinsCollection:
    """Ordered collection of proteins, indexed by accession.

    Parameters
    ----------
    proteins : Iterable[Protein]
        Proteins with unique accessions
    """

    def __init__(self, proteins: Iterable[Protein] = ()):
        self._proteins: Dict[str, Protein] = {}
        for protein in proteins:
            if protein.accession in self._proteins:
                raise ValueError(f"Duplicate protein accession: {protein.accession}")
            self._proteins[protein.accession] = protein

    @classmethod
    def from_fasta(cls, fasta_path: Union[str, Path], min_length: int = 0) -> 'ProteinsCollection':
        """Load proteins from a FASTA file.

        Header metadata (UniProt OS=/GN=, Ensembl gene:/transcript: tokens)
        becomes protein metadata, next to the full 'description'.
        """
        proteins = []
        for accession, sequence, description in read_fasta(fasta_path, min_length):
            metadata = {'description': description}
            metadata.update(parse_header_metadata(description))
            proteins.append(Protein(accession, sequence, metadata))
        return cls(proteins)

    @classmethod
    def from_sequences(
        cls,
        sequences: Mapping[str, str],
        metadata: Optional[Mapping[str, Mapping[str, Any]]] = None,
    ) -> 'ProteinsCollection':
        """Build a collection from accession -> sequence (and optional metadata)."""
        metadata = metadata or {}
        return cls(
            Protein(accession, sequence, dict(metadata.get(accession, {})))
            for accession, sequence in sequences.items()
        )

    # -------------------------------------------------------------------------
    # Container protocol
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._proteins)

    def __iter__(self) -> Iterator[Protein]:
        return iter(self._proteins.values())

    def __contains__(self, accession: str) -> bool:
        return accession in self._proteins

    def __getitem__(self, key):
        """Protein by accession or position; sub-collection by slice."""
        if isinstance(key, str):
            return self._proteins[key]
        proteins = list(self._proteins.values())
        if isinstance(key, slice):
            return ProteinsCollection(proteins[key])
        return proteins[key]

    def __repr__(self) -> str:
        return (
            f"ProteinsCollection({len(self)} proteins, "
            f"{sum(len(p.pranges) for p in self)} pranges)"
        )

    # -------------------------------------------------------------------------
    # Sequences and protein metadata
    # -------------------------------------------------------------------------

    @property
    def accessions(self) -> List[str]:
        return list(self._proteins)

    @property
    def aa(self) -> Dict[str, str]:
        """Accession -> amino acid sequence."""
        return {acc: p.sequence for acc, p in self._proteins.items()}

    @property
    def acols(self) -> List[str]:
        """Protein metadata column names, in first-seen order."""
        columns = {}
        for protein in self:
            columns.update(dict.fromkeys(protein.metadata))
        return list(columns)

    @property
    def ametadata(self) -> List[Dict[str, Any]]:
        """Protein metadata table: one row per protein, missing values None."""
        columns = self.acols
        return [
            {'accession': p.accession, **{c: p.metadata.get(c) for c in columns}}
            for p in self
        ]

    def add_metadata_column(self, name: str, values: Union[Mapping[str, Any], Sequence[Any]]) -> None:
        """Add a protein metadata column.

        Parameters
        ----------
        name : str
            Column name
        values : Mapping or Sequence
            accession -> value (missing accessions get None), or one value
            per protein in collection order
        """
        if isinstance(values, Mapping):
            for protein in self:
                protein.metadata[name] = values.get(protein.accession)
            return

        values = list(values)
        if len(values) != len(self):
            raise ValueError(
                f"Column '{name}' has {len(values)} values for {len(self)} proteins"
            )
        for protein, value in zip(self, values):
            protein.metadata[name] = value

    # -------------------------------------------------------------------------
    # Ranges
    # -------------------------------------------------------------------------

    @property
    def pranges(self) -> Dict[str, List[SequenceRange]]:
        return {acc: list(p.pranges) for acc, p in self._proteins.items()}

    @property
    def pfeatures(self) -> Dict[str, List[SequenceRange]]:
        return {acc: list(p.pfeatures) for acc, p in self._proteins.items()}

    @property
    def pcols(self) -> List[str]:
        """Peptide range attribute names, in first-seen order."""
        columns = {}
        for protein in self:
            for seq_range in protein.pranges:
                columns.update(dict.fromkeys(seq_range.attributes))
        return list(columns)

    @property
    def pmetadata(self) -> List[Dict[str, Any]]:
        """Peptide range table: one row per prange, attributes as columns."""
        columns = self.pcols
        return [
            {
                'accession': p.accession,
                'start': r.start,
                'end': r.end,
                'sequence': r.sequence,
                **{c: r.attributes.get(c) for c in columns},
            }
            for p in self
            for r in p.pranges
        ]

    def _add_ranges(self, accession: str, ranges: Iterable[SequenceRange], which: str) -> None:
        protein = self._proteins[accession]
        checked = [protein.check_range(r) for r in ranges]
        protein.get_ranges(which).extend(checked)

    def add_pranges(self, accession: str, ranges: Iterable[SequenceRange]) -> None:
        """Attach peptide ranges to a protein (raises LoadError on mismatch)."""
        self._add_ranges(accession, ranges, 'pranges')

    def add_pfeatures(self, accession: str, ranges: Iterable[SequenceRange]) -> None:
        """Attach feature ranges to a protein (raises LoadError on mismatch)."""
        self._add_ranges(accession, ranges, 'pfeatures')

    def remove_pranges(self, accessions: Optional[Iterable[str]] = None) -> None:
        """Drop the peptide ranges of some (default: all) proteins."""
        targets = self._proteins.keys() if accessions is None else accessions
        for accession in targets:
            self._proteins[accession].pranges.clear()

    def add_identifications(self, psms: Iterable[PSM]) -> LoadReport:
        """Attach PSMs as peptide ranges.

        PSMs without a position are placed at the first occurrence of the
        peptide in the protein. Rejected PSMs (unknown protein, peptide not
        found or not matching) are recorded in the report; the load goes on.

        Returns
        -------
        LoadReport
            Counts and one LoadError per rejected PSM (0-based PSM index)
        """
        report = LoadReport()

        for idx, psm in enumerate(psms):
            report.n_records += 1

            protein = self._proteins.get(psm.protein_id)
            if protein is None:
                report.reject(idx, f"PSM {idx}: unknown protein {psm.protein_id}")
                continue

            peptide = psm.peptide.upper()
            start = psm.start
            if start is None:
                position = protein.sequence.find(peptide)
                if position < 0:
                    report.reject(idx, f"PSM {idx}: '{peptide}' not found in {psm.protein_id}")
                    continue
                start = position + 1
            end = psm.end if psm.end is not None else start + len(peptide) - 1

            try:
                seq_range = SequenceRange.from_protein(
                    protein.sequence, start, end, peptide,
                ).with_attributes(**psm.range_attributes())
            except LoadError as e:
                report.reject(idx, f"PSM {idx} ({psm.protein_id}): {e}")
                continue

            protein.pranges.append(seq_range)
            report.n_loaded += 1

        if report.n_rejected:
            logger.warning(f"{report.n_rejected}/{report.n_records} PSMs rejected")
        logger.info(f"✓ Attached {report.n_loaded:,} peptide ranges")

        return report

    def cleave(
        self,
        enzyme: str = 'trypsin',
        missed_cleavages: int = 0,
        min_length: int = 1,
        max_length: Optional[int] = None,
    ) -> 'ProteinsCollection':
        """New collection whose pranges are the in-silico cleavage products.

        Metadata and feature ranges are carried over; existing pranges are not.
        """
        params = CleavageParams(enzyme, missed_cleavages, min_length, max_length)

        proteins = []
        for protein in self:
            products = cleave_protein(
                protein.sequence, protein.accession, params.enzyme,
                params.missed_cleavages, params.min_length, params.max_length,
            )
            proteins.append(Protein(
                protein.accession, protein.sequence, dict(protein.metadata),
                pranges=products, pfeatures=list(protein.pfeatures),
            ))

        cleaved = ProteinsCollection(proteins)
        logger.info(
            f"✓ Cleaved {len(cleaved):,} proteins with {params.enzyme} into "
            f"{sum(len(p.pranges) for p in cleaved):,} peptides"
        )
        return cleaved

    # -------------------------------------------------------------------------
    # Batch mapping
    # -------------------------------------------------------------------------

    def _identifier(self, protein: Protein, id_column: Optional[str]) -> str:
        if id_column is None:
            return protein.accession
        value = protein.metadata.get(id_column)
        return str(value) if value else ''

    def map_all(
        self,
        annotation_source: AnnotationSource,
        id_type: Union[IdType, str],
        which: str = 'pranges',
        annotation_filter: Optional[AnnotationFilter] = None,
        id_column: Optional[str] = None,
        cache: Optional[ExonModelCache] = None,
        verifier_genome=None,
        verification_params: Optional[VerificationParams] = None,
        strict: bool = False,
    ) -> BatchMappingResult:
        """Map the ranges of every protein onto the genome.

        Parameters
        ----------
        annotation_source : AnnotationSource
            Source resolving identifiers to transcripts (queried once)
        id_type : IdType or str
            Type of the protein identifiers
        which : str
            'pranges' or 'pfeatures'
        annotation_filter : AnnotationFilter, optional
            Filter applied to the transcript records
        id_column : str, optional
            Metadata column holding the identifier (default: accession)
        cache : ExonModelCache, optional
            Cache shared across calls (default: a cache for this call)
        verifier_genome : GenomeSequenceSource, optional
            If given, ties in transcript selection are broken by aligning
            the translated transcripts against the protein
        verification_params : VerificationParams, optional
            Alignment parameters of the tie-break
        strict : bool
            Raise the exception of the first failure instead of recording it

        Returns
        -------
        BatchMappingResult
            One MappingResult per protein, in collection order
        """
        if which not in RANGE_KINDS:
            raise ValueError(f"Unknown range kind: {which}. Use one of {RANGE_KINDS}.")
        id_type = IdType(id_type)
        cache = cache if cache is not None else ExonModelCache()

        identifiers = [self._identifier(p, id_column) for p in self]
        logger.info(f"Mapping {len(self):,} proteins by {id_type.value}")

        found = annotation_source.query(id_type, identifiers, annotation_filter)

        results = []
        for protein, identifier in zip(self, identifiers):
            result = self._map_protein(
                protein, identifier, found, annotation_source.cache_key, id_type,
                which, cache, verifier_genome, verification_params, strict,
            )

            if strict:
                failure = result.failure or next(
                    (g.failure for g in result.failed_groups), None,
                )
                if failure is not None:
                    raise failure.to_exception()

            results.append(result)

        batch = BatchMappingResult(results)
        logger.info(f"✓ {batch.format_summary()}")
        logger.debug(f"Exon model cache: {cache.hits} hits, {cache.misses} misses")

        return batch

    def _map_protein(
        self,
        protein: Protein,
        identifier: str,
        found: Dict[str, List[TranscriptRecord]],
        source_key: str,
        id_type: IdType,
        which: str,
        cache: ExonModelCache,
        verifier_genome,
        verification_params: Optional[VerificationParams],
        strict: bool,
    ) -> MappingResult:
        accession = protein.accession

        def failed(kind: FailureKind, message: str, transcript_id: Optional[str] = None) -> MappingResult:
            logger.warning(f"{accession}: {message}")
            return MappingResult(
                accession, transcript_id, failure=MappingFailure(kind, message, accession),
            )

        if not identifier or identifier not in found:
            return failed(
                FailureKind.IDENTIFIER_NOT_FOUND,
                f"{id_type.value} '{identifier}' not found in annotation source",
            )

        records = found[identifier]
        if not records:
            return failed(
                FailureKind.NO_CANDIDATES,
                f"{id_type.value} '{identifier}' has no coding transcript",
            )

        models = []
        for record in records:
            try:
                models.append(cache.get_or_build(source_key, record).coding_only())
            except AnnotationIntegrityError as e:
                if strict:
                    raise
                logger.warning(f"{accession}: skipping invalid annotation: {e}")

        if not models:
            return failed(
                FailureKind.INVALID_ANNOTATION,
                f"all {len(records)} transcripts of '{identifier}' have invalid exon models",
            )

        if id_type.is_cross_reference or len(models) > 1:
            verifier = None
            if verifier_genome is not None:
                verifier = make_alignment_verifier(
                    protein.sequence, verifier_genome, verification_params,
                )
            model = select_transcript(len(protein), models, verifier)
            if model is None:
                return failed(
                    FailureKind.NO_VALID_TRANSCRIPT,
                    f"none of {len(models)} transcripts has a coding length "
                    f"divisible by 3",
                )
        else:
            model = models[0]

        result = pmap_to_genome(protein, model, which)
        if result.failure is not None:
            logger.warning(f"{accession}: {result.failure.message}")
        return result
