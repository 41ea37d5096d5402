"""Result containers for protein-to-genome mapping.

Every input range yields exactly one GenomicRangeGroup and every input
protein yields exactly one MappingResult, so failures are recorded in
place instead of silently dropping items.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..errors import FailureKind
from ..ranges import GenomicRange, SequenceRange


@dataclass(frozen=True)
class MappingFailure:
    """Structured failure record for a protein or a single range."""

    kind: FailureKind
    message: str
    protein_id: str = ''

    def to_exception(self) -> Exception:
        """Exception of the matching error taxonomy class."""
        prefix = f"{self.protein_id}: " if self.protein_id else ''
        return self.kind.error_class(f"{prefix}{self.message}")


@dataclass(frozen=True)
class GenomicRangeGroup:
    """Genomic ranges of one mapped SequenceRange, ordered 5'->3'."""

    group_id: int
    source: SequenceRange
    ranges: Tuple[GenomicRange, ...] = ()
    failure: Optional[MappingFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def genomic_width(self) -> int:
        """Summed width of all genomic ranges (3 x residues when mapped)."""
        return sum(r.width for r in self.ranges)

    @property
    def is_junction_spanning(self) -> bool:
        return len(self.ranges) > 1


@dataclass(frozen=True)
class MappingResult:
    """Mapping of all ranges of one protein onto one transcript."""

    protein_id: str
    transcript_id: Optional[str] = None
    groups: Tuple[GenomicRangeGroup, ...] = ()
    failure: Optional[MappingFailure] = None

    @property
    def ok(self) -> bool:
        """True if the protein was mapped (individual groups may still fail)."""
        return self.failure is None

    @property
    def failed_groups(self) -> List[GenomicRangeGroup]:
        return [g for g in self.groups if not g.ok]

    def genomic_ranges(self) -> List[GenomicRange]:
        """All genomic ranges of successfully mapped groups, in group order."""
        return [r for g in self.groups for r in g.ranges]

    def to_rows(self) -> List[Dict[str, Any]]:
        """Flatten into one row per genomic range (or per failure).

        Rows carry the range metadata so a reporting layer needs nothing else.
        """
        if self.failure is not None:
            return [{
                'protein_id': self.protein_id,
                'transcript_id': self.transcript_id,
                'status': self.failure.kind.value,
                'message': self.failure.message,
            }]

        rows = []
        for group in self.groups:
            # Report columns override range attributes of the same name
            base = {
                **group.source.attributes,
                'protein_id': self.protein_id,
                'transcript_id': self.transcript_id,
                'group_id': group.group_id,
                'pep_start': group.source.start,
                'pep_end': group.source.end,
                'peptide': group.source.sequence,
            }

            if group.failure is not None:
                rows.append({**base, 'status': group.failure.kind.value,
                             'message': group.failure.message})
                continue

            for rng in group.ranges:
                rows.append({
                    **base,
                    'status': 'mapped',
                    'chromosome': rng.chromosome,
                    'start': rng.start,
                    'end': rng.end,
                    'strand': rng.strand,
                    'ordinal': rng.ordinal,
                })
        return rows


@dataclass
class BatchMappingResult:
    """Ordered per-protein results of a batch call, one per input protein."""

    results: List[MappingResult]

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self) -> Iterator[MappingResult]:
        return iter(self.results)

    def __getitem__(self, idx: int) -> MappingResult:
        return self.results[idx]

    @property
    def mapped(self) -> List[MappingResult]:
        return [r for r in self.results if r.ok]

    @property
    def failures(self) -> List[MappingFailure]:
        return [r.failure for r in self.results if r.failure is not None]

    def summary(self) -> Dict[str, int]:
        """Counts of proteins, mapped proteins, failed ranges and failure kinds."""
        counts = Counter(f.kind.value for f in self.failures)
        summary = {
            'n_proteins': len(self.results),
            'n_mapped': len(self.mapped),
            'n_failed_ranges': sum(len(r.failed_groups) for r in self.mapped),
        }
        summary.update(counts)
        return summary

    def format_summary(self) -> str:
        summary = self.summary()
        text = f"Mapped {summary['n_mapped']}/{summary['n_proteins']} proteins"
        failure_counts = {
            k: v for k, v in summary.items()
            if k not in ('n_proteins', 'n_mapped', 'n_failed_ranges')
        }
        if failure_counts:
            details = ', '.join(f"{k}={v}" for k, v in sorted(failure_counts.items()))
            text += f" ({details})"
        if summary['n_failed_ranges']:
            text += f"; {summary['n_failed_ranges']} ranges could not be mapped"
        return text

    def to_rows(self) -> List[Dict[str, Any]]:
        return [row for result in self.results for row in result.to_rows()]

    def to_dataframe(self, columns: Optional[List[str]] = None):
        """Report rows as a pandas DataFrame.

        Parameters
        ----------
        columns : List[str], optional
            Leading columns, in this order; remaining row keys follow in
            first-seen order
        """
        import pandas as pd

        df = pd.DataFrame(self.to_rows())
        if columns:
            leading = list(columns)
            df = df.reindex(columns=leading + [c for c in df.columns if c not in leading])
        return df
