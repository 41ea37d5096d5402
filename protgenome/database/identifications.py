"""Identification (PSM) tables as a source of peptide ranges.

Reads peptide-spectrum matches exported by a search engine as a
tab-separated table. Column names are configurable; every column that is
not mapped to a PSM field is kept as a free-form attribute.

Rows listing several proteins ("P1;P2" with starts "3;10") are expanded
into one PSM per protein. Malformed rows are recorded in a LoadReport and
never abort the load.

Examples
--------
>>> psms, report = load_psms("psms.tsv")
>>> print(f"{len(psms)} PSMs, {len(report.errors)} rejected rows")
>>> report = proteins.add_identifications(psms)
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..errors import LoadError

logger = logging.getLogger(__name__)

# PSM field -> default column name
DEFAULT_PSM_COLUMNS = {
    'protein_id': 'protein_id',
    'peptide': 'peptide',
    'start': 'start',
    'end': 'end',
    'score': 'score',
    'spectrum_ref': 'spectrum_ref',
}

REQUIRED_PSM_FIELDS = ('protein_id', 'peptide')


@dataclass(frozen=True)
class PSM:
    """One peptide-spectrum match assigned to one protein.

    start and end are 1-based inclusive; None means "locate the peptide in
    the protein sequence".
    """

    protein_id: str
    peptide: str
    start: Optional[int] = None
    end: Optional[int] = None
    score: Optional[float] = None
    spectrum_ref: str = ''
    attributes: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def range_attributes(self) -> Dict[str, Any]:
        """Attributes to store on the SequenceRange built from this PSM."""
        attributes = dict(self.attributes)
        if self.score is not None:
            attributes['score'] = self.score
        if self.spectrum_ref:
            attributes['spectrum_ref'] = self.spectrum_ref
        return attributes


@dataclass
class LoadReport:
    """Outcome of a load: counts plus one LoadError per rejected record."""

    n_records: int = 0
    n_loaded: int = 0
    errors: List[Tuple[int, LoadError]] = field(default_factory=list)

    @property
    def n_rejected(self) -> int:
        return len(self.errors)

    def reject(self, record_idx: int, message: str) -> None:
        self.errors.append((record_idx, LoadError(message)))

    def merge(self, other: 'LoadReport') -> 'LoadReport':
        return LoadReport(
            self.n_records + other.n_records,
            self.n_loaded + other.n_loaded,
            self.errors + other.errors,
        )


def _parse_optional(value: Optional[str], convert) -> Any:
    if value is None or value.strip() in ('', 'NA', 'NaN', 'nan'):
        return None
    return convert(value.strip())


def load_psms(
    path: Union[str, Path],
    columns: Optional[Mapping[str, str]] = None,
    delimiter: str = '\t',
    protein_separator: str = ';',
) -> Tuple[List[PSM], LoadReport]:
    """Load PSMs from a delimited text file.

    Parameters
    ----------
    path : str or Path
        Path to the table (header row required)
    columns : Mapping[str, str], optional
        Overrides of DEFAULT_PSM_COLUMNS (PSM field -> column name)
    delimiter : str
        Field delimiter (default: tab)
    protein_separator : str
        Separator of multiple proteins (and their starts/ends) in one cell

    Returns
    -------
    psms : List[PSM]
        Parsed PSMs in file order
    report : LoadReport
        Rows that could not be parsed, by 0-based data row index

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    ValueError
        If a required column is missing from the header
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Identification file not found: {path}")

    column_map = dict(DEFAULT_PSM_COLUMNS)
    if columns:
        column_map.update(columns)

    logger.info(f"Reading identifications: {path.name}")

    import pandas as pd

    # All cells as text; empty cells stay '' so NA handling is ours
    df = pd.read_csv(path, sep=delimiter, dtype=str, keep_default_na=False)

    missing = [column_map[k] for k in REQUIRED_PSM_FIELDS if column_map[k] not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns in {path.name}: {missing}")

    mapped_columns = set(column_map.values())

    psms = []
    report = LoadReport()

    for row_idx, row in enumerate(df.to_dict('records')):
        report.n_records += 1
        extra = {k: v for k, v in row.items() if k not in mapped_columns}

        protein_ids = [p.strip() for p in (row.get(column_map['protein_id']) or '').split(protein_separator)]
        starts = (row.get(column_map['start']) or '').split(protein_separator)
        ends = (row.get(column_map['end']) or '').split(protein_separator)
        peptide = (row.get(column_map['peptide']) or '').strip()

        if not peptide or not any(protein_ids):
            report.reject(row_idx, f"row {row_idx}: missing protein or peptide")
            continue

        # One start/end for all proteins, or one per protein
        if len(starts) == 1:
            starts = starts * len(protein_ids)
        if len(ends) == 1:
            ends = ends * len(protein_ids)
        if len(starts) != len(protein_ids) or len(ends) != len(protein_ids):
            report.reject(row_idx, f"row {row_idx}: {len(protein_ids)} proteins but "
                                   f"{len(starts)} starts and {len(ends)} ends")
            continue

        try:
            score = _parse_optional(row.get(column_map['score']), float)
            parsed = [
                (pid, _parse_optional(s, int), _parse_optional(e, int))
                for pid, s, e in zip(protein_ids, starts, ends)
            ]
        except ValueError as e:
            report.reject(row_idx, f"row {row_idx}: {e}")
            continue

        for protein_id, start, end in parsed:
            if not protein_id:
                continue
            psms.append(PSM(
                protein_id=protein_id,
                peptide=peptide,
                start=start,
                end=end,
                score=score,
                spectrum_ref=(row.get(column_map['spectrum_ref']) or '').strip(),
                attributes=extra,
            ))
        report.n_loaded += 1

    logger.info(
        f"✓ Read {len(psms):,} PSMs from {report.n_loaded:,} rows "
        f"({report.n_rejected} rejected)"
    )

    return psms, report
