"""Annotation source interface and an in-memory implementation.

An annotation source resolves identifiers (protein, transcript, UniProt
or gene name) to transcript records. Contract of query():

- unresolved identifiers are absent from the result (never an exception)
- resolved identifiers map to their coding transcripts, possibly []
  (e.g. every transcript was removed by the filter)
- several transcripts per identifier is the common case
"""

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Union

from .filters import AnnotationFilter
from .records import IdType, TranscriptRecord

logger = logging.getLogger(__name__)


class AnnotationSource(ABC):
    """Queryable source of transcript annotation."""

    @property
    @abstractmethod
    def cache_key(self) -> str:
        """Identifies endpoint and release; cached models are keyed by it."""

    @abstractmethod
    def _lookup(self, id_type: IdType, identifiers: List[str]) -> Dict[str, List[TranscriptRecord]]:
        """Resolve unique identifiers; omit the ones that cannot be resolved."""

    def query(
        self,
        id_type: Union[IdType, str],
        identifiers: Iterable[str],
        annotation_filter: Optional[AnnotationFilter] = None,
    ) -> Dict[str, List[TranscriptRecord]]:
        """Resolve identifiers to coding transcript records.

        Parameters
        ----------
        id_type : IdType or str
            Type of the identifiers
        identifiers : Iterable[str]
            Identifiers (duplicates are resolved once)
        annotation_filter : AnnotationFilter, optional
            Records failing the filter are dropped

        Returns
        -------
        Dict[str, List[TranscriptRecord]]
            Resolved identifiers, in query order
        """
        id_type = IdType(id_type)
        unique_ids = list(dict.fromkeys(i for i in identifiers if i))

        found = self._lookup(id_type, unique_ids)

        results = {}
        for identifier in unique_ids:
            if identifier not in found:
                continue
            records = [r for r in found[identifier] if r.is_coding]
            if annotation_filter is not None:
                records = [r for r in records if annotation_filter.matches(r)]
            results[identifier] = records

        n_unresolved = len(unique_ids) - len(results)
        logger.info(
            f"✓ Resolved {len(results):,}/{len(unique_ids):,} {id_type.value} identifiers "
            f"({n_unresolved} unresolved)"
        )

        return results


class InMemoryAnnotationSource(AnnotationSource):
    """Annotation source over a fixed list of records.

    Parameters
    ----------
    records : Iterable[TranscriptRecord]
        Transcript records; indexed by every id type on construction
    version : str
        Version tag, part of the cache key
    """

    def __init__(self, records: Iterable[TranscriptRecord], version: str = 'memory'):
        self.records = list(records)
        self.version = version

        self._index = {id_type: defaultdict(list) for id_type in IdType}
        for record in self.records:
            for id_type in IdType:
                for identifier in record.identifiers(id_type):
                    self._index[id_type][identifier].append(record)

    @property
    def cache_key(self) -> str:
        return f"memory|{self.version}|{id(self)}"

    def _lookup(self, id_type: IdType, identifiers: List[str]) -> Dict[str, List[TranscriptRecord]]:
        index = self._index[id_type]
        return {i: list(index[i]) for i in identifiers if i in index}

    def __len__(self) -> int:
        return len(self.records)
