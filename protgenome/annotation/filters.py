"""Filter predicates over transcript records.

Annotation queries accept one filter, built from a small set of tagged
variants that every annotation source evaluates the same way:

- ByIdentifier: record has one of the given identifiers of an id type
- ByGeneName: record belongs to one of the given genes
- ByMappingType: link quality is one of the given types ('direct', ...)
- Composite: all member filters match (logical AND)

Filters compose with '&':

>>> only_braf_direct = ByGeneName("BRAF") & ByMappingType("direct")
>>> only_braf_direct.matches(record)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Tuple, Union

from .records import IdType, TranscriptRecord


def _as_frozenset(values: Union[str, Iterable[str]]) -> FrozenSet[str]:
    if isinstance(values, str):
        return frozenset([values])
    return frozenset(values)


class AnnotationFilter(ABC):
    """Predicate over TranscriptRecords."""

    @abstractmethod
    def matches(self, record: TranscriptRecord) -> bool:
        """True if the record passes the filter."""

    def __and__(self, other: 'AnnotationFilter') -> 'Composite':
        left = self.filters if isinstance(self, Composite) else (self,)
        right = other.filters if isinstance(other, Composite) else (other,)
        return Composite(left + right)


@dataclass(frozen=True)
class ByIdentifier(AnnotationFilter):
    """Keep records carrying one of the given identifiers."""

    id_type: IdType
    values: FrozenSet[str]

    def __post_init__(self):
        object.__setattr__(self, 'id_type', IdType(self.id_type))
        object.__setattr__(self, 'values', _as_frozenset(self.values))

    def matches(self, record: TranscriptRecord) -> bool:
        return any(i in self.values for i in record.identifiers(self.id_type))


@dataclass(frozen=True)
class ByGeneName(AnnotationFilter):
    """Keep records of the given genes."""

    names: FrozenSet[str]

    def __post_init__(self):
        object.__setattr__(self, 'names', _as_frozenset(self.names))

    def matches(self, record: TranscriptRecord) -> bool:
        return record.gene_name in self.names


@dataclass(frozen=True)
class ByMappingType(AnnotationFilter):
    """Keep records whose link to the query has one of the given qualities."""

    mapping_types: FrozenSet[str]

    def __post_init__(self):
        values = _as_frozenset(self.mapping_types)
        object.__setattr__(self, 'mapping_types', frozenset(v.lower() for v in values))

    def matches(self, record: TranscriptRecord) -> bool:
        return record.mapping_type.lower() in self.mapping_types


@dataclass(frozen=True)
class Composite(AnnotationFilter):
    """Logical AND of filters. An empty composite matches everything."""

    filters: Tuple[AnnotationFilter, ...]

    def __post_init__(self):
        object.__setattr__(self, 'filters', tuple(self.filters))

    def matches(self, record: TranscriptRecord) -> bool:
        return all(f.matches(record) for f in self.filters)
