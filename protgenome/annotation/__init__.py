"""Transcript annotation sources.

Provides identifier resolution into exon models:

- Source-independent transcript records and their conversion to ExonModels
- Composable annotation filters (identifier, gene name, mapping type)
- In-memory and Ensembl REST annotation sources
- LRU cache of exon models keyed by annotation source and release
"""

from .records import (
    IdType,
    TranscriptRecord,
)

from .filters import (
    AnnotationFilter,
    ByIdentifier,
    ByGeneName,
    ByMappingType,
    Composite,
)

from .base import (
    AnnotationSource,
    InMemoryAnnotationSource,
)

from .ensembl import (
    EnsemblClient,
    EnsemblRestSource,
)

from .cache import ExonModelCache

__all__ = [
    # Records
    'IdType',
    'TranscriptRecord',

    # Filters
    'AnnotationFilter',
    'ByIdentifier',
    'ByGeneName',
    'ByMappingType',
    'Composite',

    # Sources
    'AnnotationSource',
    'InMemoryAnnotationSource',
    'EnsemblClient',
    'EnsemblRestSource',

    # Cache
    'ExonModelCache',
]
