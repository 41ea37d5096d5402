"""Cache of exon models across annotation queries.

Models are keyed by (source cache key, transcript id). The source key names
the endpoint and release, so a model fetched from one annotation release
never answers a request made against another.
"""

import logging
from collections import OrderedDict
from typing import Optional, Tuple

from ..exons import ExonModel
from .records import TranscriptRecord

logger = logging.getLogger(__name__)


class ExonModelCache:
    """Least-recently-used cache of ExonModels.

    Parameters
    ----------
    max_size : int, optional
        Maximum number of models kept (default: unbounded)
    """

    def __init__(self, max_size: Optional[int] = None):
        if max_size is not None and max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        self.max_size = max_size
        self._models: 'OrderedDict[Tuple[str, str], ExonModel]' = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get_or_build(self, source_key: str, record: TranscriptRecord) -> ExonModel:
        """Return the cached model for a record, building it on a miss.

        Raises
        ------
        AnnotationIntegrityError
            If the record cannot form a valid model (nothing is cached).
        """
        key = (source_key, record.transcript_id)

        if key in self._models:
            self.hits += 1
            self._models.move_to_end(key)
            return self._models[key]

        self.misses += 1
        model = record.to_exon_model()
        self._models[key] = model

        if self.max_size is not None and len(self._models) > self.max_size:
            evicted, _ = self._models.popitem(last=False)
            logger.debug(f"Evicted exon model {evicted[1]} from cache")

        return model

    def clear(self) -> None:
        self._models.clear()
        self.hits = 0
        self.misses = 0

    def __contains__(self, key: Tuple[str, str]) -> bool:
        return key in self._models

    def __len__(self) -> int:
        return len(self._models)
