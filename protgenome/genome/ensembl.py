"""Genome sequence from the Ensembl REST API."""

import logging
from typing import Optional

import requests

from ..config import AnnotationConfig
from ..constants import MINUS_STRAND, VALID_STRANDS

logger = logging.getLogger(__name__)


class EnsemblSequenceSource:
    """Fetch genomic sequence through GET sequence/region/{species}/{region}.

    Unlike annotation lookups, sequence requests are not batched and their
    errors (timeouts, HTTP errors) propagate to the caller.

    Parameters
    ----------
    config : AnnotationConfig, optional
        Server, species and timeout (default: GRCh38, human)
    session : requests.Session, optional
        Session to reuse
    """

    def __init__(self, config: Optional[AnnotationConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or AnnotationConfig()
        self.session = session or requests.Session()

    def fetch(self, chromosome: str, start: int, end: int, strand: str = '+') -> str:
        """Sequence of a 1-based inclusive interval, reverse-complemented on '-'."""
        if strand not in VALID_STRANDS:
            raise ValueError(f"Invalid strand: {strand!r}")
        if start < 1 or end < start:
            raise ValueError(f"Invalid interval {chromosome}:{start}-{end}")

        # Ensembl region names carry no 'chr' prefix
        if chromosome.lower().startswith('chr'):
            chromosome = chromosome[3:]
        strand_code = -1 if strand == MINUS_STRAND else 1
        region = f"{chromosome}:{start}..{end}:{strand_code}"

        response = self.session.get(
            f"{self.config.server}/sequence/region/{self.config.species}/{region}",
            headers={'Content-Type': 'text/plain'},
            timeout=self.config.timeout_s,
        )
        response.raise_for_status()

        logger.debug(f"Fetched {region} ({end - start + 1} nt)")
        return response.text.strip().upper()
