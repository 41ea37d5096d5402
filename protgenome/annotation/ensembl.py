"""Ensembl REST annotation source.

Resolves identifiers through the Ensembl REST API (https://rest.ensembl.org):

- transcript ids: POST lookup/id (expand=1)
- protein ids: POST lookup/id on the translations, then their parent transcripts
- gene names: POST lookup/symbol/{species} (expand=1)
- UniProt accessions: GET xrefs/symbol/{species}/{accession}; translation
  hits are direct links, gene hits are expanded to their coding transcripts
  and marked indirect

Identifiers are sent in batches. A batch that times out or fails is logged
and its identifiers count as not found; the rest of the query proceeds.
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional

import requests

from ..config import AnnotationConfig
from ..constants import (
    ENSEMBL_STRANDS,
    MAPPING_TYPE_DIRECT,
    MAPPING_TYPE_INDIRECT,
    UNIPROT_EXTERNAL_DBS,
)
from .base import AnnotationSource
from .records import IdType, TranscriptRecord

logger = logging.getLogger(__name__)


def chunks(items: List[str], size: int) -> Iterator[List[str]]:
    """Split a list into consecutive batches of at most size items."""
    for i in range(0, len(items), size):
        yield items[i:i + size]


def _stable_id(identifier: str) -> str:
    """Strip the version suffix from Ensembl stable ids (ENST0001.4 -> ENST0001)."""
    if identifier.upper().startswith('ENS') and '.' in identifier:
        return identifier.split('.', 1)[0]
    return identifier


def _gene_name_from_display(display_name: str) -> str:
    """Gene symbol from a transcript display name ('BRAF-201' -> 'BRAF')."""
    head, sep, tail = display_name.rpartition('-')
    if sep and tail.isdigit():
        return head
    return display_name


class EnsemblClient:
    """Thin JSON client over a requests session.

    Failed requests (timeout, connection error, HTTP error, invalid JSON)
    return None after a warning.
    """

    def __init__(self, config: Optional[AnnotationConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or AnnotationConfig()
        self.session = session or requests.Session()
        self.session.headers.update({
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        })

    def _url(self, endpoint: str) -> str:
        return f"{self.config.server}/{endpoint.lstrip('/')}"

    def post(self, endpoint: str, payload: dict, params: Optional[dict] = None):
        try:
            response = self.session.post(
                self._url(endpoint), json=payload, params=params, timeout=self.config.timeout_s,
            )
            response.raise_for_status()
            return response.json()
        except requests.Timeout:
            logger.warning(f"Ensembl request timed out after {self.config.timeout_s}s: POST {endpoint}")
        except requests.RequestException as e:
            logger.warning(f"Ensembl request failed: POST {endpoint}: {e}")
        except ValueError as e:
            logger.warning(f"Invalid JSON from Ensembl: POST {endpoint}: {e}")
        return None

    def get(self, endpoint: str, params: Optional[dict] = None):
        try:
            response = self.session.get(
                self._url(endpoint), params=params, timeout=self.config.timeout_s,
            )
            response.raise_for_status()
            return response.json()
        except requests.Timeout:
            logger.warning(f"Ensembl request timed out after {self.config.timeout_s}s: GET {endpoint}")
        except requests.RequestException as e:
            logger.warning(f"Ensembl request failed: GET {endpoint}: {e}")
        except ValueError as e:
            logger.warning(f"Invalid JSON from Ensembl: GET {endpoint}: {e}")
        return None


class EnsemblRestSource(AnnotationSource):
    """Annotation source backed by the Ensembl REST API.

    Parameters
    ----------
    config : AnnotationConfig, optional
        Server, species, timeout and batch size (default: GRCh38, human)
    session : requests.Session, optional
        Session to reuse (e.g. with retries or a proxy configured)

    Examples
    --------
    >>> source = EnsemblRestSource(AnnotationConfig.for_assembly('GRCh38'))
    >>> records = source.query('transcript_id', ['ENST00000288602'])
    """

    def __init__(self, config: Optional[AnnotationConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or AnnotationConfig()
        self.client = EnsemblClient(self.config, session)

    @property
    def cache_key(self) -> str:
        return self.config.cache_key

    # =========================================================================
    # Batched REST calls
    # =========================================================================

    def _lookup_ids(self, ids: Iterable[str]) -> Dict[str, dict]:
        """POST lookup/id with expand=1; returns id -> object for found ids."""
        ids = list(dict.fromkeys(ids))
        found = {}
        for batch in chunks(ids, self.config.batch_size):
            data = self.client.post('lookup/id', {'ids': batch}, params={'expand': 1})
            if not data:
                continue
            found.update({k: v for k, v in data.items() if v})
        return found

    def _lookup_symbols(self, symbols: List[str]) -> Dict[str, dict]:
        found = {}
        endpoint = f"lookup/symbol/{self.config.species}"
        for batch in chunks(symbols, self.config.batch_size):
            data = self.client.post(endpoint, {'symbols': batch}, params={'expand': 1})
            if not data:
                continue
            found.update({k: v for k, v in data.items() if v})
        return found

    # =========================================================================
    # Record construction
    # =========================================================================

    def _record_from_transcript(
        self,
        obj: dict,
        gene_name: str = '',
        uniprot_ids: tuple = (),
        mapping_type: str = MAPPING_TYPE_DIRECT,
    ) -> TranscriptRecord:
        translation = obj.get('Translation') or {}
        exons = tuple(sorted((int(e['start']), int(e['end'])) for e in obj.get('Exon', [])))

        if not gene_name:
            gene_name = _gene_name_from_display(obj.get('display_name') or '')

        return TranscriptRecord(
            transcript_id=obj['id'],
            chromosome=str(obj['seq_region_name']),
            strand=ENSEMBL_STRANDS.get(obj.get('strand'), str(obj.get('strand'))),
            exons=exons,
            coding_start=translation.get('start'),
            coding_end=translation.get('end'),
            protein_id=translation.get('id', ''),
            gene_id=obj.get('Parent', ''),
            gene_name=gene_name,
            biotype=obj.get('biotype', ''),
            uniprot_ids=uniprot_ids,
            mapping_type=mapping_type,
        )

    def _records_from_gene(self, gene: dict, uniprot_ids: tuple = (), mapping_type: str = MAPPING_TYPE_DIRECT):
        gene_name = gene.get('display_name') or ''
        return [
            self._record_from_transcript(t, gene_name, uniprot_ids, mapping_type)
            for t in gene.get('Transcript', [])
        ]

    # =========================================================================
    # Lookups per identifier type
    # =========================================================================

    def _lookup(self, id_type: IdType, identifiers: List[str]) -> Dict[str, List[TranscriptRecord]]:
        if not identifiers:
            return {}
        if id_type is IdType.TRANSCRIPT_ID:
            return self._by_transcript_id(identifiers)
        if id_type is IdType.PROTEIN_ID:
            return self._by_protein_id(identifiers)
        if id_type is IdType.GENE_NAME:
            return self._by_gene_name(identifiers)
        return self._by_uniprot_id(identifiers)

    def _by_transcript_id(self, identifiers: List[str]) -> Dict[str, List[TranscriptRecord]]:
        found = self._lookup_ids(_stable_id(i) for i in identifiers)
        results = {}
        for identifier in identifiers:
            obj = found.get(_stable_id(identifier))
            if obj is not None and obj.get('object_type', 'Transcript') == 'Transcript':
                results[identifier] = [self._record_from_transcript(obj)]
        return results

    def _transcripts_of_translations(self, translation_ids: Iterable[str]) -> Dict[str, dict]:
        """Translation id -> expanded parent transcript object."""
        translations = self._lookup_ids(translation_ids)
        parents = {tid: obj['Parent'] for tid, obj in translations.items() if obj.get('Parent')}
        transcripts = self._lookup_ids(parents.values())
        return {
            tid: transcripts[parent]
            for tid, parent in parents.items()
            if parent in transcripts
        }

    def _by_protein_id(self, identifiers: List[str]) -> Dict[str, List[TranscriptRecord]]:
        transcripts = self._transcripts_of_translations(_stable_id(i) for i in identifiers)
        results = {}
        for identifier in identifiers:
            obj = transcripts.get(_stable_id(identifier))
            if obj is not None:
                results[identifier] = [self._record_from_transcript(obj)]
        return results

    def _by_gene_name(self, identifiers: List[str]) -> Dict[str, List[TranscriptRecord]]:
        genes = self._lookup_symbols(identifiers)
        return {
            identifier: self._records_from_gene(genes[identifier])
            for identifier in identifiers
            if identifier in genes
        }

    def _by_uniprot_id(self, identifiers: List[str]) -> Dict[str, List[TranscriptRecord]]:
        endpoint = f"xrefs/symbol/{self.config.species}"

        # accession -> (translation ids, gene ids)
        hits = {}
        for accession in identifiers:
            translation_ids, gene_ids = [], []
            for external_db in UNIPROT_EXTERNAL_DBS:
                data = self.client.get(
                    f"{endpoint}/{accession}", params={'external_db': external_db},
                )
                for xref in data or []:
                    if xref.get('type') == 'translation':
                        translation_ids.append(xref['id'])
                    elif xref.get('type') == 'gene':
                        gene_ids.append(xref['id'])
            if translation_ids or gene_ids:
                hits[accession] = (translation_ids, gene_ids)

        all_translations = [t for tr, _ in hits.values() for t in tr]
        all_genes = [g for _, gn in hits.values() for g in gn]
        transcripts = self._transcripts_of_translations(all_translations)
        genes = self._lookup_ids(all_genes)

        results = {}
        for accession, (translation_ids, gene_ids) in hits.items():
            records = {}
            for tid in translation_ids:
                if tid in transcripts:
                    record = self._record_from_transcript(transcripts[tid], uniprot_ids=(accession,))
                    records[record.transcript_id] = record
            for gid in gene_ids:
                if gid not in genes:
                    continue
                for record in self._records_from_gene(genes[gid], (accession,), MAPPING_TYPE_INDIRECT):
                    records.setdefault(record.transcript_id, record)
            if records:
                results[accession] = list(records.values())

        return results
