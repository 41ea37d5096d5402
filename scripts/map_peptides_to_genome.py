#!/usr/bin/env python
"""Map identified peptides onto genomic coordinates.

This script:
1. Loads protein sequences from a FASTA file
2. Attaches peptide ranges from a PSM table (or in-silico cleavage)
3. Resolves each protein through the Ensembl REST API
4. Maps every peptide onto the genome, junction-aware
5. Writes one row per genomic range (or per failure) as TSV

Usage:
    python scripts/map_peptides_to_genome.py proteins.fasta --psms psms.tsv \\
        --id-type uniprot_id --assembly GRCh38 --output peptides_genomic.tsv
"""

import argparse
import logging
import sys
from pathlib import Path

from protgenome import AnnotationConfig, ProteinsCollection
from protgenome.annotation import ByMappingType, EnsemblRestSource, IdType
from protgenome.constants import CLEAVAGE_RULES, ENSEMBL_SERVERS
from protgenome.database import load_psms
from protgenome.genome import FastaGenome

logger = logging.getLogger(__name__)

OUTPUT_COLUMNS = [
    'protein_id', 'transcript_id', 'group_id', 'pep_start', 'pep_end', 'peptide',
    'status', 'chromosome', 'start', 'end', 'strand', 'ordinal', 'message',
]


def main():
    parser = argparse.ArgumentParser(description='Map peptides to genomic coordinates')
    parser.add_argument('fasta', type=Path, help='Protein FASTA file')
    parser.add_argument('--psms', type=Path, default=None,
                        help='PSM table (tab-separated); if omitted, proteins are cleaved in silico')
    parser.add_argument('--enzyme', default='trypsin', choices=sorted(CLEAVAGE_RULES),
                        help='Enzyme for in-silico cleavage')
    parser.add_argument('--missed-cleavages', type=int, default=0)
    parser.add_argument('--id-type', default='uniprot_id', choices=[t.value for t in IdType],
                        help='Type of the protein identifiers')
    parser.add_argument('--id-column', default=None,
                        help='Protein metadata column holding the identifier (default: accession)')
    parser.add_argument('--assembly', default=None, choices=sorted(ENSEMBL_SERVERS),
                        help='Genome assembly (default: PROTGENOME_ASSEMBLY, else GRCh38)')
    parser.add_argument('--direct-only', action='store_true',
                        help='Only use transcripts directly linked to the identifier')
    parser.add_argument('--genome', type=Path, default=None,
                        help='Genome FASTA used to break ties between transcripts')
    parser.add_argument('--output', type=Path, default=Path('peptides_genomic.tsv'))
    parser.add_argument('--verbose', action='store_true', help='Debug logging')
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    proteins = ProteinsCollection.from_fasta(args.fasta)

    if args.psms is not None:
        psms, load_report = load_psms(args.psms)
        attach_report = proteins.add_identifications(psms)
        for idx, error in (load_report.errors + attach_report.errors)[:20]:
            logger.warning(f"Rejected record {idx}: {error}")
    else:
        proteins = proteins.cleave(args.enzyme, args.missed_cleavages)

    config = AnnotationConfig.from_env(assembly=args.assembly)
    source = EnsemblRestSource(config)

    annotation_filter = ByMappingType('direct') if args.direct_only else None
    genome = FastaGenome(args.genome) if args.genome is not None else None

    batch = proteins.map_all(
        source,
        args.id_type,
        annotation_filter=annotation_filter,
        id_column=args.id_column,
        verifier_genome=genome,
    )

    report = batch.to_dataframe(columns=OUTPUT_COLUMNS)
    report.to_csv(args.output, sep='\t', index=False)
    print(batch.format_summary())
    print(f"Results written to {args.output}")

    return 0 if batch.mapped else 1


if __name__ == '__main__':
    sys.exit(main())
