"""Synthetic proteins, transcripts and genomes for tests and examples.

Everything here is built by explicit functions; nothing is loaded at
import time. Synthetic transcripts are consistent by construction: the
protein is reverse-translated into a coding sequence, split over exons,
interleaved with introns and UTRs and placed on a chromosome, so mapped
ranges translate back to the protein.

Examples
--------
>>> genome_seq, record = build_synthetic_transcript("TX1", "MKPEPTIDE", [10, 20])
>>> model = record.to_exon_model()
>>> model.coding_length
30
"""

from dataclasses import replace
from typing import Dict, Sequence, Tuple

from Bio.Data import CodonTable
from Bio.Seq import reverse_complement

from .annotation import InMemoryAnnotationSource, TranscriptRecord
from .constants import CODON_LENGTH, MINUS_STRAND, PLUS_STRAND, STANDARD_CODON_TABLE
from .exons import CodingSegment, ExonModel
from .genome import InMemoryGenome
from .proteins import ProteinsCollection


# =============================================================================
# Example Data
# =============================================================================

EXAMPLE_PROTEINS = {
    'PROT_PLUS': 'MAEGKPEPTIDERLLSTVAWHNQYFCKDMR',
    'PROT_MINUS': 'MSDLKWAGHEVTRPQNIYCFGK',
}

# accession -> (transcript id, chromosome, strand, coding nt per exon before the last)
EXAMPLE_TRANSCRIPTS = {
    'PROT_PLUS': ('TX_PLUS_1', '1', PLUS_STRAND, (20, 31)),
    'PROT_MINUS': ('TX_MINUS_1', '2', MINUS_STRAND, (17, 25)),
}

EXAMPLE_GENES = {
    'PROT_PLUS': ('GENEA', 'P00001'),
    'PROT_MINUS': ('GENEB', 'P00002'),
}


# =============================================================================
# Sequence Construction
# =============================================================================

def reverse_translate(
    protein_sequence: str,
    table: int = STANDARD_CODON_TABLE,
    add_stop: bool = True,
) -> str:
    """One coding sequence for a protein (Biopython back table codons).

    Parameters
    ----------
    protein_sequence : str
        Amino acids (standard one-letter codes)
    table : int
        NCBI translation table
    add_stop : bool
        Append the table's first stop codon

    Returns
    -------
    str
        Nucleotide sequence of length 3 * len(protein) (+3 with stop)
    """
    codon_table = CodonTable.unambiguous_dna_by_id[table]
    back_table = codon_table.back_table
    try:
        codons = [back_table[aa] for aa in protein_sequence.upper()]
    except KeyError as e:
        raise ValueError(f"Cannot reverse-translate residue {e}") from None
    if add_stop:
        codons.append(codon_table.stop_codons[0])
    return ''.join(codons)


def _intron(length: int) -> str:
    if length >= 4:
        return 'GT' + 'A' * (length - 4) + 'AG'
    return 'A' * length


def build_synthetic_transcript(
    transcript_id: str,
    protein_sequence: str,
    cds_lengths: Sequence[int],
    chromosome: str = '1',
    strand: str = PLUS_STRAND,
    start: int = 101,
    intron_length: int = 50,
    utr5_length: int = 10,
    utr3_length: int = 10,
    flank_length: int = 100,
    **record_fields,
) -> Tuple[str, TranscriptRecord]:
    """Place a reverse-translated protein on a synthetic chromosome.

    Parameters
    ----------
    transcript_id : str
        Transcript identifier
    protein_sequence : str
        Encoded protein; the coding sequence includes a stop codon
    cds_lengths : Sequence[int]
        Coding nucleotides per exon, 5'->3'. The last exon receives the
        remaining coding nucleotides if the lengths do not add up.
    chromosome : str
        Chromosome name of the record
    strand : str
        '+' or '-'
    start : int
        1-based genomic position of the first transcript nucleotide
        (lowest coordinate on either strand)
    intron_length, utr5_length, utr3_length : int
        Non-coding lengths
    flank_length : int
        'N' padding after the locus
    **record_fields
        Extra TranscriptRecord fields (protein_id, gene_name, uniprot_ids...)

    Returns
    -------
    chromosome_sequence : str
        Whole chromosome (plus strand), 'N' outside the locus
    record : TranscriptRecord
        Annotation of the transcript
    """
    coding = reverse_translate(protein_sequence)
    lengths = list(cds_lengths)
    remaining = len(coding) - sum(lengths)
    if remaining < 0 or any(n <= 0 for n in lengths):
        raise ValueError(f"cds_lengths {lengths} do not fit {len(coding)} coding nt")
    if remaining > 0:
        lengths.append(remaining)

    # Sense-strand locus: exons interleaved with introns
    pieces = []
    exon_intervals = []
    offset = 0
    position = 0
    for i, n in enumerate(lengths):
        exon = coding[offset:offset + n]
        offset += n
        if i == 0:
            exon = 'C' * utr5_length + exon
        if i == len(lengths) - 1:
            exon = exon + 'C' * utr3_length
        if i > 0:
            pieces.append(_intron(intron_length))
            position += intron_length
        pieces.append(exon)
        exon_intervals.append((position, position + len(exon)))
        position += len(exon)

    sense = ''.join(pieces)
    locus_length = len(sense)

    # 0-based inclusive sense positions of the first and last coding nucleotide
    coding_first = exon_intervals[0][0] + utr5_length
    coding_last = exon_intervals[-1][1] - utr3_length - 1

    if strand == MINUS_STRAND:
        locus = reverse_complement(sense)
        last = start + locus_length - 1
        exons = tuple(sorted((last - (b - 1), last - a) for a, b in exon_intervals))
        coding_start, coding_end = last - coding_last, last - coding_first
    else:
        locus = sense
        exons = tuple((start + a, start + b - 1) for a, b in exon_intervals)
        coding_start, coding_end = start + coding_first, start + coding_last

    chromosome_sequence = 'N' * (start - 1) + locus + 'N' * flank_length

    record = TranscriptRecord(
        transcript_id=transcript_id,
        chromosome=chromosome,
        strand=strand,
        exons=exons,
        coding_start=coding_start,
        coding_end=coding_end,
        biotype='protein_coding',
        **record_fields,
    )
    return chromosome_sequence, record


def make_coding_model(
    transcript_id: str,
    coding_length: int,
    chromosome: str = '1',
    strand: str = PLUS_STRAND,
    start: int = 1000,
) -> ExonModel:
    """Single-segment model with a given coding length."""
    return ExonModel(transcript_id, (
        CodingSegment(chromosome, start, start + coding_length - 1, strand),
    ))


def make_split_model(
    transcript_id: str,
    widths: Sequence[int],
    chromosome: str = '1',
    strand: str = PLUS_STRAND,
    start: int = 100,
    gap: int = 84,
) -> ExonModel:
    """Coding model with one segment per width, separated by gaps."""
    segments = []
    position = start
    for width in widths:
        segments.append(CodingSegment(chromosome, position, position + width - 1, strand))
        position += width + gap
    return ExonModel(transcript_id, tuple(segments))


# =============================================================================
# Example Collection, Annotation and Genome
# =============================================================================

def make_example_records() -> Tuple[Dict[str, str], list]:
    """Chromosome sequences and transcript records of the example proteins.

    Besides one coding transcript per protein, GENEA has a second
    transcript whose coding length is not a multiple of three, and GENEB
    a non-coding transcript.
    """
    chromosomes = {}
    records = []

    for accession, (transcript_id, chromosome, strand, cds_lengths) in EXAMPLE_TRANSCRIPTS.items():
        gene_name, uniprot_id = EXAMPLE_GENES[accession]
        sequence, record = build_synthetic_transcript(
            transcript_id, EXAMPLE_PROTEINS[accession], cds_lengths,
            chromosome=chromosome, strand=strand,
            protein_id=accession, gene_id=f"{gene_name}_ID",
            gene_name=gene_name, uniprot_ids=(uniprot_id,),
        )
        chromosomes[chromosome] = sequence
        records.append(record)

    plus_record = records[0]
    records.append(replace(
        plus_record,
        transcript_id='TX_PLUS_2',
        protein_id='',
        coding_end=plus_record.coding_end - 1,
    ))

    minus_record = records[1]
    records.append(replace(
        minus_record,
        transcript_id='TX_MINUS_NC',
        protein_id='',
        coding_start=None,
        coding_end=None,
        biotype='retained_intron',
    ))

    return chromosomes, records


def make_example_proteins(enzyme: str = 'trypsin') -> ProteinsCollection:
    """Example proteins with their cleavage products as pranges."""
    metadata = {
        accession: {'gene_name': gene_name, 'uniprot_id': uniprot_id}
        for accession, (gene_name, uniprot_id) in EXAMPLE_GENES.items()
    }
    proteins = ProteinsCollection.from_sequences(EXAMPLE_PROTEINS, metadata)
    return proteins.cleave(enzyme)


def make_example_annotation() -> InMemoryAnnotationSource:
    _, records = make_example_records()
    return InMemoryAnnotationSource(records, version='example')


def make_example_genome() -> InMemoryGenome:
    chromosomes, _ = make_example_records()
    return InMemoryGenome(chromosomes)


def coding_nt_length(protein_sequence: str, with_stop: bool = True) -> int:
    """Coding nucleotides of a protein, with or without stop codon."""
    return (len(protein_sequence) + int(with_stop)) * CODON_LENGTH
