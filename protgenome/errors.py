"""Error taxonomy for loading, resolution, selection and mapping.

Four kinds of problem are recoverable at the batch level and are recorded
as structured failures instead of being raised:

- LoadError: an input record does not match the protein it points to
- ResolutionError: an identifier is unknown to the annotation source
- SelectionError: no candidate transcript has a usable coding length
- MappingError: a range or protein does not fit the coding model

AnnotationIntegrityError is different: a structurally invalid exon model
(overlapping or non-monotonic segments) is a defect of the annotation source
and is raised for that annotation fetch.
"""

from enum import Enum


class ProtGenomeError(Exception):
    """Base class for all protgenome errors."""


class LoadError(ProtGenomeError, ValueError):
    """Malformed input record (e.g. peptide does not match protein sequence)."""


class ResolutionError(ProtGenomeError):
    """Identifier not found in the annotation source."""


class SelectionError(ProtGenomeError):
    """No candidate transcript has a valid coding length."""


class MappingError(ProtGenomeError):
    """Range outside the codable region, or protein/coding length mismatch."""


class AnnotationIntegrityError(ProtGenomeError, ValueError):
    """Exon model violates its structural invariants."""


class FailureKind(Enum):
    """Kinds of per-protein and per-range failure in batch results."""

    IDENTIFIER_NOT_FOUND = "identifier_not_found"
    NO_CANDIDATES = "no_candidates"
    NO_VALID_TRANSCRIPT = "no_valid_transcript"
    LENGTH_MISMATCH = "length_mismatch"
    RANGE_OUT_OF_BOUNDS = "range_out_of_bounds"
    INVALID_ANNOTATION = "invalid_annotation"

    @property
    def error_class(self) -> type:
        """Exception class of the taxonomy this failure belongs to."""
        return _ERROR_CLASSES[self]


_ERROR_CLASSES = {
    FailureKind.IDENTIFIER_NOT_FOUND: ResolutionError,
    FailureKind.NO_CANDIDATES: ResolutionError,
    FailureKind.NO_VALID_TRANSCRIPT: SelectionError,
    FailureKind.LENGTH_MISMATCH: MappingError,
    FailureKind.RANGE_OUT_OF_BOUNDS: MappingError,
    FailureKind.INVALID_ANNOTATION: AnnotationIntegrityError,
}
