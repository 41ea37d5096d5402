"""Pytest configuration for protgenome tests.

This module provides common fixtures for all tests. Fixtures are built by
the explicit functions of protgenome.datasets, so every test gets fresh,
independent objects.
"""

import pytest

from protgenome.datasets import (
    make_example_annotation,
    make_example_genome,
    make_example_proteins,
    make_example_records,
)
from protgenome.exons import CodingSegment, ExonModel


@pytest.fixture
def plus_model():
    """Two coding segments on the plus strand: [100, 115] and [200, 213]."""
    return ExonModel.from_segments("TX1", [
        CodingSegment("chr1", 100, 115, "+"),
        CodingSegment("chr1", 200, 213, "+"),
    ])


@pytest.fixture
def minus_model():
    """Mirror image of plus_model (x -> 314 - x) on the minus strand."""
    return ExonModel.from_segments("TX1", [
        CodingSegment("chr1", 101, 114, "-"),
        CodingSegment("chr1", 199, 214, "-"),
    ])


@pytest.fixture
def example_proteins():
    """Example proteins with their tryptic peptides as pranges."""
    return make_example_proteins()


@pytest.fixture
def example_annotation():
    """In-memory annotation source of the example proteins."""
    return make_example_annotation()


@pytest.fixture
def example_genome():
    """In-memory genome holding the example transcripts."""
    return make_example_genome()


@pytest.fixture
def example_records():
    """Transcript records of the example proteins, by transcript id."""
    _, records = make_example_records()
    return {r.transcript_id: r for r in records}
