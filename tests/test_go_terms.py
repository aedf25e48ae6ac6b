"""Tests for GO term resolution and annotation of frequency tables."""

from unittest.mock import Mock

import polars as pl
import pytest

from annotation_pipeline.annotations import (
    GOTermDatabaseUnavailable,
    GOTermResolver,
    annotate_go_terms,
    ensure_obo_file,
    ontology_counts,
)
from annotation_pipeline.config.schema import GOSettings

MINIMAL_OBO = """format-version: 1.2
data-version: releases/2024-01-17
ontology: go

[Term]
id: GO:0008150
name: biological_process
namespace: biological_process

[Term]
id: GO:0006412
name: translation
namespace: biological_process

[Term]
id: GO:0005737
name: cytoplasm
namespace: cellular_component

[Term]
id: GO:0003735
name: structural constituent of ribosome
namespace: molecular_function

[Term]
id: GO:0000001
name: obsolete mitochondrion inheritance
namespace: biological_process
is_obsolete: true
"""


@pytest.fixture
def obo_file(tmp_path):
    path = tmp_path / "go-basic.obo"
    path.write_text(MINIMAL_OBO)
    return path


@pytest.fixture
def resolver(obo_file):
    return GOTermResolver.from_obo(obo_file)


@pytest.fixture
def go_counts():
    return pl.DataFrame({
        "GO_id": ["GO:0006412", "GO:9999999", "GO:0005737", "GO:0003735", "GO:0000001"],
        "Count": [12, 9, 7, 7, 2],
    })


def test_lookup_known_term(resolver):
    term = resolver.lookup("GO:0006412")

    assert term.description == "translation"
    assert term.ontology == "BP"
    assert term.is_resolved


def test_lookup_unknown_term_falls_back_to_id(resolver):
    term = resolver.lookup("GO:9999999")

    assert term.description == "GO:9999999"
    assert term.ontology is None
    assert not term.is_resolved


def test_lookup_obsolete_term_unresolved(resolver):
    assert resolver.lookup("GO:0000001").ontology is None


def test_annotate_go_terms_drops_unresolved(resolver, go_counts):
    annotated = annotate_go_terms(go_counts, resolver)

    assert annotated.columns == ["GO_id", "Count", "Description", "Ontology", "Ontology_full"]
    assert annotated["GO_id"].to_list() == ["GO:0006412", "GO:0005737", "GO:0003735"]
    assert annotated["Ontology"].to_list() == ["BP", "CC", "MF"]
    assert annotated["Ontology_full"].to_list() == [
        "Biological process",
        "Cellular component",
        "Molecular function",
    ]
    assert annotated["Count"].to_list() == [12, 7, 7]


def test_ontology_counts_include_zero(resolver, go_counts):
    annotated = annotate_go_terms(go_counts.filter(pl.col("GO_id") != "GO:0003735"), resolver)

    assert ontology_counts(annotated) == {"BP": 1, "CC": 1, "MF": 0}


def test_from_obo_missing_file(tmp_path):
    with pytest.raises(GOTermDatabaseUnavailable):
        GOTermResolver.from_obo(tmp_path / "missing.obo")


def test_ensure_obo_file_existing(obo_file):
    settings = GOSettings(obo_path=obo_file, auto_download=False)

    assert ensure_obo_file(settings) == obo_file


def test_ensure_obo_file_download_disabled(tmp_path):
    settings = GOSettings(obo_path=tmp_path / "go-basic.obo", auto_download=False)

    with pytest.raises(GOTermDatabaseUnavailable, match="download is disabled"):
        ensure_obo_file(settings, http=Mock())


def test_ensure_obo_file_downloads(tmp_path):
    target = tmp_path / "data" / "go-basic.obo"
    settings = GOSettings(obo_path=target, obo_url="https://example.org/go-basic.obo")
    http = Mock()

    assert ensure_obo_file(settings, http) == target
    http.download.assert_called_once_with("https://example.org/go-basic.obo", target)


def test_ensure_obo_file_download_failure(tmp_path):
    settings = GOSettings(obo_path=tmp_path / "go-basic.obo")
    http = Mock()
    http.download.side_effect = ConnectionError("offline")

    with pytest.raises(GOTermDatabaseUnavailable, match="offline"):
        ensure_obo_file(settings, http)
