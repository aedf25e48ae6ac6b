"""Tests for identifier reading and frequency aggregation."""

import polars as pl
import pytest

from annotation_pipeline.annotations.reader import read_identifier_table
from annotation_pipeline.frequency import count_identifiers


@pytest.fixture
def kegg_file(tmp_path):
    path = tmp_path / "Kegg_biotic.txt"
    path.write_text(
        "Kegg_id\tsample\n"
        "K00001\ts1\n"
        "K00002\ts1\n"
        "K00001\ts2\n"
        "k00001\ts3\n"
        "K00003\ts3\n"
        "K00002\ts4\n"
        "K00001\ts4\n"
    )
    return path


def test_read_identifier_table(kegg_file):
    """Identifier column is read as strings in file order, blank rows dropped."""
    df = read_identifier_table(kegg_file, "Kegg_id")

    assert df.columns == ["Kegg_id"]
    assert df.schema["Kegg_id"] == pl.Utf8
    assert df["Kegg_id"].to_list() == [
        "K00001", "K00002", "K00001", "k00001", "K00003", "K00002", "K00001",
    ]


def test_read_identifier_table_keeps_leading_zeros(tmp_path):
    path = tmp_path / "ids.txt"
    path.write_text("Kegg_id\n00123\n00123\n")

    df = read_identifier_table(path, "Kegg_id")

    assert df["Kegg_id"].to_list() == ["00123", "00123"]


def test_read_identifier_table_custom_separator(tmp_path):
    path = tmp_path / "go.csv"
    path.write_text("gene,GO_id\ng1,GO:0006412\ng2,GO:0005737\n")

    df = read_identifier_table(path, "GO_id", separator=",")

    assert df["GO_id"].to_list() == ["GO:0006412", "GO:0005737"]


def test_read_identifier_table_space_aligned(tmp_path):
    """Runs of spaces and tabs separate fields; identifiers keep their case."""
    path = tmp_path / "GO_biotic.txt"
    path.write_text(
        "GO_id   gene\n"
        "GO:0006412 g1\n"
        "GO:0006412   g2\n"
        "go:0005737\t \tg3\n"
    )

    df = read_identifier_table(path, "GO_id")

    assert df["GO_id"].to_list() == ["GO:0006412", "GO:0006412", "go:0005737"]


def test_read_identifier_table_fixed_tab_separator(kegg_file):
    df = read_identifier_table(kegg_file, "Kegg_id", separator="\t")

    assert df.height == 7


def test_read_identifier_table_ragged_record(tmp_path):
    path = tmp_path / "GO_biotic.txt"
    path.write_text("GO_id gene\nGO:0006412 g1\nGO:0005737\n")

    with pytest.raises(ValueError, match="record 2 has 1 fields"):
        read_identifier_table(path, "GO_id")


def test_read_identifier_table_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_identifier_table(tmp_path / "missing.txt", "Kegg_id")


def test_read_identifier_table_missing_column(kegg_file):
    with pytest.raises(ValueError, match="GO_id"):
        read_identifier_table(kegg_file, "GO_id")


def test_count_identifiers_example():
    """Worked example: K00001 x3, K00002 x2, K00003 x1."""
    df = pl.DataFrame({"Kegg_id": ["K00001", "K00002", "K00001", "K00003", "K00002", "K00001"]})

    counts = count_identifiers(df, "Kegg_id")

    assert counts.columns == ["Kegg_id", "Count"]
    assert counts.rows() == [("K00001", 3), ("K00002", 2), ("K00003", 1)]


def test_count_identifiers_properties(kegg_file):
    """Counts sum to the row count; identifiers are distinct; descending order."""
    df = read_identifier_table(kegg_file, "Kegg_id")

    counts = count_identifiers(df, "Kegg_id")

    assert counts["Count"].sum() == df.height
    assert counts["Kegg_id"].n_unique() == counts.height
    assert counts["Count"].to_list() == sorted(counts["Count"].to_list(), reverse=True)
    assert counts.schema["Count"] == pl.Int64


def test_count_identifiers_case_sensitive(kegg_file):
    df = read_identifier_table(kegg_file, "Kegg_id")

    counts = count_identifiers(df, "Kegg_id")
    by_id = dict(counts.rows())

    assert by_id["K00001"] == 3
    assert by_id["k00001"] == 1


def test_count_identifiers_ties_keep_first_seen_order():
    df = pl.DataFrame({"GO_id": ["GO:3", "GO:1", "GO:2", "GO:1", "GO:2", "GO:3"]})

    counts = count_identifiers(df, "GO_id")

    assert counts["GO_id"].to_list() == ["GO:3", "GO:1", "GO:2"]
    assert counts["Count"].to_list() == [2, 2, 2]


def test_count_identifiers_empty():
    df = pl.DataFrame({"Kegg_id": []}, schema={"Kegg_id": pl.Utf8})

    counts = count_identifiers(df, "Kegg_id")

    assert counts.height == 0
    assert counts.columns == ["Kegg_id", "Count"]


def test_read_identifier_table_drops_blank_lines(tmp_path):
    path = tmp_path / "GO_biotic.txt"
    path.write_text("GO_id\nGO:0006412\n\nGO:0005737\n")

    df = read_identifier_table(path, "GO_id")

    assert df["GO_id"].to_list() == ["GO:0006412", "GO:0005737"]
