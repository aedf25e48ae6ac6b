"""Integration tests for the CLI commands using CliRunner.

Tests:
- top-level --help and info
- frequency: tables, GO annotation, GO chart, missing OBO file, --skip-go-annotation
- enrich: results table and all charts, no-enrichment report, KEGG errors,
  missing input file
"""

import json
from unittest.mock import Mock, patch

import polars as pl
import pytest
import requests
from click.testing import CliRunner

from annotation_pipeline.cli.main import cli

MINIMAL_OBO = """format-version: 1.2
ontology: go

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
"""

KEGG_CHARTS = [
    "KEGG_dotplot",
    "KEGG_barplot",
    "KEGG_horizontal_barplot",
    "KEGG_enrichment_map",
    "KEGG_cnetplot",
]


def _ko(i):
    return f"K{i:05d}"


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / "results"


@pytest.fixture
def kegg_file(tmp_path):
    """52 distinct KEGG ids (K00000-K00051), a few of them repeated."""
    path = tmp_path / "Kegg_biotic.txt"
    ids = [_ko(i) for i in range(52)] + [_ko(0), _ko(1), _ko(0)]
    path.write_text("Kegg_id\n" + "\n".join(ids) + "\n")
    return path


@pytest.fixture
def go_file(tmp_path):
    path = tmp_path / "GO_biotic.txt"
    ids = ["GO:0006412"] * 3 + ["GO:0005737"] * 2 + ["GO:0003735", "GO:9999999"]
    path.write_text("GO_id\n" + "\n".join(ids) + "\n")
    return path


@pytest.fixture
def obo_file(tmp_path):
    path = tmp_path / "go-basic.obo"
    path.write_text(MINIMAL_OBO)
    return path


@pytest.fixture
def test_config(tmp_path, output_dir, kegg_file, go_file, obo_file):
    """Create minimal config YAML for testing."""
    config_path = tmp_path / "test_config.yaml"
    config_path.write_text(f"""
output_dir: {output_dir}
cache_dir: {tmp_path / "cache"}

inputs:
  kegg_file: {kegg_file}
  go_file: {go_file}

enrichment:
  organism: ko
  pvalue_cutoff: 0.05
  qvalue_cutoff: 0.2
  p_adjust_method: BH

plots:
  dpi: 72

go:
  obo_path: {obo_file}
  auto_download: false
""")
    return config_path


@pytest.fixture
def fake_kegg_client():
    """KEGG client over 300 orthologs.

    Six overlapping pathways ko00000-ko00005 of 12 orthologs each cover
    K00000-K00051; ko09999 holds the remaining 248.
    """
    rows = []
    for p in range(6):
        rows.extend((f"ko{p:05d}", _ko(g)) for g in range(p * 8, p * 8 + 12))
    rows.extend(("ko09999", _ko(g)) for g in range(52, 300))

    client = Mock()
    client.pathway_links.return_value = pl.DataFrame(
        rows, schema=["pathway_id", "gene_id"], orient="row"
    )
    client.pathway_names.return_value = pl.DataFrame({
        "pathway_id": [f"ko{p:05d}" for p in range(6)] + ["ko09999"],
        "description": [f"Synthetic pathway {p}" for p in range(6)] + ["Background pathway"],
    })
    return client


def _invoke(config_path, *args):
    runner = CliRunner()
    return runner.invoke(cli, ["--config", str(config_path), *args])


def test_cli_help():
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "frequency" in result.output
    assert "enrich" in result.output
    assert "info" in result.output


def test_enrich_help():
    runner = CliRunner()
    result = runner.invoke(cli, ["enrich", "--help"])

    assert result.exit_code == 0
    assert "--pvalue-cutoff" in result.output
    assert "--qvalue-cutoff" in result.output
    assert "--skip-viz" in result.output


def test_info_command(test_config):
    result = _invoke(test_config, "info")

    assert result.exit_code == 0
    assert "Config Hash" in result.output
    assert "Organism:" in result.output


# Frequency command

def test_frequency_writes_tables_and_chart(test_config, output_dir):
    result = _invoke(test_config, "frequency")

    assert result.exit_code == 0, result.output
    assert "Frequency analysis complete" in result.output

    kegg = pl.read_csv(output_dir / "KEGG_ID_frequency.csv")
    assert kegg.columns == ["Kegg_id", "Count"]
    assert kegg.row(0) == ("K00000", 3)
    assert kegg["Count"].sum() == 55

    go = pl.read_csv(output_dir / "GO_term_frequency.csv")
    assert go.height == 4

    annotated = pl.read_csv(output_dir / "GO_term_frequency_annotated.csv")
    assert "GO:9999999" not in annotated["GO_id"].to_list()
    assert set(annotated["Ontology"].to_list()) == {"BP", "CC", "MF"}

    assert (output_dir / "GO_functional_analysis.pdf").exists()
    assert (output_dir / "GO_functional_analysis.png").exists()
    assert (output_dir / "frequency.provenance.json").exists()


def test_frequency_without_obo_file(test_config, output_dir, obo_file):
    obo_file.unlink()

    result = _invoke(test_config, "frequency")

    assert result.exit_code == 0, result.output
    assert "GO terminology database not available" in result.output
    assert (output_dir / "KEGG_ID_frequency.csv").exists()
    assert (output_dir / "GO_term_frequency.csv").exists()
    assert not (output_dir / "GO_term_frequency_annotated.csv").exists()
    assert not (output_dir / "GO_functional_analysis.png").exists()


def test_frequency_skip_go_annotation(test_config, output_dir):
    result = _invoke(test_config, "frequency", "--skip-go-annotation")

    assert result.exit_code == 0, result.output
    assert not (output_dir / "GO_term_frequency_annotated.csv").exists()


def test_frequency_skip_viz(test_config, output_dir):
    result = _invoke(test_config, "frequency", "--skip-viz")

    assert result.exit_code == 0, result.output
    assert (output_dir / "GO_term_frequency_annotated.csv").exists()
    assert not (output_dir / "GO_functional_analysis.png").exists()


def test_frequency_missing_input(test_config, tmp_path):
    result = _invoke(test_config, "frequency", "--kegg-file", str(tmp_path / "missing.txt"))

    assert result.exit_code == 1
    assert "Frequency command failed" in result.output


# Enrich command

def test_enrich_writes_results_and_charts(test_config, output_dir, fake_kegg_client):
    with patch(
        "annotation_pipeline.cli.enrich_cmd.KEGGClient.from_config",
        return_value=fake_kegg_client,
    ):
        result = _invoke(test_config, "enrich")

    assert result.exit_code == 0, result.output
    assert "Found 6 enriched KEGG pathways" in result.output
    assert "Synthetic pathway" in result.output

    table = pl.read_csv(output_dir / "KEGG_enrichment_results.csv")
    assert table.columns[:4] == ["ID", "Description", "GeneRatio", "BgRatio"]
    assert table.height == 6
    assert "ko09999" not in table["ID"].to_list()
    assert table["pvalue"].to_list() == sorted(table["pvalue"].to_list())
    assert set(table["GeneRatio"].to_list()) == {"12/52"}

    for name in KEGG_CHARTS:
        assert (output_dir / f"{name}.pdf").exists()
        assert (output_dir / f"{name}.png").exists()
    sidecar = json.loads((output_dir / "enrichment.provenance.json").read_text())
    assert "KEGG_enrichment_results.csv" in sidecar["outputs"]
    assert "KEGG_cnetplot.png" in sidecar["outputs"]


def test_enrich_skip_viz(test_config, output_dir, fake_kegg_client):
    with patch(
        "annotation_pipeline.cli.enrich_cmd.KEGGClient.from_config",
        return_value=fake_kegg_client,
    ):
        result = _invoke(test_config, "enrich", "--skip-viz")

    assert result.exit_code == 0, result.output
    assert (output_dir / "KEGG_enrichment_results.csv").exists()
    assert not any(output_dir.glob("*.png"))


def test_enrich_no_enrichment_writes_nothing(test_config, tmp_path, output_dir, fake_kegg_client):
    """Query genes only in the background pathway: report, no files."""
    background = tmp_path / "background_ids.txt"
    background.write_text("Kegg_id\n" + "\n".join(_ko(i) for i in range(100, 105)) + "\n")

    with patch(
        "annotation_pipeline.cli.enrich_cmd.KEGGClient.from_config",
        return_value=fake_kegg_client,
    ):
        result = _invoke(test_config, "enrich", "--kegg-file", str(background))

    assert result.exit_code == 0, result.output
    assert "NO ENRICHMENT FOUND" in result.output
    assert "--pvalue-cutoff 0.1" in result.output
    assert list(output_dir.iterdir()) == []


def test_enrich_kegg_error_reports_no_enrichment(test_config, output_dir):
    client = Mock()
    client.pathway_links.side_effect = requests.ConnectionError("KEGG unreachable")

    with patch(
        "annotation_pipeline.cli.enrich_cmd.KEGGClient.from_config",
        return_value=client,
    ):
        result = _invoke(test_config, "enrich")

    assert result.exit_code == 0
    assert "Error with 'ko' organism" in result.output
    assert "NO ENRICHMENT FOUND" in result.output
    assert list(output_dir.iterdir()) == []


def test_enrich_missing_input(test_config, tmp_path):
    result = _invoke(test_config, "enrich", "--kegg-file", str(tmp_path / "missing.txt"))

    assert result.exit_code == 1
    assert "Enrich command failed" in result.output
