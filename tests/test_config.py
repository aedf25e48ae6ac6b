"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from annotation_pipeline.config import load_config, load_config_with_overrides
from annotation_pipeline.config.schema import PipelineConfig


def _write_config(tmp_path, body: str = "") -> Path:
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        f"output_dir: {tmp_path / 'results'}\n"
        f"cache_dir: {tmp_path / 'cache'}\n" + body
    )
    return config_file


def test_load_valid_config():
    """Test loading valid default configuration."""
    config = load_config("config/default.yaml")

    assert isinstance(config, PipelineConfig)
    assert config.inputs.kegg_column == "Kegg_id"
    assert config.inputs.go_column == "GO_id"
    assert config.inputs.separator is None
    assert config.enrichment.organism == "ko"
    assert config.enrichment.pvalue_cutoff == 0.05
    assert config.enrichment.qvalue_cutoff == 0.2
    assert config.enrichment.p_adjust_method == "BH"
    assert config.plots.kegg_top_n == 20
    assert config.plots.go_top_n_per_category == 10
    assert config.plots.kegg_label_length == 50
    assert config.plots.go_label_length == 45
    assert config.plots.dpi == 300


def test_sections_default_when_omitted(tmp_path):
    """Only output_dir and cache_dir are required."""
    config = load_config(_write_config(tmp_path))

    assert config.enrichment.min_gs_size == 10
    assert config.enrichment.max_gs_size == 500
    assert config.plots.emap_min_terms == 5
    assert config.plots.cnet_min_terms == 3
    assert config.go.auto_download is True


def test_missing_config_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_invalid_config_missing_field(tmp_path):
    """Test that missing required field raises ValidationError."""
    invalid_config = tmp_path / "invalid.yaml"
    invalid_config.write_text("""
cache_dir: cache
enrichment:
  organism: ko
""")

    with pytest.raises(ValidationError) as exc_info:
        load_config(invalid_config)

    assert "output_dir" in str(exc_info.value)


def test_invalid_adjust_method(tmp_path):
    """Unknown multiple-testing methods are rejected."""
    config_file = _write_config(tmp_path, """
enrichment:
  p_adjust_method: sidak
""")

    with pytest.raises(ValidationError) as exc_info:
        load_config(config_file)

    assert "p_adjust_method" in str(exc_info.value)


def test_invalid_cutoff_range(tmp_path):
    config_file = _write_config(tmp_path, """
enrichment:
  pvalue_cutoff: 1.5
""")

    with pytest.raises(ValidationError):
        load_config(config_file)


def test_gene_set_size_bounds_checked(tmp_path):
    """min_gs_size greater than max_gs_size is rejected."""
    config_file = _write_config(tmp_path, """
enrichment:
  min_gs_size: 600
  max_gs_size: 500
""")

    with pytest.raises(ValidationError) as exc_info:
        load_config(config_file)

    assert "min_gs_size" in str(exc_info.value)


def test_label_length_too_short(tmp_path):
    """Labels shorter than the ellipsis plus one character are rejected."""
    config_file = _write_config(tmp_path, """
plots:
  go_label_length: 3
""")

    with pytest.raises(ValidationError):
        load_config(config_file)


def test_separator_must_be_single_character(tmp_path):
    config_file = _write_config(tmp_path, """
inputs:
  separator: ";;"
""")

    with pytest.raises(ValidationError):
        load_config(config_file)


def test_overrides_apply_dotted_keys(tmp_path):
    """Dotted keys override nested values; None leaves the file value."""
    config_file = _write_config(tmp_path, """
enrichment:
  pvalue_cutoff: 0.05
  qvalue_cutoff: 0.2
""")

    config = load_config_with_overrides(config_file, {
        "enrichment.pvalue_cutoff": 0.1,
        "enrichment.qvalue_cutoff": None,
        "plots.kegg_top_n": 15,
    })

    assert config.enrichment.pvalue_cutoff == 0.1
    assert config.enrichment.qvalue_cutoff == 0.2
    assert config.plots.kegg_top_n == 15


def test_overrides_are_validated(tmp_path):
    config_file = _write_config(tmp_path)

    with pytest.raises(ValidationError):
        load_config_with_overrides(config_file, {"enrichment.p_adjust_method": "sidak"})


def test_overrides_reject_unknown_section(tmp_path):
    config_file = _write_config(tmp_path)

    with pytest.raises(KeyError, match="reporting"):
        load_config_with_overrides(config_file, {"reporting.top_n": 5})


def test_output_dir_override_skips_file_directory(tmp_path):
    """Only the directory actually used by the run is created."""
    config_file = _write_config(tmp_path)

    config = load_config_with_overrides(config_file, {"output_dir": tmp_path / "elsewhere"})

    assert config.output_dir == tmp_path / "elsewhere"
    assert config.output_dir.is_dir()
    assert not (tmp_path / "results").exists()


def test_config_hash_deterministic():
    """Test that config hash is deterministic and changes with config."""
    config1 = load_config("config/default.yaml")
    config2 = load_config("config/default.yaml")

    assert config1.config_hash() == config2.config_hash()
    assert len(config1.config_hash()) == 64

    config3 = load_config_with_overrides(
        "config/default.yaml",
        {"enrichment.pvalue_cutoff": 0.1},
    )
    assert config3.config_hash() != config1.config_hash()


def test_config_creates_directories(tmp_path):
    """Test that loading config creates output and cache directories."""
    output_dir = tmp_path / "results"
    cache_dir = tmp_path / "cache"

    assert not output_dir.exists()
    assert not cache_dir.exists()

    load_config(_write_config(tmp_path))

    assert output_dir.is_dir()
    assert cache_dir.is_dir()
