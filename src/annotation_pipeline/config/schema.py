"""Pydantic models for pipeline configuration."""

import hashlib
import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

# R-style multiple-testing method names accepted in config files
P_ADJUST_METHODS = ("BH", "BY", "fdr", "bonferroni", "holm", "hochberg", "hommel", "none")


class InputSettings(BaseModel):
    """Locations and layout of the identifier input files."""

    kegg_file: Path = Field(
        default=Path("Kegg_biotic.txt"),
        description="Delimited file with one KEGG identifier per row",
    )
    go_file: Path = Field(
        default=Path("GO_biotic.txt"),
        description="Delimited file with one GO term identifier per row",
    )
    kegg_column: str = Field(
        default="Kegg_id",
        min_length=1,
        description="Header of the KEGG identifier column",
    )
    go_column: str = Field(
        default="GO_id",
        min_length=1,
        description="Header of the GO identifier column",
    )
    separator: str | None = Field(
        default=None,
        min_length=1,
        max_length=1,
        description="Single-character field separator; null splits on runs of whitespace",
    )


class EnrichmentSettings(BaseModel):
    """Over-representation test parameters."""

    organism: str = Field(
        default="ko",
        min_length=2,
        description="KEGG organism code ('ko' for KEGG Orthology)",
    )
    key_type: Literal["kegg"] = Field(
        default="kegg",
        description="Identifier type of the query genes",
    )
    pvalue_cutoff: float = Field(
        default=0.05,
        gt=0.0,
        le=1.0,
        description="Cutoff applied to both raw and adjusted p-values",
    )
    qvalue_cutoff: float = Field(
        default=0.2,
        gt=0.0,
        le=1.0,
        description="Cutoff applied to Storey q-values",
    )
    p_adjust_method: str = Field(
        default="BH",
        description="Multiple-testing correction method",
    )
    min_gs_size: int = Field(
        default=10,
        ge=1,
        description="Minimum pathway size (genes in universe) to be tested",
    )
    max_gs_size: int = Field(
        default=500,
        ge=1,
        description="Maximum pathway size (genes in universe) to be tested",
    )

    @field_validator("p_adjust_method")
    @classmethod
    def check_adjust_method(cls, v: str) -> str:
        """Reject correction methods the enrichment test does not implement."""
        if v not in P_ADJUST_METHODS:
            raise ValueError(
                f"p_adjust_method must be one of {', '.join(P_ADJUST_METHODS)}, got {v!r}"
            )
        return v

    @model_validator(mode="after")
    def check_size_bounds(self) -> "EnrichmentSettings":
        if self.min_gs_size > self.max_gs_size:
            raise ValueError(
                f"min_gs_size ({self.min_gs_size}) must not exceed max_gs_size ({self.max_gs_size})"
            )
        return self


class PlotSettings(BaseModel):
    """Row selection and rendering parameters for charts."""

    kegg_top_n: int = Field(
        default=20,
        ge=1,
        description="Pathways shown in the dot, bar and horizontal bar plots",
    )
    go_top_n_per_category: int = Field(
        default=10,
        ge=1,
        description="GO terms shown per ontology category",
    )
    kegg_label_length: int = Field(
        default=50,
        ge=4,
        description="Maximum pathway label length before truncation",
    )
    go_label_length: int = Field(
        default=45,
        ge=4,
        description="Maximum GO term label length before truncation",
    )
    dpi: int = Field(
        default=300,
        ge=72,
        description="Resolution of PNG renderings",
    )
    emap_min_terms: int = Field(
        default=5,
        ge=2,
        description="Minimum enriched pathways needed for the enrichment map",
    )
    emap_max_terms: int = Field(
        default=30,
        ge=2,
        description="Maximum pathways drawn in the enrichment map",
    )
    emap_min_similarity: float = Field(
        default=0.2,
        ge=0.0,
        le=1.0,
        description="Minimum Jaccard similarity for an enrichment map edge",
    )
    cnet_min_terms: int = Field(
        default=3,
        ge=1,
        description="Minimum enriched pathways needed for the gene-concept network",
    )
    cnet_max_terms: int = Field(
        default=5,
        ge=1,
        description="Maximum pathways drawn in the gene-concept network",
    )


class GOSettings(BaseModel):
    """GO terminology database location."""

    obo_path: Path = Field(
        default=Path("data/go-basic.obo"),
        description="Local path of the GO OBO file",
    )
    obo_url: str = Field(
        default="https://purl.obolibrary.org/obo/go/go-basic.obo",
        description="Download location used when obo_path is missing",
    )
    auto_download: bool = Field(
        default=True,
        description="Download the OBO file when it is not present locally",
    )


class APIConfig(BaseModel):
    """Configuration for API clients."""

    kegg_base_url: str = Field(
        default="https://rest.kegg.jp",
        description="Base URL of the KEGG REST API",
    )
    rate_limit_per_second: int = Field(
        default=3,
        ge=1,
        description="Maximum API requests per second",
    )
    max_retries: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Maximum retry attempts for failed requests",
    )
    cache_ttl_seconds: int = Field(
        default=86400,
        ge=0,
        description="Cache time-to-live in seconds (0 = infinite)",
    )
    timeout_seconds: int = Field(
        default=60,
        ge=1,
        description="Request timeout in seconds",
    )


class PipelineConfig(BaseModel):
    """Main pipeline configuration."""

    output_dir: Path = Field(
        ...,
        description="Directory for result tables and charts",
    )
    cache_dir: Path = Field(
        ...,
        description="Directory for API response caching",
    )
    inputs: InputSettings = Field(
        default_factory=InputSettings,
        description="Input file locations and layout",
    )
    enrichment: EnrichmentSettings = Field(
        default_factory=EnrichmentSettings,
        description="Over-representation test parameters",
    )
    plots: PlotSettings = Field(
        default_factory=PlotSettings,
        description="Chart selection and rendering parameters",
    )
    go: GOSettings = Field(
        default_factory=GOSettings,
        description="GO terminology database settings",
    )
    api: APIConfig = Field(
        default_factory=APIConfig,
        description="API client configuration",
    )

    @field_validator("output_dir", "cache_dir")
    @classmethod
    def create_directory(cls, v: Path) -> Path:
        """Create directory if it doesn't exist."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    def config_hash(self) -> str:
        """
        Compute SHA-256 hash of the configuration.

        Returns a deterministic hash based on all config values,
        useful for tracking config changes between runs.
        """
        config_dict = self.model_dump(mode="python")
        config_json = json.dumps(
            config_dict,
            sort_keys=True,
            default=str,
        )
        return hashlib.sha256(config_json.encode()).hexdigest()
