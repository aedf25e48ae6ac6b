"""Pathway over-representation analysis."""

from annotation_pipeline.enrichment.kegg import build_gene_sets, enrich_kegg
from annotation_pipeline.enrichment.models import (
    ENRICHMENT_COLUMNS,
    EnrichmentResult,
    EnrichmentRow,
    gene_lists,
)
from annotation_pipeline.enrichment.ora import adjust_pvalues, run_ora, storey_qvalues

__all__ = [
    "ENRICHMENT_COLUMNS",
    "EnrichmentResult",
    "EnrichmentRow",
    "adjust_pvalues",
    "build_gene_sets",
    "enrich_kegg",
    "gene_lists",
    "run_ora",
    "storey_qvalues",
]
