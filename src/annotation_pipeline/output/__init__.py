"""Output generation: CSV tables and publication-style charts."""

from annotation_pipeline.output.visualizations import (
    ChartOutcome,
    ChartProduced,
    ChartSkipped,
    build_enrichment_map,
    build_gene_concept_network,
    generate_enrichment_plots,
    generate_go_plot,
    jaccard_similarity,
    plot_cnetplot,
    plot_enrichment_map,
    plot_go_functional_analysis,
    plot_kegg_barplot,
    plot_kegg_dotplot,
    plot_kegg_horizontal_barplot,
    produce_chart,
)
from annotation_pipeline.output.writers import write_table

__all__ = [
    "ChartOutcome",
    "ChartProduced",
    "ChartSkipped",
    "build_enrichment_map",
    "build_gene_concept_network",
    "generate_enrichment_plots",
    "generate_go_plot",
    "jaccard_similarity",
    "plot_cnetplot",
    "plot_enrichment_map",
    "plot_go_functional_analysis",
    "plot_kegg_barplot",
    "plot_kegg_dotplot",
    "plot_kegg_horizontal_barplot",
    "produce_chart",
    "write_table",
]
