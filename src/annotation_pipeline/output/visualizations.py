"""Chart rendering for frequency and enrichment results.

Every chart is saved twice, as PDF and as PNG, under a fixed base name.
Rows are drawn in the order they are given, first row at the top; callers
prepare that order (see annotation_pipeline.frequency.select).
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from itertools import combinations
from pathlib import Path

import matplotlib
import numpy as np
import polars as pl

# Use Agg backend (non-interactive, safe for headless/CLI use)
matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import networkx as nx  # noqa: E402
import seaborn as sns  # noqa: E402

from annotation_pipeline.annotations.models import ONTOLOGY_LABELS  # noqa: E402
from annotation_pipeline.config.schema import PlotSettings  # noqa: E402
from annotation_pipeline.enrichment.models import gene_lists  # noqa: E402

logger = logging.getLogger(__name__)

ONTOLOGY_COLORS = {
    "Biological process": "#8B3A3A",
    "Cellular component": "#4682B4",
    "Molecular function": "#3CB371",
}
KEGG_BAR_COLOR = "#2E86AB"
PADJUST_CMAP = "RdBu"
PATHWAY_NODE_COLOR = "#E5C494"
GENE_NODE_COLOR = "#B3B3B3"

# Physical figure sizes in inches
WIDE_FIGSIZE = (12, 10)
COMPACT_FIGSIZE = (10, 8)

# Headroom above the largest bar
AXIS_HEADROOM = 1.1


@dataclass
class ChartProduced:
    """A chart that was rendered to disk."""

    name: str
    paths: list[Path] = field(default_factory=list)


@dataclass
class ChartSkipped:
    """A chart that was not rendered, with the reason."""

    name: str
    reason: str


ChartOutcome = ChartProduced | ChartSkipped


def _apply_theme() -> None:
    sns.set_theme(style="ticks", context="paper")


def _save_figure(fig, output_base: Path, dpi: int) -> list[Path]:
    """Save a figure as <base>.pdf and <base>.png, then close it."""
    output_base.parent.mkdir(parents=True, exist_ok=True)
    pdf_path = output_base.with_suffix(".pdf")
    png_path = output_base.with_suffix(".png")

    fig.savefig(pdf_path, bbox_inches="tight")
    fig.savefig(png_path, dpi=dpi, bbox_inches="tight")

    # Figures are closed once saved
    plt.close(fig)

    logger.info(f"Saved {pdf_path.name} and {png_path.name} to {output_base.parent}")
    return [pdf_path, png_path]


def _style_bar_axes(ax, labels: list[str], max_value: float, xlabel: str, title: str) -> None:
    positions = np.arange(len(labels))
    ax.set_yticks(positions)
    ax.set_yticklabels(labels, fontsize=9, color="black")
    # Rank 1 at the top
    ax.invert_yaxis()
    ax.set_xlim(0, max_value * AXIS_HEADROOM if max_value > 0 else 1)
    ax.set_xlabel(xlabel, fontsize=11, color="black")
    ax.set_ylabel("")
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.grid(axis="x", color="0.9", linewidth=0.3)
    ax.set_axisbelow(True)
    sns.despine(ax=ax)


def plot_go_functional_analysis(plot_df: pl.DataFrame, output_base: Path, dpi: int = 300) -> list[Path]:
    """
    Horizontal bar chart of GO term counts, colored by ontology.

    Args:
        plot_df: Rows with Label, Count and Ontology_full, in display order
            (contiguous ontology blocks)
        output_base: Output path without extension
        dpi: PNG resolution

    Returns:
        Paths of the PDF and PNG files
    """
    if plot_df.height == 0:
        raise ValueError("No GO terms to plot")

    _apply_theme()
    fig, ax = plt.subplots(figsize=WIDE_FIGSIZE)

    labels = plot_df["Label"].to_list()
    counts = plot_df["Count"].to_list()
    ontologies = plot_df["Ontology_full"].to_list()
    positions = np.arange(len(labels))

    ax.barh(
        positions,
        counts,
        height=0.7,
        color=[ONTOLOGY_COLORS[o] for o in ontologies],
    )
    _style_bar_axes(ax, labels, max(counts), "Gene Count", "GO functional analysis")

    present = [label for label in ONTOLOGY_LABELS.values() if label in set(ontologies)]
    handles = [plt.Rectangle((0, 0), 1, 1, color=ONTOLOGY_COLORS[label]) for label in present]
    ax.legend(handles, present, loc="center left", bbox_to_anchor=(1.01, 0.5), frameon=False, fontsize=10)

    return _save_figure(fig, output_base, dpi)


def plot_kegg_dotplot(plot_df: pl.DataFrame, output_base: Path, dpi: int = 300) -> list[Path]:
    """
    Dot plot of enriched pathways: gene ratio on x, dot size = Count,
    color = adjusted p-value.

    Args:
        plot_df: Rows with Label, gene_ratio, Count and p.adjust, in display order
        output_base: Output path without extension
        dpi: PNG resolution
    """
    if plot_df.height == 0:
        raise ValueError("No pathways to plot")

    _apply_theme()
    fig, ax = plt.subplots(figsize=COMPACT_FIGSIZE)

    labels = plot_df["Label"].to_list()
    positions = np.arange(len(labels))
    counts = np.array(plot_df["Count"].to_list(), dtype=float)
    sizes = 40 + 260 * (counts - counts.min()) / (np.ptp(counts) or 1)

    points = ax.scatter(
        plot_df["gene_ratio"].to_list(),
        positions,
        s=sizes,
        c=plot_df["p.adjust"].to_list(),
        cmap=PADJUST_CMAP,
        edgecolors="none",
    )
    ax.set_yticks(positions)
    ax.set_yticklabels(labels, fontsize=9)
    ax.invert_yaxis()
    ax.set_xlabel("GeneRatio")
    ax.set_title("KEGG Pathway Enrichment", fontsize=14, fontweight="bold")
    ax.grid(color="0.9", linewidth=0.3)
    ax.set_axisbelow(True)
    fig.colorbar(points, ax=ax, label="p.adjust", shrink=0.5)

    for count in sorted({int(counts.min()), int(counts.max())}):
        size = 40 + 260 * (count - counts.min()) / (np.ptp(counts) or 1)
        ax.scatter([], [], s=size, color="0.5", label=str(count))
    ax.legend(title="Count", loc="lower right", frameon=False)

    return _save_figure(fig, output_base, dpi)


def plot_kegg_barplot(plot_df: pl.DataFrame, output_base: Path, dpi: int = 300) -> list[Path]:
    """
    Bar plot of enriched pathways: Count on x, bar color = adjusted p-value.

    Args:
        plot_df: Rows with Label, Count and p.adjust, in display order
        output_base: Output path without extension
        dpi: PNG resolution
    """
    if plot_df.height == 0:
        raise ValueError("No pathways to plot")

    _apply_theme()
    fig, ax = plt.subplots(figsize=COMPACT_FIGSIZE)

    labels = plot_df["Label"].to_list()
    counts = plot_df["Count"].to_list()
    padjust = np.array(plot_df["p.adjust"].to_list(), dtype=float)

    norm = matplotlib.colors.Normalize(vmin=padjust.min(), vmax=padjust.max())
    cmap = matplotlib.colormaps[PADJUST_CMAP]
    ax.barh(np.arange(len(labels)), counts, height=0.7, color=cmap(norm(padjust)))
    _style_bar_axes(ax, labels, max(counts), "Count", "KEGG Pathway Enrichment")

    mappable = matplotlib.cm.ScalarMappable(norm=norm, cmap=cmap)
    fig.colorbar(mappable, ax=ax, label="p.adjust", shrink=0.5)

    return _save_figure(fig, output_base, dpi)


def plot_kegg_horizontal_barplot(plot_df: pl.DataFrame, output_base: Path, dpi: int = 300) -> list[Path]:
    """
    Horizontal bar chart of -log10(p-value) per pathway.

    Args:
        plot_df: Rows with Label and log_pvalue, most significant first
        output_base: Output path without extension
        dpi: PNG resolution
    """
    if plot_df.height == 0:
        raise ValueError("No pathways to plot")

    _apply_theme()
    fig, ax = plt.subplots(figsize=WIDE_FIGSIZE)

    labels = plot_df["Label"].to_list()
    values = plot_df["log_pvalue"].to_list()
    ax.barh(np.arange(len(labels)), values, height=0.7, color=KEGG_BAR_COLOR)
    _style_bar_axes(ax, labels, max(values), "-log10 (P-value)", "KEGG Pathway Enrichment Analysis")

    return _save_figure(fig, output_base, dpi)


def jaccard_similarity(a: set[str], b: set[str]) -> float:
    """Jaccard index of two gene sets (0 when both are empty)."""
    union = a | b
    return len(a & b) / len(union) if union else 0.0


def build_enrichment_map(plot_df: pl.DataFrame, min_similarity: float = 0.2) -> nx.Graph:
    """
    Pathway similarity graph: one node per pathway, an edge wherever the
    Jaccard similarity of the hit gene sets is at least ``min_similarity``.
    """
    genes = gene_lists(plot_df)
    graph = nx.Graph()
    for row in plot_df.select("ID", "Label", "Count", "p.adjust").to_dicts():
        graph.add_node(row["ID"], label=row["Label"], count=row["Count"], padjust=row["p.adjust"])

    for a, b in combinations(plot_df["ID"].to_list(), 2):
        similarity = jaccard_similarity(set(genes[a]), set(genes[b]))
        if similarity >= min_similarity and similarity > 0:
            graph.add_edge(a, b, weight=similarity)
    return graph


def plot_enrichment_map(
    plot_df: pl.DataFrame,
    output_base: Path,
    dpi: int = 300,
    min_similarity: float = 0.2,
) -> list[Path]:
    """
    Enrichment map: pathways as nodes sized by Count and colored by
    adjusted p-value, linked by shared genes.

    Args:
        plot_df: Rows with ID, Label, geneID, Count and p.adjust
        output_base: Output path without extension
        dpi: PNG resolution
        min_similarity: Minimum Jaccard similarity for an edge
    """
    if plot_df.height < 2:
        raise ValueError("Enrichment map needs at least 2 pathways")

    graph = build_enrichment_map(plot_df, min_similarity)

    _apply_theme()
    fig, ax = plt.subplots(figsize=WIDE_FIGSIZE)
    layout = nx.spring_layout(graph, weight="weight", seed=42)

    nodes = list(graph.nodes)
    counts = np.array([graph.nodes[n]["count"] for n in nodes], dtype=float)
    padjust = [graph.nodes[n]["padjust"] for n in nodes]
    widths = [1 + 4 * graph.edges[e]["weight"] for e in graph.edges]

    nx.draw_networkx_edges(graph, layout, ax=ax, width=widths, edge_color="0.7")
    drawn = nx.draw_networkx_nodes(
        graph,
        layout,
        ax=ax,
        nodelist=nodes,
        node_size=100 + 900 * (counts - counts.min()) / (np.ptp(counts) or 1),
        node_color=padjust,
        cmap=PADJUST_CMAP,
    )
    nx.draw_networkx_labels(
        graph,
        layout,
        ax=ax,
        labels={n: graph.nodes[n]["label"] for n in nodes},
        font_size=6,
    )
    fig.colorbar(drawn, ax=ax, label="p.adjust", shrink=0.5)
    ax.set_title("KEGG Pathway Network", fontsize=14, fontweight="bold")
    ax.set_axis_off()

    return _save_figure(fig, output_base, dpi)


def build_gene_concept_network(plot_df: pl.DataFrame) -> nx.Graph:
    """Bipartite graph linking each pathway to its hit genes."""
    graph = nx.Graph()
    for pathway_id, genes in gene_lists(plot_df).items():
        graph.add_node(pathway_id, kind="pathway")
        for gene in genes:
            graph.add_node(f"gene:{gene}", kind="gene", label=gene)
            graph.add_edge(pathway_id, f"gene:{gene}")
    for row in plot_df.select("ID", "Label", "Count").to_dicts():
        graph.nodes[row["ID"]]["label"] = row["Label"]
        graph.nodes[row["ID"]]["count"] = row["Count"]
    return graph


def plot_cnetplot(plot_df: pl.DataFrame, output_base: Path, dpi: int = 300) -> list[Path]:
    """
    Gene-concept network: pathway nodes sized by Count, connected to the
    query genes they contain.

    Args:
        plot_df: Rows with ID, Label, geneID and Count
        output_base: Output path without extension
        dpi: PNG resolution
    """
    if plot_df.height == 0:
        raise ValueError("No pathways to plot")

    graph = build_gene_concept_network(plot_df)

    _apply_theme()
    fig, ax = plt.subplots(figsize=WIDE_FIGSIZE)
    layout = nx.spring_layout(graph, seed=42)

    pathways = [n for n, kind in graph.nodes(data="kind") if kind == "pathway"]
    genes = [n for n, kind in graph.nodes(data="kind") if kind == "gene"]
    counts = np.array([graph.nodes[n]["count"] for n in pathways], dtype=float)

    nx.draw_networkx_edges(graph, layout, ax=ax, edge_color="0.8", width=0.6)
    nx.draw_networkx_nodes(graph, layout, ax=ax, nodelist=genes, node_size=30, node_color=GENE_NODE_COLOR)
    nx.draw_networkx_nodes(
        graph,
        layout,
        ax=ax,
        nodelist=pathways,
        node_size=200 + 800 * (counts - counts.min()) / (np.ptp(counts) or 1),
        node_color=PATHWAY_NODE_COLOR,
    )
    nx.draw_networkx_labels(graph, layout, ax=ax, labels={n: graph.nodes[n]["label"] for n in genes}, font_size=5)
    nx.draw_networkx_labels(
        graph, layout, ax=ax, labels={n: graph.nodes[n]["label"] for n in pathways}, font_size=8
    )
    ax.set_title("Gene-Pathway Network", fontsize=14, fontweight="bold")
    ax.set_axis_off()

    return _save_figure(fig, output_base, dpi)


def produce_chart(name: str, render: Callable[..., list[Path]], *args, **kwargs) -> ChartOutcome:
    """
    Render one chart, turning a rendering failure into ChartSkipped.

    The failure is logged; nothing is raised so the remaining charts of a
    run are still attempted.
    """
    try:
        paths = render(*args, **kwargs)
    except Exception as e:
        logger.warning(f"Failed to create {name} plot: {e}")
        return ChartSkipped(name=name, reason=str(e))
    return ChartProduced(name=name, paths=paths)


def generate_go_plot(plot_df: pl.DataFrame, output_dir: Path, settings: PlotSettings) -> ChartOutcome:
    """Render GO_functional_analysis.{pdf,png} into output_dir."""
    output_dir.mkdir(parents=True, exist_ok=True)
    return produce_chart(
        "go_functional_analysis",
        plot_go_functional_analysis,
        plot_df,
        output_dir / "GO_functional_analysis",
        settings.dpi,
    )


def generate_enrichment_plots(
    chart_rows: dict[str, pl.DataFrame],
    enriched_count: int,
    output_dir: Path,
    settings: PlotSettings,
) -> dict[str, ChartOutcome]:
    """
    Render all enrichment charts.

    Args:
        chart_rows: Display rows per chart (see enrichment_plot_rows)
        enriched_count: Number of significant pathways in the full result;
            gates the network charts
        output_dir: Directory where charts will be saved
        settings: Plot settings

    Returns:
        Chart name -> ChartProduced or ChartSkipped, in rendering order

    Notes:
        - Each chart is attempted independently; failures become ChartSkipped
        - The enrichment map needs >= emap_min_terms pathways and the
          gene-concept network >= cnet_min_terms
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    dpi = settings.dpi

    outcomes: dict[str, ChartOutcome] = {
        "dotplot": produce_chart(
            "dotplot", plot_kegg_dotplot, chart_rows["dotplot"], output_dir / "KEGG_dotplot", dpi
        ),
        "barplot": produce_chart(
            "barplot", plot_kegg_barplot, chart_rows["barplot"], output_dir / "KEGG_barplot", dpi
        ),
        "horizontal_barplot": produce_chart(
            "horizontal_barplot",
            plot_kegg_horizontal_barplot,
            chart_rows["horizontal_barplot"],
            output_dir / "KEGG_horizontal_barplot",
            dpi,
        ),
    }

    if enriched_count >= settings.emap_min_terms:
        outcomes["enrichment_map"] = produce_chart(
            "enrichment_map",
            plot_enrichment_map,
            chart_rows["enrichment_map"],
            output_dir / "KEGG_enrichment_map",
            dpi,
            settings.emap_min_similarity,
        )
    else:
        outcomes["enrichment_map"] = ChartSkipped(
            name="enrichment_map",
            reason=f"needs at least {settings.emap_min_terms} enriched pathways, found {enriched_count}",
        )

    if enriched_count >= settings.cnet_min_terms:
        outcomes["cnetplot"] = produce_chart(
            "cnetplot", plot_cnetplot, chart_rows["cnetplot"], output_dir / "KEGG_cnetplot", dpi
        )
    else:
        outcomes["cnetplot"] = ChartSkipped(
            name="cnetplot",
            reason=f"needs at least {settings.cnet_min_terms} enriched pathways, found {enriched_count}",
        )

    produced = sum(isinstance(o, ChartProduced) for o in outcomes.values())
    logger.info(f"Generated {produced} of {len(outcomes)} enrichment plots in {output_dir}")
    return outcomes
