"""Row selection and label preparation for charts.

Selection never reorders rows unless asked to: a top-N is always a prefix
of the table it is given, so the ordering produced upstream (count
descending for frequency tables, p-value ascending for enrichment results)
is the display order.
"""

from collections.abc import Sequence

import polars as pl

from annotation_pipeline.annotations.models import ONTOLOGY_ORDER

ELLIPSIS = "..."
LABEL_COLUMN = "Label"

# Smallest p-value used on a -log10 axis
_MIN_PVALUE = 1e-300


def truncate_label(text: str, max_length: int) -> str:
    """Shorten text to at most ``max_length`` characters.

    Longer strings keep their first ``max_length - 3`` characters followed
    by "...", so the result is exactly ``max_length`` long. Applying the
    function twice gives the same result as applying it once.
    """
    if max_length < len(ELLIPSIS) + 1:
        raise ValueError(f"max_length must be at least {len(ELLIPSIS) + 1}, got {max_length}")
    if len(text) <= max_length:
        return text
    return text[: max_length - len(ELLIPSIS)] + ELLIPSIS


def flat_top_n(df: pl.DataFrame, n: int) -> pl.DataFrame:
    """First ``min(n, df.height)`` rows of an already ranked table."""
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    return df.head(min(n, df.height))


def per_category_top_n(
    df: pl.DataFrame,
    n: int,
    category_column: str = "Ontology",
    count_column: str = "Count",
    categories: Sequence[str] = ONTOLOGY_ORDER,
) -> pl.DataFrame:
    """Top ``n`` rows by count within each category.

    Each category block is sorted by descending count (ties keep input
    order) and capped at ``n``; blocks are concatenated in ``categories``
    order so charts can draw them contiguously. Rows whose category is not
    listed (including null) are not selected.
    """
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")

    blocks = [
        df.filter(pl.col(category_column) == category)
        .sort(count_column, descending=True, maintain_order=True)
        .head(n)
        for category in categories
    ]
    return pl.concat(blocks) if blocks else df.clear()


def add_plot_labels(
    df: pl.DataFrame,
    source_column: str,
    max_length: int,
    label_column: str = LABEL_COLUMN,
) -> pl.DataFrame:
    """Add a truncated display label next to the untouched source column."""
    labels = [truncate_label(text, max_length) for text in df[source_column].to_list()]
    return df.with_columns(pl.Series(label_column, labels, dtype=pl.Utf8))


def order_by_metric(df: pl.DataFrame, column: str, descending: bool = True) -> pl.DataFrame:
    """Stable re-order of selected rows by a display metric.

    Used to prepare the final top-to-bottom order of charts whose axis is a
    metric other than the ranking one (e.g. gene ratio in the dot plot).
    """
    return df.sort(column, descending=descending, maintain_order=True)


def go_plot_rows(annotated: pl.DataFrame, top_n: int, label_length: int) -> pl.DataFrame:
    """Display rows for the GO bar chart: top terms per ontology, labelled."""
    selected = per_category_top_n(annotated, top_n)
    return add_plot_labels(selected, "Description", label_length)


def _with_gene_ratio(df: pl.DataFrame) -> pl.DataFrame:
    ratios = []
    for ratio in df["GeneRatio"].to_list():
        k, n = ratio.split("/")
        ratios.append(int(k) / int(n))
    return df.with_columns(pl.Series("gene_ratio", ratios, dtype=pl.Float64))


def enrichment_plot_rows(
    table: pl.DataFrame,
    top_n: int,
    label_length: int,
    emap_max_terms: int,
    cnet_max_terms: int,
) -> dict[str, pl.DataFrame]:
    """Display rows for each enrichment chart, in final top-to-bottom order.

    ``table`` must be sorted ascending by p-value. The bar-style charts show
    the ``top_n`` most significant pathways; the dot plot orders them by gene
    ratio and the bar plot by count, as their axes show those metrics.

    Returns:
        Chart name -> labelled rows
    """
    top = add_plot_labels(flat_top_n(table, top_n), "Description", label_length)
    return {
        "dotplot": order_by_metric(_with_gene_ratio(top), "gene_ratio"),
        "barplot": order_by_metric(top, "Count"),
        "horizontal_barplot": top.with_columns(
            (-pl.col("pvalue").clip(lower_bound=_MIN_PVALUE).log10()).alias("log_pvalue")
        ),
        "enrichment_map": add_plot_labels(
            flat_top_n(table, emap_max_terms), "Description", label_length
        ),
        "cnetplot": add_plot_labels(
            flat_top_n(table, cnet_max_terms), "Description", label_length
        ),
    }
