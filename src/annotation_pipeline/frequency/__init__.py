"""Identifier frequency counting and row selection."""

from annotation_pipeline.frequency.aggregate import COUNT_COLUMN, count_identifiers
from annotation_pipeline.frequency.select import (
    ELLIPSIS,
    LABEL_COLUMN,
    add_plot_labels,
    enrichment_plot_rows,
    flat_top_n,
    go_plot_rows,
    order_by_metric,
    per_category_top_n,
    truncate_label,
)

__all__ = [
    "COUNT_COLUMN",
    "ELLIPSIS",
    "LABEL_COLUMN",
    "add_plot_labels",
    "enrichment_plot_rows",
    "count_identifiers",
    "flat_top_n",
    "go_plot_rows",
    "order_by_metric",
    "per_category_top_n",
    "truncate_label",
]
