"""Frequency tables of annotation identifiers."""

import polars as pl
import structlog

logger = structlog.get_logger()

COUNT_COLUMN = "Count"


def count_identifiers(df: pl.DataFrame, column: str) -> pl.DataFrame:
    """Count occurrences of each distinct identifier.

    Identifiers are compared with exact string equality (no trimming or case
    folding). The result is ordered by descending count; identifiers with
    equal counts keep the order in which they were first seen in the input.

    Args:
        df: Table with one row per identifier occurrence
        column: Identifier column name

    Returns:
        DataFrame with columns ``column`` and Count (Int64). An empty input
        gives an empty table with the same schema.
    """
    counts = (
        df.group_by(column, maintain_order=True)
        .agg(pl.len().cast(pl.Int64).alias(COUNT_COLUMN))
        .sort(COUNT_COLUMN, descending=True, maintain_order=True)
    )

    logger.info(
        "count_identifiers_complete",
        column=column,
        total_rows=df.height,
        unique_identifiers=counts.height,
        max_count=counts[COUNT_COLUMN].max() if counts.height else 0,
    )
    return counts
