"""CSV writers for frequency and enrichment tables."""

from pathlib import Path

import polars as pl
import structlog

logger = structlog.get_logger()


def write_table(df: pl.DataFrame | pl.LazyFrame, output_path: Path) -> Path:
    """
    Write a result table to CSV.

    Every column is written in its current order and rows are written in
    their current order; the table is not re-sorted.

    Args:
        df: Polars DataFrame or LazyFrame
        output_path: Destination CSV path (parent directories are created)

    Returns:
        Path to the written file
    """
    if isinstance(df, pl.LazyFrame):
        df = df.collect()

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.write_csv(output_path, include_header=True)

    logger.info(
        "write_table",
        path=str(output_path),
        row_count=df.height,
        column_count=len(df.columns),
    )
    return output_path
