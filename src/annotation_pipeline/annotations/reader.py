"""Read identifier columns from delimited annotation files."""

from pathlib import Path

import polars as pl
import structlog

logger = structlog.get_logger()


def read_identifier_table(
    path: Path | str,
    column: str,
    separator: str | None = None,
) -> pl.DataFrame:
    """Read one identifier column from a delimited file with a header row.

    Every field is read as a string; identifiers are not trimmed or re-cased.
    Rows with an empty identifier (blank lines) are not records and are
    dropped.

    Args:
        path: Input file
        column: Header of the identifier column (e.g. "Kegg_id", "GO_id")
        separator: Single-character field separator, or None to split each
            line on runs of whitespace

    Returns:
        DataFrame with a single Utf8 column named ``column``, one row per
        occurrence, in file order

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file cannot be parsed or lacks the column
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    if separator is None:
        df = _read_whitespace_table(path)
    else:
        try:
            df = pl.read_csv(path, separator=separator, infer_schema_length=0)
        except pl.exceptions.PolarsError as e:
            raise ValueError(f"Could not parse {path}: {e}") from e

    if column not in df.columns:
        raise ValueError(
            f"Column {column!r} not found in {path} (columns: {', '.join(df.columns)})"
        )

    df = df.select(pl.col(column).cast(pl.Utf8))
    blank = df.filter(pl.col(column).is_null()).height
    df = df.filter(pl.col(column).is_not_null())

    logger.info(
        "read_identifier_table",
        path=str(path),
        column=column,
        row_count=df.height,
        unique_count=df[column].n_unique(),
        blank_rows_dropped=blank,
    )
    return df


def _read_whitespace_table(path: Path) -> pl.DataFrame:
    """All-string table from a file whose fields are separated by any whitespace."""
    rows = [line.split() for line in path.read_text().splitlines() if line.strip()]
    if not rows:
        raise ValueError(f"Could not parse {path}: file is empty")

    header, records = rows[0], rows[1:]
    for number, fields in enumerate(records, start=1):
        if len(fields) != len(header):
            raise ValueError(
                f"Could not parse {path}: record {number} has {len(fields)} fields, "
                f"header has {len(header)}"
            )

    return pl.DataFrame(
        records,
        schema=[(name, pl.Utf8) for name in header],
        orient="row",
    )
