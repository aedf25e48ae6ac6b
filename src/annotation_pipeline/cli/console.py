"""Console formatting shared by CLI commands."""

import click
import polars as pl


def echo_table(df: pl.DataFrame, max_rows: int | None = None) -> None:
    """Print a DataFrame (optionally its first rows) without row elision."""
    if max_rows is not None:
        df = df.head(max_rows)
    with pl.Config(tbl_rows=-1, fmt_str_lengths=60, tbl_hide_dataframe_shape=True):
        click.echo(str(df))


def echo_outputs(paths, indent: str = "  ") -> None:
    for path in paths:
        click.echo(click.style(f"{indent}{path}", fg='green'))
