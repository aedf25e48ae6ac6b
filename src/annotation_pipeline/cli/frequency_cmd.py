"""Frequency command: KEGG and GO term frequency tables with a GO chart.

Orchestrates the frequency pipeline:
- Counts KEGG identifier and GO term occurrences
- Annotates GO terms with names and ontology categories (when the GO
  terminology database is available)
- Renders the per-ontology GO bar chart
"""

import logging
import sys
from pathlib import Path

import click

from annotation_pipeline.annotations import (
    ONTOLOGY_LABELS,
    GOTermDatabaseUnavailable,
    GOTermResolver,
    annotate_go_terms,
    ontology_counts,
    read_identifier_table,
)
from annotation_pipeline.api_clients import CachedAPIClient
from annotation_pipeline.cli.console import echo_outputs, echo_table
from annotation_pipeline.config.loader import load_config_with_overrides
from annotation_pipeline.frequency import count_identifiers, go_plot_rows
from annotation_pipeline.output import ChartProduced, generate_go_plot, write_table
from annotation_pipeline.persistence import ProvenanceTracker

logger = logging.getLogger(__name__)

KEGG_FREQUENCY_FILENAME = "KEGG_ID_frequency.csv"
GO_FREQUENCY_FILENAME = "GO_term_frequency.csv"
GO_ANNOTATED_FILENAME = "GO_term_frequency_annotated.csv"

# Rows printed for each frequency table
PREVIEW_ROWS = 20


@click.command('frequency')
@click.option(
    '--kegg-file',
    type=click.Path(path_type=Path),
    default=None,
    help='KEGG identifier file (default: inputs.kegg_file from config)'
)
@click.option(
    '--go-file',
    type=click.Path(path_type=Path),
    default=None,
    help='GO identifier file (default: inputs.go_file from config)'
)
@click.option(
    '--output-dir',
    type=click.Path(path_type=Path),
    default=None,
    help='Output directory (default: output_dir from config)'
)
@click.option(
    '--top-n',
    type=int,
    default=None,
    help='GO terms shown per ontology category (default from config)'
)
@click.option(
    '--label-length',
    type=int,
    default=None,
    help='Maximum GO label length in the chart (default from config)'
)
@click.option(
    '--skip-go-annotation',
    is_flag=True,
    help='Skip GO term names/categories (and the GO chart)'
)
@click.option(
    '--skip-viz',
    is_flag=True,
    help='Skip chart generation'
)
@click.pass_context
def frequency(ctx, kegg_file, go_file, output_dir, top_n, label_length,
              skip_go_annotation, skip_viz):
    """Count KEGG and GO identifier frequencies and plot top GO terms.

    Writes KEGG and GO frequency tables, then (when the GO OBO file is
    available) adds term names and ontology categories, writes the
    annotated table and renders a bar chart of the top terms per ontology.

    Examples:

        # Default settings from config
        annotation-pipeline frequency

        # Top 15 terms per ontology, counts only
        annotation-pipeline frequency --top-n 15 --skip-viz
    """
    config_path = ctx.obj['config_path']

    click.echo(click.style("=== KEGG and GO Term Frequency Analysis ===", bold=True))
    click.echo()

    try:
        click.echo("Loading configuration...")
        config = load_config_with_overrides(config_path, {
            'inputs.kegg_file': kegg_file,
            'inputs.go_file': go_file,
            'output_dir': output_dir,
            'plots.go_top_n_per_category': top_n,
            'plots.go_label_length': label_length,
        })
        click.echo(click.style(f"  Config loaded: {config_path}", fg='green'))
        click.echo()

        inputs = config.inputs
        out_dir = Path(config.output_dir)
        provenance = ProvenanceTracker.from_config(config)
        written = []

        # Step 1: Read inputs
        click.echo(click.style("Step 1: Reading input data...", bold=True))
        kegg_df = read_identifier_table(inputs.kegg_file, inputs.kegg_column, inputs.separator)
        go_df = read_identifier_table(inputs.go_file, inputs.go_column, inputs.separator)
        kegg_unique = kegg_df[inputs.kegg_column].n_unique()
        go_unique = go_df[inputs.go_column].n_unique()
        click.echo(f"  Total KEGG ID entries: {kegg_df.height}")
        click.echo(f"  Unique KEGG IDs:       {kegg_unique}")
        click.echo(f"  Total GO term entries: {go_df.height}")
        click.echo(f"  Unique GO terms:       {go_unique}")
        click.echo()
        provenance.record_step('read_inputs', {
            'kegg_rows': kegg_df.height,
            'kegg_unique': kegg_unique,
            'go_rows': go_df.height,
            'go_unique': go_unique,
        })

        # Step 2: KEGG frequencies
        click.echo(click.style("Step 2: KEGG ID frequency analysis...", bold=True))
        kegg_counts = count_identifiers(kegg_df, inputs.kegg_column)
        click.echo(f"Top {PREVIEW_ROWS} most frequent KEGG IDs:")
        echo_table(kegg_counts, max_rows=PREVIEW_ROWS)
        written.append(write_table(kegg_counts, out_dir / KEGG_FREQUENCY_FILENAME))
        echo_outputs(written[-1:])
        click.echo()

        # Step 3: GO frequencies
        click.echo(click.style("Step 3: GO term frequency analysis...", bold=True))
        go_counts = count_identifiers(go_df, inputs.go_column)
        click.echo(f"Total unique GO terms: {go_counts.height}")
        click.echo(f"Top {PREVIEW_ROWS} most frequent GO terms:")
        echo_table(go_counts, max_rows=PREVIEW_ROWS)
        written.append(write_table(go_counts, out_dir / GO_FREQUENCY_FILENAME))
        echo_outputs(written[-1:])
        click.echo()
        provenance.record_step('count_frequencies', {
            'kegg_identifiers': kegg_counts.height,
            'go_terms': go_counts.height,
        })

        # Step 4: GO term annotation (optional branch)
        resolver = None
        if skip_go_annotation:
            click.echo(click.style("Step 4: Skipping GO term annotation (--skip-go-annotation)", fg='yellow'))
            click.echo()
        else:
            click.echo(click.style("Step 4: Adding GO term descriptions...", bold=True))
            try:
                resolver = GOTermResolver.from_settings(config.go, CachedAPIClient.from_config(config))
            except GOTermDatabaseUnavailable as e:
                click.echo(click.style(f"  GO terminology database not available: {e}", fg='yellow'))
                click.echo(f"  Download go-basic.obo from {config.go.obo_url}")
                click.echo(f"  and save it as {config.go.obo_path}, or set go.auto_download: true.")
                click.echo("  Then run the command again to annotate and plot GO terms.")
                click.echo()
                provenance.record_step('go_annotation_skipped', {'reason': str(e)})

        if resolver is not None:
            annotated = annotate_go_terms(go_counts, resolver, inputs.go_column)
            by_ontology = ontology_counts(annotated)
            click.echo("GO terms by category:")
            for code, count in by_ontology.items():
                click.echo(f"  {ONTOLOGY_LABELS[code]} ({code}): {count}")
            dropped = go_counts.height - annotated.height
            if dropped:
                click.echo(click.style(f"  {dropped} terms without ontology information removed", fg='yellow'))
            written.append(write_table(annotated, out_dir / GO_ANNOTATED_FILENAME))
            echo_outputs(written[-1:])
            click.echo()
            provenance.record_step('annotate_go_terms', {
                'annotated_terms': annotated.height,
                'unresolved_terms': dropped,
                'by_ontology': by_ontology,
            })

            # Step 5: GO chart
            plot_df = go_plot_rows(
                annotated,
                config.plots.go_top_n_per_category,
                config.plots.go_label_length,
            )
            if skip_viz:
                click.echo(click.style("Step 5: Skipping visualization (--skip-viz)", fg='yellow'))
                click.echo()
            else:
                click.echo(click.style("Step 5: Creating visualization...", bold=True))
                outcome = generate_go_plot(plot_df, out_dir, config.plots)
                if isinstance(outcome, ChartProduced):
                    written.extend(outcome.paths)
                    echo_outputs(outcome.paths)
                else:
                    click.echo(click.style(f"  GO chart skipped: {outcome.reason}", fg='yellow'))
                click.echo()
                provenance.record_step('generate_go_plot', {
                    'produced': isinstance(outcome, ChartProduced),
                    'plot_rows': plot_df.height,
                })

            click.echo("Terms included in plot:")
            for code, label in ONTOLOGY_LABELS.items():
                block = plot_df.filter(plot_df["Ontology"] == code)
                if block.height == 0:
                    continue
                click.echo(f"\n{label} ({block.height} terms):")
                for i, row in enumerate(block.to_dicts(), start=1):
                    click.echo(f"  {i}. {row['Description']} (Count: {row['Count']})")
            click.echo()

        provenance.record_outputs(written)
        provenance_path = provenance.save_sidecar(out_dir, "frequency")

        # Final summary
        click.echo(click.style("=== Analysis Complete ===", bold=True))
        click.echo(f"  {kegg_unique} unique KEGG IDs analyzed")
        click.echo(f"  {go_unique} unique GO terms analyzed")
        click.echo()
        click.echo(f"Output Directory: {out_dir}")
        click.echo("Output Files:")
        for path in written:
            click.echo(f"  {path.name}")
        click.echo(f"  {provenance_path.name}")
        click.echo()
        click.echo(click.style("Frequency analysis complete!", fg='green', bold=True))

    except Exception as e:
        click.echo(click.style(f"Frequency command failed: {e}", fg='red'), err=True)
        logger.exception("Frequency command failed")
        sys.exit(1)
