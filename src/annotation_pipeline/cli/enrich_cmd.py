"""Enrich command: KEGG pathway over-representation analysis with charts.

Orchestrates the enrichment pipeline:
- Reads KEGG identifiers
- Tests pathway over-representation against KEGG
- Writes the full results table
- Renders dot, bar, horizontal bar, enrichment map and gene-concept charts
"""

import logging
import sys
from pathlib import Path

import click

from annotation_pipeline.annotations import read_identifier_table
from annotation_pipeline.api_clients import KEGGClient
from annotation_pipeline.cli.console import echo_outputs, echo_table
from annotation_pipeline.config.loader import load_config_with_overrides
from annotation_pipeline.config.schema import P_ADJUST_METHODS
from annotation_pipeline.enrichment import enrich_kegg
from annotation_pipeline.frequency import enrichment_plot_rows
from annotation_pipeline.output import ChartProduced, generate_enrichment_plots, write_table
from annotation_pipeline.persistence import ProvenanceTracker

logger = logging.getLogger(__name__)

RESULTS_FILENAME = "KEGG_enrichment_results.csv"

# Cutoffs suggested when nothing passes the configured ones
RELAXED_PVALUE_CUTOFF = 0.1
RELAXED_QVALUE_CUTOFF = 0.3


def _report_no_enrichment(pvalue_cutoff: float, qvalue_cutoff: float) -> None:
    click.echo(click.style("=== NO ENRICHMENT FOUND ===", bold=True, fg='yellow'))
    click.echo()
    click.echo("No significantly enriched KEGG pathways were found.")
    click.echo()
    click.echo("Possible reasons:")
    click.echo("  1. The KEGG IDs may not map to specific pathways")
    click.echo("  2. The pathways may be too diverse (no clear enrichment)")
    click.echo("  3. The p-value/q-value cutoffs may be too stringent")
    click.echo()
    click.echo("Suggestions:")
    click.echo("  1. Try relaxing the cutoffs:")
    click.echo(f"       --pvalue-cutoff {RELAXED_PVALUE_CUTOFF} (instead of {pvalue_cutoff})")
    click.echo(f"       --qvalue-cutoff {RELAXED_QVALUE_CUTOFF} (instead of {qvalue_cutoff})")
    click.echo("  2. Check that the KEGG IDs use the expected format (e.g., K00001)")
    click.echo("  3. View the frequency distribution instead:")
    click.echo("       annotation-pipeline frequency")


@click.command('enrich')
@click.option(
    '--kegg-file',
    type=click.Path(path_type=Path),
    default=None,
    help='KEGG identifier file (default: inputs.kegg_file from config)'
)
@click.option(
    '--output-dir',
    type=click.Path(path_type=Path),
    default=None,
    help='Output directory (default: output_dir from config)'
)
@click.option(
    '--organism',
    type=str,
    default=None,
    help="KEGG organism code, 'ko' for KEGG Orthology (default from config)"
)
@click.option(
    '--pvalue-cutoff',
    type=float,
    default=None,
    help='Cutoff on raw and adjusted p-values (default from config)'
)
@click.option(
    '--qvalue-cutoff',
    type=float,
    default=None,
    help='Cutoff on q-values (default from config)'
)
@click.option(
    '--adjust-method',
    type=click.Choice(P_ADJUST_METHODS),
    default=None,
    help='Multiple-testing correction method (default from config)'
)
@click.option(
    '--top-n',
    type=int,
    default=None,
    help='Pathways shown in the bar and dot plots (default from config)'
)
@click.option(
    '--skip-viz',
    is_flag=True,
    help='Skip chart generation'
)
@click.pass_context
def enrich(ctx, kegg_file, output_dir, organism, pvalue_cutoff, qvalue_cutoff,
           adjust_method, top_n, skip_viz):
    """Run KEGG pathway enrichment and render publication-quality plots.

    Reads KEGG identifiers, tests each KEGG pathway for over-representation
    (hypergeometric test with multiple-testing correction), writes the
    significant pathways to CSV and renders charts of the top pathways.

    When no pathway passes the cutoffs, a report with suggestions is printed
    and no files are written.

    Examples:

        # Default settings from config
        annotation-pipeline enrich

        # Relaxed cutoffs
        annotation-pipeline enrich --pvalue-cutoff 0.1 --qvalue-cutoff 0.3
    """
    config_path = ctx.obj['config_path']

    click.echo(click.style("=== KEGG Enrichment Analysis ===", bold=True))
    click.echo()

    try:
        # Load config with CLI overrides
        click.echo("Loading configuration...")
        config = load_config_with_overrides(config_path, {
            'inputs.kegg_file': kegg_file,
            'output_dir': output_dir,
            'enrichment.organism': organism,
            'enrichment.pvalue_cutoff': pvalue_cutoff,
            'enrichment.qvalue_cutoff': qvalue_cutoff,
            'enrichment.p_adjust_method': adjust_method,
            'plots.kegg_top_n': top_n,
        })
        click.echo(click.style(f"  Config loaded: {config_path}", fg='green'))
        click.echo()

        settings = config.enrichment
        provenance = ProvenanceTracker.from_config(config)

        # Step 1: Read KEGG identifiers
        click.echo(click.style("Step 1: Reading KEGG annotation data...", bold=True))
        kegg_df = read_identifier_table(
            config.inputs.kegg_file,
            config.inputs.kegg_column,
            config.inputs.separator,
        )
        ko_ids = list(dict.fromkeys(kegg_df[config.inputs.kegg_column].to_list()))
        click.echo(f"  Total rows in file: {kegg_df.height}")
        click.echo(f"  Unique KEGG IDs:    {len(ko_ids)}")
        click.echo()
        click.echo("Sample of input data:")
        echo_table(kegg_df, max_rows=10)
        click.echo()
        provenance.record_step('read_kegg_identifiers', {
            'path': str(config.inputs.kegg_file),
            'total_rows': kegg_df.height,
            'unique_ids': len(ko_ids),
        })

        # Step 2: Enrichment test
        click.echo(click.style("Step 2: Running KEGG enrichment analysis...", bold=True))
        click.echo(f"  Analyzing {len(ko_ids)} unique KEGG identifiers against organism '{settings.organism}'")

        try:
            result = enrich_kegg(ko_ids, KEGGClient.from_config(config), settings)
        except Exception as e:
            click.echo(click.style(f"  Error with '{settings.organism}' organism: {e}", fg='red'), err=True)
            logger.exception("KEGG enrichment failed")
            result = None

        click.echo()

        if result is None or result.is_empty:
            _report_no_enrichment(settings.pvalue_cutoff, settings.qvalue_cutoff)
            return

        table = result.table
        click.echo(click.style(
            f"  SUCCESS! Found {table.height} enriched KEGG pathways "
            f"({result.tested_count} tested, {result.mapped_size}/{result.query_size} IDs mapped)",
            fg='green'
        ))
        click.echo()
        click.echo("Top 10 enriched pathways:")
        echo_table(
            table.select("ID", "Description", "GeneRatio", "pvalue", "p.adjust", "Count"),
            max_rows=10,
        )
        click.echo()
        provenance.record_step('kegg_enrichment', {
            'query_size': result.query_size,
            'mapped_size': result.mapped_size,
            'universe_size': result.universe_size,
            'tested_count': result.tested_count,
            'enriched_count': table.height,
        })

        # Step 3: Write full results
        click.echo(click.style("Step 3: Writing enrichment results...", bold=True))
        out_dir = Path(config.output_dir)
        results_path = write_table(table, out_dir / RESULTS_FILENAME)
        written = [results_path]
        echo_outputs([results_path])
        click.echo()
        provenance.record_step('write_enrichment_results', {'path': str(results_path)})

        # Step 4: Charts
        n_show = min(config.plots.kegg_top_n, table.height)
        outcomes = {}
        if not skip_viz:
            click.echo(click.style(f"Step 4: Creating plots for top {n_show} pathways...", bold=True))
            chart_rows = enrichment_plot_rows(
                table,
                top_n=config.plots.kegg_top_n,
                label_length=config.plots.kegg_label_length,
                emap_max_terms=config.plots.emap_max_terms,
                cnet_max_terms=config.plots.cnet_max_terms,
            )
            outcomes = generate_enrichment_plots(chart_rows, table.height, out_dir, config.plots)
            for name, outcome in outcomes.items():
                if isinstance(outcome, ChartProduced):
                    written.extend(outcome.paths)
                    click.echo(click.style(f"  {name}: saved", fg='green'))
                    echo_outputs(outcome.paths, indent="    ")
                else:
                    click.echo(click.style(f"  {name}: skipped ({outcome.reason})", fg='yellow'))
            click.echo()
            provenance.record_step('generate_enrichment_plots', {
                'produced': [n for n, o in outcomes.items() if isinstance(o, ChartProduced)],
                'skipped': {n: o.reason for n, o in outcomes.items() if not isinstance(o, ChartProduced)},
            })
        else:
            click.echo(click.style("Step 4: Skipping plots (--skip-viz)", fg='yellow'))
            click.echo()

        provenance.record_outputs(written)
        provenance_path = provenance.save_sidecar(out_dir, "enrichment")

        # Final summary
        click.echo(click.style("=== Analysis Complete ===", bold=True))
        click.echo(f"  Total enriched pathways: {table.height}")
        click.echo(f"  Pathways shown in plots: {n_show}")
        click.echo(
            f"  Significance threshold: p < {settings.pvalue_cutoff}, q < {settings.qvalue_cutoff} "
            f"({settings.p_adjust_method})"
        )
        click.echo()
        click.echo("Output Files:")
        for path in written:
            click.echo(f"  {path.name}")
        click.echo(f"  {provenance_path.name}")
        click.echo()

        click.echo("Top 5 pathways:")
        for i, row in enumerate(table.head(5).to_dicts(), start=1):
            click.echo(f"  {i}. {row['Description']}")
            click.echo(f"      p-value: {row['pvalue']:.2e}, Count: {row['Count']}")
        click.echo()
        click.echo(click.style("Enrichment analysis complete!", fg='green', bold=True))

    except Exception as e:
        click.echo(click.style(f"Enrich command failed: {e}", fg='red'), err=True)
        logger.exception("Enrich command failed")
        sys.exit(1)
