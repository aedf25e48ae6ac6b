"""Main CLI entry point for annotation-pipeline.

Provides command group with global options and subcommands for the two
analysis pipelines.
"""

import logging
from pathlib import Path

import click

from annotation_pipeline import __version__
from annotation_pipeline.config.loader import load_config
from annotation_pipeline.cli.enrich_cmd import enrich
from annotation_pipeline.cli.frequency_cmd import frequency


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@click.group()
@click.option(
    '--config',
    type=click.Path(exists=True, path_type=Path),
    default='config/default.yaml',
    help='Path to pipeline configuration YAML file'
)
@click.option(
    '--verbose',
    is_flag=True,
    help='Enable verbose logging (DEBUG level)'
)
@click.pass_context
def cli(ctx, config, verbose):
    """Annotation-pipeline: KEGG pathway enrichment and KEGG/GO term frequency analysis.

    Counts functional annotation identifiers, runs over-representation
    tests against KEGG pathways, and renders publication-style charts.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.debug("Verbose logging enabled")


@cli.command()
@click.pass_context
def info(ctx):
    """Display pipeline information and configuration summary."""
    config_path = ctx.obj['config_path']

    click.echo(f"Annotation Pipeline v{__version__}")
    click.echo(f"Config: {config_path}")
    click.echo()

    try:
        config = load_config(config_path)

        config_hash = config.config_hash()
        click.echo(f"Config Hash: {config_hash[:16]}...")
        click.echo()

        click.echo(click.style("Inputs:", bold=True))
        click.echo(f"  KEGG file: {config.inputs.kegg_file} (column {config.inputs.kegg_column})")
        click.echo(f"  GO file:   {config.inputs.go_file} (column {config.inputs.go_column})")
        click.echo()

        click.echo(click.style("Enrichment:", bold=True))
        click.echo(f"  Organism:        {config.enrichment.organism} ({config.enrichment.key_type})")
        click.echo(f"  p-value cutoff:  {config.enrichment.pvalue_cutoff}")
        click.echo(f"  q-value cutoff:  {config.enrichment.qvalue_cutoff}")
        click.echo(f"  Adjust method:   {config.enrichment.p_adjust_method}")
        click.echo(f"  Gene set size:   {config.enrichment.min_gs_size}-{config.enrichment.max_gs_size}")
        click.echo()

        click.echo(click.style("Paths:", bold=True))
        click.echo(f"  Output Directory: {config.output_dir}")
        click.echo(f"  Cache Directory:  {config.cache_dir}")
        click.echo(f"  GO OBO File:      {config.go.obo_path}")
        click.echo()

        click.echo(click.style("API Configuration:", bold=True))
        click.echo(f"  KEGG REST:   {config.api.kegg_base_url}")
        click.echo(f"  Rate Limit:  {config.api.rate_limit_per_second} req/s")
        click.echo(f"  Max Retries: {config.api.max_retries}")
        click.echo(f"  Cache TTL:   {config.api.cache_ttl_seconds}s")
        click.echo(f"  Timeout:     {config.api.timeout_seconds}s")

    except Exception as e:
        click.echo(click.style(f"Error loading config: {e}", fg='red'), err=True)
        ctx.exit(1)


# Register commands
cli.add_command(frequency)
cli.add_command(enrich)


if __name__ == '__main__':
    cli()
