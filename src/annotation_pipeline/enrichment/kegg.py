"""KEGG pathway over-representation analysis."""

from collections.abc import Iterable

import polars as pl
import structlog

from annotation_pipeline.api_clients.kegg import KEGGClient
from annotation_pipeline.config.schema import EnrichmentSettings
from annotation_pipeline.enrichment.models import EnrichmentResult
from annotation_pipeline.enrichment.ora import run_ora

logger = structlog.get_logger()


def build_gene_sets(links: pl.DataFrame) -> dict[str, list[str]]:
    """Group a pathway_id/gene_id link table into pathway -> genes."""
    grouped = links.group_by("pathway_id", maintain_order=True).agg(pl.col("gene_id"))
    return {row["pathway_id"]: row["gene_id"] for row in grouped.to_dicts()}


def enrich_kegg(
    identifiers: Iterable[str],
    client: KEGGClient,
    settings: EnrichmentSettings,
) -> EnrichmentResult | None:
    """Run KEGG pathway enrichment for a list of KEGG identifiers.

    The identifier list is reduced to a set (first-seen order) before
    submission. Pathway membership and names are fetched from KEGG REST for
    ``settings.organism``.

    Args:
        identifiers: KEGG gene/ortholog identifiers, duplicates allowed
        client: KEGG REST client
        settings: Enrichment parameters

    Returns:
        EnrichmentResult sorted ascending by p-value, or None when nothing
        could be tested

    Raises:
        requests.RequestException: KEGG could not be reached
        ValueError: KEGG returned an unparsable response
    """
    genes = list(dict.fromkeys(identifiers))
    logger.info(
        "enrich_kegg_start",
        unique_identifiers=len(genes),
        organism=settings.organism,
        key_type=settings.key_type,
    )

    links = client.pathway_links(settings.organism)
    names = client.pathway_names(settings.organism)
    gene_sets = build_gene_sets(links)
    term_names = dict(zip(names["pathway_id"].to_list(), names["description"].to_list()))

    return run_ora(
        genes,
        gene_sets,
        term_names,
        pvalue_cutoff=settings.pvalue_cutoff,
        p_adjust_method=settings.p_adjust_method,
        qvalue_cutoff=settings.qvalue_cutoff,
        min_gs_size=settings.min_gs_size,
        max_gs_size=settings.max_gs_size,
    )
