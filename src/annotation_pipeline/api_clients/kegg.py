"""KEGG REST client for pathway-to-gene links and pathway names."""

import logging

import polars as pl

from annotation_pipeline.api_clients.base import CachedAPIClient
from annotation_pipeline.config.schema import PipelineConfig

logger = logging.getLogger(__name__)

# Organism-specific names end in " - <species>", e.g. " - Escherichia coli K-12 MG1655"
_SPECIES_SEPARATOR = " - "


def _strip_prefix(value: str, prefix: str) -> str:
    return value[len(prefix):] if value.startswith(prefix) else value


def parse_pathway_links(text: str, organism: str) -> pl.DataFrame:
    """
    Parse a KEGG ``link/<organism>/pathway`` response.

    Each line is ``path:<pathway>\\t<organism>:<gene>``. Only pathways keyed
    by the requested organism are kept; for ``ko`` this drops the generic
    ``map`` reference pathways that duplicate the ``ko`` ones.

    Args:
        text: Raw response body
        organism: KEGG organism code

    Returns:
        DataFrame with columns pathway_id, gene_id (duplicates removed,
        response order preserved)
    """
    pathway_ids = []
    gene_ids = []
    for line in text.splitlines():
        if not line.strip():
            continue
        fields = line.split("\t")
        if len(fields) != 2:
            raise ValueError(f"Malformed KEGG link line: {line!r}")
        pathway = _strip_prefix(fields[0].strip(), "path:")
        gene = _strip_prefix(fields[1].strip(), f"{organism}:")
        if not pathway.startswith(organism):
            continue
        pathway_ids.append(pathway)
        gene_ids.append(gene)

    return pl.DataFrame(
        {"pathway_id": pathway_ids, "gene_id": gene_ids},
        schema={"pathway_id": pl.Utf8, "gene_id": pl.Utf8},
    ).unique(maintain_order=True)


def parse_pathway_names(text: str, organism: str) -> pl.DataFrame:
    """
    Parse a KEGG ``list/pathway`` or ``list/pathway/<organism>`` response.

    Reference ``map`` identifiers are re-keyed to the organism prefix so they
    join against the link table. Organism-specific names lose their
    " - <species>" suffix.

    Args:
        text: Raw response body
        organism: KEGG organism code

    Returns:
        DataFrame with columns pathway_id, description
    """
    pathway_ids = []
    descriptions = []
    for line in text.splitlines():
        if not line.strip():
            continue
        fields = line.split("\t", 1)
        if len(fields) != 2:
            raise ValueError(f"Malformed KEGG list line: {line!r}")
        pathway = _strip_prefix(fields[0].strip(), "path:")
        if pathway.startswith("map"):
            pathway = organism + pathway[len("map"):]
        pathway_ids.append(pathway)
        description = fields[1].strip()
        if organism != "ko":
            description = description.rsplit(_SPECIES_SEPARATOR, 1)[0]
        descriptions.append(description)

    return pl.DataFrame(
        {"pathway_id": pathway_ids, "description": descriptions},
        schema={"pathway_id": pl.Utf8, "description": pl.Utf8},
    ).unique(subset="pathway_id", keep="first", maintain_order=True)


class KEGGClient:
    """Thin wrapper around the KEGG REST API on top of CachedAPIClient."""

    def __init__(self, http: CachedAPIClient, base_url: str = "https://rest.kegg.jp"):
        self.http = http
        self.base_url = base_url.rstrip("/")

    def pathway_links(self, organism: str) -> pl.DataFrame:
        """Fetch gene-to-pathway membership for an organism."""
        url = f"{self.base_url}/link/{organism}/pathway"
        logger.info(f"Fetching KEGG pathway links: {url}")
        links = parse_pathway_links(self.http.get_text(url), organism)
        logger.info(
            f"KEGG links for {organism}: {links.height} pairs, "
            f"{links['pathway_id'].n_unique()} pathways"
        )
        return links

    def pathway_names(self, organism: str) -> pl.DataFrame:
        """Fetch pathway identifiers and their names for an organism."""
        if organism == "ko":
            url = f"{self.base_url}/list/pathway"
        else:
            url = f"{self.base_url}/list/pathway/{organism}"
        logger.info(f"Fetching KEGG pathway names: {url}")
        return parse_pathway_names(self.http.get_text(url), organism)

    @classmethod
    def from_config(cls, config: PipelineConfig) -> "KEGGClient":
        """Create a KEGG client using the configured cache and API settings."""
        return cls(CachedAPIClient.from_config(config), config.api.kegg_base_url)
