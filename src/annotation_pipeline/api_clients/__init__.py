"""HTTP clients for reference databases."""

from annotation_pipeline.api_clients.base import CachedAPIClient
from annotation_pipeline.api_clients.kegg import (
    KEGGClient,
    parse_pathway_links,
    parse_pathway_names,
)

__all__ = [
    "CachedAPIClient",
    "KEGGClient",
    "parse_pathway_links",
    "parse_pathway_names",
]
