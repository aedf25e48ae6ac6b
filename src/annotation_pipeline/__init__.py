"""Annotation pipeline: KEGG pathway enrichment and KEGG/GO frequency analysis."""

__version__ = "0.1.0"
