"""Input identifier tables and GO term annotation."""

from annotation_pipeline.annotations.go_terms import (
    GOTermDatabaseUnavailable,
    GOTermResolver,
    annotate_go_terms,
    ensure_obo_file,
    ontology_counts,
)
from annotation_pipeline.annotations.models import (
    NAMESPACE_CODES,
    ONTOLOGY_LABELS,
    ONTOLOGY_ORDER,
    GOTerm,
)
from annotation_pipeline.annotations.reader import read_identifier_table

__all__ = [
    "GOTerm",
    "GOTermDatabaseUnavailable",
    "GOTermResolver",
    "NAMESPACE_CODES",
    "ONTOLOGY_LABELS",
    "ONTOLOGY_ORDER",
    "annotate_go_terms",
    "ensure_obo_file",
    "ontology_counts",
    "read_identifier_table",
]
