"""Data models for identifier inputs and GO term annotation."""

from pydantic import BaseModel

# goatools namespace -> GO.db style ontology code
NAMESPACE_CODES = {
    "biological_process": "BP",
    "cellular_component": "CC",
    "molecular_function": "MF",
}

# Fixed display order of ontology categories
ONTOLOGY_ORDER = ("BP", "CC", "MF")

ONTOLOGY_LABELS = {
    "BP": "Biological process",
    "CC": "Cellular component",
    "MF": "Molecular function",
}


class GOTerm(BaseModel):
    """Resolved name and category of a single GO identifier.

    Attributes:
        go_id: Identifier as it appeared in the input (not normalized)
        description: Term name, or the raw identifier when lookup failed
        ontology: "BP", "CC" or "MF"; None when the term could not be resolved
    """

    go_id: str
    description: str
    ontology: str | None = None

    @property
    def is_resolved(self) -> bool:
        return self.ontology is not None
