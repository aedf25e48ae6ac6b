"""Data models for over-representation analysis results."""

from dataclasses import dataclass, field

import polars as pl
from pydantic import BaseModel

# Column order of the enrichment results table
ENRICHMENT_COLUMNS = [
    "ID",
    "Description",
    "GeneRatio",
    "BgRatio",
    "RichFactor",
    "FoldEnrichment",
    "zScore",
    "pvalue",
    "p.adjust",
    "qvalue",
    "geneID",
    "Count",
]

ENRICHMENT_SCHEMA = {
    "ID": pl.Utf8,
    "Description": pl.Utf8,
    "GeneRatio": pl.Utf8,
    "BgRatio": pl.Utf8,
    "RichFactor": pl.Float64,
    "FoldEnrichment": pl.Float64,
    "zScore": pl.Float64,
    "pvalue": pl.Float64,
    "p.adjust": pl.Float64,
    "qvalue": pl.Float64,
    "geneID": pl.Utf8,
    "Count": pl.Int64,
}

GENE_ID_SEPARATOR = "/"


class EnrichmentRow(BaseModel):
    """One tested pathway.

    Attributes:
        ID: Pathway identifier (e.g. ko00010)
        Description: Pathway name (falls back to ID when KEGG has no name)
        GeneRatio: "k/n", query genes in pathway over annotated query genes
        BgRatio: "M/N", pathway size over universe size
        RichFactor: k / M
        FoldEnrichment: GeneRatio / BgRatio
        zScore: (k - n*M/N) / sqrt(n * M/N * (1 - M/N)), NaN when every
            universe gene is in the pathway
        pvalue: Upper-tail hypergeometric probability P(X >= k)
        p.adjust: Multiple-testing adjusted p-value
        qvalue: Storey q-value - NULL when pi0 could not be estimated
        geneID: Query genes in the pathway, "/"-joined in query order
        Count: k
    """

    ID: str
    Description: str
    GeneRatio: str
    BgRatio: str
    RichFactor: float
    FoldEnrichment: float
    zScore: float
    pvalue: float
    p_adjust: float
    qvalue: float | None = None
    geneID: str
    Count: int

    def to_table_row(self) -> dict:
        row = self.model_dump()
        row["p.adjust"] = row.pop("p_adjust")
        return {column: row[column] for column in ENRICHMENT_COLUMNS}


@dataclass
class EnrichmentResult:
    """Outcome of an over-representation test.

    ``table`` holds the pathways that pass the cutoffs, sorted ascending by
    p-value (ties by ID). Downstream selection takes prefixes of this table
    and relies on row 0 being the most significant pathway.
    """

    table: pl.DataFrame
    query_size: int
    mapped_size: int
    universe_size: int
    tested_count: int
    parameters: dict = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return self.table.height == 0

    def gene_lists(self) -> dict[str, list[str]]:
        """Hit genes per pathway ID of the full result."""
        return gene_lists(self.table)


def gene_lists(table: pl.DataFrame) -> dict[str, list[str]]:
    """Hit genes per pathway ID, parsed from the "/"-joined geneID column."""
    return {
        row["ID"]: row["geneID"].split(GENE_ID_SEPARATOR) if row["geneID"] else []
        for row in table.select("ID", "geneID").to_dicts()
    }
