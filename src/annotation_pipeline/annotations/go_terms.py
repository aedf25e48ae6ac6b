"""GO term names and ontology categories from a local OBO file."""

from pathlib import Path

import polars as pl
import structlog
from goatools.obo_parser import GODag

from annotation_pipeline.annotations.models import (
    NAMESPACE_CODES,
    ONTOLOGY_LABELS,
    ONTOLOGY_ORDER,
    GOTerm,
)
from annotation_pipeline.api_clients.base import CachedAPIClient
from annotation_pipeline.config.schema import GOSettings

logger = structlog.get_logger()


class GOTermDatabaseUnavailable(RuntimeError):
    """Raised when the GO OBO file is missing and cannot be obtained or parsed."""


def ensure_obo_file(
    settings: GOSettings,
    http: CachedAPIClient | None = None,
) -> Path:
    """Return the local OBO path, downloading it first if allowed.

    Args:
        settings: GO settings (obo_path, obo_url, auto_download)
        http: Client used for the download; required when a download is needed

    Raises:
        GOTermDatabaseUnavailable: File is absent and cannot be downloaded
    """
    obo_path = Path(settings.obo_path)
    if obo_path.exists():
        return obo_path

    if not settings.auto_download or http is None:
        raise GOTermDatabaseUnavailable(
            f"GO OBO file not found at {obo_path} and automatic download is disabled"
        )

    logger.info("go_obo_download_start", url=settings.obo_url, path=str(obo_path))
    try:
        http.download(settings.obo_url, obo_path)
    except Exception as e:
        raise GOTermDatabaseUnavailable(
            f"Could not download GO OBO file from {settings.obo_url}: {e}"
        ) from e
    return obo_path


class GOTermResolver:
    """Looks up GO identifiers in a loaded goatools GODag.

    Alternate ids resolve to their primary term. Obsolete terms are not
    loaded and therefore resolve as unknown.
    """

    def __init__(self, dag: GODag):
        self.dag = dag

    @classmethod
    def from_obo(cls, obo_path: Path | str) -> "GOTermResolver":
        """Load a resolver from an OBO file.

        Raises:
            GOTermDatabaseUnavailable: File is missing or unparsable
        """
        obo_path = Path(obo_path)
        if not obo_path.exists():
            raise GOTermDatabaseUnavailable(f"GO OBO file not found: {obo_path}")
        try:
            dag = GODag(str(obo_path), load_obsolete=False, prt=None)
        except Exception as e:
            raise GOTermDatabaseUnavailable(f"Could not parse GO OBO file {obo_path}: {e}") from e

        logger.info("go_dag_loaded", path=str(obo_path), term_count=len(dag))
        return cls(dag)

    @classmethod
    def from_settings(
        cls,
        settings: GOSettings,
        http: CachedAPIClient | None = None,
    ) -> "GOTermResolver":
        """Locate (or download) the OBO file and load it."""
        return cls.from_obo(ensure_obo_file(settings, http))

    def lookup(self, go_id: str) -> GOTerm:
        """Resolve one identifier; unknown ids fall back to the raw code."""
        record = self.dag.get(go_id)
        if record is None:
            return GOTerm(go_id=go_id, description=go_id, ontology=None)
        return GOTerm(
            go_id=go_id,
            description=record.name,
            ontology=NAMESPACE_CODES.get(record.namespace),
        )


def annotate_go_terms(
    counts: pl.DataFrame,
    resolver: GOTermResolver,
    id_column: str = "GO_id",
) -> pl.DataFrame:
    """Attach Description, Ontology and Ontology_full to a GO frequency table.

    Rows whose ontology cannot be resolved are removed; every remaining row
    carries one of BP, CC or MF. Row order of the input is kept.

    Args:
        counts: Frequency table with ``id_column`` and Count
        resolver: Loaded GOTermResolver
        id_column: Name of the GO identifier column

    Returns:
        Annotated, filtered frequency table
    """
    terms = [resolver.lookup(go_id) for go_id in counts[id_column].to_list()]

    annotated = counts.with_columns(
        pl.Series("Description", [t.description for t in terms], dtype=pl.Utf8),
        pl.Series("Ontology", [t.ontology for t in terms], dtype=pl.Utf8),
        pl.Series(
            "Ontology_full",
            [ONTOLOGY_LABELS.get(t.ontology) if t.ontology else None for t in terms],
            dtype=pl.Utf8,
        ),
    )

    unresolved = annotated.filter(pl.col("Ontology").is_null())
    if unresolved.height > 0:
        logger.warning(
            "go_terms_unresolved",
            count=unresolved.height,
            examples=unresolved[id_column].head(5).to_list(),
        )

    annotated = annotated.filter(pl.col("Ontology").is_not_null())
    logger.info(
        "annotate_go_terms_complete",
        input_terms=counts.height,
        annotated_terms=annotated.height,
        by_ontology=ontology_counts(annotated),
    )
    return annotated


def ontology_counts(annotated: pl.DataFrame) -> dict[str, int]:
    """Number of rows per ontology code, in BP, CC, MF order (zeros included)."""
    return {
        code: annotated.filter(pl.col("Ontology") == code).height
        for code in ONTOLOGY_ORDER
    }
