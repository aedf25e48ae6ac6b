"""Hypergeometric over-representation analysis with multiple-testing correction."""

from collections.abc import Iterable, Mapping

import numpy as np
import polars as pl
import structlog
from scipy.stats import hypergeom, rankdata
from statsmodels.stats.multitest import multipletests

from annotation_pipeline.enrichment.models import (
    ENRICHMENT_COLUMNS,
    ENRICHMENT_SCHEMA,
    GENE_ID_SEPARATOR,
    EnrichmentResult,
    EnrichmentRow,
)

logger = structlog.get_logger()

# R method names -> statsmodels multipletests method names
_MULTIPLETESTS_METHODS = {
    "BH": "fdr_bh",
    "fdr": "fdr_bh",
    "BY": "fdr_by",
    "bonferroni": "bonferroni",
    "holm": "holm",
    "hochberg": "simes-hochberg",
    "hommel": "hommel",
}

QVALUE_LAMBDA = 0.05


def adjust_pvalues(pvalues: np.ndarray, method: str = "BH") -> np.ndarray:
    """Adjust p-values for multiple testing.

    Args:
        pvalues: Raw p-values
        method: One of BH, fdr, BY, bonferroni, holm, hochberg, hommel, none

    Returns:
        Adjusted p-values in the input order
    """
    pvalues = np.asarray(pvalues, dtype=float)
    if pvalues.size == 0 or method == "none":
        return pvalues.copy()
    if method not in _MULTIPLETESTS_METHODS:
        raise ValueError(f"Unsupported p-value adjustment method: {method}")
    _, adjusted, _, _ = multipletests(pvalues, method=_MULTIPLETESTS_METHODS[method])
    return adjusted


def storey_qvalues(pvalues: np.ndarray, lam: float = QVALUE_LAMBDA) -> np.ndarray | None:
    """Storey q-values with a fixed lambda.

    pi0 is estimated as ``mean(p >= lam) / (1 - lam)``, capped at 1. When the
    estimate is not positive q-values are undefined and None is returned.

    Args:
        pvalues: Raw p-values
        lam: Tuning parameter for the pi0 estimate, in [0, 1)

    Returns:
        q-values in the input order, or None
    """
    pvalues = np.asarray(pvalues, dtype=float)
    m = pvalues.size
    if m == 0:
        return np.array([], dtype=float)

    pi0 = min(float(np.mean(pvalues >= lam)) / (1.0 - lam), 1.0)
    if pi0 <= 0:
        logger.warning("qvalue_pi0_not_positive", pi0=pi0, tested=m)
        return None

    ranks = rankdata(pvalues, method="max")
    qvalues = pi0 * m * pvalues / ranks

    order = np.argsort(pvalues, kind="stable")
    q_sorted = qvalues[order]
    q_sorted[-1] = min(q_sorted[-1], 1.0)
    q_sorted = np.minimum.accumulate(q_sorted[::-1])[::-1]

    result = np.empty(m, dtype=float)
    result[order] = q_sorted
    return result


def _unique_in_order(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(values))


def run_ora(
    genes: Iterable[str],
    gene_sets: Mapping[str, Iterable[str]],
    term_names: Mapping[str, str] | None = None,
    pvalue_cutoff: float = 0.05,
    p_adjust_method: str = "BH",
    qvalue_cutoff: float = 0.2,
    min_gs_size: int = 10,
    max_gs_size: int = 500,
) -> EnrichmentResult | None:
    """Test every gene set for over-representation of the query genes.

    The universe is every gene annotated to at least one gene set. Gene set
    sizes are filtered to ``[min_gs_size, max_gs_size]`` before testing;
    only sets containing at least one query gene are tested. For each set,
    with k query genes in a set of size M, n annotated query genes and a
    universe of N, the p-value is P(X >= k) for X ~ Hypergeom(N, M, n).

    Adjusted p-values and q-values are computed over all tested sets; the
    returned table keeps only rows with ``pvalue <= pvalue_cutoff``,
    ``p.adjust <= pvalue_cutoff`` and, when q-values exist,
    ``qvalue <= qvalue_cutoff``, sorted ascending by p-value (ties by ID).

    Args:
        genes: Query gene identifiers; duplicates are removed, first-seen
            order kept
        gene_sets: Term ID -> member genes
        term_names: Term ID -> description
        pvalue_cutoff: Cutoff on raw and adjusted p-values
        p_adjust_method: Multiple-testing correction method
        qvalue_cutoff: Cutoff on q-values
        min_gs_size: Smallest gene set tested
        max_gs_size: Largest gene set tested

    Returns:
        EnrichmentResult (possibly with an empty table), or None when no
        query gene is annotated or no gene set survives the size filter
    """
    term_names = term_names or {}
    query = _unique_in_order(genes)
    query_rank = {gene: i for i, gene in enumerate(query)}

    sets = {term: set(members) for term, members in gene_sets.items()}
    universe = set().union(*sets.values()) if sets else set()

    mapped = [gene for gene in query if gene in universe]
    logger.info(
        "ora_start",
        query_size=len(query),
        mapped_size=len(mapped),
        universe_size=len(universe),
        gene_set_count=len(sets),
    )
    if not mapped:
        logger.warning("ora_no_gene_mapped", query_size=len(query))
        return None

    mapped_set = set(mapped)
    sized = {
        term: members
        for term, members in sets.items()
        if min_gs_size <= len(members) <= max_gs_size
    }
    hit_terms = {
        term: sorted(members & mapped_set, key=query_rank.__getitem__)
        for term, members in sized.items()
        if members & mapped_set
    }
    if not hit_terms:
        logger.warning(
            "ora_no_gene_set_in_size_range",
            min_gs_size=min_gs_size,
            max_gs_size=max_gs_size,
        )
        return None

    terms = sorted(hit_terms)
    n = len(mapped)
    N = len(universe)
    k = np.array([len(hit_terms[term]) for term in terms])
    M = np.array([len(sized[term]) for term in terms])

    background = M / N
    expected = n * background
    spread = np.sqrt(n * background * (1 - background))
    with np.errstate(divide="ignore", invalid="ignore"):
        zscores = np.where(spread > 0, (k - expected) / spread, np.nan)

    pvalues = hypergeom.sf(k - 1, N, M, n)
    adjusted = adjust_pvalues(pvalues, p_adjust_method)
    qvalues = storey_qvalues(pvalues)

    rows = [
        EnrichmentRow(
            ID=term,
            Description=term_names.get(term) or term,
            GeneRatio=f"{k[i]}/{n}",
            BgRatio=f"{M[i]}/{N}",
            RichFactor=k[i] / M[i],
            FoldEnrichment=(k[i] / n) / (M[i] / N),
            zScore=float(zscores[i]),
            pvalue=float(pvalues[i]),
            p_adjust=float(adjusted[i]),
            qvalue=None if qvalues is None else float(qvalues[i]),
            geneID=GENE_ID_SEPARATOR.join(hit_terms[term]),
            Count=int(k[i]),
        ).to_table_row()
        for i, term in enumerate(terms)
    ]

    table = pl.DataFrame(rows, schema=ENRICHMENT_SCHEMA).select(ENRICHMENT_COLUMNS)
    table = table.sort(["pvalue", "ID"])

    table = table.filter(
        (pl.col("pvalue") <= pvalue_cutoff) & (pl.col("p.adjust") <= pvalue_cutoff)
    )
    if qvalues is not None:
        table = table.filter(pl.col("qvalue") <= qvalue_cutoff)

    logger.info(
        "ora_complete",
        tested=len(terms),
        significant=table.height,
        pvalue_cutoff=pvalue_cutoff,
        qvalue_cutoff=qvalue_cutoff,
        p_adjust_method=p_adjust_method,
    )

    return EnrichmentResult(
        table=table,
        query_size=len(query),
        mapped_size=n,
        universe_size=N,
        tested_count=len(terms),
        parameters={
            "pvalue_cutoff": pvalue_cutoff,
            "qvalue_cutoff": qvalue_cutoff,
            "p_adjust_method": p_adjust_method,
            "min_gs_size": min_gs_size,
            "max_gs_size": max_gs_size,
        },
    )
