"""Provenance tracking for pipeline runs."""

from annotation_pipeline.persistence.provenance import ProvenanceTracker

__all__ = ["ProvenanceTracker"]
