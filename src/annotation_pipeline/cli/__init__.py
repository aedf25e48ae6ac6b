"""Command-line interface for annotation-pipeline."""
