"""Run provenance written next to pipeline outputs."""

import json
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from annotation_pipeline import __version__
from annotation_pipeline.config.schema import PipelineConfig

SIDECAR_SUFFIX = ".provenance.json"


class ProvenanceTracker:
    """
    Collects what a pipeline run did so its output directory can be traced
    back to the code and settings that produced it.

    The sidecar holds the package version, the config hash, the enrichment
    and plot settings in effect, timestamped processing steps and the names
    of the files the run wrote.
    """

    def __init__(self, pipeline_version: str, config: PipelineConfig):
        self.pipeline_version = pipeline_version
        self.config_hash = config.config_hash()
        self.settings = {
            "enrichment": config.enrichment.model_dump(),
            "plots": config.plots.model_dump(),
        }
        self.processing_steps: list[dict] = []
        self.outputs: list[str] = []
        self.created_at = datetime.now(timezone.utc)

    def record_step(self, step_name: str, details: Optional[dict] = None) -> None:
        """Append a timestamped step, with optional JSON-serializable details."""
        step = {
            "step_name": step_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if details:
            step["details"] = details
        self.processing_steps.append(step)

    def record_outputs(self, paths: Iterable[Path]) -> None:
        """Remember written files by name (outputs share one directory)."""
        self.outputs.extend(Path(p).name for p in paths)

    def get_steps(self) -> list[dict]:
        return self.processing_steps

    def create_metadata(self) -> dict:
        return {
            "pipeline_version": self.pipeline_version,
            "config_hash": self.config_hash,
            "created_at": self.created_at.isoformat(),
            "settings": self.settings,
            "processing_steps": self.processing_steps,
            "outputs": self.outputs,
        }

    def save_sidecar(self, output_dir: Path, run_name: str) -> Path:
        """
        Write ``<output_dir>/<run_name>.provenance.json``.

        Args:
            output_dir: Directory holding the run's outputs
            run_name: Pipeline name, e.g. "frequency" or "enrichment"

        Returns:
            Path to the sidecar
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        sidecar_path = output_dir / f"{run_name}{SIDECAR_SUFFIX}"
        sidecar_path.write_text(json.dumps(self.create_metadata(), indent=2, default=str))
        return sidecar_path

    @staticmethod
    def load_sidecar(sidecar_path: Path) -> dict:
        return json.loads(Path(sidecar_path).read_text())

    @classmethod
    def from_config(cls, config: PipelineConfig, version: Optional[str] = None) -> "ProvenanceTracker":
        """Tracker stamped with ``version`` or the installed package version."""
        return cls(version or __version__, config)
