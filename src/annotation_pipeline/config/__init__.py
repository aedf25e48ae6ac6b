from .loader import load_config, load_config_with_overrides
from .schema import (
    APIConfig,
    EnrichmentSettings,
    GOSettings,
    InputSettings,
    PipelineConfig,
    PlotSettings,
)

__all__ = [
    "load_config",
    "load_config_with_overrides",
    "PipelineConfig",
    "InputSettings",
    "EnrichmentSettings",
    "PlotSettings",
    "GOSettings",
    "APIConfig",
]
