"""Configuration loading with YAML parsing and validation."""

from pathlib import Path
from typing import Any

import pydantic_yaml
import yaml
from pydantic import BaseModel

from .schema import PipelineConfig


def _require_file(config_path: Path | str) -> Path:
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    return config_path


def load_config(config_path: Path | str) -> PipelineConfig:
    """
    Load and validate pipeline configuration from a YAML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        pydantic.ValidationError: If the configuration is invalid
    """
    config_path = _require_file(config_path)
    return pydantic_yaml.parse_yaml_raw_as(PipelineConfig, config_path.read_text())


def _set_dotted(config_dict: dict[str, Any], key: str, value: Any) -> None:
    *sections, field = key.split(".")
    model: type[BaseModel] = PipelineConfig
    target = config_dict
    for section in sections:
        info = model.model_fields.get(section)
        annotation = info.annotation if info is not None else None
        if not (isinstance(annotation, type) and issubclass(annotation, BaseModel)):
            raise KeyError(f"Unknown config section in override {key!r}: {section!r}")
        model = annotation
        if not isinstance(target.get(section), dict):
            target[section] = {}
        target = target[section]
    target[field] = value


def load_config_with_overrides(
    config_path: Path | str,
    overrides: dict[str, Any],
) -> PipelineConfig:
    """
    Load config from YAML and apply command-line overrides.

    Keys are dotted paths into the config (``"enrichment.pvalue_cutoff"``,
    ``"output_dir"``). A ``None`` value means the flag was not given and the
    file value is kept. Overrides are merged into the raw YAML mapping and
    the result is validated once, so an overridden ``output_dir`` from the
    file is never created and overrides obey the same constraints as the
    file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        KeyError: If a dotted key names an unknown section
        pydantic.ValidationError: If the merged configuration is invalid
    """
    config_path = _require_file(config_path)
    config_dict = yaml.safe_load(config_path.read_text()) or {}

    for key, value in overrides.items():
        if value is not None:
            _set_dotted(config_dict, key, value)

    return PipelineConfig.model_validate(config_dict)
