"""Engine configuration loading.

A config file is a YAML mapping of EngineConfig fields, e.g.:

    fallback_encoding: cp932
    export_decimals: 2
    master_path: data/pvdata.xlsx
"""

from pathlib import Path
from typing import Optional

import yaml

from pvpr_engine.core.schemas import EngineConfig


def load_config(config_path: Optional[str | Path] = None) -> EngineConfig:
    """Load engine configuration.

    Args:
        config_path: Path to a YAML config file, or None for defaults

    Returns:
        EngineConfig
    """
    if config_path is None:
        return EngineConfig()

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return EngineConfig(**data)


def write_config(config: EngineConfig, config_path: str | Path) -> None:
    """Write engine configuration as YAML.

    Args:
        config: Configuration to write
        config_path: Output path
    """
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(config.model_dump(), f, default_flow_style=False, allow_unicode=True)
