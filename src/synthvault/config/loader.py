"""Load engine configuration from YAML or plain dictionaries."""

from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .schema import Config

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


def load_config(yaml_path: Optional[Union[str, Path]] = None) -> Config:
    """
    Read a YAML file and validate it against the schema.

    An empty file validates as an empty mapping, so the schema reports
    which required sections are missing.

    Args:
        yaml_path: Path to a YAML file (packaged defaults.yaml when omitted)

    Returns:
        Config object

    Raises:
        ValueError: If the document is not a mapping
        pydantic.ValidationError: If the mapping fails validation
    """
    path = Path(yaml_path) if yaml_path is not None else DEFAULTS_PATH
    with open(path, 'r') as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level, got {type(data).__name__}")
    return config_from_dict(data)


def config_from_dict(data: Dict[str, Any]) -> Config:
    """Validate an already-parsed configuration mapping."""
    return Config.from_dict(data)
