import json
from pathlib import Path
from typing import Any, Dict, Union

import yaml


def from_json_or_yaml(filepath: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a dictionary from a JSON or YAML file, chosen by extension.

    Args:
    filepath (str | Path): The path of the file.

    Returns:
    data (dict): The parsed content; an empty file yields ``{}``.
    """
    path = Path(filepath)
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")

    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix == ".json":
        data = json.loads(text) if text.strip() else {}
    elif suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        raise ValueError(f"Unsupported file extension: {suffix}. Use .json, .yaml or .yml")

    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top level of {path}")
    return data
