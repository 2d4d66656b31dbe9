"""
Persistence of built registries and loading of seed alias data.

Each registry is stored as a JSON object mapping identifier to entity. A
non-empty file found on a later run is trusted as-is, so the document that
produced it is not fetched again.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel, ValidationError

from utils.exceptions import ConfigError
from utils.logger import get_logger

logger = get_logger(__name__)


def _serialize(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True)
    return value


def save_registry(registry: Mapping[str, Any], output_path: str) -> None:
    """
    Write a registry to JSON with an atomic rename.

    Args:
        registry: Identifier to entity (pydantic model or plain string)
        output_path: Destination file
    """
    output_dir = os.path.dirname(output_path) or "."
    os.makedirs(output_dir, exist_ok=True)

    data = {key: _serialize(value) for key, value in sorted(registry.items())}

    with tempfile.NamedTemporaryFile(
        mode='w',
        suffix='.tmp',
        dir=output_dir,
        delete=False,
        encoding='utf-8'
    ) as temp_file:
        json.dump(data, temp_file, indent=2, ensure_ascii=False)
        temp_path = temp_file.name

    os.replace(temp_path, output_path)
    logger.info(f"Registry with {len(data)} entries written to {output_path}")


def load_registry(input_path: str, model: Optional[Type[BaseModel]] = None) -> Optional[Dict[str, Any]]:
    """
    Load a previously persisted registry.

    Args:
        input_path: JSON file written by save_registry()
        model: Entity model to validate values with; None for string values

    Returns:
        The registry, or None when the file is absent, unreadable or invalid
        (the caller rebuilds it from its document in that case)
    """
    path = Path(input_path)
    if not path.exists():
        logger.debug(f"No persisted registry at {input_path}")
        return None

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError("top-level JSON value is not an object")

        registry = {}
        for key, value in data.items():
            if model is not None:
                registry[key] = model.model_validate(value)
            elif isinstance(value, str):
                registry[key] = value
            else:
                raise ValueError(f"expected a string value for '{key}'")

        logger.info(f"Loaded {len(registry)} entries from {input_path}")
        return registry

    except (OSError, ValueError, ValidationError) as e:
        logger.error(f"Failed to read persisted registry {input_path}: {e}")
        return None


def load_alias_table(seed_path: str) -> Dict[str, List[str]]:
    """
    Load the seed mapping of identifier to known alias names.

    Args:
        seed_path: JSON file of the form {"fr": ["France", "French Republic"]}

    Returns:
        Alias table; empty when the file does not exist

    Raises:
        ConfigError: if the file exists but is not a valid alias table
    """
    path = Path(seed_path)
    if not path.exists():
        logger.warning(f"Seed countries file {seed_path} not found, resolving without aliases")
        return {}

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in seed countries file: {e}", {"path": seed_path})

    if not isinstance(data, dict):
        raise ConfigError("Seed countries file must contain a JSON object", {"path": seed_path})

    aliases = {}
    for key, names in data.items():
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            raise ConfigError(f"Aliases of '{key}' must be a list of strings", {"path": seed_path})
        aliases[key.lower()] = names

    logger.info(f"Loaded aliases for {len(aliases)} territories from {seed_path}")
    return aliases
