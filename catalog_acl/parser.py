from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any, Dict, Union
import yaml
from pydantic import ValidationError
from .errors import AccessControlConfigError
from .models import AccessControlRules

logger = logging.getLogger(__name__)


def load_rules(obj: Dict[str, Any]) -> AccessControlRules:
    if not isinstance(obj, dict):
        raise AccessControlConfigError(f"Rules document must be a mapping, got {type(obj).__name__}")
    data = obj.get("data", obj)
    try:
        return AccessControlRules.model_validate(data)
    except ValidationError as e:
        raise AccessControlConfigError(f"Invalid access control rules: {e}") from e


def dump_rules(rules: AccessControlRules, wrap: bool = False) -> Dict[str, Any]:
    data = rules.model_dump(mode="json", by_alias=True, exclude_none=True)
    return {"data": data} if wrap else data


def read_document(path: Union[str, Path]) -> Any:
    """Read a JSON or YAML document, chosen by file extension."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix in (".yaml", ".yml"):
                return yaml.safe_load(f)
            return json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise AccessControlConfigError(f"Failed to read {path}: {e}") from e


def read_rules_file(path: Union[str, Path]) -> AccessControlRules:
    rules = load_rules(read_document(path))
    logger.info("Loaded %d access control rules from %s", rules.rule_count(), path)
    return rules
