"""Validate servicebook YAML data files against the bundled schema."""

import json
from pathlib import Path
from typing import Any, List, Optional, Union

import yaml
from jsonschema import Draft7Validator

SCHEMA_PATH = Path(__file__).parent / "schema.yaml"


def load_schema() -> dict:
    """Load the JSON schema from schema.yaml."""
    with open(SCHEMA_PATH) as f:
        return yaml.safe_load(f)


def normalize(data: Any) -> Any:
    """JSON round trip so YAML-native dates become plain ISO strings."""
    return json.loads(json.dumps(data, default=str))


def validate_document(data: Any, schema: Optional[dict] = None) -> List[str]:
    """Validate an already-loaded document. Returns list of errors."""
    schema = schema or load_schema()
    errors = []
    validator = Draft7Validator(schema)
    for error in sorted(validator.iter_errors(normalize(data)), key=lambda e: [str(p) for p in e.path]):
        errors.append(f"Schema validation error: {error.message}")
        if error.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in error.path)}")
    return errors


def validate_file(filepath: Union[str, Path], schema: Optional[dict] = None) -> List[str]:
    """Validate a single data file. Returns list of errors."""
    try:
        with open(filepath, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (yaml.YAMLError, ValueError) as e:
        return [f"YAML parse error: {e}"]
    except OSError as e:
        return [f"Error: {e}"]
    return validate_document(data or {}, schema)
