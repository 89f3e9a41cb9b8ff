"""Problem catalog loading from YAML or JSON files."""

import logging
from pathlib import Path

import yaml
from pydantic import TypeAdapter, ValidationError

from cadence.domain.errors import CatalogError
from cadence.domain.models import Problem

logger = logging.getLogger(__name__)

_catalog_adapter = TypeAdapter(list[Problem])


def load_catalog(path: Path) -> list[Problem]:
    """
    Load a problem catalog.

    The file holds either a list of problems or a mapping with a
    ``problems`` key. JSON is accepted too, since it parses as YAML.

    Raises:
        CatalogError: If the file is missing, malformed or fails validation.
    """
    path = Path(path)
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise CatalogError(f"Catalog file not found: {path}") from e
    except yaml.YAMLError as e:
        raise CatalogError(f"Could not parse catalog {path}: {e}") from e

    if raw is None:
        return []
    if isinstance(raw, dict):
        raw = raw.get("problems", [])

    try:
        problems = _catalog_adapter.validate_python(raw)
    except ValidationError as e:
        raise CatalogError(f"Invalid catalog {path}: {e.error_count()} error(s)\n{e}") from e

    ids = [problem.id for problem in problems]
    if len(ids) != len(set(ids)):
        raise CatalogError(f"Duplicate problem ids in catalog {path}")

    logger.debug(f"Loaded {len(problems)} problems from {path}")
    return problems
