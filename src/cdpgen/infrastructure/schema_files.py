"""Schema document reading — JSON and YAML protocol descriptions on disk."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from cdpgen.domain.errors import MalformedSchema
from cdpgen.domain.loader import merge_schemas, parse_document

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cdpgen.domain.model import ProtocolSchema

logger = logging.getLogger(__name__)

YAML_SUFFIXES = frozenset({".yaml", ".yml"})


def read_schema_file(path: Path) -> Any:
    """Deserialize one schema document.

    ``.yaml``/``.yml`` files are read with ruamel.yaml's safe loader, anything
    else as JSON. Read and decode failures become :class:`MalformedSchema`
    carrying the file as ``source``.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeError) as exc:
        raise MalformedSchema(f"Cannot read schema file: {exc}", source=str(path)) from exc

    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            return YAML(typ="safe").load(raw)
        return json.loads(raw)
    except (json.JSONDecodeError, YAMLError) as exc:
        raise MalformedSchema(f"Cannot decode schema file: {exc}", source=str(path)) from exc


def load_schema_files(paths: Sequence[Path]) -> ProtocolSchema:
    """Read, parse and merge *paths* in order into one unresolved schema."""
    if not paths:
        raise MalformedSchema("No schema files given")
    schemas = []
    for path in paths:
        logger.debug("Reading schema %s", path)
        data = read_schema_file(path)
        try:
            schemas.append(parse_document(data))
        except MalformedSchema as exc:
            exc.source = str(path)
            raise
    return merge_schemas(schemas)
