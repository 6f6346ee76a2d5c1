"""Loading JSON Structure documents from mappings, files and URLs."""

import json
from pathlib import Path
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError

from structure_engine.config import EnvVar, get_environment, resolve_schema_path
from structure_engine.core.log import get_logger

logger = get_logger("structure.schema")


class SchemaLoadError(Exception):
    """A schema document could not be read, fetched or parsed."""

    def __init__(self, message: str, source: str | None = None):
        super().__init__(message)
        self.source = source


class SchemaDocument(BaseModel):
    """Root document of a JSON Structure schema.

    Only the document-level keywords are modelled; any other keys (a root
    ``type``/``properties`` pair, vendor extensions) are kept as extras.
    """

    model_config = {"populate_by_name": True, "extra": "allow"}

    schema_uri: str | None = Field(default=None, alias="$schema")
    id: str | None = Field(default=None, alias="$id")
    name: str | None = None
    root: str | None = Field(default=None, alias="$root")
    definitions: dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Plain mapping with the original ``$`` keys, as the engine consumes it."""
        data = self.model_dump(by_alias=True)
        for key in ("$schema", "$id", "name", "$root"):
            if data.get(key) is None:
                data.pop(key, None)
        return data


def parse_schema(data: Any, source: str | None = None) -> SchemaDocument:
    """Validate raw JSON data as a schema document.

    Raises:
        SchemaLoadError: If the data is not a JSON object or its
            document-level keywords have the wrong types.
    """
    if not isinstance(data, dict):
        raise SchemaLoadError(
            f"Schema document must be a JSON object, got {type(data).__name__}",
            source,
        )
    try:
        return SchemaDocument.model_validate(data)
    except ValidationError as e:
        raise SchemaLoadError(f"Invalid schema document: {e}", source) from e


def _fetch(url: str, client: httpx.Client | None) -> Any:
    timeout = get_environment(EnvVar.STRUCTURE_FETCH_TIMEOUT)
    owned = client is None
    http = client or httpx.Client(timeout=timeout)
    try:
        response = http.get(url)
        if response.status_code != 200:
            raise SchemaLoadError(
                f"Fetching schema returned {response.status_code}", url
            )
        return response.json()
    except httpx.TimeoutException as e:
        raise SchemaLoadError(f"Schema request timed out: {e}", url) from e
    except httpx.RequestError as e:
        raise SchemaLoadError(f"Schema request failed: {e}", url) from e
    except json.JSONDecodeError as e:
        raise SchemaLoadError(f"Schema response is not JSON: {e}", url) from e
    finally:
        if owned:
            http.close()


def load_schema(
    source: dict[str, Any] | str | Path,
    client: httpx.Client | None = None,
) -> dict[str, Any]:
    """Load a schema document.

    Args:
        source: A mapping, a file path, or an ``http(s)://`` URL.
        client: Optional HTTP client used for URLs.

    Returns:
        The document as a plain mapping.

    Raises:
        SchemaLoadError: If the document cannot be obtained or parsed.

    Example:
        >>> schema = load_schema("schemas/person.json")
        >>> schema["$root"]
        '#/definitions/Person'
    """
    if isinstance(source, dict):
        return parse_schema(source).to_dict()

    text = str(source)
    if text.startswith(("http://", "https://")):
        logger.debug(f"Fetching schema from {text}")
        return parse_schema(_fetch(text, client), text).to_dict()

    path = resolve_schema_path(source)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaLoadError(f"Cannot read schema file: {e}", str(path)) from e
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise SchemaLoadError(f"Schema file is not valid JSON: {e}", str(path)) from e
    logger.debug(f"Loaded schema from {path}")
    return parse_schema(data, str(path)).to_dict()


__all__ = ["SchemaDocument", "SchemaLoadError", "load_schema", "parse_schema"]
