"""Load OpenAPI documents from a URL, local file, or stdin.

This module handles all I/O for fetching raw documents and decoding them
into Python dictionaries. Both JSON and YAML are accepted with automatic
format detection. Structural validation is left to
:func:`~specgen.parser.validator.validate_document`.

Remote documents can be cached on disk through a
:class:`~specgen.cache.SpecCache`.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

import httpx
import yaml

from specgen.exceptions import SpecLoadError

if TYPE_CHECKING:
    from specgen.cache import SpecCache

logger = logging.getLogger(__name__)


def load_spec(source: str, cache: Optional[SpecCache] = None) -> dict[str, Any]:
    """Load an OpenAPI document from URL, file path, or stdin (``-``).

    Args:
        source: A URL (http/https), file path, or ``-`` for stdin.
        cache: Optional cache consulted before, and filled after, fetching
            a URL. Ignored for files and stdin.

    Returns:
        The decoded document.

    Raises:
        SpecLoadError: If the source cannot be read or decoded, or does not
            hold a JSON/YAML object.
    """
    if source == "-":
        return _load_from_stdin()
    if source.startswith(("http://", "https://")):
        return _load_from_url(source, cache)
    return _load_from_file(source)


def _load_from_stdin() -> dict[str, Any]:
    try:
        content = sys.stdin.read()
    except OSError as exc:
        raise SpecLoadError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise SpecLoadError("No input received from stdin")

    return _parse_content(content)


def _load_from_url(url: str, cache: Optional[SpecCache]) -> dict[str, Any]:
    """Fetch a document over HTTP, using *cache* when given."""
    cached = cache.get(url) if cache is not None else None
    if cached is not None:
        logger.debug("Using cached document for %s", url)
        content, content_type = cached["content"], cached.get("content_type", "")
    else:
        logger.debug("Fetching %s", url)
        try:
            response = httpx.get(url, timeout=30.0, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise SpecLoadError(
                f"HTTP {exc.response.status_code} fetching spec from {url}"
            ) from exc
        except httpx.RequestError as exc:
            raise SpecLoadError(f"Failed to fetch spec from {url}: {exc}") from exc

        content = response.text
        content_type = response.headers.get("content-type", "")

    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"

    document = _parse_content(content, hint=hint)
    if cached is None and cache is not None:
        cache.set(url, content, content_type)
    return document


def _load_from_file(path: str) -> dict[str, Any]:
    """Read a local file, using its extension as a format hint."""
    file_path = Path(path)
    if not file_path.is_file():
        raise SpecLoadError(f"Spec file not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SpecLoadError(f"Failed to read spec file {path}: {exc}") from exc

    if not content.strip():
        raise SpecLoadError(f"Spec file is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"

    return _parse_content(content, hint=hint)


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Decode *content* as JSON, falling back to YAML.

    JSON is tried first (unless *hint* is ``"yaml"``) because it is the
    stricter of the two; every JSON document is also valid YAML.

    Raises:
        SpecLoadError: If neither decoder accepts the content, or the
            result is not a mapping.
    """
    json_error: Optional[Exception] = None

    if hint != "yaml":
        try:
            return _require_object(json.loads(content))
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise SpecLoadError(f"Invalid JSON: {exc}") from exc
            json_error = exc

    try:
        return _require_object(yaml.safe_load(content))
    except yaml.YAMLError as exc:
        msg = "Failed to parse spec as JSON or YAML"
        if json_error is not None:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise SpecLoadError(msg) from exc


def _require_object(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        got = type(result).__name__ if result is not None else "empty document"
        raise SpecLoadError(f"Spec must be a JSON/YAML object (got {got})")
    return result
