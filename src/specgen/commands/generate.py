"""Generate command -- compile a document into a TypeScript module.

``specgen generate SPEC OUTPUT`` loads the document (file, URL or ``-`` for
stdin), runs the full compilation pipeline and writes the emitted module to
OUTPUT, or to stdout when OUTPUT is ``-``. Nothing is written when any stage
fails.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import typer

from specgen.exceptions import InvalidUsageError, SpecgenError
from specgen.models import ExportStyle, GeneratorConfig
from specgen.output import debug, error, get_output, success, suggest


def load_document(source: str, config: GeneratorConfig) -> dict[str, Any]:
    """Load *source*, using the disk cache for remote documents when enabled.

    Raises:
        SpecLoadError: If the document cannot be read or decoded.
    """
    from specgen.cache import SpecCache
    from specgen.config import get_cache_dir
    from specgen.parser import load_spec

    cache: Optional[SpecCache] = None
    if config.cache.enabled and source.startswith(("http://", "https://")):
        cache = SpecCache(get_cache_dir(), config.cache)
    try:
        return load_spec(source, cache)
    finally:
        if cache is not None:
            cache.close()


def generate_command(
    spec: str = typer.Argument(..., help="OpenAPI 3.1 document: file path, URL, or '-' for stdin."),
    output: str = typer.Argument(..., help="Output .ts file, or '-' for stdout."),
    export_style: Optional[str] = typer.Option(
        None, "--export-style", "-e", help="Export style: named, namespace, default."
    ),
    namespace: Optional[str] = typer.Option(
        None, "--namespace", help="Object name for the namespace export style."
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Do not read or write the remote document cache."
    ),
) -> None:
    """Generate an Effect HttpApi module from an OpenAPI document.

    Example::

        specgen generate openapi.yaml src/api.ts
        specgen generate https://example.com/openapi.json - --export-style namespace
    """
    from specgen.config import resolve_config, write_output
    from specgen.generator import emit, generate_api

    try:
        config = resolve_config(
            cli_export_style=export_style,
            cli_namespace=namespace,
            cli_no_cache=no_cache,
        )
        if namespace is not None and config.export_style != ExportStyle.NAMESPACE:
            raise InvalidUsageError(
                "--namespace only applies to the namespace export style "
                "(add --export-style namespace)"
            )
        debug(f"Export style: {config.export_style.value}")
        document = load_document(spec, config)
        api = generate_api(document)
        text = emit(api, config)
    except SpecgenError as exc:
        error(exc.message)
        raise typer.Exit(code=exc.exit_code) from None

    if output == "-":
        get_output().print_data(text.rstrip("\n"))
        return

    try:
        write_output(Path(output), text)
    except SpecgenError as exc:
        error(exc.message)
        raise typer.Exit(code=exc.exit_code) from None

    success(
        f"Generated {output} ({len(api.schema_identifiers)} schemas, API '{api.api_name}')"
    )
    if config.export_style == ExportStyle.NAMED:
        suggest(f"Import it with: import {{ {api.api_name} }} from './{Path(output).stem}'")
