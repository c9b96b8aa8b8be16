"""specgen -- Compile OpenAPI 3.1 documents into Effect ``HttpApi`` TypeScript modules.

This package turns an OpenAPI document into source code that declares typed
endpoints (``HttpApiEndpoint``/``HttpApiGroup``/``HttpApi``) and
runtime-checked data shapes (``effect/Schema``). Named schemas are declared
in dependency order, and self- or mutually-referential schemas are broken
with ``Schema.suspend``.

Typical workflow::

    specgen generate openapi.yaml src/api.ts
    specgen inspect schemas openapi.yaml

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: XDG-aware paths and configuration precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    parser: Document loading, validation, schema normalization and ``$ref``
        resolution, operation extraction.
    generator: Schema and endpoint code generation, API assembly, emission.
"""

__version__ = "0.1.0"
