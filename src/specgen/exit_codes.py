"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~specgen.exceptions.SpecgenError` subclass.
Build scripts can inspect the exit code to tell a malformed document apart
from a broken ``$ref`` without parsing stderr.

Example::

    $ specgen generate openapi.yaml src/api.ts
    $ echo $?
    9   # EXIT_REFERENCE_ERROR -- a $ref points at a missing schema
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_SPEC_LOAD_ERROR = 7
"""The OpenAPI document could not be read or decoded."""

EXIT_DOCUMENT_INVALID = 8
"""The document is missing required fields or has duplicate operation ids."""

EXIT_REFERENCE_ERROR = 9
"""A ``$ref`` is malformed or points at a schema that does not exist."""

EXIT_SCHEMA_ERROR = 11
"""A schema node cannot be translated into a validation expression."""

EXIT_SECURITY_ERROR = 12
"""A security scheme definition is malformed."""
