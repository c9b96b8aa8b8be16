"""Exception hierarchy for specgen.

All exceptions inherit from :class:`SpecgenError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`specgen.exit_codes`.
The top-level error handler in :func:`specgen.app.main` catches
``SpecgenError`` and exits with the appropriate code, while unexpected
exceptions produce a crash message and exit with :data:`EXIT_GENERIC_FAILURE`.

Every compilation stage is fail-fast: the first error aborts the run for the
whole document and propagates unchanged to the caller.

Subclass hierarchy::

    SpecgenError (exit 1)
    +-- InvalidUsageError         (exit 2)
    +-- SpecLoadError             (exit 7)
    +-- DocumentValidationError   (exit 8)
    +-- ReferenceResolutionError  (exit 9)
    +-- SchemaGenerationError     (exit 11)
    +-- SecurityParseError        (exit 12)
    +-- ConfigError               (exit 1)
"""

from specgen.exit_codes import (
    EXIT_DOCUMENT_INVALID,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_REFERENCE_ERROR,
    EXIT_SCHEMA_ERROR,
    EXIT_SECURITY_ERROR,
    EXIT_SPEC_LOAD_ERROR,
)


class SpecgenError(Exception):
    """Base exception for all specgen errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`specgen.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SpecgenError):
    """Raised for invalid CLI arguments or option values."""

    exit_code = EXIT_INVALID_USAGE


class SpecLoadError(SpecgenError):
    """Raised when the document cannot be fetched, read, or decoded as JSON/YAML."""

    exit_code = EXIT_SPEC_LOAD_ERROR


class DocumentValidationError(SpecgenError):
    """Raised when required top-level fields are missing or an ``operationId`` is reused."""

    exit_code = EXIT_DOCUMENT_INVALID


class ReferenceResolutionError(SpecgenError):
    """Raised for a dangling ``$ref`` or one not shaped like ``#/components/schemas/<name>``."""

    exit_code = EXIT_REFERENCE_ERROR


class SchemaGenerationError(SpecgenError):
    """Raised for a schema node that cannot be compiled.

    Examples: an ``array`` without ``items``, an unsupported primitive
    ``type``, or an empty ``allOf``/``oneOf``/``anyOf`` list.
    """

    exit_code = EXIT_SCHEMA_ERROR


class SecurityParseError(SpecgenError):
    """Raised when a security scheme under ``components.securitySchemes`` is malformed."""

    exit_code = EXIT_SECURITY_ERROR


class ConfigError(SpecgenError):
    """Raised for configuration problems (invalid ``specgen.json``, bad env values)."""

    exit_code = EXIT_GENERIC_FAILURE
