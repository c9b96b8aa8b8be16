"""Code generator -- turn parsed documents into Effect ``HttpApi`` modules.

Sub-modules:

* :mod:`~specgen.generator.identifier` -- PascalCase/camelCase sanitization.
* :mod:`~specgen.generator.toposort` -- dependency ordering of named schemas.
* :mod:`~specgen.generator.schema_codegen` -- schema node to ``Schema``
  expression compiler.
* :mod:`~specgen.generator.endpoint` -- one ``HttpApiEndpoint`` per operation.
* :mod:`~specgen.generator.groups` -- ``HttpApiGroup`` per tag.
* :mod:`~specgen.generator.api` -- full pipeline and ``HttpApi`` assembly.
* :mod:`~specgen.generator.emitter` -- header and export block (Jinja2).
"""

from specgen.generator.api import generate_api
from specgen.generator.emitter import emit
from specgen.generator.schema_codegen import compile_named_schema, compile_schema
from specgen.generator.toposort import sort_schemas

__all__ = ["compile_named_schema", "compile_schema", "emit", "generate_api", "sort_schemas"]
