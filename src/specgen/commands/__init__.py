"""Built-in CLI sub-commands for specgen.

* :mod:`~specgen.commands.generate` -- compile a document into a TypeScript
  module.
* :mod:`~specgen.commands.inspect` -- examine the schemas, operations and
  metadata the compiler extracts from a document.

``generate`` is a plain callback registered directly on the root app;
``inspect`` is a :class:`typer.Typer` sub-application.
"""
