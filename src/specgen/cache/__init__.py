"""Disk cache for remotely fetched OpenAPI documents.

This package provides :class:`SpecCache`, which stores the raw body of
documents fetched over HTTP using :mod:`diskcache`. It is consumed by
:func:`~specgen.parser.loader.load_spec` and controlled by the ``cache``
section of :class:`~specgen.models.GeneratorConfig`.
"""

from specgen.cache.cache import SpecCache

__all__ = ["SpecCache"]
