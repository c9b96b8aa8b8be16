"""Wrap a generated module body with its header and export block.

The final text is rendered from the Jinja2 template
``templates/module.ts.j2``: a "DO NOT EDIT" header naming the source
document, the module body from :func:`~specgen.generator.api.generate_api`,
and an export block whose shape depends on
:class:`~specgen.models.ExportStyle`:

* ``named`` -- ``export { <Api> }``; schemas are already ``export const``.
* ``namespace`` -- ``export const <Namespace> = { ...schemas, <Api> }``.
* ``default`` -- ``export default { ...schemas, <Api> }``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from specgen import __version__
from specgen.models import ExportStyle, GeneratedApi, GeneratorConfig

TEMPLATE_DIR = Path(__file__).parent / "templates"
"""Path to the Jinja2 template directory (``generator/templates/``)."""

MODULE_TEMPLATE = "module.ts.j2"


def emit(api: GeneratedApi, config: Optional[GeneratorConfig] = None) -> str:
    """Render the final module text.

    Args:
        api: Output of :func:`~specgen.generator.api.generate_api`.
        config: Export settings; defaults to named exports.

    Returns:
        The complete TypeScript module, ending with a newline.
    """
    config = config or GeneratorConfig()
    env = _create_jinja_env()
    template = env.get_template(MODULE_TEMPLATE)
    return template.render(
        title=api.info.title,
        version=api.info.version,
        generator_version=__version__,
        body=api.code.rstrip("\n"),
        api_name=api.api_name,
        export_style=config.export_style.value,
        namespace_name=config.namespace_name,
        export_names=[*api.schema_identifiers, api.api_name],
        ExportStyle=ExportStyle,
    )


def _create_jinja_env() -> Environment:
    """Create the Jinja2 environment for module templates.

    Autoescape stays off because the output is TypeScript, not HTML. Block
    trimming and lstrip keep control tags from leaking whitespace.
    """
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
