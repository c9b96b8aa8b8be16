"""Read the ``servers`` array and derive the API base path."""

from __future__ import annotations

import re
from typing import Any, Optional
from urllib.parse import urlparse

from specgen.models import ParsedServers, ServerInfo

_RELATIVE_PATH_RE = re.compile(r"^(?:https?://[^/]+)?(/.+)$")


def parse_servers(document: dict[str, Any]) -> ParsedServers:
    """Extract server entries and the base path of the first server.

    The base path is the path component of the first server URL, e.g.
    ``/v1`` for ``https://api.example.com/v1``. A bare ``/`` is ignored.
    Relative server URLs such as ``/api/v2`` are supported.
    """
    raw_servers = document.get("servers") or []
    servers = [
        ServerInfo(url=str(server.get("url", "/")), description=server.get("description"))
        for server in raw_servers
        if isinstance(server, dict)
    ]

    prefix: Optional[str] = None
    if servers:
        prefix = _path_prefix(servers[0].url)

    return ParsedServers(servers=servers, path_prefix=prefix)


def generate_servers_doc(parsed: ParsedServers) -> Optional[str]:
    """Render a ``/** Server URLs ... */`` comment, or ``None`` without servers."""
    if not parsed.servers:
        return None

    lines = ["/**", " * Server URLs", " *"]
    for server in parsed.servers:
        if server.description:
            lines.append(f" * - {server.url} - {server.description}")
        else:
            lines.append(f" * - {server.url}")

    if parsed.path_prefix:
        lines.append(" *")
        lines.append(f" * Base path: {parsed.path_prefix}")

    lines.append(" */")
    return "\n".join(lines)


def _path_prefix(url: str) -> Optional[str]:
    parsed = urlparse(url)
    if parsed.scheme and parsed.netloc:
        path = parsed.path
    else:
        match = _RELATIVE_PATH_RE.match(url)
        path = match.group(1) if match else ""
    if not path or path == "/":
        return None
    return path
