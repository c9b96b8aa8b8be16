"""Parse security schemes and requirements.

Each entry under ``components.securitySchemes`` is checked for the fields
its ``type`` requires and converted into a
:class:`~specgen.models.SecurityScheme`. Document-level ``security``
requirements become :attr:`~specgen.models.ParsedSecurity.global_requirements`;
the operation extractor lets an operation-level ``security`` array replace
them.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from specgen.exceptions import SecurityParseError
from specgen.models import OAuth2Flow, ParsedSecurity, SecurityScheme

OAUTH2_FLOW_NAMES = ("authorizationCode", "implicit", "password", "clientCredentials")

_API_KEY_LOCATIONS = frozenset({"header", "query", "cookie"})


def parse_security_schemes(components: Optional[dict[str, Any]]) -> dict[str, SecurityScheme]:
    """Parse ``components.securitySchemes``.

    Args:
        components: The document's ``components`` object, or ``None``.

    Returns:
        Schemes keyed by name, in declaration order.

    Raises:
        SecurityParseError: If a scheme is not an object, has no ``type``,
            has an unknown ``type``, or lacks a field its type requires.
    """
    if not components:
        return {}

    raw_schemes = components.get("securitySchemes") or {}
    if not isinstance(raw_schemes, dict):
        raise SecurityParseError("components.securitySchemes must be an object")

    schemes: dict[str, SecurityScheme] = {}
    for name, raw in raw_schemes.items():
        schemes[name] = _parse_scheme(name, raw)
    return schemes


def parse_security_requirements(security: Any) -> list[dict[str, list[str]]]:
    """Normalize a ``security`` array into a list of ``{scheme: scopes}`` dicts."""
    if security is None:
        return []
    if not isinstance(security, list):
        raise SecurityParseError("security must be an array of requirement objects")

    requirements: list[dict[str, list[str]]] = []
    for requirement in security:
        if not isinstance(requirement, dict):
            raise SecurityParseError("security requirement must be an object")
        requirements.append(
            {str(scheme): [str(scope) for scope in scopes or []] for scheme, scopes in requirement.items()}
        )
    return requirements


def parse_security(document: dict[str, Any]) -> ParsedSecurity:
    """Parse all security information of a document."""
    return ParsedSecurity(
        schemes=parse_security_schemes(document.get("components")),
        global_requirements=parse_security_requirements(document.get("security")),
    )


def format_requirements(requirements: list[dict[str, list[str]]]) -> list[str]:
    """Render requirements as human-readable lines for doc comments.

    Schemes within one requirement must all be satisfied, so they are joined
    with ``+``; each requirement is one alternative.

    Example::

        >>> format_requirements([{"oauth": ["read", "write"]}, {"apiKey": []}])
        ['oauth (read, write)', 'apiKey']
    """
    lines: list[str] = []
    for requirement in requirements:
        parts = [
            f"{scheme} ({', '.join(scopes)})" if scopes else scheme
            for scheme, scopes in requirement.items()
        ]
        if parts:
            lines.append(" + ".join(parts))
    return lines


def _parse_scheme(name: str, raw: Any) -> SecurityScheme:
    if not isinstance(raw, dict):
        raise SecurityParseError(f"Security scheme '{name}' must be an object")

    scheme_type = raw.get("type")
    description = raw.get("description")

    if not scheme_type:
        raise SecurityParseError(f"Security scheme '{name}' missing type")

    if scheme_type == "apiKey":
        if not raw.get("name") or not raw.get("in"):
            raise SecurityParseError(
                f"apiKey scheme '{name}' missing required fields (name, in)"
            )
        if not isinstance(raw["in"], str) or raw["in"] not in _API_KEY_LOCATIONS:
            raise SecurityParseError(
                f"apiKey scheme '{name}' has invalid location '{raw['in']}' "
                "(expected header, query or cookie)"
            )
        return _build(
            SecurityScheme,
            name,
            name=name,
            type="apiKey",
            description=description,
            param_name=raw["name"],
            location=raw["in"],
        )

    if scheme_type == "http":
        if not raw.get("scheme"):
            raise SecurityParseError(f"http scheme '{name}' missing 'scheme' field")
        return _build(
            SecurityScheme,
            name,
            name=name,
            type="http",
            description=description,
            scheme=raw["scheme"],
            bearer_format=raw.get("bearerFormat"),
        )

    if scheme_type == "oauth2":
        raw_flows = raw.get("flows")
        if not isinstance(raw_flows, dict) or not raw_flows:
            raise SecurityParseError(f"oauth2 scheme '{name}' missing 'flows' field")
        flows: dict[str, OAuth2Flow] = {}
        for flow_name in OAUTH2_FLOW_NAMES:
            flow = raw_flows.get(flow_name)
            if isinstance(flow, dict):
                flows[flow_name] = _build(
                    OAuth2Flow,
                    name,
                    authorization_url=flow.get("authorizationUrl"),
                    token_url=flow.get("tokenUrl"),
                    refresh_url=flow.get("refreshUrl"),
                    scopes=flow.get("scopes") or {},
                )
        return _build(
            SecurityScheme, name, name=name, type="oauth2", description=description, flows=flows
        )

    if scheme_type == "openIdConnect":
        if not raw.get("openIdConnectUrl"):
            raise SecurityParseError(
                f"openIdConnect scheme '{name}' missing 'openIdConnectUrl' field"
            )
        return _build(
            SecurityScheme,
            name,
            name=name,
            type="openIdConnect",
            description=description,
            openid_connect_url=raw["openIdConnectUrl"],
        )

    raise SecurityParseError(f"Unknown security scheme type: {scheme_type}")


def _build(model: type[BaseModel], scheme_name: str, **fields: Any) -> Any:
    """Instantiate a security model, reporting bad field values as parse errors."""
    try:
        return model(**fields)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise SecurityParseError(f"Invalid security scheme '{scheme_name}': {problems}") from exc
