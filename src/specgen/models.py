"""Canonical Pydantic models shared across all specgen modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**Schema nodes** -- the normalized form of a JSON-Schema object, produced by
:func:`~specgen.parser.schema_parser.parse_schema` and consumed by the
resolver, the topological sorter and the schema code generator:
    :class:`PrimitiveSchema`, :class:`ArraySchema`, :class:`ObjectSchema`,
    :class:`ReferenceSchema`, :class:`CombinatorSchema`, :class:`EnumSchema`,
    :class:`NullableSchema`, :class:`UnknownSchema` (together
    :data:`SchemaNode`), plus :class:`SchemaRegistry`.

**Parser output models** -- produced by the operation extractor and consumed
by the endpoint and group generators:
    :class:`HTTPMethod`, :class:`ParameterLocation`, :class:`Parameter`,
    :class:`RequestBody`, :class:`OperationResponse`, :class:`ParsedOperation`,
    :class:`OperationGroup`, :class:`SecurityScheme`, :class:`ParsedSecurity`,
    :class:`ServerInfo`, :class:`ParsedServers`, :class:`APIInfo`.

**Generator output models** -- text fragments handed from the endpoint and
API generators to the emitter:
    :class:`GeneratedEndpoint`, :class:`GeneratedApi`.

**Configuration models** -- loaded from ``specgen.json`` and CLI flags:
    :class:`ExportStyle`, :class:`CacheConfig`, :class:`GeneratorConfig`.

Schema nodes are frozen: once a raw document has been parsed, nothing in the
pipeline mutates them. Information discovered later (such as which properties
close a reference cycle) lives in side tables keyed by node identity.
"""

from __future__ import annotations

import enum
from typing import Any, Iterator, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# --- Schema nodes ---


class _SchemaBase(BaseModel):
    """Fields every schema variant may carry."""

    model_config = ConfigDict(frozen=True)

    description: Optional[str] = None
    deprecated: bool = False


class PrimitiveSchema(_SchemaBase):
    """A scalar ``string``, ``number``, ``integer``, ``boolean`` or ``null`` schema.

    ``type`` is kept as the raw string so that an unsupported value (e.g.
    ``"file"``) survives parsing and is reported by the code generator.

    ``exclusive_minimum``/``exclusive_maximum`` hold either the OpenAPI 3.1
    numeric form or the 3.0 boolean modifier of ``minimum``/``maximum``.
    """

    type: str
    format: Optional[str] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    minimum: Optional[Union[int, float]] = None
    maximum: Optional[Union[int, float]] = None
    exclusive_minimum: Optional[Union[bool, int, float]] = None
    exclusive_maximum: Optional[Union[bool, int, float]] = None
    multiple_of: Optional[Union[int, float]] = None


class ArraySchema(_SchemaBase):
    """An ``array`` schema. ``items`` is ``None`` when the document omitted it."""

    items: Optional[SchemaNode] = None
    min_items: Optional[int] = None
    max_items: Optional[int] = None
    unique_items: bool = False


class ObjectProperty(BaseModel):
    """One declared property of an :class:`ObjectSchema`."""

    model_config = ConfigDict(frozen=True)

    node: SchemaNode
    required: bool = False


class ObjectSchema(_SchemaBase):
    """An ``object`` schema with properties in declaration order.

    ``additional_properties`` is ``None`` when absent, a ``bool`` for the
    ``true``/``false`` forms, or a schema node for the typed-record form.
    """

    properties: dict[str, ObjectProperty] = Field(default_factory=dict)
    additional_properties: Optional[Union[bool, SchemaNode]] = None


class ReferenceSchema(_SchemaBase):
    """A ``$ref`` pointer, kept verbatim until the resolver follows it."""

    ref: str


class CombinatorKind(str, enum.Enum):
    """Schema composition keywords."""

    ALL_OF = "allOf"
    ONE_OF = "oneOf"
    ANY_OF = "anyOf"


class CombinatorSchema(_SchemaBase):
    """An ``allOf``/``oneOf``/``anyOf`` composition."""

    combinator: CombinatorKind
    members: list[SchemaNode] = Field(default_factory=list)


class EnumSchema(_SchemaBase):
    """An ``enum`` list or a single ``const`` value (``is_const=True``)."""

    values: list[Any] = Field(default_factory=list)
    is_const: bool = False


class NullableSchema(_SchemaBase):
    """``inner`` or ``null``.

    Normalized from ``nullable: true`` and from ``type`` arrays containing
    ``"null"``.
    """

    inner: SchemaNode


class UnknownSchema(_SchemaBase):
    """The empty schema ``{}``, which accepts any value."""


SchemaNode = Union[
    ReferenceSchema,
    CombinatorSchema,
    EnumSchema,
    NullableSchema,
    PrimitiveSchema,
    ArraySchema,
    ObjectSchema,
    UnknownSchema,
]
"""Tagged union of every normalized schema variant."""


for _model in (ArraySchema, ObjectProperty, ObjectSchema, CombinatorSchema, NullableSchema):
    _model.model_rebuild()


class SchemaRegistry(BaseModel):
    """Named reusable schemas from ``components.schemas``, in document order.

    Built once per document by
    :func:`~specgen.parser.schema_parser.build_registry` and treated as
    read-only afterwards.
    """

    schemas: dict[str, SchemaNode] = Field(default_factory=dict)

    def get(self, name: str) -> Optional[SchemaNode]:
        return self.schemas.get(name)

    def names(self) -> list[str]:
        return list(self.schemas)

    def items(self) -> Iterator[tuple[str, SchemaNode]]:
        return iter(self.schemas.items())

    def __contains__(self, name: object) -> bool:
        return name in self.schemas

    def __len__(self) -> int:
        return len(self.schemas)


# --- Parser Output Models ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods that map onto ``HttpApiEndpoint`` constructors."""

    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"
    HEAD = "head"
    OPTIONS = "options"


class ParameterLocation(str, enum.Enum):
    """Locations where an API parameter can appear, per OpenAPI ``in`` field."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


class Parameter(BaseModel):
    """A single parameter of an operation.

    Path parameters are always ``required``. ``node`` defaults to a plain
    string schema when the document declares none.
    """

    name: str
    location: ParameterLocation
    required: bool = False
    description: Optional[str] = None
    deprecated: bool = False
    node: SchemaNode = Field(default_factory=lambda: PrimitiveSchema(type="string"))


class RequestBody(BaseModel):
    """The ``application/json`` request body of an operation."""

    node: SchemaNode
    required: bool = False
    description: Optional[str] = None


class OperationResponse(BaseModel):
    """One ``(statusCode, schema)`` response pair with a JSON body."""

    status_code: str
    node: SchemaNode
    description: Optional[str] = None


class ParsedOperation(BaseModel):
    """A single API operation (one URL path + HTTP method pair).

    Parameters are partitioned strictly by location. ``security`` holds the
    effective requirements: the operation-level list when declared (even if
    empty), otherwise the document-level default.
    """

    operation_id: str
    method: HTTPMethod
    path: str
    summary: Optional[str] = None
    description: Optional[str] = None
    deprecated: bool = False
    tags: list[str] = Field(default_factory=list)
    path_parameters: list[Parameter] = Field(default_factory=list)
    query_parameters: list[Parameter] = Field(default_factory=list)
    header_parameters: list[Parameter] = Field(default_factory=list)
    cookie_parameters: list[Parameter] = Field(default_factory=list)
    request_body: Optional[RequestBody] = None
    responses: list[OperationResponse] = Field(default_factory=list)
    security: list[dict[str, list[str]]] = Field(default_factory=list)


class OperationGroup(BaseModel):
    """Operations sharing their first tag (``default`` when untagged).

    ``identifier`` is the camelCase form of ``name`` used to bind the group
    as ``<identifier>Group``.
    """

    name: str
    identifier: str
    operations: list[ParsedOperation] = Field(default_factory=list)


class OAuth2Flow(BaseModel):
    """One OAuth2 flow configuration."""

    authorization_url: Optional[str] = None
    token_url: Optional[str] = None
    refresh_url: Optional[str] = None
    scopes: dict[str, str] = Field(default_factory=dict)


class SecurityScheme(BaseModel):
    """An OpenAPI *Security Scheme Object*.

    The ``type`` field discriminates between ``apiKey``, ``http``, ``oauth2``,
    and ``openIdConnect`` schemes. Only the fields relevant to the active
    scheme type are populated; the rest remain ``None``.
    """

    name: str
    type: str
    description: Optional[str] = None
    # apiKey
    param_name: Optional[str] = None
    location: Optional[str] = None
    # http
    scheme: Optional[str] = None
    bearer_format: Optional[str] = None
    # oauth2
    flows: dict[str, OAuth2Flow] = Field(default_factory=dict)
    # openIdConnect
    openid_connect_url: Optional[str] = None


class ParsedSecurity(BaseModel):
    """Security schemes plus the document-level default requirements."""

    schemes: dict[str, SecurityScheme] = Field(default_factory=dict)
    global_requirements: list[dict[str, list[str]]] = Field(default_factory=list)


class ServerInfo(BaseModel):
    """A server entry from the document's ``servers`` array."""

    url: str
    description: Optional[str] = None


class ParsedServers(BaseModel):
    """Declared servers and the base path taken from the first one."""

    servers: list[ServerInfo] = Field(default_factory=list)
    path_prefix: Optional[str] = None


class APIInfo(BaseModel):
    """API metadata from the document's *Info Object*."""

    title: str
    version: str
    description: Optional[str] = None


# --- Generator output ---


class GeneratedEndpoint(BaseModel):
    """Code produced for one operation.

    ``path_param_declarations`` hold one ``const ... = HttpApiSchema.param(...)``
    line per path parameter; they must precede ``endpoint_code``, which
    interpolates them into its path template. ``path_param_variables`` lists
    the variable each of those lines declares, in the same order.
    """

    identifier: str
    path_param_declarations: list[str] = Field(default_factory=list)
    path_param_variables: list[str] = Field(default_factory=list)
    doc_comment: Optional[str] = None
    endpoint_code: str


class GeneratedApi(BaseModel):
    """Complete module body plus the names the export block refers to."""

    code: str
    api_name: str
    schema_identifiers: list[str] = Field(default_factory=list)
    info: APIInfo


# --- Configuration ---


class ExportStyle(str, enum.Enum):
    """How the emitted module exposes its declarations."""

    NAMED = "named"
    NAMESPACE = "namespace"
    DEFAULT = "default"


class CacheConfig(BaseModel):
    """Disk cache settings for documents fetched over HTTP."""

    enabled: bool = Field(default=True, description="Cache remote documents")
    ttl_seconds: int = Field(default=3600, description="Cache TTL in seconds")


class GeneratorConfig(BaseModel):
    """Effective generator configuration.

    Loaded from ``./specgen.json`` by :func:`~specgen.config.resolve_config`
    and overridden by environment variables and CLI flags.
    """

    export_style: ExportStyle = Field(
        default=ExportStyle.NAMED, description="Export style: named, namespace, default"
    )
    namespace_name: str = Field(
        default="Schemas", description="Object name used by the namespace export style"
    )
    cache: CacheConfig = Field(default_factory=CacheConfig)
