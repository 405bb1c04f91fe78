"""
Schema definitions for featurebase-mcp.

This module defines the Pydantic models shared across the server:
- ServerConfig: Credentials and origins, resolved once at startup
- InputField/Operation: Declarative description of each MCP tool
- ShapingRule/Placement: How a tool builds its request and trims its response

Design Decisions:
    - All models are immutable (frozen=True); they are process-wide state
    - Unknown keys are rejected (extra="forbid") so typos in config files fail loudly
    - Operations carry their own JSON schema so the tool list is derived, not duplicated
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_BASE_URL = "https://do.featurebase.app/v2"


# =============================================================================
# Enums
# =============================================================================


class ShapingRule(str, Enum):
    """
    How much of an upstream response is returned to the caller.

    PASSTHROUGH returns the body, projecting ``results`` when ``select`` is given.
    MINIMAL_CREATE returns only ``success`` and the new entity's ``id``.
    IDENTITY returns the body unchanged and offers no projection.
    FIXED_PROJECTION applies a hard-coded reduction to ``results``.
    """

    PASSTHROUGH = "passthrough"
    MINIMAL_CREATE = "minimal_create"
    IDENTITY = "identity"
    FIXED_PROJECTION = "fixed_projection"


class Placement(str, Enum):
    """Where an operation's arguments go on the outbound request."""

    QUERY = "query"
    BODY = "body"
    PUBLIC = "public"


class FieldType(str, Enum):
    """JSON schema type of a tool input."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


# =============================================================================
# Configuration
# =============================================================================


class ServerConfig(BaseModel):
    """
    Immutable runtime configuration.

    Attributes:
        api_key: Featurebase API key, sent as the X-API-Key header
        base_url: Authenticated REST origin
        org_url: Public organisation origin (slug resolution, similar search)
        timeout_seconds: Timeout handed to the HTTP client
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    api_key: str = Field(
        ...,
        description="Featurebase API key",
        min_length=1,
        repr=False,
    )
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Featurebase REST API origin",
    )
    org_url: str | None = Field(
        default=None,
        description="Public organisation URL, e.g. https://feedback.example.com",
    )
    timeout_seconds: float = Field(
        default=30.0,
        description="HTTP timeout in seconds",
        gt=0,
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Paths are appended verbatim, so the origin must not end in '/'."""
        return v.rstrip("/")


# =============================================================================
# Operation Catalogue Models
# =============================================================================


class InputField(BaseModel):
    """
    One declared input of a tool.

    Attributes:
        name: Argument name as sent by the caller
        type: JSON schema type
        description: Text shown to the agent
        required: Whether the dispatcher rejects calls without it
        enum: Allowed values for string inputs
        items: JSON schema of array elements
        properties: JSON schema of object properties
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1)
    type: FieldType = FieldType.STRING
    description: str = ""
    required: bool = False
    enum: tuple[str, ...] | None = None
    items: dict[str, Any] | None = None
    properties: dict[str, Any] | None = None

    def json_schema(self) -> dict[str, Any]:
        """Render this input as a JSON schema property."""
        schema: dict[str, Any] = {"type": self.type.value}
        if self.type == FieldType.ARRAY:
            schema["items"] = self.items or {"type": "string"}
        if self.properties:
            schema["properties"] = self.properties
        if self.enum:
            schema["enum"] = list(self.enum)
        if self.description:
            schema["description"] = self.description
        return schema


class Operation(BaseModel):
    """
    A named Featurebase operation exposed as an MCP tool.

    Attributes:
        name: Tool name (e.g., "list_posts")
        description: Tool description shown to the agent
        method: HTTP method
        path: Path relative to the chosen origin
        placement: Whether arguments go to the query string, the JSON body,
            or the public origin's query string
        inputs: Declared inputs
        defaults: Values applied to absent inputs before the request
        shaping: Response shaping rule
        entity: Key holding the created entity (MINIMAL_CREATE only)
        fixed_select: Hard-coded projection (FIXED_PROJECTION only)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1)
    description: str = ""
    method: str = "GET"
    path: str = Field(..., min_length=1)
    placement: Placement = Placement.QUERY
    inputs: tuple[InputField, ...] = ()
    defaults: dict[str, Any] = Field(default_factory=dict)
    shaping: ShapingRule = ShapingRule.IDENTITY
    entity: str | None = None
    fixed_select: str | None = None

    @property
    def selectable(self) -> bool:
        """Whether callers may pass a ``select`` expression."""
        return self.shaping == ShapingRule.PASSTHROUGH

    @property
    def required_fields(self) -> list[str]:
        return [f.name for f in self.inputs if f.required]

    def input_schema(self) -> dict[str, Any]:
        """Build the JSON schema advertised in tools/list."""
        return {
            "type": "object",
            "properties": {f.name: f.json_schema() for f in self.inputs},
            "required": self.required_fields,
        }
