"""
MCP (Model Context Protocol) stdio server.

Exposes every entry of the operation catalogue as an MCP tool:
- tools/list returns the catalogue with JSON input schemas
- tools/call runs the Dispatcher and returns one text block of compact JSON

Error mapping at this boundary:
    UnknownOperationError -> METHOD_NOT_FOUND
    anything else         -> INTERNAL_ERROR, "Featurebase API error: <message>"

The internal taxonomy (TransportError, ConfigurationMissingError, ...) is
logged before it is flattened.
"""

import json
import logging
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError
from mcp.types import (
    INTERNAL_ERROR,
    METHOD_NOT_FOUND,
    CallToolRequest,
    CallToolResult,
    ErrorData,
    ServerResult,
    TextContent,
    Tool,
)

from featurebase_mcp import __version__
from featurebase_mcp.dispatcher import Dispatcher
from featurebase_mcp.errors import FeaturebaseError, UnknownOperationError
from featurebase_mcp.http import FeaturebaseClient
from featurebase_mcp.operations import OperationCatalogue
from featurebase_mcp.schema import Operation, ServerConfig

logger = logging.getLogger(__name__)

SERVER_NAME = "featurebase-mcp"
ERROR_PREFIX = "Featurebase API error: "


def to_mcp_tool(operation: Operation) -> Tool:
    """Convert a catalogue entry to an mcp.types.Tool."""
    return Tool(
        name=operation.name,
        description=operation.description,
        inputSchema=operation.input_schema(),
    )


def list_tools(catalogue: OperationCatalogue) -> list[Tool]:
    return [to_mcp_tool(op) for op in catalogue]


def encode_result(result: Any) -> str:
    """Serialize a shaped result as compact JSON."""
    return json.dumps(result, separators=(",", ":"), ensure_ascii=False)


async def call_tool(
    dispatcher: Dispatcher,
    name: str,
    arguments: dict[str, Any] | None,
) -> list[TextContent]:
    """
    Run one tool call and translate failures into McpError.

    Args:
        dispatcher: Dispatcher bound to a live client
        name: Tool name from the request
        arguments: Tool arguments from the request

    Returns:
        A single TextContent block with the JSON result

    Raises:
        McpError: METHOD_NOT_FOUND for unknown tools, INTERNAL_ERROR otherwise
    """
    try:
        result = await dispatcher.dispatch(name, arguments or {})
    except UnknownOperationError as e:
        logger.warning("Unknown tool requested: %s", name)
        raise McpError(ErrorData(code=METHOD_NOT_FOUND, message=e.message)) from e
    except FeaturebaseError as e:
        logger.warning("%s failed: %r", name, e)
        raise McpError(ErrorData(code=INTERNAL_ERROR, message=f"{ERROR_PREFIX}{e.message}")) from e
    except Exception as e:
        logger.exception("%s failed unexpectedly", name)
        raise McpError(ErrorData(code=INTERNAL_ERROR, message=f"{ERROR_PREFIX}{e}")) from e

    return [TextContent(type="text", text=encode_result(result))]


def build_server(dispatcher: Dispatcher) -> Server:
    """
    Create the MCP server bound to a dispatcher.

    tools/call is registered as a raw request handler so that McpError reaches
    the client as a JSON-RPC error rather than a tool result with isError set.
    """
    server = Server(
        name=SERVER_NAME,
        version=__version__,
        instructions=(
            "Featurebase feedback platform. Use tools to list, create, update and delete "
            "posts, comments, changelogs and changelog subscribers. List tools accept a "
            "'select' expression such as \"id,title,author(name)\" to trim results."
        ),
    )

    @server.list_tools()
    async def handle_list_tools() -> list[Tool]:
        return list_tools(dispatcher.catalogue)

    async def handle_call_tool(request: CallToolRequest) -> ServerResult:
        content = await call_tool(dispatcher, request.params.name, request.params.arguments)
        return ServerResult(CallToolResult(content=content, isError=False))

    server.request_handlers[CallToolRequest] = handle_call_tool
    return server


async def serve(config: ServerConfig) -> None:
    """Run the MCP server over stdio until the client disconnects."""
    async with FeaturebaseClient(config) as client:
        server = build_server(Dispatcher(client))
        async with stdio_server() as (read_stream, write_stream):
            logger.info("Featurebase MCP server running on stdio")
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
            )
