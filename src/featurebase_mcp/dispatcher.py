"""
Tool-call dispatcher.

Dispatcher.dispatch() carries one call through its lifecycle:

    Received -> Validated -> Invoked -> Shaped -> Returned
    Received -> Rejected        (unknown tool name)
    Invoked  -> Failed          (transport raised)

Validation only checks that required inputs are present; values are passed
through to the transport untyped. Errors propagate unchanged so the caller
(the MCP server, or the CLI) decides how to present them.
"""

import logging
from collections.abc import Mapping
from typing import Any

from featurebase_mcp.errors import MissingArgumentsError, UnknownOperationError
from featurebase_mcp.http import FeaturebaseClient
from featurebase_mcp.operations import OPERATIONS, OperationCatalogue, shape_response
from featurebase_mcp.projection import parse_projection
from featurebase_mcp.schema import Operation, Placement

logger = logging.getLogger(__name__)

SELECT_ARG = "select"


def build_payload(operation: Operation, arguments: Mapping[str, Any]) -> dict[str, Any]:
    """
    Collect the declared, present arguments for the outbound request.

    Defaults fill absent inputs; ``select`` is never sent upstream.
    """
    payload: dict[str, Any] = {}
    for field in operation.inputs:
        if field.name == SELECT_ARG:
            continue
        value = arguments.get(field.name)
        if value is None:
            value = operation.defaults.get(field.name)
        if value is not None:
            payload[field.name] = value
    return payload


class Dispatcher:
    """
    Routes (tool name, arguments) pairs to the Featurebase API.

    Attributes:
        client: Transport used for every call
        catalogue: Operations available to callers
    """

    def __init__(
        self,
        client: FeaturebaseClient,
        catalogue: OperationCatalogue = OPERATIONS,
    ) -> None:
        self.client = client
        self.catalogue = catalogue

    def resolve(self, name: str) -> Operation:
        """
        Look up an operation by tool name.

        Raises:
            UnknownOperationError: If the name is not in the catalogue
        """
        operation = self.catalogue.get(name)
        if operation is None:
            raise UnknownOperationError(operation=name)
        return operation

    def validate(self, operation: Operation, arguments: Mapping[str, Any]) -> None:
        """
        Check that every required input is present.

        Raises:
            MissingArgumentsError: Naming each absent required input
        """
        missing = [name for name in operation.required_fields if arguments.get(name) is None]
        if missing:
            raise MissingArgumentsError(operation=operation.name, missing=missing)

    async def invoke(self, operation: Operation, payload: dict[str, Any]) -> Any:
        """Make the operation's HTTP call with a prepared payload."""
        if operation.placement == Placement.PUBLIC:
            return await self.client.get_public(operation.path, params=payload)
        if operation.placement == Placement.BODY:
            return await self.client.send(operation.method, operation.path, body=payload)
        return await self.client.send(operation.method, operation.path, params=payload)

    async def dispatch(self, name: str, arguments: Mapping[str, Any] | None = None) -> Any:
        """
        Execute one tool call end to end.

        Args:
            name: Tool name
            arguments: Tool arguments as received from the caller

        Returns:
            The shaped response

        Raises:
            UnknownOperationError: Unknown tool name
            MissingArgumentsError: Required inputs absent
            FeaturebaseError: Any transport, decoding, or projection failure
        """
        arguments = arguments or {}
        operation = self.resolve(name)
        self.validate(operation, arguments)

        # A malformed select fails before any request is made
        select = arguments.get(SELECT_ARG) if operation.selectable else None
        tree = parse_projection(select) if select else None

        payload = build_payload(operation, arguments)
        logger.info("Calling %s (%s %s)", operation.name, operation.method, operation.path)
        body = await self.invoke(operation, payload)

        return shape_response(operation, body, tree)
