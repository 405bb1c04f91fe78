"""
CLI entry point for featurebase-mcp.

Commands:
    serve   Run the MCP server over stdio
    tools   List the tools exposed to MCP clients
    call    Invoke a single tool once and print its JSON result

Architecture Note:
    The CLI only resolves configuration and delegates to the server and
    dispatcher modules. stdout belongs to the MCP transport while serving,
    so all logging goes to stderr.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from featurebase_mcp import __version__
from featurebase_mcp.config import resolve_config
from featurebase_mcp.dispatcher import Dispatcher
from featurebase_mcp.errors import FeaturebaseError
from featurebase_mcp.http import FeaturebaseClient
from featurebase_mcp.operations import OPERATIONS
from featurebase_mcp.schema import ServerConfig
from featurebase_mcp.server import encode_result, list_tools, serve as run_server

app = typer.Typer(
    name="featurebase-mcp",
    help="Expose the Featurebase API as MCP tools.",
    add_completion=False,
    no_args_is_help=True,
)

# stdout carries results (and the MCP stream); everything else goes to stderr
console = Console()
err_console = Console(stderr=True)


ApiKeyOption = Annotated[
    Optional[str],
    typer.Option("--api-key", help="Featurebase API key. Overrides FEATUREBASE_API_KEY."),
]
BaseUrlOption = Annotated[
    Optional[str],
    typer.Option("--base-url", help="REST API origin. Overrides FEATUREBASE_BASE_URL."),
]
OrgUrlOption = Annotated[
    Optional[str],
    typer.Option("--org-url", help="Public organisation URL. Overrides FEATUREBASE_ORG_URL."),
]
ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help="YAML file with api_key, base_url, org_url, timeout_seconds.",
        exists=True,
        readable=True,
        resolve_path=True,
    ),
]
LogLevelOption = Annotated[
    str,
    typer.Option(
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
        envvar="FEATUREBASE_LOG_LEVEL",
    ),
]


def configure_logging(level: str) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_config(
    api_key: str | None,
    base_url: str | None,
    org_url: str | None,
    config_file: Path | None,
) -> ServerConfig:
    """Resolve configuration or exit with a readable error."""
    try:
        return resolve_config(
            api_key=api_key,
            base_url=base_url,
            org_url=org_url,
            config_file=config_file,
        )
    except FeaturebaseError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e
    except (ValidationError, ValueError) as e:
        err_console.print(f"[red]Invalid configuration:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]featurebase-mcp[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    featurebase-mcp - Featurebase posts, comments and changelogs as MCP tools.
    """
    pass


@app.command()
def serve(
    api_key: ApiKeyOption = None,
    base_url: BaseUrlOption = None,
    org_url: OrgUrlOption = None,
    config_file: ConfigOption = None,
    log_level: LogLevelOption = "WARNING",
) -> None:
    """Run the MCP server over stdio."""
    configure_logging(log_level)
    config = _load_config(api_key, base_url, org_url, config_file)
    asyncio.run(run_server(config))


@app.command()
def tools(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Print the MCP tool list as JSON."),
    ] = False,
) -> None:
    """List the tools exposed to MCP clients."""
    if json_output:
        payload = [tool.model_dump(mode="json", exclude_none=True) for tool in list_tools(OPERATIONS)]
        typer.echo(json.dumps(payload, indent=2))
        return

    table = Table(title="Featurebase Tools")
    table.add_column("Tool", style="cyan")
    table.add_column("Call")
    table.add_column("Shaping", style="magenta")
    table.add_column("Required")

    for op in OPERATIONS:
        table.add_row(
            op.name,
            f"{op.method} {op.path}",
            op.shaping.value,
            ", ".join(op.required_fields) or "-",
        )

    console.print(table)
    console.print(f"\n[dim]{len(OPERATIONS)} tools[/dim]")


async def _call_once(config: ServerConfig, name: str, arguments: dict[str, Any]) -> Any:
    async with FeaturebaseClient(config) as client:
        return await Dispatcher(client).dispatch(name, arguments)


@app.command()
def call(
    name: Annotated[str, typer.Argument(help="Tool name, e.g. list_posts.")],
    args: Annotated[
        str,
        typer.Option("--args", "-a", help="Tool arguments as a JSON object."),
    ] = "{}",
    api_key: ApiKeyOption = None,
    base_url: BaseUrlOption = None,
    org_url: OrgUrlOption = None,
    config_file: ConfigOption = None,
    log_level: LogLevelOption = "WARNING",
) -> None:
    """Invoke a single tool once and print its JSON result."""
    configure_logging(log_level)

    try:
        arguments = json.loads(args)
    except json.JSONDecodeError as e:
        err_console.print(f"[red]Error:[/red] --args is not valid JSON: {escape(str(e))}")
        raise typer.Exit(1) from e
    if not isinstance(arguments, dict):
        err_console.print("[red]Error:[/red] --args must be a JSON object")
        raise typer.Exit(1)

    config = _load_config(api_key, base_url, org_url, config_file)

    try:
        result = asyncio.run(_call_once(config, name, arguments))
    except FeaturebaseError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    typer.echo(encode_result(result))


if __name__ == "__main__":
    app()
