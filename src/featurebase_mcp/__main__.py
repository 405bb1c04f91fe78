"""Allow ``python -m featurebase_mcp``."""

from featurebase_mcp.cli import app

app()
