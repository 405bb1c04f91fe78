"""
featurebase-mcp - The Featurebase feedback API as Model Context Protocol tools.

Every Featurebase operation (posts, comments, changelogs, subscribers) is
exposed as an MCP tool. Each call builds an HTTP request, executes it, and
shapes the response before returning it to the agent:
- Filter arguments are serialized into deterministic query strings
- List tools accept a 'select' expression to keep only the fields needed
- Create tools return a minimal confirmation instead of the full entity

Example usage:
    $ featurebase-mcp serve --api-key $FEATUREBASE_API_KEY
    $ featurebase-mcp tools
    $ featurebase-mcp call list_posts --args '{"q": "dark mode", "select": "id,title"}'
"""

__version__ = "1.0.0"
__author__ = "featurebase-mcp Contributors"

__all__ = [
    "__version__",
    "__author__",
]
