"""GitLab MCP Server.

Exposes GitLab projects, issues, notes, branches, merge requests, users and groups
as schema-described MCP tools.
"""

__version__ = "0.1.0"
