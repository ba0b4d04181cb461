#!/usr/bin/env python3
"""gitlab-mcp entry point.

Run:
  gitlab-mcp                       # serve the GitLab tool catalog over stdio
  gitlab-mcp --test                # check the catalog renders, then exit
  gitlab-mcp --version

The server reads GITLAB_PERSONAL_ACCESS_TOKEN, GITLAB_API_URL and
GITLAB_MCP_TIMEOUT_S from the environment. A configuration problem exits with
status 2 and a one-line reason on stderr; stdout stays reserved for MCP frames.
"""

import argparse
import asyncio
import sys

from gitlab_mcp import __version__
from gitlab_mcp.errors import SafeError
from gitlab_mcp.server import run_server, test_server

EXIT_OK = 0
EXIT_CONFIG = 2


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        prog="gitlab-mcp",
        description="MCP server exposing GitLab issues, merge requests, branches and projects as tools.",
    )
    parser.add_argument(
        "--test",
        action="store_true",
        help="Check that every GitLab tool renders a valid schema, then exit. Needs no token.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the server (or the self-check) and return a process exit status."""
    args = parse_args(sys.argv[1:] if argv is None else argv)
    try:
        asyncio.run(test_server() if args.test else run_server())
    except SafeError as exc:
        print(f"gitlab-mcp: {exc.message}", file=sys.stderr)
        if exc.hint:
            print(f"hint: {exc.hint}", file=sys.stderr)
        return EXIT_CONFIG
    except KeyboardInterrupt:
        print("\ngitlab-mcp stopped by user", file=sys.stderr)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
