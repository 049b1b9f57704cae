"""
Scratch MCP server entry point.

Runs on stdio transport via FastMCP. All logging goes to stderr
so it never corrupts the JSON-RPC stdio channel.
"""

import logging
import sys
from pathlib import Path

# Configure logging to stderr before any other imports.
logging.basicConfig(
    stream=sys.stderr,
    level=logging.INFO,
    format="%(message)s",
)

# Load .env from the project root, only when it exists
_env_path = Path(__file__).resolve().parent.parent / ".env"
if _env_path.exists():
    from dotenv import load_dotenv
    load_dotenv(_env_path)


from fastmcp import FastMCP  # noqa: E402

from scratch_mcp.tools.scratch import register_scratch_tools  # noqa: E402

mcp = FastMCP("scratch")

register_scratch_tools(mcp)


def main() -> None:
    logging.getLogger("scratch").info("Scratch MCP starting on stdio...")
    mcp.run()


if __name__ == "__main__":
    main()
