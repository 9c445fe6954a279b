#!/usr/bin/env python3
"""
Entry point for the CHUK Strudel MCP Server.

Options map onto the environment read by async_server, so the same
settings work when the server module is imported by another host:

    --library PATH      STRUDEL_LIBRARY_PATH (os.pathsep separated, searched first)
    --scores-dir PATH   STRUDEL_SCORES_DIR
    --instrument NAME   STRUDEL_INSTRUMENT
"""

import argparse
import asyncio
import logging
import os

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="CHUK Strudel MCP Server - LilyPond and drum sequences to Strudel"
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport mode (default: stdio)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="HTTP port (only for http transport)",
    )
    parser.add_argument(
        "--library",
        action="append",
        default=[],
        metavar="PATH",
        help="Pattern library directory, searched before the built-in patterns (repeatable)",
    )
    parser.add_argument(
        "--scores-dir",
        metavar="PATH",
        help="Directory for resolving \\include in tool input (default: ./scores)",
    )
    parser.add_argument(
        "--instrument",
        help="Default Strudel sound for pitched staves (default: piano)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main() -> None:
    """Parse options, export them to the environment and run the server."""
    args = build_parser().parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.library:
        os.environ["STRUDEL_LIBRARY_PATH"] = os.pathsep.join(args.library)
    if args.scores_dir:
        os.environ["STRUDEL_SCORES_DIR"] = args.scores_dir
    if args.instrument:
        os.environ["STRUDEL_INSTRUMENT"] = args.instrument

    # The server reads its configuration from the environment on import
    from chuk_mcp_strudel.async_server import mcp

    if args.transport == "stdio":
        logger.info("Starting CHUK Strudel MCP Server (stdio)")
        asyncio.run(mcp.run_stdio())
    else:
        logger.info("Starting CHUK Strudel MCP Server (http:%d)", args.port)
        asyncio.run(mcp.run_http(port=args.port))


if __name__ == "__main__":
    main()
