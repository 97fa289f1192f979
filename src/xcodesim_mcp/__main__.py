"""Entry point for xcodesim-mcp server."""

import argparse
import asyncio
import dataclasses
import logging
import os
import sys
from pathlib import Path

from .config import ExportConfig, configure_export
from .server import create_server
from .utils.project import configure_project_root, find_xcode_project_root


def find_project_root(root: str | Path | None = None) -> str:
    """Find the Xcode project root by walking up from CWD.

    Searches for .xcworkspace, then .xcodeproj, then .git.

    Args:
        root: If provided, the search starts here instead of CWD.

    Returns:
        Absolute path to project root (falls back to the start directory)
    """
    start = Path(root) if root is not None else None
    return str(find_xcode_project_root(start))


def configure_logging() -> None:
    """Configure logging based on environment."""
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="xcodesim MCP Server - Export Xcode simulator build artifacts via MCP"
    )
    parser.add_argument(
        "--project",
        type=str,
        default=None,
        help="Project root path. "
        "Containers and deploy directories are constrained to this path.",
    )
    parser.add_argument(
        "--project-from-cwd",
        action="store_true",
        default=False,
        help="Auto-detect project from current working directory. "
        "Searches upward for .xcworkspace, .xcodeproj, or .git markers. "
        "Cannot be used with --project.",
    )
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    configure_logging()
    logger = logging.getLogger(__name__)

    args = parse_args(argv)

    if args.project_from_cwd:
        if args.project is not None:
            logger.error("--project-from-cwd cannot be used with --project")
            sys.exit(1)
        project_path = find_project_root()
        logger.info(f"Auto-detected project root: {project_path}")
    else:
        project_path = args.project or os.getcwd()

    # stdout carries the MCP stream
    configure_export(dataclasses.replace(ExportConfig.from_env(), copy_output_to_stderr=True))
    configure_project_root(
        use_project_from_cwd=args.project_from_cwd,
        explicit_project_path=args.project,
        startup_cwd=os.getcwd(),
    )

    logger.info(f"Starting xcodesim MCP Server (project: {project_path})...")

    mcp = create_server(project_path)

    try:
        await mcp.run_stdio_async()
    except Exception:
        logger.exception("Server error")
        raise
    finally:
        logger.info("Server stopped")


def run() -> None:
    """Run the server."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
