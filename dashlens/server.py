"""MCP server for dashlens — Metabase dashboard query and filter inspection."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

import mcp.server.stdio
import mcp.types as types
from mcp.server import Server

from dashlens.audit import audit_dashboard_filters
from dashlens.config import DashlensConfig, find_config_path, load_config
from dashlens.dashboard import Dashboard, load_dashboard
from dashlens.extractor import extract_dashboard_queries
from dashlens.metabase_client import MetabaseClient

logger = logging.getLogger(__name__)

server = Server("dashlens")

# Global state — initialized once per session
_config: DashlensConfig | None = None
_mb_client: MetabaseClient | None = None


def _get_config() -> DashlensConfig:
    global _config
    if _config is None:
        config_path = find_config_path()
        _config = load_config(config_path)
    return _config


def _get_metabase_client() -> MetabaseClient:
    global _mb_client
    if _mb_client is None:
        _mb_client = MetabaseClient(_get_config().metabase)
    return _mb_client


def _load_dashboard(arguments: dict) -> Dashboard | None:
    """Dashboard from an export file if given, else fetched from Metabase by id."""
    dashboard_file = arguments.get("dashboard_file")
    if dashboard_file:
        return load_dashboard(dashboard_file)
    dashboard_id = arguments.get("dashboard_id")
    if dashboard_id is None:
        return None
    return Dashboard(_get_metabase_client().get_dashboard(dashboard_id))


# ── Tool Definitions ──


_DASHBOARD_PROPERTIES = {
    "dashboard_id": {
        "type": "integer",
        "description": "The ID of the Metabase dashboard.",
    },
    "dashboard_file": {
        "type": "string",
        "description": (
            "Path to a saved GET /api/dashboard/<id> response. "
            "Used instead of dashboard_id when given."
        ),
    },
}


TOOLS = [
    types.Tool(
        name="dashlens_dashboard_queries",
        description=(
            "Extract all queries from a dashboard with table and field IDs resolved to "
            "actual table/column names. MBQL cards return their query with names instead "
            "of IDs, native cards return the raw SQL and template tag names. Use this to "
            "understand dashboard data sources, audit queries, or plan migrations."
        ),
        inputSchema={
            "type": "object",
            "properties": _DASHBOARD_PROPERTIES,
        },
    ),
    types.Tool(
        name="dashlens_audit_filters",
        description=(
            "Analyze dashboard filter connections to find cards that are not wired to every "
            "filter, or whose filter mappings are misconfigured (no target, or an MBQL "
            "target without a stage-number). Does not need Metabase when dashboard_file is given."
        ),
        inputSchema={
            "type": "object",
            "properties": _DASHBOARD_PROPERTIES,
        },
    ),
]


@server.list_tools()
async def list_tools() -> list[types.Tool]:
    return TOOLS


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[types.TextContent]:
    handlers = {
        "dashlens_dashboard_queries": handle_dashboard_queries,
        "dashlens_audit_filters": handle_audit_filters,
    }
    handler = handlers.get(name)
    if handler is None:
        return [types.TextContent(type="text", text=f"Unknown tool: {name}")]
    try:
        result = await handler(arguments or {})
        return [types.TextContent(type="text", text=json.dumps(result, indent=2))]
    except Exception as e:
        logger.exception("Tool %s failed", name)
        return [types.TextContent(type="text", text=json.dumps({"error": str(e)}))]


# ── Handlers ──


async def handle_dashboard_queries(arguments: dict) -> dict:
    dashboard = _load_dashboard(arguments)
    if dashboard is None:
        return {"error": "dashboard_id or dashboard_file is required"}

    return extract_dashboard_queries(
        dashboard,
        _get_metabase_client(),
        max_workers=_get_config().resolver.max_workers,
    )


async def handle_audit_filters(arguments: dict) -> dict:
    dashboard = _load_dashboard(arguments)
    if dashboard is None:
        return {"error": "dashboard_id or dashboard_file is required"}

    report = audit_dashboard_filters(dashboard)
    logger.info(
        "Audited dashboard %s: %d of %d card(s) need attention",
        report["dashboard_id"], report["cards_with_issues"], report["total_cards"],
    )
    return report


# ── Entry Point ──


def config_path_from_args(args: list[str]) -> str | Path | None:
    """--config <path> if given, else the first config found on disk."""
    if "--config" in args:
        idx = args.index("--config")
        if idx + 1 < len(args):
            return args[idx + 1]
    return find_config_path()


async def main_async():
    """Async entry point for the MCP server."""
    global _config

    _config = load_config(config_path_from_args(sys.argv[1:]))

    # stdout carries the MCP stream
    logging.basicConfig(
        level=_config.log_level,
        stream=sys.stderr,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("dashlens MCP server starting (metabase=%s)", _config.metabase.url or "unset")

    try:
        async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
            )
    finally:
        if _mb_client is not None:
            _mb_client.close()


def main_sync():
    """Synchronous entry point for the console script."""
    asyncio.run(main_async())


if __name__ == "__main__":
    main_sync()
