"""Kindle MCP Server."""

import argparse
import functools
import json
import logging
import os
from dataclasses import asdict
from datetime import date, datetime
from enum import Enum
from typing import Any

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from . import __version__
from .api_client import KindleClient
from .auth import get_session_path, load_session, session_from_env
from .errors import UnauthenticatedError

# MCP request/response logger
mcp_logger = logging.getLogger("kindle_api.mcp")

# Initialize MCP server
mcp = FastMCP(
    name="kindle",
    instructions="""Kindle MCP - Read your Kindle library and highlights (read.amazon.com).

**Auth:** Session cookies and the device token come from KINDLE_COOKIES / KINDLE_DEVICE_TOKEN or the session file. If tools report an expired session, export fresh cookies from a logged-in browser.
**Two sources:** library_list/annotations_list use the JSON reader API (owned books). notebook_library/notebook_annotations use the notebook pages (every book you ever highlighted).""",
)


# Health check endpoint for load balancers and monitoring
@mcp.custom_route("/health", methods=["GET"])
async def health_check(request: Request) -> JSONResponse:
    """Health check endpoint for load balancers and monitoring."""
    return JSONResponse({
        "status": "healthy",
        "service": "kindle-mcp",
        "version": __version__,
    })


# Global state
_client: KindleClient | None = None
_timeout: float = float(os.environ.get("KINDLE_TIMEOUT", "30.0"))


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value


def serialize(record: Any) -> dict[str, Any]:
    """Turn a model dataclass into a JSON-friendly dict."""
    return _jsonable(asdict(record))


def error_response(e: Exception) -> dict[str, Any]:
    if isinstance(e, UnauthenticatedError):
        return {
            "status": "error",
            "error": f"{e}. The Kindle session expired; export fresh cookies and restart the server.",
        }
    return {"status": "error", "error": str(e)}


def logged_tool():
    """Decorator that combines @mcp.tool() with MCP request/response logging."""
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            tool_name = func.__name__
            if mcp_logger.isEnabledFor(logging.DEBUG):
                params = {k: v for k, v in kwargs.items() if v is not None}
                mcp_logger.debug("MCP Request: %s(%s)", tool_name, json.dumps(params, default=str))

            result = await func(*args, **kwargs)

            if mcp_logger.isEnabledFor(logging.DEBUG):
                result_str = json.dumps(result, default=str)
                if len(result_str) > 1000:
                    result_str = result_str[:1000] + "..."
                mcp_logger.debug("MCP Response: %s -> %s", tool_name, result_str)

            return result
        return mcp.tool()(wrapper)
    return decorator


def get_client() -> KindleClient:
    """Get or create the API client.

    Tries environment variables first, falls back to the session file.
    """
    global _client
    if _client is None:
        session = session_from_env() or load_session()
        if session is None:
            raise ValueError(
                "No Kindle session found. Either:\n"
                "1. Set KINDLE_COOKIES and KINDLE_DEVICE_TOKEN, or\n"
                f"2. Write a session file to {get_session_path()}"
            )
        _client = KindleClient(session, timeout=_timeout)
    return _client


@logged_tool()
async def library_list(max_results: int = 500) -> dict[str, Any]:
    """List the books in the Kindle library (JSON API, owned titles only).

    Args:
        max_results: Maximum number of books to return (default: 500)
    """
    try:
        books = await get_client().fetch_library()
        return {
            "status": "success",
            "count": len(books),
            "books": [serialize(book) for book in books[:max_results]],
        }
    except Exception as e:
        return error_response(e)


@logged_tool()
async def book_metadata(asin: str) -> dict[str, Any]:
    """Get reading details and metadata for a book.

    The returned ref_em_id and yj_format_version are what annotations_list needs.

    Args:
        asin: Book ASIN
    """
    try:
        details, metadata = await get_client().fetch_book_details_and_metadata(asin)
        return {
            "status": "success",
            "asin": asin,
            "details": serialize(details),
            "metadata": serialize(metadata),
        }
    except Exception as e:
        return error_response(e)


@logged_tool()
async def annotations_list(asin: str, ref_em_id: str, yj_format_version: str) -> dict[str, Any]:
    """List annotations for a book from the JSON API.

    Args:
        asin: Book ASIN
        ref_em_id: From book_metadata (metadata.ref_em_id)
        yj_format_version: From book_metadata (details.yj_format_version)
    """
    try:
        annotations = await get_client().fetch_annotations(asin, ref_em_id, yj_format_version)
        return {
            "status": "success",
            "count": len(annotations),
            "annotations": [serialize(a) for a in annotations],
        }
    except Exception as e:
        return error_response(e)


@logged_tool()
async def notebook_library() -> dict[str, Any]:
    """List every book that has highlights, from the Kindle notebook page."""
    try:
        books = await get_client().fetch_notebook_library()
        return {
            "status": "success",
            "count": len(books),
            "books": [serialize(book) for book in books],
        }
    except Exception as e:
        return error_response(e)


@logged_tool()
async def notebook_annotations(asin: str) -> dict[str, Any]:
    """List highlights and notes for a book from the Kindle notebook page.

    Args:
        asin: Book ASIN (from notebook_library)
    """
    try:
        annotations = await get_client().fetch_notebook_annotations(asin)
        return {
            "status": "success",
            "asin": asin,
            "count": len(annotations),
            "annotations": [serialize(a) for a in annotations],
        }
    except Exception as e:
        return error_response(e)


def main() -> int:
    parser = argparse.ArgumentParser(description="Kindle MCP server")
    parser.add_argument(
        "--transport", choices=["stdio", "http", "sse"], default="stdio",
        help="MCP transport (default: stdio)",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Host for http/sse transports")
    parser.add_argument("--port", type=int, default=8000, help="Port for http/sse transports")
    parser.add_argument("--path", default="/mcp", help="MCP endpoint path for http transport")
    parser.add_argument(
        "--debug", action="store_true",
        help="Log MCP tool calls and Kindle API requests to stderr",
    )
    args = parser.parse_args()

    if args.debug:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s"))

        mcp_logger.setLevel(logging.DEBUG)
        mcp_logger.addHandler(handler)

        # Enable API request/response logging (between MCP server and Kindle)
        api_logger = logging.getLogger("kindle_api.api")
        api_logger.setLevel(logging.DEBUG)
        api_logger.addHandler(handler)

    if args.transport == "http":
        print(f"Starting Kindle MCP server (HTTP) on http://{args.host}:{args.port}{args.path}")
        print(f"Health check: http://{args.host}:{args.port}/health")
        mcp.run(transport="http", host=args.host, port=args.port, path=args.path)
    elif args.transport == "sse":
        print(f"Starting Kindle MCP server (SSE) on http://{args.host}:{args.port}/sse")
        print(f"Health check: http://{args.host}:{args.port}/health")
        mcp.run(transport="sse", host=args.host, port=args.port)
    else:
        # Default: stdio transport (no message - stdio should be silent)
        mcp.run()

    return 0


if __name__ == "__main__":
    exit(main())
