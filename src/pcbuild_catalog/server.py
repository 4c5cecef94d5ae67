"""PC Build Catalog server - filterable PC component listings per category."""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from starlette.concurrency import run_in_threadpool
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from . import __version__
from .categories import CATEGORIES
from .config import CORS_ORIGINS, HTTP_PORT, LOG_LEVEL, compiler_config
from .db import close_store, get_store
from .errors import NotFound, StoreError
from .parsers import fold_query_params
from .search import FilterCompiler

logger = logging.getLogger(__name__)

INVALID_CATEGORY_MESSAGE = "Categoría no válida"

# Global state
_compiler: FilterCompiler | None = None


def get_compiler() -> FilterCompiler:
    """Get or create the compiler bound to the global store."""
    global _compiler
    if _compiler is None:
        _compiler = FilterCompiler(get_store(), compiler_config())
    return _compiler


@asynccontextmanager
async def lifespan(app):
    """Open the store on startup so a missing file shows up in the logs early."""
    compiler = get_compiler()
    try:
        stats = await run_in_threadpool(get_store().get_stats)
        logger.info(f"Component store ready: {stats['total_components']} components")
    except StoreError as e:
        # Requests will keep reporting the failure as 500s
        logger.error(f"Component store unavailable at startup: {e}")
    if compiler.config.verbose_diagnostics:
        logger.info("Verbose filter diagnostics enabled")

    yield

    close_store()


# Create MCP server
mcp = FastMCP(
    name="pcbuild-catalog",
    instructions="PC component catalog for assembling a build. Use pc_filters to see the filter parameters of a category, then pc_components to list matching components. Read-only; no auth required.",
    lifespan=lifespan,
)


def _parse_filters_param(filters: dict[str, Any] | str | None) -> dict[str, Any] | None:
    """Parse filters that may arrive as a JSON string from some MCP clients."""
    if filters is None:
        return {}
    if isinstance(filters, str):
        if not filters.strip():
            return {}
        try:
            filters = json.loads(filters)
        except json.JSONDecodeError:
            logger.debug(f"Failed to parse filters as JSON: {filters[:100]!r}")
            return None
    if not isinstance(filters, dict):
        return None
    return filters


async def search_components(category: str, filters: dict[str, Any] | str | None = None) -> dict:
    """Run a filtered listing and wrap it for tool output."""
    criteria = _parse_filters_param(filters)
    if criteria is None:
        return {"error": "filters must be an object mapping parameter names to values", "results": [], "total": 0}

    compiler = get_compiler()
    try:
        plan = compiler.compile(category, criteria)
        results = await run_in_threadpool(compiler.execute, plan)
    except NotFound:
        return {
            "error": f"{INVALID_CATEGORY_MESSAGE}: '{category}'",
            "hint": f"Valid categories: {', '.join(CATEGORIES)}",
            "results": [],
            "total": 0,
        }
    except StoreError as e:
        logger.error(f"Component query failed for {category}: {e}")
        return {"error": str(e), "results": [], "total": 0}

    return {
        "results": results,
        "total": len(results),
        "filters_applied": plan.describe(),
    }


def list_filters(category: str | None = None) -> dict:
    """Filter table for one category, or for all of them."""
    compiler = get_compiler()
    if category is None:
        return {
            "categories": [
                {
                    "category": slug,
                    "name": info.display_name,
                    "filters": compiler.describe_filters(slug),
                }
                for slug, info in CATEGORIES.items()
            ]
        }
    try:
        filters = compiler.describe_filters(category)
    except NotFound:
        return {"error": f"{INVALID_CATEGORY_MESSAGE}: '{category}'", "hint": f"Valid categories: {', '.join(CATEGORIES)}"}
    return {"category": category, "name": CATEGORIES[category].display_name, "filters": filters}


# Tools

@mcp.tool(
    annotations=ToolAnnotations(
        title="List Components",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def pc_components(
    category: str,
    filters: dict[str, Any] | str | None = None,
) -> dict:
    """List PC components in one category, filtered by category-specific attributes.

    Args:
        category: One of case, cpu, gpu, memory, motherboard, power-supply, storage, cooler
        filters: Parameter name -> value. Shapes:
            - text: "AM5" (case-insensitive substring), e.g. {"socket": "AM5", "name": "Ryzen"}
            - range: [min, max] inclusive, e.g. {"potencia": [650, 850]}
            - boolean: "true" or "false", e.g. {"modular": "true"}
            Use pc_filters(category) for the parameter names.

    Returns:
        results: Matching component documents, in catalog order
        total: Number of results
        filters_applied: The compiled filter stages (useful for debugging)
    """
    return await search_components(category, filters)


@mcp.tool(
    annotations=ToolAnnotations(
        title="Filter Help",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
def pc_filters(category: str | None = None) -> dict:
    """Show the filter parameters each category accepts.

    Args:
        category: Category slug; omit to list every category

    Returns:
        Per parameter: name, kind (text, brand, range, boolean) and the
        document paths it is matched against.
    """
    return list_filters(category)


# REST endpoints

async def components_endpoint(request: Request) -> JSONResponse:
    """GET /api/components/{category}?<criteria> -> list of components."""
    category = request.path_params["category"]
    criteria = fold_query_params(request.query_params.multi_items())
    logger.debug(f"Received query params for {category}: {criteria}")

    compiler = get_compiler()
    try:
        plan = compiler.compile(category, criteria)
        items = await run_in_threadpool(compiler.execute, plan)
    except NotFound:
        return JSONResponse({"error": INVALID_CATEGORY_MESSAGE}, status_code=404)
    except StoreError as e:
        logger.error(f"Error querying collection for {category}: {e}")
        return JSONResponse({"error": str(e)}, status_code=500)
    return JSONResponse(items)


async def categories_endpoint(request: Request) -> JSONResponse:
    """GET /api/categories -> categories with display names and filters."""
    return JSONResponse(list_filters()["categories"])


async def health(request: Request) -> JSONResponse:
    """Health check endpoint for Docker/load balancer."""
    return JSONResponse({
        "status": "healthy",
        "service": "pcbuild-catalog",
        "version": __version__,
    })


# Create ASGI app
def create_app():
    """Create the ASGI application."""
    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=CORS_ORIGINS,
            allow_methods=["GET"],
            allow_headers=["*"],
        ),
    ]

    # stateless_http=True: every MCP call is independent, no session cookies
    app = mcp.http_app(
        path="/mcp",
        middleware=middleware,
        transport="streamable-http",
        stateless_http=True,
    )

    app.routes.append(Route("/api/components/{category}", components_endpoint, methods=["GET"]))
    app.routes.append(Route("/api/categories", categories_endpoint, methods=["GET"]))
    app.routes.append(Route("/health", health, methods=["GET"]))

    return app


app = create_app()


class _HealthFilterLog(logging.Filter):
    """Suppress noisy /health access logs from container healthchecks."""

    def filter(self, record: logging.LogRecord) -> bool:
        return "/health" not in record.getMessage()


def main():
    """Run the server."""
    import uvicorn

    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("uvicorn.access").addFilter(_HealthFilterLog())

    uvicorn.run(
        "pcbuild_catalog.server:app",
        host="0.0.0.0",
        port=HTTP_PORT,
        lifespan="on",
    )


if __name__ == "__main__":
    main()
