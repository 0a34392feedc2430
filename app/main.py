import logging
from typing import Optional

from fastapi import FastAPI

from .context import DiagnosticContext, build_context
from .routers import connections as connections_router, health as health_router


logger = logging.getLogger(__name__)


def custom_generate_unique_id(route):
    # method + path is always unique
    return f"{list(route.methods)[0].lower()}_{route.path.replace('/', '_').strip('_')}"


def create_app(context: Optional[DiagnosticContext] = None) -> FastAPI:
    """Build the FastAPI app around an explicitly constructed context.

    Without a context one is built from the environment; missing required
    settings fail here, before the server starts accepting requests.
    """
    context = context or build_context()

    app = FastAPI(
        title="Dualstack DB Check",
        version="0.1.0",
        generate_unique_id_function=custom_generate_unique_id,
    )
    app.state.context = context

    @app.on_event("startup")
    async def _log_startup():
        for r in app.routes:
            methods = sorted(getattr(r, "methods", None) or [])
            logger.info("[ROUTE] %s %s", methods, getattr(r, "path", ""))
        logger.info("[API] environment: %s", context.settings.describe())

    app.include_router(health_router.router)
    app.include_router(connections_router.router)
    return app
