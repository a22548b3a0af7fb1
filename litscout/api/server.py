"""FastAPI server exposing newsreader operations.

Provides HTTP endpoints for:
- /newsreader/articles - Ranked discovery candidates (?filter=new)
- /newsreader/shortlist - Shortlist listing, add and remove
- /newsreader/dismissed - Permanent dismissal
- /references/hooks/* - Reference lifecycle cascade
- /live - Liveness probe
- /metrics - Prometheus metrics in text format

Usage:
    from litscout.api.server import run_server
    run_server(host="0.0.0.0", port=8000)

    # Or embed with an existing facade
    app = create_app(newsreader)
"""

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import structlog
from fastapi import Body, FastAPI, Query, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from litscout import __version__
from litscout.observability.logging import configure_logging
from litscout.observability.metrics import get_metrics_content_type, get_metrics_text
from litscout.orchestration.context import NewsreaderContext
from litscout.orchestration.newsreader import Newsreader
from litscout.services.config_manager import ConfigManager
from litscout.utils.exceptions import (
    NewsreaderError,
    NotConfiguredError,
    PersistenceError,
    ValidationError,
)

logger = structlog.get_logger()


class ReferenceUpdate(BaseModel):
    """Body of the reference-updated hook."""

    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None


def _wire(model: BaseModel) -> Dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)


def get_newsreader(request: Request) -> Newsreader:
    newsreader = getattr(request.app.state, "newsreader", None)
    if newsreader is None:
        raise NotConfiguredError("Newsreader is not initialized")
    return newsreader


def create_app(
    newsreader: Optional[Newsreader] = None,
    config_path: Optional[str] = None,
) -> FastAPI:
    """Create FastAPI application with newsreader endpoints.

    Args:
        newsreader: Ready facade. When omitted, one is built from
            configuration at startup and torn down at shutdown.
        config_path: Configuration file used when building the facade.

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):  # pragma: no cover
        if getattr(app.state, "newsreader", None) is not None:
            yield
            return

        config = ConfigManager(config_path).load_config()
        configure_logging(
            level=config.logging.level, json_output=config.logging.json_output
        )
        async with NewsreaderContext.from_config(config) as context:
            app.state.newsreader = Newsreader(context)
            logger.info("server_started", store=context.store.name)
            yield
        logger.info("server_stopped")

    app = FastAPI(
        title="litscout",
        version=__version__,
        description="Research article discovery, shortlist and dismissal API",
        lifespan=lifespan,
    )
    app.state.newsreader = newsreader

    @app.exception_handler(NewsreaderError)
    async def newsreader_error_handler(
        request: Request, exc: NewsreaderError
    ) -> JSONResponse:
        if isinstance(exc, ValidationError):
            code = status.HTTP_400_BAD_REQUEST
        elif isinstance(exc, NotConfiguredError):
            code = status.HTTP_503_SERVICE_UNAVAILABLE
        else:
            code = status.HTTP_500_INTERNAL_SERVER_ERROR

        log = logger.warning if code < 500 else logger.error
        log(
            "request_failed",
            path=request.url.path,
            error_type=type(exc).__name__,
            error=str(exc),
            persistence=isinstance(exc, PersistenceError),
        )
        return JSONResponse(content={"error": str(exc)}, status_code=code)

    @app.get("/newsreader/articles", summary="Ranked discovery candidates")
    async def list_articles(
        request: Request, filter: Optional[str] = Query(None)
    ) -> Dict[str, Any]:
        result = await get_newsreader(request).list_candidates(only_new=filter == "new")
        return _wire(result)

    @app.get("/newsreader/shortlist", summary="Current shortlist")
    async def get_shortlist(request: Request) -> List[Dict[str, Any]]:
        entries = await get_newsreader(request).get_shortlist()
        return [_wire(e) for e in entries]

    @app.post("/newsreader/shortlist", summary="Add an article to the shortlist")
    async def add_to_shortlist(
        request: Request, article: Dict[str, Any] = Body(...)
    ) -> Dict[str, Any]:
        return _wire(await get_newsreader(request).add_to_shortlist(article))

    # DOIs contain slashes, so the identifier may span several path segments
    @app.delete(
        "/newsreader/shortlist/{identifier:path}",
        summary="Remove an article from the shortlist",
    )
    async def remove_from_shortlist(request: Request, identifier: str) -> Dict[str, Any]:
        return _wire(await get_newsreader(request).remove_from_shortlist(identifier))

    @app.post("/newsreader/dismissed", summary="Dismiss an article permanently")
    async def dismiss(
        request: Request, article: Dict[str, Any] = Body(...)
    ) -> Dict[str, Any]:
        return _wire(await get_newsreader(request).dismiss(article))

    @app.post("/references/hooks/created", summary="Reference created hook")
    async def reference_created(
        request: Request, reference: Dict[str, Any] = Body(...)
    ) -> Dict[str, Any]:
        return _wire(await get_newsreader(request).on_reference_created(reference))

    @app.post("/references/hooks/updated", summary="Reference updated hook")
    async def reference_updated(request: Request, body: ReferenceUpdate) -> Dict[str, Any]:
        result = await get_newsreader(request).on_reference_updated(
            body.before, body.after
        )
        return _wire(result)

    @app.get("/live", summary="Liveness probe")
    async def liveness_probe() -> Dict[str, Any]:
        return {"alive": True, "message": "Service is alive"}

    @app.get(
        "/metrics",
        response_class=PlainTextResponse,
        summary="Prometheus metrics",
    )
    async def prometheus_metrics() -> Response:
        return Response(content=get_metrics_text(), media_type=get_metrics_content_type())

    return app


def run_server(  # pragma: no cover
    host: str = "127.0.0.1",
    port: int = 8000,
    config_path: Optional[str] = None,
    log_level: str = "info",
) -> None:
    """Run the API server (blocking).

    Args:
        host: Host to bind to
        port: Port to bind to
        config_path: Configuration file path
        log_level: Uvicorn logging level
    """
    import uvicorn

    app = create_app(config_path=config_path)
    logger.info("server_starting", host=host, port=port)
    uvicorn.run(app, host=host, port=port, log_level=log_level)
