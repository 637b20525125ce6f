"""Edge proxy server: request routing and application factory."""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator
from typing import Any

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Route

from .cache import EdgeCache
from .config import EdgeConfig
from .events import CORS_HEADERS, EventsHandler
from .internal import HTTPError, NotFoundError, serve_error
from .redirects import ClickSink, RedirectHandler, RedirectTable
from .upstream import UpstreamClient
from .weather import WEATHER_PATH, WeatherHandler

logger = logging.getLogger("paradise_edge.server")

EVENTS_PREFIX = "/api/events"
REDIRECT_PREFIX = "/go/"

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


class Handler:
    """Routes requests to the events and redirect handlers.

    Preflight (OPTIONS) requests are answered before the path is looked at.
    """

    def __init__(
        self,
        events_handler: EventsHandler,
        redirect_handler: RedirectHandler,
        debug: bool = False,
    ) -> None:
        self.events_handler = events_handler
        self.redirect_handler = redirect_handler
        self.debug = debug

    async def handle(self, request: Request) -> Response:
        """Handle HTTP request."""
        if self.debug:
            from .debug import log_request

            log_request(
                request.method,
                request.url.path,
                dict(request.headers.items()),
                request.url.query,
            )

        response = await self._dispatch(request)

        if self.debug:
            self._log_response(response)

        return response

    async def _dispatch(self, request: Request) -> Response:
        if request.method == "OPTIONS":
            return self.preflight()

        path = request.url.path
        try:
            if path.startswith(EVENTS_PREFIX):
                self._check_method(request)
                return await self.events_handler.handle(request)
            if path.startswith(REDIRECT_PREFIX):
                self._check_method(request)
                slug = path[len(REDIRECT_PREFIX) :].rstrip("/")
                return await self.redirect_handler.handle(request, slug)
            raise NotFoundError("Not Found")
        except HTTPError as e:
            headers: dict[str, str] = {}
            if not isinstance(e, NotFoundError):
                headers.update(CORS_HEADERS)
            if e.code == 405:
                headers["Allow"] = "GET, OPTIONS"
            return serve_error(e, headers=headers)
        except Exception as e:
            logger.exception("unhandled error for %s %s", request.method, path)
            return serve_error(e, headers=dict(CORS_HEADERS))

    def preflight(self) -> Response:
        """Empty, uncacheable acknowledgement with permissive CORS headers."""
        headers = {**CORS_HEADERS, "cache-control": "no-store"}
        return Response(status_code=204, headers=headers)

    def _check_method(self, request: Request) -> None:
        if request.method not in ("GET", "HEAD"):
            raise HTTPError(405, "Method not allowed")

    def _log_response(self, response: Response) -> None:
        from .debug import log_response

        headers: dict[str, Any] = dict(response.headers.items())
        body: bytes | None = getattr(response, "body", None)
        log_response(response.status_code, headers, body)


def create_app(
    config: EdgeConfig | None = None,
    *,
    client: UpstreamClient | None = None,
    cache: EdgeCache | None = None,
    redirects: RedirectTable | None = None,
    click_sink: ClickSink | None = None,
    debug: bool = False,
) -> Starlette:
    """Create the Starlette app serving events, redirects and weather.

    Args:
        config: Edge configuration (read from the environment if None)
        client: Upstream HTTP client (a default one is created if None)
        cache: Edge cache shared by all handlers
        redirects: Short-link table (the production table if None)
        click_sink: Destination for click records (logging if None)
        debug: Log every request and response

    Returns:
        Starlette application
    """
    if config is None:
        config = EdgeConfig()
    if client is None:
        client = UpstreamClient(timeout=config.timeout)
    if cache is None:
        cache = EdgeCache()
    if redirects is None:
        redirects = RedirectTable.default()

    handler = Handler(
        EventsHandler(config, client, cache),
        RedirectHandler(redirects, click_sink),
        debug=debug,
    )
    weather_handler = WeatherHandler(config, client, cache)

    async def edge_handler(request: Request) -> Response:
        return await handler.handle(request)

    async def weather_endpoint(request: Request) -> Response:
        return await weather_handler.handle(request)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        yield
        await client.close()

    routes = [
        Route(WEATHER_PATH, weather_endpoint, methods=ALL_METHODS),
        Route("/{path:path}", edge_handler, methods=ALL_METHODS),
    ]

    return Starlette(routes=routes, lifespan=lifespan)
