import logging
from fastapi import FastAPI, Request

from dashlight.logging import configure_logging
from dashlight.config import settings
from dashlight.middleware.request_id import RequestIdMiddleware
from dashlight.observability.metrics import HTTP_REQUESTS_TOTAL

from dashlight.api.error_handlers import register_error_handlers
from dashlight.api.ops import router as ops_router
from dashlight.api.routes_classify import router as classify_router


def _route_label(request: Request) -> str:
    # matched route template; "unmatched" for 404s
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


def create_app() -> FastAPI:
    configure_logging()
    logger = logging.getLogger(__name__)

    app = FastAPI(title=settings.app_name)

    @app.middleware("http")
    async def count_requests(request: Request, call_next):
        response = await call_next(request)
        HTTP_REQUESTS_TOTAL.labels(
            path=_route_label(request),
            method=request.method,
            status=str(response.status_code),
        ).inc()
        return response

    # added last so it is outermost: the request id exists before counting/logging
    app.add_middleware(RequestIdMiddleware)

    register_error_handlers(app)

    app.include_router(ops_router)
    app.include_router(classify_router)

    logger.info(
        "App initialized vision_engine=%s provider=%s threshold=%.2f",
        settings.vision_engine,
        settings.provider,
        settings.confidence_threshold,
    )
    return app


app = create_app()
