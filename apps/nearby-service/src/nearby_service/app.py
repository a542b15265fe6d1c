from __future__ import annotations

from devkit.observability import configure_otel, configure_probe_access_log_filter
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from nearby_service.errors import ApiError
from nearby_service.middleware import ObservabilityMiddleware
from nearby_service.observability import RequestMetrics
from nearby_service.response import data_response, error_response
from nearby_service.routers.location import router as location_router
from nearby_service.routers.nearby import router as nearby_router

CORS_ALLOWED_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        field = ".".join(str(item) for item in err.get("loc", ())[1:])
        parts.append(f"{field}: {err['msg']}" if field else err["msg"])
    return "; ".join(parts)


def create_app() -> FastAPI:
    app = FastAPI(title="VetDz Nearby Service", version="0.1.0")
    configure_otel(service_name="nearby-service")
    configure_probe_access_log_filter()
    app.state.request_metrics = RequestMetrics()
    app.add_middleware(ObservabilityMiddleware, metrics=app.state.request_metrics)
    # added last so it wraps everything, error responses included
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=CORS_ALLOWED_HEADERS,
        expose_headers=["x-trace-id"],
    )
    app.include_router(nearby_router)
    app.include_router(location_router)

    @app.get("/healthz")
    async def healthz() -> dict:
        return data_response({"status": "ok"})

    @app.get("/readyz")
    async def readyz() -> dict:
        return data_response({"status": "ready"})

    @app.get("/metrics")
    async def metrics() -> Response:
        return Response(content=app.state.request_metrics.render(), media_type="text/plain; version=0.0.4")

    @app.exception_handler(ApiError)
    async def handle_api_error(_: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=error_response(exc.message))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content=error_response(_validation_message(exc)))

    return app


app = create_app()
