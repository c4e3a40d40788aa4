"""FastAPI application wiring for the endpoint adapters."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from central.config import settings
from central.endpoint import endpoint, openrosa_endpoint
from central.errors import ErrorTranslator, install_error_handlers, send_error
from central.logging_config import get_server_logger, setup_logging
from central.openrosa import openrosa_message

setup_logging(json_logs=settings.json_logs, log_level=settings.log_level)
log = get_server_logger()


def health(request, response):
    """Health check for the JSON API."""
    return {"status": "ok"}


def openrosa_health(request, response):
    """Health check that exercises the OpenRosa header checks."""
    return openrosa_message(200, nature="", message="ok")


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("starting_server", host=settings.host, port=settings.port)
    yield
    log.info("shutting_down")


def create_app(translator: ErrorTranslator | None = None) -> FastAPI:
    """Build the application with routes and error handlers installed."""
    translator = translator or send_error

    app = FastAPI(title="Central HTTP", lifespan=lifespan)
    install_error_handlers(app, translator)

    app.add_api_route("/health", endpoint(health, on_failure=translator), methods=["GET"])
    app.add_api_route(
        "/openrosa/health",
        openrosa_endpoint(openrosa_health, on_failure=translator),
        methods=["GET", "HEAD"],
    )
    log.debug("routes_registered", count=len(app.routes))
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    log.info("starting_uvicorn", host=settings.host, port=settings.port)
    uvicorn.run(
        "central.server:app",
        host=settings.host,
        port=settings.port,
    )
