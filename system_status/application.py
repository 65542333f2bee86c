import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from system_status.api import system
from system_status.config import Settings, get_settings
from system_status.services.system_monitor import StatsError

logger = logging.getLogger(__name__)


async def stats_error_handler(request: Request, exc: StatsError) -> JSONResponse:
    # The body is the bare error message as a JSON string
    return JSONResponse(status_code=exc.status_code, content=exc.message)


async def os_error_handler(request: Request, exc: OSError) -> JSONResponse:
    return JSONResponse(status_code=500, content=str(exc))


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(title="System Status", debug=settings.debug)
    app.state.settings = settings

    cors = settings.cors_options()
    logger.info("CORS allowed origins: %s", cors.get("allow_origins") or cors.get("allow_origin_regex"))
    app.add_middleware(CORSMiddleware, **cors)

    app.add_exception_handler(StatsError, stats_error_handler)
    app.add_exception_handler(OSError, os_error_handler)

    app.include_router(system.router, prefix="/system", tags=["system"])

    @app.get("/", response_class=PlainTextResponse)
    async def index() -> str:
        return "Hello, world!"

    return app
