from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import APIRouter, FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException

from pfs import config
from pfs.app.middleware.errors import ErrorAdapterMiddleware, http_error_handler
from pfs.app.routes.download_routes import create_download_router
from pfs.app.routes.upload_routes import create_upload_router
from pfs.app.services.lifecycle import LifecycleTimer
from pfs.app.services.listing_responder import ListingResponder
from pfs.app.services.upload_receiver import UploadReceiver
from pfs.config import Mode, ServerConfig
from pfs.logger_config import setup_logger

# Logger setup
logger = setup_logger()

CAPABILITIES = {
    Mode.UPLOAD: "Allowing uploads to the current directory",
    Mode.DOWNLOAD: "Allowing downloads from the current directory",
    Mode.BOTH: "Allowing downloads from (and uploads to) the current directory",
}


def build_routers(mode: Mode) -> List[APIRouter]:
    """Route table for a mode, in matching order."""
    if mode is Mode.UPLOAD:
        return [create_upload_router("/")]
    if mode is Mode.DOWNLOAD:
        return [create_download_router()]
    # The catch-all listing route has to come after the upload routes
    return [create_upload_router(config.UPLOAD_PATH), create_download_router()]


def create_app(server_config: ServerConfig, timer: Optional[LifecycleTimer] = None) -> FastAPI:
    """Build the application for the configured mode.

    Args:
        server_config: The immutable startup configuration
        timer: Lifecycle timer started when the application starts serving
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"{CAPABILITIES[server_config.mode]} for {server_config.timeout_minutes:g} minutes "
            f"on port {server_config.port}"
        )
        if timer is not None:
            timer.start()
        yield

    # No docs or openapi routes: only the mode's routes may exist
    app = FastAPI(title="pfs", lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)

    app.state.config = server_config
    app.state.listing_responder = ListingResponder(
        server_config.directory, add_upload_link=server_config.mode is Mode.BOTH
    )
    app.state.upload_receiver = UploadReceiver(server_config.directory)

    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_middleware(ErrorAdapterMiddleware)

    for router in build_routers(server_config.mode):
        app.include_router(router)

    return app
