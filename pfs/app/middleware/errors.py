from fastapi import Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from pfs.logger_config import setup_logger

logger = setup_logger()


class ErrorAdapterMiddleware:
    """Keeps handler failures from reaching the server.

    Any exception escaping the wrapped application is logged. If the handler
    has not started its response yet the client receives a plain 500,
    otherwise whatever was already sent stands.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            logger.error(f"Error handling {scope['method']} {scope['path']}", exc_info=True)
            if response_started:
                return
            response = PlainTextResponse("Internal Server Error", status_code=500)
            await response(scope, receive, send)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
    """Render HTTP errors raised by handlers as plain text instead of JSON."""
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code} {exc.detail}")
    return PlainTextResponse(
        str(exc.detail),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )
