from fastapi import APIRouter, Depends, Request

from pfs.app.services.auth import require_token


def create_download_router() -> APIRouter:
    """Catch-all route serving files and directory listings under "/"."""
    router = APIRouter(dependencies=[Depends(require_token)])

    @router.api_route("/{path:path}", methods=["GET", "HEAD"])
    async def serve_path(path: str, request: Request):
        responder = request.app.state.listing_responder
        return await responder.respond(request, path)

    return router
